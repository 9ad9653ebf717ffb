# src/spamcap/application/services/rule_matcher.py
import re
from typing import Optional

from spamcap.application.services.fuzzy import fuzzy_contains
from spamcap.domain.models import SpamMode, SpamRule

# Все, що не є літерою, цифрою чи пробілом (з урахуванням Unicode).
# `\w` включає підкреслення, тому прибираємо його окремо.
_NON_WORD = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")
# Три й більше не-голосних поспіль у короткому слові зазвичай означають одруківку
_CONSONANT_RUN = re.compile(r"[^aeiou]{3,}")

# Ключові слова, які спамери найчастіше маскують ("unl0ck", "fr33").
SPAM_KEYWORDS = (
    "unlock",
    "claim",
    "win",
    "free",
    "urgent",
    "winner",
    "prize",
    "cash",
    "verify",
    "offer",
    "congratulations",
)

KEYWORD_SIMILARITY = 0.5
FUZZY_SINGLE_THRESHOLD = 0.70
FUZZY_PHRASE_THRESHOLD = 0.75
TYPO_MAX_LENGTH = 4


def normalize(text: Optional[str]) -> str:
    """
    Нижній регістр, пунктуація та символи -> пробіл, пробіли згортаються.
    Тотальна функція: None перетворюється на порожній рядок.
    """
    if not text:
        return ""
    lowered = text.lower()
    return _WHITESPACE.sub(" ", _NON_WORD.sub(" ", lowered)).strip()


def similarity(a: str, b: str) -> float:
    """
    Грубе позиційне порівняння: кількість різних символів на однакових
    позиціях плюс різниця довжин, поділені на довжину довшого рядка.

    Це НЕ відстань редагування: вставка на початку дає максимальну різницю.
    Поріг KEYWORD_SIMILARITY підібраний саме під цю метрику.
    """
    if a == b:
        return 1.0
    longest = max(len(a), len(b))
    shortest = min(len(a), len(b))
    mismatches = sum(1 for i in range(shortest) if a[i] != b[i])
    return 1.0 - (mismatches + (longest - shortest)) / longest


def is_spam_keyword(pattern: str) -> bool:
    return any(similarity(pattern, keyword) >= KEYWORD_SIMILARITY for keyword in SPAM_KEYWORDS)


def looks_like_typo(pattern: str) -> bool:
    return len(pattern) <= TYPO_MAX_LENGTH and _CONSONANT_RUN.search(pattern) is not None


def matches(rule: SpamRule, message_brand: Optional[str], message_text: Optional[str]) -> bool:
    """
    Перевіряє одне правило проти одного повідомлення.

    - Правило з брендом застосовується лише до повідомлень цього бренду.
    - LONE: нормалізований текст має повністю дорівнювати фразі.
    - CONTAINS, одне слово: точний збіг цілого слова; нечіткий пошук лише
      для відомих спам-слів, що не схожі на одруківку.
    - CONTAINS, фраза: пошук по межах слів, потім нечіткий пошук.
    """
    if rule.brand and normalize(rule.brand) != normalize(message_brand):
        return False

    text = normalize(message_text)
    pattern = normalize(rule.pattern_norm or rule.pattern)
    if not text or not pattern:
        return False

    if rule.mode is SpamMode.LONE:
        return text == pattern

    tokens = pattern.split(" ")
    if len(tokens) == 1:
        if pattern in text.split(" "):
            return True
        if is_spam_keyword(pattern) and not looks_like_typo(pattern):
            return fuzzy_contains(text, pattern, FUZZY_SINGLE_THRESHOLD)
        return False

    if re.search(rf"\b{re.escape(pattern)}\b", text):
        return True
    return fuzzy_contains(text, pattern, FUZZY_PHRASE_THRESHOLD)

# src/spamcap/application/services/fuzzy.py
from typing import List


def levenshtein_distance(a: str, b: str) -> int:
    """Мінімальна кількість вставок, видалень і замін, щоб отримати `b` з `a`."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def levenshtein_similarity(a: str, b: str) -> float:
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return 1.0 - levenshtein_distance(a, b) / max(len(a), len(b))


def _token_matches(token: str, needle: str, threshold: float) -> bool:
    if token == needle:
        return True
    # Довше слово, що містить шукане цілим ("twin" для "win"), є іншим словом
    if needle in token:
        return False
    return levenshtein_similarity(token, needle) >= threshold


def fuzzy_contains(haystack: str, needle: str, threshold: float = 0.7) -> bool:
    """
    Нечіткий пошук слова або фрази в тексті на рівні слів.

    Для фрази слова шаблону мають зустрічатися в тексті в тому ж порядку
    (не обов'язково поспіль).
    """
    words: List[str] = haystack.lower().split()
    pattern_words: List[str] = needle.lower().split()
    if not words or not pattern_words:
        return False

    if len(pattern_words) == 1:
        return any(_token_matches(word, pattern_words[0], threshold) for word in words)

    position = 0
    for word in words:
        if position < len(pattern_words) and _token_matches(word, pattern_words[position], threshold):
            position += 1
    return position == len(pattern_words)

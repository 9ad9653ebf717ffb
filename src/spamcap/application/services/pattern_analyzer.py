# src/spamcap/application/services/pattern_analyzer.py
import re
from collections import Counter
from typing import List, Tuple

from spamcap.domain.models import PatternScore

_SPECIAL_CHARS = re.compile(r"""[!@#$%^&*()_+\-=\[\]{};':"\\|,.<>/?]""")
_DIGITS = re.compile(r"\d")
_REPEATED_CHARS = re.compile(r"(.)\1{3,}")
_SENTENCE_PUNCTUATION = re.compile(r"[.!?]")
_URLS = re.compile(r"https?://\S+")
_PHONES = re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b")

SPAM_TERMS = (
    'free', 'win', 'congratulations', 'urgent', 'unsubscribe', 'deal',
    'discount', 'save', 'money', 'cash', 'prize', 'winner', 'selected',
    'guaranteed',
)

_Result = Tuple[int, List[str]]


class PatternAnalyzer:
    """
    Евристичний аналіз тексту без зовнішніх API.
    Кожна група перевірок додає бали та людиночитні причини; сума обмежена 100.
    """

    def analyze(self, text: str) -> PatternScore:
        if not text:
            return PatternScore()

        score = 0
        reasons: List[str] = []
        for check in (self._characters, self._structure, self._words, self._indicators):
            points, check_reasons = check(text)
            score += points
            reasons.extend(check_reasons)

        return PatternScore(score=min(score, 100), reasons=reasons)

    @staticmethod
    def _characters(text: str) -> _Result:
        score = 0
        reasons: List[str] = []

        special_ratio = len(_SPECIAL_CHARS.findall(text)) / len(text)
        if special_ratio > 0.3:
            score += 25
            reasons.append(f"High special character ratio: {special_ratio * 100:.1f}%")

        digit_ratio = len(_DIGITS.findall(text)) / len(text)
        if digit_ratio > 0.4:
            score += 20
            reasons.append(f"High number ratio: {digit_ratio * 100:.1f}%")

        repeated = [m.group(0) for m in _REPEATED_CHARS.finditer(text)]
        if repeated:
            score += 15
            reasons.append(f"Repeated characters: {', '.join(repeated)}")

        if len(text) > 10 and text == text.upper() and text != text.lower():
            score += 10
            reasons.append("All caps text")

        return score, reasons

    @staticmethod
    def _structure(text: str) -> _Result:
        score = 0
        reasons: List[str] = []

        if len(text) < 5:
            score += 15
            reasons.append("Very short message")
        if len(text) > 500:
            score += 10
            reasons.append("Very long message")
        if " " not in text and len(text) > 20:
            score += 20
            reasons.append("No spaces in long text")

        punctuation = len(_SENTENCE_PUNCTUATION.findall(text))
        if punctuation > 5:
            score += 15
            reasons.append(f"Excessive punctuation: {punctuation} sentences")

        return score, reasons

    @staticmethod
    def _words(text: str) -> _Result:
        score = 0
        reasons: List[str] = []
        words = text.lower().split()

        spam_words = [word for word in words if any(term in word for term in SPAM_TERMS)]
        if spam_words:
            score += len(spam_words) * 8
            reasons.append(f"Spam words detected: {', '.join(spam_words)}")

        repetitive = [(word, count) for word, count in Counter(words).items() if count > 2]
        if repetitive:
            score += len(repetitive) * 5
            reasons.append(
                "Repetitive words: " + ", ".join(f"{word}({count})" for word, count in repetitive)
            )

        return score, reasons

    @staticmethod
    def _indicators(text: str) -> _Result:
        score = 0
        reasons: List[str] = []

        urls = _URLS.findall(text)
        if urls:
            score += len(urls) * 10
            reasons.append(f"Contains {len(urls)} URL(s)")

        phones = _PHONES.findall(text)
        if phones:
            score += len(phones) * 8
            reasons.append(f"Contains {len(phones)} phone number(s)")

        exclamations = text.count("!")
        if exclamations > 3:
            score += exclamations * 3
            reasons.append(f"Excessive exclamation marks: {exclamations}")

        return score, reasons

import pytest

from spamcap.application.services.rule_matcher import (
    is_spam_keyword,
    looks_like_typo,
    matches,
    normalize,
    similarity,
)
from spamcap.domain.models import SpamMode, SpamRule


def make_rule(pattern: str, mode: SpamMode = SpamMode.CONTAINS, brand=None, pattern_norm: str = "") -> SpamRule:
    """Допоміжна функція для створення тестових правил."""
    return SpamRule(id=1, pattern=pattern, pattern_norm=pattern_norm, mode=mode, brand=brand)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, ""),
        ("", ""),
        ("  Hello,   WORLD!! ", "hello world"),
        ("Café — 50% off_now", "café 50 off now"),
        ("Привіт,\tсвіт\n", "привіт світ"),
    ],
)
def test_normalize(raw, expected):
    assert normalize(raw) == expected


def test_similarity_identical_and_positional():
    assert similarity("win", "win") == 1.0
    assert similarity("abc", "abd") == pytest.approx(2 / 3)
    assert similarity("free", "fre") == pytest.approx(0.75)


def test_similarity_is_position_sensitive():
    """
    Одна вставка на початку зсуває всі символи, тому збігів немає зовсім.
    """
    assert similarity("xunlock", "unlock") == 0.0


def test_keyword_classification():
    assert is_spam_keyword("unlock") is True
    assert is_spam_keyword("unlok") is True
    assert is_spam_keyword("refund") is False
    assert is_spam_keyword("fodd") is False


def test_typo_heuristic():
    assert looks_like_typo("frst") is True
    assert looks_like_typo("win") is False
    assert looks_like_typo("strength") is False


def test_lone_mode_requires_whole_message():
    rule = make_rule("stop", mode=SpamMode.LONE)

    assert matches(rule, None, "Stop") is True
    assert matches(rule, None, "STOP!!!") is True
    assert matches(rule, None, "please stop") is False


def test_contains_uses_word_boundaries():
    rule = make_rule("win")

    assert matches(rule, None, "you win!") is True
    assert matches(rule, None, "twin") is False
    assert matches(rule, None, "my twin sister") is False


def test_typo_like_pattern_is_never_fuzzy():
    rule = make_rule("fodd")

    assert matches(rule, None, "fodd") is True
    assert matches(rule, None, "food") is False
    assert matches(rule, None, "I love food") is False


def test_spam_keyword_catches_obfuscation():
    rule = make_rule("unlock")

    assert matches(rule, None, "UNL0CK your account now") is True
    assert matches(rule, None, "unlck your prize") is True
    assert matches(rule, None, "the door is locked") is False


def test_multi_word_phrase():
    rule = make_rule("click here")

    assert matches(rule, None, "Click here to claim!") is True
    assert matches(rule, None, "click-here") is True
    assert matches(rule, None, "please clik here") is True
    assert matches(rule, None, "here we click") is False


def test_brand_scoping():
    rule = make_rule("refund", brand="Acme")

    assert matches(rule, "Acme", "refund please") is True
    assert matches(rule, "ACME!", "refund please") is True
    assert matches(rule, "Other", "refund please") is False
    assert matches(rule, None, "refund please") is False


def test_rule_without_brand_applies_everywhere():
    rule = make_rule("refund")

    assert matches(rule, "Other", "refund please") is True
    assert matches(rule, None, "refund please") is True


def test_pattern_norm_takes_precedence():
    rule = make_rule("Un-Subscribe!", pattern_norm="unsubscribe")

    assert matches(rule, None, "please unsubscribe me") is True


@pytest.mark.parametrize("text", [None, "", "   ", "!!!"])
def test_empty_text_never_matches(text):
    assert matches(make_rule("stop", mode=SpamMode.LONE), None, text) is False
    assert matches(make_rule("stop"), None, text) is False


def test_empty_pattern_never_matches():
    assert matches(make_rule("?!"), None, "anything at all") is False

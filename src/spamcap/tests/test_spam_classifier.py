from typing import List, Optional

import pytest

from spamcap.application.services.spam_classifier import SpamClassifier
from spamcap.config.settings import ThresholdSettings
from spamcap.domain.models import LearningScore, MatchSource, Message, PatternScore, SpamMode, SpamRule


class FakeAnalyzer:
    def __init__(self, score: float = 0.0, reasons: Optional[List[str]] = None, error: Optional[Exception] = None):
        self._result = PatternScore(score=score, reasons=reasons or [])
        self._error = error
        self.calls = 0

    def analyze(self, text: str) -> PatternScore:
        self.calls += 1
        if self._error:
            raise self._error
        return self._result


class CountingScorer:
    """Заглушка скорера, що рахує виклики."""

    def __init__(self, score: float = 0.0, error: Optional[Exception] = None):
        self._score = score
        self._error = error
        self.calls = []

    async def score(self, text: str, brand: Optional[str] = None) -> LearningScore:
        self.calls.append((text, brand))
        if self._error:
            raise self._error
        return LearningScore(score=self._score)


RULES = [
    SpamRule(id=1, pattern="unsubscribe"),
    SpamRule(id=2, pattern="stop", mode=SpamMode.LONE),
    SpamRule(id=3, pattern="refund", brand="Acme"),
    SpamRule(id=4, pattern="please", enabled=False),
]


def make_classifier(analyzer=None, scorer=None) -> SpamClassifier:
    return SpamClassifier(
        analyzer=analyzer or FakeAnalyzer(),
        scorer=scorer or CountingScorer(),
        thresholds=ThresholdSettings(),
    )


@pytest.mark.asyncio
async def test_phrase_hit_skips_learning_scorer():
    scorer = CountingScorer(score=99)
    classifier = make_classifier(scorer=scorer)

    result = await classifier.classify(Message(id=1, text="please unsubscribe me"), RULES)

    assert result.hits == ["unsubscribe"]
    assert result.sources == [MatchSource.PHRASE]
    assert scorer.calls == []


@pytest.mark.asyncio
async def test_learning_scorer_consulted_when_nothing_else_matched():
    scorer = CountingScorer(score=64.2)
    classifier = make_classifier(scorer=scorer)

    result = await classifier.classify(Message(id=2, text="refund please", brand="Other"), RULES)

    assert result.hits == ["Learning: 64%"]
    assert result.sources == [MatchSource.LEARNING]
    assert scorer.calls == [("refund please", "Other")]


@pytest.mark.asyncio
async def test_low_scores_mean_not_spam():
    classifier = make_classifier(analyzer=FakeAnalyzer(score=49.9), scorer=CountingScorer(score=59.9))

    result = await classifier.classify(Message(id=3, text="hello there"), RULES)

    assert result.hits == []
    assert result.is_spam is False


@pytest.mark.asyncio
async def test_pattern_hit_uses_top_two_reasons_and_skips_learning():
    analyzer = FakeAnalyzer(score=72.3, reasons=["Very short message", "All caps text", "Spam words detected: win"])
    scorer = CountingScorer(score=99)
    classifier = make_classifier(analyzer=analyzer, scorer=scorer)

    result = await classifier.classify(Message(id=4, text="WIN!!"), RULES)

    assert result.hits == ["Pattern: 72% (Very short message, All caps text)"]
    assert result.sources == [MatchSource.PATTERN]
    assert scorer.calls == []


@pytest.mark.asyncio
async def test_phrase_and_pattern_hits_are_merged():
    analyzer = FakeAnalyzer(score=55, reasons=["Very short message"])
    classifier = make_classifier(analyzer=analyzer)

    result = await classifier.classify(Message(id=5, text="STOP"), RULES)

    assert result.hits == ["stop", "Pattern: 55% (Very short message)"]
    assert result.sources == [MatchSource.PHRASE, MatchSource.PATTERN]


@pytest.mark.asyncio
async def test_collaborator_failures_abstain():
    analyzer = FakeAnalyzer(error=ValueError("boom"))
    scorer = CountingScorer(error=RuntimeError("db down"))
    classifier = make_classifier(analyzer=analyzer, scorer=scorer)

    result = await classifier.classify(Message(id=6, text="hello there"), RULES)

    assert result.hits == []
    assert analyzer.calls == 1
    assert len(scorer.calls) == 1


@pytest.mark.asyncio
async def test_empty_text_calls_no_collaborators():
    analyzer = FakeAnalyzer(score=100)
    scorer = CountingScorer(score=100)
    classifier = make_classifier(analyzer=analyzer, scorer=scorer)

    result = await classifier.classify(Message(id=7, text=None), RULES)

    assert result.hits == []
    assert analyzer.calls == 0
    assert scorer.calls == []


@pytest.mark.asyncio
async def test_disabled_rules_are_ignored():
    classifier = make_classifier()

    result = await classifier.classify(Message(id=8, text="please"), RULES)

    assert result.hits == []

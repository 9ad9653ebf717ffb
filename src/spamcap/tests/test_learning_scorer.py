import pytest

from spamcap.application.services.learning_scorer import LearningScorer, recommend
from spamcap.application.services.pattern_analyzer import PatternAnalyzer
from spamcap.database.models import SpamLearning
from spamcap.database.storage import DatabaseStorage
from spamcap.domain.models import Recommendation

TEXT = "Claim your reward today, reply YES to continue"


@pytest.fixture
def scorer(db):
    return LearningScorer(storage=DatabaseStorage(), analyzer=PatternAnalyzer())


@pytest.mark.asyncio
async def test_without_history_returns_base_score(scorer):
    result = await scorer.score(TEXT)

    assert result.score == PatternAnalyzer().analyze(TEXT).score
    assert result.historical_confidence == 0.0


@pytest.mark.asyncio
async def test_spam_history_raises_score(scorer):
    for suffix in ("1", "2", "3"):
        await scorer.learn(f"{TEXT} {suffix}", is_spam=True)

    result = await scorer.score(TEXT)
    base = PatternAnalyzer().analyze(TEXT).score

    assert result.historical_confidence == 100.0
    assert result.score == pytest.approx(min(100.0, base + 15))


@pytest.mark.asyncio
async def test_brand_history_lowers_score(scorer):
    await scorer.learn("totally unrelated text", is_spam=False, brand="Acme")

    result = await scorer.score("URGENT offer!!!!", brand="Acme")
    base = PatternAnalyzer().analyze("URGENT offer!!!!").score

    assert result.historical_confidence == 0.0
    assert result.score == pytest.approx(max(0.0, base - 15))


@pytest.mark.asyncio
async def test_learn_skips_duplicates(scorer):
    assert await scorer.learn(TEXT, is_spam=True, brand="Acme", source="archive") is True
    assert await scorer.learn(TEXT, is_spam=True, brand="Acme", source="archive") is False
    assert await scorer.learn(TEXT, is_spam=False, brand="Acme") is True

    assert await SpamLearning.all().count() == 2


@pytest.mark.asyncio
async def test_learn_ignores_blank_text(scorer):
    assert await scorer.learn("   ", is_spam=True) is False


class BrokenStorage:
    async def find_learning_examples(self, snippet, brand, limit):
        raise RuntimeError("connection lost")

    async def save_learning_example(self, **kwargs):
        raise RuntimeError("connection lost")


@pytest.mark.asyncio
async def test_storage_failures_fall_back_to_base_score():
    scorer = LearningScorer(storage=BrokenStorage(), analyzer=PatternAnalyzer())

    result = await scorer.score(TEXT)

    assert result.score == PatternAnalyzer().analyze(TEXT).score
    assert await scorer.learn(TEXT, is_spam=True) is False


@pytest.mark.parametrize(
    "score, expected",
    [
        (70.1, Recommendation.LIKELY_SPAM),
        (70, Recommendation.SUSPICIOUS),
        (40.5, Recommendation.SUSPICIOUS),
        (40, Recommendation.LIKELY_LEGITIMATE),
        (0, Recommendation.LIKELY_LEGITIMATE),
    ],
)
def test_recommendation_thresholds(score, expected):
    assert recommend(score) is expected


@pytest.mark.asyncio
async def test_analyze_reports_reasons_and_recommendation(scorer):
    text = "CONGRATULATIONS!!!! You WIN a FREE prize, claim now at http://spam.example 555-123-4567"

    analysis = await scorer.analyze(text)

    assert analysis.score == 77
    assert analysis.reasons[0] == "Repeated characters: !!!!"
    assert analysis.historical_confidence == 0.0
    assert analysis.recommendation is Recommendation.LIKELY_SPAM


@pytest.mark.asyncio
async def test_analyze_shows_historical_confidence(scorer):
    await scorer.learn(f"{TEXT} 1", is_spam=True)
    await scorer.learn(f"{TEXT} 2", is_spam=False)

    analysis = await scorer.analyze(TEXT)

    assert analysis.historical_confidence == 50.0
    assert analysis.recommendation is Recommendation.LIKELY_LEGITIMATE
    assert analysis.model_dump(by_alias=True)["historicalConfidence"] == 50.0

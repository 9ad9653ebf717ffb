# src/spamcap/application/services/learning_scorer.py
from typing import Optional

import structlog

from spamcap.domain.models import LearningScore, Recommendation, SpamAnalysis
from spamcap.domain.ports import LearningStore, PatternAnalyzerPort

logger = structlog.get_logger(__name__)

SNIPPET_CHARS = 50
HISTORY_LIMIT = 10
HISTORY_WEIGHT = 0.3

LIKELY_SPAM_ABOVE = 70
SUSPICIOUS_ABOVE = 40


def recommend(score: float) -> Recommendation:
    if score > LIKELY_SPAM_ABOVE:
        return Recommendation.LIKELY_SPAM
    if score > SUSPICIOUS_ABOVE:
        return Recommendation.SUSPICIOUS
    return Recommendation.LIKELY_LEGITIMATE


class LearningScorer:
    """
    Скорер, що вчиться на ручних рішеннях рев'юерів.
    Базова оцінка евристик зсувається в бік того, як раніше вирішували
    подібні повідомлення (або повідомлення того ж бренду).
    """

    def __init__(self, storage: LearningStore, analyzer: PatternAnalyzerPort):
        self._storage = storage
        self._analyzer = analyzer

    async def score(self, text: str, brand: Optional[str] = None) -> LearningScore:
        base = self._analyzer.analyze(text)
        log = logger.bind(brand=brand)

        try:
            history = await self._storage.find_learning_examples(text[:SNIPPET_CHARS], brand, HISTORY_LIMIT)
        except Exception:
            log.exception("Failed to load learning history, using base score.")
            return LearningScore(score=base.score, reasons=base.reasons)

        if not history:
            return LearningScore(score=base.score, reasons=base.reasons)

        spam_count = sum(1 for example in history if example.is_spam)
        historical_confidence = spam_count / len(history) * 100
        adjusted = base.score + (historical_confidence - 50) * HISTORY_WEIGHT
        log.debug(
            "Learning score adjusted by history",
            base=base.score,
            history=len(history),
            historical_confidence=round(historical_confidence, 1),
        )
        return LearningScore(
            score=max(0.0, min(100.0, adjusted)),
            historical_confidence=historical_confidence,
            reasons=base.reasons,
        )

    async def analyze(self, text: str, brand: Optional[str] = None) -> SpamAnalysis:
        """Оцінка одного тексту для людини: бали, причини, історія та висновок."""
        result = await self.score(text, brand)
        return SpamAnalysis(
            score=result.score,
            reasons=result.reasons,
            historical_confidence=result.historical_confidence,
            recommendation=recommend(result.score),
        )

    async def learn(
        self, text: str, is_spam: bool, brand: Optional[str] = None, source: Optional[str] = None
    ) -> bool:
        """
        Запам'ятовує рішення рев'юера. Це не критична функція,
        тому помилки лише логуються.
        """
        if not text or not text.strip():
            return False
        log = logger.bind(brand=brand, is_spam=is_spam, source=source)
        try:
            analysis = self._analyzer.analyze(text)
            saved = await self._storage.save_learning_example(
                text=text,
                brand=brand,
                is_spam=is_spam,
                score=analysis.score,
                reasons=analysis.reasons,
                source=source,
            )
        except Exception:
            log.exception("Failed to learn from spam decision.")
            return False

        if not saved:
            log.debug("Skipping duplicate learning entry.")
        return saved

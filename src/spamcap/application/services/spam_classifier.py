# src/spamcap/application/services/spam_classifier.py
from __future__ import annotations

from typing import Iterable, List

import structlog

from spamcap.application.services.rule_matcher import matches
from spamcap.config.settings import ThresholdSettings
from spamcap.domain.models import Classification, MatchSource, Message, SpamRule
from spamcap.domain.ports import LearningScorerPort, PatternAnalyzerPort

logger = structlog.get_logger(__name__)


class SpamClassifier:
    """
    Об'єднує фразові правила, евристики та скорер, що навчається,
    в один вердикт для повідомлення.

    Правила й евристики дешеві, тому виконуються завжди. Скорер
    звертається до історії в БД і викликається лише тоді, коли
    дешевші перевірки нічого не знайшли.
    """

    def __init__(
        self,
        analyzer: PatternAnalyzerPort,
        scorer: LearningScorerPort,
        thresholds: ThresholdSettings,
    ):
        self._analyzer = analyzer
        self._scorer = scorer
        self._thresholds = thresholds

    async def classify(self, message: Message, rules: Iterable[SpamRule]) -> Classification:
        log = logger.bind(msg_id=message.id)
        hits: List[str] = []
        sources: List[MatchSource] = []

        # Крок 1: фразові правила
        for rule in rules:
            if rule.enabled and matches(rule, message.brand, message.text):
                hits.append(rule.pattern)
        if hits:
            sources.append(MatchSource.PHRASE)

        if not message.text:
            return Classification(hits=hits, sources=sources)

        # Крок 2: евристичний аналіз
        try:
            pattern = self._analyzer.analyze(message.text)
            if pattern.score >= self._thresholds.pattern:
                reasons = ", ".join(pattern.reasons[:2])
                hits.append(f"Pattern: {round(pattern.score)}% ({reasons})")
                sources.append(MatchSource.PATTERN)
        except Exception as e:
            log.error("Pattern analysis failed, skipping signal.", error=str(e), exc_info=True)

        # Крок 3: скорер, що навчається, лише коли нічого не знайдено
        if not hits:
            try:
                learning = await self._scorer.score(message.text, message.brand)
                if learning.score >= self._thresholds.learning:
                    hits.append(f"Learning: {round(learning.score)}%")
                    sources.append(MatchSource.LEARNING)
            except Exception as e:
                log.error("Learning scorer failed, skipping signal.", error=str(e), exc_info=True)

        if hits:
            log.debug("Message classified as spam", hits=hits)
        return Classification(hits=hits, sources=sources)

# src/spamcap/application/run_stats.py
from collections import defaultdict
from typing import Dict

from spamcap.domain.models import CaptureReport, Classification, MatchCounts, MatchSource


class CaptureStats:
    """
    Накопичує лічильники протягом одного запуску захоплення.
    Передається явно через цикл обробки під-пакетів.
    """

    def __init__(self):
        self.processed: int = 0
        self.validation_blocked: int = 0
        # {source: кількість повідомлень, де це джерело дало сигнал}
        self.matched_by: Dict[MatchSource, int] = defaultdict(int)

    def track(self, classification: Classification) -> None:
        """Оновлює лічильники на основі одного класифікованого повідомлення."""
        self.processed += 1
        for source in classification.sources:
            self.matched_by[source] += 1

    def to_report(self, updated_count: int, total_in_queue: int) -> CaptureReport:
        return CaptureReport(
            updated_count=updated_count,
            total_in_queue=total_in_queue,
            remaining_in_queue=max(0, total_in_queue - updated_count),
            processed=self.processed,
            matched_by=MatchCounts(
                phrase=self.matched_by[MatchSource.PHRASE],
                pattern=self.matched_by[MatchSource.PATTERN],
                learning=self.matched_by[MatchSource.LEARNING],
            ),
            validation_blocked_count=self.validation_blocked,
        )

# src/spamcap/application/services/capture_service.py
import sys
import uuid
from typing import Dict, List, Sequence, Set

import structlog
from tqdm import tqdm

from spamcap.application.run_stats import CaptureStats
from spamcap.application.services.spam_classifier import SpamClassifier
from spamcap.application.utils import gather_bounded
from spamcap.config.settings import CaptureSettings
from spamcap.domain.errors import CaptureError
from spamcap.domain.models import (
    CaptureCandidate,
    CaptureReport,
    Message,
    PreviewMatch,
    PreviewReport,
    RawStatus,
    SpamRule,
)
from spamcap.domain.ports import MessageStore, RuleStore, TransitionValidatorPort

logger = structlog.get_logger(__name__)

TRANSITION_CONTEXT = "spam capture"


class SpamCaptureService:
    """
    Виконує один запуск захоплення спаму: класифікує вікно READY-повідомлень
    і переводить знайдений спам у SPAM_REVIEW.

    Конкурентні процеси (інші запуски, конвеєр просування) можуть змінити
    статус тих самих рядків у будь-який момент. Захист лише через умовні
    оновлення з перевіркою попереднього статусу, без блокувань.
    """

    def __init__(
        self,
        store: MessageStore,
        rules: RuleStore,
        classifier: SpamClassifier,
        validator: TransitionValidatorPort,
        config: CaptureSettings,
    ):
        self._store = store
        self._rules = rules
        self._classifier = classifier
        self._validator = validator
        self._config = config

    async def run(self) -> CaptureReport:
        log = logger.bind(run_id=uuid.uuid4().hex[:8])
        log.info(
            "Spam capture started.",
            window_size=self._config.window_size,
            batch_size=self._config.batch_size,
        )

        try:
            # ЕТАП 1: правила завантажуються один раз на весь запуск
            rules = await self._rules.find_enabled_rules()

            # ЕТАП 2: обсяг роботи
            total_in_queue = await self._store.count_by_status(RawStatus.READY)
            messages = await self._store.find_ready_ordered_by_created_desc(self._config.window_size)
            log.info(
                "Capture scope determined",
                rules=len(rules),
                total_in_queue=total_in_queue,
                fetched=len(messages),
            )

            # ЕТАП 3: класифікація під-пакетами
            stats = CaptureStats()
            candidates = await self._classify_messages(messages, rules, stats, log)
        except Exception as e:
            log.exception("Spam capture aborted.", error_type=type(e).__name__)
            raise CaptureError("Spam capture failed", details=f"{type(e).__name__}: {e}") from e

        # ЕТАП 4-6: умовне оновлення статусів та збереження причин
        updated_count = await self._apply(candidates, log)

        report = stats.to_report(updated_count=updated_count, total_in_queue=total_in_queue)
        log.info(
            "Spam capture finished.",
            updated=report.updated_count,
            remaining=report.remaining_in_queue,
            processed=report.processed,
            blocked=report.validation_blocked_count,
        )
        return report

    async def preview(self) -> PreviewReport:
        """
        Пробний запуск: та сама класифікація вікна READY-повідомлень,
        але без оновлення статусів і причин.
        """
        log = logger.bind(run_id=uuid.uuid4().hex[:8], dry_run=True)
        log.info("Spam capture preview started.", window_size=self._config.window_size)

        try:
            rules = await self._rules.find_enabled_rules()
            messages = await self._store.find_ready_ordered_by_created_desc(self._config.window_size)
            candidates = await self._classify_messages(messages, rules, CaptureStats(), log)
        except Exception as e:
            log.exception("Spam capture preview aborted.", error_type=type(e).__name__)
            raise CaptureError("Spam capture preview failed", details=f"{type(e).__name__}: {e}") from e

        messages_by_id = {message.id: message for message in messages}
        matches = [
            PreviewMatch(
                id=candidate.id,
                brand=messages_by_id[candidate.id].brand,
                text=messages_by_id[candidate.id].text,
                matched_patterns=candidate.hits,
            )
            for candidate in candidates
        ]
        log.info("Spam capture preview finished.", examined=len(messages), matched=len(matches))
        return PreviewReport(
            total_pending=len(messages),
            rules=[rule.pattern for rule in rules],
            matched_count=len(matches),
            matches=matches,
        )

    async def _classify_messages(
        self,
        messages: List[Message],
        rules: List[SpamRule],
        stats: CaptureStats,
        log: structlog.stdlib.BoundLogger,
    ) -> List[CaptureCandidate]:
        candidates: List[CaptureCandidate] = []
        batch_size = self._config.batch_size
        starts = range(0, len(messages), batch_size)

        progress_bar = tqdm(
            starts,
            total=len(starts),
            desc="Classifying",
            file=sys.stderr,
            disable=not self._config.show_progress,
        )
        for batch_number, start in enumerate(progress_bar, start=1):
            batch = messages[start:start + batch_size]
            found = 0
            for message in batch:
                classification = await self._classifier.classify(message, rules)
                stats.track(classification)
                if not classification.is_spam:
                    continue
                found += 1

                # Перевіряємо перехід відносно статусу, який ми прочитали
                check = self._validator.validate(message.status, RawStatus.SPAM_REVIEW, TRANSITION_CONTEXT)
                if not check.valid:
                    log.warning("Skipping message, transition blocked.", msg_id=message.id, error=check.error)
                    stats.validation_blocked += 1
                    continue
                candidates.append(CaptureCandidate(id=message.id, hits=classification.hits))

            log.debug("Sub-batch classified", batch=batch_number, size=len(batch), found=found)

        log.info("Classification complete", candidates=len(candidates), blocked=stats.validation_blocked)
        return candidates

    async def _apply(self, candidates: List[CaptureCandidate], log: structlog.stdlib.BoundLogger) -> int:
        if not candidates:
            return 0

        ids = [candidate.id for candidate in candidates]
        try:
            updated_count = await self._store.conditional_bulk_update_status(
                ids, RawStatus.READY, RawStatus.SPAM_REVIEW
            )
        except Exception:
            log.exception("Bulk status update failed, falling back to per-row updates.", candidates=len(ids))
            flipped = await self._update_one_by_one(ids, log)
            confirmed = [candidate for candidate in candidates if candidate.id in flipped]
            await self._attach_provenance(confirmed, log)
            return len(flipped)

        if updated_count < len(ids):
            # Очікувана ситуація: інший процес змінив статус між читанням і записом
            log.warning(
                "Race detected: some candidates left READY before the update.",
                expected=len(ids),
                updated=updated_count,
                sample_ids=ids[:5],
            )

        if updated_count > 0:
            await self._attach_provenance(candidates, log)
        return updated_count

    async def _update_one_by_one(self, ids: Sequence[int], log: structlog.stdlib.BoundLogger) -> Set[int]:
        async def _update(message_id: int) -> bool:
            return await self._store.conditional_update_status(message_id, RawStatus.READY, RawStatus.SPAM_REVIEW)

        results = await gather_bounded(ids, _update, self._config.write_concurrency)

        flipped: Set[int] = set()
        for message_id, result in zip(ids, results):
            if isinstance(result, BaseException):
                log.error("Per-row status update failed", msg_id=message_id, error=str(result))
            elif result:
                flipped.add(message_id)
        log.info("Per-row fallback finished", attempted=len(ids), updated=len(flipped))
        return flipped

    async def _attach_provenance(
        self, candidates: List[CaptureCandidate], log: structlog.stdlib.BoundLogger
    ) -> None:
        """
        Другий, незалежний крок: записує причини лише тим рядкам, які зараз
        у SPAM_REVIEW. Помилки тут не впливають на кількість оновлених.
        """
        hits_by_id: Dict[int, List[str]] = {candidate.id: candidate.hits for candidate in candidates}
        ids = list(hits_by_id)

        async def _write(message_id: int) -> bool:
            return await self._store.conditional_update_provenance(
                message_id, RawStatus.SPAM_REVIEW, hits_by_id[message_id]
            )

        results = await gather_bounded(ids, _write, self._config.write_concurrency)

        written = 0
        for message_id, result in zip(ids, results):
            if isinstance(result, BaseException):
                log.error("Failed to save spam provenance", msg_id=message_id, error=str(result))
            elif result:
                written += 1
        log.debug("Provenance saved", written=written, attempted=len(ids))

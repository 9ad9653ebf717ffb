# src/spamcap/application/services/review_service.py
from typing import List, Optional, Sequence

import structlog

from spamcap.application.services.learning_scorer import LearningScorer
from spamcap.domain.models import QueueCounts, RawStatus
from spamcap.domain.ports import MessageStore, TransitionValidatorPort

logger = structlog.get_logger(__name__)


class SpamReviewService:
    """
    Ручні рішення рев'юера над чергою SPAM_REVIEW.
    Кожне рішення передається скореру, щоб наступні запуски його враховували.
    """

    def __init__(self, store: MessageStore, validator: TransitionValidatorPort, scorer: LearningScorer):
        self._store = store
        self._validator = validator
        self._scorer = scorer

    async def counts(self) -> QueueCounts:
        return QueueCounts(
            ready=await self._store.count_by_status(RawStatus.READY),
            spam_review=await self._store.count_by_status(RawStatus.SPAM_REVIEW),
        )

    async def restore(self, ids: Sequence[int], learn: bool = True) -> int:
        """
        Повертає помилково позначені повідомлення назад у READY
        і очищає причини, з яких їх було позначено.
        """
        return await self._decide(
            ids, RawStatus.READY, is_spam=False, source="restore", learn=learn, provenance=[]
        )

    async def archive(self, ids: Sequence[int], learn: bool = True) -> int:
        """Підтверджує спам і переносить повідомлення в архів."""
        return await self._decide(ids, RawStatus.SPAM_ARCHIVED, is_spam=True, source="archive", learn=learn)

    async def _decide(
        self,
        ids: Sequence[int],
        target: RawStatus,
        is_spam: bool,
        source: Optional[str],
        learn: bool,
        provenance: Optional[List[str]] = None,
    ) -> int:
        log = logger.bind(action=source, target=target.value)
        messages = await self._store.find_by_ids(ids)
        found_ids = {message.id for message in messages}
        missing = [message_id for message_id in ids if message_id not in found_ids]
        if missing:
            log.debug("Some ids were not found, skipping.", missing=missing)

        moved = 0
        for message in messages:
            row_log = log.bind(msg_id=message.id)
            if message.status != RawStatus.SPAM_REVIEW:
                row_log.debug("Message is not in review queue, skipping.", status=message.status.value)
                continue

            check = self._validator.validate(message.status, target, f"spam review {source}")
            if not check.valid:
                row_log.warning("Skipping message, transition blocked.", error=check.error)
                continue

            if not await self._store.conditional_update_status(
                message.id, RawStatus.SPAM_REVIEW, target, provenance=provenance
            ):
                row_log.info("Message changed status concurrently, skipping.")
                continue

            moved += 1
            if learn and message.text:
                await self._scorer.learn(message.text, is_spam=is_spam, brand=message.brand, source=source)

        log.info("Review decision applied.", requested=len(ids), moved=moved)
        return moved

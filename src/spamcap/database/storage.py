# database/storage.py

from typing import List, Optional, Sequence

from tortoise.expressions import Q

from spamcap.domain.models import (
    LearningExample,
    Message,
    RawStatus,
    SpamMode,
    SpamRule as DomainSpamRule,
)
from .models import RawMessage, SpamLearning, SpamRule

LEARNING_TEXT_LIMIT = 1000


def _to_domain_message(row: RawMessage) -> Message:
    matches = row.preview_matches
    if isinstance(matches, str):
        matches = [matches] if matches.strip() else []
    return Message(
        id=row.id,
        brand=row.brand,
        text=row.text,
        status=RawStatus(row.status),
        preview_matches=list(matches or []),
        created_at=row.created_at,
    )


def _to_domain_rule(row: SpamRule) -> DomainSpamRule:
    return DomainSpamRule(
        id=row.id,
        pattern=row.pattern,
        pattern_norm=row.pattern_norm or "",
        mode=SpamMode(row.mode),
        brand=row.brand,
        enabled=row.enabled,
    )


class DatabaseStorage:
    """
    Інкапсулює всю логіку взаємодії з базою даних.
    Жоден метод не перезаписує статус "наосліп": кожне оновлення
    містить умову на очікуваний попередній статус.
    """

    # --- Повідомлення ---

    async def count_by_status(self, status: RawStatus) -> int:
        return await RawMessage.filter(status=status).count()

    async def find_ready_ordered_by_created_desc(self, limit: int) -> List[Message]:
        rows = await RawMessage.filter(status=RawStatus.READY).order_by("-created_at", "-id").limit(limit)
        return [_to_domain_message(row) for row in rows]

    async def find_by_ids(self, ids: Sequence[int]) -> List[Message]:
        if not ids:
            return []
        rows = await RawMessage.filter(id__in=list(ids))
        return [_to_domain_message(row) for row in rows]

    async def conditional_bulk_update_status(
        self, ids: Sequence[int], from_status: RawStatus, to_status: RawStatus
    ) -> int:
        """
        Один запит UPDATE ... WHERE id IN (...) AND status = from_status.
        Повертає кількість реально змінених рядків.
        """
        if not ids:
            return 0
        return await RawMessage.filter(id__in=list(ids), status=from_status).update(status=to_status)

    async def conditional_update_status(
        self,
        message_id: int,
        from_status: RawStatus,
        to_status: RawStatus,
        provenance: Optional[List[str]] = None,
    ) -> bool:
        """
        Якщо передано `provenance`, причини перезаписуються тим самим запитом,
        що й статус.
        """
        values = {"status": to_status}
        if provenance is not None:
            values["preview_matches"] = provenance
        updated = await RawMessage.filter(id=message_id, status=from_status).update(**values)
        return updated > 0

    async def conditional_update_provenance(
        self, message_id: int, expected_status: RawStatus, provenance: List[str]
    ) -> bool:
        updated = await RawMessage.filter(id=message_id, status=expected_status).update(preview_matches=provenance)
        return updated > 0

    # --- Правила ---

    async def find_enabled_rules(self) -> List[DomainSpamRule]:
        rows = await SpamRule.filter(enabled=True).order_by("id")
        return [_to_domain_rule(row) for row in rows]

    async def create_rule(
        self, pattern: str, pattern_norm: str, mode: SpamMode, brand: Optional[str] = None
    ) -> DomainSpamRule:
        row = await SpamRule.create(pattern=pattern, pattern_norm=pattern_norm, mode=mode, brand=brand)
        return _to_domain_rule(row)

    # --- Навчання ---

    async def find_learning_examples(self, snippet: str, brand: Optional[str], limit: int) -> List[LearningExample]:
        """
        Шукає останні рішення з подібним текстом або, якщо бренд відомий,
        з тим самим брендом.
        """
        condition = Q(text__contains=snippet)
        if brand:
            condition |= Q(brand=brand)
        rows = await SpamLearning.filter(condition).order_by("-created_at", "-id").limit(limit)
        return [LearningExample(text=row.text, brand=row.brand, is_spam=row.is_spam) for row in rows]

    async def save_learning_example(
        self,
        text: str,
        brand: Optional[str],
        is_spam: bool,
        score: float,
        reasons: List[str],
        source: Optional[str],
    ) -> bool:
        """
        Зберігає рішення. Повертає False, якщо такий самий запис уже є.
        """
        clipped = text[:LEARNING_TEXT_LIMIT]
        brand_filter = {"brand": brand} if brand is not None else {"brand__isnull": True}
        if await SpamLearning.filter(text=clipped, is_spam=is_spam, **brand_filter).exists():
            return False
        await SpamLearning.create(
            text=clipped,
            brand=brand,
            is_spam=is_spam,
            score=score,
            reasons=reasons,
            source=source,
        )
        return True

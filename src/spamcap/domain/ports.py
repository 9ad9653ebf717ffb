from typing import List, Optional, Protocol, Sequence

from .models import (
    LearningExample,
    LearningScore,
    Message,
    PatternScore,
    RawStatus,
    SpamRule,
    TransitionCheck,
)

# --------------------------------------------------------------------------
# Порти (контракти), які споживає конвеєр захоплення спаму.
# Будь-яке сховище чи скорер, що реалізує ці методи, підходить без наслідування.
# --------------------------------------------------------------------------


class MessageStore(Protocol):
    """Операції над повідомленнями. Усі записи умовні (compare-and-swap)."""

    async def count_by_status(self, status: RawStatus) -> int:
        ...

    async def find_ready_ordered_by_created_desc(self, limit: int) -> List[Message]:
        ...

    async def find_by_ids(self, ids: Sequence[int]) -> List[Message]:
        ...

    async def conditional_bulk_update_status(
        self, ids: Sequence[int], from_status: RawStatus, to_status: RawStatus
    ) -> int:
        """Повертає кількість рядків, які реально змінилися."""
        ...

    async def conditional_update_status(
        self,
        message_id: int,
        from_status: RawStatus,
        to_status: RawStatus,
        provenance: Optional[List[str]] = None,
    ) -> bool:
        ...

    async def conditional_update_provenance(
        self, message_id: int, expected_status: RawStatus, provenance: List[str]
    ) -> bool:
        ...


class RuleStore(Protocol):
    async def find_enabled_rules(self) -> List[SpamRule]:
        ...


class LearningStore(Protocol):
    async def find_learning_examples(self, snippet: str, brand: Optional[str], limit: int) -> List[LearningExample]:
        ...

    async def save_learning_example(
        self, text: str, brand: Optional[str], is_spam: bool, score: float, reasons: List[str], source: Optional[str]
    ) -> bool:
        ...


class PatternAnalyzerPort(Protocol):
    def analyze(self, text: str) -> PatternScore:
        ...


class LearningScorerPort(Protocol):
    async def score(self, text: str, brand: Optional[str] = None) -> LearningScore:
        ...


class TransitionValidatorPort(Protocol):
    def validate(self, current: RawStatus, target: RawStatus, context: Optional[str] = None) -> TransitionCheck:
        ...

# src/spamcap/application/services/status_validator.py
from typing import Dict, FrozenSet, Optional

import structlog

from spamcap.domain.models import RawStatus, TransitionCheck

logger = structlog.get_logger(__name__)

# PROMOTED та SPAM_ARCHIVED термінальні
ALLOWED_TRANSITIONS: Dict[RawStatus, FrozenSet[RawStatus]] = {
    RawStatus.READY: frozenset({RawStatus.SPAM_REVIEW, RawStatus.PROMOTED}),
    RawStatus.PROMOTED: frozenset(),
    RawStatus.SPAM_REVIEW: frozenset({RawStatus.READY, RawStatus.SPAM_ARCHIVED}),
    RawStatus.SPAM_ARCHIVED: frozenset(),
}


class StatusTransitionValidator:
    """
    Перевіряє переходи за глобальним графом статусів.
    Якщо валідацію вимкнено в налаштуваннях, дозволяє все.
    """

    def __init__(self, enabled: bool = True):
        self._enabled = enabled

    def can_transition(self, current: RawStatus, target: RawStatus) -> bool:
        if not self._enabled:
            return True
        return target in ALLOWED_TRANSITIONS.get(current, frozenset())

    def validate(self, current: RawStatus, target: RawStatus, context: Optional[str] = None) -> TransitionCheck:
        if not self._enabled or current == target:
            return TransitionCheck(valid=True)

        if not self.can_transition(current, target):
            error = f"Invalid status transition: {current.value} → {target.value}"
            if context:
                error += f" ({context})"
            logger.error(error, current=current.value, target=target.value)
            return TransitionCheck(valid=False, error=error)

        return TransitionCheck(valid=True)

import enum
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RawStatus(str, enum.Enum):
    """Життєвий цикл вхідного повідомлення."""

    READY = "READY"
    PROMOTED = "PROMOTED"
    SPAM_REVIEW = "SPAM_REVIEW"
    SPAM_ARCHIVED = "SPAM_ARCHIVED"


class SpamMode(str, enum.Enum):
    """Режим зіставлення правила: фраза всередині тексту чи весь текст."""

    CONTAINS = "CONTAINS"
    LONE = "LONE"


class Recommendation(str, enum.Enum):
    """Людиночитний висновок для одиночного аналізу тексту."""

    LIKELY_SPAM = "likely_spam"
    SUSPICIOUS = "suspicious"
    LIKELY_LEGITIMATE = "likely_legitimate"


class MatchSource(str, enum.Enum):
    """Джерело сигналу, що позначило повідомлення як спам."""

    PHRASE = "phrase"
    PATTERN = "pattern"
    LEARNING = "learning"


class Message(BaseModel):
    """
    Вхідне повідомлення, що очікує класифікації.
    Чиста структура даних, незалежна від ORM.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    brand: Optional[str] = None
    text: Optional[str] = None
    status: RawStatus = RawStatus.READY
    preview_matches: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class SpamRule(BaseModel):
    """Фразове правило, яке підтримують користувачі."""

    model_config = ConfigDict(frozen=True)

    id: int
    pattern: str
    pattern_norm: str = ""
    mode: SpamMode = SpamMode.CONTAINS
    brand: Optional[str] = None
    enabled: bool = True


class PatternScore(BaseModel):
    """Результат евристичного аналізу тексту."""

    score: float = 0.0
    reasons: List[str] = Field(default_factory=list)


class LearningScore(BaseModel):
    """Оцінка з урахуванням історії ручних рішень."""

    score: float = 0.0
    historical_confidence: float = 0.0
    reasons: List[str] = Field(default_factory=list)


class LearningExample(BaseModel):
    """Одне збережене рішення рев'юера (спам чи ні)."""

    text: str
    brand: Optional[str] = None
    is_spam: bool


class TransitionCheck(BaseModel):
    valid: bool
    error: Optional[str] = None


class Classification(BaseModel):
    """
    Вердикт для одного повідомлення.
    Порожній `hits` означає "не спам".
    """

    hits: List[str] = Field(default_factory=list)
    sources: List[MatchSource] = Field(default_factory=list)

    @property
    def is_spam(self) -> bool:
        return bool(self.hits)


class CaptureCandidate(BaseModel):
    id: int
    hits: List[str]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MatchCounts(_CamelModel):
    phrase: int = 0
    pattern: int = 0
    learning: int = 0


class CaptureReport(_CamelModel):
    """
    Підсумок одного запуску захоплення спаму.
    Серіалізується в camelCase для зовнішніх споживачів.
    """

    updated_count: int
    total_in_queue: int
    remaining_in_queue: int
    processed: int
    matched_by: MatchCounts
    validation_blocked_count: int

    def to_payload(self) -> Dict[str, object]:
        return {"success": True, **self.model_dump(by_alias=True)}


class QueueCounts(_CamelModel):
    ready: int
    spam_review: int


class SpamAnalysis(_CamelModel):
    score: float
    reasons: List[str] = Field(default_factory=list)
    historical_confidence: float = 0.0
    recommendation: Recommendation


class PreviewMatch(_CamelModel):
    id: int
    brand: Optional[str] = None
    text: Optional[str] = None
    matched_patterns: List[str]


class PreviewReport(_CamelModel):
    """
    Результат пробного запуску: що було б позначено як спам,
    без жодних записів у БД.
    """

    total_pending: int
    rules: List[str]
    matched_count: int
    matches: List[PreviewMatch] = Field(default_factory=list)

    def to_payload(self) -> Dict[str, object]:
        return {"success": True, **self.model_dump(by_alias=True)}

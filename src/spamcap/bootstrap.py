# src/spamcap/bootstrap.py
import structlog

from spamcap.application.services.capture_service import SpamCaptureService
from spamcap.application.services.learning_scorer import LearningScorer
from spamcap.application.services.pattern_analyzer import PatternAnalyzer
from spamcap.application.services.review_service import SpamReviewService
from spamcap.application.services.spam_classifier import SpamClassifier
from spamcap.application.services.status_validator import StatusTransitionValidator
from spamcap.config import settings
from spamcap.database.storage import DatabaseStorage

logger = structlog.get_logger(__name__)


def bootstrap_learning_scorer(db_storage: DatabaseStorage) -> LearningScorer:
    return LearningScorer(storage=db_storage, analyzer=PatternAnalyzer())


def bootstrap_capture_service() -> SpamCaptureService:
    """Створює сервіс захоплення спаму з інтеграцією бази даних."""
    logger.info("Bootstrapping spam capture service...")
    db_storage = DatabaseStorage()

    classifier = SpamClassifier(
        analyzer=PatternAnalyzer(),
        scorer=bootstrap_learning_scorer(db_storage),
        thresholds=settings.thresholds,
    )
    service = SpamCaptureService(
        store=db_storage,
        rules=db_storage,
        classifier=classifier,
        validator=StatusTransitionValidator(enabled=settings.status_validation_enabled),
        config=settings.capture,
    )
    logger.info("✅ Spam capture service bootstrapped.")
    return service


def bootstrap_review_service() -> SpamReviewService:
    db_storage = DatabaseStorage()
    return SpamReviewService(
        store=db_storage,
        validator=StatusTransitionValidator(enabled=settings.status_validation_enabled),
        scorer=bootstrap_learning_scorer(db_storage),
    )

from .logging import configure_logging
from .settings import settings

__all__ = ["configure_logging", "settings"]

# src/spamcap/config/logging.py
import logging
import logging.handlers
import sys
from typing import List, Optional

import structlog

from .settings import LoggingSettings, settings

SHARED_PROCESSORS: List[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt='iso'),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def _console_handler(config: LoggingSettings) -> logging.Handler:
    # stdout зайнятий JSON-відповіддю команд
    handler = logging.StreamHandler(sys.stderr)
    renderer = structlog.dev.ConsoleRenderer(
        colors=config.console_colors,
        exception_formatter=structlog.dev.plain_traceback,
    )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=SHARED_PROCESSORS)
    )
    return handler


def _file_handler(config: LoggingSettings) -> logging.Handler:
    config.directory.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        filename=config.directory / config.file_name,
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding='utf-8',
    )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=SHARED_PROCESSORS,
        )
    )
    return handler


def configure_logging(config: Optional[LoggingSettings] = None) -> None:
    """
    Налаштовує structlog поверх стандартного logging:
    кольорова консоль у stderr для людини та JSON-файл з ротацією для розбору.
    Рівні сторонніх логерів беруться з `logging.logger_levels`.
    """
    config = config or settings.logging
    log_level = getattr(logging, config.level, logging.INFO)

    structlog.configure(
        processors=[
            *SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.addHandler(_console_handler(config))
    root_logger.addHandler(_file_handler(config))
    root_logger.setLevel(log_level)

    for name, level in config.logger_levels.items():
        logging.getLogger(name).setLevel(level)

    structlog.get_logger(__name__).info(
        '✅ Logging configured successfully',
        log_level=config.level,
        log_file=str(config.directory / config.file_name),
    )

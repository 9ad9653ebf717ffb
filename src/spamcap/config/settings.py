# src/spamcap/config/settings.py
from pathlib import Path
from typing import Any, Dict, Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[3]
CONFIG_FILE = BASE_DIR / 'config.yaml'


def yaml_config_settings_source() -> Dict[str, Any]:
    """
    Джерело налаштувань, що завантажує конфігурацію з файлу config.yaml.
    """
    if not CONFIG_FILE.is_file():
        return {}
    with open(CONFIG_FILE, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


LogLevel = Literal['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


class LoggingSettings(BaseModel):
    """Налаштування консольного та файлового логування."""
    level: LogLevel = 'INFO'
    directory: Path = BASE_DIR / 'logs'
    file_name: str = 'spamcap.log'
    max_bytes: int = Field(5 * 1024 * 1024, gt=0, description="Розмір файлу логу до ротації")
    backup_count: int = Field(5, ge=0)
    console_colors: bool = True
    # Рівні для сторонніх логерів, щоб SQL ORM не засмічував консоль
    logger_levels: Dict[str, LogLevel] = Field(
        default_factory=lambda: {'tortoise': 'WARNING', 'aiosqlite': 'WARNING'}
    )


class DatabaseSettings(BaseModel):
    """Налаштування підключення до бази даних."""
    db_url: str = "sqlite://db.sqlite3"


class CaptureSettings(BaseModel):
    """Налаштування пакетного захоплення спаму."""
    window_size: int = Field(1000, gt=0, description="Скільки READY-повідомлень брати за один запуск")
    batch_size: int = Field(100, gt=0, description="Розмір під-пакету для класифікації")
    write_concurrency: int = Field(10, gt=0, description="Максимум одночасних записів у БД")
    show_progress: bool = True


class ThresholdSettings(BaseModel):
    """Пороги, після яких сигнал вважається спамом."""
    pattern: float = 50.0
    learning: float = 60.0


class Settings(BaseSettings):
    """
    Головний клас налаштувань, що агрегує всі інші.
    """
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    status_validation_enabled: bool = True

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    capture: CaptureSettings = Field(default_factory=CaptureSettings)
    thresholds: ThresholdSettings = Field(default_factory=ThresholdSettings)

    model_config = SettingsConfigDict(
        env_prefix='APP_',
        env_nested_delimiter='__',
        case_sensitive=False,
        env_file=BASE_DIR / '.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """
        Визначає пріоритет джерел налаштувань.
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            yaml_config_settings_source,
            file_secret_settings,
        )


settings = Settings()

TORTOISE_CONFIG = {
    "connections": {"default": settings.database.db_url},
    "apps": {
        "models": {
            "models": ["spamcap.database.models"],
            "default_connection": "default",
        },
    },
}

# src/spamcap/interface/cli.py
import asyncio
import json
from typing import Any, Dict, List, Optional

import structlog
import typer
from tortoise import Tortoise

from spamcap.application.services.rule_matcher import normalize
from spamcap.bootstrap import bootstrap_capture_service, bootstrap_learning_scorer, bootstrap_review_service
from spamcap.config import configure_logging
from spamcap.config.settings import TORTOISE_CONFIG
from spamcap.database.storage import DatabaseStorage
from spamcap.domain.errors import CaptureError
from spamcap.domain.models import SpamAnalysis, SpamMode

# Ініціалізуємо логер та Typer додаток
logger = structlog.get_logger(__name__)
app = typer.Typer(
    help="Захоплення спаму серед вхідних повідомлень.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


# --- Уніфікована функція запуску ---

def run_app(mode: str, coro):
    """Уніфікована функція для запуску будь-якого режиму."""
    try:
        configure_logging()
        logger.info(f"Application starting in '{mode}' mode...")
        result = asyncio.run(coro)
        logger.info(f"Application finished '{mode}' mode successfully.")
        return result
    except KeyboardInterrupt:
        logger.warning("Application interrupted by user.")
        raise typer.Exit(code=130)
    except Exception:
        # Глобальний обробник непередбачуваних помилок
        logger.critical("Application crashed due to an unhandled exception!", exc_info=True)
        raise typer.Exit(code=1)


def echo_json(payload: Dict[str, Any]) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


# --- Команди CLI ---

@app.command()
def capture():
    """Класифікує READY-повідомлення та переводить спам у SPAM_REVIEW."""
    payload = run_app("capture", run_capture_mode())
    echo_json(payload)
    if not payload.get("success"):
        raise typer.Exit(code=1)


@app.command()
def counts():
    """Показує розмір черг READY та SPAM_REVIEW."""
    echo_json(run_app("counts", run_counts_mode()))


@app.command()
def restore(
    ids: List[int] = typer.Argument(..., help="ID повідомлень"),
    learn: bool = typer.Option(True, "--learn/--no-learn", help="Запам'ятати рішення як 'не спам'"),
):
    """Повертає повідомлення з SPAM_REVIEW у READY."""
    moved = run_app("restore", run_review_mode("restore", ids, learn))
    echo_json({"success": True, "moved": moved})


@app.command()
def archive(
    ids: List[int] = typer.Argument(..., help="ID повідомлень"),
    learn: bool = typer.Option(True, "--learn/--no-learn", help="Запам'ятати рішення як 'спам'"),
):
    """Підтверджує спам і переносить повідомлення в SPAM_ARCHIVED."""
    moved = run_app("archive", run_review_mode("archive", ids, learn))
    echo_json({"success": True, "moved": moved})


@app.command()
def learn(
    text: str = typer.Argument(..., help="Текст повідомлення"),
    is_spam: bool = typer.Option(True, "--spam/--not-spam"),
    brand: Optional[str] = typer.Option(None, help="Бренд повідомлення"),
):
    """Запам'ятовує ручне рішення для скорера."""
    saved = run_app("learn", run_learn_mode(text, is_spam, brand))
    echo_json({"success": True, "saved": saved})


@app.command("add-rule")
def add_rule(
    pattern: str = typer.Argument(..., help="Фраза правила"),
    mode: SpamMode = typer.Option(SpamMode.CONTAINS, case_sensitive=False),
    brand: Optional[str] = typer.Option(None, help="Обмежити правило брендом"),
):
    """Додає фразове правило."""
    rule = run_app("add-rule", run_add_rule_mode(pattern, mode, brand))
    echo_json({"success": True, "rule": rule.model_dump(mode="json")})


@app.command()
def preview():
    """Показує, які READY-повідомлення були б позначені як спам, нічого не змінюючи."""
    payload = run_app("preview", run_preview_mode())
    echo_json(payload)
    if not payload.get("success"):
        raise typer.Exit(code=1)


@app.command()
def analyze(
    text: str = typer.Argument(..., help="Текст для аналізу"),
    brand: Optional[str] = typer.Option(None, help="Бренд повідомлення"),
):
    """Оцінює один текст: бали, причини, історичну впевненість і висновок."""
    if not text.strip():
        echo_json({"success": False, "error": "Text is required"})
        raise typer.Exit(code=1)
    analysis = run_app("analyze", run_analyze_mode(text, brand))
    echo_json({"success": True, "analysis": analysis.model_dump(mode="json", by_alias=True)})


# --- Асинхронна логіка для кожного режиму ---

async def run_with_db(service_coro):
    """Ініціалізує та закриває з'єднання з БД для сервісу."""
    try:
        await Tortoise.init(config=TORTOISE_CONFIG)
        await Tortoise.generate_schemas()  # Безпечно створює таблиці, якщо їх немає
        return await service_coro
    finally:
        await Tortoise.close_connections()
        logger.info("Database connections closed.")


async def run_capture_mode() -> Dict[str, Any]:
    service = bootstrap_capture_service()
    try:
        report = await run_with_db(service.run())
    except CaptureError as e:
        return e.to_payload()
    except Exception as e:
        logger.exception("Spam capture could not run.")
        return CaptureError("Spam capture failed", details=f"{type(e).__name__}: {e}").to_payload()
    return report.to_payload()


async def run_preview_mode() -> Dict[str, Any]:
    service = bootstrap_capture_service()
    try:
        report = await run_with_db(service.preview())
    except CaptureError as e:
        return e.to_payload()
    return report.to_payload()


async def run_analyze_mode(text: str, brand: Optional[str]) -> SpamAnalysis:
    scorer = bootstrap_learning_scorer(DatabaseStorage())
    return await run_with_db(scorer.analyze(text, brand))


async def run_counts_mode() -> Dict[str, Any]:
    service = bootstrap_review_service()
    queue_counts = await run_with_db(service.counts())
    return {"success": True, **queue_counts.model_dump(by_alias=True)}


async def run_review_mode(action: str, ids: List[int], learn: bool) -> int:
    service = bootstrap_review_service()
    decide = service.restore if action == "restore" else service.archive
    return await run_with_db(decide(ids, learn=learn))


async def run_learn_mode(text: str, is_spam: bool, brand: Optional[str]) -> bool:
    scorer = bootstrap_learning_scorer(DatabaseStorage())
    return await run_with_db(scorer.learn(text, is_spam=is_spam, brand=brand, source="manual"))


async def run_add_rule_mode(pattern: str, mode: SpamMode, brand: Optional[str]):
    storage = DatabaseStorage()
    return await run_with_db(storage.create_rule(pattern, normalize(pattern), mode, brand))


if __name__ == '__main__':
    app()

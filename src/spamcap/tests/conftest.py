from datetime import datetime, timedelta
from typing import Optional

import pytest_asyncio
from tortoise import Tortoise

from spamcap.database.models import RawMessage, SpamRule
from spamcap.domain.models import RawStatus, SpamMode

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0)


@pytest_asyncio.fixture
async def db():
    """Окрема in-memory SQLite база для кожного тесту."""
    await Tortoise.init(db_url="sqlite://:memory:", modules={"models": ["spamcap.database.models"]})
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()


async def create_message(
    text: Optional[str],
    brand: Optional[str] = None,
    status: RawStatus = RawStatus.READY,
    minutes: int = 0,
) -> RawMessage:
    """Допоміжна функція: `minutes` задає порядок за created_at."""
    return await RawMessage.create(
        text=text,
        brand=brand,
        status=status,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )


async def create_rule(
    pattern: str,
    mode: SpamMode = SpamMode.CONTAINS,
    brand: Optional[str] = None,
    enabled: bool = True,
) -> SpamRule:
    return await SpamRule.create(pattern=pattern, pattern_norm="", mode=mode, brand=brand, enabled=enabled)

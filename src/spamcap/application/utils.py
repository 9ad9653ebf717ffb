# src/spamcap/application/utils.py
import asyncio
from typing import Awaitable, Callable, List, Sequence, TypeVar, Union

T = TypeVar("T")
R = TypeVar("R")


async def gather_bounded(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    limit: int,
) -> List[Union[R, BaseException]]:
    """
    Запускає `worker` для кожного елемента, але не більше `limit` одночасно.
    Винятки повертаються на місці результату, як у gather(return_exceptions=True).
    """
    semaphore = asyncio.Semaphore(limit)

    async def _run(item: T) -> R:
        async with semaphore:
            return await worker(item)

    return await asyncio.gather(*(_run(item) for item in items), return_exceptions=True)

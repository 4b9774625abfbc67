import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable

from .season import utc_now
from .storage import InMemoryStorage

logger = logging.getLogger(__name__)


def run_maintenance_once(storage: InMemoryStorage, retention: timedelta, rate_idle: timedelta,
                         now: datetime) -> tuple[int, int]:
    """Evict events past retention and forget idle rate state. Returns both counts."""
    evicted = storage.events.evict_before(now - retention)
    dropped = storage.drop_rate_states_before(now - rate_idle)
    if evicted or dropped:
        logger.info("Maintenance evicted %s events, dropped %s idle rate states", evicted, dropped)
    return evicted, dropped


async def maintenance_loop(
    storage: InMemoryStorage,
    retention: timedelta,
    rate_idle: timedelta,
    *,
    interval: float = 300.0,
    clock: Callable[[], datetime] = utc_now,
) -> None:
    while True:
        try:
            run_maintenance_once(storage, retention, rate_idle, clock())
        except asyncio.CancelledError:  # pragma: no cover - cooperative cancellation
            raise
        except Exception:  # noqa: BLE001 - keep the loop alive
            logger.exception("Maintenance pass failed")
        await asyncio.sleep(interval)


def start_maintenance(
    storage: InMemoryStorage,
    retention: timedelta,
    rate_idle: timedelta,
    *,
    interval: float = 300.0,
    clock: Callable[[], datetime] = utc_now,
) -> asyncio.Task[None]:
    loop = asyncio.get_running_loop()
    return loop.create_task(
        maintenance_loop(storage, retention, rate_idle, interval=interval, clock=clock)
    )


async def stop_maintenance(task: asyncio.Task[None]) -> None:
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass

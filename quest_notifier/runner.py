"""
Local interval runner.

Runs the deadline sweep and the daily digest on fixed intervals in one
process, for development against the Firestore emulator or a staging
project. Production uses the Cloud Scheduler triggers in `quest_notifier.main`.

Each tick builds its own container (see `with_container`), so the loop holds
no Firestore state between ticks.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from quest_notifier.core.config.config import Config
from quest_notifier.core.logging.logger import LogContext, get_logger
from quest_notifier.core.services.container import with_container

logger = get_logger(__name__)


async def run_sweep() -> None:
    with LogContext(trigger="deadline_sweep", operation="deadline_sweep"):
        await with_container(lambda c: c.deadline_sweeper.run())


async def run_digest() -> None:
    with LogContext(trigger="daily_digest", operation="daily_digest"):
        await with_container(lambda c: c.daily_digest.run())


async def _interval_loop(
    name: str,
    job: Callable[[], Awaitable[None]],
    interval_seconds: int,
    stop_event: asyncio.Event,
) -> None:
    logger.info(f"Starting {name} loop", extra={"interval_seconds": interval_seconds})
    while not stop_event.is_set():
        try:
            await job()
        except Exception:
            # A failed tick is retried on the next interval.
            logger.error(f"{name} tick failed", exc_info=True)
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
        except asyncio.TimeoutError:
            continue
    logger.info(f"{name} loop stopped")


async def run_forever(
    *,
    stop_event: Optional[asyncio.Event] = None,
    sweep_seconds: Optional[int] = None,
    digest_seconds: Optional[int] = None,
) -> None:
    """Run both jobs until `stop_event` is set."""
    stop_event = stop_event or asyncio.Event()
    await asyncio.gather(
        _interval_loop(
            "deadline_sweep",
            run_sweep,
            sweep_seconds or Config.LOCAL_RUNNER_SWEEP_SECONDS,
            stop_event,
        ),
        _interval_loop(
            "daily_digest",
            run_digest,
            digest_seconds or Config.LOCAL_RUNNER_DIGEST_SECONDS,
            stop_event,
        ),
    )


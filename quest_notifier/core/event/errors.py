"""
Listener failure handling for the EventBus.

A failing listener is logged with its stack trace and counted; the error is
never re-raised, so sibling listeners and the publisher keep running.
"""

from __future__ import annotations

from logging import Logger
from typing import Optional

from quest_notifier.core.event.metrics import EventMetricsRecorder
from quest_notifier.core.event.types import EventListener


def handle_listener_error(
    *,
    logger: Logger,
    event_name: str,
    listener: EventListener,
    exc: BaseException,
    metrics: Optional[EventMetricsRecorder],
) -> None:
    """
    Log a listener failure and update metrics.

    Parameters
    ----------
    logger:
        Logger to write to.
    event_name:
        Event being processed when the listener failed.
    listener:
        The failing listener.
    exc:
        The raised exception (or the timeout error for timed tiers).
    metrics:
        Recorder to update; skipped when None.
    """
    if metrics is not None:
        metrics.record_error(event_name)

    logger.error(
        "EventBus listener error",
        extra={
            "event_name": event_name,
            "listener_id": listener.identifier,
            "priority": listener.priority.name,
            "error": str(exc),
            "error_type": type(exc).__name__,
        },
        exc_info=exc,
    )

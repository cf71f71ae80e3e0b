"""
Log-context enrichment for published events.

Only payload keys are recorded, never values, so push copy and tokens stay
out of the context fields.
"""

from __future__ import annotations

from typing import Any

from quest_notifier.core.logging.logger import get_logger, set_log_context

logger = get_logger(__name__)


def apply_event_log_context(event_name: str, payload: dict[str, Any]) -> None:
    """
    Add `event_name` and `event_keys` to the current LogContext.

    Best-effort: a failure here is logged at debug level and never
    interrupts dispatch.
    """
    try:
        set_log_context(
            event_name=event_name,
            event_keys=list(payload.keys()),
        )
    except Exception as exc:
        logger.debug(
            "Failed to apply event log context",
            extra={
                "event_name": event_name,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )

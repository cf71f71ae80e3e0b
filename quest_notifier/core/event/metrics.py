"""
Publish and listener-error counters for the EventBus health output.
"""

from __future__ import annotations

from collections import Counter
from typing import Any


class EventMetricsRecorder:
    """Per-event counters; mutated on the event loop only."""

    def __init__(self) -> None:
        self._published: Counter[str] = Counter()
        self._errors: Counter[str] = Counter()

    def record_publish(self, event_name: str) -> None:
        self._published[event_name] += 1

    def record_error(self, event_name: str) -> None:
        self._errors[event_name] += 1

    def get_summary(self) -> dict[str, Any]:
        return {
            "total_events_published": sum(self._published.values()),
            "events_by_type": dict(self._published),
            "total_errors": sum(self._errors.values()),
            "errors_by_event": dict(self._errors),
        }

"""
ListenerRegistry: storage and lookup for EventBus listeners.

Purpose
-------
Keep listeners per event name and return them in deterministic
(priority, identifier) order.

Design Decisions
----------------
- Synchronous methods. All mutations happen on one event loop, so dict
  updates are atomic between awaits and no lock is needed.
- A listener id registers at most once per event name.
"""

from __future__ import annotations

from quest_notifier.core.event.types import EventListener


def _sort_key(listener: EventListener) -> tuple[int, str]:
    return (listener.priority.value, listener.identifier)


class ListenerRegistry:
    """Registry of listeners keyed by event name."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[EventListener]] = {}

    # ------------------------------------------------------------------ #
    # Modification
    # ------------------------------------------------------------------ #

    def add_listener(self, event_name: str, listener: EventListener) -> bool:
        """Register a listener. Returns False when its id is already registered."""
        listeners = self._listeners.setdefault(event_name, [])
        if any(existing.identifier == listener.identifier for existing in listeners):
            return False

        listeners.append(listener)
        listeners.sort(key=_sort_key)
        return True

    def remove_listener(self, event_name: str, identifier: str) -> bool:
        """Remove a listener by identifier. Returns True if one was removed."""
        listeners = self._listeners.get(event_name)
        if not listeners:
            return False

        kept = [lst for lst in listeners if lst.identifier != identifier]
        if kept:
            self._listeners[event_name] = kept
        else:
            del self._listeners[event_name]
        return len(kept) < len(listeners)

    # ------------------------------------------------------------------ #
    # Lookup
    # ------------------------------------------------------------------ #

    def listeners_for_event(self, event_name: str) -> list[EventListener]:
        """Snapshot of the listeners for `event_name`, already ordered."""
        return list(self._listeners.get(event_name, []))

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def get_listener_count_for_event(self, event_name: str) -> int:
        return len(self._listeners.get(event_name, []))

    def get_total_listener_count(self) -> int:
        return sum(len(listeners) for listeners in self._listeners.values())

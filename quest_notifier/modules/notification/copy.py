"""
Notification copy rendering.

Titles and bodies come from `notifications.copy.*` in ConfigManager, with the
built-in Korean copy as fallback. Bodies are `str.format` templates; the
available fields are listed next to each renderer.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from quest_notifier.modules.notification.constants import (
    CATEGORY_EMOJI,
    DEFAULT_COPY,
    DEFAULT_EMOJI,
)
from quest_notifier.modules.quests.models import QuestCategory

if TYPE_CHECKING:
    from quest_notifier.core.config.manager import ConfigManager


class Urgency(Enum):
    OVERDUE = "overdue"
    URGENT = "urgent"
    NORMAL = "normal"


def classify_urgency(
    due: Optional[datetime], now: datetime, window: timedelta = timedelta(minutes=60)
) -> Urgency:
    """
    Overdue when due <= now, urgent when due is within `window`, otherwise
    normal. A missing due date is normal.
    """
    if due is None:
        return Urgency.NORMAL
    remaining = due - now
    if remaining <= timedelta(0):
        return Urgency.OVERDUE
    if remaining <= window:
        return Urgency.URGENT
    return Urgency.NORMAL


@dataclass(frozen=True, slots=True)
class RenderedCopy:
    title: str
    body: str


class CopyCatalog:
    """Resolves emoji and copy templates through ConfigManager."""

    def __init__(self, config_manager: type[ConfigManager]) -> None:
        self._config = config_manager

    def emoji_for(self, category: QuestCategory) -> str:
        default = self._config.get("notifications.default_emoji", DEFAULT_EMOJI)
        table = self._config.get("notifications.category_emoji", CATEGORY_EMOJI)
        if not isinstance(table, dict):
            table = CATEGORY_EMOJI
        return table.get(category.value) or CATEGORY_EMOJI.get(category.value) or default

    def _template(self, key: str) -> str:
        value = self._config.get(f"notifications.copy.{key}")
        return value if isinstance(value, str) and value else DEFAULT_COPY[key]

    def _format(self, key: str, **fields: Any) -> str:
        template = self._template(key)
        try:
            return template.format(**fields)
        except (AttributeError, IndexError, KeyError, TypeError, ValueError):
            # A bad override must not silence the notification.
            return DEFAULT_COPY[key].format(**fields)

    def assigned(self, title: str, category: QuestCategory, urgency: Urgency) -> RenderedCopy:
        """Fields: emoji, title."""
        title_key = {
            Urgency.OVERDUE: "assigned.overdue_title",
            Urgency.URGENT: "assigned.urgent_title",
            Urgency.NORMAL: "assigned.title",
        }[urgency]
        return RenderedCopy(
            title=self._template(title_key),
            body=self._format("assigned.body", emoji=self.emoji_for(category), title=title),
        )

    def deadline(self, title: str, category: QuestCategory) -> RenderedCopy:
        """Fields: emoji, title."""
        return RenderedCopy(
            title=self._template("deadline.title"),
            body=self._format("deadline.body", emoji=self.emoji_for(category), title=title),
        )

    def digest(self, count: int) -> RenderedCopy:
        """Fields: count."""
        return RenderedCopy(
            title=self._template("digest.title"),
            body=self._format("digest.body", count=count),
        )

"""Notification type keys and built-in copy fallbacks."""

from __future__ import annotations

from enum import Enum
from typing import Dict


class NotificationType(str, Enum):
    """Keys of `users/{uid}.notificationSetting` and of inbox documents."""

    QUEST_ASSIGNED = "questAssigned"
    DEADLINE = "deadline"
    DAILY_SUMMARY = "dailySummary"


# Used when notifications.yaml is missing a key.
DEFAULT_EMOJI = "📝"

CATEGORY_EMOJI: Dict[str, str] = {
    "cleaning": "🧹",
    "cooking": "👨‍🍳",
    "laundry": "👕",
    "dishes": "🍽️",
    "trash": "🗑️",
    "pet": "🐕",
    "study": "📚",
    "exercise": "💪",
    "other": "📝",
}

DEFAULT_COPY: Dict[str, str] = {
    "assigned.title": "📌 새로운 퀘스트가 할당되었어요",
    "assigned.urgent_title": "⚠️ 1시간 안에 마감되는 퀘스트예요",
    "assigned.overdue_title": "🚨 이미 마감 시간이 지난 퀘스트예요",
    "assigned.body": "{emoji} {title}",
    "deadline.title": "⏰ 마감 1시간 전이에요",
    "deadline.body": "{emoji} {title}",
    "digest.title": "☀️ 오늘의 퀘스트",
    "digest.body": "오늘 해야 할 퀘스트가 {count}개 있어요",
}

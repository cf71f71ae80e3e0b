"""
Quest and quest-template documents.

Purpose
-------
Typed, read-only views over the `quests` and `quest_templates` Firestore
documents written by the mobile client. Only the fields the notification
engine reads are decoded; everything else on the document is ignored.

Decoding Rules
--------------
- Timestamps arrive as timezone-aware datetimes from the Firestore client.
  Naive datetimes are treated as UTC.
- Unknown `category` values decode to `QuestCategory.OTHER`.
- Unknown `status` values raise `ValidationError`; the caller skips the
  document.
- `selectedRepeatDays` uses 0=Sunday .. 6=Saturday.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from quest_notifier.modules.shared.exceptions import ValidationError


class QuestStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    APPROVED = "approved"
    REJECTED = "rejected"


# Statuses that no longer need reminders.
CLOSED_STATUSES = frozenset({QuestStatus.COMPLETED, QuestStatus.APPROVED})


class QuestCategory(str, Enum):
    CLEANING = "cleaning"
    COOKING = "cooking"
    LAUNDRY = "laundry"
    DISHES = "dishes"
    TRASH = "trash"
    PET = "pet"
    STUDY = "study"
    EXERCISE = "exercise"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: Any) -> "QuestCategory":
        try:
            return cls(raw)
        except ValueError:
            return cls.OTHER


def to_utc(value: Any, field_name: str) -> Optional[datetime]:
    """Normalize a Firestore timestamp field to an aware UTC datetime."""
    if value is None:
        return None
    if not isinstance(value, datetime):
        raise ValidationError(field_name, f"expected timestamp, got {type(value).__name__}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _require_str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise ValidationError(key, "missing or not a string")
    return value


def _optional_str(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(key, "not a string")
    return value


@dataclass(frozen=True, slots=True)
class Quest:
    """A materialized quest instance."""

    id: str
    title: str
    category: QuestCategory
    created_by: str
    status: QuestStatus
    assigned_to: Optional[str] = None
    due_date: Optional[datetime] = None
    template_id: Optional[str] = None
    last_notified_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.status not in CLOSED_STATUSES

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "Quest":
        raw_status = data.get("status", QuestStatus.PENDING.value)
        try:
            status = QuestStatus(raw_status)
        except ValueError:
            raise ValidationError("status", f"unknown quest status {raw_status!r}")

        return cls(
            id=doc_id,
            title=str(data.get("title", "")),
            category=QuestCategory.parse(data.get("category")),
            created_by=_require_str(data, "createdBy"),
            status=status,
            assigned_to=_optional_str(data, "assignedTo"),
            due_date=to_utc(data.get("dueDate"), "dueDate"),
            template_id=_optional_str(data, "templateId"),
            last_notified_at=to_utc(data.get("lastNotifiedAt"), "lastNotifiedAt"),
        )


@dataclass(frozen=True, slots=True)
class QuestTemplate:
    """A recurring quest definition evaluated per calendar day."""

    id: str
    title: str
    category: QuestCategory
    created_by: str
    start_date: datetime
    assigned_to: Optional[str] = None
    selected_repeat_days: List[int] = field(default_factory=list)
    recurring_end_date: Optional[datetime] = None
    excluded_dates: List[datetime] = field(default_factory=list)
    recurring_due_time: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> "QuestTemplate":
        start_date = to_utc(data.get("startDate"), "startDate")
        if start_date is None:
            raise ValidationError("startDate", "missing")

        raw_days = data.get("selectedRepeatDays") or []
        if not isinstance(raw_days, list):
            raise ValidationError("selectedRepeatDays", "not a list")
        repeat_days = [int(day) for day in raw_days if isinstance(day, (int, float))]

        raw_excluded = data.get("excludedDates") or []
        if not isinstance(raw_excluded, list):
            raise ValidationError("excludedDates", "not a list")
        excluded = [to_utc(value, "excludedDates") for value in raw_excluded]

        return cls(
            id=doc_id,
            title=str(data.get("title", "")),
            category=QuestCategory.parse(data.get("category")),
            created_by=_require_str(data, "createdBy"),
            start_date=start_date,
            assigned_to=_optional_str(data, "assignedTo"),
            selected_repeat_days=repeat_days,
            recurring_end_date=to_utc(data.get("recurringEndDate"), "recurringEndDate"),
            excluded_dates=[value for value in excluded if value is not None],
            recurring_due_time=to_utc(data.get("recurringDueTime"), "recurringDueTime"),
        )

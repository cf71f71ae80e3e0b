"""
Unit tests for document decoding.
"""

from datetime import datetime, timedelta, timezone

import pytest

from quest_notifier.modules.quests.models import (
    Quest,
    QuestCategory,
    QuestStatus,
    QuestTemplate,
)
from quest_notifier.modules.shared.exceptions import ValidationError
from quest_notifier.modules.users.models import User

KST = timezone(timedelta(hours=9))


class TestUser:
    def test_multi_device_tokens(self):
        user = User.from_document("u-1", {"fcmTokens": ["a", "", None, "b"], "badgeCount": 3})

        assert user.fcm_tokens == ["a", "b"]
        assert user.badge_count == 3

    def test_legacy_single_token(self):
        user = User.from_document("u-1", {"fcmToken": "legacy"})

        assert user.fcm_tokens == ["legacy"]

    def test_missing_tokens_and_badge(self):
        user = User.from_document("u-1", {})

        assert user.fcm_tokens == []
        assert user.badge_count == 0
        assert user.time_zone is None

    def test_notification_types_default_to_enabled(self):
        user = User.from_document("u-1", {"notificationSetting": {"deadline": False}})

        assert user.allows("deadline") is False
        assert user.allows("questAssigned") is True
        assert user.allows("dailySummary") is True

    def test_tokens_must_be_a_list(self):
        with pytest.raises(ValidationError):
            User.from_document("u-1", {"fcmTokens": "abc"})


class TestQuest:
    def test_decodes_timestamps_to_utc(self):
        quest = Quest.from_document(
            "q-1",
            {
                "title": "Dishes",
                "category": "dishes",
                "createdBy": "u-1",
                "assignedTo": "u-2",
                "status": "in_progress",
                "dueDate": datetime(2024, 5, 15, 18, 0, tzinfo=KST),
            },
        )

        assert quest.status is QuestStatus.IN_PROGRESS
        assert quest.category is QuestCategory.DISHES
        assert quest.due_date == datetime(2024, 5, 15, 9, 0, tzinfo=timezone.utc)
        assert quest.is_open is True

    def test_unknown_category_is_other(self):
        quest = Quest.from_document("q-1", {"category": "gardening", "createdBy": "u-1"})

        assert quest.category is QuestCategory.OTHER

    def test_missing_status_is_pending(self):
        quest = Quest.from_document("q-1", {"createdBy": "u-1"})

        assert quest.status is QuestStatus.PENDING

    def test_unknown_status_is_rejected(self):
        with pytest.raises(ValidationError) as excinfo:
            Quest.from_document("q-1", {"createdBy": "u-1", "status": "archived"})

        assert excinfo.value.field == "status"

    def test_closed_statuses(self):
        for status in ("completed", "approved"):
            quest = Quest.from_document("q-1", {"createdBy": "u-1", "status": status})
            assert quest.is_open is False

    def test_empty_assignee_is_unassigned(self):
        quest = Quest.from_document("q-1", {"createdBy": "u-1", "assignedTo": ""})

        assert quest.assigned_to is None

    def test_non_timestamp_due_date_is_rejected(self):
        with pytest.raises(ValidationError):
            Quest.from_document("q-1", {"createdBy": "u-1", "dueDate": "tomorrow"})


class TestQuestTemplate:
    def test_decodes_recurrence_fields(self):
        template = QuestTemplate.from_document(
            "t-1",
            {
                "title": "Trash",
                "category": "trash",
                "createdBy": "u-1",
                "assignedTo": "u-2",
                "startDate": datetime(2024, 1, 1, tzinfo=timezone.utc),
                "selectedRepeatDays": [1, 3, 5],
                "excludedDates": [datetime(2024, 5, 15, tzinfo=timezone.utc)],
            },
        )

        assert template.selected_repeat_days == [1, 3, 5]
        assert len(template.excluded_dates) == 1
        assert template.recurring_due_time is None

    def test_notified_marker_is_not_read(self):
        template = QuestTemplate.from_document(
            "t-1",
            {
                "createdBy": "u-1",
                "startDate": datetime(2024, 1, 1, tzinfo=timezone.utc),
                "lastNotifiedAt": "not-a-timestamp",
            },
        )

        assert template.id == "t-1"

    def test_start_date_is_required(self):
        with pytest.raises(ValidationError) as excinfo:
            QuestTemplate.from_document("t-1", {"createdBy": "u-1"})

        assert excinfo.value.field == "startDate"

    def test_creator_is_required(self):
        with pytest.raises(ValidationError):
            QuestTemplate.from_document(
                "t-1", {"startDate": datetime(2024, 1, 1, tzinfo=timezone.utc)}
            )

    def test_to_dict_is_loggable(self):
        error = ValidationError("startDate", "missing")

        assert error.to_dict()["error_code"] == "VALIDATION_STARTDATE"

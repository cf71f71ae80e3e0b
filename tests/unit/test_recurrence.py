"""
Unit tests for template recurrence.

Weekday indices use 0=Sunday .. 6=Saturday.
"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from quest_notifier.modules.quests.recurrence import (
    calendar_day,
    due_instant,
    fires,
    sunday_weekday,
)
from tests.conftest import make_template

SEOUL = ZoneInfo("Asia/Seoul")

# 2024-05-15 is a Wednesday (index 3).
WEDNESDAY = date(2024, 5, 15)


class TestWeekdayIndex:
    def test_sunday_is_zero(self):
        assert sunday_weekday(date(2024, 5, 12)) == 0

    def test_saturday_is_six(self):
        assert sunday_weekday(date(2024, 5, 18)) == 6

    def test_wednesday(self):
        assert sunday_weekday(WEDNESDAY) == 3


class TestFires:
    def test_fires_on_selected_weekday(self):
        template = make_template(days=[1, 3, 5])
        assert fires(template, WEDNESDAY) is True

    def test_does_not_fire_on_unselected_weekday(self):
        template = make_template(days=[1, 5])
        assert fires(template, WEDNESDAY) is False

    def test_empty_repeat_days_never_fire(self):
        template = make_template(days=[])
        assert fires(template, WEDNESDAY) is False

    def test_exclusion_beats_weekday_match(self):
        """An excluded day never fires even when its weekday is selected."""
        template = make_template(
            days=[3],
            excluded=[datetime(2024, 5, 15, 14, 30, tzinfo=timezone.utc)],
        )
        assert fires(template, WEDNESDAY) is False

    def test_exclusion_only_affects_its_own_day(self):
        template = make_template(
            days=[3],
            excluded=[datetime(2024, 5, 8, tzinfo=timezone.utc)],
        )
        assert fires(template, WEDNESDAY) is True

    def test_nothing_before_start_day(self):
        template = make_template(days=[3], start=datetime(2024, 5, 16, tzinfo=timezone.utc))
        assert fires(template, WEDNESDAY) is False

    def test_start_day_itself_fires(self):
        """Start time of day is ignored; only the calendar day matters."""
        template = make_template(days=[3], start=datetime(2024, 5, 15, 23, 0, tzinfo=timezone.utc))
        assert fires(template, WEDNESDAY) is True

    def test_nothing_after_end_day(self):
        template = make_template(days=[3], end=datetime(2024, 5, 14, tzinfo=timezone.utc))
        assert fires(template, WEDNESDAY) is False

    def test_end_day_itself_fires(self):
        template = make_template(days=[3], end=datetime(2024, 5, 15, 0, 0, tzinfo=timezone.utc))
        assert fires(template, WEDNESDAY) is True

    def test_datetime_target_is_reduced_in_the_given_zone(self):
        """
        2024-05-14 20:00 UTC is Tuesday in UTC but Wednesday 05:00 in Seoul.
        """
        template = make_template(days=[3])
        target = datetime(2024, 5, 14, 20, 0, tzinfo=timezone.utc)

        assert fires(template, target) is False
        assert fires(template, target, SEOUL) is True


class TestCalendarDay:
    def test_plain_date_passes_through(self):
        assert calendar_day(WEDNESDAY, SEOUL) == WEDNESDAY

    def test_naive_datetime_is_read_as_utc(self):
        assert calendar_day(datetime(2024, 5, 14, 20, 0), SEOUL) == WEDNESDAY


class TestDueInstant:
    def test_none_without_due_time(self):
        assert due_instant(make_template(), WEDNESDAY, SEOUL) is None

    def test_combines_day_with_local_time_of_day(self):
        """18:30 Seoul wall-clock on the stored date carries over to the target day."""
        template = make_template(
            due_time=datetime(2024, 1, 2, 9, 30, tzinfo=timezone.utc),  # 18:30 KST
        )

        due = due_instant(template, WEDNESDAY, SEOUL)

        assert due == datetime(2024, 5, 15, 9, 30, tzinfo=timezone.utc)
        assert due.astimezone(SEOUL).hour == 18

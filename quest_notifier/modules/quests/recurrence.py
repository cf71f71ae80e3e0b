"""
Recurrence evaluation for quest templates.

`fires(template, target)` answers "does this template produce an instance on
this calendar day?". Every instant involved (startDate, recurringEndDate,
excludedDates and a datetime target) is first reduced to its calendar day in
the caller's zone, UTC by default.

Checks short-circuit in this order:

1. target day is listed in excludedDates -> False
2. target day is before the startDate day -> False
3. recurringEndDate is set and target day is after its day -> False
4. weekday(target) in selectedRepeatDays (0=Sunday .. 6=Saturday)

A template with no repeat days never fires. Nothing here raises.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone, tzinfo
from typing import Optional, Union

from quest_notifier.modules.quests.models import QuestTemplate

DateLike = Union[date, datetime]


def calendar_day(value: DateLike, tz: tzinfo = timezone.utc) -> date:
    """Reduce an instant to its calendar day in `tz`; plain dates pass through."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(tz).date()
    return value


def sunday_weekday(day: date) -> int:
    """Weekday index with 0=Sunday .. 6=Saturday."""
    return day.isoweekday() % 7


def fires(template: QuestTemplate, target: DateLike, tz: tzinfo = timezone.utc) -> bool:
    if not template.selected_repeat_days:
        return False

    day = calendar_day(target, tz)

    if any(calendar_day(excluded, tz) == day for excluded in template.excluded_dates):
        return False

    if day < calendar_day(template.start_date, tz):
        return False

    if (
        template.recurring_end_date is not None
        and day > calendar_day(template.recurring_end_date, tz)
    ):
        return False

    return sunday_weekday(day) in template.selected_repeat_days


def due_instant(template: QuestTemplate, day: date, tz: tzinfo) -> Optional[datetime]:
    """
    Combine `day` with the template's due time-of-day, read in `tz`.

    Returns None when the template has no recurringDueTime.
    """
    if template.recurring_due_time is None:
        return None
    local_due = template.recurring_due_time.astimezone(tz)
    wall_clock = time(local_due.hour, local_due.minute, local_due.second)
    return datetime.combine(day, wall_clock, tzinfo=tz).astimezone(timezone.utc)

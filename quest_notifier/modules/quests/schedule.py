"""
Schedule items: stored quests and template-derived virtual quests.

The sweeper and the digest both need to treat "a quest document" and "a
template that fires today but has no document yet" uniformly. `ScheduleItem`
is the union of the two; `merge_schedule` builds the list for one window and
drops every template already represented by a stored quest.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from typing import Iterable, List, Optional, Union

from quest_notifier.modules.quests.models import Quest, QuestCategory, QuestTemplate
from quest_notifier.modules.quests.recurrence import due_instant, fires


@dataclass(frozen=True, slots=True)
class MaterializedQuest:
    quest: Quest

    @property
    def title(self) -> str:
        return self.quest.title

    @property
    def category(self) -> QuestCategory:
        return self.quest.category

    @property
    def assigned_to(self) -> Optional[str]:
        return self.quest.assigned_to

    @property
    def due(self) -> Optional[datetime]:
        return self.quest.due_date

    @property
    def quest_id(self) -> Optional[str]:
        return self.quest.id

    @property
    def template_id(self) -> Optional[str]:
        return self.quest.template_id


@dataclass(frozen=True, slots=True)
class VirtualQuest:
    """A template occurrence on `day` with no quest document behind it."""

    template: QuestTemplate
    day: date
    due: Optional[datetime]

    @property
    def title(self) -> str:
        return self.template.title

    @property
    def category(self) -> QuestCategory:
        return self.template.category

    @property
    def assigned_to(self) -> Optional[str]:
        return self.template.assigned_to

    @property
    def quest_id(self) -> Optional[str]:
        return None

    @property
    def template_id(self) -> Optional[str]:
        return self.template.id


ScheduleItem = Union[MaterializedQuest, VirtualQuest]


def virtual_occurrences(
    templates: Iterable[QuestTemplate],
    day: date,
    tz: tzinfo,
    materialized: Iterable[Quest],
) -> List[VirtualQuest]:
    """
    Templates firing on `day` whose id is not carried by any quest in
    `materialized`.
    """
    covered = {quest.template_id for quest in materialized if quest.template_id}
    return [
        VirtualQuest(template=template, day=day, due=due_instant(template, day, tz))
        for template in templates
        if template.id not in covered and fires(template, day, tz)
    ]


def merge_schedule(
    quests: Iterable[Quest],
    templates: Iterable[QuestTemplate],
    day: date,
    tz: tzinfo,
) -> List[ScheduleItem]:
    """Stored quests first, then uncovered template occurrences for `day`."""
    stored = list(quests)
    items: List[ScheduleItem] = [MaterializedQuest(quest) for quest in stored]
    items.extend(virtual_occurrences(templates, day, tz, stored))
    return items

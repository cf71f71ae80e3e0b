from quest_notifier.modules.quests.models import (
    CLOSED_STATUSES,
    Quest,
    QuestCategory,
    QuestStatus,
    QuestTemplate,
)
from quest_notifier.modules.quests.recurrence import due_instant, fires
from quest_notifier.modules.quests.schedule import (
    MaterializedQuest,
    ScheduleItem,
    VirtualQuest,
    merge_schedule,
)

__all__ = [
    "CLOSED_STATUSES",
    "Quest",
    "QuestCategory",
    "QuestStatus",
    "QuestTemplate",
    "fires",
    "due_instant",
    "MaterializedQuest",
    "VirtualQuest",
    "ScheduleItem",
    "merge_schedule",
]

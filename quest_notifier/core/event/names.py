"""Event names published on the in-process bus."""

# Payload: {"quest": Quest}
QUEST_CREATED = "quest.created"

# Payload: {"template": QuestTemplate}
QUEST_TEMPLATE_CREATED = "quest_template.created"

# Payload: see NotificationDispatcher.notify
NOTIFICATION_SENT = "notification.sent"

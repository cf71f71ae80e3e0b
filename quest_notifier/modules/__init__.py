"""
Domain modules.

- **quests**: quest and template documents, recurrence, schedule items
- **users**: recipient documents, badge writes, digest recipients
- **notification**: copy, FCM gateway, dispatcher, inbox
- **assignment**: pushes for newly created quests and templates
- **deadline**: the "due within the hour" sweep
- **digest**: the morning summary
"""

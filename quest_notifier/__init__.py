"""
Quest Notifier: push notifications for a shared household quest board.

Reacts to quests and recurring quest templates created in Firestore, sends
"due within the hour" reminders and a morning digest through FCM, and keeps
each user's badge count and notification inbox up to date.
"""

__version__ = "1.0.0"

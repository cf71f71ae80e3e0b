"""
Notification delivery.

- **constants.py**: notification type keys and built-in copy
- **copy.py**: urgency classification and copy rendering
- **push_gateway.py**: FCM multicast sends
- **dispatcher.py**: per-user gates, badge handling, `notification.sent`
- **inbox.py**: inbox items written from `notification.sent`
"""

from quest_notifier.modules.notification.constants import NotificationType

__all__ = ["NotificationType"]

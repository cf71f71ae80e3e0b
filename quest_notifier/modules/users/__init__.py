from quest_notifier.modules.users.models import User

__all__ = ["User"]

from quest_notifier.core.firebase.service import FirebaseService

__all__ = ["FirebaseService"]

"""
Shared domain foundations.

- BaseService: structured logging and event emission for services
- FirestoreRepository: typed access to one Firestore collection
- Domain exceptions raised while decoding documents
"""

from quest_notifier.modules.shared.base_repository import FirestoreRepository
from quest_notifier.modules.shared.base_service import BaseService
from quest_notifier.modules.shared.exceptions import (
    NotifierDomainException,
    ValidationError,
)

__all__ = [
    "BaseService",
    "FirestoreRepository",
    "NotifierDomainException",
    "ValidationError",
]

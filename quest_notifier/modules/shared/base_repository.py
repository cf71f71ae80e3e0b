"""
Base Repository Pattern

Purpose
-------
Provides a typed, generic repository over one Firestore collection using the
async client. Repositories encapsulate document access and decoding and give
services a consistent interface.

Design Notes
------------
This base repository provides:
- Single-document reads decoded into the model class
- Query streaming with per-document decode isolation
- Field updates
- Structured debug logging for every call
- Google API failures wrapped in `DocumentStoreError`

What this class does NOT do:
- Transactions. Every write is a single-document update; the accepted race
  windows are documented on the callers.
- Business logic or filtering beyond what the query expresses

Usage
-----
    class QuestRepository(FirestoreRepository[Quest]):
        async def find_due_between(self, start, end) -> list[Quest]:
            query = (
                self.collection
                .where(filter=FieldFilter("dueDate", ">", start))
                .where(filter=FieldFilter("dueDate", "<=", end))
            )
            return await self.find_many(query, operation="find_due_between")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Generic, List, Optional, Protocol, Type, TypeVar

from google.api_core.exceptions import GoogleAPIError

from quest_notifier.core.exceptions import DocumentStoreError
from quest_notifier.modules.shared.exceptions import NotifierDomainException

if TYPE_CHECKING:
    from logging import Logger

    from google.cloud.firestore import AsyncClient, AsyncCollectionReference
    from google.cloud.firestore_v1.async_query import AsyncQuery


class DocumentModel(Protocol):
    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> Any: ...


T = TypeVar("T", bound=DocumentModel)


class FirestoreRepository(Generic[T]):
    """
    Generic repository for one top-level Firestore collection.

    Type Parameters:
        T: Model class exposing `from_document(doc_id, data)`
    """

    collection_name: str = ""

    def __init__(self, client: AsyncClient, model_class: Type[T], logger: Logger) -> None:
        self._client = client
        self.model_class = model_class
        self.log = logger

    @property
    def collection(self) -> AsyncCollectionReference:
        return self._client.collection(self.collection_name)

    def _decode(self, doc_id: str, data: Optional[Dict[str, Any]]) -> Optional[T]:
        """Decode one document; malformed documents are logged and dropped."""
        if data is None:
            return None
        try:
            return self.model_class.from_document(doc_id, data)
        except NotifierDomainException as exc:
            self.log.warning(
                f"Skipping malformed {self.model_class.__name__} document",
                extra={
                    "collection": self.collection_name,
                    "document_id": doc_id,
                    "error": str(exc),
                    "error_code": exc.error_code,
                },
            )
            return None

    async def get(self, doc_id: str) -> Optional[T]:
        """
        Get a single document by id.

        Returns:
            Decoded model, or None when absent or malformed

        Raises:
            DocumentStoreError: On Firestore failure
        """
        try:
            snapshot = await self.collection.document(doc_id).get()
        except GoogleAPIError as exc:
            raise DocumentStoreError("get", exc, self.collection_name) from exc

        instance = self._decode(doc_id, snapshot.to_dict()) if snapshot.exists else None

        self.log.debug(
            f"Repository.get: {self.model_class.__name__}",
            extra={
                "collection": self.collection_name,
                "document_id": doc_id,
                "found": instance is not None,
            },
        )
        return instance

    async def find_many(self, query: AsyncQuery, *, operation: str) -> List[T]:
        """
        Stream a query and decode every document.

        Raises:
            DocumentStoreError: On Firestore failure
        """
        instances: List[T] = []
        try:
            async for snapshot in query.stream():
                instance = self._decode(snapshot.id, snapshot.to_dict())
                if instance is not None:
                    instances.append(instance)
        except GoogleAPIError as exc:
            raise DocumentStoreError(operation, exc, self.collection_name) from exc

        self.log.debug(
            f"Repository.{operation}: {self.model_class.__name__}",
            extra={"collection": self.collection_name, "found_count": len(instances)},
        )
        return instances

    async def update_fields(self, doc_id: str, fields: Dict[str, Any], *, operation: str) -> None:
        """
        Update top-level fields on an existing document.

        Raises:
            DocumentStoreError: On Firestore failure (including a missing document)
        """
        try:
            await self.collection.document(doc_id).update(fields)
        except GoogleAPIError as exc:
            raise DocumentStoreError(operation, exc, self.collection_name) from exc

        self.log.debug(
            f"Repository.{operation}: {self.model_class.__name__}",
            extra={
                "collection": self.collection_name,
                "document_id": doc_id,
                "fields": sorted(fields.keys()),
            },
        )

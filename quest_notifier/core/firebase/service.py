"""
Firebase Service - Core Infrastructure Layer

Purpose
-------
Own the process-wide Firebase Admin app and the async Firestore client used
by every repository, and expose the FCM app handle used by the push gateway.

Responsibilities
----------------
- Initialize `firebase_admin` once per process (reference-counted, lock-protected)
- Hand out the shared `google.cloud.firestore.AsyncClient`
- Tear down the app when the last user releases it

Non-Responsibilities
--------------------
- Query construction and document decoding (repositories)
- Message building and delivery accounting (push gateway)

Architecture Notes
------------------
- Inside Cloud Functions the runtime supplies Application Default
  Credentials and the project id; locally `GOOGLE_APPLICATION_CREDENTIALS`
  or `FIRESTORE_EMULATOR_HOST` are honoured by the Google client libraries.
- `FIREBASE_PROJECT_ID` is passed through only when set.
- A default app registered outside this service is reused and never deleted.
- Overlapping callers share one app; only the final `shutdown()` deletes it.

Usage Example
-------------
>>> await FirebaseService.initialize()
>>> db = FirebaseService.get_firestore()
>>> snapshot = await db.collection("users").document(uid).get()
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import firestore_async
from google.cloud.firestore import AsyncClient

from quest_notifier.core.config.config import Config
from quest_notifier.core.exceptions import ConfigurationError, FirebaseNotInitializedError
from quest_notifier.core.logging.logger import get_logger

logger = get_logger(__name__)


class FirebaseService:
    """
    Process-wide Firebase Admin app and Firestore client.

    Public API
    ----------
    - initialize() -> create or reuse the default Firebase app, take a reference
    - get_app() -> the initialized `firebase_admin.App`
    - get_firestore() -> shared async Firestore client
    - shutdown() -> release a reference; the last one deletes the app
    - health_check() -> status snapshot

    Every `initialize()` must be paired with one `shutdown()`. Callers that
    overlap (the local runner's two loops, concurrent invocations in one
    process) keep the app alive until the last of them releases it.
    """

    _app: Optional[firebase_admin.App] = None
    _firestore: Optional[AsyncClient] = None
    _owns_app: bool = False
    _references: int = 0
    # Guards class state across event loops and threads; nothing awaits inside.
    _state_lock: threading.Lock = threading.Lock()

    # ========================================================================
    # Initialization & Shutdown
    # ========================================================================

    @classmethod
    def _build_options(cls) -> Dict[str, Any]:
        options: Dict[str, Any] = {}
        if Config.FIREBASE_PROJECT_ID:
            options["projectId"] = Config.FIREBASE_PROJECT_ID
        return options

    @classmethod
    async def initialize(cls) -> None:
        """
        Initialize the Firebase app and Firestore client, or take another
        reference to the ones already live.

        Raises
        ------
        ConfigurationError
            If the Admin SDK rejects the credentials or options.
        """
        with cls._state_lock:
            if cls._firestore is not None:
                cls._references += 1
                logger.debug(
                    "FirebaseService already initialized; reference taken",
                    extra={"references": cls._references},
                )
                return

            logger.info("Initializing FirebaseService")

            try:
                try:
                    app = firebase_admin.get_app()
                    owns_app = False
                except ValueError:
                    app = firebase_admin.initialize_app(options=cls._build_options())
                    owns_app = True

                firestore = firestore_async.client(app)
            except ValueError as exc:
                logger.critical(
                    "FirebaseService initialization failed",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                    exc_info=True,
                )
                raise ConfigurationError("FIREBASE_PROJECT_ID", str(exc)) from exc

            cls._app = app
            cls._firestore = firestore
            cls._owns_app = owns_app
            cls._references = 1

            logger.info(
                "FirebaseService initialized successfully",
                extra={"project_id": app.project_id, "reused_app": not owns_app},
            )

    @classmethod
    async def shutdown(cls) -> None:
        """Release one reference; the last one deletes the app if this service created it."""
        with cls._state_lock:
            if cls._app is None:
                return

            cls._references -= 1
            if cls._references > 0:
                logger.debug(
                    "FirebaseService still referenced; keeping app",
                    extra={"references": cls._references},
                )
                return

            logger.info("Shutting down FirebaseService")

            if cls._owns_app:
                try:
                    firebase_admin.delete_app(cls._app)
                except ValueError:
                    logger.warning("Firebase app already deleted", exc_info=True)

            cls._app = None
            cls._firestore = None
            cls._owns_app = False
            cls._references = 0

            logger.info("FirebaseService shutdown complete")

    # ========================================================================
    # Accessors
    # ========================================================================

    @classmethod
    def _ensure_initialized(cls) -> None:
        if cls._app is None or cls._firestore is None:
            raise FirebaseNotInitializedError()

    @classmethod
    def get_app(cls) -> firebase_admin.App:
        cls._ensure_initialized()
        return cls._app  # type: ignore[return-value]

    @classmethod
    def get_firestore(cls) -> AsyncClient:
        cls._ensure_initialized()
        return cls._firestore  # type: ignore[return-value]

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._firestore is not None

    @classmethod
    def health_check(cls) -> Dict[str, Any]:
        return {
            "initialized": cls.is_initialized(),
            "project_id": cls._app.project_id if cls._app else None,
            "owns_app": cls._owns_app,
            "references": cls._references,
        }

"""
Service Container

Purpose
-------
Dependency injection container for the notification engine. Builds the
repositories, the push gateway, the dispatcher, the trigger handlers and the
scheduled jobs for one invocation and exposes them as properties.

Responsibilities
----------------
- Initialize Firebase (unless a Firestore client is injected)
- Load ConfigManager YAML defaults
- Wire repositories, gateway, dispatcher, handlers, jobs and the inbox
  recorder with constructor injection
- Register event listeners on the container's EventBus
- Manage lifecycle (initialize, shutdown) and report a health snapshot

Non-Responsibilities
--------------------
- No business logic
- No trigger parsing (Cloud Functions adapters live in `quest_notifier.main`)

Architecture Notes
------------------
- Services follow the constructor pattern
  `(<collaborators>, config_manager, event_bus, logger)`.
- Each Cloud Functions invocation runs in its own event loop and the async
  Firestore client is bound to the loop that created it, so entry points
  build, use and shut down one container per invocation.
- Tests inject an in-memory Firestore stand-in and a recording gateway via
  `firestore_client` and `push_gateway`.
- A container that builds either of them holds one FirebaseService
  reference from `initialize()` to `shutdown()`, so overlapping containers
  never tear the app down under each other.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Optional, TypeVar

from quest_notifier.core.config.config import Config
from quest_notifier.core.config.manager import ConfigManager
from quest_notifier.core.event.bus import EventBus
from quest_notifier.core.firebase.service import FirebaseService
from quest_notifier.core.logging.logger import get_logger
from quest_notifier.modules.assignment.listener import AssignmentListener
from quest_notifier.modules.assignment.quest_created import QuestCreatedHandler
from quest_notifier.modules.assignment.template_created import TemplateCreatedHandler
from quest_notifier.modules.deadline.sweeper import DeadlineSweeper
from quest_notifier.modules.digest.scheduler import DailyDigestScheduler
from quest_notifier.modules.notification.copy import CopyCatalog
from quest_notifier.modules.notification.dispatcher import NotificationDispatcher
from quest_notifier.modules.notification.inbox import InboxRecorder, InboxRepository
from quest_notifier.modules.notification.push_gateway import FcmPushGateway
from quest_notifier.modules.quests.repository import QuestRepository, QuestTemplateRepository
from quest_notifier.modules.users.repository import UserRepository

if TYPE_CHECKING:
    from logging import Logger

    from google.cloud.firestore import AsyncClient

T = TypeVar("T")

_NOT_INITIALIZED = "ServiceContainer not initialized. Call initialize() first."


class ServiceContainer:
    """
    Dependency injection container for the notification engine.

    Usage:
        container = ServiceContainer()
        await container.initialize()

        await container.deadline_sweeper.run()
        await container.shutdown()
    """

    def __init__(
        self,
        config_manager: type[ConfigManager] = ConfigManager,
        event_bus: Optional[EventBus] = None,
        logger: Optional[Logger] = None,
        *,
        firestore_client: Optional[AsyncClient] = None,
        push_gateway: Optional[Any] = None,
    ) -> None:
        self._config_manager = config_manager
        self._event_bus = event_bus or EventBus(config_manager=config_manager)
        self._logger = logger or get_logger(__name__)
        self._firestore_client = firestore_client
        self._push_gateway = push_gateway
        self._owns_firebase = firestore_client is None or push_gateway is None

        self._users: Optional[UserRepository] = None
        self._quests: Optional[QuestRepository] = None
        self._templates: Optional[QuestTemplateRepository] = None
        self._copy: Optional[CopyCatalog] = None
        self._dispatcher: Optional[NotificationDispatcher] = None
        self._inbox_recorder: Optional[InboxRecorder] = None
        self._quest_created: Optional[QuestCreatedHandler] = None
        self._template_created: Optional[TemplateCreatedHandler] = None
        self._assignment_listener: Optional[AssignmentListener] = None
        self._deadline_sweeper: Optional[DeadlineSweeper] = None
        self._daily_digest: Optional[DailyDigestScheduler] = None

        self._initialized = False

        self._service_init_times: Dict[str, float] = {}
        self._init_start: Optional[float] = None
        self._init_end: Optional[float] = None

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def initialize(self) -> None:
        if self._initialized:
            self._logger.warning("ServiceContainer already initialized")
            return

        self._init_start = time.perf_counter()
        self._logger.info("Service container initialization starting...")

        if self._owns_firebase:
            await FirebaseService.initialize()
            if self._firestore_client is None:
                self._firestore_client = FirebaseService.get_firestore()
            if self._push_gateway is None:
                self._push_gateway = FcmPushGateway(FirebaseService.get_app())

        if not self._config_manager.is_initialized():
            self._config_manager.initialize()
        client = self._firestore_client

        self._users = self._create("users", lambda log: UserRepository(client, log))
        self._quests = self._create("quests", lambda log: QuestRepository(client, log))
        self._templates = self._create(
            "quest_templates", lambda log: QuestTemplateRepository(client, log)
        )
        self._copy = CopyCatalog(self._config_manager)

        self._dispatcher = self._create_service(
            "dispatcher",
            NotificationDispatcher,
            users=self._users,
            push_gateway=self._push_gateway,
        )
        self._quest_created = self._create_service(
            "quest_created",
            QuestCreatedHandler,
            dispatcher=self._dispatcher,
            copy=self._copy,
        )
        self._template_created = self._create_service(
            "template_created",
            TemplateCreatedHandler,
            dispatcher=self._dispatcher,
            copy=self._copy,
        )
        self._deadline_sweeper = self._create_service(
            "deadline_sweeper",
            DeadlineSweeper,
            quests=self._quests,
            templates=self._templates,
            dispatcher=self._dispatcher,
            copy=self._copy,
        )
        self._daily_digest = self._create_service(
            "daily_digest",
            DailyDigestScheduler,
            users=self._users,
            quests=self._quests,
            templates=self._templates,
            dispatcher=self._dispatcher,
            copy=self._copy,
        )

        self._assignment_listener = AssignmentListener(
            self._event_bus, self._quest_created, self._template_created
        )
        self._assignment_listener.register()

        self._inbox_recorder = InboxRecorder(self._event_bus, InboxRepository(client))
        self._inbox_recorder.start()

        self._initialized = True
        self._init_end = time.perf_counter()
        self._logger.info(
            "Service container initialized",
            extra={
                "service_count": len(self._service_init_times),
                "duration_seconds": round(self._init_end - self._init_start, 3),
            },
        )

    def _create(
        self, name: str, factory: Callable[[Logger], Any], logger_name: Optional[str] = None
    ) -> Any:
        start = time.perf_counter()
        try:
            instance = factory(get_logger(logger_name or f"quest_notifier.{name}"))
        except Exception:
            self._logger.error(f"Failed to initialize {name}", exc_info=True)
            raise
        duration = time.perf_counter() - start
        self._service_init_times[name] = duration
        self._logger.debug(f"Initialized {name} in {duration:.3f}s")
        return instance

    def _create_service(self, name: str, cls: type, **collaborators: Any) -> Any:
        """Construct a BaseService subclass with the shared dependencies."""
        return self._create(
            name,
            lambda log: cls(
                **collaborators,
                config_manager=self._config_manager,
                event_bus=self._event_bus,
                logger=log,
            ),
            logger_name=f"{cls.__module__}.{cls.__name__}",
        )

    async def shutdown(self) -> None:
        if not self._initialized:
            return

        self._logger.info("Shutting down service container...")

        await self._event_bus.drain()
        if self._inbox_recorder is not None:
            self._inbox_recorder.stop()
        if self._assignment_listener is not None:
            self._assignment_listener.unregister()
        if self._owns_firebase:
            await FirebaseService.shutdown()

        self._initialized = False
        self._logger.info("Service container shut down")

    async def health_check(self) -> Dict[str, Any]:
        config_load = Config.get_metrics()
        return {
            "initialized": self._initialized,
            "service_count": len(self._service_init_times),
            "total_init_time_seconds": (
                round(self._init_end - self._init_start, 3)
                if self._init_start and self._init_end
                else None
            ),
            "firebase": FirebaseService.health_check() if self._owns_firebase else None,
            "inbox": self._inbox_recorder.get_status() if self._inbox_recorder else None,
            "event_bus": self._event_bus.get_metrics_summary(),
            "config": {
                "environment": config_load.get_summary() if config_load else None,
                "yaml": self._config_manager.get_metrics(),
            },
        }

    # ========================================================================
    # Accessors
    # ========================================================================

    def _require(self, instance: Any) -> Any:
        if not self._initialized or instance is None:
            raise RuntimeError(_NOT_INITIALIZED)
        return instance

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def dispatcher(self) -> NotificationDispatcher:
        return self._require(self._dispatcher)

    @property
    def quest_created(self) -> QuestCreatedHandler:
        return self._require(self._quest_created)

    @property
    def template_created(self) -> TemplateCreatedHandler:
        return self._require(self._template_created)

    @property
    def deadline_sweeper(self) -> DeadlineSweeper:
        return self._require(self._deadline_sweeper)

    @property
    def daily_digest(self) -> DailyDigestScheduler:
        return self._require(self._daily_digest)

    @property
    def inbox_recorder(self) -> InboxRecorder:
        return self._require(self._inbox_recorder)


async def with_container(action: Callable[[ServiceContainer], Awaitable[T]]) -> T:
    """Run `action` against a freshly initialized container and shut it down."""
    container = ServiceContainer()
    await container.initialize()
    try:
        return await action(container)
    finally:
        await container.shutdown()

"""
Pytest Configuration and Fixtures for the Quest Notifier Tests
===============================================================

Purpose
-------
Shared fixtures for the unit suite. Every collaborator that would talk to
Firestore or FCM is replaced with an in-memory fake that keeps the real
repository's query semantics, so services run unmodified.

Responsibilities
----------------
- In-memory user, quest and template repositories
- A recording push gateway with scriptable results
- ConfigManager loaded from the packaged YAML defaults, reset per test
- A real EventBus per test
- Fixed clocks and document factories

Architecture Notes
------------------
- No network, no Firebase emulator
- Async tests opt in with `@pytest.mark.asyncio`
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("LOG_COLORS", "false")

import pytest
from google.api_core.exceptions import NotFound, ServiceUnavailable

from quest_notifier.core.config.manager import ConfigManager
from quest_notifier.core.event.bus import EventBus
from quest_notifier.core.exceptions import DocumentStoreError, PushDeliveryError
from quest_notifier.core.logging.logger import get_logger
from quest_notifier.modules.notification.copy import CopyCatalog
from quest_notifier.modules.notification.dispatcher import NotificationDispatcher
from quest_notifier.modules.notification.push_gateway import PushResult
from quest_notifier.modules.quests.models import Quest, QuestCategory, QuestStatus, QuestTemplate
from quest_notifier.modules.users.models import User

# ============================================================================
# CLOCKS
# ============================================================================

# Wednesday 2024-05-15 03:00 UTC == 12:00 in Asia/Seoul.
FIXED_NOW = datetime(2024, 5, 15, 3, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


# ============================================================================
# IN-MEMORY REPOSITORIES
# ============================================================================


class InMemoryUserRepository:
    def __init__(self) -> None:
        self.users: Dict[str, User] = {}
        self.badge_writes: List[tuple[str, int]] = []
        self.fail_get_for: set[str] = set()

    def add(self, user: User) -> User:
        self.users[user.id] = user
        return user

    async def get(self, user_id: str) -> Optional[User]:
        if user_id in self.fail_get_for:
            raise DocumentStoreError("get", ServiceUnavailable(f"store unavailable for {user_id}"))
        return self.users.get(user_id)

    async def set_badge_count(self, user_id: str, badge_count: int) -> None:
        self.badge_writes.append((user_id, badge_count))

    async def find_digest_recipients(self, zones: Sequence[str]) -> List[User]:
        return [
            user
            for user in self.users.values()
            if user.notification_setting.get("dailySummary") is True
            and user.time_zone in zones
        ]


class InMemoryQuestRepository:
    def __init__(self) -> None:
        self.quests: Dict[str, Quest] = {}
        self.marked: List[str] = []
        self.fail_mark_for: set[str] = set()
        self.fail_for_assignee: set[str] = set()

    def add(self, quest: Quest) -> Quest:
        self.quests[quest.id] = quest
        return quest

    async def find_open_due_between(self, start: datetime, end: datetime) -> List[Quest]:
        return [
            quest
            for quest in self.quests.values()
            if quest.is_open and quest.due_date is not None and start < quest.due_date <= end
        ]

    async def find_open_for_assignee_between(
        self, user_id: str, start: datetime, end: datetime
    ) -> List[Quest]:
        if user_id in self.fail_for_assignee:
            raise RuntimeError(f"query failed for {user_id}")
        return [
            quest
            for quest in self.quests.values()
            if quest.assigned_to == user_id
            and quest.is_open
            and quest.due_date is not None
            and start <= quest.due_date < end
        ]

    async def mark_notified(self, quest_id: str, at: Optional[datetime] = None) -> None:
        if quest_id in self.fail_mark_for:
            raise DocumentStoreError("mark_notified", ServiceUnavailable("down"), "quests")
        self.marked.append(quest_id)


class InMemoryTemplateRepository:
    def __init__(self) -> None:
        self.templates: Dict[str, QuestTemplate] = {}

    def add(self, template: QuestTemplate) -> QuestTemplate:
        self.templates[template.id] = template
        return template

    async def find_assigned(self) -> List[QuestTemplate]:
        return [t for t in self.templates.values() if t.assigned_to]

    async def find_for_assignee(self, user_id: str) -> List[QuestTemplate]:
        return [t for t in self.templates.values() if t.assigned_to == user_id]


@dataclass
class SentPush:
    tokens: List[str]
    title: str
    body: str
    badge: int


@dataclass
class RecordingPushGateway:
    """Records every multicast; `result` or `error` scripts the outcome."""

    sent: List[SentPush] = field(default_factory=list)
    result: Optional[PushResult] = None
    error: Optional[Exception] = None

    async def send_multicast(
        self, tokens: Sequence[str], title: str, body: str, badge: int
    ) -> PushResult:
        self.sent.append(SentPush(list(tokens), title, body, badge))
        if self.error is not None:
            raise self.error
        return self.result or PushResult(success_count=len(tokens), failure_count=0)

    def fail_with(self, original: Exception) -> None:
        self.error = PushDeliveryError(1, original)


# ============================================================================
# FAKE FIRESTORE
# ============================================================================


_MISSING = object()


def _field_value(data: Dict[str, Any], path: str) -> Any:
    value: Any = data
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


_OPS = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    ">": lambda a, b: a > b,
    ">=": lambda a, b: a >= b,
    "<": lambda a, b: a < b,
    "<=": lambda a, b: a <= b,
    "in": lambda a, b: a in b,
}

# Comparisons against None or NaN arrive as unary operator enums.
_UNARY_OPS = {
    "IS_NULL": lambda a: a is None,
    "IS_NOT_NULL": lambda a: a is not None,
    "IS_NAN": lambda a: a != a,
    "IS_NOT_NAN": lambda a: a == a,
}


def _compare(op: Any, actual: Any, expected: Any) -> bool:
    unary = _UNARY_OPS.get(getattr(op, "name", None))
    if unary is not None:
        return unary(actual)
    return _OPS[op](actual, expected)


@dataclass
class FakeSnapshot:
    id: str
    data: Optional[Dict[str, Any]]

    @property
    def exists(self) -> bool:
        return self.data is not None

    def to_dict(self) -> Optional[Dict[str, Any]]:
        return dict(self.data) if self.data is not None else None


class FakeFirestoreClient:
    """
    Just enough of the async Firestore client for the repositories.

    Documents live in `store[collection_path][doc_id]`. Every query records
    its filters in `queries` as (collection_path, [(field, op, value), ...]).
    Setting `error` makes the next store call raise it.
    """

    def __init__(self) -> None:
        self.store: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.queries: List[tuple[str, List[tuple[str, str, Any]]]] = []
        self.error: Optional[Exception] = None
        self._next_id = 0

    def collection(self, path: str) -> "FakeCollection":
        return FakeCollection(self, path)

    def seed(self, path: str, doc_id: str, data: Dict[str, Any]) -> None:
        self.store.setdefault(path, {})[doc_id] = data

    def _raise_if_failing(self) -> None:
        if self.error is not None:
            error, self.error = self.error, None
            raise error

    def _auto_id(self) -> str:
        self._next_id += 1
        return f"auto-{self._next_id}"


class FakeQuery:
    def __init__(self, client: FakeFirestoreClient, path: str, filters=None) -> None:
        self._client = client
        self._path = path
        self._filters: List[tuple[str, str, Any]] = list(filters or [])

    def where(self, *, filter) -> "FakeQuery":
        return FakeQuery(
            self._client,
            self._path,
            [*self._filters, (filter.field_path, filter.op_string, filter.value)],
        )

    def _matches(self, data: Dict[str, Any]) -> bool:
        for path, op, expected in self._filters:
            actual = _field_value(data, path)
            if actual is _MISSING:
                return False
            try:
                if not _compare(op, actual, expected):
                    return False
            except TypeError:
                # Firestore never matches across value types.
                return False
        return True

    async def stream(self):
        self._client.queries.append((self._path, list(self._filters)))
        self._client._raise_if_failing()
        for doc_id, data in list(self._client.store.get(self._path, {}).items()):
            if self._matches(data):
                yield FakeSnapshot(doc_id, data)


class FakeCollection(FakeQuery):
    def document(self, doc_id: Optional[str] = None) -> "FakeDocument":
        return FakeDocument(self._client, self._path, doc_id or self._client._auto_id())


class FakeDocument:
    def __init__(self, client: FakeFirestoreClient, path: str, doc_id: str) -> None:
        self._client = client
        self._path = path
        self.id = doc_id

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self._client, f"{self._path}/{self.id}/{name}")

    async def get(self) -> FakeSnapshot:
        self._client._raise_if_failing()
        return FakeSnapshot(self.id, self._client.store.get(self._path, {}).get(self.id))

    async def set(self, data: Dict[str, Any]) -> None:
        self._client._raise_if_failing()
        self._client.seed(self._path, self.id, dict(data))

    async def update(self, fields: Dict[str, Any]) -> None:
        self._client._raise_if_failing()
        existing = self._client.store.get(self._path, {}).get(self.id)
        if existing is None:
            raise NotFound(f"No document to update: {self._path}/{self.id}")
        existing.update(fields)


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def config_manager():
    """ConfigManager loaded from the packaged defaults, reset after the test."""
    ConfigManager.clear_cache()
    ConfigManager.initialize()
    yield ConfigManager
    ConfigManager.clear_cache()


@pytest.fixture
def event_bus(config_manager) -> EventBus:
    return EventBus(config_manager=config_manager)


@pytest.fixture
def users() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def quests() -> InMemoryQuestRepository:
    return InMemoryQuestRepository()


@pytest.fixture
def templates() -> InMemoryTemplateRepository:
    return InMemoryTemplateRepository()


@pytest.fixture
def push_gateway() -> RecordingPushGateway:
    return RecordingPushGateway()


@pytest.fixture
def firestore_client() -> FakeFirestoreClient:
    return FakeFirestoreClient()


@pytest.fixture
def copy_catalog(config_manager) -> CopyCatalog:
    return CopyCatalog(config_manager)


@pytest.fixture
def dispatcher(users, push_gateway, config_manager, event_bus) -> NotificationDispatcher:
    return NotificationDispatcher(
        users=users,
        push_gateway=push_gateway,
        config_manager=config_manager,
        event_bus=event_bus,
        logger=get_logger("tests.dispatcher"),
    )


@pytest.fixture
def mock_dispatcher(mocker):
    """Dispatcher double for job tests that only inspect who was notified."""
    mock = mocker.MagicMock()
    mock.notify = mocker.AsyncMock()
    return mock


# ============================================================================
# FACTORIES
# ============================================================================


def make_user(
    user_id: str = "u-assignee",
    tokens: Optional[List[str]] = None,
    setting: Optional[Dict[str, bool]] = None,
    badge: int = 0,
    time_zone: Optional[str] = "Asia/Seoul",
) -> User:
    return User(
        id=user_id,
        fcm_tokens=["token-1"] if tokens is None else tokens,
        notification_setting=setting or {},
        badge_count=badge,
        time_zone=time_zone,
    )


def make_quest(
    quest_id: str = "q-1",
    *,
    due: Optional[datetime] = None,
    assigned_to: Optional[str] = "u-assignee",
    created_by: str = "u-creator",
    status: QuestStatus = QuestStatus.PENDING,
    category: QuestCategory = QuestCategory.CLEANING,
    template_id: Optional[str] = None,
    last_notified_at: Optional[datetime] = None,
    title: str = "Vacuum the living room",
) -> Quest:
    return Quest(
        id=quest_id,
        title=title,
        category=category,
        created_by=created_by,
        status=status,
        assigned_to=assigned_to,
        due_date=due,
        template_id=template_id,
        last_notified_at=last_notified_at,
    )


def make_template(
    template_id: str = "t-1",
    *,
    days: Optional[List[int]] = None,
    start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc),
    end: Optional[datetime] = None,
    excluded: Optional[List[datetime]] = None,
    due_time: Optional[datetime] = None,
    assigned_to: Optional[str] = "u-assignee",
    created_by: str = "u-creator",
    category: QuestCategory = QuestCategory.DISHES,
    title: str = "Wash the dishes",
) -> QuestTemplate:
    return QuestTemplate(
        id=template_id,
        title=title,
        category=category,
        created_by=created_by,
        start_date=start,
        assigned_to=assigned_to,
        selected_repeat_days=list(range(7)) if days is None else days,
        recurring_end_date=end,
        excluded_dates=excluded or [],
        recurring_due_time=due_time,
    )


def minutes(n: int) -> timedelta:
    return timedelta(minutes=n)

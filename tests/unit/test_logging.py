"""
Unit tests for log context propagation and record enrichment.
"""

import logging

import pytest

from quest_notifier.core.logging.logger import (
    ContextFilter,
    LogContext,
    clear_log_context,
    get_log_context,
    set_log_context,
)


@pytest.fixture(autouse=True)
def empty_context():
    clear_log_context()
    yield
    clear_log_context()


def make_record(name="quest_notifier.modules.deadline", **extra):
    record = logging.LogRecord(name, logging.INFO, __file__, 1, "message", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLogContext:
    def test_generates_correlation_id(self):
        with LogContext(trigger="deadline_sweep") as ctx:
            assert get_log_context()["correlation_id"] == ctx.correlation_id
            assert get_log_context()["trigger"] == "deadline_sweep"

        assert get_log_context() == {}

    def test_nested_context_inherits_outer_fields(self):
        with LogContext(trigger="quest.created", correlation_id="abc123"):
            with LogContext(user_id="u-1", operation="notify"):
                context = get_log_context()
                assert context["trigger"] == "quest.created"
                assert context["correlation_id"] == "abc123"
                assert context["user_id"] == "u-1"

            assert "user_id" not in get_log_context()

    @pytest.mark.asyncio
    async def test_async_context_manager(self):
        async with LogContext(operation="daily_digest"):
            assert get_log_context()["operation"] == "daily_digest"

        assert get_log_context() == {}

    def test_set_log_context_merges(self):
        set_log_context(trigger="daily_digest")
        set_log_context(user_id="u-9")

        assert get_log_context() == {"trigger": "daily_digest", "user_id": "u-9"}


class TestContextFilter:
    def test_enriches_record_from_context(self):
        record = make_record()

        with LogContext(quest_id="q-1"):
            ContextFilter().filter(record)

        assert record.quest_id == "q-1"
        assert record.user_id == "N/A"
        assert record.component == "quest_notifier"

    def test_explicit_extra_wins(self):
        record = make_record(quest_id="q-explicit")

        with LogContext(quest_id="q-ambient"):
            ContextFilter().filter(record)

        assert record.quest_id == "q-explicit"

"""
Unit tests for static Config parsing, ConfigManager reads and copy rendering.
"""

import pytest

from quest_notifier.core.config.config import Config
from quest_notifier.modules.notification.constants import (
    CATEGORY_EMOJI,
    DEFAULT_COPY,
    DEFAULT_EMOJI,
)
from quest_notifier.modules.notification.copy import CopyCatalog, Urgency
from quest_notifier.modules.quests.models import QuestCategory


class TestSafeParsing:
    def test_unset_uses_default(self, monkeypatch):
        monkeypatch.delenv("DIGEST_LOCAL_HOUR", raising=False)

        assert Config._safe_int("DIGEST_LOCAL_HOUR", 9, min_val=0, max_val=23) == 9

    def test_valid_value(self, monkeypatch):
        monkeypatch.setenv("DIGEST_LOCAL_HOUR", "7")

        assert Config._safe_int("DIGEST_LOCAL_HOUR", 9, min_val=0, max_val=23) == 7

    @pytest.mark.parametrize("raw", ["24", "-1", "nine"])
    def test_out_of_bounds_or_garbage_falls_back(self, monkeypatch, raw):
        monkeypatch.setenv("DIGEST_LOCAL_HOUR", raw)

        assert Config._safe_int("DIGEST_LOCAL_HOUR", 9, min_val=0, max_val=23) == 9

    @pytest.mark.parametrize("raw,expected", [("yes", True), ("OFF", False), ("1", True)])
    def test_bool_spellings(self, monkeypatch, raw, expected):
        monkeypatch.setenv("NOTIFICATION_INBOX_ENABLED", raw)

        assert Config._safe_bool("NOTIFICATION_INBOX_ENABLED", False) is expected


class TestConfigManager:
    def test_reads_packaged_defaults(self, config_manager):
        assert config_manager.get("notifications.copy.deadline.title") == (
            DEFAULT_COPY["deadline.title"]
        )
        assert config_manager.get("core.event.listener_timeout.high_seconds") == 5.0

    def test_missing_key_returns_default(self, config_manager):
        assert config_manager.get("notifications.nope.deeper", "fallback") == "fallback"

    def test_override_deep_merges(self, config_manager):
        config_manager.override({"notifications": {"default_emoji": "⭐"}})

        assert config_manager.get("notifications.default_emoji") == "⭐"
        assert config_manager.get("notifications.category_emoji.pet") == CATEGORY_EMOJI["pet"]


class TestCopyCatalog:
    def test_category_emoji(self, copy_catalog):
        assert copy_catalog.emoji_for(QuestCategory.PET) == "🐕"

    def test_other_category_uses_default_emoji(self, copy_catalog):
        assert copy_catalog.emoji_for(QuestCategory.OTHER) == DEFAULT_EMOJI

    def test_broken_emoji_table_falls_back(self, config_manager, copy_catalog):
        config_manager.override({"notifications": {"category_emoji": "not-a-map"}})

        assert copy_catalog.emoji_for(QuestCategory.PET) == "🐕"

    def test_copy_override(self, config_manager, copy_catalog):
        config_manager.override(
            {"notifications": {"copy": {"assigned": {"title": "New chore for you"}}}}
        )

        rendered = copy_catalog.assigned("Trash", QuestCategory.TRASH, Urgency.NORMAL)

        assert rendered.title == "New chore for you"
        assert rendered.body == "🗑️ Trash"

    @pytest.mark.parametrize("body", ["{missing}", "{count.nope}", "{count[0]}", "{count:q}"])
    def test_bad_body_template_falls_back(self, config_manager, copy_catalog, body):
        config_manager.override({"notifications": {"copy": {"digest": {"body": body}}}})

        rendered = copy_catalog.digest(3)

        assert rendered.body == DEFAULT_COPY["digest.body"].format(count=3)

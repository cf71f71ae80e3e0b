"""
ConfigManager: YAML-backed, dot-notation access to notification settings.

Purpose
-------
- Provide hierarchical, dot-notation access to tunable notification values
  (copy templates, the category emoji table).
- Back configuration with packaged YAML defaults that deployments may
  override by pointing `CONFIG_DIR` at their own directory.

Responsibilities
----------------
- Load and deep-merge every YAML file under `Config.CONFIG_DIR`.
- Serve reads from an in-memory cache with hit/miss metrics.
- Fall back to the caller's default when a key is absent.

Key Design Decisions
--------------------
- YAML is the only source; serverless instances are short-lived, so there is
  no background refresh.
- Files are merged in sorted path order; later files win on conflicting keys.
- Reads never raise. A malformed file is logged and skipped.

Dependencies
------------
- `PyYAML` for parsing.
- `quest_notifier.core.config.config.Config` for the directory location.
- `quest_notifier.core.logging.logger.get_logger` for structured logs.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, MutableMapping, Optional

import yaml

from quest_notifier.core.config.config import Config
from quest_notifier.core.logging.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Metrics
# ============================================================================


@dataclass
class ConfigMetrics:
    """Counters for ConfigManager reads."""

    gets: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    files_loaded: int = 0
    errors: int = 0
    total_get_time_ms: float = 0.0

    def snapshot(self) -> Dict[str, Any]:
        hit_rate = (self.cache_hits / self.gets * 100) if self.gets else 0.0
        avg_get = (self.total_get_time_ms / self.gets) if self.gets else 0.0
        return {
            "gets": self.gets,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "cache_hit_rate": round(hit_rate, 2),
            "files_loaded": self.files_loaded,
            "errors": self.errors,
            "avg_get_time_ms": round(avg_get, 3),
        }


# ============================================================================
# ConfigManager
# ============================================================================


class ConfigManager:
    """
    Dot-notation configuration reads over merged YAML defaults.

    Examples
    --------
    >>> ConfigManager.get("notifications.category_emoji.cleaning")
    '🧹'
    >>> ConfigManager.get("notifications.copy.digest.title", "Today")
    """

    _cache: Dict[str, Any] = {}
    _initialized: bool = False
    _config_dir: Optional[Path] = None
    _metrics: ConfigMetrics = ConfigMetrics()

    # =========================================================================
    # YAML LOADING
    # =========================================================================

    @staticmethod
    def _deep_merge_dict(
        target: MutableMapping[str, Any],
        source: MutableMapping[str, Any],
    ) -> None:
        """Recursively merge `source` into `target` (in-place)."""
        for key, value in source.items():
            if isinstance(value, dict) and isinstance(target.get(key), dict):
                ConfigManager._deep_merge_dict(target[key], value)
            else:
                target[key] = value

    @classmethod
    def _load_yaml_configs(cls, config_dir: Path) -> Dict[str, Any]:
        """
        Recursively load all YAML files under `config_dir` into one mapping.

        Missing directories yield an empty mapping; unreadable files are
        logged and skipped.
        """
        merged: Dict[str, Any] = {}

        if not config_dir.exists():
            logger.warning(
                "Config directory not found, skipping YAML loading",
                extra={"config_dir": str(config_dir)},
            )
            return merged

        yaml_files = sorted(
            list(config_dir.rglob("*.yaml")) + list(config_dir.rglob("*.yml"))
        )
        if not yaml_files:
            logger.info("No YAML config files found", extra={"config_dir": str(config_dir)})
            return merged

        for yaml_file in yaml_files:
            try:
                with open(yaml_file, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            except (OSError, yaml.YAMLError) as exc:
                cls._metrics.errors += 1
                logger.warning(
                    f"Failed to load YAML config {yaml_file.name}: {exc}",
                    extra={"file": str(yaml_file), "error": str(exc)},
                )
                continue

            if isinstance(data, dict):
                cls._deep_merge_dict(merged, data)
                cls._metrics.files_loaded += 1
                logger.debug(
                    f"Loaded YAML config: {yaml_file.relative_to(config_dir)}"
                )
            elif data is not None:
                logger.warning(
                    "Ignoring YAML config whose root is not a mapping",
                    extra={"file": str(yaml_file)},
                )

        return merged

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @classmethod
    def initialize(cls, config_dir: Optional[Path] = None) -> None:
        """
        Load YAML defaults into the cache.

        Parameters
        ----------
        config_dir:
            Directory to scan. Defaults to `Config.CONFIG_DIR`.
        """
        directory = Path(config_dir) if config_dir else Path(Config.CONFIG_DIR)
        cls._cache = cls._load_yaml_configs(directory)
        cls._config_dir = directory
        cls._initialized = True

        logger.info(
            "ConfigManager initialized",
            extra={
                "config_dir": str(directory),
                "top_level_keys": len(cls._cache),
                "files_loaded": cls._metrics.files_loaded,
            },
        )

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._initialized

    @classmethod
    def clear_cache(cls) -> None:
        """
        Clear the in-memory cache and reset initialization status.

        Intended for testing.
        """
        cls._cache = {}
        cls._initialized = False
        cls._config_dir = None
        logger.debug("ConfigManager cache cleared")

    @classmethod
    def override(cls, values: Dict[str, Any]) -> None:
        """Deep-merge `values` over the current cache (tests and local runs)."""
        if not cls._initialized:
            cls.initialize()
        cls._deep_merge_dict(cls._cache, values)

    # =========================================================================
    # READS
    # =========================================================================

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """
        Retrieve a configuration value by dot-notation path.

        Parameters
        ----------
        key:
            Dot-notation config path (e.g. `"notifications.default_emoji"`).
        default:
            Value returned when the key is absent.

        Returns
        -------
        Any
            The resolved configuration value, or `default` if not present.
        """
        start_time = time.perf_counter()
        cls._metrics.gets += 1

        if not cls._initialized:
            cls.initialize()

        try:
            value: Any = cls._cache
            for part in key.split("."):
                if not isinstance(value, dict) or part not in value:
                    cls._metrics.cache_misses += 1
                    return default
                value = value[part]

            cls._metrics.cache_hits += 1
            return value if value is not None else default
        finally:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            cls._metrics.total_get_time_ms += elapsed_ms

    @classmethod
    def get_metrics(cls) -> Dict[str, Any]:
        """Return a snapshot of read metrics."""
        snapshot = cls._metrics.snapshot()
        snapshot["initialized"] = cls._initialized
        snapshot["cached_top_level_keys"] = len(cls._cache)
        return snapshot

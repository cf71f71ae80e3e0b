"""
Static configuration for the quest notification engine.

Purpose
-------
Provides centralized static configuration loaded from environment variables
with sensible defaults, type validation, and bounds checking. Values here are
fixed for the lifetime of a function instance; notification copy and the
category emoji table live in YAML and are served by ConfigManager.

Responsibilities
----------------
- Load configuration from environment variables with .env support
- Provide type-safe access to scheduling, logging and Firebase settings
- Validate critical settings on startup
- Track which values came from the environment versus defaults

Non-Responsibilities
--------------------
- Notification copy and emoji tables (handled by ConfigManager)
- Secrets management (service account credentials come from the runtime)

Architecture Notes
------------------
- Singleton pattern via class methods (no instantiation)
- Auto-loads on module import via Config.validate()
- Directory paths relative to the package for portability

Configuration Categories
------------------------
1. Environment: environment type, debug mode, logging
2. Firebase: project id, functions instance cap
3. Scheduling: cron timezone and trigger cadences
4. Deadline sweep: lookahead and warning windows
5. Daily digest: local delivery hour and timezone batch size
6. Notification inbox toggle
7. Local runner intervals

Environment Variables
---------------------
All optional (with defaults):
- ENVIRONMENT: Environment type (default: development)
- LOG_LEVEL: Logging level (default: INFO)
- LOG_JSON: Force JSON logs (default: on in production)
- FIREBASE_PROJECT_ID: Firebase project (default: resolved by the SDK)
- SCHEDULE_TIMEZONE: Cron evaluation zone (default: Asia/Seoul)
- DEADLINE_LOOKAHEAD_MINUTES: Sweep window (default: 61)
- DIGEST_LOCAL_HOUR: Local digest hour (default: 9)

See individual attributes for complete list.
"""

import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# ============================================================================
# Enums and Constants
# ============================================================================


class Environment(Enum):
    """Deployment environment types."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        """
        Parse environment string safely with fallback.

        Example
        -------
        >>> Environment.from_string("production") == Environment.PRODUCTION
        True
        >>> Environment.from_string("invalid") == Environment.DEVELOPMENT
        True
        """
        try:
            return cls(value.lower())
        except ValueError:
            # Structured logger is not initialized yet during bootstrap
            import logging
            logging.warning(
                f"Unknown environment '{value}', defaulting to development"
            )
            return cls.DEVELOPMENT


# ============================================================================
# Configuration Metrics Tracker
# ============================================================================


class _ConfigLoadMetrics:
    """
    Internal tracker for configuration loading.

    Records which values came from environment variables versus defaults,
    and any validation errors encountered.
    """

    def __init__(self):
        self.env_vars_loaded: Dict[str, bool] = {}
        self.validation_errors: Dict[str, str] = {}
        self.defaults_used: Dict[str, Any] = {}
        self.last_reload: Optional[str] = None

    def record_env_load(self, key: str, from_env: bool, value: Any, default: Any):
        """Record whether a config value came from environment."""
        self.env_vars_loaded[key] = from_env
        if not from_env:
            self.defaults_used[key] = default

    def record_validation_error(self, key: str, error: str):
        """Record a validation error."""
        self.validation_errors[key] = error

    def get_summary(self) -> Dict[str, Any]:
        """Get configuration loading summary."""
        return {
            "total_configs": len(self.env_vars_loaded),
            "from_environment": sum(1 for v in self.env_vars_loaded.values() if v),
            "from_defaults": sum(1 for v in self.env_vars_loaded.values() if not v),
            "validation_errors": len(self.validation_errors),
            "defaults_used": list(self.defaults_used.keys()),
            "last_reload": self.last_reload,
        }


# ============================================================================
# Main Configuration Class
# ============================================================================


class Config:
    """
    Centralized static configuration for the notification engine.

    Usage
    -----
    >>> Config.DEADLINE_LOOKAHEAD_MINUTES
    61
    >>> if Config.is_production():
    ...     logger.info("Running in production mode")
    """

    # =========================================================================
    # Internal State
    # =========================================================================

    _metrics: Optional[_ConfigLoadMetrics] = None
    _enable_metrics: bool = True
    _validated: bool = False

    # =========================================================================
    # Environment Configuration
    # =========================================================================

    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None
    LOG_COLORS: bool = True
    LOG_FILE_ENABLED: bool = False

    # =========================================================================
    # Directory Configuration
    # =========================================================================

    PACKAGE_ROOT = Path(__file__).resolve().parents[2]
    PROJECT_ROOT = PACKAGE_ROOT.parent
    LOGS_DIR = PROJECT_ROOT / "logs"
    CONFIG_DIR = PACKAGE_ROOT / "defaults"

    # =========================================================================
    # Firebase
    # =========================================================================

    FIREBASE_PROJECT_ID: str = ""
    FUNCTIONS_MAX_INSTANCES: int = 10

    # =========================================================================
    # Scheduling
    # =========================================================================

    SCHEDULE_TIMEZONE: str = "Asia/Seoul"
    DEADLINE_SWEEP_SCHEDULE: str = "every 10 minutes"
    DAILY_DIGEST_SCHEDULE: str = "every 1 hours"

    # =========================================================================
    # Deadline Sweep
    # =========================================================================

    # One extra minute of slack so an instance due at exactly +60m is never
    # skipped between two ticks.
    DEADLINE_LOOKAHEAD_MINUTES: int = 61
    DEADLINE_WARNING_MINUTES: int = 60

    # =========================================================================
    # Daily Digest
    # =========================================================================

    DIGEST_LOCAL_HOUR: int = 9
    # Firestore caps "in" predicates at 30 values.
    TIMEZONE_QUERY_BATCH_SIZE: int = 30

    # =========================================================================
    # Notification Inbox
    # =========================================================================

    NOTIFICATION_INBOX_ENABLED: bool = True

    # =========================================================================
    # Local Runner
    # =========================================================================

    LOCAL_RUNNER_SWEEP_SECONDS: int = 600
    LOCAL_RUNNER_DIGEST_SECONDS: int = 3600

    # =========================================================================
    # Helper Methods
    # =========================================================================

    @classmethod
    def _init_metrics(cls):
        """Initialize metrics tracking if enabled."""
        if cls._enable_metrics and cls._metrics is None:
            cls._metrics = _ConfigLoadMetrics()

    @classmethod
    def _safe_int(
        cls,
        key: str,
        default: int,
        min_val: Optional[int] = None,
        max_val: Optional[int] = None,
    ) -> int:
        """
        Safely parse integer from environment with validation.

        Parameters
        ----------
        key:
            Environment variable name.
        default:
            Default value if not set or invalid.
        min_val:
            Minimum allowed value (inclusive).
        max_val:
            Maximum allowed value (inclusive).

        Returns
        -------
        int
            Validated integer value.

        Example
        -------
        >>> Config._safe_int("DIGEST_LOCAL_HOUR", 9, min_val=0, max_val=23)
        9
        """
        cls._init_metrics()

        raw_value = os.getenv(key)

        if raw_value is None:
            if cls._metrics:
                cls._metrics.record_env_load(key, False, default, default)
            return default

        import logging

        try:
            value = int(raw_value)
        except ValueError:
            error = f"{key}='{raw_value}' is not a valid integer, using default {default}"
            logging.warning(error)
            if cls._metrics:
                cls._metrics.record_validation_error(key, error)
            return default

        if min_val is not None and value < min_val:
            error = f"{key}={value} is below minimum {min_val}, using default {default}"
            logging.warning(error)
            if cls._metrics:
                cls._metrics.record_validation_error(key, error)
            return default

        if max_val is not None and value > max_val:
            error = f"{key}={value} exceeds maximum {max_val}, using default {default}"
            logging.warning(error)
            if cls._metrics:
                cls._metrics.record_validation_error(key, error)
            return default

        if cls._metrics:
            cls._metrics.record_env_load(key, True, value, default)

        return value

    @classmethod
    def _safe_bool(cls, key: str, default: bool) -> bool:
        """
        Safely parse boolean from environment.

        Recognizes: true/false, yes/no, 1/0, on/off (case-insensitive).
        """
        cls._init_metrics()

        raw_value = os.getenv(key)

        if raw_value is None:
            if cls._metrics:
                cls._metrics.record_env_load(key, False, default, default)
            return default

        normalized = raw_value.lower().strip()
        true_values = {"true", "yes", "1", "on"}
        false_values = {"false", "no", "0", "off"}

        if normalized in true_values:
            value = True
        elif normalized in false_values:
            value = False
        else:
            error = f"{key}='{raw_value}' is not a valid boolean, using default {default}"
            import logging
            logging.warning(error)
            if cls._metrics:
                cls._metrics.record_validation_error(key, error)
            return default

        if cls._metrics:
            cls._metrics.record_env_load(key, True, value, default)

        return value

    @classmethod
    def _safe_optional_bool(cls, key: str) -> Optional[bool]:
        """Parse a tri-state boolean; unset or empty means "decide from environment"."""
        if not os.getenv(key):
            return None
        return cls._safe_bool(key, False)

    @classmethod
    def _safe_str(cls, key: str, default: str, required: bool = False) -> str:
        """
        Safely get string from environment.

        Parameters
        ----------
        key:
            Environment variable name.
        default:
            Default value if not set.
        required:
            Whether this config is required (logged if missing).
        """
        cls._init_metrics()

        value = os.getenv(key, default)
        from_env = key in os.environ

        if cls._metrics:
            cls._metrics.record_env_load(key, from_env, value, default)

        if required and not value:
            error = f"Required environment variable {key} is not set"
            import logging
            logging.error(error)
            if cls._metrics:
                cls._metrics.record_validation_error(key, error)

        return value

    @classmethod
    def _safe_path(cls, key: str, default: Path) -> Path:
        raw_value = cls._safe_str(key, str(default))
        return Path(raw_value).expanduser()

    # =========================================================================
    # Configuration Loading
    # =========================================================================

    @classmethod
    def load(cls) -> None:
        """
        Load all configuration from environment variables with validation.

        Called automatically on module import; can be called again (tests,
        local runner) after changing the environment.
        """
        cls._init_metrics()

        # Environment
        cls.ENVIRONMENT = cls._safe_str("ENVIRONMENT", "development")
        cls.DEBUG = cls._safe_bool("DEBUG", False)
        cls.LOG_LEVEL = cls._safe_str("LOG_LEVEL", "INFO")
        cls.LOG_JSON = cls._safe_optional_bool("LOG_JSON")
        cls.LOG_COLORS = cls._safe_bool("LOG_COLORS", True)
        cls.LOG_FILE_ENABLED = cls._safe_bool("LOG_FILE_ENABLED", False)
        cls.LOGS_DIR = cls._safe_path("LOGS_DIR", cls.PROJECT_ROOT / "logs")
        cls.CONFIG_DIR = cls._safe_path("CONFIG_DIR", cls.PACKAGE_ROOT / "defaults")

        # Firebase
        cls.FIREBASE_PROJECT_ID = cls._safe_str("FIREBASE_PROJECT_ID", "")
        cls.FUNCTIONS_MAX_INSTANCES = cls._safe_int(
            "FUNCTIONS_MAX_INSTANCES", 10, min_val=1, max_val=1000
        )

        # Scheduling
        cls.SCHEDULE_TIMEZONE = cls._safe_str("SCHEDULE_TIMEZONE", "Asia/Seoul")
        cls.DEADLINE_SWEEP_SCHEDULE = cls._safe_str(
            "DEADLINE_SWEEP_SCHEDULE", "every 10 minutes"
        )
        cls.DAILY_DIGEST_SCHEDULE = cls._safe_str(
            "DAILY_DIGEST_SCHEDULE", "every 1 hours"
        )

        # Deadline sweep
        cls.DEADLINE_LOOKAHEAD_MINUTES = cls._safe_int(
            "DEADLINE_LOOKAHEAD_MINUTES", 61, min_val=1, max_val=24 * 60
        )
        cls.DEADLINE_WARNING_MINUTES = cls._safe_int(
            "DEADLINE_WARNING_MINUTES", 60, min_val=1, max_val=24 * 60
        )

        # Daily digest
        cls.DIGEST_LOCAL_HOUR = cls._safe_int(
            "DIGEST_LOCAL_HOUR", 9, min_val=0, max_val=23
        )
        cls.TIMEZONE_QUERY_BATCH_SIZE = cls._safe_int(
            "TIMEZONE_QUERY_BATCH_SIZE", 30, min_val=1, max_val=30
        )

        # Inbox
        cls.NOTIFICATION_INBOX_ENABLED = cls._safe_bool(
            "NOTIFICATION_INBOX_ENABLED", True
        )

        # Local runner
        cls.LOCAL_RUNNER_SWEEP_SECONDS = cls._safe_int(
            "LOCAL_RUNNER_SWEEP_SECONDS", 600, min_val=1
        )
        cls.LOCAL_RUNNER_DIGEST_SECONDS = cls._safe_int(
            "LOCAL_RUNNER_DIGEST_SECONDS", 3600, min_val=1
        )

        if cls._metrics:
            from datetime import datetime, timezone
            cls._metrics.last_reload = datetime.now(timezone.utc).isoformat()

    @classmethod
    def validate(cls) -> None:
        """
        Validate critical configuration values on startup.

        Raises
        ------
        ValueError:
            If the configuration is unusable in production.
        """
        if cls._validated:
            return

        import logging
        logger = logging.getLogger(__name__)
        cls._init_metrics()

        try:
            cls.load()

            valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
            if cls.LOG_LEVEL.upper() not in valid_log_levels:
                logger.warning(f"Invalid LOG_LEVEL '{cls.LOG_LEVEL}', using INFO")
                cls.LOG_LEVEL = "INFO"

            from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

            try:
                ZoneInfo(cls.SCHEDULE_TIMEZONE)
            except (ZoneInfoNotFoundError, ValueError):
                raise ValueError(
                    f"SCHEDULE_TIMEZONE '{cls.SCHEDULE_TIMEZONE}' is not an IANA zone"
                )

            if cls.DEADLINE_LOOKAHEAD_MINUTES < cls.DEADLINE_WARNING_MINUTES:
                logger.warning(
                    "DEADLINE_LOOKAHEAD_MINUTES is shorter than the warning window; "
                    "some deadlines will only be caught by the template path"
                )

            if cls.is_production() and cls.DEBUG:
                logger.warning("DEBUG mode enabled in production!")

            cls._validated = True

            if cls._metrics:
                summary = cls._metrics.get_summary()
                logger.info(f"Configuration loaded: {summary}")

                if cls._metrics.validation_errors:
                    logger.warning(
                        f"Configuration warnings: {cls._metrics.validation_errors}"
                    )

        except Exception as e:
            logger.warning(f"Config validation warning (safe for tests): {e}")
            if cls.ENVIRONMENT.lower() == "production":
                logger.error("Configuration validation failed in production!")
                raise

    # =========================================================================
    # Environment Checks
    # =========================================================================

    @classmethod
    def is_production(cls) -> bool:
        """Check if running in production environment."""
        return cls.ENVIRONMENT.lower() == "production"

    # =========================================================================
    # Metrics & Summary
    # =========================================================================

    @classmethod
    def get_metrics(cls) -> Optional[_ConfigLoadMetrics]:
        """Get configuration loading metrics."""
        return cls._metrics

    @classmethod
    def get_config_summary(cls) -> Dict[str, Any]:
        """
        Get non-sensitive configuration summary for debugging.

        Example
        -------
        >>> Config.get_config_summary()["schedule_timezone"]
        'Asia/Seoul'
        """
        return {
            "environment": cls.ENVIRONMENT,
            "debug": cls.DEBUG,
            "log_level": cls.LOG_LEVEL,
            "firebase_project_set": bool(cls.FIREBASE_PROJECT_ID),
            "schedule_timezone": cls.SCHEDULE_TIMEZONE,
            "deadline_sweep_schedule": cls.DEADLINE_SWEEP_SCHEDULE,
            "daily_digest_schedule": cls.DAILY_DIGEST_SCHEDULE,
            "deadline_lookahead_minutes": cls.DEADLINE_LOOKAHEAD_MINUTES,
            "digest_local_hour": cls.DIGEST_LOCAL_HOUR,
            "notification_inbox_enabled": cls.NOTIFICATION_INBOX_ENABLED,
        }


# Auto-validate on import
Config.validate()

"""
Base Service Foundation

Purpose
-------
Foundation for the notification engine's services (dispatcher, handlers,
sweeper, digest). Services hold the decision logic; repositories and the
push gateway do the I/O.

Design Notes
------------
This base class provides:
- Structured logging with operation context
- Event emission through the container's EventBus

Usage
-----
    class DeadlineSweeper(BaseService):
        def __init__(self, quests, templates, dispatcher, config_manager, event_bus, logger):
            super().__init__(config_manager, event_bus, logger)
            ...
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict

from quest_notifier.core.exceptions import (
    ErrorSeverity,
    get_error_severity,
    is_transient_error,
)

if TYPE_CHECKING:
    from logging import Logger

    from quest_notifier.core.config.manager import ConfigManager
    from quest_notifier.core.event.bus import EventBus

_LOG_LEVELS = {
    ErrorSeverity.DEBUG: logging.DEBUG,
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


class BaseService:
    """
    Base class for domain services.

    Args:
        config_manager: ConfigManager class (classmethod-based)
        event_bus: Event bus for cross-module communication
        logger: Structured logger instance
    """

    def __init__(
        self,
        config_manager: type[ConfigManager],
        event_bus: EventBus,
        logger: Logger,
    ) -> None:
        self._config = config_manager
        self._events = event_bus
        self.log = logger

    async def emit_event(self, event_type: str, data: Dict[str, Any]) -> None:
        await self._events.publish(event_type, data)

    def log_operation(self, operation: str, **context: Any) -> None:
        self.log.info(
            f"Service operation: {operation}",
            extra={"operation": operation, **context},
        )

    def log_error(self, operation: str, error: Exception, **context: Any) -> None:
        """
        Log a handled failure with its traceback and context.

        The level follows the exception's severity.
        """
        level = _LOG_LEVELS[get_error_severity(error)]
        self.log.log(
            level,
            f"Service error during {operation}: {str(error)}",
            extra={
                "operation": operation,
                "error_type": type(error).__name__,
                "error_message": str(error),
                "retryable": is_transient_error(error),
                **context,
            },
            exc_info=error,
        )

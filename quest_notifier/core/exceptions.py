"""
Infrastructure exceptions for the quest notification engine.

Purpose
-------
Define the structured exception hierarchy for infrastructure-level concerns:
document store failures, push delivery failures, configuration errors, and
Firebase bootstrap problems.

Design Notes
------------
- All infrastructure exceptions inherit from `NotifierInfrastructureException`.
- Each exception carries:
  - `message`: human-readable description
  - `details`: additional structured context (dict)
  - `severity`: `ErrorSeverity` value for logging/alerting
  - `is_retryable`: whether the operation can be retried
  - `error_code`: short, stable identifier for programmatic use
- Helper functions (`is_transient_error`, `get_error_severity`)
  centralize common exception handling patterns.
- Nothing here retries on its own. Scheduled jobs that let one of these escape
  are retried by the Cloud Functions host.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels for logging and alerting."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class NotifierInfrastructureException(Exception):
    """
    Base exception for all infrastructure-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        severity: Error severity level for logging handlers
        is_retryable: Whether the operation can be retried
        error_code: Optional code for programmatic handling

    Example:
        >>> raise NotifierInfrastructureException(
        ...     "Firestore unavailable",
        ...     {"collection": "quests"}
        ... )
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        self.severity: ErrorSeverity = severity or self.DEFAULT_SEVERITY
        self.is_retryable: bool = (
            is_retryable if is_retryable is not None else self.DEFAULT_RETRYABLE
        )
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        details_str = f" | Details: {self.details}" if self.details else ""
        return f"[{self.error_code}] {self.message}{details_str}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"severity={self.severity.value!r}, "
            f"is_retryable={self.is_retryable!r}"
            ")"
        )


class ConfigurationError(NotifierInfrastructureException):
    """
    Raised when a configuration key is invalid or missing.

    Args:
        config_key: The configuration key that has issues
        message: Description of the configuration problem
    """

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL
    DEFAULT_RETRYABLE = False

    def __init__(self, config_key: str, message: str) -> None:
        self.config_key = config_key
        error_message = f"Configuration error for {config_key}: {message}"
        super().__init__(
            error_message,
            details={
                "config_key": config_key,
                "message": message,
            },
            error_code="CONFIG_ERROR",
        )


class DocumentStoreError(NotifierInfrastructureException):
    """
    Raised when a Firestore read or write fails.

    Args:
        operation: Description of the store operation that failed
        original_error: The underlying Google API exception
        collection: Collection involved, when known
    """

    DEFAULT_SEVERITY = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE = True

    def __init__(
        self,
        operation: str,
        original_error: Exception,
        collection: Optional[str] = None,
    ) -> None:
        self.operation = operation
        self.original_error = original_error
        self.collection = collection
        message = f"Document store error during {operation}: {str(original_error)}"
        super().__init__(
            message,
            details={
                "operation": operation,
                "collection": collection,
                "error": str(original_error),
                "error_type": type(original_error).__name__,
            },
            error_code="DOCUMENT_STORE_ERROR",
        )


class PushDeliveryError(NotifierInfrastructureException):
    """
    Raised when the FCM multicast call itself fails.

    Per-token rejections are not errors; they are reported through the
    batch response's failure count.

    Args:
        token_count: Number of device tokens in the failed call
        original_error: The underlying Firebase exception
    """

    DEFAULT_SEVERITY = ErrorSeverity.WARNING
    DEFAULT_RETRYABLE = True

    def __init__(self, token_count: int, original_error: Exception) -> None:
        self.token_count = token_count
        self.original_error = original_error
        message = f"Push delivery failed for {token_count} token(s): {str(original_error)}"
        super().__init__(
            message,
            details={
                "token_count": token_count,
                "error": str(original_error),
                "error_type": type(original_error).__name__,
            },
            error_code="PUSH_DELIVERY_ERROR",
        )


class FirebaseNotInitializedError(NotifierInfrastructureException):
    """Raised when Firestore or FCM is used before `FirebaseService.initialize()`."""

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL
    DEFAULT_RETRYABLE = False

    def __init__(self) -> None:
        super().__init__(
            "Firebase is not initialized. Call FirebaseService.initialize() first.",
            error_code="FIREBASE_NOT_INITIALIZED",
        )


# Utility functions for exception handling patterns


def is_transient_error(exc: Exception) -> bool:
    """
    Check if an exception represents a transient error that can be retried.

    Args:
        exc: Exception to check

    Returns:
        True if error is retryable, False otherwise.
    """
    if isinstance(exc, NotifierInfrastructureException):
        return exc.is_retryable
    return False


def get_error_severity(exc: Exception) -> ErrorSeverity:
    """
    Get the severity level of an exception for logging.

    Domain exceptions carry the same `ErrorSeverity` and are honored too;
    anything else is treated as an error.

    Args:
        exc: Exception to check

    Returns:
        ErrorSeverity level.
    """
    severity = getattr(exc, "severity", None)
    if isinstance(severity, ErrorSeverity):
        return severity
    return ErrorSeverity.ERROR

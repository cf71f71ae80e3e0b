"""
Domain exceptions for the quest notification engine.

Purpose
-------
Structured exceptions for data-shape problems in quest, template and user
documents. Decoders raise them; the notification path catches, logs and
skips the offending document rather than failing the whole trigger.

Design Notes
------------
- All domain exceptions inherit from `NotifierDomainException`.
- They share `ErrorSeverity` with the infrastructure hierarchy so log
  handlers treat both the same way.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from quest_notifier.core.exceptions import ErrorSeverity


class NotifierDomainException(Exception):
    """
    Base exception for domain-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        severity: Error severity level for logging handlers
        is_retryable: Whether the operation can be retried
        error_code: Optional code for programmatic handling
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.WARNING
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


class ValidationError(NotifierDomainException):
    """
    Raised when a document field has the wrong type or an unknown value.

    Args:
        field: Document field that failed validation
        message: Explanation of the failure
    """

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.validation_message = message
        super().__init__(
            f"Validation error for {field}: {message}",
            details={"field": field, "validation_message": message},
            error_code=f"VALIDATION_{field.upper()}",
        )

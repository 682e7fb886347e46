"""
Trade Journal Error Handling Module

Structured error codes and the exception hierarchy raised by the journal
stores. Every failure a store can produce maps to exactly one error code, so
callers can branch on the kind of failure without parsing messages.
"""

import logging
import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# =============================================================================
# Error Code Taxonomy
# =============================================================================


class ErrorCategory(Enum):
    """Top-level error categories."""

    DATA = "DATA"
    VALIDATION = "VALIDATION"
    SYSTEM = "SYSTEM"


class ErrorSeverity(Enum):
    """Error severity levels for logging."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()


@dataclass
class ErrorCode:
    """Structured error code with metadata."""

    code: str
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    user_message: str
    http_status: int
    retryable: bool = False
    recovery_hint: str = ""

    def __str__(self) -> str:
        return f"{self.category.value}_{self.code}"


class ErrorCodes:
    """Central registry of all journal error codes."""

    # Data Errors (2xxx)
    DATA_NOT_FOUND = ErrorCode(
        code="2001",
        category=ErrorCategory.DATA,
        severity=ErrorSeverity.INFO,
        message="Entity not found",
        user_message="The requested entry does not exist.",
        http_status=404,
        recovery_hint="Verify the identifier is correct.",
    )

    DATA_UNREADABLE = ErrorCode(
        code="2002",
        category=ErrorCategory.DATA,
        severity=ErrorSeverity.ERROR,
        message="Entity file could not be read",
        user_message="The entry exists but could not be read.",
        http_status=500,
        retryable=True,
        recovery_hint="Check file permissions in the data directory.",
    )

    DATA_CORRUPT = ErrorCode(
        code="2003",
        category=ErrorCategory.DATA,
        severity=ErrorSeverity.ERROR,
        message="Entity file is not valid JSON",
        user_message="The entry file is corrupted.",
        http_status=422,
        recovery_hint="Restore the file from a backup.",
    )

    DATA_CONFLICT = ErrorCode(
        code="2004",
        category=ErrorCategory.DATA,
        severity=ErrorSeverity.WARNING,
        message="Entity conflicts with existing data",
        user_message="This entry conflicts with an existing one.",
        http_status=409,
        recovery_hint="Deactivate the conflicting entry first.",
    )

    # Validation Errors (4xxx)
    VALIDATION_INVALID_ENTITY = ErrorCode(
        code="4001",
        category=ErrorCategory.VALIDATION,
        severity=ErrorSeverity.INFO,
        message="Entity failed schema validation",
        user_message="Some fields are missing or invalid.",
        http_status=422,
        recovery_hint="Correct the listed fields and save again.",
    )

    VALIDATION_INVALID_ARGUMENT = ErrorCode(
        code="4002",
        category=ErrorCategory.VALIDATION,
        severity=ErrorSeverity.INFO,
        message="Invalid argument",
        user_message="One of the values is not valid.",
        http_status=400,
    )

    # System Errors (7xxx)
    SYSTEM_IO_ERROR = ErrorCode(
        code="7001",
        category=ErrorCategory.SYSTEM,
        severity=ErrorSeverity.ERROR,
        message="Unexpected I/O failure",
        user_message="The data directory could not be accessed.",
        http_status=500,
        retryable=True,
        recovery_hint="Check free disk space and directory permissions.",
    )


# =============================================================================
# Base Exception Classes
# =============================================================================


class JournalError(Exception):
    """
    Base exception for all journal errors.

    Provides structured error information including error codes,
    user-friendly messages, and recovery suggestions.
    """

    default_code: ErrorCode = ErrorCodes.SYSTEM_IO_ERROR

    def __init__(
        self,
        error_code: Optional[ErrorCode] = None,
        detail: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None,
        debug_info: Optional[Dict[str, Any]] = None,
    ):
        self.error_code = error_code or self.default_code
        self.detail = detail
        self.original_error = original_error
        self.context = context or {}
        self.debug_info = debug_info or {}
        self.timestamp = datetime.now(timezone.utc)

        if original_error:
            self.debug_info["original_traceback"] = traceback.format_exception(
                type(original_error), original_error, original_error.__traceback__
            )

        super().__init__(self.technical_message)

    @property
    def code(self) -> str:
        """Full error code string."""
        return str(self.error_code)

    @property
    def category(self) -> ErrorCategory:
        return self.error_code.category

    @property
    def severity(self) -> ErrorSeverity:
        return self.error_code.severity

    @property
    def http_status(self) -> int:
        """HTTP status code to return."""
        return self.error_code.http_status

    @property
    def user_message(self) -> str:
        """User-friendly error message."""
        msg = self.error_code.user_message
        if self.detail:
            msg = f"{msg} ({self.detail})"
        return msg

    @property
    def technical_message(self) -> str:
        """Technical error message for logging."""
        msg = f"[{self.code}] {self.error_code.message}"
        if self.detail:
            msg = f"{msg}: {self.detail}"
        return msg

    def to_dict(self, include_debug: bool = False) -> Dict[str, Any]:
        """
        Convert error to dictionary for API responses.

        Args:
            include_debug: Include debug information (for dev mode only)
        """
        result = {
            "code": self.code,
            "category": self.category.value,
            "message": self.user_message,
            "recovery_hint": self.error_code.recovery_hint,
            "retryable": self.error_code.retryable,
            "timestamp": self.timestamp.isoformat(),
        }

        if include_debug:
            result["debug"] = {
                "technical_message": self.technical_message,
                "context": self.context,
                "debug_info": self.debug_info,
            }

        return result

    def log(self) -> None:
        """Log the error with appropriate severity."""
        log_method = getattr(logger, self.severity.name.lower(), logger.error)
        log_method(
            self.technical_message,
            extra={"ctx_error_code": self.code, "ctx_context": self.context},
        )


# Specific Exception Classes
class NotFoundError(JournalError):
    """No file exists for the requested entity id."""

    default_code = ErrorCodes.DATA_NOT_FOUND


class UnreadableError(JournalError):
    """The entity file exists but could not be read."""

    default_code = ErrorCodes.DATA_UNREADABLE


class CorruptDataError(JournalError):
    """The entity file is not well-formed JSON."""

    default_code = ErrorCodes.DATA_CORRUPT


class ConflictError(JournalError):
    """The entity conflicts with already persisted data."""

    default_code = ErrorCodes.DATA_CONFLICT


class UnknownIOError(JournalError):
    """Any other filesystem failure."""

    default_code = ErrorCodes.SYSTEM_IO_ERROR


class InvalidArgumentError(JournalError):
    default_code = ErrorCodes.VALIDATION_INVALID_ARGUMENT


@dataclass
class Violation:
    """A single schema violation inside an entity document."""

    field: str
    message: str
    kind: str = "invalid_value"

    def to_dict(self) -> Dict[str, Any]:
        return {"field": self.field, "message": self.message, "kind": self.kind}


class InvalidEntityError(JournalError):
    """
    Well-formed document that fails schema validation.

    Carries one Violation per offending field so that callers can render
    field-level feedback.
    """

    default_code = ErrorCodes.VALIDATION_INVALID_ENTITY

    def __init__(self, violations: Optional[List[Violation]] = None, **kwargs):
        self.violations = list(violations or [])
        if "detail" not in kwargs and self.violations:
            kwargs["detail"] = "; ".join(f"{v.field}: {v.message}" for v in self.violations)
        super().__init__(**kwargs)

    @property
    def fields(self) -> List[str]:
        return [v.field for v in self.violations]

    def to_dict(self, include_debug: bool = False) -> Dict[str, Any]:
        result = super().to_dict(include_debug)
        result["violations"] = [v.to_dict() for v in self.violations]
        return result


# =============================================================================
# Error Utilities
# =============================================================================


def wrap_exception(
    exception: Exception,
    default_code: ErrorCode = ErrorCodes.SYSTEM_IO_ERROR,
) -> JournalError:
    """
    Wrap a generic exception in a JournalError.

    Maps common exception types to appropriate error classes.
    """
    if isinstance(exception, JournalError):
        return exception

    exception_mapping = {
        FileNotFoundError: NotFoundError,
        IsADirectoryError: UnreadableError,
        PermissionError: UnreadableError,
        UnicodeDecodeError: CorruptDataError,
        OSError: UnknownIOError,
    }

    for exc_type, error_cls in exception_mapping.items():
        if isinstance(exception, exc_type):
            return error_cls(detail=str(exception), original_error=exception)

    return JournalError(default_code, detail=str(exception), original_error=exception)

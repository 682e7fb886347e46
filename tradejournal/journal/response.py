"""
Journal Response Envelope

Every store operation returns an ApiResponse instead of raising, so all
consumers branch on ``success`` before reading ``data``. The
``returns_envelope`` decorator is the boundary where journal errors and
stray filesystem errors are turned into failed responses.
"""

import logging
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

from tradejournal.core.errors import JournalError, wrap_exception

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_timestamp() -> str:
    """Get current ISO timestamp with Z suffix."""
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + "Z"


class ApiResponse(BaseModel, Generic[T]):
    """
    Standard response wrapper.

    ``code`` carries the error code of a failure (e.g. ``DATA_2001`` for a
    missing entity) so callers can tell failure kinds apart.
    """

    success: bool = Field(..., description="Whether the operation succeeded")
    data: Optional[T] = Field(default=None, description="Response payload")
    error: Optional[str] = Field(default=None, description="Error message if failed")
    code: Optional[str] = Field(default=None, description="Error code if failed")
    timestamp: str = Field(default_factory=get_timestamp, description="ISO timestamp of response")

    # Set on failures only; excluded from serialization.
    exception: Optional[JournalError] = Field(default=None, exclude=True, repr=False)

    model_config = {"arbitrary_types_allowed": True}

    def unwrap(self) -> T:
        """Return ``data`` or raise the error carried by a failed response."""
        if not self.success:
            if self.exception is not None:
                raise self.exception
            raise JournalError(detail=self.error)
        return self.data  # type: ignore[return-value]

    @property
    def http_status(self) -> int:
        if self.success:
            return 200
        return self.exception.http_status if self.exception is not None else 500

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def ok(data: Any = None) -> ApiResponse:
    return ApiResponse(success=True, data=data)


def fail(error: JournalError) -> ApiResponse:
    return ApiResponse(
        success=False,
        error=error.user_message,
        code=error.code,
        exception=error,
    )


def returns_envelope(func: Callable[..., Any]) -> Callable[..., ApiResponse]:
    """
    Wrap a store method so it returns an ApiResponse.

    JournalError subclasses become failed responses with their code; any
    other OSError is wrapped as an unknown I/O failure. Other exceptions are
    programming errors and propagate.
    """

    @wraps(func)
    def wrapper(*args, **kwargs) -> ApiResponse:
        try:
            return ok(func(*args, **kwargs))
        except JournalError as e:
            e.log()
            return fail(e)
        except OSError as e:
            error = wrap_exception(e)
            logger.error(f"{func.__qualname__} failed: {error.technical_message}")
            return fail(error)

    return wrapper

"""
API Envelope and Error Mapping

Every response, success or failure, uses the same envelope:

    {"success": ..., "data": ..., "error": ..., "meta": ...,
     "request_id": ..., "timestamp": ...}

Scheduling errors raised by the engine are translated here into an HTTP
status and a stable error code.
"""

import secrets
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from ..scheduling.base import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    SchedulingError,
    SchedulingWindowError,
    ValidationError,
)


T = TypeVar("T")


class ErrorCode(str, Enum):
    """Error codes returned in ``error.code``."""

    # 1xxx: caller identity and permissions
    INSUFFICIENT_PERMISSIONS = "AUTH_1004"

    # 2xxx: malformed input
    VALIDATION_ERROR = "VAL_2001"
    INVALID_REQUEST_BODY = "VAL_2002"

    # 3xxx: resources
    RESOURCE_NOT_FOUND = "RES_3001"
    RESOURCE_CONFLICT = "RES_3003"

    # 5xxx: server side
    INTERNAL_ERROR = "SRV_5001"

    # 6xxx: booking rules
    INVALID_STATE_TRANSITION = "BIZ_6001"
    OPERATION_NOT_ALLOWED = "BIZ_6002"
    OUTSIDE_BOOKING_WINDOW = "BIZ_6005"


# =============================================================================
# Envelope Models
# =============================================================================


class APIError(BaseModel):
    """The ``error`` member of a failed response."""

    model_config = ConfigDict(use_enum_values=True)

    code: ErrorCode
    message: str
    details: Optional[Dict[str, Any]] = None
    field: Optional[str] = Field(default=None, description="Offending input field, if known")
    request_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class APIResponse(BaseModel, Generic[T]):
    """Response envelope; ``data`` carries the payload on success."""

    success: bool = True
    data: Optional[T] = None
    error: Optional[APIError] = None
    meta: Optional[Dict[str, Any]] = Field(default=None, description="Counts and echoed filters")
    request_id: str = Field(default_factory=lambda: generate_request_id())
    timestamp: datetime = Field(default_factory=datetime.utcnow)


# =============================================================================
# Exceptions
# =============================================================================


class APIException(Exception):
    """An error already resolved to its HTTP status and error code."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        self.field = field

    def to_error(self, request_id: Optional[str] = None) -> APIError:
        return APIError(
            code=self.code,
            message=self.message,
            details=self.details,
            field=self.field,
            request_id=request_id,
        )

    @classmethod
    def from_scheduling_error(cls, exc: SchedulingError) -> "APIException":
        """Resolve an engine error; unknown subclasses become BIZ_6002 / 400."""
        code, status_code = ERROR_MAPPING.get(type(exc), (ErrorCode.OPERATION_NOT_ALLOWED, 400))
        return cls(
            code=code,
            message=exc.message,
            status_code=status_code,
            details=exc.details or None,
            field=getattr(exc, "field", None),
        )


ERROR_MAPPING: Dict[Type[SchedulingError], Tuple[ErrorCode, int]] = {
    ValidationError: (ErrorCode.VALIDATION_ERROR, 422),
    NotFoundError: (ErrorCode.RESOURCE_NOT_FOUND, 404),
    SchedulingWindowError: (ErrorCode.OUTSIDE_BOOKING_WINDOW, 422),
    ConflictError: (ErrorCode.RESOURCE_CONFLICT, 409),
    InvalidTransitionError: (ErrorCode.INVALID_STATE_TRANSITION, 409),
    PermissionDeniedError: (ErrorCode.INSUFFICIENT_PERMISSIONS, 403),
}


# =============================================================================
# Helpers
# =============================================================================


def generate_request_id() -> str:
    """``req_<epoch millis>_<16 hex>``"""
    return f"req_{int(time.time() * 1000)}_{secrets.token_hex(8)}"


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """The engine works in naive UTC; aware inputs are converted then stripped."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _envelope(
    success: bool,
    data: Any = None,
    error: Optional[Dict[str, Any]] = None,
    meta: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "success": success,
        "data": data,
        "error": error,
        "meta": meta,
        "request_id": request_id or generate_request_id(),
        "timestamp": datetime.utcnow().isoformat(),
    }


def success_response(
    data: Any,
    meta: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    return _envelope(True, data=data, meta=meta, request_id=request_id)


def error_response(error: APIException, request_id: Optional[str] = None) -> Dict[str, Any]:
    return _envelope(
        False,
        error=error.to_error(request_id).model_dump(mode="json"),
        request_id=request_id,
    )


__all__ = [
    "ErrorCode",
    "APIError",
    "APIResponse",
    "APIException",
    "ERROR_MAPPING",
    "generate_request_id",
    "to_naive_utc",
    "success_response",
    "error_response",
]

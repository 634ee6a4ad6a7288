"""
REST API for the booking engine.

Usage:
    from booking_core.api import create_app

    app = create_app()
"""

from .app import build_scheduling, create_app, run_server
from .base import (
    APIError,
    APIException,
    APIResponse,
    ErrorCode,
    error_response,
    success_response,
)

__all__ = [
    "create_app",
    "build_scheduling",
    "run_server",
    "APIError",
    "APIException",
    "APIResponse",
    "ErrorCode",
    "success_response",
    "error_response",
]

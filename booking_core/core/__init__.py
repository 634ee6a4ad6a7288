"""Core infrastructure shared by the API and storage layers."""

from .logging import (
    LogFormat,
    bind_request_context,
    clear_request_context,
    get_logger,
    setup_logging,
)

__all__ = [
    "LogFormat",
    "setup_logging",
    "get_logger",
    "bind_request_context",
    "clear_request_context",
]

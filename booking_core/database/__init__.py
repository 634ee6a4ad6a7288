"""SQL persistence for the scheduling engine."""

from .base import Base, DatabaseManager, TimestampMixin
from .repositories import (
    SQLAppointmentRepository,
    SQLProviderRepository,
    SQLServiceRepository,
)

__all__ = [
    "Base",
    "DatabaseManager",
    "TimestampMixin",
    "SQLProviderRepository",
    "SQLServiceRepository",
    "SQLAppointmentRepository",
]

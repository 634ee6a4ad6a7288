"""
Scheduling Base Types Module

This module defines core types for provider schedules, schedule exceptions,
slot configuration, appointments and the booking error taxonomy.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional


# =============================================================================
# Enums
# =============================================================================


class AppointmentStatus(str, Enum):
    """Status of an appointment."""

    PENDING = "PENDING"  # Awaiting confirmation
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"


class DayOfWeek(str, Enum):
    """Days of the week."""

    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @classmethod
    def from_date(cls, d: date) -> "DayOfWeek":
        """Get the day of week for a calendar date."""
        return list(cls)[d.weekday()]


class ScheduleExceptionType(str, Enum):
    """Kinds of date-specific schedule overrides."""

    DAY_OFF = "DAY_OFF"
    SPECIAL_HOURS = "SPECIAL_HOURS"


# =============================================================================
# Helpers
# =============================================================================


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:18]}"


def _iso(value: Optional[Any]) -> Optional[str]:
    return value.isoformat() if value is not None else None


# =============================================================================
# Catalogue Types
# =============================================================================


@dataclass
class Provider:
    """A service professional whose time is scheduled."""

    id: str
    name: str
    email: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self):
        if not self.id:
            self.id = _new_id("prov")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class Service:
    """A bookable service offered by exactly one provider."""

    id: str
    provider_id: str
    name: str
    duration_minutes: int
    price: Decimal = Decimal("0")
    description: str = ""
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self):
        if not self.id:
            self.id = _new_id("svc")
        if not isinstance(self.price, Decimal):
            self.price = Decimal(str(self.price))

    def snapshot(self) -> "ServiceSnapshot":
        """Capture the booking-relevant attributes of this service."""
        return ServiceSnapshot(
            service_id=self.id,
            name=self.name,
            duration_minutes=self.duration_minutes,
            price=self.price,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "provider_id": self.provider_id,
            "name": self.name,
            "description": self.description,
            "duration_minutes": self.duration_minutes,
            "price": str(self.price),
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class ServiceSnapshot:
    """Service attributes frozen at booking time."""

    service_id: str
    name: str
    duration_minutes: int
    price: Decimal

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "service_id": self.service_id,
            "name": self.name,
            "duration_minutes": self.duration_minutes,
            "price": str(self.price),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServiceSnapshot":
        """Create from dictionary."""
        return cls(
            service_id=data["service_id"],
            name=data.get("name", ""),
            duration_minutes=int(data["duration_minutes"]),
            price=Decimal(str(data["price"])),
        )


# =============================================================================
# Schedule Types
# =============================================================================


@dataclass
class WorkSchedule:
    """Recurring weekly working hours for one day of the week."""

    id: str
    provider_id: str
    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    is_active: bool = True

    def __post_init__(self):
        if not self.id:
            self.id = _new_id("wsch")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "provider_id": self.provider_id,
            "day_of_week": self.day_of_week.value,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "is_active": self.is_active,
        }


@dataclass
class ScheduleException:
    """
    A date-specific override of the weekly schedule.

    DAY_OFF carries no hours. SPECIAL_HOURS carries start_time/end_time that
    replace the weekly entry for that date.
    """

    id: str
    provider_id: str
    exception_date: date
    type: ScheduleExceptionType
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = None

    def __post_init__(self):
        if not self.id:
            self.id = _new_id("sexc")

    @property
    def is_day_off(self) -> bool:
        return self.type == ScheduleExceptionType.DAY_OFF

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "provider_id": self.provider_id,
            "exception_date": self.exception_date.isoformat(),
            "type": self.type.value,
            "start_time": _iso(self.start_time),
            "end_time": _iso(self.end_time),
            "reason": self.reason,
        }


@dataclass
class TimeSlotConfig:
    """Slot grid and booking horizon settings."""

    slot_duration_minutes: int = 30
    buffer_time_minutes: int = 0
    booking_lead_days: int = 0
    booking_ahead_days: int = 30

    # None marks the global default
    provider_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "provider_id": self.provider_id,
            "slot_duration_minutes": self.slot_duration_minutes,
            "buffer_time_minutes": self.buffer_time_minutes,
            "booking_lead_days": self.booking_lead_days,
            "booking_ahead_days": self.booking_ahead_days,
        }


@dataclass
class WeeklySchedule:
    """Read model combining the regular schedule with its exceptions."""

    provider_id: str
    provider_name: str
    regular_schedule: List[WorkSchedule] = field(default_factory=list)
    exceptions: List[ScheduleException] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "provider_id": self.provider_id,
            "provider_name": self.provider_name,
            "regular_schedule": [w.to_dict() for w in self.regular_schedule],
            "exceptions": [e.to_dict() for e in self.exceptions],
        }


# =============================================================================
# Time Slot Types
# =============================================================================


@dataclass(frozen=True)
class Interval:
    """A half-open [start, end) working window on one date."""

    start: datetime
    end: datetime

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def contains(self, start: datetime, end: datetime) -> bool:
        """Check if [start, end) lies entirely within this interval."""
        return self.start <= start and end <= self.end


@dataclass(frozen=True)
class TimeSlot:
    """A candidate bookable window. Never persisted."""

    start_time: datetime
    end_time: datetime
    duration_minutes: int
    available: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_minutes": self.duration_minutes,
            "available": self.available,
        }


# =============================================================================
# Appointment Types
# =============================================================================


@dataclass
class Appointment:
    """An appointment/booking."""

    id: str
    client_id: str
    provider_id: str
    start_time: datetime
    services: List[ServiceSnapshot] = field(default_factory=list)

    # Status
    status: AppointmentStatus = AppointmentStatus.PENDING
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    notes: Optional[str] = None

    # Metadata
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self):
        if not self.id:
            self.id = _new_id("appt")

    @property
    def duration_minutes(self) -> int:
        """Get appointment duration in minutes."""
        return sum(s.duration_minutes for s in self.services)

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration_minutes)

    @property
    def total_price(self) -> Decimal:
        return sum((s.price for s in self.services), Decimal("0"))

    @property
    def service_ids(self) -> List[str]:
        return [s.service_id for s in self.services]

    @property
    def is_cancelled(self) -> bool:
        """Check if appointment is cancelled."""
        return self.status == AppointmentStatus.CANCELLED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "client_id": self.client_id,
            "provider_id": self.provider_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_minutes": self.duration_minutes,
            "status": self.status.value,
            "services": [s.to_dict() for s in self.services],
            "total_price": str(self.total_price),
            "notes": self.notes,
            "confirmed_at": _iso(self.confirmed_at),
            "cancelled_at": _iso(self.cancelled_at),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass
class AppointmentUpdate:
    """Partial update of an appointment. None means "leave unchanged"."""

    start_time: Optional[datetime] = None
    service_ids: Optional[List[str]] = None
    notes: Optional[str] = None
    status: Optional[AppointmentStatus] = None

    @property
    def touches_timing(self) -> bool:
        return self.start_time is not None or self.service_ids is not None


@dataclass(frozen=True)
class Actor:
    """The caller on whose behalf an administrative mutation runs."""

    id: Optional[str] = None
    roles: frozenset = frozenset()

    def has_role(self, role: str) -> bool:
        return role in self.roles


# =============================================================================
# Exceptions
# =============================================================================


class SchedulingError(Exception):
    """Base exception for scheduling errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(SchedulingError):
    """Malformed input."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.field = field


class NotFoundError(SchedulingError):
    """Unknown provider, service, appointment or exception."""

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            {"resource_type": resource_type, "resource_id": str(resource_id)},
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class SchedulingWindowError(SchedulingError):
    """Requested time falls outside the working interval or booking horizon."""

    def __init__(self, message: str, bound: str, limit: Optional[Any] = None):
        details: Dict[str, Any] = {"bound": bound}
        if limit is not None:
            details["limit"] = limit.isoformat() if hasattr(limit, "isoformat") else limit
        super().__init__(message, details)
        self.bound = bound
        self.limit = limit


class ConflictError(SchedulingError):
    """Time window is no longer available."""
    pass


class InvalidTransitionError(SchedulingError):
    """Illegal appointment lifecycle change."""

    def __init__(
        self,
        current: AppointmentStatus,
        target: Optional[AppointmentStatus] = None,
        message: Optional[str] = None,
    ):
        if message is None:
            target_label = target.value if target else "edit"
            message = f"Cannot move appointment from {current.value} to {target_label}"
        super().__init__(
            message,
            {"current": current.value, "target": target.value if target else None},
        )
        self.current = current
        self.target = target


class PermissionDeniedError(SchedulingError):
    """The authorization collaborator refused the mutation."""
    pass


# =============================================================================
# Exports
# =============================================================================


__all__ = [
    # Enums
    "AppointmentStatus",
    "DayOfWeek",
    "ScheduleExceptionType",
    # Catalogue types
    "Provider",
    "Service",
    "ServiceSnapshot",
    # Schedule types
    "WorkSchedule",
    "ScheduleException",
    "TimeSlotConfig",
    "WeeklySchedule",
    # Slot types
    "Interval",
    "TimeSlot",
    # Appointment types
    "Appointment",
    "AppointmentUpdate",
    "Actor",
    # Exceptions
    "SchedulingError",
    "ValidationError",
    "NotFoundError",
    "SchedulingWindowError",
    "ConflictError",
    "InvalidTransitionError",
    "PermissionDeniedError",
]

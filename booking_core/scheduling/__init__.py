"""
Scheduling Module

Availability and booking engine for appointment scheduling.

Features:
- Schedule Management: weekly working hours, days off and special hours
- Time Slot Generation: fixed-grid candidates with buffer-aware conflict checks
- Appointment Booking: create, reschedule, confirm and cancel appointments
- Service Catalogue: per-provider services snapshotted at booking time

Example usage:

    from booking_core.scheduling import (
        AppointmentUpdate,
        AppointmentStatus,
        DayOfWeek,
        SchedulingService,
        WorkSchedule,
    )
    from datetime import date, datetime, time
    from decimal import Decimal

    service = SchedulingService.in_memory()

    provider = await service.schedules.register_provider("Dr. Smith")
    await service.schedules.set_work_schedule(
        provider.id,
        [WorkSchedule("", provider.id, DayOfWeek.MONDAY, time(9), time(17))],
    )
    haircut = await service.schedules.create_service(
        provider.id, "Haircut", duration_minutes=30, price=Decimal("25.00"),
    )

    slots = await service.booking.get_availability(provider.id, date(2024, 1, 15))

    appointment = await service.booking.create(
        client_id="client_1",
        provider_id=provider.id,
        start_time=datetime(2024, 1, 15, 10, 0),
        service_ids=[haircut.id],
    )

    await service.booking.update(
        appointment.id,
        AppointmentUpdate(status=AppointmentStatus.CONFIRMED),
    )
    await service.booking.cancel(appointment.id)
"""

# Base types and enums
from .base import (
    # Enums
    AppointmentStatus,
    DayOfWeek,
    ScheduleExceptionType,
    # Catalogue types
    Provider,
    Service,
    ServiceSnapshot,
    # Schedule types
    WorkSchedule,
    ScheduleException,
    TimeSlotConfig,
    WeeklySchedule,
    # Slot types
    Interval,
    TimeSlot,
    # Appointment types
    Appointment,
    AppointmentUpdate,
    Actor,
    # Exceptions
    SchedulingError,
    ValidationError,
    NotFoundError,
    SchedulingWindowError,
    ConflictError,
    InvalidTransitionError,
    PermissionDeniedError,
)

# Collaborators
from .interfaces import (
    ProviderRepository,
    ServiceRepository,
    AppointmentRepository,
    AuthZ,
    PermissiveAuthZ,
    RoleBasedAuthZ,
)
from .memory import (
    InMemoryProviderRepository,
    InMemoryServiceRepository,
    InMemoryAppointmentRepository,
)

# Engine components
from .calendar import ScheduleCalendar
from .slots import SlotGenerator
from .conflicts import ConflictResolver
from .lifecycle import AppointmentLifecycle, TRANSITIONS
from .locks import BookingLockManager

# Services
from .service import (
    BookingService,
    ScheduleManager,
    SchedulingService,
    validate_time_slot_config,
)


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
    # Collaborators
    "ProviderRepository",
    "ServiceRepository",
    "AppointmentRepository",
    "AuthZ",
    "PermissiveAuthZ",
    "RoleBasedAuthZ",
    "InMemoryProviderRepository",
    "InMemoryServiceRepository",
    "InMemoryAppointmentRepository",
    # Engine components
    "ScheduleCalendar",
    "SlotGenerator",
    "ConflictResolver",
    "AppointmentLifecycle",
    "TRANSITIONS",
    "BookingLockManager",
    # Services
    "BookingService",
    "ScheduleManager",
    "SchedulingService",
    "validate_time_slot_config",
    # Exceptions
    "SchedulingError",
    "ValidationError",
    "NotFoundError",
    "SchedulingWindowError",
    "ConflictError",
    "InvalidTransitionError",
    "PermissionDeniedError",
]

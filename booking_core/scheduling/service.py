"""
Scheduling Service Module

This module provides the booking engine (availability queries and the
create/update/cancel commit protocol) and the administrative schedule
manager used to maintain working hours, exceptions, slot configuration and
the service catalogue.
"""

from dataclasses import replace
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Sequence

import structlog

from .base import (
    # Enums
    AppointmentStatus,
    ScheduleExceptionType,
    # Types
    Actor,
    Appointment,
    AppointmentUpdate,
    Interval,
    Provider,
    ScheduleException,
    Service,
    ServiceSnapshot,
    TimeSlot,
    TimeSlotConfig,
    WeeklySchedule,
    WorkSchedule,
    # Exceptions
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    SchedulingWindowError,
    ValidationError,
)
from .calendar import ScheduleCalendar
from .conflicts import ConflictResolver
from .interfaces import (
    AppointmentRepository,
    AuthZ,
    PermissiveAuthZ,
    ProviderRepository,
    ServiceRepository,
)
from .lifecycle import INITIAL_STATE, AppointmentLifecycle
from .locks import BookingLockManager
from .slots import SlotGenerator


logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


# =============================================================================
# Validation Helpers
# =============================================================================


def validate_time_slot_config(config: TimeSlotConfig) -> None:
    """Raise ValidationError for an unusable slot configuration."""
    if config.slot_duration_minutes <= 0:
        raise ValidationError(
            "slot_duration_minutes must be positive", field="slot_duration_minutes"
        )
    for name in ("buffer_time_minutes", "booking_lead_days", "booking_ahead_days"):
        if getattr(config, name) < 0:
            raise ValidationError(f"{name} must not be negative", field=name)


def validate_hours(start: Optional[time], end: Optional[time], field: str) -> None:
    """Raise ValidationError unless start < end."""
    if start is None or end is None:
        raise ValidationError("Both start_time and end_time are required", field=field)
    if start >= end:
        raise ValidationError(
            f"start_time {start.isoformat()} must be before end_time {end.isoformat()}",
            field=field,
        )


# =============================================================================
# Booking Service
# =============================================================================


class BookingService:
    """
    Availability queries and booking commands for providers.

    Reads are lock free. Every write runs its final availability check and
    the save under the provider-date lock, so two requests racing for the
    same window cannot both succeed.
    """

    def __init__(
        self,
        providers: ProviderRepository,
        services: ServiceRepository,
        appointments: AppointmentRepository,
        authz: Optional[AuthZ] = None,
        default_config: Optional[TimeSlotConfig] = None,
        clock: Optional[Clock] = None,
        locks: Optional[BookingLockManager] = None,
    ):
        self._providers = providers
        self._services = services
        self._appointments = appointments
        self._authz = authz or PermissiveAuthZ()
        self._default_config = default_config or TimeSlotConfig()
        self._clock = clock or datetime.utcnow
        self._locks = locks or BookingLockManager()

        self._calendar = ScheduleCalendar(providers)
        self._slot_generator = SlotGenerator()
        self._conflicts = ConflictResolver()
        self._lifecycle = AppointmentLifecycle()

    @property
    def locks(self) -> BookingLockManager:
        return self._locks

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def get_config(self, provider_id: str) -> TimeSlotConfig:
        """Get the provider's slot config, falling back to the global default."""
        config = await self._providers.get_config(provider_id)
        return config or self._default_config

    async def get_availability(
        self,
        provider_id: str,
        on_date: date,
        requested_duration_minutes: Optional[int] = None,
    ) -> List[TimeSlot]:
        """
        Get the slot grid of a provider for one date.

        Args:
            provider_id: Provider to query
            on_date: Calendar date
            requested_duration_minutes: Length of the window to test;
                defaults to the slot grid step

        Returns:
            Slots in start order, each flagged available or not. Empty when
            the provider does not work that day or the date lies beyond the
            booking horizon.
        """
        await self._require_provider(provider_id)

        if requested_duration_minutes is not None and requested_duration_minutes <= 0:
            raise ValidationError(
                "Requested duration must be a positive number of minutes",
                field="requested_duration_minutes",
            )

        config = await self.get_config(provider_id)
        now = self._clock()

        if on_date > self._horizon_end(config, now):
            return []

        interval = await self._calendar.resolve_interval(provider_id, on_date)
        if interval is None:
            return []

        candidates = self._slot_generator.generate(
            interval, config, requested_duration_minutes, now
        )
        existing = await self._appointments.find_overlapping(provider_id, on_date)

        return self._conflicts.filter(candidates, existing, config.buffer_time_minutes)

    async def get_appointment(self, appointment_id: str) -> Appointment:
        """Get appointment by ID."""
        return await self._require_appointment(appointment_id)

    async def list_client_appointments(self, client_id: str) -> List[Appointment]:
        return await self._appointments.list_by_client(client_id)

    async def list_provider_appointments(self, provider_id: str) -> List[Appointment]:
        await self._require_provider(provider_id)
        return await self._appointments.list_by_provider(provider_id)

    async def list_appointments_between(
        self,
        start_date: date,
        end_date: date,
    ) -> List[Appointment]:
        """List appointments starting within [start_date, end_date]."""
        if end_date < start_date:
            raise ValidationError("end_date must not be before start_date", field="end_date")
        return await self._appointments.list_between(start_date, end_date)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    async def create(
        self,
        client_id: str,
        provider_id: str,
        start_time: datetime,
        service_ids: Sequence[str],
        notes: Optional[str] = None,
    ) -> Appointment:
        """
        Book a new appointment.

        Raises:
            ValidationError: empty/duplicate/inactive services, missing client
            NotFoundError: unknown provider or service
            SchedulingWindowError: outside working hours or booking horizon
            ConflictError: window already taken
        """
        if not client_id:
            raise ValidationError("client_id is required", field="client_id")

        await self._require_provider(provider_id)
        snapshots = await self._resolve_services(provider_id, service_ids)
        end_time = start_time + timedelta(minutes=sum(s.duration_minutes for s in snapshots))

        config = await self.get_config(provider_id)
        now = self._clock()

        await self._check_window(provider_id, start_time, end_time, config, now)
        await self._check_availability(provider_id, start_time, end_time, config, now)

        async with self._locks.hold(provider_id, start_time.date()):
            await self._check_availability(provider_id, start_time, end_time, config, now)

            appointment = Appointment(
                id="",
                client_id=client_id,
                provider_id=provider_id,
                start_time=start_time,
                services=snapshots,
                status=INITIAL_STATE,
                notes=notes,
                created_at=now,
                updated_at=now,
            )
            await self._appointments.save(appointment)

        logger.info(
            "appointment_created",
            appointment_id=appointment.id,
            provider_id=provider_id,
            client_id=client_id,
            start_time=start_time.isoformat(),
            end_time=end_time.isoformat(),
        )
        return appointment

    async def update(
        self,
        appointment_id: str,
        changes: AppointmentUpdate,
        actor: Optional[Actor] = None,
    ) -> Appointment:
        """
        Apply a partial update.

        Notes-only edits skip the availability check. Start time or service
        changes are revalidated like a new booking, ignoring the appointment
        itself. Status changes go through the lifecycle state machine.
        Changes are applied to a copy and saved once.
        """
        current = await self._require_appointment(appointment_id)

        if changes.status is not None:
            allowed = await self._authz.can_mutate_appointment_status(
                actor, appointment_id, changes.status
            )
            if not allowed:
                raise PermissionDeniedError(
                    f"Not allowed to change the status of appointment {appointment_id}",
                    {"appointment_id": appointment_id, "target": changes.status.value},
                )

        new_start = changes.start_time or current.start_time
        lock_dates = {current.start_time.date(), new_start.date()}

        async with self._locks.hold(current.provider_id, *lock_dates):
            current = await self._require_appointment(appointment_id)
            if current.start_time.date() not in lock_dates:
                raise ConflictError(
                    f"Appointment {appointment_id} was rescheduled concurrently",
                    {"appointment_id": appointment_id},
                )

            now = self._clock()
            updated = current

            if changes.touches_timing:
                updated = await self._reschedule(updated, changes, now)

            if changes.notes is not None:
                updated = replace(updated, notes=changes.notes, updated_at=now)

            if changes.status is not None:
                updated = self._lifecycle.apply(updated, changes.status, now)

            if updated is current:
                return current

            await self._appointments.save(updated)

        logger.info(
            "appointment_updated",
            appointment_id=appointment_id,
            rescheduled=changes.touches_timing,
            status=updated.status.value,
        )
        return updated

    async def cancel(
        self,
        appointment_id: str,
        actor: Optional[Actor] = None,
    ) -> Appointment:
        """Cancel an appointment. Cancelling twice raises InvalidTransitionError."""
        return await self.update(
            appointment_id,
            AppointmentUpdate(status=AppointmentStatus.CANCELLED),
            actor=actor,
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _reschedule(
        self,
        appointment: Appointment,
        changes: AppointmentUpdate,
        now: datetime,
    ) -> Appointment:
        self._lifecycle.ensure_editable(appointment)

        snapshots = appointment.services
        if changes.service_ids is not None:
            snapshots = await self._resolve_services(appointment.provider_id, changes.service_ids)

        start_time = changes.start_time or appointment.start_time
        end_time = start_time + timedelta(minutes=sum(s.duration_minutes for s in snapshots))

        config = await self.get_config(appointment.provider_id)
        await self._check_window(appointment.provider_id, start_time, end_time, config, now)
        await self._check_availability(
            appointment.provider_id,
            start_time,
            end_time,
            config,
            now,
            exclude_appointment_id=appointment.id,
        )

        return replace(
            appointment,
            start_time=start_time,
            services=list(snapshots),
            updated_at=now,
        )

    async def _require_provider(self, provider_id: str) -> Provider:
        provider = await self._providers.get_provider(provider_id)
        if provider is None:
            raise NotFoundError("Provider", provider_id)
        return provider

    async def _require_appointment(self, appointment_id: str) -> Appointment:
        appointment = await self._appointments.get_by_id(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment", appointment_id)
        return appointment

    async def _resolve_services(
        self,
        provider_id: str,
        service_ids: Sequence[str],
    ) -> List[ServiceSnapshot]:
        service_ids = list(service_ids)
        if not service_ids:
            raise ValidationError("At least one service must be selected", field="service_ids")

        duplicates = sorted({sid for sid in service_ids if service_ids.count(sid) > 1})
        if duplicates:
            raise ValidationError(
                "A service may only be selected once",
                field="service_ids",
                details={"duplicates": duplicates},
            )

        active = {
            s.id: s for s in await self._services.get_active_services(provider_id, service_ids)
        }

        for service_id in service_ids:
            if service_id in active:
                continue
            service = await self._services.get_service(service_id)
            if service is None:
                raise NotFoundError("Service", service_id)
            if service.provider_id != provider_id:
                raise ValidationError(
                    f"Service '{service_id}' is not offered by provider '{provider_id}'",
                    field="service_ids",
                )
            raise ValidationError(f"Service '{service_id}' is not active", field="service_ids")

        snapshots = [active[sid].snapshot() for sid in service_ids]
        for snapshot in snapshots:
            if snapshot.duration_minutes <= 0:
                raise ValidationError(
                    f"Service '{snapshot.service_id}' has no positive duration",
                    field="service_ids",
                )
        return snapshots

    @staticmethod
    def _horizon_end(config: TimeSlotConfig, now: datetime) -> date:
        return (now + timedelta(days=config.booking_ahead_days)).date()

    async def _check_window(
        self,
        provider_id: str,
        start_time: datetime,
        end_time: datetime,
        config: TimeSlotConfig,
        now: datetime,
    ) -> Interval:
        earliest = now + timedelta(days=config.booking_lead_days)
        if start_time < earliest:
            raise SchedulingWindowError(
                f"Appointments must start at or after {earliest.isoformat()}",
                bound="booking_lead_days",
                limit=earliest,
            )

        horizon = self._horizon_end(config, now)
        if start_time.date() > horizon:
            raise SchedulingWindowError(
                f"Appointments cannot be booked beyond {horizon.isoformat()}",
                bound="booking_ahead_days",
                limit=horizon,
            )

        interval = await self._calendar.resolve_interval(provider_id, start_time.date())
        if interval is None:
            raise SchedulingWindowError(
                f"Provider is not working on {start_time.date().isoformat()}",
                bound="working_hours",
            )

        if not interval.contains(start_time, end_time):
            raise SchedulingWindowError(
                f"Requested time must fall within working hours "
                f"{interval.start.time().isoformat()}-{interval.end.time().isoformat()}",
                bound="working_hours",
                limit=f"{interval.start.isoformat()}/{interval.end.isoformat()}",
            )
        return interval

    async def _check_availability(
        self,
        provider_id: str,
        start_time: datetime,
        end_time: datetime,
        config: TimeSlotConfig,
        now: datetime,
        exclude_appointment_id: Optional[str] = None,
    ) -> None:
        duration = int((end_time - start_time).total_seconds() // 60)
        window = Interval(start=start_time, end=end_time)

        candidates = self._slot_generator.generate(window, config, duration, now)
        existing = await self._appointments.find_overlapping(provider_id, start_time.date())
        checked = self._conflicts.filter(
            candidates, existing, config.buffer_time_minutes, exclude_appointment_id
        )

        if checked and checked[0].available:
            return

        blocking = self._conflicts.find_conflicts(
            start_time,
            end_time,
            existing,
            config.buffer_time_minutes,
            exclude_appointment_id,
        )
        logger.info(
            "booking_conflict",
            provider_id=provider_id,
            start_time=start_time.isoformat(),
            end_time=end_time.isoformat(),
            conflicting=[a.id for a in blocking],
        )
        raise ConflictError(
            "Requested time is no longer available",
            {
                "start_time": start_time.isoformat(),
                "end_time": end_time.isoformat(),
                "conflicting_appointment_ids": [a.id for a in blocking],
            },
        )


# =============================================================================
# Schedule Manager
# =============================================================================


class ScheduleManager:
    """Administrative maintenance of providers, schedules and services."""

    def __init__(
        self,
        providers: ProviderRepository,
        services: ServiceRepository,
        authz: Optional[AuthZ] = None,
        default_config: Optional[TimeSlotConfig] = None,
    ):
        self._providers = providers
        self._services = services
        self._authz = authz or PermissiveAuthZ()
        self._default_config = default_config or TimeSlotConfig()

    async def _authorize(self, actor: Optional[Actor], provider_id: str) -> None:
        if not await self._authz.can_mutate_schedule(actor, provider_id):
            raise PermissionDeniedError(
                f"Not allowed to modify provider {provider_id}",
                {"provider_id": provider_id},
            )

    async def _require_provider(self, provider_id: str) -> Provider:
        provider = await self._providers.get_provider(provider_id)
        if provider is None:
            raise NotFoundError("Provider", provider_id)
        return provider

    # Providers

    async def register_provider(
        self,
        name: str,
        email: Optional[str] = None,
        actor: Optional[Actor] = None,
        provider_id: str = "",
    ) -> Provider:
        """Create a new provider."""
        if not name or not name.strip():
            raise ValidationError("Provider name is required", field="name")

        provider = Provider(id=provider_id, name=name.strip(), email=email)
        await self._authorize(actor, provider.id)
        await self._providers.save_provider(provider)

        logger.info("provider_registered", provider_id=provider.id)
        return provider

    async def get_provider(self, provider_id: str) -> Provider:
        return await self._require_provider(provider_id)

    # Weekly schedule

    async def set_work_schedule(
        self,
        provider_id: str,
        entries: Iterable[WorkSchedule],
        actor: Optional[Actor] = None,
    ) -> WeeklySchedule:
        """
        Upsert weekly schedule entries, one per day of week.

        All entries are validated before any is written.
        """
        await self._require_provider(provider_id)
        await self._authorize(actor, provider_id)

        entries = list(entries)
        seen = set()
        for entry in entries:
            if entry.day_of_week in seen:
                raise ValidationError(
                    f"{entry.day_of_week.value} appears more than once",
                    field="day_of_week",
                )
            seen.add(entry.day_of_week)
            validate_hours(entry.start_time, entry.end_time, field=entry.day_of_week.value)

        for entry in entries:
            await self._providers.save_work_schedule(replace(entry, provider_id=provider_id))

        logger.info(
            "work_schedule_updated",
            provider_id=provider_id,
            days=[e.day_of_week.value for e in entries],
        )
        return await self.get_weekly_schedule(provider_id)

    async def get_weekly_schedule(
        self,
        provider_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> WeeklySchedule:
        """Get the regular schedule plus exceptions in the given range."""
        provider = await self._require_provider(provider_id)
        return WeeklySchedule(
            provider_id=provider.id,
            provider_name=provider.name,
            regular_schedule=await self._providers.list_work_schedules(provider_id),
            exceptions=await self._providers.list_exceptions(provider_id, start_date, end_date),
        )

    # Exceptions

    async def add_exception(
        self,
        provider_id: str,
        exception_date: date,
        exception_type: ScheduleExceptionType,
        start_time: Optional[time] = None,
        end_time: Optional[time] = None,
        reason: Optional[str] = None,
        actor: Optional[Actor] = None,
    ) -> ScheduleException:
        """Add a day off or special hours for one date."""
        await self._require_provider(provider_id)
        await self._authorize(actor, provider_id)

        if await self._providers.get_exception(provider_id, exception_date) is not None:
            raise ValidationError(
                f"An exception already exists for {exception_date.isoformat()}",
                field="exception_date",
            )

        exception = self._build_exception(
            "", provider_id, exception_date, exception_type, start_time, end_time, reason
        )
        await self._providers.save_exception(exception)

        logger.info(
            "schedule_exception_added",
            provider_id=provider_id,
            exception_id=exception.id,
            date=exception_date.isoformat(),
            type=exception_type.value,
        )
        return exception

    async def update_exception(
        self,
        exception_id: str,
        exception_date: date,
        exception_type: ScheduleExceptionType,
        start_time: Optional[time] = None,
        end_time: Optional[time] = None,
        reason: Optional[str] = None,
        actor: Optional[Actor] = None,
    ) -> ScheduleException:
        """Replace an existing exception."""
        current = await self._providers.get_exception_by_id(exception_id)
        if current is None:
            raise NotFoundError("ScheduleException", exception_id)
        await self._authorize(actor, current.provider_id)

        other = await self._providers.get_exception(current.provider_id, exception_date)
        if other is not None and other.id != exception_id:
            raise ValidationError(
                f"An exception already exists for {exception_date.isoformat()}",
                field="exception_date",
            )

        exception = self._build_exception(
            exception_id,
            current.provider_id,
            exception_date,
            exception_type,
            start_time,
            end_time,
            reason,
        )
        await self._providers.save_exception(exception)

        logger.info("schedule_exception_updated", exception_id=exception_id)
        return exception

    async def delete_exception(
        self,
        exception_id: str,
        actor: Optional[Actor] = None,
    ) -> None:
        current = await self._providers.get_exception_by_id(exception_id)
        if current is None:
            raise NotFoundError("ScheduleException", exception_id)
        await self._authorize(actor, current.provider_id)

        await self._providers.delete_exception(exception_id)
        logger.info("schedule_exception_deleted", exception_id=exception_id)

    async def list_exceptions(
        self,
        provider_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[ScheduleException]:
        await self._require_provider(provider_id)
        if start_date and end_date and end_date < start_date:
            raise ValidationError("end_date must not be before start_date", field="end_date")
        return await self._providers.list_exceptions(provider_id, start_date, end_date)

    @staticmethod
    def _build_exception(
        exception_id: str,
        provider_id: str,
        exception_date: date,
        exception_type: ScheduleExceptionType,
        start_time: Optional[time],
        end_time: Optional[time],
        reason: Optional[str],
    ) -> ScheduleException:
        if exception_type == ScheduleExceptionType.SPECIAL_HOURS:
            validate_hours(start_time, end_time, field="special_hours")
        else:
            # A day off carries no hours.
            start_time = end_time = None

        return ScheduleException(
            id=exception_id,
            provider_id=provider_id,
            exception_date=exception_date,
            type=exception_type,
            start_time=start_time,
            end_time=end_time,
            reason=reason,
        )

    # Slot configuration

    async def get_time_slot_config(self, provider_id: str) -> TimeSlotConfig:
        await self._require_provider(provider_id)
        config = await self._providers.get_config(provider_id)
        return config or replace(self._default_config, provider_id=provider_id)

    async def update_time_slot_config(
        self,
        provider_id: str,
        config: TimeSlotConfig,
        actor: Optional[Actor] = None,
    ) -> TimeSlotConfig:
        await self._require_provider(provider_id)
        await self._authorize(actor, provider_id)

        config = replace(config, provider_id=provider_id)
        validate_time_slot_config(config)
        await self._providers.save_config(config)

        logger.info("time_slot_config_updated", **config.to_dict())
        return config

    async def reset_time_slot_config(
        self,
        provider_id: str,
        actor: Optional[Actor] = None,
    ) -> TimeSlotConfig:
        """Store a copy of the global default as the provider's config."""
        return await self.update_time_slot_config(provider_id, self._default_config, actor)

    # Services

    async def create_service(
        self,
        provider_id: str,
        name: str,
        duration_minutes: int,
        price: Decimal,
        description: str = "",
        actor: Optional[Actor] = None,
    ) -> Service:
        await self._require_provider(provider_id)
        await self._authorize(actor, provider_id)

        service = Service(
            id="",
            provider_id=provider_id,
            name=name,
            duration_minutes=duration_minutes,
            price=price,
            description=description,
        )
        self._validate_service(service)
        await self._services.save_service(service)

        logger.info("service_created", service_id=service.id, provider_id=provider_id)
        return service

    async def update_service(
        self,
        service_id: str,
        name: Optional[str] = None,
        duration_minutes: Optional[int] = None,
        price: Optional[Decimal] = None,
        description: Optional[str] = None,
        actor: Optional[Actor] = None,
    ) -> Service:
        """Edit a service. Existing appointments keep their snapshots."""
        current = await self.get_service(service_id)
        await self._authorize(actor, current.provider_id)

        changes = {
            key: value
            for key, value in {
                "name": name,
                "duration_minutes": duration_minutes,
                "price": Decimal(str(price)) if price is not None else None,
                "description": description,
            }.items()
            if value is not None
        }
        service = replace(current, updated_at=datetime.utcnow(), **changes)
        self._validate_service(service)
        await self._services.save_service(service)
        return service

    async def set_service_active(
        self,
        service_id: str,
        active: bool,
        actor: Optional[Actor] = None,
    ) -> Service:
        current = await self.get_service(service_id)
        await self._authorize(actor, current.provider_id)

        service = replace(current, is_active=active, updated_at=datetime.utcnow())
        await self._services.save_service(service)

        logger.info("service_status_changed", service_id=service_id, active=active)
        return service

    async def get_service(self, service_id: str) -> Service:
        service = await self._services.get_service(service_id)
        if service is None:
            raise NotFoundError("Service", service_id)
        return service

    async def list_services(
        self,
        provider_id: Optional[str] = None,
        active_only: bool = False,
    ) -> List[Service]:
        return await self._services.list_services(provider_id, active_only)

    @staticmethod
    def _validate_service(service: Service) -> None:
        if not service.name or not service.name.strip():
            raise ValidationError("Service name is required", field="name")
        if service.duration_minutes <= 0:
            raise ValidationError("duration_minutes must be positive", field="duration_minutes")
        if service.price < 0:
            raise ValidationError("price must not be negative", field="price")


# =============================================================================
# Main Service
# =============================================================================


class SchedulingService:
    """
    Main scheduling service bundling the booking engine and the schedule manager
    over one set of repositories.
    """

    def __init__(
        self,
        providers: ProviderRepository,
        services: ServiceRepository,
        appointments: AppointmentRepository,
        authz: Optional[AuthZ] = None,
        default_config: Optional[TimeSlotConfig] = None,
        clock: Optional[Clock] = None,
    ):
        self.providers = providers
        self.services = services
        self.appointments = appointments
        self.authz = authz or PermissiveAuthZ()

        self.booking = BookingService(
            providers,
            services,
            appointments,
            authz=self.authz,
            default_config=default_config,
            clock=clock,
        )
        self.schedules = ScheduleManager(
            providers,
            services,
            authz=self.authz,
            default_config=default_config,
        )

    @classmethod
    def in_memory(
        cls,
        authz: Optional[AuthZ] = None,
        default_config: Optional[TimeSlotConfig] = None,
        clock: Optional[Clock] = None,
    ) -> "SchedulingService":
        """Build a service over fresh in-memory repositories."""
        from .memory import (
            InMemoryAppointmentRepository,
            InMemoryProviderRepository,
            InMemoryServiceRepository,
        )

        return cls(
            InMemoryProviderRepository(),
            InMemoryServiceRepository(),
            InMemoryAppointmentRepository(),
            authz=authz,
            default_config=default_config,
            clock=clock,
        )

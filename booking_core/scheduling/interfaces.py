"""
Collaborator Interfaces

Abstract persistence and authorization contracts the booking engine depends
on. Implementations live in ``booking_core.scheduling.memory`` and
``booking_core.database.repositories``.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional, Sequence

from .base import (
    Actor,
    Appointment,
    AppointmentStatus,
    DayOfWeek,
    Provider,
    ScheduleException,
    Service,
    TimeSlotConfig,
    WorkSchedule,
)


class ProviderRepository(ABC):
    """Providers and everything that shapes their working time."""

    @abstractmethod
    async def get_provider(self, provider_id: str) -> Optional[Provider]:
        ...

    @abstractmethod
    async def save_provider(self, provider: Provider) -> Provider:
        ...

    @abstractmethod
    async def get_work_schedule(
        self,
        provider_id: str,
        day_of_week: DayOfWeek,
    ) -> Optional[WorkSchedule]:
        ...

    @abstractmethod
    async def list_work_schedules(self, provider_id: str) -> List[WorkSchedule]:
        ...

    @abstractmethod
    async def save_work_schedule(self, entry: WorkSchedule) -> WorkSchedule:
        """Upsert keyed by (provider_id, day_of_week)."""

    @abstractmethod
    async def get_exception(
        self,
        provider_id: str,
        exception_date: date,
    ) -> Optional[ScheduleException]:
        ...

    @abstractmethod
    async def get_exception_by_id(self, exception_id: str) -> Optional[ScheduleException]:
        ...

    @abstractmethod
    async def list_exceptions(
        self,
        provider_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[ScheduleException]:
        ...

    @abstractmethod
    async def save_exception(self, exception: ScheduleException) -> ScheduleException:
        ...

    @abstractmethod
    async def delete_exception(self, exception_id: str) -> bool:
        ...

    @abstractmethod
    async def get_config(self, provider_id: str) -> Optional[TimeSlotConfig]:
        """Provider-specific config, or None to fall back to the global default."""

    @abstractmethod
    async def save_config(self, config: TimeSlotConfig) -> TimeSlotConfig:
        ...


class ServiceRepository(ABC):
    """Provider service catalogue."""

    @abstractmethod
    async def get_active_services(
        self,
        provider_id: str,
        service_ids: Sequence[str],
    ) -> List[Service]:
        """Return the active services of ``provider_id`` among ``service_ids``."""

    @abstractmethod
    async def get_service(self, service_id: str) -> Optional[Service]:
        ...

    @abstractmethod
    async def list_services(
        self,
        provider_id: Optional[str] = None,
        active_only: bool = False,
    ) -> List[Service]:
        ...

    @abstractmethod
    async def save_service(self, service: Service) -> Service:
        ...


class AppointmentRepository(ABC):
    """Durable appointment storage. Appointments are never deleted."""

    @abstractmethod
    async def find_overlapping(
        self,
        provider_id: str,
        on_date: date,
    ) -> List[Appointment]:
        """All appointments of the provider starting on ``on_date``, any status."""

    @abstractmethod
    async def save(self, appointment: Appointment) -> Appointment:
        ...

    @abstractmethod
    async def get_by_id(self, appointment_id: str) -> Optional[Appointment]:
        ...

    @abstractmethod
    async def list_by_client(self, client_id: str) -> List[Appointment]:
        ...

    @abstractmethod
    async def list_by_provider(self, provider_id: str) -> List[Appointment]:
        ...

    @abstractmethod
    async def list_between(self, start_date: date, end_date: date) -> List[Appointment]:
        """Appointments starting on any date in [start_date, end_date]."""


class AuthZ(ABC):
    """Authorization decisions made outside the engine."""

    @abstractmethod
    async def can_mutate_schedule(self, actor: Optional[Actor], provider_id: str) -> bool:
        ...

    @abstractmethod
    async def can_mutate_appointment_status(
        self,
        actor: Optional[Actor],
        appointment_id: str,
        target: AppointmentStatus,
    ) -> bool:
        ...


class PermissiveAuthZ(AuthZ):
    """Allows every mutation. Development and tests only."""

    async def can_mutate_schedule(self, actor: Optional[Actor], provider_id: str) -> bool:
        return True

    async def can_mutate_appointment_status(
        self,
        actor: Optional[Actor],
        appointment_id: str,
        target: AppointmentStatus,
    ) -> bool:
        return True


class RoleBasedAuthZ(AuthZ):
    """
    Admins may do anything. Providers manage their own schedule and the
    status of their own appointments; clients may only cancel appointments
    they booked.
    """

    ADMIN_ROLE = "ADMIN"
    PROVIDER_ROLE = "PROVIDER"

    CLIENT_TARGETS = frozenset({AppointmentStatus.CANCELLED})

    def __init__(self, appointments: AppointmentRepository):
        self._appointments = appointments

    async def can_mutate_schedule(self, actor: Optional[Actor], provider_id: str) -> bool:
        if actor is None:
            return False
        if actor.has_role(self.ADMIN_ROLE):
            return True
        return actor.has_role(self.PROVIDER_ROLE) and actor.id == provider_id

    async def can_mutate_appointment_status(
        self,
        actor: Optional[Actor],
        appointment_id: str,
        target: AppointmentStatus,
    ) -> bool:
        if actor is None:
            return False
        if actor.has_role(self.ADMIN_ROLE):
            return True
        appointment = await self._appointments.get_by_id(appointment_id)
        if appointment is None or actor.id is None:
            return False
        if actor.has_role(self.PROVIDER_ROLE) and appointment.provider_id == actor.id:
            return True
        return appointment.client_id == actor.id and target in self.CLIENT_TARGETS


__all__ = [
    "ProviderRepository",
    "ServiceRepository",
    "AppointmentRepository",
    "AuthZ",
    "PermissiveAuthZ",
    "RoleBasedAuthZ",
]

"""
Database Repositories

SQLAlchemy implementations of the scheduling repository interfaces. Each call
runs in its own session from the DatabaseManager and returns plain domain
dataclasses, never ORM instances.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy import and_, delete, select

from ..scheduling.base import (
    Appointment,
    AppointmentStatus,
    DayOfWeek,
    Provider,
    ScheduleException,
    ScheduleExceptionType,
    Service,
    ServiceSnapshot,
    TimeSlotConfig,
    WorkSchedule,
)
from ..scheduling.interfaces import (
    AppointmentRepository,
    ProviderRepository,
    ServiceRepository,
)
from .base import DatabaseManager
from .models import (
    AppointmentModel,
    ProviderModel,
    ScheduleExceptionModel,
    ServiceModel,
    TimeSlotConfigModel,
    WorkScheduleModel,
)


# =============================================================================
# Model Conversion
# =============================================================================


def _provider(row: ProviderModel) -> Provider:
    return Provider(id=row.id, name=row.name, email=row.email, created_at=row.created_at)


def _work_schedule(row: WorkScheduleModel) -> WorkSchedule:
    return WorkSchedule(
        id=row.id,
        provider_id=row.provider_id,
        day_of_week=DayOfWeek(row.day_of_week),
        start_time=row.start_time,
        end_time=row.end_time,
        is_active=row.is_active,
    )


def _exception(row: ScheduleExceptionModel) -> ScheduleException:
    return ScheduleException(
        id=row.id,
        provider_id=row.provider_id,
        exception_date=row.exception_date,
        type=ScheduleExceptionType(row.type),
        start_time=row.start_time,
        end_time=row.end_time,
        reason=row.reason,
    )


def _config(row: TimeSlotConfigModel) -> TimeSlotConfig:
    return TimeSlotConfig(
        slot_duration_minutes=row.slot_duration_minutes,
        buffer_time_minutes=row.buffer_time_minutes,
        booking_lead_days=row.booking_lead_days,
        booking_ahead_days=row.booking_ahead_days,
        provider_id=row.id,
    )


def _service(row: ServiceModel) -> Service:
    return Service(
        id=row.id,
        provider_id=row.provider_id,
        name=row.name,
        description=row.description or "",
        duration_minutes=row.duration_minutes,
        price=Decimal(str(row.price)),
        is_active=row.is_active,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _appointment(row: AppointmentModel) -> Appointment:
    return Appointment(
        id=row.id,
        client_id=row.client_id,
        provider_id=row.provider_id,
        start_time=row.start_time,
        services=[ServiceSnapshot.from_dict(s) for s in row.services or []],
        status=AppointmentStatus(row.status),
        confirmed_at=row.confirmed_at,
        cancelled_at=row.cancelled_at,
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# =============================================================================
# Provider Repository
# =============================================================================


class SQLProviderRepository(ProviderRepository):
    """Providers, weekly schedules, exceptions and slot configs."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    async def get_provider(self, provider_id: str) -> Optional[Provider]:
        async with self._db.session() as session:
            row = await session.get(ProviderModel, provider_id)
            return _provider(row) if row else None

    async def save_provider(self, provider: Provider) -> Provider:
        async with self._db.session() as session:
            row = await session.get(ProviderModel, provider.id)
            if row is None:
                row = ProviderModel(id=provider.id, created_at=provider.created_at)
                session.add(row)
            row.name = provider.name
            row.email = provider.email
        return provider

    async def get_work_schedule(
        self,
        provider_id: str,
        day_of_week: DayOfWeek,
    ) -> Optional[WorkSchedule]:
        async with self._db.session() as session:
            result = await session.execute(
                select(WorkScheduleModel).where(
                    and_(
                        WorkScheduleModel.provider_id == provider_id,
                        WorkScheduleModel.day_of_week == day_of_week.value,
                    )
                )
            )
            row = result.scalar_one_or_none()
            return _work_schedule(row) if row else None

    async def list_work_schedules(self, provider_id: str) -> List[WorkSchedule]:
        async with self._db.session() as session:
            result = await session.execute(
                select(WorkScheduleModel).where(WorkScheduleModel.provider_id == provider_id)
            )
            entries = [_work_schedule(row) for row in result.scalars().all()]

        days = list(DayOfWeek)
        return sorted(entries, key=lambda e: days.index(e.day_of_week))

    async def save_work_schedule(self, entry: WorkSchedule) -> WorkSchedule:
        async with self._db.session() as session:
            result = await session.execute(
                select(WorkScheduleModel).where(
                    and_(
                        WorkScheduleModel.provider_id == entry.provider_id,
                        WorkScheduleModel.day_of_week == entry.day_of_week.value,
                    )
                )
            )
            row = result.scalar_one_or_none()
            if row is None:
                row = WorkScheduleModel(
                    id=entry.id,
                    provider_id=entry.provider_id,
                    day_of_week=entry.day_of_week.value,
                )
                session.add(row)
            row.start_time = entry.start_time
            row.end_time = entry.end_time
            row.is_active = entry.is_active
            saved_id = row.id

        return replace(entry, id=saved_id)

    async def get_exception(
        self,
        provider_id: str,
        exception_date: date,
    ) -> Optional[ScheduleException]:
        async with self._db.session() as session:
            result = await session.execute(
                select(ScheduleExceptionModel).where(
                    and_(
                        ScheduleExceptionModel.provider_id == provider_id,
                        ScheduleExceptionModel.exception_date == exception_date,
                    )
                )
            )
            row = result.scalar_one_or_none()
            return _exception(row) if row else None

    async def get_exception_by_id(self, exception_id: str) -> Optional[ScheduleException]:
        async with self._db.session() as session:
            row = await session.get(ScheduleExceptionModel, exception_id)
            return _exception(row) if row else None

    async def list_exceptions(
        self,
        provider_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[ScheduleException]:
        query = select(ScheduleExceptionModel).where(
            ScheduleExceptionModel.provider_id == provider_id
        )
        if start_date:
            query = query.where(ScheduleExceptionModel.exception_date >= start_date)
        if end_date:
            query = query.where(ScheduleExceptionModel.exception_date <= end_date)

        async with self._db.session() as session:
            result = await session.execute(query.order_by(ScheduleExceptionModel.exception_date))
            return [_exception(row) for row in result.scalars().all()]

    async def save_exception(self, exception: ScheduleException) -> ScheduleException:
        async with self._db.session() as session:
            row = await session.get(ScheduleExceptionModel, exception.id)
            if row is None:
                row = ScheduleExceptionModel(id=exception.id, provider_id=exception.provider_id)
                session.add(row)
            row.exception_date = exception.exception_date
            row.type = exception.type.value
            row.start_time = exception.start_time
            row.end_time = exception.end_time
            row.reason = exception.reason
        return exception

    async def delete_exception(self, exception_id: str) -> bool:
        async with self._db.session() as session:
            result = await session.execute(
                delete(ScheduleExceptionModel).where(ScheduleExceptionModel.id == exception_id)
            )
            return result.rowcount > 0

    async def get_config(self, provider_id: str) -> Optional[TimeSlotConfig]:
        async with self._db.session() as session:
            row = await session.get(TimeSlotConfigModel, provider_id)
            return _config(row) if row else None

    async def save_config(self, config: TimeSlotConfig) -> TimeSlotConfig:
        async with self._db.session() as session:
            row = await session.get(TimeSlotConfigModel, config.provider_id)
            if row is None:
                row = TimeSlotConfigModel(id=config.provider_id)
                session.add(row)
            row.slot_duration_minutes = config.slot_duration_minutes
            row.buffer_time_minutes = config.buffer_time_minutes
            row.booking_lead_days = config.booking_lead_days
            row.booking_ahead_days = config.booking_ahead_days
        return config


# =============================================================================
# Service Repository
# =============================================================================


class SQLServiceRepository(ServiceRepository):
    """Service catalogue."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    async def get_active_services(
        self,
        provider_id: str,
        service_ids: Sequence[str],
    ) -> List[Service]:
        if not service_ids:
            return []

        async with self._db.session() as session:
            result = await session.execute(
                select(ServiceModel).where(
                    and_(
                        ServiceModel.id.in_(list(service_ids)),
                        ServiceModel.provider_id == provider_id,
                        ServiceModel.is_active == True,  # noqa: E712
                    )
                )
            )
            return [_service(row) for row in result.scalars().all()]

    async def get_service(self, service_id: str) -> Optional[Service]:
        async with self._db.session() as session:
            row = await session.get(ServiceModel, service_id)
            return _service(row) if row else None

    async def list_services(
        self,
        provider_id: Optional[str] = None,
        active_only: bool = False,
    ) -> List[Service]:
        query = select(ServiceModel)
        if provider_id is not None:
            query = query.where(ServiceModel.provider_id == provider_id)
        if active_only:
            query = query.where(ServiceModel.is_active == True)  # noqa: E712

        async with self._db.session() as session:
            result = await session.execute(query.order_by(ServiceModel.name))
            return [_service(row) for row in result.scalars().all()]

    async def save_service(self, service: Service) -> Service:
        async with self._db.session() as session:
            row = await session.get(ServiceModel, service.id)
            if row is None:
                row = ServiceModel(
                    id=service.id,
                    provider_id=service.provider_id,
                    created_at=service.created_at,
                )
                session.add(row)
            row.name = service.name
            row.description = service.description
            row.duration_minutes = service.duration_minutes
            row.price = service.price
            row.is_active = service.is_active
            row.updated_at = service.updated_at
        return service


# =============================================================================
# Appointment Repository
# =============================================================================


class SQLAppointmentRepository(AppointmentRepository):
    """Appointments, indexed by provider and start date."""

    def __init__(self, db: DatabaseManager):
        self._db = db

    async def find_overlapping(self, provider_id: str, on_date: date) -> List[Appointment]:
        return await self._list(
            and_(
                AppointmentModel.provider_id == provider_id,
                AppointmentModel.appointment_date == on_date,
            )
        )

    async def save(self, appointment: Appointment) -> Appointment:
        async with self._db.session() as session:
            row = await session.get(AppointmentModel, appointment.id)
            if row is None:
                row = AppointmentModel(
                    id=appointment.id,
                    client_id=appointment.client_id,
                    provider_id=appointment.provider_id,
                    created_at=appointment.created_at,
                )
                session.add(row)

            row.start_time = appointment.start_time
            row.end_time = appointment.end_time
            row.appointment_date = appointment.start_time.date()
            row.services = [s.to_dict() for s in appointment.services]
            row.total_price = appointment.total_price
            row.status = appointment.status.value
            row.confirmed_at = appointment.confirmed_at
            row.cancelled_at = appointment.cancelled_at
            row.notes = appointment.notes
            row.updated_at = appointment.updated_at
        return appointment

    async def get_by_id(self, appointment_id: str) -> Optional[Appointment]:
        async with self._db.session() as session:
            row = await session.get(AppointmentModel, appointment_id)
            return _appointment(row) if row else None

    async def list_by_client(self, client_id: str) -> List[Appointment]:
        return await self._list(AppointmentModel.client_id == client_id)

    async def list_by_provider(self, provider_id: str) -> List[Appointment]:
        return await self._list(AppointmentModel.provider_id == provider_id)

    async def list_between(self, start_date: date, end_date: date) -> List[Appointment]:
        return await self._list(
            and_(
                AppointmentModel.appointment_date >= start_date,
                AppointmentModel.appointment_date <= end_date,
            )
        )

    async def _list(self, condition) -> List[Appointment]:
        async with self._db.session() as session:
            result = await session.execute(
                select(AppointmentModel)
                .where(condition)
                .order_by(AppointmentModel.start_time)
            )
            return [_appointment(row) for row in result.scalars().all()]


__all__ = [
    "SQLProviderRepository",
    "SQLServiceRepository",
    "SQLAppointmentRepository",
]

"""
In-Memory Repositories

Dictionary-backed implementations of the collaborator interfaces for
single-process deployments, development and tests.
"""

import copy
from collections import defaultdict
from dataclasses import replace
from datetime import date
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .base import (
    Appointment,
    DayOfWeek,
    Provider,
    ScheduleException,
    Service,
    TimeSlotConfig,
    WorkSchedule,
)
from .interfaces import AppointmentRepository, ProviderRepository, ServiceRepository


class InMemoryProviderRepository(ProviderRepository):
    """Providers, weekly schedules, exceptions and slot configs."""

    def __init__(self):
        self._providers: Dict[str, Provider] = {}
        self._schedules: Dict[Tuple[str, DayOfWeek], WorkSchedule] = {}
        self._exceptions: Dict[str, ScheduleException] = {}
        self._exceptions_by_date: Dict[Tuple[str, date], str] = {}
        self._configs: Dict[str, TimeSlotConfig] = {}

    async def get_provider(self, provider_id: str) -> Optional[Provider]:
        return copy.deepcopy(self._providers.get(provider_id))

    async def save_provider(self, provider: Provider) -> Provider:
        self._providers[provider.id] = copy.deepcopy(provider)
        return provider

    async def get_work_schedule(
        self,
        provider_id: str,
        day_of_week: DayOfWeek,
    ) -> Optional[WorkSchedule]:
        return copy.deepcopy(self._schedules.get((provider_id, day_of_week)))

    async def list_work_schedules(self, provider_id: str) -> List[WorkSchedule]:
        days = list(DayOfWeek)
        entries = [e for (pid, _), e in self._schedules.items() if pid == provider_id]
        return copy.deepcopy(sorted(entries, key=lambda e: days.index(e.day_of_week)))

    async def save_work_schedule(self, entry: WorkSchedule) -> WorkSchedule:
        key = (entry.provider_id, entry.day_of_week)
        existing = self._schedules.get(key)
        if existing is not None:
            entry = replace(entry, id=existing.id)
        self._schedules[key] = copy.deepcopy(entry)
        return entry

    async def get_exception(
        self,
        provider_id: str,
        exception_date: date,
    ) -> Optional[ScheduleException]:
        exception_id = self._exceptions_by_date.get((provider_id, exception_date))
        return copy.deepcopy(self._exceptions.get(exception_id)) if exception_id else None

    async def get_exception_by_id(self, exception_id: str) -> Optional[ScheduleException]:
        return copy.deepcopy(self._exceptions.get(exception_id))

    async def list_exceptions(
        self,
        provider_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[ScheduleException]:
        result = []
        for exc in self._exceptions.values():
            if exc.provider_id != provider_id:
                continue
            if start_date and exc.exception_date < start_date:
                continue
            if end_date and exc.exception_date > end_date:
                continue
            result.append(exc)
        return copy.deepcopy(sorted(result, key=lambda e: e.exception_date))

    async def save_exception(self, exception: ScheduleException) -> ScheduleException:
        previous = self._exceptions.get(exception.id)
        if previous is not None:
            self._exceptions_by_date.pop((previous.provider_id, previous.exception_date), None)

        self._exceptions[exception.id] = copy.deepcopy(exception)
        self._exceptions_by_date[(exception.provider_id, exception.exception_date)] = exception.id
        return exception

    async def delete_exception(self, exception_id: str) -> bool:
        exc = self._exceptions.pop(exception_id, None)
        if exc is None:
            return False
        self._exceptions_by_date.pop((exc.provider_id, exc.exception_date), None)
        return True

    async def get_config(self, provider_id: str) -> Optional[TimeSlotConfig]:
        return copy.deepcopy(self._configs.get(provider_id))

    async def save_config(self, config: TimeSlotConfig) -> TimeSlotConfig:
        self._configs[config.provider_id] = copy.deepcopy(config)
        return config


class InMemoryServiceRepository(ServiceRepository):
    """Service catalogue keyed by service ID."""

    def __init__(self):
        self._services: Dict[str, Service] = {}

    async def get_active_services(
        self,
        provider_id: str,
        service_ids: Sequence[str],
    ) -> List[Service]:
        result = []
        for service_id in service_ids:
            service = self._services.get(service_id)
            if service and service.provider_id == provider_id and service.is_active:
                result.append(service)
        return copy.deepcopy(result)

    async def get_service(self, service_id: str) -> Optional[Service]:
        return copy.deepcopy(self._services.get(service_id))

    async def list_services(
        self,
        provider_id: Optional[str] = None,
        active_only: bool = False,
    ) -> List[Service]:
        services = [
            s for s in self._services.values()
            if (provider_id is None or s.provider_id == provider_id)
            and (not active_only or s.is_active)
        ]
        return copy.deepcopy(sorted(services, key=lambda s: s.name))

    async def save_service(self, service: Service) -> Service:
        self._services[service.id] = copy.deepcopy(service)
        return service


class InMemoryAppointmentRepository(AppointmentRepository):
    """Appointments with per-provider-date, client and provider indexes."""

    def __init__(self):
        self._appointments: Dict[str, Appointment] = {}
        self._by_provider_date: Dict[Tuple[str, date], Set[str]] = defaultdict(set)
        self._by_client: Dict[str, Set[str]] = defaultdict(set)
        self._by_provider: Dict[str, Set[str]] = defaultdict(set)

    async def find_overlapping(self, provider_id: str, on_date: date) -> List[Appointment]:
        ids = self._by_provider_date.get((provider_id, on_date), set())
        return self._sorted(self._appointments[i] for i in ids)

    async def save(self, appointment: Appointment) -> Appointment:
        previous = self._appointments.get(appointment.id)
        if previous is not None:
            self._by_provider_date[(previous.provider_id, previous.start_time.date())].discard(previous.id)

        self._appointments[appointment.id] = copy.deepcopy(appointment)
        self._by_provider_date[(appointment.provider_id, appointment.start_time.date())].add(appointment.id)
        self._by_client[appointment.client_id].add(appointment.id)
        self._by_provider[appointment.provider_id].add(appointment.id)
        return appointment

    async def get_by_id(self, appointment_id: str) -> Optional[Appointment]:
        appointment = self._appointments.get(appointment_id)
        return copy.deepcopy(appointment) if appointment else None

    async def list_by_client(self, client_id: str) -> List[Appointment]:
        return self._sorted(self._appointments[i] for i in self._by_client.get(client_id, set()))

    async def list_by_provider(self, provider_id: str) -> List[Appointment]:
        return self._sorted(self._appointments[i] for i in self._by_provider.get(provider_id, set()))

    async def list_between(self, start_date: date, end_date: date) -> List[Appointment]:
        return self._sorted(
            a for a in self._appointments.values()
            if start_date <= a.start_time.date() <= end_date
        )

    @staticmethod
    def _sorted(appointments) -> List[Appointment]:
        return [copy.deepcopy(a) for a in sorted(appointments, key=lambda a: a.start_time)]

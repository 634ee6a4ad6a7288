"""Shared pytest fixtures for testing."""

from datetime import date, datetime, time
from decimal import Decimal
from typing import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from booking_core.config import Settings
from booking_core.scheduling import (
    BookingService,
    DayOfWeek,
    Provider,
    ScheduleManager,
    SchedulingService,
    Service,
    WorkSchedule,
)


# Wednesday morning; the first bookable Monday is MONDAY below.
NOW = datetime(2024, 1, 10, 8, 0)
MONDAY = date(2024, 1, 15)
TUESDAY = date(2024, 1, 16)
NEXT_MONDAY = date(2024, 1, 22)

PROVIDER_ID = "prov_test"


def at(on_date: date, hour: int, minute: int = 0) -> datetime:
    """Datetime on ``on_date`` at hour:minute."""
    return datetime.combine(on_date, time(hour, minute))


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock frozen at NOW."""
    return lambda: NOW


@pytest_asyncio.fixture
async def scheduling(fixed_clock) -> SchedulingService:
    """In-memory scheduling service with a frozen clock."""
    return SchedulingService.in_memory(clock=fixed_clock)


@pytest.fixture
def booking(scheduling: SchedulingService) -> BookingService:
    return scheduling.booking


@pytest.fixture
def schedules(scheduling: SchedulingService) -> ScheduleManager:
    return scheduling.schedules


@pytest_asyncio.fixture
async def provider(schedules: ScheduleManager) -> Provider:
    """Provider working Mondays 09:00-17:00."""
    provider = await schedules.register_provider(
        "Dr. Test",
        email="dr.test@example.com",
        provider_id=PROVIDER_ID,
    )
    await schedules.set_work_schedule(
        provider.id,
        [WorkSchedule("", provider.id, DayOfWeek.MONDAY, time(9, 0), time(17, 0))],
    )
    return provider


@pytest_asyncio.fixture
async def service_a(schedules: ScheduleManager, provider: Provider) -> Service:
    """30 minutes, 10.00."""
    return await schedules.create_service(
        provider.id, "Consultation", duration_minutes=30, price=Decimal("10.00")
    )


@pytest_asyncio.fixture
async def service_b(schedules: ScheduleManager, provider: Provider) -> Service:
    """20 minutes, 5.00."""
    return await schedules.create_service(
        provider.id, "Follow-up", duration_minutes=20, price=Decimal("5.00")
    )


# =============================================================================
# API Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Test settings; never read from the environment file."""
    return Settings(
        _env_file=None,
        environment="test",
        log_level="WARNING",
        log_format="json",
        repository_backend="memory",
    )


@pytest_asyncio.fixture
async def app(settings: Settings, scheduling: SchedulingService, provider, service_a, service_b) -> FastAPI:
    """Create test FastAPI application over the seeded in-memory engine."""
    from booking_core.api.app import create_app

    return create_app(settings, scheduling=scheduling)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

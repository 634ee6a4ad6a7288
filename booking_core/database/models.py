"""
Database Models

SQLAlchemy ORM models for providers, schedules, services and appointments.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


# =============================================================================
# Provider Models
# =============================================================================


class ProviderModel(Base):
    """Provider model."""

    __tablename__ = "providers"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class WorkScheduleModel(Base):
    """One weekday of a provider's recurring schedule."""

    __tablename__ = "work_schedules"

    provider_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
    )
    day_of_week: Mapped[str] = mapped_column(String(10), nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    __table_args__ = (
        UniqueConstraint("provider_id", "day_of_week", name="uq_work_schedules_provider_day"),
    )


class ScheduleExceptionModel(Base):
    """Day off or special hours on one date."""

    __tablename__ = "schedule_exceptions"

    provider_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
    )
    exception_date: Mapped[date] = mapped_column(Date, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    start_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    end_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("provider_id", "exception_date", name="uq_schedule_exceptions_provider_date"),
        Index("ix_schedule_exceptions_date", "exception_date"),
    )


class TimeSlotConfigModel(Base):
    """Per-provider slot grid and booking horizon. The id is the provider id."""

    __tablename__ = "time_slot_configs"

    slot_duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    buffer_time_minutes: Mapped[int] = mapped_column(Integer, default=0)
    booking_lead_days: Mapped[int] = mapped_column(Integer, default=0)
    booking_ahead_days: Mapped[int] = mapped_column(Integer, default=30)


# =============================================================================
# Service Models
# =============================================================================


class ServiceModel(Base, TimestampMixin):
    """Bookable service offered by a provider."""

    __tablename__ = "services"

    provider_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    __table_args__ = (
        Index("ix_services_provider_id", "provider_id"),
    )


# =============================================================================
# Appointment Models
# =============================================================================


class AppointmentModel(Base, TimestampMixin):
    """Appointment model. Services are stored as booking-time snapshots."""

    __tablename__ = "appointments"

    client_id: Mapped[str] = mapped_column(String(36), nullable=False)
    provider_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("providers.id"),
        nullable=False,
    )

    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    appointment_date: Mapped[date] = mapped_column(Date, nullable=False)

    services: Mapped[List[Dict]] = mapped_column(JSON, nullable=False, default=list)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False)
    confirmed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_appointments_provider_date", "provider_id", "appointment_date"),
        Index("ix_appointments_client_id", "client_id"),
        Index("ix_appointments_start_time", "start_time"),
    )


__all__ = [
    "ProviderModel",
    "WorkScheduleModel",
    "ScheduleExceptionModel",
    "TimeSlotConfigModel",
    "ServiceModel",
    "AppointmentModel",
]

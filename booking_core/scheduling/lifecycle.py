"""
Appointment Lifecycle
=====================

Finite state machine for appointment statuses.

    PENDING ──> CONFIRMED ──> COMPLETED
       │            │
       │            ├──> NO_SHOW
       │            └──> CANCELLED
       ├──> NO_SHOW
       └──> CANCELLED

CANCELLED, COMPLETED and NO_SHOW are terminal.
"""

from dataclasses import replace
from datetime import datetime
from typing import Dict, FrozenSet, Optional

import structlog

from .base import Appointment, AppointmentStatus, InvalidTransitionError

logger = structlog.get_logger(__name__)


TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    }),
    AppointmentStatus.CONFIRMED: frozenset({
        AppointmentStatus.CANCELLED,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.NO_SHOW,
    }),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}

EDITABLE_STATES: FrozenSet[AppointmentStatus] = frozenset({
    AppointmentStatus.PENDING,
    AppointmentStatus.CONFIRMED,
})

INITIAL_STATE = AppointmentStatus.PENDING


class AppointmentLifecycle:
    """Guards and applies appointment status transitions."""

    def __init__(
        self,
        transitions: Optional[Dict[AppointmentStatus, FrozenSet[AppointmentStatus]]] = None,
    ):
        self._transitions = transitions or TRANSITIONS

    def is_terminal(self, status: AppointmentStatus) -> bool:
        return not self._transitions.get(status)

    def can_transition(self, current: AppointmentStatus, target: AppointmentStatus) -> bool:
        return target in self._transitions.get(current, frozenset())

    def validate_transition(self, current: AppointmentStatus, target: AppointmentStatus) -> None:
        """Raise InvalidTransitionError unless current -> target is allowed."""
        if not self.can_transition(current, target):
            raise InvalidTransitionError(current, target)

    def ensure_editable(self, appointment: Appointment) -> None:
        """Start time and services may only change while PENDING or CONFIRMED."""
        if appointment.status not in EDITABLE_STATES:
            raise InvalidTransitionError(
                appointment.status,
                message=(
                    f"Appointment {appointment.id} is {appointment.status.value} "
                    "and can no longer be rescheduled or have its services changed"
                ),
            )

    def apply(
        self,
        appointment: Appointment,
        target: AppointmentStatus,
        now: Optional[datetime] = None,
    ) -> Appointment:
        """
        Return a copy of ``appointment`` moved to ``target``.

        The original object is not modified.
        """
        self.validate_transition(appointment.status, target)

        now = now or datetime.utcnow()
        changes = {"status": target, "updated_at": now}
        if target == AppointmentStatus.CONFIRMED:
            changes["confirmed_at"] = now
        elif target == AppointmentStatus.CANCELLED:
            changes["cancelled_at"] = now

        logger.info(
            "appointment_status_changed",
            appointment_id=appointment.id,
            from_status=appointment.status.value,
            to_status=target.value,
        )
        return replace(appointment, **changes)

"""
API Dependencies

FastAPI dependencies resolving the scheduling service and the acting user.
"""

from typing import Optional

from fastapi import Header, Request

from ..scheduling.base import Actor
from ..scheduling.service import BookingService, ScheduleManager, SchedulingService


def get_scheduling(request: Request) -> SchedulingService:
    """Get the scheduling service wired into the application."""
    return request.app.state.scheduling


def get_booking_service(request: Request) -> BookingService:
    return get_scheduling(request).booking


def get_schedule_manager(request: Request) -> ScheduleManager:
    return get_scheduling(request).schedules


async def get_actor(
    request: Request,
    x_actor_id: Optional[str] = Header(default=None),
    x_actor_roles: Optional[str] = Header(default=None),
) -> Optional[Actor]:
    """
    Build the acting user from the X-Actor-Id / X-Actor-Roles headers.

    Identity is established upstream; this layer only forwards it to AuthZ.
    Returns None when neither header is present.
    """
    if x_actor_id is None and x_actor_roles is None:
        return None

    roles = frozenset(
        role.strip().upper()
        for role in (x_actor_roles or "").split(",")
        if role.strip()
    )
    actor = Actor(id=x_actor_id, roles=roles)
    request.state.actor = actor
    return actor


__all__ = [
    "get_scheduling",
    "get_booking_service",
    "get_schedule_manager",
    "get_actor",
]

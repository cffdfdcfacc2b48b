# backend/app/services/conflict_checker.py
"""
Conflict Checker Service for the FitBook platform

Prevents double-booking of trainers and clients. A proposed session
conflicts with an active (pending or approved) booking of the same trainer,
or of the same client, on the same date when that booking starts inside

    [proposed_start - duration - buffer, proposed_start + buffer]

with both ends inclusive. ``duration`` is the proposed session's length and
``buffer`` is settings.booking_conflict_buffer_minutes. The window is
clamped to the session date.

This is an application-level check. The partial unique index on
(trainer_id, session_date, start_time) catches the inserts that race past it.
"""

from datetime import date, time
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..repositories import RepositoryFactory
from ..repositories.booking_repository import BookingRepository
from .base import BaseService

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


def _to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def _from_minutes(minutes: int) -> time:
    if minutes >= MINUTES_PER_DAY:
        return time.max
    return time(minutes // 60, minutes % 60)


def conflict_window(start_time: time, duration: int, buffer_minutes: int) -> Tuple[time, time]:
    """Range of existing start times that collide with a proposed session."""
    start = _to_minutes(start_time)
    lower = max(0, start - duration - buffer_minutes)
    upper = min(MINUTES_PER_DAY, start + buffer_minutes)
    return _from_minutes(lower), _from_minutes(upper)


class ConflictChecker(BaseService):
    """Service for checking booking conflicts of trainers and clients."""

    def __init__(
        self,
        db: Session,
        repository: Optional[BookingRepository] = None,
        buffer_minutes: Optional[int] = None,
    ):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)
        self.buffer_minutes = (
            settings.booking_conflict_buffer_minutes if buffer_minutes is None else buffer_minutes
        )

    @BaseService.measure_operation("find_conflicts")
    def find_conflicts(
        self,
        session_date: date,
        start_time: time,
        duration: int,
        *,
        trainer_id: Optional[str] = None,
        client_id: Optional[str] = None,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Active bookings that collide with the proposed session.

        Exactly one of ``trainer_id`` / ``client_id`` selects whose schedule
        is checked.

        Returns:
            List of conflicting bookings as small dicts (id, times, status)
        """
        window_start, window_end = conflict_window(start_time, duration, self.buffer_minutes)
        bookings = self.repository.find_active_starting_between(
            session_date,
            window_start,
            window_end,
            trainer_id=trainer_id,
            client_id=client_id,
            exclude_booking_id=exclude_booking_id,
        )
        conflicts = [
            {
                "booking_id": booking.id,
                "start_time": booking.start_time.strftime("%H:%M"),
                "end_time": booking.end_time.strftime("%H:%M"),
                "status": booking.status,
            }
            for booking in bookings
        ]
        if conflicts:
            party = f"trainer {trainer_id}" if trainer_id else f"client {client_id}"
            self.logger.warning(
                f"Found {len(conflicts)} booking conflicts for {party} "
                f"on {session_date} around {start_time.strftime('%H:%M')}"
            )
        return conflicts

    def has_conflict(
        self,
        session_date: date,
        start_time: time,
        duration: int,
        *,
        trainer_id: Optional[str] = None,
        client_id: Optional[str] = None,
        exclude_booking_id: Optional[str] = None,
    ) -> bool:
        """True when the trainer (or client) already has an overlapping active booking."""
        return bool(
            self.find_conflicts(
                session_date,
                start_time,
                duration,
                trainer_id=trainer_id,
                client_id=client_id,
                exclude_booking_id=exclude_booking_id,
            )
        )

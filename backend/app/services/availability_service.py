# backend/app/services/availability_service.py
"""
Availability Service for the FitBook platform

Turns a trainer's weekly availability template into bookable slots for a
calendar date:

1. The date's weekday must be one of the template days, otherwise no slots
   are offered and the result carries an explanatory message.
2. Every template range {start, end} is cut into fixed-size slots
   (settings.availability_slot_minutes, one hour by default) aligned to the
   slot grid: the first slot starts at ``start`` rounded down, the last one
   ends no later than ``end`` rounded down.
3. A slot is dropped when a pending or approved booking of the trainer
   starts exactly at the slot start. Bookings at other offsets do not block
   a slot.

Slots are produced lazily in chronological order and recomputed per call.
"""

from dataclasses import dataclass, field
from datetime import date, time
import heapq
import logging
from typing import Any, Dict, Iterable, Iterator, List, NamedTuple, Optional, Set

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import DAYS_OF_WEEK, TRAINER_UNAVAILABLE_MESSAGE
from ..core.exceptions import NotFoundException
from ..repositories import RepositoryFactory
from ..repositories.booking_repository import BookingRepository
from ..repositories.user_repository import UserRepository
from .base import BaseService

logger = logging.getLogger(__name__)


# Stand-in for 24:00, which datetime.time cannot represent
END_OF_DAY = time(23, 59, 59)


def format_hhmm(value: time) -> str:
    return "24:00" if value == END_OF_DAY else value.strftime("%H:%M")


class TimeSlot(NamedTuple):
    start: time
    end: time

    def as_dict(self) -> Dict[str, str]:
        return {"start": format_hhmm(self.start), "end": format_hhmm(self.end)}


@dataclass
class DayAvailability:
    trainer_id: str
    date: date
    day_of_week: str
    available_slots: List[TimeSlot] = field(default_factory=list)
    message: Optional[str] = None


def parse_hhmm(value: str) -> int:
    """Minutes after midnight for an "HH:MM" string ("24:00" is end of day)."""
    hours_str, minutes_str = value.strip().split(":")
    hours, minutes = int(hours_str), int(minutes_str)
    if not (0 <= minutes < 60 and (0 <= hours < 24 or (hours == 24 and minutes == 0))):
        raise ValueError(f"Invalid time of day: {value}")
    return hours * 60 + minutes


def _minutes_to_time(minutes: int) -> time:
    if minutes >= 24 * 60:
        return END_OF_DAY
    return time(minutes // 60, minutes % 60)


def _range_starts(start: int, end: int, slot_minutes: int) -> Iterator[int]:
    first = start - start % slot_minutes
    last_end = end - end % slot_minutes
    current = first
    while current + slot_minutes <= last_end:
        yield current
        current += slot_minutes


def iter_available_slots(
    time_slots: Iterable[Dict[str, Any]],
    booked_starts: Iterable[time],
    slot_minutes: int,
) -> Iterator[TimeSlot]:
    """
    Yield free slots from template ranges, earliest first.

    Overlapping template ranges never produce the same slot twice; ranges
    with malformed bounds are skipped.
    """
    blocked: Set[int] = {t.hour * 60 + t.minute for t in booked_starts}
    generators = []
    for raw in time_slots:
        try:
            start = parse_hhmm(str(raw["start"]))
            end = parse_hhmm(str(raw["end"]))
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Skipping malformed availability range: {raw!r}")
            continue
        generators.append(_range_starts(start, end, slot_minutes))

    previous: Optional[int] = None
    for slot_start in heapq.merge(*generators):
        if slot_start == previous:
            continue
        previous = slot_start
        if slot_start in blocked:
            continue
        yield TimeSlot(_minutes_to_time(slot_start), _minutes_to_time(slot_start + slot_minutes))


class AvailabilityService(BaseService):
    """Computes a trainer's free slots on a given date."""

    def __init__(
        self,
        db: Session,
        booking_repository: Optional[BookingRepository] = None,
        user_repository: Optional[UserRepository] = None,
        slot_minutes: Optional[int] = None,
    ):
        super().__init__(db)
        self.booking_repository = (
            booking_repository or RepositoryFactory.create_booking_repository(db)
        )
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)
        self.slot_minutes = slot_minutes or settings.availability_slot_minutes

    @BaseService.measure_operation("get_available_slots")
    def get_available_slots(self, trainer_id: str, target_date: date) -> DayAvailability:
        """
        Bookable slots for ``trainer_id`` on ``target_date``.

        Raises:
            NotFoundException: unknown user, or the user is not a trainer
        """
        trainer = self.user_repository.get_with_trainer_profile(trainer_id)
        if not trainer or not trainer.is_trainer or trainer.trainer_profile is None:
            raise NotFoundException("Trainer not found", code="TRAINER_NOT_FOUND")

        profile = trainer.trainer_profile
        day_name = DAYS_OF_WEEK[target_date.weekday()]
        result = DayAvailability(trainer_id=trainer_id, date=target_date, day_of_week=day_name)

        if day_name not in profile.available_days:
            result.message = TRAINER_UNAVAILABLE_MESSAGE
            return result

        booked = self.booking_repository.get_active_start_times(trainer_id, target_date)
        result.available_slots = list(
            iter_available_slots(profile.time_slots, booked, self.slot_minutes)
        )
        self.logger.debug(
            f"Trainer {trainer_id} has {len(result.available_slots)} free slots on {target_date}"
        )
        return result

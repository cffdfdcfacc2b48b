# backend/app/schemas/availability.py
"""Availability query responses."""

from datetime import date as date_type
from typing import List, Optional

from pydantic import Field

from ..services.availability_service import DayAvailability
from ._strict_base import StrictModel


class SlotResponse(StrictModel):
    start: str = Field(description="Slot start (HH:MM)")
    end: str = Field(description="Slot end (HH:MM)")


class AvailableSlotsResponse(StrictModel):
    """Free slots for one trainer on one date."""

    trainer_id: str
    date: date_type
    day_of_week: str
    available_slots: List[SlotResponse] = Field(default_factory=list)
    message: Optional[str] = None

    @classmethod
    def from_day(cls, day: DayAvailability) -> "AvailableSlotsResponse":
        return cls(
            trainer_id=day.trainer_id,
            date=day.date,
            day_of_week=day.day_of_week,
            available_slots=[SlotResponse(**slot.as_dict()) for slot in day.available_slots],
            message=day.message,
        )

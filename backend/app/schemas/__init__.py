# backend/app/schemas/__init__.py
"""
Pydantic schemas for the FitBook API.

Wire format is camelCase JSON; request models reject unknown fields.
"""

from .availability import AvailableSlotsResponse, SlotResponse
from .base_responses import PaginatedResponse
from .booking import (
    BookingCancel,
    BookingComplete,
    BookingCreate,
    BookingRate,
    BookingRatedResponse,
    BookingReschedule,
    BookingResponse,
    BookingStatsResponse,
    BookingStatusUpdate,
    RatingSummaryResponse,
    TrainerClientResponse,
)
from .main_responses import HealthResponse

__all__ = [
    # Booking requests
    "BookingCreate",
    "BookingReschedule",
    "BookingStatusUpdate",
    "BookingCancel",
    "BookingComplete",
    "BookingRate",
    # Booking responses
    "BookingResponse",
    "BookingRatedResponse",
    "RatingSummaryResponse",
    "TrainerClientResponse",
    "BookingStatsResponse",
    # Availability
    "AvailableSlotsResponse",
    "SlotResponse",
    # Shared
    "PaginatedResponse",
    "HealthResponse",
]

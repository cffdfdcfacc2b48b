"""
Database models for the FitBook platform.

Importing this package registers every mapper on ``Base.metadata``.
"""

from .booking import (
    Booking,
    BookingResponseRecord,
    BookingStatus,
    BookingType,
    PaymentMethod,
    PaymentStatus,
    RecurringFrequency,
    ResponseAction,
    SessionType,
)
from .trainer import TrainerProfile
from .user import User

__all__ = [
    "Booking",
    "BookingResponseRecord",
    "BookingStatus",
    "BookingType",
    "PaymentMethod",
    "PaymentStatus",
    "RecurringFrequency",
    "ResponseAction",
    "SessionType",
    "TrainerProfile",
    "User",
]

# backend/app/schemas/booking.py
"""
Booking schemas for the FitBook platform.

Times travel on the wire as "HH:MM" strings inside a ``sessionTime``
object; field names are camelCase with snake_case accepted on input.
"""

from datetime import date, datetime, time, timedelta
from typing import Any, List, Optional

from pydantic import Field, field_validator, model_validator

from ..core.config import settings
from ..core.constants import (
    MAX_GOAL_LENGTH,
    MAX_LOCATION_LENGTH,
    MAX_MEETING_LINK_LENGTH,
    MAX_NOTES_LENGTH,
    MAX_REASON_LENGTH,
    MAX_RECURRING_SESSIONS,
    MAX_SESSION_DURATION,
    MIN_SESSION_DURATION,
)
from ..models.booking import (
    Booking,
    BookingResponseRecord,
    BookingStatus,
    BookingType,
    PaymentMethod,
    PaymentStatus,
    RecurringFrequency,
    SessionType,
)
from ._strict_base import StrictModel, StrictRequestModel
from .base import Money


def _fmt_time(value: Optional[time]) -> Optional[str]:
    return value.strftime("%H:%M") if value is not None else None


class SessionTimeIn(StrictRequestModel):
    """Requested session window; ``end`` is derived from the duration when omitted."""

    start: time = Field(..., description="Start time (HH:MM)")
    end: Optional[time] = Field(None, description="End time (HH:MM)")

    @field_validator("start", "end", mode="before")
    @classmethod
    def parse_time_string(cls, v: Any) -> Any:
        """Accept "HH:MM" (or "H:MM") strings."""
        if isinstance(v, str):
            try:
                hour, minute = v.strip().split(":")[:2]
                return time(int(hour), int(minute))
            except (ValueError, TypeError):
                raise ValueError(f"Invalid time format: {v}. Expected HH:MM format.")
        return v


class SessionWindowRequest(StrictRequestModel):
    """Shared date/time/duration handling for create and reschedule."""

    session_date: date = Field(..., description="Date of the session")
    session_time: SessionTimeIn
    duration: Optional[int] = Field(
        None,
        ge=MIN_SESSION_DURATION,
        le=MAX_SESSION_DURATION,
        description="Session length in minutes (defaults to the end-start span or 60)",
    )

    @model_validator(mode="after")
    def validate_window(self) -> "SessionWindowRequest":
        """Resolve the missing half of (end, duration) and check the window fits the day."""
        start_dt = datetime.combine(self.session_date, self.session_time.start)
        end = self.session_time.end
        if end is not None:
            span = (datetime.combine(self.session_date, end) - start_dt) // timedelta(minutes=1)
            if span <= 0:
                raise ValueError("Session end time must be after start time")
            if self.duration is None:
                self.duration = span
            return self

        if self.duration is None:
            self.duration = settings.default_session_duration
        end_dt = start_dt + timedelta(minutes=self.duration)
        if end_dt.date() != self.session_date:
            raise ValueError("Session must end on the same day it starts")
        self.session_time.end = end_dt.time()
        return self


class RecurringDetailsIn(StrictRequestModel):
    """Series settings for a recurring booking."""

    frequency: RecurringFrequency = RecurringFrequency.WEEKLY
    end_date: Optional[date] = None
    total_sessions: Optional[int] = Field(None, ge=1, le=MAX_RECURRING_SESSIONS)


class BookingCreate(SessionWindowRequest):
    """Request a session with a trainer."""

    trainer_id: str = Field(..., min_length=1, description="Trainer user id")
    session_type: SessionType = SessionType.IN_PERSON
    location: Optional[str] = Field(None, max_length=MAX_LOCATION_LENGTH)
    meeting_link: Optional[str] = Field(None, max_length=MAX_MEETING_LINK_LENGTH)
    goals: List[str] = Field(default_factory=list, max_length=10)
    client_notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)
    booking_type: BookingType = BookingType.ONE_TIME
    recurring_details: Optional[RecurringDetailsIn] = None
    payment_method: PaymentMethod = PaymentMethod.CREDIT_CARD

    @field_validator("goals")
    @classmethod
    def validate_goals(cls, v: List[str]) -> List[str]:
        cleaned = [goal.strip() for goal in v if goal and goal.strip()]
        for goal in cleaned:
            if len(goal) > MAX_GOAL_LENGTH:
                raise ValueError(f"Each goal must be at most {MAX_GOAL_LENGTH} characters")
        return cleaned

    @model_validator(mode="after")
    def validate_recurring_details(self) -> "BookingCreate":
        if self.booking_type is BookingType.RECURRING:
            if self.recurring_details is None:
                raise ValueError("recurringDetails is required for recurring bookings")
            end_date = self.recurring_details.end_date
            if end_date is not None and end_date <= self.session_date:
                raise ValueError("recurringDetails.endDate must be after the session date")
        elif self.recurring_details is not None:
            raise ValueError("recurringDetails is only allowed for recurring bookings")
        return self


class BookingReschedule(SessionWindowRequest):
    reason: Optional[str] = Field(None, max_length=MAX_REASON_LENGTH)


class BookingStatusUpdate(StrictRequestModel):
    """Trainer decision on a pending request; ``action`` is approve or reject."""

    action: str = Field(..., min_length=1)
    reason: Optional[str] = Field(None, max_length=MAX_REASON_LENGTH)
    trainer_notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)


class BookingCancel(StrictRequestModel):
    reason: Optional[str] = Field(None, max_length=MAX_REASON_LENGTH)


class BookingComplete(StrictRequestModel):
    session_notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)
    client_attended: bool = True
    trainer_rating: Optional[int] = None


class BookingRate(StrictRequestModel):
    # Range is checked by the service so that out-of-range values surface as INVALID_RATING
    rating: int = Field(..., strict=True)
    review: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)


# Responses


class SessionTimeOut(StrictModel):
    start: str
    end: str


class ParticipantInfo(StrictModel):
    id: str
    name: str
    email: str


class PaymentInfo(StrictModel):
    amount: Money
    currency: str
    status: PaymentStatus
    method: PaymentMethod
    transaction_id: Optional[str] = None
    paid_at: Optional[datetime] = None


class RecurringDetailsOut(StrictModel):
    frequency: RecurringFrequency
    end_date: Optional[date] = None
    total_sessions: Optional[int] = None
    completed_sessions: int = 0


class CancellationInfo(StrictModel):
    cancelled_by: str
    reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    refund_amount: Optional[Money] = None


class CompletionInfo(StrictModel):
    completed_at: Optional[datetime] = None
    client_attended: Optional[bool] = None
    trainer_rating: Optional[int] = None
    client_rating: Optional[int] = None
    session_notes: Optional[str] = None
    rated_at: Optional[datetime] = None


class BookingResponseEntry(StrictModel):
    responded_by: str
    action: str
    reason: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: BookingResponseRecord) -> "BookingResponseEntry":
        return cls(
            responded_by=record.responded_by_id,
            action=record.action,
            reason=record.reason,
            created_at=record.created_at,
        )


class BookingResponse(StrictModel):
    """Booking as returned by the API."""

    id: str
    client_id: str
    trainer_id: str
    client: Optional[ParticipantInfo] = None
    trainer: Optional[ParticipantInfo] = None
    status: BookingStatus
    booking_type: BookingType
    recurring_details: Optional[RecurringDetailsOut] = None
    session_date: date
    session_time: SessionTimeOut
    duration: int
    session_type: SessionType
    location: Optional[str] = None
    meeting_link: Optional[str] = None
    goals: List[str] = Field(default_factory=list)
    client_notes: Optional[str] = None
    trainer_notes: Optional[str] = None
    payment: PaymentInfo
    cancellation: Optional[CancellationInfo] = None
    completion: Optional[CompletionInfo] = None
    responses: List[BookingResponseEntry] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingResponse":
        def _party(user: Any) -> Optional[ParticipantInfo]:
            if user is None:
                return None
            return ParticipantInfo(id=user.id, name=user.name, email=user.email)

        cancellation = None
        if booking.cancelled_by_id:
            cancellation = CancellationInfo(
                cancelled_by=booking.cancelled_by_id,
                reason=booking.cancellation_reason,
                cancelled_at=booking.cancelled_at,
                refund_amount=booking.refund_amount,
            )

        recurring = None
        if booking.recurring_frequency:
            recurring = RecurringDetailsOut(
                frequency=booking.recurring_frequency,
                end_date=booking.recurring_end_date,
                total_sessions=booking.recurring_total_sessions,
                completed_sessions=booking.recurring_completed_sessions or 0,
            )

        completion = None
        if booking.completed_at is not None:
            completion = CompletionInfo(
                completed_at=booking.completed_at,
                client_attended=booking.client_attended,
                trainer_rating=booking.trainer_rating,
                client_rating=booking.client_rating,
                session_notes=booking.session_notes,
                rated_at=booking.rated_at,
            )

        return cls(
            id=booking.id,
            client_id=booking.client_id,
            trainer_id=booking.trainer_id,
            client=_party(booking.client),
            trainer=_party(booking.trainer),
            status=booking.status,
            booking_type=booking.booking_type,
            recurring_details=recurring,
            session_date=booking.session_date,
            session_time=SessionTimeOut(
                start=_fmt_time(booking.start_time), end=_fmt_time(booking.end_time)
            ),
            duration=booking.duration,
            session_type=booking.session_type,
            location=booking.location,
            meeting_link=booking.meeting_link,
            goals=list(booking.goals or []),
            client_notes=booking.client_notes,
            trainer_notes=booking.trainer_notes,
            payment=PaymentInfo(
                amount=booking.payment_amount,
                currency=booking.currency,
                status=booking.payment_status,
                method=booking.payment_method,
                transaction_id=booking.transaction_id,
                paid_at=booking.paid_at,
            ),
            cancellation=cancellation,
            completion=completion,
            responses=[BookingResponseEntry.from_record(r) for r in booking.responses],
            created_at=booking.created_at,
            updated_at=booking.updated_at,
        )


class RatingSummaryResponse(StrictModel):
    trainer_id: str
    average: float
    count: int


class BookingRatedResponse(StrictModel):
    booking: BookingResponse
    trainer_rating: RatingSummaryResponse


class TrainerClientResponse(StrictModel):
    client_id: str
    name: str
    email: str
    total_bookings: int
    completed_sessions: int
    last_session_date: Optional[date] = None


class StatusBreakdown(StrictModel):
    status: str
    count: int
    total_amount: Money


class BookingStatsResponse(StrictModel):
    period: str
    since: Optional[datetime] = None
    total_bookings: int
    total_revenue: Money
    by_status: List[StatusBreakdown]

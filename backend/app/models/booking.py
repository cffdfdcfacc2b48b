# backend/app/models/booking.py
"""
Booking model for the FitBook platform.

A booking is a requested or scheduled training session between a client
(member) and a trainer. Payment, cancellation and completion details are
stored as column groups on the booking row; every approve/reject/cancel/
reschedule decision is also appended to ``booking_responses``.

Status changes are never made by mutating ``status`` on a loaded instance.
They go through app.domain.booking_transitions and are persisted with a
compare-and-swap update in BookingRepository.
"""

from enum import Enum
import logging

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    and_,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.constants import DEFAULT_SESSION_DURATION
from ..database import Base

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"  # Requested by the client, awaiting the trainer
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


ACTIVE_STATUSES = (BookingStatus.PENDING.value, BookingStatus.APPROVED.value)


class BookingType(str, Enum):
    ONE_TIME = "one-time"
    RECURRING = "recurring"


class RecurringFrequency(str, Enum):
    WEEKLY = "weekly"
    BI_WEEKLY = "bi-weekly"
    MONTHLY = "monthly"


class SessionType(str, Enum):
    """Where the session takes place."""

    IN_PERSON = "in-person"
    VIRTUAL = "virtual"
    HYBRID = "hybrid"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"
    FAILED = "failed"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "credit-card"
    DEBIT_CARD = "debit-card"
    PAYPAL = "paypal"
    BANK_TRANSFER = "bank-transfer"
    CASH = "cash"


class ResponseAction(str, Enum):
    """Actions recorded in the booking response log."""

    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


class Booking(Base):
    """
    Training session between a client and a trainer.

    client_id and trainer_id are fixed at creation. payment_amount is
    computed once at creation from the trainer's hourly rate and never
    recomputed.
    """

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    client_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    trainer_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    booking_type = Column(String(20), nullable=False, default=BookingType.ONE_TIME.value)

    # Recurring series (only for booking_type = recurring)
    recurring_frequency = Column(String(20), nullable=True)
    recurring_end_date = Column(Date, nullable=True)
    recurring_total_sessions = Column(Integer, nullable=True)
    recurring_completed_sessions = Column(Integer, nullable=True)

    # Session window
    session_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    duration = Column(Integer, nullable=False, default=DEFAULT_SESSION_DURATION)

    # Session details
    session_type = Column(String(20), nullable=False, default=SessionType.IN_PERSON.value)
    location = Column(String(200), nullable=True)
    meeting_link = Column(String(500), nullable=True)
    goals = Column(JSON, nullable=False, default=list)
    client_notes = Column(Text, nullable=True)
    trainer_notes = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)

    # Payment
    payment_amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="CAD")
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    payment_method = Column(String(20), nullable=False, default=PaymentMethod.CREDIT_CARD.value)
    transaction_id = Column(String(255), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    # Cancellation (set once)
    cancelled_by_id = Column(String(26), ForeignKey("users.id"), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    refund_amount = Column(Numeric(10, 2), nullable=True)

    # Completion (set once)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    client_attended = Column(Boolean, nullable=True)
    trainer_rating = Column(Integer, nullable=True)
    client_rating = Column(Integer, nullable=True)
    session_notes = Column(Text, nullable=True)
    rated_at = Column(DateTime(timezone=True), nullable=True)

    # Soft delete
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    client = relationship("User", foreign_keys=[client_id])
    trainer = relationship("User", foreign_keys=[trainer_id])
    cancelled_by = relationship("User", foreign_keys=[cancelled_by_id])
    responses = relationship(
        "BookingResponseRecord",
        back_populates="booking",
        order_by="BookingResponseRecord.created_at",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'cancelled', 'completed')",
            name="ck_bookings_status",
        ),
        CheckConstraint(
            "session_type IN ('in-person', 'virtual', 'hybrid')",
            name="ck_bookings_session_type",
        ),
        CheckConstraint(
            "booking_type IN ('one-time', 'recurring')", name="ck_bookings_booking_type"
        ),
        CheckConstraint(
            "booking_type = 'recurring' OR recurring_frequency IS NULL",
            name="check_recurring_details_require_recurring_type",
        ),
        CheckConstraint("duration > 0", name="check_duration_positive"),
        CheckConstraint("payment_amount > 0", name="check_payment_amount_positive"),
        CheckConstraint(
            "client_rating IS NULL OR (client_rating >= 1 AND client_rating <= 5)",
            name="check_client_rating_range",
        ),
        CheckConstraint(
            "trainer_rating IS NULL OR (trainer_rating >= 1 AND trainer_rating <= 5)",
            name="check_trainer_rating_range",
        ),
        CheckConstraint(
            "client_rating IS NULL OR status = 'completed'",
            name="check_rating_requires_completion",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: client={self.client_id}, "
            f"trainer={self.trainer_id}, date={self.session_date}, "
            f"time={self.start_time}-{self.end_time}, status={self.status}>"
        )

    def involves(self, user_id: str) -> bool:
        return user_id in (self.client_id, self.trainer_id)


class BookingResponseRecord(Base):
    """Append-only audit entry for a decision taken on a booking."""

    __tablename__ = "booking_responses"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    booking_id = Column(String(26), ForeignKey("bookings.id"), nullable=False, index=True)
    responded_by_id = Column(String(26), ForeignKey("users.id"), nullable=False)
    action = Column(String(20), nullable=False)
    reason = Column(String(300), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    booking = relationship("Booking", back_populates="responses")

    __table_args__ = (
        CheckConstraint(
            "action IN ('approved', 'rejected', 'cancelled', 'rescheduled')",
            name="ck_booking_responses_action",
        ),
    )

    def __repr__(self) -> str:
        return f"<BookingResponseRecord {self.booking_id}: {self.action} by {self.responded_by_id}>"


# Only one active booking may start at a given trainer slot; backs the
# application-level conflict check against concurrent inserts.
_ACTIVE_SLOT_PREDICATE = and_(
    Booking.status.in_(ACTIVE_STATUSES),
    Booking.is_deleted.is_(False),
)

Index(
    "uq_bookings_trainer_active_slot",
    Booking.trainer_id,
    Booking.session_date,
    Booking.start_time,
    unique=True,
    postgresql_where=_ACTIVE_SLOT_PREDICATE,
    sqlite_where=_ACTIVE_SLOT_PREDICATE,
)

Index(
    "ix_bookings_client_date_status",
    Booking.client_id,
    Booking.session_date,
    Booking.status,
)

Index(
    "ix_bookings_trainer_completed",
    Booking.trainer_id,
    Booking.status,
    Booking.completed_at,
    postgresql_where=(Booking.status == BookingStatus.COMPLETED.value),
)

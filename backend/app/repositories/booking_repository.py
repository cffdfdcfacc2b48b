# backend/app/repositories/booking_repository.py
"""
Booking Repository for the FitBook platform

Data access for bookings and their response log. Besides plain reads and
writes it provides:
- conflict candidate queries used by the ConflictChecker
- compare-and-swap status writes used by every lifecycle transition
- listing, roster and statistics aggregates

Soft-deleted bookings are excluded from every query here.
"""

from datetime import date, datetime, time
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload, selectinload

from ..core.exceptions import RepositoryException
from ..models.booking import (
    ACTIVE_STATUSES,
    Booking,
    BookingResponseRecord,
    BookingStatus,
    PaymentStatus,
)
from ..models.user import User
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def _live(self) -> Query:
        return self.db.query(Booking).filter(Booking.is_deleted.is_(False))

    # Single booking reads

    def get_booking(self, booking_id: str, *, with_details: bool = False) -> Optional[Booking]:
        """Get a non-deleted booking, optionally with parties and responses loaded."""
        try:
            query = self._live().filter(Booking.id == booking_id)
            if with_details:
                query = query.options(
                    joinedload(Booking.client),
                    joinedload(Booking.trainer),
                    selectinload(Booking.responses),
                )
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to get booking: {str(e)}")

    # Writes

    def add_response(
        self,
        booking_id: str,
        responded_by_id: str,
        action: str,
        reason: Optional[str] = None,
    ) -> BookingResponseRecord:
        """Append an entry to the booking's response log."""
        try:
            record = BookingResponseRecord(
                booking_id=booking_id,
                responded_by_id=responded_by_id,
                action=action,
                reason=reason,
            )
            self.db.add(record)
            self.db.flush()
            return record
        except SQLAlchemyError as e:
            self.logger.error(f"Error recording response for booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to record booking response: {str(e)}")

    def transition_status(
        self,
        booking_id: str,
        expected_status: str,
        values: Dict[str, Any],
        expected_values: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Apply ``values`` only if the booking still has ``expected_status``.

        Issued as a single UPDATE ... WHERE status = :expected so that two
        actors racing on the same booking cannot both succeed.
        ``expected_values`` adds column guards for changes that keep the
        status, such as a client rating (None compares with IS NULL).

        Returns:
            True when the row was updated, False when the status or a guarded
            column had changed (or the booking vanished) in the meantime.
        """
        conditions = [
            Booking.id == booking_id,
            Booking.status == expected_status,
            Booking.is_deleted.is_(False),
        ]
        for column_name, expected in (expected_values or {}).items():
            column = getattr(Booking, column_name)
            conditions.append(column.is_(None) if expected is None else column == expected)

        try:
            updated = (
                self.db.query(Booking)
                .filter(*conditions)
                .update(values, synchronize_session="fetch")
            )
            return bool(updated)
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to update booking: {str(e)}")

    def soft_delete(self, booking_id: str, deleted_at: datetime) -> bool:
        try:
            updated = (
                self.db.query(Booking)
                .filter(Booking.id == booking_id, Booking.is_deleted.is_(False))
                .update(
                    {"is_deleted": True, "deleted_at": deleted_at}, synchronize_session="fetch"
                )
            )
            return bool(updated)
        except SQLAlchemyError as e:
            self.logger.error(f"Error soft-deleting booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to delete booking: {str(e)}")

    # Conflict queries

    def find_active_starting_between(
        self,
        session_date: date,
        window_start: time,
        window_end: time,
        *,
        trainer_id: Optional[str] = None,
        client_id: Optional[str] = None,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Active bookings of a trainer or client on ``session_date`` whose start
        time lies in [window_start, window_end] (both inclusive).
        """
        if (trainer_id is None) == (client_id is None):
            raise ValueError("Exactly one of trainer_id or client_id is required")
        try:
            query = self._live().filter(
                Booking.session_date == session_date,
                Booking.status.in_(ACTIVE_STATUSES),
                Booking.start_time >= window_start,
                Booking.start_time <= window_end,
            )
            if trainer_id is not None:
                query = query.filter(Booking.trainer_id == trainer_id)
            else:
                query = query.filter(Booking.client_id == client_id)
            if exclude_booking_id:
                query = query.filter(Booking.id != exclude_booking_id)
            return query.order_by(Booking.start_time).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting bookings for conflict check: {str(e)}")
            raise RepositoryException(f"Failed to get conflict bookings: {str(e)}")

    def get_active_start_times(self, trainer_id: str, session_date: date) -> List[time]:
        """Start times of a trainer's pending/approved bookings on a date."""
        try:
            rows = (
                self.db.query(Booking.start_time)
                .filter(
                    Booking.trainer_id == trainer_id,
                    Booking.session_date == session_date,
                    Booking.status.in_(ACTIVE_STATUSES),
                    Booking.is_deleted.is_(False),
                )
                .order_by(Booking.start_time)
                .all()
            )
            return [row[0] for row in rows]
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting bookings for date: {str(e)}")
            raise RepositoryException(f"Failed to get bookings: {str(e)}")

    # Listings

    def list_bookings(
        self,
        *,
        client_id: Optional[str] = None,
        trainer_id: Optional[str] = None,
        statuses: Optional[Sequence[str]] = None,
        upcoming_from: Optional[date] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Booking], int]:
        """
        Page through bookings filtered by party, status and upcoming-ness.

        Upcoming listings (``upcoming_from`` set) only contain active bookings
        and are ordered soonest first; everything else is newest first.

        Returns:
            (page of bookings, total matching count)
        """
        try:
            query = self._live()
            if client_id is not None:
                query = query.filter(Booking.client_id == client_id)
            if trainer_id is not None:
                query = query.filter(Booking.trainer_id == trainer_id)
            if statuses:
                query = query.filter(Booking.status.in_(list(statuses)))
            if upcoming_from is not None:
                query = query.filter(
                    Booking.session_date >= upcoming_from,
                    Booking.status.in_(ACTIVE_STATUSES),
                )
                ordering = (Booking.session_date.asc(), Booking.start_time.asc())
            else:
                ordering = (Booking.session_date.desc(), Booking.start_time.desc())

            total = query.count()
            items = (
                query.options(joinedload(Booking.client), joinedload(Booking.trainer))
                .order_by(*ordering)
                .offset(offset)
                .limit(limit)
                .all()
            )
            return items, total
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings: {str(e)}")
            raise RepositoryException(f"Failed to list bookings: {str(e)}")

    # Aggregates

    def get_trainer_client_summaries(self, trainer_id: str) -> List[Dict[str, Any]]:
        """Per-client totals over a trainer's approved and completed bookings."""
        completed = BookingStatus.COMPLETED.value
        try:
            rows = (
                self.db.query(
                    User.id,
                    User.name,
                    User.email,
                    func.count(Booking.id),
                    func.sum(case((Booking.status == completed, 1), else_=0)),
                    func.max(Booking.session_date),
                )
                .join(User, User.id == Booking.client_id)
                .filter(
                    Booking.trainer_id == trainer_id,
                    Booking.status.in_([BookingStatus.APPROVED.value, completed]),
                    Booking.is_deleted.is_(False),
                )
                .group_by(User.id, User.name, User.email)
                .order_by(func.max(Booking.session_date).desc())
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting clients for trainer {trainer_id}: {str(e)}")
            raise RepositoryException(f"Failed to get trainer clients: {str(e)}")

        return [
            {
                "client_id": client_id,
                "name": name,
                "email": email,
                "total_bookings": int(total or 0),
                "completed_sessions": int(done or 0),
                "last_session_date": last_date,
            }
            for client_id, name, email, total, done, last_date in rows
        ]

    def get_status_breakdown(self, since: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """Booking count and summed payment amount per status."""
        try:
            query = self.db.query(
                Booking.status, func.count(Booking.id), func.sum(Booking.payment_amount)
            ).filter(Booking.is_deleted.is_(False))
            if since is not None:
                query = query.filter(Booking.created_at >= since)
            rows = query.group_by(Booking.status).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error computing booking stats: {str(e)}")
            raise RepositoryException(f"Failed to compute booking stats: {str(e)}")
        return [
            {"status": status, "count": int(count), "total_amount": amount or 0}
            for status, count, amount in rows
        ]

    def get_paid_revenue(self, since: Optional[datetime] = None) -> Any:
        query = self.db.query(func.coalesce(func.sum(Booking.payment_amount), 0)).filter(
            Booking.is_deleted.is_(False),
            Booking.payment_status == PaymentStatus.PAID.value,
        )
        if since is not None:
            query = query.filter(Booking.created_at >= since)
        return self._execute_scalar(query)

    def get_client_rating_totals(self, trainer_id: str) -> Tuple[int, int]:
        """(count, sum) of client ratings over a trainer's completed bookings."""
        query = self.db.query(
            func.count(Booking.client_rating), func.coalesce(func.sum(Booking.client_rating), 0)
        ).filter(
            Booking.trainer_id == trainer_id,
            Booking.status == BookingStatus.COMPLETED.value,
            Booking.client_rating.isnot(None),
            Booking.is_deleted.is_(False),
        )
        try:
            count, total = query.one()
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading ratings for trainer {trainer_id}: {str(e)}")
            raise RepositoryException(f"Failed to read ratings: {str(e)}")
        return int(count or 0), int(total or 0)

# backend/app/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    POST / - Request a booking (client)
    GET / - List the caller's bookings with filters and pagination
    GET /{booking_id} - Booking details (client, trainer or admin)
    PATCH /{booking_id}/status - Approve or reject (trainer)
    PATCH /{booking_id}/cancel - Cancel (client, trainer or admin)
    PATCH /{booking_id}/complete - Mark completed (trainer)
    PATCH /{booking_id}/reschedule - Move to a new window (client, trainer or admin)
    POST /{booking_id}/rate - Rate a completed session (client)
"""

import asyncio
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.params import Path

from ...api.dependencies import get_booking_service, get_current_user
from ...core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.base_responses import PaginatedResponse
from ...schemas.booking import (
    BookingCancel,
    BookingComplete,
    BookingCreate,
    BookingRate,
    BookingRatedResponse,
    BookingReschedule,
    BookingResponse,
    BookingStatusUpdate,
    RatingSummaryResponse,
)
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


# ============================================================================
# SECTION 1: Collection routes
# ============================================================================


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """
    Request a session with a trainer.

    The booking starts as pending; the price is computed from the trainer's
    hourly rate and the session duration.
    """
    try:
        booking = await asyncio.to_thread(
            booking_service.create_booking, current_user, booking_data
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("", response_model=PaginatedResponse[BookingResponse])
async def list_bookings(
    status_filter: Optional[str] = Query(None, alias="status"),
    upcoming: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> PaginatedResponse[BookingResponse]:
    """List the caller's bookings (as trainer for trainers, as client otherwise)."""
    try:
        bookings, total = await asyncio.to_thread(
            booking_service.list_bookings_for_user,
            current_user,
            status=status_filter,
            upcoming=upcoming,
            page=page,
            limit=limit,
        )
        return PaginatedResponse.build(
            [BookingResponse.from_booking(b) for b in bookings], total, page, limit
        )
    except DomainException as e:
        handle_domain_exception(e)


# ============================================================================
# SECTION 2: Single booking routes
# ============================================================================


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.get_booking_for_user, booking_id, current_user
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    update: BookingStatusUpdate = Body(...),
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Approve or reject a pending request. Only the booking's trainer may respond."""
    try:
        booking = await asyncio.to_thread(
            booking_service.respond_to_booking,
            booking_id,
            current_user,
            update.action,
            reason=update.reason,
            trainer_notes=update.trainer_notes,
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    cancel_data: Optional[BookingCancel] = Body(None),
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.cancel_booking,
            booking_id,
            current_user,
            cancel_data.reason if cancel_data else None,
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking(
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    completion: Optional[BookingComplete] = Body(None),
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    """Mark an approved session as completed; payment is recorded as paid."""
    try:
        booking = await asyncio.to_thread(
            booking_service.complete_booking, booking_id, current_user, completion
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{booking_id}/reschedule", response_model=BookingResponse)
async def reschedule_booking(
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    reschedule_data: BookingReschedule = Body(...),
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.reschedule_booking, booking_id, current_user, reschedule_data
        )
        return BookingResponse.from_booking(booking)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{booking_id}/rate", response_model=BookingRatedResponse)
async def rate_booking(
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    rate_data: BookingRate = Body(...),
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingRatedResponse:
    """Rate a completed session (client only) and return the trainer's new rating."""
    try:
        booking, summary = await asyncio.to_thread(
            booking_service.rate_booking,
            booking_id,
            current_user,
            rate_data.rating,
            rate_data.review,
        )
        return BookingRatedResponse(
            booking=BookingResponse.from_booking(booking),
            trainer_rating=RatingSummaryResponse(
                trainer_id=booking.trainer_id,
                average=summary["average"],
                count=int(summary["count"]),
            ),
        )
    except DomainException as e:
        handle_domain_exception(e)

# backend/app/routes/v1/admin_bookings.py
"""
Admin booking routes - API v1

Endpoints:
    GET /bookings - All bookings with optional status filter
    GET /bookings/stats - Booking statistics for a period
    DELETE /bookings/{booking_id} - Soft delete a booking
    POST /trainers/{trainer_id}/rating/recompute - Rebuild a trainer's rating
"""

import asyncio
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from fastapi.params import Path

from ...api.dependencies import get_booking_service, get_rating_service, require_admin
from ...core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ...core.enums import StatsPeriod
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.base_responses import PaginatedResponse
from ...schemas.booking import BookingResponse, BookingStatsResponse, RatingSummaryResponse
from ...services.booking_service import BookingService
from ...services.rating_service import RatingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin-bookings-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("/bookings", response_model=PaginatedResponse[BookingResponse])
async def list_all_bookings(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    _: User = Depends(require_admin),
    booking_service: BookingService = Depends(get_booking_service),
) -> PaginatedResponse[BookingResponse]:
    try:
        bookings, total = await asyncio.to_thread(
            booking_service.list_all_bookings, status_filter, page, limit
        )
        return PaginatedResponse.build(
            [BookingResponse.from_booking(b) for b in bookings], total, page, limit
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/bookings/stats", response_model=BookingStatsResponse)
async def get_booking_stats(
    period: StatsPeriod = Query(StatsPeriod.MONTH),
    _: User = Depends(require_admin),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingStatsResponse:
    try:
        stats = await asyncio.to_thread(booking_service.get_booking_stats, period)
        return BookingStatsResponse(**stats)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/bookings/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    current_user: User = Depends(require_admin),
    booking_service: BookingService = Depends(get_booking_service),
) -> Response:
    """Soft delete: the booking disappears from every listing but stays stored."""
    try:
        await asyncio.to_thread(booking_service.soft_delete_booking, booking_id, current_user)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as e:
        handle_domain_exception(e)


@router.post(
    "/trainers/{trainer_id}/rating/recompute", response_model=RatingSummaryResponse
)
async def recompute_trainer_rating(
    trainer_id: str = Path(..., min_length=1),
    _: User = Depends(require_admin),
    rating_service: RatingService = Depends(get_rating_service),
) -> RatingSummaryResponse:
    """Rebuild the trainer's rating from all rated sessions."""
    try:
        summary = await asyncio.to_thread(rating_service.recompute_trainer_rating, trainer_id)
        return RatingSummaryResponse(
            trainer_id=trainer_id, average=summary["average"], count=int(summary["count"])
        )
    except DomainException as e:
        handle_domain_exception(e)

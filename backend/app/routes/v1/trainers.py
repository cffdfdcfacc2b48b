# backend/app/routes/v1/trainers.py
"""
Trainer routes - API v1

Endpoints:
    GET /me/requests - Pending booking requests for the calling trainer
    GET /me/clients - The calling trainer's client roster
    GET /{trainer_id}/available-slots - Free slots on a date
"""

import asyncio
from datetime import date
import logging
from typing import List, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.params import Path

from ...api.dependencies import get_availability_service, get_booking_service, require_trainer
from ...core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.availability import AvailableSlotsResponse
from ...schemas.base_responses import PaginatedResponse
from ...schemas.booking import BookingResponse, TrainerClientResponse
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["trainers-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("/me/requests", response_model=PaginatedResponse[BookingResponse])
async def get_pending_requests(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(require_trainer),
    booking_service: BookingService = Depends(get_booking_service),
) -> PaginatedResponse[BookingResponse]:
    try:
        bookings, total = await asyncio.to_thread(
            booking_service.get_pending_requests, current_user, page=page, limit=limit
        )
        return PaginatedResponse.build(
            [BookingResponse.from_booking(b) for b in bookings], total, page, limit
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/me/clients", response_model=List[TrainerClientResponse])
async def get_trainer_clients(
    current_user: User = Depends(require_trainer),
    booking_service: BookingService = Depends(get_booking_service),
) -> List[TrainerClientResponse]:
    """Clients with approved or completed sessions, most recent first."""
    try:
        rows = await asyncio.to_thread(booking_service.get_trainer_clients, current_user)
        return [TrainerClientResponse(**row) for row in rows]
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{trainer_id}/available-slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    trainer_id: str = Path(..., min_length=1),
    target_date: date = Query(..., alias="date", description="Date to check (YYYY-MM-DD)"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailableSlotsResponse:
    """
    Bookable hourly slots for a trainer on a date.

    When the trainer does not work that weekday the slot list is empty and
    ``message`` explains why.
    """
    try:
        day = await asyncio.to_thread(
            availability_service.get_available_slots, trainer_id, target_date
        )
        return AvailableSlotsResponse.from_day(day)
    except DomainException as e:
        handle_domain_exception(e)

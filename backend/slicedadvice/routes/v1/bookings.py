# backend/slicedadvice/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    GET / - List bookings with keyword search, filters and pagination
    POST / - Create a booking backed by a held payment
    GET /{booking_id} - Full booking details
    PUT /{booking_id} - Update a booking; optionally capture payment and complete it
"""

import asyncio
from datetime import datetime
from decimal import Decimal
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.params import Path

from ...api.dependencies import get_booking_service
from ...core.exceptions import DomainException
from ...models.booking import BookingStatus, BookingType
from ...repositories.booking_repository import BookingListFilters
from ...schemas.booking import (
    BookingCreate,
    BookingCreateResponse,
    BookingDetailResponse,
    BookingListResponse,
    BookingResponse,
    BookingUpdate,
    BookingUpdateResponse,
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


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    keyword: Optional[str] = Query(None, max_length=200),
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    booking_type: Optional[BookingType] = Query(None, alias="bookingType"),
    expert: Optional[str] = Query(None, description="Expert user id"),
    customer: Optional[str] = Query(None, description="Customer user id"),
    expertise_post: Optional[str] = Query(None, alias="expertisePost"),
    total_gte: Optional[Decimal] = Query(None, alias="total[gte]", ge=0),
    total_lte: Optional[Decimal] = Query(None, alias="total[lte]", ge=0),
    created_after: Optional[datetime] = Query(None, alias="createdAfter"),
    created_before: Optional[datetime] = Query(None, alias="createdBefore"),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, alias="perPage", ge=1),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    """
    List bookings, newest first.

    ``bookingsCount`` counts every booking; ``filteredBookingsCount`` counts
    the ones matching the filters, before pagination.
    """
    filters = BookingListFilters(
        keyword=keyword or None,
        status=status_filter.value if status_filter else None,
        booking_type=booking_type.value if booking_type else None,
        expert_id=expert,
        customer_id=customer,
        expertise_post_id=expertise_post,
        total_gte=total_gte,
        total_lte=total_lte,
        created_after=created_after,
        created_before=created_before,
    )
    try:
        result = await asyncio.to_thread(
            booking_service.list_bookings, filters, page=page, per_page=per_page
        )
    except DomainException as e:
        handle_domain_exception(e)

    return BookingListResponse(
        bookings_count=result.total_count,
        res_per_page=result.per_page,
        filtered_bookings_count=result.filtered_count,
        page=result.page,
        bookings=[BookingResponse.from_booking(b) for b in result.items],
    )


@router.post(
    "",
    response_model=BookingCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        402: {"description": "Payment not authorized"},
        404: {"description": "Expertise post, expert or customer not found"},
        409: {"description": "PaymentIntent already backs another booking"},
        503: {"description": "Payment processor unavailable; retry"},
    },
)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingCreateResponse:
    """
    Create a booking in PENDING_RESPONSE.

    The customer's funds must already be held: either pass the
    ``stripePaymentIntentId`` the client confirmed, or a ``paymentMethodId`` to
    authorize server-side. The expert is emailed; ``notificationSent`` reports
    whether that worked.
    """
    try:
        result = await asyncio.to_thread(booking_service.create_booking, booking_data)
    except DomainException as e:
        handle_domain_exception(e)

    return BookingCreateResponse(
        booking_id=result.booking.id, notification_sent=result.notification_sent
    )


# ============================================================================
# SECTION 2: Dynamic routes (with path parameters - placed last)
# ============================================================================


@router.get(
    "/{booking_id}",
    response_model=BookingDetailResponse,
    responses={404: {"description": "Booking not found"}},
)
async def get_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingDetailResponse:
    """Get full booking details."""
    try:
        booking = await asyncio.to_thread(booking_service.get_booking, booking_id)
    except DomainException as e:
        handle_domain_exception(e)

    return BookingDetailResponse(booking=BookingResponse.from_booking(booking))


@router.put(
    "/{booking_id}",
    response_model=BookingUpdateResponse,
    responses={
        400: {"description": "Immutable field changed or invalid status request"},
        402: {"description": "Payment capture failed; booking unchanged"},
        404: {"description": "Booking not found"},
        409: {"description": "Booking is already in a terminal status"},
        503: {"description": "Payment processor unavailable; retry"},
    },
)
async def update_booking(
    booking_id: str = Path(..., description="Booking ULID", pattern=ULID_PATH_PATTERN),
    update_data: BookingUpdate = Body(...),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingUpdateResponse:
    """
    Update a booking.

    With ``chargePaymentIntent: true`` the held payment is captured first and
    the booking moves to COMPLETED. If the capture fails nothing is written
    and the customer is not emailed.
    """
    try:
        result = await asyncio.to_thread(booking_service.update_booking, booking_id, update_data)
    except DomainException as e:
        handle_domain_exception(e)

    return BookingUpdateResponse(
        booking=BookingResponse.from_booking(result.booking),
        notification_sent=result.notification_sent,
    )

# backend/slicedadvice/routes/v1/payments.py
"""
Payment routes - API v1

Endpoints:
    POST /payment-intent - Hold a booking's total on a manual-capture PaymentIntent
"""

import asyncio
import logging

from fastapi import APIRouter, Body, Depends, status

from ...api.dependencies import get_booking_service
from ...core.exceptions import DomainException
from ...schemas.payment_schemas import PaymentIntentCreateRequest, PaymentIntentCreateResponse
from ...services.booking_service import BookingService
from .bookings import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments-v1"])


@router.post(
    "/payment-intent",
    response_model=PaymentIntentCreateResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"description": "Quote is stale or the expert cannot be paid"},
        402: {"description": "Stripe refused the authorization"},
        503: {"description": "Payment processor unavailable; retry"},
    },
)
async def create_payment_intent(
    payload: PaymentIntentCreateRequest = Body(...),
    booking_service: BookingService = Depends(get_booking_service),
) -> PaymentIntentCreateResponse:
    """
    Create the PaymentIntent the client confirms before creating the booking.

    The amount charged is always the server quote for the expertise post;
    ``total`` and ``serviceFee`` in the body must match it.
    """
    try:
        handle = await asyncio.to_thread(booking_service.create_payment_authorization, payload)
    except DomainException as e:
        handle_domain_exception(e)

    return PaymentIntentCreateResponse(
        success=True,
        client_secret=handle.client_secret,
        payment_intent_id=handle.id,
    )

"""
Payment-related Pydantic schemas for the SlicedAdvice platform.

Request and response models for creating the manual-capture PaymentIntent
a client confirms before booking.
"""

from decimal import Decimal
from typing import Optional

from pydantic import Field

from ..models.booking import BookingStatus, BookingType
from ._strict_base import StrictModel, StrictRequestModel

# ========== Request Models ==========


class PaymentIntentCreateRequest(StrictRequestModel):
    """
    Request a payment hold for a booking.

    ``total`` and ``service_fee`` are what the client displayed; they are
    checked against the server quote and never charged as-is.
    """

    total: Decimal = Field(..., gt=0)
    service_fee: Decimal = Field(..., ge=0)
    booking_type: BookingType = BookingType.SINGLE_TEXT_RESPONSE
    expertise_post_id: str = Field(..., min_length=1)
    expert_id: str = Field(..., min_length=1)
    customer_id: str = Field(..., min_length=1)
    status: Optional[BookingStatus] = None
    expert_stripe_id: Optional[str] = Field(
        default=None, description="Optional; must match the post owner's payout account"
    )


# ========== Response Models ==========


class PaymentIntentCreateResponse(StrictModel):
    success: bool = True
    client_secret: Optional[str] = Field(..., description="Secret the client confirms with")
    payment_intent_id: str

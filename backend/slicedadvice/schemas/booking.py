"""
Booking request and response schemas.

JSON keys are camelCase (``expertisePostId``, ``singleTextResponse``) and
requests also accept the snake_case field names. Money is ``Decimal`` with two
places and serializes as a string.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator

from ..core.constants import MAX_RESPONSE_LENGTH, MAX_SUBMISSION_LENGTH
from ..models.booking import Booking, BookingStatus, BookingType
from ._strict_base import StrictModel, StrictRequestModel

# ========== Request Models ==========


class BookingCreate(StrictRequestModel):
    """Create a booking on an expertise post, backed by a held payment."""

    booking_type: BookingType = BookingType.SINGLE_TEXT_RESPONSE
    expertise_post_id: str = Field(..., min_length=1)
    expert_id: str = Field(..., min_length=1)
    customer_id: str = Field(..., min_length=1)
    status: Optional[BookingStatus] = Field(
        default=None, description="Accepted for compatibility; must be PENDING_RESPONSE"
    )
    customer_submission: str = Field(..., min_length=1, max_length=MAX_SUBMISSION_LENGTH)
    stripe_payment_intent_id: Optional[str] = Field(
        default=None, description="Client-confirmed PaymentIntent holding the funds"
    )
    payment_method_id: Optional[str] = Field(
        default=None, description="Payment method to authorize server-side"
    )

    @field_validator("status")
    @classmethod
    def _only_pending(cls, value: Optional[BookingStatus]) -> Optional[BookingStatus]:
        if value is not None and value != BookingStatus.PENDING_RESPONSE:
            raise ValueError("new bookings start in PENDING_RESPONSE")
        return value


class SingleTextResponsePatch(StrictRequestModel):
    customer_submission: Optional[str] = Field(
        default=None, min_length=1, max_length=MAX_SUBMISSION_LENGTH
    )
    expert_response: Optional[str] = Field(
        default=None, min_length=1, max_length=MAX_RESPONSE_LENGTH
    )


class BookingUpdate(StrictRequestModel):
    """
    Partial booking update.

    Mirrors the booking document the client holds, so it may echo fields that
    cannot change (parties, post, PaymentIntent, type). Those must match the
    stored values.
    """

    booking_type: Optional[BookingType] = None
    expertise_post: Optional[str] = None
    expert: Optional[str] = None
    customer: Optional[str] = None
    status: Optional[BookingStatus] = None
    single_text_response: Optional[SingleTextResponsePatch] = None
    stripe_payment_intent_id: Optional[str] = None
    id: Optional[str] = Field(default=None, alias="_id")
    charge_payment_intent: bool = Field(
        default=False, description="Capture the held payment as part of this update"
    )


# ========== Response Models ==========


class SingleTextResponse(StrictModel):
    customer_submission: str
    expert_response: Optional[str] = None


class BookingResponse(StrictModel):
    """Booking as returned by the API."""

    model_config = ConfigDict(**StrictModel.model_config, from_attributes=True)

    id: str
    booking_type: BookingType
    expert_id: str
    customer_id: str
    expertise_post_id: str
    status: BookingStatus
    single_text_response: SingleTextResponse
    stripe_payment_intent_id: str
    price_per_submission: Decimal
    service_fee: Decimal
    total: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingResponse":
        return cls(
            id=booking.id,
            booking_type=booking.booking_type,
            expert_id=booking.expert_id,
            customer_id=booking.customer_id,
            expertise_post_id=booking.expertise_post_id,
            status=booking.status,
            single_text_response=SingleTextResponse(
                customer_submission=booking.customer_submission,
                expert_response=booking.expert_response,
            ),
            stripe_payment_intent_id=booking.stripe_payment_intent_id,
            price_per_submission=booking.price_per_submission,
            service_fee=booking.service_fee,
            total=booking.total,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
            completed_at=booking.completed_at,
        )


class BookingCreateResponse(StrictModel):
    booking_id: str
    notification_sent: bool


class BookingUpdateResponse(StrictModel):
    booking: BookingResponse
    notification_sent: bool = False


class BookingDetailResponse(StrictModel):
    booking: BookingResponse


class BookingListResponse(StrictModel):
    """Paginated listing in the original ``getBookings`` shape."""

    bookings_count: int = Field(..., description="All bookings, ignoring filters")
    res_per_page: int
    filtered_bookings_count: int = Field(..., description="Bookings matching the filters")
    page: int = 1
    bookings: List[BookingResponse]

"""
Pydantic schemas for the SlicedAdvice booking API.

Request models forbid unknown fields and accept camelCase or snake_case keys;
responses are serialized with camelCase keys.
"""

from .booking import (
    BookingCreate,
    BookingCreateResponse,
    BookingDetailResponse,
    BookingListResponse,
    BookingResponse,
    BookingUpdate,
    BookingUpdateResponse,
    SingleTextResponse,
    SingleTextResponsePatch,
)
from .payment_schemas import PaymentIntentCreateRequest, PaymentIntentCreateResponse
from .pricing import FeeQuoteResponse

__all__ = [
    "BookingCreate",
    "BookingCreateResponse",
    "BookingDetailResponse",
    "BookingListResponse",
    "BookingResponse",
    "BookingUpdate",
    "BookingUpdateResponse",
    "FeeQuoteResponse",
    "PaymentIntentCreateRequest",
    "PaymentIntentCreateResponse",
    "SingleTextResponse",
    "SingleTextResponsePatch",
]

# backend/slicedadvice/routes/v1/pricing.py
"""
Pricing routes - API v1

Endpoints:
    GET /expertise-posts/{post_id} - Server quote for booking an expertise post
"""

import asyncio
import logging

from fastapi import APIRouter, Depends
from fastapi.params import Path

from ...api.dependencies import get_pricing_service
from ...core.exceptions import DomainException
from ...schemas.pricing import FeeQuoteResponse
from ...services.pricing_service import PricingService
from .bookings import ULID_PATH_PATTERN, handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pricing-v1"])


@router.get(
    "/expertise-posts/{post_id}",
    response_model=FeeQuoteResponse,
    responses={404: {"description": "Expertise post not found or inactive"}},
)
async def get_expertise_post_quote(
    post_id: str = Path(..., description="Expertise post ULID", pattern=ULID_PATH_PATTERN),
    pricing_service: PricingService = Depends(get_pricing_service),
) -> FeeQuoteResponse:
    """Price, service fee and total a customer will be charged."""
    try:
        quote = await asyncio.to_thread(pricing_service.quote_for_post, post_id)
    except DomainException as e:
        handle_domain_exception(e)

    return FeeQuoteResponse.from_quote(quote)

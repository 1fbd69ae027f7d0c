"""Fee quote schema."""

from decimal import Decimal

from ..services.pricing_service import FeeQuote
from ._strict_base import StrictModel


class FeeQuoteResponse(StrictModel):
    """Server-computed amounts for booking one expertise post."""

    price_per_submission: Decimal
    service_fee: Decimal
    total: Decimal

    @classmethod
    def from_quote(cls, quote: FeeQuote) -> "FeeQuoteResponse":
        return cls(
            price_per_submission=quote.price_per_submission,
            service_fee=quote.service_fee,
            total=quote.total,
        )

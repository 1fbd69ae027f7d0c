"""Centralized fee calculations for advice bookings."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import InvalidAmountException, NotFoundException
from ..models.expertise_post import ExpertisePost
from ..repositories.expertise_post_repository import ExpertisePostRepository
from ..repositories.factory import RepositoryFactory
from .base import BaseService

CENT = Decimal("0.01")


def _to_decimal(amount: Any) -> Decimal:
    if isinstance(amount, bool):
        raise InvalidAmountException(amount, "Amount must be numeric")
    if isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, (int, str)):
        try:
            value = Decimal(str(amount).strip()) if isinstance(amount, str) else Decimal(amount)
        except InvalidOperation:
            raise InvalidAmountException(amount, "Amount must be numeric")
    elif isinstance(amount, float):
        # str() keeps 19.99 as 19.99 instead of its binary expansion
        value = Decimal(str(amount))
    else:
        raise InvalidAmountException(amount, "Amount must be numeric")

    if not value.is_finite():
        raise InvalidAmountException(amount, "Amount must be a finite number")
    return value


def round_half_up_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: Any) -> int:
    """Convert a dollar amount to integer minor units, rounding half up."""
    value = _to_decimal(amount)
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class FeeQuote:
    """Customer-facing amounts for one booking, in dollars."""

    price_per_submission: Decimal
    service_fee: Decimal
    total: Decimal

    def to_cents(self) -> Dict[str, int]:
        return {
            "price_per_submission": to_cents(self.price_per_submission),
            "service_fee": to_cents(self.service_fee),
            "total": to_cents(self.total),
        }


def compute_fees(price_per_submission: Any) -> FeeQuote:
    """
    Compute the service fee and total for a booking price.

    service_fee = round_half_up(price * service_fee_pct + service_fee_fixed)
    total = price + service_fee

    Raises:
        InvalidAmountException: price is non-numeric, non-finite, not positive,
            or carries sub-cent digits
    """
    price = _to_decimal(price_per_submission)
    if price <= 0:
        raise InvalidAmountException(price_per_submission, "Price must be greater than zero")
    if price != price.quantize(CENT):
        raise InvalidAmountException(
            price_per_submission, "Price cannot have fractions of a cent"
        )
    price = price.quantize(CENT)

    pct = Decimal(str(settings.service_fee_pct))
    fixed = Decimal(str(settings.service_fee_fixed))
    service_fee = round_half_up_cents(price * pct + fixed)

    return FeeQuote(
        price_per_submission=price,
        service_fee=service_fee,
        total=price + service_fee,
    )


class PricingService(BaseService):
    """Quote bookings from the stored expertise post price."""

    def __init__(
        self, db: Session, post_repository: Optional[ExpertisePostRepository] = None
    ) -> None:
        super().__init__(db)
        self.post_repository = (
            post_repository or RepositoryFactory.create_expertise_post_repository(db)
        )

    def get_bookable_post(self, expertise_post_id: str) -> ExpertisePost:
        post = self.post_repository.get_active_by_id(expertise_post_id)
        if post is None:
            raise NotFoundException(
                "Expertise post not found",
                code="EXPERTISE_POST_NOT_FOUND",
                details={"expertise_post_id": expertise_post_id},
            )
        return post

    @BaseService.measure_operation("pricing.quote_for_post")
    def quote_for_post(self, expertise_post_id: str) -> FeeQuote:
        """
        Quote a booking on ``expertise_post_id`` using its stored price.

        Raises:
            NotFoundException: post is missing or no longer active
        """
        post = self.get_bookable_post(expertise_post_id)
        return compute_fees(post.price_per_submission)

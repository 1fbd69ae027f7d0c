# backend/slicedadvice/repositories/booking_repository.py
"""
Booking Repository for the SlicedAdvice platform.

Implements all data access operations for advice bookings:
- Booking CRUD operations (no commits; services own the transaction)
- Lookup by the Stripe PaymentIntent that holds a booking's funds
- Filtered, paginated listing with keyword search

The repository does not enforce the booking state machine. Status
transitions are validated by BookingService before any write reaches here.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
import logging
from typing import Any, List, Optional, cast

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.config import settings
from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


@dataclass
class BookingListFilters:
    """Search criteria for listing bookings. ``None`` means "don't filter"."""

    keyword: Optional[str] = None
    status: Optional[str] = None
    booking_type: Optional[str] = None
    expert_id: Optional[str] = None
    customer_id: Optional[str] = None
    expertise_post_id: Optional[str] = None
    total_gte: Optional[Decimal] = None
    total_lte: Optional[Decimal] = None
    created_after: Optional[datetime] = None
    created_before: Optional[datetime] = None


@dataclass
class BookingPage:
    """One page of bookings plus the counts the listing endpoint reports."""

    items: List[Booking] = field(default_factory=list)
    total_count: int = 0
    filtered_count: int = 0
    page: int = 1
    per_page: int = 0


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so a keyword only matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def clamp_per_page(per_page: Optional[int]) -> int:
    """Bound a requested page size to ``[1, bookings_max_page_size]``."""
    if per_page is None:
        return settings.bookings_page_size
    return max(1, min(int(per_page), settings.bookings_max_page_size))


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        """Initialize with Booking model."""
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def get_by_payment_intent_id(self, payment_intent_id: str) -> Optional[Booking]:
        """Return the booking backed by ``payment_intent_id``, if any."""
        try:
            return cast(
                Optional[Booking],
                self._apply_eager_loading(self.db.query(Booking))
                .filter(Booking.stripe_payment_intent_id == payment_intent_id)
                .first(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting booking for payment intent {payment_intent_id}: {e}")
            raise RepositoryException(f"Failed to get booking by payment intent: {str(e)}")

    def list_bookings(
        self,
        filters: Optional[BookingListFilters] = None,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> BookingPage:
        """
        List bookings newest first.

        Args:
            filters: Optional search criteria
            page: 1-based page number (values below 1 are treated as 1)
            per_page: Page size, bounded by settings

        Returns:
            BookingPage with the page items, the unfiltered total and the
            number of rows that matched the filters
        """
        filters = filters or BookingListFilters()
        page = max(1, int(page or 1))
        size = clamp_per_page(per_page)

        try:
            total_count = self.count()

            query = self._apply_filters(self.db.query(Booking), filters)
            filtered_count = query.count()

            items = (
                self._apply_eager_loading(query)
                .order_by(Booking.created_at.desc(), Booking.id.desc())
                .offset((page - 1) * size)
                .limit(size)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings: {str(e)}")
            raise RepositoryException(f"Failed to list bookings: {str(e)}")

        return BookingPage(
            items=cast(List[Booking], items),
            total_count=total_count,
            filtered_count=filtered_count,
            page=page,
            per_page=size,
        )

    def _apply_filters(self, query: Query, filters: BookingListFilters) -> Query:
        if filters.keyword:
            term = f"%{escape_like(filters.keyword.strip())}%"
            query = query.filter(
                or_(
                    Booking.customer_submission.ilike(term, escape="\\"),
                    Booking.expert_response.ilike(term, escape="\\"),
                )
            )

        equality: dict[str, Any] = {
            "status": filters.status,
            "booking_type": filters.booking_type,
            "expert_id": filters.expert_id,
            "customer_id": filters.customer_id,
            "expertise_post_id": filters.expertise_post_id,
        }
        for column, value in equality.items():
            if value is not None:
                query = query.filter(getattr(Booking, column) == value)

        if filters.total_gte is not None:
            query = query.filter(Booking.total >= filters.total_gte)
        if filters.total_lte is not None:
            query = query.filter(Booking.total <= filters.total_lte)
        if filters.created_after is not None:
            query = query.filter(Booking.created_at >= filters.created_after)
        if filters.created_before is not None:
            query = query.filter(Booking.created_at <= filters.created_before)

        return query

    def _apply_eager_loading(self, query: Query) -> Query:
        """Load the parties and the post, which responses and emails need."""
        return query.options(
            joinedload(Booking.expert),
            joinedload(Booking.customer),
            joinedload(Booking.expertise_post),
        )

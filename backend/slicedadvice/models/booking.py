# backend/slicedadvice/models/booking.py
"""
Booking model for the SlicedAdvice platform.

A booking is a paid advice submission from a customer to an expert. Funds are
authorized when the booking is created and captured only when the expert
responds, so every row carries the Stripe PaymentIntent that holds them.

Price, service fee, and total are snapshotted at booking time so the amount that
was authorized can always be reconciled against the row, even if the
expertise post's price changes later.
"""

from enum import Enum
import logging
from typing import Any

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING_RESPONSE = "PENDING_RESPONSE"  # Funds held, waiting on the expert
    COMPLETED = "COMPLETED"  # Expert responded and payment captured
    CANCELLED = "CANCELLED"  # Reserved: no transition implemented yet
    EXPIRED = "EXPIRED"  # Reserved: response window lapsed


class BookingType(str, Enum):
    """Advice formats an expertise post can be booked for."""

    SINGLE_TEXT_RESPONSE = "SINGLE_TEXT_RESPONSE"
    VIDEO_RESPONSE = "VIDEO_RESPONSE"
    LIVE_CALL = "LIVE_CALL"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").lower()


TERMINAL_STATUSES = frozenset(
    {BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.EXPIRED}
)

# Only PENDING_RESPONSE -> COMPLETED is driven by the service today.
ALLOWED_STATUS_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING_RESPONSE: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.EXPIRED: frozenset(),
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    """Return True when ``current -> target`` is a valid booking transition."""
    return target in ALLOWED_STATUS_TRANSITIONS.get(BookingStatus(current), frozenset())


class Booking(Base):
    """
    Advice booking between a customer and an expert.

    Parties and the expertise post are referenced by id only; the booking core
    needs their display name, email and payout account, which it loads through
    the relationships below.
    """

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    booking_type = Column(
        String(40), nullable=False, default=BookingType.SINGLE_TEXT_RESPONSE.value
    )
    expert_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    customer_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    expertise_post_id = Column(
        String(26), ForeignKey("expertise_posts.id"), nullable=False, index=True
    )

    status = Column(
        String(20), nullable=False, default=BookingStatus.PENDING_RESPONSE.value, index=True
    )

    # Single text response payload
    customer_submission = Column(Text, nullable=False)
    expert_response = Column(Text, nullable=True)

    # Held authorization; one PaymentIntent never backs two bookings
    stripe_payment_intent_id = Column(String(255), nullable=False, unique=True)

    # Money snapshot (dollars, 2 places)
    price_per_submission = Column(Numeric(10, 2), nullable=False)
    service_fee = Column(Numeric(10, 2), nullable=False)
    total = Column(Numeric(10, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)

    expert = relationship("User", foreign_keys=[expert_id])
    customer = relationship("User", foreign_keys=[customer_id])
    expertise_post = relationship("ExpertisePost", back_populates="bookings")

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING_RESPONSE', 'COMPLETED', 'CANCELLED', 'EXPIRED')",
            name="ck_bookings_status",
        ),
        CheckConstraint("price_per_submission > 0", name="check_price_positive"),
        CheckConstraint("service_fee >= 0", name="check_service_fee_non_negative"),
    )
    # Load server-generated timestamps at flush so responses never lazy-load them
    __mapper_args__ = {"eager_defaults": True}

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = BookingStatus.PENDING_RESPONSE.value

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: customer={self.customer_id}, expert={self.expert_id}, "
            f"type={self.booking_type}, status={self.status}>"
        )

    @property
    def is_terminal(self) -> bool:
        return BookingStatus(self.status) in TERMINAL_STATUSES


Index("ix_bookings_expert_status", Booking.expert_id, Booking.status)

# backend/slicedadvice/models/expertise_post.py
"""Expertise post model: an expert's bookable offer and its trusted price."""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class ExpertisePost(Base):
    """
    Offer published by an expert.

    ``price_per_submission`` is the only price source used for quotes and
    authorizations; client-supplied amounts are never trusted.
    """

    __tablename__ = "expertise_posts"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    price_per_submission = Column(Numeric(10, 2), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User")
    bookings = relationship("Booking", back_populates="expertise_post")

    __table_args__ = (
        CheckConstraint("price_per_submission > 0", name="check_post_price_positive"),
    )

    def __repr__(self) -> str:
        return f"<ExpertisePost {self.id}: {self.title} ${self.price_per_submission}>"

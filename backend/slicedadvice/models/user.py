# backend/slicedadvice/models/user.py
"""
User model.

Accounts, sessions and onboarding live in other subsystems; the booking core
only reads a user's display name, email, and Stripe Connect payout account.
"""

from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func
import ulid

from ..database import Base


class User(Base):
    """Customer or expert, as seen by the booking core."""

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(120), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    # Stripe Connect account that receives the expert's payout
    stripe_account_id = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email}>"

# backend/slicedadvice/models/__init__.py
"""
SQLAlchemy models for the SlicedAdvice booking service.

Importing this package registers every table on ``Base.metadata``.
"""

from .booking import (
    ALLOWED_STATUS_TRANSITIONS,
    TERMINAL_STATUSES,
    Booking,
    BookingStatus,
    BookingType,
    can_transition,
)
from .expertise_post import ExpertisePost
from .user import User

__all__ = [
    "ALLOWED_STATUS_TRANSITIONS",
    "TERMINAL_STATUSES",
    "Booking",
    "BookingStatus",
    "BookingType",
    "ExpertisePost",
    "User",
    "can_transition",
]

# backend/slicedadvice/api/dependencies/__init__.py
"""
Central export point for all dependencies.
"""

from .database import get_db
from .services import (
    get_booking_service,
    get_notification_service,
    get_pricing_service,
    get_stripe_service,
)

__all__ = [
    # Database
    "get_db",
    # Services
    "get_booking_service",
    "get_notification_service",
    "get_pricing_service",
    "get_stripe_service",
]

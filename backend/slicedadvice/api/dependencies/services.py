# backend/slicedadvice/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

The Stripe gateway and the notifier are built once in the application
lifespan and kept on ``app.state``; the per-request services below wrap them
around a fresh database session.
"""

import logging

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ...services.booking_service import BookingService
from ...services.notification_service import NotificationService
from ...services.pricing_service import PricingService
from ...services.stripe_service import StripeService
from .database import get_db

logger = logging.getLogger(__name__)


def get_stripe_service(request: Request) -> StripeService:
    """Process-wide Stripe gateway created at startup."""
    return request.app.state.stripe_service


def get_notification_service(request: Request) -> NotificationService:
    """Process-wide notifier created at startup."""
    return request.app.state.notification_service


def get_pricing_service(db: Session = Depends(get_db)) -> PricingService:
    """Get PricingService instance for the request session."""
    return PricingService(db)


def get_booking_service(
    db: Session = Depends(get_db),
    stripe_service: StripeService = Depends(get_stripe_service),
    notification_service: NotificationService = Depends(get_notification_service),
    pricing_service: PricingService = Depends(get_pricing_service),
) -> BookingService:
    """
    Get booking service instance with all dependencies.

    Args:
        db: Database session
        stripe_service: Shared payment gateway
        notification_service: Shared notifier for booking emails
        pricing_service: Quote calculator bound to the same session

    Returns:
        BookingService instance
    """
    return BookingService(
        db,
        stripe_service,
        notification_service,
        pricing_service=pricing_service,
    )

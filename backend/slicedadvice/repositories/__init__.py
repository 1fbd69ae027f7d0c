# backend/slicedadvice/repositories/__init__.py
"""
Repository layer for the SlicedAdvice booking service.

Key Components:
- BaseRepository: Foundation for all repositories with generic CRUD operations
- IRepository: Interface defining required methods for all repositories
- RepositoryFactory: Factory for creating repository instances
- BookingRepository: Booking persistence, lookup by PaymentIntent, filtered listing
- ExpertisePostRepository: Trusted price lookups
- UserRepository: Party lookups (name, email, payout account)

Usage:
    from slicedadvice.repositories import RepositoryFactory

    repository = RepositoryFactory.create_booking_repository(db)
    booking = repository.get_by_id(booking_id)
"""

from .base_repository import BaseRepository, IRepository
from .booking_repository import BookingListFilters, BookingPage, BookingRepository
from .expertise_post_repository import ExpertisePostRepository
from .factory import RepositoryFactory
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "BookingListFilters",
    "BookingPage",
    "BookingRepository",
    "ExpertisePostRepository",
    "IRepository",
    "RepositoryFactory",
    "UserRepository",
]

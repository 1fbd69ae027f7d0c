# backend/slicedadvice/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import bookings as bookings, payments as payments, pricing as pricing

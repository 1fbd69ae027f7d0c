"""Application-wide constants for the SlicedAdvice booking service."""

from __future__ import annotations

BRAND_NAME = "SlicedAdvice"

API_TITLE = f"{BRAND_NAME} Bookings API"
API_DESCRIPTION = "Booking lifecycle and payment escrow for expert advice submissions"
API_VERSION = "1.0.0"

# Text constraints
MAX_SUBMISSION_LENGTH = 5000
MAX_RESPONSE_LENGTH = 10000

# Query limits
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

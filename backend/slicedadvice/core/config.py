# backend/slicedadvice/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants.pricing_defaults import PRICING_DEFAULTS
from .constants import BRAND_NAME, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: str = Field(default="development", alias="ENVIRONMENT")

    database_url: str = Field(
        default="sqlite:///./slicedadvice.db",
        alias="DATABASE_URL",
        description="SQLAlchemy URL for the booking store",
    )

    # Frontend URL used in notification links
    frontend_url: str = "https://slicedadvice.com"

    # Email settings
    email_provider: Literal["console", "resend"] = Field(
        default="console",
        alias="EMAIL_PROVIDER",
        description="Email provider name",
    )
    resend_api_key: str | None = Field(
        default=None,
        alias="RESEND_API_KEY",
        description="API key for Resend provider (optional)",
    )
    from_email: str = f"{BRAND_NAME} <hello@slicedadvice.com>"

    # Stripe Configuration
    stripe_secret_key: Optional[SecretStr] = Field(
        default=None,
        alias="STRIPE_SECRET_KEY",
        description="Stripe secret key for backend API calls",
    )
    stripe_currency: str = Field(default="usd", description="Default currency for payments")
    stripe_marketplace_fee_pct: float = Field(
        default=PRICING_DEFAULTS["marketplace_fee_pct"],
        description="Platform cut of the expert's net price (20 = 20%)",
    )
    stripe_timeout_seconds: float = Field(
        default=8.0, description="Network timeout for a single Stripe API call"
    )
    stripe_max_network_retries: int = Field(
        default=1, description="Automatic retries for transient Stripe network failures"
    )

    # Customer-facing service fee: price * pct + fixed
    service_fee_pct: float = Field(
        default=PRICING_DEFAULTS["service_fee_pct"], description="Service fee rate (0.029 = 2.9%)"
    )
    service_fee_fixed: float = Field(
        default=PRICING_DEFAULTS["service_fee_fixed"], description="Flat service fee in dollars"
    )

    # Booking policy
    response_window_days: int = Field(
        default=7, description="Days an expert has to respond to a booking"
    )
    bookings_page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)
    bookings_max_page_size: int = Field(default=MAX_PAGE_SIZE, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("service_fee_pct", "service_fee_fixed", "stripe_marketplace_fee_pct")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("fee settings must be non-negative")
        return value

    @field_validator("stripe_marketplace_fee_pct")
    @classmethod
    def _at_most_hundred(cls, value: float) -> float:
        if value > 100:
            raise ValueError("stripe_marketplace_fee_pct is a percentage (0-100)")
        return value


settings = Settings()

"""
Stripe Service for the SlicedAdvice platform.

Implements the Stripe API interactions behind booking escrow: funds are held
on a manual-capture PaymentIntent when the customer books, and captured once
the expert has responded.

Key Features:
- Destination charges to the expert's Connect account
- Application fee = marketplace cut of the net price + the customer service fee
- Bounded network timeouts; connection failures surface as retryable 503s
- Idempotency keys passed through for authorize and capture

The service holds no per-request state and no database session. It is built
once at startup and shared by every request.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import Any, Dict, Optional

import stripe

from ..core.config import settings
from ..core.constants import BRAND_NAME
from ..core.exceptions import (
    AuthorizationFailedException,
    CaptureFailedException,
    PaymentProcessorUnavailableException,
    ServiceException,
)
from .base import BaseService
from .pricing_service import to_cents

logger: logging.Logger = logging.getLogger(__name__)

AUTHORIZED_STATUS = "requires_capture"
CAPTURED_STATUS = "succeeded"
FAILED_AUTHORIZATION_STATUSES = frozenset({"canceled", "requires_payment_method"})


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read a field from a StripeObject, plain dict, or test double."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


@dataclass
class AuthorizationHandle:
    """A PaymentIntent that holds (or is about to hold) a customer's funds."""

    id: str
    status: str
    amount_cents: int
    client_secret: Optional[str] = None
    application_fee_cents: Optional[int] = None
    destination_account_id: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def is_authorized(self) -> bool:
        return self.status == AUTHORIZED_STATUS

    @classmethod
    def from_payment_intent(cls, pi: Any) -> "AuthorizationHandle":
        transfer_data = _field(pi, "transfer_data")
        metadata = _field(pi, "metadata") or {}
        return cls(
            id=_field(pi, "id"),
            status=_field(pi, "status", ""),
            amount_cents=int(_field(pi, "amount", 0) or 0),
            client_secret=_field(pi, "client_secret"),
            application_fee_cents=_field(pi, "application_fee_amount"),
            destination_account_id=_field(transfer_data, "destination"),
            metadata={str(k): str(v) for k, v in dict(metadata).items()},
        )


@dataclass
class CaptureResult:
    payment_intent_id: str
    status: str
    amount_received: Optional[int] = None
    charge_id: Optional[str] = None
    transfer_id: Optional[str] = None


class StripeService(BaseService):
    """
    Payment Authorization Gateway.

    Wraps ``stripe.PaymentIntent`` for the hold / capture / release cycle of a
    booking. Stripe exceptions never leave this class; they are mapped to the
    payment domain exceptions.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        currency: Optional[str] = None,
        marketplace_fee_pct: Optional[float] = None,
    ):
        super().__init__()
        self.currency = currency or settings.stripe_currency
        # Percent of the net price kept by the platform (20 means 20%, not 0.20)
        self.marketplace_fee_pct = Decimal(
            str(
                settings.stripe_marketplace_fee_pct
                if marketplace_fee_pct is None
                else marketplace_fee_pct
            )
        )

        if api_key is None and settings.stripe_secret_key:
            api_key = settings.stripe_secret_key.get_secret_value()

        self.stripe_configured = False
        if api_key:
            stripe.api_key = api_key
            # Bounded timeouts so a slow Stripe call can't pin a worker thread
            stripe.default_http_client = stripe.RequestsClient(
                timeout=settings.stripe_timeout_seconds
            )
            stripe.max_network_retries = settings.stripe_max_network_retries
            self.stripe_configured = True
            self.logger.info("Stripe service configured successfully")
        else:
            self.logger.warning(
                "Stripe secret key not configured - payment operations will be rejected"
            )

    def _check_stripe_configured(self) -> None:
        """Check if Stripe is properly configured before making API calls."""
        if not self.stripe_configured:
            raise ServiceException(
                "Stripe service not configured. Please check STRIPE_SECRET_KEY environment variable.",
                code="STRIPE_NOT_CONFIGURED",
            )

    def compute_application_fee_cents(self, total_cents: int, service_fee_cents: int) -> int:
        """
        Platform revenue for a booking, in cents.

        The marketplace cut is taken from the expert's net price only
        (total minus the customer service fee); the whole service fee is added
        on top.
        """
        net_cents = Decimal(int(total_cents) - int(service_fee_cents))
        marketplace_fee = (net_cents * self.marketplace_fee_pct / Decimal(100)).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
        return int(marketplace_fee) + int(service_fee_cents)

    @BaseService.measure_operation("stripe_authorize")
    def authorize(
        self,
        *,
        total: Any,
        service_fee: Any,
        destination_account_id: str,
        metadata: Dict[str, Any],
        payment_method_id: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> AuthorizationHandle:
        """
        Create a manual-capture PaymentIntent for ``total`` dollars.

        Without ``payment_method_id`` the intent is returned unconfirmed and the
        client confirms it with ``client_secret``. With it, the intent is
        confirmed off-session here and must come back ``requires_capture``.

        Raises:
            AuthorizationFailedException: Stripe refused the hold
            PaymentProcessorUnavailableException: Stripe could not be reached
            ServiceException: Stripe is not configured
        """
        self._check_stripe_configured()

        total_cents = to_cents(total)
        service_fee_cents = to_cents(service_fee)
        application_fee_cents = self.compute_application_fee_cents(total_cents, service_fee_cents)

        stripe_metadata = {str(k): str(v) for k, v in metadata.items() if v is not None}
        stripe_metadata.update(
            {
                "platform": BRAND_NAME.lower(),
                "total_cents": str(total_cents),
                "service_fee_cents": str(service_fee_cents),
                "application_fee_cents": str(application_fee_cents),
            }
        )

        stripe_kwargs: Dict[str, Any] = {
            "amount": total_cents,
            "currency": self.currency,
            "capture_method": "manual",
            "application_fee_amount": application_fee_cents,
            "transfer_data": {"destination": destination_account_id},
            "metadata": stripe_metadata,
            "description": (
                f"Booking from customer with id {metadata.get('customer_id')} of type "
                f"{metadata.get('booking_type')} to expert with id {metadata.get('expert_id')} "
                f"for {Decimal(total_cents) / 100:.2f} dollars."
            ),
        }
        if payment_method_id:
            stripe_kwargs.update(
                {
                    "payment_method": payment_method_id,
                    "confirm": True,
                    "off_session": True,
                }
            )
        else:
            stripe_kwargs["automatic_payment_methods"] = {"enabled": True}
        if idempotency_key:
            stripe_kwargs["idempotency_key"] = idempotency_key

        try:
            pi = stripe.PaymentIntent.create(**stripe_kwargs)
        except stripe.APIConnectionError as e:
            self.logger.error(f"Stripe unreachable while authorizing payment: {str(e)}")
            raise PaymentProcessorUnavailableException("authorization")
        except stripe.StripeError as e:
            self.logger.warning(f"Stripe refused payment authorization: {str(e)}")
            raise AuthorizationFailedException(
                f"Payment authorization failed: {getattr(e, 'user_message', None) or str(e)}",
                details={"stripe_code": getattr(e, "code", None)},
            )

        handle = AuthorizationHandle.from_payment_intent(pi)
        if payment_method_id and (
            handle.status in FAILED_AUTHORIZATION_STATUSES or not handle.is_authorized
        ):
            self.logger.warning(
                f"PaymentIntent {handle.id} not authorized after confirm (status={handle.status})"
            )
            raise AuthorizationFailedException(
                "Payment authorization failed",
                details={"payment_intent_id": handle.id, "status": handle.status},
            )

        self.logger.info(
            f"Created PaymentIntent {handle.id} for {total_cents} cents "
            f"(application fee {application_fee_cents}, status={handle.status})"
        )
        return handle

    @BaseService.measure_operation("stripe_retrieve_authorization")
    def retrieve_authorization(self, payment_intent_id: str) -> AuthorizationHandle:
        """Fetch a PaymentIntent so a client-confirmed hold can be verified."""
        self._check_stripe_configured()
        try:
            pi = stripe.PaymentIntent.retrieve(payment_intent_id)
        except stripe.APIConnectionError as e:
            self.logger.error(f"Stripe unreachable retrieving {payment_intent_id}: {str(e)}")
            raise PaymentProcessorUnavailableException("authorization lookup")
        except stripe.StripeError as e:
            self.logger.warning(f"Stripe error retrieving {payment_intent_id}: {str(e)}")
            raise AuthorizationFailedException(
                "Payment authorization not found",
                details={"payment_intent_id": payment_intent_id},
            )
        return AuthorizationHandle.from_payment_intent(pi)

    @BaseService.measure_operation("stripe_capture")
    def capture(
        self, payment_intent_id: str, *, idempotency_key: Optional[str] = None
    ) -> CaptureResult:
        """
        Capture a held PaymentIntent.

        Stripe refuses to capture an intent twice or after it was canceled;
        those refusals, and any non-``succeeded`` result, raise
        CaptureFailedException.
        """
        self._check_stripe_configured()
        try:
            pi = stripe.PaymentIntent.capture(payment_intent_id, idempotency_key=idempotency_key)
        except stripe.APIConnectionError as e:
            self.logger.error(f"Stripe unreachable capturing {payment_intent_id}: {str(e)}")
            raise PaymentProcessorUnavailableException(
                "capture", details={"payment_intent_id": payment_intent_id}
            )
        except stripe.StripeError as e:
            self.logger.error(f"Stripe error capturing payment intent {payment_intent_id}: {e}")
            raise CaptureFailedException(
                details={
                    "payment_intent_id": payment_intent_id,
                    "stripe_code": getattr(e, "code", None),
                }
            )

        status = _field(pi, "status", "")
        if status != CAPTURED_STATUS:
            self.logger.error(f"Capture of {payment_intent_id} returned status {status}")
            raise CaptureFailedException(
                details={"payment_intent_id": payment_intent_id, "status": status}
            )

        charge = _field(pi, "latest_charge")
        charges = _field(_field(pi, "charges"), "data") or []
        if charge is None and charges:
            charge = charges[0]
        charge_id = charge if isinstance(charge, str) else _field(charge, "id")
        transfer_id = None if isinstance(charge, str) else _field(charge, "transfer")

        amount_received = _field(pi, "amount_received")
        if amount_received is None:
            amount_received = _field(pi, "amount")

        self.logger.info(f"Captured PaymentIntent {payment_intent_id} ({amount_received} cents)")
        return CaptureResult(
            payment_intent_id=payment_intent_id,
            status=status,
            amount_received=amount_received,
            charge_id=charge_id,
            transfer_id=transfer_id,
        )

    @BaseService.measure_operation("stripe_cancel_authorization")
    def cancel_authorization(
        self, payment_intent_id: str, *, idempotency_key: Optional[str] = None
    ) -> AuthorizationHandle:
        """Cancel a PaymentIntent to release the hold on the customer's funds."""
        self._check_stripe_configured()
        try:
            pi = stripe.PaymentIntent.cancel(payment_intent_id, idempotency_key=idempotency_key)
        except stripe.APIConnectionError as e:
            self.logger.error(f"Stripe unreachable canceling {payment_intent_id}: {str(e)}")
            raise PaymentProcessorUnavailableException("cancel")
        except stripe.StripeError as e:
            self.logger.error(f"Stripe error canceling payment intent: {str(e)}")
            raise ServiceException(f"Failed to cancel payment intent: {str(e)}")
        self.logger.info(f"Released hold on PaymentIntent {payment_intent_id}")
        return AuthorizationHandle.from_payment_intent(pi)

# backend/slicedadvice/services/booking_service.py
"""
Booking Service for the SlicedAdvice platform.

Drives the escrow lifecycle of an advice booking:
- Quoting and holding the customer's funds (manual-capture PaymentIntent)
- Creating the booking once the hold is in place
- Capturing the hold when the expert responds, then completing the booking
- Notifying the expert and the customer along the way

Ordering is strict within a request. Nothing is persisted unless the hold
exists, and a booking never reaches COMPLETED unless the capture succeeded.
Emails are sent after the database write and never roll it back.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import Any, Dict, NoReturn, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.exceptions import (
    AuthorizationFailedException,
    BookingStateException,
    ConflictException,
    DomainException,
    NotFoundException,
    RepositoryException,
    ValidationException,
)
from ..models.booking import Booking, BookingStatus, can_transition
from ..models.expertise_post import ExpertisePost
from ..models.user import User
from ..repositories.booking_repository import BookingListFilters, BookingPage, BookingRepository
from ..repositories.factory import RepositoryFactory
from ..schemas.booking import BookingCreate, BookingUpdate
from ..schemas.payment_schemas import PaymentIntentCreateRequest
from .base import BaseService
from .notification_service import NotificationService
from .pricing_service import FeeQuote, PricingService, to_cents
from .stripe_service import AuthorizationHandle, CaptureResult, StripeService

logger = logging.getLogger(__name__)


@dataclass
class BookingCreateResult:
    booking: Booking
    notification_sent: bool


@dataclass
class BookingUpdateResult:
    booking: Booking
    notification_sent: bool = False
    capture: Optional[CaptureResult] = None

    @property
    def captured(self) -> bool:
        return self.capture is not None


def capture_idempotency_key(booking_id: str, payment_intent_id: str) -> str:
    """Stable key so a retried capture replays Stripe's original result."""
    return f"capture:{booking_id}:{payment_intent_id}"


class BookingService(BaseService):
    """
    Booking Lifecycle Orchestrator.

    The Stripe gateway and the notifier are process-wide and injected; the
    session and repositories are per request.
    """

    def __init__(
        self,
        db: Session,
        stripe_service: StripeService,
        notification_service: NotificationService,
        pricing_service: Optional[PricingService] = None,
        repository: Optional[BookingRepository] = None,
    ):
        super().__init__(db)
        self.stripe_service = stripe_service
        self.notification_service = notification_service
        self.pricing_service = pricing_service or PricingService(db)
        self.repository = repository or RepositoryFactory.create_booking_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    # ------------------------------------------------------------------ #
    # Payment hold (client-confirm flow)
    # ------------------------------------------------------------------ #

    @BaseService.measure_operation("create_payment_authorization")
    def create_payment_authorization(
        self, request: PaymentIntentCreateRequest
    ) -> AuthorizationHandle:
        """
        Create the manual-capture PaymentIntent a client confirms before booking.

        The amounts the client displayed are checked against the server quote,
        but only the server quote is ever charged.

        Raises:
            NotFoundException: post, expert or customer missing
            ValidationException: stale quote, wrong expert, or unpayable expert
            AuthorizationFailedException: Stripe refused to create the intent
        """
        self.log_operation(
            "create_payment_authorization",
            expertise_post_id=request.expertise_post_id,
            customer_id=request.customer_id,
        )
        if request.status is not None and request.status != BookingStatus.PENDING_RESPONSE:
            raise ValidationException(
                "New bookings start in PENDING_RESPONSE", code="INVALID_INITIAL_STATUS"
            )

        post, expert, customer = self._resolve_parties(
            request.expertise_post_id, request.expert_id, request.customer_id
        )
        if request.expert_stripe_id and request.expert_stripe_id != expert.stripe_account_id:
            raise ValidationException(
                "Payout account does not belong to this expert",
                code="EXPERT_ACCOUNT_MISMATCH",
            )

        quote = self.pricing_service.quote_for_post(post.id)
        if request.total != quote.total or request.service_fee != quote.service_fee:
            raise ValidationException(
                "Quoted amounts are out of date. Refresh the price and try again.",
                code="STALE_QUOTE",
                details={
                    "total": str(quote.total),
                    "service_fee": str(quote.service_fee),
                },
            )

        return self.stripe_service.authorize(
            total=quote.total,
            service_fee=quote.service_fee,
            destination_account_id=expert.stripe_account_id,
            metadata=self._payment_metadata(request.booking_type.value, post, expert, customer),
        )

    # ------------------------------------------------------------------ #
    # Create
    # ------------------------------------------------------------------ #

    @BaseService.measure_operation("create_booking")
    def create_booking(self, booking_data: BookingCreate) -> BookingCreateResult:
        """
        Create a booking backed by a held payment.

        Steps:
            1. Validate the parties and quote the stored post price
            2. Verify the client-confirmed hold, or authorize server-side
            3. Persist the booking in PENDING_RESPONSE
            4. Notify the expert (best effort)

        Raises:
            NotFoundException: post, expert or customer missing
            ValidationException: parties invalid or no payment supplied
            ConflictException: the PaymentIntent already backs a booking
            AuthorizationFailedException: no valid hold for the quoted total
        """
        self.log_operation(
            "create_booking",
            expertise_post_id=booking_data.expertise_post_id,
            customer_id=booking_data.customer_id,
        )

        # 1. Parties and trusted price
        post, expert, customer = self._resolve_parties(
            booking_data.expertise_post_id, booking_data.expert_id, booking_data.customer_id
        )
        quote = self.pricing_service.quote_for_post(post.id)

        # 2. Hold on the customer's funds
        handle, server_authorized = self._obtain_authorization(
            booking_data, quote, post, expert, customer
        )

        # 3. Persist
        try:
            with self.transaction():
                booking = self.repository.create(
                    booking_type=booking_data.booking_type.value,
                    expert_id=expert.id,
                    customer_id=customer.id,
                    expertise_post_id=post.id,
                    status=BookingStatus.PENDING_RESPONSE.value,
                    customer_submission=booking_data.customer_submission,
                    stripe_payment_intent_id=handle.id,
                    price_per_submission=quote.price_per_submission,
                    service_fee=quote.service_fee,
                    total=quote.total,
                )
        except Exception as exc:
            if server_authorized:
                self._release_hold(handle.id)
            if isinstance(exc, RepositoryException) and self._payment_intent_in_use(handle.id):
                raise ConflictException(
                    "Payment already used for another booking",
                    code="PAYMENT_INTENT_IN_USE",
                    details={"payment_intent_id": handle.id},
                ) from exc
            raise

        self.logger.info(
            f"Booking {booking.id} created for customer {customer.id} "
            f"with PaymentIntent {handle.id}"
        )

        # 4. Notify
        notification_sent = self.notification_service.send_booking_requested_to_expert(booking)
        return BookingCreateResult(booking=booking, notification_sent=notification_sent)

    def _obtain_authorization(
        self,
        booking_data: BookingCreate,
        quote: FeeQuote,
        post: ExpertisePost,
        expert: User,
        customer: User,
    ) -> Tuple[AuthorizationHandle, bool]:
        """Return the hold backing the booking and whether it was placed here."""
        payment_intent_id = booking_data.stripe_payment_intent_id
        if payment_intent_id:
            if self.repository.get_by_payment_intent_id(payment_intent_id) is not None:
                raise ConflictException(
                    "Payment already used for another booking",
                    code="PAYMENT_INTENT_IN_USE",
                    details={"payment_intent_id": payment_intent_id},
                )
            handle = self.stripe_service.retrieve_authorization(payment_intent_id)
            self._verify_client_authorization(handle, quote, expert)
            return handle, False

        if not booking_data.payment_method_id:
            raise ValidationException(
                "A stripePaymentIntentId or paymentMethodId is required",
                code="PAYMENT_REQUIRED",
            )

        handle = self.stripe_service.authorize(
            total=quote.total,
            service_fee=quote.service_fee,
            destination_account_id=expert.stripe_account_id,
            metadata=self._payment_metadata(
                booking_data.booking_type.value, post, expert, customer
            ),
            payment_method_id=booking_data.payment_method_id,
        )
        return handle, True

    def _verify_client_authorization(
        self, handle: AuthorizationHandle, quote: FeeQuote, expert: User
    ) -> None:
        expected_cents = to_cents(quote.total)
        problems = []
        if not handle.is_authorized:
            problems.append(f"status is {handle.status}")
        if handle.amount_cents != expected_cents:
            problems.append(f"amount {handle.amount_cents} != {expected_cents}")
        if handle.destination_account_id != expert.stripe_account_id:
            problems.append("destination does not match the expert")

        if problems:
            self.logger.warning(
                f"Rejected PaymentIntent {handle.id} for booking: {'; '.join(problems)}"
            )
            raise AuthorizationFailedException(
                "Payment is not authorized for this booking",
                details={"payment_intent_id": handle.id, "reasons": problems},
            )

    def _payment_intent_in_use(self, payment_intent_id: str) -> bool:
        try:
            return self.repository.get_by_payment_intent_id(payment_intent_id) is not None
        except RepositoryException as e:
            self.logger.error(f"Could not check PaymentIntent {payment_intent_id}: {str(e)}")
            return False

    def _release_hold(self, payment_intent_id: str) -> None:
        try:
            self.stripe_service.cancel_authorization(payment_intent_id)
        except DomainException as e:
            # Leave the original failure as the one the caller sees
            self.logger.error(
                f"Could not release hold {payment_intent_id} after failed booking insert: "
                f"{e.message}"
            )

    # ------------------------------------------------------------------ #
    # Update / complete
    # ------------------------------------------------------------------ #

    @BaseService.measure_operation("update_booking")
    def update_booking(
        self,
        booking_id: str,
        patch: BookingUpdate,
        charge_payment_intent: Optional[bool] = None,
    ) -> BookingUpdateResult:
        """
        Apply a partial update, capturing the held payment first when asked.

        A capture failure aborts the update: the booking keeps its status and
        no customer email is sent. A successful capture always completes the
        booking.

        Raises:
            NotFoundException: booking missing
            ValidationException: immutable field changed, id mismatch, or
                COMPLETED requested without a charge
            BookingStateException: transition not allowed from the current status
            CaptureFailedException: Stripe refused the capture
            PaymentProcessorUnavailableException: Stripe unreachable
        """
        charge = (
            patch.charge_payment_intent if charge_payment_intent is None else charge_payment_intent
        )
        self.log_operation("update_booking", booking_id=booking_id, charge=charge)

        if patch.id is not None and patch.id != booking_id:
            raise ValidationException(
                "Booking id in body does not match the URL",
                code="BOOKING_ID_MISMATCH",
                details={"path_id": booking_id, "body_id": patch.id},
            )

        # 1. Load and reject edits to fixed fields
        booking = self.get_booking(booking_id)
        read_status = booking.status
        self._reject_immutable_changes(booking, patch)

        # 2. Validate the transition before touching Stripe
        updates = self._content_updates(booking, patch)
        self._validate_transition(booking, patch.status, charge, bool(updates))

        # 3. Capture
        capture: Optional[CaptureResult] = None
        if charge:
            payment_intent_id = booking.stripe_payment_intent_id
            capture = self.stripe_service.capture(
                payment_intent_id,
                idempotency_key=capture_idempotency_key(booking.id, payment_intent_id),
            )
            updates["status"] = BookingStatus.COMPLETED.value
            updates["completed_at"] = datetime.now(timezone.utc)

        # 4. Persist, only if no other request moved the booking since it was read
        if updates:
            try:
                with self.transaction():
                    updated = self.repository.update(
                        booking_id, expected={"status": read_status}, **updates
                    )
            except Exception:
                if capture is not None:
                    self.logger.error(
                        f"PaymentIntent {capture.payment_intent_id} captured but booking "
                        f"{booking_id} was not saved; retrying the update is safe"
                    )
                raise
            if updated is None:
                self._raise_lost_update(booking_id, read_status, capture)
            booking = updated

        # 5. Notify
        notification_sent = False
        if capture is not None:
            self.logger.info(f"Booking {booking.id} completed; payment captured")
            notification_sent = self.notification_service.send_booking_completed_to_customer(
                booking
            )

        return BookingUpdateResult(
            booking=booking, notification_sent=notification_sent, capture=capture
        )

    def _raise_lost_update(
        self, booking_id: str, read_status: str, capture: Optional[CaptureResult]
    ) -> NoReturn:
        """Report a write that matched no row: the booking is gone or was changed."""
        self.db.expire_all()
        current = self.repository.get_by_id(booking_id)
        if current is None:
            raise NotFoundException(
                "Booking not found", code="BOOKING_NOT_FOUND", details={"booking_id": booking_id}
            )
        if capture is not None:
            self.logger.warning(
                f"Booking {booking_id} moved from {read_status} to {current.status} while "
                f"PaymentIntent {capture.payment_intent_id} was being captured; not overwriting"
            )
            raise BookingStateException(current.status, BookingStatus.COMPLETED.value)
        raise BookingStateException(current.status)

    def _reject_immutable_changes(self, booking: Booking, patch: BookingUpdate) -> None:
        fixed = {
            "bookingType": (
                patch.booking_type.value if patch.booking_type else None,
                booking.booking_type,
            ),
            "expertisePost": (patch.expertise_post, booking.expertise_post_id),
            "expert": (patch.expert, booking.expert_id),
            "customer": (patch.customer, booking.customer_id),
            "stripePaymentIntentId": (
                patch.stripe_payment_intent_id,
                booking.stripe_payment_intent_id,
            ),
        }
        changed = sorted(
            name for name, (sent, stored) in fixed.items() if sent is not None and sent != stored
        )
        if changed:
            raise ValidationException(
                f"Booking fields cannot be changed: {', '.join(changed)}",
                code="IMMUTABLE_FIELD",
                details={"fields": changed},
            )

    @staticmethod
    def _content_updates(booking: Booking, patch: BookingUpdate) -> Dict[str, Any]:
        updates: Dict[str, Any] = {}
        text = patch.single_text_response
        if text is None:
            return updates
        submission = text.customer_submission
        if submission is not None and submission != booking.customer_submission:
            updates["customer_submission"] = submission
        if text.expert_response is not None and text.expert_response != booking.expert_response:
            updates["expert_response"] = text.expert_response
        return updates

    def _validate_transition(
        self,
        booking: Booking,
        requested: Optional[BookingStatus],
        charge: bool,
        has_content_changes: bool,
    ) -> None:
        current = BookingStatus(booking.status)

        if charge:
            if not can_transition(current, BookingStatus.COMPLETED):
                raise BookingStateException(current.value, BookingStatus.COMPLETED.value)
            if requested is not None and requested != BookingStatus.COMPLETED:
                raise ValidationException(
                    "Charging a booking completes it; status must be COMPLETED or omitted",
                    code="INVALID_STATUS_FOR_CHARGE",
                )
            return

        if requested is not None and requested != current:
            if requested == BookingStatus.COMPLETED and can_transition(current, requested):
                raise ValidationException(
                    "Completing a booking requires chargePaymentIntent",
                    code="CHARGE_REQUIRED",
                )
            raise BookingStateException(current.value, requested.value)

        if has_content_changes and booking.is_terminal:
            raise BookingStateException(current.value)

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    @BaseService.measure_operation("get_booking")
    def get_booking(self, booking_id: str) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException(
                "Booking not found", code="BOOKING_NOT_FOUND", details={"booking_id": booking_id}
            )
        return booking

    @BaseService.measure_operation("list_bookings")
    def list_bookings(
        self,
        filters: Optional[BookingListFilters] = None,
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> BookingPage:
        return self.repository.list_bookings(filters, page=page, per_page=per_page)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _resolve_parties(
        self, expertise_post_id: str, expert_id: str, customer_id: str
    ) -> Tuple[ExpertisePost, User, User]:
        post = self.pricing_service.get_bookable_post(expertise_post_id)

        if post.user_id != expert_id:
            raise ValidationException(
                "Expert does not own this expertise post",
                code="EXPERT_POST_MISMATCH",
                details={"expertise_post_id": expertise_post_id, "expert_id": expert_id},
            )
        if customer_id == expert_id:
            raise ValidationException(
                "Experts cannot book their own expertise posts", code="SELF_BOOKING"
            )

        expert = post.user or self.user_repository.get_by_id(expert_id)
        if expert is None:
            raise NotFoundException("Expert not found", code="EXPERT_NOT_FOUND")
        customer = self.user_repository.get_by_id(customer_id)
        if customer is None:
            raise NotFoundException(
                "Customer not found", code="CUSTOMER_NOT_FOUND", details={"customer_id": customer_id}
            )
        if not expert.stripe_account_id:
            raise ValidationException(
                "Expert cannot accept payments yet", code="EXPERT_PAYOUTS_NOT_ENABLED"
            )
        return post, expert, customer

    @staticmethod
    def _payment_metadata(
        booking_type: str, post: ExpertisePost, expert: User, customer: User
    ) -> Dict[str, str]:
        return {
            "booking_type": booking_type,
            "expertise_post_id": post.id,
            "expert_id": expert.id,
            "customer_id": customer.id,
            "status": BookingStatus.PENDING_RESPONSE.value,
        }

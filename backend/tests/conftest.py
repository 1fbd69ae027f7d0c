# backend/tests/conftest.py
"""
Pytest configuration for the booking service.

Every test gets a fresh in-memory SQLite database, seeded parties, and
in-process doubles for Stripe and email so no test can reach a real
provider.
"""

import os
from decimal import Decimal
from typing import Any, Dict, List, Optional
import unittest.mock

# Set test configuration BEFORE any slicedadvice imports
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("EMAIL_PROVIDER", "console")

# Mock Resend globally to prevent real emails in ANY test
global_resend_mock = unittest.mock.patch("resend.Emails.send")
mocked_send = global_resend_mock.start()
mocked_send.return_value = {"id": "test-email-id"}

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from slicedadvice.api.dependencies.database import get_db
from slicedadvice.core.exceptions import (
    AuthorizationFailedException,
    CaptureFailedException,
    NotificationFailedException,
)
from slicedadvice.database import Base
from slicedadvice.main import create_app
from slicedadvice.models.expertise_post import ExpertisePost
from slicedadvice.models.user import User
from slicedadvice.services.booking_service import BookingService
from slicedadvice.services.notification_service import NotificationService
from slicedadvice.services.pricing_service import to_cents
from slicedadvice.services.stripe_service import (
    AUTHORIZED_STATUS,
    AuthorizationHandle,
    CaptureResult,
)

EXPERT_ACCOUNT = "acct_expert_123"

# ============================================================================
# Test doubles
# ============================================================================


class FakeStripeService:
    """
    In-memory stand-in for StripeService.

    Keeps PaymentIntents in a dict and follows Stripe's manual-capture rules:
    only ``requires_capture`` intents can be captured, and a repeated capture
    with the same idempotency key replays the first result.
    """

    def __init__(self) -> None:
        self.intents: Dict[str, Dict[str, Any]] = {}
        self.calls: List[tuple] = []
        self.next_intent_id: Optional[str] = None
        self.authorize_error: Optional[Exception] = None
        self.capture_error: Optional[Exception] = None
        self._idempotent_captures: Dict[str, CaptureResult] = {}
        self._counter = 0

    def compute_application_fee_cents(self, total_cents: int, service_fee_cents: int) -> int:
        return round((total_cents - service_fee_cents) * 0.20) + service_fee_cents

    def _new_id(self) -> str:
        if self.next_intent_id:
            intent_id, self.next_intent_id = self.next_intent_id, None
            return intent_id
        self._counter += 1
        return f"pi_test_{self._counter}"

    def _handle(self, intent_id: str) -> AuthorizationHandle:
        intent = self.intents[intent_id]
        return AuthorizationHandle(
            id=intent_id,
            status=intent["status"],
            amount_cents=intent["amount"],
            client_secret=f"{intent_id}_secret",
            application_fee_cents=intent["application_fee"],
            destination_account_id=intent["destination"],
            metadata=dict(intent["metadata"]),
        )

    def add_intent(
        self,
        intent_id: str,
        *,
        amount: int,
        destination: str = EXPERT_ACCOUNT,
        status: str = AUTHORIZED_STATUS,
    ) -> None:
        """Register an intent as if the client had created and confirmed it."""
        self.intents[intent_id] = {
            "amount": amount,
            "destination": destination,
            "status": status,
            "application_fee": 0,
            "metadata": {},
        }

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
        self.calls.append(("authorize", total, service_fee, destination_account_id))
        if self.authorize_error is not None:
            raise self.authorize_error
        total_cents = to_cents(total)
        fee_cents = to_cents(service_fee)
        intent_id = self._new_id()
        self.intents[intent_id] = {
            "amount": total_cents,
            "destination": destination_account_id,
            "status": AUTHORIZED_STATUS if payment_method_id else "requires_payment_method",
            "application_fee": self.compute_application_fee_cents(total_cents, fee_cents),
            "metadata": {k: str(v) for k, v in metadata.items()},
        }
        return self._handle(intent_id)

    def retrieve_authorization(self, payment_intent_id: str) -> AuthorizationHandle:
        self.calls.append(("retrieve", payment_intent_id))
        if payment_intent_id not in self.intents:
            raise AuthorizationFailedException(
                "Payment authorization not found",
                details={"payment_intent_id": payment_intent_id},
            )
        return self._handle(payment_intent_id)

    def capture(
        self, payment_intent_id: str, *, idempotency_key: Optional[str] = None
    ) -> CaptureResult:
        self.calls.append(("capture", payment_intent_id, idempotency_key))
        if self.capture_error is not None:
            error, self.capture_error = self.capture_error, None
            raise error
        if idempotency_key and idempotency_key in self._idempotent_captures:
            return self._idempotent_captures[idempotency_key]

        intent = self.intents.get(payment_intent_id)
        if intent is None or intent["status"] != AUTHORIZED_STATUS:
            raise CaptureFailedException(details={"payment_intent_id": payment_intent_id})
        intent["status"] = "succeeded"
        result = CaptureResult(
            payment_intent_id=payment_intent_id,
            status="succeeded",
            amount_received=intent["amount"],
            charge_id=f"ch_{payment_intent_id}",
        )
        if idempotency_key:
            self._idempotent_captures[idempotency_key] = result
        return result

    def cancel_authorization(
        self, payment_intent_id: str, *, idempotency_key: Optional[str] = None
    ) -> AuthorizationHandle:
        self.calls.append(("cancel", payment_intent_id))
        self.intents[payment_intent_id]["status"] = "canceled"
        return self._handle(payment_intent_id)

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]


class RecordingEmailService:
    """Email backend that remembers what it sent, or fails on demand."""

    def __init__(self) -> None:
        self.sent: List[Dict[str, str]] = []
        self.fail = False

    def send_email(self, to_email: str, subject: str, text_content: str) -> Dict[str, Any]:
        if self.fail:
            raise NotificationFailedException("Email sending failed: provider down")
        self.sent.append({"to": to_email, "subject": subject, "text": text_content})
        return {"id": f"email-{len(self.sent)}"}


# ============================================================================
# Database
# ============================================================================


@pytest.fixture(scope="function")
def db():
    """Create a fresh in-memory database session for each test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def expert(db: Session) -> User:
    user = User(name="Ada Expert", email="ada@example.com", stripe_account_id=EXPERT_ACCOUNT)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def customer(db: Session) -> User:
    user = User(name="Cole Customer", email="cole@example.com")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def expertise_post(db: Session, expert: User) -> ExpertisePost:
    post = ExpertisePost(
        user_id=expert.id,
        title="Pitch deck teardown",
        price_per_submission=Decimal("100.00"),
        is_active=True,
    )
    db.add(post)
    db.commit()
    return post


@pytest.fixture
def make_post(db: Session, expert: User):
    """Factory for extra expertise posts owned by ``expert``."""

    def _make(price: str, *, is_active: bool = True, owner: Optional[User] = None):
        post = ExpertisePost(
            user_id=(owner or expert).id,
            title=f"Advice at {price}",
            price_per_submission=Decimal(price),
            is_active=is_active,
        )
        db.add(post)
        db.commit()
        return post

    return _make


# ============================================================================
# Services
# ============================================================================


@pytest.fixture
def fake_stripe() -> FakeStripeService:
    return FakeStripeService()


@pytest.fixture
def email_service() -> RecordingEmailService:
    return RecordingEmailService()


@pytest.fixture
def notification_service(email_service: RecordingEmailService) -> NotificationService:
    return NotificationService(email_service)


@pytest.fixture
def booking_service(
    db: Session, fake_stripe: FakeStripeService, notification_service: NotificationService
) -> BookingService:
    return BookingService(db, fake_stripe, notification_service)


# ============================================================================
# HTTP
# ============================================================================


@pytest.fixture
def client(
    db: Session, fake_stripe: FakeStripeService, notification_service: NotificationService
):
    """Create a test client bound to the test database and doubles."""
    app = create_app()
    app.state.stripe_service = fake_stripe
    app.state.notification_service = notification_service

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()

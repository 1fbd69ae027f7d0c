"""Route tests for payment holds, fee quotes and the health check."""

from fastapi.testclient import TestClient

PAYMENT_INTENT_URL = "/api/v1/stripe/payment-intent"


def _intent_body(post, expert, customer, **overrides):
    body = {
        "total": "103.20",
        "serviceFee": "3.20",
        "bookingType": "SINGLE_TEXT_RESPONSE",
        "expertisePostId": post.id,
        "expertId": expert.id,
        "customerId": customer.id,
        "status": "PENDING_RESPONSE",
        "expertStripeId": expert.stripe_account_id,
    }
    body.update(overrides)
    return body


class TestPaymentIntentRoute:
    def test_returns_client_secret(
        self, client: TestClient, fake_stripe, expertise_post, expert, customer
    ):
        response = client.post(
            PAYMENT_INTENT_URL, json=_intent_body(expertise_post, expert, customer)
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["paymentIntentId"] == "pi_test_1"
        assert data["clientSecret"] == "pi_test_1_secret"
        assert fake_stripe.intents["pi_test_1"]["amount"] == 10320
        assert fake_stripe.intents["pi_test_1"]["destination"] == expert.stripe_account_id

    def test_numeric_amounts_accepted(self, client, expertise_post, expert, customer):
        response = client.post(
            PAYMENT_INTENT_URL,
            json=_intent_body(expertise_post, expert, customer, total=103.2, serviceFee=3.2),
        )

        assert response.status_code == 200

    def test_stale_quote_is_400(self, client, fake_stripe, expertise_post, expert, customer):
        response = client.post(
            PAYMENT_INTENT_URL,
            json=_intent_body(expertise_post, expert, customer, total="99.00"),
        )

        assert response.status_code == 400
        problem = response.json()
        assert problem["code"] == "STALE_QUOTE"
        assert problem["errors"] == {"total": "103.20", "service_fee": "3.20"}
        assert fake_stripe.calls == []

    def test_non_positive_total_is_422(self, client, expertise_post, expert, customer):
        response = client.post(
            PAYMENT_INTENT_URL, json=_intent_body(expertise_post, expert, customer, total="0")
        )

        assert response.status_code == 422


class TestPricingRoute:
    def test_quote_for_post(self, client, expertise_post):
        response = client.get(f"/api/v1/pricing/expertise-posts/{expertise_post.id}")

        assert response.status_code == 200
        assert response.json() == {
            "pricePerSubmission": "100.00",
            "serviceFee": "3.20",
            "total": "103.20",
        }

    def test_inactive_post_is_404(self, client, make_post):
        post = make_post("25.00", is_active=False)

        response = client.get(f"/api/v1/pricing/expertise-posts/{post.id}")

        assert response.status_code == 404


def test_health_check(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"

"""
Pytest fixtures for Stripe adapter tests.

This module provides fixtures for testing the Stripe adapter, including
mock Stripe API responses and error conditions.

Sections:
    - Mock Stripe Response Fixtures
    - Mock Stripe Error Fixtures
    - Mock Stripe Resource Fixtures
"""

from dataclasses import dataclass
from typing import Any
from unittest.mock import patch

import pytest
import stripe

from subscriptions.adapters import StripeAdapter


@pytest.fixture
def adapter():
    return StripeAdapter(api_key="sk_test_123", webhook_secret="whsec_test_123")


# =============================================================================
# Mock Stripe Response Fixtures
# =============================================================================


@dataclass
class MockStripeObject:
    """Mock Stripe API object with to_dict support."""

    data: dict[str, Any]

    def __getattr__(self, name: str) -> Any:
        if name == "data":
            return self.__dict__["data"]
        return self.data.get(name)

    def to_dict(self) -> dict[str, Any]:
        return self.data


@dataclass
class MockStripeList:
    """Mock Stripe list response with data attribute."""

    items: list[MockStripeObject]
    has_more: bool = False

    @property
    def data(self) -> list[MockStripeObject]:
        return self.items


@pytest.fixture
def mock_payment_intent():
    """Create a mock PaymentIntent response."""

    def _create(
        id: str = "pi_test123456",
        status: str = "requires_capture",
        amount: int = 5000,
        currency: str = "usd",
        customer: Any = "cus_test123",
        payment_method: Any = "pm_test123",
        client_secret: str = "pi_test123456_secret_abc123",
        metadata: dict | None = None,
    ) -> MockStripeObject:
        return MockStripeObject(
            {
                "id": id,
                "object": "payment_intent",
                "status": status,
                "amount": amount,
                "currency": currency,
                "customer": customer,
                "payment_method": payment_method,
                "client_secret": client_secret,
                "metadata": metadata or {},
            }
        )

    return _create


@pytest.fixture
def mock_schedule():
    """Create a mock SubscriptionSchedule response."""

    def _create(
        id: str = "sub_sched_test123",
        status: str = "not_started",
        customer: Any = "cus_test123",
        subscription: Any = None,
        phases: list | None = None,
    ) -> MockStripeObject:
        return MockStripeObject(
            {
                "id": id,
                "object": "subscription_schedule",
                "status": status,
                "customer": customer,
                "subscription": subscription,
                "phases": phases or [],
                "metadata": {"authorizationId": "pi_test123456"},
            }
        )

    return _create


@pytest.fixture
def mock_schedule_list(mock_schedule):
    """Create a mock SubscriptionSchedule list with one active schedule."""

    def _create(**overrides) -> MockStripeList:
        return MockStripeList(items=[mock_schedule(**{"status": "active", **overrides})])

    return _create


# =============================================================================
# Mock Stripe Error Fixtures
# =============================================================================


@pytest.fixture
def card_error():
    """Create a Stripe CardError."""

    def _create(
        message: str = "Your card was declined.",
        code: str = "card_declined",
        decline_code: str | None = "generic_decline",
    ) -> stripe.CardError:
        error = stripe.CardError(message=message, param=None, code=code)
        error.decline_code = decline_code
        return error

    return _create


@pytest.fixture
def invalid_request_error():
    """Create a Stripe InvalidRequestError."""

    def _create(
        message: str = "No such price: 'price_missing'",
        param: str | None = "price",
        code: str = "resource_missing",
    ) -> stripe.InvalidRequestError:
        return stripe.InvalidRequestError(message=message, param=param, code=code)

    return _create


@pytest.fixture
def rate_limit_error():
    return stripe.RateLimitError(message="Too many requests hit the API too quickly.")


@pytest.fixture
def api_connection_error():
    return stripe.APIConnectionError(message="Could not connect to Stripe.")


@pytest.fixture
def api_error():
    return stripe.APIError(message="Something went wrong on Stripe's end.")


@pytest.fixture
def authentication_error():
    return stripe.AuthenticationError(message="Invalid API Key provided.")


@pytest.fixture
def signature_verification_error():
    return stripe.SignatureVerificationError(
        message="Unable to verify webhook signature.",
        sig_header="bad_signature",
    )


# =============================================================================
# Mock Stripe Resource Fixtures
# =============================================================================


@pytest.fixture
def mock_stripe_payment_intent(mock_payment_intent):
    """Mock stripe.PaymentIntent API."""
    with patch("stripe.PaymentIntent") as mock:
        mock.create.return_value = mock_payment_intent()
        mock.retrieve.return_value = mock_payment_intent()
        mock.capture.return_value = mock_payment_intent(status="succeeded")
        mock.cancel.return_value = mock_payment_intent(status="canceled")
        yield mock


@pytest.fixture
def mock_stripe_payment_method():
    with patch("stripe.PaymentMethod") as mock:
        mock.create.return_value = MockStripeObject({"id": "pm_test123", "object": "payment_method"})
        yield mock


@pytest.fixture
def mock_stripe_price():
    with patch("stripe.Price") as mock:
        mock.retrieve.return_value = MockStripeObject(
            {"id": "price_trial", "object": "price", "unit_amount": 5000, "currency": "usd"}
        )
        yield mock


@pytest.fixture
def mock_stripe_customer():
    with patch("stripe.Customer") as mock:
        customer = MockStripeObject({"id": "cus_test123", "object": "customer", "email": "a@b.com"})
        mock.create.return_value = customer
        mock.retrieve.return_value = customer
        yield mock


@pytest.fixture
def mock_stripe_schedule(mock_schedule, mock_schedule_list):
    """Mock stripe.SubscriptionSchedule API."""
    with patch("stripe.SubscriptionSchedule") as mock:
        mock.create.return_value = mock_schedule()
        mock.list.return_value = mock_schedule_list()
        yield mock


@pytest.fixture
def mock_stripe_subscription():
    with patch("stripe.Subscription") as mock:
        mock.modify.return_value = MockStripeObject(
            {
                "id": "sub_test123",
                "object": "subscription",
                "status": "active",
                "metadata": {"phase": "paid"},
            }
        )
        yield mock


@pytest.fixture
def mock_stripe_webhook():
    """Mock stripe.Webhook API."""
    with patch("stripe.Webhook") as mock:
        mock.construct_event.return_value = MockStripeObject(
            {
                "id": "evt_test123",
                "type": "invoice.payment_succeeded",
                "data": {"object": {"id": "in_test123", "object": "invoice"}},
            }
        )
        yield mock

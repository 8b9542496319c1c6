"""
Pytest fixtures shared by the subscription test packages.

The Stripe adapter is always a mock with the adapter's interface; tests
set return values or side effects per call.

Usage:
    def test_capture(mock_adapter, authorization_service):
        mock_adapter.retrieve_payment_intent.return_value = PaymentIntentResultFactory()
        authorization_service.capture("pi_1")
"""

from unittest.mock import MagicMock

import pytest
from django.core.cache import cache

from subscriptions.adapters import StripeAdapter
from subscriptions.cache import ResultCache
from subscriptions.services import (
    AuthorizationBuilder,
    AuthorizationService,
    PaymentHoldService,
    ScheduleBuilder,
    SubscriptionService,
)
from subscriptions.state_machines import PhaseTags
from subscriptions.tests.factories import (
    CustomerResultFactory,
    PaymentIntentResultFactory,
    PriceResultFactory,
    ScheduleResultFactory,
)


@pytest.fixture
def mock_adapter():
    """A StripeAdapter mock whose sync flow succeeds by default."""
    adapter = MagicMock(spec=StripeAdapter)
    adapter.create_payment_method.return_value = "pm_test"
    adapter.retrieve_price.return_value = PriceResultFactory()
    adapter.create_customer.return_value = CustomerResultFactory(id="cus_test")
    adapter.create_payment_intent.return_value = PaymentIntentResultFactory(id="pi_held")
    adapter.create_subscription_schedule.return_value = ScheduleResultFactory()
    return adapter


@pytest.fixture
def phase_tags():
    return PhaseTags()


@pytest.fixture
def result_cache():
    return ResultCache(cache)


@pytest.fixture
def authorization_builder(mock_adapter):
    return AuthorizationBuilder(mock_adapter)


@pytest.fixture
def authorization_service(mock_adapter):
    return AuthorizationService(mock_adapter)


@pytest.fixture
def subscription_service(mock_adapter, authorization_builder, phase_tags):
    return SubscriptionService(
        authorization_builder=authorization_builder,
        schedule_builder=ScheduleBuilder(mock_adapter, phase_tags),
        trial_price_id="price_trial",
        paid_price_id="price_paid",
    )


@pytest.fixture
def payment_hold_service(authorization_builder, result_cache):
    return PaymentHoldService(authorization_builder, result_cache)


@pytest.fixture
def subscription_request():
    return {
        "cardTokenId": "tok_valid",
        "priceId": "price_trial",
        "contactEmail": "a@b.com",
        "type": "card",
    }

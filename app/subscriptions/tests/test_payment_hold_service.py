"""
Tests for PaymentHoldService.

Tests cover:
- Hold placement and recorded outcomes
- requires_action records nothing
- Destructive polling of the recorded outcome
- Webhooks for an already recorded attempt
"""

import pytest

from subscriptions.exceptions import StripeCardDeclinedError
from subscriptions.tests.factories import PaymentIntentResultFactory, payment_intent_event
from subscriptions.webhooks import EventDispatcher


def hold_request(**overrides):
    data = {
        "contactId": "contact_1",
        "contactEmail": "a@b.com",
        "priceId": "price_trial",
        "cardTokenId": "tok_valid",
    }
    data.update(overrides)
    return data


class TestCreatePaymentIntent:
    def test_hold_placed_and_recorded(self, payment_hold_service, mock_adapter, result_cache):
        result = payment_hold_service.create_payment_intent(hold_request())

        assert result.success
        assert result.data == {"requiresAction": False, "paymentIntentId": "pi_held"}

        params = mock_adapter.create_payment_intent.call_args.args[0]
        assert params.metadata == {"contactId": "contact_1", "contactEmail": "a@b.com"}

        assert result_cache.get("contact_1") == {
            "status": True,
            "amount": 5000,
            "contactId": "contact_1",
            "contactEmail": "a@b.com",
            "paymentMethodId": "pm_test",
            "paymentIntentStatus": "requires_capture",
            "message": None,
        }

    def test_requires_action_records_nothing(self, payment_hold_service, mock_adapter, result_cache):
        mock_adapter.create_payment_intent.return_value = PaymentIntentResultFactory(
            id="pi_auth",
            status="requires_action",
            client_secret="pi_auth_secret",
        )

        result = payment_hold_service.create_payment_intent(hold_request())

        assert result.success
        assert result.data == {
            "requiresAction": True,
            "clientSecret": "pi_auth_secret",
            "paymentIntentId": "pi_auth",
        }
        assert result_cache.get("contact_1") is None

    def test_failure_is_recorded(self, payment_hold_service, mock_adapter, result_cache):
        mock_adapter.create_payment_intent.side_effect = StripeCardDeclinedError(
            "Your card was declined."
        )

        result = payment_hold_service.create_payment_intent(hold_request())

        assert not result.success
        assert result.http_status == 402
        recorded = result_cache.get("contact_1")
        assert recorded["status"] is False
        assert recorded["message"] == "Failed to create customer and setup payment method."

    def test_missing_contact_id(self, payment_hold_service, mock_adapter):
        result = payment_hold_service.create_payment_intent(hold_request(contactId=""))

        assert result.http_status == 400
        assert result.error == "Missing required fields: contactId"
        mock_adapter.create_payment_method.assert_not_called()


class TestCheckPaymentStatus:
    def test_returns_outcome_once(self, payment_hold_service):
        payment_hold_service.create_payment_intent(hold_request())

        first = payment_hold_service.check_payment_status("contact_1")
        second = payment_hold_service.check_payment_status("contact_1")

        assert first.success
        assert first.data["paymentStatus"]["paymentIntentStatus"] == "requires_capture"
        assert not second.success
        assert second.http_status == 404
        assert second.error_code == "PAYMENT_STATUS_NOT_FOUND"

    def test_unknown_contact(self, payment_hold_service):
        result = payment_hold_service.check_payment_status("nobody")

        assert result.http_status == 404

    def test_blank_contact(self, payment_hold_service):
        result = payment_hold_service.check_payment_status("")

        assert result.http_status == 400
        assert result.error_code == "VALIDATION_ERROR"


class TestOneOutcomePerAttempt:
    """The request flow and the PaymentIntent webhooks report the same attempt."""

    @pytest.fixture
    def dispatcher(self, mock_adapter, authorization_service, phase_tags, result_cache):
        return EventDispatcher(
            adapter=mock_adapter,
            authorization_service=authorization_service,
            phase_tags=phase_tags,
            result_cache=result_cache,
        )

    def test_capturable_webhook_after_poll(self, payment_hold_service, dispatcher):
        payment_hold_service.create_payment_intent(hold_request())
        first = payment_hold_service.check_payment_status("contact_1")

        dispatcher.dispatch(
            payment_intent_event(
                payment_intent_id="pi_held",
                metadata={"contactId": "contact_1", "contactEmail": "a@b.com"},
            )
        )
        second = payment_hold_service.check_payment_status("contact_1")

        assert first.success
        assert second.http_status == 404

    def test_failed_webhook_after_declined_request(
        self, payment_hold_service, mock_adapter, dispatcher
    ):
        mock_adapter.create_payment_intent.side_effect = StripeCardDeclinedError(
            "Your card was declined.",
            details={"payment_intent_id": "pi_declined"},
        )
        payment_hold_service.create_payment_intent(hold_request())
        first = payment_hold_service.check_payment_status("contact_1")

        dispatcher.dispatch(
            payment_intent_event(
                "payment_intent.payment_failed",
                status="requires_payment_method",
                payment_intent_id="pi_declined",
                metadata={"contactId": "contact_1", "contactEmail": "a@b.com"},
            )
        )
        second = payment_hold_service.check_payment_status("contact_1")

        assert first.data["paymentStatus"]["status"] is False
        assert second.http_status == 404

    def test_intent_not_held_is_recorded_as_failure(
        self, payment_hold_service, mock_adapter, result_cache
    ):
        mock_adapter.create_payment_intent.return_value = PaymentIntentResultFactory(
            id="pi_refused",
            status="requires_payment_method",
        )

        result = payment_hold_service.create_payment_intent(hold_request())

        assert not result.success
        assert result.http_status == 402
        assert result_cache.get("contact_1")["status"] is False

    def test_authenticated_hold_recorded_by_webhook(
        self, payment_hold_service, mock_adapter, dispatcher
    ):
        mock_adapter.create_payment_intent.return_value = PaymentIntentResultFactory(
            id="pi_auth",
            status="requires_action",
            client_secret="pi_auth_secret",
        )
        payment_hold_service.create_payment_intent(hold_request())

        dispatcher.dispatch(
            payment_intent_event(
                payment_intent_id="pi_auth",
                metadata={"contactId": "contact_1", "contactEmail": "a@b.com"},
            )
        )

        assert payment_hold_service.check_payment_status("contact_1").success

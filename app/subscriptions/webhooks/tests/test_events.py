"""
Tests for parsing webhook event objects.
"""

import pytest

from subscriptions.exceptions import MalformedEventError
from subscriptions.tests.factories import (
    invoice_event,
    make_event,
    payment_intent_event,
    subscription_event,
)
from subscriptions.webhooks.events import (
    InvoiceEvent,
    PaymentIntentEvent,
    SubscriptionEvent,
    expandable_id,
)


class TestExpandableId:
    @pytest.mark.parametrize(
        "value, expected",
        [("cus_1", "cus_1"), ({"id": "cus_1", "object": "customer"}, "cus_1"), (None, None)],
    )
    def test_plain_and_expanded(self, value, expected):
        assert expandable_id(value) == expected


class TestInvoiceEvent:
    def test_reads_parent_subscription_details(self):
        invoice = InvoiceEvent.from_event(invoice_event(phase="held", authorization_id="pi_1"))

        assert invoice.id == "in_test"
        assert invoice.customer_id == "cus_test"
        assert invoice.subscription_id == "sub_test"
        assert invoice.metadata.phase_tag == "held"
        assert invoice.metadata.authorization_id == "pi_1"

    def test_reads_legacy_subscription_details(self):
        invoice = InvoiceEvent.from_event(invoice_event(phase="trial", legacy_details=True))

        assert invoice.metadata.phase_tag == "trial"
        assert invoice.subscription_id == "sub_test"

    def test_missing_metadata_is_none(self):
        invoice = InvoiceEvent.from_event(invoice_event(phase=None, authorization_id=None))

        assert invoice.metadata.phase_tag is None
        assert invoice.metadata.authorization_id is None

    def test_missing_data_object(self):
        with pytest.raises(MalformedEventError):
            InvoiceEvent.from_event({"id": "evt_1", "type": "invoice.payment_succeeded"})


class TestSubscriptionEvent:
    def test_parses_items_and_metadata(self):
        subscription = SubscriptionEvent.from_event(subscription_event(price="price_paid"))

        assert subscription.id == "sub_test"
        assert subscription.status == "active"
        assert subscription.customer_id == "cus_test"
        assert subscription.items[0].id == "si_test"
        assert subscription.price_ids == {"price_paid"}

    def test_missing_customer_is_malformed(self):
        event = make_event(
            "customer.subscription.updated",
            {"id": "sub_1", "status": "active", "metadata": {}},
        )

        with pytest.raises(MalformedEventError) as exc_info:
            SubscriptionEvent.from_event(event)

        assert exc_info.value.details["field"] == "customer"
        assert exc_info.value.http_status == 400


class TestPaymentIntentEvent:
    def test_contact_fields_and_failure_message(self):
        intent = PaymentIntentEvent.from_event(
            payment_intent_event(
                "payment_intent.payment_failed",
                status="requires_payment_method",
                metadata={"contactId": "c1", "contactEmail": "a@b.com"},
                last_payment_error={"message": "Your card was declined."},
            )
        )

        assert intent.contact_id == "c1"
        assert intent.contact_email == "a@b.com"
        assert intent.failure_message == "Your card was declined."
        assert intent.amount == 5000

    def test_without_contact(self):
        intent = PaymentIntentEvent.from_event(payment_intent_event())

        assert intent.contact_id is None
        assert intent.failure_message is None

"""
Factory Boy factories for subscription test data.

Builds the adapter result objects the services work with, and the raw
webhook event payloads Stripe delivers.

Usage:
    from subscriptions.tests.factories import (
        PaymentIntentResultFactory,
        ScheduleResultFactory,
        invoice_event,
    )

    intent = PaymentIntentResultFactory(status="requires_action")
    event = invoice_event(phase="held", authorization_id="pi_123")
"""

import factory

from subscriptions.adapters import (
    CustomerResult,
    PaymentIntentResult,
    PriceResult,
    ScheduleResult,
)


class PriceResultFactory(factory.Factory):
    class Meta:
        model = PriceResult

    id = "price_trial"
    unit_amount = 5000
    currency = "usd"


class CustomerResultFactory(factory.Factory):
    class Meta:
        model = CustomerResult

    id = factory.Sequence(lambda n: f"cus_test{n}")
    email = "a@b.com"


class PaymentIntentResultFactory(factory.Factory):
    """A held PaymentIntent, ready to capture."""

    class Meta:
        model = PaymentIntentResult

    id = factory.Sequence(lambda n: f"pi_test{n}")
    status = "requires_capture"
    amount_cents = 5000
    currency = "usd"
    customer_id = "cus_test"
    payment_method_id = "pm_test"
    client_secret = factory.LazyAttribute(lambda o: f"{o.id}_secret_abc")
    metadata = factory.Dict({})


def schedule_phase(phase: str, price, authorization_id: str = "pi_held") -> dict:
    return {
        "items": [{"price": price}],
        "metadata": {"phase": phase, "authorizationId": authorization_id},
    }


class ScheduleResultFactory(factory.Factory):
    """An active three-phase schedule."""

    class Meta:
        model = ScheduleResult

    id = factory.Sequence(lambda n: f"sub_sched_test{n}")
    status = "active"
    customer_id = "cus_test"
    subscription_id = "sub_test"
    phases = factory.LazyFunction(
        lambda: [
            schedule_phase("trial", "price_trial"),
            schedule_phase("held", "price_trial"),
            schedule_phase("paid", "price_paid"),
        ]
    )
    metadata = factory.Dict({"authorizationId": "pi_held"})
    raw_response = factory.LazyAttribute(lambda o: {"id": o.id, "object": "subscription_schedule"})


# =============================================================================
# Webhook event payloads
# =============================================================================


def make_event(event_type: str, obj: dict, event_id: str = "evt_test") -> dict:
    return {"id": event_id, "type": event_type, "data": {"object": obj}}


def invoice_event(
    event_type: str = "invoice.payment_succeeded",
    phase: str | None = "held",
    authorization_id: str | None = "pi_held",
    customer: str = "cus_test",
    legacy_details: bool = False,
) -> dict:
    """
    An invoice event. ``legacy_details`` puts the subscription metadata
    under ``subscription_details`` instead of ``parent.subscription_details``.
    """
    metadata = {}
    if phase is not None:
        metadata["phase"] = phase
    if authorization_id is not None:
        metadata["authorizationId"] = authorization_id

    details = {"subscription": "sub_test", "metadata": metadata}
    invoice = {"id": "in_test", "object": "invoice", "customer": customer}
    if legacy_details:
        invoice["subscription_details"] = details
    else:
        invoice["parent"] = {"type": "subscription_details", "subscription_details": details}
    return make_event(event_type, invoice)


def subscription_event(
    event_type: str = "customer.subscription.updated",
    status: str = "active",
    phase: str | None = "held",
    authorization_id: str | None = "pi_held",
    price: str = "price_trial",
) -> dict:
    metadata = {}
    if phase is not None:
        metadata["phase"] = phase
    if authorization_id is not None:
        metadata["authorizationId"] = authorization_id

    return make_event(
        event_type,
        {
            "id": "sub_test",
            "object": "subscription",
            "status": status,
            "customer": "cus_test",
            "metadata": metadata,
            "items": {"object": "list", "data": [{"id": "si_test", "price": {"id": price}}]},
        },
    )


def payment_intent_event(
    event_type: str = "payment_intent.amount_capturable_updated",
    status: str = "requires_capture",
    metadata: dict | None = None,
    last_payment_error: dict | None = None,
    payment_intent_id: str = "pi_hold",
) -> dict:
    return make_event(
        event_type,
        {
            "id": payment_intent_id,
            "object": "payment_intent",
            "status": status,
            "amount": 5000,
            "customer": "cus_test",
            "payment_method": "pm_test",
            "metadata": metadata if metadata is not None else {},
            "last_payment_error": last_payment_error,
        },
    )

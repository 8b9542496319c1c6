"""
Webhook event handlers for Stripe events.

This module provides a handler registry, the EventDispatcher that
verifies and routes events, and one handler per event type.

Every handler receives the verified event and the dispatcher (for its
injected collaborators) and returns a ServiceResult. Outcomes map to
HTTP as follows:

- handled or acknowledged: ServiceResult.success -> 200
- missing correlated data or a malformed event: 4xx exception, the
  provider should not redeliver
- capture, cancel or update failed: 5xx exception, the provider
  redelivers the event

Handlers are idempotent. Capture and cancel re-read the authorization
status first, and promotion to the paid price is skipped when the
subscription already bills it.

Usage:
    from subscriptions.webhooks.handlers import EventDispatcher, register_handler

    @register_handler("custom.event")
    def handle_custom_event(event: dict, dispatcher: EventDispatcher) -> ServiceResult:
        ...

    result = dispatcher.handle(request.body, request.headers["Stripe-Signature"])
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable

from core.services import ServiceResult
from subscriptions.adapters import ScheduleResult, StripeAdapter
from subscriptions.cache import CachedOutcome, ResultCache
from subscriptions.exceptions import (
    CorrelationNotFoundError,
    ProviderActionError,
    StripeError,
)
from subscriptions.services.authorization import AuthorizationService
from subscriptions.services.schedule import AUTHORIZATION_METADATA_KEY, PHASE_METADATA_KEY
from subscriptions.state_machines import Phase, PhaseTags
from subscriptions.webhooks.events import (
    InvoiceEvent,
    PaymentIntentEvent,
    SubscriptionEvent,
    expandable_id,
)

logger = logging.getLogger(__name__)

WebhookHandler = Callable[[Mapping[str, Any], "EventDispatcher"], ServiceResult]


# =============================================================================
# Handler Registry
# =============================================================================


# Maps event type strings to handler functions
WEBHOOK_HANDLERS: dict[str, WebhookHandler] = {}


def register_handler(event_type: str) -> Callable:
    """
    Decorator to register a webhook event handler.

    Usage:
        @register_handler("invoice.payment_succeeded")
        def handle_invoice_payment_succeeded(event, dispatcher) -> ServiceResult:
            ...
    """

    def decorator(func: WebhookHandler) -> WebhookHandler:
        WEBHOOK_HANDLERS[event_type] = func
        logger.debug(f"Registered webhook handler for {event_type}")
        return func

    return decorator


class EventDispatcher:
    """
    Verifies webhook deliveries and routes them to their handlers.

    Holds the collaborators handlers need; nothing is looked up globally.
    """

    def __init__(
        self,
        adapter: StripeAdapter,
        authorization_service: AuthorizationService,
        phase_tags: PhaseTags,
        result_cache: ResultCache,
        handlers: dict[str, WebhookHandler] | None = None,
    ):
        self.adapter = adapter
        self.authorization_service = authorization_service
        self.phase_tags = phase_tags
        self.result_cache = result_cache
        self.handlers = WEBHOOK_HANDLERS if handlers is None else handlers

    def handle(self, payload: bytes, signature: str) -> ServiceResult:
        """
        Verify a delivery and dispatch it.

        Raises:
            SignatureVerificationError: nothing was processed
            BaseApplicationError subclass: raised by the handler
        """
        event = self.adapter.construct_event(payload, signature)
        return self.dispatch(event)

    def dispatch(self, event: Mapping[str, Any]) -> ServiceResult:
        """
        Dispatch a verified event to its handler.

        Unknown event types are logged and acknowledged.
        """
        event_type = event.get("type")
        handler = self.handlers.get(event_type)

        if not handler:
            logger.info(
                f"Unhandled event type: {event_type}",
                extra={"stripe_event_id": event.get("id")},
            )
            return ServiceResult.success({"handled": False})

        logger.info(
            f"Dispatching {event_type} to handler",
            extra={"stripe_event_id": event.get("id")},
        )
        return handler(event, self)


# =============================================================================
# Invoice Handlers
# =============================================================================


@register_handler("invoice.payment_succeeded")
def handle_invoice_payment_succeeded(
    event: Mapping[str, Any], dispatcher: EventDispatcher
) -> ServiceResult:
    """
    Capture the held authorization once the held phase is invoiced.

    Invoices of other phases are acknowledged without action. A hold that
    was already captured is left alone.
    """
    invoice = InvoiceEvent.from_event(event)
    phase = dispatcher.phase_tags.parse(invoice.metadata.phase_tag)
    authorization_id = invoice.metadata.authorization_id

    if phase != Phase.HELD or not authorization_id:
        logger.info(
            "Invoice paid outside the held phase, nothing to capture",
            extra={"invoice_id": invoice.id, "phase": invoice.metadata.phase_tag},
        )
        return ServiceResult.success({"handled": False})

    result = dispatcher.authorization_service.capture(authorization_id)

    if result.changed:
        logger.info(
            f"Captured payment for invoice {invoice.id}",
            extra={"invoice_id": invoice.id, "authorization_id": authorization_id},
        )
    else:
        logger.info(
            f"Authorization {authorization_id} already {result.status}, capture skipped",
            extra={"invoice_id": invoice.id, "authorization_id": authorization_id},
        )
    return ServiceResult.success({"handled": True, "changed": result.changed})


@register_handler("invoice.payment_failed")
def handle_invoice_payment_failed(
    event: Mapping[str, Any], dispatcher: EventDispatcher
) -> ServiceResult:
    """
    Log a failed invoice with the customer's email for manual follow-up.

    No automated remediation. A failing customer lookup is logged and
    the event is still acknowledged.
    """
    invoice = InvoiceEvent.from_event(event)

    email = None
    if invoice.customer_id:
        try:
            email = dispatcher.adapter.retrieve_customer(invoice.customer_id).email
        except StripeError as e:
            logger.warning(
                f"Could not load customer for failed invoice: {e.message}",
                extra={"invoice_id": invoice.id, "customer_id": invoice.customer_id},
            )

    logger.warning(
        f"Payment failed for subscription {invoice.subscription_id}. Customer: {email}",
        extra={
            "invoice_id": invoice.id,
            "subscription_id": invoice.subscription_id,
            "customer_id": invoice.customer_id,
        },
    )
    return ServiceResult.success({"handled": True})


# =============================================================================
# Subscription Handlers
# =============================================================================


def _select_active_schedule(
    schedules: list[ScheduleResult], subscription_id: str
) -> ScheduleResult | None:
    active = [schedule for schedule in schedules if schedule.status == "active"]
    for schedule in active:
        if schedule.subscription_id == subscription_id:
            return schedule
    return active[0] if active else None


def _paid_phase_price(schedule: ScheduleResult, phase_tags: PhaseTags) -> tuple[bool, str | None]:
    """Return whether the schedule has a paid phase, and that phase's price."""
    for phase in schedule.phases:
        metadata = phase.get("metadata") or {}
        if phase_tags.parse(metadata.get(PHASE_METADATA_KEY)) != Phase.PAID:
            continue
        items = phase.get("items") or []
        price_id = expandable_id(items[0].get("price")) if items else None
        return True, price_id
    return False, None


@register_handler("customer.subscription.updated")
def handle_subscription_updated(
    event: Mapping[str, Any], dispatcher: EventDispatcher
) -> ServiceResult:
    """
    Move an active subscription in the held phase onto the paid price.

    The paid price is read from the paid phase of the customer's active
    schedule. The subscription metadata is re-tagged with the paid phase,
    so the next update event for it is acknowledged without action.

    Raises:
        CorrelationNotFoundError: no schedule, no active schedule, no paid
            phase, or no price on the paid phase
        ProviderActionError: the subscription update failed
    """
    subscription = SubscriptionEvent.from_event(event)
    phase = dispatcher.phase_tags.parse(subscription.metadata.phase_tag)

    if subscription.status != "active" or phase != Phase.HELD:
        return ServiceResult.success({"handled": False})

    context = {"subscription_id": subscription.id, "customer_id": subscription.customer_id}

    try:
        schedules = dispatcher.adapter.list_subscription_schedules(subscription.customer_id)
    except StripeError as e:
        raise ProviderActionError(
            f"Could not list schedules for customer {subscription.customer_id}",
            details={**context, "reason": e.error_code, "is_retryable": e.is_retryable},
        ) from e

    if not schedules:
        logger.warning(
            f"No subscription schedule found for customer {subscription.customer_id}",
            extra=context,
        )
        raise CorrelationNotFoundError("No subscription schedule found.", details=context)

    schedule = _select_active_schedule(schedules, subscription.id)
    if schedule is None:
        logger.warning(
            f"No active subscription schedule found for subscription {subscription.id}",
            extra=context,
        )
        raise CorrelationNotFoundError("No active subscription schedule found.", details=context)

    context["schedule_id"] = schedule.id
    has_paid_phase, paid_price_id = _paid_phase_price(schedule, dispatcher.phase_tags)
    if not has_paid_phase:
        logger.warning(f"No paid phase found for subscription {subscription.id}", extra=context)
        raise CorrelationNotFoundError("Paid phase not found.", details=context)
    if not paid_price_id:
        logger.warning(
            f"No price found for paid phase in subscription {subscription.id}",
            extra=context,
        )
        raise CorrelationNotFoundError("Price ID not found for paid phase.", details=context)

    if paid_price_id in subscription.price_ids:
        logger.info(
            f"Subscription {subscription.id} already on paid price {paid_price_id}",
            extra=context,
        )
        return ServiceResult.success({"handled": True, "changed": False})

    authorization_id = subscription.metadata.authorization_id or schedule.metadata.get(
        AUTHORIZATION_METADATA_KEY
    )
    item = {"price": paid_price_id}
    if subscription.items and subscription.items[0].id:
        item["id"] = subscription.items[0].id

    metadata = {PHASE_METADATA_KEY: dispatcher.phase_tags.tag_for(Phase.PAID)}
    if authorization_id:
        metadata[AUTHORIZATION_METADATA_KEY] = authorization_id

    try:
        dispatcher.adapter.update_subscription(subscription.id, items=[item], metadata=metadata)
    except StripeError as e:
        logger.error(f"Subscription update failed: {e.message}", extra=context)
        raise ProviderActionError(
            f"Could not move subscription {subscription.id} to the paid price",
            details={**context, "reason": e.error_code, "is_retryable": e.is_retryable},
        ) from e

    logger.info(
        f"Subscription {subscription.id} upgraded to paid phase with price {paid_price_id}",
        extra=context,
    )
    return ServiceResult.success({"handled": True, "changed": True})


@register_handler("customer.subscription.deleted")
def handle_subscription_deleted(
    event: Mapping[str, Any], dispatcher: EventDispatcher
) -> ServiceResult:
    """
    Release the hold of a subscription deleted before the paid phase.

    A failing cancel propagates, so the event is redelivered.
    """
    subscription = SubscriptionEvent.from_event(event)
    phase = dispatcher.phase_tags.parse(subscription.metadata.phase_tag)
    authorization_id = subscription.metadata.authorization_id

    if phase not in (Phase.TRIAL, Phase.HELD) or not authorization_id:
        return ServiceResult.success({"handled": False})

    result = dispatcher.authorization_service.cancel(authorization_id)

    if result.changed:
        logger.info(
            f"Released hold {authorization_id} for deleted subscription {subscription.id}",
            extra={"subscription_id": subscription.id, "authorization_id": authorization_id},
        )
    return ServiceResult.success({"handled": True, "changed": result.changed})


# =============================================================================
# Payment Intent Handlers
# =============================================================================


def _record_outcome(
    dispatcher: EventDispatcher,
    intent: PaymentIntentEvent,
    status: bool,
    contact_email: str | None,
    message: str | None = None,
) -> bool:
    return dispatcher.result_cache.record(
        intent.contact_id,
        CachedOutcome(
            status=status,
            amount=intent.amount,
            contact_id=intent.contact_id,
            contact_email=contact_email,
            payment_method_id=intent.payment_method_id,
            payment_intent_status=intent.status,
            message=message,
        ).to_dict(),
        attempt_id=intent.id,
    )


@register_handler("payment_intent.payment_failed")
def handle_payment_intent_failed(
    event: Mapping[str, Any], dispatcher: EventDispatcher
) -> ServiceResult:
    """Log the failure for manual follow-up and record it for a polling caller."""
    intent = PaymentIntentEvent.from_event(event)

    email = intent.contact_email
    if not email and intent.customer_id:
        try:
            email = dispatcher.adapter.retrieve_customer(intent.customer_id).email
        except StripeError as e:
            logger.warning(
                f"Could not load customer for failed payment: {e.message}",
                extra={"payment_intent_id": intent.id, "customer_id": intent.customer_id},
            )

    logger.warning(
        f"Payment failed for payment intent {intent.id}. Customer: {email}",
        extra={"payment_intent_id": intent.id, "failure_message": intent.failure_message},
    )

    if intent.contact_id:
        _record_outcome(
            dispatcher,
            intent,
            status=False,
            contact_email=email,
            message=intent.failure_message or "Payment failed.",
        )
    return ServiceResult.success({"handled": True})


@register_handler("payment_intent.amount_capturable_updated")
def handle_payment_intent_capturable(
    event: Mapping[str, Any], dispatcher: EventDispatcher
) -> ServiceResult:
    """
    Record a hold that became capturable after customer authentication.

    Only holds placed through the polling flow carry a contactId. A hold
    the request flow already recorded is not recorded again.
    """
    intent = PaymentIntentEvent.from_event(event)

    if not intent.contact_id:
        return ServiceResult.success({"handled": False})

    if _record_outcome(dispatcher, intent, status=True, contact_email=intent.contact_email):
        logger.info(
            f"Hold {intent.id} is capturable",
            extra={"payment_intent_id": intent.id, "contact_id": intent.contact_id},
        )
    return ServiceResult.success({"handled": True})

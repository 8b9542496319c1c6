"""
Stripe API adapter for hold and subscription operations.

This module provides the StripeAdapter class which encapsulates all
Stripe API interactions. All Stripe calls should go through this
adapter to ensure consistent error handling, idempotency and
observability.

Features:
- Explicitly constructed client: the secret key travels with every request
  as a per-call option, no module-level ``stripe.api_key``
- Automatic error translation to domain exceptions
- Structured logging with timing metrics
- Deterministic idempotency keys for capture and cancel

Usage:
    from subscriptions.adapters import StripeAdapter, CreatePaymentIntentParams

    adapter = StripeAdapter(
        api_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
    )

    # Place a hold
    intent = adapter.create_payment_intent(
        CreatePaymentIntentParams(
            amount_cents=5000,
            currency="usd",
            customer_id="cus_123",
            payment_method_id="pm_123",
        )
    )

    # Capture it later
    adapter.capture_payment_intent(intent.id)
"""

from __future__ import annotations

import hashlib
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

import stripe

from subscriptions.exceptions import (
    SignatureVerificationError,
    StripeAPIUnavailableError,
    StripeCardDeclinedError,
    StripeError,
    StripeInsufficientFundsError,
    StripeInvalidRequestError,
    StripeRateLimitError,
)


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class CreatePaymentIntentParams:
    """
    Parameters for creating a held (manually captured) PaymentIntent.

    Attributes:
        amount_cents: Amount in smallest currency unit (e.g., cents)
        currency: ISO 4217 currency code
        customer_id: Stripe Customer ID the hold belongs to
        payment_method_id: PaymentMethod to confirm with
        metadata: Key-value pairs to attach to the PaymentIntent
        capture_method: 'manual' for a hold
    """

    amount_cents: int
    currency: str
    customer_id: str
    payment_method_id: str
    metadata: dict[str, str] = field(default_factory=dict)
    capture_method: str = "manual"

    def __post_init__(self) -> None:
        """Validate parameters after initialization."""
        if self.amount_cents is None or self.amount_cents < 0:
            raise ValueError("amount_cents must not be negative")
        if not self.currency:
            raise ValueError("currency is required")
        if not self.customer_id:
            raise ValueError("customer_id is required")
        if not self.payment_method_id:
            raise ValueError("payment_method_id is required")


@dataclass
class PriceResult:
    """A price looked up by ID: how much a phase item charges."""

    id: str
    unit_amount: int
    currency: str


@dataclass
class CustomerResult:
    """Result from Stripe Customer operations."""

    id: str
    email: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class PaymentIntentResult:
    """
    Result from Stripe PaymentIntent operations.

    Attributes:
        id: PaymentIntent ID (pi_xxx)
        status: Provider status (requires_action, requires_capture, ...)
        amount_cents: Amount in cents
        currency: Currency code
        customer_id: Owning customer, if any
        payment_method_id: PaymentMethod used, if any
        client_secret: Secret for client-side authentication
        metadata: Attached metadata
        raw_response: Full Stripe response dict (for debugging)
    """

    id: str
    status: str
    amount_cents: int
    currency: str
    customer_id: str | None = None
    payment_method_id: str | None = None
    client_secret: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class ScheduleResult:
    """
    Result from Stripe SubscriptionSchedule operations.

    ``phases`` keeps the provider's phase dicts as-is; lookups on them go
    through mapping access so expanded and plain IDs both work.
    """

    id: str
    status: str
    customer_id: str | None
    phases: list[dict[str, Any]] = field(default_factory=list)
    metadata: dict[str, str] = field(default_factory=dict)
    subscription_id: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class SubscriptionResult:
    """Result from Stripe Subscription operations."""

    id: str
    status: str
    metadata: dict[str, str] = field(default_factory=dict)
    raw_response: dict[str, Any] = field(default_factory=dict)


def _expandable_id(value: Any) -> str | None:
    """Return the ID of an expandable field (plain ID or expanded object)."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, dict):
        return value.get("id")
    return getattr(value, "id", None)


def _declined_payment_intent_id(error: Any) -> str | None:
    """PaymentIntent a card error was raised for, when Stripe reports one."""
    error_object = getattr(error, "error", None)
    return _expandable_id(getattr(error_object, "payment_intent", None))


def _as_dict(stripe_object: Any) -> dict[str, Any]:
    to_dict = getattr(stripe_object, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return dict(stripe_object)


# =============================================================================
# Idempotency Key Generator
# =============================================================================


class IdempotencyKeyGenerator:
    """
    Generate idempotency keys for Stripe API calls.

    Format: "{operation}:{entity_id}:{attempt}:{hash}"

    Keys are deterministic for a given operation, entity and secret, so a
    redelivered webhook that triggers the same capture reuses the same
    key and Stripe replays the original response instead of acting twice.

    Example:
        key = IdempotencyKeyGenerator.generate(
            operation="capture",
            entity_id="pi_123",
            secret=api_key,
        )
        # Result: "capture:pi_123:1:a1b2c3d4"
    """

    @staticmethod
    def generate(
        operation: str,
        entity_id: uuid.UUID | str,
        secret: str = "",
        attempt: int = 1,
    ) -> str:
        """
        Generate an idempotency key.

        Args:
            operation: The Stripe operation (capture, cancel, etc.)
            entity_id: The provider object ID (pi_xxx, etc.)
            secret: Value mixed into the hash so keys differ per account
            attempt: Attempt number for deliberate re-tries (default: 1)

        Returns:
            Formatted idempotency key string
        """
        entity_str = str(entity_id)
        hash_input = f"{operation}:{entity_str}:{attempt}:{secret}"
        short_hash = hashlib.sha256(hash_input.encode()).hexdigest()[:8]

        return f"{operation}:{entity_str}:{attempt}:{short_hash}"


# =============================================================================
# Stripe Adapter
# =============================================================================


class StripeAdapter:
    """
    Adapter for Stripe API operations.

    One instance is built at startup from settings and handed to the
    services that need it. The instance only holds credentials, so it is
    safe to share between concurrent requests.

    Usage:
        adapter = StripeAdapter(api_key="sk_test_...", webhook_secret="whsec_...")
        price = adapter.retrieve_price("price_123")
        adapter.capture_payment_intent("pi_123")
    """

    def __init__(self, api_key: str, webhook_secret: str):
        if not api_key:
            raise ValueError("api_key is required")
        if not webhook_secret:
            raise ValueError("webhook_secret is required")
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    def _call(
        self,
        operation: str,
        func,
        *args: Any,
        log_context: dict[str, Any] | None = None,
        quiet: bool = False,
        **params: Any,
    ) -> Any:
        """
        Run one Stripe SDK call with logging and error translation.

        Args:
            operation: Name used in log records
            func: Stripe SDK callable (e.g. ``stripe.Price.retrieve``)
            log_context: Extra fields for the log records
            quiet: Log at DEBUG instead of INFO (read-only lookups)
            *args, **params: Passed through to the SDK call

        Raises:
            StripeError subclass: translated SDK failure
        """
        logger = self.get_logger()
        level = logging.DEBUG if quiet else logging.INFO
        context = {"operation": operation, **(log_context or {})}

        start_time = time.time()
        logger.log(level, "Starting Stripe operation", extra=context)

        try:
            result = func(*args, api_key=self.api_key, **params)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self._handle_stripe_error(e, context, duration_ms)
            raise  # Never reached, but satisfies type checker

        duration_ms = (time.time() - start_time) * 1000
        logger.log(
            level,
            "Stripe operation completed",
            extra={**context, "duration_ms": duration_ms},
        )
        return result

    # =========================================================================
    # Instruments, prices and customers
    # =========================================================================

    def create_payment_method(self, payment_method_type: str, card_token: str) -> str:
        """
        Create a PaymentMethod from a tokenized card.

        Returns:
            PaymentMethod ID (pm_xxx)
        """
        payment_method = self._call(
            "create_payment_method",
            stripe.PaymentMethod.create,
            log_context={"payment_method_type": payment_method_type},
            type=payment_method_type,
            card={"token": card_token},
        )
        return payment_method.id

    def retrieve_price(self, price_id: str) -> PriceResult:
        """Look up a Price to learn its amount and currency."""
        price = self._call(
            "retrieve_price",
            stripe.Price.retrieve,
            price_id,
            log_context={"price_id": price_id},
            quiet=True,
        )
        return PriceResult(
            id=price.id,
            unit_amount=price.unit_amount,
            currency=price.currency,
        )

    def create_customer(self, email: str, payment_method_id: str) -> CustomerResult:
        """Create a Customer with the PaymentMethod as invoice default."""
        customer = self._call(
            "create_customer",
            stripe.Customer.create,
            log_context={"payment_method_id": payment_method_id},
            email=email,
            payment_method=payment_method_id,
            invoice_settings={"default_payment_method": payment_method_id},
        )
        return CustomerResult(
            id=customer.id,
            email=customer.email,
            raw_response=_as_dict(customer),
        )

    def retrieve_customer(self, customer_id: str) -> CustomerResult:
        """Retrieve a Customer by ID."""
        customer = self._call(
            "retrieve_customer",
            stripe.Customer.retrieve,
            customer_id,
            log_context={"customer_id": customer_id},
            quiet=True,
        )
        return CustomerResult(
            id=customer.id,
            email=customer.email,
            raw_response=_as_dict(customer),
        )

    # =========================================================================
    # Held authorizations
    # =========================================================================

    @staticmethod
    def _payment_intent_result(intent: Any) -> PaymentIntentResult:
        return PaymentIntentResult(
            id=intent.id,
            status=intent.status,
            amount_cents=intent.amount,
            currency=intent.currency,
            customer_id=_expandable_id(intent.customer),
            payment_method_id=_expandable_id(intent.payment_method),
            client_secret=intent.client_secret,
            metadata=dict(intent.metadata or {}),
            raw_response=_as_dict(intent),
        )

    def create_payment_intent(self, params: CreatePaymentIntentParams) -> PaymentIntentResult:
        """
        Create and confirm a PaymentIntent in one call.

        Redirect-based payment methods are disabled: a customer who must
        authenticate gets ``requires_action`` and a client secret instead.

        Raises:
            StripeCardDeclinedError: Card was declined
            StripeInvalidRequestError: Invalid parameters
            StripeAPIUnavailableError: Stripe service unavailable
        """
        intent = self._call(
            "create_payment_intent",
            stripe.PaymentIntent.create,
            log_context={
                "amount_cents": params.amount_cents,
                "currency": params.currency,
                "customer_id": params.customer_id,
            },
            amount=params.amount_cents,
            currency=params.currency,
            customer=params.customer_id,
            payment_method=params.payment_method_id,
            confirm=True,
            capture_method=params.capture_method,
            automatic_payment_methods={"enabled": True, "allow_redirects": "never"},
            metadata=params.metadata,
        )
        return self._payment_intent_result(intent)

    def retrieve_payment_intent(self, payment_intent_id: str) -> PaymentIntentResult:
        """Retrieve a PaymentIntent by ID."""
        intent = self._call(
            "retrieve_payment_intent",
            stripe.PaymentIntent.retrieve,
            payment_intent_id,
            log_context={"payment_intent_id": payment_intent_id},
            quiet=True,
        )
        return self._payment_intent_result(intent)

    def capture_payment_intent(self, payment_intent_id: str) -> PaymentIntentResult:
        """
        Capture a held PaymentIntent.

        Raises:
            StripeInvalidRequestError: PaymentIntent not capturable
            StripeAPIUnavailableError: Stripe service unavailable
        """
        intent = self._call(
            "capture_payment_intent",
            stripe.PaymentIntent.capture,
            payment_intent_id,
            log_context={"payment_intent_id": payment_intent_id},
            idempotency_key=IdempotencyKeyGenerator.generate(
                "capture", payment_intent_id, secret=self.api_key
            ),
        )
        return self._payment_intent_result(intent)

    def cancel_payment_intent(self, payment_intent_id: str) -> PaymentIntentResult:
        """Cancel a PaymentIntent, releasing the hold."""
        intent = self._call(
            "cancel_payment_intent",
            stripe.PaymentIntent.cancel,
            payment_intent_id,
            log_context={"payment_intent_id": payment_intent_id},
            idempotency_key=IdempotencyKeyGenerator.generate(
                "cancel", payment_intent_id, secret=self.api_key
            ),
        )
        return self._payment_intent_result(intent)

    # =========================================================================
    # Schedules and subscriptions
    # =========================================================================

    @staticmethod
    def _schedule_result(schedule: Any) -> ScheduleResult:
        raw = _as_dict(schedule)
        return ScheduleResult(
            id=schedule.id,
            status=schedule.status,
            customer_id=_expandable_id(schedule.customer),
            phases=list(raw.get("phases") or []),
            metadata=dict(schedule.metadata or {}),
            subscription_id=_expandable_id(schedule.subscription),
            raw_response=raw,
        )

    def create_subscription_schedule(
        self,
        customer_id: str,
        start_date: int,
        phases: list[dict[str, Any]],
        metadata: dict[str, str],
        end_behavior: str = "release",
    ) -> ScheduleResult:
        """Create a SubscriptionSchedule starting at ``start_date`` (epoch seconds)."""
        schedule = self._call(
            "create_subscription_schedule",
            stripe.SubscriptionSchedule.create,
            log_context={"customer_id": customer_id, "phase_count": len(phases)},
            customer=customer_id,
            start_date=start_date,
            end_behavior=end_behavior,
            metadata=metadata,
            phases=phases,
        )
        return self._schedule_result(schedule)

    def list_subscription_schedules(self, customer_id: str) -> list[ScheduleResult]:
        """List the SubscriptionSchedules of a customer."""
        schedules = self._call(
            "list_subscription_schedules",
            stripe.SubscriptionSchedule.list,
            log_context={"customer_id": customer_id},
            quiet=True,
            customer=customer_id,
        )
        return [self._schedule_result(schedule) for schedule in schedules.data]

    def update_subscription(
        self,
        subscription_id: str,
        items: list[dict[str, Any]],
        metadata: dict[str, str],
    ) -> SubscriptionResult:
        """Swap the items of a live subscription without proration."""
        subscription = self._call(
            "update_subscription",
            stripe.Subscription.modify,
            subscription_id,
            log_context={"subscription_id": subscription_id},
            items=items,
            metadata=metadata,
            proration_behavior="none",
        )
        return SubscriptionResult(
            id=subscription.id,
            status=subscription.status,
            metadata=dict(subscription.metadata or {}),
            raw_response=_as_dict(subscription),
        )

    # =========================================================================
    # Webhook Verification
    # =========================================================================

    def construct_event(self, payload: bytes, signature: str) -> dict[str, Any]:
        """
        Verify and parse a Stripe webhook event.

        Args:
            payload: Raw webhook payload bytes
            signature: Stripe-Signature header value

        Returns:
            Parsed event data dict

        Raises:
            SignatureVerificationError: Missing or invalid signature, or an
                unparsable payload
        """
        if not signature:
            raise SignatureVerificationError(
                "Missing webhook signature",
                details={"reason": "missing_signature"},
            )

        try:
            event = stripe.Webhook.construct_event(
                payload,
                signature,
                self.webhook_secret,
            )
        except stripe.SignatureVerificationError as e:
            raise SignatureVerificationError(
                "Invalid webhook signature",
                details={"reason": "signature_mismatch", "error": str(e)},
            ) from e
        except ValueError as e:
            raise SignatureVerificationError(
                "Invalid webhook payload",
                details={"reason": "invalid_payload"},
            ) from e

        return _as_dict(event)

    # =========================================================================
    # Error Handling
    # =========================================================================

    @classmethod
    def _handle_stripe_error(
        cls,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Stripe exceptions to domain exceptions.

        Only the error codes and the user-facing message are copied onto
        the domain exception; request bodies and headers stay behind.

        Raises:
            StripeCardDeclinedError: Card was declined
            StripeInsufficientFundsError: Insufficient funds
            StripeInvalidRequestError: Invalid request parameters or API key
            StripeRateLimitError: Rate limited
            StripeAPIUnavailableError: API unavailable or unexpected failure
        """
        logger = cls.get_logger()

        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, stripe.CardError):
            decline_code = getattr(error, "decline_code", None)
            payment_intent_id = _declined_payment_intent_id(error)
            details = {"payment_intent_id": payment_intent_id} if payment_intent_id else None
            logger.warning(
                "Card error from Stripe",
                extra={**log_context, "decline_code": decline_code},
            )

            if decline_code == "insufficient_funds":
                raise StripeInsufficientFundsError(
                    str(error.user_message or "Your card has insufficient funds."),
                    stripe_code=error.code,
                    decline_code=decline_code,
                    details=details,
                ) from error

            raise StripeCardDeclinedError(
                str(error.user_message or "Your card was declined."),
                stripe_code=error.code,
                decline_code=decline_code,
                details=details,
            ) from error

        elif isinstance(error, stripe.InvalidRequestError):
            logger.error(
                "Invalid request to Stripe",
                extra={**log_context, "stripe_code": error.code},
            )
            raise StripeInvalidRequestError(
                str(error.user_message or "Invalid request to the payment provider."),
                stripe_code=error.code,
            ) from error

        elif isinstance(error, stripe.RateLimitError):
            logger.warning("Rate limited by Stripe", extra=log_context)
            raise StripeRateLimitError(
                "Stripe rate limit exceeded. Please retry.",
                stripe_code="rate_limit",
            ) from error

        elif isinstance(error, stripe.APIConnectionError):
            logger.error("Connection error to Stripe", extra=log_context, exc_info=True)
            raise StripeAPIUnavailableError(
                "Could not connect to Stripe. Please retry.",
                stripe_code="api_connection_error",
            ) from error

        elif isinstance(error, stripe.AuthenticationError):
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            raise StripeInvalidRequestError(
                "Stripe authentication failed",
                stripe_code="authentication_error",
            ) from error

        elif isinstance(error, stripe.APIError):
            logger.error("Stripe API error", extra=log_context, exc_info=True)
            raise StripeAPIUnavailableError(
                "Stripe service error. Please retry.",
                stripe_code="api_error",
            ) from error

        else:
            logger.error(
                f"Unexpected error from Stripe: {type(error).__name__}",
                extra=log_context,
                exc_info=True,
            )
            raise StripeAPIUnavailableError(
                "Unexpected Stripe error",
                stripe_code="unknown_error",
            ) from error

"""
Payment adapters for external services.

All external payment API calls should go through these adapters to ensure
consistent error handling, idempotency, and observability.

Usage:
    from subscriptions.adapters import StripeAdapter

    adapter = StripeAdapter(api_key=..., webhook_secret=...)
    adapter.capture_payment_intent("pi_123")
"""

from subscriptions.adapters.stripe_adapter import (
    CreatePaymentIntentParams,
    CustomerResult,
    IdempotencyKeyGenerator,
    PaymentIntentResult,
    PriceResult,
    ScheduleResult,
    StripeAdapter,
    SubscriptionResult,
)

__all__ = [
    "CreatePaymentIntentParams",
    "CustomerResult",
    "IdempotencyKeyGenerator",
    "PaymentIntentResult",
    "PriceResult",
    "ScheduleResult",
    "StripeAdapter",
    "SubscriptionResult",
]

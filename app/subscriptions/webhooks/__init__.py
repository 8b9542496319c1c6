"""
Webhook handling for subscription events from Stripe.

Webhooks are verified and processed inline; the response status tells
Stripe whether to redeliver.

Usage:
    # In urls.py
    from subscriptions.webhooks.views import StripeWebhookView

    urlpatterns = [
        path("webhook", StripeWebhookView.as_view(), name="stripe_webhook"),
    ]
"""

from subscriptions.webhooks.handlers import (
    WEBHOOK_HANDLERS,
    EventDispatcher,
    register_handler,
)

__all__ = [
    "WEBHOOK_HANDLERS",
    "EventDispatcher",
    "register_handler",
]

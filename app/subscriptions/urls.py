"""
URL configuration for the subscriptions app.

Routes:
    - POST /create-subscription
    - POST /create-payment-intent
    - GET /check-payment-status?contactId=
    - POST /webhook - Stripe webhook endpoint

Usage:
    # In config/urls.py
    urlpatterns = [
        path("", include("subscriptions.urls")),
    ]
"""

from django.urls import path

from subscriptions.views import (
    CheckPaymentStatusView,
    CreatePaymentIntentView,
    CreateSubscriptionView,
)
from subscriptions.webhooks.views import StripeWebhookView

app_name = "subscriptions"

urlpatterns = [
    path("create-subscription", CreateSubscriptionView.as_view(), name="create_subscription"),
    path("create-payment-intent", CreatePaymentIntentView.as_view(), name="create_payment_intent"),
    path("check-payment-status", CheckPaymentStatusView.as_view(), name="check_payment_status"),
    # Webhook endpoints
    path("webhook", StripeWebhookView.as_view(), name="stripe_webhook"),
]

"""
URL configuration for the Django application.

The `urlpatterns` list routes URLs to views. This is the root URL configuration
that includes all app-specific routes.

URL Structure:
    /create-subscription          - Hold funds and build the subscription schedule (POST)
    /create-payment-intent        - Hold funds without a schedule (POST)
    /check-payment-status         - Consume a recorded hold outcome (GET, ?contactId=)
    /webhook                      - Stripe webhook endpoint (POST)
    /health/                      - Health check endpoint (for load balancers, Docker)
    /schema/                      - OpenAPI schema (YAML)

The payment routes sit at the root because existing clients and the
Stripe webhook configuration already point there.

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView

from core.views import health_check

urlpatterns = [
    # Documentation
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # Subscriptions, holds and webhooks
    path("", include("subscriptions.urls")),
]

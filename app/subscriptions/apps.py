"""
Subscriptions app configuration.

This app provides deferred-charge subscriptions on Stripe:
- Held authorizations and three-phase subscription schedules
- Webhook handling that captures, releases or promotes them
- A standalone hold with outcome polling
"""

from django.apps import AppConfig


class SubscriptionsConfig(AppConfig):
    """Configuration for the subscriptions application."""

    name = "subscriptions"
    verbose_name = "Subscriptions"

    services = None

    def ready(self):
        """Build the service graph once, failing on bad configuration."""
        from django.conf import settings

        from subscriptions.dependencies import build_services

        self.services = build_services(settings)

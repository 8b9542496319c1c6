"""
Construction of the subscription services from settings.

Every collaborator (Stripe adapter, result cache, phase tags) is built
once here and passed down explicitly. Nothing in the domain reads
settings or module-level clients on its own.

Usage:
    from django.conf import settings
    from subscriptions.dependencies import build_services

    services = build_services(settings)
    services.subscription_service.create_subscription(data)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from django.core.cache import caches

from subscriptions.adapters import StripeAdapter
from subscriptions.cache import ResultCache
from subscriptions.services import (
    AuthorizationBuilder,
    AuthorizationService,
    PaymentHoldService,
    ScheduleBuilder,
    SubscriptionService,
)
from subscriptions.state_machines import PhaseTags
from subscriptions.webhooks.handlers import EventDispatcher


@dataclass
class Services:
    adapter: StripeAdapter
    phase_tags: PhaseTags
    result_cache: ResultCache
    authorization_service: AuthorizationService
    subscription_service: SubscriptionService
    payment_hold_service: PaymentHoldService
    event_dispatcher: EventDispatcher


def build_services(settings: Any) -> Services:
    """
    Build the service graph.

    Raises:
        ImproperlyConfigured: phase tags are blank or not distinct
        ValueError: the Stripe secret key or webhook secret is empty
    """
    phase_tags = PhaseTags.from_settings(settings)
    adapter = StripeAdapter(
        api_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
    )
    result_cache = ResultCache(
        caches[settings.RESULT_CACHE_ALIAS],
        ttl_seconds=settings.RESULT_CACHE_TTL_MINUTES * 60,
        key_prefix=settings.RESULT_CACHE_KEY_PREFIX,
    )

    authorization_builder = AuthorizationBuilder(adapter)
    authorization_service = AuthorizationService(adapter)

    return Services(
        adapter=adapter,
        phase_tags=phase_tags,
        result_cache=result_cache,
        authorization_service=authorization_service,
        subscription_service=SubscriptionService(
            authorization_builder=authorization_builder,
            schedule_builder=ScheduleBuilder(adapter, phase_tags),
            trial_price_id=settings.TRIAL_STRIPE_PRICE_ID,
            paid_price_id=settings.PAID_STRIPE_PRICE_ID,
        ),
        payment_hold_service=PaymentHoldService(authorization_builder, result_cache),
        event_dispatcher=EventDispatcher(
            adapter=adapter,
            authorization_service=authorization_service,
            phase_tags=phase_tags,
            result_cache=result_cache,
        ),
    )

"""
Subscription domain services.

Usage:
    from subscriptions.services import SubscriptionService

    result = service.create_subscription(request.data)
"""

from subscriptions.services.authorization import (
    AuthorizationBuilder,
    AuthorizationOutcome,
    AuthorizationRequest,
    AuthorizationService,
    HoldActionResult,
)
from subscriptions.services.payment_hold import PaymentHoldService
from subscriptions.services.schedule import (
    AUTHORIZATION_METADATA_KEY,
    PHASE_METADATA_KEY,
    TRIAL_PERIOD,
    ScheduleBuilder,
    build_phases,
)
from subscriptions.services.subscription import SubscriptionService

__all__ = [
    "AUTHORIZATION_METADATA_KEY",
    "PHASE_METADATA_KEY",
    "TRIAL_PERIOD",
    "AuthorizationBuilder",
    "AuthorizationOutcome",
    "AuthorizationRequest",
    "AuthorizationService",
    "HoldActionResult",
    "PaymentHoldService",
    "ScheduleBuilder",
    "SubscriptionService",
    "build_phases",
]

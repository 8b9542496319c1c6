"""
State enums for held authorizations and subscription phases.

These are Django TextChoices so they render cleanly in API responses and
compare equal to the raw provider strings.

State Machines Overview:

Authorization (held charge) States:
    created → requires_capture → succeeded (captured)
    created → requires_action → requires_capture → canceled (released)
    created → failed
    requires_action → canceled / failed

    succeeded, canceled and failed are absorbing: nothing leaves them.

Subscription Phases:
    trial → held → paid (driven by the provider's billing engine)
"""

from __future__ import annotations

from django.db import models


class AuthorizationStatus(models.TextChoices):
    """
    States for a held authorization (a manually captured PaymentIntent).

    Terminal states: SUCCEEDED, CANCELED, FAILED

    State Flow (no extra authentication):
        CREATED → REQUIRES_CAPTURE → SUCCEEDED

    State Flow (customer authentication required):
        CREATED → REQUIRES_ACTION → REQUIRES_CAPTURE → SUCCEEDED

    Release Flow:
        CREATED → CANCELED
        REQUIRES_CAPTURE → CANCELED
        REQUIRES_ACTION → CANCELED
    """

    CREATED = "created", "Created"
    REQUIRES_ACTION = "requires_action", "Requires Action"
    REQUIRES_CAPTURE = "requires_capture", "Requires Capture"
    SUCCEEDED = "succeeded", "Succeeded"
    CANCELED = "canceled", "Canceled"
    FAILED = "failed", "Failed"

    @classmethod
    def from_provider(cls, provider_status: str | None) -> AuthorizationStatus:
        """
        Map a Stripe PaymentIntent status onto the authorization lifecycle.

        ``requires_payment_method`` after a confirmation attempt means the
        card was refused, which is a failed authorization. Statuses that
        precede confirmation map to CREATED.
        """
        if provider_status in cls.values:
            return cls(provider_status)
        if provider_status == "requires_payment_method":
            return cls.FAILED
        return cls.CREATED

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_AUTHORIZATION_STATUSES


TERMINAL_AUTHORIZATION_STATUSES = frozenset(
    {
        AuthorizationStatus.SUCCEEDED,
        AuthorizationStatus.CANCELED,
        AuthorizationStatus.FAILED,
    }
)

ALLOWED_TRANSITIONS: dict[AuthorizationStatus, frozenset[AuthorizationStatus]] = {
    AuthorizationStatus.CREATED: frozenset(
        {
            AuthorizationStatus.REQUIRES_ACTION,
            AuthorizationStatus.REQUIRES_CAPTURE,
            AuthorizationStatus.CANCELED,
            AuthorizationStatus.FAILED,
        }
    ),
    AuthorizationStatus.REQUIRES_ACTION: frozenset(
        {
            AuthorizationStatus.REQUIRES_CAPTURE,
            AuthorizationStatus.CANCELED,
            AuthorizationStatus.FAILED,
        }
    ),
    AuthorizationStatus.REQUIRES_CAPTURE: frozenset(
        {
            AuthorizationStatus.SUCCEEDED,
            AuthorizationStatus.CANCELED,
        }
    ),
    AuthorizationStatus.SUCCEEDED: frozenset(),
    AuthorizationStatus.CANCELED: frozenset(),
    AuthorizationStatus.FAILED: frozenset(),
}


def can_transition(source: AuthorizationStatus, target: AuthorizationStatus) -> bool:
    """Return True when ``source → target`` is a forward transition."""
    return target in ALLOWED_TRANSITIONS[source]


class Phase(models.TextChoices):
    """
    Phases of the three-phase subscription schedule.

    - TRIAL: free trial, fixed length
    - HELD: bridge phase, the authorization hold is captured here
    - PAID: recurring paid billing
    """

    TRIAL = "trial", "Trial"
    HELD = "held", "Held"
    PAID = "paid", "Paid"


__all__ = [
    "ALLOWED_TRANSITIONS",
    "AuthorizationStatus",
    "Phase",
    "TERMINAL_AUTHORIZATION_STATUSES",
    "can_transition",
]

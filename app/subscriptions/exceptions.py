"""
Subscription-specific exceptions for hold and schedule operations.

Exception Hierarchy:
    SubscriptionError (base for the subscription domain)
    ├── InstrumentCreationError - payment method could not be created
    ├── CustomerCreationError - customer or held authorization failed
    ├── ScheduleCreationError - subscription schedule failed
    ├── SignatureVerificationError - webhook authenticity failure
    ├── CorrelationNotFoundError - webhook refers to missing schedule data
    ├── MalformedEventError - verified event is missing a required field
    ├── ProviderActionError - capture/cancel/update call failed (redeliver)
    └── StripeError - Base for all translated Stripe errors
        ├── StripeCardDeclinedError - Card declined (permanent)
        ├── StripeInsufficientFundsError - Insufficient funds (permanent)
        ├── StripeInvalidRequestError - Invalid request params (permanent)
        ├── StripeRateLimitError - Rate limited (transient, retry)
        └── StripeAPIUnavailableError - API unavailable (transient, retry)

    InvalidStateTransitionError - authorization not in a capturable state
        (inherits ConflictError)

Each class carries an ``http_status``. Webhook handling relies on it to
choose between rejecting an event for good (4xx) and asking the provider
to redeliver it (5xx).

Usage:
    from subscriptions.exceptions import CorrelationNotFoundError

    if not active_schedule:
        raise CorrelationNotFoundError(
            "No active subscription schedule found.",
            details={"subscription_id": subscription.id},
        )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ConflictError

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Subscription Domain Exceptions
# =============================================================================


class SubscriptionError(BaseApplicationError):
    """
    Base exception for all subscription operations.

    Example:
        try:
            service.create_subscription(data)
        except SubscriptionError as e:
            logger.error(f"Subscription flow failed: {e}")
            return Response(e.to_dict(), status=e.http_status)
    """

    default_error_code: str = "SUBSCRIPTION_ERROR"


class InstrumentCreationError(SubscriptionError):
    """
    Raised when the tokenized card cannot be turned into a payment method.

    Nothing has been created at the provider yet, so there is no partial
    state to clean up.
    """

    default_error_code: str = "INSTRUMENT_CREATION_FAILED"
    http_status: int = 402


class CustomerCreationError(SubscriptionError):
    """
    Raised when the price lookup, customer creation or held
    authorization fails.
    """

    default_error_code: str = "CUSTOMER_CREATION_FAILED"
    http_status: int = 402


class ScheduleCreationError(SubscriptionError):
    """Raised when the three-phase subscription schedule cannot be created."""

    default_error_code: str = "SCHEDULE_CREATION_FAILED"
    http_status: int = 502


class SignatureVerificationError(SubscriptionError):
    """
    Raised when a webhook payload fails signature verification.

    The event is rejected with a client error and never processed.
    """

    default_error_code: str = "SIGNATURE_VERIFICATION_FAILED"
    http_status: int = 400


class CorrelationNotFoundError(SubscriptionError):
    """
    Raised when a webhook refers to a schedule, phase or price that
    cannot be located.

    Redelivery will not fix a structurally absent schedule, so this is a
    client error rather than a retryable failure.
    """

    default_error_code: str = "CORRELATION_NOT_FOUND"
    http_status: int = 400


class MalformedEventError(SubscriptionError):
    """Raised when a verified webhook event lacks a field its handler needs."""

    default_error_code: str = "MALFORMED_EVENT"
    http_status: int = 400


class ProviderActionError(SubscriptionError):
    """
    Raised when a capture, cancel or subscription update call fails.

    Surfaced as a server error so the provider redelivers the event.
    The ``is_retryable`` flag of the underlying Stripe error is kept in
    ``details`` for the logs.
    """

    default_error_code: str = "PROVIDER_ACTION_FAILED"
    http_status: int = 500


# =============================================================================
# Stripe-Specific Exceptions
# =============================================================================


class StripeError(SubscriptionError):
    """
    Base exception for all Stripe-related errors.

    Provides common attributes for Stripe error handling:
    - stripe_code: Stripe's internal error code
    - decline_code: Card decline code (if applicable)
    - is_retryable: Whether the operation can be retried

    Raw provider error objects never leave the adapter; only the codes
    and the user-facing message are copied here.
    """

    default_error_code: str = "STRIPE_ERROR"
    http_status: int = 502
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        stripe_code: str | None = None,
        decline_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if stripe_code:
            details["stripe_code"] = stripe_code
        if decline_code:
            details["decline_code"] = decline_code
        super().__init__(message, error_code=error_code, details=details)
        self.stripe_code = stripe_code
        self.decline_code = decline_code


# -----------------------------------------------------------------------------
# Permanent Errors (do not retry)
# -----------------------------------------------------------------------------


class StripeCardDeclinedError(StripeError):
    """
    Card was declined by the issuing bank.

    This is a permanent error - do not retry with the same card.
    The decline_code attribute contains the specific reason.
    """

    default_error_code: str = "CARD_DECLINED"
    http_status: int = 402
    is_retryable: bool = False


class StripeInsufficientFundsError(StripeError):
    """
    Insufficient funds on the payment method.

    Note:
        This is a permanent error - do not retry automatically.
        User action is required before retry can succeed.
    """

    default_error_code: str = "INSUFFICIENT_FUNDS"
    http_status: int = 402
    is_retryable: bool = False


class StripeInvalidRequestError(StripeError):
    """
    Invalid request parameters sent to Stripe.

    Possible causes:
    - Unknown price, customer or payment intent ID
    - Operation not allowed in the object's current state
    - Authentication failure (bad API key)

    Note:
        This usually indicates a configuration problem or a bug,
        not a user error. Log these errors for developer investigation.
    """

    default_error_code: str = "INVALID_STRIPE_REQUEST"
    is_retryable: bool = False


# -----------------------------------------------------------------------------
# Transient Errors (safe to retry with backoff)
# -----------------------------------------------------------------------------


class StripeRateLimitError(StripeError):
    """Rate limited by Stripe API."""

    default_error_code: str = "STRIPE_RATE_LIMITED"
    http_status: int = 503
    is_retryable: bool = True


class StripeAPIUnavailableError(StripeError):
    """
    Stripe API is temporarily unavailable.

    This covers:
    - Network connectivity issues
    - Stripe server errors (5xx)
    - Unexpected SDK failures
    """

    default_error_code: str = "STRIPE_UNAVAILABLE"
    http_status: int = 503
    is_retryable: bool = True


# =============================================================================
# State Exceptions
# =============================================================================


class InvalidStateTransitionError(ConflictError):
    """
    Raised when an authorization cannot make the requested transition.

    Example: a capture is requested while the authorization still waits
    for customer authentication. The authorization may become capturable
    later, so webhook handling answers 500 and lets the provider retry.

    Attributes:
        details: Contains authorization_id, current_status and target_status
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"
    http_status: int = 500


__all__ = [
    # Subscription domain
    "SubscriptionError",
    "InstrumentCreationError",
    "CustomerCreationError",
    "ScheduleCreationError",
    "SignatureVerificationError",
    "CorrelationNotFoundError",
    "MalformedEventError",
    "ProviderActionError",
    # Stripe-specific
    "StripeError",
    "StripeCardDeclinedError",
    "StripeInsufficientFundsError",
    "StripeInvalidRequestError",
    "StripeRateLimitError",
    "StripeAPIUnavailableError",
    # State
    "InvalidStateTransitionError",
]

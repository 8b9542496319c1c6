"""
Held authorizations: placing them, capturing them, releasing them.

AuthorizationBuilder runs the synchronous part of a subscription attempt:

1. create a PaymentMethod from the card token
2. look up the price to learn amount and currency
3. create a Customer bound to the PaymentMethod
4. create and confirm a manually captured PaymentIntent (the hold)

AuthorizationService acts on an existing hold later, when webhooks say
so. The provider's PaymentIntent status is the single source of truth:
it is re-read before every capture or cancel, and an authorization that
already reached the target status is left alone. That makes both
operations idempotent under redelivered or reordered events.

Usage:
    builder = AuthorizationBuilder(adapter)
    outcome = builder.authorize(
        AuthorizationRequest(
            payment_method_type="card",
            card_token="tok_visa",
            email="a@b.com",
            price_id="price_trial",
        )
    )
    if outcome.requires_action:
        return {"clientSecret": outcome.client_secret}

    AuthorizationService(adapter).capture(outcome.authorization.id)
"""

from __future__ import annotations

from dataclasses import dataclass, field

from core.services import BaseService
from subscriptions.adapters import (
    CreatePaymentIntentParams,
    CustomerResult,
    PaymentIntentResult,
    StripeAdapter,
)
from subscriptions.exceptions import (
    CorrelationNotFoundError,
    CustomerCreationError,
    InstrumentCreationError,
    InvalidStateTransitionError,
    ProviderActionError,
    StripeError,
)
from subscriptions.state_machines import AuthorizationStatus, can_transition


@dataclass
class AuthorizationRequest:
    """What the caller supplies to place a hold."""

    payment_method_type: str
    card_token: str
    email: str
    price_id: str
    metadata: dict[str, str] = field(default_factory=dict)

    def __repr__(self) -> str:
        return (
            f"AuthorizationRequest(payment_method_type={self.payment_method_type!r}, "
            f"email={self.email!r}, price_id={self.price_id!r})"
        )


@dataclass
class AuthorizationOutcome:
    """
    Result of a hold attempt.

    Attributes:
        customer: Customer created for this attempt
        authorization: The PaymentIntent holding the funds
        payment_method_id: PaymentMethod the hold was confirmed with
    """

    customer: CustomerResult
    authorization: PaymentIntentResult
    payment_method_id: str

    @property
    def status(self) -> AuthorizationStatus:
        return AuthorizationStatus.from_provider(self.authorization.status)

    @property
    def requires_action(self) -> bool:
        return self.status == AuthorizationStatus.REQUIRES_ACTION

    @property
    def client_secret(self) -> str | None:
        return self.authorization.client_secret


class AuthorizationBuilder(BaseService):
    """Creates the instrument, the customer and the held PaymentIntent."""

    def __init__(self, adapter: StripeAdapter):
        self.adapter = adapter

    def authorize(self, request: AuthorizationRequest) -> AuthorizationOutcome:
        """
        Place a hold for the price's amount without moving funds.

        Returns:
            AuthorizationOutcome whose status is ``requires_capture`` on
            success, or ``requires_action`` when the customer must
            authenticate first (the caller must not build a schedule then).

        Raises:
            InstrumentCreationError: the card token could not be used
            CustomerCreationError: price lookup, customer or hold failed
        """
        log = self.get_logger()

        try:
            payment_method_id = self.adapter.create_payment_method(
                request.payment_method_type,
                request.card_token,
            )
        except StripeError as e:
            log.error(
                f"Error creating payment method: {e.message}",
                extra={"error_code": e.error_code, "details": e.details},
            )
            raise InstrumentCreationError(
                "Failed to create payment method.",
                details={"reason": e.error_code, "message": e.message},
            ) from e

        try:
            price = self.adapter.retrieve_price(request.price_id)
            customer = self.adapter.create_customer(request.email, payment_method_id)
            intent = self.adapter.create_payment_intent(
                CreatePaymentIntentParams(
                    amount_cents=price.unit_amount,
                    currency=price.currency,
                    customer_id=customer.id,
                    payment_method_id=payment_method_id,
                    metadata=request.metadata,
                )
            )
        except (StripeError, ValueError) as e:
            message = getattr(e, "message", str(e))
            log.error(
                f"Error creating customer: {message}",
                extra={"price_id": request.price_id, "payment_method_id": payment_method_id},
            )
            details = {"reason": getattr(e, "error_code", "INVALID_PRICE"), "message": message}
            payment_intent_id = getattr(e, "details", {}).get("payment_intent_id")
            if payment_intent_id:
                details["payment_intent_id"] = payment_intent_id
            raise CustomerCreationError(
                "Failed to create customer and setup payment method.",
                details=details,
            ) from e

        outcome = AuthorizationOutcome(
            customer=customer,
            authorization=intent,
            payment_method_id=payment_method_id,
        )

        if outcome.status not in (
            AuthorizationStatus.REQUIRES_CAPTURE,
            AuthorizationStatus.REQUIRES_ACTION,
        ):
            log.error(
                f"Authorization not held: {intent.status}",
                extra={"payment_intent_id": intent.id, "customer_id": customer.id},
            )
            raise CustomerCreationError(
                "Failed to create customer and setup payment method.",
                details={
                    "reason": "AUTHORIZATION_NOT_HELD",
                    "message": f"Payment intent status is '{intent.status}'.",
                    "payment_intent_id": intent.id,
                },
            )

        log.info(
            "Authorization placed",
            extra={
                "payment_intent_id": intent.id,
                "customer_id": customer.id,
                "status": outcome.status,
            },
        )
        return outcome


@dataclass
class HoldActionResult:
    """
    Result of a capture or cancel request.

    ``changed`` is False when the authorization was already terminal and
    nothing was sent to the provider.
    """

    authorization_id: str
    status: AuthorizationStatus
    changed: bool


class AuthorizationService(BaseService):
    """Idempotent capture and cancel of held authorizations."""

    def __init__(self, adapter: StripeAdapter):
        self.adapter = adapter

    def _current_status(self, authorization_id: str) -> AuthorizationStatus:
        try:
            intent = self.adapter.retrieve_payment_intent(authorization_id)
        except StripeError as e:
            if e.stripe_code == "resource_missing":
                raise CorrelationNotFoundError(
                    f"Authorization {authorization_id} does not exist",
                    details={"authorization_id": authorization_id},
                ) from e
            raise ProviderActionError(
                f"Could not load authorization {authorization_id}",
                details={
                    "authorization_id": authorization_id,
                    "reason": e.error_code,
                    "is_retryable": e.is_retryable,
                },
            ) from e
        return AuthorizationStatus.from_provider(intent.status)

    def capture(self, authorization_id: str) -> HoldActionResult:
        """
        Capture a held authorization.

        Already succeeded -> no-op. Canceled or failed -> no-op, logged as a
        conflict. Requires capture -> captured. Anything else cannot be
        captured yet.

        Raises:
            InvalidStateTransitionError: the hold is not capturable yet
            CorrelationNotFoundError: no such authorization at the provider
            ProviderActionError: the provider call failed
        """
        return self._transition(
            authorization_id,
            AuthorizationStatus.SUCCEEDED,
            self.adapter.capture_payment_intent,
        )

    def cancel(self, authorization_id: str) -> HoldActionResult:
        """
        Release a held authorization.

        Already canceled -> no-op. Succeeded or failed -> no-op, logged as a
        conflict. Any other status -> canceled.

        Raises:
            CorrelationNotFoundError: no such authorization at the provider
            ProviderActionError: the provider call failed
        """
        return self._transition(
            authorization_id,
            AuthorizationStatus.CANCELED,
            self.adapter.cancel_payment_intent,
        )

    def _transition(self, authorization_id: str, target: AuthorizationStatus, action) -> HoldActionResult:
        log = self.get_logger()
        current = self._current_status(authorization_id)
        log_context = {
            "authorization_id": authorization_id,
            "current_status": current,
            "target_status": target,
        }

        if current == target:
            log.info("Authorization already in target status", extra=log_context)
            return HoldActionResult(authorization_id, current, changed=False)

        if current.is_terminal:
            log.warning(
                "Authorization already terminal, skipping",
                extra=log_context,
            )
            return HoldActionResult(authorization_id, current, changed=False)

        if not can_transition(current, target):
            raise InvalidStateTransitionError(
                f"Cannot move authorization from '{current}' to '{target}'",
                details={
                    "authorization_id": authorization_id,
                    "current_status": str(current),
                    "target_status": str(target),
                },
            )

        try:
            intent = action(authorization_id)
        except StripeError as e:
            log.error(
                f"Provider action failed: {e.message}",
                extra={**log_context, "error_code": e.error_code},
            )
            raise ProviderActionError(
                f"Could not move authorization {authorization_id} to '{target}'",
                details={
                    "authorization_id": authorization_id,
                    "reason": e.error_code,
                    "is_retryable": e.is_retryable,
                },
            ) from e

        status = AuthorizationStatus.from_provider(intent.status)
        log.info("Authorization updated", extra={**log_context, "status": status})
        return HoldActionResult(authorization_id, status, changed=True)

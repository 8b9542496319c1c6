"""
Single-charge hold with outcome polling.

A simpler flow than the subscription: place a hold for a price, record
the outcome under the caller's contact id, and let the caller poll for
it once. No schedule is built.

An attempt that needs customer authentication records nothing here; the
``payment_intent.amount_capturable_updated`` webhook records the outcome
once the hold is in place.
"""

from __future__ import annotations

from typing import Any

from core.exceptions import BaseApplicationError, NotFoundError, ValidationError
from core.services import BaseService, ServiceResult
from subscriptions.cache import CachedOutcome, ResultCache
from subscriptions.services.authorization import AuthorizationBuilder, AuthorizationRequest

REQUIRED_FIELDS = ("contactId", "contactEmail", "priceId", "cardTokenId")


class PaymentHoldService(BaseService):
    """Places standalone holds and serves their outcome to pollers."""

    def __init__(self, authorization_builder: AuthorizationBuilder, result_cache: ResultCache):
        self.authorization_builder = authorization_builder
        self.result_cache = result_cache

    def create_payment_intent(self, data: dict[str, Any]) -> ServiceResult[dict[str, Any]]:
        """
        Place a hold and record its outcome for ``contactId``.

        Returns:
            ServiceResult with ``requiresAction`` and, when set, the
            ``clientSecret`` and ``paymentIntentId``.
        """
        log = self.get_logger()

        missing = self.missing_fields(data, *REQUIRED_FIELDS)
        if missing:
            return ServiceResult.from_exception(
                ValidationError(
                    f"Missing required fields: {', '.join(missing)}",
                    details={"missing_fields": missing},
                )
            )

        contact_id = data["contactId"]
        contact_email = data["contactEmail"]

        try:
            outcome = self.authorization_builder.authorize(
                AuthorizationRequest(
                    payment_method_type=data.get("type") or "card",
                    card_token=data["cardTokenId"],
                    email=contact_email,
                    price_id=data["priceId"],
                    metadata={"contactId": contact_id, "contactEmail": contact_email},
                )
            )
        except BaseApplicationError as e:
            log.error(
                f"Error in create-payment-intent: {e.message}",
                extra={"contact_id": contact_id, "error_code": e.error_code},
            )
            self.result_cache.record(
                contact_id,
                CachedOutcome(
                    status=False,
                    amount=None,
                    contact_id=contact_id,
                    contact_email=contact_email,
                    payment_method_id=None,
                    payment_intent_status=None,
                    message=e.message,
                ).to_dict(),
                attempt_id=e.details.get("payment_intent_id"),
            )
            return ServiceResult.from_exception(e)

        intent = outcome.authorization
        if outcome.requires_action:
            log.info(
                "Hold requires customer action",
                extra={"contact_id": contact_id, "payment_intent_id": intent.id},
            )
            return ServiceResult.success(
                {
                    "requiresAction": True,
                    "clientSecret": outcome.client_secret,
                    "paymentIntentId": intent.id,
                }
            )

        self.result_cache.record(
            contact_id,
            CachedOutcome(
                status=True,
                amount=intent.amount_cents,
                contact_id=contact_id,
                contact_email=contact_email,
                payment_method_id=outcome.payment_method_id,
                payment_intent_status=intent.status,
            ).to_dict(),
            attempt_id=intent.id,
        )
        log.info(
            "Hold placed",
            extra={"contact_id": contact_id, "payment_intent_id": intent.id},
        )
        return ServiceResult.success({"requiresAction": False, "paymentIntentId": intent.id})

    def check_payment_status(self, contact_id: str | None) -> ServiceResult[dict[str, Any]]:
        """Consume the recorded outcome for ``contact_id``. A second call finds nothing."""
        if not contact_id:
            return ServiceResult.from_exception(
                ValidationError(
                    "Missing required fields: contactId",
                    details={"missing_fields": ["contactId"]},
                )
            )

        outcome = self.result_cache.pop(contact_id)
        if outcome is None:
            return ServiceResult.from_exception(
                NotFoundError(
                    "No payment status found for this contact.",
                    error_code="PAYMENT_STATUS_NOT_FOUND",
                )
            )
        return ServiceResult.success({"paymentStatus": outcome})

"""
Subscription service: the synchronous create-subscription flow.

Coordinates the AuthorizationBuilder and the ScheduleBuilder:

    request -> hold (requires_capture) -> three-phase schedule -> response

When the customer must authenticate first, the flow stops after the hold
and hands the client secret back; no schedule is built until the caller
re-drives the flow.

Usage:
    service = SubscriptionService(
        authorization_builder=builder,
        schedule_builder=schedule_builder,
        trial_price_id=settings.TRIAL_STRIPE_PRICE_ID,
        paid_price_id=settings.PAID_STRIPE_PRICE_ID,
    )
    result = service.create_subscription(request.data)
    return Response(result.to_response(), status=result.http_status)
"""

from __future__ import annotations

import logging
from typing import Any

from core.exceptions import BaseApplicationError, ValidationError
from core.helpers import scrub_sensitive
from core.services import BaseService, ServiceResult
from subscriptions.services.authorization import AuthorizationBuilder, AuthorizationRequest
from subscriptions.services.schedule import ScheduleBuilder

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("contactEmail", "priceId", "cardTokenId")
DEFAULT_PAYMENT_METHOD_TYPE = "card"


class SubscriptionService(BaseService):
    """Places the hold and builds the schedule for a new subscription."""

    def __init__(
        self,
        authorization_builder: AuthorizationBuilder,
        schedule_builder: ScheduleBuilder,
        trial_price_id: str,
        paid_price_id: str,
    ):
        self.authorization_builder = authorization_builder
        self.schedule_builder = schedule_builder
        self.trial_price_id = trial_price_id
        self.paid_price_id = paid_price_id

    def create_subscription(self, data: dict[str, Any]) -> ServiceResult[dict[str, Any]]:
        """
        Run the create-subscription flow.

        Args:
            data: Request body with priceId, contactEmail, cardTokenId and
                optionally type (defaults to "card")

        Returns:
            ServiceResult whose data is
            ``{"subscriptionSchedule": {...}, "requiresAction": False}`` on
            success, or ``{"requiresAction": True, "clientSecret": ...}``
            as a failure when the customer must authenticate first.
        """
        try:
            request = self._build_request(data)
            outcome = self.authorization_builder.authorize(request)

            if outcome.requires_action:
                logger.info(
                    "Authorization requires customer action, schedule not built",
                    extra={"payment_intent_id": outcome.authorization.id},
                )
                return ServiceResult.failure(
                    "Additional authentication required.",
                    error_code="REQUIRES_ACTION",
                    data={"requiresAction": True, "clientSecret": outcome.client_secret},
                    http_status=200,
                )

            schedule = self.schedule_builder.build(
                customer_id=outcome.customer.id,
                trial_price_id=self.trial_price_id,
                paid_price_id=self.paid_price_id,
                payment_method_id=outcome.payment_method_id,
                authorization=outcome.authorization,
            )
        except BaseApplicationError as e:
            logger.error(
                f"Error in create-subscription: {e.message}",
                extra={"error_code": e.error_code, "details": scrub_sensitive(e.details)},
            )
            return ServiceResult.from_exception(e)

        return ServiceResult.success(
            {
                "subscriptionSchedule": schedule.raw_response,
                "requiresAction": False,
            }
        )

    def _build_request(self, data: dict[str, Any]) -> AuthorizationRequest:
        missing = self.missing_fields(data, *REQUIRED_FIELDS)
        if missing:
            raise ValidationError(
                "Missing required fields: email, cardTokenId, or priceId",
                details={"missing_fields": missing},
            )

        return AuthorizationRequest(
            payment_method_type=data.get("type") or DEFAULT_PAYMENT_METHOD_TYPE,
            card_token=data["cardTokenId"],
            email=data["contactEmail"],
            price_id=data["priceId"],
        )

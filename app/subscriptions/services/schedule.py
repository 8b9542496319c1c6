"""
Three-phase subscription schedules: trial, held, paid.

The schedule is how "charge later, not now" works. The provider's own
billing engine walks the customer through the phases and fires the
eventual charge; webhooks tell us when to capture or release the hold.

    trial   trial price, trial=True, ends exactly 7 days after creation
    held    bridge phase, trial price, one iteration
    paid    paid price, billed from phase start, charged automatically

Every phase's metadata carries the phase tag and the ID of the held
authorization that funds it, so any event about the schedule can be
traced back to exactly one hold. The schedule releases the subscription
when the last phase ends instead of looping.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from django.utils import timezone

from core.services import BaseService
from subscriptions.adapters import PaymentIntentResult, ScheduleResult, StripeAdapter
from subscriptions.exceptions import ScheduleCreationError, StripeError
from subscriptions.state_machines import Phase, PhaseTags

TRIAL_PERIOD = timedelta(days=7)

# Metadata key correlating schedules and phases with the held authorization
AUTHORIZATION_METADATA_KEY = "authorizationId"
PHASE_METADATA_KEY = "phase"


def phase_metadata(phase_tags: PhaseTags, phase: Phase, authorization_id: str) -> dict[str, str]:
    return {
        PHASE_METADATA_KEY: phase_tags.tag_for(phase),
        AUTHORIZATION_METADATA_KEY: authorization_id,
    }


def build_phases(
    *,
    phase_tags: PhaseTags,
    trial_price_id: str,
    paid_price_id: str,
    payment_method_id: str,
    authorization_id: str,
    trial_end: datetime,
) -> list[dict[str, Any]]:
    """Return the trial, held and paid phase definitions, in order."""
    return [
        {
            "items": [{"price": trial_price_id}],
            "trial": True,
            "end_date": int(trial_end.timestamp()),
            "metadata": phase_metadata(phase_tags, Phase.TRIAL, authorization_id),
        },
        {
            "items": [{"price": trial_price_id}],
            "iterations": 1,
            "default_payment_method": payment_method_id,
            "metadata": phase_metadata(phase_tags, Phase.HELD, authorization_id),
        },
        {
            "items": [{"price": paid_price_id}],
            "billing_cycle_anchor": "phase_start",
            "collection_method": "charge_automatically",
            "proration_behavior": "none",
            "default_payment_method": payment_method_id,
            "metadata": phase_metadata(phase_tags, Phase.PAID, authorization_id),
        },
    ]


class ScheduleBuilder(BaseService):
    """Creates the subscription schedule that follows a successful hold."""

    def __init__(self, adapter: StripeAdapter, phase_tags: PhaseTags):
        self.adapter = adapter
        self.phase_tags = phase_tags

    def build(
        self,
        customer_id: str,
        trial_price_id: str,
        paid_price_id: str,
        payment_method_id: str,
        authorization: PaymentIntentResult,
    ) -> ScheduleResult:
        """
        Create the schedule, starting now.

        Raises:
            ScheduleCreationError: the provider refused the schedule
        """
        now = timezone.now()
        phases = build_phases(
            phase_tags=self.phase_tags,
            trial_price_id=trial_price_id,
            paid_price_id=paid_price_id,
            payment_method_id=payment_method_id,
            authorization_id=authorization.id,
            trial_end=now + TRIAL_PERIOD,
        )

        try:
            schedule = self.adapter.create_subscription_schedule(
                customer_id=customer_id,
                start_date=int(now.timestamp()),
                phases=phases,
                metadata={AUTHORIZATION_METADATA_KEY: authorization.id},
                end_behavior="release",
            )
        except StripeError as e:
            self.get_logger().error(
                f"Error creating subscription schedule: {e.message}",
                extra={"customer_id": customer_id, "authorization_id": authorization.id},
            )
            raise ScheduleCreationError(
                "Failed to create subscription schedule.",
                details={"reason": e.error_code, "authorization_id": authorization.id},
            ) from e

        self.get_logger().info(
            "Subscription schedule created",
            extra={
                "schedule_id": schedule.id,
                "customer_id": customer_id,
                "authorization_id": authorization.id,
            },
        )
        return schedule

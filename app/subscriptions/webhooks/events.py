"""
Typed views over the ``data.object`` of verified webhook events.

Each handler parses the event object into one of these before acting, so
a field the handler depends on is either present or the event is
rejected with ``MalformedEventError``. Optional fields stay ``None``;
nothing downstream relies on chained lookups quietly turning into no-ops.

Expandable fields (``customer``, ``payment_method``, ``price``) may
arrive as a plain ID or as an expanded object; both are reduced to the ID.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from subscriptions.exceptions import MalformedEventError
from subscriptions.services.schedule import AUTHORIZATION_METADATA_KEY, PHASE_METADATA_KEY


def expandable_id(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        return value.get("id")
    return None


def _required(obj: Mapping[str, Any], name: str, event_type: str) -> Any:
    value = obj.get(name)
    if value in (None, ""):
        raise MalformedEventError(
            f"{event_type} event is missing '{name}'",
            details={"event_type": event_type, "field": name},
        )
    return value


def _metadata(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    return {str(k): v for k, v in value.items()}


def event_object(event: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return ``event["data"]["object"]``, failing loudly when it is absent."""
    data = event.get("data")
    obj = data.get("object") if isinstance(data, Mapping) else None
    if not isinstance(obj, Mapping):
        raise MalformedEventError(
            "Event has no data object",
            details={"event_type": event.get("type"), "event_id": event.get("id")},
        )
    return obj


@dataclass
class PhaseMetadata:
    """The ``phase`` tag and authorization ID written by the schedule builder."""

    phase_tag: str | None = None
    authorization_id: str | None = None

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, Any]) -> PhaseMetadata:
        return cls(
            phase_tag=metadata.get(PHASE_METADATA_KEY) or None,
            authorization_id=metadata.get(AUTHORIZATION_METADATA_KEY) or None,
        )


@dataclass
class InvoiceEvent:
    """
    An invoice from ``invoice.*`` events.

    The subscription metadata (and so the phase tag) lives under
    ``parent.subscription_details`` in current API versions and under
    ``subscription_details`` in older ones; both are read.
    """

    id: str
    customer_id: str | None
    subscription_id: str | None
    metadata: PhaseMetadata

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> InvoiceEvent:
        obj = event_object(event)
        event_type = event.get("type", "invoice")

        details = None
        parent = obj.get("parent")
        if isinstance(parent, Mapping):
            details = parent.get("subscription_details")
        if not isinstance(details, Mapping):
            details = obj.get("subscription_details")
        if not isinstance(details, Mapping):
            details = {}

        subscription_id = expandable_id(details.get("subscription")) or expandable_id(
            obj.get("subscription")
        )

        return cls(
            id=_required(obj, "id", event_type),
            customer_id=expandable_id(obj.get("customer")),
            subscription_id=subscription_id,
            metadata=PhaseMetadata.from_metadata(_metadata(details.get("metadata"))),
        )


@dataclass
class SubscriptionItem:
    id: str | None
    price_id: str | None


@dataclass
class SubscriptionEvent:
    """A subscription from ``customer.subscription.*`` events."""

    id: str
    status: str
    customer_id: str
    metadata: PhaseMetadata
    items: list[SubscriptionItem] = field(default_factory=list)

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> SubscriptionEvent:
        obj = event_object(event)
        event_type = event.get("type", "customer.subscription")

        items = []
        raw_items = obj.get("items")
        if isinstance(raw_items, Mapping):
            for item in raw_items.get("data") or []:
                items.append(
                    SubscriptionItem(
                        id=item.get("id"),
                        price_id=expandable_id(item.get("price")),
                    )
                )

        return cls(
            id=_required(obj, "id", event_type),
            status=_required(obj, "status", event_type),
            customer_id=expandable_id(_required(obj, "customer", event_type)),
            metadata=PhaseMetadata.from_metadata(_metadata(obj.get("metadata"))),
            items=items,
        )

    @property
    def price_ids(self) -> set[str]:
        return {item.price_id for item in self.items if item.price_id}


@dataclass
class PaymentIntentEvent:
    """A PaymentIntent from ``payment_intent.*`` events."""

    id: str
    status: str
    amount: int | None
    customer_id: str | None
    payment_method_id: str | None
    metadata: dict[str, str]
    failure_message: str | None = None

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> PaymentIntentEvent:
        obj = event_object(event)
        event_type = event.get("type", "payment_intent")

        failure_message = None
        last_error = obj.get("last_payment_error")
        if isinstance(last_error, Mapping):
            failure_message = last_error.get("message")

        return cls(
            id=_required(obj, "id", event_type),
            status=_required(obj, "status", event_type),
            amount=obj.get("amount"),
            customer_id=expandable_id(obj.get("customer")),
            payment_method_id=expandable_id(obj.get("payment_method")),
            metadata=_metadata(obj.get("metadata")),
            failure_message=failure_message,
        )

    @property
    def contact_id(self) -> str | None:
        return self.metadata.get("contactId") or None

    @property
    def contact_email(self) -> str | None:
        return self.metadata.get("contactEmail") or None

"""
Short-lived result cache for authorization outcomes.

A caller that starts an authorization can poll for its outcome by contact
id. The authorization flow and the PaymentIntent webhooks write the
outcome, once per PaymentIntent; the status check reads and deletes it.
Reads are destructive, so at most one poll observes a given outcome.

There is no locking: two simultaneous polls for the same contact id may
let only one of them see the result. This is a notification channel, not
a ledger.

Usage:
    from django.core.cache import caches
    from subscriptions.cache import CachedOutcome, ResultCache

    result_cache = ResultCache(caches["default"], ttl_seconds=1440 * 60)
    result_cache.record("contact_123", CachedOutcome(status=True, ...).to_dict(), "pi_123")
    outcome = result_cache.pop("contact_123")
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 1440 * 60


@dataclass
class CachedOutcome:
    """
    Outcome of one authorization attempt, as returned to a polling caller.

    Serialized with the camelCase keys the HTTP surface uses.
    """

    status: bool
    amount: int | None
    contact_id: str
    contact_email: str | None
    payment_method_id: str | None
    payment_intent_status: str | None
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        return {
            "status": data["status"],
            "amount": data["amount"],
            "contactId": data["contact_id"],
            "contactEmail": data["contact_email"],
            "paymentMethodId": data["payment_method_id"],
            "paymentIntentStatus": data["payment_intent_status"],
            "message": data["message"],
        }


class ResultCache:
    """
    Key to JSON-value store with a fixed expiry.

    Wraps a Django cache backend (django-redis in production, local memory
    in tests) and namespaces every key with ``key_prefix``.
    """

    def __init__(
        self,
        backend,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        key_prefix: str = "payment-status",
    ):
        self.backend = backend
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix

    def make_key(self, key: str) -> str:
        return f"{self.key_prefix}:{key}"

    def set(self, key: str, value: dict[str, Any], ttl_seconds: int | None = None) -> None:
        timeout = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        self.backend.set(self.make_key(key), value, timeout=timeout)
        logger.debug("Cached outcome", extra={"cache_key": self.make_key(key)})

    def record(self, key: str, value: dict[str, Any], attempt_id: str | None = None) -> bool:
        """
        Write the outcome of one attempt under ``key``.

        The request flow and the webhooks can both report the same
        PaymentIntent. With an ``attempt_id`` only the first report is
        written; later ones return False. The marker expires with the
        outcome.
        """
        if attempt_id is not None:
            marker = self.make_key(f"recorded:{attempt_id}")
            if not self.backend.add(marker, True, timeout=self.ttl_seconds):
                logger.info(
                    "Outcome already recorded for attempt",
                    extra={"cache_key": self.make_key(key), "attempt_id": attempt_id},
                )
                return False
        self.set(key, value)
        return True

    def get(self, key: str) -> dict[str, Any] | None:
        return self.backend.get(self.make_key(key))

    def delete(self, key: str) -> None:
        self.backend.delete(self.make_key(key))

    def pop(self, key: str) -> dict[str, Any] | None:
        """Read and delete an entry. Returns None when nothing is cached."""
        value = self.get(key)
        if value is not None:
            self.delete(key)
        return value

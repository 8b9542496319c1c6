"""
Helper functions for common infrastructure operations.

This module provides domain-agnostic utility functions for:
- Scrubbing sensitive values (card data, raw provider traffic) out of
  payloads before they are logged or returned to a client

Usage:
    from core.helpers import scrub_sensitive

    logger.warning("Request rejected", extra={"payload": scrub_sensitive(data)})
"""

from __future__ import annotations

from typing import Any

REDACTED = "[REDACTED]"

# Keys compared case-insensitively with "_" and "-" removed
SENSITIVE_KEYS = frozenset(
    {
        "card",
        "cardtoken",
        "cardtokenid",
        "cardnumber",
        "number",
        "cvc",
        "cvv",
        "expmonth",
        "expyear",
        "clientsecret",
        "headers",
        "httpheaders",
        "httpbody",
        "jsonbody",
        "authorization",
        "stripesignature",
    }
)


def _normalize_key(key: Any) -> str:
    return str(key).replace("_", "").replace("-", "").lower()


def scrub_sensitive(value: Any) -> Any:
    """
    Return a copy of ``value`` with sensitive entries replaced.

    Walks nested dicts, lists and tuples. Mapping entries whose key is a
    known sensitive name (card fields, client secrets, raw headers and
    bodies) are replaced by ``"[REDACTED]"``. Other values are returned
    unchanged.

    Args:
        value: Arbitrary JSON-like data

    Returns:
        Scrubbed copy safe for logs and error responses

    Example:
        scrub_sensitive({"cardTokenId": "tok_123", "priceId": "price_1"})
        # {"cardTokenId": "[REDACTED]", "priceId": "price_1"}
    """
    if isinstance(value, dict):
        return {
            key: REDACTED if _normalize_key(key) in SENSITIVE_KEYS else scrub_sensitive(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [scrub_sensitive(item) for item in value]
    return value

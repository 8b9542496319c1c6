"""
Tests for the result cache.

Tests cover:
- Namespaced keys and the default TTL
- Destructive reads
- One recorded outcome per attempt
- CachedOutcome serialization
"""

from unittest.mock import MagicMock

from django.core.cache import cache

from subscriptions.cache import DEFAULT_TTL_SECONDS, CachedOutcome, ResultCache


def make_outcome(**overrides):
    values = {
        "status": True,
        "amount": 5000,
        "contact_id": "contact_1",
        "contact_email": "a@b.com",
        "payment_method_id": "pm_1",
        "payment_intent_status": "requires_capture",
    }
    values.update(overrides)
    return CachedOutcome(**values)


class TestCachedOutcome:
    def test_to_dict_uses_camel_case(self):
        assert make_outcome(message="ok").to_dict() == {
            "status": True,
            "amount": 5000,
            "contactId": "contact_1",
            "contactEmail": "a@b.com",
            "paymentMethodId": "pm_1",
            "paymentIntentStatus": "requires_capture",
            "message": "ok",
        }


class TestResultCache:
    def test_set_and_get(self):
        result_cache = ResultCache(cache)

        result_cache.set("contact_1", make_outcome().to_dict())

        assert result_cache.get("contact_1")["paymentIntentStatus"] == "requires_capture"
        assert cache.get("payment-status:contact_1") is not None

    def test_pop_is_destructive(self):
        result_cache = ResultCache(cache)
        result_cache.set("contact_1", make_outcome().to_dict())

        assert result_cache.pop("contact_1")["contactId"] == "contact_1"
        assert result_cache.pop("contact_1") is None

    def test_pop_absent_key(self):
        assert ResultCache(cache).pop("missing") is None

    def test_delete(self):
        result_cache = ResultCache(cache, key_prefix="other")
        result_cache.set("k", {"status": False})

        result_cache.delete("k")

        assert result_cache.get("k") is None

    def test_default_and_explicit_ttl(self):
        backend = MagicMock()
        result_cache = ResultCache(backend, key_prefix="p")

        result_cache.set("k", {"a": 1})
        result_cache.set("k", {"a": 1}, ttl_seconds=5)

        assert DEFAULT_TTL_SECONDS == 1440 * 60
        assert backend.set.call_args_list[0].args == ("p:k", {"a": 1})
        assert backend.set.call_args_list[0].kwargs == {"timeout": DEFAULT_TTL_SECONDS}
        assert backend.set.call_args_list[1].kwargs == {"timeout": 5}

    def test_record_writes_once_per_attempt(self):
        result_cache = ResultCache(cache)

        assert result_cache.record("contact_1", make_outcome().to_dict(), attempt_id="pi_1")
        result_cache.pop("contact_1")

        assert not result_cache.record(
            "contact_1", make_outcome(status=False).to_dict(), attempt_id="pi_1"
        )
        assert result_cache.get("contact_1") is None

    def test_record_without_attempt_always_writes(self):
        result_cache = ResultCache(cache)

        assert result_cache.record("contact_1", make_outcome().to_dict())
        assert result_cache.record("contact_1", make_outcome(status=False).to_dict())

        assert result_cache.get("contact_1")["status"] is False

    def test_record_marker_shares_ttl(self):
        backend = MagicMock()
        backend.add.return_value = True
        result_cache = ResultCache(backend, ttl_seconds=60, key_prefix="p")

        result_cache.record("k", {"a": 1}, attempt_id="pi_1")

        backend.add.assert_called_once_with("p:recorded:pi_1", True, timeout=60)
        backend.set.assert_called_once_with("p:k", {"a": 1}, timeout=60)

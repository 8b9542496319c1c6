"""
Pytest fixtures for webhook tests.

The dispatcher is wired with the shared mock adapter, so handlers run
against the real AuthorizationService and ResultCache.
"""

import pytest

from subscriptions.webhooks import EventDispatcher


@pytest.fixture
def dispatcher(mock_adapter, authorization_service, phase_tags, result_cache):
    return EventDispatcher(
        adapter=mock_adapter,
        authorization_service=authorization_service,
        phase_tags=phase_tags,
        result_cache=result_cache,
    )

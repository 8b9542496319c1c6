"""
Tests for the infrastructure endpoints.
"""

from unittest.mock import patch

from django.test import Client


class TestHealthCheck:
    def test_reports_cache_connected(self):
        response = Client().get("/health/")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "cache": "connected"}

    def test_cache_outage_still_answers(self):
        with patch("core.views.cache") as mock_cache:
            mock_cache.set.side_effect = ConnectionError("redis down")

            response = Client().get("/health/")

        assert response.status_code == 200
        assert response.json()["cache"] == "disconnected"

    def test_schema_is_served(self):
        response = Client().get("/schema/")

        assert response.status_code == 200
        assert b"/create-subscription" in response.content

"""
Core views providing infrastructure endpoints.

This module contains views that are not part of the business domain but are
essential for application infrastructure, such as health checks.
"""

from django.core.cache import cache
from django.http import JsonResponse


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    This endpoint is used by:
    - Docker health checks
    - Load balancers
    - Uptime monitoring

    The service keeps no database; the only local dependency is the
    result cache. A cache outage degrades payment-status polling but
    does not stop webhooks from being processed, so the endpoint still
    answers 200 and reports the cache as disconnected.

    Example Response:
        {
            "status": "healthy",
            "cache": "connected"
        }
    """
    health_status = {
        "status": "healthy",
        "cache": "unknown",
    }

    try:
        cache.set("health_check", "ok", timeout=1)
        if cache.get("health_check") == "ok":
            health_status["cache"] = "connected"
        else:
            health_status["cache"] = "disconnected"
    except Exception:
        health_status["cache"] = "disconnected"

    return JsonResponse(health_status, status=200)

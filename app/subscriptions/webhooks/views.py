"""
Webhook endpoint view for Stripe.

The view:
1. Reads the raw body and the Stripe-Signature header
2. Verifies and dispatches the event inline
3. Answers with the status the outcome calls for

Events are processed inside the request because the status code tells
Stripe whether to redeliver: 200 acknowledges, 4xx rejects for good,
5xx asks for redelivery.

Usage:
    # In urls.py
    from subscriptions.webhooks.views import StripeWebhookView

    urlpatterns = [
        path("webhook", StripeWebhookView.as_view(), name="stripe_webhook"),
    ]
"""

from __future__ import annotations

import logging

from django.apps import apps
from django.http import HttpRequest, HttpResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from core.exceptions import BaseApplicationError
from subscriptions.exceptions import SignatureVerificationError

logger = logging.getLogger(__name__)


@method_decorator(csrf_exempt, name="dispatch")
class StripeWebhookView(View):
    """
    Receive and process Stripe webhook events.

    Returns:
        HttpResponse with status:
        - 200: Event handled or acknowledged
        - 400: Invalid signature, malformed event or missing schedule data
        - 500: Capture, cancel or update failed, or an unexpected error

    Example Stripe-Signature header:
        t=1614556800,v1=xxx,v0=yyy
    """

    http_method_names = ["post"]
    dispatcher = None

    def get_dispatcher(self):
        if self.dispatcher is not None:
            return self.dispatcher
        return apps.get_app_config("subscriptions").services.event_dispatcher

    def post(self, request: HttpRequest) -> HttpResponse:
        payload = request.body
        signature = request.headers.get("Stripe-Signature", "")

        try:
            self.get_dispatcher().handle(payload, signature)
        except SignatureVerificationError as e:
            logger.warning(
                f"Webhook signature verification failed: {e.message}",
                extra={"reason": e.details.get("reason")},
            )
            return HttpResponse(f"Webhook error: {e.message}", status=e.http_status)
        except BaseApplicationError as e:
            log = logger.warning if e.http_status < 500 else logger.error
            log(
                f"Error handling webhook event: {e.message}",
                extra={"error_code": e.error_code, "details": e.details},
            )
            return HttpResponse(e.message, status=e.http_status)
        except Exception as e:
            logger.error(
                f"Error handling webhook event: {type(e).__name__}",
                exc_info=True,
            )
            return HttpResponse("Webhook handler failed.", status=500)

        return HttpResponse("OK", status=200)

"""
DRF views for the subscriptions app.

This module provides API views for:
- Creating a deferred-charge subscription
- Placing a standalone hold and polling for its outcome

Related files:
    - services/: SubscriptionService, PaymentHoldService
    - serializers.py: Request/response serializers
    - webhooks/views.py: Stripe webhook endpoint
    - urls.py: URL routing

Endpoints:
    POST /create-subscription - Hold funds and build the trial/held/paid schedule
    POST /create-payment-intent - Hold funds without a schedule
    GET /check-payment-status?contactId= - Consume the recorded hold outcome

Services are taken from class attributes when set (tests pass them to
``as_view``) and otherwise from the objects the app built at startup.
"""

from __future__ import annotations

import logging

from django.apps import apps
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from core.services import ServiceResult

from .serializers import (
    CheckPaymentStatusResponseSerializer,
    CheckPaymentStatusSerializer,
    CreatePaymentIntentResponseSerializer,
    CreatePaymentIntentSerializer,
    CreateSubscriptionResponseSerializer,
    CreateSubscriptionSerializer,
    ErrorResponseSerializer,
)

logger = logging.getLogger(__name__)


def _services():
    return apps.get_app_config("subscriptions").services


def _invalid(serializer) -> Response:
    fields = ", ".join(sorted(serializer.errors))
    result = ServiceResult.failure(
        f"Invalid or missing fields: {fields}",
        error_code="VALIDATION_ERROR",
        errors=serializer.errors,
    )
    return Response(result.to_response(), status=result.http_status)


class CreateSubscriptionView(APIView):
    """
    Create a deferred-charge subscription.

    POST /create-subscription

    Request body:
        {
            "priceId": "price_xxx",
            "contactEmail": "a@b.com",
            "cardTokenId": "tok_xxx",
            "type": "card"
        }

    Returns:
        {"success": true, "subscriptionSchedule": {...}, "requiresAction": false}
        or {"success": false, "requiresAction": true, "clientSecret": "..."}
    """

    permission_classes = [AllowAny]
    subscription_service = None

    def get_service(self):
        return self.subscription_service or _services().subscription_service

    @extend_schema(
        operation_id="create_subscription",
        summary="Create subscription",
        description=(
            "Place a hold for the price without charging, then build a "
            "three-phase schedule (trial, held, paid) tagged with the hold. "
            "When the card needs authentication, no schedule is built and "
            "the client secret is returned instead."
        ),
        request=CreateSubscriptionSerializer,
        responses={
            200: CreateSubscriptionResponseSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid request"),
            402: OpenApiResponse(
                response=ErrorResponseSerializer,
                description="Card or customer could not be set up",
            ),
            502: OpenApiResponse(
                response=ErrorResponseSerializer,
                description="Subscription schedule could not be created",
            ),
        },
        tags=["Subscriptions"],
    )
    def post(self, request):
        serializer = CreateSubscriptionSerializer(data=request.data)
        if not serializer.is_valid():
            return _invalid(serializer)

        result = self.get_service().create_subscription(serializer.validated_data)
        return Response(result.to_response(), status=result.http_status)


class CreatePaymentIntentView(APIView):
    """
    Place a standalone hold and record its outcome for polling.

    POST /create-payment-intent
    """

    permission_classes = [AllowAny]
    payment_hold_service = None

    def get_service(self):
        return self.payment_hold_service or _services().payment_hold_service

    @extend_schema(
        operation_id="create_payment_intent",
        summary="Place a hold",
        description=(
            "Place a hold for the price without a subscription schedule. "
            "The outcome is recorded under contactId for one later poll."
        ),
        request=CreatePaymentIntentSerializer,
        responses={
            200: CreatePaymentIntentResponseSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid request"),
            402: OpenApiResponse(
                response=ErrorResponseSerializer,
                description="Card or customer could not be set up",
            ),
        },
        tags=["Holds"],
    )
    def post(self, request):
        serializer = CreatePaymentIntentSerializer(data=request.data)
        if not serializer.is_valid():
            return _invalid(serializer)

        result = self.get_service().create_payment_intent(serializer.validated_data)
        return Response(result.to_response(), status=result.http_status)


class CheckPaymentStatusView(APIView):
    """
    Consume the recorded outcome of a hold.

    GET /check-payment-status?contactId=...

    The outcome is deleted on read; a second poll gets 404.
    """

    permission_classes = [AllowAny]
    payment_hold_service = None

    def get_service(self):
        return self.payment_hold_service or _services().payment_hold_service

    @extend_schema(
        operation_id="check_payment_status",
        summary="Check hold outcome",
        parameters=[
            OpenApiParameter(
                name="contactId",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=True,
            ),
        ],
        responses={
            200: CheckPaymentStatusResponseSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Missing contactId"),
            404: OpenApiResponse(
                response=ErrorResponseSerializer,
                description="No outcome recorded, or already consumed",
            ),
        },
        tags=["Holds"],
    )
    def get(self, request):
        serializer = CheckPaymentStatusSerializer(data=request.query_params)
        if not serializer.is_valid():
            return _invalid(serializer)

        result = self.get_service().check_payment_status(serializer.validated_data["contactId"])
        return Response(result.to_response(), status=result.http_status)

"""
DRF serializers for the subscriptions app.

This module provides serializers for:
- Create-subscription and create-payment-intent request bodies
- The check-payment-status query string
- Response shapes (used for the OpenAPI schema)

Field names are camelCase to match the request bodies clients send.

Related files:
    - views.py: API views
    - services/: the flows the validated data is handed to

Usage:
    serializer = CreateSubscriptionSerializer(data=request.data)
    if serializer.is_valid():
        result = service.create_subscription(serializer.validated_data)
"""

from __future__ import annotations

from rest_framework import serializers

PAYMENT_METHOD_TYPES = ["card"]


class CardHoldRequestSerializer(serializers.Serializer):
    """Fields shared by every request that places a hold."""

    priceId = serializers.CharField(max_length=255)
    contactEmail = serializers.EmailField()
    cardTokenId = serializers.CharField(max_length=255)
    type = serializers.ChoiceField(choices=PAYMENT_METHOD_TYPES, default="card")


class CreateSubscriptionSerializer(CardHoldRequestSerializer):
    """
    Request body of POST /create-subscription.

    Example:
        {
            "priceId": "price_trial",
            "contactEmail": "a@b.com",
            "cardTokenId": "tok_visa",
            "type": "card"
        }
    """


class CreatePaymentIntentSerializer(CardHoldRequestSerializer):
    """Request body of POST /create-payment-intent."""

    contactId = serializers.CharField(max_length=255)


class CheckPaymentStatusSerializer(serializers.Serializer):
    """Query string of GET /check-payment-status."""

    contactId = serializers.CharField(max_length=255)


class ErrorResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField(default=False)
    error = serializers.CharField()
    error_code = serializers.CharField(required=False)
    errors = serializers.DictField(required=False)
    details = serializers.DictField(required=False)


class CreateSubscriptionResponseSerializer(serializers.Serializer):
    """
    Response of POST /create-subscription.

    ``subscriptionSchedule`` is the provider's schedule object. When the
    customer must authenticate, ``success`` is false, ``requiresAction``
    is true and ``clientSecret`` is set instead.
    """

    success = serializers.BooleanField()
    requiresAction = serializers.BooleanField()
    subscriptionSchedule = serializers.DictField(required=False)
    clientSecret = serializers.CharField(required=False)


class CreatePaymentIntentResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    requiresAction = serializers.BooleanField()
    paymentIntentId = serializers.CharField(required=False)
    clientSecret = serializers.CharField(required=False)


class PaymentStatusSerializer(serializers.Serializer):
    """A recorded hold outcome, as stored in the result cache."""

    status = serializers.BooleanField()
    amount = serializers.IntegerField(allow_null=True)
    contactId = serializers.CharField()
    contactEmail = serializers.CharField(allow_null=True)
    paymentMethodId = serializers.CharField(allow_null=True)
    paymentIntentStatus = serializers.CharField(allow_null=True)
    message = serializers.CharField(allow_null=True, required=False)


class CheckPaymentStatusResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    paymentStatus = PaymentStatusSerializer()

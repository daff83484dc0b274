"""
DRF serializers for payments app.

This module provides serializers for:
- Calculate / initiate / verify requests
- Transaction and invoice display
- Response shapes used in the OpenAPI schema

Related files:
    - models: PaymentTransaction, PaymentInvoice
    - views.py: Payment API views

Usage:
    serializer = InitiatePaymentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
"""

from __future__ import annotations

from rest_framework import serializers

from payments.models import PaymentInvoice, PaymentTransaction
from payments.state_machines import PaymentProviderName, ReferenceType


# =============================================================================
# Request Serializers
# =============================================================================


class CalculatePaymentSerializer(serializers.Serializer):
    """
    Payable reference to price.

    Fields:
        reference_type: One of ReferenceType
        reference_id: Registration, event, user, organization or request id
        context: Reference-specific input, e.g. {"guests": [...],
            "donation_amount": "100"} for EVENT_PAYMENT or
            {"plan_id": 1, "billing_cycle": "YEARLY"} for SUBSCRIPTION_NEW
    """

    reference_type = serializers.ChoiceField(choices=ReferenceType.choices)
    reference_id = serializers.CharField(max_length=64)
    context = serializers.DictField(required=False, default=dict)


class InitiatePaymentSerializer(CalculatePaymentSerializer):
    description = serializers.CharField(
        max_length=255,
        required=False,
        allow_blank=True,
    )
    expected_amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        required=False,
        help_text="Total shown to the user; rejected if it differs from the calculated total",
    )
    provider = serializers.ChoiceField(
        choices=PaymentProviderName.choices,
        required=False,
    )


class VerifyPaymentSerializer(serializers.Serializer):
    """
    Gateway proof returned to the client after checkout.

    For Razorpay these are razorpay_order_id, razorpay_payment_id and
    razorpay_signature; for Stripe only the PaymentIntent id is needed.
    """

    provider_order_id = serializers.CharField(max_length=255, required=False, allow_blank=True)
    provider_payment_id = serializers.CharField(max_length=255)
    signature = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


# =============================================================================
# Model Serializers
# =============================================================================


class PaymentTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentTransaction
        fields = [
            "id",
            "transaction_number",
            "amount",
            "currency",
            "description",
            "reference_type",
            "reference_id",
            "breakdown",
            "status",
            "provider",
            "provider_order_id",
            "provider_payment_id",
            "failure_reason",
            "initiated_at",
            "expires_at",
            "completed_at",
            "created_at",
        ]
        read_only_fields = fields


class PaymentInvoiceSerializer(serializers.ModelSerializer):
    transaction_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = PaymentInvoice
        fields = [
            "id",
            "transaction_id",
            "invoice_number",
            "status",
            "invoice_data",
            "pdf_url",
            "pdf_generated_at",
            "email_sent_to",
            "email_sent_at",
            "email_resend_count",
            "created_at",
        ]
        read_only_fields = fields


# =============================================================================
# Response Serializers (schema only)
# =============================================================================


class CalculationResponseSerializer(serializers.Serializer):
    reference_type = serializers.CharField()
    reference_id = serializers.CharField()
    breakdown = serializers.DictField()
    items = serializers.ListField(child=serializers.DictField())
    total = serializers.DecimalField(max_digits=12, decimal_places=2)


class InitiationResponseSerializer(serializers.Serializer):
    transaction = PaymentTransactionSerializer()
    breakdown = serializers.DictField()
    items = serializers.ListField(child=serializers.DictField())
    provider = serializers.DictField(help_text="name, order_id and checkout_params")


class VerificationResponseSerializer(serializers.Serializer):
    verified = serializers.BooleanField()
    already_completed = serializers.BooleanField()
    message = serializers.CharField(allow_blank=True)
    transaction = PaymentTransactionSerializer()


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()
    error_code = serializers.CharField()
    details = serializers.DictField()

"""
DRF views for payments app.

This module provides API views for:
- Fee calculation and payment initiation
- Client-side payment verification
- Transaction history
- Invoices

Related files:
    - services: PaymentEngine, InvoiceService
    - serializers.py: Request/response serializers
    - urls.py: URL routing
    - webhooks/views.py: Gateway webhook endpoint

Endpoints:
    POST /api/v1/payments/calculate/ - Fee breakdown
    POST /api/v1/payments/initiate/ - Create transaction + gateway order
    GET /api/v1/payments/transactions/ - List transactions
    GET /api/v1/payments/transactions/{id}/ - Transaction detail
    POST /api/v1/payments/transactions/{id}/verify/ - Verify payment
    GET /api/v1/payments/transactions/{id}/invoice/ - Get invoice
    POST /api/v1/payments/transactions/{id}/invoice/resend/ - Resend invoice email

Security:
    - All endpoints require authentication
    - Transactions of other users are reported as not found
"""

from __future__ import annotations

import logging

from django_fsm import TransitionNotAllowed
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import BaseApplicationError
from payments.adapters import PaymentProof
from payments.exceptions import (
    InvalidStateTransitionError,
    PaymentGatewayError,
    PaymentNotFoundError,
    PaymentValidationError,
)
from payments.serializers import (
    CalculatePaymentSerializer,
    CalculationResponseSerializer,
    ErrorResponseSerializer,
    InitiatePaymentSerializer,
    InitiationResponseSerializer,
    PaymentInvoiceSerializer,
    PaymentTransactionSerializer,
    VerificationResponseSerializer,
    VerifyPaymentSerializer,
)
from payments.services import InvoiceService, get_payment_engine

logger = logging.getLogger(__name__)

GATEWAY_UNAVAILABLE_MESSAGE = "Payment gateway is unavailable, please try again"


def error_response(exc: BaseApplicationError) -> Response:
    """
    Map an application error to an HTTP response.

    Gateway errors are reported with a generic message; the gateway's own
    error stays in the logs.
    """
    if isinstance(exc, PaymentNotFoundError):
        return Response(exc.to_dict(), status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, PaymentGatewayError):
        logger.warning(
            "Payment gateway error",
            extra={"error_code": exc.error_code, "details": exc.details},
        )
        return Response(
            {"error": GATEWAY_UNAVAILABLE_MESSAGE, "error_code": exc.error_code},
            status=status.HTTP_502_BAD_GATEWAY,
        )
    if isinstance(exc, InvalidStateTransitionError):
        return Response(exc.to_dict(), status=status.HTTP_409_CONFLICT)
    return Response(exc.to_dict(), status=status.HTTP_400_BAD_REQUEST)


class PaymentAPIView(APIView):
    """APIView that turns payment errors into JSON error responses."""

    permission_classes = [IsAuthenticated]

    def handle_exception(self, exc):
        if isinstance(exc, TransitionNotAllowed):
            exc = InvalidStateTransitionError(str(exc))
        if isinstance(exc, BaseApplicationError):
            return error_response(exc)
        return super().handle_exception(exc)


class CalculatePaymentView(PaymentAPIView):
    """
    Price a payable reference without creating anything.

    POST /api/v1/payments/calculate/
    """

    @extend_schema(
        operation_id="calculate_payment",
        summary="Calculate payment",
        request=CalculatePaymentSerializer,
        responses={
            200: CalculationResponseSerializer,
            400: OpenApiResponse(ErrorResponseSerializer, description="Reference not payable"),
            404: OpenApiResponse(ErrorResponseSerializer, description="Reference not found"),
        },
        tags=["Payments"],
    )
    def post(self, request):
        serializer = CalculatePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        calculation = get_payment_engine().calculate(
            data["reference_type"],
            data["reference_id"],
            request.user,
            data.get("context"),
        )
        return Response(
            {
                "reference_type": calculation.reference_type,
                "reference_id": calculation.reference_id,
                "breakdown": calculation.breakdown_data(),
                "items": calculation.items_data(),
                "total": str(calculation.total),
            }
        )


class InitiatePaymentView(PaymentAPIView):
    """
    Create a PENDING transaction and the gateway order.

    POST /api/v1/payments/initiate/

    Returns the checkout parameters the client passes to the gateway SDK.
    """

    @extend_schema(
        operation_id="initiate_payment",
        summary="Initiate payment",
        request=InitiatePaymentSerializer,
        responses={
            201: InitiationResponseSerializer,
            400: OpenApiResponse(ErrorResponseSerializer, description="Rejected before any gateway call"),
            404: OpenApiResponse(ErrorResponseSerializer, description="Reference not found"),
            502: OpenApiResponse(ErrorResponseSerializer, description="Gateway order creation failed"),
        },
        tags=["Payments"],
    )
    def post(self, request):
        serializer = InitiatePaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = get_payment_engine().initiate(
            data["reference_type"],
            data["reference_id"],
            request.user,
            description=data.get("description") or None,
            context=data.get("context"),
            expected_amount=data.get("expected_amount"),
            provider=data.get("provider"),
        )
        return Response(
            {
                "transaction": PaymentTransactionSerializer(result.transaction).data,
                "breakdown": result.breakdown,
                "items": result.items,
                "provider": result.provider,
            },
            status=status.HTTP_201_CREATED,
        )


@extend_schema(
    operation_id="list_transactions",
    summary="List transactions",
    responses={200: PaymentTransactionSerializer(many=True)},
    tags=["Payments - Transactions"],
)
class TransactionListView(generics.ListAPIView):
    """
    The current user's transactions, newest first.

    GET /api/v1/payments/transactions/
    """

    permission_classes = [IsAuthenticated]
    serializer_class = PaymentTransactionSerializer

    def get_queryset(self):
        return get_payment_engine().list_transactions(self.request.user)


class TransactionDetailView(PaymentAPIView):
    """GET /api/v1/payments/transactions/{id}/"""

    @extend_schema(
        operation_id="get_transaction",
        summary="Get transaction",
        responses={
            200: PaymentTransactionSerializer,
            404: OpenApiResponse(ErrorResponseSerializer, description="Transaction not found"),
        },
        tags=["Payments - Transactions"],
    )
    def get(self, request, transaction_id):
        txn = get_payment_engine().get_transaction(transaction_id, user=request.user)
        return Response(PaymentTransactionSerializer(txn).data)


class VerifyPaymentView(PaymentAPIView):
    """
    Verify a payment the client completed with the gateway.

    POST /api/v1/payments/transactions/{id}/verify/

    Idempotent: verifying a completed transaction returns it with
    already_completed=true. A proof that does not check out returns 400
    with verified=false and the transaction left PENDING.
    """

    @extend_schema(
        operation_id="verify_payment",
        summary="Verify payment",
        request=VerifyPaymentSerializer,
        responses={
            200: VerificationResponseSerializer,
            400: VerificationResponseSerializer,
            404: OpenApiResponse(ErrorResponseSerializer, description="Transaction not found"),
            502: OpenApiResponse(ErrorResponseSerializer, description="Gateway unreachable"),
        },
        tags=["Payments - Transactions"],
    )
    def post(self, request, transaction_id):
        serializer = VerifyPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        proof = PaymentProof(
            provider_order_id=data.get("provider_order_id") or "",
            provider_payment_id=data["provider_payment_id"],
            signature=data.get("signature") or "",
        )
        result = get_payment_engine().verify(transaction_id, proof, user=request.user)

        return Response(
            {
                "verified": result.verified,
                "already_completed": result.already_completed,
                "message": result.message,
                "transaction": PaymentTransactionSerializer(result.transaction).data,
            },
            status=status.HTTP_200_OK if result.verified else status.HTTP_400_BAD_REQUEST,
        )


class TransactionInvoiceView(PaymentAPIView):
    """
    Invoice for a completed transaction, generated on first request.

    GET /api/v1/payments/transactions/{id}/invoice/
    """

    @extend_schema(
        operation_id="get_transaction_invoice",
        summary="Get invoice",
        responses={
            200: PaymentInvoiceSerializer,
            400: OpenApiResponse(ErrorResponseSerializer, description="Transaction not completed"),
            404: OpenApiResponse(ErrorResponseSerializer, description="Transaction not found"),
        },
        tags=["Payments - Invoices"],
    )
    def get(self, request, transaction_id):
        txn = get_payment_engine().get_transaction(transaction_id, user=request.user)
        invoice = InvoiceService.get_invoice_for_transaction(txn.id)
        return Response(PaymentInvoiceSerializer(invoice).data)


class ResendInvoiceView(PaymentAPIView):
    """POST /api/v1/payments/transactions/{id}/invoice/resend/"""

    @extend_schema(
        operation_id="resend_transaction_invoice",
        summary="Resend invoice email",
        request=None,
        responses={
            200: PaymentInvoiceSerializer,
            400: OpenApiResponse(ErrorResponseSerializer, description="Transaction not completed"),
            404: OpenApiResponse(ErrorResponseSerializer, description="Transaction not found"),
        },
        tags=["Payments - Invoices"],
    )
    def post(self, request, transaction_id):
        txn = get_payment_engine().get_transaction(transaction_id, user=request.user)
        if not request.user.email:
            raise PaymentValidationError(
                "No email address on your account",
                error_code="NO_EMAIL",
            )
        invoice = InvoiceService.resend_invoice_email(txn.id)
        return Response(PaymentInvoiceSerializer(invoice).data)

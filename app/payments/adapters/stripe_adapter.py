"""
Stripe payment provider.

Wraps the Stripe PaymentIntents API. A "gateway order" on Stripe is a
PaymentIntent: the client confirms it with the returned client secret,
and the server verifies by retrieving the intent.

Configuration (via settings):
- STRIPE_SECRET_KEY: Stripe API secret key
- STRIPE_PUBLISHABLE_KEY: Sent to the client for checkout
- STRIPE_WEBHOOK_SECRET: Webhook signing secret
- STRIPE_API_TIMEOUT_SECONDS: API call timeout (default: 10)
"""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone as dt_timezone
from typing import Any

import stripe
from django.conf import settings
from django.utils import timezone

from payments.adapters.base import (
    OrderRequest,
    PaymentProof,
    PaymentProvider,
    PaymentVerification,
    ProviderOrder,
    WebhookAction,
    WebhookActionType,
)
from payments.adapters.helpers import (
    to_minor_units,
    validate_amount,
    validate_currency,
)
from payments.exceptions import PaymentGatewayError, PaymentValidationError

ORDER_EXPIRY_MINUTES = 30

EVENT_ACTIONS = {
    "payment_intent.succeeded": WebhookActionType.PAYMENT_CAPTURED,
    "payment_intent.payment_failed": WebhookActionType.PAYMENT_FAILED,
}


class StripeProvider(PaymentProvider):
    """
    Stripe PaymentIntents adapter.

    Usage:
        provider = StripeProvider.from_settings()
        order = provider.create_order(order_request)
    """

    name = "stripe"

    def __init__(
        self,
        secret_key: str,
        publishable_key: str = "",
        webhook_secret: str = "",
        timeout: float = 10,
    ):
        self.secret_key = secret_key
        self.publishable_key = publishable_key
        self.webhook_secret = webhook_secret
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> StripeProvider:
        return cls(
            secret_key=settings.STRIPE_SECRET_KEY,
            publishable_key=settings.STRIPE_PUBLISHABLE_KEY,
            webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
            timeout=settings.STRIPE_API_TIMEOUT_SECONDS,
        )

    def webhook_signature_header(self) -> str:
        return "Stripe-Signature"

    def _configure_stripe(self) -> None:
        """Configure Stripe client with API key and timeout."""
        stripe.api_key = self.secret_key
        stripe.default_http_client = stripe.RequestsClient(timeout=self.timeout)

    # =========================================================================
    # Orders
    # =========================================================================

    def create_order(self, order: OrderRequest) -> ProviderOrder:
        missing = order.missing_fields()
        if missing:
            raise PaymentValidationError(
                f"Missing required field: {missing[0]}",
                error_code="MISSING_ORDER_FIELD",
                details={"missing_fields": missing},
            )
        validate_currency(order.currency)
        validate_amount(order.amount)

        self._configure_stripe()
        logger = self.get_logger()
        log_context = {
            "operation": "create_payment_intent",
            "transaction_number": order.transaction_number,
            "amount_minor": to_minor_units(order.amount),
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            intent = stripe.PaymentIntent.create(
                amount=to_minor_units(order.amount),
                currency=order.currency.lower(),
                description=order.description,
                receipt_email=order.payer_email or None,
                metadata={
                    "transaction_id": order.transaction_id,
                    "transaction_number": order.transaction_number,
                    "reference_type": order.reference_type,
                    "reference_id": order.reference_id,
                    "user_id": order.user_id,
                },
                idempotency_key=f"create_order:{order.transaction_id}",
            )
        except stripe.StripeError as e:
            self._handle_stripe_error(e, log_context, (time.time() - start_time) * 1000)
            raise

        logger.info(
            "Stripe operation completed",
            extra={
                **log_context,
                "payment_intent_id": intent.id,
                "duration_ms": (time.time() - start_time) * 1000,
            },
        )

        return ProviderOrder(
            provider_order_id=intent.id,
            provider_order_data={
                "id": intent.id,
                "status": intent.status,
                "amount": intent.amount,
                "currency": intent.currency,
                "client_secret": intent.client_secret,
            },
            expires_at=timezone.now() + timedelta(minutes=ORDER_EXPIRY_MINUTES),
        )

    def checkout_params(self, order: OrderRequest, provider_order: ProviderOrder) -> dict[str, Any]:
        return {
            "publishable_key": self.publishable_key,
            "payment_intent_id": provider_order.provider_order_id,
            "client_secret": provider_order.provider_order_data.get("client_secret"),
            "amount": to_minor_units(order.amount),
            "currency": order.currency.lower(),
            "description": order.description,
        }

    # =========================================================================
    # Verification
    # =========================================================================

    def verify_payment(self, proof: PaymentProof) -> PaymentVerification:
        if not proof.provider_order_id:
            return PaymentVerification(
                verified=False,
                error="Missing required payment verification fields",
            )

        self._configure_stripe()
        logger = self.get_logger()
        log_context = {
            "operation": "retrieve_payment_intent",
            "payment_intent_id": proof.provider_order_id,
        }

        start_time = time.time()
        try:
            intent = stripe.PaymentIntent.retrieve(proof.provider_order_id)
        except stripe.StripeError as e:
            self._handle_stripe_error(e, log_context, (time.time() - start_time) * 1000)
            raise

        logger.info(
            "Stripe operation completed",
            extra={
                **log_context,
                "status": intent.status,
                "duration_ms": (time.time() - start_time) * 1000,
            },
        )

        verified = intent.status == "succeeded"
        return PaymentVerification(
            verified=verified,
            provider_payment_id=intent.latest_charge or intent.id,
            provider_payment_data={
                "id": intent.id,
                "status": intent.status,
                "amount_received": intent.amount_received,
                "currency": intent.currency,
                "latest_charge": intent.latest_charge,
            },
            amount_minor=intent.amount_received,
            method=(intent.payment_method_types or [None])[0],
            status=intent.status,
            completed_at=datetime.fromtimestamp(intent.created, tz=dt_timezone.utc)
            if intent.created
            else timezone.now(),
            error=None if verified else f"PaymentIntent status is {intent.status}",
        )

    # =========================================================================
    # Webhooks
    # =========================================================================

    def verify_webhook_signature(self, raw_payload: bytes, signature: str) -> bool:
        if not self.webhook_secret:
            self.get_logger().warning("Stripe webhook secret not configured, rejecting request")
            return False
        try:
            stripe.Webhook.construct_event(raw_payload, signature, self.webhook_secret)
        except (stripe.SignatureVerificationError, ValueError):
            return False
        return True

    def process_webhook(self, event: dict[str, Any]) -> WebhookAction:
        event_type = event.get("type", "")
        action = EVENT_ACTIONS.get(event_type, WebhookActionType.IGNORED)
        if action == WebhookActionType.IGNORED:
            return WebhookAction(action=action, event_type=event_type, event_id=event.get("id", ""))

        intent = (event.get("data") or {}).get("object") or {}
        last_error = intent.get("last_payment_error") or {}

        return WebhookAction(
            action=action,
            event_type=event_type,
            event_id=event.get("id", ""),
            provider_order_id=intent.get("id"),
            provider_payment_id=intent.get("latest_charge") or intent.get("id"),
            amount_minor=intent.get("amount_received") or intent.get("amount"),
            payment_data=intent,
            failure_reason=last_error.get("message"),
        )

    # =========================================================================
    # Error Handling
    # =========================================================================

    def _handle_stripe_error(
        self,
        error: stripe.StripeError,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Stripe exceptions to PaymentGatewayError.

        Raises:
            PaymentGatewayError: Always
        """
        logger = self.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, stripe.CardError):
            logger.warning(
                "Card error from Stripe",
                extra={**log_context, "decline_code": getattr(error, "decline_code", None)},
            )
            raise PaymentGatewayError(
                str(error.user_message or error),
                provider=self.name,
                gateway_code=error.code,
            ) from error

        if isinstance(error, stripe.InvalidRequestError):
            logger.error(
                "Invalid request to Stripe",
                extra={**log_context, "stripe_code": error.code},
            )
            raise PaymentGatewayError(
                str(error),
                provider=self.name,
                gateway_code=error.code,
            ) from error

        if isinstance(error, (stripe.RateLimitError, stripe.APIConnectionError)):
            logger.error(
                "Stripe unavailable",
                extra=log_context,
                exc_info=True,
            )
            raise PaymentGatewayError(
                "Could not reach Stripe. Please retry.",
                provider=self.name,
                gateway_code="api_connection_error",
                is_retryable=True,
            ) from error

        if isinstance(error, stripe.AuthenticationError):
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            raise PaymentGatewayError(
                "Stripe authentication failed",
                provider=self.name,
                gateway_code="authentication_error",
            ) from error

        logger.error(
            f"Unexpected error from Stripe: {type(error).__name__}",
            extra=log_context,
            exc_info=True,
        )
        raise PaymentGatewayError(
            "Stripe service error. Please retry.",
            provider=self.name,
            gateway_code="api_error",
            is_retryable=True,
        ) from error

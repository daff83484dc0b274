"""
Razorpay payment provider.

Talks to the Razorpay REST API with requests (basic auth with the key
id and secret). Checkout happens in the Razorpay modal on the client;
the server creates the order, hands back checkout options, and later
verifies the signature Razorpay returns to the client.

Signatures:
    Payment: HMAC-SHA256(key_secret, "{order_id}|{payment_id}"), hex
    Webhook: HMAC-SHA256(webhook_secret, raw request body), hex

Configuration (via settings):
- RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET: API credentials
- RAZORPAY_WEBHOOK_SECRET: Webhook signing secret
- RAZORPAY_API_BASE_URL: API root (default: https://api.razorpay.com/v1)
- RAZORPAY_API_TIMEOUT_SECONDS: API call timeout (default: 10)
- RAZORPAY_CHECKOUT_THEME_COLOR: Checkout modal colour
"""

from __future__ import annotations

import hashlib
import hmac
import time
from datetime import datetime, timedelta, timezone as dt_timezone
from typing import Any

import requests
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

# Razorpay payment statuses that mean the money was taken
PAID_STATUSES = ("captured", "authorized")

EVENT_ACTIONS = {
    "payment.captured": WebhookActionType.PAYMENT_CAPTURED,
    "payment.failed": WebhookActionType.PAYMENT_FAILED,
    "order.paid": WebhookActionType.ORDER_PAID,
}


def _from_epoch(value: Any) -> datetime | None:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=dt_timezone.utc)


class RazorpayProvider(PaymentProvider):
    """
    Razorpay Orders API adapter.

    Usage:
        provider = RazorpayProvider.from_settings()
        order = provider.create_order(order_request)
        params = provider.checkout_params(order_request, order)
    """

    name = "razorpay"

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        webhook_secret: str = "",
        api_base_url: str = "https://api.razorpay.com/v1",
        timeout: float = 10,
        checkout_name: str = "",
        theme_color: str = "#3399cc",
    ):
        self.key_id = key_id
        self.key_secret = key_secret
        self.webhook_secret = webhook_secret
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout = timeout
        self.checkout_name = checkout_name
        self.theme_color = theme_color

    @classmethod
    def from_settings(cls) -> RazorpayProvider:
        return cls(
            key_id=settings.RAZORPAY_KEY_ID,
            key_secret=settings.RAZORPAY_KEY_SECRET,
            webhook_secret=settings.RAZORPAY_WEBHOOK_SECRET,
            api_base_url=settings.RAZORPAY_API_BASE_URL,
            timeout=settings.RAZORPAY_API_TIMEOUT_SECONDS,
            checkout_name=settings.ORGANIZATION_NAME,
            theme_color=settings.RAZORPAY_CHECKOUT_THEME_COLOR,
        )

    def webhook_signature_header(self) -> str:
        return "X-Razorpay-Signature"

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

        payload = {
            "amount": to_minor_units(order.amount),
            "currency": order.currency.upper(),
            "receipt": order.transaction_number,
            "notes": {
                "transaction_id": order.transaction_id,
                "reference_type": order.reference_type,
                "reference_id": order.reference_id,
                "user_id": order.user_id,
                "description": order.description[:255],
            },
        }

        data = self._request(
            "POST",
            "/orders",
            payload=payload,
            log_context={
                "operation": "create_order",
                "transaction_number": order.transaction_number,
                "amount_minor": payload["amount"],
            },
        )

        return ProviderOrder(
            provider_order_id=data["id"],
            provider_order_data=data,
            expires_at=timezone.now() + timedelta(minutes=ORDER_EXPIRY_MINUTES),
        )

    def checkout_params(self, order: OrderRequest, provider_order: ProviderOrder) -> dict[str, Any]:
        return {
            "key": self.key_id,
            "amount": to_minor_units(order.amount),
            "currency": order.currency.upper(),
            "name": self.checkout_name,
            "description": order.description,
            "order_id": provider_order.provider_order_id,
            "prefill": {
                "name": order.payer_name,
                "email": order.payer_email,
                "contact": order.payer_phone,
            },
            "notes": {
                "reference_type": order.reference_type,
                "reference_id": order.reference_id,
            },
            "theme": {"color": self.theme_color},
        }

    # =========================================================================
    # Verification
    # =========================================================================

    def payment_signature(self, order_id: str, payment_id: str) -> str:
        return hmac.new(
            self.key_secret.encode("utf-8"),
            f"{order_id}|{payment_id}".encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def verify_payment(self, proof: PaymentProof) -> PaymentVerification:
        logger = self.get_logger()

        if not (proof.provider_order_id and proof.provider_payment_id and proof.signature):
            return PaymentVerification(
                verified=False,
                error="Missing required payment verification fields",
            )

        expected = self.payment_signature(proof.provider_order_id, proof.provider_payment_id)
        if not hmac.compare_digest(expected, proof.signature):
            logger.warning(
                "Razorpay payment signature mismatch",
                extra={
                    "provider_order_id": proof.provider_order_id,
                    "provider_payment_id": proof.provider_payment_id,
                },
            )
            return PaymentVerification(
                verified=False,
                provider_payment_id=proof.provider_payment_id,
                error="Payment signature verification failed",
            )

        payment = self._request(
            "GET",
            f"/payments/{proof.provider_payment_id}",
            log_context={
                "operation": "fetch_payment",
                "provider_payment_id": proof.provider_payment_id,
            },
        )

        status = payment.get("status")
        order_matches = payment.get("order_id") in (None, proof.provider_order_id)
        verified = status in PAID_STATUSES and order_matches
        if not verified:
            logger.warning(
                "Razorpay payment not in a paid state",
                extra={
                    "provider_payment_id": proof.provider_payment_id,
                    "status": status,
                    "order_matches": order_matches,
                },
            )

        return PaymentVerification(
            verified=verified,
            provider_payment_id=proof.provider_payment_id,
            provider_payment_data=payment,
            amount_minor=payment.get("amount"),
            method=payment.get("method"),
            status=status,
            completed_at=_from_epoch(payment.get("created_at")) or timezone.now(),
            error=None if verified else f"Payment status is {status}",
        )

    # =========================================================================
    # Webhooks
    # =========================================================================

    def verify_webhook_signature(self, raw_payload: bytes, signature: str) -> bool:
        if not self.webhook_secret:
            self.get_logger().warning("Razorpay webhook secret not configured, rejecting request")
            return False
        if not signature:
            return False

        expected = hmac.new(
            self.webhook_secret.encode("utf-8"),
            raw_payload,
            hashlib.sha256,
        ).hexdigest()

        return hmac.compare_digest(expected, signature)

    def process_webhook(self, event: dict[str, Any]) -> WebhookAction:
        event_type = event.get("event", "")
        payload = event.get("payload") or {}
        action = EVENT_ACTIONS.get(event_type, WebhookActionType.IGNORED)

        payment = (payload.get("payment") or {}).get("entity") or {}
        order = (payload.get("order") or {}).get("entity") or {}

        if action == WebhookActionType.IGNORED:
            return WebhookAction(action=action, event_type=event_type)

        if action == WebhookActionType.ORDER_PAID:
            return WebhookAction(
                action=action,
                event_type=event_type,
                provider_order_id=order.get("id") or payment.get("order_id"),
                provider_payment_id=payment.get("id"),
                amount_minor=order.get("amount_paid") or order.get("amount"),
                payment_data=payment or order,
            )

        return WebhookAction(
            action=action,
            event_type=event_type,
            provider_order_id=payment.get("order_id"),
            provider_payment_id=payment.get("id"),
            amount_minor=payment.get("amount"),
            payment_data=payment,
            failure_reason=payment.get("error_description"),
        )

    # =========================================================================
    # HTTP
    # =========================================================================

    def _request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        log_context: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Call the Razorpay API and return the decoded JSON body.

        Raises:
            PaymentGatewayError: Network failure or non-2xx response
        """
        logger = self.get_logger()
        log_context = {"provider": self.name, "method": method, "path": path, **(log_context or {})}

        start_time = time.time()
        logger.info("Starting Razorpay operation", extra=log_context)

        try:
            response = requests.request(
                method,
                f"{self.api_base_url}{path}",
                json=payload,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                "Connection error to Razorpay",
                extra={**log_context, "duration_ms": duration_ms},
                exc_info=True,
            )
            raise PaymentGatewayError(
                "Could not connect to Razorpay. Please retry.",
                provider=self.name,
                gateway_code="api_connection_error",
                is_retryable=True,
                details={"error": str(e)},
            ) from e

        duration_ms = (time.time() - start_time) * 1000

        if response.status_code >= 400:
            try:
                error = response.json().get("error", {})
            except ValueError:
                error = {}
            logger.error(
                "Razorpay API error",
                extra={
                    **log_context,
                    "status_code": response.status_code,
                    "gateway_code": error.get("code"),
                    "duration_ms": duration_ms,
                },
            )
            raise PaymentGatewayError(
                error.get("description") or f"Razorpay request failed ({response.status_code})",
                provider=self.name,
                gateway_code=error.get("code"),
                is_retryable=response.status_code >= 500,
                details={"status_code": response.status_code},
            )

        logger.info(
            "Razorpay operation completed",
            extra={**log_context, "status_code": response.status_code, "duration_ms": duration_ms},
        )
        return response.json()

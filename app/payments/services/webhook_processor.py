"""
Webhook processor: gateway callbacks into engine actions.

Every callback is stored first, then its signature is checked against
the exact body bytes, then the normalized event is routed to the same
completion path the client verify call uses. Duplicate deliveries are
harmless: complete_transaction() short-circuits on COMPLETED rows.

Usage:
    from payments.services import get_webhook_processor

    processor = get_webhook_processor()
    webhook = processor.receive("razorpay", request.body, signature)
    processor.process(webhook.id)
"""

from __future__ import annotations

import json
import uuid

from core.services import BaseService
from payments.adapters import PaymentProvider, WebhookAction, WebhookActionType
from payments.exceptions import (
    PaymentError,
    PaymentNotFoundError,
    PaymentSignatureError,
    PaymentValidationError,
)
from payments.models import PaymentTransaction, PaymentWebhook
from payments.services.payment_engine import PaymentEngine
from payments.state_machines import TransactionStatus, WebhookOutcome, WebhookStatus


class WebhookProcessor(BaseService):
    """Stores, verifies and applies gateway callbacks."""

    def __init__(self, engine: PaymentEngine):
        self.engine = engine
        self.providers = engine.providers

    def handle(self, provider: str, raw_payload: bytes, signature: str) -> PaymentWebhook:
        """Receive and process a callback in one call."""
        webhook = self.receive(provider, raw_payload, signature)
        return self.process(webhook.id, raw_payload=raw_payload)

    def receive(self, provider: str, raw_payload: bytes, signature: str) -> PaymentWebhook:
        """
        Persist a callback as RECEIVED. Nothing is verified yet.

        Malformed bodies and unknown providers are stored too, so every
        callback can be audited.
        """
        text = raw_payload.decode("utf-8", errors="replace")
        try:
            payload = json.loads(text)
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        event_type, event_id = "", ""
        if self.providers.has(provider):
            event_type, event_id = self.providers.get(provider).parse_event_metadata(payload)

        webhook = PaymentWebhook.objects.create(
            provider=provider[:20],
            event_type=event_type[:100],
            provider_event_id=event_id[:255],
            raw_payload=raw_payload,
            payload=payload,
            signature=signature or "",
        )
        self.get_logger().info(
            "Webhook received",
            extra={
                "webhook_id": str(webhook.id),
                "provider": provider,
                "event_type": event_type,
            },
        )
        return webhook

    def process(self, webhook_id: uuid.UUID | str, raw_payload: bytes | None = None) -> PaymentWebhook:
        """
        Verify and apply a stored callback.

        Args:
            webhook_id: PaymentWebhook to process
            raw_payload: Original body bytes, when still available; the
                stored bytes are used otherwise

        Returns:
            The webhook, PROCESSED or FAILED. Errors other than PaymentError
            are recorded on the webhook and re-raised so the calling task
            can retry.
        """
        logger = self.get_logger()
        webhook = PaymentWebhook.objects.get(id=webhook_id)

        if webhook.status == WebhookStatus.PROCESSED:
            return webhook

        if not self.providers.has(webhook.provider):
            webhook.mark_failed(f"Unsupported payment provider: {webhook.provider}")
            webhook.save()
            logger.warning(
                "Webhook for unsupported provider",
                extra={"webhook_id": str(webhook.id), "provider": webhook.provider},
            )
            return webhook

        gateway = self.providers.get(webhook.provider)
        body = raw_payload if raw_payload is not None else bytes(webhook.raw_payload)

        try:
            self._verify_signature(gateway, webhook, body)
        except PaymentSignatureError as e:
            webhook.is_signature_valid = False
            webhook.mark_failed(e.message)
            webhook.save()
            logger.warning(
                "Webhook signature verification failed",
                extra={
                    "webhook_id": str(webhook.id),
                    "provider": webhook.provider,
                    "event_type": webhook.event_type,
                    "security_event": True,
                },
            )
            return webhook

        webhook.mark_verified()
        webhook.save()

        try:
            action = gateway.process_webhook(webhook.payload)
            outcome, txn = self._apply(webhook.provider, action)
        except PaymentError as e:
            webhook.mark_failed(e.message)
            webhook.save()
            logger.warning(
                "Webhook processing failed",
                extra={
                    "webhook_id": str(webhook.id),
                    "error_code": e.error_code,
                    "details": e.details,
                },
            )
            return webhook
        except Exception as e:
            webhook.mark_failed(f"Unexpected error: {e}")
            webhook.save()
            logger.error(
                "Webhook processing raised an unexpected error",
                extra={"webhook_id": str(webhook.id), "event_type": webhook.event_type},
                exc_info=True,
            )
            raise

        webhook.transaction = txn
        webhook.mark_processed(outcome)
        webhook.save()

        logger.info(
            "Webhook processed",
            extra={
                "webhook_id": str(webhook.id),
                "event_type": webhook.event_type,
                "outcome": outcome,
                "transaction_id": str(txn.id) if txn else None,
            },
        )
        return webhook

    def _verify_signature(self, gateway: PaymentProvider, webhook: PaymentWebhook, body: bytes) -> None:
        if not gateway.verify_webhook_signature(body, webhook.signature):
            raise PaymentSignatureError(
                "Invalid webhook signature",
                details={"webhook_id": str(webhook.id)},
            )

    def _apply(self, provider: str, action: WebhookAction) -> tuple[str, PaymentTransaction | None]:
        if action.action == WebhookActionType.IGNORED:
            return WebhookOutcome.IGNORED, None

        txn = None
        if action.provider_order_id:
            txn = PaymentTransaction.objects.filter(
                provider=provider,
                provider_order_id=action.provider_order_id,
            ).first()
        if txn is None:
            raise PaymentNotFoundError(
                "Transaction not found for gateway order",
                details={"provider_order_id": action.provider_order_id},
            )

        if action.completes_payment:
            txn = self.engine.expire_if_due(txn)
            if txn.status in (TransactionStatus.FAILED, TransactionStatus.EXPIRED):
                self.get_logger().error(
                    "Payment captured for a closed transaction",
                    extra={
                        "transaction_id": str(txn.id),
                        "status": txn.status,
                        "provider_payment_id": action.provider_payment_id,
                    },
                )
                raise PaymentValidationError(
                    f"Payment captured for {txn.status.lower()} transaction {txn.transaction_number}",
                    error_code="TRANSACTION_NOT_PENDING",
                    details={"transaction_id": str(txn.id), "status": txn.status},
                )

            result = self.engine.complete_transaction(
                txn.id,
                provider_payment_id=action.provider_payment_id,
                provider_payment_data=action.payment_data,
                amount_minor=action.amount_minor,
                source="webhook",
            )
            outcome = WebhookOutcome.ALREADY_COMPLETED if result.already_completed else WebhookOutcome.COMPLETED
            return outcome, result.transaction

        if action.action == WebhookActionType.PAYMENT_FAILED:
            txn, changed = self.engine.fail_transaction(
                txn.id,
                reason=action.failure_reason,
                provider_payment_id=action.provider_payment_id,
            )
            return (WebhookOutcome.FAILED if changed else WebhookOutcome.IGNORED), txn

        return WebhookOutcome.IGNORED, txn

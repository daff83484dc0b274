"""
Celery tasks for payment processing.

This module provides async tasks for:
- Processing stored gateway webhooks
- Generating, rendering and emailing invoices
- Payment notifications
- Issuing event access codes and merchandise pickup codes

Completion queues the follow-up tasks from transaction.on_commit(), so
each runs only after the payment is durably COMPLETED and fails on its
own without touching the transaction.

Usage:
    from payments.tasks import process_payment_webhook

    process_payment_webhook.delay(str(webhook.id))
"""

from __future__ import annotations

import logging
import secrets
import string
from smtplib import SMTPException

from celery import shared_task
from django.db import DatabaseError, IntegrityError

from payments.exceptions import PaymentError, SideEffectError
from payments.models import PaymentTransaction, PaymentWebhook
from payments.state_machines import InvoiceStatus, TransactionStatus
from payments.strategies import get_reference

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

MAX_WEBHOOK_RETRIES = 5
MAX_SIDE_EFFECT_RETRIES = 3
CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 10


def _generate_code(prefix: str) -> str:
    return prefix + "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def _completed_transaction(transaction_id: str) -> PaymentTransaction | None:
    txn = PaymentTransaction.objects.select_related("user").filter(id=transaction_id).first()
    if txn is None or txn.status != TransactionStatus.COMPLETED:
        logger.warning(
            "Follow-up task skipped: transaction missing or not completed",
            extra={"transaction_id": transaction_id},
        )
        return None
    return txn


# =============================================================================
# Webhook Processing
# =============================================================================


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": MAX_WEBHOOK_RETRIES},
    acks_late=True,
)
def process_payment_webhook(self, webhook_id: str) -> dict:
    """
    Verify and apply a stored PaymentWebhook.

    Safe to re-run: PROCESSED webhooks are returned untouched and the
    completion path is idempotent.
    """
    from payments.services import get_webhook_processor

    if not PaymentWebhook.objects.filter(id=webhook_id).exists():
        logger.error("PaymentWebhook not found", extra={"webhook_id": webhook_id})
        return {"status": "not_found", "webhook_id": webhook_id}

    webhook = get_webhook_processor().process(webhook_id)
    return {
        "status": webhook.status,
        "outcome": webhook.outcome,
        "webhook_id": webhook_id,
    }


# =============================================================================
# Completion Follow-ups
# =============================================================================


@shared_task(
    bind=True,
    autoretry_for=(SMTPException, ConnectionError, DatabaseError),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": MAX_SIDE_EFFECT_RETRIES},
    acks_late=True,
)
def generate_transaction_invoice(self, transaction_id: str) -> dict:
    """Generate, render and email the invoice for a completed transaction."""
    from payments.services import InvoiceService

    txn = _completed_transaction(transaction_id)
    if txn is None:
        return {"status": "skipped", "transaction_id": transaction_id}

    try:
        invoice = InvoiceService.generate_invoice(txn.id)
        if not invoice.pdf_url:
            InvoiceService.render_invoice(invoice)
        if invoice.status != InvoiceStatus.EMAILED and txn.user.email:
            InvoiceService.send_invoice_email(invoice)
    except PaymentError as e:
        logger.error(
            "Invoice follow-up failed",
            extra={"transaction_id": transaction_id, "error_code": e.error_code},
        )
        return {"status": "failed", "transaction_id": transaction_id, "error": e.message}

    return {
        "status": invoice.status,
        "invoice_number": invoice.invoice_number,
        "transaction_id": transaction_id,
    }


@shared_task(
    bind=True,
    autoretry_for=(DatabaseError,),
    retry_backoff=True,
    retry_backoff_max=300,
    retry_kwargs={"max_retries": MAX_SIDE_EFFECT_RETRIES},
    acks_late=True,
)
def send_payment_notification(self, transaction_id: str) -> dict:
    """Notify the payer that their payment completed."""
    from notifications.services import NotificationService

    txn = _completed_transaction(transaction_id)
    if txn is None:
        return {"status": "skipped", "transaction_id": transaction_id}

    strategy = get_reference(txn.reference_type)
    result = NotificationService.send(
        txn.user,
        txn,
        {"reference_label": strategy.display_name},
    )
    if not result:
        logger.error(
            "Payment notification failed",
            extra={"transaction_id": transaction_id, "error": result.error},
        )
        return {"status": "failed", "transaction_id": transaction_id}

    return {
        "status": "sent",
        "notification_id": str(result.data.id),
        "transaction_id": transaction_id,
    }


@shared_task(
    bind=True,
    autoretry_for=(IntegrityError, DatabaseError),
    retry_backoff=True,
    retry_backoff_max=60,
    retry_kwargs={"max_retries": MAX_SIDE_EFFECT_RETRIES},
    acks_late=True,
)
def issue_registration_access_code(self, transaction_id: str) -> dict:
    """
    Issue the entry code for a paid event registration.

    Clients encode the code as a QR image. Already-issued codes are kept;
    a code collision raises IntegrityError and the task retries with a
    new one.
    """
    txn = _completed_transaction(transaction_id)
    if txn is None:
        return {"status": "skipped", "transaction_id": transaction_id}

    strategy = get_reference(txn.reference_type)
    registration = strategy.registration_for(txn)
    if registration is None:
        raise SideEffectError(
            "Registration not found for access code",
            details={"transaction_id": transaction_id},
        )

    if not registration.access_code:
        registration.access_code = _generate_code("EVT-")
        registration.save(update_fields=["access_code", "updated_at"])
        logger.info(
            "Registration access code issued",
            extra={"registration_id": registration.id, "transaction_id": transaction_id},
        )

    return {
        "status": "issued",
        "access_code": registration.access_code,
        "transaction_id": transaction_id,
    }


@shared_task(
    bind=True,
    autoretry_for=(IntegrityError, DatabaseError),
    retry_backoff=True,
    retry_backoff_max=60,
    retry_kwargs={"max_retries": MAX_SIDE_EFFECT_RETRIES},
    acks_late=True,
)
def issue_merchandise_pickup_code(self, transaction_id: str) -> dict:
    """Issue the collection code for a paid merchandise order."""
    from merchandise.models import MerchandiseOrder

    txn = _completed_transaction(transaction_id)
    if txn is None:
        return {"status": "skipped", "transaction_id": transaction_id}

    order = MerchandiseOrder.objects.filter(payment_transaction=txn).first()
    if order is None:
        raise SideEffectError(
            "Merchandise order not found for pickup code",
            details={"transaction_id": transaction_id},
        )

    if not order.pickup_code:
        order.pickup_code = _generate_code("PICK-")
        order.save(update_fields=["pickup_code", "updated_at"])
        logger.info(
            "Merchandise pickup code issued",
            extra={"order_number": order.order_number, "transaction_id": transaction_id},
        )

    return {
        "status": "issued",
        "pickup_code": order.pickup_code,
        "transaction_id": transaction_id,
    }

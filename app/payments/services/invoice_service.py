"""
Invoice generation for completed transactions.

An invoice is a JSON document built once from the transaction and never
regenerated; rendering and emailing only update tracking fields.

Usage:
    from payments.services import InvoiceService

    invoice = InvoiceService.generate_invoice(transaction.id)
    InvoiceService.render_invoice(invoice)
    InvoiceService.send_invoice_email(invoice)
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Any

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.mail import EmailMultiAlternatives
from django.db import IntegrityError, transaction as db_transaction
from django.db.models import F
from django.utils import timezone

from core.services import BaseService
from payments.adapters import generate_invoice_number, quantize
from payments.exceptions import PaymentNotFoundError, PaymentValidationError
from payments.models import PaymentInvoice, PaymentTransaction
from payments.state_machines import InvoiceStatus, TransactionStatus
from payments.strategies import get_reference


class InvoiceService(BaseService):
    """Create, render and email transaction invoices."""

    @classmethod
    def generate_invoice(cls, transaction_id: uuid.UUID | str) -> PaymentInvoice:
        """
        Create the invoice for a completed transaction.

        Returns the existing invoice when one was already generated.

        Raises:
            PaymentNotFoundError: Unknown transaction
            PaymentValidationError: Transaction is not COMPLETED
        """
        txn = cls._get_transaction(transaction_id)
        if txn.status != TransactionStatus.COMPLETED:
            raise PaymentValidationError(
                "Invoices are only available for completed payments",
                error_code="INVOICE_NOT_AVAILABLE",
                details={"transaction_id": str(txn.id), "status": txn.status},
            )

        existing = PaymentInvoice.objects.filter(transaction=txn).first()
        if existing is not None:
            return existing

        invoice_number = cls._new_invoice_number()
        try:
            with db_transaction.atomic():
                invoice = PaymentInvoice.objects.create(
                    transaction=txn,
                    invoice_number=invoice_number,
                    invoice_data=cls.build_invoice_data(txn, invoice_number),
                )
        except IntegrityError:
            # Another worker generated it first
            return PaymentInvoice.objects.get(transaction=txn)

        cls.get_logger().info(
            "Invoice generated",
            extra={
                "invoice_number": invoice.invoice_number,
                "transaction_id": str(txn.id),
            },
        )
        return invoice

    @classmethod
    def get_invoice_for_transaction(cls, transaction_id: uuid.UUID | str) -> PaymentInvoice:
        """Return the transaction's invoice, generating it if missing."""
        invoice = PaymentInvoice.objects.filter(transaction_id=transaction_id).first()
        if invoice is not None:
            return invoice
        return cls.generate_invoice(transaction_id)

    @classmethod
    def build_invoice_data(cls, txn: PaymentTransaction, invoice_number: str) -> dict[str, Any]:
        """
        Assemble the invoice document.

        Totals always equal the stored transaction amount.
        """
        strategy = get_reference(txn.reference_type)
        user = txn.user
        breakdown = txn.breakdown or {}
        fee = quantize(Decimal(str(breakdown.get("processing_fee") or "0")))

        line_items = txn.metadata.get("line_items") or [
            {
                "description": txn.description or strategy.display_name,
                "quantity": 1,
                "unit_price": str(txn.amount),
                "amount": str(txn.amount),
            }
        ]

        return {
            "invoice_number": invoice_number,
            "issue_date": timezone.localdate().isoformat(),
            "transaction_number": txn.transaction_number,
            "payment_date": txn.completed_at.isoformat() if txn.completed_at else None,
            "provider": txn.provider,
            "provider_payment_id": txn.provider_payment_id,
            "customer": {
                "name": user.get_full_name(),
                "email": user.email,
                "phone": getattr(user, "phone", "") or "",
                "batch_year": getattr(user, "batch_year", None),
            },
            "organization": {
                "name": settings.ORGANIZATION_NAME,
                "address": settings.ORGANIZATION_ADDRESS,
                "email": settings.ORGANIZATION_EMAIL,
                "phone": settings.ORGANIZATION_PHONE,
                "gstin": settings.ORGANIZATION_GSTIN,
            },
            "payment": {
                "amount": str(txn.amount),
                "currency": txn.currency,
                "description": txn.description,
                "reference_type": txn.reference_type,
                "breakdown": breakdown,
            },
            "reference": strategy.reference_details(txn),
            "line_items": line_items,
            "totals": {
                "subtotal": str(quantize(txn.amount - fee)),
                "processing_fee": str(fee),
                "total": str(txn.amount),
            },
        }

    @classmethod
    def render_invoice(cls, invoice: PaymentInvoice) -> PaymentInvoice:
        """Record where the rendered document lives."""
        base_url = settings.INVOICE_BASE_URL.rstrip("/")
        invoice.pdf_url = f"{base_url}/{invoice.invoice_number}.pdf"
        invoice.pdf_generated_at = timezone.now()
        invoice.save(update_fields=["pdf_url", "pdf_generated_at", "updated_at"])
        return invoice

    @classmethod
    def send_invoice_email(cls, invoice: PaymentInvoice, resend: bool = False) -> PaymentInvoice:
        """
        Email the invoice to the paying user.

        Raises:
            PaymentValidationError: User has no email address
            SMTPException: Delivery failed (retried by the calling task)
        """
        txn = invoice.transaction
        recipient = txn.user.email
        if not recipient:
            raise PaymentValidationError(
                "No email address for invoice delivery",
                error_code="NO_EMAIL",
                details={"invoice_number": invoice.invoice_number},
            )

        data = invoice.invoice_data
        lines = [
            f"Invoice {invoice.invoice_number}",
            f"Transaction: {data.get('transaction_number')}",
            f"Date: {data.get('issue_date')}",
            "",
        ]
        for item in data.get("line_items", []):
            lines.append(f"{item['description']} x {item['quantity']}: {item['amount']}")
        totals = data.get("totals", {})
        lines += [
            "",
            f"Processing fee: {totals.get('processing_fee')}",
            f"Total: {txn.currency} {totals.get('total')}",
        ]
        if invoice.pdf_url:
            lines += ["", f"Download: {invoice.pdf_url}"]

        message = EmailMultiAlternatives(
            subject=f"Invoice {invoice.invoice_number} from {settings.ORGANIZATION_NAME}",
            body="\n".join(lines),
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=[recipient],
        )
        message.send(fail_silently=False)

        invoice.email_sent_to = recipient
        invoice.email_sent_at = timezone.now()
        invoice.status = InvoiceStatus.EMAILED
        update_fields = ["email_sent_to", "email_sent_at", "status", "updated_at"]
        if resend:
            invoice.email_resend_count = F("email_resend_count") + 1
            update_fields.append("email_resend_count")
        invoice.save(update_fields=update_fields)
        invoice.refresh_from_db(fields=["email_resend_count"])

        cls.get_logger().info(
            "Invoice emailed",
            extra={
                "invoice_number": invoice.invoice_number,
                "resend": resend,
            },
        )
        return invoice

    @classmethod
    def resend_invoice_email(cls, transaction_id: uuid.UUID | str) -> PaymentInvoice:
        invoice = cls.get_invoice_for_transaction(transaction_id)
        return cls.send_invoice_email(invoice, resend=True)

    @classmethod
    def _get_transaction(cls, transaction_id: uuid.UUID | str) -> PaymentTransaction:
        try:
            return PaymentTransaction.objects.select_related("user").get(id=transaction_id)
        except (PaymentTransaction.DoesNotExist, ValueError, DjangoValidationError):
            raise PaymentNotFoundError(
                "Transaction not found",
                details={"transaction_id": str(transaction_id)},
            ) from None

    @classmethod
    def _new_invoice_number(cls) -> str:
        number = generate_invoice_number()
        while PaymentInvoice.objects.filter(invoice_number=number).exists():
            number = generate_invoice_number()
        return number

"""
PaymentInvoice model: the invoice issued for a completed transaction.

Created once per transaction (enforced by the one-to-one field); later
operations only touch the rendering and email tracking fields.
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import InvoiceStatus


class PaymentInvoice(UUIDPrimaryKeyMixin, BaseModel):
    """
    Structured invoice for a COMPLETED PaymentTransaction.

    Fields:
        transaction: The paid transaction (one invoice each)
        invoice_number: Human-readable INV-YYYYMMDD-XXXXXX number
        invoice_data: Full invoice document (customer, organization,
            payment, line items, totals)
        pdf_url / pdf_generated_at: Rendered document location
        email_*: Delivery tracking
    """

    transaction = models.OneToOneField(
        "payments.PaymentTransaction",
        on_delete=models.PROTECT,
        related_name="invoice",
        help_text="Transaction this invoice is for",
    )

    invoice_number = models.CharField(
        max_length=32,
        unique=True,
        help_text="Human-readable number (INV-YYYYMMDD-XXXXXX)",
    )

    invoice_data = models.JSONField(
        default=dict,
        help_text="Invoice document",
    )

    status = models.CharField(
        max_length=20,
        choices=InvoiceStatus.choices,
        default=InvoiceStatus.GENERATED,
        help_text="Invoice delivery status",
    )

    # ==========================================================================
    # Rendering & Delivery Tracking
    # ==========================================================================

    pdf_url = models.CharField(
        max_length=500,
        blank=True,
        default="",
        help_text="Location of the rendered document",
    )

    pdf_generated_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the document was rendered",
    )

    email_sent_to = models.EmailField(
        blank=True,
        default="",
        help_text="Address the invoice was last emailed to",
    )

    email_sent_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the invoice was last emailed",
    )

    email_resend_count = models.PositiveIntegerField(
        default=0,
        help_text="Number of times the invoice was re-sent",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment Invoice"
        verbose_name_plural = "Payment Invoices"

    def __str__(self) -> str:
        return self.invoice_number

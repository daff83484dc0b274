"""
Payment provider interface and shared data types.

Every gateway is wrapped in a PaymentProvider subclass. The engine only
talks to this interface, so adding a gateway means writing one adapter
and registering it in ProviderRegistry.

Amounts cross this boundary in two forms: OrderRequest carries the
Decimal major-unit amount stored on the transaction, and everything the
gateway reports back (PaymentVerification, WebhookAction) carries minor
units exactly as the gateway sent them.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class OrderRequest:
    """
    Parameters for creating a gateway order.

    Attributes:
        transaction_id: PaymentTransaction UUID (string)
        transaction_number: PT-YYYYMMDD-XXXXXX, sent as the gateway receipt
        amount: Total in major currency units
        currency: ISO 4217 code
        description: Shown to the payer
        reference_type / reference_id: Payable reference
        user_id: Paying user
        payer_name / payer_email / payer_phone: Checkout prefill
    """

    transaction_id: str
    transaction_number: str
    amount: Decimal
    currency: str
    description: str
    reference_type: str
    reference_id: str
    user_id: str
    payer_name: str = ""
    payer_email: str = ""
    payer_phone: str = ""

    REQUIRED_FIELDS = (
        "transaction_number",
        "amount",
        "description",
        "reference_type",
        "reference_id",
        "user_id",
    )

    def missing_fields(self) -> list[str]:
        return [name for name in self.REQUIRED_FIELDS if not getattr(self, name)]


@dataclass
class ProviderOrder:
    """Gateway order created for a transaction."""

    provider_order_id: str
    provider_order_data: dict[str, Any] = field(default_factory=dict)
    expires_at: datetime | None = None


@dataclass
class PaymentProof:
    """
    What the client sends back after paying.

    Attributes:
        provider_order_id: Gateway order / intent ID
        provider_payment_id: Gateway payment ID
        signature: Gateway-issued signature over the order and payment
    """

    provider_order_id: str = ""
    provider_payment_id: str = ""
    signature: str = ""


@dataclass
class PaymentVerification:
    """
    Result of verifying a payment with the gateway.

    A signature mismatch is reported as verified=False, never raised.
    """

    verified: bool
    provider_payment_id: str | None = None
    provider_payment_data: dict[str, Any] = field(default_factory=dict)
    amount_minor: int | None = None
    method: str | None = None
    status: str | None = None
    completed_at: datetime | None = None
    error: str | None = None


class WebhookActionType:
    PAYMENT_CAPTURED = "payment_captured"
    PAYMENT_FAILED = "payment_failed"
    ORDER_PAID = "order_paid"
    IGNORED = "ignored"

    COMPLETING = (PAYMENT_CAPTURED, ORDER_PAID)


@dataclass
class WebhookAction:
    """
    Gateway callback normalized to an engine action.

    Attributes:
        action: One of WebhookActionType
        event_type: Gateway event name
        event_id: Gateway event ID, if any
        provider_order_id: Order the event concerns
        provider_payment_id: Payment the event concerns
        amount_minor: Amount reported by the gateway
        payment_data: Raw payment/order entity
        failure_reason: Gateway error description for failures
    """

    action: str
    event_type: str = ""
    event_id: str = ""
    provider_order_id: str | None = None
    provider_payment_id: str | None = None
    amount_minor: int | None = None
    payment_data: dict[str, Any] = field(default_factory=dict)
    failure_reason: str | None = None

    @property
    def completes_payment(self) -> bool:
        return self.action in WebhookActionType.COMPLETING


# =============================================================================
# Provider Interface
# =============================================================================


class PaymentProvider(ABC):
    """
    Capability interface for a payment gateway.

    Implementations must be safe to share between requests: they hold
    configuration only, never per-payment state.
    """

    name: str = ""

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this provider."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @abstractmethod
    def create_order(self, order: OrderRequest) -> ProviderOrder:
        """
        Create a gateway order for a pending transaction.

        Raises:
            PaymentValidationError: Missing fields, bad currency or amount
            PaymentGatewayError: The gateway call failed
        """

    @abstractmethod
    def verify_payment(self, proof: PaymentProof) -> PaymentVerification:
        """
        Confirm with the gateway that a payment really happened.

        Raises:
            PaymentGatewayError: The gateway could not be reached
        """

    @abstractmethod
    def verify_webhook_signature(self, raw_payload: bytes, signature: str) -> bool:
        """Check a callback signature over the exact request body."""

    @abstractmethod
    def process_webhook(self, event: dict[str, Any]) -> WebhookAction:
        """Normalize a parsed callback body into a WebhookAction."""

    @abstractmethod
    def checkout_params(self, order: OrderRequest, provider_order: ProviderOrder) -> dict[str, Any]:
        """Parameters the client needs to open the gateway checkout."""

    def webhook_signature_header(self) -> str:
        """HTTP header carrying the callback signature."""
        return "X-Signature"

    def parse_event_metadata(self, event: dict[str, Any]) -> tuple[str, str]:
        """Return (event_type, event_id) for logging a callback."""
        return str(event.get("event") or event.get("type") or ""), str(event.get("id") or "")

"""
Base class for payable references.

A payable reference is one kind of thing a user can pay for (an event
registration, a merchandise cart, a membership, ...). Each kind is a
PayableReference subclass registered under its ReferenceType, and owns
two things:

- calculate(): a read-only computation of what the user owes, with an
  itemized breakdown. Called by /calculate and again by initiate().
- apply_completion_side_effects(): the domain changes that make the
  payment real (confirm the registration, decrement stock, activate the
  membership). Called exactly once, inside the completion transaction.

Usage:
    @register
    class DonationReference(PayableReference):
        reference_type = ReferenceType.DONATION

        def calculate(self, reference_id, user, context=None):
            ...

        def apply_completion_side_effects(self, transaction):
            ...
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError

from payments.adapters.helpers import quantize
from payments.exceptions import PaymentNotFoundError, PaymentValidationError

if TYPE_CHECKING:
    from django.db.models import Model, QuerySet

    from authentication.models import User
    from payments.models import PaymentTransaction

ZERO = Decimal("0.00")


# =============================================================================
# Fee Helpers
# =============================================================================


def money(value: Any) -> Decimal:
    """Coerce a value to a 2 dp Decimal."""
    return quantize(Decimal(str(value)))


def processing_fee(subtotal: Decimal) -> Decimal:
    """
    Gateway processing fee passed on to the payer.

    max(subtotal * PERCENT / 100, MINIMUM), rounded half-up to 2 dp.
    """
    percent = Decimal(str(settings.PAYMENT_PROCESSING_FEE_PERCENT))
    minimum = Decimal(str(settings.PAYMENT_PROCESSING_FEE_MINIMUM))
    return quantize(max(subtotal * percent / Decimal(100), minimum))


def parse_amount(value: Any, field_name: str) -> Decimal:
    """
    Parse a client-supplied amount.

    Raises:
        PaymentValidationError: Not a number
    """
    try:
        return money(value)
    except (InvalidOperation, TypeError, ValueError):
        raise PaymentValidationError(
            f"Invalid {field_name}",
            error_code="INVALID_AMOUNT",
            details={field_name: value},
        ) from None


def get_or_not_found(queryset: QuerySet, message: str, **lookup) -> Model:
    """
    Fetch one row or raise PaymentNotFoundError.

    Malformed ids are treated as not found.
    """
    try:
        return queryset.get(**lookup)
    except (queryset.model.DoesNotExist, ValueError, TypeError, DjangoValidationError):
        raise PaymentNotFoundError(
            message,
            details={k: str(v) for k, v in lookup.items() if not hasattr(v, "pk")},
        ) from None


def line_item(description: str, unit_price: Decimal, quantity: int = 1) -> dict[str, Any]:
    unit_price = money(unit_price)
    return {
        "description": description,
        "quantity": quantity,
        "unit_price": unit_price,
        "amount": quantize(unit_price * quantity),
    }


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


# =============================================================================
# Result Type
# =============================================================================


@dataclass
class FeeCalculation:
    """
    What a user owes for a payable reference.

    Attributes:
        reference_type / reference_id: The payable reference
        breakdown: Named amounts; always contains "total"
        items: Invoice line items
        payer: The paying user
        metadata: Data the completion side effects need later
        description: Default payment description
    """

    reference_type: str
    reference_id: str
    breakdown: dict[str, Any]
    items: list[dict[str, Any]] = field(default_factory=list)
    payer: User | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    description: str = ""

    @property
    def total(self) -> Decimal:
        return self.breakdown["total"]

    def breakdown_data(self) -> dict[str, Any]:
        """Breakdown with amounts as strings, for JSON storage."""
        return _jsonable(self.breakdown)

    def items_data(self) -> list[dict[str, Any]]:
        return _jsonable(self.items)

    def metadata_data(self) -> dict[str, Any]:
        return _jsonable(self.metadata)


# =============================================================================
# Abstract Reference
# =============================================================================


class PayableReference(ABC):
    """
    One kind of payable thing.

    Class attributes:
        reference_type: ReferenceType value this class handles
        display_name: Human-readable name for descriptions and invoices
        follow_up_tasks: Names of payments.tasks queued after completion
    """

    reference_type: str = ""
    display_name: str = ""
    follow_up_tasks: tuple[str, ...] = ()

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @abstractmethod
    def calculate(
        self,
        reference_id: str,
        user: User,
        context: dict[str, Any] | None = None,
    ) -> FeeCalculation:
        """
        Compute the amount owed. Must not write anything.

        Raises:
            PaymentNotFoundError: Reference does not exist or is not the user's
            PaymentValidationError: Reference is not payable right now
        """

    @abstractmethod
    def apply_completion_side_effects(self, transaction: PaymentTransaction) -> None:
        """
        Apply the domain changes for a completed payment.

        Runs inside the completion transaction, after the status change
        and at most once per transaction.
        """

    def with_processing_fee(self, subtotal: Decimal) -> tuple[Decimal, Decimal]:
        """Return (processing_fee, total) for a subtotal."""
        fee = processing_fee(subtotal)
        return fee, quantize(subtotal + fee)

    def reference_details(self, transaction: PaymentTransaction) -> dict[str, Any]:
        """Reference description for invoices."""
        return {
            "type": self.reference_type,
            "name": self.display_name,
            "id": transaction.reference_id,
        }

    def description_for(self, calculation: FeeCalculation) -> str:
        return calculation.description or self.display_name


# =============================================================================
# Registry
# =============================================================================


REFERENCE_REGISTRY: dict[str, PayableReference] = {}


def register(cls: type[PayableReference]) -> type[PayableReference]:
    """Class decorator adding a reference to REFERENCE_REGISTRY."""
    REFERENCE_REGISTRY[cls.reference_type] = cls()
    return cls


def get_reference(reference_type: str) -> PayableReference:
    """
    Raises:
        PaymentValidationError: Unknown reference type
    """
    try:
        return REFERENCE_REGISTRY[reference_type]
    except KeyError:
        raise PaymentValidationError(
            f"Unsupported reference type: {reference_type}",
            error_code="INVALID_REFERENCE_TYPE",
            details={"reference_type": reference_type},
        ) from None


def calculate(
    reference_type: str,
    reference_id: str,
    user: User,
    context: dict[str, Any] | None = None,
) -> FeeCalculation:
    """Compute the fee for any registered reference type."""
    return get_reference(reference_type).calculate(str(reference_id), user, context or {})

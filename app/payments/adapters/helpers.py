"""
Helpers shared by all payment providers.

- to_minor_units / from_minor_units: Decimal rupees <-> integer paise
- generate_transaction_number / generate_invoice_number
- validate_amount / validate_currency: bounds checks before any gateway call
"""

from __future__ import annotations

import secrets
import string
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.utils import timezone

from payments.exceptions import PaymentValidationError

SUPPORTED_CURRENCIES = ("INR",)

MINOR_UNITS_PER_MAJOR = 100
TWO_PLACES = Decimal("0.01")

_NUMBER_ALPHABET = string.ascii_uppercase + string.digits
_NUMBER_SUFFIX_LENGTH = 6


def quantize(amount: Decimal | int | str) -> Decimal:
    """Round to 2 decimal places, half-up."""
    return Decimal(amount).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal | int | str) -> int:
    """Convert a major-unit amount to integer minor units (rupees to paise)."""
    return int(quantize(amount) * MINOR_UNITS_PER_MAJOR)


def from_minor_units(amount_minor: int) -> Decimal:
    """Convert integer minor units back to a 2 dp major-unit amount."""
    return quantize(Decimal(amount_minor) / MINOR_UNITS_PER_MAJOR)


def _generate_number(prefix: str, now: datetime | None = None) -> str:
    now = timezone.localtime(now or timezone.now())
    suffix = "".join(secrets.choice(_NUMBER_ALPHABET) for _ in range(_NUMBER_SUFFIX_LENGTH))
    return f"{prefix}-{now:%Y%m%d}-{suffix}"


def generate_transaction_number(now: datetime | None = None) -> str:
    """Return a transaction number like PT-20240115-A1B2C3."""
    return _generate_number("PT", now)


def generate_invoice_number(now: datetime | None = None) -> str:
    """Return an invoice number like INV-20240115-A1B2C3."""
    return _generate_number("INV", now)


def validate_amount(amount: Decimal) -> None:
    """
    Check an amount against PAYMENT_MIN_AMOUNT and PAYMENT_MAX_AMOUNT.

    Raises:
        PaymentValidationError: Amount outside the configured bounds
    """
    minimum = Decimal(str(settings.PAYMENT_MIN_AMOUNT))
    maximum = Decimal(str(settings.PAYMENT_MAX_AMOUNT))

    if amount < minimum:
        raise PaymentValidationError(
            f"Amount must be at least {minimum}",
            error_code="AMOUNT_TOO_LOW",
            details={"amount": str(amount), "minimum": str(minimum)},
        )
    if amount > maximum:
        raise PaymentValidationError(
            f"Amount cannot exceed {maximum}",
            error_code="AMOUNT_TOO_HIGH",
            details={"amount": str(amount), "maximum": str(maximum)},
        )


def validate_currency(currency: str) -> None:
    """
    Raises:
        PaymentValidationError: Currency is not supported
    """
    if (currency or "").upper() not in SUPPORTED_CURRENCIES:
        raise PaymentValidationError(
            f"Unsupported currency: {currency}",
            error_code="UNSUPPORTED_CURRENCY",
            details={"currency": currency, "supported": list(SUPPORTED_CURRENCIES)},
        )

"""
DONATION payable: a free-form amount chosen by the donor.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from payments.exceptions import PaymentValidationError
from payments.models import ActivityLog
from payments.state_machines import ReferenceType
from payments.strategies.base import (
    ZERO,
    FeeCalculation,
    PayableReference,
    line_item,
    parse_amount,
    register,
)

if TYPE_CHECKING:
    from authentication.models import User
    from payments.models import PaymentTransaction

DEFAULT_DONATION_TYPE = "ORGANIZATION"


@register
class DonationReference(PayableReference):
    reference_type = ReferenceType.DONATION
    display_name = "Donation"

    def calculate(self, reference_id: str, user: User, context: dict[str, Any] | None = None) -> FeeCalculation:
        context = context or {}
        amount = parse_amount(context.get("amount") or 0, "amount")
        if amount <= ZERO:
            raise PaymentValidationError(
                "Donation amount must be greater than zero",
                error_code="INVALID_AMOUNT",
                details={"amount": str(amount)},
            )

        return FeeCalculation(
            reference_type=self.reference_type,
            reference_id=reference_id,
            breakdown={
                "donation_amount": amount,
                "subtotal": amount,
                "processing_fee": ZERO,
                "total": amount,
            },
            items=[line_item("Donation", amount)],
            payer=user,
            metadata={
                "donation_type": context.get("donation_type") or DEFAULT_DONATION_TYPE,
                "message": context.get("message") or "",
            },
            description="Donation",
        )

    def apply_completion_side_effects(self, transaction: PaymentTransaction) -> None:
        ActivityLog.record(
            "donation_completed",
            transaction,
            user=transaction.user,
            details={
                "amount": str(transaction.amount),
                "target_id": transaction.reference_id,
                "donation_type": transaction.metadata.get("donation_type"),
            },
        )

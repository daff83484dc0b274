"""
MEMBERSHIP payable: annual dues for the user's batch.

Reference id is the paying user's id. The fee comes from the batch fee
table; no processing fee is added.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from django.utils import timezone

from memberships.models import Membership, MembershipFee, MembershipStatus
from payments.exceptions import PaymentNotFoundError, PaymentValidationError
from payments.state_machines import ReferenceType
from payments.strategies.base import (
    ZERO,
    FeeCalculation,
    PayableReference,
    line_item,
    money,
    register,
)

if TYPE_CHECKING:
    from authentication.models import User
    from payments.models import PaymentTransaction


@register
class MembershipReference(PayableReference):
    reference_type = ReferenceType.MEMBERSHIP
    display_name = "Membership"

    def calculate(self, reference_id: str, user: User, context: dict[str, Any] | None = None) -> FeeCalculation:
        if str(user.pk) != str(reference_id):
            raise PaymentNotFoundError("User not found", details={"reference_id": reference_id})

        if not user.batch_year:
            raise PaymentValidationError(
                "Batch year is required for membership",
                error_code="BATCH_YEAR_MISSING",
            )

        fee = MembershipFee.objects.filter(batch_year=user.batch_year, is_active=True).first()
        if fee is None or fee.amount <= ZERO:
            raise PaymentValidationError(
                "Membership fee is not configured for your batch",
                error_code="MEMBERSHIP_FEE_NOT_SET",
                details={"batch_year": user.batch_year},
            )

        year = timezone.now().year
        already_active = Membership.objects.filter(
            user=user,
            membership_year=year,
            status=MembershipStatus.ACTIVE,
            valid_until__gt=timezone.now(),
        ).exists()
        if already_active:
            raise PaymentValidationError(
                f"Membership is already active for {year}",
                error_code="MEMBERSHIP_ALREADY_ACTIVE",
                details={"membership_year": year},
            )

        amount = money(fee.amount)
        return FeeCalculation(
            reference_type=self.reference_type,
            reference_id=reference_id,
            breakdown={
                "membership_fee": amount,
                "total": amount,
            },
            items=[line_item(f"Membership fee {year}", amount)],
            payer=user,
            metadata={
                "membership_year": year,
                "batch_year": user.batch_year,
                "fee_type": fee.fee_type,
            },
            description=f"Membership fee {year}",
        )

    def apply_completion_side_effects(self, transaction: PaymentTransaction) -> None:
        year = transaction.metadata["membership_year"]
        membership, created = Membership.objects.update_or_create(
            user_id=transaction.user_id,
            membership_year=year,
            defaults={
                "status": MembershipStatus.ACTIVE,
                "amount_paid": transaction.amount,
                "valid_from": transaction.completed_at,
                "valid_until": Membership.validity_end(year),
                "payment_transaction": transaction,
            },
        )
        self.get_logger().info(
            "Membership activated",
            extra={
                "membership_id": membership.id,
                "membership_year": year,
                "transaction_id": str(transaction.id),
                "membership_created": created,
            },
        )

    def reference_details(self, transaction: PaymentTransaction) -> dict[str, Any]:
        details = super().reference_details(transaction)
        details["membership_year"] = transaction.metadata.get("membership_year")
        details["batch_year"] = transaction.metadata.get("batch_year")
        return details

"""
Payment engine: calculate, initiate, verify and complete payments.

The engine owns the PaymentTransaction state machine. Both confirmation
channels converge on complete_transaction():

    client  ── verify() ──────────┐
                                  ├─> complete_transaction()  (row lock)
    gateway ── WebhookProcessor ──┘

complete_transaction() locks the transaction row, and only the first
caller to find it PENDING transitions it and runs the reference's side
effects. Every later caller gets already_completed=True.

Secondary effects (invoice, notification, access/pickup codes) are
queued as Celery tasks once the completion commits, so a failure in one
of them never affects the payment or the others.

Usage:
    from payments.services import get_payment_engine

    engine = get_payment_engine()
    result = engine.initiate("MEMBERSHIP", str(user.id), user)
    result.provider["checkout_params"]  # hand to the client

    verification = engine.verify(result.transaction.id, proof, user=user)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import timedelta
from decimal import Decimal
from functools import partial
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction as db_transaction
from django.utils import timezone

from core.services import BaseService
from payments.adapters import (
    OrderRequest,
    PaymentProof,
    ProviderRegistry,
    generate_transaction_number,
    to_minor_units,
    validate_amount,
    validate_currency,
)
from payments.exceptions import PaymentNotFoundError, PaymentValidationError
from payments.models import ActivityLog, PaymentTransaction
from payments.state_machines import TransactionStatus
from payments.strategies import FeeCalculation, get_reference
from payments.strategies.base import money

if TYPE_CHECKING:
    from django.db.models import QuerySet

    from authentication.models import User

VERIFICATION_FAILED_MESSAGE = "Payment verification failed"

# Tasks queued for every completed payment, before reference-specific ones
COMMON_FOLLOW_UP_TASKS = ("generate_transaction_invoice", "send_payment_notification")


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class InitiationResult:
    """
    Result of initiate().

    Attributes:
        transaction: The new PENDING transaction
        breakdown / items: Fee breakdown and line items (amounts as strings)
        provider: {"name", "order_id", "checkout_params"}
    """

    transaction: PaymentTransaction
    breakdown: dict[str, Any]
    items: list[dict[str, Any]]
    provider: dict[str, Any] = field(default_factory=dict)


@dataclass
class CompletionResult:
    transaction: PaymentTransaction
    already_completed: bool = False


@dataclass
class VerificationResult:
    """
    Result of verify().

    verified=False means the proof did not check out; the transaction is
    still PENDING and the client may retry or wait for the webhook.
    """

    verified: bool
    transaction: PaymentTransaction
    already_completed: bool = False
    message: str = ""


# =============================================================================
# Payment Engine
# =============================================================================


class PaymentEngine(BaseService):
    """
    Entry point for payment operations.

    Holds the provider registry it was built with; otherwise stateless and
    safe to share between requests.
    """

    def __init__(self, providers: ProviderRegistry):
        self.providers = providers

    # =========================================================================
    # Calculation & Initiation
    # =========================================================================

    def calculate(
        self,
        reference_type: str,
        reference_id: str,
        user: User,
        context: dict[str, Any] | None = None,
    ) -> FeeCalculation:
        """Compute the fee for a reference. Read-only and repeatable."""
        return get_reference(reference_type).calculate(str(reference_id), user, context or {})

    def initiate(
        self,
        reference_type: str,
        reference_id: str,
        user: User,
        description: str | None = None,
        context: dict[str, Any] | None = None,
        expected_amount: Decimal | str | None = None,
        provider: str | None = None,
    ) -> InitiationResult:
        """
        Start a payment: persist a PENDING transaction and create the
        gateway order.

        Args:
            reference_type / reference_id: What is being paid for
            user: Paying user
            description: Overrides the reference's default description
            context: Reference-specific input (guests, donation amount, plan)
            expected_amount: Total the client displayed; must match
            provider: Gateway name (default: PAYMENT_DEFAULT_PROVIDER)

        Raises:
            PaymentValidationError: Rejected before any row is written
            PaymentNotFoundError: Reference does not exist
            PaymentGatewayError: Order creation failed; the transaction
                stays PENDING and expires on its own
        """
        logger = self.get_logger()
        gateway = self.providers.get(provider)
        strategy = get_reference(reference_type)
        calculation = strategy.calculate(str(reference_id), user, context or {})
        total = calculation.total

        if total <= 0:
            raise PaymentValidationError(
                "Payment amount must be greater than zero",
                error_code="INVALID_AMOUNT",
                details={"total": str(total)},
            )
        if expected_amount is not None and money(expected_amount) != total:
            raise PaymentValidationError(
                "Payment amount does not match the calculated total",
                error_code="AMOUNT_MISMATCH",
                details={"expected": str(money(expected_amount)), "calculated": str(total)},
            )
        validate_currency(settings.PAYMENT_CURRENCY)
        validate_amount(total)

        now = timezone.now()
        metadata = calculation.metadata_data()
        metadata["line_items"] = calculation.items_data()

        txn = PaymentTransaction.objects.create(
            transaction_number=self._new_transaction_number(),
            user=user,
            amount=total,
            currency=settings.PAYMENT_CURRENCY,
            description=(description or strategy.description_for(calculation))[:255],
            reference_type=reference_type,
            reference_id=str(reference_id),
            breakdown=calculation.breakdown_data(),
            metadata=metadata,
            provider=gateway.name,
            initiated_at=now,
            expires_at=now + timedelta(minutes=settings.PAYMENT_TIMEOUT_MINUTES),
        )

        order_request = OrderRequest(
            transaction_id=str(txn.id),
            transaction_number=txn.transaction_number,
            amount=txn.amount,
            currency=txn.currency,
            description=txn.description,
            reference_type=txn.reference_type,
            reference_id=txn.reference_id,
            user_id=str(user.pk),
            payer_name=user.get_full_name(),
            payer_email=user.email or "",
            payer_phone=getattr(user, "phone", "") or "",
        )

        try:
            provider_order = gateway.create_order(order_request)
        except Exception:
            logger.warning(
                "Gateway order creation failed; transaction left pending",
                extra={"transaction_id": str(txn.id), "provider": gateway.name},
            )
            raise

        txn.provider_order_id = provider_order.provider_order_id
        txn.provider_order_data = provider_order.provider_order_data
        txn.save(update_fields=["provider_order_id", "provider_order_data", "updated_at"])

        ActivityLog.record(
            "payment_initiated",
            txn,
            user=user,
            details={
                "amount": str(txn.amount),
                "reference_type": txn.reference_type,
                "reference_id": txn.reference_id,
                "provider": gateway.name,
            },
        )
        logger.info(
            "Payment initiated",
            extra={
                "transaction_id": str(txn.id),
                "transaction_number": txn.transaction_number,
                "reference_type": txn.reference_type,
                "amount": str(txn.amount),
                "provider": gateway.name,
            },
        )

        return InitiationResult(
            transaction=txn,
            breakdown=txn.breakdown,
            items=metadata["line_items"],
            provider={
                "name": gateway.name,
                "order_id": provider_order.provider_order_id,
                "checkout_params": gateway.checkout_params(order_request, provider_order),
            },
        )

    def _new_transaction_number(self) -> str:
        number = generate_transaction_number()
        while PaymentTransaction.objects.filter(transaction_number=number).exists():
            number = generate_transaction_number()
        return number

    # =========================================================================
    # Lookup & Lazy Expiry
    # =========================================================================

    def get_transaction(self, transaction_id: uuid.UUID | str, user: User | None = None) -> PaymentTransaction:
        """
        Fetch a transaction, expiring it first if its deadline has passed.

        Raises:
            PaymentNotFoundError: Missing, or owned by another user
        """
        return self.expire_if_due(self._get_owned(transaction_id, user))

    def list_transactions(self, user: User) -> QuerySet:
        """The user's transactions, newest first, with overdue ones expired."""
        self.expire_overdue(PaymentTransaction.objects.filter(user=user))
        return PaymentTransaction.objects.filter(user=user).order_by("-created_at")

    def expire_if_due(self, txn: PaymentTransaction) -> PaymentTransaction:
        if not txn.is_past_expiry():
            return txn

        with db_transaction.atomic():
            locked = PaymentTransaction.objects.select_for_update().get(id=txn.id)
            if locked.is_past_expiry():
                locked.expire()
                locked.save(update_fields=["status", "updated_at"])
                self.get_logger().info(
                    "Transaction expired",
                    extra={"transaction_id": str(locked.id), "expires_at": locked.expires_at.isoformat()},
                )
        return locked

    def expire_overdue(self, queryset: QuerySet) -> int:
        """
        Expire every PENDING transaction in queryset past its deadline.

        The status filter is part of the UPDATE, so rows completed
        concurrently are left alone.
        """
        count = queryset.filter(
            status=TransactionStatus.PENDING,
            expires_at__lte=timezone.now(),
        ).update(status=TransactionStatus.EXPIRED, updated_at=timezone.now())
        if count:
            self.get_logger().info("Expired overdue transactions", extra={"count": count})
        return count

    def _get_owned(self, transaction_id: uuid.UUID | str, user: User | None) -> PaymentTransaction:
        try:
            txn = PaymentTransaction.objects.select_related("user").get(id=transaction_id)
        except (PaymentTransaction.DoesNotExist, ValueError, DjangoValidationError):
            raise PaymentNotFoundError(
                "Transaction not found",
                details={"transaction_id": str(transaction_id)},
            ) from None
        if user is not None and txn.user_id != user.pk:
            raise PaymentNotFoundError(
                "Transaction not found",
                details={"transaction_id": str(transaction_id)},
            )
        return txn

    # =========================================================================
    # Verification & Completion
    # =========================================================================

    def verify(
        self,
        transaction_id: uuid.UUID | str,
        proof: PaymentProof,
        user: User | None = None,
    ) -> VerificationResult:
        """
        Verify a payment reported by the client and complete it.

        Idempotent: verifying a COMPLETED transaction returns it with
        already_completed=True without calling the gateway.

        Raises:
            PaymentNotFoundError: Unknown transaction or not the user's
            PaymentValidationError: Transaction is FAILED or EXPIRED, or
                the gateway amount differs from the transaction amount
            PaymentGatewayError: Gateway could not be reached
        """
        logger = self.get_logger()
        txn = self.expire_if_due(self._get_owned(transaction_id, user))

        if txn.status == TransactionStatus.COMPLETED:
            return VerificationResult(verified=True, transaction=txn, already_completed=True)
        self._ensure_pending(txn)

        if not proof.provider_order_id:
            proof = replace(proof, provider_order_id=txn.provider_order_id or "")

        if proof.provider_order_id != txn.provider_order_id:
            return self._verification_failed(txn, "Order ID does not match transaction")

        gateway = self.providers.get(txn.provider)
        verification = gateway.verify_payment(proof)
        if not verification.verified:
            return self._verification_failed(txn, verification.error or "Unverified")

        result = self.complete_transaction(
            txn.id,
            provider_payment_id=verification.provider_payment_id,
            provider_payment_data=verification.provider_payment_data,
            amount_minor=verification.amount_minor,
            source="verify",
        )
        logger.info(
            "Payment verified",
            extra={
                "transaction_id": str(txn.id),
                "already_completed": result.already_completed,
            },
        )
        return VerificationResult(
            verified=True,
            transaction=result.transaction,
            already_completed=result.already_completed,
        )

    def _verification_failed(self, txn: PaymentTransaction, reason: str) -> VerificationResult:
        self.get_logger().warning(
            "Payment verification failed",
            extra={"transaction_id": str(txn.id), "reason": reason},
        )
        ActivityLog.record(
            "payment_verification_failed",
            txn,
            user=txn.user,
            details={"reason": reason},
        )
        return VerificationResult(
            verified=False,
            transaction=txn,
            message=VERIFICATION_FAILED_MESSAGE,
        )

    def complete_transaction(
        self,
        transaction_id: uuid.UUID | str,
        provider_payment_id: str | None = None,
        provider_payment_data: dict[str, Any] | None = None,
        amount_minor: int | None = None,
        source: str = "verify",
    ) -> CompletionResult:
        """
        Move a PENDING transaction to COMPLETED and apply its side effects.

        Runs under a row lock; the first caller completes, later callers
        get already_completed=True and nothing else happens. A PENDING
        transaction past its deadline is expired first, the same as on
        read, so it cannot complete.

        Raises:
            PaymentValidationError: Transaction is FAILED/EXPIRED, or the
                gateway amount does not match
        """
        logger = self.get_logger()
        self.expire_if_due(PaymentTransaction.objects.get(id=transaction_id))

        with db_transaction.atomic():
            txn = PaymentTransaction.objects.select_for_update().get(id=transaction_id)

            if txn.status == TransactionStatus.COMPLETED:
                logger.info(
                    "Transaction already completed",
                    extra={"transaction_id": str(txn.id), "source": source},
                )
                return CompletionResult(transaction=txn, already_completed=True)
            self._ensure_pending(txn)

            if amount_minor is not None and int(amount_minor) != to_minor_units(txn.amount):
                logger.error(
                    "Gateway amount does not match transaction amount",
                    extra={
                        "transaction_id": str(txn.id),
                        "expected_minor": to_minor_units(txn.amount),
                        "reported_minor": amount_minor,
                        "source": source,
                    },
                )
                raise PaymentValidationError(
                    "Payment amount does not match transaction amount",
                    error_code="AMOUNT_MISMATCH",
                    details={"transaction_id": str(txn.id)},
                )

            txn.complete(
                provider_payment_id=provider_payment_id,
                provider_payment_data=provider_payment_data,
            )
            txn.save()

            strategy = get_reference(txn.reference_type)
            strategy.apply_completion_side_effects(txn)

            ActivityLog.record(
                "payment_completed",
                txn,
                user=txn.user,
                details={
                    "amount": str(txn.amount),
                    "provider_payment_id": provider_payment_id,
                    "source": source,
                },
            )
            db_transaction.on_commit(partial(self.queue_follow_ups, txn.id, strategy.follow_up_tasks))

        logger.info(
            "Payment completed",
            extra={
                "transaction_id": str(txn.id),
                "reference_type": txn.reference_type,
                "amount": str(txn.amount),
                "source": source,
            },
        )
        return CompletionResult(transaction=txn)

    def fail_transaction(
        self,
        transaction_id: uuid.UUID | str,
        reason: str | None = None,
        provider_payment_id: str | None = None,
    ) -> tuple[PaymentTransaction, bool]:
        """
        Mark a PENDING transaction FAILED after a gateway failure event.

        Returns:
            (transaction, changed); changed is False when the transaction
            had already left PENDING
        """
        with db_transaction.atomic():
            txn = PaymentTransaction.objects.select_for_update().get(id=transaction_id)
            if txn.status != TransactionStatus.PENDING:
                return txn, False

            txn.fail(reason=reason, provider_payment_id=provider_payment_id)
            txn.save()
            ActivityLog.record(
                "payment_failed",
                txn,
                user=txn.user,
                details={"reason": reason, "provider_payment_id": provider_payment_id},
            )

        self.get_logger().info(
            "Payment failed",
            extra={"transaction_id": str(txn.id), "reason": reason},
        )
        return txn, True

    def _ensure_pending(self, txn: PaymentTransaction) -> None:
        if txn.status != TransactionStatus.PENDING:
            raise PaymentValidationError(
                f"Transaction is {txn.status.lower()}",
                error_code="TRANSACTION_NOT_PENDING",
                details={"transaction_id": str(txn.id), "status": txn.status},
            )

    def queue_follow_ups(self, transaction_id: uuid.UUID, reference_tasks: tuple[str, ...]) -> None:
        from payments import tasks

        for name in (*COMMON_FOLLOW_UP_TASKS, *reference_tasks):
            try:
                getattr(tasks, name).delay(str(transaction_id))
            except Exception:
                # The payment stays completed; the task can be re-queued from admin
                self.get_logger().error(
                    "Failed to queue follow-up task",
                    extra={"transaction_id": str(transaction_id), "task": name},
                    exc_info=True,
                )

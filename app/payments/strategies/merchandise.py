"""
Merchandise payables.

MERCHANDISE: event merchandise ordered alongside a registration
    (reference id is the registration). Pays for all pending orders.
MERCHANDISE_ORDER: standalone store cart (reference id is the cart
    owner's user id). The cart is snapshotted at initiation; the order
    is created from the snapshot on completion.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from django.db.models import F

from events.models import EventRegistration
from merchandise.models import (
    CartItem,
    Merchandise,
    MerchandiseOrder,
    MerchandiseOrderItem,
    MerchandiseOrderStatus,
)
from payments.exceptions import PaymentNotFoundError, PaymentValidationError
from payments.state_machines import ReferenceType
from payments.strategies.base import (
    ZERO,
    FeeCalculation,
    PayableReference,
    get_or_not_found,
    line_item,
    money,
    register,
)
from payments.strategies.events import (
    complete_merchandise_orders,
    pending_merchandise_orders,
)

if TYPE_CHECKING:
    from authentication.models import User
    from payments.models import PaymentTransaction


@register
class EventMerchandiseReference(PayableReference):
    reference_type = ReferenceType.MERCHANDISE
    display_name = "Event Merchandise"

    def calculate(self, reference_id: str, user: User, context: dict[str, Any] | None = None) -> FeeCalculation:
        registration = get_or_not_found(
            EventRegistration.objects.select_related("event"),
            "Registration not found",
            id=reference_id,
            user=user,
        )
        orders = pending_merchandise_orders(registration)
        if not orders:
            raise PaymentValidationError(
                "No pending merchandise orders",
                error_code="NO_PENDING_ORDERS",
                details={"registration_id": registration.id},
            )

        for order in orders:
            if not order.merchandise.is_active:
                raise PaymentValidationError(
                    f"{order.merchandise.name} is no longer available",
                    error_code="ITEM_UNAVAILABLE",
                    details={"merchandise_id": order.merchandise_id},
                )
            if order.merchandise.stock < order.quantity:
                raise PaymentValidationError(
                    f"Insufficient stock for {order.merchandise.name}",
                    error_code="INSUFFICIENT_STOCK",
                    details={
                        "merchandise_id": order.merchandise_id,
                        "requested": order.quantity,
                        "available": order.merchandise.stock,
                    },
                )

        subtotal = money(sum((o.total_price for o in orders), ZERO))
        fee, total = self.with_processing_fee(subtotal)

        return FeeCalculation(
            reference_type=self.reference_type,
            reference_id=reference_id,
            breakdown={
                "merchandise_total": subtotal,
                "subtotal": subtotal,
                "processing_fee": fee,
                "total": total,
            },
            items=[line_item(o.merchandise.name, o.unit_price, o.quantity) for o in orders],
            payer=user,
            metadata={
                "event_id": registration.event_id,
                "registration_id": registration.id,
                "order_ids": [o.id for o in orders],
            },
            description=f"Merchandise for {registration.event.title}",
        )

    def apply_completion_side_effects(self, transaction: PaymentTransaction) -> None:
        completed = complete_merchandise_orders(
            transaction.metadata.get("order_ids", []),
            self.get_logger(),
        )
        registration = EventRegistration.objects.select_for_update().get(id=transaction.reference_id)
        registration.total_amount_paid = registration.total_amount_paid + transaction.amount
        registration.last_payment_at = transaction.completed_at
        registration.save(update_fields=["total_amount_paid", "last_payment_at", "updated_at"])

        self.get_logger().info(
            "Event merchandise orders paid",
            extra={"transaction_id": str(transaction.id), "orders_completed": completed},
        )


@register
class MerchandiseOrderReference(PayableReference):
    reference_type = ReferenceType.MERCHANDISE_ORDER
    display_name = "Merchandise Order"
    follow_up_tasks = ("issue_merchandise_pickup_code",)

    def calculate(self, reference_id: str, user: User, context: dict[str, Any] | None = None) -> FeeCalculation:
        if str(user.pk) != str(reference_id):
            raise PaymentNotFoundError("Cart not found", details={"reference_id": reference_id})

        cart = list(CartItem.objects.filter(user=user).select_related("merchandise").order_by("created_at"))
        if not cart:
            raise PaymentValidationError("Cart is empty", error_code="EMPTY_CART")

        for entry in cart:
            item = entry.merchandise
            if not item.is_active:
                raise PaymentValidationError(
                    f"{item.name} is no longer available",
                    error_code="ITEM_UNAVAILABLE",
                    details={"merchandise_id": item.id},
                )
            if item.stock < entry.quantity:
                raise PaymentValidationError(
                    f"Insufficient stock for {item.name}",
                    error_code="INSUFFICIENT_STOCK",
                    details={
                        "merchandise_id": item.id,
                        "requested": entry.quantity,
                        "available": item.stock,
                    },
                )

        items = [line_item(e.merchandise.name, e.merchandise.price, e.quantity) for e in cart]
        subtotal = money(sum((i["amount"] for i in items), ZERO))
        fee, total = self.with_processing_fee(subtotal)

        return FeeCalculation(
            reference_type=self.reference_type,
            reference_id=reference_id,
            breakdown={
                "items_total": subtotal,
                "subtotal": subtotal,
                "processing_fee": fee,
                "total": total,
            },
            items=items,
            payer=user,
            metadata={
                "cart": [
                    {
                        "merchandise_id": e.merchandise_id,
                        "name": e.merchandise.name,
                        "sku": e.merchandise.sku,
                        "quantity": e.quantity,
                        "unit_price": money(e.merchandise.price),
                    }
                    for e in cart
                ],
            },
            description="Merchandise order",
        )

    def apply_completion_side_effects(self, transaction: PaymentTransaction) -> None:
        logger = self.get_logger()
        cart = transaction.metadata.get("cart", [])

        order = MerchandiseOrder.objects.create(
            order_number=f"MO-{transaction.transaction_number.split('-', 1)[1]}",
            user_id=transaction.user_id,
            payment_transaction=transaction,
            status=MerchandiseOrderStatus.CONFIRMED,
            total_amount=transaction.amount,
        )

        for entry in cart:
            unit_price = money(entry["unit_price"])
            MerchandiseOrderItem.objects.create(
                order=order,
                merchandise_id=entry["merchandise_id"],
                quantity=entry["quantity"],
                unit_price=unit_price,
                total_price=unit_price * entry["quantity"],
            )
            updated = Merchandise.objects.filter(
                id=entry["merchandise_id"],
                stock__gte=entry["quantity"],
            ).update(stock=F("stock") - entry["quantity"])
            if not updated:
                logger.warning(
                    "Insufficient stock when fulfilling merchandise order",
                    extra={"order_id": order.id, "merchandise_id": entry["merchandise_id"]},
                )

        CartItem.objects.filter(
            user_id=transaction.user_id,
            merchandise_id__in=[entry["merchandise_id"] for entry in cart],
        ).delete()

        logger.info(
            "Merchandise order created",
            extra={
                "order_id": order.id,
                "order_number": order.order_number,
                "transaction_id": str(transaction.id),
            },
        )

    def reference_details(self, transaction: PaymentTransaction) -> dict[str, Any]:
        details = super().reference_details(transaction)
        order = MerchandiseOrder.objects.filter(payment_transaction=transaction).first()
        if order is not None:
            details["order_number"] = order.order_number
        return details

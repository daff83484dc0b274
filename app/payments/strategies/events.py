"""
Event payables.

EVENT_REGISTRATION: pay for an existing registration (reference id is
    the registration). Includes guest fees and any pending event
    merchandise ordered with the registration.
EVENT_PAYMENT: pay-to-register (reference id is the event). The
    registration and its guests are created on completion from the data
    captured at initiation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from django.db.models import F
from django.utils import timezone

from events.models import (
    Event,
    EventMerchandise,
    EventMerchandiseOrder,
    EventRegistration,
    RegistrationGuest,
    RegistrationPaymentStatus,
    RegistrationStatus,
)
from payments.exceptions import PaymentValidationError
from payments.state_machines import ReferenceType
from payments.strategies.base import (
    ZERO,
    FeeCalculation,
    PayableReference,
    get_or_not_found,
    line_item,
    money,
    parse_amount,
    register,
)

if TYPE_CHECKING:
    from authentication.models import User
    from payments.models import PaymentTransaction


def pending_merchandise_orders(registration: EventRegistration) -> list[EventMerchandiseOrder]:
    return list(
        registration.merchandise_orders.filter(
            payment_status=RegistrationPaymentStatus.PENDING
        ).select_related("merchandise")
    )


def complete_merchandise_orders(order_ids: list[int], logger) -> int:
    """
    Mark pending event merchandise orders paid and take their stock.

    Must be called inside a transaction. Orders that are no longer
    pending are skipped, so stock is only taken once per order.

    Returns:
        Number of orders completed
    """
    orders = list(
        EventMerchandiseOrder.objects.select_for_update().filter(
            id__in=order_ids,
            payment_status=RegistrationPaymentStatus.PENDING,
        )
    )
    for order in orders:
        updated = EventMerchandise.objects.filter(
            id=order.merchandise_id,
            stock__gte=order.quantity,
        ).update(stock=F("stock") - order.quantity)
        if not updated:
            logger.warning(
                "Insufficient stock when completing merchandise order",
                extra={"order_id": order.id, "merchandise_id": order.merchandise_id},
            )

    EventMerchandiseOrder.objects.filter(id__in=[o.id for o in orders]).update(
        payment_status=RegistrationPaymentStatus.COMPLETED,
        updated_at=timezone.now(),
    )
    return len(orders)


def _merchandise_items(orders: list[EventMerchandiseOrder]) -> list[dict[str, Any]]:
    return [line_item(o.merchandise.name, o.unit_price, o.quantity) for o in orders]


def _check_event_open(event: Event) -> None:
    if event.is_cancelled:
        raise PaymentValidationError(
            "Event has been cancelled",
            error_code="EVENT_CANCELLED",
            details={"event_id": event.id},
        )
    if event.registration_deadline_passed():
        raise PaymentValidationError(
            "Registration deadline has passed",
            error_code="REGISTRATION_CLOSED",
            details={"event_id": event.id},
        )


@register
class EventRegistrationReference(PayableReference):
    reference_type = ReferenceType.EVENT_REGISTRATION
    display_name = "Event Registration"
    follow_up_tasks = ("issue_registration_access_code",)

    def calculate(self, reference_id: str, user: User, context: dict[str, Any] | None = None) -> FeeCalculation:
        registration = get_or_not_found(
            EventRegistration.objects.select_related("event"),
            "Registration not found",
            id=reference_id,
            user=user,
        )
        if registration.is_paid:
            raise PaymentValidationError(
                "Registration is already paid",
                error_code="ALREADY_PAID",
                details={"registration_id": registration.id},
            )
        event = registration.event
        _check_event_open(event)

        guest_count = registration.guests.count()
        registration_fee = money(event.registration_fee)
        guest_fees = money(event.guest_fee * guest_count)
        orders = pending_merchandise_orders(registration)
        merchandise_total = money(sum((o.total_price for o in orders), ZERO))

        subtotal = registration_fee + guest_fees + merchandise_total
        fee, total = self.with_processing_fee(subtotal)

        items = [line_item(f"Registration - {event.title}", registration_fee)]
        if guest_count:
            items.append(line_item("Guest registration", event.guest_fee, guest_count))
        items.extend(_merchandise_items(orders))

        return FeeCalculation(
            reference_type=self.reference_type,
            reference_id=reference_id,
            breakdown={
                "registration_fee": registration_fee,
                "guest_count": guest_count,
                "guest_fees": guest_fees,
                "merchandise_total": merchandise_total,
                "subtotal": subtotal,
                "processing_fee": fee,
                "total": total,
            },
            items=items,
            payer=user,
            metadata={
                "event_id": event.id,
                "registration_id": registration.id,
                "guest_count": guest_count,
                "merchandise_order_ids": [o.id for o in orders],
            },
            description=f"Registration for {event.title}",
        )

    def apply_completion_side_effects(self, transaction: PaymentTransaction) -> None:
        registration = EventRegistration.objects.select_for_update().get(id=transaction.reference_id)
        registration.status = RegistrationStatus.CONFIRMED
        registration.payment_status = RegistrationPaymentStatus.COMPLETED
        registration.total_amount = transaction.amount
        registration.total_amount_paid = registration.total_amount_paid + transaction.amount
        registration.last_payment_at = transaction.completed_at
        registration.save()

        complete_merchandise_orders(
            transaction.metadata.get("merchandise_order_ids", []),
            self.get_logger(),
        )

    def registration_for(self, transaction: PaymentTransaction) -> EventRegistration | None:
        return EventRegistration.objects.filter(id=transaction.reference_id).first()

    def reference_details(self, transaction: PaymentTransaction) -> dict[str, Any]:
        details = super().reference_details(transaction)
        registration = self.registration_for(transaction)
        if registration is not None:
            details["event"] = registration.event.title
            details["event_date"] = registration.event.event_date.isoformat()
        return details


@register
class EventPaymentReference(PayableReference):
    reference_type = ReferenceType.EVENT_PAYMENT
    display_name = "Event Registration"
    follow_up_tasks = ("issue_registration_access_code",)

    def _guests(self, context: dict[str, Any]) -> list[dict[str, str]]:
        guests = []
        for guest in context.get("guests") or []:
            name = (guest.get("name") or "").strip()
            if not name:
                raise PaymentValidationError(
                    "Guest name is required",
                    error_code="INVALID_GUEST",
                )
            guests.append(
                {
                    "name": name,
                    "email": guest.get("email") or "",
                    "phone": guest.get("phone") or "",
                }
            )
        return guests

    def calculate(self, reference_id: str, user: User, context: dict[str, Any] | None = None) -> FeeCalculation:
        context = context or {}
        event = get_or_not_found(Event.objects.all(), "Event not found", id=reference_id)
        now = timezone.now()

        if event.is_cancelled:
            raise PaymentValidationError(
                "Event has been cancelled",
                error_code="EVENT_CANCELLED",
                details={"event_id": event.id},
            )
        if event.status not in Event.OPEN_STATUSES:
            raise PaymentValidationError(
                "Event is not open for registration",
                error_code="REGISTRATION_NOT_OPEN",
                details={"event_id": event.id, "status": event.status},
            )
        if event.registration_not_started(now):
            raise PaymentValidationError(
                "Registration has not started yet",
                error_code="REGISTRATION_NOT_STARTED",
                details={"event_id": event.id},
            )
        if event.registration_deadline_passed(now):
            raise PaymentValidationError(
                "Registration deadline has passed",
                error_code="REGISTRATION_CLOSED",
                details={"event_id": event.id},
            )

        existing = EventRegistration.objects.filter(event=event, user=user).first()
        if existing is not None and existing.is_paid:
            raise PaymentValidationError(
                "You are already registered for this event",
                error_code="ALREADY_REGISTERED",
                details={"event_id": event.id, "registration_id": existing.id},
            )

        guests = self._guests(context)
        if guests and not event.allow_guests:
            raise PaymentValidationError(
                "Guests are not allowed for this event",
                error_code="GUESTS_NOT_ALLOWED",
                details={"event_id": event.id},
            )
        if len(guests) > event.max_guests_per_registration:
            raise PaymentValidationError(
                f"Maximum {event.max_guests_per_registration} guests allowed per registration",
                error_code="GUEST_LIMIT_EXCEEDED",
                details={"event_id": event.id, "guest_count": len(guests)},
            )
        if event.max_capacity is not None:
            if event.attendee_count() + 1 + len(guests) > event.max_capacity:
                raise PaymentValidationError(
                    "Event is at full capacity",
                    error_code="EVENT_FULL",
                    details={"event_id": event.id},
                )

        donation = parse_amount(context.get("donation_amount") or 0, "donation_amount")
        if donation < ZERO:
            raise PaymentValidationError(
                "Donation amount cannot be negative",
                error_code="INVALID_AMOUNT",
            )

        registration_fee = money(event.registration_fee)
        guest_fees = money(event.guest_fee * len(guests))
        subtotal = registration_fee + guest_fees + donation
        fee, total = self.with_processing_fee(subtotal)

        items = [line_item(f"Registration - {event.title}", registration_fee)]
        if guests:
            items.append(line_item("Guest registration", event.guest_fee, len(guests)))
        if donation:
            items.append(line_item("Donation", donation))

        return FeeCalculation(
            reference_type=self.reference_type,
            reference_id=reference_id,
            breakdown={
                "registration_fee": registration_fee,
                "guest_count": len(guests),
                "guest_fees": guest_fees,
                "donation_amount": donation,
                "subtotal": subtotal,
                "processing_fee": fee,
                "total": total,
            },
            items=items,
            payer=user,
            metadata={
                "event_id": event.id,
                "guests": guests,
                "donation_amount": donation,
            },
            description=f"Registration for {event.title}",
        )

    def apply_completion_side_effects(self, transaction: PaymentTransaction) -> None:
        metadata = transaction.metadata
        registration, created = EventRegistration.objects.select_for_update().get_or_create(
            event_id=transaction.reference_id,
            user_id=transaction.user_id,
        )
        registration.status = RegistrationStatus.CONFIRMED
        registration.payment_status = RegistrationPaymentStatus.COMPLETED
        registration.total_amount = transaction.amount
        registration.total_amount_paid = registration.total_amount_paid + transaction.amount
        registration.donation_amount = money(metadata.get("donation_amount") or 0)
        registration.last_payment_at = transaction.completed_at
        registration.save()

        registration.guests.all().delete()
        RegistrationGuest.objects.bulk_create(
            [
                RegistrationGuest(
                    registration=registration,
                    name=guest["name"],
                    email=guest.get("email", ""),
                    phone=guest.get("phone", ""),
                )
                for guest in metadata.get("guests", [])
            ]
        )

        self.get_logger().info(
            "Event registration confirmed",
            extra={
                "registration_id": registration.id,
                "transaction_id": str(transaction.id),
                "registration_created": created,
                "guest_count": len(metadata.get("guests", [])),
            },
        )

    def registration_for(self, transaction: PaymentTransaction) -> EventRegistration | None:
        return EventRegistration.objects.filter(
            event_id=transaction.reference_id,
            user_id=transaction.user_id,
        ).first()

    def reference_details(self, transaction: PaymentTransaction) -> dict[str, Any]:
        details = super().reference_details(transaction)
        event = Event.objects.filter(id=transaction.reference_id).first()
        if event is not None:
            details["event"] = event.title
            details["event_date"] = event.event_date.isoformat()
        return details

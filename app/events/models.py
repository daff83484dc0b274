"""
Event models.

This module defines the records behind paid event registrations:
- Event: An event with registration window, fees and capacity
- EventRegistration: A user's registration and its payment status
- RegistrationGuest: Guests brought along on a registration
- EventMerchandise: Items sold alongside an event
- EventMerchandiseOrder: Merchandise line attached to a registration

Payment flows (payments.strategies) read these to compute fees and
mutate them exactly once when a payment completes.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from core.models import BaseModel


class EventStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    PUBLISHED = "published", "Published"
    REGISTRATION_OPEN = "registration_open", "Registration Open"
    REGISTRATION_CLOSED = "registration_closed", "Registration Closed"
    CANCELLED = "cancelled", "Cancelled"
    COMPLETED = "completed", "Completed"


class RegistrationStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    CANCELLED = "cancelled", "Cancelled"


class RegistrationPaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"


class Event(BaseModel):
    """
    An event members can register for.

    Registration is open while the event is PUBLISHED or REGISTRATION_OPEN
    and the current time is inside [registration_start_date,
    registration_end_date]. Either bound may be unset.
    """

    OPEN_STATUSES = (EventStatus.PUBLISHED, EventStatus.REGISTRATION_OPEN)

    title = models.CharField(
        max_length=200,
        help_text="Event title",
    )
    description = models.TextField(
        blank=True,
        default="",
        help_text="Event description",
    )
    venue = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Where the event takes place",
    )
    event_date = models.DateTimeField(
        help_text="When the event starts",
    )
    status = models.CharField(
        max_length=30,
        choices=EventStatus.choices,
        default=EventStatus.DRAFT,
        db_index=True,
        help_text="Publication/registration status",
    )

    # =========================================================================
    # Registration Window
    # =========================================================================
    registration_start_date = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Registration opens at this time (unset = immediately)",
    )
    registration_end_date = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Registration deadline (unset = until the event)",
    )

    # =========================================================================
    # Fees & Capacity
    # =========================================================================
    registration_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Fee per registration",
    )
    guest_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Fee per accompanying guest",
    )
    allow_guests = models.BooleanField(
        default=False,
        help_text="Whether registrants may bring guests",
    )
    max_guests_per_registration = models.PositiveIntegerField(
        default=0,
        help_text="Maximum guests per registration",
    )
    max_capacity = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Maximum attendees including guests (unset = unlimited)",
    )

    class Meta:
        ordering = ["-event_date"]

    def __str__(self) -> str:
        return self.title

    @property
    def is_cancelled(self) -> bool:
        return self.status == EventStatus.CANCELLED

    def registration_deadline_passed(self, now=None) -> bool:
        now = now or timezone.now()
        return self.registration_end_date is not None and now > self.registration_end_date

    def registration_not_started(self, now=None) -> bool:
        now = now or timezone.now()
        return (
            self.registration_start_date is not None
            and now < self.registration_start_date
        )

    def attendee_count(self) -> int:
        """Confirmed registrants plus their guests."""
        confirmed = self.registrations.filter(status=RegistrationStatus.CONFIRMED)
        return confirmed.count() + RegistrationGuest.objects.filter(
            registration__in=confirmed
        ).count()


class EventRegistration(BaseModel):
    """
    A user's registration for an event.

    Created up front for the post-registration payment flow, or at
    payment completion for the pay-to-register flow.
    """

    event = models.ForeignKey(
        Event,
        on_delete=models.CASCADE,
        related_name="registrations",
        help_text="Event registered for",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="event_registrations",
        help_text="Registered user",
    )
    status = models.CharField(
        max_length=20,
        choices=RegistrationStatus.choices,
        default=RegistrationStatus.PENDING,
        db_index=True,
        help_text="Registration status",
    )
    payment_status = models.CharField(
        max_length=20,
        choices=RegistrationPaymentStatus.choices,
        default=RegistrationPaymentStatus.PENDING,
        db_index=True,
        help_text="Payment status of the registration fees",
    )
    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Total amount due for this registration",
    )
    total_amount_paid = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Total amount paid so far",
    )
    donation_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Optional donation added at registration",
    )
    last_payment_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the last payment was received",
    )
    access_code = models.CharField(
        max_length=32,
        null=True,
        blank=True,
        unique=True,
        help_text="Entry code issued after payment (encoded as QR by clients)",
    )

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["event", "user"],
                name="unique_event_registration_per_user",
            ),
        ]

    def __str__(self) -> str:
        return f"Registration({self.user_id} -> {self.event_id})"

    @property
    def is_paid(self) -> bool:
        return self.payment_status == RegistrationPaymentStatus.COMPLETED


class RegistrationGuest(BaseModel):
    """A guest accompanying a registrant."""

    registration = models.ForeignKey(
        EventRegistration,
        on_delete=models.CASCADE,
        related_name="guests",
        help_text="Registration this guest belongs to",
    )
    name = models.CharField(
        max_length=150,
        help_text="Guest name",
    )
    email = models.EmailField(
        blank=True,
        default="",
        help_text="Guest email",
    )
    phone = models.CharField(
        max_length=20,
        blank=True,
        default="",
        help_text="Guest phone",
    )

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:
        return self.name


class EventMerchandise(BaseModel):
    """An item sold with an event (t-shirts, souvenirs)."""

    event = models.ForeignKey(
        Event,
        on_delete=models.CASCADE,
        related_name="merchandise",
        help_text="Event this item is sold with",
    )
    name = models.CharField(
        max_length=150,
        help_text="Item name",
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Unit price",
    )
    stock = models.IntegerField(
        default=0,
        help_text="Units available",
    )
    is_active = models.BooleanField(
        default=True,
        help_text="Whether the item is on sale",
    )

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "event merchandise"

    def __str__(self) -> str:
        return self.name


class EventMerchandiseOrder(BaseModel):
    """A merchandise line attached to a registration, paid with it or separately."""

    registration = models.ForeignKey(
        EventRegistration,
        on_delete=models.CASCADE,
        related_name="merchandise_orders",
        help_text="Registration this order belongs to",
    )
    merchandise = models.ForeignKey(
        EventMerchandise,
        on_delete=models.PROTECT,
        related_name="orders",
        help_text="Ordered item",
    )
    quantity = models.PositiveIntegerField(
        default=1,
        help_text="Units ordered",
    )
    unit_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Unit price at the time of ordering",
    )
    total_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="quantity x unit_price",
    )
    payment_status = models.CharField(
        max_length=20,
        choices=RegistrationPaymentStatus.choices,
        default=RegistrationPaymentStatus.PENDING,
        db_index=True,
        help_text="Payment status of this order line",
    )

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.quantity} x {self.merchandise_id}"

    def save(self, *args, **kwargs):
        self.total_price = self.unit_price * self.quantity
        super().save(*args, **kwargs)

"""
Merchandise store models.

This module defines the standalone store used by MERCHANDISE_ORDER payments:
- Merchandise: A catalogue item with stock
- CartItem: A line in a user's cart
- MerchandiseOrder: An order created when a cart payment completes
- MerchandiseOrderItem: A line on an order, priced at checkout time
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from core.models import BaseModel


class MerchandiseOrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    FULFILLED = "fulfilled", "Fulfilled"
    CANCELLED = "cancelled", "Cancelled"


class Merchandise(BaseModel):
    """A catalogue item."""

    name = models.CharField(
        max_length=150,
        help_text="Item name",
    )
    sku = models.CharField(
        max_length=64,
        unique=True,
        help_text="Stock keeping unit",
    )
    description = models.TextField(
        blank=True,
        default="",
        help_text="Item description",
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
        verbose_name_plural = "merchandise"

    def __str__(self) -> str:
        return self.name


class CartItem(BaseModel):
    """A line in a user's cart."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="cart_items",
        help_text="Cart owner",
    )
    merchandise = models.ForeignKey(
        Merchandise,
        on_delete=models.CASCADE,
        related_name="cart_items",
        help_text="Item in the cart",
    )
    quantity = models.PositiveIntegerField(
        default=1,
        help_text="Units in the cart",
    )

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "merchandise"],
                name="unique_cart_item_per_user",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.quantity} x {self.merchandise_id}"


class MerchandiseOrder(BaseModel):
    """
    An order placed through the store.

    Created by the payment side-effect dispatcher when a cart payment
    completes, so every order here is paid.
    """

    order_number = models.CharField(
        max_length=32,
        unique=True,
        help_text="Human-readable order number",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="merchandise_orders",
        help_text="Customer",
    )
    payment_transaction = models.OneToOneField(
        "payments.PaymentTransaction",
        on_delete=models.PROTECT,
        related_name="merchandise_order",
        help_text="Transaction that paid for this order",
    )
    status = models.CharField(
        max_length=20,
        choices=MerchandiseOrderStatus.choices,
        default=MerchandiseOrderStatus.CONFIRMED,
        db_index=True,
        help_text="Fulfilment status",
    )
    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Order total including processing fee",
    )
    pickup_code = models.CharField(
        max_length=32,
        null=True,
        blank=True,
        unique=True,
        help_text="Collection code issued after payment (encoded as QR by clients)",
    )

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.order_number


class MerchandiseOrderItem(BaseModel):
    """A line on a merchandise order."""

    order = models.ForeignKey(
        MerchandiseOrder,
        on_delete=models.CASCADE,
        related_name="items",
        help_text="Parent order",
    )
    merchandise = models.ForeignKey(
        Merchandise,
        on_delete=models.PROTECT,
        related_name="order_items",
        help_text="Ordered item",
    )
    quantity = models.PositiveIntegerField(
        help_text="Units ordered",
    )
    unit_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Unit price at checkout",
    )
    total_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="quantity x unit_price",
    )

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.quantity} x {self.merchandise_id}"

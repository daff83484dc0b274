# Generated manually - Initial merchandise store models

from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("payments", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Merchandise",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("name", models.CharField(help_text="Item name", max_length=150)),
                ("sku", models.CharField(help_text="Stock keeping unit", max_length=64, unique=True)),
                ("description", models.TextField(blank=True, default="", help_text="Item description")),
                ("price", models.DecimalField(decimal_places=2, help_text="Unit price", max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal("0.00"))])),
                ("stock", models.IntegerField(default=0, help_text="Units available")),
                ("is_active", models.BooleanField(default=True, help_text="Whether the item is on sale")),
            ],
            options={
                "ordering": ["name"],
                "verbose_name_plural": "merchandise",
            },
        ),
        migrations.CreateModel(
            name="CartItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("quantity", models.PositiveIntegerField(default=1, help_text="Units in the cart")),
                ("merchandise", models.ForeignKey(help_text="Item in the cart", on_delete=django.db.models.deletion.CASCADE, related_name="cart_items", to="merchandise.merchandise")),
                ("user", models.ForeignKey(help_text="Cart owner", on_delete=django.db.models.deletion.CASCADE, related_name="cart_items", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["created_at"],
            },
        ),
        migrations.CreateModel(
            name="MerchandiseOrder",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("order_number", models.CharField(help_text="Human-readable order number", max_length=32, unique=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("fulfilled", "Fulfilled"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="confirmed",
                        help_text="Fulfilment status",
                        max_length=20,
                    ),
                ),
                ("total_amount", models.DecimalField(decimal_places=2, help_text="Order total including processing fee", max_digits=12)),
                ("pickup_code", models.CharField(blank=True, help_text="Collection code issued after payment (encoded as QR by clients)", max_length=32, null=True, unique=True)),
                ("payment_transaction", models.OneToOneField(help_text="Transaction that paid for this order", on_delete=django.db.models.deletion.PROTECT, related_name="merchandise_order", to="payments.paymenttransaction")),
                ("user", models.ForeignKey(help_text="Customer", on_delete=django.db.models.deletion.CASCADE, related_name="merchandise_orders", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="MerchandiseOrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("quantity", models.PositiveIntegerField(help_text="Units ordered")),
                ("unit_price", models.DecimalField(decimal_places=2, help_text="Unit price at checkout", max_digits=10)),
                ("total_price", models.DecimalField(decimal_places=2, help_text="quantity x unit_price", max_digits=12)),
                ("merchandise", models.ForeignKey(help_text="Ordered item", on_delete=django.db.models.deletion.PROTECT, related_name="order_items", to="merchandise.merchandise")),
                ("order", models.ForeignKey(help_text="Parent order", on_delete=django.db.models.deletion.CASCADE, related_name="items", to="merchandise.merchandiseorder")),
            ],
            options={
                "ordering": ["created_at"],
            },
        ),
        migrations.AddConstraint(
            model_name="cartitem",
            constraint=models.UniqueConstraint(fields=("user", "merchandise"), name="unique_cart_item_per_user"),
        ),
    ]

# Generated manually - Initial event models

from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Event",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("title", models.CharField(help_text="Event title", max_length=200)),
                ("description", models.TextField(blank=True, default="", help_text="Event description")),
                ("venue", models.CharField(blank=True, default="", help_text="Where the event takes place", max_length=255)),
                ("event_date", models.DateTimeField(help_text="When the event starts")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("published", "Published"),
                            ("registration_open", "Registration Open"),
                            ("registration_closed", "Registration Closed"),
                            ("cancelled", "Cancelled"),
                            ("completed", "Completed"),
                        ],
                        db_index=True,
                        default="draft",
                        help_text="Publication/registration status",
                        max_length=30,
                    ),
                ),
                ("registration_start_date", models.DateTimeField(blank=True, help_text="Registration opens at this time (unset = immediately)", null=True)),
                ("registration_end_date", models.DateTimeField(blank=True, help_text="Registration deadline (unset = until the event)", null=True)),
                ("registration_fee", models.DecimalField(decimal_places=2, default=Decimal("0.00"), help_text="Fee per registration", max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal("0.00"))])),
                ("guest_fee", models.DecimalField(decimal_places=2, default=Decimal("0.00"), help_text="Fee per accompanying guest", max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal("0.00"))])),
                ("allow_guests", models.BooleanField(default=False, help_text="Whether registrants may bring guests")),
                ("max_guests_per_registration", models.PositiveIntegerField(default=0, help_text="Maximum guests per registration")),
                ("max_capacity", models.PositiveIntegerField(blank=True, help_text="Maximum attendees including guests (unset = unlimited)", null=True)),
            ],
            options={
                "ordering": ["-event_date"],
            },
        ),
        migrations.CreateModel(
            name="EventMerchandise",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("name", models.CharField(help_text="Item name", max_length=150)),
                ("price", models.DecimalField(decimal_places=2, help_text="Unit price", max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal("0.00"))])),
                ("stock", models.IntegerField(default=0, help_text="Units available")),
                ("is_active", models.BooleanField(default=True, help_text="Whether the item is on sale")),
                ("event", models.ForeignKey(help_text="Event this item is sold with", on_delete=django.db.models.deletion.CASCADE, related_name="merchandise", to="events.event")),
            ],
            options={
                "ordering": ["name"],
                "verbose_name_plural": "event merchandise",
            },
        ),
        migrations.CreateModel(
            name="EventRegistration",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("confirmed", "Confirmed"), ("cancelled", "Cancelled")],
                        db_index=True,
                        default="pending",
                        help_text="Registration status",
                        max_length=20,
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("completed", "Completed"), ("failed", "Failed")],
                        db_index=True,
                        default="pending",
                        help_text="Payment status of the registration fees",
                        max_length=20,
                    ),
                ),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), help_text="Total amount due for this registration", max_digits=12)),
                ("total_amount_paid", models.DecimalField(decimal_places=2, default=Decimal("0.00"), help_text="Total amount paid so far", max_digits=12)),
                ("donation_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), help_text="Optional donation added at registration", max_digits=12)),
                ("last_payment_at", models.DateTimeField(blank=True, help_text="When the last payment was received", null=True)),
                ("access_code", models.CharField(blank=True, help_text="Entry code issued after payment (encoded as QR by clients)", max_length=32, null=True, unique=True)),
                ("event", models.ForeignKey(help_text="Event registered for", on_delete=django.db.models.deletion.CASCADE, related_name="registrations", to="events.event")),
                ("user", models.ForeignKey(help_text="Registered user", on_delete=django.db.models.deletion.CASCADE, related_name="event_registrations", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="EventMerchandiseOrder",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("quantity", models.PositiveIntegerField(default=1, help_text="Units ordered")),
                ("unit_price", models.DecimalField(decimal_places=2, help_text="Unit price at the time of ordering", max_digits=10)),
                ("total_price", models.DecimalField(decimal_places=2, help_text="quantity x unit_price", max_digits=12)),
                (
                    "payment_status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("completed", "Completed"), ("failed", "Failed")],
                        db_index=True,
                        default="pending",
                        help_text="Payment status of this order line",
                        max_length=20,
                    ),
                ),
                ("merchandise", models.ForeignKey(help_text="Ordered item", on_delete=django.db.models.deletion.PROTECT, related_name="orders", to="events.eventmerchandise")),
                ("registration", models.ForeignKey(help_text="Registration this order belongs to", on_delete=django.db.models.deletion.CASCADE, related_name="merchandise_orders", to="events.eventregistration")),
            ],
            options={
                "ordering": ["created_at"],
            },
        ),
        migrations.CreateModel(
            name="RegistrationGuest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("name", models.CharField(help_text="Guest name", max_length=150)),
                ("email", models.EmailField(blank=True, default="", help_text="Guest email", max_length=254)),
                ("phone", models.CharField(blank=True, default="", help_text="Guest phone", max_length=20)),
                ("registration", models.ForeignKey(help_text="Registration this guest belongs to", on_delete=django.db.models.deletion.CASCADE, related_name="guests", to="events.eventregistration")),
            ],
            options={
                "ordering": ["created_at"],
            },
        ),
        migrations.AddConstraint(
            model_name="eventregistration",
            constraint=models.UniqueConstraint(fields=("event", "user"), name="unique_event_registration_per_user"),
        ),
    ]

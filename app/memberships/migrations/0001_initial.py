# Generated manually - Initial membership models

from decimal import Decimal

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
            name="MembershipFee",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("batch_year", models.PositiveIntegerField(help_text="Batch/cohort year this fee applies to", unique=True)),
                ("amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), help_text="Annual membership fee", max_digits=10)),
                ("fee_type", models.CharField(default="ANNUAL", help_text="Fee type label shown on invoices", max_length=20)),
                ("is_active", models.BooleanField(default=True, help_text="Whether this fee is currently charged")),
            ],
            options={
                "ordering": ["-batch_year"],
            },
        ),
        migrations.CreateModel(
            name="Membership",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("membership_year", models.PositiveIntegerField(help_text="Calendar year the membership covers")),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("active", "Active"), ("expired", "Expired")],
                        db_index=True,
                        default="pending",
                        help_text="Membership status",
                        max_length=20,
                    ),
                ),
                ("amount_paid", models.DecimalField(decimal_places=2, default=Decimal("0.00"), help_text="Amount paid for this membership", max_digits=10)),
                ("valid_from", models.DateTimeField(blank=True, help_text="Start of validity", null=True)),
                ("valid_until", models.DateTimeField(blank=True, help_text="End of validity (1 January of the following year)", null=True)),
                ("payment_transaction", models.ForeignKey(blank=True, help_text="Transaction that paid for this membership", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="memberships", to="payments.paymenttransaction")),
                ("user", models.ForeignKey(help_text="Member", on_delete=django.db.models.deletion.CASCADE, related_name="memberships", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-membership_year"],
            },
        ),
        migrations.AddConstraint(
            model_name="membership",
            constraint=models.UniqueConstraint(fields=("user", "membership_year"), name="unique_membership_per_user_year"),
        ),
    ]

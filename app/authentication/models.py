"""
Authentication models.

This module defines the User model used across the billing platform:
- User: Custom user model with email-based authentication plus the
  member attributes the payment flows need (full name, phone, batch year)

Related files:
    - managers.py: Custom user manager for email-based creation

Security:
    - User passwords hashed with Django's PBKDF2
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from authentication.managers import UserManager


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    The batch year drives membership fee lookup, and the contact fields
    are copied onto invoices and gateway checkout prefill.

    Fields:
        email: Primary identifier, unique, used for login
        full_name: Display name used on invoices and checkout prefill
        phone: Contact number used for checkout prefill
        batch_year: Graduation/cohort year used for membership fees
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created

    Usage:
        user = User.objects.create_user(
            email="member@example.com",
            password="securepassword",
            full_name="Asha Rao",
            batch_year=2015,
        )
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )
    full_name = models.CharField(
        max_length=150,
        blank=True,
        default="",
        help_text="User's full name as shown on invoices",
    )
    phone = models.CharField(
        max_length=20,
        blank=True,
        default="",
        help_text="Contact phone number (used for checkout prefill)",
    )
    batch_year = models.PositiveIntegerField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Cohort/batch year used to look up membership fees",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self) -> str:
        return self.email

    def get_full_name(self) -> str:
        """Return the full name, falling back to the email address."""
        return self.full_name or self.email

    def get_short_name(self) -> str:
        return self.full_name.split(" ")[0] if self.full_name else self.email

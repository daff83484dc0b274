"""
User manager for email-based accounts.

Members sign in with their email address; there is no username.
Passwords are hashed via set_password() and email domains are
normalized to lowercase.
"""

from django.contrib.auth.models import BaseUserManager


class UserManager(BaseUserManager):
    """
    Manager for the email-identified User model.

    Usage:
        member = User.objects.create_user(
            email="member@example.com",
            password="securepassword",
            batch_year=2015,
        )
        admin = User.objects.create_superuser(
            email="admin@example.com",
            password="adminpassword",
        )
    """

    use_in_migrations = True

    def create_user(self, email, password=None, **extra_fields):
        """
        Create a member account.

        Accounts created without a password (e.g. imported members) get an
        unusable password.

        Raises:
            ValueError: If email is not provided
        """
        if not email:
            raise ValueError("An email address is required")

        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)

        user = self.model(email=self.normalize_email(email), **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        """
        Create an admin account for operators.

        Raises:
            ValueError: If is_staff or is_superuser is overridden to False
        """
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)

        for flag in ("is_staff", "is_superuser"):
            if extra_fields.get(flag) is not True:
                raise ValueError(f"Superuser must have {flag}=True.")

        return self.create_user(email, password, **extra_fields)

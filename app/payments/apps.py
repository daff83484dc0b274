"""
Payments app configuration.

ready() builds the ProviderRegistry from settings once per process; the
engine and webhook processor read it from here.
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"

    def ready(self):
        from payments.adapters import ProviderRegistry

        self.provider_registry = ProviderRegistry.from_settings()

from django.apps import AppConfig


class MerchandiseConfig(AppConfig):
    """Configuration for the merchandise store application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "merchandise"
    verbose_name = "Merchandise"

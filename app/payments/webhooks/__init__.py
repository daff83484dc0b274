"""
Webhook handling for payment gateway callbacks.

Callbacks are stored first, then verified and processed asynchronously
by payments.tasks.process_payment_webhook.

Usage:
    # In urls.py
    from payments.webhooks import payment_webhook

    urlpatterns = [
        path("webhooks/<str:provider>/", payment_webhook, name="payment_webhook"),
    ]
"""

from payments.webhooks.views import payment_webhook

__all__ = [
    "payment_webhook",
]

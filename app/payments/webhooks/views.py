"""
Webhook endpoint for payment gateways.

The view:
1. Stores the callback body byte-for-byte as a PaymentWebhook
2. Queues signature verification and processing via Celery
3. Returns 200 immediately

Gateways retry on non-2xx responses, so once the callback is stored the
response is always 200; the processing outcome is recorded on the
PaymentWebhook row for operators.

Usage:
    # In urls.py
    from payments.webhooks.views import payment_webhook

    urlpatterns = [
        path("webhooks/<str:provider>/", payment_webhook, name="payment_webhook"),
    ]
"""

from __future__ import annotations

import logging

from django.apps import apps
from django.db import transaction
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from payments.services import get_webhook_processor

logger = logging.getLogger(__name__)


def _signature_header(provider: str) -> str | None:
    registry = apps.get_app_config("payments").provider_registry
    if not registry.has(provider):
        return None
    return registry.get(provider).webhook_signature_header()


@csrf_exempt
@require_POST
def payment_webhook(request: HttpRequest, provider: str) -> JsonResponse:
    """
    Receive a gateway callback.

    Security:
    - The signature is verified against the raw body before anything
      is applied; forged callbacks end up FAILED
    - CSRF exemption required for external webhooks
    - Only POST requests accepted

    Returns:
        JsonResponse 200 {"accepted": true, "webhook_id": ...}
    """
    header = _signature_header(provider)
    signature = request.headers.get(header, "") if header else ""

    webhook = get_webhook_processor().receive(provider, request.body, signature)
    webhook_id = str(webhook.id)

    def queue_processing():
        from payments.tasks import process_payment_webhook

        try:
            process_payment_webhook.delay(webhook_id)
        except Exception:
            # Stored as RECEIVED; can be re-queued from admin
            logger.error(
                "Failed to queue webhook processing",
                extra={"webhook_id": webhook_id, "provider": provider},
                exc_info=True,
            )

    transaction.on_commit(queue_processing)

    return JsonResponse({"accepted": True, "webhook_id": webhook_id}, status=200)

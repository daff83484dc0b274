"""
Celery configuration for the billing platform.

Celery runs the work that must not block or endanger a payment completion:
- Webhook processing off the request thread
- Invoice generation and email delivery
- Payment notifications
- Access-code and pickup-code issuance

Redis is both the message broker and result backend. Tasks are
auto-discovered from every installed app's tasks.py.

Usage:
    from payments.tasks import generate_transaction_invoice

    generate_transaction_invoice.delay(str(transaction.id))
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()

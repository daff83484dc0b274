"""
Root pytest configuration for the Django project.

Sets test-friendly environment defaults before settings load: SQLite
instead of PostgreSQL, eager Celery, and fixed gateway test credentials.
App-specific fixtures are defined in each app's tests/conftest.py.
"""

import os

import django

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DEBUG", "True")
os.environ.setdefault("DATABASE_URL", "sqlite:///test.sqlite3")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "True")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp_test_secret")
os.environ.setdefault("RAZORPAY_WEBHOOK_SECRET", "rzp_webhook_secret")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_key")
os.environ.setdefault("STRIPE_PUBLISHABLE_KEY", "pk_test_key")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test")


def pytest_configure():
    """Configure Django settings before tests run."""
    django.setup()

# =============================================================================
# Django Project Configuration Package
# =============================================================================
# Importing the Celery app here makes shared_task bind to it when Django
# starts, so tasks queued from views and services reach the broker.
# =============================================================================

from config.celery import app as celery_app

__all__ = ("celery_app",)

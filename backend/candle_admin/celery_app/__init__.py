"""
Celery application package.

Exports the main Celery app instance.
Version: 1.0.0
"""
from candle_admin.celery_app.celery_config import celery_app

__all__ = ["celery_app"]

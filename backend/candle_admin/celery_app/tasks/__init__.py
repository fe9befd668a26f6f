"""
Celery tasks package.

Exports all tasks for convenient imports.
Version: 1.0.0
"""
from candle_admin.celery_app.tasks.deployment import deploy_catalog, sweep_progress

__all__ = [
    "deploy_catalog",
    "sweep_progress",
]

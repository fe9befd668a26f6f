"""
Celery configuration — broker, task routes, beat schedule.

Runs background deployments and the progress sweep.

Background deployments share state with the API only through Redis, so
set PROGRESS_STORE_BACKEND=redis and DEPLOYMENT_LOCK_BACKEND=redis when
workers are in use.

=============================================================================
RUNNING WORKERS
=============================================================================
    Worker:
        celery -A candle_admin.celery_app worker -Q deployments,default -l info -n deploy@%h

    Beat (scheduler):
        celery -A candle_admin.celery_app beat -l info

On Windows add --pool=solo to the worker command.
Version: 1.0.0
"""
import logging
import platform

from celery import Celery
from kombu import Queue

from candle_admin.core.config import settings

logger = logging.getLogger(__name__)

IS_WINDOWS = platform.system() == "Windows"

celery_app = Celery(
    "candle_admin",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "candle_admin.celery_app.tasks.deployment",
    ]
)

celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Deploys are never redelivered after a worker crash
    task_acks_late=False,
    worker_prefetch_multiplier=1,

    task_queues=(
        Queue("deployments"),
        Queue("default"),
    ),
    task_routes={
        "tasks.deployment.deploy_catalog": {"queue": "deployments"},
        "tasks.deployment.sweep_progress": {"queue": "default"},
    },

    beat_schedule={
        "sweep-deployment-progress": {
            "task": "tasks.deployment.sweep_progress",
            "schedule": float(settings.progress_sweep_interval_seconds),
            "options": {"queue": "default"},
        },
    },

    result_expires=3600,  # 1 hour

    worker_pool="solo" if IS_WINDOWS else "prefork",

    worker_log_format="[%(asctime)s: %(levelname)s/%(processName)s] %(message)s",
    worker_task_log_format="[%(asctime)s: %(levelname)s/%(processName)s] [%(task_name)s] %(message)s",
)

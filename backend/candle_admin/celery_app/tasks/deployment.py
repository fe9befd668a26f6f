"""
Deployment tasks — background catalog deployment and progress expiry.

Tasks:
- deploy_catalog: run DeploymentService.deploy for a queued request
- sweep_progress: drop progress runs past the retention window (beat)

deploy_catalog never retries: a partially applied run is reported, and
the operator decides whether to deploy again.
Version: 1.0.0
"""
import logging
from typing import Any, Dict, List

from candle_admin.celery_app.celery_config import celery_app
from candle_admin.celery_app.tasks.base import (
    BaseTask,
    run_async,
    get_deployment_service,
    get_progress_store,
)
from candle_admin.core.exceptions import ConfigValidationError, DeploymentInProgressError
from candle_admin.schemas.deployment import DeploymentProgress
from candle_admin.schemas.pricing import PricingConfig

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    base=BaseTask,
    name="tasks.deployment.deploy_catalog"
)
def deploy_catalog(self, config: Dict[str, Any], delete_handles: List[str], run_id: str):
    """Deploy a pricing configuration; returns the DeploymentResult as JSON."""
    logger.info(f"Background deployment {run_id} starting (task {self.request.id})")

    service = get_deployment_service()
    pricing = PricingConfig.model_validate(config)

    try:
        result = run_async(service.deploy(pricing, delete_handles, run_id=run_id))
    except (ConfigValidationError, DeploymentInProgressError) as e:
        logger.warning(f"Background deployment {run_id} rejected: {e}")
        get_progress_store().append(run_id, DeploymentProgress(kind="error", message=str(e)))
        return {"run_id": run_id, "success": False, "errors": [str(e)]}

    return result.model_dump(mode="json")


@celery_app.task(
    bind=True,
    base=BaseTask,
    name="tasks.deployment.sweep_progress"
)
def sweep_progress(self):
    expired = get_progress_store().expire()
    return {"expired": expired}

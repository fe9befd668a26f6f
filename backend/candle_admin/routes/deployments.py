"""
Deployment routes — preview, run and track Magic Request vessel deployments.

Provides:
- POST /deployments/preview            – diff only, never mutates Shopify
- POST /deployments                    – run inline, or queue on Celery
- GET  /deployments/{run_id}/progress  – progress events for a run
Version: 1.0.0
"""
import logging
from typing import Union

from fastapi import APIRouter, Depends, HTTPException, Response, status

from candle_admin.celery_app.tasks.deployment import deploy_catalog
from candle_admin.container import get_deployment_lock, get_deployment_service
from candle_admin.core.auth import get_current_admin
from candle_admin.core.config import get_settings
from candle_admin.core.exceptions import (
    ConfigValidationError,
    DeploymentInProgressError,
    RetryableError,
)
from candle_admin.schemas.auth import AdminIdentity
from candle_admin.schemas.deployment import (
    DeployQueuedResponse,
    DeployRequest,
    DeploymentDiff,
    DeploymentProgressResponse,
    DeploymentResult,
    PreviewRequest,
)
from candle_admin.services.deployment_service import DeploymentService, new_run_id
from candle_admin.utils.deployment_lock import DeploymentLock
from candle_admin.utils.pricing import validate_pricing_config

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/deployments", tags=["deployments"])


def _invalid_config(problems) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={
            "code": "INVALID_CONFIG",
            "message": f"Pricing configuration has {len(problems)} problem(s)",
            "problems": list(problems),
        },
    )


def _in_progress(exc: DeploymentInProgressError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={"code": "DEPLOYMENT_IN_PROGRESS", "message": str(exc)},
    )


def _shopify_unavailable(exc: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={"code": "SHOPIFY_UNAVAILABLE", "message": str(exc)},
    )


@router.post("/preview", response_model=DeploymentDiff)
async def preview_deployment(
    payload: PreviewRequest,
    service: DeploymentService = Depends(get_deployment_service),
    admin: AdminIdentity = Depends(get_current_admin),
):
    """Show what a deployment would change."""
    try:
        return await service.preview(payload.config, payload.delete_handles)
    except ConfigValidationError as exc:
        raise _invalid_config(exc.problems) from exc
    except RetryableError as exc:
        raise _shopify_unavailable(exc) from exc


@router.post("", response_model=Union[DeploymentResult, DeployQueuedResponse])
async def run_deployment(
    payload: DeployRequest,
    response: Response,
    service: DeploymentService = Depends(get_deployment_service),
    lock: DeploymentLock = Depends(get_deployment_lock),
    admin: AdminIdentity = Depends(get_current_admin),
):
    """
    Apply the pricing configuration to Shopify.

    Deleting vessels requires confirm_delete=true. With background=true the
    run is queued and progress can be polled with the returned run_id; this
    needs the Redis progress store and lock so workers share state with the API.
    """
    if payload.delete_handles and not payload.confirm_delete:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "code": "DELETE_NOT_CONFIRMED",
                "message": "delete_handles requires confirm_delete=true; deletion cannot be undone",
            },
        )

    logger.info(
        f"Deployment requested by {admin.email}: vessels={len(payload.config.vessels)}, "
        f"delete={payload.delete_handles}, background={payload.background}"
    )

    if payload.background:
        if not get_settings().background_deploys_enabled:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={
                    "code": "BACKGROUND_UNAVAILABLE",
                    "message": "Background deployments need PROGRESS_STORE_BACKEND=redis "
                               "and DEPLOYMENT_LOCK_BACKEND=redis",
                },
            )
        problems = validate_pricing_config(payload.config, payload.delete_handles)
        if problems:
            raise _invalid_config(problems)
        catalog_id = service.catalog_id
        holder = lock.holder(catalog_id)
        if holder:
            raise _in_progress(DeploymentInProgressError(catalog_id, holder=holder))

        run_id = new_run_id()
        task = deploy_catalog.delay(payload.config.model_dump(), payload.delete_handles, run_id)
        response.status_code = status.HTTP_202_ACCEPTED
        return DeployQueuedResponse(
            run_id=run_id,
            task_id=task.id,
            message=f"Deployment queued. Track with run_id: {run_id}",
        )

    try:
        return await service.deploy(payload.config, payload.delete_handles)
    except ConfigValidationError as exc:
        raise _invalid_config(exc.problems) from exc
    except DeploymentInProgressError as exc:
        raise _in_progress(exc) from exc


@router.get("/{run_id}/progress", response_model=DeploymentProgressResponse)
async def get_deployment_progress(
    run_id: str,
    service: DeploymentService = Depends(get_deployment_service),
    admin: AdminIdentity = Depends(get_current_admin),
):
    """Events recorded for a run; empty once the run has expired."""
    return DeploymentProgressResponse(run_id=run_id, events=service.get_progress(run_id))

"""
Deployment service — reconcile the vessel pricing config with Shopify.

Flow for one run:
1. validate the PricingConfig (every problem reported at once)
2. take the per-store deployment lease
3. read the vessel snapshot from Shopify
4. compute the diff (pure, see utils.change_detection)
5. apply create -> update -> disable -> delete, one vessel at a time

A failing vessel is recorded and the run moves on. Progress events go to
the caller's callback and to the ProgressStore under the run id.
Version: 1.0.0
"""
import asyncio
import logging
import secrets
import time
from typing import Callable, Iterable, List, Optional

from candle_admin.core.exceptions import CandleAdminException, ConfigValidationError
from candle_admin.db.progress_store import ProgressStore
from candle_admin.schemas.deployment import (
    DeploymentDiff,
    DeploymentProgress,
    DeploymentResult,
    OperationKind,
    VesselResult,
)
from candle_admin.schemas.pricing import PricingConfig
from candle_admin.services.shopify_catalog_service import ShopifyCatalogService
from candle_admin.utils.change_detection import compute_deployment_diff, format_summary
from candle_admin.utils.deployment_lock import DeploymentLock
from candle_admin.utils.pricing import validate_pricing_config
from candle_admin.core.constants.deployment import DEPLOY_RUN_PREFIX

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[DeploymentProgress], None]

_PAST_TENSE = {
    "create": "Created",
    "update": "Updated",
    "disable": "Disabled",
    "delete": "Deleted",
}


def new_run_id() -> str:
    """Run identifier, e.g. deploy-1760745600000-a1b2c3."""
    return f"{DEPLOY_RUN_PREFIX}-{int(time.time() * 1000)}-{secrets.token_hex(3)}"


class DeploymentService:
    def __init__(
        self,
        catalog: ShopifyCatalogService,
        lock: DeploymentLock,
        progress_store: ProgressStore,
    ) -> None:
        self._catalog = catalog
        self._lock = lock
        self._progress = progress_store

    @property
    def catalog_id(self) -> str:
        return self._catalog.catalog_id

    # ------------------------------------------------------------------
    # Preview
    # ------------------------------------------------------------------

    async def preview(self, config: PricingConfig, delete_handles: Iterable[str] = ()) -> DeploymentDiff:
        """Validate, read and diff. Never mutates Shopify."""
        delete_handles = list(delete_handles)
        self._validate(config, delete_handles)
        snapshot = await self._catalog.fetch_vessel_products()
        diff = compute_deployment_diff(config, snapshot, delete_handles)
        logger.info("deployment preview: %s", diff.summary)
        return diff

    # ------------------------------------------------------------------
    # Apply
    # ------------------------------------------------------------------

    async def apply_diff(
        self,
        diff: DeploymentDiff,
        desired: PricingConfig,
        on_progress: ProgressCallback,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> DeploymentResult:
        """
        Apply a diff in create -> update -> disable -> delete order.

        on_progress is called once per vessel operation, after it finishes or
        fails. It runs outside the per-vessel error handling, so an exception
        raised by the callback aborts the run.
        """
        plan: List[tuple[OperationKind, str]] = (
            [("create", h) for h in diff.to_create]
            + [("update", h) for h in diff.to_update]
            + [("disable", h) for h in diff.to_disable]
            + [("delete", h) for h in diff.to_delete]
        )
        total = len(plan)
        results: List[VesselResult] = []
        errors: List[str] = []

        for index, (operation, handle) in enumerate(plan):
            if cancel_event is not None and cancel_event.is_set():
                message = f"Deployment cancelled after {index} of {total} operations"
                logger.warning(message)
                errors.append(message)
                break

            result = VesselResult(handle=handle, operation=operation)
            try:
                outcome = await self._apply_one(operation, handle, diff, desired)
                result.product_id = outcome.get("product_id")
                result.variant_count = outcome.get("variant_count")
            except Exception as exc:
                logger.error("deployment %s failed handle=%s: %s", operation, handle, exc)
                result.errors.append(str(exc))
            results.append(result)

            percent = int((index + 1) * 100 / total)
            if result.ok:
                event = DeploymentProgress(
                    kind=operation,
                    handle=handle,
                    message=self._success_message(operation, handle, result.variant_count),
                    progress=percent,
                )
            else:
                event = DeploymentProgress(
                    kind="error",
                    handle=handle,
                    operation=operation,
                    message=f"Failed to {operation} {handle}: {result.errors[0]}",
                    progress=percent,
                )
            on_progress(event)

        success = not errors and all(r.ok for r in results)
        failed = sum(1 for r in results if not r.ok)
        if success:
            message = f"Deployment complete: {diff.summary}" if total else "No changes to deploy"
        else:
            message = f"Deployment finished with {failed} failed operation(s)"
        return DeploymentResult(
            success=success,
            diff=diff,
            results=results,
            errors=errors,
            message=message,
        )

    async def _apply_one(
        self,
        operation: OperationKind,
        handle: str,
        diff: DeploymentDiff,
        desired: PricingConfig,
    ) -> dict:
        if operation == "create":
            return await self._catalog.create_vessel(self._vessel(desired, handle))

        product_id = diff.remote_ids.get(handle)
        if not product_id:
            raise CandleAdminException(f"no Shopify product id known for {handle}")

        if operation == "update":
            return await self._catalog.update_vessel(product_id, self._vessel(desired, handle))
        if operation == "disable":
            return await self._catalog.disable_vessel(product_id)
        return await self._catalog.delete_vessel(product_id)

    @staticmethod
    def _vessel(desired: PricingConfig, handle: str):
        vessel = desired.get(handle)
        if vessel is None:
            raise CandleAdminException(f"{handle} is not in the pricing configuration")
        return vessel

    @staticmethod
    def _success_message(operation: OperationKind, handle: str, variant_count: Optional[int]) -> str:
        message = f"{_PAST_TENSE[operation]} {handle}"
        if operation in ("create", "update") and variant_count is not None:
            message += f" ({variant_count} variants)"
        return message

    # ------------------------------------------------------------------
    # Deploy
    # ------------------------------------------------------------------

    async def deploy(
        self,
        config: PricingConfig,
        delete_handles: Iterable[str] = (),
        run_id: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> DeploymentResult:
        """
        Full run: validate, lock, read, diff, apply.

        Raises ConfigValidationError before any remote call, and
        DeploymentInProgressError when another run holds the lease. A failed
        snapshot read returns an unsuccessful result with no operations.
        """
        run_id = run_id or new_run_id()
        delete_handles = list(delete_handles)
        self._validate(config, delete_handles)

        def emit(event: DeploymentProgress) -> None:
            self._progress.append(run_id, event)
            if on_progress is not None:
                on_progress(event)

        async with self._lock.hold(self._catalog.catalog_id, run_id):
            logger.info("deployment started run_id=%s", run_id)
            try:
                snapshot = await self._catalog.fetch_vessel_products()
            except CandleAdminException as exc:
                message = f"Failed to read Shopify products: {exc}"
                logger.error("deployment aborted run_id=%s: %s", run_id, message)
                emit(DeploymentProgress(kind="error", message=message))
                empty = DeploymentDiff()
                empty.summary = format_summary(empty)
                return DeploymentResult(
                    run_id=run_id, success=False, diff=empty, errors=[message], message=message,
                )

            diff = compute_deployment_diff(config, snapshot, delete_handles)
            emit(DeploymentProgress(kind="diff", message=diff.summary))

            result = await self.apply_diff(diff, config, emit, cancel_event)
            result.run_id = run_id
            emit(DeploymentProgress(kind="complete", message=result.message, progress=100))
            logger.info("deployment finished run_id=%s success=%s", run_id, result.success)
            return result

    def get_progress(self, run_id: str) -> List[DeploymentProgress]:
        return self._progress.list(run_id)

    def _validate(self, config: PricingConfig, delete_handles: Iterable[str]) -> None:
        problems = validate_pricing_config(config, delete_handles)
        if problems:
            raise ConfigValidationError(problems)

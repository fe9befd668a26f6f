"""
Deployment schemas — diff, progress events, results, and API payloads.

Defines the reconciler's value types and the request/response models
for the deployment routes.
Version: 1.0.0
"""
from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .pricing import PricingConfig

OperationKind = Literal["create", "update", "disable", "delete"]
ProgressKind = Literal["create", "update", "disable", "delete", "error", "diff", "complete"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DeploymentDiff(BaseModel):
    """Handles to create / update / disable / delete. Never persisted."""
    to_create: List[str] = Field(default_factory=list)
    to_update: List[str] = Field(default_factory=list)
    to_disable: List[str] = Field(default_factory=list)
    to_delete: List[str] = Field(default_factory=list)
    # handle -> Shopify product GID for every handle present in the snapshot
    remote_ids: Dict[str, str] = Field(default_factory=dict)
    summary: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.to_create or self.to_update or self.to_disable or self.to_delete)

    @property
    def total_operations(self) -> int:
        return len(self.to_create) + len(self.to_update) + len(self.to_disable) + len(self.to_delete)


class DeploymentProgress(BaseModel):
    kind: ProgressKind
    message: str
    handle: Optional[str] = None
    # For kind == "error": the operation that failed
    operation: Optional[OperationKind] = None
    progress: int = 0
    timestamp: datetime = Field(default_factory=_utcnow)


class VesselResult(BaseModel):
    handle: str
    operation: OperationKind
    product_id: Optional[str] = None
    variant_count: Optional[int] = None
    errors: List[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class DeploymentResult(BaseModel):
    run_id: Optional[str] = None
    success: bool
    diff: DeploymentDiff
    results: List[VesselResult] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    message: str = ""


# ---------------------------------------------------------------------------
# API payloads
# ---------------------------------------------------------------------------

class PreviewRequest(BaseModel):
    config: PricingConfig
    delete_handles: List[str] = Field(
        default_factory=list,
        description="Handles to remove permanently instead of disabling",
    )


class DeployRequest(PreviewRequest):
    confirm_delete: bool = Field(
        False,
        description="Must be true whenever delete_handles is non-empty",
    )
    background: bool = Field(False, description="Queue the run on Celery instead of waiting")


class DeployQueuedResponse(BaseModel):
    run_id: str
    status: str = "queued"
    task_id: Optional[str] = None
    message: Optional[str] = None


class DeploymentProgressResponse(BaseModel):
    run_id: str
    events: List[DeploymentProgress]

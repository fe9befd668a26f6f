"""
Description routes — Gemini product description rewrite.
Version: 1.0.0
"""
from fastapi import APIRouter, Depends

from candle_admin.container import get_description_service
from candle_admin.core.auth import get_current_admin
from candle_admin.schemas.auth import AdminIdentity
from candle_admin.schemas.descriptions import ReengineerRequest, ReengineerResponse
from candle_admin.services.description_service import DescriptionService

router = APIRouter(prefix="/descriptions", tags=["descriptions"])


@router.post("/reengineer", response_model=ReengineerResponse)
async def reengineer_description(
    payload: ReengineerRequest,
    service: DescriptionService = Depends(get_description_service),
    admin: AdminIdentity = Depends(get_current_admin),
):
    return await service.reengineer(payload)

"""
Route aggregator — mounts all routers under /api/v1 prefix.

Health is exported separately for main.py to mount at root.
Version: 1.0.0
"""
from fastapi import APIRouter

from candle_admin.routes.auth import router as auth_router
from candle_admin.routes.deployments import router as deployments_router
from candle_admin.routes.descriptions import router as descriptions_router
from candle_admin.routes.health import router as health_router
from candle_admin.routes.pricing import router as pricing_router

v1_router = APIRouter(prefix="/api/v1")

v1_router.include_router(auth_router)
v1_router.include_router(deployments_router)
v1_router.include_router(pricing_router)
v1_router.include_router(descriptions_router)

__all__ = ["v1_router", "health_router"]

"""API router aggregation."""

from __future__ import annotations

from fastapi import APIRouter

from kaerr.api.routes import health, kg, matching, materials, metrics

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(matching.router)
api_router.include_router(kg.router)
api_router.include_router(materials.router)
api_router.include_router(metrics.router)

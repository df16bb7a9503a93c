"""Metrics endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from kaerr.api.context import AppContext
from kaerr.api.deps import provide_context

router = APIRouter(prefix="/v1")


@router.get("/metrics")
async def metrics(context: AppContext = Depends(provide_context)) -> dict[str, object]:
    return context.stats.snapshot()

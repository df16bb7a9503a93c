"""Material record endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from kaerr.api.context import AppContext
from kaerr.api.deps import provide_context, require_api_key
from kaerr.models.schemas import (
    MaterialCreateRequest,
    MaterialDeleteRequest,
    MaterialListResponse,
    MaterialOut,
    MaterialResponse,
    MaterialUpdateRequest,
)
from kaerr.services.materials import Material

router = APIRouter(prefix="/v1/materials")
protected = [Depends(require_api_key)]


def _out(material: Material) -> MaterialOut:
    return MaterialOut(id=material.id, name=material.name, description=material.description)


@router.get("/health")
async def materials_health() -> dict[str, str]:
    return {"message": "Materials service is up"}


@router.get("/list", response_model=MaterialListResponse, dependencies=protected)
async def list_materials(context: AppContext = Depends(provide_context)) -> MaterialListResponse:
    return MaterialListResponse(message=[_out(m) for m in context.materials.list_all()])


@router.post("/create", response_model=MaterialResponse, status_code=201, dependencies=protected)
async def create_material(
    req: MaterialCreateRequest,
    *,
    context: AppContext = Depends(provide_context),
) -> MaterialResponse:
    material = context.materials.create(name=req.name, description=req.description)
    context.stats.increment_materials()
    return MaterialResponse(message=_out(material))


@router.put("/update", response_model=MaterialResponse, dependencies=protected)
async def update_material(
    req: MaterialUpdateRequest,
    *,
    context: AppContext = Depends(provide_context),
) -> MaterialResponse:
    material = context.materials.update(req.id, name=req.name, description=req.description)
    context.stats.increment_materials()
    return MaterialResponse(message=_out(material))


@router.delete("/delete", status_code=204, dependencies=protected)
async def delete_material(
    req: MaterialDeleteRequest,
    *,
    context: AppContext = Depends(provide_context),
) -> Response:
    context.materials.delete(req.id)
    context.stats.increment_materials()
    return Response(status_code=204)


@router.get("/{material_id}", response_model=MaterialResponse, dependencies=protected)
async def get_material(
    material_id: str,
    *,
    context: AppContext = Depends(provide_context),
) -> MaterialResponse:
    return MaterialResponse(message=_out(context.materials.get(material_id)))

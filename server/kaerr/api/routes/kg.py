"""Knowledge-graph path lookup endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from kaerr.api.context import AppContext
from kaerr.api.deps import provide_context, require_api_key
from kaerr.models.schemas import (
    MaterialsForProjectRequest,
    MultiMatchRequest,
    OneOneRequest,
    PairPaths,
    ProjectsForMaterialRequest,
)
from kaerr.ranking.types import Candidate

router = APIRouter(prefix="/v1/kg")


def _to_pair(candidate: Candidate) -> PairPaths:
    return PairPaths(
        material_id=candidate.subject_id,
        project_id=candidate.object_id,
        paths=candidate.path_set.as_lists(),
    )


@router.get("/health")
async def kg_health() -> dict[str, str]:
    return {"message": "KG service is up"}


@router.post("/pair", response_model=PairPaths, dependencies=[Depends(require_api_key)])
async def pair(req: OneOneRequest, *, context: AppContext = Depends(provide_context)) -> PairPaths:
    return _to_pair(context.matching.paths_for_pair(req.material_id, req.project_id))


@router.post(
    "/materials-for-project",
    response_model=List[PairPaths],
    dependencies=[Depends(require_api_key)],
)
async def materials_for_project(
    req: MaterialsForProjectRequest,
    *,
    context: AppContext = Depends(provide_context),
) -> List[PairPaths]:
    return [_to_pair(c) for c in context.matching.paths_for_project(req.project_id, req.material_ids)]


@router.post(
    "/projects-for-material",
    response_model=List[PairPaths],
    dependencies=[Depends(require_api_key)],
)
async def projects_for_material(
    req: ProjectsForMaterialRequest,
    *,
    context: AppContext = Depends(provide_context),
) -> List[PairPaths]:
    return [_to_pair(c) for c in context.matching.paths_for_material(req.material_id, req.project_ids)]


@router.post("/multi-pair", response_model=List[PairPaths], dependencies=[Depends(require_api_key)])
async def multi_pair(
    req: MultiMatchRequest,
    *,
    context: AppContext = Depends(provide_context),
) -> List[PairPaths]:
    return [_to_pair(c) for c in context.matching.paths_for_pairs(req.material_ids, req.project_ids)]

"""Material/project matching endpoints."""

from __future__ import annotations

import time
from typing import Awaitable, Callable, List, TypeVar

from fastapi import APIRouter, Depends

from kaerr.api.context import AppContext
from kaerr.api.deps import limit_scoring, provide_context
from kaerr.errors import KaerrError
from kaerr.models.schemas import (
    MatchResult,
    MaterialResult,
    MaterialsForProjectRequest,
    MaterialsForProjectResponse,
    MultiMatchRequest,
    MultiMatchResponse,
    OneOneRequest,
    OneOneResponse,
    ProjectResult,
    ProjectsForMaterialRequest,
    ProjectsForMaterialResponse,
    RankedOut,
    RankRequest,
    RankResponse,
)
from kaerr.ranking.types import Candidate, PathSet

router = APIRouter(prefix="/v1/kaerr", dependencies=[Depends(limit_scoring)])

T = TypeVar("T")


async def _tracked(context: AppContext, candidate_count: int, call: Callable[[], Awaitable[T]]) -> T:
    start = time.time()
    try:
        result = await call()
    except KaerrError:
        context.stats.record_rank_error()
        raise
    context.stats.record_rank(candidate_count, (time.time() - start) * 1000)
    return result


@router.post("/one-one", response_model=OneOneResponse)
async def one_one(
    req: OneOneRequest,
    *,
    context: AppContext = Depends(provide_context),
) -> OneOneResponse:
    percentage = await _tracked(
        context,
        1,
        lambda: context.matching.predict_direct_match(req.material_id, req.project_id),
    )
    return OneOneResponse(percentage=percentage)


@router.post("/projects-for-material", response_model=ProjectsForMaterialResponse)
async def projects_for_material(
    req: ProjectsForMaterialRequest,
    *,
    context: AppContext = Depends(provide_context),
) -> ProjectsForMaterialResponse:
    ranked = await _tracked(
        context,
        len(req.project_ids or []),
        lambda: context.matching.predict_projects_for_material(req.material_id, req.project_ids),
    )
    return ProjectsForMaterialResponse(
        projects=[ProjectResult(project_id=r.object_id, percentage=r.percentage) for r in ranked]
    )


@router.post("/materials-for-project", response_model=MaterialsForProjectResponse)
async def materials_for_project(
    req: MaterialsForProjectRequest,
    *,
    context: AppContext = Depends(provide_context),
) -> MaterialsForProjectResponse:
    ranked = await _tracked(
        context,
        len(req.material_ids or []),
        lambda: context.matching.predict_materials_for_project(req.project_id, req.material_ids),
    )
    return MaterialsForProjectResponse(
        materials=[MaterialResult(material_id=r.subject_id, percentage=r.percentage) for r in ranked]
    )


@router.post("/multi-match", response_model=MultiMatchResponse)
async def multi_match(
    req: MultiMatchRequest,
    *,
    context: AppContext = Depends(provide_context),
) -> MultiMatchResponse:
    ranked = await _tracked(
        context,
        len(req.material_ids or []) * len(req.project_ids or []),
        lambda: context.matching.predict_multi_match(req.material_ids, req.project_ids),
    )
    return MultiMatchResponse(
        matches=[
            MatchResult(material_id=r.subject_id, project_id=r.object_id, percentage=r.percentage)
            for r in ranked
        ]
    )


@router.post("/rank", response_model=RankResponse)
async def rank(
    req: RankRequest,
    *,
    context: AppContext = Depends(provide_context),
) -> RankResponse:
    candidates: List[Candidate] = [
        Candidate(c.subject_id, c.object_id, PathSet.from_lists(c.paths))
        for c in req.candidates
    ]
    ranked = await _tracked(context, len(candidates), lambda: context.matching.rank(candidates))
    return RankResponse(
        results=[
            RankedOut(
                subject_id=r.subject_id,
                object_id=r.object_id,
                score=r.raw_score,
                percentage=r.percentage,
            )
            for r in ranked
        ]
    )

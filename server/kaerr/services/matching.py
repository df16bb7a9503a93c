"""Material/project matching built on the ranking pipeline.

Materials are the subject and projects the object of every candidate. Each
public coroutine validates its identifiers, fetches paths for every pair,
and ranks all pairs in a single pipeline call.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

from kaerr.errors import InvalidInput
from kaerr.graph.path_source import PathSource
from kaerr.ranking.pipeline import RankingPipeline
from kaerr.ranking.types import Candidate, RankedResult


def _require_id(value: str | None, name: str) -> str:
    if not value:
        raise InvalidInput(f"{name} is required")
    return value


def _require_ids(values: Sequence[str] | None, name: str) -> Sequence[str]:
    if not values:
        raise InvalidInput(f"{name} are required")
    if not all(values):
        raise InvalidInput(f"{name} must not contain empty identifiers")
    return values


class MatchingService:
    def __init__(self, pipeline: RankingPipeline, path_source: PathSource) -> None:
        self.pipeline = pipeline
        self.path_source = path_source

    def candidates_for(self, pairs: Iterable[tuple[str, str]]) -> List[Candidate]:
        return [
            Candidate(material_id, project_id, self.path_source.get_paths(material_id, project_id))
            for material_id, project_id in pairs
        ]

    async def rank(self, candidates: Sequence[Candidate]) -> List[RankedResult]:
        return await self.pipeline.rank_candidates(candidates)

    async def predict_direct_match(self, material_id: str | None, project_id: str | None) -> float:
        """Percentage for a single pair.

        A one-candidate batch has no spread, so this is always the degenerate
        percentage.
        """

        material_id = _require_id(material_id, "materialId")
        project_id = _require_id(project_id, "projectId")
        ranked = await self.rank(self.candidates_for([(material_id, project_id)]))
        return ranked[0].percentage

    async def predict_projects_for_material(
        self, material_id: str | None, project_ids: Sequence[str] | None
    ) -> List[RankedResult]:
        material_id = _require_id(material_id, "materialId")
        project_ids = _require_ids(project_ids, "projectIds")
        return await self.rank(self.candidates_for((material_id, p) for p in project_ids))

    async def predict_materials_for_project(
        self, project_id: str | None, material_ids: Sequence[str] | None
    ) -> List[RankedResult]:
        project_id = _require_id(project_id, "projectId")
        material_ids = _require_ids(material_ids, "materialIds")
        return await self.rank(self.candidates_for((m, project_id) for m in material_ids))

    async def predict_multi_match(
        self, material_ids: Sequence[str] | None, project_ids: Sequence[str] | None
    ) -> List[RankedResult]:
        material_ids = _require_ids(material_ids, "materialIds")
        project_ids = _require_ids(project_ids, "projectIds")
        pairs = [(m, p) for m in material_ids for p in project_ids]
        return await self.rank(self.candidates_for(pairs))

    # Raw path lookups, no scoring.

    def paths_for_pair(self, material_id: str | None, project_id: str | None) -> Candidate:
        material_id = _require_id(material_id, "materialId")
        project_id = _require_id(project_id, "projectId")
        return self.candidates_for([(material_id, project_id)])[0]

    def paths_for_material(
        self, material_id: str | None, project_ids: Sequence[str] | None
    ) -> List[Candidate]:
        material_id = _require_id(material_id, "materialId")
        project_ids = _require_ids(project_ids, "projectIds")
        return self.candidates_for((material_id, p) for p in project_ids)

    def paths_for_project(
        self, project_id: str | None, material_ids: Sequence[str] | None
    ) -> List[Candidate]:
        project_id = _require_id(project_id, "projectId")
        material_ids = _require_ids(material_ids, "materialIds")
        return self.candidates_for((m, project_id) for m in material_ids)

    def paths_for_pairs(
        self, material_ids: Sequence[str] | None, project_ids: Sequence[str] | None
    ) -> List[Candidate]:
        material_ids = _require_ids(material_ids, "materialIds")
        project_ids = _require_ids(project_ids, "projectIds")
        return self.candidates_for((m, p) for m in material_ids for p in project_ids)

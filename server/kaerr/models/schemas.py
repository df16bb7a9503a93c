
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Annotated, List, Optional

from kaerr.ranking.types import MAX_PATH_ID

PathId = Annotated[int, Field(ge=0, le=MAX_PATH_ID)]

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

# Identifiers are optional here so a missing one is reported as
# "<field> is required" by the matching service rather than a 422.

class OneOneRequest(CamelModel):
    material_id: Optional[str] = None
    project_id: Optional[str] = None

class ProjectsForMaterialRequest(CamelModel):
    material_id: Optional[str] = None
    project_ids: Optional[List[str]] = None

class MaterialsForProjectRequest(CamelModel):
    project_id: Optional[str] = None
    material_ids: Optional[List[str]] = None

class MultiMatchRequest(CamelModel):
    material_ids: Optional[List[str]] = None
    project_ids: Optional[List[str]] = None

class OneOneResponse(CamelModel):
    error: bool = False
    percentage: float

class ProjectResult(CamelModel):
    project_id: str
    percentage: float

class ProjectsForMaterialResponse(CamelModel):
    error: bool = False
    projects: List[ProjectResult]

class MaterialResult(CamelModel):
    material_id: str
    percentage: float

class MaterialsForProjectResponse(CamelModel):
    error: bool = False
    materials: List[MaterialResult]

class MatchResult(CamelModel):
    material_id: str
    project_id: str
    percentage: float

class MultiMatchResponse(CamelModel):
    error: bool = False
    matches: List[MatchResult]

class CandidateIn(CamelModel):
    subject_id: str
    object_id: str
    paths: List[List[PathId]] = []

class RankRequest(CamelModel):
    candidates: List[CandidateIn] = []

class RankedOut(CamelModel):
    subject_id: str
    object_id: str
    score: float
    percentage: float

class RankResponse(CamelModel):
    error: bool = False
    results: List[RankedOut]

class PairPaths(CamelModel):
    material_id: str
    project_id: str
    paths: List[List[int]]

class ErrorResponse(BaseModel):
    error: bool = True
    message: str

class MaterialOut(CamelModel):
    id: str
    name: Optional[str] = None
    description: Optional[str] = None

class MaterialCreateRequest(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None

class MaterialUpdateRequest(CamelModel):
    id: str
    name: Optional[str] = None
    description: Optional[str] = None

class MaterialDeleteRequest(CamelModel):
    id: str

class MaterialListResponse(CamelModel):
    message: List[MaterialOut]

class MaterialResponse(CamelModel):
    message: MaterialOut

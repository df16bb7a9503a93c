"""Application context shared across routers."""

from __future__ import annotations

from dataclasses import dataclass

from kaerr.graph.path_source import PathSource
from kaerr.ranking.pipeline import RankingPipeline
from kaerr.services.api_key import APIKeyValidator
from kaerr.services.matching import MatchingService
from kaerr.services.materials import MaterialStore
from kaerr.services.metrics import StatsTracker
from kaerr.services.rate_limit import RateLimiter


@dataclass
class AppContext:
    pipeline: RankingPipeline
    path_source: PathSource
    matching: MatchingService
    materials: MaterialStore
    rate_limiter: RateLimiter
    api_keys: APIKeyValidator
    stats: StatsTracker

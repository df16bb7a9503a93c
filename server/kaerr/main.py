"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from kaerr.api import api_router
from kaerr.api.context import AppContext
from kaerr.config import settings
from kaerr.errors import InferenceUnavailable, InvalidInput, MaterialNotFound, MaterialStoreError
from kaerr.graph.path_source import PathSource, build_path_source
from kaerr.models.schemas import ErrorResponse
from kaerr.ranking.encoder import BatchEncoder
from kaerr.ranking.pipeline import RankingPipeline
from kaerr.ranking.providers.scoring import ScoringProvider, build_scoring_provider
from kaerr.ranking.ranker import Ranker
from kaerr.ranking.scorer import ScoringClient
from kaerr.services.api_key import APIKeyValidator, load_api_keys
from kaerr.services.matching import MatchingService
from kaerr.services.materials import MaterialStore
from kaerr.services.metrics import StatsTracker
from kaerr.services.rate_limit import RateLimiter
from kaerr.utils.logging import RequestIdMiddleware, configure_logging
from kaerr.utils.redis_client import close_redis_client, create_redis_client

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(message=message).model_dump())


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(InvalidInput)
    async def _invalid_input(request: Request, exc: InvalidInput) -> JSONResponse:
        return _error(400, str(exc))

    @app.exception_handler(MaterialNotFound)
    async def _not_found(request: Request, exc: MaterialNotFound) -> JSONResponse:
        return _error(404, str(exc))

    @app.exception_handler(InferenceUnavailable)
    async def _inference_unavailable(request: Request, exc: InferenceUnavailable) -> JSONResponse:
        logger.error("inference_unavailable", extra={"path": request.url.path, "reason": str(exc)})
        return _error(503, "Scoring model unavailable")

    @app.exception_handler(MaterialStoreError)
    async def _store_error(request: Request, exc: MaterialStoreError) -> JSONResponse:
        logger.error("material_store_error", extra={"path": request.url.path, "reason": str(exc)})
        return _error(500, str(exc))


def _default_scoring_provider() -> ScoringProvider:
    provider, key, fallback = build_scoring_provider(
        settings.scoring_provider,
        settings.scoring_model_path,
        max_paths=settings.max_paths,
        max_path_len=settings.max_path_len,
    )
    if fallback:
        logger.warning("Unknown scoring provider '%s'; falling back to '%s'", fallback, key)
    return provider


def _default_path_source() -> PathSource:
    source, key, fallback = build_path_source(settings.path_source, settings.paths_file)
    if fallback:
        logger.warning("Unknown path source '%s'; falling back to '%s'", fallback, key)
    return source


def create_app(
    *,
    scoring_provider: ScoringProvider | None = None,
    path_source: PathSource | None = None,
    redis_client=None,
    api_keys: APIKeyValidator | None = None,
) -> FastAPI:
    owns_redis = redis_client is None
    if owns_redis:
        redis_client = create_redis_client(settings.redis_url)

    max_paths, max_path_len = settings.encoder_limits()
    scoring_client = ScoringClient(scoring_provider or _default_scoring_provider())
    pipeline = RankingPipeline(
        encoder=BatchEncoder(max_paths=max_paths, max_path_len=max_path_len),
        scoring_client=scoring_client,
        ranker=Ranker(),
    )
    path_source = path_source or _default_path_source()

    materials = MaterialStore(redis_client)
    if not materials.persistent:
        logger.warning("Material store is running in memory; records will not survive restarts")

    context = AppContext(
        pipeline=pipeline,
        path_source=path_source,
        matching=MatchingService(pipeline, path_source),
        materials=materials,
        rate_limiter=RateLimiter(settings.rank_rate_per_minute, redis_client=redis_client),
        api_keys=api_keys
        or APIKeyValidator(load_api_keys(settings.api_keys_file), settings.require_api_key),
        stats=StatsTracker(),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.warmup:
            scoring_client.warmup()
            logger.info("Scoring model loaded", extra={"model_path": settings.scoring_model_path})
        yield
        if owns_redis:
            close_redis_client(redis_client)

    app = FastAPI(title="KAERR material/project matching", lifespan=lifespan)
    app.state.context = context  # type: ignore[attr-defined]

    app.add_middleware(RequestIdMiddleware)
    register_exception_handlers(app)
    app.include_router(api_router)

    return app


app = create_app()

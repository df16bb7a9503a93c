"""Threadpool boundary between the async pipeline and the scoring provider."""

from __future__ import annotations

import logging
import math
from typing import Iterable, List

from starlette.concurrency import run_in_threadpool

from kaerr.errors import InferenceUnavailable
from kaerr.ranking.providers.scoring import ScoringProvider
from kaerr.ranking.types import EncodedBatch

logger = logging.getLogger(__name__)


class ScoringClient:
    """Call boundary to the scoring engine.

    Engine failures and malformed output surface as ``InferenceUnavailable``.
    Nothing is retried here; scoring is expensive and retry policy belongs to
    the caller.
    """

    def __init__(self, provider: ScoringProvider):
        self.provider = provider

    def warmup(self) -> None:
        try:
            self.provider.load()
        except Exception as exc:
            raise InferenceUnavailable(f"scoring model failed to load: {exc}") from exc

    async def score(self, batch: EncodedBatch) -> List[float]:
        try:
            scores = await run_in_threadpool(
                self.provider.score, batch.paths, batch.valid_path_num
            )
        except Exception as exc:
            logger.exception("scoring_failed", extra={"batch_size": batch.batch_size})
            raise InferenceUnavailable(f"scoring engine failed: {exc}") from exc
        return self._validate(scores, batch.batch_size)

    @staticmethod
    def _validate(scores: Iterable[object], expected: int) -> List[float]:
        try:
            values = [float(s) for s in scores]
        except (TypeError, ValueError) as exc:
            raise InferenceUnavailable("scoring engine returned non-numeric scores") from exc
        if len(values) != expected:
            raise InferenceUnavailable(
                f"scoring engine returned {len(values)} scores for {expected} candidates"
            )
        if not all(math.isfinite(v) for v in values):
            raise InferenceUnavailable("scoring engine returned non-finite scores")
        return values

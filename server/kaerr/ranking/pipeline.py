"""Encode, score and rank one batch of candidates."""

from __future__ import annotations

import logging
import time
from typing import List, Sequence

from kaerr.errors import InferenceUnavailable, InvalidInput
from kaerr.ranking.encoder import BatchEncoder
from kaerr.ranking.ranker import Ranker
from kaerr.ranking.scorer import ScoringClient
from kaerr.ranking.types import Candidate, RankedResult

logger = logging.getLogger(__name__)


class RankingPipeline:
    """Runs validate -> encode -> score -> rank for a single request.

    Each call builds its own batch, so concurrent calls share nothing but the
    scoring client. A scoring failure fails the whole call; subsets are never
    ranked on their own.
    """

    def __init__(
        self,
        encoder: BatchEncoder,
        scoring_client: ScoringClient,
        ranker: Ranker | None = None,
    ) -> None:
        self.encoder = encoder
        self.scoring_client = scoring_client
        self.ranker = ranker or Ranker()

    async def rank_candidates(
        self,
        candidates: Sequence[Candidate],
        *,
        scoring_client: ScoringClient | None = None,
    ) -> List[RankedResult]:
        if not candidates:
            raise InvalidInput("at least one candidate is required")

        client = scoring_client or self.scoring_client
        start = time.time()

        batch = self.encoder.encode(candidates)
        try:
            scores = await client.score(batch)
        except InferenceUnavailable:
            logger.warning(
                "ranking_failed",
                extra={
                    "candidate_count": len(candidates),
                    "duration_ms": int((time.time() - start) * 1000),
                },
            )
            raise

        # from here on the call is pure computation and always completes
        ranked = self.ranker.rank(candidates, scores)

        logger.info(
            "ranking_completed",
            extra={
                "candidate_count": len(candidates),
                "duration_ms": int((time.time() - start) * 1000),
                "top_score": ranked[0].raw_score,
            },
        )
        return ranked

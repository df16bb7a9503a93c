"""Orders scored candidates and rescales raw scores to batch-relative percentages."""

from __future__ import annotations

from typing import List, Sequence

from kaerr.errors import InvalidInput
from kaerr.ranking.types import Candidate, RankedResult, RawResult

# Every candidate gets this when the batch carries no discriminating signal.
DEGENERATE_PERCENTAGE = 50.0


class Ranker:
    """Min-max ranking over a single batch.

    Percentages are only comparable within one call: the best candidate of a
    batch is 100 and the worst is 0, whatever their raw scores were. When all
    raw scores are equal (a batch of one included) every candidate gets
    ``DEGENERATE_PERCENTAGE``.
    """

    def rank(self, candidates: Sequence[Candidate], raw_scores: Sequence[float]) -> List[RankedResult]:
        if not candidates:
            raise InvalidInput("at least one candidate is required")
        if len(candidates) != len(raw_scores):
            raise ValueError(
                f"expected {len(candidates)} scores, got {len(raw_scores)}"
            )

        raw = [
            RawResult(c.subject_id, c.object_id, float(score))
            for c, score in zip(candidates, raw_scores)
        ]
        # sorted() is stable with reverse=True, so ties keep input order
        ordered = sorted(raw, key=lambda r: r.raw_score, reverse=True)

        hi = ordered[0].raw_score
        lo = ordered[-1].raw_score
        spread = hi - lo

        return [
            RankedResult(
                subject_id=r.subject_id,
                object_id=r.object_id,
                raw_score=r.raw_score,
                percentage=self._percentage(r.raw_score, lo, spread),
            )
            for r in ordered
        ]

    @staticmethod
    def _percentage(score: float, lo: float, spread: float) -> float:
        if spread <= 0:
            return DEGENERATE_PERCENTAGE
        return (score - lo) / spread * 100.0

"""Packs candidate path sets into the fixed-shape tensor the scoring model expects."""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from kaerr.errors import InvalidInput
from kaerr.ranking.types import Candidate, EncodedBatch

logger = logging.getLogger(__name__)

# Input shape the exported model was traced with.
MAX_PATHS = 16
MAX_PATH_LEN = 7

PAD_VALUE = 0


class BatchEncoder:
    """Encode candidates into a zero-padded ``[batch, max_paths, max_path_len]`` batch.

    Paths beyond ``max_paths`` and elements beyond ``max_path_len`` are dropped
    silently, keeping the first ones in the order received. Truncation is a
    bounded-cost policy rather than an error, so it is only logged at debug
    level.
    """

    def __init__(self, max_paths: int = MAX_PATHS, max_path_len: int = MAX_PATH_LEN) -> None:
        if max_paths <= 0 or max_path_len <= 0:
            raise ValueError("max_paths and max_path_len must be positive")
        self.max_paths = max_paths
        self.max_path_len = max_path_len

    def encode(self, candidates: Sequence[Candidate]) -> EncodedBatch:
        if not candidates:
            raise InvalidInput("at least one candidate is required")

        batch_size = len(candidates)
        paths = np.full(
            (batch_size, self.max_paths, self.max_path_len), PAD_VALUE, dtype=np.int64
        )
        valid_path_num = np.zeros(batch_size, dtype=np.int64)
        dropped_paths = dropped_elements = 0

        for b, candidate in enumerate(candidates):
            kept = candidate.path_set.paths[: self.max_paths]
            valid_path_num[b] = len(kept)
            dropped_paths += len(candidate.path_set.paths) - len(kept)
            for i, path in enumerate(kept):
                row = path[: self.max_path_len]
                dropped_elements += len(path) - len(row)
                if row:
                    paths[b, i, : len(row)] = row

        if dropped_paths or dropped_elements:
            logger.debug(
                "batch_truncated",
                extra={
                    "batch_size": batch_size,
                    "dropped_paths": dropped_paths,
                    "dropped_elements": dropped_elements,
                },
            )

        return EncodedBatch(paths=paths, valid_path_num=valid_path_num)

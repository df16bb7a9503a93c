"""Value types flowing through the ranking pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Tuple

import numpy as np

from kaerr.errors import InvalidInput

KGPath = Tuple[int, ...]

# Largest identifier that fits the int64 model input.
MAX_PATH_ID = int(np.iinfo(np.int64).max)


@dataclass(frozen=True)
class PathSet:
    """Knowledge-graph walks evidencing a link between a material and a project.

    Each path alternates node and edge identifiers. A path set may be empty;
    the encoder bounds how many paths and elements are actually used.
    """

    paths: Tuple[KGPath, ...] = ()

    @classmethod
    def from_lists(cls, paths: Iterable[Iterable[int]] | None) -> "PathSet":
        """Build a path set from raw nested lists.

        Identifiers must be integers in ``[0, MAX_PATH_ID]``; anything else
        (floats, strings, booleans, out-of-range values) is rejected rather
        than coerced.
        """

        frozen: list[KGPath] = []
        for path in paths or ():
            items = tuple(_path_id(value) for value in path)
            frozen.append(items)
        return cls(tuple(frozen))

    def __len__(self) -> int:
        return len(self.paths)

    def as_lists(self) -> list[list[int]]:
        return [list(path) for path in self.paths]


@dataclass(frozen=True)
class Candidate:
    subject_id: str
    object_id: str
    path_set: PathSet = field(default_factory=PathSet)


@dataclass(frozen=True)
class EncodedBatch:
    """Fixed-shape model input.

    ``paths`` has shape ``[batch_size, max_paths, max_path_len]`` and
    ``valid_path_num`` has shape ``[batch_size]``; both are int64.
    """

    paths: np.ndarray
    valid_path_num: np.ndarray

    @property
    def batch_size(self) -> int:
        return int(self.paths.shape[0])

    @property
    def max_paths(self) -> int:
        return int(self.paths.shape[1])

    @property
    def max_path_len(self) -> int:
        return int(self.paths.shape[2])


@dataclass(frozen=True)
class RawResult:
    subject_id: str
    object_id: str
    raw_score: float


@dataclass(frozen=True)
class RankedResult:
    subject_id: str
    object_id: str
    raw_score: float
    percentage: float

    def as_dict(self) -> dict[str, object]:
        return {
            "subject_id": self.subject_id,
            "object_id": self.object_id,
            "raw_score": self.raw_score,
            "percentage": self.percentage,
        }


def _path_id(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidInput("path identifiers must be integers")
    value = int(value)
    if value < 0 or value > MAX_PATH_ID:
        raise InvalidInput(f"path identifiers must be between 0 and {MAX_PATH_ID}")
    return value

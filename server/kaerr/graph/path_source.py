"""Knowledge-graph path lookups for material/project pairs."""
from __future__ import annotations

import json
import logging
import pathlib
from abc import ABC, abstractmethod
from typing import Dict, Sequence, Tuple

from kaerr.ranking.providers.registry import ProviderRegistry
from kaerr.ranking.types import PathSet

logger = logging.getLogger(__name__)

# Placeholder walks served until a real graph backend is wired in.
DEMO_PATHS: Tuple[Tuple[int, ...], ...] = (
    (10, 5, 20, 8, 35, 12, 100),
    (10, 7, 25, 9, 35, 15, 100),
)


class PathSource(ABC):
    @abstractmethod
    def get_paths(self, material_id: str, project_id: str) -> PathSet:
        """Return the walks linking ``material_id`` to ``project_id``."""


class StaticPathSource(PathSource):
    """Returns the same paths for every pair."""

    def __init__(self, paths: Sequence[Sequence[int]] = DEMO_PATHS) -> None:
        self._path_set = PathSet.from_lists(paths)

    def get_paths(self, material_id: str, project_id: str) -> PathSet:
        return self._path_set


class JsonPathSource(PathSource):
    """Serves precomputed paths from a JSON export.

    Expected layout::

        {"pairs": [{"materialId": "m1", "projectId": "p1", "paths": [[1, 2, 3]]}]}

    Pairs missing from the file have no paths.
    """

    def __init__(self, path: str | pathlib.Path) -> None:
        self._path = pathlib.Path(path)
        self._pairs: Dict[Tuple[str, str], PathSet] = self._load(self._path)
        logger.info("Loaded %d path pairs from %s", len(self._pairs), self._path)

    @staticmethod
    def _load(path: pathlib.Path) -> Dict[Tuple[str, str], PathSet]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ValueError(f"cannot read path file {path}: {exc}") from exc
        if not isinstance(data, dict) or not isinstance(data.get("pairs"), list):
            raise ValueError(f"path file {path} must contain a 'pairs' list")

        pairs: Dict[Tuple[str, str], PathSet] = {}
        for entry in data["pairs"]:
            try:
                key = (str(entry["materialId"]), str(entry["projectId"]))
                pairs[key] = PathSet.from_lists(entry.get("paths") or [])
            except (KeyError, TypeError, ValueError) as exc:
                raise ValueError(f"invalid pair entry in {path}: {entry!r}") from exc
        return pairs

    def __len__(self) -> int:
        return len(self._pairs)

    def get_paths(self, material_id: str, project_id: str) -> PathSet:
        return self._pairs.get((material_id, project_id), PathSet())


_path_source_registry: ProviderRegistry[PathSource] = ProviderRegistry("static")


def register_path_source(key: str, *, aliases: Sequence[str] | None = None):
    return _path_source_registry.register(key, aliases=aliases)


@register_path_source("static", aliases=("stub",))
def _build_static_source(paths_file: str = "") -> PathSource:
    return StaticPathSource()


@register_path_source("json", aliases=("file",))
def _build_json_source(paths_file: str = "") -> PathSource:
    if not paths_file:
        raise ValueError("KAERR_PATHS_FILE must be set for the json path source")
    return JsonPathSource(paths_file)


def build_path_source(source: str | None, paths_file: str = "") -> Tuple[PathSource, str, str | None]:
    """Returns ``(path_source, resolved_key, fallback_from)``."""

    return _path_source_registry.create(source, paths_file=paths_file)

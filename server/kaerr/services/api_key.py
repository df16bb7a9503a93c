"""API key enforcement."""

from __future__ import annotations

import json
import logging
import pathlib
from typing import Iterable

from fastapi import HTTPException

logger = logging.getLogger(__name__)


def load_api_keys(path: str | pathlib.Path) -> list[str]:
    """Read a JSON list of accepted keys; a missing file means no keys."""

    path = pathlib.Path(path)
    if not path.exists():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        logger.exception("Failed to read API key file: %s", path)
        return []
    if not isinstance(data, list):
        logger.warning("API key file %s does not contain a list", path)
        return []
    return [str(key) for key in data if key]


class APIKeyValidator:
    def __init__(self, api_keys: Iterable[str], require_api_key: bool) -> None:
        self._keys = frozenset(api_keys or ())
        self._require = require_api_key
        if require_api_key and not self._keys:
            logger.warning("API keys are required but none are configured; all requests will be rejected")

    def enforce(self, api_key: str | None) -> None:
        if not self._require:
            return
        if not api_key:
            raise HTTPException(status_code=401, detail="missing x-api-key")
        if api_key not in self._keys:
            raise HTTPException(status_code=403, detail="invalid api key")

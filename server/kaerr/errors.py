"""Exception types raised by the matching service."""

from __future__ import annotations


class KaerrError(Exception):
    """Base class for all service errors."""


class InvalidInput(KaerrError, ValueError):
    """The caller supplied an empty candidate list or a missing identifier."""


class InferenceUnavailable(KaerrError, RuntimeError):
    """The scoring engine could not be loaded, failed, or returned malformed output."""


class MaterialNotFound(KaerrError, LookupError):
    def __init__(self, material_id: str) -> None:
        super().__init__("Material not found")
        self.material_id = material_id


class MaterialStoreError(KaerrError):
    """The material key-value store failed."""

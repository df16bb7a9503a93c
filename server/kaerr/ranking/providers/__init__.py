"""Scoring engine interfaces and the registry used to select them."""

from .registry import ProviderRegistry
from .scoring import (
    JoblibScoringProvider,
    OnnxScoringProvider,
    ScoringProvider,
    build_scoring_provider,
    register_scoring_provider,
)

__all__ = [
    "ScoringProvider",
    "OnnxScoringProvider",
    "JoblibScoringProvider",
    "build_scoring_provider",
    "register_scoring_provider",
    "ProviderRegistry",
]

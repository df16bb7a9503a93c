"""Scoring engine providers.

A provider turns an encoded path batch into one raw score per candidate. The
model is loaded lazily on first use and then shared by every request, so
implementations must tolerate concurrent ``score`` calls.
"""
from __future__ import annotations

import os
from abc import ABC, abstractmethod
from threading import Lock
from typing import Any, Callable, Sequence, Tuple

import joblib
import numpy as np
import onnxruntime

from kaerr.ranking.encoder import MAX_PATH_LEN, MAX_PATHS

from .registry import ProviderRegistry


class ScoringProvider(ABC):
    """Abstract base class for scoring engines."""

    @abstractmethod
    def score(self, paths: np.ndarray, valid_path_num: np.ndarray) -> Sequence[float]:
        """Return raw scores for a ``[batch, max_paths, max_path_len]`` batch."""

    def load(self) -> None:
        """Load the underlying model eagerly. Default is a no-op."""


class OnnxScoringProvider(ScoringProvider):
    """Scores batches with an exported ONNX model via onnxruntime.

    The graph takes ``path`` (int64 ``[batch, max_paths, max_path_len]``) and
    ``valid_path_num`` (int64 ``[batch]``) and produces ``score``.
    """

    PATH_INPUT = "path"
    VALID_INPUT = "valid_path_num"
    SCORE_OUTPUT = "score"

    def __init__(
        self,
        model_path: str,
        *,
        max_paths: int = MAX_PATHS,
        max_path_len: int = MAX_PATH_LEN,
        loader: Callable[[str], Any] | None = None,
    ) -> None:
        self._model_path = model_path
        self._max_paths = max_paths
        self._max_path_len = max_path_len
        self._loader = loader or onnxruntime.InferenceSession
        self._session: Any = None
        self._lock = Lock()

    def _get_session(self):
        if self._session is None:
            with self._lock:
                if self._session is None:
                    session = self._loader(self._model_path)
                    self._check_input_shape(session)
                    self._session = session
        return self._session

    def _check_input_shape(self, session) -> None:
        for node in session.get_inputs():
            if node.name != self.PATH_INPUT:
                continue
            declared = list(node.shape)[1:]
            expected = [self._max_paths, self._max_path_len]
            for have, want in zip(declared, expected):
                # symbolic dims are strings or None
                if isinstance(have, int) and have != want:
                    raise ValueError(
                        f"model expects path shape {declared}, encoder produces {expected}"
                    )

    def load(self) -> None:
        self._get_session()

    def score(self, paths: np.ndarray, valid_path_num: np.ndarray) -> Sequence[float]:
        session = self._get_session()
        feeds = {
            self.PATH_INPUT: np.ascontiguousarray(paths, dtype=np.int64),
            self.VALID_INPUT: np.ascontiguousarray(valid_path_num, dtype=np.int64),
        }
        (scores,) = session.run([self.SCORE_OUTPUT], feeds)
        return np.asarray(scores, dtype=float).reshape(-1).tolist()


class JoblibScoringProvider(ScoringProvider):
    """Scores batches with a pickled scikit-learn style estimator.

    Each candidate becomes one feature row: its flattened path tensor followed
    by the valid path count.
    """

    def __init__(self, model_path: str, loader: Callable[[str], Any] | None = None) -> None:
        self._model_path = model_path
        self._loader = loader or joblib.load
        self._model: Any = None
        self._lock = Lock()

    def _get_model(self):
        if self._model is None:
            with self._lock:
                if self._model is None:
                    if not self._model_path or not os.path.exists(self._model_path):
                        raise FileNotFoundError(f"ranker model not found: {self._model_path!r}")
                    self._model = self._loader(self._model_path)
        return self._model

    def load(self) -> None:
        self._get_model()

    @staticmethod
    def features(paths: np.ndarray, valid_path_num: np.ndarray) -> np.ndarray:
        flat = paths.reshape(paths.shape[0], -1).astype(float)
        return np.hstack([flat, valid_path_num.reshape(-1, 1).astype(float)])

    def score(self, paths: np.ndarray, valid_path_num: np.ndarray) -> Sequence[float]:
        model = self._get_model()
        X = self.features(paths, valid_path_num)
        if hasattr(model, "predict_proba"):
            return model.predict_proba(X)[:, 1].tolist()
        return np.asarray(model.predict(X), dtype=float).tolist()


_scoring_registry: ProviderRegistry[ScoringProvider] = ProviderRegistry("onnx")


def register_scoring_provider(
    key: str,
    *,
    aliases: Sequence[str] | None = None,
):
    """Public decorator for registering scoring providers.

    Factories are called as ``factory(model_path, max_paths=..., max_path_len=...)``.
    """

    return _scoring_registry.register(key, aliases=aliases)


@register_scoring_provider("onnx", aliases=("onnxruntime", "ort"))
def _build_onnx_provider(
    model_path: str, *, max_paths: int = MAX_PATHS, max_path_len: int = MAX_PATH_LEN
) -> ScoringProvider:
    return OnnxScoringProvider(model_path, max_paths=max_paths, max_path_len=max_path_len)


@register_scoring_provider("joblib", aliases=("sklearn", "learned"))
def _build_joblib_provider(model_path: str, **_limits: int) -> ScoringProvider:
    return JoblibScoringProvider(model_path)


def build_scoring_provider(
    provider: str | None,
    model_path: str,
    *,
    max_paths: int = MAX_PATHS,
    max_path_len: int = MAX_PATH_LEN,
) -> Tuple[ScoringProvider, str, str | None]:
    """Factory for scoring providers.

    Returns a tuple of ``(provider, resolved_key, fallback_from)``.
    """

    return _scoring_registry.create(
        provider, model_path, max_paths=max_paths, max_path_len=max_path_len
    )

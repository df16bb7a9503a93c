import json
import pathlib
import sys
from types import SimpleNamespace

import numpy as np
import pytest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2] / "server"))

from kaerr.graph.path_source import (
    DEMO_PATHS,
    JsonPathSource,
    StaticPathSource,
    build_path_source,
)
from kaerr.ranking.providers import scoring as scoring_module
from kaerr.ranking.providers.registry import ProviderRegistry
from kaerr.ranking.providers.scoring import (
    JoblibScoringProvider,
    OnnxScoringProvider,
    ScoringProvider,
    build_scoring_provider,
    register_scoring_provider,
)


class DummySession:
    created_paths: list[str] = []

    def __init__(self, model_path: str, path_shape=("batch", 16, 7)):
        type(self).created_paths.append(model_path)
        self.path_shape = list(path_shape)
        self.runs: list[tuple[list[str], dict]] = []

    def get_inputs(self):
        return [
            SimpleNamespace(name="path", shape=self.path_shape),
            SimpleNamespace(name="valid_path_num", shape=["batch"]),
        ]

    def run(self, output_names, feeds):
        self.runs.append((list(output_names), feeds))
        # score = number of valid paths + first id of the first path
        scores = feeds["valid_path_num"] + feeds["path"][:, 0, 0]
        return [scores.astype(np.float32)]


class DummyEstimator:
    def __init__(self, with_proba: bool):
        self.with_proba = with_proba
        self.seen = None

    def predict(self, X):
        self.seen = X
        return X[:, -1] * 2

    def __getattr__(self, name):
        if name == "predict_proba" and self.with_proba:
            def predict_proba(X):
                self.seen = X
                p = X[:, -1] / 10.0
                return np.column_stack([1 - p, p])
            return predict_proba
        raise AttributeError(name)


class ConstantProvider(ScoringProvider):
    def score(self, paths, valid_path_num):
        return [1.0] * paths.shape[0]


@pytest.fixture(autouse=True)
def reset_dummy_state():
    DummySession.created_paths = []
    yield


def batch():
    paths = np.zeros((2, 16, 7), dtype=np.int64)
    paths[0, 0, 0] = 3
    paths[1, 0, 0] = 1
    return paths, np.array([1, 5], dtype=np.int64)


def test_build_onnx_provider_loads_lazily(monkeypatch):
    monkeypatch.setattr(scoring_module.onnxruntime, "InferenceSession", DummySession)
    provider, resolved_key, fallback_from = build_scoring_provider("onnx", "model.onnx")

    assert isinstance(provider, OnnxScoringProvider)
    assert resolved_key == "onnx"
    assert fallback_from is None
    assert DummySession.created_paths == []

    scores = provider.score(*batch())

    assert DummySession.created_paths == ["model.onnx"]
    assert scores == [4.0, 6.0]


def test_onnx_provider_feeds_named_int64_inputs():
    session = DummySession("m.onnx")
    provider = OnnxScoringProvider("m.onnx", loader=lambda _path: session)

    provider.score(*batch())

    output_names, feeds = session.runs[0]
    assert output_names == ["score"]
    assert set(feeds) == {"path", "valid_path_num"}
    assert feeds["path"].dtype == np.int64
    assert feeds["valid_path_num"].dtype == np.int64


def test_onnx_provider_rejects_mismatched_model_shape():
    provider = OnnxScoringProvider(
        "m.onnx",
        max_paths=16,
        max_path_len=7,
        loader=lambda path: DummySession(path, path_shape=("batch", 8, 7)),
    )

    with pytest.raises(ValueError):
        provider.load()


def test_onnx_alias_and_fallback(monkeypatch):
    monkeypatch.setattr(scoring_module.onnxruntime, "InferenceSession", DummySession)

    _, resolved_key, fallback_from = build_scoring_provider("ORT", "m.onnx")
    assert (resolved_key, fallback_from) == ("onnx", None)

    provider, resolved_key, fallback_from = build_scoring_provider("tensorrt", "m.onnx")
    assert isinstance(provider, OnnxScoringProvider)
    assert resolved_key == "onnx"
    assert fallback_from == "tensorrt"


def test_joblib_provider_prefers_predict_proba(tmp_path):
    model_file = tmp_path / "ranker.joblib"
    model_file.write_bytes(b"placeholder")
    estimator = DummyEstimator(with_proba=True)
    provider = JoblibScoringProvider(str(model_file), loader=lambda _path: estimator)

    scores = provider.score(*batch())

    assert scores == pytest.approx([0.1, 0.5])
    assert estimator.seen.shape == (2, 16 * 7 + 1)


def test_joblib_provider_falls_back_to_predict(tmp_path):
    model_file = tmp_path / "ranker.joblib"
    model_file.write_bytes(b"placeholder")
    provider = JoblibScoringProvider(str(model_file), loader=lambda _path: DummyEstimator(with_proba=False))

    assert provider.score(*batch()) == [2.0, 10.0]


def test_joblib_provider_missing_model_raises():
    provider, resolved_key, _ = build_scoring_provider("sklearn", "/nonexistent/ranker.joblib")

    assert resolved_key == "joblib"
    with pytest.raises(FileNotFoundError):
        provider.load()


def test_register_custom_scoring_provider():
    @register_scoring_provider("constant-test", aliases=("always-one",))
    def _factory(model_path: str, **_limits) -> ScoringProvider:  # noqa: ARG001 - contract requires signature
        return ConstantProvider()

    provider, resolved_key, fallback_from = build_scoring_provider("always-one", "unused")

    assert isinstance(provider, ConstantProvider)
    assert resolved_key == "constant-test"
    assert fallback_from is None


def test_registry_requires_registered_default():
    registry: ProviderRegistry[object] = ProviderRegistry("missing")
    with pytest.raises(ValueError):
        registry.create(None)
    with pytest.raises(ValueError):
        ProviderRegistry("  ")


def test_registry_resolves_aliases_and_empty_keys():
    registry: ProviderRegistry[str] = ProviderRegistry("a")
    registry.register("a", aliases=("x",))(lambda: "a")
    registry.register("B")(lambda: "b")

    assert registry.create(" X ") == ("a", "a", None)
    assert registry.create("") == ("a", "a", None)


def test_static_path_source_serves_demo_paths():
    source, resolved_key, fallback_from = build_path_source(None)

    assert isinstance(source, StaticPathSource)
    assert (resolved_key, fallback_from) == ("static", None)
    assert source.get_paths("m1", "p1").paths == DEMO_PATHS


def test_json_path_source_reads_pairs(tmp_path):
    data = {
        "pairs": [
            {"materialId": "m1", "projectId": "p1", "paths": [[1, 2, 3], [4]]},
            {"materialId": "m2", "projectId": "p1", "paths": []},
        ]
    }
    path_file = tmp_path / "paths.json"
    path_file.write_text(json.dumps(data), encoding="utf-8")

    source, resolved_key, _ = build_path_source("file", str(path_file))

    assert isinstance(source, JsonPathSource)
    assert resolved_key == "json"
    assert len(source) == 2
    assert source.get_paths("m1", "p1").as_lists() == [[1, 2, 3], [4]]
    assert len(source.get_paths("m2", "p1")) == 0
    assert len(source.get_paths("unknown", "p1")) == 0


@pytest.mark.parametrize(
    "content",
    ["not json", json.dumps([1, 2]), json.dumps({"pairs": [{"materialId": "m1"}]}),
     json.dumps({"pairs": [{"materialId": "m", "projectId": "p", "paths": [[-1]]}]})],
)
def test_json_path_source_rejects_malformed_files(tmp_path, content):
    path_file = tmp_path / "paths.json"
    path_file.write_text(content, encoding="utf-8")

    with pytest.raises(ValueError):
        JsonPathSource(path_file)


def test_json_path_source_requires_file_setting():
    with pytest.raises(ValueError):
        build_path_source("json", "")

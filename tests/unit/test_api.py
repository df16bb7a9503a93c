import pathlib
import sys

from fastapi.testclient import TestClient

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2] / "server"))

from kaerr.graph.path_source import PathSource
from kaerr.main import create_app
from kaerr.ranking.providers.scoring import ScoringProvider
from kaerr.ranking.types import PathSet
from kaerr.services.api_key import APIKeyValidator


class FirstIdScores(ScoringProvider):
    """Scores a candidate by the first id of its first path."""

    def __init__(self):
        self.calls = 0

    def score(self, paths, valid_path_num):
        self.calls += 1
        return paths[:, 0, 0].astype(float).tolist()


class BrokenEngine(ScoringProvider):
    def score(self, paths, valid_path_num):
        raise RuntimeError("model file missing")


class ProjectNumberPaths(PathSource):
    """Project "pN" gets a single path starting with N."""

    def get_paths(self, material_id, project_id):
        return PathSet.from_lists([[int(project_id.lstrip("p") or 0), 1, 2]])


def make_client(provider=None, api_keys=None):
    app = create_app(
        scoring_provider=provider or FirstIdScores(),
        path_source=ProjectNumberPaths(),
        api_keys=api_keys,
    )
    return TestClient(app)


def test_health_endpoints_are_open():
    client = make_client(api_keys=APIKeyValidator(["secret"], require_api_key=True))

    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/v1/kg/health").status_code == 200
    assert client.get("/v1/materials/health").status_code == 200


def test_one_one_returns_fifty():
    response = make_client().post("/v1/kaerr/one-one", json={"materialId": "m1", "projectId": "p3"})

    assert response.status_code == 200
    assert response.json() == {"error": False, "percentage": 50.0}


def test_projects_for_material_is_ranked():
    response = make_client().post(
        "/v1/kaerr/projects-for-material",
        json={"materialId": "m1", "projectIds": ["p1", "p9", "p5"]},
    )

    assert response.status_code == 200
    assert response.json() == {
        "error": False,
        "projects": [
            {"projectId": "p9", "percentage": 100.0},
            {"projectId": "p5", "percentage": 50.0},
            {"projectId": "p1", "percentage": 0.0},
        ],
    }


def test_materials_for_project_all_equal_scores():
    response = make_client().post(
        "/v1/kaerr/materials-for-project",
        json={"projectId": "p4", "materialIds": ["m1", "m2"]},
    )

    body = response.json()
    assert [m["materialId"] for m in body["materials"]] == ["m1", "m2"]
    assert all(m["percentage"] == 50.0 for m in body["materials"])


def test_multi_match_returns_pairs():
    response = make_client().post(
        "/v1/kaerr/multi-match",
        json={"materialIds": ["m1", "m2"], "projectIds": ["p2", "p1"]},
    )

    matches = response.json()["matches"]
    assert len(matches) == 4
    assert [(m["materialId"], m["projectId"]) for m in matches[:2]] == [("m1", "p2"), ("m2", "p2")]
    assert matches[0]["percentage"] == 100.0


def test_rank_endpoint_with_explicit_paths():
    provider = FirstIdScores()
    response = make_client(provider).post(
        "/v1/kaerr/rank",
        json={
            "candidates": [
                {"subjectId": "A", "objectId": "x", "paths": [[5, 1]]},
                {"subjectId": "B", "objectId": "x", "paths": [[5]]},
                {"subjectId": "C", "objectId": "x", "paths": [[10]]},
            ]
        },
    )

    assert response.status_code == 200
    assert [(r["subjectId"], r["score"], r["percentage"]) for r in response.json()["results"]] == [
        ("C", 10.0, 100.0),
        ("A", 5.0, 0.0),
        ("B", 5.0, 0.0),
    ]
    assert provider.calls == 1


def test_empty_candidates_are_rejected_without_scoring():
    provider = FirstIdScores()
    client = make_client(provider)

    response = client.post("/v1/kaerr/rank", json={"candidates": []})

    assert response.status_code == 400
    assert response.json()["error"] is True
    assert provider.calls == 0
    assert client.get("/v1/metrics").json()["rank_err"] == 1


def test_missing_identifier_is_client_error():
    response = make_client().post("/v1/kaerr/projects-for-material", json={"materialId": "m1"})

    assert response.status_code == 400
    assert response.json() == {"error": True, "message": "projectIds are required"}


def test_negative_path_ids_fail_validation():
    response = make_client().post(
        "/v1/kaerr/rank",
        json={"candidates": [{"subjectId": "A", "objectId": "x", "paths": [[-1]]}]},
    )

    assert response.status_code == 422


def test_path_ids_beyond_int64_fail_validation():
    client = make_client()

    too_big = client.post(
        "/v1/kaerr/rank",
        json={"candidates": [{"subjectId": "A", "objectId": "x", "paths": [[2**63]]}]},
    )
    largest = client.post(
        "/v1/kaerr/rank",
        json={"candidates": [{"subjectId": "A", "objectId": "x", "paths": [[2**63 - 1]]}]},
    )

    assert too_big.status_code == 422
    assert largest.status_code == 200


def test_engine_failure_maps_to_service_unavailable():
    response = make_client(BrokenEngine()).post(
        "/v1/kaerr/one-one", json={"materialId": "m1", "projectId": "p1"}
    )

    assert response.status_code == 503
    assert response.json() == {"error": True, "message": "Scoring model unavailable"}


def test_scoring_requires_api_key_when_enabled():
    client = make_client(api_keys=APIKeyValidator(["secret"], require_api_key=True))
    body = {"materialId": "m1", "projectId": "p1"}

    assert client.post("/v1/kaerr/one-one", json=body).status_code == 401
    assert client.post("/v1/kaerr/one-one", json=body, headers={"x-api-key": "bad"}).status_code == 403
    assert client.post("/v1/kaerr/one-one", json=body, headers={"x-api-key": "secret"}).status_code == 200


def test_kg_lookups_return_paths():
    client = make_client()

    pair = client.post("/v1/kg/pair", json={"materialId": "m1", "projectId": "p7"}).json()
    assert pair == {"materialId": "m1", "projectId": "p7", "paths": [[7, 1, 2]]}

    multi = client.post("/v1/kg/multi-pair", json={"materialIds": ["m1"], "projectIds": ["p1", "p2"]})
    assert [p["projectId"] for p in multi.json()] == ["p1", "p2"]

    by_project = client.post(
        "/v1/kg/materials-for-project", json={"projectId": "p1", "materialIds": ["m1", "m2"]}
    )
    assert [p["materialId"] for p in by_project.json()] == ["m1", "m2"]

    by_material = client.post("/v1/kg/projects-for-material", json={"materialId": "m1", "projectIds": ["p3"]})
    assert by_material.json()[0]["paths"] == [[3, 1, 2]]

    missing = client.post("/v1/kg/pair", json={"projectId": "p7"})
    assert missing.status_code == 400


def test_material_crud_roundtrip():
    client = make_client()

    created = client.post("/v1/materials/create", json={"name": "Steel beam", "description": "HEB 200"})
    assert created.status_code == 201
    material = created.json()["message"]

    listed = client.get("/v1/materials/list").json()["message"]
    assert [m["id"] for m in listed] == [material["id"]]

    updated = client.put("/v1/materials/update", json={"id": material["id"], "name": "Steel I-beam"})
    assert updated.json()["message"] == {
        "id": material["id"],
        "name": "Steel I-beam",
        "description": "HEB 200",
    }
    assert client.get(f"/v1/materials/{material['id']}").json()["message"]["name"] == "Steel I-beam"

    deleted = client.request("DELETE", "/v1/materials/delete", json={"id": material["id"]})
    assert deleted.status_code == 204
    assert client.get(f"/v1/materials/{material['id']}").status_code == 404
    assert client.put("/v1/materials/update", json={"id": material["id"]}).status_code == 404


def test_metrics_count_rankings():
    client = make_client()
    client.post("/v1/kaerr/projects-for-material", json={"materialId": "m1", "projectIds": ["p1", "p2"]})

    snapshot = client.get("/v1/metrics").json()
    assert snapshot["rank_total"] == 1
    assert snapshot["candidates_total"] == 2

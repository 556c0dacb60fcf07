from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from siteaudit.db import engine
from siteaudit.engine.exceptions import ImageResolutionError
from siteaudit.main import app
from siteaudit.routes.deps import catalog_dep, resolver_dep


client = TestClient(app)


def fake_resolver(ref: str) -> str:
    if ref.startswith("missing"):
        raise ImageResolutionError("not found")
    return "data:image/png;base64,AAAA"


@pytest.fixture
def small_app(small_catalog):
    app.dependency_overrides[catalog_dep] = lambda: small_catalog
    app.dependency_overrides[resolver_dep] = lambda: fake_resolver
    return small_catalog


def _create_project(**kw) -> dict:
    payload = {"name": "Riverside Block C", "location": "Lot 12", "engineer": "Dana", "foreman": "Lee"}
    payload.update(kw)
    r = client.post("/projects", json=payload)
    assert r.status_code == 201, r.text
    return r.json()


def _answer(pid: str, qid: str, **body):
    return client.put(f"/projects/{pid}/evaluation/answers/{qid}", json=body)


# -------------------------
# HEALTH / CATALOG
# -------------------------
def test_health_endpoints():
    assert client.get("/").json()["status"] == "ok"
    r = client.get("/ops/health")
    assert r.status_code == 200
    assert r.json()["checks"]["database"] == "ok"
    assert r.json()["checks"]["catalog"]["status"] == "ok"
    assert r.headers["x-app-version"] == "1.0.0"


def test_catalog_lists_categories_in_order():
    r = client.get("/catalog")
    assert r.status_code == 200
    data = r.json()
    assert data["max_score"] == 5
    assert len(data["categories"]) == 10
    assert sum(len(c["questions"]) for c in data["categories"]) == 40
    assert data["categories"][0]["key"] == "documentation"


# -------------------------
# PROJECTS
# -------------------------
def test_project_crud():
    p = _create_project(description="Podium slab")
    assert p["is_completed"] is False
    assert p["final_score"] is None

    r = client.patch(f"/projects/{p['id']}", json={"foreman": "Jordan"})
    assert r.status_code == 200
    assert r.json()["foreman"] == "Jordan"

    listed = client.get("/projects").json()
    assert [x["id"] for x in listed] == [p["id"]]

    assert client.delete(f"/projects/{p['id']}").status_code == 204
    r = client.get(f"/projects/{p['id']}")
    assert r.status_code == 404
    assert r.json()["error"] == "NOT_FOUND"


def test_create_project_blank_name_is_400():
    r = client.post("/projects", json={"name": "  ", "location": "x", "engineer": "y", "foreman": "z"})
    assert r.status_code == 400
    assert r.json() == {"error": "VALIDATION_ERROR", "detail": "Project name is required"}


# -------------------------
# EVALUATION FLOW
# -------------------------
def test_answer_payload_validation(small_app):
    p = _create_project()
    assert _answer(p["id"], "q1", score=6).status_code == 422
    assert _answer(p["id"], "q1", score=3, not_applicable=True).status_code == 422
    assert _answer(p["id"], "q1").status_code == 422
    assert _answer(p["id"], "unknown", score=3).status_code == 400


def test_empty_evaluation_is_not_persisted(small_app):
    p = _create_project()
    r = client.get(f"/projects/{p['id']}/evaluation")
    assert r.status_code == 200
    data = r.json()
    assert data["answers"] == []
    assert data["missing_question_ids"] == ["q1", "q2", "q3"]
    assert data["max_score"] == 50


def test_full_inspection_flow(small_app):
    p = _create_project()
    pid = p["id"]

    r = _answer(pid, "q1", score=5, notes="All helmets ok")
    assert r.status_code == 200
    assert r.json()["total_score"] == 10

    r = _answer(pid, "q2", not_applicable=True)
    assert r.json()["answers"][1] == {
        "question_id": "q2", "score": None, "not_applicable": True, "notes": None, "images": [],
    }

    r = client.post(f"/projects/{pid}/evaluation/answers/q3/images", json={"image": "extinguisher.jpg"})
    assert r.status_code == 200
    q3 = r.json()["answers"][2]
    assert q3["score"] == 1
    assert q3["images"] == ["extinguisher.jpg"]

    r = _answer(pid, "q3", score=3)
    assert r.json()["answers"][2]["images"] == ["extinguisher.jpg"]

    r = client.put(f"/projects/{pid}/evaluation/answers/q3/notes", json={"notes": "One cylinder low"})
    assert r.json()["answers"][2]["notes"] == "One cylinder low"

    score = client.get(f"/projects/{pid}/evaluation/score").json()
    assert score["total_score"] == 25
    assert score["max_score"] == 35
    assert score["rating"] == "satisfactory"
    assert [c["category"] for c in score["categories"]] == ["ppe", "fire"]

    r = client.post(f"/projects/{pid}/evaluation/complete")
    assert r.status_code == 200
    done = r.json()
    assert done["project"]["is_completed"] is True
    assert done["project"]["final_score"] == pytest.approx(score["percentage"])
    assert done["evaluation"]["completed_at"] is not None

    r = _answer(pid, "q1", score=1)
    assert r.status_code == 409
    assert r.json()["error"] == "EVALUATION_LOCKED"

    r = client.get(f"/projects/{pid}/report")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert 'filename="Inspection_Report_Riverside_Block_C_' in r.headers["content-disposition"]
    assert r.headers["x-report-images-failed"] == "0"
    assert "PHOTOGRAPHIC REPORT AND FINDINGS" in r.text
    assert 'class="status-badge attention"' in r.text

    r = client.post(f"/projects/{pid}/evaluation/reopen")
    assert r.status_code == 200
    assert r.json()["project"]["final_score"] is None
    assert _answer(pid, "q1", score=4).status_code == 200

    actions = [e["action"] for e in client.get(f"/events/recent?project_id={pid}").json()]
    for expected in ("CREATE_PROJECT", "UPDATE_ANSWER", "COMPLETE_EVALUATION", "GENERATE_REPORT", "REOPEN_EVALUATION"):
        assert expected in actions


def test_report_blocked_until_complete(small_app):
    p = _create_project()
    _answer(p["id"], "q1", score=5)
    r = client.get(f"/projects/{p['id']}/report")
    assert r.status_code == 400
    assert "2 questions still unanswered" in r.json()["detail"]


def test_report_counts_failed_images(small_app):
    p = _create_project(logo="missing-logo.png")
    pid = p["id"]
    _answer(pid, "q1", score=5, images=["missing-photo.jpg", "site.jpg"])
    _answer(pid, "q2", score=4)
    _answer(pid, "q3", score=2)

    r = client.get(f"/projects/{pid}/report")
    assert r.status_code == 200
    assert r.headers["x-report-images-failed"] == "2"
    assert 'src="missing-photo.jpg"' in r.text


def test_storage_failure_is_503(small_app):
    p = _create_project()
    with engine.begin() as conn:
        conn.execute(text("DROP TABLE evaluations"))
    r = _answer(p["id"], "q1", score=3)
    assert r.status_code == 503
    assert r.json()["error"] == "PERSISTENCE_ERROR"

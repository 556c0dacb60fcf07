from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from siteaudit import inspection
from siteaudit.engine.exceptions import EvaluationLockedError, NotFoundError, ValidationError
from siteaudit.engine.report import ReportCompiler
from siteaudit.engine.types import NOT_APPLICABLE, Answer, Evaluation
from siteaudit.stores import MemoryEvaluationStore, MemoryProjectStore

NOW = datetime(2024, 5, 2, 9, 0, tzinfo=timezone.utc)

PROJECT = {
    "name": " Harbor Depot ",
    "location": "Pier 4",
    "engineer": "Robin",
    "foreman": "Kai",
}


@pytest.fixture
def stores():
    evaluations = MemoryEvaluationStore()
    return MemoryProjectStore(evaluations), evaluations


def _answer_all(projects, evaluations, catalog, pid, score=5):
    for q in catalog.questions:
        inspection.update_answer(projects, evaluations, catalog, pid, q.id, score)


# -------------------------
# PROJECTS
# -------------------------
def test_create_project_trims_and_defaults(stores):
    projects, _ = stores
    p = inspection.create_project(projects, PROJECT, now=NOW)
    assert p.name == "Harbor Depot"
    assert p.evaluation_date == date(2024, 5, 2)
    assert p.description == ""
    assert not p.is_completed
    assert p.final_score is None
    assert projects.list() == [p]


@pytest.mark.parametrize("missing", ["name", "location", "engineer", "foreman"])
def test_create_project_requires_fields(stores, missing):
    projects, _ = stores
    data = dict(PROJECT, **{missing: "   "})
    with pytest.raises(ValidationError):
        inspection.create_project(projects, data)
    assert projects.list() == []


def test_update_project_rejects_blank_required(stores):
    projects, _ = stores
    p = inspection.create_project(projects, PROJECT, now=NOW)
    with pytest.raises(ValidationError):
        inspection.update_project(projects, p.id, {"engineer": ""})


def test_update_project_stamps_updated_at(stores):
    projects, _ = stores
    p = inspection.create_project(projects, PROJECT, now=NOW)
    updated = inspection.update_project(projects, p.id, {"location": "Pier 5", "id": "hijack"})
    assert updated.id == p.id
    assert updated.location == "Pier 5"
    assert updated.updated_at > NOW


def test_projects_listed_in_insertion_order(stores):
    projects, _ = stores
    ids = [inspection.create_project(projects, dict(PROJECT, name=f"P{i}")).id for i in range(3)]
    assert [p.id for p in projects.list()] == ids


def test_unknown_project_is_not_found(stores, small_catalog):
    projects, evaluations = stores
    with pytest.raises(NotFoundError):
        inspection.update_answer(projects, evaluations, small_catalog, "nope", "q1", 3)


def test_delete_project_cascades(stores, small_catalog):
    projects, evaluations = stores
    p = inspection.create_project(projects, PROJECT)
    inspection.update_answer(projects, evaluations, small_catalog, p.id, "q1", 4)
    inspection.delete_project(projects, p.id)
    assert projects.get(p.id) is None
    assert evaluations.get(p.id) is None


# -------------------------
# ANSWERS
# -------------------------
def test_update_answer_persists_aggregates(stores, small_catalog):
    projects, evaluations = stores
    p = inspection.create_project(projects, PROJECT)
    ev = inspection.update_answer(projects, evaluations, small_catalog, p.id, "q1", 5)
    assert (ev.total_score, ev.max_score) == (10, 50)
    assert evaluations.get(p.id) == ev


def test_stale_catalog_aggregates_are_recomputed_on_load(stores, small_catalog):
    projects, evaluations = stores
    p = inspection.create_project(projects, PROJECT)
    evaluations.save(Evaluation(
        project_id=p.id,
        answers=(Answer("q1", 5),),
        total_score=999,
        max_score=1,
        percentage=99.0,
        catalog_version="old",
    ))

    ev = inspection.load_evaluation(evaluations, small_catalog, p.id)
    assert (ev.total_score, ev.max_score) == (10, 50)
    assert ev.percentage == pytest.approx(20.0)
    assert ev.catalog_version == "test-v1"


def test_completed_evaluation_keeps_figures_under_new_catalog(stores, small_catalog):
    projects, evaluations = stores
    p = inspection.create_project(projects, PROJECT)
    stored = Evaluation(
        project_id=p.id,
        answers=(Answer("q1", 5), Answer("q2", 5), Answer("q3", 5)),
        total_score=40,
        max_score=40,
        percentage=100.0,
        completed_at=NOW,
        catalog_version="old",
    )
    evaluations.save(stored)
    assert inspection.load_evaluation(evaluations, small_catalog, p.id) == stored


def test_update_answer_rejects_bad_input(stores, small_catalog):
    projects, evaluations = stores
    p = inspection.create_project(projects, PROJECT)
    with pytest.raises(ValidationError):
        inspection.update_answer(projects, evaluations, small_catalog, p.id, "q1", 0)
    with pytest.raises(ValidationError):
        inspection.update_answer(projects, evaluations, small_catalog, p.id, "zzz", 3)
    assert evaluations.get(p.id) is None


def test_update_answer_keeps_notes_and_images(stores, small_catalog):
    projects, evaluations = stores
    p = inspection.create_project(projects, PROJECT)
    inspection.update_answer(projects, evaluations, small_catalog, p.id, "q1", 2, notes="loose rail", images=("a.jpg",))
    ev = inspection.update_answer(projects, evaluations, small_catalog, p.id, "q1", NOT_APPLICABLE)
    a = ev.answer_for("q1")
    assert a.is_not_applicable
    assert a.notes == "loose rail"
    assert a.images == ("a.jpg",)


def test_attach_image_appends_and_defaults_score(stores, small_catalog):
    projects, evaluations = stores
    p = inspection.create_project(projects, PROJECT)
    inspection.attach_image(projects, evaluations, small_catalog, p.id, "q2", "one.jpg")
    ev = inspection.attach_image(projects, evaluations, small_catalog, p.id, "q2", "two.jpg")
    a = ev.answer_for("q2")
    assert a.score == inspection.PHOTO_DEFAULT_SCORE
    assert a.images == ("one.jpg", "two.jpg")


def test_set_notes_requires_answer(stores, small_catalog):
    projects, evaluations = stores
    p = inspection.create_project(projects, PROJECT)
    with pytest.raises(ValidationError):
        inspection.set_notes(projects, evaluations, small_catalog, p.id, "q1", "hello")
    inspection.update_answer(projects, evaluations, small_catalog, p.id, "q1", 3)
    ev = inspection.set_notes(projects, evaluations, small_catalog, p.id, "q1", "hello")
    assert ev.answer_for("q1").notes == "hello"
    assert ev.answer_for("q1").score == 3


# -------------------------
# COMPLETION
# -------------------------
def test_complete_requires_every_question(stores, small_catalog):
    projects, evaluations = stores
    p = inspection.create_project(projects, PROJECT)
    inspection.update_answer(projects, evaluations, small_catalog, p.id, "q1", 5)
    with pytest.raises(ValidationError) as exc:
        inspection.complete_evaluation(projects, evaluations, small_catalog, p.id)
    assert "2 questions still unanswered" in exc.value.message
    assert not projects.get(p.id).is_completed


def test_complete_snapshots_final_score_and_locks(stores, small_catalog):
    projects, evaluations = stores
    p = inspection.create_project(projects, PROJECT)
    inspection.update_answer(projects, evaluations, small_catalog, p.id, "q1", 5)
    inspection.update_answer(projects, evaluations, small_catalog, p.id, "q2", NOT_APPLICABLE)
    inspection.update_answer(projects, evaluations, small_catalog, p.id, "q3", 3)

    project, ev = inspection.complete_evaluation(projects, evaluations, small_catalog, p.id, now=NOW)
    assert ev.completed_at == NOW
    assert project.is_completed
    assert project.final_score == pytest.approx(ev.percentage)
    # (10 + 15) / (10 + 25)
    assert ev.percentage == pytest.approx(71.4285714)

    with pytest.raises(EvaluationLockedError):
        inspection.update_answer(projects, evaluations, small_catalog, p.id, "q3", 5)
    with pytest.raises(EvaluationLockedError):
        inspection.attach_image(projects, evaluations, small_catalog, p.id, "q3", "late.jpg")

    again, ev2 = inspection.complete_evaluation(projects, evaluations, small_catalog, p.id, now=datetime.now(timezone.utc))
    assert ev2.completed_at == NOW
    assert again.final_score == project.final_score


def test_reopen_clears_snapshot_and_unlocks(stores, small_catalog):
    projects, evaluations = stores
    p = inspection.create_project(projects, PROJECT)
    _answer_all(projects, evaluations, small_catalog, p.id, score=4)
    inspection.complete_evaluation(projects, evaluations, small_catalog, p.id)

    project, ev = inspection.reopen_evaluation(projects, evaluations, small_catalog, p.id)
    assert not ev.is_completed
    assert not project.is_completed
    assert project.final_score is None

    ev = inspection.update_answer(projects, evaluations, small_catalog, p.id, "q1", 1)
    assert ev.answer_for("q1").score == 1


# -------------------------
# REPORT
# -------------------------
def test_generate_report_requires_completeness(stores, small_catalog):
    projects, evaluations = stores
    p = inspection.create_project(projects, PROJECT)
    compiler = ReportCompiler(small_catalog, lambda ref: ref)
    with pytest.raises(ValidationError):
        inspection.generate_report(projects, evaluations, small_catalog, compiler, p.id)


def test_generate_report_after_all_answers(stores, small_catalog):
    projects, evaluations = stores
    p = inspection.create_project(projects, PROJECT)
    _answer_all(projects, evaluations, small_catalog, p.id)
    compiler = ReportCompiler(small_catalog, lambda ref: ref)
    report = inspection.generate_report(projects, evaluations, small_catalog, compiler, p.id, generated_at=NOW)
    assert report.filename == "Inspection_Report_Harbor_Depot_2024-05-02.html"
    assert "100.000" in report.html


def test_parse_score():
    assert inspection.parse_score(None, True) is NOT_APPLICABLE
    assert inspection.parse_score(4, False) == 4
    with pytest.raises(ValidationError):
        inspection.parse_score(None, False)

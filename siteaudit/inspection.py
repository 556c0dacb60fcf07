# siteaudit/inspection.py
"""
Inspection workflow: what the field app does when an engineer answers,
finishes or prints an inspection. Each function is one compute-then-persist
step over the project/evaluation stores; a failed save leaves nothing
half-written in memory and the same call can simply be retried.
"""
from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, Tuple

from .engine.catalog import QuestionCatalog
from .engine.evaluation import apply_answer, mark_completed, new_evaluation, recompute, reopen
from .engine.exceptions import EvaluationLockedError, NotFoundError, ValidationError
from .engine.report import CompiledReport, ReportCompiler
from .engine.scoring import is_valid_score, missing_questions
from .engine.types import NOT_APPLICABLE, Answer, Evaluation, Project, Score
from .logging_config import log_event, log_report
from .stores import EvaluationStore, ProjectStore

REQUIRED_PROJECT_FIELDS = (
    ("name", "Project name is required"),
    ("location", "Location is required"),
    ("engineer", "Engineer name is required"),
    ("foreman", "Foreman name is required"),
)

EDITABLE_PROJECT_FIELDS = (
    "name", "location", "description", "engineer", "foreman",
    "evaluation_date", "logo", "client_logo",
)

# Score given to a question that gets a photo before it gets an answer
PHOTO_DEFAULT_SCORE = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _clean(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _check_required(fields: Dict[str, Any]) -> None:
    for key, message in REQUIRED_PROJECT_FIELDS:
        if key in fields and not (fields[key] or "").strip():
            raise ValidationError(message)


# -------------------------
# PROJECTS
# -------------------------
def get_project(projects: ProjectStore, project_id: str) -> Project:
    project = projects.get(project_id)
    if project is None:
        raise NotFoundError(f"Project {project_id} not found")
    return project


def create_project(projects: ProjectStore, data: Dict[str, Any], now: Optional[datetime] = None) -> Project:
    fields = {k: _clean(data.get(k)) for k in EDITABLE_PROJECT_FIELDS}
    for key, message in REQUIRED_PROJECT_FIELDS:
        if not fields.get(key):
            raise ValidationError(message)

    now = now or _utcnow()
    project = Project(
        id=str(uuid.uuid4()),
        name=fields["name"],
        location=fields["location"],
        description=fields.get("description") or "",
        engineer=fields["engineer"],
        foreman=fields["foreman"],
        evaluation_date=fields.get("evaluation_date") or now.date(),
        created_at=now,
        updated_at=now,
        is_completed=False,
        logo=fields.get("logo") or None,
        client_logo=fields.get("client_logo") or None,
    )
    project = projects.save(project)
    log_event("CREATE_PROJECT", "Project created", {"project_id": project.id})
    return project


def update_project(projects: ProjectStore, project_id: str, changes: Dict[str, Any]) -> Project:
    project = get_project(projects, project_id)
    fields = {k: _clean(v) for k, v in changes.items() if k in EDITABLE_PROJECT_FIELDS}
    _check_required(fields)
    if "evaluation_date" in fields and not isinstance(fields["evaluation_date"], date):
        raise ValidationError("Evaluation date is required")
    if "description" in fields:
        fields["description"] = fields["description"] or ""
    for key in ("logo", "client_logo"):
        if key in fields:
            fields[key] = fields[key] or None

    project = projects.save(replace(project, **fields))
    log_event("UPDATE_PROJECT", "Project updated", {"project_id": project_id, "fields": sorted(fields)})
    return project


def delete_project(projects: ProjectStore, project_id: str) -> None:
    get_project(projects, project_id)
    projects.delete(project_id)
    log_event("DELETE_PROJECT", "Project and evaluation deleted", {"project_id": project_id})


# -------------------------
# EVALUATION
# -------------------------
def load_evaluation(evaluations: EvaluationStore, catalog: QuestionCatalog, project_id: str) -> Evaluation:
    """
    Stored evaluation, or an empty one. An empty one is persisted with its first answer.

    An open evaluation saved under another catalog version gets its aggregates
    recomputed against the current catalog. A completed one keeps the figures
    its final score was taken from.
    """
    evaluation = evaluations.get(project_id)
    if evaluation is None:
        return new_evaluation(catalog, project_id)
    if evaluation.catalog_version != catalog.version and not evaluation.is_completed:
        log_event("RECOMPUTE_EVALUATION", "Aggregates recomputed for current catalog", {
            "project_id": project_id,
            "stored_catalog": evaluation.catalog_version,
            "catalog": catalog.version,
        })
        evaluation = recompute(catalog, evaluation)
    return evaluation


def _editable_evaluation(
    projects: ProjectStore, evaluations: EvaluationStore, catalog: QuestionCatalog, project_id: str
) -> Evaluation:
    get_project(projects, project_id)
    evaluation = load_evaluation(evaluations, catalog, project_id)
    if evaluation.is_completed:
        raise EvaluationLockedError("Evaluation is completed. Reopen it before changing answers.")
    return evaluation


def _check_question(catalog: QuestionCatalog, question_id: str) -> None:
    if catalog.get(question_id) is None:
        raise ValidationError(f"Unknown question: {question_id}")


def _save_answer(
    evaluations: EvaluationStore, catalog: QuestionCatalog, evaluation: Evaluation, answer: Answer
) -> Evaluation:
    updated = evaluations.save(apply_answer(catalog, evaluation, answer))
    log_event("UPDATE_ANSWER", "Answer saved", {
        "project_id": updated.project_id,
        "question_id": answer.question_id,
        "score": "N/A" if answer.is_not_applicable else answer.score,
        "percentage": round(updated.percentage, 3),
    })
    return updated


def update_answer(
    projects: ProjectStore,
    evaluations: EvaluationStore,
    catalog: QuestionCatalog,
    project_id: str,
    question_id: str,
    score: Score,
    notes: Optional[str] = None,
    images: Optional[Tuple[str, ...]] = None,
) -> Evaluation:
    """
    Record the answer for one question (last write wins) and persist it with
    recomputed aggregates. notes/images left as None keep the current values.
    """
    _check_question(catalog, question_id)
    if not is_valid_score(score):
        raise ValidationError("Score must be an integer from 1 to 5 or N/A")

    evaluation = _editable_evaluation(projects, evaluations, catalog, project_id)
    existing = evaluation.answer_for(question_id)
    answer = Answer(
        question_id=question_id,
        score=score,
        notes=notes if notes is not None else (existing.notes if existing else None),
        images=tuple(images) if images is not None else (existing.images if existing else ()),
    )
    return _save_answer(evaluations, catalog, evaluation, answer)


def set_notes(
    projects: ProjectStore,
    evaluations: EvaluationStore,
    catalog: QuestionCatalog,
    project_id: str,
    question_id: str,
    notes: str,
) -> Evaluation:
    _check_question(catalog, question_id)
    evaluation = _editable_evaluation(projects, evaluations, catalog, project_id)
    existing = evaluation.answer_for(question_id)
    if existing is None:
        raise ValidationError("Answer the question before adding notes")
    return _save_answer(evaluations, catalog, evaluation, replace(existing, notes=notes))


def attach_image(
    projects: ProjectStore,
    evaluations: EvaluationStore,
    catalog: QuestionCatalog,
    project_id: str,
    question_id: str,
    image_ref: str,
) -> Evaluation:
    """Append a photo reference. Earlier photos are never dropped."""
    _check_question(catalog, question_id)
    image_ref = (image_ref or "").strip()
    if not image_ref:
        raise ValidationError("Image reference is required")

    evaluation = _editable_evaluation(projects, evaluations, catalog, project_id)
    existing = evaluation.answer_for(question_id)
    if existing is None:
        answer = Answer(question_id=question_id, score=PHOTO_DEFAULT_SCORE, images=(image_ref,))
    else:
        answer = replace(existing, images=existing.images + (image_ref,))
    return _save_answer(evaluations, catalog, evaluation, answer)


def _require_complete(catalog: QuestionCatalog, evaluation: Evaluation, action: str) -> None:
    missing = missing_questions(catalog, evaluation.answers)
    if missing:
        noun = "question" if len(missing) == 1 else "questions"
        raise ValidationError(f"Evaluation incomplete: {len(missing)} {noun} still unanswered. Answer all questions before {action}.")


def complete_evaluation(
    projects: ProjectStore,
    evaluations: EvaluationStore,
    catalog: QuestionCatalog,
    project_id: str,
    now: Optional[datetime] = None,
) -> Tuple[Project, Evaluation]:
    """
    Stamp completion and copy the percentage onto the project as its final
    score. Calling it again on a completed evaluation only re-syncs a project
    snapshot that a previous failed save left behind.
    """
    project = get_project(projects, project_id)
    evaluation = load_evaluation(evaluations, catalog, project_id)

    if not evaluation.is_completed:
        _require_complete(catalog, evaluation, "finishing the inspection")
        evaluation = evaluations.save(mark_completed(evaluation, now or _utcnow()))
        log_event("COMPLETE_EVALUATION", "Evaluation completed", {
            "project_id": project_id,
            "percentage": round(evaluation.percentage, 3),
        })

    if not project.is_completed or project.final_score != evaluation.percentage:
        project = projects.save(replace(project, is_completed=True, final_score=evaluation.percentage))
    return project, evaluation


def reopen_evaluation(
    projects: ProjectStore,
    evaluations: EvaluationStore,
    catalog: QuestionCatalog,
    project_id: str,
) -> Tuple[Project, Evaluation]:
    project = get_project(projects, project_id)
    evaluation = load_evaluation(evaluations, catalog, project_id)
    if evaluation.is_completed:
        evaluation = evaluations.save(reopen(evaluation))
        log_event("REOPEN_EVALUATION", "Evaluation reopened", {"project_id": project_id})
    if project.is_completed or project.final_score is not None:
        project = projects.save(replace(project, is_completed=False, final_score=None))
    return project, evaluation


# -------------------------
# REPORT
# -------------------------
def generate_report(
    projects: ProjectStore,
    evaluations: EvaluationStore,
    catalog: QuestionCatalog,
    compiler: ReportCompiler,
    project_id: str,
    generated_at: Optional[datetime] = None,
) -> CompiledReport:
    project = get_project(projects, project_id)
    evaluation = load_evaluation(evaluations, catalog, project_id)
    _require_complete(catalog, evaluation, "generating the report")

    report = compiler.compile(project, evaluation, generated_at=generated_at)
    log_report(project_id, report.images.total, len(report.images.failed))
    return report


def parse_score(value: Optional[int], not_applicable: bool) -> Score:
    if not_applicable:
        return NOT_APPLICABLE
    if value is None:
        raise ValidationError("Provide a score from 1 to 5 or mark the question N/A")
    return value

# siteaudit/stores.py
from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .engine.exceptions import PersistenceError
from .engine.types import NOT_APPLICABLE, Answer, Evaluation, Project
from .logging_config import log_failure


class ProjectStore(Protocol):
    def list(self) -> List[Project]: ...
    def get(self, project_id: str) -> Optional[Project]: ...
    def save(self, project: Project) -> Project: ...
    def delete(self, project_id: str) -> None: ...


class EvaluationStore(Protocol):
    def get(self, project_id: str) -> Optional[Evaluation]: ...
    def save(self, evaluation: Evaluation) -> Evaluation: ...
    def delete(self, project_id: str) -> None: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# -------------------------
# (de)serialization
# -------------------------
def answer_to_dict(a: Answer) -> dict:
    return {
        "question_id": a.question_id,
        # null is the stored form of N/A; a missing answer has no entry at all
        "score": None if a.is_not_applicable else a.score,
        "notes": a.notes,
        "images": list(a.images),
    }


def answer_from_dict(d: dict) -> Answer:
    score = d.get("score")
    return Answer(
        question_id=str(d["question_id"]),
        score=NOT_APPLICABLE if score is None else int(score),
        notes=d.get("notes"),
        images=tuple(d.get("images") or ()),
    )


def project_from_record(r: models.ProjectRecord) -> Project:
    return Project(
        id=r.id,
        name=r.name,
        location=r.location,
        description=r.description or "",
        engineer=r.engineer,
        foreman=r.foreman,
        evaluation_date=r.evaluation_date,
        created_at=r.created_at,
        updated_at=r.updated_at,
        is_completed=bool(r.is_completed),
        final_score=r.final_score,
        logo=r.logo,
        client_logo=r.client_logo,
    )


def evaluation_from_record(r: models.EvaluationRecord) -> Evaluation:
    return Evaluation(
        project_id=r.project_id,
        answers=tuple(answer_from_dict(d) for d in (r.answers or [])),
        total_score=r.total_score or 0,
        max_score=r.max_score or 0,
        percentage=r.percentage or 0.0,
        completed_at=r.completed_at,
        catalog_version=r.catalog_version,
    )


# -------------------------
# SQLAlchemy stores
# -------------------------
class _SqlStore:
    def __init__(self, db: Session):
        self.db = db

    def _fail(self, stage: str, e: Exception, context: dict) -> PersistenceError:
        self.db.rollback()
        log_failure("PERSISTENCE_FAILED", {"stage": stage, "error": str(e), **context})
        return PersistenceError(f"Storage failure during {stage}. Please try again.")


class SqlProjectStore(_SqlStore):
    def list(self) -> List[Project]:
        try:
            rows = (
                self.db.query(models.ProjectRecord)
                .order_by(models.ProjectRecord.seq.asc(), models.ProjectRecord.created_at.asc())
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail("list_projects", e, {}) from e
        return [project_from_record(r) for r in rows]

    def get(self, project_id: str) -> Optional[Project]:
        try:
            r = self.db.get(models.ProjectRecord, project_id)
        except SQLAlchemyError as e:
            raise self._fail("get_project", e, {"project_id": project_id}) from e
        return project_from_record(r) if r else None

    def save(self, project: Project) -> Project:
        """Upsert by id. Updating an existing project stamps updated_at."""
        try:
            r = self.db.get(models.ProjectRecord, project.id)
            if r is None:
                next_seq = (self.db.query(func.max(models.ProjectRecord.seq)).scalar() or 0) + 1
                r = models.ProjectRecord(id=project.id, seq=next_seq, created_at=project.created_at)
                self.db.add(r)
                updated_at = project.updated_at
            else:
                updated_at = _utcnow()

            r.name = project.name
            r.location = project.location
            r.description = project.description or ""
            r.engineer = project.engineer
            r.foreman = project.foreman
            r.evaluation_date = project.evaluation_date
            r.is_completed = project.is_completed
            r.final_score = project.final_score
            r.logo = project.logo
            r.client_logo = project.client_logo
            r.updated_at = updated_at
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("save_project", e, {"project_id": project.id}) from e
        return replace(project, updated_at=updated_at)

    def delete(self, project_id: str) -> None:
        try:
            # evaluation goes in the same commit
            for model in (models.EvaluationRecord, models.ProjectRecord):
                r = self.db.get(model, project_id)
                if r is not None:
                    self.db.delete(r)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("delete_project", e, {"project_id": project_id}) from e


class SqlEvaluationStore(_SqlStore):
    def get(self, project_id: str) -> Optional[Evaluation]:
        try:
            r = self.db.get(models.EvaluationRecord, project_id)
        except SQLAlchemyError as e:
            raise self._fail("get_evaluation", e, {"project_id": project_id}) from e
        return evaluation_from_record(r) if r else None

    def save(self, evaluation: Evaluation) -> Evaluation:
        try:
            r = self.db.get(models.EvaluationRecord, evaluation.project_id)
            if r is None:
                r = models.EvaluationRecord(project_id=evaluation.project_id)
                self.db.add(r)

            r.answers = [answer_to_dict(a) for a in evaluation.answers]
            r.total_score = evaluation.total_score
            r.max_score = evaluation.max_score
            r.percentage = evaluation.percentage
            r.completed_at = evaluation.completed_at
            r.catalog_version = evaluation.catalog_version
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("save_evaluation", e, {"project_id": evaluation.project_id}) from e
        return evaluation

    def delete(self, project_id: str) -> None:
        try:
            r = self.db.get(models.EvaluationRecord, project_id)
            if r is not None:
                self.db.delete(r)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("delete_evaluation", e, {"project_id": project_id}) from e


# -------------------------
# In-memory stores
# -------------------------
class MemoryEvaluationStore:
    def __init__(self):
        self.items: Dict[str, Evaluation] = {}

    def get(self, project_id: str) -> Optional[Evaluation]:
        return self.items.get(project_id)

    def save(self, evaluation: Evaluation) -> Evaluation:
        self.items[evaluation.project_id] = evaluation
        return evaluation

    def delete(self, project_id: str) -> None:
        self.items.pop(project_id, None)


class MemoryProjectStore:
    def __init__(self, evaluations: MemoryEvaluationStore | None = None):
        # dicts keep insertion order, which is the list() order
        self.items: Dict[str, Project] = {}
        self.evaluations = evaluations

    def list(self) -> List[Project]:
        return list(self.items.values())

    def get(self, project_id: str) -> Optional[Project]:
        return self.items.get(project_id)

    def save(self, project: Project) -> Project:
        if project.id in self.items:
            project = replace(project, updated_at=_utcnow())
        self.items[project.id] = project
        return project

    def delete(self, project_id: str) -> None:
        self.items.pop(project_id, None)
        if self.evaluations is not None:
            self.evaluations.delete(project_id)

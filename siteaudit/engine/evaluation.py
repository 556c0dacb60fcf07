# siteaudit/engine/evaluation.py
from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from .catalog import QuestionCatalog
from .scoring import compute_score, upsert_answer
from .types import Answer, Evaluation


def recompute(catalog: QuestionCatalog, evaluation: Evaluation) -> Evaluation:
    s = compute_score(catalog, evaluation.answers)
    return replace(
        evaluation,
        total_score=s.total_score,
        max_score=s.max_score,
        percentage=s.percentage,
        catalog_version=catalog.version,
    )


def new_evaluation(catalog: QuestionCatalog, project_id: str) -> Evaluation:
    return recompute(catalog, Evaluation(project_id=project_id))


def apply_answer(catalog: QuestionCatalog, evaluation: Evaluation, answer: Answer) -> Evaluation:
    """Upsert one answer and return a new evaluation with fresh aggregates."""
    return recompute(catalog, replace(evaluation, answers=upsert_answer(evaluation.answers, answer)))


def mark_completed(evaluation: Evaluation, now: datetime) -> Evaluation:
    return replace(evaluation, completed_at=now)


def reopen(evaluation: Evaluation) -> Evaluation:
    return replace(evaluation, completed_at=None)

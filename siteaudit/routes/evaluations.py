# siteaudit/routes/evaluations.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import inspection, models, schemas
from ..db import get_db
from ..engine.catalog import QuestionCatalog
from ..engine.scoring import category_scores, missing_questions, score_rating
from ..engine.types import Evaluation
from ..stores import SqlEvaluationStore, SqlProjectStore
from .deps import catalog_dep, evaluation_store, project_store, record_event

router = APIRouter(prefix="/projects/{project_id}/evaluation", tags=["evaluation"])


def _evaluation_out(catalog: QuestionCatalog, evaluation: Evaluation) -> schemas.EvaluationResponse:
    return schemas.EvaluationResponse.build(evaluation, missing_questions(catalog, evaluation.answers))


def _answer_event(db: Session, evaluation: Evaluation, question_id: str) -> None:
    answer = evaluation.answer_for(question_id)
    record_event(db, models.ActionEnum.UPDATE_ANSWER, evaluation.project_id, {
        "question_id": question_id,
        "score": "N/A" if answer.is_not_applicable else answer.score,
        "images": len(answer.images),
        "percentage": round(evaluation.percentage, 3),
    })


@router.get("", response_model=schemas.EvaluationResponse)
def get_evaluation(
    project_id: str,
    projects: SqlProjectStore = Depends(project_store),
    evaluations: SqlEvaluationStore = Depends(evaluation_store),
    catalog: QuestionCatalog = Depends(catalog_dep),
):
    inspection.get_project(projects, project_id)
    evaluation = inspection.load_evaluation(evaluations, catalog, project_id)
    return _evaluation_out(catalog, evaluation)


@router.get("/score", response_model=schemas.ScoreResponse)
def get_score(
    project_id: str,
    projects: SqlProjectStore = Depends(project_store),
    evaluations: SqlEvaluationStore = Depends(evaluation_store),
    catalog: QuestionCatalog = Depends(catalog_dep),
):
    inspection.get_project(projects, project_id)
    evaluation = inspection.load_evaluation(evaluations, catalog, project_id)
    return schemas.ScoreResponse(
        project_id=project_id,
        total_score=evaluation.total_score,
        max_score=evaluation.max_score,
        percentage=evaluation.percentage,
        rating=score_rating(evaluation.percentage),
        categories=[
            schemas.CategoryScoreOut.model_validate(c)
            for c in category_scores(catalog, evaluation.answers)
        ],
    )


@router.put("/answers/{question_id}", response_model=schemas.EvaluationResponse)
def put_answer(
    project_id: str,
    question_id: str,
    payload: schemas.AnswerIn,
    projects: SqlProjectStore = Depends(project_store),
    evaluations: SqlEvaluationStore = Depends(evaluation_store),
    catalog: QuestionCatalog = Depends(catalog_dep),
    db: Session = Depends(get_db),
):
    score = inspection.parse_score(payload.score, payload.not_applicable)
    evaluation = inspection.update_answer(
        projects, evaluations, catalog, project_id, question_id, score,
        notes=payload.notes,
        images=tuple(payload.images) if payload.images is not None else None,
    )
    _answer_event(db, evaluation, question_id)
    return _evaluation_out(catalog, evaluation)


@router.put("/answers/{question_id}/notes", response_model=schemas.EvaluationResponse)
def put_notes(
    project_id: str,
    question_id: str,
    payload: schemas.NotesIn,
    projects: SqlProjectStore = Depends(project_store),
    evaluations: SqlEvaluationStore = Depends(evaluation_store),
    catalog: QuestionCatalog = Depends(catalog_dep),
    db: Session = Depends(get_db),
):
    evaluation = inspection.set_notes(projects, evaluations, catalog, project_id, question_id, payload.notes)
    _answer_event(db, evaluation, question_id)
    return _evaluation_out(catalog, evaluation)


@router.post("/answers/{question_id}/images", response_model=schemas.EvaluationResponse)
def post_image(
    project_id: str,
    question_id: str,
    payload: schemas.ImageIn,
    projects: SqlProjectStore = Depends(project_store),
    evaluations: SqlEvaluationStore = Depends(evaluation_store),
    catalog: QuestionCatalog = Depends(catalog_dep),
    db: Session = Depends(get_db),
):
    evaluation = inspection.attach_image(projects, evaluations, catalog, project_id, question_id, payload.image)
    _answer_event(db, evaluation, question_id)
    return _evaluation_out(catalog, evaluation)


@router.post("/complete", response_model=schemas.CompletionResponse)
def complete(
    project_id: str,
    projects: SqlProjectStore = Depends(project_store),
    evaluations: SqlEvaluationStore = Depends(evaluation_store),
    catalog: QuestionCatalog = Depends(catalog_dep),
    db: Session = Depends(get_db),
):
    project, evaluation = inspection.complete_evaluation(projects, evaluations, catalog, project_id)
    record_event(db, models.ActionEnum.COMPLETE_EVALUATION, project_id, {
        "percentage": round(evaluation.percentage, 3),
        "completed_at": evaluation.completed_at,
    })
    return schemas.CompletionResponse(
        project=schemas.ProjectResponse.model_validate(project),
        evaluation=_evaluation_out(catalog, evaluation),
    )


@router.post("/reopen", response_model=schemas.CompletionResponse)
def reopen(
    project_id: str,
    projects: SqlProjectStore = Depends(project_store),
    evaluations: SqlEvaluationStore = Depends(evaluation_store),
    catalog: QuestionCatalog = Depends(catalog_dep),
    db: Session = Depends(get_db),
):
    project, evaluation = inspection.reopen_evaluation(projects, evaluations, catalog, project_id)
    record_event(db, models.ActionEnum.REOPEN_EVALUATION, project_id, {})
    return schemas.CompletionResponse(
        project=schemas.ProjectResponse.model_validate(project),
        evaluation=_evaluation_out(catalog, evaluation),
    )

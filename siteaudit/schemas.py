# siteaudit/schemas.py
from __future__ import annotations

from datetime import date, datetime
from typing import Optional, List, Any

from pydantic import BaseModel, Field, ConfigDict, model_validator

from .engine.types import Answer, Evaluation


class ProjectCreate(BaseModel):
    name: str
    location: str
    engineer: str
    foreman: str
    description: str = ""
    evaluation_date: Optional[date] = None
    logo: Optional[str] = None
    client_logo: Optional[str] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    location: Optional[str] = None
    engineer: Optional[str] = None
    foreman: Optional[str] = None
    description: Optional[str] = None
    evaluation_date: Optional[date] = None
    logo: Optional[str] = None
    client_logo: Optional[str] = None


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    location: str
    description: str
    engineer: str
    foreman: str
    evaluation_date: date
    created_at: datetime
    updated_at: datetime
    is_completed: bool
    final_score: Optional[float] = None
    logo: Optional[str] = None
    client_logo: Optional[str] = None


class AnswerIn(BaseModel):
    score: Optional[int] = Field(None, ge=1, le=5)
    not_applicable: bool = False
    notes: Optional[str] = None
    images: Optional[List[str]] = None

    @model_validator(mode="after")
    def _one_of_score_or_na(self):
        if self.not_applicable and self.score is not None:
            raise ValueError("Send either a score or not_applicable, not both")
        if not self.not_applicable and self.score is None:
            raise ValueError("Provide a score from 1 to 5 or set not_applicable")
        return self


class NotesIn(BaseModel):
    notes: str


class ImageIn(BaseModel):
    image: str = Field(..., min_length=1, description="URI, file path or data URI")


class AnswerOut(BaseModel):
    question_id: str
    score: Optional[int] = None
    not_applicable: bool = False
    notes: Optional[str] = None
    images: List[str] = Field(default_factory=list)

    @classmethod
    def from_answer(cls, a: Answer) -> "AnswerOut":
        return cls(
            question_id=a.question_id,
            score=a.numeric_score,
            not_applicable=a.is_not_applicable,
            notes=a.notes,
            images=list(a.images),
        )


class EvaluationResponse(BaseModel):
    project_id: str
    answers: List[AnswerOut] = Field(default_factory=list)
    total_score: int
    max_score: int
    percentage: float
    completed_at: Optional[datetime] = None
    is_answerable_complete: bool = False
    missing_question_ids: List[str] = Field(default_factory=list)

    @classmethod
    def build(cls, evaluation: Evaluation, missing: List[str]) -> "EvaluationResponse":
        return cls(
            project_id=evaluation.project_id,
            answers=[AnswerOut.from_answer(a) for a in evaluation.answers],
            total_score=evaluation.total_score,
            max_score=evaluation.max_score,
            percentage=evaluation.percentage,
            completed_at=evaluation.completed_at,
            is_answerable_complete=not missing,
            missing_question_ids=missing,
        )


class CategoryScoreOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    index: int
    category: str
    name: str
    total_score: int
    max_score: int
    percentage: float


class ScoreResponse(BaseModel):
    project_id: str
    total_score: int
    max_score: int
    percentage: float
    rating: str
    categories: List[CategoryScoreOut] = Field(default_factory=list)


class CompletionResponse(BaseModel):
    project: ProjectResponse
    evaluation: EvaluationResponse


class QuestionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    category: str
    question: str
    weight: int


class CategoryOut(BaseModel):
    key: str
    name: str
    questions: List[QuestionOut] = Field(default_factory=list)


class CatalogResponse(BaseModel):
    version: str
    max_score: int
    categories: List[CategoryOut] = Field(default_factory=list)


class EventOut(BaseModel):
    id: int
    project_id: Optional[str] = None
    action: str
    actor_type: Optional[str] = None
    payload: Any = None
    created_at: Optional[datetime] = None

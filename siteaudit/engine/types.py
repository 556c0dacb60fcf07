# siteaudit/engine/types.py
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Tuple, Union


class NotApplicable(enum.Enum):
    """Explicit "does not apply to this site" answer. Distinct from no answer."""
    NA = "N/A"

    def __repr__(self) -> str:
        return "NOT_APPLICABLE"


NOT_APPLICABLE = NotApplicable.NA

Score = Union[int, NotApplicable]


class AnswerState(str, enum.Enum):
    UNANSWERED = "UNANSWERED"
    NOT_APPLICABLE = "NOT_APPLICABLE"
    SCORED = "SCORED"


@dataclass(frozen=True)
class Answer:
    question_id: str
    score: Score
    notes: str | None = None
    images: Tuple[str, ...] = ()

    @property
    def is_not_applicable(self) -> bool:
        return self.score is NOT_APPLICABLE

    @property
    def numeric_score(self) -> int | None:
        return None if self.is_not_applicable else self.score

    @property
    def has_notes(self) -> bool:
        return bool(self.notes and self.notes.strip())

    @property
    def has_images(self) -> bool:
        return len(self.images) > 0


@dataclass(frozen=True)
class Evaluation:
    project_id: str
    # insertion order is preserved; an upsert keeps the original position
    answers: Tuple[Answer, ...] = ()
    total_score: int = 0
    max_score: int = 0
    percentage: float = 0.0
    completed_at: datetime | None = None
    # catalog the aggregates were computed against
    catalog_version: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def answer_for(self, question_id: str) -> Answer | None:
        for a in self.answers:
            if a.question_id == question_id:
                return a
        return None


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    location: str
    engineer: str
    foreman: str
    evaluation_date: date
    created_at: datetime
    updated_at: datetime
    description: str = ""
    is_completed: bool = False
    final_score: float | None = None
    logo: str | None = None
    client_logo: str | None = None


@dataclass(frozen=True)
class ScoreResult:
    total_score: int
    max_score: int
    percentage: float


@dataclass(frozen=True)
class CategoryScore:
    index: int
    category: str
    name: str
    total_score: int
    max_score: int
    percentage: float
    question_ids: Tuple[str, ...] = field(default_factory=tuple)

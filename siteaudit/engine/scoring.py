# siteaudit/engine/scoring.py
from __future__ import annotations

from typing import Dict, Iterable, List, Sequence, Tuple

from .catalog import MAX_ANSWER_SCORE, QuestionCatalog, SafetyQuestion
from .types import (
    NOT_APPLICABLE,
    Answer,
    AnswerState,
    CategoryScore,
    NotApplicable,
    Score,
    ScoreResult,
)

MIN_ANSWER_SCORE = 1


def is_valid_score(score: object) -> bool:
    if score is NOT_APPLICABLE:
        return True
    # bool is an int subclass; a checkbox value is never a score
    return isinstance(score, int) and not isinstance(score, bool) and MIN_ANSWER_SCORE <= score <= MAX_ANSWER_SCORE


def latest_answers(answers: Iterable[Answer]) -> Dict[str, Answer]:
    """
    Collapse to one answer per question id. The last answer wins; the key
    keeps the position of the first answer for that question.
    """
    out: Dict[str, Answer] = {}
    for a in answers:
        out[a.question_id] = a
    return out


def upsert_answer(answers: Sequence[Answer], answer: Answer) -> Tuple[Answer, ...]:
    updated = list(answers)
    for i, existing in enumerate(updated):
        if existing.question_id == answer.question_id:
            updated[i] = answer
            return tuple(updated)
    updated.append(answer)
    return tuple(updated)


def answer_state(by_id: Dict[str, Answer], question_id: str) -> AnswerState:
    a = by_id.get(question_id)
    if a is None:
        return AnswerState.UNANSWERED
    if a.is_not_applicable:
        return AnswerState.NOT_APPLICABLE
    return AnswerState.SCORED


def _percentage(total: int, maximum: int) -> float:
    return (total / maximum) * 100 if maximum > 0 else 0.0


def _aggregate(questions: Iterable[SafetyQuestion], by_id: Dict[str, Answer]) -> Tuple[int, int]:
    total = 0
    maximum = 0
    for q in questions:
        state = answer_state(by_id, q.id)
        if state is AnswerState.NOT_APPLICABLE:
            # N/A leaves both numerator and denominator
            continue
        maximum += q.weight * MAX_ANSWER_SCORE
        if state is AnswerState.SCORED:
            total += by_id[q.id].score * q.weight
    return total, maximum


def compute_score(catalog: QuestionCatalog, answers: Iterable[Answer]) -> ScoreResult:
    """
    Weighted score over the whole catalog.

    Scored answers add score * weight to the total. Every catalog question adds
    weight * 5 to the maximum unless it is answered N/A. Unanswered questions
    stay in the maximum. Answers for ids outside the catalog are ignored.
    """
    by_id = latest_answers(answers)
    total, maximum = _aggregate(catalog.questions, by_id)
    return ScoreResult(total_score=total, max_score=maximum, percentage=_percentage(total, maximum))


def category_scores(catalog: QuestionCatalog, answers: Iterable[Answer]) -> List[CategoryScore]:
    by_id = latest_answers(answers)
    out: List[CategoryScore] = []
    for i, (key, name) in enumerate(catalog.categories):
        questions = catalog.in_category(key)
        total, maximum = _aggregate(questions, by_id)
        out.append(
            CategoryScore(
                index=i + 1,
                category=key,
                name=name,
                total_score=total,
                max_score=maximum,
                percentage=_percentage(total, maximum),
                question_ids=tuple(q.id for q in questions),
            )
        )
    return out


def missing_questions(catalog: QuestionCatalog, answers: Iterable[Answer]) -> List[str]:
    by_id = latest_answers(answers)
    return [q.id for q in catalog.questions if q.id not in by_id]


def is_answerable_complete(catalog: QuestionCatalog, answers: Iterable[Answer]) -> bool:
    """True when every catalog question has an answer entry, N/A included."""
    return not missing_questions(catalog, answers)


def score_rating(percentage: float) -> str:
    if percentage >= 80:
        return "excellent"
    if percentage >= 60:
        return "satisfactory"
    return "inadequate"


def compliance_badge(score: Score | None) -> str:
    """
    Photo appendix badge for a single answer.

    N/A (and a missing score) count as 0 and therefore read as non-compliant.
    """
    value = 0 if score is None or isinstance(score, NotApplicable) else score
    if value >= 4:
        return "compliant"
    if value >= 2:
        return "attention"
    return "non-compliant"

# siteaudit/engine/__init__.py
from .catalog import DEFAULT_CATALOG, QuestionCatalog, SafetyQuestion, get_catalog
from .types import NOT_APPLICABLE, Answer, AnswerState, Evaluation, Project
from .scoring import (
    category_scores,
    compliance_badge,
    compute_score,
    is_answerable_complete,
    missing_questions,
    score_rating,
)
from .images import ImageResolver, inline_images
from .report import CompiledReport, ReportCompiler

# siteaudit/models.py
from __future__ import annotations

import enum
import json
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    String,
    Enum as SAEnum,
    ForeignKey,
    DateTime,
    Date,
    Float,
    Boolean,
    Integer,
    Text,
)
from sqlalchemy.types import TypeDecorator, TEXT

from .db import Base


# -------------------------
# SQLite-safe JSON list
# -------------------------
class JsonList(TypeDecorator):
    impl = TEXT
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return "[]"
        if isinstance(value, (list, tuple)):
            return json.dumps(list(value), ensure_ascii=False)
        if isinstance(value, str):
            s = value.strip()
            return s if s else "[]"
        return "[]"

    def process_result_value(self, value, dialect):
        if not value:
            return []
        try:
            parsed = json.loads(value)
            return parsed if isinstance(parsed, list) else []
        except ValueError:
            return []


class ActionEnum(str, enum.Enum):
    CREATE_PROJECT = "CREATE_PROJECT"
    UPDATE_PROJECT = "UPDATE_PROJECT"
    DELETE_PROJECT = "DELETE_PROJECT"
    UPDATE_ANSWER = "UPDATE_ANSWER"
    COMPLETE_EVALUATION = "COMPLETE_EVALUATION"
    REOPEN_EVALUATION = "REOPEN_EVALUATION"
    GENERATE_REPORT = "GENERATE_REPORT"
    FAILURE_LOG = "FAILURE_LOG"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProjectRecord(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True)
    # insertion order for list(); created_at alone can tie within one clock tick
    seq = Column(Integer, nullable=False, default=0, index=True)

    name = Column(String, nullable=False)
    location = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    engineer = Column(String, nullable=False)
    foreman = Column(String, nullable=False)
    evaluation_date = Column(Date, nullable=False)

    # Completion snapshot, written once the evaluation completes
    is_completed = Column(Boolean, nullable=False, default=False)
    final_score = Column(Float, nullable=True)

    # Image references (URI, path or data URI)
    logo = Column(Text, nullable=True)
    client_logo = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class EvaluationRecord(Base):
    __tablename__ = "evaluations"

    # one evaluation per project
    project_id = Column(String, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True)

    # [{"question_id", "score" (null = N/A), "notes", "images"}], answer order kept
    answers = Column(JsonList, default=list, nullable=False)

    # aggregates are always written together with answers
    total_score = Column(Integer, nullable=False, default=0)
    max_score = Column(Integer, nullable=False, default=0)
    percentage = Column(Float, nullable=False, default=0.0)

    completed_at = Column(DateTime(timezone=True), nullable=True)
    catalog_version = Column(String, nullable=True)


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True)

    project_id = Column(String, nullable=True, index=True)
    action = Column(SAEnum(ActionEnum), nullable=False)
    actor_type = Column(String, default="SYSTEM")
    payload = Column(Text, default="{}")

    app_version = Column(String, default="dev")

    created_at = Column(DateTime(timezone=True), default=_utcnow)

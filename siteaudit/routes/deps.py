# siteaudit/routes/deps.py
from __future__ import annotations

import json
from datetime import timezone, tzinfo
from zoneinfo import ZoneInfo

from fastapi import Depends
from sqlalchemy.orm import Session

from .. import models
from ..db import get_db
from ..engine.catalog import QuestionCatalog, get_catalog
from ..engine.images import ImageResolver
from ..engine.report import ReportCompiler
from ..logging_config import log_failure
from ..settings import get_settings
from ..stores import SqlEvaluationStore, SqlProjectStore

settings = get_settings()


# -------------------------
# DEPENDENCIES (overridable in tests)
# -------------------------
def catalog_dep() -> QuestionCatalog:
    return get_catalog()


def resolver_dep() -> ImageResolver:
    return ImageResolver(
        timeout=settings.IMAGE_FETCH_TIMEOUT_SECONDS,
        max_bytes=settings.IMAGE_MAX_BYTES,
    )


def report_timezone() -> tzinfo:
    name = settings.REPORT_TIMEZONE.strip()
    # UTC needs no tz database on the host
    return timezone.utc if name.upper() == "UTC" else ZoneInfo(name)


def compiler_dep(
    catalog: QuestionCatalog = Depends(catalog_dep),
    resolver: ImageResolver = Depends(resolver_dep),
) -> ReportCompiler:
    return ReportCompiler(
        catalog,
        resolver,
        date_format=settings.REPORT_DATE_FORMAT,
        datetime_format=settings.REPORT_DATETIME_FORMAT,
        tz=report_timezone(),
    )


def project_store(db: Session = Depends(get_db)) -> SqlProjectStore:
    return SqlProjectStore(db)


def evaluation_store(db: Session = Depends(get_db)) -> SqlEvaluationStore:
    return SqlEvaluationStore(db)


# -------------------------
# EVENTS / FAILURE LOGGING
# -------------------------
def record_event(db: Session, action: models.ActionEnum, project_id: str | None, payload: dict):
    evt = models.Event(
        project_id=project_id,
        action=action,
        actor_type="SYSTEM",
        payload=json.dumps(payload, ensure_ascii=False, default=str),
        app_version=settings.APP_VERSION,
    )
    db.add(evt)
    db.commit()


def record_failure(
    db: Session,
    stage: str,
    error: Exception | str,
    project_id: str | None = None,
    error_code: str = "INTERNAL_FALLBACK",
) -> str:
    payload = log_failure(error_code, {"stage": stage, "error": str(error), "project_id": project_id})
    evt = models.Event(
        project_id=project_id,
        action=models.ActionEnum.FAILURE_LOG,
        actor_type="SYSTEM",
        payload=json.dumps(payload, ensure_ascii=False, default=str),
        app_version=settings.APP_VERSION,
    )
    db.add(evt)
    db.commit()
    db.refresh(evt)
    return str(evt.id)

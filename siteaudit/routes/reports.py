# siteaudit/routes/reports.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from .. import inspection, models
from ..db import get_db
from ..engine.catalog import QuestionCatalog
from ..engine.exceptions import ReportCompilationError
from ..engine.report import ReportCompiler
from ..stores import SqlEvaluationStore, SqlProjectStore
from .deps import catalog_dep, compiler_dep, evaluation_store, project_store, record_event, record_failure

router = APIRouter(prefix="/projects", tags=["reports"])


@router.get("/{project_id}/report", response_class=HTMLResponse)
def get_report(
    project_id: str,
    projects: SqlProjectStore = Depends(project_store),
    evaluations: SqlEvaluationStore = Depends(evaluation_store),
    catalog: QuestionCatalog = Depends(catalog_dep),
    compiler: ReportCompiler = Depends(compiler_dep),
    db: Session = Depends(get_db),
):
    try:
        report = inspection.generate_report(projects, evaluations, catalog, compiler, project_id)
    except ReportCompilationError as e:
        record_failure(db, "compile_report", e, project_id=project_id, error_code=e.error_code)
        raise

    failed = report.images.failed
    record_event(db, models.ActionEnum.GENERATE_REPORT, project_id, {
        "filename": report.filename,
        "images_total": report.images.total,
        "images_failed": [r.ref[:200] for r in failed],
    })
    return HTMLResponse(
        content=report.html,
        headers={
            "Content-Disposition": f'attachment; filename="{report.filename}"',
            "X-Report-Images-Failed": str(len(failed)),
        },
    )

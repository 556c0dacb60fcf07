# siteaudit/routes/ops.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from ..db import get_db
from ..engine.catalog import QuestionCatalog
from ..settings import get_settings
from .deps import catalog_dep

router = APIRouter(prefix="/ops", tags=["operations"])
settings = get_settings()


@router.get("/health")
def health_check(db: Session = Depends(get_db), catalog: QuestionCatalog = Depends(catalog_dep)):
    """
    Deep health check: database round trip and the loaded question catalog.
    """
    status = {"api": "online", "version": settings.APP_VERSION, "checks": {}}

    try:
        db.execute(text("SELECT 1"))
        status["checks"]["database"] = "ok"
    except SQLAlchemyError as e:
        status["checks"]["database"] = f"failed: {str(e)}"
        raise HTTPException(503, detail=status)

    status["checks"]["catalog"] = {
        "version": catalog.version,
        "expected": settings.CATALOG_VERSION,
        "status": "ok" if catalog.version == settings.CATALOG_VERSION else "mismatch",
        "questions": len(catalog.questions),
    }
    return status

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarHTTP
import logging

from siteaudit.engine.exceptions import (
    EvaluationLockedError,
    InspectionError,
    NotFoundError,
    PersistenceError,
    ReportCompilationError,
    ValidationError,
)

logger = logging.getLogger("siteaudit")

STATUS_BY_ERROR = {
    ValidationError: 400,
    NotFoundError: 404,
    EvaluationLockedError: 409,
    PersistenceError: 503,
    ReportCompilationError: 500,
}


def status_for(exc: InspectionError) -> int:
    for cls, code in STATUS_BY_ERROR.items():
        if isinstance(exc, cls):
            return code
    return 500


def install_error_handlers(app):
    @app.exception_handler(InspectionError)
    async def inspection_exc(_: Request, exc: InspectionError):
        code = status_for(exc)
        if code >= 500:
            logger.error(f"{exc.error_code}: {exc.message}")
        return JSONResponse({"error": exc.error_code, "detail": exc.message}, status_code=code)

    @app.exception_handler(StarHTTP)
    async def http_exc(_: Request, exc: StarHTTP):
        return JSONResponse({"error": f"HTTP_{exc.status_code}", "detail": exc.detail}, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled(_: Request, exc: Exception):
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse({"error": "INTERNAL_ERROR", "detail": "Unexpected error"}, status_code=500)

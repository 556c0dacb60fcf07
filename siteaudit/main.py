# siteaudit/main.py
from fastapi import FastAPI, Request
from contextlib import asynccontextmanager
from .db import Base, engine
from . import models  # noqa: F401  (registers tables on Base)
from .errors import install_error_handlers
from .settings import get_settings
from .routes import catalog, evaluations, events, ops, projects, reports


def _ensure_db_ready() -> None:
    Base.metadata.create_all(bind=engine)


# Schema init at import time so tests and scripts get the tables too
_ensure_db_ready()


@asynccontextmanager
async def lifespan(app: FastAPI):
    _ensure_db_ready()
    yield


app = FastAPI(title="SiteAudit API", version=get_settings().APP_VERSION, lifespan=lifespan)
install_error_handlers(app)


@app.middleware("http")
async def app_version_header(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-App-Version"] = get_settings().APP_VERSION
    return response


app.include_router(catalog.router)
app.include_router(projects.router)
app.include_router(evaluations.router)
app.include_router(reports.router)
app.include_router(events.router)
app.include_router(ops.router)


@app.get("/")
def health():
    return {"status": "ok", "service": "siteaudit"}

# siteaudit/routes/projects.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from .. import inspection, models, schemas
from ..db import get_db
from ..stores import SqlProjectStore
from .deps import project_store, record_event

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=List[schemas.ProjectResponse])
def list_projects(projects: SqlProjectStore = Depends(project_store)):
    return projects.list()


@router.post("", response_model=schemas.ProjectResponse, status_code=201)
def create_project(
    payload: schemas.ProjectCreate,
    projects: SqlProjectStore = Depends(project_store),
    db: Session = Depends(get_db),
):
    project = inspection.create_project(projects, payload.model_dump())
    record_event(db, models.ActionEnum.CREATE_PROJECT, project.id, {"name": project.name})
    return project


@router.get("/{project_id}", response_model=schemas.ProjectResponse)
def get_project(project_id: str, projects: SqlProjectStore = Depends(project_store)):
    return inspection.get_project(projects, project_id)


@router.patch("/{project_id}", response_model=schemas.ProjectResponse)
def update_project(
    project_id: str,
    payload: schemas.ProjectUpdate,
    projects: SqlProjectStore = Depends(project_store),
    db: Session = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True)
    project = inspection.update_project(projects, project_id, changes)
    record_event(db, models.ActionEnum.UPDATE_PROJECT, project_id, {"fields": sorted(changes)})
    return project


@router.delete("/{project_id}", status_code=204)
def delete_project(
    project_id: str,
    projects: SqlProjectStore = Depends(project_store),
    db: Session = Depends(get_db),
):
    inspection.delete_project(projects, project_id)
    record_event(db, models.ActionEnum.DELETE_PROJECT, project_id, {})
    return Response(status_code=204)

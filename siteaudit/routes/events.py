import json
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ..db import get_db
from ..models import Event
from ..schemas import EventOut

router = APIRouter(prefix="/events", tags=["events"])

@router.get("/recent", response_model=List[EventOut])
def recent_events(limit: int = 50, project_id: str | None = None, db: Session = Depends(get_db)):
    limit = max(1, min(limit, 200))
    q = db.query(Event)
    if project_id:
        q = q.filter(Event.project_id == project_id)
    rows = (
        q.order_by(Event.created_at.desc().nullslast(), Event.id.desc())
          .limit(limit)
          .all()
    )
    return [
        {
            "id": r.id,
            "project_id": r.project_id,
            "action": (r.action.value if hasattr(r.action, "value") else str(r.action)),
            "actor_type": r.actor_type,
            "payload": json.loads(r.payload or "{}"),
            "created_at": r.created_at,
        }
        for r in rows
    ]

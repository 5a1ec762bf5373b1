from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from projecthub.core.database import get_db

router = APIRouter(tags=["health"])


@router.get("/z")
def healthz():
    # liveness, never touches the DB
    return {"status": "ok"}


@router.get("/ready")
def readiness(db: Session = Depends(get_db)):
    """Readiness: the DB answers a trivial query"""
    db.execute(text("SELECT 1"))
    return {"status": "ok", "database": "ok"}

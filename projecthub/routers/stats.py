from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from projecthub.core.database import get_db
from projecthub.core.deps import get_current_user
from projecthub.models.user import User
from projecthub.schemas.stats import ActivityItem, UserStatsResponse
from projecthub.services import stats_service

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=UserStatsResponse)
def user_statistics(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return stats_service.user_statistics(db, current_user)


@router.get("/activity", response_model=List[ActivityItem])
def recent_activity(
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return stats_service.recent_activity(db, current_user, limit)

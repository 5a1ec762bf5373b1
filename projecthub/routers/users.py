from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from projecthub.core.config import settings
from projecthub.core.database import get_db
from projecthub.core.deps import get_current_user
from projecthub.models.user import User
from projecthub.schemas.user import UserSearchResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search", response_model=List[UserSearchResponse])
def search_users(
    email: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Case-insensitive e-mail substring search, used by the invite dialog"""
    if not email or not email.strip():
        return []

    pattern = f"%{email.strip().lower()}%"
    return db.query(User).filter(
        User.email.ilike(pattern)
    ).order_by(User.email).limit(settings.USER_SEARCH_LIMIT).all()

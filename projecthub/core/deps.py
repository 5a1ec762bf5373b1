from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from projecthub.core.database import get_db
from projecthub.core.errors import Unauthenticated
from projecthub.core.security import decode_token
from projecthub.models.user import User


def get_current_user(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(None)
) -> User:
    """
    Resolve the caller from the ``Authorization: Bearer <jwt>`` header.

    Every failure is a 401 so the client drops its stored credentials.
    """
    if not authorization:
        raise Unauthenticated("Missing token")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise Unauthenticated("Invalid authorization header")

    user_id = decode_token(token.strip())
    if not user_id:
        raise Unauthenticated("Invalid token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise Unauthenticated("User not found")

    return user

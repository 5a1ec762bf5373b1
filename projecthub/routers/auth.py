import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from projecthub.core.database import get_db
from projecthub.core.errors import Unauthenticated, ValidationFailed
from projecthub.core.security import create_access_token
from projecthub.models.user import User
from projecthub.schemas.user import RegisterRequest, LoginRequest, LoginResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _login_response(user: User) -> dict:
    return {
        "token": create_access_token(user.id, user.email),
        "type": "Bearer",
        "user_id": user.id,
        "email": user.email,
    }


@router.post("/register", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
def register(user_data: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account and log it in straight away"""
    email = user_data.email.lower()

    existing_user = db.query(User).filter(User.email == email).first()
    if existing_user:
        raise ValidationFailed("Email is already registered")

    new_user = User(email=email)
    new_user.set_password(user_data.password)

    db.add(new_user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationFailed("Email is already registered")
    db.refresh(new_user)

    logger.info("User %s registered", new_user.id)
    return _login_response(new_user)


@router.post("/login", response_model=LoginResponse)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == credentials.email.lower()).first()
    # same message for unknown email and wrong password
    if not user or not user.verify_password(credentials.password):
        raise Unauthenticated("Invalid email or password")

    return _login_response(user)

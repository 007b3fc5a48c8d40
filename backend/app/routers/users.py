"""Login and user lookup routes. No credentials are checked."""
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import InvalidArgumentError
from app.models.user import User
from app.schemas.user import LoginRequest, LoginResponse, UserOut

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    """Create the user on first login with a fresh session id; idempotent afterwards."""
    username = payload.username.strip()
    if not username:
        raise InvalidArgumentError("Username must not be empty")

    if not db.query(User).filter(User.user_name == username).first():
        db.add(User(user_name=username))
        try:
            db.commit()
            logger.info("Created user %s", username)
        except IntegrityError:
            # Created by a concurrent login
            db.rollback()

    logger.info("LOGIN: User %s", username)
    return LoginResponse(username=username)


@router.get("/users/{user_name}", response_model=UserOut)
def get_user(user_name: str, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.user_name == user_name).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user

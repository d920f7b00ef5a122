import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel
from sqlalchemy.orm import Session
from ...core import security
from ...core.auth import authenticate_user
from ...db.session import get_db
from ...db import models, schemas
from .. import deps


router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: schemas.User


@router.post("/register", response_model=schemas.User, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.UserCreate, db: Session = Depends(get_db)):
    if db.query(models.User).filter_by(email=payload.email).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already exists")
    user = models.User(
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        password_hash=security.get_password_hash(payload.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user", extra={"user_id": user.id})
    return user


@router.post("/login", response_model=TokenResponse)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    user = authenticate_user(db, form_data.username, form_data.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    token = security.create_access_token({"sub": str(user.id), "role": user.role.value})
    return TokenResponse(access_token=token, user=schemas.User.model_validate(user))


@router.get("/me", response_model=schemas.User)
def me(current: models.User = Depends(deps.get_current_user)):
    return current

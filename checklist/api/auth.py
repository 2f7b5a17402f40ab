#checklist/api/auth.py
from datetime import timedelta
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from checklist.schemas.auth import Token
from checklist.schemas.user import UserCreate, UserRead
from checklist.crud.user import authenticate_user, create_user
from checklist.core.security import create_access_token
from checklist.core.exceptions import UserValidationError
from checklist.dependencies import get_db, get_current_active_user
from checklist.core.settings import settings
from checklist.models.user import User as UserModel

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger("Checklist.Auth")

ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES

@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register(
    data: UserCreate,
    db: Session = Depends(get_db),
):
    """
    Регистрация нового пользователя (имя, email, пароль).
    """
    try:
        user = create_user(db, data.model_dump())
    except UserValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    logger.info(f"Registered user {user.id}")
    return user

@router.post("/login", response_model=Token, status_code=status.HTTP_200_OK)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    """
    Логин по email + password (поле username формы содержит email).
    """
    user = authenticate_user(db, form_data.username, form_data.password)
    if not user or not user.is_active:
        logger.warning(f"Failed login attempt for '{form_data.username}'")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token, _ = create_access_token(
        data={"sub": user.email, "user_id": user.id},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    logger.info(f"User {user.id} logged in")
    return Token(
        access_token=access_token,
        token_type="bearer",
        expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )

@router.get("/me", response_model=UserRead)
def read_me(current_user: UserModel = Depends(get_current_active_user)):
    """
    Текущий пользователь.
    """
    return current_user

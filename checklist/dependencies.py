# checklist/dependencies.py

from typing import Generator
from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session
from checklist.core.security import oauth2_scheme, verify_access_token
from checklist.models.user import User
from checklist.database import SessionLocal
from checklist.crud.user import get_user, get_user_by_email
from checklist.services.email import EmailGateway, get_email_gateway
from checklist.services.notifications import NotificationDispatcher

def get_db() -> Generator[Session, None, None]:
    """
    Создает и возвращает сессию базы данных, гарантирует закрытие после использования.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """
    Декодирует JWT-токен, получает пользователя из базы, если токен валиден.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    payload = verify_access_token(token)
    if payload is None:
        raise credentials_exception
    user = None
    user_id = payload.get("user_id")
    if user_id is not None:
        user = get_user(db, int(user_id))
    elif payload.get("sub"):
        user = get_user_by_email(db, payload["sub"])
    if user is None:
        raise credentials_exception
    return user

def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Проверяет, что пользователь активен.
    """
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")
    return current_user

def get_notification_dispatcher(
    gateway: EmailGateway = Depends(get_email_gateway),
) -> NotificationDispatcher:
    return NotificationDispatcher(gateway)

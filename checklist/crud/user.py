#checklist/crud/user.py
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional, Dict
import logging

from checklist.models.user import User
from checklist.core.security import hash_password, verify_password
from checklist.core.exceptions import UserValidationError, UserNotFound
from checklist.core.notification_kinds import NOTIFICATION_KINDS, user_field

logger = logging.getLogger("Checklist.Users")

def normalize_email(email: str) -> str:
    return (email or "").strip().lower()

def create_user(db: Session, data: dict) -> User:
    """
    Регистрирует пользователя. Email уникален, пароль хранится только как bcrypt-хеш.
    """
    name = (data.get("name") or "").strip()
    email = normalize_email(data.get("email"))
    password = data.get("password") or ""
    if not name:
        raise UserValidationError("Name is required.")
    if not email:
        raise UserValidationError("Email is required.")
    if len(password) < 8:
        raise UserValidationError("Password must be at least 8 characters long.")
    if get_user_by_email(db, email):
        raise UserValidationError("User with this email already exists.")

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        avatar_url=data.get("avatar_url"),
        is_active=data.get("is_active", True),
    )
    for kind in NOTIFICATION_KINDS:
        value = data.get(user_field(kind))
        if value is not None:
            setattr(user, user_field(kind), bool(value))

    db.add(user)
    try:
        db.commit()
        db.refresh(user)
        logger.info(f"Created user {user.id} ({user.email})")
        return user
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Failed to create user: {e}")
        raise UserValidationError("User with this email already exists.")

def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()

def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """
    Возвращает пользователя, если email и пароль совпадают, иначе None.
    """
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user

def get_notification_settings(db: Session, user_id: int) -> Dict[str, bool]:
    """
    Глобальные настройки уведомлений пользователя (пять флагов).
    """
    user = get_user(db, user_id)
    if not user:
        raise UserNotFound(f"User {user_id} not found.")
    return {user_field(kind): bool(getattr(user, user_field(kind))) for kind in NOTIFICATION_KINDS}

def update_notification_settings(db: Session, user_id: int, data: dict) -> Dict[str, bool]:
    """
    Полная перезапись пяти глобальных флагов. Отсутствующий флаг — ошибка валидации.
    """
    user = get_user(db, user_id)
    if not user:
        raise UserNotFound(f"User {user_id} not found.")
    for kind in NOTIFICATION_KINDS:
        field = user_field(kind)
        if data.get(field) is None:
            raise UserValidationError(f"'{field}' is required.")
    for kind in NOTIFICATION_KINDS:
        field = user_field(kind)
        setattr(user, field, bool(data[field]))
    try:
        db.commit()
        db.refresh(user)
        logger.info(f"Updated global notification settings for user {user_id}")
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Failed to update notification settings for user {user_id}: {e}")
        raise UserValidationError("Database error while updating notification settings.")
    return get_notification_settings(db, user_id)

def update_profile(db: Session, user_id: int, data: dict) -> User:
    """
    Обновляет имя и аватар пользователя (email и пароль здесь не меняются).
    """
    user = get_user(db, user_id)
    if not user:
        raise UserNotFound(f"User {user_id} not found.")
    if "name" in data and data["name"] is not None:
        name = data["name"].strip()
        if not name:
            raise UserValidationError("Name is required.")
        user.name = name
    if "avatar_url" in data:
        user.avatar_url = data["avatar_url"]
    try:
        db.commit()
        db.refresh(user)
        logger.info(f"Updated profile of user {user_id}")
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Failed to update user {user_id}: {e}")
        raise UserValidationError("Database error while updating user.")
    return user

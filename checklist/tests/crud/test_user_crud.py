import pytest
from sqlalchemy.orm import Session

from checklist.crud import user as crud_user
from checklist.schemas.user import UserCreate
from checklist.core.security import verify_password
from checklist.core.exceptions import UserValidationError, UserNotFound

FLAGS = {
    "notification_on_invitation": True,
    "notification_on_assignment": False,
    "notification_on_task_completion": True,
    "notification_on_checkin": False,
    "notification_on_new_tasks": True,
}

def test_create_user_success(db: Session):
    user_in = UserCreate(name="New User", email="NewUser@Example.com", password="password123")
    user = crud_user.create_user(db, user_in.model_dump())
    assert user.id is not None
    assert user.name == "New User"
    assert user.email == "newuser@example.com"
    assert user.is_active is True
    assert user.password_hash != "password123"
    assert verify_password("password123", user.password_hash)
    assert all(crud_user.get_notification_settings(db, user.id).values())

def test_create_user_duplicate_email(db: Session, test_user):
    with pytest.raises(UserValidationError, match="already exists"):
        crud_user.create_user(db, {"name": "Copy", "email": "ALICE@example.com", "password": "password456"})

def test_create_user_validation(db: Session):
    with pytest.raises(UserValidationError, match="at least 8"):
        crud_user.create_user(db, {"name": "Shorty", "email": "short@example.com", "password": "1234567"})
    with pytest.raises(UserValidationError, match="Name is required"):
        crud_user.create_user(db, {"name": " ", "email": "blank@example.com", "password": "password123"})

def test_get_user_and_by_email(db: Session, test_user):
    assert crud_user.get_user(db, test_user.id).email == "alice@example.com"
    assert crud_user.get_user_by_email(db, " Alice@Example.com ").id == test_user.id
    assert crud_user.get_user(db, 99999) is None

def test_authenticate_user(db: Session, test_user):
    assert crud_user.authenticate_user(db, "alice@example.com", "password123").id == test_user.id
    assert crud_user.authenticate_user(db, "alice@example.com", "wrong-password") is None
    assert crud_user.authenticate_user(db, "nobody@example.com", "password123") is None

def test_update_notification_settings_overwrites_all(db: Session, test_user):
    result = crud_user.update_notification_settings(db, test_user.id, FLAGS)
    assert result == FLAGS
    assert crud_user.get_notification_settings(db, test_user.id) == FLAGS

def test_update_notification_settings_requires_every_flag(db: Session, test_user):
    partial = dict(FLAGS)
    partial.pop("notification_on_checkin")
    with pytest.raises(UserValidationError, match="notification_on_checkin"):
        crud_user.update_notification_settings(db, test_user.id, partial)
    assert all(crud_user.get_notification_settings(db, test_user.id).values())

def test_notification_settings_unknown_user(db: Session):
    with pytest.raises(UserNotFound):
        crud_user.get_notification_settings(db, 99999)

def test_update_profile(db: Session, test_user):
    updated = crud_user.update_profile(db, test_user.id, {"name": "  Alice B.  ", "avatar_url": "https://img.test/a.png"})
    assert updated.name == "Alice B."
    assert updated.avatar_url == "https://img.test/a.png"
    with pytest.raises(UserValidationError):
        crud_user.update_profile(db, test_user.id, {"name": ""})

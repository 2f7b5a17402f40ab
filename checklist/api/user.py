#checklist/api/user.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from checklist.schemas.user import UserRead, UserUpdate, UserPublic
from checklist.crud.user import get_user, update_profile
from checklist.dependencies import get_db, get_current_active_user
from checklist.models.user import User as UserModel

router = APIRouter(prefix="/users", tags=["Users"])

@router.patch("/me", response_model=UserRead)
def update_me(
    data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    """
    Обновить имя / аватар текущего пользователя.
    """
    return update_profile(db, current_user.id, data.model_dump(exclude_unset=True))

@router.get("/{user_id}", response_model=UserPublic)
def read_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_active_user),
):
    user = get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user

from fastapi import APIRouter, HTTPException, status
from typing import List
from ...services.user_service import UserService
from ...services.auth import user_dependency
from ...services.permissions import admin_dependency
from ...db.base import db_dependency
from ...schemas.user import UserUpdate, UserResponse

router = APIRouter(prefix='/users', tags=['users'])


@router.get("/me", response_model=UserResponse)
async def get_me(user: user_dependency):
    return user


@router.patch("/me", response_model=UserResponse)
async def update_me(
    user_data: UserUpdate,
    user: user_dependency,
    db: db_dependency
):
    user_service = UserService(db)
    return user_service.update_user(user.id, user_data)


@router.get("", response_model=List[UserResponse])
async def list_users(admin: admin_dependency, db: db_dependency):
    """List every user (admin only)"""
    return UserService(db).list_users()


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, admin: admin_dependency, db: db_dependency):
    """Get a user by id (admin only)"""
    user = UserService(db).get_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    admin: admin_dependency,
    db: db_dependency
):
    """Update a user (admin only)"""
    user = UserService(db).update_user(user_id, user_data)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: int, admin: admin_dependency, db: db_dependency):
    """Delete a user and their tasks (admin only)"""
    if not UserService(db).delete_user(user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return None

"""
Auth API Router
Registration, login, profile and admin user management
"""

from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session

import models
from models import UserRole
from api.deps import get_db, get_current_user, require_admin
from api.schemas import MessageResponse
from api.schemas.user import (
    UserRegister,
    UserLogin,
    UserSelfUpdate,
    AdminUserUpdate,
    UserResponse,
    AuthResponse,
    UserList,
)
from services.auth_service import auth_service


router = APIRouter(prefix="/auth", tags=["auth"])


def auth_payload(user: models.User, token: str, message: Optional[str] = None) -> AuthResponse:
    profile = UserResponse.model_validate(user).model_dump()
    return AuthResponse(**profile, token=token, message=message)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: Session = Depends(get_db)
):
    """
    Create an account and return it with a bearer token

    - **role**: patient (default) or provider
    - **password**: 8+ chars with an uppercase letter, a digit and a special character
    """
    user, token = await auth_service.register(user_data.model_dump(), db)
    return auth_payload(user, token, "User registered successfully")


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    db: Session = Depends(get_db)
):
    user, token = await auth_service.login(credentials.email, credentials.password, db)
    return auth_payload(user, token)


@router.get("/me", response_model=UserResponse)
async def get_me(user: models.User = Depends(get_current_user)):
    return user


@router.put("/me", response_model=UserResponse)
async def update_me(
    update_data: UserSelfUpdate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Update the caller's own profile

    Role and account status cannot be changed here.
    """
    return await auth_service.update_me(user, update_data.model_dump(exclude_unset=True), db)


# ==================== ADMIN ====================

@router.get("/users", response_model=UserList)
async def list_users(
    role: Optional[UserRole] = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    users = await auth_service.list_users(db, role=role, is_active=is_active)
    return UserList(users=users, total=len(users))


@router.get("/stats")
async def get_stats(
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Counts of users by role and status, medications and adherence logs"""
    return await auth_service.admin_stats(db)


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return await auth_service.get_user(user_id, db)


@router.put("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    update_data: AdminUserUpdate,
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return await auth_service.update_user(user_id, update_data.model_dump(exclude_unset=True), db)


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    await auth_service.delete_user(admin, user_id, db)
    return MessageResponse(message="User deleted successfully")

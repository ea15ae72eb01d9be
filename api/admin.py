"""
Admin API Router
User listing and forced patient/provider assignment
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

import models
from models import UserRole
from api.deps import get_db, require_admin
from api.schemas.user import UserList
from api.schemas.care import AdminAssignRequest, AssignmentResponse
from services.auth_service import auth_service
from services.care_service import care_service


router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=UserList)
async def list_users(
    role: Optional[UserRole] = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    users = await auth_service.list_users(db, role=role, is_active=is_active)
    return UserList(users=users, total=len(users))


@router.post("/assign", response_model=AssignmentResponse)
async def assign_patient(
    request: AdminAssignRequest,
    admin: models.User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Link a patient to a provider

    A patient already assigned elsewhere is moved to the new provider.
    """
    return await care_service.admin_assign(admin, request.patient_id, request.provider_id, db)

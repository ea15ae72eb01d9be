"""
API Dependencies
Common dependencies for FastAPI endpoints
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

import models
from models import UserRole
from database import get_db
from policies import require_role
from services.auth_service import auth_service


bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> models.User:
    """
    Resolve the bearer token to a user
    Raises UnauthenticatedError when the header is missing or the token is bad
    """
    token = credentials.credentials if credentials else None
    return await auth_service.authenticate(token, db)


def require_roles(*roles: UserRole):
    """
    Dependency factory restricting a route to the given roles

    Usage:
        @router.get("/", dependencies=[Depends(require_roles(UserRole.ADMIN))])
    """
    async def checker(user: models.User = Depends(get_current_user)) -> models.User:
        require_role(user, *roles)
        return user

    return checker


require_admin = require_roles(UserRole.ADMIN)
require_provider = require_roles(UserRole.PROVIDER)
require_patient = require_roles(UserRole.PATIENT)


__all__ = [
    "get_db",
    "get_current_user",
    "require_roles",
    "require_admin",
    "require_provider",
    "require_patient",
]

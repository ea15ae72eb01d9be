"""
API Module
FastAPI routers for the MediTrack application
"""

from api.auth import router as auth_router
from api.medications import router as medications_router
from api.adherence import router as adherence_router
from api.provider import router as provider_router
from api.patient import router as patient_router
from api.admin import router as admin_router
from api.chat import router as chat_router

from api.deps import (
    get_db,
    get_current_user,
    require_roles,
    require_admin,
    require_provider,
    require_patient,
)


__all__ = [
    # Routers
    "auth_router",
    "medications_router",
    "adherence_router",
    "provider_router",
    "patient_router",
    "admin_router",
    "chat_router",
    # Dependencies
    "get_db",
    "get_current_user",
    "require_roles",
    "require_admin",
    "require_provider",
    "require_patient",
]


def include_routers(app, prefix: str = "/api"):
    """
    Include all API routers in the FastAPI app

    Usage:
        from api import include_routers
        include_routers(app)
    """
    for router in (
        auth_router,
        medications_router,
        adherence_router,
        provider_router,
        patient_router,
        admin_router,
        chat_router,
    ):
        app.include_router(router, prefix=prefix)

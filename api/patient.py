"""
Patient API Router
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import models
from api.deps import get_db, require_patient
from api.schemas.care import ProvidersResponse
from services.care_service import care_service


router = APIRouter(prefix="/patient", tags=["patient"])


@router.get("/providers", response_model=ProvidersResponse)
async def get_providers(
    patient: models.User = Depends(require_patient),
    db: Session = Depends(get_db)
):
    """Providers the caller is assigned to"""
    providers = await care_service.get_providers(patient, db)
    return ProvidersResponse(providers=providers)

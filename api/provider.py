"""
Provider API Router
Roster views and patient assignment for providers
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import models
from api.deps import get_db, require_provider
from api.schemas.care import (
    AssignPatientRequest,
    AssignmentResponse,
    RosterResponse,
)
from services.care_service import care_service


router = APIRouter(prefix="/provider", tags=["provider"])


@router.get("/patients", response_model=RosterResponse)
async def get_patients(
    provider: models.User = Depends(require_provider),
    db: Session = Depends(get_db)
):
    """Patients assigned to the caller, each with their taken-dose percentage"""
    return await care_service.get_roster(provider, db)


@router.post("/assign", response_model=AssignmentResponse)
async def assign_patient(
    request: AssignPatientRequest,
    provider: models.User = Depends(require_provider),
    db: Session = Depends(get_db)
):
    """
    Add a patient to the caller's roster

    - **patientId** or **email**: identifies the patient
    """
    return await care_service.assign_patient(
        provider, db, patient_id=request.patient_id, email=request.email
    )


@router.delete("/patients/{patient_id}", response_model=AssignmentResponse)
async def unassign_patient(
    patient_id: str,
    provider: models.User = Depends(require_provider),
    db: Session = Depends(get_db)
):
    return await care_service.unassign_patient(provider, patient_id, db)

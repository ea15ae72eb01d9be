"""
Medications API Router
Endpoints for medication management
"""

from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session

import models
from api.deps import get_db, get_current_user
from api.schemas import MessageResponse
from api.schemas.medication import (
    MedicationCreate,
    MedicationUpdate,
    MedicationResponse,
    MedicationList,
    ReminderToggleResponse,
)
from services.medication_service import medication_service


router = APIRouter(prefix="/medications", tags=["medications"])


@router.post("", response_model=MedicationResponse, status_code=status.HTTP_201_CREATED)
async def create_medication(
    medication_data: MedicationCreate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Add a new medication

    - **patientId**: required for providers and admins, ignored for patients
    - **name**: Medication name
    - **dosage**: Dosage (e.g., "500mg")
    - **frequency**: once-daily, twice-daily, ...
    - **schedule**: list of {time: "HH:MM", days: [weekday names]}
    """
    return await medication_service.create_medication(user, medication_data.model_dump(), db)


@router.get("", response_model=MedicationList)
async def list_medications(
    patient_id: Optional[str] = Query(None, alias="patientId"),
    active_only: bool = Query(False, alias="activeOnly"),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    List medications visible to the caller

    Patients see their own, providers see their roster, admins see all.
    """
    medications = await medication_service.list_medications(user, db, patient_id=patient_id, active_only=active_only)
    return MedicationList(
        medications=medications,
        total=len(medications),
        active_count=sum(1 for m in medications if m.is_active),
    )


@router.get("/{medication_id}", response_model=MedicationResponse)
async def get_medication(
    medication_id: str,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return await medication_service.get_medication(user, medication_id, db)


@router.put("/{medication_id}", response_model=MedicationResponse)
@router.patch("/{medication_id}", response_model=MedicationResponse)
async def update_medication(
    medication_id: str,
    update_data: MedicationUpdate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update medication fields; an empty body is rejected"""
    return await medication_service.update_medication(
        user, medication_id, update_data.model_dump(exclude_unset=True), db
    )


@router.delete("/{medication_id}", response_model=MessageResponse)
async def delete_medication(
    medication_id: str,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    await medication_service.delete_medication(user, medication_id, db)
    return MessageResponse(message="Medication deleted successfully")


@router.patch("/{medication_id}/reminder", response_model=ReminderToggleResponse)
async def toggle_reminder(
    medication_id: str,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Turn dose reminders on or off for one of the caller's medications"""
    medication = await medication_service.toggle_reminder(user, medication_id, db)
    state = "enabled" if medication.reminder_enabled else "disabled"
    return ReminderToggleResponse(
        id=medication.id,
        reminder_enabled=medication.reminder_enabled,
        message=f"Reminders {state}",
    )

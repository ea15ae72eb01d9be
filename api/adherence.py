"""
Adherence API Router
Endpoints for dose logging, statistics, reports and prediction
"""

from typing import Optional
from datetime import datetime
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session

import models
from models import AdherenceStatus
from api.deps import get_db, get_current_user
from api.schemas import MessageResponse, to_naive_utc
from api.schemas.adherence import (
    AdherenceLogCreate,
    AdherenceLogUpdate,
    AdherenceLogResponse,
    AdherenceLogList,
    AdherenceStats,
    AdherenceReport,
    AdherenceTrends,
    AdherencePrediction,
)
from services.adherence_service import adherence_service
from services.prediction_service import prediction_service


router = APIRouter(prefix="/adherence", tags=["adherence"])

MAX_WINDOW_DAYS = 365


def log_filters(
    patient_id: Optional[str] = Query(None, alias="patientId"),
    medication_id: Optional[str] = Query(None, alias="medicationId"),
    status: Optional[AdherenceStatus] = Query(None),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
) -> dict:
    """Shared query filters for listing and stats"""
    return {
        "patient_id": patient_id,
        "medication_id": medication_id,
        "status": status,
        "start_date": to_naive_utc(start_date),
        "end_date": to_naive_utc(end_date),
    }


@router.post("", response_model=AdherenceLogResponse, status_code=status.HTTP_201_CREATED)
async def log_dose(
    log_data: AdherenceLogCreate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Log a dose event

    - **medicationId**: Medication the dose belongs to
    - **scheduledTime**: When the dose was due
    - **status**: taken, missed, skipped or pending
    - **takenAt**: defaults to now when status is taken
    """
    return await adherence_service.log_adherence(user, log_data.model_dump(), db)


@router.get("", response_model=AdherenceLogList)
async def list_logs(
    filters: dict = Depends(log_filters),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    logs = await adherence_service.list_logs(user, db, **filters)
    return AdherenceLogList(logs=logs, total=len(logs))


@router.get("/stats", response_model=AdherenceStats)
async def get_stats(
    filters: dict = Depends(log_filters),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Count and percentage of logs per status"""
    return await adherence_service.get_stats(user, db, **filters)


@router.get("/report", response_model=AdherenceReport)
async def get_report(
    patient_id: Optional[str] = Query(None, alias="patientId"),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Per-patient adherence summary (providers and admins)"""
    return await adherence_service.get_report(user, db, patient_id=patient_id)


@router.get("/trends", response_model=AdherenceTrends)
async def get_trends(
    days: int = Query(30, ge=1, le=MAX_WINDOW_DAYS),
    patient_id: Optional[str] = Query(None, alias="patientId"),
    medication_id: Optional[str] = Query(None, alias="medicationId"),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return await adherence_service.get_trends(
        user, db, days=days, patient_id=patient_id, medication_id=medication_id
    )


@router.get("/predict", response_model=AdherencePrediction)
async def predict_adherence(
    patient_id: Optional[str] = Query(None, alias="patientId"),
    days: Optional[int] = Query(None, ge=1, le=MAX_WINDOW_DAYS),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Forecast which times of day and weekdays doses are likely to be missed

    Patients get their own forecast; providers and admins pass patientId.
    """
    return await prediction_service.predict_for_patient(user, db, patient_id=patient_id, days=days)


@router.put("/{log_id}", response_model=AdherenceLogResponse)
async def update_log(
    log_id: str,
    update_data: AdherenceLogUpdate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return await adherence_service.update_log(user, log_id, update_data.model_dump(exclude_unset=True), db)


@router.delete("/{log_id}", response_model=MessageResponse)
async def delete_log(
    log_id: str,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    await adherence_service.delete_log(user, log_id, db)
    return MessageResponse(message="Adherence log deleted successfully")

"""
Adherence Schemas
Pydantic models for adherence tracking API requests and responses
"""

from typing import Optional, List
from datetime import datetime
from pydantic import Field

from api.schemas import CamelModel, NaiveDatetime
from models import AdherenceStatus


# ==================== REQUEST SCHEMAS ====================

class AdherenceLogCreate(CamelModel):
    """Schema for logging a dose event"""
    medication_id: str
    scheduled_time: NaiveDatetime
    status: AdherenceStatus
    taken_at: Optional[NaiveDatetime] = None
    notes: Optional[str] = Field(None, max_length=1000)


class AdherenceLogUpdate(CamelModel):
    status: Optional[AdherenceStatus] = None
    scheduled_time: Optional[NaiveDatetime] = None
    taken_at: Optional[NaiveDatetime] = None
    notes: Optional[str] = Field(None, max_length=1000)


# ==================== RESPONSE SCHEMAS ====================

class AdherenceLogResponse(CamelModel):
    """Schema for adherence log response"""
    id: str
    patient_id: str
    medication_id: str
    scheduled_time: datetime
    taken_at: Optional[datetime] = None
    status: AdherenceStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AdherenceLogList(CamelModel):
    logs: List[AdherenceLogResponse]
    total: int


class StatusCount(CamelModel):
    status: AdherenceStatus
    count: int
    percentage: float


class AdherenceStats(CamelModel):
    total: int
    stats: List[StatusCount]


class PatientAdherenceSummary(CamelModel):
    """Per-patient line of a provider report"""
    patient_id: str
    name: str
    email: str
    total: int
    taken: int
    missed: int
    skipped: int
    pending: int
    adherence_rate: Optional[float] = None


class AdherenceReport(CamelModel):
    generated_at: datetime
    patients: List[PatientAdherenceSummary]


class DailyTrend(CamelModel):
    date: str
    total: int
    taken: int
    missed: int
    skipped: int
    pending: int
    adherence_rate: float


class AdherenceTrends(CamelModel):
    days: int
    trends: List[DailyTrend]


class PredictionPatterns(CamelModel):
    likely_missed_periods: List[str]
    likely_missed_days: List[str]
    streak: int


class AdherencePrediction(CamelModel):
    message: Optional[str] = None
    patterns: Optional[PredictionPatterns] = None
    recommendations: List[str] = []

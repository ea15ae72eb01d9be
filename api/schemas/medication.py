"""
Medication Schemas
Pydantic models for medication-related API requests and responses
"""

from typing import Optional, List
from datetime import datetime, date
from pydantic import Field, field_validator, model_validator

from api.schemas import CamelModel
from models import MedicationFrequency, WEEKDAYS


class ScheduleEntry(CamelModel):
    """A daily dose time and the weekdays it applies to"""
    time: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    days: List[str] = Field(..., min_length=1)

    @field_validator("days")
    @classmethod
    def validate_days(cls, value: List[str]) -> List[str]:
        normalized = []
        for day in value:
            name = day.strip().capitalize()
            if name not in WEEKDAYS:
                raise ValueError(f"Invalid weekday: {day}")
            if name not in normalized:
                normalized.append(name)
        return normalized


# ==================== REQUEST SCHEMAS ====================

class MedicationCreate(CamelModel):
    """Schema for creating a new medication"""
    patient_id: Optional[str] = None  # required for providers and admins
    name: str = Field(..., min_length=1, max_length=255)
    dosage: str = Field(..., min_length=1, max_length=100)
    frequency: MedicationFrequency
    schedule: List[ScheduleEntry] = Field(..., min_length=1)
    start_date: date
    end_date: Optional[date] = None
    instructions: Optional[str] = None
    prescribed_by: Optional[str] = None
    is_active: bool = True
    reminder_enabled: bool = True

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date")
        return self


class MedicationUpdate(CamelModel):
    """Schema for updating medication; only these fields are mutable"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    dosage: Optional[str] = Field(None, min_length=1, max_length=100)
    frequency: Optional[MedicationFrequency] = None
    schedule: Optional[List[ScheduleEntry]] = Field(None, min_length=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    instructions: Optional[str] = None
    prescribed_by: Optional[str] = None
    is_active: Optional[bool] = None
    reminder_enabled: Optional[bool] = None


# ==================== RESPONSE SCHEMAS ====================

class MedicationResponse(CamelModel):
    """Schema for medication response"""
    id: str
    patient_id: str
    name: str
    dosage: str
    frequency: MedicationFrequency
    schedule: List[ScheduleEntry] = []
    start_date: date
    end_date: Optional[date] = None
    instructions: Optional[str] = None
    prescribed_by: Optional[str] = None
    is_active: bool = True
    reminder_enabled: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MedicationList(CamelModel):
    medications: List[MedicationResponse]
    total: int
    active_count: int


class ReminderToggleResponse(CamelModel):
    id: str
    reminder_enabled: bool
    message: str

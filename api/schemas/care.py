"""
Care Team Schemas
Pydantic models for provider rosters and patient/provider assignment
"""

from typing import Optional, List
from datetime import date
from pydantic import EmailStr, model_validator

from api.schemas import CamelModel
from models import Gender


# ==================== REQUEST SCHEMAS ====================

class AssignPatientRequest(CamelModel):
    """Provider assigns a patient by id or by email"""
    patient_id: Optional[str] = None
    email: Optional[EmailStr] = None

    @model_validator(mode="after")
    def require_target(self):
        if not self.patient_id and not self.email:
            raise ValueError("Either patientId or email is required")
        return self


class AdminAssignRequest(CamelModel):
    patient_id: str
    provider_id: str


# ==================== RESPONSE SCHEMAS ====================

class PersonSummary(CamelModel):
    id: str
    name: str
    email: str


class AssignmentResponse(CamelModel):
    message: str
    patient: Optional[PersonSummary] = None
    provider: Optional[PersonSummary] = None


class RosterPatient(CamelModel):
    id: str
    name: str
    email: str
    gender: Optional[Gender] = None
    date_of_birth: Optional[date] = None
    adherence: Optional[float] = None


class RosterResponse(CamelModel):
    provider: str
    patients: List[RosterPatient]


class AssignedProvider(CamelModel):
    id: str
    name: str
    email: str
    phone_number: Optional[str] = None


class ProvidersResponse(CamelModel):
    providers: List[AssignedProvider]

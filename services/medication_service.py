"""
Medication Service
Business logic for medication management and access control
"""

import logging
import re
from typing import Dict, List, Optional, Any
from datetime import datetime
from sqlalchemy.orm import Session

import models
from models import UserRole, MedicationFrequency, WEEKDAYS
from exceptions import (
    ValidationError,
    InvalidReferenceError,
    ForbiddenError,
    NotFoundError,
)
from policies import (
    parse_id,
    roster_ids,
    provider_ids,
    require_patient_access,
    scope_patient_ids,
    apply_patient_scope,
)


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "dosage", "frequency", "schedule", "start_date")
UPDATABLE_FIELDS = {
    "name", "dosage", "frequency", "schedule", "start_date", "end_date",
    "instructions", "prescribed_by", "is_active", "reminder_enabled",
}
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _normalize_schedule(schedule: Any) -> List[Dict[str, Any]]:
    """Validate schedule entries and return plain JSON-ready dicts"""
    if not isinstance(schedule, list) or not schedule:
        raise ValidationError("Schedule must contain at least one entry")

    entries = []
    for entry in schedule:
        if hasattr(entry, "model_dump"):
            entry = entry.model_dump()
        time_value = (entry or {}).get("time")
        days = (entry or {}).get("days") or []
        if not time_value or not TIME_PATTERN.match(time_value):
            raise ValidationError(f"Invalid schedule time: {time_value}")
        if not days or any(day not in WEEKDAYS for day in days):
            raise ValidationError("Schedule days must be weekday names")
        entries.append({"time": time_value, "days": list(days)})
    return entries


class MedicationService:
    """
    Service for medication-related operations
    """

    def _resolve_prescriber(self, prescriber_id: Optional[str], db: Session) -> str:
        parsed = parse_id(prescriber_id)
        prescriber = db.get(models.User, parsed) if parsed else None
        if not prescriber or prescriber.role != UserRole.PROVIDER:
            raise InvalidReferenceError("prescribedBy must reference a provider")
        return prescriber.id

    def _default_prescriber(
        self,
        actor: models.User,
        patient_id: str,
        requested: Optional[str],
        db: Session
    ) -> Optional[str]:
        """
        An explicit prescribedBy must name a provider. Otherwise a provider
        prescribes as themselves, and a patient's medication is attributed to
        their assigned provider, or left unattributed when they have none.
        """
        if requested:
            return self._resolve_prescriber(requested, db)
        if actor.role == UserRole.PROVIDER:
            return actor.id
        assigned = provider_ids(db, patient_id)
        return assigned[0] if assigned else None

    def _load(self, medication_id: str, db: Session) -> models.Medication:
        parsed = parse_id(medication_id)
        medication = db.get(models.Medication, parsed) if parsed else None
        if not medication:
            raise NotFoundError("Medication not found")
        return medication

    async def create_medication(
        self,
        actor: models.User,
        fields: Dict[str, Any],
        db: Session
    ) -> models.Medication:
        """
        Create a medication for a patient

        Patients always create for themselves. Providers and admins must name
        the patient; providers only for patients on their roster.

        Args:
            actor: Acting user
            fields: Medication fields (snake_case)
            db: Database session

        Returns:
            Created Medication object
        """
        missing = [f for f in REQUIRED_FIELDS if not fields.get(f)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        if actor.role == UserRole.PATIENT:
            patient_id = actor.id
        else:
            if not fields.get("patient_id"):
                raise ValidationError("patientId is required")
            patient_id = parse_id(fields["patient_id"])
            patient = db.get(models.User, patient_id) if patient_id else None
            if not patient or patient.role != UserRole.PATIENT:
                raise InvalidReferenceError("patientId must reference a patient")
            if actor.role == UserRole.PROVIDER and patient_id not in roster_ids(db, actor.id):
                raise ForbiddenError("You are not authorized to prescribe for this patient")

        prescribed_by = self._default_prescriber(actor, patient_id, fields.get("prescribed_by"), db)

        end_date = fields.get("end_date")
        if end_date and end_date < fields["start_date"]:
            raise ValidationError("End date cannot be before start date")

        medication = models.Medication(
            patient_id=patient_id,
            name=fields["name"],
            dosage=fields["dosage"],
            frequency=MedicationFrequency(fields["frequency"]),
            schedule=_normalize_schedule(fields["schedule"]),
            start_date=fields["start_date"],
            end_date=end_date,
            instructions=fields.get("instructions"),
            prescribed_by=prescribed_by,
            is_active=fields.get("is_active", True),
            reminder_enabled=fields.get("reminder_enabled", True),
        )
        db.add(medication)
        db.commit()
        db.refresh(medication)

        logger.info(f"Created medication {medication.id} ({medication.name}) for patient {patient_id}")
        return medication

    async def list_medications(
        self,
        actor: models.User,
        db: Session,
        patient_id: Optional[str] = None,
        active_only: bool = False
    ) -> List[models.Medication]:
        """List medications visible to the actor, optionally for one patient"""
        scope = scope_patient_ids(db, actor, patient_id)
        query = apply_patient_scope(db.query(models.Medication), models.Medication.patient_id, scope)
        if active_only:
            query = query.filter(models.Medication.is_active.is_(True))
        return query.order_by(models.Medication.created_at.desc()).all()

    async def get_medication(
        self,
        actor: models.User,
        medication_id: str,
        db: Session
    ) -> models.Medication:
        medication = self._load(medication_id, db)
        require_patient_access(db, actor, medication.patient_id, "You are not authorized to access this medication")
        return medication

    async def update_medication(
        self,
        actor: models.User,
        medication_id: str,
        fields: Dict[str, Any],
        db: Session
    ) -> models.Medication:
        """Update allow-listed fields; prescribedBy is re-validated when present"""
        medication = await self.get_medication(actor, medication_id, db)

        updates = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS and v is not None}
        if not updates:
            raise ValidationError("At least one valid field is required to update")

        if "prescribed_by" in updates:
            updates["prescribed_by"] = self._resolve_prescriber(updates["prescribed_by"], db)
        if "schedule" in updates:
            updates["schedule"] = _normalize_schedule(updates["schedule"])
        if "frequency" in updates:
            updates["frequency"] = MedicationFrequency(updates["frequency"])

        start_date = updates.get("start_date", medication.start_date)
        end_date = updates.get("end_date", medication.end_date)
        if end_date and start_date and end_date < start_date:
            raise ValidationError("End date cannot be before start date")

        for key, value in updates.items():
            setattr(medication, key, value)
        medication.updated_at = datetime.utcnow()

        db.commit()
        db.refresh(medication)
        logger.info(f"Updated medication {medication.id}: {sorted(updates)}")
        return medication

    async def delete_medication(
        self,
        actor: models.User,
        medication_id: str,
        db: Session
    ) -> None:
        medication = await self.get_medication(actor, medication_id, db)
        db.delete(medication)
        db.commit()
        logger.info(f"User {actor.id} deleted medication {medication_id}")

    async def toggle_reminder(
        self,
        actor: models.User,
        medication_id: str,
        db: Session
    ) -> models.Medication:
        """Flip reminderEnabled; only the owning patient may do this"""
        parsed = parse_id(medication_id)
        medication = None
        if parsed:
            medication = db.query(models.Medication).filter(
                models.Medication.id == parsed,
                models.Medication.patient_id == actor.id
            ).first()
        if not medication:
            raise NotFoundError("Medication not found")

        medication.reminder_enabled = not medication.reminder_enabled
        db.commit()
        db.refresh(medication)
        logger.info(f"Reminders {'enabled' if medication.reminder_enabled else 'disabled'} for medication {medication.id}")
        return medication

    async def get_patient_medications(
        self,
        patient_id: str,
        db: Session,
        active_only: bool = True
    ) -> List[models.Medication]:
        """Unscoped lookup used for chat context"""
        query = db.query(models.Medication).filter(models.Medication.patient_id == patient_id)
        if active_only:
            query = query.filter(models.Medication.is_active.is_(True))
        return query.order_by(models.Medication.name).all()


# Singleton instance
medication_service = MedicationService()

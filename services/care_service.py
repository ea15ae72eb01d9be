"""
Care Team Service
Provider <-> patient assignment and roster views.

The link lives in a single care_assignments row per patient, so assigning,
unassigning and reassigning are one-row writes.
"""

import logging
from typing import Dict, List, Optional, Any
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

import models
from models import UserRole, AdherenceStatus
from exceptions import (
    ValidationError,
    InvalidReferenceError,
    ForbiddenError,
    NotFoundError,
    AlreadyAssignedError,
    NotAssignedError,
)
from policies import parse_id, roster_ids, require_role
from services.adherence_service import adherence_service


logger = logging.getLogger(__name__)


def _summary(user: models.User) -> Dict[str, str]:
    return {"id": user.id, "name": user.full_name, "email": user.email}


class CareService:
    """
    Service for patient/provider relationships
    """

    def _get_user(self, user_id: Optional[str], db: Session) -> Optional[models.User]:
        parsed = parse_id(user_id)
        return db.get(models.User, parsed) if parsed else None

    def _assignment_for(self, patient_id: str, db: Session) -> Optional[models.CareAssignment]:
        return db.query(models.CareAssignment).filter(
            models.CareAssignment.patient_id == patient_id
        ).first()

    async def assign_patient(
        self,
        provider: models.User,
        db: Session,
        patient_id: Optional[str] = None,
        email: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Provider adds a patient to their own roster

        Args:
            provider: Acting user, must be a provider
            patient_id: Target patient id (takes precedence over email)
            email: Target patient email
            db: Database session

        Returns:
            Message plus the patient summary
        """
        if provider.role != UserRole.PROVIDER:
            raise ForbiddenError("Only providers can assign patients.")
        if not patient_id and not email:
            raise ValidationError("Either patientId or email is required")

        if patient_id:
            patient = self._get_user(patient_id, db)
        else:
            patient = db.query(models.User).filter(
                models.User.email == email.strip().lower()
            ).first()

        if not patient:
            raise NotFoundError("Patient not found.")
        if patient.role != UserRole.PATIENT:
            raise ForbiddenError("Only users with the patient role can be assigned.")

        existing = self._assignment_for(patient.id, db)
        if existing and existing.provider_id == provider.id:
            return {
                "message": "Patient is already assigned to this provider.",
                "patient": _summary(patient),
            }
        if existing:
            raise AlreadyAssignedError("Patient is already assigned to another provider.")

        db.add(models.CareAssignment(
            provider_id=provider.id,
            patient_id=patient.id,
            assigned_by=provider.id,
        ))
        try:
            db.commit()
        except IntegrityError:
            # Another request linked this patient first
            db.rollback()
            raise AlreadyAssignedError("Patient is already assigned to another provider.")

        logger.info(f"Assigned patient {patient.email} to provider {provider.email}")
        return {
            "message": f"Patient {patient.full_name} assigned successfully.",
            "patient": _summary(patient),
        }

    async def unassign_patient(
        self,
        provider: models.User,
        patient_id: str,
        db: Session
    ) -> Dict[str, Any]:
        """Provider removes a patient from their roster"""
        require_role(provider, UserRole.PROVIDER)

        parsed = parse_id(patient_id)
        assignment = self._assignment_for(parsed, db) if parsed else None
        if not assignment or assignment.provider_id != provider.id:
            raise NotAssignedError("Patient is not assigned to this provider.")

        patient = assignment.patient
        db.delete(assignment)
        db.commit()

        logger.info(f"Unassigned patient {patient.email} from provider {provider.email}")
        return {
            "message": f"Patient {patient.full_name} unassigned successfully.",
            "patient": _summary(patient),
        }

    async def admin_assign(
        self,
        admin: models.User,
        patient_id: str,
        provider_id: str,
        db: Session
    ) -> Dict[str, Any]:
        """Admin links a patient to a provider, moving them off any previous provider"""
        if admin.role != UserRole.ADMIN:
            raise ForbiddenError("Only admins can perform this action.")
        if not patient_id or not provider_id:
            raise ValidationError("patientId and providerId are required.")

        provider = self._get_user(provider_id, db)
        if not provider or provider.role != UserRole.PROVIDER:
            raise InvalidReferenceError("Invalid provider selected.")
        patient = self._get_user(patient_id, db)
        if not patient or patient.role != UserRole.PATIENT:
            raise InvalidReferenceError("Invalid patient selected.")

        result = {"patient": _summary(patient), "provider": _summary(provider)}

        assignment = self._assignment_for(patient.id, db)
        if assignment and assignment.provider_id == provider.id:
            result["message"] = "Patient is already assigned to this provider."
            return result

        reassignment_message = ""
        if assignment:
            old_provider = assignment.provider
            reassignment_message = (
                f" Patient was previously assigned to {old_provider.full_name} "
                f"and has been reassigned."
            )
            logger.info(f"Moving patient {patient.email} from provider {old_provider.email}")
            assignment.provider_id = provider.id
            assignment.assigned_by = admin.id
        else:
            db.add(models.CareAssignment(
                provider_id=provider.id,
                patient_id=patient.id,
                assigned_by=admin.id,
            ))
        db.commit()

        logger.info(f"Admin assigned patient {patient.email} to provider {provider.email}")
        result["message"] = (
            f"Patient {patient.full_name} assigned to provider {provider.full_name}."
            f"{reassignment_message}"
        )
        return result

    async def get_roster(self, provider: models.User, db: Session) -> Dict[str, Any]:
        """Provider's patients with their taken-dose percentage"""
        if provider.role != UserRole.PROVIDER:
            raise ForbiddenError("Access denied: only providers can view patients.")

        ids = roster_ids(db, provider.id)
        patients = []
        if ids:
            patients = db.query(models.User).filter(models.User.id.in_(ids)).order_by(
                models.User.last_name, models.User.first_name
            ).all()

        counts = adherence_service.adherence_rates(ids, db)
        entries = []
        for patient in patients:
            c = counts[patient.id]
            total = sum(c.values())
            taken = c[AdherenceStatus.TAKEN.value]
            entries.append({
                "id": patient.id,
                "name": patient.full_name,
                "email": patient.email,
                "gender": patient.gender,
                "date_of_birth": patient.date_of_birth,
                "adherence": round(taken / total * 100, 1) if total else None,
            })
        return {"provider": provider.id, "patients": entries}

    async def get_providers(self, patient: models.User, db: Session) -> List[Dict[str, Any]]:
        """Providers the patient is assigned to"""
        if patient.role != UserRole.PATIENT:
            raise ForbiddenError("Only patients can view their providers.")

        assignments = db.query(models.CareAssignment).filter(
            models.CareAssignment.patient_id == patient.id
        ).all()
        return [
            {
                "id": a.provider.id,
                "name": a.provider.full_name,
                "email": a.provider.email,
                "phone_number": a.provider.phone_number,
            }
            for a in assignments
        ]


# Singleton instance
care_service = CareService()

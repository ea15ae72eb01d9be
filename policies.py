"""
Access Policies
Role rules for patient-owned records, kept apart from the HTTP layer.

Patients see their own records, providers see records of patients on their
roster, admins see everything.
"""

import uuid
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

import models
from models import UserRole
from exceptions import ForbiddenError


logger = logging.getLogger(__name__)

NOT_AUTHORIZED_PATIENT = "You are not authorized to access this patient's records"


def parse_id(value) -> Optional[str]:
    """Return the canonical form of a UUID string, or None when malformed"""
    if value is None:
        return None
    try:
        return str(uuid.UUID(str(value)))
    except (ValueError, TypeError, AttributeError):
        return None


def roster_ids(db: Session, provider_id: str) -> List[str]:
    """Ids of patients assigned to a provider"""
    rows = db.query(models.CareAssignment.patient_id).filter(
        models.CareAssignment.provider_id == provider_id
    ).all()
    return [row[0] for row in rows]


def provider_ids(db: Session, patient_id: str) -> List[str]:
    """Ids of providers a patient is assigned to (zero or one)"""
    rows = db.query(models.CareAssignment.provider_id).filter(
        models.CareAssignment.patient_id == patient_id
    ).all()
    return [row[0] for row in rows]


def is_assigned(db: Session, provider_id: str, patient_id: str) -> bool:
    return db.query(models.CareAssignment).filter(
        models.CareAssignment.provider_id == provider_id,
        models.CareAssignment.patient_id == patient_id,
    ).first() is not None


def can_access_patient(db: Session, actor: models.User, patient_id: str) -> bool:
    """Whether the actor may read or change records owned by patient_id"""
    if actor.role == UserRole.ADMIN:
        return True
    if actor.role == UserRole.PATIENT:
        return patient_id == actor.id
    if actor.role == UserRole.PROVIDER:
        return is_assigned(db, actor.id, patient_id)
    return False


def require_patient_access(db: Session, actor: models.User, patient_id: str, message: str = NOT_AUTHORIZED_PATIENT) -> None:
    if not can_access_patient(db, actor, patient_id):
        logger.warning(f"User {actor.id} ({actor.role.value}) denied access to patient {patient_id}")
        raise ForbiddenError(message)


def scope_patient_ids(
    db: Session,
    actor: models.User,
    requested_patient_id: Optional[str] = None
) -> Optional[List[str]]:
    """
    Patient ids a listing query must be restricted to.

    Returns None when the actor is unrestricted (admin without a filter).
    Raises ForbiddenError when a provider asks for a patient outside the roster.
    """
    if actor.role == UserRole.PATIENT:
        return [actor.id]

    if actor.role == UserRole.PROVIDER:
        roster = roster_ids(db, actor.id)
        if requested_patient_id:
            patient_id = parse_id(requested_patient_id)
            if patient_id not in roster:
                logger.warning(f"Provider {actor.id} requested patient {requested_patient_id} outside roster")
                raise ForbiddenError(NOT_AUTHORIZED_PATIENT)
            return [patient_id]
        return roster

    if actor.role == UserRole.ADMIN:
        if requested_patient_id:
            # A malformed id simply matches nothing
            return [parse_id(requested_patient_id) or str(requested_patient_id)]
        return None

    raise ForbiddenError("Unknown role")


def apply_patient_scope(query, column, scope: Optional[List[str]]):
    """Restrict a query on ``column`` to the ids returned by scope_patient_ids"""
    if scope is None:
        return query
    return query.filter(column.in_(scope))


def require_role(actor: models.User, *roles: UserRole) -> None:
    """Raise ForbiddenError unless the actor holds one of the roles"""
    if actor.role not in roles:
        allowed = ", ".join(r.value for r in roles)
        raise ForbiddenError(f"Access denied: requires role {allowed}")

"""
Adherence Service
Business logic for dose logging, role-scoped listing and aggregation
"""

import logging
from typing import Dict, List, Optional, Any
from datetime import datetime, timedelta
from collections import defaultdict
from sqlalchemy.orm import Session
from sqlalchemy import func

import models
from models import AdherenceStatus, UserRole
from exceptions import ValidationError, NotFoundError
from policies import (
    parse_id,
    require_patient_access,
    require_role,
    scope_patient_ids,
    apply_patient_scope,
)


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("medication_id", "scheduled_time", "status")
UPDATABLE_FIELDS = {"status", "scheduled_time", "taken_at", "notes"}


def _percentage(count: int, total: int, digits: int = 2) -> float:
    if not total:
        return 0.0
    return round(count / total * 100, digits)


class AdherenceService:
    """
    Service for adherence tracking and analysis
    """

    def _load(self, log_id: str, db: Session) -> models.AdherenceLog:
        parsed = parse_id(log_id)
        log = db.get(models.AdherenceLog, parsed) if parsed else None
        if not log:
            raise NotFoundError("Adherence log not found")
        return log

    def _scoped_query(
        self,
        actor: models.User,
        db: Session,
        patient_id: Optional[str] = None,
        medication_id: Optional[str] = None,
        status: Optional[AdherenceStatus] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ):
        """Role-scoped log query with optional filters; date bounds are inclusive"""
        scope = scope_patient_ids(db, actor, patient_id)
        query = apply_patient_scope(db.query(models.AdherenceLog), models.AdherenceLog.patient_id, scope)

        if medication_id:
            query = query.filter(models.AdherenceLog.medication_id == (parse_id(medication_id) or medication_id))
        if status:
            query = query.filter(models.AdherenceLog.status == AdherenceStatus(status))
        if start_date:
            query = query.filter(models.AdherenceLog.scheduled_time >= start_date)
        if end_date:
            query = query.filter(models.AdherenceLog.scheduled_time <= end_date)
        return query

    async def log_adherence(
        self,
        actor: models.User,
        fields: Dict[str, Any],
        db: Session
    ) -> models.AdherenceLog:
        """
        Record one dose event

        Args:
            actor: Acting user
            fields: medication_id, scheduled_time, status, optional taken_at and notes
            db: Database session

        Returns:
            Created AdherenceLog object
        """
        missing = [f for f in REQUIRED_FIELDS if not fields.get(f)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        status = AdherenceStatus(fields["status"])
        parsed = parse_id(fields["medication_id"])
        medication = db.get(models.Medication, parsed) if parsed else None
        if not medication:
            raise NotFoundError("Medication not found")

        require_patient_access(db, actor, medication.patient_id, "You can only log doses for your own medications")

        taken_at = fields.get("taken_at")
        if taken_at is None and status == AdherenceStatus.TAKEN:
            taken_at = datetime.utcnow()

        log = models.AdherenceLog(
            patient_id=medication.patient_id,
            medication_id=medication.id,
            scheduled_time=fields["scheduled_time"],
            taken_at=taken_at,
            status=status,
            notes=fields.get("notes"),
        )
        db.add(log)
        db.commit()
        db.refresh(log)

        logger.info(
            f"Logged adherence for patient {log.patient_id}, "
            f"medication {medication.id}: {status.value}"
        )
        return log

    async def list_logs(
        self,
        actor: models.User,
        db: Session,
        **filters
    ) -> List[models.AdherenceLog]:
        query = self._scoped_query(actor, db, **filters)
        return query.order_by(models.AdherenceLog.scheduled_time.desc()).all()

    async def get_stats(
        self,
        actor: models.User,
        db: Session,
        **filters
    ) -> Dict[str, Any]:
        """Counts per status with percentage of total, rounded to 2 decimals"""
        query = self._scoped_query(actor, db, **filters)
        rows = query.with_entities(
            models.AdherenceLog.status,
            func.count(models.AdherenceLog.id)
        ).group_by(models.AdherenceLog.status).all()

        total = sum(count for _, count in rows)
        stats = [
            {
                "status": status,
                "count": count,
                "percentage": _percentage(count, total),
            }
            for status, count in sorted(rows, key=lambda r: -r[1])
        ]
        return {"total": total, "stats": stats}

    async def update_log(
        self,
        actor: models.User,
        log_id: str,
        fields: Dict[str, Any],
        db: Session
    ) -> models.AdherenceLog:
        log = self._load(log_id, db)
        require_patient_access(db, actor, log.patient_id, "You are not authorized to modify this log")

        updates = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS and v is not None}
        if not updates:
            raise ValidationError("At least one valid field is required to update")

        if "status" in updates:
            updates["status"] = AdherenceStatus(updates["status"])
            if (
                updates["status"] == AdherenceStatus.TAKEN
                and "taken_at" not in updates
                and log.taken_at is None
            ):
                updates["taken_at"] = datetime.utcnow()

        for key, value in updates.items():
            setattr(log, key, value)

        db.commit()
        db.refresh(log)
        return log

    async def delete_log(
        self,
        actor: models.User,
        log_id: str,
        db: Session
    ) -> None:
        log = self._load(log_id, db)
        require_patient_access(db, actor, log.patient_id, "You are not authorized to delete this log")
        db.delete(log)
        db.commit()
        logger.info(f"User {actor.id} deleted adherence log {log_id}")

    # ==================== AGGREGATES ====================

    def adherence_rates(self, patient_ids: List[str], db: Session) -> Dict[str, Dict[str, int]]:
        """Status counts per patient"""
        counts: Dict[str, Dict[str, int]] = defaultdict(lambda: {s.value: 0 for s in AdherenceStatus})
        if not patient_ids:
            return counts

        rows = db.query(
            models.AdherenceLog.patient_id,
            models.AdherenceLog.status,
            func.count(models.AdherenceLog.id)
        ).filter(
            models.AdherenceLog.patient_id.in_(patient_ids)
        ).group_by(
            models.AdherenceLog.patient_id,
            models.AdherenceLog.status
        ).all()

        for patient_id, status, count in rows:
            counts[patient_id][AdherenceStatus(status).value] = count
        return counts

    async def get_report(
        self,
        actor: models.User,
        db: Session,
        patient_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Per-patient adherence summary for providers and admins"""
        require_role(actor, UserRole.PROVIDER, UserRole.ADMIN)

        scope = scope_patient_ids(db, actor, patient_id)
        query = db.query(models.User).filter(models.User.role == UserRole.PATIENT)
        query = apply_patient_scope(query, models.User.id, scope)
        patients = query.order_by(models.User.last_name, models.User.first_name).all()

        counts = self.adherence_rates([p.id for p in patients], db)
        summaries = []
        for patient in patients:
            c = counts[patient.id]
            total = sum(c.values())
            summaries.append({
                "patient_id": patient.id,
                "name": patient.full_name,
                "email": patient.email,
                "total": total,
                "taken": c["taken"],
                "missed": c["missed"],
                "skipped": c["skipped"],
                "pending": c["pending"],
                "adherence_rate": _percentage(c["taken"], total, 1) if total else None,
            })

        return {"generated_at": datetime.utcnow(), "patients": summaries}

    async def get_trends(
        self,
        actor: models.User,
        db: Session,
        days: int = 30,
        patient_id: Optional[str] = None,
        medication_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Daily adherence series over the last ``days`` days, oldest first"""
        if days < 1:
            raise ValidationError("days must be at least 1")

        since = datetime.utcnow() - timedelta(days=days)
        logs = self._scoped_query(
            actor, db,
            patient_id=patient_id,
            medication_id=medication_id,
            start_date=since,
        ).all()

        by_day: Dict[str, Dict[str, int]] = defaultdict(lambda: {s.value: 0 for s in AdherenceStatus})
        for log in logs:
            by_day[log.scheduled_time.date().isoformat()][AdherenceStatus(log.status).value] += 1

        trends = []
        for day in sorted(by_day):
            c = by_day[day]
            total = sum(c.values())
            trends.append({
                "date": day,
                "total": total,
                "taken": c["taken"],
                "missed": c["missed"],
                "skipped": c["skipped"],
                "pending": c["pending"],
                "adherence_rate": _percentage(c["taken"], total, 1),
            })

        return {"days": days, "trends": trends}


# Singleton instance
adherence_service = AdherenceService()

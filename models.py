"""
Database Models
SQLAlchemy ORM models for MediTrack
"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Text, Date, Enum, Index, UniqueConstraint, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum as PyEnum

from config import TableNames
from database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


# ==================== ENUMS ====================

class UserRole(str, PyEnum):
    """Account roles"""
    ADMIN = "admin"
    PATIENT = "patient"
    PROVIDER = "provider"


class Gender(str, PyEnum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class AdherenceStatus(str, PyEnum):
    """Status of a scheduled medication dose"""
    TAKEN = "taken"
    MISSED = "missed"
    SKIPPED = "skipped"
    PENDING = "pending"


class MedicationFrequency(str, PyEnum):
    """How often a medication is prescribed"""
    ONCE_DAILY = "once-daily"
    TWICE_DAILY = "twice-daily"
    THREE_TIMES_DAILY = "three-times-daily"
    FOUR_TIMES_DAILY = "four-times-daily"
    EVERY_OTHER_DAY = "every-other-day"
    WEEKLY = "weekly"
    AS_NEEDED = "as-needed"
    CUSTOM = "custom"


WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


# ==================== MODELS ====================

class User(Base):
    """Account for patients, providers and admins"""
    __tablename__ = TableNames.USERS

    id = Column(String(36), primary_key=True, default=_new_id)

    # Personal info
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)  # stored lowercase
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.PATIENT)
    phone_number = Column(String(10))
    date_of_birth = Column(Date)
    gender = Column(Enum(Gender))

    # Address
    street_address = Column(String(255))
    city = Column(String(100))
    state = Column(String(2))
    zipcode = Column(String(5))

    # Status
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    medications = relationship(
        "Medication",
        back_populates="patient",
        foreign_keys="Medication.patient_id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    adherence_logs = relationship(
        "AdherenceLog",
        back_populates="patient",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def address(self) -> dict:
        return {
            "street_address": self.street_address,
            "city": self.city,
            "state": self.state,
            "zipcode": self.zipcode,
        }


class Medication(Base):
    """Prescribed medication owned by a patient"""
    __tablename__ = TableNames.MEDICATIONS

    id = Column(String(36), primary_key=True, default=_new_id)
    patient_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    name = Column(String(255), nullable=False)
    dosage = Column(String(100), nullable=False)  # e.g., "500mg"
    frequency = Column(Enum(MedicationFrequency), nullable=False)
    # List of {"time": "HH:MM", "days": ["Monday", ...]}
    schedule = Column(JSON, default=list, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date)
    instructions = Column(Text)
    prescribed_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"))

    # Status
    is_active = Column(Boolean, default=True, nullable=False)
    reminder_enabled = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    patient = relationship("User", back_populates="medications", foreign_keys=[patient_id])
    prescriber = relationship("User", foreign_keys=[prescribed_by])
    adherence_logs = relationship(
        "AdherenceLog",
        back_populates="medication",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_medications_patient_active", "patient_id", "is_active"),
    )


class AdherenceLog(Base):
    """One scheduled-dose occurrence and what happened to it"""
    __tablename__ = TableNames.ADHERENCE_LOGS

    id = Column(String(36), primary_key=True, default=_new_id)
    patient_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    medication_id = Column(String(36), ForeignKey("medications.id", ondelete="CASCADE"), nullable=False)

    # Timing
    scheduled_time = Column(DateTime, nullable=False)
    taken_at = Column(DateTime)

    status = Column(Enum(AdherenceStatus), default=AdherenceStatus.PENDING, nullable=False)
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    patient = relationship("User", back_populates="adherence_logs")
    medication = relationship("Medication", back_populates="adherence_logs")

    __table_args__ = (
        Index("ix_adherence_patient_date", "patient_id", "scheduled_time"),
        Index("ix_adherence_status", "status"),
    )


class CareAssignment(Base):
    """
    Provider <-> patient link, stored once.
    A patient's provider and a provider's roster are both derived from this table.
    """
    __tablename__ = TableNames.CARE_ASSIGNMENTS

    id = Column(String(36), primary_key=True, default=_new_id)
    provider_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    patient_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    assigned_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"))
    assigned_at = Column(DateTime, default=datetime.utcnow)

    provider = relationship("User", foreign_keys=[provider_id])
    patient = relationship("User", foreign_keys=[patient_id])

    __table_args__ = (
        # One provider per patient
        UniqueConstraint("patient_id", name="uq_care_assignments_patient"),
    )

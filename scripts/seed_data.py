#!/usr/bin/env python
"""
Seed Data
Script to seed the database with demo accounts, medications and a month of
adherence history for development
"""

import sys
import os
import argparse
import logging
import random
from datetime import datetime, timedelta, time, date
from typing import Dict, List

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import get_db_context, init_db, reset_db
from models import (
    User, Medication, AdherenceLog, CareAssignment,
    UserRole, Gender, AdherenceStatus, MedicationFrequency, WEEKDAYS,
)
from security import hash_password


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_PASSWORD = "Password1!"

DEMO_USERS = [
    {"first_name": "Ada", "last_name": "Admin", "email": "admin@meditrack.dev", "role": UserRole.ADMIN, "gender": Gender.FEMALE},
    {"first_name": "Dana", "last_name": "Doyle", "email": "provider@meditrack.dev", "role": UserRole.PROVIDER, "gender": Gender.FEMALE},
    {"first_name": "John", "last_name": "Smith", "email": "john@meditrack.dev", "role": UserRole.PATIENT, "gender": Gender.MALE},
    {"first_name": "Riley", "last_name": "Garcia", "email": "riley@meditrack.dev", "role": UserRole.PATIENT, "gender": Gender.OTHER},
]

DEMO_MEDICATIONS = [
    {
        "name": "Metformin",
        "dosage": "500mg",
        "frequency": MedicationFrequency.TWICE_DAILY,
        "schedule": [{"time": "08:00", "days": WEEKDAYS}, {"time": "18:00", "days": WEEKDAYS}],
        "instructions": "Take with meals",
        "rate": 0.88,
    },
    {
        "name": "Lisinopril",
        "dosage": "10mg",
        "frequency": MedicationFrequency.ONCE_DAILY,
        "schedule": [{"time": "08:00", "days": WEEKDAYS}],
        "instructions": "Take in the morning",
        "rate": 0.92,
    },
    {
        "name": "Atorvastatin",
        "dosage": "20mg",
        "frequency": MedicationFrequency.ONCE_DAILY,
        "schedule": [{"time": "21:00", "days": WEEKDAYS}],
        "instructions": "Take at bedtime",
        # Evening doses often missed
        "rate": 0.6,
    },
]


def create_tables():
    """Create all database tables"""
    logger.info("Creating database tables...")
    init_db()
    logger.info("Tables created successfully")


def seed_users(db) -> Dict[str, User]:
    """Create the demo accounts, reusing any that already exist"""
    users = {}
    for index, data in enumerate(DEMO_USERS):
        existing = db.query(User).filter(User.email == data["email"]).first()
        if existing:
            logger.info(f"{data['email']} already exists")
            users[data["email"]] = existing
            continue

        user = User(
            first_name=data["first_name"],
            last_name=data["last_name"],
            email=data["email"],
            password_hash=hash_password(DEMO_PASSWORD),
            role=data["role"],
            phone_number=f"555000{index:04d}",
            date_of_birth=date(1960 + index * 7, 1 + index, 10),
            gender=data["gender"],
            street_address=f"{100 + index} Main St",
            city="Springfield",
            state="IL",
            zipcode="62701",
            is_active=True,
        )
        db.add(user)
        users[data["email"]] = user
        logger.info(f"Created {data['role'].value} {data['email']}")

    db.flush()
    return users


def seed_assignment(db, provider: User, patient: User):
    if db.query(CareAssignment).filter(CareAssignment.patient_id == patient.id).first():
        logger.info(f"{patient.email} already has a provider")
        return
    db.add(CareAssignment(provider_id=provider.id, patient_id=patient.id, assigned_by=provider.id))
    db.flush()
    logger.info(f"Assigned {patient.email} to {provider.email}")


def seed_medications(db, patient: User, provider: User, days: int = 30) -> List[Medication]:
    """Add the demo medication list for a patient"""
    medications = []
    for data in DEMO_MEDICATIONS:
        medication = Medication(
            patient_id=patient.id,
            name=data["name"],
            dosage=data["dosage"],
            frequency=data["frequency"],
            schedule=data["schedule"],
            start_date=date.today() - timedelta(days=days),
            instructions=data["instructions"],
            prescribed_by=provider.id,
            is_active=True,
            reminder_enabled=True,
        )
        db.add(medication)
        medications.append(medication)

    db.flush()
    logger.info(f"Created {len(medications)} medications for {patient.email}")
    return medications


def seed_adherence_history(db, patient: User, medications: List[Medication], days: int = 30):
    """Seed adherence history for a patient"""
    logger.info(f"Seeding {days} days of adherence history...")

    random.seed(42)  # For reproducibility

    rates = {m["name"]: m["rate"] for m in DEMO_MEDICATIONS}
    today = datetime.utcnow()
    records_created = 0

    for medication in medications:
        base_rate = rates.get(medication.name, 0.85)

        for day_offset in range(1, days + 1):  # Skip today
            record_date = today - timedelta(days=day_offset)

            for entry in medication.schedule:
                hours, minutes = (int(part) for part in entry["time"].split(":"))
                scheduled_dt = datetime.combine(record_date.date(), time(hours, minutes))

                # Weekend adherence slightly lower
                rate = base_rate - 0.05 if record_date.weekday() >= 5 else base_rate
                roll = random.random()

                taken_at = None
                if roll < rate:
                    status = AdherenceStatus.TAKEN
                    taken_at = scheduled_dt + timedelta(minutes=random.randint(-10, 45))
                elif roll < rate + 0.03:
                    status = AdherenceStatus.SKIPPED
                else:
                    status = AdherenceStatus.MISSED

                db.add(AdherenceLog(
                    patient_id=patient.id,
                    medication_id=medication.id,
                    scheduled_time=scheduled_dt,
                    taken_at=taken_at,
                    status=status,
                ))
                records_created += 1

    db.flush()
    logger.info(f"Created {records_created} adherence records")


def seed_all(clear_existing: bool = False, days: int = 30) -> Dict[str, int]:
    """Run all seed operations and return row counts"""

    logger.info("Database seeding")

    if clear_existing:
        logger.info("Clearing existing data...")
        reset_db()
        logger.info("Existing data cleared")
    else:
        create_tables()

    try:
        with get_db_context() as db:
            return _seed(db, days)
    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        raise


def _seed(db, days: int) -> Dict[str, int]:
    users = seed_users(db)
    provider = users["provider@meditrack.dev"]
    patient = users["john@meditrack.dev"]
    db.commit()

    seed_assignment(db, provider, patient)
    db.commit()

    if not db.query(Medication).filter(Medication.patient_id == patient.id).first():
        medications = seed_medications(db, patient, provider, days=days)
        seed_adherence_history(db, patient, medications, days=days)
        db.commit()
    else:
        logger.info(f"{patient.email} already has medications; skipping history")

    total = db.query(AdherenceLog).filter(AdherenceLog.patient_id == patient.id).count()
    taken = db.query(AdherenceLog).filter(
        AdherenceLog.patient_id == patient.id,
        AdherenceLog.status == AdherenceStatus.TAKEN
    ).count()

    summary = {
        "users": db.query(User).count(),
        "assignments": db.query(CareAssignment).count(),
        "medications": db.query(Medication).count(),
        "adherence_logs": db.query(AdherenceLog).count(),
    }
    logger.info(
        f"Seeding complete: {summary['users']} users, "
        f"{summary['medications']} medications, "
        f"{summary['adherence_logs']} adherence records"
    )
    if total > 0:
        logger.info(f"Demo patient adherence rate: {(taken / total) * 100:.1f}%")
    logger.info(f"Demo accounts use password {DEMO_PASSWORD}")
    return summary


def main():
    parser = argparse.ArgumentParser(
        description="Seed the database with demo data"
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Clear existing data before seeding"
    )
    parser.add_argument(
        "--days",
        type=int,
        default=30,
        help="Days of adherence history to generate"
    )

    args = parser.parse_args()

    seed_all(clear_existing=args.clear, days=args.days)


if __name__ == "__main__":
    main()

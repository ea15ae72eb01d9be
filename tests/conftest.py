"""
Pytest Configuration and Shared Fixtures
========================================

This module provides shared fixtures for all MediTrack tests.
Fixtures include database sessions, test clients, users of every role,
medications, adherence history and auth headers.
"""

import os
import sys
from datetime import datetime, date, timedelta
from typing import Generator, Dict, List

# Settings are read once at import time; point them at a throwaway setup first
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["REMINDER_SCAN_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-with-at-least-32-bytes"
os.environ["ALLOW_ADMIN_REGISTRATION"] = "false"
os.environ.pop("LLM_API_KEY", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Base, get_db
from models import (
    User, Medication, AdherenceLog, CareAssignment,
    UserRole, Gender, AdherenceStatus, MedicationFrequency, WEEKDAYS,
)
from security import hash_password
from services.auth_service import auth_service
from app import app


TEST_PASSWORD = "Password1!"


# ==================== DATABASE FIXTURES ====================

@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine with in-memory SQLite"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    # Enable foreign keys for SQLite
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    # Create all tables
    Base.metadata.create_all(bind=engine)

    yield engine

    # Cleanup
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a test database session"""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_engine
    )

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def session_factory(test_engine):
    """Session factory bound to the test engine, for background components"""
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a FastAPI test client with database override"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ==================== USER FIXTURES ====================

def make_user(
    db: Session,
    email: str,
    role: UserRole,
    first_name: str = "Test",
    last_name: str = "User",
    is_active: bool = True
) -> User:
    user = User(
        first_name=first_name,
        last_name=last_name,
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        role=role,
        phone_number="5551234567",
        date_of_birth=date(1980, 4, 12),
        gender=Gender.FEMALE,
        street_address="1 Main St",
        city="Springfield",
        state="IL",
        zipcode="62701",
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def sample_registration() -> Dict:
    """Valid registration body in wire format"""
    return {
        "firstName": "A",
        "lastName": "B",
        "email": "a@b.com",
        "password": TEST_PASSWORD,
        "role": "patient",
        "phoneNumber": "1234567890",
        "dateOfBirth": "1990-01-01",
        "gender": "male",
        "address": {
            "streetAddress": "12 Elm St",
            "city": "Austin",
            "state": "TX",
            "zipcode": "73301",
        },
    }


@pytest.fixture
def patient(db_session: Session) -> User:
    return make_user(db_session, "pat@example.com", UserRole.PATIENT, "Paula", "Patel")


@pytest.fixture
def other_patient(db_session: Session) -> User:
    return make_user(db_session, "omar@example.com", UserRole.PATIENT, "Omar", "Ortiz")


@pytest.fixture
def provider(db_session: Session) -> User:
    return make_user(db_session, "doc@example.com", UserRole.PROVIDER, "Dana", "Doyle")


@pytest.fixture
def other_provider(db_session: Session) -> User:
    return make_user(db_session, "nurse@example.com", UserRole.PROVIDER, "Nia", "Nash")


@pytest.fixture
def admin(db_session: Session) -> User:
    return make_user(db_session, "admin@example.com", UserRole.ADMIN, "Ada", "Admin")


@pytest.fixture
def assignment(db_session: Session, provider: User, patient: User) -> CareAssignment:
    """Put ``patient`` on ``provider``'s roster"""
    link = CareAssignment(provider_id=provider.id, patient_id=patient.id, assigned_by=provider.id)
    db_session.add(link)
    db_session.commit()
    db_session.refresh(link)
    return link


# ==================== AUTH FIXTURES ====================

def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {auth_service.issue_token(user)}"}


@pytest.fixture
def patient_headers(patient: User) -> Dict[str, str]:
    return auth_headers(patient)


@pytest.fixture
def provider_headers(provider: User) -> Dict[str, str]:
    return auth_headers(provider)


@pytest.fixture
def admin_headers(admin: User) -> Dict[str, str]:
    return auth_headers(admin)


# ==================== MEDICATION FIXTURES ====================

@pytest.fixture
def sample_medication_data() -> Dict:
    """Medication body in wire format"""
    return {
        "name": "Lisinopril",
        "dosage": "10mg",
        "frequency": "once-daily",
        "schedule": [{"time": "08:00", "days": list(WEEKDAYS)}],
        "startDate": (date.today() - timedelta(days=7)).isoformat(),
        "instructions": "Take in the morning",
    }


@pytest.fixture
def medication(db_session: Session, patient: User, provider: User) -> Medication:
    """Active, reminder-enabled daily medication owned by ``patient``"""
    med = Medication(
        patient_id=patient.id,
        name="Metformin",
        dosage="500mg",
        frequency=MedicationFrequency.TWICE_DAILY,
        schedule=[
            {"time": "08:00", "days": list(WEEKDAYS)},
            {"time": "20:00", "days": list(WEEKDAYS)},
        ],
        start_date=date.today() - timedelta(days=30),
        instructions="Take with meals",
        prescribed_by=provider.id,
        is_active=True,
        reminder_enabled=True,
    )
    db_session.add(med)
    db_session.commit()
    db_session.refresh(med)
    return med


@pytest.fixture
def adherence_history(db_session: Session, patient: User, medication: Medication) -> List[AdherenceLog]:
    """Seven days of morning doses, two of them missed"""
    logs = []
    base_time = datetime.utcnow().replace(hour=8, minute=0, second=0, microsecond=0)
    pattern = [True, True, False, True, True, True, False]

    for i, taken in enumerate(pattern):
        scheduled = base_time - timedelta(days=7 - i)
        log = AdherenceLog(
            patient_id=patient.id,
            medication_id=medication.id,
            scheduled_time=scheduled,
            taken_at=scheduled + timedelta(minutes=5) if taken else None,
            status=AdherenceStatus.TAKEN if taken else AdherenceStatus.MISSED,
        )
        db_session.add(log)
        logs.append(log)

    db_session.commit()
    for log in logs:
        db_session.refresh(log)
    return logs


# ==================== MARKERS ====================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "api: mark test as an API test")
    config.addinivalue_line("markers", "database: mark test as requiring database")

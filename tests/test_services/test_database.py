"""
Tests for engine construction and session isolation
"""

import pytest
from datetime import date, datetime, time, timedelta
from unittest.mock import MagicMock

from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from actions.reminder_engine import ReminderScanner
from database import Base, create_db_engine, is_memory_sqlite
from models import User, Medication, UserRole, MedicationFrequency, WEEKDAYS

from tests.conftest import make_user


@pytest.fixture
def file_engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'meditrack.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


class TestEngine:

    @pytest.mark.unit
    @pytest.mark.parametrize("url,expected", [
        ("sqlite:///:memory:", True),
        ("sqlite://", True),
        ("sqlite:///./meditrack.db", False),
        ("postgresql://user:pw@localhost/meditrack", False),
    ])
    def test_memory_detection(self, url, expected):
        assert is_memory_sqlite(url) is expected

    @pytest.mark.database
    def test_only_memory_sqlite_shares_a_connection(self, file_engine):
        memory_engine = create_db_engine("sqlite:///:memory:")

        assert isinstance(memory_engine.pool, StaticPool)
        assert not isinstance(file_engine.pool, StaticPool)
        memory_engine.dispose()


class TestSessionIsolation:

    @pytest.mark.database
    def test_scan_does_not_discard_uncommitted_request_writes(self, file_engine):
        SessionFactory = sessionmaker(autocommit=False, autoflush=False, bind=file_engine)

        with SessionFactory() as setup:
            patient = make_user(setup, "scan@example.com", UserRole.PATIENT, "Sam")
            setup.add(Medication(
                patient_id=patient.id,
                name="Metformin",
                dosage="500mg",
                frequency=MedicationFrequency.ONCE_DAILY,
                schedule=[{"time": "08:00", "days": list(WEEKDAYS)}],
                start_date=date.today() - timedelta(days=1),
            ))
            setup.commit()

        request = SessionFactory()
        request.add(User(
            first_name="Nora",
            last_name="New",
            email="nora@example.com",
            password_hash="x",
            role=UserRole.PATIENT,
        ))
        request.flush()

        notifier = MagicMock()
        reminders = ReminderScanner(SessionFactory, notifier=notifier).scan(
            now=datetime.combine(date.today(), time(7, 58))
        )

        request.commit()
        request.close()

        assert len(reminders) == 1
        notifier.assert_called_once()
        with SessionFactory() as check:
            assert check.query(User).filter(User.email == "nora@example.com").count() == 1

"""
Tests for Adherence Service
Tests medication adherence tracking and analysis business logic
"""

import pytest
from datetime import datetime, timedelta

from services.adherence_service import AdherenceService
from exceptions import ForbiddenError, NotFoundError, ValidationError
from models import AdherenceStatus, AdherenceLog


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def adherence_service():
    """Create adherence service instance"""
    return AdherenceService()


# =============================================================================
# Logging
# =============================================================================

class TestLogAdherence:

    @pytest.mark.asyncio
    async def test_taken_without_time_is_stamped(self, adherence_service, db_session, patient, medication):
        before = datetime.utcnow()
        log = await adherence_service.log_adherence(patient, {
            "medication_id": medication.id,
            "scheduled_time": before.replace(microsecond=0),
            "status": "taken",
        }, db_session)

        assert log.patient_id == patient.id
        assert log.status == AdherenceStatus.TAKEN
        assert log.taken_at >= before

    @pytest.mark.asyncio
    async def test_explicit_taken_at_kept(self, adherence_service, db_session, patient, medication):
        taken_at = datetime(2024, 5, 1, 8, 10)
        log = await adherence_service.log_adherence(patient, {
            "medication_id": medication.id,
            "scheduled_time": datetime(2024, 5, 1, 8, 0),
            "status": "taken",
            "taken_at": taken_at,
        }, db_session)

        assert log.taken_at == taken_at

    @pytest.mark.asyncio
    async def test_missing_fields(self, adherence_service, db_session, patient):
        with pytest.raises(ValidationError):
            await adherence_service.log_adherence(patient, {"status": "taken"}, db_session)

    @pytest.mark.asyncio
    async def test_not_found_before_access_check(self, adherence_service, db_session, other_patient):
        with pytest.raises(NotFoundError):
            await adherence_service.log_adherence(other_patient, {
                "medication_id": "bad-id",
                "scheduled_time": datetime.utcnow(),
                "status": "missed",
            }, db_session)

    @pytest.mark.asyncio
    async def test_provider_logs_for_roster_patient(self, adherence_service, db_session, provider, patient, medication, assignment):
        log = await adherence_service.log_adherence(provider, {
            "medication_id": medication.id,
            "scheduled_time": datetime.utcnow(),
            "status": "missed",
        }, db_session)

        assert log.patient_id == patient.id

    @pytest.mark.asyncio
    async def test_provider_outside_roster(self, adherence_service, db_session, provider, medication):
        with pytest.raises(ForbiddenError):
            await adherence_service.log_adherence(provider, {
                "medication_id": medication.id,
                "scheduled_time": datetime.utcnow(),
                "status": "missed",
            }, db_session)


# =============================================================================
# Aggregates
# =============================================================================

class TestAggregates:

    @pytest.mark.asyncio
    async def test_stats_filtered_by_medication(self, adherence_service, db_session, patient, medication, adherence_history):
        result = await adherence_service.get_stats(patient, db_session, medication_id=medication.id)

        assert result["total"] == 7
        counts = {s["status"]: s["count"] for s in result["stats"]}
        assert counts == {AdherenceStatus.TAKEN: 5, AdherenceStatus.MISSED: 2}

    @pytest.mark.asyncio
    async def test_stats_empty(self, adherence_service, db_session, patient):
        result = await adherence_service.get_stats(patient, db_session)

        assert result == {"total": 0, "stats": []}

    @pytest.mark.database
    def test_adherence_rates(self, adherence_service, db_session, patient, other_patient, adherence_history):
        rates = adherence_service.adherence_rates([patient.id, other_patient.id], db_session)

        assert rates[patient.id] == {"taken": 5, "missed": 2, "skipped": 0, "pending": 0}
        assert sum(rates[other_patient.id].values()) == 0

    @pytest.mark.asyncio
    async def test_trends_window_excludes_old_logs(self, adherence_service, db_session, patient, medication, adherence_history):
        db_session.add(AdherenceLog(
            patient_id=patient.id,
            medication_id=medication.id,
            scheduled_time=datetime.utcnow() - timedelta(days=60),
            status=AdherenceStatus.MISSED,
        ))
        db_session.commit()

        result = await adherence_service.get_trends(patient, db_session, days=30)

        assert len(result["trends"]) == 7
        assert sum(day["total"] for day in result["trends"]) == 7

    @pytest.mark.asyncio
    async def test_report_admin_sees_all_patients(self, adherence_service, db_session, admin, patient, other_patient, adherence_history):
        result = await adherence_service.get_report(admin, db_session)

        by_id = {p["patient_id"]: p for p in result["patients"]}
        assert set(by_id) == {patient.id, other_patient.id}
        assert by_id[patient.id]["adherence_rate"] == 71.4
        assert by_id[other_patient.id]["adherence_rate"] is None


# =============================================================================
# Update
# =============================================================================

class TestUpdateLog:

    @pytest.mark.asyncio
    async def test_existing_taken_at_not_overwritten(self, adherence_service, db_session, patient, adherence_history):
        log = adherence_history[0]
        original = log.taken_at

        updated = await adherence_service.update_log(patient, log.id, {"status": "taken", "notes": "ok"}, db_session)

        assert updated.taken_at == original
        assert updated.notes == "ok"

    @pytest.mark.asyncio
    async def test_non_allow_listed_fields_ignored(self, adherence_service, db_session, patient, other_patient, adherence_history):
        log = adherence_history[0]

        with pytest.raises(ValidationError):
            await adherence_service.update_log(patient, log.id, {"patient_id": other_patient.id}, db_session)

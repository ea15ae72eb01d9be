"""
Tests for access policies
"""

import pytest

import models
from exceptions import ForbiddenError
from policies import (
    parse_id,
    roster_ids,
    provider_ids,
    can_access_patient,
    require_patient_access,
    scope_patient_ids,
    apply_patient_scope,
    require_role,
)
from models import UserRole


class TestParseId:

    @pytest.mark.unit
    def test_canonical_uuid(self):
        assert parse_id("0D6F3F4C-1111-4222-8333-444455556666") == "0d6f3f4c-1111-4222-8333-444455556666"

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [None, "", "42", "not-a-uuid"])
    def test_malformed(self, value):
        assert parse_id(value) is None


class TestPatientAccess:

    @pytest.mark.database
    def test_roster_and_provider_views_agree(self, db_session, patient, provider, assignment):
        assert roster_ids(db_session, provider.id) == [patient.id]
        assert provider_ids(db_session, patient.id) == [provider.id]

    @pytest.mark.database
    def test_patient_owns_only_self(self, db_session, patient, other_patient):
        assert can_access_patient(db_session, patient, patient.id)
        assert not can_access_patient(db_session, patient, other_patient.id)

    @pytest.mark.database
    def test_provider_needs_assignment(self, db_session, patient, other_patient, provider, assignment):
        assert can_access_patient(db_session, provider, patient.id)
        assert not can_access_patient(db_session, provider, other_patient.id)

    @pytest.mark.database
    def test_admin_sees_everyone(self, db_session, admin, patient):
        assert can_access_patient(db_session, admin, patient.id)

    @pytest.mark.database
    def test_require_patient_access_message(self, db_session, provider, patient):
        with pytest.raises(ForbiddenError) as exc:
            require_patient_access(db_session, provider, patient.id, "nope")

        assert exc.value.message == "nope"
        assert exc.value.status_code == 403


class TestScope:

    @pytest.mark.database
    def test_patient_scope_ignores_request(self, db_session, patient, other_patient):
        assert scope_patient_ids(db_session, patient, other_patient.id) == [patient.id]

    @pytest.mark.database
    def test_provider_scope_is_roster(self, db_session, provider, patient, assignment):
        assert scope_patient_ids(db_session, provider) == [patient.id]
        assert scope_patient_ids(db_session, provider, patient.id) == [patient.id]

    @pytest.mark.database
    def test_provider_outside_roster_raises(self, db_session, provider, other_patient, assignment):
        with pytest.raises(ForbiddenError):
            scope_patient_ids(db_session, provider, other_patient.id)

    @pytest.mark.database
    def test_admin_unrestricted(self, db_session, admin, patient):
        assert scope_patient_ids(db_session, admin) is None
        assert scope_patient_ids(db_session, admin, patient.id) == [patient.id]

    @pytest.mark.database
    def test_apply_scope(self, db_session, patient, other_patient, provider, assignment):
        query = db_session.query(models.User).filter(models.User.role == UserRole.PATIENT)

        assert apply_patient_scope(query, models.User.id, None).count() == 2
        assert apply_patient_scope(query, models.User.id, [patient.id]).all() == [patient]
        assert apply_patient_scope(query, models.User.id, []).count() == 0


class TestRequireRole:

    @pytest.mark.database
    def test_allowed(self, provider):
        require_role(provider, UserRole.PROVIDER, UserRole.ADMIN)

    @pytest.mark.database
    def test_denied(self, patient):
        with pytest.raises(ForbiddenError) as exc:
            require_role(patient, UserRole.ADMIN)

        assert "admin" in exc.value.message

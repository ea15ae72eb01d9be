"""
Tests for Auth Service and password/token helpers
"""

from jose import jwt
import pytest
from datetime import date, timedelta

from config import settings
from exceptions import DuplicateEmailError, ForbiddenError, UnauthenticatedError, ValidationError
from models import UserRole
from security import (
    is_strong_password,
    hash_password,
    verify_password,
    create_access_token,
    decode_access_token,
)
from services.auth_service import AuthService


@pytest.fixture
def auth_service():
    return AuthService()


@pytest.fixture
def registration():
    return {
        "first_name": "Rae",
        "last_name": "Reyes",
        "email": "Rae@Example.com",
        "password": "Str0ng!pass",
        "phone_number": "5550001111",
        "date_of_birth": date(1991, 2, 3),
        "gender": "female",
        "address": {"street_address": "5 Pine Rd", "city": "Dover", "state": "DE", "zipcode": "19901"},
    }


class TestPasswords:

    @pytest.mark.unit
    @pytest.mark.parametrize("password,expected", [
        ("Password1!", True),
        ("password1!", False),   # no uppercase
        ("Password!!", False),   # no digit
        ("Password11", False),   # no special character
        ("Pa1!", False),         # too short
        ("P1!" + "a" * 80, False),  # beyond bcrypt's 72 bytes
    ])
    def test_strength_rule(self, password, expected):
        assert is_strong_password(password) is expected

    @pytest.mark.unit
    def test_hash_round_trip(self):
        hashed = hash_password("Password1!")

        assert hashed != "Password1!"
        assert verify_password("Password1!", hashed)
        assert not verify_password("Password2!", hashed)

    @pytest.mark.unit
    def test_verify_against_garbage_hash(self):
        assert verify_password("Password1!", "not-a-hash") is False


class TestTokens:

    @pytest.mark.unit
    def test_claims(self):
        payload = decode_access_token(create_access_token("user-1", "provider"))

        assert payload["sub"] == "user-1"
        assert payload["role"] == "provider"
        assert payload["exp"] > payload["iat"]

    @pytest.mark.unit
    def test_foreign_signature(self):
        token = jwt.encode(
            {"sub": "user-1", "role": "admin"},
            "some-other-secret-key-that-is-long-enough",
            algorithm=settings.JWT_ALGORITHM,
        )

        with pytest.raises(UnauthenticatedError) as exc:
            decode_access_token(token)

        assert exc.value.message == "Not authorized, token failed"

    @pytest.mark.unit
    def test_expired(self):
        token = create_access_token("user-1", "patient", expires_delta=timedelta(seconds=-5))

        with pytest.raises(UnauthenticatedError) as exc:
            decode_access_token(token)

        assert exc.value.message == "Not authorized, token expired"


class TestRegister:

    @pytest.mark.asyncio
    async def test_register_defaults_to_patient(self, auth_service, db_session, registration):
        user, token = await auth_service.register(registration, db_session)

        assert user.role == UserRole.PATIENT
        assert user.email == "rae@example.com"
        assert user.city == "Dover"
        assert user.password_hash != registration["password"]
        assert decode_access_token(token)["sub"] == user.id

    @pytest.mark.asyncio
    async def test_duplicate_email_case_insensitive(self, auth_service, db_session, registration):
        await auth_service.register(registration, db_session)
        registration["email"] = "RAE@example.com"

        with pytest.raises(DuplicateEmailError):
            await auth_service.register(registration, db_session)

    @pytest.mark.asyncio
    async def test_missing_fields(self, auth_service, db_session, registration):
        del registration["gender"]

        with pytest.raises(ValidationError) as exc:
            await auth_service.register(registration, db_session)

        assert "gender" in exc.value.message

    @pytest.mark.asyncio
    async def test_admin_registration_blocked_by_default(self, auth_service, db_session, registration):
        registration["role"] = "admin"

        with pytest.raises(ForbiddenError):
            await auth_service.register(registration, db_session)

    @pytest.mark.asyncio
    async def test_admin_registration_when_allowed(self, auth_service, db_session, registration, monkeypatch):
        monkeypatch.setattr(settings, "ALLOW_ADMIN_REGISTRATION", True)
        registration["role"] = "admin"

        user, _ = await auth_service.register(registration, db_session)

        assert user.role == UserRole.ADMIN


class TestAuthenticate:

    @pytest.mark.asyncio
    async def test_resolves_user(self, auth_service, db_session, patient):
        user = await auth_service.authenticate(auth_service.issue_token(patient), db_session)

        assert user.id == patient.id

    @pytest.mark.asyncio
    async def test_inactive_user_rejected(self, auth_service, db_session, patient):
        token = auth_service.issue_token(patient)
        patient.is_active = False
        db_session.commit()

        with pytest.raises(ForbiddenError):
            await auth_service.authenticate(token, db_session)

    @pytest.mark.asyncio
    async def test_no_token(self, auth_service, db_session):
        with pytest.raises(UnauthenticatedError) as exc:
            await auth_service.authenticate(None, db_session)

        assert exc.value.message == "Not authorized, no token"

"""
Auth Service
Registration, login, bearer-token resolution and admin user management
"""

import logging
from typing import Dict, List, Optional, Any, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import func

import models
from models import UserRole, AdherenceStatus, Gender
from config import settings
from exceptions import (
    ValidationError,
    DuplicateEmailError,
    UnauthenticatedError,
    ForbiddenError,
    NotFoundError,
)
from policies import parse_id
from security import (
    hash_password,
    verify_password,
    is_strong_password,
    create_access_token,
    decode_access_token,
    PASSWORD_RULE_MESSAGE,
)


logger = logging.getLogger(__name__)

REGISTER_REQUIRED_FIELDS = (
    "first_name", "last_name", "email", "password",
    "phone_number", "date_of_birth", "gender", "address",
)
SELF_UPDATABLE_FIELDS = {
    "first_name", "last_name", "email", "password",
    "phone_number", "date_of_birth", "gender", "address",
}
ADMIN_UPDATABLE_FIELDS = SELF_UPDATABLE_FIELDS | {"role", "is_active"}
ADDRESS_FIELDS = ("street_address", "city", "state", "zipcode")

EMPTY_UPDATE_MESSAGE = "At least one valid field is required to update"
DEACTIVATED_MESSAGE = "Account is deactivated. Please contact an administrator."


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """
    Service for accounts and credentials
    """

    def issue_token(self, user: models.User) -> str:
        return create_access_token(user.id, user.role.value)

    async def register(
        self,
        fields: Dict[str, Any],
        db: Session
    ) -> Tuple[models.User, str]:
        """
        Create an account and return it with a fresh bearer token

        Args:
            fields: Registration fields (snake_case); ``address`` is a dict
            db: Database session

        Returns:
            (User, token)
        """
        missing = [f for f in REGISTER_REQUIRED_FIELDS if not fields.get(f)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        if not is_strong_password(fields["password"]):
            raise ValidationError(PASSWORD_RULE_MESSAGE)

        role = UserRole(fields.get("role") or UserRole.PATIENT)
        if role == UserRole.ADMIN and not settings.ALLOW_ADMIN_REGISTRATION:
            raise ForbiddenError("Admin accounts cannot be self-registered")

        email = _normalize_email(fields["email"])
        if db.query(models.User).filter(models.User.email == email).first():
            raise DuplicateEmailError("Email already registered")

        address = fields.get("address") or {}
        user = models.User(
            first_name=fields["first_name"],
            last_name=fields["last_name"],
            email=email,
            password_hash=hash_password(fields["password"]),
            role=role,
            phone_number=fields["phone_number"],
            date_of_birth=fields["date_of_birth"],
            gender=Gender(fields["gender"]),
            **{key: address.get(key) for key in ADDRESS_FIELDS},
            is_active=True,
        )
        db.add(user)
        db.commit()
        db.refresh(user)

        logger.info(f"Registered {role.value} {user.id} ({email})")
        return user, self.issue_token(user)

    async def login(
        self,
        email: str,
        password: str,
        db: Session
    ) -> Tuple[models.User, str]:
        """Check credentials; unknown email and wrong password fail the same way"""
        user = None
        if email:
            user = db.query(models.User).filter(
                models.User.email == _normalize_email(email)
            ).first()

        if not user or not password or not verify_password(password, user.password_hash):
            logger.info("Failed login attempt")
            raise UnauthenticatedError("Invalid credentials")

        if not user.is_active:
            raise ForbiddenError(DEACTIVATED_MESSAGE)

        return user, self.issue_token(user)

    async def authenticate(self, token: Optional[str], db: Session) -> models.User:
        """Resolve a bearer token to its user"""
        if not token:
            raise UnauthenticatedError("Not authorized, no token")

        payload = decode_access_token(token)
        user = db.get(models.User, payload["sub"])
        if not user:
            raise UnauthenticatedError("Not authorized, user not found")
        if not user.is_active:
            raise ForbiddenError(DEACTIVATED_MESSAGE)
        return user

    # ==================== PROFILE ====================

    def _apply_fields(
        self,
        user: models.User,
        fields: Dict[str, Any],
        allowed: set,
        db: Session
    ) -> None:
        updates = {k: v for k, v in fields.items() if k in allowed and v is not None}
        if not updates:
            raise ValidationError(EMPTY_UPDATE_MESSAGE)

        if "email" in updates:
            email = _normalize_email(updates.pop("email"))
            clash = db.query(models.User).filter(
                models.User.email == email,
                models.User.id != user.id
            ).first()
            if clash:
                raise DuplicateEmailError("Email already registered")
            user.email = email

        if "password" in updates:
            password = updates.pop("password")
            if not is_strong_password(password):
                raise ValidationError(PASSWORD_RULE_MESSAGE)
            user.password_hash = hash_password(password)

        if "address" in updates:
            address = updates.pop("address")
            for key in ADDRESS_FIELDS:
                if address.get(key) is not None:
                    setattr(user, key, address[key])

        if "role" in updates:
            new_role = UserRole(updates.pop("role"))
            if new_role != user.role:
                self._drop_assignments(user, db)
                logger.info(f"User {user.id} role changed {user.role.value} -> {new_role.value}")
                user.role = new_role

        for key, value in updates.items():
            setattr(user, key, value)

    def _drop_assignments(self, user: models.User, db: Session) -> int:
        """Remove every care link the user takes part in"""
        return db.query(models.CareAssignment).filter(
            (models.CareAssignment.provider_id == user.id)
            | (models.CareAssignment.patient_id == user.id)
        ).delete(synchronize_session=False)

    async def update_me(
        self,
        user: models.User,
        fields: Dict[str, Any],
        db: Session
    ) -> models.User:
        """Self-service profile update; role and activation are not editable here"""
        self._apply_fields(user, fields, SELF_UPDATABLE_FIELDS, db)
        db.commit()
        db.refresh(user)
        return user

    # ==================== ADMIN ====================

    async def list_users(
        self,
        db: Session,
        role: Optional[UserRole] = None,
        is_active: Optional[bool] = None
    ) -> List[models.User]:
        query = db.query(models.User)
        if role:
            query = query.filter(models.User.role == UserRole(role))
        if is_active is not None:
            query = query.filter(models.User.is_active == is_active)
        return query.order_by(models.User.created_at.desc()).all()

    async def get_user(self, user_id: str, db: Session) -> models.User:
        parsed = parse_id(user_id)
        user = db.get(models.User, parsed) if parsed else None
        if not user:
            raise NotFoundError("User not found")
        return user

    async def update_user(
        self,
        user_id: str,
        fields: Dict[str, Any],
        db: Session
    ) -> models.User:
        """Admin update of any profile field, role and activation included"""
        user = await self.get_user(user_id, db)
        self._apply_fields(user, fields, ADMIN_UPDATABLE_FIELDS, db)
        db.commit()
        db.refresh(user)
        logger.info(f"Admin updated user {user.id}")
        return user

    async def delete_user(
        self,
        admin: models.User,
        user_id: str,
        db: Session
    ) -> None:
        user = await self.get_user(user_id, db)
        if user.id == admin.id:
            raise ValidationError("You cannot delete your own account")

        self._drop_assignments(user, db)
        db.delete(user)
        db.commit()
        logger.info(f"Admin {admin.id} deleted user {user_id}")

    async def admin_stats(self, db: Session) -> Dict[str, Any]:
        """Aggregate counts for the admin dashboard"""
        role_counts = dict(
            db.query(models.User.role, func.count(models.User.id))
            .group_by(models.User.role).all()
        )
        active = db.query(func.count(models.User.id)).filter(models.User.is_active.is_(True)).scalar()
        total_users = sum(role_counts.values())

        total_meds = db.query(func.count(models.Medication.id)).scalar()
        active_meds = db.query(func.count(models.Medication.id)).filter(
            models.Medication.is_active.is_(True)
        ).scalar()
        reminder_meds = db.query(func.count(models.Medication.id)).filter(
            models.Medication.reminder_enabled.is_(True)
        ).scalar()

        status_counts = dict(
            db.query(models.AdherenceLog.status, func.count(models.AdherenceLog.id))
            .group_by(models.AdherenceLog.status).all()
        )

        return {
            "users": {
                "total": total_users,
                "patients": role_counts.get(UserRole.PATIENT, 0),
                "providers": role_counts.get(UserRole.PROVIDER, 0),
                "admins": role_counts.get(UserRole.ADMIN, 0),
                "active": active,
                "inactive": total_users - active,
            },
            "medications": {
                "total": total_meds,
                "active": active_meds,
                "reminderEnabled": reminder_meds,
            },
            "adherenceLogs": {
                "total": sum(status_counts.values()),
                "byStatus": {s.value: status_counts.get(s, 0) for s in AdherenceStatus},
            },
        }


# Singleton instance
auth_service = AuthService()

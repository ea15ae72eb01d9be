"""
User Schemas
Pydantic models for registration, login, profiles and admin user management
"""

from typing import Optional, List
from datetime import datetime, date
from pydantic import EmailStr, Field, field_validator

from api.schemas import CamelModel
from models import UserRole, Gender
from security import is_strong_password, PASSWORD_RULE_MESSAGE


US_STATES = {
    "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "DC", "FL", "GA", "HI", "ID",
    "IL", "IN", "IA", "KS", "KY", "LA", "ME", "MD", "MA", "MI", "MN", "MS", "MO",
    "MT", "NE", "NV", "NH", "NJ", "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA",
    "RI", "SC", "SD", "TN", "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY",
}


def _check_password(value: Optional[str]) -> Optional[str]:
    if value is not None and not is_strong_password(value):
        raise ValueError(PASSWORD_RULE_MESSAGE)
    return value


# ==================== SHARED SCHEMAS ====================

class Address(CamelModel):
    street_address: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str
    zipcode: str = Field(..., pattern=r"^\d{5}$")

    @field_validator("state")
    @classmethod
    def validate_state(cls, value: str) -> str:
        code = value.strip().upper()
        if code not in US_STATES:
            raise ValueError("State must be a valid US state code")
        return code


# ==================== REQUEST SCHEMAS ====================

class UserRegister(CamelModel):
    """Schema for account registration"""
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str
    role: Optional[UserRole] = None
    phone_number: str = Field(..., pattern=r"^\d{10}$")
    date_of_birth: date
    gender: Gender
    address: Address

    @field_validator("password")
    @classmethod
    def validate_password(cls, value):
        return _check_password(value)


class UserLogin(CamelModel):
    email: str
    password: str


class UserSelfUpdate(CamelModel):
    """Fields a user may change on their own profile"""
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    phone_number: Optional[str] = Field(None, pattern=r"^\d{10}$")
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    address: Optional[Address] = None

    @field_validator("password")
    @classmethod
    def validate_password(cls, value):
        return _check_password(value)


class AdminUserUpdate(UserSelfUpdate):
    """Admins may additionally change role and activation"""
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


# ==================== RESPONSE SCHEMAS ====================

class AddressResponse(CamelModel):
    street_address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None


class UserResponse(CamelModel):
    """Public profile; never carries the password hash"""
    id: str
    first_name: str
    last_name: str
    email: str
    role: UserRole
    phone_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    address: Optional[AddressResponse] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


class AuthResponse(UserResponse):
    """Profile plus bearer token, returned by register and login"""
    token: str
    message: Optional[str] = None


class UserList(CamelModel):
    users: List[UserResponse]
    total: int

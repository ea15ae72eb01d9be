"""
Security Module - JWT Bearer Tokens & Password Hashing
"""

import re
import uuid
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError
from passlib.context import CryptContext

from config import settings
from exceptions import UnauthenticatedError


logger = logging.getLogger(__name__)


# At least 8 chars, one uppercase letter, one digit, one special character
PASSWORD_PATTERN = re.compile(
    r"^(?=.*[A-Z])(?=.*[0-9])(?=.*[!@#$%^&*()_+\-=\[\]{};'\":|,.<>/?]).{8,}$"
)
PASSWORD_RULE_MESSAGE = (
    "Password must contain at least 8 characters, including one uppercase letter, "
    "one number, and one special character"
)
# bcrypt only looks at the first 72 bytes
PASSWORD_MAX_BYTES = 72

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def is_strong_password(password: str) -> bool:
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        return False
    return bool(PASSWORD_PATTERN.match(password))


def hash_password(password: str) -> str:
    """Hash a password with bcrypt using the configured cost factor"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its bcrypt hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Unrecognized or malformed stored hash
        return False


def create_access_token(user_id: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed bearer token for a user.

    Args:
        user_id: User's id, stored as the ``sub`` claim
        role: User's role at the time of issue
        expires_delta: Lifetime override; defaults to JWT_EXPIRE_DAYS

    Returns:
        Encoded JWT string
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": now,
        "exp": now + (expires_delta or timedelta(days=settings.JWT_EXPIRE_DAYS)),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and validate a bearer token, raising UnauthenticatedError on any failure"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        logger.debug("Rejected expired token")
        raise UnauthenticatedError("Not authorized, token expired")
    except JWTError as e:
        logger.warning(f"Rejected invalid token: {e}")
        raise UnauthenticatedError("Not authorized, token failed")

    if not payload.get("sub"):
        raise UnauthenticatedError("Not authorized, token failed")
    return payload

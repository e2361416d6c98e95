"""
Security utilities: password hashing, JWT issuance/verification and
free-text sanitisation.
"""

import logging
import secrets
import string
from datetime import datetime, timedelta
from typing import Any, Optional

import bleach
from jose import ExpiredSignatureError, JWTError
from jose import jwt as jose_jwt
from passlib.context import CryptContext

from .config import (
    JWT_ALGORITHM,
    JWT_EXPIRES_MINUTES,
    JWT_REFRESH_EXPIRES_DAYS,
    JWT_REFRESH_SECRET,
    JWT_SECRET,
)

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class TokenExpiredError(Exception):
    """Raised when a JWT is well-formed but past its expiry"""


class InvalidTokenError(Exception):
    """Raised when a JWT cannot be decoded or fails signature checks"""


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password_bcrypt(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password_bcrypt(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error(f"Password verification error: {e}")
        return False


def check_password_strength(password: str) -> Optional[str]:
    """
    Return an error message when the password is too weak, None otherwise.

    Requires at least 6 characters with one lowercase letter, one uppercase
    letter and one digit.
    """
    if len(password) < 6:
        return "Password must be at least 6 characters long"
    if not any(c.islower() for c in password):
        return "Password must contain at least one lowercase letter"
    if not any(c.isupper() for c in password):
        return "Password must contain at least one uppercase letter"
    if not any(c.isdigit() for c in password):
        return "Password must contain at least one number"
    return None


# ============================================================================
# TOKEN MANAGEMENT
# ============================================================================


def create_jwt_token(
    data: dict[str, Any],
    expires_delta: Optional[timedelta] = None,
    secret: str = JWT_SECRET,
) -> str:
    """
    Create a JWT token

    Args:
        data: Data to encode in the token
        expires_delta: Token expiration time (default JWT_EXPIRES_MINUTES)
        secret: Signing secret, the refresh secret for refresh tokens
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=JWT_EXPIRES_MINUTES)

    to_encode.update({"exp": expire})
    return jose_jwt.encode(to_encode, secret, algorithm=JWT_ALGORITHM)


def decode_jwt_token(token: str, secret: str = JWT_SECRET) -> dict[str, Any]:
    """
    Decode a JWT token, distinguishing expiry from other failures.

    Raises:
        TokenExpiredError: signature valid but token expired
        InvalidTokenError: anything else
    """
    try:
        return jose_jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError as e:
        raise TokenExpiredError(str(e)) from e
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        raise InvalidTokenError(str(e)) from e


def create_access_token(user) -> str:
    """Access token carrying the requester's identity and role"""
    return create_jwt_token(
        {
            "userId": user.id,
            "username": user.username,
            "email": user.email,
            "role": user.role,
        }
    )


def create_refresh_token(user) -> str:
    return create_jwt_token(
        {"userId": user.id},
        expires_delta=timedelta(days=JWT_REFRESH_EXPIRES_DAYS),
        secret=JWT_REFRESH_SECRET,
    )


def generate_transaction_id() -> str:
    """TXN_<epoch millis>_<9 random chars>"""
    alphabet = string.ascii_lowercase + string.digits
    suffix = "".join(secrets.choice(alphabet) for _ in range(9))
    return f"TXN_{int(datetime.utcnow().timestamp() * 1000)}_{suffix}"


# ============================================================================
# INPUT SANITIZATION
# ============================================================================


def sanitize_text(value: Optional[str]) -> Optional[str]:
    """Strip every HTML tag from free text (symptoms, notes, bios)"""
    if value is None:
        return None
    return bleach.clean(value, tags=[], attributes={}, strip=True).strip()

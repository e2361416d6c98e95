"""User domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import USER_ROLES, User
from ...shared.validators import validate_email, validate_username


def _validate_role(v):
    if v is not None and v not in USER_ROLES:
        raise ValueError("Role must be either USER or ADMIN")
    return v


class UserCreate(BaseModel):
    """Schema for an administrator creating an account"""

    username: str
    email: str
    password: str
    role: str = "USER"

    @field_validator("username")
    @classmethod
    def check_username(cls, v):
        return validate_username(v)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters long")
        return v

    @field_validator("role")
    @classmethod
    def check_role(cls, v):
        return _validate_role(v)


class UserUpdate(BaseModel):
    """Schema for updating an account; role changes are admin-only"""

    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None

    @field_validator("username")
    @classmethod
    def check_username(cls, v):
        return validate_username(v)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        if v is not None and len(v) < 6:
            raise ValueError("Password must be at least 6 characters long")
        return v

    @field_validator("role")
    @classmethod
    def check_role(cls, v):
        return _validate_role(v)


class UserResponse(BaseModel):
    """Schema for user response (never carries the password hash)"""

    id: int
    username: str
    email: str
    role: str
    lastLogin: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role=user.role,
            lastLogin=user.last_login,
            createdAt=user.created_at,
            updatedAt=user.updated_at,
        )


class UserSummary(BaseModel):
    """Compact user reference embedded in appointment and payment views"""

    id: int
    username: str
    email: str

    @classmethod
    def from_model(cls, user: Optional[User]) -> Optional["UserSummary"]:
        if user is None:
            return None
        return cls(id=user.id, username=user.username, email=user.email)

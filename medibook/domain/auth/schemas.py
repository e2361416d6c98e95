"""Auth domain schemas"""

from typing import Optional

from pydantic import BaseModel, field_validator

from ...security_utils import check_password_strength
from ...shared.validators import validate_email, validate_username


class RegisterRequest(BaseModel):
    username: str
    email: str
    password: str

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
        error = check_password_strength(v)
        if error:
            raise ValueError(error)
        return v


class LoginRequest(BaseModel):
    """username may also be the account email"""

    username: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = None

"""Auth service - registration, login and token refresh"""

import logging
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import JWT_REFRESH_SECRET
from ...models import User
from ...security_utils import (
    InvalidTokenError,
    TokenExpiredError,
    create_access_token,
    create_refresh_token,
    decode_jwt_token,
    hash_password_bcrypt,
    verify_password_bcrypt,
)
from ..users.repository import UserRepository
from ..users.schemas import UserResponse
from .schemas import LoginRequest, RegisterRequest

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    @staticmethod
    def _session_payload(user: User) -> dict:
        return {
            "user": UserResponse.from_model(user),
            "access_token": create_access_token(user),
            "refresh_token": create_refresh_token(user),
        }

    def register(self, data: RegisterRequest) -> dict:
        if self.repo.find_conflicting(self.db, data.username, data.email):
            raise HTTPException(
                status_code=400, detail="User with this username or email already exists"
            )

        try:
            user = self.repo.create(
                self.db,
                username=data.username,
                email=data.email,
                password_hash=hash_password_bcrypt(data.password),
                role="USER",
            )
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(
                status_code=400, detail="User with this username or email already exists"
            ) from e

        logger.info(f"✅ Registered user {user.id} ({user.username})")
        return self._session_payload(user)

    def login(self, data: LoginRequest) -> dict:
        user = self.repo.get_by_login(self.db, data.username.strip())
        if not user or not verify_password_bcrypt(data.password, user.password_hash):
            logger.warning(f"🚫 Failed login for '{data.username}'")
            raise HTTPException(status_code=401, detail="Invalid credentials")

        user = self.repo.update(self.db, user, last_login=datetime.utcnow())
        logger.info(f"🔑 User {user.id} logged in")
        return self._session_payload(user)

    def refresh(self, refresh_token: str) -> dict:
        if not refresh_token:
            raise HTTPException(status_code=400, detail="Refresh token is required")

        try:
            payload = decode_jwt_token(refresh_token, secret=JWT_REFRESH_SECRET)
        except (TokenExpiredError, InvalidTokenError) as e:
            raise HTTPException(status_code=401, detail="Invalid refresh token") from e

        user = self.repo.get_by_id(self.db, payload.get("userId"))
        if not user:
            raise HTTPException(status_code=401, detail="Invalid refresh token")

        return {"access_token": create_access_token(user)}

"""User service - Business logic for account management"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...auth import ensure_owner_or_admin
from ...models import User
from ...security_utils import hash_password_bcrypt
from ...shared.responses import PageParams, paginate
from .repository import UserRepository
from .schemas import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    """Service layer for user accounts"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def get_user(self, user_id: int, current_user: User) -> User:
        ensure_owner_or_admin(current_user, user_id)
        user = self.repo.get_by_id(self.db, user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return user

    def list_users(self, params: PageParams, role: Optional[str] = None) -> tuple[list[User], dict]:
        return paginate(self.repo.list_query(self.db, role), params)

    def create_user(self, data: UserCreate) -> User:
        if self.repo.find_conflicting(self.db, data.username, data.email):
            raise HTTPException(
                status_code=400, detail="User with this email or username already exists"
            )

        user = self._commit_unique(
            lambda: self.repo.create(
                self.db,
                username=data.username,
                email=data.email,
                password_hash=hash_password_bcrypt(data.password),
                role=data.role,
            )
        )
        logger.info(f"👤 Created user {user.id} ({user.role})")
        return user

    def update_user(self, user_id: int, data: UserUpdate, current_user: User) -> User:
        user = self.get_user(user_id, current_user)

        if data.username and data.username != user.username:
            if self.repo.find_conflicting(self.db, data.username, None, exclude_id=user.id):
                raise HTTPException(status_code=400, detail="Username already taken")
        if data.email and data.email != user.email:
            if self.repo.find_conflicting(self.db, None, data.email, exclude_id=user.id):
                raise HTTPException(status_code=400, detail="Email already taken")

        updates = {"username": data.username, "email": data.email}
        if data.password:
            updates["password_hash"] = hash_password_bcrypt(data.password)
        if data.role is not None:
            if not current_user.is_admin:
                raise HTTPException(status_code=403, detail="Only administrators can change roles")
            updates["role"] = data.role

        return self._commit_unique(lambda: self.repo.update(self.db, user, **updates))

    def delete_user(self, user_id: int, current_user: User) -> None:
        user = self.repo.get_by_id(self.db, user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        if user.id == current_user.id:
            raise HTTPException(status_code=400, detail="You cannot delete your own account")

        self.repo.delete(self.db, user)
        logger.info(f"🗑️ User {user_id} deleted by admin {current_user.id}")

    def _commit_unique(self, write):
        """Run a write, mapping a lost uniqueness race to the same 400 as the pre-check"""
        try:
            return write()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Username/email uniqueness violation: {e.orig}")
            raise HTTPException(
                status_code=400, detail="User with this email or username already exists"
            ) from e

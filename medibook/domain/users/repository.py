"""User repository - Database operations for user accounts"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from ...models import User


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    def get_by_id(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_by_login(db: Session, identifier: str) -> Optional[User]:
        """Look a user up by username or email"""
        return (
            db.query(User)
            .filter(or_(User.username == identifier, User.email == identifier.lower()))
            .first()
        )

    @staticmethod
    def find_conflicting(
        db: Session, username: Optional[str], email: Optional[str], exclude_id: Optional[int] = None
    ) -> Optional[User]:
        """Find another account already holding this username or email"""
        clauses = []
        if username:
            clauses.append(User.username == username)
        if email:
            clauses.append(User.email == email.lower())
        if not clauses:
            return None

        query = db.query(User).filter(or_(*clauses))
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        return query.first()

    @staticmethod
    def list_query(db: Session, role: Optional[str] = None) -> Query:
        query = db.query(User)
        if role:
            query = query.filter(User.role == role)
        return query.order_by(User.created_at.desc(), User.id.desc())

    @staticmethod
    def count(db: Session, role: Optional[str] = None) -> int:
        query = db.query(func.count(User.id))
        if role:
            query = query.filter(User.role == role)
        return query.scalar() or 0

    @staticmethod
    def create(db: Session, **user_data) -> User:
        user = User(**user_data)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def update(db: Session, user: User, **updates) -> User:
        for key, value in updates.items():
            if value is not None and hasattr(user, key):
                setattr(user, key, value)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def delete(db: Session, user: User) -> None:
        db.delete(user)
        db.commit()

"""Diagnostic test repository - Database operations for the test catalog"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from ...models import DiagnosticTest


class DiagnosticTestRepository:
    @staticmethod
    def get_by_id(db: Session, test_id: int) -> Optional[DiagnosticTest]:
        return db.query(DiagnosticTest).filter(DiagnosticTest.id == test_id).first()

    @staticmethod
    def search_query(
        db: Session,
        category: Optional[str] = None,
        search: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        available_only: bool = True,
    ) -> Query:
        """Filtered test listing ordered by category then price"""
        query = db.query(DiagnosticTest)

        if available_only:
            query = query.filter(DiagnosticTest.is_available.is_(True))
        if category:
            query = query.filter(DiagnosticTest.category == category)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(DiagnosticTest.name.ilike(pattern), DiagnosticTest.description.ilike(pattern))
            )
        if min_price is not None:
            query = query.filter(DiagnosticTest.price >= min_price)
        if max_price is not None:
            query = query.filter(DiagnosticTest.price <= max_price)

        return query.order_by(DiagnosticTest.category.asc(), DiagnosticTest.price.asc(), DiagnosticTest.id)

    @staticmethod
    def get_categories(db: Session) -> list[str]:
        rows = (
            db.query(DiagnosticTest.category)
            .filter(DiagnosticTest.is_available.is_(True))
            .distinct()
            .order_by(DiagnosticTest.category)
            .all()
        )
        return [row[0] for row in rows]

    @staticmethod
    def count(db: Session) -> int:
        return db.query(func.count(DiagnosticTest.id)).scalar() or 0

    @staticmethod
    def create(db: Session, **test_data) -> DiagnosticTest:
        test = DiagnosticTest(**test_data)
        db.add(test)
        db.commit()
        db.refresh(test)
        return test

    @staticmethod
    def update(db: Session, test: DiagnosticTest, **updates) -> DiagnosticTest:
        for key, value in updates.items():
            if value is not None and hasattr(test, key):
                setattr(test, key, value)
        db.commit()
        db.refresh(test)
        return test

    @staticmethod
    def delete(db: Session, test: DiagnosticTest) -> None:
        db.delete(test)
        db.commit()

"""Diagnostic test service - Business logic for the test catalog"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import DiagnosticTest
from ...shared.responses import PageParams, paginate
from .repository import DiagnosticTestRepository
from .schemas import DiagnosticTestCreate, DiagnosticTestUpdate

logger = logging.getLogger(__name__)

_COLUMN_NAMES = {
    "name": "name",
    "description": "description",
    "category": "category",
    "price": "price",
    "duration": "duration",
    "preparationInstructions": "preparation_instructions",
    "normalRange": "normal_range",
    "isAvailable": "is_available",
}


def _to_columns(data) -> dict:
    values = data.model_dump(exclude_unset=True)
    return {
        _COLUMN_NAMES[field]: value
        for field, value in values.items()
        if field in _COLUMN_NAMES and value is not None
    }


class DiagnosticTestService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = DiagnosticTestRepository()

    def list_tests(
        self,
        params: PageParams,
        category: Optional[str] = None,
        search: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        available_only: bool = True,
    ) -> tuple[list[DiagnosticTest], dict]:
        query = self.repo.search_query(
            self.db, category, search, min_price, max_price, available_only=available_only
        )
        return paginate(query, params)

    def get_test(self, test_id: int) -> DiagnosticTest:
        test = self.repo.get_by_id(self.db, test_id)
        if not test:
            raise HTTPException(status_code=404, detail="Test not found")
        return test

    def get_categories(self) -> list[str]:
        return self.repo.get_categories(self.db)

    def create_test(self, data: DiagnosticTestCreate) -> DiagnosticTest:
        test = self.repo.create(self.db, **_to_columns(data))
        logger.info(f"🧪 Created test {test.id} ({test.category})")
        return test

    def update_test(self, test_id: int, data: DiagnosticTestUpdate) -> DiagnosticTest:
        test = self.get_test(test_id)
        return self.repo.update(self.db, test, **_to_columns(data))

    def delete_test(self, test_id: int) -> None:
        test = self.get_test(test_id)
        self.repo.delete(self.db, test)
        logger.info(f"🗑️ Deleted test {test_id}")

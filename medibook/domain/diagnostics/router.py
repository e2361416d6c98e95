"""Diagnostic test router - mounted at /tests"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...shared.responses import PageParams, success_response
from .schemas import DiagnosticTestCreate, DiagnosticTestResponse, DiagnosticTestUpdate
from .service import DiagnosticTestService

router = APIRouter(prefix="/tests", tags=["Tests"])


def get_test_service(db: Session = Depends(get_db)) -> DiagnosticTestService:
    """Dependency injection for DiagnosticTestService"""
    return DiagnosticTestService(db)


# ============================================================================
# PUBLIC CATALOG
# ============================================================================


@router.get("")
async def list_tests(
    params: PageParams = Depends(),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    minPrice: Optional[float] = Query(None, ge=0),
    maxPrice: Optional[float] = Query(None, ge=0),
    service: DiagnosticTestService = Depends(get_test_service),
):
    """Available tests only"""
    tests, pagination = service.list_tests(params, category, search, minPrice, maxPrice)
    return success_response(
        data=[DiagnosticTestResponse.from_model(t) for t in tests], pagination=pagination
    )


@router.get("/categories")
async def get_categories(service: DiagnosticTestService = Depends(get_test_service)):
    return success_response(data=service.get_categories())


@router.get("/{test_id}")
async def get_test(test_id: int, service: DiagnosticTestService = Depends(get_test_service)):
    return success_response(data=DiagnosticTestResponse.from_model(service.get_test(test_id)))


# ============================================================================
# ADMIN MAINTENANCE
# ============================================================================


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
async def create_test(
    data: DiagnosticTestCreate, service: DiagnosticTestService = Depends(get_test_service)
):
    test = service.create_test(data)
    return success_response(
        data=DiagnosticTestResponse.from_model(test), message="Test created successfully"
    )


@router.put("/{test_id}", dependencies=[Depends(require_admin)])
async def update_test(
    test_id: int,
    data: DiagnosticTestUpdate,
    service: DiagnosticTestService = Depends(get_test_service),
):
    test = service.update_test(test_id, data)
    return success_response(
        data=DiagnosticTestResponse.from_model(test), message="Test updated successfully"
    )


@router.delete("/{test_id}", dependencies=[Depends(require_admin)])
async def delete_test(test_id: int, service: DiagnosticTestService = Depends(get_test_service)):
    service.delete_test(test_id)
    return success_response(message="Test deleted successfully")

"""Doctor router - public catalog browsing plus admin maintenance"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...shared.responses import PageParams, success_response
from .schemas import DoctorCreate, DoctorResponse, DoctorUpdate
from .service import DoctorService

router = APIRouter(prefix="/doctors", tags=["Doctors"])


def get_doctor_service(db: Session = Depends(get_db)) -> DoctorService:
    """Dependency injection for DoctorService"""
    return DoctorService(db)


# ============================================================================
# PUBLIC CATALOG
# ============================================================================


@router.get("")
async def list_doctors(
    params: PageParams = Depends(),
    specialization: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    minRating: Optional[float] = Query(None, ge=0, le=5),
    maxFee: Optional[float] = Query(None, ge=0),
    service: DoctorService = Depends(get_doctor_service),
):
    doctors, pagination = service.list_doctors(params, specialization, search, minRating, maxFee)
    return success_response(
        data=[DoctorResponse.from_model(d) for d in doctors], pagination=pagination
    )


@router.get("/specializations")
async def get_specializations(service: DoctorService = Depends(get_doctor_service)):
    """Distinct specializations for filter dropdowns"""
    return success_response(data=service.get_specializations())


@router.get("/{doctor_id}")
async def get_doctor(doctor_id: int, service: DoctorService = Depends(get_doctor_service)):
    return success_response(data=DoctorResponse.from_model(service.get_doctor(doctor_id)))


# ============================================================================
# ADMIN MAINTENANCE
# ============================================================================


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
async def create_doctor(data: DoctorCreate, service: DoctorService = Depends(get_doctor_service)):
    doctor = service.create_doctor(data)
    return success_response(
        data=DoctorResponse.from_model(doctor), message="Doctor created successfully"
    )


@router.put("/{doctor_id}", dependencies=[Depends(require_admin)])
async def update_doctor(
    doctor_id: int, data: DoctorUpdate, service: DoctorService = Depends(get_doctor_service)
):
    doctor = service.update_doctor(doctor_id, data)
    return success_response(
        data=DoctorResponse.from_model(doctor), message="Doctor updated successfully"
    )


@router.delete("/{doctor_id}", dependencies=[Depends(require_admin)])
async def delete_doctor(doctor_id: int, service: DoctorService = Depends(get_doctor_service)):
    service.delete_doctor(doctor_id)
    return success_response(message="Doctor deleted successfully")

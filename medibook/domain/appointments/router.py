"""Appointment router - FastAPI endpoints for bookings"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...shared.responses import PageParams, success_response
from .schemas import AppointmentCreate, AppointmentResponse, AppointmentUpdate
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


@router.get("")
async def list_appointments(
    params: PageParams = Depends(),
    status: Optional[str] = Query(None),
    appointmentType: Optional[str] = Query(None),
    doctorId: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Own appointments (all appointments for admins)"""
    appointments, pagination = service.list_appointments(
        current_user, params, status, appointmentType, doctorId
    )
    return success_response(
        data=[AppointmentResponse.from_model(a, include_user=current_user.is_admin) for a in appointments],
        pagination=pagination,
    )


@router.get("/{appointment_id}")
async def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.get_appointment(appointment_id, current_user)
    return success_response(
        data=AppointmentResponse.from_model(appointment, include_user=current_user.is_admin)
    )


@router.post("", status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.create_appointment(data, current_user)
    return success_response(
        data=AppointmentResponse.from_model(appointment),
        message="Appointment created successfully",
    )


@router.put("/{appointment_id}")
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.update_appointment(appointment_id, data, current_user)
    return success_response(
        data=AppointmentResponse.from_model(appointment, include_user=current_user.is_admin),
        message="Appointment updated successfully",
    )


@router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    service.delete_appointment(appointment_id, current_user)
    return success_response(message="Appointment deleted successfully")


@router.patch("/{appointment_id}/cancel")
async def cancel_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.cancel_appointment(appointment_id, current_user)
    return success_response(
        data=AppointmentResponse.from_model(appointment),
        message="Appointment cancelled successfully",
    )

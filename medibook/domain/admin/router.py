"""Admin router - dashboard plus full-access CRUD mirrors"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from ...shared.responses import PageParams, success_response
from ..appointments.router import get_appointment_service
from ..appointments.schemas import (
    AdminAppointmentCreate,
    AdminAppointmentUpdate,
    AppointmentResponse,
    StatusUpdate,
)
from ..appointments.service import AppointmentService
from ..diagnostics.router import get_test_service
from ..diagnostics.schemas import DiagnosticTestCreate, DiagnosticTestResponse, DiagnosticTestUpdate
from ..diagnostics.service import DiagnosticTestService
from ..doctors.router import get_doctor_service
from ..doctors.schemas import DoctorCreate, DoctorResponse, DoctorUpdate
from ..doctors.service import DoctorService
from ..users.router import get_user_service
from ..users.schemas import UserCreate, UserResponse, UserUpdate
from ..users.service import UserService
from .service import AdminService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


def get_admin_service(db: Session = Depends(get_db)) -> AdminService:
    return AdminService(db)


@router.get("/dashboard")
async def get_dashboard(service: AdminService = Depends(get_admin_service)):
    return success_response(data=service.get_dashboard())


# ============================================================================
# USERS
# ============================================================================


@router.get("/users")
async def list_users(params: PageParams = Depends(), service: UserService = Depends(get_user_service)):
    """Patient accounts (role USER)"""
    users, pagination = service.list_users(params, role="USER")
    return success_response(data=[UserResponse.from_model(u) for u in users], pagination=pagination)


@router.post("/users", status_code=201)
async def create_user(data: UserCreate, service: UserService = Depends(get_user_service)):
    user = service.create_user(data)
    return success_response(data=UserResponse.from_model(user), message="User created successfully")


@router.put("/users/{user_id}")
async def update_user(
    user_id: int,
    data: UserUpdate,
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    user = service.update_user(user_id, data, current_user)
    return success_response(data=UserResponse.from_model(user), message="User updated successfully")


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: int,
    current_user: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    service.delete_user(user_id, current_user)
    return success_response(message="User deleted successfully")


# ============================================================================
# DOCTORS
# ============================================================================


@router.get("/doctors")
async def list_doctors(
    params: PageParams = Depends(),
    specialization: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    minRating: Optional[float] = Query(None, ge=0, le=5),
    maxFee: Optional[float] = Query(None, ge=0),
    service: DoctorService = Depends(get_doctor_service),
):
    doctors, pagination = service.list_doctors(params, specialization, search, minRating, maxFee)
    return success_response(data=[DoctorResponse.from_model(d) for d in doctors], pagination=pagination)


@router.post("/doctors", status_code=201)
async def create_doctor(data: DoctorCreate, service: DoctorService = Depends(get_doctor_service)):
    doctor = service.create_doctor(data)
    return success_response(data=DoctorResponse.from_model(doctor), message="Doctor created successfully")


@router.put("/doctors/{doctor_id}")
async def update_doctor(
    doctor_id: int, data: DoctorUpdate, service: DoctorService = Depends(get_doctor_service)
):
    doctor = service.update_doctor(doctor_id, data)
    return success_response(data=DoctorResponse.from_model(doctor), message="Doctor updated successfully")


@router.delete("/doctors/{doctor_id}")
async def delete_doctor(doctor_id: int, service: DoctorService = Depends(get_doctor_service)):
    service.delete_doctor(doctor_id)
    return success_response(message="Doctor deleted successfully")


# ============================================================================
# TESTS
# ============================================================================


@router.get("/tests")
async def list_tests(
    params: PageParams = Depends(),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    service: DiagnosticTestService = Depends(get_test_service),
):
    """Every test, including ones hidden from the public catalog"""
    tests, pagination = service.list_tests(params, category, search, available_only=False)
    return success_response(
        data=[DiagnosticTestResponse.from_model(t) for t in tests], pagination=pagination
    )


@router.post("/tests", status_code=201)
async def create_test(
    data: DiagnosticTestCreate, service: DiagnosticTestService = Depends(get_test_service)
):
    test = service.create_test(data)
    return success_response(
        data=DiagnosticTestResponse.from_model(test), message="Test created successfully"
    )


@router.put("/tests/{test_id}")
async def update_test(
    test_id: int,
    data: DiagnosticTestUpdate,
    service: DiagnosticTestService = Depends(get_test_service),
):
    test = service.update_test(test_id, data)
    return success_response(
        data=DiagnosticTestResponse.from_model(test), message="Test updated successfully"
    )


@router.delete("/tests/{test_id}")
async def delete_test(test_id: int, service: DiagnosticTestService = Depends(get_test_service)):
    service.delete_test(test_id)
    return success_response(message="Test deleted successfully")


# ============================================================================
# APPOINTMENTS
# ============================================================================


@router.get("/appointments")
async def list_appointments(
    params: PageParams = Depends(),
    status: Optional[str] = Query(None),
    appointmentType: Optional[str] = Query(None),
    doctorId: Optional[int] = Query(None),
    current_user: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointments, pagination = service.list_appointments(
        current_user, params, status, appointmentType, doctorId
    )
    return success_response(
        data=[AppointmentResponse.from_model(a, include_user=True) for a in appointments],
        pagination=pagination,
    )


@router.post("/appointments", status_code=201)
async def create_appointment(
    data: AdminAppointmentCreate, service: AppointmentService = Depends(get_appointment_service)
):
    appointment = service.admin_create_appointment(data)
    return success_response(
        data=AppointmentResponse.from_model(appointment, include_user=True),
        message="Appointment created successfully",
    )


@router.put("/appointments/{appointment_id}")
async def update_appointment(
    appointment_id: int,
    data: AdminAppointmentUpdate,
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.admin_update_appointment(appointment_id, data)
    return success_response(
        data=AppointmentResponse.from_model(appointment, include_user=True),
        message="Appointment updated successfully",
    )


@router.put("/appointments/{appointment_id}/status")
async def update_appointment_status(
    appointment_id: int,
    data: StatusUpdate,
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.update_status(appointment_id, data.status)
    return success_response(
        data=AppointmentResponse.from_model(appointment, include_user=True),
        message="Appointment status updated successfully",
    )


@router.delete("/appointments/{appointment_id}")
async def delete_appointment(
    appointment_id: int,
    current_user: User = Depends(require_admin),
    service: AppointmentService = Depends(get_appointment_service),
):
    service.delete_appointment(appointment_id, current_user)
    return success_response(message="Appointment deleted successfully")

"""Appointment domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import Appointment
from ...security_utils import sanitize_text
from ..diagnostics.schemas import DiagnosticTestSummary
from ..doctors.schemas import DoctorSummary
from ..users.schemas import UserSummary


class _AppointmentDetails(BaseModel):
    """Free-text fields a patient may set on a booking"""

    patientName: Optional[str] = Field(default=None, max_length=100)
    symptoms: Optional[str] = Field(default=None, max_length=1000)
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("patientName", "symptoms", "notes")
    @classmethod
    def clean_text(cls, v):
        return sanitize_text(v)


class AppointmentCreate(_AppointmentDetails):
    """
    Booking request. Kind, date and time are checked by the service so a
    missing field produces one combined message.
    """

    appointmentType: Optional[str] = None
    appointmentDate: Optional[date] = None
    appointmentTime: Optional[str] = None
    doctorId: Optional[int] = None
    testId: Optional[int] = None
    # Accepted for admin bookings only; patient bookings are always priced server-side
    totalAmount: Optional[float] = Field(default=None, ge=0)


class AdminAppointmentCreate(AppointmentCreate):
    userId: Optional[int] = None


class AppointmentUpdate(_AppointmentDetails):
    """Patients may reschedule and edit details; the rest is admin-only"""

    appointmentDate: Optional[date] = None
    appointmentTime: Optional[str] = None
    status: Optional[str] = None
    paymentStatus: Optional[str] = None
    totalAmount: Optional[float] = Field(default=None, ge=0)


class AdminAppointmentUpdate(AppointmentUpdate):
    userId: Optional[int] = None
    appointmentType: Optional[str] = None
    doctorId: Optional[int] = None
    testId: Optional[int] = None


class StatusUpdate(BaseModel):
    status: str


class AppointmentResponse(BaseModel):
    id: int
    userId: int
    doctorId: Optional[int] = None
    testId: Optional[int] = None
    appointmentType: str
    appointmentDate: date
    appointmentTime: str
    status: str
    paymentStatus: str
    totalAmount: float
    patientName: Optional[str] = None
    symptoms: Optional[str] = None
    notes: Optional[str] = None
    doctor: Optional[DoctorSummary] = None
    test: Optional[DiagnosticTestSummary] = None
    user: Optional[UserSummary] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, appointment: Appointment, include_user: bool = False) -> "AppointmentResponse":
        return cls(
            id=appointment.id,
            userId=appointment.user_id,
            doctorId=appointment.doctor_id,
            testId=appointment.test_id,
            appointmentType=appointment.appointment_type,
            appointmentDate=appointment.appointment_date,
            appointmentTime=appointment.appointment_time,
            status=appointment.status,
            paymentStatus=appointment.payment_status,
            totalAmount=appointment.total_amount,
            patientName=appointment.patient_name,
            symptoms=appointment.symptoms,
            notes=appointment.notes,
            doctor=DoctorSummary.from_model(appointment.doctor),
            test=DiagnosticTestSummary.from_model(appointment.test),
            user=UserSummary.from_model(appointment.user) if include_user else None,
            createdAt=appointment.created_at,
            updatedAt=appointment.updated_at,
        )

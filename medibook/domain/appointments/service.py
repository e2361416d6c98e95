"""Appointment service - booking, rescheduling and lifecycle changes"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...auth import ensure_owner_or_admin
from ...models import (
    ACTIVE_APPOINTMENT_STATUSES,
    APPOINTMENT_TYPES,
    Appointment,
    DiagnosticTest,
    Doctor,
    User,
)
from ...shared.responses import PageParams, paginate
from ...shared.validators import is_valid_time, normalize_time
from ..diagnostics.repository import DiagnosticTestRepository
from ..doctors.repository import DoctorRepository
from ..users.repository import UserRepository
from . import workflow
from .repository import AppointmentRepository
from .schemas import (
    AdminAppointmentCreate,
    AdminAppointmentUpdate,
    AppointmentCreate,
    AppointmentUpdate,
)
from .slots import SLOT_TAKEN_MESSAGE, ensure_slot_free, is_slot_violation

logger = logging.getLogger(__name__)


def _validate_kind(appointment_type: Optional[str]) -> str:
    if appointment_type not in APPOINTMENT_TYPES:
        raise HTTPException(
            status_code=400, detail="Appointment type must be either consultation or test"
        )
    return appointment_type


def _validate_time(appointment_time: str) -> str:
    if not is_valid_time(appointment_time):
        raise HTTPException(status_code=400, detail="Invalid time format (HH:MM)")
    return normalize_time(appointment_time)


def _ensure_not_past(appointment_date: date) -> None:
    if appointment_date < date.today():
        raise HTTPException(status_code=400, detail="Appointment date cannot be in the past")


def _raise_if_refused(result: workflow.TransitionResult) -> None:
    if not result.ok:
        raise HTTPException(status_code=400, detail=result.error)


class AppointmentService:
    """Service layer for appointment business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AppointmentRepository()
        self.doctors = DoctorRepository()
        self.tests = DiagnosticTestRepository()
        self.users = UserRepository()

    # ========================================================================
    # READS
    # ========================================================================

    def list_appointments(
        self,
        user: User,
        params: PageParams,
        status: Optional[str] = None,
        appointment_type: Optional[str] = None,
        doctor_id: Optional[int] = None,
    ) -> tuple[list[Appointment], dict]:
        """Patients see their own bookings, administrators see everyone's"""
        owner_id = None if user.is_admin else user.id
        query = self.repo.list_query(self.db, owner_id, status, appointment_type, doctor_id)
        return paginate(query, params)

    def get_appointment(self, appointment_id: int, user: User) -> Appointment:
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        ensure_owner_or_admin(user, appointment.user_id)
        return appointment

    # ========================================================================
    # BOOKING
    # ========================================================================

    def create_appointment(self, data: AppointmentCreate, user: User) -> Appointment:
        """Patient booking: always pending, always priced from the catalog"""
        return self._book(user.id, data, status="pending", amount_override=None)

    def admin_create_appointment(self, data: AdminAppointmentCreate) -> Appointment:
        """Admin booking: confirmed immediately, a supplied totalAmount wins"""
        if not data.userId or not data.appointmentType or not data.appointmentDate or not data.appointmentTime:
            raise HTTPException(
                status_code=400, detail="User ID, appointment type, date, and time are required"
            )
        if not self.users.get_by_id(self.db, data.userId):
            raise HTTPException(status_code=404, detail="User not found")

        return self._book(data.userId, data, status="confirmed", amount_override=data.totalAmount)

    def _book(
        self, user_id: int, data: AppointmentCreate, status: str, amount_override: Optional[float]
    ) -> Appointment:
        if not data.appointmentType or not data.appointmentDate or not data.appointmentTime:
            raise HTTPException(
                status_code=400, detail="Appointment type, date, and time are required"
            )

        kind = _validate_kind(data.appointmentType)
        appointment_time = _validate_time(data.appointmentTime)
        _ensure_not_past(data.appointmentDate)

        doctor, test = self._resolve_reference(kind, data.doctorId, data.testId)
        catalog_price = doctor.consultation_fee if doctor else test.price
        total_amount = amount_override if amount_override is not None else catalog_price

        doctor_id = doctor.id if doctor else None
        ensure_slot_free(self.db, data.appointmentDate, appointment_time, doctor_id)

        appointment = Appointment(
            user_id=user_id,
            doctor_id=doctor_id,
            test_id=test.id if test else None,
            appointment_type=kind,
            appointment_date=data.appointmentDate,
            appointment_time=appointment_time,
            status=status,
            payment_status="pending",
            total_amount=total_amount,
            patient_name=data.patientName,
            symptoms=data.symptoms,
            notes=data.notes,
        )
        self.repo.add(self.db, appointment)
        self._commit()

        logger.info(
            f"📅 Appointment {appointment.id} booked for user {user_id}: {kind} on "
            f"{appointment.appointment_date} {appointment_time} ({status})"
        )
        return self.repo.get_by_id(self.db, appointment.id)

    def _resolve_reference(
        self, kind: str, doctor_id: Optional[int], test_id: Optional[int]
    ) -> tuple[Optional[Doctor], Optional[DiagnosticTest]]:
        """Exactly one of doctor/test, matching the appointment kind"""
        if kind == "consultation":
            if not doctor_id:
                raise HTTPException(
                    status_code=400, detail="Doctor ID is required for consultation appointments"
                )
            doctor = self.doctors.get_by_id(self.db, doctor_id)
            if not doctor:
                raise HTTPException(status_code=404, detail="Doctor not found")
            return doctor, None

        if not test_id:
            raise HTTPException(status_code=400, detail="Test ID is required for test appointments")
        test = self.tests.get_by_id(self.db, test_id)
        if not test:
            raise HTTPException(status_code=404, detail="Test not found")
        if not test.is_available:
            raise HTTPException(status_code=400, detail="Test is not available for booking")
        return None, test

    # ========================================================================
    # UPDATES
    # ========================================================================

    def update_appointment(self, appointment_id: int, data: AppointmentUpdate, user: User) -> Appointment:
        """Owner reschedules/edits details; admins may also move status and amount"""
        appointment = self.get_appointment(appointment_id, user)

        self._apply_details(appointment, data)
        self._reschedule(appointment, data.appointmentDate, data.appointmentTime)
        if user.is_admin:
            self._apply_admin_fields(appointment, data)

        return self._save_changes(appointment)

    def admin_update_appointment(self, appointment_id: int, data: AdminAppointmentUpdate) -> Appointment:
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")

        if data.userId is not None and data.userId != appointment.user_id:
            if not self.users.get_by_id(self.db, data.userId):
                raise HTTPException(status_code=404, detail="User not found")
            appointment.user_id = data.userId

        if data.appointmentType or data.doctorId or data.testId:
            kind = _validate_kind(data.appointmentType or appointment.appointment_type)
            if kind == "consultation" and data.testId:
                raise HTTPException(
                    status_code=400, detail="Test ID cannot be set on a consultation appointment"
                )
            if kind == "test" and data.doctorId:
                raise HTTPException(status_code=400, detail="Doctor ID cannot be set on a test appointment")

            doctor, test = self._resolve_reference(
                kind, data.doctorId or appointment.doctor_id, data.testId or appointment.test_id
            )
            reference = (kind, doctor.id if doctor else None, test.id if test else None)
            if reference != (appointment.appointment_type, appointment.doctor_id, appointment.test_id):
                # Reprice from the new catalog entry; an explicit totalAmount is applied after
                appointment.total_amount = doctor.consultation_fee if doctor else test.price
            appointment.appointment_type, appointment.doctor_id, appointment.test_id = reference

        self._apply_details(appointment, data)
        self._reschedule(appointment, data.appointmentDate, data.appointmentTime)
        self._apply_admin_fields(appointment, data)

        return self._save_changes(appointment)

    def update_status(self, appointment_id: int, status: str) -> Appointment:
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")

        result = workflow.transition_status(appointment, status)
        _raise_if_refused(result)
        self._commit()

        if result.changed:
            logger.info(f"🔄 Appointment {appointment_id}: {result.previous} -> {result.status}")
        return self.repo.get_by_id(self.db, appointment_id)

    def cancel_appointment(self, appointment_id: int, user: User) -> Appointment:
        appointment = self.get_appointment(appointment_id, user)

        result = workflow.cancel(appointment)
        _raise_if_refused(result)
        self._commit()

        logger.info(f"❌ Appointment {appointment_id} cancelled by user {user.id}")
        return self.repo.get_by_id(self.db, appointment_id)

    def delete_appointment(self, appointment_id: int, user: User) -> None:
        appointment = self.get_appointment(appointment_id, user)
        self.repo.delete(self.db, appointment)
        logger.info(f"🗑️ Appointment {appointment_id} deleted by user {user.id}")

    # ========================================================================
    # HELPERS
    # ========================================================================

    @staticmethod
    def _apply_details(appointment: Appointment, data: AppointmentUpdate) -> None:
        if data.patientName is not None:
            appointment.patient_name = data.patientName
        if data.symptoms is not None:
            appointment.symptoms = data.symptoms
        if data.notes is not None:
            appointment.notes = data.notes

    @staticmethod
    def _reschedule(
        appointment: Appointment, new_date: Optional[date], new_time: Optional[str]
    ) -> None:
        if new_date is None and new_time is None:
            return

        appointment_time = _validate_time(new_time) if new_time is not None else appointment.appointment_time
        appointment_date = new_date if new_date is not None else appointment.appointment_date
        if (appointment_date, appointment_time) == (appointment.appointment_date, appointment.appointment_time):
            return

        if appointment.status not in ACTIVE_APPOINTMENT_STATUSES:
            raise HTTPException(
                status_code=400, detail="Only pending or confirmed appointments can be rescheduled"
            )
        _ensure_not_past(appointment_date)

        appointment.appointment_date = appointment_date
        appointment.appointment_time = appointment_time

    @staticmethod
    def _apply_admin_fields(appointment: Appointment, data: AppointmentUpdate) -> None:
        if data.status is not None:
            _raise_if_refused(workflow.transition_status(appointment, data.status))
        if data.paymentStatus is not None:
            _raise_if_refused(workflow.transition_payment_status(appointment, data.paymentStatus))
        if data.totalAmount is not None:
            appointment.total_amount = data.totalAmount

    def _save_changes(self, appointment: Appointment) -> Appointment:
        if appointment.status in ACTIVE_APPOINTMENT_STATUSES:
            ensure_slot_free(
                self.db,
                appointment.appointment_date,
                appointment.appointment_time,
                appointment.doctor_id,
                exclude_id=appointment.id,
            )
        self._commit()
        return self.repo.get_by_id(self.db, appointment.id)

    def _commit(self) -> None:
        """Commit, surfacing a lost slot race as the usual conflict error"""
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if is_slot_violation(e):
                logger.warning(f"⚠️ Concurrent booking lost the slot race: {e.orig}")
                raise HTTPException(status_code=400, detail=SLOT_TAKEN_MESSAGE) from e
            raise

"""Appointment repository - Database operations for bookings"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Query, Session, joinedload

from ...models import Appointment


def _with_details(query: Query) -> Query:
    return query.options(
        joinedload(Appointment.doctor),
        joinedload(Appointment.test),
        joinedload(Appointment.user),
    )


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        return _with_details(db.query(Appointment)).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def list_query(
        db: Session,
        user_id: Optional[int] = None,
        status: Optional[str] = None,
        appointment_type: Optional[str] = None,
        doctor_id: Optional[int] = None,
    ) -> Query:
        """Bookings, latest appointment date first; user_id=None means every user"""
        query = _with_details(db.query(Appointment))

        if user_id is not None:
            query = query.filter(Appointment.user_id == user_id)
        if status:
            query = query.filter(Appointment.status == status)
        if appointment_type:
            query = query.filter(Appointment.appointment_type == appointment_type)
        if doctor_id is not None:
            query = query.filter(Appointment.doctor_id == doctor_id)

        return query.order_by(
            Appointment.appointment_date.desc(),
            Appointment.appointment_time.desc(),
            Appointment.id.desc(),
        )

    @staticmethod
    def recent(db: Session, limit: int = 5) -> list[Appointment]:
        return (
            _with_details(db.query(Appointment))
            .order_by(Appointment.created_at.desc(), Appointment.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def count(db: Session) -> int:
        return db.query(func.count(Appointment.id)).scalar() or 0

    @staticmethod
    def add(db: Session, appointment: Appointment) -> Appointment:
        """Stage a new booking; the caller owns the commit"""
        db.add(appointment)
        return appointment

    @staticmethod
    def delete(db: Session, appointment: Appointment) -> None:
        db.delete(appointment)
        db.commit()

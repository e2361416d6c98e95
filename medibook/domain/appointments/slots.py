"""Slot conflict checks for doctor consultations"""

import logging
from datetime import date
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import ACTIVE_APPOINTMENT_STATUSES, Appointment

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "Time slot is already booked"

# Postgres reports the index name, SQLite the column list
_SLOT_INDEX_MARKERS = ("uq_appointments_active_slot", "appointments.appointment_date")


def find_conflict(
    db: Session,
    appointment_date: date,
    appointment_time: str,
    doctor_id: Optional[int] = None,
    exclude_id: Optional[int] = None,
) -> Optional[Appointment]:
    """
    Return the live (pending/confirmed) appointment holding this doctor slot.

    Test appointments carry no doctor and never conflict, so a missing
    doctor_id always yields None.
    """
    if doctor_id is None:
        return None

    query = db.query(Appointment).filter(
        Appointment.appointment_date == appointment_date,
        Appointment.appointment_time == appointment_time,
        Appointment.doctor_id == doctor_id,
        Appointment.status.in_(ACTIVE_APPOINTMENT_STATUSES),
    )
    if exclude_id is not None:
        query = query.filter(Appointment.id != exclude_id)
    return query.first()


def ensure_slot_free(
    db: Session,
    appointment_date: date,
    appointment_time: str,
    doctor_id: Optional[int] = None,
    exclude_id: Optional[int] = None,
) -> None:
    conflict = find_conflict(db, appointment_date, appointment_time, doctor_id, exclude_id)
    if conflict:
        logger.info(
            f"⛔ Slot {appointment_date} {appointment_time} for doctor {doctor_id} "
            f"held by appointment {conflict.id}"
        )
        raise HTTPException(status_code=400, detail=SLOT_TAKEN_MESSAGE)


def is_slot_violation(error: IntegrityError) -> bool:
    """True when a commit failed on the active-slot unique index"""
    message = str(error.orig)
    return any(marker in message for marker in _SLOT_INDEX_MARKERS)

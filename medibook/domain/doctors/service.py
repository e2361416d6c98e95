"""Doctor service - Business logic for the doctor catalog"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Doctor
from ...shared.responses import PageParams, paginate
from .repository import DoctorRepository
from .schemas import DoctorCreate, DoctorUpdate

logger = logging.getLogger(__name__)


def _to_columns(data) -> dict:
    """Translate a create/update payload into column values, skipping unset fields"""
    values = data.model_dump(exclude_unset=True)
    columns = {
        "name": values.get("name"),
        "specialization": values.get("specialization"),
        "email": values.get("email"),
        "phone": values.get("phone"),
        "experience": values.get("experience"),
        "consultation_fee": values.get("consultationFee"),
        "rating": values.get("rating"),
        "total_ratings": values.get("totalRatings"),
        "bio": values.get("bio"),
        "qualifications": values.get("qualifications"),
        "available_slots": values.get("availableSlots"),
    }
    return {k: v for k, v in columns.items() if v is not None}


class DoctorService:
    """Service layer for doctor catalog operations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = DoctorRepository()

    def list_doctors(
        self,
        params: PageParams,
        specialization: Optional[str] = None,
        search: Optional[str] = None,
        min_rating: Optional[float] = None,
        max_fee: Optional[float] = None,
    ) -> tuple[list[Doctor], dict]:
        query = self.repo.search_query(self.db, specialization, search, min_rating, max_fee)
        return paginate(query, params)

    def get_doctor(self, doctor_id: int) -> Doctor:
        doctor = self.repo.get_by_id(self.db, doctor_id)
        if not doctor:
            raise HTTPException(status_code=404, detail="Doctor not found")
        return doctor

    def get_specializations(self) -> list[str]:
        return self.repo.get_specializations(self.db)

    def create_doctor(self, data: DoctorCreate) -> Doctor:
        if self.repo.get_by_email(self.db, data.email):
            raise HTTPException(status_code=400, detail="Doctor with this email already exists")

        doctor = self._commit_unique(lambda: self.repo.create(self.db, **_to_columns(data)))
        logger.info(f"🩺 Created doctor {doctor.id} ({doctor.specialization})")
        return doctor

    def update_doctor(self, doctor_id: int, data: DoctorUpdate) -> Doctor:
        doctor = self.get_doctor(doctor_id)
        if data.email and self.repo.get_by_email(self.db, data.email, exclude_id=doctor.id):
            raise HTTPException(status_code=400, detail="Doctor with this email already exists")

        return self._commit_unique(lambda: self.repo.update(self.db, doctor, **_to_columns(data)))

    def delete_doctor(self, doctor_id: int) -> None:
        doctor = self.get_doctor(doctor_id)
        self.repo.delete(self.db, doctor)
        logger.info(f"🗑️ Deleted doctor {doctor_id}")

    def _commit_unique(self, write):
        try:
            return write()
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(status_code=400, detail="Doctor with this email already exists") from e

"""Doctor repository - Database operations for the doctor catalog"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from ...models import Doctor


class DoctorRepository:
    """Repository for doctor database operations"""

    @staticmethod
    def get_by_id(db: Session, doctor_id: int) -> Optional[Doctor]:
        return db.query(Doctor).filter(Doctor.id == doctor_id).first()

    @staticmethod
    def get_by_email(db: Session, email: str, exclude_id: Optional[int] = None) -> Optional[Doctor]:
        query = db.query(Doctor).filter(Doctor.email == email)
        if exclude_id is not None:
            query = query.filter(Doctor.id != exclude_id)
        return query.first()

    @staticmethod
    def search_query(
        db: Session,
        specialization: Optional[str] = None,
        search: Optional[str] = None,
        min_rating: Optional[float] = None,
        max_fee: Optional[float] = None,
    ) -> Query:
        """Filtered doctor listing, best rated first"""
        query = db.query(Doctor)

        if specialization:
            query = query.filter(Doctor.specialization.ilike(f"%{specialization}%"))
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Doctor.name.ilike(pattern),
                    Doctor.specialization.ilike(pattern),
                    Doctor.bio.ilike(pattern),
                )
            )
        if min_rating is not None:
            query = query.filter(Doctor.rating >= min_rating)
        if max_fee is not None:
            query = query.filter(Doctor.consultation_fee <= max_fee)

        return query.order_by(Doctor.rating.desc(), Doctor.created_at.desc(), Doctor.id.desc())

    @staticmethod
    def get_specializations(db: Session) -> list[str]:
        rows = db.query(Doctor.specialization).distinct().order_by(Doctor.specialization).all()
        return [row[0] for row in rows]

    @staticmethod
    def count(db: Session) -> int:
        return db.query(func.count(Doctor.id)).scalar() or 0

    @staticmethod
    def create(db: Session, **doctor_data) -> Doctor:
        doctor = Doctor(**doctor_data)
        db.add(doctor)
        db.commit()
        db.refresh(doctor)
        return doctor

    @staticmethod
    def update(db: Session, doctor: Doctor, **updates) -> Doctor:
        for key, value in updates.items():
            if value is not None and hasattr(doctor, key):
                setattr(doctor, key, value)
        db.commit()
        db.refresh(doctor)
        return doctor

    @staticmethod
    def delete(db: Session, doctor: Doctor) -> None:
        db.delete(doctor)
        db.commit()

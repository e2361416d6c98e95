"""Doctor domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...models import Doctor
from ...security_utils import sanitize_text
from ...shared.validators import validate_email, validate_phone, validate_time, validate_weekday


class AvailableSlot(BaseModel):
    day: str
    startTime: str
    endTime: str
    isAvailable: bool = True

    @field_validator("day")
    @classmethod
    def check_day(cls, v):
        return validate_weekday(v)

    @field_validator("startTime", "endTime")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)


class DoctorCreate(BaseModel):
    """Schema for creating a doctor (admin)"""

    name: str = Field(min_length=1, max_length=100)
    specialization: str = Field(min_length=1, max_length=100)
    email: str
    phone: str
    experience: int = Field(ge=0, le=50)
    consultationFee: float = Field(ge=0)
    rating: float = Field(default=0, ge=0, le=5)
    totalRatings: int = Field(default=0, ge=0)
    bio: Optional[str] = Field(default=None, max_length=1000)
    qualifications: list[str] = Field(default_factory=list)
    availableSlots: list[AvailableSlot] = Field(default_factory=list)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("bio")
    @classmethod
    def clean_bio(cls, v):
        return sanitize_text(v)


class DoctorUpdate(BaseModel):
    """Schema for updating a doctor (admin); omitted fields are left untouched"""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    specialization: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = None
    phone: Optional[str] = None
    experience: Optional[int] = Field(default=None, ge=0, le=50)
    consultationFee: Optional[float] = Field(default=None, ge=0)
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    totalRatings: Optional[int] = Field(default=None, ge=0)
    bio: Optional[str] = Field(default=None, max_length=1000)
    qualifications: Optional[list[str]] = None
    availableSlots: Optional[list[AvailableSlot]] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("bio")
    @classmethod
    def clean_bio(cls, v):
        return sanitize_text(v)


class DoctorResponse(BaseModel):
    id: int
    name: str
    specialization: str
    email: str
    phone: str
    experience: int
    consultationFee: float
    rating: float
    totalRatings: int
    bio: Optional[str] = None
    qualifications: list[str]
    availableSlots: list[dict]
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, doctor: Doctor) -> "DoctorResponse":
        return cls(
            id=doctor.id,
            name=doctor.name,
            specialization=doctor.specialization,
            email=doctor.email,
            phone=doctor.phone,
            experience=doctor.experience,
            consultationFee=doctor.consultation_fee,
            rating=doctor.rating,
            totalRatings=doctor.total_ratings,
            bio=doctor.bio,
            qualifications=doctor.qualifications or [],
            availableSlots=doctor.available_slots or [],
            createdAt=doctor.created_at,
            updatedAt=doctor.updated_at,
        )


class DoctorSummary(BaseModel):
    """Doctor details expanded into appointment views"""

    id: int
    name: str
    specialization: str
    consultationFee: float

    @classmethod
    def from_model(cls, doctor: Optional[Doctor]) -> Optional["DoctorSummary"]:
        if doctor is None:
            return None
        return cls(
            id=doctor.id,
            name=doctor.name,
            specialization=doctor.specialization,
            consultationFee=doctor.consultation_fee,
        )

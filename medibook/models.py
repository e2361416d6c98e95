from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

USER_ROLES = ("USER", "ADMIN")

APPOINTMENT_TYPES = ("consultation", "test")
APPOINTMENT_STATUSES = ("pending", "confirmed", "completed", "cancelled")
APPOINTMENT_PAYMENT_STATUSES = ("pending", "paid", "refunded")

PAYMENT_STATUSES = ("pending", "completed", "failed", "refunded")
PAYMENT_METHODS = ("credit_card", "debit_card", "net_banking", "upi", "wallet", "razorpay")

TEST_CATEGORIES = (
    "Blood Test",
    "Urine Test",
    "Imaging",
    "Cardiology",
    "Neurology",
    "Dermatology",
    "Gynecology",
    "Pediatrics",
    "General",
    "Other",
)

# Statuses that occupy a slot / hold an appointment's single active payment
ACTIVE_APPOINTMENT_STATUSES = ("pending", "confirmed")
ACTIVE_PAYMENT_STATUSES = ("pending", "completed")

_ACTIVE_SLOT_CLAUSE = text("status IN ('pending', 'confirmed')")
_ACTIVE_PAYMENT_CLAUSE = text("payment_status IN ('pending', 'completed')")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(30), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(10), default="USER", nullable=False)  # USER, ADMIN
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    appointments = relationship("Appointment", back_populates="user", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    specialization = Column(String(100), index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(30), nullable=False)
    experience = Column(Integer, nullable=False)  # Years, 0-50
    consultation_fee = Column(Float, nullable=False)
    rating = Column(Float, default=0, nullable=False)  # 0-5
    total_ratings = Column(Integer, default=0, nullable=False)
    bio = Column(Text, nullable=True)
    qualifications = Column(JSON, default=list, nullable=False)
    # [{"day": "Monday", "startTime": "09:00", "endTime": "17:00", "isAvailable": true}]
    available_slots = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    appointments = relationship("Appointment", back_populates="doctor")


class DiagnosticTest(Base):
    __tablename__ = "tests"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False)
    category = Column(String(30), index=True, nullable=False)
    price = Column(Float, nullable=False)
    duration = Column(Integer, nullable=False)  # Minutes, 5-480
    preparation_instructions = Column(Text, nullable=True)
    normal_range = Column(String(200), nullable=True)
    is_available = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    appointments = relationship("Appointment", back_populates="test")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="SET NULL"), index=True, nullable=True)
    test_id = Column(Integer, ForeignKey("tests.id", ondelete="SET NULL"), index=True, nullable=True)
    appointment_type = Column(String(20), nullable=False)  # consultation, test
    appointment_date = Column(Date, index=True, nullable=False)
    appointment_time = Column(String(5), nullable=False)  # HH:MM, 24h
    status = Column(String(20), default="pending", nullable=False)
    payment_status = Column(String(20), default="pending", nullable=False)
    total_amount = Column(Float, default=0, nullable=False)
    patient_name = Column(String(100), nullable=True)
    symptoms = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="appointments")
    doctor = relationship("Doctor", back_populates="appointments")
    test = relationship("DiagnosticTest", back_populates="appointments")
    payments = relationship("Payment", back_populates="appointment", cascade="all, delete-orphan")

    # One live booking per doctor slot. NULL doctor_id (test appointments) never collides.
    __table_args__ = (
        Index(
            "uq_appointments_active_slot",
            "appointment_date",
            "appointment_time",
            "doctor_id",
            unique=True,
            sqlite_where=_ACTIVE_SLOT_CLAUSE,
            postgresql_where=_ACTIVE_SLOT_CLAUSE,
        ),
    )


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    appointment_id = Column(
        Integer, ForeignKey("appointments.id", ondelete="CASCADE"), index=True, nullable=False
    )
    amount = Column(Float, nullable=False)
    currency = Column(String(3), default="INR", nullable=False)
    payment_method = Column(String(20), nullable=False)
    payment_status = Column(String(20), default="pending", nullable=False)
    transaction_id = Column(String(64), unique=True, index=True, nullable=True)
    gateway_order_id = Column(String(64), index=True, nullable=True)
    gateway_payment_id = Column(String(64), nullable=True)
    gateway_response = Column(JSON, nullable=True)
    refund_amount = Column(Float, nullable=True)
    refund_reason = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="payments")
    appointment = relationship("Appointment", back_populates="payments")

    __table_args__ = (
        Index(
            "uq_payments_active_per_appointment",
            "appointment_id",
            unique=True,
            sqlite_where=_ACTIVE_PAYMENT_CLAUSE,
            postgresql_where=_ACTIVE_PAYMENT_CLAUSE,
        ),
    )

"""Payment repository - Database operations for payments"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Query, Session, joinedload

from ...models import ACTIVE_PAYMENT_STATUSES, Payment


class PaymentRepository:
    """Repository for payment database operations"""

    @staticmethod
    def get_by_id(db: Session, payment_id: int) -> Optional[Payment]:
        return (
            db.query(Payment)
            .options(joinedload(Payment.appointment))
            .filter(Payment.id == payment_id)
            .first()
        )

    @staticmethod
    def get_by_order_id(db: Session, order_id: str) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.gateway_order_id == order_id).first()

    @staticmethod
    def get_by_gateway_payment_id(db: Session, gateway_payment_id: str) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.gateway_payment_id == gateway_payment_id).first()

    @staticmethod
    def get_active_for_appointment(db: Session, appointment_id: int) -> Optional[Payment]:
        """The single pending/completed payment an appointment may hold"""
        return (
            db.query(Payment)
            .filter(
                Payment.appointment_id == appointment_id,
                Payment.payment_status.in_(ACTIVE_PAYMENT_STATUSES),
            )
            .first()
        )

    @staticmethod
    def list_query(
        db: Session,
        user_id: Optional[int] = None,
        payment_status: Optional[str] = None,
        appointment_id: Optional[int] = None,
    ) -> Query:
        query = db.query(Payment)
        if user_id is not None:
            query = query.filter(Payment.user_id == user_id)
        if payment_status:
            query = query.filter(Payment.payment_status == payment_status)
        if appointment_id is not None:
            query = query.filter(Payment.appointment_id == appointment_id)
        return query.order_by(Payment.created_at.desc(), Payment.id.desc())

    @staticmethod
    def count(db: Session, payment_status: Optional[str] = None) -> int:
        query = db.query(func.count(Payment.id))
        if payment_status:
            query = query.filter(Payment.payment_status == payment_status)
        return query.scalar() or 0

    @staticmethod
    def completed_revenue(db: Session, since: Optional[datetime] = None, until: Optional[datetime] = None) -> float:
        """Sum of completed payment amounts, optionally within [since, until)"""
        query = db.query(func.coalesce(func.sum(Payment.amount), 0)).filter(
            Payment.payment_status == "completed"
        )
        if since is not None:
            query = query.filter(Payment.created_at >= since)
        if until is not None:
            query = query.filter(Payment.created_at < until)
        return float(query.scalar() or 0)

    @staticmethod
    def add(db: Session, payment: Payment) -> Payment:
        """Stage a new payment; the caller owns the commit"""
        db.add(payment)
        return payment

"""Payment service - payment capture, gateway orders, refunds and reconciliation"""

import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...auth import ensure_owner_or_admin
from ...config import (
    ENVIRONMENT,
    PAYMENT_CURRENCY,
    PAYMENT_GATEWAY_FALLBACK,
    RAZORPAY_CAPTURE_ON_VERIFY,
)
from ...models import Appointment, Payment, User
from ...security_utils import generate_transaction_id
from ...shared.responses import PageParams, paginate
from ..appointments.repository import AppointmentRepository
from ..appointments.workflow import transition_payment, transition_payment_status
from .gateway import GatewayError, RazorpayGateway, get_gateway, to_minor_units
from .repository import PaymentRepository
from .schemas import OrderCreate, PaymentCreate, VerifyPaymentRequest

logger = logging.getLogger(__name__)

ALREADY_PAID_MESSAGE = "Payment already completed for this appointment"
PAYMENT_IN_PROGRESS_MESSAGE = "A payment is already in progress for this appointment"

# Postgres reports the index name, SQLite the column
_ACTIVE_PAYMENT_MARKERS = ("uq_payments_active_per_appointment", "payments.appointment_id")


def _merge_response(payment: Payment, **entries: Any) -> None:
    """Append gateway details without losing what earlier steps recorded"""
    response = dict(payment.gateway_response or {})
    response.update({k: v for k, v in entries.items() if v is not None})
    payment.gateway_response = response


class PaymentService:
    """Service layer for payments"""

    def __init__(self, db: Session, gateway: Optional[RazorpayGateway] = None):
        self.db = db
        self.repo = PaymentRepository()
        self.appointments = AppointmentRepository()
        self.gateway = gateway or get_gateway()

    # ========================================================================
    # READS
    # ========================================================================

    def list_payments(
        self,
        user: User,
        params: PageParams,
        payment_status: Optional[str] = None,
        appointment_id: Optional[int] = None,
    ) -> tuple[list[Payment], dict]:
        owner_id = None if user.is_admin else user.id
        return paginate(self.repo.list_query(self.db, owner_id, payment_status, appointment_id), params)

    def get_payment(self, payment_id: int, user: User) -> Payment:
        payment = self.repo.get_by_id(self.db, payment_id)
        if not payment:
            raise HTTPException(status_code=404, detail="Payment not found")
        ensure_owner_or_admin(user, payment.user_id)
        return payment

    def get_stats(self) -> dict:
        return {
            "totalPayments": self.repo.count(self.db),
            "totalAmount": self.repo.completed_revenue(self.db),
            "completedPayments": self.repo.count(self.db, "completed"),
            "pendingPayments": self.repo.count(self.db, "pending"),
            "failedPayments": self.repo.count(self.db, "failed"),
            "refundedPayments": self.repo.count(self.db, "refunded"),
        }

    def gateway_config(self) -> dict:
        return {
            "keyId": self.gateway.key_id,
            "currency": PAYMENT_CURRENCY,
            "gatewayConfigured": self.gateway.is_available(),
            "environment": ENVIRONMENT,
        }

    # ========================================================================
    # DIRECT PAYMENT
    # ========================================================================

    def create_payment(self, data: PaymentCreate, user: User) -> Payment:
        """
        Record a payment for an appointment and settle it immediately.

        The amount is always the appointment's total. A pending payment left
        behind by an abandoned gateway checkout is reused instead of adding a
        second active payment.
        """
        appointment = self._payable_appointment(data.appointmentId, user)

        payment = self.repo.get_active_for_appointment(self.db, appointment.id)
        if payment is None:
            payment = self.repo.add(self.db, self._new_payment(appointment, data.paymentMethod))
        elif payment.payment_status == "completed":
            raise HTTPException(status_code=400, detail=ALREADY_PAID_MESSAGE)
        else:
            payment.payment_method = data.paymentMethod
            payment.amount = appointment.total_amount

        self._settle(
            payment,
            appointment,
            processing={
                "status": "success",
                "transactionId": payment.transaction_id,
                "processedAt": datetime.utcnow().isoformat(),
            },
        )
        self._commit()

        logger.info(
            f"💳 Payment {payment.id} completed for appointment {appointment.id} "
            f"({payment.amount} {payment.currency})"
        )
        return self.repo.get_by_id(self.db, payment.id)

    # ========================================================================
    # GATEWAY CHECKOUT
    # ========================================================================

    async def create_gateway_order(self, data: OrderCreate, user: User) -> dict:
        """Open (or reopen) a gateway order for an appointment's checkout"""
        appointment = self._payable_appointment(data.appointmentId, user)

        payment = self.repo.get_active_for_appointment(self.db, appointment.id)
        if payment is not None and payment.payment_status == "completed":
            raise HTTPException(status_code=400, detail=ALREADY_PAID_MESSAGE)
        if payment is not None and payment.gateway_order_id:
            logger.info(f"♻️ Reusing order {payment.gateway_order_id} for appointment {appointment.id}")
            return self._order_payload(payment, (payment.gateway_response or {}).get("order") or {})

        if payment is None:
            payment = self.repo.add(self.db, self._new_payment(appointment, "razorpay"))
        else:
            payment.payment_method = "razorpay"
        # Claim the appointment's single active payment before talking to the gateway
        self._commit()

        try:
            order = await self.gateway.create_order(
                payment.amount,
                payment.currency,
                receipt=payment.transaction_id,
                notes={
                    "appointmentId": str(appointment.id),
                    "paymentId": str(payment.id),
                    "userId": str(payment.user_id),
                },
            )
        except GatewayError as e:
            if not PAYMENT_GATEWAY_FALLBACK:
                transition_payment(payment, "failed")
                _merge_response(payment, error=str(e))
                self._commit()
                raise HTTPException(status_code=502, detail="Failed to create payment order") from e

            logger.warning(f"⚠️ Gateway order failed for payment {payment.id}, serving fallback order: {e}")
            order = {
                "id": f"order_{payment.id}",
                "amount": to_minor_units(payment.amount),
                "currency": payment.currency,
                "receipt": payment.transaction_id,
                "status": "created",
                "fallback": True,
            }

        payment.gateway_order_id = order["id"]
        _merge_response(payment, order=order)
        self._commit()
        return self._order_payload(payment, order)

    async def verify_gateway_payment(self, data: VerifyPaymentRequest, user: User) -> Payment:
        """Check the checkout signature and settle the payment it names"""
        payment = self.repo.get_by_order_id(self.db, data.razorpay_order_id)
        if not payment:
            raise HTTPException(status_code=404, detail="Payment not found for this order")
        ensure_owner_or_admin(user, payment.user_id)

        if payment.payment_status == "completed":
            return payment
        if payment.payment_status != "pending":
            raise HTTPException(status_code=400, detail=f"Payment is already {payment.payment_status}")

        if not self.gateway.verify_payment_signature(
            data.razorpay_order_id, data.razorpay_payment_id, data.razorpay_signature
        ):
            logger.warning(f"🚫 Invalid signature for order {data.razorpay_order_id}")
            transition_payment(payment, "failed")
            _merge_response(
                payment, verification={"paymentId": data.razorpay_payment_id, "valid": False}
            )
            self._commit()
            raise HTTPException(status_code=400, detail="Invalid payment signature")

        capture = None
        if RAZORPAY_CAPTURE_ON_VERIFY:
            try:
                capture = await self.gateway.capture_payment(
                    data.razorpay_payment_id, payment.amount, payment.currency
                )
            except GatewayError as e:
                raise HTTPException(status_code=502, detail="Payment capture failed") from e

        payment.gateway_payment_id = data.razorpay_payment_id
        self._settle(
            payment,
            payment.appointment,
            verification={"paymentId": data.razorpay_payment_id, "valid": True},
            capture=capture,
        )
        self._commit()

        logger.info(f"✅ Payment {payment.id} verified for order {data.razorpay_order_id}")
        return self.repo.get_by_id(self.db, payment.id)

    # ========================================================================
    # REFUNDS
    # ========================================================================

    async def refund_payment(self, payment_id: int, reason: Optional[str], admin: User) -> Payment:
        """Full refund of a completed payment, mirrored onto its appointment"""
        payment = self.repo.get_by_id(self.db, payment_id)
        if not payment:
            raise HTTPException(status_code=404, detail="Payment not found")

        result = transition_payment(payment, "refunded")
        if not result.ok:
            raise HTTPException(status_code=400, detail=result.error)

        gateway_refund = None
        if payment.gateway_payment_id and self.gateway.is_available():
            try:
                gateway_refund = await self.gateway.refund_payment(
                    payment.gateway_payment_id, notes={"reason": reason or ""}
                )
            except GatewayError as e:
                self.db.rollback()
                raise HTTPException(status_code=502, detail="Payment gateway refund failed") from e

        payment.refund_amount = payment.amount
        payment.refund_reason = reason or "Refund requested by administrator"
        _merge_response(payment, refund=gateway_refund)
        self._mirror_refund(payment)
        self._commit()

        logger.info(f"💸 Payment {payment_id} refunded by admin {admin.id}")
        return self.repo.get_by_id(self.db, payment_id)

    # ========================================================================
    # WEBHOOK RECONCILIATION
    # ========================================================================

    def handle_webhook_event(self, event: dict) -> Optional[str]:
        """Apply an asynchronous gateway event; unknown events are only logged"""
        event_type = event.get("event")
        payload = event.get("payload") or {}

        if event_type == "payment.captured":
            self._on_payment_captured((payload.get("payment") or {}).get("entity") or {})
        elif event_type == "payment.failed":
            self._on_payment_failed((payload.get("payment") or {}).get("entity") or {})
        elif event_type == "refund.processed":
            self._on_refund_processed((payload.get("refund") or {}).get("entity") or {})
        else:
            logger.info(f"Unhandled Razorpay webhook event: {event_type}")

        return event_type

    def _on_payment_captured(self, entity: dict) -> None:
        payment = self.repo.get_by_order_id(self.db, entity.get("order_id") or "")
        if not payment:
            logger.warning(f"⚠️ payment.captured for unknown order {entity.get('order_id')}")
            return
        if payment.payment_status != "pending":
            logger.info(f"Payment {payment.id} already {payment.payment_status}, ignoring capture")
            return

        payment.gateway_payment_id = entity.get("id")
        self._settle(
            payment,
            payment.appointment,
            webhook={"event": "payment.captured", "paymentId": entity.get("id")},
        )
        self._commit()
        logger.info(f"✅ Payment {payment.id} captured via webhook")

    def _on_payment_failed(self, entity: dict) -> None:
        payment = self.repo.get_by_order_id(self.db, entity.get("order_id") or "")
        if not payment or payment.payment_status != "pending":
            return

        transition_payment(payment, "failed")
        _merge_response(
            payment,
            webhook={"event": "payment.failed", "error": entity.get("error_description")},
        )
        self._commit()
        logger.info(f"❌ Payment {payment.id} marked failed via webhook")

    def _on_refund_processed(self, entity: dict) -> None:
        payment = self.repo.get_by_gateway_payment_id(self.db, entity.get("payment_id") or "")
        if not payment or payment.payment_status != "completed":
            return

        transition_payment(payment, "refunded")
        payment.refund_amount = payment.amount
        payment.refund_reason = payment.refund_reason or "Refunded via payment gateway"
        _merge_response(payment, webhook={"event": "refund.processed", "refundId": entity.get("id")})
        self._mirror_refund(payment)
        self._commit()
        logger.info(f"💸 Payment {payment.id} refunded via webhook")

    # ========================================================================
    # HELPERS
    # ========================================================================

    def _payable_appointment(self, appointment_id: int, user: User) -> Appointment:
        appointment = self.appointments.get_by_id(self.db, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        ensure_owner_or_admin(user, appointment.user_id)

        if appointment.payment_status == "paid":
            raise HTTPException(status_code=400, detail=ALREADY_PAID_MESSAGE)
        if appointment.status == "cancelled":
            raise HTTPException(status_code=400, detail="Cannot pay for a cancelled appointment")
        return appointment

    @staticmethod
    def _new_payment(appointment: Appointment, method: str) -> Payment:
        return Payment(
            user_id=appointment.user_id,
            appointment_id=appointment.id,
            amount=appointment.total_amount,
            currency=PAYMENT_CURRENCY,
            payment_method=method,
            payment_status="pending",
            transaction_id=generate_transaction_id(),
        )

    @staticmethod
    def _settle(payment: Payment, appointment: Optional[Appointment], **gateway_details: Any) -> None:
        """pending -> completed on the payment, -> paid on its appointment"""
        result = transition_payment(payment, "completed")
        if not result.ok:
            raise HTTPException(status_code=400, detail=result.error)
        _merge_response(payment, **gateway_details)

        if appointment is not None:
            mirrored = transition_payment_status(appointment, "paid")
            if not mirrored.ok:
                logger.warning(
                    f"⚠️ Payment {payment.id} completed but appointment {appointment.id} "
                    f"not marked paid: {mirrored.error}"
                )

    @staticmethod
    def _mirror_refund(payment: Payment) -> None:
        appointment = payment.appointment
        if appointment is None:
            return
        mirrored = transition_payment_status(appointment, "refunded")
        if not mirrored.ok:
            logger.warning(
                f"⚠️ Payment {payment.id} refunded but appointment {appointment.id} "
                f"kept payment status {appointment.payment_status}: {mirrored.error}"
            )

    def _order_payload(self, payment: Payment, order: dict) -> dict:
        return {
            "orderId": payment.gateway_order_id,
            "amount": order.get("amount", to_minor_units(payment.amount)),
            "currency": payment.currency,
            "receipt": payment.transaction_id,
            "paymentId": payment.id,
            "keyId": self.gateway.key_id,
            "fallback": bool(order.get("fallback")),
        }

    def _commit(self) -> None:
        """Commit, turning a second active payment for one appointment into a 409"""
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if any(marker in str(e.orig) for marker in _ACTIVE_PAYMENT_MARKERS):
                logger.warning(f"⚠️ Concurrent payment attempt rejected: {e.orig}")
                raise HTTPException(status_code=409, detail=PAYMENT_IN_PROGRESS_MESSAGE) from e
            raise

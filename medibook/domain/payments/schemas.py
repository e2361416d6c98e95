"""Payment domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ...models import PAYMENT_METHODS, Payment


class PaymentCreate(BaseModel):
    """Amount is never accepted from the client; it is the appointment's total"""

    appointmentId: int
    paymentMethod: str

    @field_validator("paymentMethod")
    @classmethod
    def check_method(cls, v):
        if v not in PAYMENT_METHODS:
            raise ValueError(f"Payment method must be one of: {', '.join(PAYMENT_METHODS)}")
        return v


class RefundRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class OrderCreate(BaseModel):
    appointmentId: int


class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class PaymentResponse(BaseModel):
    id: int
    userId: int
    appointmentId: int
    amount: float
    currency: str
    paymentMethod: str
    paymentStatus: str
    transactionId: Optional[str] = None
    gatewayOrderId: Optional[str] = None
    gatewayPaymentId: Optional[str] = None
    gatewayResponse: Optional[dict[str, Any]] = None
    refundAmount: Optional[float] = None
    refundReason: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_model(cls, payment: Payment) -> "PaymentResponse":
        return cls(
            id=payment.id,
            userId=payment.user_id,
            appointmentId=payment.appointment_id,
            amount=payment.amount,
            currency=payment.currency,
            paymentMethod=payment.payment_method,
            paymentStatus=payment.payment_status,
            transactionId=payment.transaction_id,
            gatewayOrderId=payment.gateway_order_id,
            gatewayPaymentId=payment.gateway_payment_id,
            gatewayResponse=payment.gateway_response,
            refundAmount=payment.refund_amount,
            refundReason=payment.refund_reason,
            createdAt=payment.created_at,
            updatedAt=payment.updated_at,
        )

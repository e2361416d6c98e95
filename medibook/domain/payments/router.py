"""Payment router - FastAPI endpoints for payments and gateway checkout"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import User
from ...shared.responses import PageParams, success_response
from .gateway import RazorpayGateway, get_gateway
from .schemas import OrderCreate, PaymentCreate, PaymentResponse, RefundRequest, VerifyPaymentRequest
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_service(
    db: Session = Depends(get_db), gateway: RazorpayGateway = Depends(get_gateway)
) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db, gateway)


# ============================================================================
# GATEWAY CHECKOUT (declared before /{payment_id})
# ============================================================================


@router.get("/razorpay/config")
async def get_gateway_config(service: PaymentService = Depends(get_payment_service)):
    """Public checkout configuration for the frontend"""
    return success_response(data=service.gateway_config())


@router.post("/razorpay/order", status_code=201)
async def create_gateway_order(
    data: OrderCreate,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    order = await service.create_gateway_order(data, current_user)
    return success_response(data=order, message="Payment order created successfully")


@router.post("/razorpay/verify")
async def verify_gateway_payment(
    data: VerifyPaymentRequest,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    payment = await service.verify_gateway_payment(data, current_user)
    return success_response(
        data=PaymentResponse.from_model(payment), message="Payment verified successfully"
    )


# ============================================================================
# PAYMENTS
# ============================================================================


@router.get("")
async def list_payments(
    params: PageParams = Depends(),
    paymentStatus: Optional[str] = Query(None),
    appointmentId: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Own payments (all payments for admins)"""
    payments, pagination = service.list_payments(current_user, params, paymentStatus, appointmentId)
    return success_response(
        data=[PaymentResponse.from_model(p) for p in payments], pagination=pagination
    )


@router.get("/stats", dependencies=[Depends(require_admin)])
async def get_payment_stats(service: PaymentService = Depends(get_payment_service)):
    return success_response(data=service.get_stats())


@router.get("/{payment_id}")
async def get_payment(
    payment_id: int,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    return success_response(data=PaymentResponse.from_model(service.get_payment(payment_id, current_user)))


@router.post("", status_code=201)
async def create_payment(
    data: PaymentCreate,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    payment = service.create_payment(data, current_user)
    return success_response(
        data=PaymentResponse.from_model(payment), message="Payment processed successfully"
    )


@router.patch("/{payment_id}/refund")
async def refund_payment(
    payment_id: int,
    data: Optional[RefundRequest] = None,
    current_user: User = Depends(require_admin),
    service: PaymentService = Depends(get_payment_service),
):
    reason = data.reason if data else None
    payment = await service.refund_payment(payment_id, reason, current_user)
    return success_response(
        data=PaymentResponse.from_model(payment), message="Refund processed successfully"
    )

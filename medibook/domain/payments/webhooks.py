"""Razorpay webhook receiver"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from ...config import IS_PRODUCTION
from ...database import get_db
from ...rate_limiter import create_rate_limiter
from ...webhook_security import verify_razorpay_webhook
from .gateway import RazorpayGateway, get_gateway
from .service import PaymentService

logger = logging.getLogger(__name__)

webhooks_router = APIRouter(prefix="/payments/razorpay", tags=["Payment Webhooks"])

webhook_rate_limiter = create_rate_limiter(limit=300, window_seconds=60, key_prefix="razorpay_webhook")


@webhooks_router.post("/webhook", dependencies=[Depends(webhook_rate_limiter)])
async def razorpay_webhook(
    request: Request,
    db: Session = Depends(get_db),
    gateway: RazorpayGateway = Depends(get_gateway),
):
    """Reconcile asynchronous gateway events (captures, failures, refunds)"""
    _, body = await verify_razorpay_webhook(request, gateway.webhook_secret, require_secret=IS_PRODUCTION)

    try:
        event = json.loads(body)
    except ValueError as e:
        logger.warning(f"🚫 Malformed Razorpay webhook body: {e}")
        raise HTTPException(status_code=400, detail="Invalid webhook payload") from e
    if not isinstance(event, dict):
        raise HTTPException(status_code=400, detail="Invalid webhook payload")

    event_type = PaymentService(db, gateway).handle_webhook_event(event)
    logger.info(f"📨 Razorpay webhook processed: {event_type}")
    return {"success": True}

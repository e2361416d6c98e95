"""
Webhook and payment signature verification.

Razorpay signs two things with HMAC-SHA256 (hex digest):
- checkout callbacks: "<order_id>|<payment_id>" keyed with the API key secret
- webhooks: the raw request body keyed with the webhook secret, sent in the
  X-Razorpay-Signature header
"""

import hashlib
import hmac
import logging
from typing import Optional

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

RAZORPAY_SIGNATURE_HEADER = "X-Razorpay-Signature"


def constant_time_compare(a: Optional[str], b: Optional[str]) -> bool:
    """Compare two strings in constant time"""
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def compute_hmac_sha256(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA256 signature of payload"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_payment_signature(
    order_id: str, payment_id: str, signature: Optional[str], secret: Optional[str]
) -> bool:
    """Verify the signature returned by checkout for a captured payment"""
    if not secret:
        logger.error("❌ Payment signature check attempted without a key secret")
        return False
    expected = compute_hmac_sha256(secret, f"{order_id}|{payment_id}".encode("utf-8"))
    return constant_time_compare(expected, signature)


def verify_webhook_signature(payload: bytes, signature: Optional[str], secret: Optional[str]) -> bool:
    if not secret:
        return False
    return constant_time_compare(compute_hmac_sha256(secret, payload), signature)


async def verify_razorpay_webhook(
    request: Request,
    secret: Optional[str],
    raise_on_failure: bool = True,
    require_secret: bool = False,
) -> tuple[bool, bytes]:
    """
    Verify a Razorpay webhook request against its raw body.

    When no webhook secret is configured verification is skipped and a warning
    is logged, so local setups without a dashboard secret still receive events.
    With require_secret (production) an unconfigured secret rejects every event.

    Returns:
        Tuple of (is_valid, raw_body)
    """
    body = await request.body()

    if not secret:
        if require_secret:
            logger.error("❌ RAZORPAY_WEBHOOK_SECRET not set - rejecting unverifiable webhook")
            if raise_on_failure:
                raise HTTPException(status_code=503, detail="Webhook verification is not configured")
            return False, body
        logger.warning("⚠️ RAZORPAY_WEBHOOK_SECRET not set - accepting unverified webhook")
        return True, body

    signature = request.headers.get(RAZORPAY_SIGNATURE_HEADER)
    if not signature:
        logger.warning("🚫 Razorpay webhook missing signature header")
        if raise_on_failure:
            raise HTTPException(status_code=400, detail="Missing webhook signature")
        return False, body

    if not verify_webhook_signature(body, signature, secret):
        logger.warning("🚫 Razorpay webhook signature mismatch")
        if raise_on_failure:
            raise HTTPException(status_code=400, detail="Invalid webhook signature")
        return False, body

    logger.info("✅ Razorpay webhook signature verified")
    return True, body

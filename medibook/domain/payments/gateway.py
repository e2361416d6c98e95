"""Razorpay gateway client - REST calls via httpx"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

import httpx

from ...config import (
    RAZORPAY_API_BASE,
    RAZORPAY_KEY_ID,
    RAZORPAY_KEY_SECRET,
    RAZORPAY_WEBHOOK_SECRET,
)
from ...webhook_security import verify_payment_signature

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Raised when the gateway is unreachable, unconfigured or rejects a call"""


def to_minor_units(amount: float) -> int:
    """Convert a major-unit amount (rupees) to the gateway's minor unit (paise), rounding half up"""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class RazorpayGateway:
    """Client for Razorpay orders, captures and refunds"""

    def __init__(
        self,
        key_id: Optional[str] = RAZORPAY_KEY_ID,
        key_secret: Optional[str] = RAZORPAY_KEY_SECRET,
        webhook_secret: Optional[str] = RAZORPAY_WEBHOOK_SECRET,
        base_url: str = RAZORPAY_API_BASE,
    ):
        self.key_id = key_id
        self.key_secret = key_secret
        self.webhook_secret = webhook_secret
        self.base_url = base_url.rstrip("/")

        if not self.is_available():
            logger.warning("RAZORPAY_KEY_ID/RAZORPAY_KEY_SECRET not set; gateway calls will fail")

    def is_available(self) -> bool:
        return bool(self.key_id and self.key_secret)

    async def _request(self, method: str, path: str, payload: Optional[dict] = None) -> dict[str, Any]:
        if not self.is_available():
            raise GatewayError("Razorpay credentials not configured")

        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=30.0, auth=(self.key_id, self.key_secret)) as http_client:
                response = await http_client.request(method, url, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"❌ Razorpay {method} {path} failed: {e}")
            raise GatewayError(f"Razorpay request failed: {e}") from e

        if response.status_code >= 400:
            try:
                error_detail = response.json().get("error", {}).get("description", response.text)
            except ValueError:
                error_detail = response.text
            logger.error(f"❌ Razorpay {method} {path} returned {response.status_code}: {error_detail}")
            raise GatewayError(f"Razorpay error ({response.status_code}): {error_detail}")

        return response.json()

    async def create_order(
        self, amount: float, currency: str, receipt: str, notes: Optional[dict] = None
    ) -> dict[str, Any]:
        """Create an order; amount is in major units and converted here"""
        order = await self._request(
            "POST",
            "/orders",
            {
                "amount": to_minor_units(amount),
                "currency": currency,
                "receipt": receipt,
                "notes": notes or {},
            },
        )
        logger.info(f"✅ Razorpay order created: {order.get('id')}")
        return order

    async def capture_payment(self, payment_id: str, amount: float, currency: str) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"/payments/{payment_id}/capture",
            {"amount": to_minor_units(amount), "currency": currency},
        )

    async def refund_payment(
        self, payment_id: str, amount: Optional[float] = None, notes: Optional[dict] = None
    ) -> dict[str, Any]:
        """Refund a captured payment; omit amount for a full refund"""
        payload: dict[str, Any] = {"notes": notes or {}}
        if amount is not None:
            payload["amount"] = to_minor_units(amount)
        refund = await self._request("POST", f"/payments/{payment_id}/refund", payload)
        logger.info(f"💸 Razorpay refund {refund.get('id')} issued for {payment_id}")
        return refund

    def verify_payment_signature(self, order_id: str, payment_id: str, signature: Optional[str]) -> bool:
        return verify_payment_signature(order_id, payment_id, signature, self.key_secret)


_gateway: Optional[RazorpayGateway] = None


def get_gateway() -> RazorpayGateway:
    """Dependency returning the shared gateway client"""
    global _gateway
    if _gateway is None:
        _gateway = RazorpayGateway()
    return _gateway

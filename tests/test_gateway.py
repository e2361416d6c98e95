import asyncio
import json

import httpx
import pytest

from medibook.domain.payments import gateway as gateway_module
from medibook.domain.payments.gateway import GatewayError, RazorpayGateway, to_minor_units


@pytest.mark.parametrize(
    "amount,expected",
    [(800, 80000), (800.0, 80000), (10.005, 1001), (0.1 + 0.2, 30), (99.99, 9999), (0, 0)],
)
def test_to_minor_units_rounds_half_up(amount, expected):
    assert to_minor_units(amount) == expected


@pytest.fixture
def recorded(monkeypatch):
    """Route the gateway's httpx client through a MockTransport"""
    calls = []
    responses = {}
    real_client = httpx.AsyncClient

    def handler(request):
        calls.append(request)
        status, payload = responses.get(request.url.path, (200, {}))
        return httpx.Response(status, json=payload)

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(gateway_module.httpx, "AsyncClient", client_factory)
    return calls, responses


def _gateway(**overrides):
    options = {
        "key_id": "rzp_test_key",
        "key_secret": "secret",
        "webhook_secret": None,
        "base_url": "https://api.razorpay.test/v1",
    }
    options.update(overrides)
    return RazorpayGateway(**options)


def test_create_order_sends_minor_units(recorded):
    calls, responses = recorded
    responses["/v1/orders"] = (200, {"id": "order_1", "amount": 123456, "currency": "INR"})

    order = asyncio.run(_gateway().create_order(1234.56, "INR", receipt="TXN_1", notes={"a": "b"}))

    assert order["id"] == "order_1"
    request = calls[0]
    assert request.method == "POST"
    assert json.loads(request.content) == {
        "amount": 123456,
        "currency": "INR",
        "receipt": "TXN_1",
        "notes": {"a": "b"},
    }
    assert request.headers["Authorization"].startswith("Basic ")


def test_full_refund_omits_amount(recorded):
    calls, responses = recorded
    responses["/v1/payments/pay_1/refund"] = (200, {"id": "rfnd_1"})

    refund = asyncio.run(_gateway().refund_payment("pay_1", notes={"reason": "x"}))

    assert refund["id"] == "rfnd_1"
    assert json.loads(calls[0].content) == {"notes": {"reason": "x"}}


def test_capture_sends_amount(recorded):
    calls, responses = recorded
    responses["/v1/payments/pay_1/capture"] = (200, {"id": "pay_1", "status": "captured"})

    asyncio.run(_gateway().capture_payment("pay_1", 500, "INR"))

    assert json.loads(calls[0].content) == {"amount": 50000, "currency": "INR"}


def test_error_response_raises_gateway_error(recorded):
    _, responses = recorded
    responses["/v1/orders"] = (400, {"error": {"description": "amount too small"}})

    with pytest.raises(GatewayError, match="amount too small"):
        asyncio.run(_gateway().create_order(0.5, "INR", receipt="TXN_1"))


def test_unconfigured_gateway_refuses_calls(recorded):
    calls, _ = recorded
    gateway = _gateway(key_secret=None)

    assert not gateway.is_available()
    with pytest.raises(GatewayError):
        asyncio.run(gateway.create_order(100, "INR", receipt="TXN_1"))
    assert calls == []


def test_network_failure_raises_gateway_error(monkeypatch):
    real_client = httpx.AsyncClient

    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    monkeypatch.setattr(
        gateway_module.httpx,
        "AsyncClient",
        lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
    )

    with pytest.raises(GatewayError):
        asyncio.run(_gateway().create_order(100, "INR", receipt="TXN_1"))

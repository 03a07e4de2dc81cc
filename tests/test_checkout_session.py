"""Tests for the checkout session client"""
import asyncio
import json
import time

import httpx
import pytest

from shopfolio.core.errors import (
    BackendNotConfigured,
    BackendUnreachable,
    CheckoutValidationError,
    SessionCreationFailed,
    StatusCheckFailed,
)
from shopfolio.integrations.checkout_session import CheckoutSessionClient
from shopfolio.schemas.cart import CheckoutItem

BASE = "http://192.168.1.20:4242"
ITEMS = [CheckoutItem(title="Backpack", price=10.0, quantity=2), CheckoutItem(title="Shipping", price=5.99, quantity=1)]


def _client(handler, base=BASE, timeout=10.0):
    return CheckoutSessionClient(base, timeout=timeout, transport=httpx.MockTransport(handler))


def test_is_backend_configured():
    assert CheckoutSessionClient(BASE).is_backend_configured()
    assert not CheckoutSessionClient("").is_backend_configured()
    assert not CheckoutSessionClient(None).is_backend_configured()
    assert not CheckoutSessionClient("   ").is_backend_configured()


@pytest.mark.asyncio
async def test_create_session_sends_items_and_callback_urls():
    seen = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"sessionId": "cs_test_1", "url": "https://checkout.stripe.com/c/pay/cs_test_1"})

    session = await _client(handler, base=BASE + "/").create_checkout_session(ITEMS)

    assert session.session_id == "cs_test_1"
    assert session.url == "https://checkout.stripe.com/c/pay/cs_test_1"
    assert seen["method"] == "POST"
    assert seen["url"] == f"{BASE}/create-checkout-session"
    assert seen["body"] == {
        "items": [
            {"title": "Backpack", "price": 10.0, "quantity": 2},
            {"title": "Shipping", "price": 5.99, "quantity": 1},
        ],
        "successUrl": f"{BASE}/success?session_id={{CHECKOUT_SESSION_ID}}",
        "cancelUrl": f"{BASE}/cancel",
    }


@pytest.mark.asyncio
async def test_not_configured_fails_before_network():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(BackendNotConfigured):
        await _client(handler, base="").create_checkout_session(ITEMS)


@pytest.mark.asyncio
async def test_empty_items_fail_before_network():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(CheckoutValidationError):
        await _client(handler).create_checkout_session([])


@pytest.mark.asyncio
async def test_non_2xx_carries_error_body():
    def handler(request):
        return httpx.Response(500, json={"error": "Invalid API Key provided"})

    with pytest.raises(SessionCreationFailed) as exc_info:
        await _client(handler).create_checkout_session(ITEMS)
    assert exc_info.value.detail == "Invalid API Key provided"


@pytest.mark.asyncio
async def test_non_2xx_plain_text_body():
    def handler(request):
        return httpx.Response(502, text="Bad gateway")

    with pytest.raises(SessionCreationFailed) as exc_info:
        await _client(handler).create_checkout_session(ITEMS)
    assert exc_info.value.detail == "Bad gateway"


@pytest.mark.asyncio
async def test_success_without_url_fails():
    def handler(request):
        return httpx.Response(200, json={"sessionId": "cs_1", "url": ""})

    with pytest.raises(SessionCreationFailed):
        await _client(handler).create_checkout_session(ITEMS)


@pytest.mark.asyncio
async def test_hanging_backend_hits_deadline():
    async def handler(request):
        await asyncio.sleep(5)
        return httpx.Response(200, json={})

    started = time.monotonic()
    with pytest.raises(BackendUnreachable) as exc_info:
        await _client(handler, timeout=0.1).create_checkout_session(ITEMS)
    assert time.monotonic() - started < 2
    assert "running" in exc_info.value.message


@pytest.mark.asyncio
async def test_transport_timeout_is_unreachable():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(BackendUnreachable):
        await _client(handler).create_checkout_session(ITEMS)


@pytest.mark.asyncio
async def test_connection_refused_is_unreachable():
    def handler(request):
        raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

    with pytest.raises(BackendUnreachable):
        await _client(handler).create_checkout_session(ITEMS)


@pytest.mark.asyncio
async def test_other_transport_errors_are_creation_failures():
    def handler(request):
        raise httpx.RemoteProtocolError("server disconnected", request=request)

    with pytest.raises(SessionCreationFailed) as exc_info:
        await _client(handler).create_checkout_session(ITEMS)
    assert not isinstance(exc_info.value, BackendUnreachable)


@pytest.mark.asyncio
async def test_session_status():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, json={"status": "paid", "customerEmail": "ana@example.com"})

    client = _client(handler)
    status = await client.get_session_status("cs_test_1")
    await client.get_session_status("cs_test_1")

    assert status.status == "paid"
    assert status.customer_email == "ana@example.com"
    assert status.is_paid
    assert seen == [f"{BASE}/session-status/cs_test_1"] * 2


@pytest.mark.asyncio
async def test_session_status_failure():
    def handler(request):
        return httpx.Response(500, json={"error": "No such checkout.session"})

    with pytest.raises(StatusCheckFailed):
        await _client(handler).get_session_status("cs_missing")


@pytest.mark.asyncio
async def test_context_manager_closes_connection():
    def handler(request):
        return httpx.Response(200, json={"status": "unpaid"})

    async with _client(handler) as client:
        status = await client.get_session_status("cs_1")
        http = client._http
    assert not status.is_paid
    assert http.is_closed
    assert client._http is None

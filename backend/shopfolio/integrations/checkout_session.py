# shopfolio/integrations/checkout_session.py
"""
Client for the checkout session backend.

- create_checkout_session(items): asks the backend for a hosted payment session.
  Returns CheckoutSession(session_id, url); the caller opens `url` in an external browser.
- get_session_status(session_id): fresh status lookup, never cached.

Failures are raised as distinct kinds (see shopfolio.core.errors):
  BackendNotConfigured  - no base URL, raised before any network call
  BackendUnreachable    - deadline hit or connection refused (server probably not running)
  SessionCreationFailed - non-2xx or unusable answer on session creation
  StatusCheckFailed     - non-2xx or unusable answer on status lookup
Nothing is retried; the user re-initiates.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Sequence
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from shopfolio.core.errors import (
    BackendNotConfigured,
    BackendUnreachable,
    CheckoutValidationError,
    SessionCreationFailed,
    StatusCheckFailed,
)
from shopfolio.schemas.cart import CheckoutItem, CheckoutSession, SessionStatus

logger = logging.getLogger("shopfolio.checkout_session")

DEFAULT_TIMEOUT = 10.0
# Stripe replaces this template with the real session id on redirect
SESSION_ID_TEMPLATE = "{CHECKOUT_SESSION_ID}"


def _error_detail(resp: httpx.Response) -> str:
    """Backend error bodies are either plain text or {"error": "..."}."""
    try:
        data = resp.json()
    except ValueError:
        return resp.text.strip()
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return resp.text.strip()


class CheckoutSessionClient:
    def __init__(
        self,
        base_url: Optional[str],
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or "").strip().rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "CheckoutSessionClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    def is_backend_configured(self) -> bool:
        return bool(self.base_url)

    @property
    def success_url(self) -> str:
        return f"{self.base_url}/success?session_id={SESSION_ID_TEMPLATE}"

    @property
    def cancel_url(self) -> str:
        return f"{self.base_url}/cancel"

    def _client(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._http

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """
        One request under a hard deadline. httpx timeouts are per phase, the
        asyncio deadline bounds the whole exchange.
        """
        url = f"{self.base_url}{path}"
        try:
            return await asyncio.wait_for(
                self._client().request(method, url, **kwargs),
                timeout=self.timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            logger.warning("Checkout backend timed out after %ss: %s %s", self.timeout, method, url)
            raise BackendUnreachable(detail=f"No answer from {self.base_url} within {self.timeout:g}s") from exc
        except httpx.ConnectError as exc:
            logger.warning("Checkout backend refused connection: %s", exc)
            raise BackendUnreachable(detail=str(exc)) from exc

    async def create_checkout_session(self, items: Sequence[CheckoutItem]) -> CheckoutSession:
        if not self.is_backend_configured():
            raise BackendNotConfigured()
        if not items:
            raise CheckoutValidationError("There are no products to pay for.")

        payload = {
            "items": [CheckoutItem.model_validate(it).model_dump() for it in items],
            "successUrl": self.success_url,
            "cancelUrl": self.cancel_url,
        }
        logger.info("Creating checkout session with %d item(s)", len(items))
        try:
            resp = await self._send("POST", "/create-checkout-session", json=payload)
        except httpx.HTTPError as exc:
            raise SessionCreationFailed(detail=str(exc)) from exc

        if not resp.is_success:
            detail = _error_detail(resp)
            logger.warning("Session creation failed: HTTP %s %s", resp.status_code, detail[:200])
            raise SessionCreationFailed(detail=detail or f"HTTP {resp.status_code}")

        try:
            session = CheckoutSession.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            raise SessionCreationFailed("No payment URL was received.", detail=str(exc)) from exc
        if not session.url:
            raise SessionCreationFailed("No payment URL was received.")

        logger.info("Checkout session created: %s", session.session_id)
        return session

    async def get_session_status(self, session_id: str) -> SessionStatus:
        if not self.is_backend_configured():
            raise BackendNotConfigured()
        try:
            resp = await self._send("GET", f"/session-status/{quote(str(session_id), safe='')}")
        except httpx.HTTPError as exc:
            raise StatusCheckFailed(detail=str(exc)) from exc

        if not resp.is_success:
            raise StatusCheckFailed(detail=f"HTTP {resp.status_code}: {_error_detail(resp)[:200]}")
        try:
            return SessionStatus.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            raise StatusCheckFailed(detail=str(exc)) from exc

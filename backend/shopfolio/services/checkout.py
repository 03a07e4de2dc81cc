# shopfolio/services/checkout.py
"""
Checkout completion flow.

    IDLE -> SESSION_CREATING -> AWAITING_EXTERNAL_PAYMENT -> RESOLVED_CONFIRMED
                             |                            -> RESOLVED_CANCELLED
                             -> SESSION_FAILED            -> RESOLVED_UNKNOWN

The browser closing does not tell us whether the user paid. When payment verification
is on, the session status is checked once first; a "paid" answer confirms without
asking. Otherwise the user is asked, and a "yes" that contradicts a definite non-paid
status ends in RESOLVED_UNKNOWN (cart kept, nothing recorded).

`run()` does not raise for domain failures: validation, configuration, backend and
recording problems all come back inside the CheckoutOutcome.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from shopfolio.core.errors import (
    BackendNotConfigured,
    CheckoutError,
    CheckoutInProgress,
    CheckoutValidationError,
    ShopfolioError,
)
from shopfolio.integrations.checkout_session import CheckoutSessionClient
from shopfolio.schemas.cart import CheckoutSession, SessionStatus
from shopfolio.schemas.order import OrderRecord, ShippingDetails
from shopfolio.services.cart_store import CartStore
from shopfolio.services.checkout_helpers import build_checkout_items, calc_totals, shipping_fee, to_order_items
from shopfolio.services.orders import OrderRecorder

logger = logging.getLogger("shopfolio.checkout")

CONFIRM_TITLE = "Did you complete the payment?"
CONFIRM_MESSAGE = "If you saw the payment confirmation page, your order was processed."


class CheckoutState(str, Enum):
    IDLE = "idle"
    SESSION_CREATING = "session_creating"
    AWAITING_EXTERNAL_PAYMENT = "awaiting_external_payment"
    RESOLVED_CONFIRMED = "resolved_confirmed"
    RESOLVED_CANCELLED = "resolved_cancelled"
    RESOLVED_UNKNOWN = "resolved_unknown"
    SESSION_FAILED = "session_failed"


TERMINAL_STATES = frozenset({
    CheckoutState.RESOLVED_CONFIRMED,
    CheckoutState.RESOLVED_CANCELLED,
    CheckoutState.RESOLVED_UNKNOWN,
    CheckoutState.SESSION_FAILED,
})

_TRANSITIONS = {
    CheckoutState.IDLE: {CheckoutState.SESSION_CREATING},
    CheckoutState.SESSION_CREATING: {CheckoutState.AWAITING_EXTERNAL_PAYMENT, CheckoutState.SESSION_FAILED},
    CheckoutState.AWAITING_EXTERNAL_PAYMENT: {
        CheckoutState.RESOLVED_CONFIRMED,
        CheckoutState.RESOLVED_CANCELLED,
        CheckoutState.RESOLVED_UNKNOWN,
    },
}


class BrowserResult(str, Enum):
    """How the external browser context handed control back (platform specific)."""
    CANCEL = "cancel"
    DISMISS = "dismiss"
    OPENED = "opened"
    LOCKED = "locked"


BrowserLauncher = Callable[[str], Awaitable[Optional[BrowserResult]]]
ConfirmPrompt = Callable[[str, str], Awaitable[Optional[bool]]]


@dataclass
class CheckoutOutcome:
    state: CheckoutState
    message: str
    error: Optional[ShopfolioError] = None
    session_id: Optional[str] = None
    order: Optional[OrderRecord] = None

    @property
    def ok(self) -> bool:
        return self.state == CheckoutState.RESOLVED_CONFIRMED


class CheckoutFlow:
    def __init__(
        self,
        cart: CartStore,
        sessions: CheckoutSessionClient,
        open_browser: BrowserLauncher,
        confirm: ConfirmPrompt,
        recorder: Optional[OrderRecorder] = None,
        *,
        free_shipping_threshold: float = 50.0,
        shipping_fee: float = 5.99,
        verify_payment: bool = True,
    ):
        self.cart = cart
        self.sessions = sessions
        self._open_browser = open_browser
        self._confirm = confirm
        self.recorder = recorder
        self.free_shipping_threshold = free_shipping_threshold
        self.shipping_fee = shipping_fee
        self.verify_payment = verify_payment
        self.state = CheckoutState.IDLE

    def _transition(self, new: CheckoutState) -> None:
        if new not in _TRANSITIONS.get(self.state, set()):
            raise RuntimeError(f"Illegal checkout transition {self.state.value} -> {new.value}")
        logger.debug("checkout %s -> %s", self.state.value, new.value)
        self.state = new

    @property
    def in_progress(self) -> bool:
        return self.state in (CheckoutState.SESSION_CREATING, CheckoutState.AWAITING_EXTERNAL_PAYMENT)

    def summary(self) -> Dict[str, Any]:
        """Subtotal / shipping / total for the current cart."""
        fee = shipping_fee(self.cart.get_total(), self.free_shipping_threshold, self.shipping_fee)
        return calc_totals(self.cart.items, fee)

    async def run(
        self,
        details: Union[ShippingDetails, Mapping[str, Any]],
        user_id: Optional[str] = None,
    ) -> CheckoutOutcome:
        if self.in_progress:
            err = CheckoutInProgress()
            return CheckoutOutcome(self.state, err.message, err)
        self.state = CheckoutState.IDLE

        # 1) local validation, nothing leaves the device on failure
        if not isinstance(details, ShippingDetails):
            try:
                details = ShippingDetails.model_validate(dict(details))
            except ValidationError as exc:
                fields = [str(e["loc"][0]) for e in exc.errors() if e.get("loc")]
                logger.info("Rejected shipping details: %s", ", ".join(fields))
                err = CheckoutValidationError(fields=fields)
                return CheckoutOutcome(CheckoutState.IDLE, err.message, err)
        missing = details.missing_fields()
        if missing:
            err = CheckoutValidationError(fields=missing)
            return CheckoutOutcome(CheckoutState.IDLE, err.message, err)
        if self.cart.is_empty:
            err = CheckoutValidationError("Your cart is empty.")
            return CheckoutOutcome(CheckoutState.IDLE, err.message, err)
        if not self.sessions.is_backend_configured():
            err = BackendNotConfigured()
            return CheckoutOutcome(CheckoutState.IDLE, err.message, err)

        # 2) session
        lines = self.cart.items
        fee = shipping_fee(self.cart.get_total(), self.free_shipping_threshold, self.shipping_fee)
        items = build_checkout_items(lines, fee)
        self._transition(CheckoutState.SESSION_CREATING)
        try:
            session = await self.sessions.create_checkout_session(items)
        except CheckoutError as exc:
            logger.warning("Checkout session failed: %s", exc)
            self._transition(CheckoutState.SESSION_FAILED)
            return CheckoutOutcome(self.state, str(exc), exc)

        # 3) hand off to the external browser
        self._transition(CheckoutState.AWAITING_EXTERNAL_PAYMENT)
        try:
            result = await self._open_browser(session.url)
        except Exception:
            logger.exception("Could not open the payment page")
            result = None

        # 4) resolve
        new_state, status = await self._resolve(session, result)
        self._transition(new_state)

        if new_state == CheckoutState.RESOLVED_CANCELLED:
            return CheckoutOutcome(new_state, "Payment cancelled. Your cart was kept.", session_id=session.session_id)
        if new_state == CheckoutState.RESOLVED_UNKNOWN:
            return CheckoutOutcome(
                new_state,
                "We could not confirm your payment yet. Your cart was kept.",
                session_id=session.session_id,
            )

        order = await self._complete(session, lines, fee, details, status, user_id)
        return CheckoutOutcome(new_state, "Thank you! Your order was placed.", session_id=session.session_id, order=order)

    async def _resolve(self, session: CheckoutSession, result: Optional[BrowserResult]):
        status: Optional[SessionStatus] = None
        if self.verify_payment:
            try:
                status = await self.sessions.get_session_status(session.session_id)
            except CheckoutError as exc:
                logger.warning("Status check for %s failed: %s", session.session_id, exc)
        if status is not None and status.is_paid:
            return CheckoutState.RESOLVED_CONFIRMED, status

        if result not in (BrowserResult.CANCEL, BrowserResult.DISMISS):
            return CheckoutState.RESOLVED_UNKNOWN, status

        try:
            answer = await self._confirm(CONFIRM_TITLE, CONFIRM_MESSAGE)
        except Exception:
            logger.exception("Confirmation prompt failed")
            answer = None
        if answer is None:
            return CheckoutState.RESOLVED_UNKNOWN, status
        if not answer:
            return CheckoutState.RESOLVED_CANCELLED, status
        if status is None:
            # nothing authoritative to contradict the user
            return CheckoutState.RESOLVED_CONFIRMED, status
        logger.warning(
            "User asserted payment for %s but backend reports %r", session.session_id, status.status
        )
        return CheckoutState.RESOLVED_UNKNOWN, status

    async def _complete(self, session, lines, fee, details, status, user_id) -> Optional[OrderRecord]:
        totals = calc_totals(lines, fee)
        await self.cart.clear()

        if self.recorder is None or not user_id:
            return None
        order = OrderRecord(
            id=uuid.uuid4().hex[:12],
            items=to_order_items(lines),
            subtotal=totals["subtotal"],
            shipping=totals["shipping"],
            total=totals["total"],
            status="paid" if status is not None and status.is_paid else "processing",
            session_id=session.session_id,
            shipping_details=details,
        )
        try:
            await self.recorder.record(user_id, order)
        except Exception:
            logger.exception("Could not record order %s for %s", order.id, user_id)
        return order

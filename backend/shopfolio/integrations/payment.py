"""
shopfolio/integrations/payment.py - Hosted checkout (Stripe Checkout Sessions) integration.

Creates payment sessions the user completes on the provider's hosted page, and reads
their payment status back. Card data never touches this service.

Functions return tuples in the (ok, result) form; on failure `result` is {"error": message}.
Without STRIPE_SECRET_KEY the integration runs in simulation mode for development.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

import stripe

from shopfolio.config import Settings, get_settings
from shopfolio.schemas.cart import SessionLineItemIn
from shopfolio.services.checkout_helpers import DEFAULT_ITEM_TITLE, to_cents

logger = logging.getLogger("shopfolio.payment")

SIMULATED_PREFIX = "cs_simulated_"


def is_simulated(settings: Optional[Settings] = None) -> bool:
    settings = settings or get_settings()
    return not settings.stripe_secret_key


def to_line_items(items: List[SessionLineItemIn], currency: str) -> List[Dict[str, Any]]:
    """Backend items -> Stripe line_items (amounts in minor units)."""
    return [
        {
            "price_data": {
                "currency": currency,
                "product_data": {"name": (item.title or "").strip() or DEFAULT_ITEM_TITLE},
                "unit_amount": to_cents(item.price),
            },
            "quantity": item.quantity or 1,
        }
        for item in items
    ]


def create_checkout_session(
    items: List[SessionLineItemIn],
    success_url: str,
    cancel_url: str,
    settings: Optional[Settings] = None,
) -> Tuple[bool, Dict[str, Any]]:
    """
    Returns (True, {"sessionId": ..., "url": ...}) or (False, {"error": ...}).
    `success_url` may contain {CHECKOUT_SESSION_ID}; the provider fills it in.
    """
    settings = settings or get_settings()
    line_items = to_line_items(items, settings.payment_currency)

    if is_simulated(settings):
        session_id = f"{SIMULATED_PREFIX}{uuid.uuid4().hex}"
        logger.warning("STRIPE_SECRET_KEY not set - simulating checkout session %s (no real charge).", session_id)
        return True, {
            "sessionId": session_id,
            "url": success_url.replace("{CHECKOUT_SESSION_ID}", session_id),
        }

    logger.info("Creating Checkout Session with %d product(s)", len(line_items))
    try:
        session = stripe.checkout.Session.create(
            api_key=settings.stripe_secret_key,
            payment_method_types=["card"],
            line_items=line_items,
            mode="payment",
            success_url=success_url,
            cancel_url=cancel_url,
        )
    except Exception as e:
        logger.error("Checkout Session creation failed: %s", e)
        return False, {"error": str(e)}

    logger.info("Session created: %s", session.id)
    return True, {"sessionId": session.id, "url": session.url}


def retrieve_session_status(session_id: str, settings: Optional[Settings] = None) -> Tuple[bool, Dict[str, Any]]:
    """Returns (True, {"status": payment_status, "customerEmail": ...}) or (False, {"error": ...})."""
    settings = settings or get_settings()

    if session_id.startswith(SIMULATED_PREFIX):
        return True, {"status": "paid", "customerEmail": None}
    if is_simulated(settings):
        return False, {"error": "Payment provider is not configured."}

    try:
        session = stripe.checkout.Session.retrieve(session_id, api_key=settings.stripe_secret_key)
    except Exception as e:
        logger.warning("Session %s lookup failed: %s", session_id, e)
        return False, {"error": str(e)}

    details = getattr(session, "customer_details", None)
    return True, {
        "status": session.payment_status,
        "customerEmail": getattr(details, "email", None) if details else None,
    }

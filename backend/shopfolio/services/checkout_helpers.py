# shopfolio/services/checkout_helpers.py
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Sequence

from shopfolio.schemas.cart import CartLineItem, CheckoutItem
from shopfolio.schemas.order import OrderItem

__all__ = [
    "SHIPPING_TITLE",
    "shipping_fee",
    "build_checkout_items",
    "calc_totals",
    "to_order_items",
    "to_cents",
]

SHIPPING_TITLE = "Shipping"
DEFAULT_ITEM_TITLE = "Product"

_CENT = Decimal("0.01")


# ──────────────────────────────────────────────────────────────────────────────
# Money
# ──────────────────────────────────────────────────────────────────────────────

def _money(value: Any) -> Decimal:
    return Decimal(str(value or 0)).quantize(_CENT, rounding=ROUND_HALF_UP)


def to_cents(price: Any) -> int:
    """Unit price in minor units, rounded half-up (1.005 -> 101)."""
    return int((Decimal(str(price or 0)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def shipping_fee(subtotal: float, threshold: float = 50.0, fee: float = 5.99) -> float:
    """Free shipping strictly above the threshold; nothing to ship for an empty cart."""
    if subtotal <= 0 or subtotal > threshold:
        return 0.0
    return float(fee)


# ──────────────────────────────────────────────────────────────────────────────
# Projections
# ──────────────────────────────────────────────────────────────────────────────

def build_checkout_items(lines: Sequence[CartLineItem], shipping: float = 0.0) -> List[CheckoutItem]:
    """
    Cart lines -> items for the session backend.
    A synthetic "Shipping" line (quantity 1) is appended only for a non-zero fee.
    """
    items = [
        CheckoutItem(
            title=(line.title or "").strip() or DEFAULT_ITEM_TITLE,
            price=line.price,
            quantity=line.quantity,
        )
        for line in lines
    ]
    if shipping:
        items.append(CheckoutItem(title=SHIPPING_TITLE, price=shipping, quantity=1))
    return items


def to_order_items(lines: Sequence[CartLineItem]) -> List[OrderItem]:
    return [
        OrderItem(id=line.id, title=line.title, price=line.price, quantity=line.quantity)
        for line in lines
    ]


def calc_totals(lines: Sequence[CartLineItem], shipping: float = 0.0) -> Dict[str, Any]:
    """
    Order summary shown at checkout and stored with the order.
    This is the only place where amounts are rounded to cents.
    """
    subtotal = sum((Decimal(str(line.price)) * line.quantity for line in lines), Decimal("0"))
    shipping_dec = _money(shipping)
    total = (subtotal + shipping_dec).quantize(_CENT, rounding=ROUND_HALF_UP)

    return {
        "item_count": int(sum(line.quantity for line in lines)),
        "subtotal": float(subtotal.quantize(_CENT, rounding=ROUND_HALF_UP)),
        "shipping": float(shipping_dec),
        "total": float(total),
    }

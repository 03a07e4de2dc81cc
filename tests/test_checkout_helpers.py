"""Tests for shipping, totals and checkout item projection"""
import pytest

from shopfolio.schemas.cart import CartLineItem
from shopfolio.services.checkout_helpers import (
    SHIPPING_TITLE,
    build_checkout_items,
    calc_totals,
    shipping_fee,
    to_cents,
    to_order_items,
)


def _line(pid, price, qty, title="Item"):
    return CartLineItem(id=pid, title=title, price=price, image=None, quantity=qty)


@pytest.mark.parametrize(
    "subtotal, expected",
    [
        (0, 0.0),
        (10, 5.99),
        (50, 5.99),
        (50.01, 0.0),
        (120, 0.0),
    ],
)
def test_shipping_fee(subtotal, expected):
    assert shipping_fee(subtotal) == expected


def test_shipping_fee_custom_rule():
    assert shipping_fee(20, threshold=10, fee=3) == 0.0
    assert shipping_fee(5, threshold=10, fee=3) == 3.0


def test_non_zero_shipping_appends_one_line():
    items = build_checkout_items([_line(1, 10, 2), _line(2, 5, 1)], shipping=5.99)

    assert [(i.title, i.price, i.quantity) for i in items] == [
        ("Item", 10, 2),
        ("Item", 5, 1),
        (SHIPPING_TITLE, 5.99, 1),
    ]


def test_zero_shipping_appends_nothing():
    items = build_checkout_items([_line(1, 60, 1)], shipping=0)
    assert [i.title for i in items] == ["Item"]


def test_blank_title_defaults():
    items = build_checkout_items([_line(1, 1, 1, title="  ")])
    assert items[0].title == "Product"


def test_calc_totals_rounds_only_here():
    totals = calc_totals([_line(1, 0.1, 1), _line(2, 0.2, 1)], shipping=5.99)
    assert totals == {"item_count": 2, "subtotal": 0.3, "shipping": 5.99, "total": 6.29}


def test_to_cents_rounds_half_up():
    assert to_cents(10) == 1000
    assert to_cents(1.005) == 101
    assert to_cents(19.99) == 1999


def test_to_order_items():
    out = to_order_items([_line("sku-1", 3.5, 2, title="Mug")])
    assert out[0].model_dump() == {"id": "sku-1", "title": "Mug", "price": 3.5, "quantity": 2}

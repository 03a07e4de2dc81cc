"""Pytest configuration and fixtures"""
import os

import pytest

# Keep a developer's .env / shell from leaking into tests
for _var in ("STOREFRONT_BACKEND_URL", "EXPO_PUBLIC_STRIPE_BACKEND_URL", "STRIPE_SECRET_KEY"):
    os.environ.pop(_var, None)

from shopfolio.repositories.kv_store import MemoryKeyValueStore  # noqa: E402
from shopfolio.services.cart_store import CartStore  # noqa: E402

from fakes import CART_KEY, FlakyStore  # noqa: E402


@pytest.fixture
def memory_store():
    return MemoryKeyValueStore()


@pytest.fixture
def flaky_store():
    return FlakyStore()


@pytest.fixture
def cart(memory_store):
    return CartStore(memory_store, CART_KEY)


@pytest.fixture
def sample_product():
    """Sample catalog product"""
    return {
        "id": 1,
        "title": "Fjallraven Backpack",
        "price": 10.0,
        "image": "https://fakestoreapi.com/img/81fPKd-2AYL._AC_SL1500_.jpg",
        "category": "men's clothing",
        "description": "Your perfect pack for everyday use",
    }


@pytest.fixture
def other_product():
    return {
        "id": 2,
        "title": "Mens Casual T-Shirt",
        "price": 5.0,
        "image": "https://fakestoreapi.com/img/71-3HjGNDUL._AC_SY879._SX._UX._SY._UY_.jpg",
    }

# shopfolio/client.py
"""
Composition root for the storefront client core.

    storefront = await Storefront.start()          # builds everything and hydrates the cart
    await storefront.cart.add_item(product, 2)
    outcome = await storefront.checkout.run({...}, user_id=uid)
    await storefront.close()

All collaborators are constructed here and passed down explicitly; nothing in the core
keeps module-level mutable state.
"""
from __future__ import annotations

import asyncio
import logging
import webbrowser
from dataclasses import dataclass
from typing import Optional

from shopfolio.config import Settings, get_settings, init_firebase
from shopfolio.core.errors import ConfigurationError
from shopfolio.integrations.catalog import CatalogClient
from shopfolio.integrations.checkout_session import CheckoutSessionClient
from shopfolio.repositories.kv_store import JsonFileKeyValueStore, KeyValueStore
from shopfolio.services.cart_store import CartStore
from shopfolio.services.checkout import BrowserLauncher, BrowserResult, CheckoutFlow, ConfirmPrompt
from shopfolio.services.orders import OrderRecorder

logger = logging.getLogger("shopfolio.client")


async def open_in_system_browser(url: str) -> BrowserResult:
    """
    Opens the payment page and waits until the user comes back (Enter).
    The desktop browser gives no close event, so returning always means "dismiss".
    """
    loop = asyncio.get_running_loop()
    opened = await loop.run_in_executor(None, webbrowser.open, url)
    if not opened:
        print(f"Open this address to pay: {url}")
    await loop.run_in_executor(None, input, "Press Enter when you are back from the payment page... ")
    return BrowserResult.DISMISS


async def console_confirm(title: str, message: str) -> Optional[bool]:
    loop = asyncio.get_running_loop()
    answer = await loop.run_in_executor(None, input, f"{title}\n{message}\n[y/n] ")
    answer = (answer or "").strip().lower()
    if answer in ("y", "yes"):
        return True
    if answer in ("n", "no"):
        return False
    return None


def build_order_recorder(settings: Settings) -> Optional[OrderRecorder]:
    """Orders are only recorded when Firebase is configured."""
    try:
        return OrderRecorder(init_firebase(settings))
    except ConfigurationError as exc:
        logger.warning("Order recording disabled: %s", exc)
        return None


@dataclass
class Storefront:
    settings: Settings
    cart: CartStore
    sessions: CheckoutSessionClient
    catalog: CatalogClient
    checkout: CheckoutFlow

    @classmethod
    def build(
        cls,
        settings: Optional[Settings] = None,
        *,
        storage: Optional[KeyValueStore] = None,
        open_browser: BrowserLauncher = open_in_system_browser,
        confirm: ConfirmPrompt = console_confirm,
        recorder: Optional[OrderRecorder] = None,
    ) -> "Storefront":
        settings = settings or get_settings()
        cart = CartStore(storage or JsonFileKeyValueStore(settings.cart_storage_path), settings.cart_storage_key)
        sessions = CheckoutSessionClient(settings.backend_url, timeout=settings.checkout_timeout)
        flow = CheckoutFlow(
            cart,
            sessions,
            open_browser,
            confirm,
            recorder,
            free_shipping_threshold=settings.free_shipping_threshold,
            shipping_fee=settings.shipping_fee,
            verify_payment=settings.verify_payment_status,
        )
        catalog = CatalogClient(settings.catalog_base_url, timeout=settings.catalog_timeout)
        return cls(settings=settings, cart=cart, sessions=sessions, catalog=catalog, checkout=flow)

    @classmethod
    async def start(cls, settings: Optional[Settings] = None, **kwargs) -> "Storefront":
        settings = settings or get_settings()
        if "recorder" not in kwargs:
            kwargs["recorder"] = build_order_recorder(settings)
        storefront = cls.build(settings, **kwargs)
        await storefront.cart.initialize()
        if not storefront.sessions.is_backend_configured():
            logger.warning("Checkout backend URL is not set; checkout will be unavailable")
        return storefront

    async def close(self) -> None:
        await self.cart.flush()
        await self.sessions.aclose()

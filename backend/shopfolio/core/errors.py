"""
shopfolio/core/errors.py - Error taxonomy of the cart / checkout core.

Every error carries a user-facing `message` and an optional technical `detail`.
Persistence errors never appear here: the cart store absorbs them.
"""
from typing import Iterable, List, Optional


class ShopfolioError(Exception):
    """Base class for all errors raised by the storefront core."""

    default_message = "Something went wrong."

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.detail and self.detail != self.message:
            return f"{self.message} ({self.detail})"
        return self.message


# ---------- configuration ----------
class ConfigurationError(ShopfolioError):
    default_message = "The application is not configured."


class BackendNotConfigured(ConfigurationError):
    default_message = (
        "Checkout backend is not configured. "
        "Set STOREFRONT_BACKEND_URL (or EXPO_PUBLIC_STRIPE_BACKEND_URL) in your .env."
    )


class FirebaseNotConfigured(ConfigurationError):
    def __init__(self, missing: Iterable[str]):
        self.missing: List[str] = list(missing)
        super().__init__(f"Firebase configuration is incomplete. Check: {', '.join(self.missing)}")


# ---------- validation ----------
class CheckoutValidationError(ShopfolioError):
    default_message = "Please fill in all required fields."

    def __init__(self, message: Optional[str] = None, fields: Optional[Iterable[str]] = None):
        self.fields: List[str] = list(fields or [])
        super().__init__(message)


# ---------- network / backend ----------
class CheckoutError(ShopfolioError):
    default_message = "Could not start the payment."


class BackendUnreachable(CheckoutError):
    default_message = "Could not connect to the checkout backend. Check that the server is running."


class SessionCreationFailed(CheckoutError):
    default_message = "Could not create the payment session."


class StatusCheckFailed(CheckoutError):
    default_message = "Could not verify the payment status."


class CheckoutInProgress(CheckoutError):
    default_message = "A checkout is already in progress."


class CatalogUnavailable(ShopfolioError):
    default_message = "Could not load products."

"""
shopfolio/schemas/cart.py - Pydantic models for the cart and the checkout session handoff.
"""
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

ProductId = Union[int, str]


class CartLineItem(BaseModel):
    """One product in the cart. Extra product fields are carried through verbatim."""
    model_config = ConfigDict(extra="allow")

    id: ProductId = Field(..., description="Stable product identifier, unique within the cart")
    title: str = Field(..., description="Product title")
    price: float = Field(..., ge=0, description="Price per unit at the time of adding to cart")
    image: Optional[str] = Field(None, description="Image reference (opaque)")
    quantity: int = Field(1, ge=1, description="Units of this product in the cart")


class CheckoutItem(BaseModel):
    """Request-scoped projection of a line item sent to the session backend."""
    title: str
    price: float = Field(..., ge=0)
    quantity: int = Field(1, ge=1)


class CheckoutSession(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., alias="sessionId")
    url: str


class SessionStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Optional[str] = None
    customer_email: Optional[str] = Field(None, alias="customerEmail")

    @property
    def is_paid(self) -> bool:
        return self.status == "paid"


# ---------- session backend wire models ----------
class SessionLineItemIn(BaseModel):
    title: Optional[str] = None
    price: float = Field(0, ge=0)
    quantity: Optional[int] = Field(None, ge=1)


class CreateCheckoutSessionBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: List[SessionLineItemIn] = Field(default_factory=list)
    success_url: Optional[str] = Field(None, alias="successUrl")
    cancel_url: Optional[str] = Field(None, alias="cancelUrl")

# shopfolio/schemas/order.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shopfolio.schemas.cart import ProductId

REQUIRED_SHIPPING_FIELDS = ("full_name", "email", "address", "city")


class ShippingDetails(BaseModel):
    """Checkout form. Blank strings are kept so that validation can name every missing field."""
    full_name: str = ""
    email: str = ""
    address: str = ""
    city: str = ""
    zip_code: Optional[str] = None

    @field_validator("full_name", "email", "address", "city", "zip_code", mode="before")
    @classmethod
    def _strip(cls, v, info):
        if v is None:
            return None if info.field_name == "zip_code" else ""
        # numeric keypads hand zip codes over as numbers
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            v = str(v)
        return v.strip() if isinstance(v, str) else v

    def missing_fields(self) -> List[str]:
        return [name for name in REQUIRED_SHIPPING_FIELDS if not getattr(self, name)]


class OrderItem(BaseModel):
    id: ProductId
    title: str
    price: float
    quantity: int = 1


class OrderRecord(BaseModel):
    """A completed checkout as stored under users/{uid}.orders."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    items: List[OrderItem] = Field(default_factory=list)
    subtotal: float
    shipping: float
    total: float
    status: str = "processing"
    session_id: Optional[str] = Field(None, alias="sessionId")
    shipping_details: Optional[ShippingDetails] = Field(None, alias="shippingDetails")
    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        alias="createdAt",
    )

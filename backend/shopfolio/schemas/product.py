"""
shopfolio/schemas/product.py - Catalog product as returned by the public catalog API.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from shopfolio.schemas.cart import ProductId


class ProductRating(BaseModel):
    rate: float = 0
    count: int = 0


class Product(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: ProductId
    title: str
    price: float = Field(..., ge=0)
    description: str = ""
    category: Optional[str] = None
    image: Optional[str] = None
    rating: Optional[ProductRating] = None

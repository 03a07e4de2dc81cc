# shopfolio/integrations/catalog.py
"""
Public product catalog (fakestoreapi-compatible).

GET /products, /products/{id}, /products/categories, /products/category/{name}
Search is client-side over the full product list.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from shopfolio.core.errors import CatalogUnavailable
from shopfolio.schemas.product import Product

logger = logging.getLogger("shopfolio.catalog")

_PRODUCTS = TypeAdapter(List[Product])


def filter_products(products: Iterable[Product], query: str) -> List[Product]:
    """Case-insensitive substring match on title or category. A blank query matches nothing."""
    needle = (query or "").strip().lower()
    if not needle:
        return []
    return [
        p for p in products
        if needle in p.title.lower() or needle in (p.category or "").lower()
    ]


class CatalogClient:
    def __init__(
        self,
        base_url: str = "https://fakestoreapi.com",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _get_json(self, path: str) -> Any:
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport) as client:
                r = await client.get(path)
                r.raise_for_status()
                if not r.content:
                    return None
                return r.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Catalog request failed: GET %s: %s", path, exc)
            raise CatalogUnavailable(detail=str(exc)) from exc

    async def fetch_products(self) -> List[Product]:
        data = await self._get_json("/products")
        try:
            return _PRODUCTS.validate_python(data)
        except ValidationError as exc:
            raise CatalogUnavailable(detail=str(exc)) from exc

    async def fetch_product(self, product_id) -> Product:
        data = await self._get_json(f"/products/{quote(str(product_id), safe='')}")
        if not data:
            # the public API answers 200 with an empty body for unknown ids
            raise CatalogUnavailable("Product not found.", detail=str(product_id))
        try:
            return Product.model_validate(data)
        except ValidationError as exc:
            raise CatalogUnavailable(detail=str(exc)) from exc

    async def fetch_categories(self) -> List[str]:
        data = await self._get_json("/products/categories")
        return [str(c) for c in data or []]

    async def fetch_products_by_category(self, category: str) -> List[Product]:
        data = await self._get_json(f"/products/category/{quote(category, safe='')}")
        try:
            return _PRODUCTS.validate_python(data)
        except ValidationError as exc:
            raise CatalogUnavailable(detail=str(exc)) from exc

    async def search_products(self, query: str) -> List[Product]:
        if not (query or "").strip():
            return []
        return filter_products(await self.fetch_products(), query)

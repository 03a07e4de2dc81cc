"""
shopfolio/services/cart_store.py
Client-side cart: in-memory authoritative state with write-through snapshot persistence.

Behavior
- Every mutation updates memory first, then spawns one asyncio task that writes the
  FULL cart (never a diff) to the key-value store.
- Write tasks are chained: each waits for the previous one and is dropped when a newer
  snapshot was scheduled meanwhile, so the last issued snapshot is the one that lands.
- Storage failures are logged on the "shopfolio.cart" logger and never reach callers;
  the cart stays usable in memory for the rest of the process.

Notes
- Construct one store at startup, `await store.initialize()`, and pass it to consumers.
- Mutations must run inside an event loop (they schedule the persistence task).
"""
from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Set, Union

from pydantic import BaseModel, TypeAdapter, ValidationError

from shopfolio.config import CART_STORAGE_KEY
from shopfolio.repositories.kv_store import KeyValueStore
from shopfolio.schemas.cart import CartLineItem, ProductId

logger = logging.getLogger("shopfolio.cart")

_LINES = TypeAdapter(List[CartLineItem])
_REQUIRED_PRODUCT_FIELDS = ("id", "title", "price", "image")

ProductLike = Union[Mapping[str, Any], BaseModel]


def _product_to_dict(product: ProductLike) -> Dict[str, Any]:
    if isinstance(product, BaseModel):
        data = product.model_dump()
    elif isinstance(product, Mapping):
        data = dict(product)
    else:
        raise ValueError("product must be a mapping or a pydantic model")
    missing = [f for f in _REQUIRED_PRODUCT_FIELDS if f not in data]
    if missing:
        raise ValueError(f"product is missing required fields: {', '.join(missing)}")
    return data


def _check_quantity(quantity: Any) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValueError("quantity must be an integer")


def _merge_duplicates(lines: List[CartLineItem]) -> List[CartLineItem]:
    """Keep first-seen order; repeated ids add their quantity to the first line."""
    merged: Dict[ProductId, CartLineItem] = {}
    for line in lines:
        if line.id in merged:
            merged[line.id].quantity += line.quantity
        else:
            merged[line.id] = line
    return list(merged.values())


class CartStore:
    def __init__(self, storage: KeyValueStore, storage_key: str = CART_STORAGE_KEY):
        self._storage = storage
        self._key = storage_key
        self._lines: List[CartLineItem] = []
        self._generation = 0
        self._last_write: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()

    # ---------- read side ----------
    @property
    def items(self) -> List[CartLineItem]:
        """Copies of the current line items, in insertion order."""
        return [line.model_copy() for line in self._lines]

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def get_total(self) -> float:
        return sum(line.price * line.quantity for line in self._lines)

    def get_total_items(self) -> int:
        return sum(line.quantity for line in self._lines)

    def _find(self, product_id: ProductId) -> Optional[CartLineItem]:
        return next((line for line in self._lines if line.id == product_id), None)

    # ---------- lifecycle ----------
    async def initialize(self) -> None:
        """
        Hydrate from storage. A missing key or an unreadable blob leaves the current
        state untouched; only a successful read replaces it.
        Pending writes land first so the read sees the latest snapshot.
        """
        await self.flush()
        try:
            raw = await self._storage.get(self._key)
        except Exception:
            logger.exception("Could not read saved cart")
            return
        if raw is None:
            return
        try:
            lines = _LINES.validate_python(json.loads(raw))
        except (ValueError, ValidationError) as exc:
            logger.error("Discarding unreadable saved cart: %s", exc)
            return
        self._lines = _merge_duplicates(lines)
        logger.debug("Cart restored with %d line(s)", len(self._lines))

    async def flush(self) -> None:
        """Wait for the latest scheduled write to settle. Never raises."""
        if self._last_write is not None:
            await asyncio.wait([self._last_write])

    # ---------- mutations ----------
    async def add_item(self, product: ProductLike, quantity: int = 1) -> None:
        _check_quantity(quantity)
        if quantity < 1:
            raise ValueError("quantity must be a positive integer")
        data = _product_to_dict(product)

        existing = self._find(data["id"])
        if existing is not None:
            # price stays the one recorded at first add
            existing.quantity += quantity
        else:
            data["quantity"] = quantity
            self._lines.append(CartLineItem.model_validate(data))
        self._schedule_write()

    async def remove_item(self, product_id: ProductId) -> None:
        remaining = [line for line in self._lines if line.id != product_id]
        if len(remaining) == len(self._lines):
            return
        self._lines = remaining
        self._schedule_write()

    async def update_quantity(self, product_id: ProductId, quantity: int) -> None:
        _check_quantity(quantity)
        if quantity <= 0:
            await self.remove_item(product_id)
            return
        line = self._find(product_id)
        if line is None:
            return
        line.quantity = quantity
        self._schedule_write()

    async def clear(self) -> None:
        self._lines = []
        self._schedule_write(remove=True)

    # ---------- persistence ----------
    def _snapshot(self) -> str:
        return json.dumps([line.model_dump(mode="json") for line in self._lines], ensure_ascii=False)

    def _schedule_write(self, remove: bool = False) -> None:
        self._generation += 1
        snapshot = None if remove else self._snapshot()
        task = asyncio.get_running_loop().create_task(
            self._write(self._generation, snapshot, self._last_write)
        )
        self._last_write = task
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self, generation: int, snapshot: Optional[str], previous: Optional[asyncio.Task]) -> None:
        if previous is not None:
            await asyncio.wait([previous])
        if generation != self._generation:
            logger.debug("Skipping superseded cart write #%d", generation)
            return
        try:
            if snapshot is None:
                await self._storage.remove(self._key)
            else:
                await self._storage.set(self._key, snapshot)
        except Exception:
            logger.exception("Could not save cart (write #%d)", generation)

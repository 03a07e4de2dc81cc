# shopfolio/services/orders.py
"""
Order recording under the authenticated user's Firestore document.

users/{uid}.orders is an array; each completed checkout is appended with ArrayUnion
(merge write, the rest of the profile is untouched). Recording is best effort: there is
no exactly-once guarantee, a retried call may append the same order twice.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

from firebase_admin import firestore
from google.cloud.firestore_v1 import SERVER_TIMESTAMP

from shopfolio.schemas.order import OrderRecord

logger = logging.getLogger("shopfolio.orders")

USERS = "users"


class OrderRecorder:
    def __init__(self, db):
        self._db = db

    def _user_ref(self, uid: str):
        return self._db.collection(USERS).document(uid)

    def _record_blocking(self, uid: str, doc: Dict[str, Any]) -> None:
        self._user_ref(uid).set(
            {"orders": firestore.ArrayUnion([doc]), "updated_at": SERVER_TIMESTAMP},
            merge=True,
        )

    def _list_blocking(self, uid: str) -> List[Dict[str, Any]]:
        snap = self._user_ref(uid).get()
        if not snap.exists:
            return []
        orders = (snap.to_dict() or {}).get("orders") or []
        return [o for o in orders if isinstance(o, dict)]

    async def record(self, uid: str, order: OrderRecord) -> None:
        doc = order.model_dump(mode="json", by_alias=True, exclude_none=True)
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._record_blocking, uid, doc)
        logger.info("Order %s recorded for user %s", order.id, uid)

    async def list_recent(self, uid: str, limit: int = 3) -> List[OrderRecord]:
        """Newest first."""
        loop = asyncio.get_running_loop()
        raw = await loop.run_in_executor(None, self._list_blocking, uid)
        out: List[OrderRecord] = []
        for d in reversed(raw[-limit:] if limit else raw):
            try:
                out.append(OrderRecord.model_validate(d))
            except ValueError as exc:
                logger.debug("Skipping unreadable order for %s: %s", uid, exc)
        return out

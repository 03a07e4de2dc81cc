"""Test doubles shared by several test modules"""
import asyncio
from typing import Dict, List, Optional

from shopfolio.repositories.kv_store import MemoryKeyValueStore

CART_KEY = "@shopfolio_cart"


class FlakyStore(MemoryKeyValueStore):
    """Memory store whose operations can be made to fail or to stall."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        super().__init__(initial)
        self.fail_get = False
        self.fail_set = False
        self.fail_remove = False
        self.delays: List[float] = []  # consumed one per set() call
        self.calls: List[tuple] = []

    async def get(self, key):
        self.calls.append(("get", key))
        if self.fail_get:
            raise OSError("storage unavailable")
        return await super().get(key)

    async def set(self, key, value):
        self.calls.append(("set", key, value))
        if self.delays:
            await asyncio.sleep(self.delays.pop(0))
        if self.fail_set:
            raise OSError("disk full")
        await super().set(key, value)

    async def remove(self, key):
        self.calls.append(("remove", key))
        if self.fail_remove:
            raise OSError("storage unavailable")
        await super().remove(key)

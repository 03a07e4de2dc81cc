# shopfolio/repositories/kv_store.py
"""
Durable string key-value storage used to keep the cart across restarts.

Contract (all async):  get(key) -> str | None,  set(key, value),  remove(key).
"""
from __future__ import annotations

import asyncio
import json
import os
import tempfile
import threading
from typing import Dict, Optional, Protocol


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Process-local store (tests, ephemeral sessions)."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def remove(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileKeyValueStore:
    """
    All keys live in one JSON object file.
    Writes go to a temp file in the same directory and are swapped in with os.replace,
    so a crash mid-write leaves the previous file intact.
    Blocking file I/O runs in the default executor.
    """

    def __init__(self, path: str):
        self.path = path
        self._io_lock = threading.Lock()

    # ---------- blocking helpers ----------
    def _read_all(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return data

    def _write_all(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".kv-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def _get_blocking(self, key: str) -> Optional[str]:
        with self._io_lock:
            return self._read_all().get(key)

    def _set_blocking(self, key: str, value: str) -> None:
        with self._io_lock:
            data = self._read_all()
            data[key] = value
            self._write_all(data)

    def _remove_blocking(self, key: str) -> None:
        with self._io_lock:
            data = self._read_all()
            if key in data:
                del data[key]
                self._write_all(data)

    # ---------- async contract ----------
    async def get(self, key: str) -> Optional[str]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._get_blocking, key)

    async def set(self, key: str, value: str) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._set_blocking, key, value)

    async def remove(self, key: str) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._remove_blocking, key)

"""In-memory key/value and hash storage shared by all connections."""

from __future__ import annotations

import threading
from typing import Dict, Optional

from .frames import Frame

__all__ = ["Backend"]


class Backend:
    """Thread-safe store of plain values and hashes of frames."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._map: Dict[str, Frame] = {}
        self._hmap: Dict[str, Dict[str, Frame]] = {}

    def get(self, key: str) -> Optional[Frame]:
        """Value stored under ``key``, or ``None``."""
        with self._lock:
            return self._map.get(key)

    def set(self, key: str, value: Frame) -> None:
        """Store ``value`` under ``key``, replacing any earlier value."""
        with self._lock:
            self._map[key] = value

    def hget(self, key: str, field: str) -> Optional[Frame]:
        """Value of ``field`` in the hash ``key``, or ``None``."""
        with self._lock:
            fields = self._hmap.get(key)
            return None if fields is None else fields.get(field)

    def hset(self, key: str, field: str, value: Frame) -> None:
        """Set ``field`` in the hash ``key``, creating the hash if needed."""
        with self._lock:
            self._hmap.setdefault(key, {})[field] = value

    def hgetall(self, key: str) -> Optional[Dict[str, Frame]]:
        """A copy of the whole hash ``key``, or ``None`` if it does not exist."""
        with self._lock:
            fields = self._hmap.get(key)
            return None if fields is None else dict(fields)
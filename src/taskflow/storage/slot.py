# src/taskflow/storage/slot.py

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from ..core.ports import KeyValueStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class PersistenceWarning:
    """A failed read/write against the durable store. Reported, never raised."""

    operation: str  # "read" | "write" | "remove"
    key: str
    message: str


class StorageSlot(Generic[T]):
    """
    One key in a KeyValueStore bound to a serializer/deserializer pair.

    Every failure (store errors, codec errors) is logged at WARNING and
    returned as a PersistenceWarning so callers can keep working in memory.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        *,
        serializer: Callable[[T], str],
        deserializer: Callable[[str], T],
    ) -> None:
        if not key:
            raise ValueError("key is required")
        self._store = store
        self._key = key
        self._serializer = serializer
        self._deserializer = deserializer

    @property
    def key(self) -> str:
        return self._key

    def read(self) -> tuple[T | None, PersistenceWarning | None]:
        """
        Returns (value, None) on success, (None, None) if the key is absent,
        and (None, warning) if the stored payload cannot be read or decoded.
        """
        try:
            raw = self._store.get(self._key)
        except Exception as exc:
            return None, self._warn("read", exc)
        if raw is None:
            return None, None
        try:
            return self._deserializer(raw), None
        except Exception as exc:
            return None, self._warn("read", exc)

    def write(self, value: T) -> PersistenceWarning | None:
        try:
            self._store.set(self._key, self._serializer(value))
        except Exception as exc:
            return self._warn("write", exc)
        return None

    def remove(self) -> PersistenceWarning | None:
        try:
            self._store.remove(self._key)
        except Exception as exc:
            return self._warn("remove", exc)
        return None

    def _warn(self, operation: str, exc: Exception) -> PersistenceWarning:
        logger.warning("Storage %s failed key=%s: %s", operation, self._key, exc, exc_info=True)
        return PersistenceWarning(operation=operation, key=self._key, message=str(exc) or type(exc).__name__)

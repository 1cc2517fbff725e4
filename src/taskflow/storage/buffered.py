# src/taskflow/storage/buffered.py

from __future__ import annotations

"""
Write-behind key-value adapter.

Writes land in an in-memory buffer and return immediately; a flush pushes
them to the backend. Reads see buffered values first, so callers always
observe their own latest write even before it reaches the backend.

Flushing is explicit (flush()) or periodic (run_flush_loop()).
"""

import asyncio
import logging

from ..core.ports import KeyValueStore

logger = logging.getLogger(__name__)

_REMOVED = object()


class BufferedKeyValueStore:
    def __init__(self, backend: KeyValueStore) -> None:
        self._backend = backend
        self._pending: dict[str, object] = {}
        self.last_flush_error: Exception | None = None

    @property
    def backend(self) -> KeyValueStore:
        return self._backend

    def get(self, key: str) -> str | None:
        if key in self._pending:
            val = self._pending[key]
            return None if val is _REMOVED else str(val)
        return self._backend.get(key)

    def set(self, key: str, value: str) -> None:
        # Re-insert so the key moves to the end of the flush order.
        self._pending.pop(key, None)
        self._pending[key] = value

    def remove(self, key: str) -> None:
        self._pending.pop(key, None)
        self._pending[key] = _REMOVED

    def pending_keys(self) -> list[str]:
        return list(self._pending)

    def flush(self) -> bool:
        """
        Apply buffered operations to the backend in order.

        Returns True when the buffer is empty afterwards. On a backend error the
        failed operation and everything after it stay buffered for the next flush.
        """
        if not self._pending:
            return True

        for key, val in list(self._pending.items()):
            try:
                if val is _REMOVED:
                    self._backend.remove(key)
                else:
                    self._backend.set(key, str(val))
            except Exception as exc:
                self.last_flush_error = exc
                logger.warning(
                    "Flush failed key=%s pending=%d", key, len(self._pending), exc_info=True
                )
                return False

            # A newer write may have replaced the value while we were busy.
            if self._pending.get(key) is val:
                del self._pending[key]

        self.last_flush_error = None
        return True


async def run_flush_loop(store: BufferedKeyValueStore, *, interval_seconds: float = 2.0) -> None:
    """
    Periodically flush a BufferedKeyValueStore.

    To stop the loop, cancel the coroutine/task; a final flush runs on the way out.
    """
    sleep_s = max(0.01, float(interval_seconds))

    try:
        while True:
            store.flush()
            await asyncio.sleep(sleep_s)
    except asyncio.CancelledError:
        if not store.flush():
            logger.warning("Final flush left %d key(s) unwritten", len(store.pending_keys()))
        raise

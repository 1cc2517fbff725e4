# src/taskflow/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The task repository depends on Protocols instead of concrete implementations.
This keeps storage backends swappable and makes testing easier.
"""

from datetime import datetime
from typing import Callable, Protocol

Clock = Callable[[], datetime]
# Returns "now" as a timezone-aware datetime.

ChangeListener = Callable[[str], None]
# Called with an event name after the task collection or filter state changed.


class KeyValueStore(Protocol):
    """
    Durable string-keyed blob space (localStorage-like).

    Implementations are synchronous. Backends that are slow or asynchronous
    are wrapped in a write-behind adapter so callers never wait on I/O.
    """

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

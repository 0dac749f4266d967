from __future__ import annotations

import threading
from typing import Protocol

from shortlink.services._shared.errors import ShortCodeConflictError


class ShortCodeRegistry(Protocol):
    """
    Storage seen by the short-code allocator.

    ``claim`` performs the insert and MUST raise
    :class:`~shortlink.services._shared.errors.ShortCodeConflictError` when
    the storage uniqueness rule rejects the code. ``is_taken`` is a cheap
    pre-check only; a ``False`` answer does not reserve anything.
    """

    def is_taken(self, code: str) -> bool: ...

    def claim(self, code: str) -> None: ...


class InMemoryShortCodeRegistry(ShortCodeRegistry):
    """Set-backed registry; ``claim`` is atomic under a lock."""

    def __init__(self, taken: set[str] | None = None) -> None:
        self._codes: set[str] = set(taken or ())
        self._lock = threading.Lock()

    def is_taken(self, code: str) -> bool:
        with self._lock:
            return code in self._codes

    def claim(self, code: str) -> None:
        with self._lock:
            if code in self._codes:
                raise ShortCodeConflictError(code)
            self._codes.add(code)

    def release(self, code: str) -> None:
        with self._lock:
            self._codes.discard(code)

    @property
    def codes(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._codes)

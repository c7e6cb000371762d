"""
Vault-wide reentrancy guard.

One busy flag covers every mutating entry point of a vault. A call that
arrives while another is still running (for example from inside a token
transfer callback) is rejected immediately, never queued.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from .exceptions import ReentrancyError

logger = logging.getLogger(__name__)


class ReentrancyGuard:
    def __init__(self) -> None:
        self._mutex = threading.Lock()
        self._active: str | None = None

    @property
    def locked(self) -> bool:
        return self._active is not None

    @property
    def active_operation(self) -> str | None:
        return self._active

    def _acquire(self, operation: str) -> None:
        with self._mutex:
            if self._active is not None:
                active = self._active
                logger.warning(
                    "Reentrant call rejected",
                    extra={
                        "event": "guard.reentrancy_rejected",
                        "active": active,
                        "attempted": operation,
                    },
                )
                raise ReentrancyError(active=active, attempted=operation)
            self._active = operation

    def _release(self) -> None:
        with self._mutex:
            self._active = None

    @contextmanager
    def enter(self, operation: str) -> Iterator[None]:
        """Hold the guard for the duration of the block."""
        self._acquire(operation)
        try:
            yield
        finally:
            self._release()

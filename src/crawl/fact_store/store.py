"""Ephemeral and persistent fact sets."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from crawl.errors import CollaboratorError, CrawlError
from crawl.fact_store.backends import FactBackend
from crawl.ir.statements import Persistence

logger = logging.getLogger(__name__)


class FactStore:
    """Two disjoint string sets with idempotent insert/remove.

    Persistent mutations are written through to the backend before the
    in-memory set changes, so the backend never lags behind a completed
    statement.
    """

    def __init__(self, backend: Optional[FactBackend] = None) -> None:
        self.backend = backend
        self._ephemeral: set[str] = set()
        self._persistent: set[str] = set()
        if backend is not None:
            self._persistent = set(self._call_backend("load_all", backend.load_all))

    @property
    def ephemeral(self) -> frozenset[str]:
        return frozenset(self._ephemeral)

    @property
    def persistent(self) -> frozenset[str]:
        return frozenset(self._persistent)

    def contains(self, name: str, persistence: Persistence = "ephemeral") -> bool:
        return name in self._bucket(persistence)

    def insert(self, name: str, persistence: Persistence = "ephemeral") -> None:
        bucket = self._bucket(persistence)
        if persistence == "persistent" and self.backend is not None:
            self._call_backend("persist", lambda: self.backend.persist(name, True))
        bucket.add(name)
        logger.debug("set %s fact %r", persistence, name)

    def remove(self, name: str, persistence: Persistence = "ephemeral") -> None:
        bucket = self._bucket(persistence)
        if persistence == "persistent" and self.backend is not None:
            self._call_backend("persist", lambda: self.backend.persist(name, False))
        bucket.discard(name)
        logger.debug("cleared %s fact %r", persistence, name)

    def toggle(self, name: str, persistence: Persistence = "ephemeral") -> bool:
        """Flip membership; returns the new membership."""
        if self.contains(name, persistence):
            self.remove(name, persistence)
            return False
        self.insert(name, persistence)
        return True

    def _bucket(self, persistence: Persistence) -> set[str]:
        if persistence == "ephemeral":
            return self._ephemeral
        if persistence == "persistent":
            return self._persistent
        raise ValueError(f"persistence must be 'ephemeral' or 'persistent': {persistence!r}")

    def _call_backend(self, operation: str, call: Callable[[], Any]) -> Any:
        try:
            return call()
        except CrawlError:
            raise
        except Exception as exc:
            raise CollaboratorError(
                f"Fact backend {operation} failed: {exc}",
                resource=type(self.backend).__name__,
            ) from exc

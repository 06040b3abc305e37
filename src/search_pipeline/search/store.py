"""Document stores backing the search pipeline.

The pipeline depends only on the ``DocumentStore`` protocol. The in-memory
implementation guards a plain dict with a lock so upserts, removals and
snapshot reads may interleave from many threads without external locking.
"""

from __future__ import annotations

import logging
import threading
from typing import Generic, Protocol, TypeVar, runtime_checkable


logger = logging.getLogger(__name__)

T = TypeVar("T")


class StoreError(ValueError):
    """Raised when a blank id or a missing document is handed to a store."""


@runtime_checkable
class DocumentStore(Protocol[T]):
    """Concurrency-safe identifier -> document collection."""

    def add(self, doc_id: str, document: T) -> None:  # pragma: no cover - Protocol only
        """Insert or replace the document stored under ``doc_id``."""

    def remove(self, doc_id: str) -> None:  # pragma: no cover - Protocol only
        """Remove ``doc_id``; a missing id is a no-op."""

    def all(self) -> list[T]:  # pragma: no cover - Protocol only
        """Return a snapshot of every stored document."""

    def find_by_id(self, doc_id: str) -> T | None:  # pragma: no cover - Protocol only
        """Return the document stored under ``doc_id`` or None."""

    def size(self) -> int:  # pragma: no cover - Protocol only
        """Return the number of stored documents."""


class InMemoryDocumentStore(Generic[T]):
    """Dict-backed store; iteration order follows first insertion of each id."""

    def __init__(self) -> None:
        self._documents: dict[str, T] = {}
        self._lock = threading.Lock()

    def add(self, doc_id: str, document: T) -> None:
        if doc_id is None or not str(doc_id).strip():
            raise StoreError("Document ID must not be null or blank")
        if document is None:
            raise StoreError(f"Document for '{doc_id}' must not be None")

        with self._lock:
            self._documents[doc_id] = document
            total = len(self._documents)
        logger.debug("Store: added/updated document '%s' (total: %d)", doc_id, total)

    def remove(self, doc_id: str) -> None:
        if doc_id is None:
            return
        with self._lock:
            removed = self._documents.pop(doc_id, None)
        if removed is not None:
            logger.debug("Store: removed document '%s'", doc_id)

    def all(self) -> list[T]:
        with self._lock:
            return list(self._documents.values())

    def ids(self) -> list[str]:
        with self._lock:
            return list(self._documents)

    def find_by_id(self, doc_id: str) -> T | None:
        if doc_id is None:
            return None
        with self._lock:
            return self._documents.get(doc_id)

    def size(self) -> int:
        with self._lock:
            return len(self._documents)

    def is_empty(self) -> bool:
        return self.size() == 0

    def clear(self) -> None:
        with self._lock:
            self._documents.clear()
        logger.info("InMemoryDocumentStore cleared")

    def log_stats(self) -> None:
        logger.info("InMemoryDocumentStore: %d documents", self.size())

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, doc_id: object) -> bool:
        with self._lock:
            return doc_id in self._documents

"""In-memory document index."""

from __future__ import annotations

import logging
import threading
from collections import Counter
from typing import Dict, List

from docrank.models import DocumentChunk

LOGGER = logging.getLogger(__name__)


class InMemoryDocumentIndex:
    """Chunk store keyed by chunk ID.

    Writes are keyed upserts (last write wins). Readers always receive list
    snapshots, so iterating results never races a concurrent ``put``.
    """

    def __init__(self) -> None:
        self._chunks: Dict[str, DocumentChunk] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._chunks)

    def __contains__(self, chunk_id: object) -> bool:
        with self._lock:
            return chunk_id in self._chunks

    def put(self, chunk: DocumentChunk) -> bool:
        """Insert or replace ``chunk``. Returns True if the ID was new."""
        if not chunk.id:
            raise ValueError("Chunk must have an id before it can be indexed")
        with self._lock:
            is_new = chunk.id not in self._chunks
            self._chunks[chunk.id] = chunk
        LOGGER.debug("Indexed document: %s (%s)", chunk.title, chunk.id)
        return is_new

    def get_by_id(self, chunk_id: str) -> DocumentChunk | None:
        with self._lock:
            return self._chunks.get(chunk_id)

    def get_by_source(self, source: str) -> List[DocumentChunk]:
        with self._lock:
            return [chunk for chunk in self._chunks.values() if chunk.source == source]

    def get_all(self) -> List[DocumentChunk]:
        with self._lock:
            return list(self._chunks.values())

    def remove(self, chunk_id: str) -> bool:
        with self._lock:
            removed = self._chunks.pop(chunk_id, None)
        return removed is not None

    def clear(self) -> None:
        with self._lock:
            self._chunks.clear()

    def stats(self) -> Dict[str, object]:
        with self._lock:
            by_source = Counter(chunk.source for chunk in self._chunks.values())
            total = len(self._chunks)
        return {"total": total, "by_source": dict(sorted(by_source.items()))}

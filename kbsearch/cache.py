"""
Index lifecycle cache.

Owns the current IndexSnapshot and rebuilds it from the document source when
it is missing, invalidated or older than the TTL:

    Empty -> Building -> Ready -> (Stale) -> Building -> Ready -> ...

Readers grab the current snapshot once per request and keep using it; the
swap to a freshly built snapshot is a single attribute assignment, so a
reader never observes a half-built index. Rebuilds are serialized with a
lock (double-checked: check staleness, lock, re-check, build, swap).

A failed rebuild never discards a Ready snapshot: acquire() keeps serving
the stale snapshot and hands the RebuildFailed back to the caller alongside
it. Only when there is nothing to serve does get_snapshot() raise.
"""

import logging
import threading
import time
from typing import Callable, Optional, Tuple

from .errors import RebuildFailed
from .index import build_index
from .index.index_builder import DEFAULT_EMBEDDING_DIMENSIONS, DEFAULT_MAX_TOKENS
from .loader import DocumentSource, load_documents
from .models import IndexSnapshot

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class IndexCache:
    """Holds at most one index snapshot plus its build timestamp"""

    def __init__(
        self,
        source: Optional[DocumentSource],
        ttl_seconds: Optional[float] = 300.0,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        embedding_dimensions: int = DEFAULT_EMBEDDING_DIMENSIONS,
        clock: Clock = time.monotonic,
    ):
        """
        Args:
            source: Document source read on every rebuild (None = pinned cache)
            ttl_seconds: Snapshot age before it is rebuilt (None = never)
            max_tokens: Per-document token cap passed to the builder
            embedding_dimensions: Embedding width passed to the builder
            clock: Monotonic time source (injectable for tests)
        """
        self.source = source
        self.ttl_seconds = ttl_seconds
        self.max_tokens = max_tokens
        self.embedding_dimensions = embedding_dimensions
        self._clock = clock
        self._snapshot: Optional[IndexSnapshot] = None
        self._last_error: Optional[RebuildFailed] = None

        # invalidate() bumps the generation; a snapshot is current only if it
        # was built from a read that started after the latest bump
        self._generation = 0
        self._built_generation = 0
        self._state_lock = threading.Lock()
        self._build_lock = threading.Lock()

    @classmethod
    def pinned(cls, snapshot: IndexSnapshot, clock: Clock = time.monotonic) -> "IndexCache":
        """Cache that always serves the given snapshot and never rebuilds"""
        cache = cls(source=None, ttl_seconds=None, clock=clock)
        cache._snapshot = snapshot
        return cache

    @property
    def last_error(self) -> Optional[RebuildFailed]:
        """Failure of the most recent rebuild, None once a rebuild succeeds"""
        return self._last_error

    def peek(self) -> Optional[IndexSnapshot]:
        """Current snapshot without triggering a rebuild"""
        return self._snapshot

    def age_seconds(self, snapshot: Optional[IndexSnapshot] = None) -> float:
        snapshot = snapshot or self._snapshot
        if snapshot is None:
            return 0.0
        return max(self._clock() - snapshot.built_at, 0.0)

    def is_stale(self, snapshot: Optional[IndexSnapshot]) -> bool:
        if snapshot is None:
            return True
        if self.source is None:
            return False
        if self._built_generation != self._generation:
            return True
        return self.ttl_seconds is not None and self.age_seconds(snapshot) >= self.ttl_seconds

    def invalidate(self) -> None:
        """Mark the snapshot stale; the next get_snapshot() rebuilds it"""
        with self._state_lock:
            self._generation += 1
        logger.info("Index invalidated")

    def acquire(self) -> Tuple[IndexSnapshot, Optional[RebuildFailed]]:
        """
        Current snapshot plus the error of a rebuild that failed on this access.

        The error is None whenever the returned snapshot is up to date. When
        a rebuild fails and a previous snapshot exists, that snapshot is
        returned together with the RebuildFailed.

        Raises:
            RebuildFailed: If the source cannot be read and no previous
                snapshot exists
        """
        snapshot = self._snapshot
        if not self.is_stale(snapshot):
            logger.debug(
                f"Using indexed knowledge base ({snapshot.total_documents} docs, "
                f"{len(snapshot.vocabulary)} terms)"
            )
            return snapshot, None

        with self._build_lock:
            # Another thread may have rebuilt while we waited
            snapshot = self._snapshot
            if not self.is_stale(snapshot):
                return snapshot, None

            try:
                return self._rebuild_locked(), None
            except RebuildFailed as e:
                if snapshot is None:
                    raise
                logger.error(f"Rebuild failed - serving previous index snapshot: {e}")
                return snapshot, e

    def get_snapshot(self) -> IndexSnapshot:
        """
        Current snapshot, rebuilt first if missing or stale.

        Raises:
            RebuildFailed: If the source cannot be read and no previous
                snapshot exists
        """
        snapshot, _ = self.acquire()
        return snapshot

    def rebuild(self) -> IndexSnapshot:
        """
        Force a rebuild now.

        Raises:
            RebuildFailed: On any source failure (previous snapshot stays)
        """
        with self._build_lock:
            return self._rebuild_locked()

    def _rebuild_locked(self) -> IndexSnapshot:
        if self.source is None:
            raise RebuildFailed(
                "Index cache has no document source",
                has_previous_snapshot=self._snapshot is not None,
            )

        with self._state_lock:
            generation = self._generation

        logger.info(f"Building fresh index from {self.source!r}...")
        started = self._clock()
        try:
            documents = load_documents(self.source.read())
        except Exception as e:
            logger.error(f"Error reading document source: {e}")
            self._last_error = RebuildFailed(
                f"Document source unreadable: {e}",
                has_previous_snapshot=self._snapshot is not None,
            )
            raise self._last_error from e

        snapshot = build_index(
            documents,
            built_at=self._clock(),
            max_tokens=self.max_tokens,
            embedding_dimensions=self.embedding_dimensions,
        )

        # Single assignment: readers see the old or the new snapshot, never a mix
        self._snapshot = snapshot
        self._built_generation = generation
        self._last_error = None

        elapsed_ms = (self._clock() - started) * 1000
        logger.info(f"Index ready in {elapsed_ms:.0f}ms ({snapshot.total_documents} documents)")
        return snapshot

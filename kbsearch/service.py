"""
Knowledge base search service - the two operations exposed to callers.

- search(query, max_results) -> SearchResponse
- describe() -> IndexDescription

The service is an explicit value: it owns an IndexCache, a QueryProcessor
and a RelevanceScorer. There is no module-level state, so tests can build a
service around a pinned snapshot instead of racing a real rebuild.
"""

import logging
import time
from pathlib import Path
from typing import Optional, Union

from .cache import IndexCache
from .config import SearchSettings
from .errors import InvalidQuery, NoSearchableTerms
from .loader import DirectorySource
from .models import IndexDescription, SearchResponse
from .query import QueryProcessor
from .scoring import RelevanceScorer

logger = logging.getLogger(__name__)


class KnowledgeSearchService:
    """Ranked document search over a small in-memory knowledge base"""

    def __init__(
        self,
        cache: IndexCache,
        settings: Optional[SearchSettings] = None,
        scorer: Optional[RelevanceScorer] = None,
    ):
        self.settings = settings or SearchSettings()
        self.cache = cache
        self.query_processor = QueryProcessor(
            original_weight=self.settings.original_term_weight,
            expansion_weight=self.settings.expansion_term_weight,
        )
        self.scorer = scorer or RelevanceScorer(self.settings)

    @classmethod
    def from_directory(
        cls,
        path: Union[str, Path],
        settings: Optional[SearchSettings] = None,
    ) -> "KnowledgeSearchService":
        """Service over the markdown files of a directory"""
        settings = settings or SearchSettings()
        cache = IndexCache(
            DirectorySource(path),
            ttl_seconds=settings.index_ttl_seconds,
            max_tokens=settings.max_tokens_per_document,
            embedding_dimensions=settings.embedding_dimensions,
        )
        return cls(cache, settings)

    def validate_query(self, query: str) -> str:
        """
        Trimmed query, or InvalidQuery if its length is out of bounds.

        Raises:
            InvalidQuery: Empty, too short or too long after trimming
        """
        if not isinstance(query, str):
            raise InvalidQuery("Query must be a string")

        trimmed = query.strip()
        if len(trimmed) < self.settings.min_query_length:
            raise InvalidQuery(
                f"Query must be at least {self.settings.min_query_length} characters long",
                query=query,
            )
        if len(trimmed) > self.settings.max_query_length:
            raise InvalidQuery(
                f"Query is too long (max {self.settings.max_query_length} characters)",
                query=query,
            )
        return trimmed

    def resolve_max_results(self, max_results: Optional[int]) -> int:
        """Caller bound, defaulted and capped at the hard maximum"""
        if max_results is None:
            return self.settings.default_max_results
        if max_results < 1:
            raise InvalidQuery(f"max_results must be positive, got {max_results}")
        return min(max_results, self.settings.max_results_cap)

    def search(self, query: str, max_results: Optional[int] = None) -> SearchResponse:
        """
        Search the knowledge base.

        Args:
            query: Free-text query (2-500 characters after trimming)
            max_results: Result bound (default 5, capped at 10)

        Returns:
            SearchResponse. status is "empty_corpus" when no documents are
            loaded and "no_searchable_terms" when the query has no term left
            after stop-word and short-word removal; both come with an empty
            result list. rebuild_error is set when the index could not be
            refreshed and the previous snapshot was searched instead.

        Raises:
            InvalidQuery: Query or max_results out of bounds
            RebuildFailed: Document source unreadable and no index to fall back on
        """
        started = time.perf_counter()
        query = self.validate_query(query)
        limit = self.resolve_max_results(max_results)

        logger.info(f"Processing query: \"{query[:50]}{'...' if len(query) > 50 else ''}\"")

        # One snapshot for the whole request, even if a rebuild swaps it meanwhile
        snapshot, error = self.cache.acquire()
        rebuild_error = str(error) if error is not None else None
        if error is not None:
            logger.warning(f"Searching a stale index: {rebuild_error}")

        if snapshot.is_empty:
            logger.warning("No documents available in knowledge base")
            return SearchResponse(
                results=[],
                total_documents=0,
                search_time_ms=_elapsed_ms(started),
                status="empty_corpus",
                rebuild_error=rebuild_error,
            )

        try:
            query_vector = self.query_processor.process(query, snapshot)
        except NoSearchableTerms:
            return SearchResponse(
                results=[],
                total_documents=snapshot.total_documents,
                search_time_ms=_elapsed_ms(started),
                status="no_searchable_terms",
                rebuild_error=rebuild_error,
            )

        results = self.scorer.score(query_vector, snapshot, limit)
        search_time_ms = _elapsed_ms(started)

        logger.info(
            f"Completed in {search_time_ms}ms - {len(results)} results "
            f"from {snapshot.total_documents} documents"
        )

        return SearchResponse(
            results=results,
            total_documents=snapshot.total_documents,
            search_time_ms=search_time_ms,
            status="ok",
            rebuild_error=rebuild_error,
        )

    def describe(self) -> IndexDescription:
        """Index health record. Never triggers a rebuild."""
        ttl = self.cache.ttl_seconds
        ttl_ms = int(ttl * 1000) if ttl is not None else None
        snapshot = self.cache.peek()
        error = self.cache.last_error
        rebuild_error = str(error) if error is not None else None

        if snapshot is None:
            return IndexDescription(
                is_indexed=False,
                total_documents=0,
                vocabulary_size=0,
                average_document_length=0.0,
                index_age_ms=0,
                index_ttl_ms=ttl_ms,
                rebuild_error=rebuild_error,
            )

        return IndexDescription(
            is_indexed=True,
            total_documents=snapshot.total_documents,
            vocabulary_size=len(snapshot.vocabulary),
            average_document_length=snapshot.average_document_length,
            index_age_ms=int(self.cache.age_seconds(snapshot) * 1000),
            index_ttl_ms=ttl_ms,
            rebuild_error=rebuild_error,
        )


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)

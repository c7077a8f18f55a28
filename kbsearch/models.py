"""
Data model for the knowledge base search engine.

Internal index structures are frozen dataclasses: a snapshot is built once,
then only ever read. Records that cross the service boundary (results,
responses, introspection) are pydantic models so embedding applications can
serialize them directly.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Literal, Mapping, Optional, Tuple

import numpy as np
from pydantic import BaseModel, Field

from .errors import EmptyCorpus, NoSearchableTerms, RebuildFailed


@dataclass(frozen=True)
class Document:
    """A parsed knowledge base document. Replaced wholesale on reindex."""
    id: str
    title: str
    body: str               # Display body, markdown preserved
    plain_body: str         # Body without emphasis/code markers (term extraction)
    tags: Tuple[str, ...]
    source_id: str          # Original filename
    relevance: float = 0.5  # Quality prior in [0, 1]


@dataclass(frozen=True)
class TermEntry:
    """Inverted index entry for a single term"""
    document_ids: Tuple[str, ...]  # Corpus order, each id once
    total_frequency: int
    idf: float

    @property
    def document_frequency(self) -> int:
        return len(self.document_ids)


@dataclass(frozen=True)
class DocumentEntry:
    """Per-document statistics inside a snapshot"""
    document: Document
    term_frequency: Mapping[str, int]
    tfidf_vector: Mapping[str, float]
    length: int
    topics: Tuple[str, ...]
    embedding: np.ndarray = field(repr=False, compare=False)


@dataclass(frozen=True)
class IndexSnapshot:
    """
    One complete, immutable generation of the index.

    A new snapshot fully replaces the previous one; nothing here is ever
    patched in place.
    """
    inverted_index: Mapping[str, TermEntry]
    document_entries: Mapping[str, DocumentEntry]  # Corpus order
    vocabulary: FrozenSet[str]
    embedding_terms: Tuple[str, ...]  # Vocabulary terms backing each embedding dimension
    total_documents: int
    average_document_length: float
    built_at: float

    @classmethod
    def empty(cls, built_at: float) -> "IndexSnapshot":
        return cls(
            inverted_index=MappingProxyType({}),
            document_entries=MappingProxyType({}),
            vocabulary=frozenset(),
            embedding_terms=(),
            total_documents=0,
            average_document_length=0.0,
            built_at=built_at,
        )

    @property
    def is_empty(self) -> bool:
        return self.total_documents == 0

    def idf(self, term: str) -> float:
        """IDF for a term, 0.0 when the term is not in the vocabulary"""
        entry = self.inverted_index.get(term)
        return entry.idf if entry is not None else 0.0


@dataclass(frozen=True)
class QueryVector:
    """
    Processed query, ready for scoring against one snapshot.

    term_weights holds max(idf, 0) times the original or expansion
    multiplier, so terms in nearly every document (negative idf) and terms
    outside the vocabulary weigh 0 and never subtract from a score.
    """
    text: str                          # Trimmed, lowercased query
    original_terms: Tuple[str, ...]    # Tokenized query, in order
    expanded_terms: Tuple[str, ...]    # Expansion-only terms
    term_weights: Mapping[str, float]  # Every original and expanded term
    related_phrases: Tuple[str, ...]   # Raw expansion phrases (cross-reference)
    cue_words: FrozenSet[str]          # Raw query words (intent/recency cues)

    @property
    def terms(self) -> Tuple[str, ...]:
        """Distinct original terms followed by expansion terms"""
        return tuple(self.term_weights)

    @property
    def unique_original_terms(self) -> Tuple[str, ...]:
        return tuple(dict.fromkeys(self.original_terms))


class SearchResult(BaseModel):
    """Single ranked document returned to the caller"""
    document_id: str
    title: str
    body: str = Field(..., description="Display body, possibly truncated")
    tags: List[str] = Field(default_factory=list)
    source_id: str
    normalized_score: int = Field(..., ge=0, le=100)
    signal_breakdown: Dict[str, float] = Field(
        default_factory=dict,
        description="Non-zero contribution per scoring rule label",
    )


SearchStatus = Literal["ok", "empty_corpus", "no_searchable_terms"]


class SearchResponse(BaseModel):
    """Outcome of a search call"""
    results: List[SearchResult] = Field(default_factory=list)
    total_documents: int = 0
    search_time_ms: int = 0
    status: SearchStatus = "ok"
    rebuild_error: Optional[str] = Field(
        None,
        description="Set when the index could not be refreshed and an older snapshot was searched",
    )

    @property
    def empty_corpus(self) -> bool:
        return self.status == "empty_corpus"

    @property
    def no_searchable_terms(self) -> bool:
        return self.status == "no_searchable_terms"

    @property
    def stale(self) -> bool:
        """True when results come from a snapshot that failed to refresh"""
        return self.rebuild_error is not None

    def raise_for_status(self, query: str = "") -> "SearchResponse":
        """Raise the matching error for a flagged or stale response, return self otherwise"""
        if self.status == "empty_corpus":
            raise EmptyCorpus()
        if self.status == "no_searchable_terms":
            raise NoSearchableTerms(query)
        if self.rebuild_error is not None:
            raise RebuildFailed(self.rebuild_error, has_previous_snapshot=True)
        return self


class IndexDescription(BaseModel):
    """Index health record for diagnostics"""
    is_indexed: bool
    total_documents: int
    vocabulary_size: int
    average_document_length: float
    index_age_ms: int
    index_ttl_ms: Optional[int] = None
    rebuild_error: Optional[str] = None

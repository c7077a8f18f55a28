"""
Relevance search engine for small markdown knowledge bases (8-20 documents).

Given a fixed set of documents and a free-text query, returns a ranked list
of documents with a normalized 0-100 score and a per-signal breakdown.

Components:
- loader: Markdown sources -> Document records (title, tags, quality prior)
- index: Tokenizer, inverted index, IDF/TF-IDF, embeddings, BM25
- query: Tokenize + expand + IDF-weight the query
- scoring: Named scoring rules summed into one ranked score
- cache: Immutable snapshot, rebuilt when stale, swapped atomically
- service: search() and describe()

Example:
    >>> from kbsearch import KnowledgeSearchService
    >>> service = KnowledgeSearchService.from_directory("knowledge-base")
    >>> response = service.search("machine learning algorithms", max_results=3)
    >>> [r.title for r in response.results]
    ['Machine Learning Algorithms', ...]
"""

from .cache import IndexCache
from .config import ScoringWeights, SearchSettings, load_settings
from .errors import (
    EmptyCorpus,
    InvalidQuery,
    KnowledgeSearchError,
    NoSearchableTerms,
    RebuildFailed,
)
from .index import build_index, tokenize
from .loader import DirectorySource, DocumentSource, StaticSource, load_documents, parse_document
from .models import (
    Document,
    DocumentEntry,
    IndexDescription,
    IndexSnapshot,
    QueryVector,
    SearchResponse,
    SearchResult,
    TermEntry,
)
from .query import QueryProcessor
from .scoring import RelevanceScorer
from .service import KnowledgeSearchService

__version__ = "0.1.0"

__all__ = [
    "KnowledgeSearchService",
    "IndexCache",
    "QueryProcessor",
    "RelevanceScorer",
    "SearchSettings",
    "ScoringWeights",
    "load_settings",
    "DocumentSource",
    "DirectorySource",
    "StaticSource",
    "load_documents",
    "parse_document",
    "build_index",
    "tokenize",
    "Document",
    "DocumentEntry",
    "TermEntry",
    "IndexSnapshot",
    "QueryVector",
    "SearchResult",
    "SearchResponse",
    "IndexDescription",
    "KnowledgeSearchError",
    "InvalidQuery",
    "NoSearchableTerms",
    "EmptyCorpus",
    "RebuildFailed",
]

"""
Index builder - turns a document set into an immutable IndexSnapshot.

Three passes, in this order:
1. Term frequencies + inverted index (per document)
2. IDF for every vocabulary term (needs the complete corpus)
3. TF-IDF vectors and frequency embeddings (need the final IDF table)

IDF formula:
    idf(t) = ln(N / (1 + df(t)))

Terms present in every document (or all but one) get idf <= 0; they carry
no weight at query time.
"""

import logging
import math
import os
import re
import time
from collections import Counter
from types import MappingProxyType
from typing import Dict, Iterable, List, Optional, Tuple

from ..models import Document, DocumentEntry, IndexSnapshot, TermEntry
from .similarity import frequency_embedding
from .tokenizer import tokenize

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 1000
DEFAULT_EMBEDDING_DIMENSIONS = 50


def extract_topics(filename: str) -> Tuple[str, ...]:
    """
    Topic words from a filename (parts longer than 3 characters).

        >>> extract_topics("machine-learning_basics.md")
        ('machine', 'learning', 'basics')
    """
    base = os.path.splitext(filename)[0].lower()
    parts = [p for p in re.split(r"[-_\s]+", base) if len(p) > 3]
    return tuple(dict.fromkeys(parts))


def build_index(
    documents: Iterable[Document],
    built_at: Optional[float] = None,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    embedding_dimensions: int = DEFAULT_EMBEDDING_DIMENSIONS,
) -> IndexSnapshot:
    """
    Build a complete index snapshot from documents.

    Args:
        documents: Parsed documents (corpus order is preserved)
        built_at: Build timestamp (defaults to time.monotonic())
        max_tokens: Per-document token cap
        embedding_dimensions: Max width of frequency embeddings

    Returns:
        IndexSnapshot. Zero documents yields an empty snapshot with
        average_document_length == 0.

    Example:
        >>> snapshot = build_index([doc_a, doc_b])
        >>> snapshot.inverted_index["kubernetes"].document_ids
        ('doc_a',)
    """
    if built_at is None:
        built_at = time.monotonic()

    documents = _unique_by_id(documents)
    if not documents:
        logger.info("Built empty index (no documents)")
        return IndexSnapshot.empty(built_at)

    # Pass 1: term frequencies and inverted index
    postings: Dict[str, List[str]] = {}
    total_frequency: Counter = Counter()
    frequencies: Dict[str, Counter] = {}
    lengths: Dict[str, int] = {}
    total_length = 0

    for doc in documents:
        tokens = tokenize(f"{doc.title} {doc.plain_body}", max_tokens=max_tokens)
        term_frequency = Counter(tokens)

        for term in term_frequency:
            postings.setdefault(term, []).append(doc.id)
        total_frequency.update(tokens)

        frequencies[doc.id] = term_frequency
        lengths[doc.id] = len(tokens)
        total_length += len(tokens)

    # Pass 2: IDF (complete corpus required)
    n = len(documents)
    inverted_index = {
        term: TermEntry(
            document_ids=tuple(doc_ids),
            total_frequency=total_frequency[term],
            idf=math.log(n / (1 + len(doc_ids))),
        )
        for term, doc_ids in postings.items()
    }

    # Vocabulary order = first appearance in corpus order
    embedding_terms = tuple(list(postings)[:embedding_dimensions])

    # Pass 3: TF-IDF vectors and embeddings
    entries: Dict[str, DocumentEntry] = {}
    for doc in documents:
        term_frequency = frequencies[doc.id]
        length = lengths[doc.id]
        if length > 0:
            tfidf = {
                term: (tf / length) * inverted_index[term].idf
                for term, tf in term_frequency.items()
            }
        else:
            tfidf = {}

        entries[doc.id] = DocumentEntry(
            document=doc,
            term_frequency=MappingProxyType(dict(term_frequency)),
            tfidf_vector=MappingProxyType(tfidf),
            length=length,
            topics=extract_topics(doc.source_id),
            embedding=frequency_embedding(term_frequency, embedding_terms),
        )

    snapshot = IndexSnapshot(
        inverted_index=MappingProxyType(inverted_index),
        document_entries=MappingProxyType(entries),
        vocabulary=frozenset(postings),
        embedding_terms=embedding_terms,
        total_documents=n,
        average_document_length=total_length / n,
        built_at=built_at,
    )

    logger.info(
        f"Built index: {n} documents, {len(snapshot.vocabulary)} unique terms, "
        f"avg doc length: {snapshot.average_document_length:.1f} terms"
    )

    return snapshot


def _unique_by_id(documents: Iterable[Document]) -> List[Document]:
    unique: Dict[str, Document] = {}
    for doc in documents:
        if doc.id in unique:
            logger.warning(f"Duplicate document id '{doc.id}' ({doc.source_id}) - keeping first")
            continue
        unique[doc.id] = doc
    return list(unique.values())

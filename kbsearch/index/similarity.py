"""
Vector similarity helpers.

Two flavours of vector live in a snapshot:
- Sparse term -> weight maps (TF-IDF vectors, query weights)
- Dense frequency embeddings over the first N vocabulary terms

The embeddings are a simple proxy for semantic similarity, not a learned
model: dimension i holds the count of embedding_terms[i] in the document.
"""

import math
from typing import Iterable, Mapping, Sequence

import numpy as np


def sparse_cosine(a: Mapping[str, float], b: Mapping[str, float]) -> float:
    """
    Cosine similarity between two sparse term-weight maps.

    Returns 0.0 when either vector has zero magnitude.

        >>> sparse_cosine({"kubernetes": 1.0}, {"kubernetes": 2.0, "pod": 0.0})
        1.0
    """
    if not a or not b:
        return 0.0

    # Iterate the smaller map for the dot product
    small, large = (a, b) if len(a) <= len(b) else (b, a)
    dot = sum(weight * large.get(term, 0.0) for term, weight in small.items())

    norm_a = math.sqrt(sum(w * w for w in a.values()))
    norm_b = math.sqrt(sum(w * w for w in b.values()))
    if norm_a == 0 or norm_b == 0:
        return 0.0

    return dot / (norm_a * norm_b)


def dense_cosine(a: np.ndarray, b: np.ndarray) -> float:
    """
    Cosine similarity between two dense vectors.

    Vectors of different width are compared over their common prefix.
    Returns 0.0 when either vector has zero magnitude.
    """
    width = min(a.shape[0], b.shape[0])
    if width == 0:
        return 0.0

    a = a[:width]
    b = b[:width]
    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a == 0 or norm_b == 0:
        return 0.0

    return float(np.dot(a, b)) / (norm_a * norm_b)


def frequency_embedding(term_frequency: Mapping[str, int], embedding_terms: Sequence[str]) -> np.ndarray:
    """Document embedding: raw frequency of each embedding term"""
    return np.array(
        [float(term_frequency.get(term, 0)) for term in embedding_terms],
        dtype=np.float64,
    )


def binary_embedding(terms: Iterable[str], embedding_terms: Sequence[str]) -> np.ndarray:
    """Query embedding: 1.0 for each embedding term present in the query"""
    present = set(terms)
    return np.array(
        [1.0 if term in present else 0.0 for term in embedding_terms],
        dtype=np.float64,
    )

"""
Index structures for the knowledge base search engine.

Components:
- tokenizer: Text normalization shared by indexing and querying
- index_builder: Inverted index, IDF table, TF-IDF vectors, embeddings
- bm25: BM25 scoring over IDF-weighted query terms
- similarity: Sparse and dense cosine similarity helpers

Snapshots are immutable: a rebuild produces a new IndexSnapshot that fully
replaces the old one.
"""

from .tokenizer import tokenize, words, STOPWORDS
from .index_builder import build_index, extract_topics
from .bm25 import BM25Scorer
from .similarity import sparse_cosine, dense_cosine, binary_embedding, frequency_embedding

__all__ = [
    "tokenize",
    "words",
    "STOPWORDS",
    "build_index",
    "extract_topics",
    "BM25Scorer",
    "sparse_cosine",
    "dense_cosine",
    "binary_embedding",
    "frequency_embedding",
]

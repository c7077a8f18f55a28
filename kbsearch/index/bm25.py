"""
BM25 scorer over weighted query terms.

BM25 (Best Match 25) is a probabilistic ranking function used for information retrieval.
Here the IDF factor is not recomputed: each query term arrives with its
weight already set by the query processor (snapshot IDF x original/expansion
multiplier).

Formula:
    score(doc) = Σ weight(t) × (tf × (k1 + 1)) / (tf + k1 × (1 - b + b × dl/avgdl))

Where:
    weight(t) = query term weight (IDF-based)
    tf = term frequency in document
    k1 = term frequency saturation parameter (default: 1.5)
    b = length normalization parameter (default: 0.75)
    dl = document length (number of tokens)
    avgdl = average document length across the snapshot
"""

from typing import Mapping


class BM25Scorer:
    """
    BM25 scoring against a snapshot's term frequencies.

    A degenerate snapshot (avgdl == 0) scores 0 instead of dividing by zero.
    """

    def __init__(self, k1: float = 1.5, b: float = 0.75):
        """
        Initialize BM25 scorer.

        Args:
            k1: Term frequency saturation parameter
                Higher = more weight to term frequency
                Range: 1.2 - 2.0
                Default: 1.5

            b: Length normalization parameter
                Higher = more penalty for long documents
                Range: 0.0 - 1.0
                Default: 0.75 (standard)
        """
        self.k1 = k1
        self.b = b

    def score(
        self,
        term_weights: Mapping[str, float],
        doc_term_frequencies: Mapping[str, int],
        doc_length: int,
        avgdl: float,
    ) -> float:
        """
        Compute BM25 score for a document given weighted query terms.

        Args:
            term_weights: Query term -> weight (terms with weight <= 0 are skipped)
            doc_term_frequencies: Term frequency map {term: count}
            doc_length: Total number of tokens in document
            avgdl: Average document length in the snapshot

        Returns:
            BM25 score (higher = more relevant, 0.0 when nothing matches)

        Example:
            >>> scorer = BM25Scorer()
            >>> scorer.score(
            ...     term_weights={"kubernetes": 1.2, "deployment": 0.6},
            ...     doc_term_frequencies={"kubernetes": 3, "deployment": 1, "pod": 8},
            ...     doc_length=120,
            ...     avgdl=100.0,
            ... )
            2.45...
        """
        if not term_weights or not doc_term_frequencies or avgdl <= 0:
            return 0.0

        length_norm = 1 - self.b + self.b * (doc_length / avgdl)
        score = 0.0

        for term, weight in term_weights.items():
            if weight <= 0:
                continue

            tf = doc_term_frequencies.get(term, 0)
            if tf == 0:
                continue

            numerator = tf * (self.k1 + 1)
            denominator = tf + self.k1 * length_norm
            score += weight * numerator / denominator

        return score

"""
Relevance scorer - candidate generation, rule aggregation, normalization.

Pipeline:
1. Candidates = union of inverted-index postings for every query term
   (documents sharing no term with the query are never scored)
2. Raw score = sum of all rule contributions
3. Raw score <= min_raw_score is noise and dropped
4. Normalized score = clamp(round(raw / score_scale × 100), 0, 100)
5. Stable sort by normalized score (first-seen candidate wins ties)
6. Truncate to max_results AFTER the full scoring pass
"""

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import SearchSettings
from ..models import IndexSnapshot, QueryVector, SearchResult
from .rules import Candidate, ScoringRule, default_rules

logger = logging.getLogger(__name__)


def candidate_ids(query: QueryVector, snapshot: IndexSnapshot) -> List[str]:
    """Document ids containing at least one query term, in first-seen order"""
    seen: Dict[str, None] = {}
    for term in query.terms:
        entry = snapshot.inverted_index.get(term)
        if entry is None:
            continue
        for doc_id in entry.document_ids:
            seen.setdefault(doc_id, None)
    return list(seen)


def truncate_body(body: str, max_length: int) -> str:
    if len(body) > max_length:
        return body[:max_length] + "..."
    return body


class RelevanceScorer:
    """Scores candidate documents with a fixed, named list of rules"""

    def __init__(
        self,
        settings: Optional[SearchSettings] = None,
        rules: Optional[Sequence[ScoringRule]] = None,
    ):
        self.settings = settings or SearchSettings()
        self.rules = list(rules) if rules is not None else default_rules(self.settings)

    def evaluate(self, query: QueryVector, candidate: Candidate) -> Dict[str, float]:
        """Non-zero contribution per rule label"""
        breakdown: Dict[str, float] = {}
        for rule in self.rules:
            contribution = rule.apply(query, candidate)
            if contribution:
                breakdown[rule.label] = contribution
        return breakdown

    def normalize(self, raw_score: float) -> int:
        """Map a raw score onto 0-100 (round half up, then clamp)"""
        scaled = math.floor(raw_score / self.settings.score_scale * 100 + 0.5)
        return int(min(max(scaled, 0), 100))

    def score(
        self,
        query: QueryVector,
        snapshot: IndexSnapshot,
        max_results: int,
    ) -> List[SearchResult]:
        """
        Rank candidate documents for a query.

        Args:
            query: Processed query vector
            snapshot: Index snapshot to score against
            max_results: Result bound (capped at settings.max_results_cap)

        Returns:
            Results sorted by normalized score, descending. Empty when the
            snapshot is empty or nothing clears the noise threshold.
        """
        if snapshot.is_empty:
            return []

        doc_ids = candidate_ids(query, snapshot)
        if not doc_ids:
            logger.info("No documents found for query terms")
            return []

        logger.debug(
            f"Found {len(doc_ids)} candidate documents from {len(snapshot.vocabulary)} terms"
        )

        scored: List[Tuple[int, float, Candidate, Dict[str, float]]] = []
        for doc_id in doc_ids:
            entry = snapshot.document_entries.get(doc_id)
            if entry is None:
                continue

            candidate = Candidate.from_entry(entry, snapshot)
            breakdown = self.evaluate(query, candidate)
            raw_score = sum(breakdown.values())

            if raw_score <= self.settings.min_raw_score:
                logger.debug(f"Dropping {doc_id}: raw score {raw_score:.2f} below threshold")
                continue

            scored.append((self.normalize(raw_score), raw_score, candidate, breakdown))

        # sorted() is stable: equal scores keep candidate order
        scored = sorted(scored, key=lambda item: item[0], reverse=True)

        limit = max(0, min(max_results, self.settings.max_results_cap))
        results = [
            SearchResult(
                document_id=candidate.document.id,
                title=candidate.document.title,
                body=truncate_body(candidate.document.body, self.settings.max_content_length),
                tags=list(candidate.document.tags),
                source_id=candidate.document.source_id,
                normalized_score=normalized,
                signal_breakdown={label: round(value, 4) for label, value in breakdown.items()},
            )
            for normalized, _, candidate, breakdown in scored[:limit]
        ]

        for i, result in enumerate(results, start=1):
            logger.info(
                f"  {i}. {result.title} (score: {result.normalized_score}) "
                f"[{', '.join(result.signal_breakdown)}]"
            )

        return results

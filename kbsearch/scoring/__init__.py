"""
Relevance scoring.

A fixed, named list of pure scoring rules (rules.py) summed by a single
aggregator (scorer.py). Every weight comes from SearchSettings.weights.
"""

from .rules import Candidate, ScoringRule, default_rules, RULE_LABELS
from .scorer import RelevanceScorer, candidate_ids

__all__ = [
    "Candidate",
    "ScoringRule",
    "default_rules",
    "RULE_LABELS",
    "RelevanceScorer",
    "candidate_ids",
]

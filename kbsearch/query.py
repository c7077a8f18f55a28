"""
Query processing: tokenize, expand with related terms, weight by IDF.

Weighting:
    original term:        max(idf, 0) × 1.5
    expansion-only term:  max(idf, 0) × 0.7

Terms absent from the snapshot vocabulary keep weight 0 so that coverage
signals still see them. Expansion keys are looked up against the raw query
words, because the tokenizer drops two-letter keys such as "ai" and "ml".
Expansion only widens a query that already has a searchable term of its own:
a query of stop words and short keys alone ("ai") has no searchable terms.
"""

import logging
from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence, Tuple

from .errors import NoSearchableTerms
from .index import tokenize, words
from .models import IndexSnapshot, QueryVector

logger = logging.getLogger(__name__)

# Query word -> related phrases (small knowledge bases need recall help)
RELATED_TERMS: Mapping[str, Tuple[str, ...]] = {
    'ai': ('artificial intelligence', 'machine learning', 'neural networks', 'deep learning'),
    'ml': ('machine learning', 'artificial intelligence', 'algorithms', 'predictive models'),
    'data': ('data science', 'analytics', 'datasets', 'information'),
    'cloud': ('cloud computing', 'aws', 'azure', 'scalability', 'distributed'),
    'security': ('cybersecurity', 'infosec', 'encryption', 'threats', 'protection'),
    'web': ('web development', 'frontend', 'backend', 'javascript', 'html', 'css'),
    'mobile': ('mobile development', 'ios', 'android', 'react native', 'apps'),
    'database': ('data storage', 'sql', 'nosql', 'mongodb', 'postgresql'),
    'api': ('rest', 'graphql', 'web services', 'integration', 'microservices'),
    'devops': ('ci/cd', 'automation', 'deployment', 'monitoring', 'infrastructure'),
}


def related_phrases(query_words: Sequence[str]) -> Tuple[str, ...]:
    """
    Related phrases for every query word found in RELATED_TERMS.

        >>> related_phrases(["secure", "api"])
        ('rest', 'graphql', 'web services', 'integration', 'microservices')
    """
    phrases: List[str] = []
    for word in dict.fromkeys(query_words):
        phrases.extend(RELATED_TERMS.get(word, ()))
    return tuple(dict.fromkeys(phrases))


class QueryProcessor:
    """Builds weighted query vectors against a snapshot"""

    def __init__(self, original_weight: float = 1.5, expansion_weight: float = 0.7):
        self.original_weight = original_weight
        self.expansion_weight = expansion_weight

    def process(self, query: str, snapshot: IndexSnapshot) -> QueryVector:
        """
        Tokenize, expand and weight a query.

        Args:
            query: Raw query text (already validated by the caller)
            snapshot: Current index snapshot (IDF source)

        Returns:
            QueryVector with weights for every original and expansion term,
            each max(idf, 0) times its multiplier

        Raises:
            NoSearchableTerms: If the query itself yields no term after
                stop-word and short-word removal, whatever its expansion
        """
        text = query.strip().lower()
        original_terms = tuple(tokenize(text))
        if not original_terms:
            logger.info(f"No meaningful query words found in: \"{query[:50]}\"")
            raise NoSearchableTerms(query)

        query_words = words(text)
        phrases = related_phrases(list(query_words) + list(original_terms))
        original_set = set(original_terms)
        expanded_terms = tuple(
            term
            for term in dict.fromkeys(t for phrase in phrases for t in tokenize(phrase))
            if term not in original_set
        )

        term_weights: Dict[str, float] = {}
        for term in original_terms:
            term_weights[term] = max(snapshot.idf(term), 0.0) * self.original_weight
        for term in expanded_terms:
            term_weights[term] = max(snapshot.idf(term), 0.0) * self.expansion_weight

        logger.debug(
            f"Query: {', '.join(original_terms)} | Expanded: {', '.join(expanded_terms)}"
        )

        return QueryVector(
            text=text,
            original_terms=original_terms,
            expanded_terms=expanded_terms,
            term_weights=MappingProxyType(term_weights),
            related_phrases=phrases,
            cue_words=frozenset(query_words),
        )

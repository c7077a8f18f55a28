"""
Scoring rules for the relevance scorer.

Each rule is a pure function (query, candidate, settings) -> contribution.
default_rules() binds the settings and labels every rule; the scorer sums
the contributions and keeps the non-zero ones as the signal breakdown.

Rule groups:
- Statistical: bm25, tfidf_cosine, embedding
- Structural: topics, exact_title, exact_body, phrases, tags, headers,
  code, lists, filename
- Coverage/proximity: coverage, proximity
- Quality priors: density, length, quality
- Intent/temporal: intent, temporal
- Cross-reference: crossref
"""

import re
from dataclasses import dataclass, field
from functools import lru_cache, partial
from typing import Callable, List, Pattern, Tuple

from ..config import SearchSettings
from ..index import BM25Scorer, binary_embedding, dense_cosine, sparse_cosine
from ..models import Document, DocumentEntry, IndexSnapshot, QueryVector

# Cue words (raw query words) and the vocabulary they look for
HOW_TO_CUES = frozenset(['how', 'guide', 'tutorial', 'steps', 'process', 'method'])
DEFINITION_CUES = frozenset(['what', 'definition', 'meaning', 'explain', 'overview'])
COMPARISON_CUES = frozenset(['vs', 'versus', 'compare', 'difference', 'better', 'best'])
TECHNICAL_CUES = frozenset(['code', 'implementation', 'api', 'framework', 'library', 'architecture'])
RECENCY_CUES = frozenset(['recent', 'latest', 'new', 'current', 'modern', '2024', '2025'])

TEMPORAL_KEYWORDS = (
    'recent', 'latest', 'new', 'current', 'modern', '2024', '2025', 'advances',
    'breakthroughs', 'developments', 'trends', 'emerging', 'cutting-edge',
    'state-of-the-art',
)
FUTURE_TERMS = (
    'future', 'emerging', 'evolving', 'advancing', 'progress', 'innovation',
    'next-generation', 'upcoming',
)

_HEADER_RE = re.compile(r'^#{1,6}\s+(.+)$', re.MULTILINE)
_CODE_RE = re.compile(r'```[\s\S]*?```|`[^`\n]+`')
_LIST_RE = re.compile(r'^[ \t]*[-*+]\s+(.+)$', re.MULTILINE)
_COMPARISON_RE = re.compile(r'\b(?:vs|versus)\b|advantages:|disadvantages:')


@lru_cache(maxsize=512)
def _word_pattern(phrase: str) -> Pattern:
    return re.compile(r'\b' + re.escape(phrase) + r'\b')


def contains_word(text: str, phrase: str) -> bool:
    """Whole-word (or whole-phrase) containment"""
    return _word_pattern(phrase).search(text) is not None


@dataclass(frozen=True)
class Candidate:
    """A document under evaluation, with lowercased views prepared once"""
    entry: DocumentEntry
    average_document_length: float
    embedding_terms: Tuple[str, ...]
    title: str       # Lowercase title
    body: str        # Lowercase plain body
    markup: str      # Display body as written (headers, code, lists)
    source: str      # Lowercase source filename
    tags: Tuple[str, ...] = field(default=())

    @classmethod
    def from_entry(cls, entry: DocumentEntry, snapshot: IndexSnapshot) -> "Candidate":
        doc = entry.document
        return cls(
            entry=entry,
            average_document_length=snapshot.average_document_length,
            embedding_terms=snapshot.embedding_terms,
            title=doc.title.lower(),
            body=doc.plain_body.lower(),
            markup=doc.body,
            source=doc.source_id.lower(),
            tags=tuple(tag.lower() for tag in doc.tags),
        )

    @property
    def document(self) -> Document:
        return self.entry.document


RuleFunction = Callable[[QueryVector, Candidate], float]


@dataclass(frozen=True)
class ScoringRule:
    """Labelled scoring function"""
    label: str
    apply: RuleFunction


def _pairs(terms: Tuple[str, ...]) -> List[Tuple[str, str]]:
    return list(zip(terms, terms[1:]))


# === Statistical similarity ===

def bm25_rule(query: QueryVector, candidate: Candidate, settings: SearchSettings) -> float:
    scorer = BM25Scorer(k1=settings.bm25_k1, b=settings.bm25_b)
    score = scorer.score(
        term_weights=query.term_weights,
        doc_term_frequencies=candidate.entry.term_frequency,
        doc_length=candidate.entry.length,
        avgdl=candidate.average_document_length,
    )
    return score * settings.weights.bm25


def tfidf_cosine_rule(query: QueryVector, candidate: Candidate, settings: SearchSettings) -> float:
    # Ubiquitous terms have negative IDF; a negative cosine is no evidence either way
    similarity = sparse_cosine(query.term_weights, candidate.entry.tfidf_vector)
    return max(similarity, 0.0) * settings.weights.tfidf_cosine


def embedding_rule(query: QueryVector, candidate: Candidate, settings: SearchSettings) -> float:
    query_embedding = binary_embedding(query.terms, candidate.embedding_terms)
    similarity = dense_cosine(query_embedding, candidate.entry.embedding)
    if similarity > settings.weights.embedding_min_similarity:
        return similarity * settings.weights.embedding
    return 0.0


# === Structural matches ===

def topic_rule(query: QueryVector, candidate: Candidate, settings: SearchSettings) -> float:
    matches = sum(
        1 for term in query.terms
        if any(topic in term or term in topic for topic in candidate.entry.topics)
    )
    return matches * settings.weights.topic


def exact_title_rule(query: QueryVector, candidate: Candidate, settings: SearchSettings) -> float:
    return settings.weights.exact_title if query.text and query.text in candidate.title else 0.0


def exact_body_rule(query: QueryVector, candidate: Candidate, settings: SearchSettings) -> float:
    return settings.weights.exact_body if query.text and query.text in candidate.body else 0.0


def phrase_rule(query: QueryVector, candidate: Candidate, settings: SearchSettings) -> float:
    score = 0.0
    for first, second in _pairs(query.original_terms):
        phrase = f"{first} {second}"
        if phrase in candidate.title:
            score += settings.weights.phrase_title
        if phrase in candidate.body:
            score += settings.weights.phrase_body
    return score


def tag_rule(query: QueryVector, candidate: Candidate, settings: SearchSettings) -> float:
    matches = sum(
        1
        for term in query.terms
        for tag in candidate.tags
        if tag in term or term in tag
    )
    return matches * settings.weights.tag


def _term_hits(terms: Tuple[str, ...], segments: List[str]) -> int:
    return sum(1 for segment in segments for term in terms if term in segment)


def header_rule(query: QueryVector, candidate: Candidate, settings: SearchSettings) -> float:
    headers = [h.lower() for h in _HEADER_RE.findall(candidate.markup)]
    return _term_hits(query.unique_original_terms, headers) * settings.weights.header


def code_rule(query: QueryVector, candidate: Candidate, settings: SearchSettings) -> float:
    spans = [c.lower() for c in _CODE_RE.findall(candidate.markup)]
    return _term_hits(query.unique_original_terms, spans) * settings.weights.code


def list_rule(query: QueryVector, candidate: Candidate, settings: SearchSettings) -> float:
    items = [item.lower() for item in _LIST_RE.findall(candidate.markup)]
    return _term_hits(query.unique_original_terms, items) * settings.weights.list_item


def filename_rule(query: QueryVector, candidate: Candidate, settings: SearchSettings) -> float:
    return _term_hits(query.unique_original_terms, [candidate.source]) * settings.weights.filename


# === Coverage and proximity ===

def coverage_rule(query: QueryVector, candidate: Candidate, settings: SearchSettings) -> float:
    terms = query.unique_original_terms
    if not terms:
        return 0.0
    covered = sum(1 for term in terms if term in candidate.body)
    return (covered / len(terms)) * settings.weights.coverage


def proximity_rule(query: QueryVector, candidate: Candidate, settings: SearchSettings) -> float:
    window = settings.weights.proximity_window
    matches = 0
    for first, second in _pairs(query.original_terms):
        pattern = re.compile(f"{re.escape(first)}.{{0,{window}}}{re.escape(second)}")
        matches += len(pattern.findall(candidate.body))
    return matches * settings.weights.proximity


# === Content quality priors ===

def density_rule(query: QueryVector, candidate: Candidate, settings: SearchSettings) -> float:
    body_words = candidate.body.split()
    if not body_words:
        return 0.0
    ratio = len(set(body_words)) / len(body_words)
    if ratio > settings.weights.density_min_ratio:
        return ratio * settings.weights.density
    return 0.0


def length_rule(query: QueryVector, candidate: Candidate, settings: SearchSettings) -> float:
    word_count = len(candidate.body.split())
    return sum(
        bonus for threshold, bonus in settings.weights.length_tiers.items()
        if word_count > threshold
    )


def quality_rule(query: QueryVector, candidate: Candidate, settings: SearchSettings) -> float:
    return candidate.document.relevance * settings.weights.quality


# === Intent and temporal adjustments ===

def intent_rule(query: QueryVector, candidate: Candidate, settings: SearchSettings) -> float:
    weights = settings.weights
    cues = query.cue_words
    markup = candidate.markup.lower()
    score = 0.0

    # How-to: structured content
    if cues & HOW_TO_CUES and ('##' in markup or '- ' in markup):
        score += weights.intent_how_to

    # Definition: foundational content
    if cues & DEFINITION_CUES and (
        'fundamentals' in candidate.title
        or 'overview' in candidate.title
        or '## what' in markup
    ):
        score += weights.intent_definition

    # Comparison: vs / advantages sections
    if cues & COMPARISON_CUES and _COMPARISON_RE.search(candidate.body):
        score += weights.intent_comparison

    # Technical: code or technical tags
    if cues & TECHNICAL_CUES and (
        '`' in candidate.markup
        or 'api' in candidate.tags
        or 'framework' in candidate.tags
    ):
        score += weights.intent_technical

    return score


def temporal_rule(query: QueryVector, candidate: Candidate, settings: SearchSettings) -> float:
    if not query.cue_words & RECENCY_CUES:
        return 0.0

    weights = settings.weights
    score = 0.0
    for keyword in TEMPORAL_KEYWORDS:
        if contains_word(candidate.body, keyword):
            score += weights.temporal_body
        if contains_word(candidate.title, keyword):
            score += weights.temporal_title

    for term in FUTURE_TERMS:
        if contains_word(candidate.body, term):
            score += weights.temporal_future

    return score


# === Cross-reference ===

def cross_reference_rule(query: QueryVector, candidate: Candidate, settings: SearchSettings) -> float:
    hits = sum(1 for phrase in query.related_phrases if contains_word(candidate.body, phrase))
    return hits * settings.weights.cross_reference


_RULES = (
    ("bm25", bm25_rule),
    ("tfidf_cosine", tfidf_cosine_rule),
    ("embedding", embedding_rule),
    ("topics", topic_rule),
    ("exact_title", exact_title_rule),
    ("exact_body", exact_body_rule),
    ("phrases", phrase_rule),
    ("tags", tag_rule),
    ("headers", header_rule),
    ("code", code_rule),
    ("lists", list_rule),
    ("filename", filename_rule),
    ("coverage", coverage_rule),
    ("proximity", proximity_rule),
    ("density", density_rule),
    ("length", length_rule),
    ("quality", quality_rule),
    ("intent", intent_rule),
    ("temporal", temporal_rule),
    ("crossref", cross_reference_rule),
)

RULE_LABELS = tuple(label for label, _ in _RULES)


def default_rules(settings: SearchSettings) -> List[ScoringRule]:
    """The standard rule set with settings bound"""
    return [
        ScoringRule(label=label, apply=partial(function, settings=settings))
        for label, function in _RULES
    ]

"""
Unit tests for query processing and expansion.
"""

import math

import pytest

from kbsearch.errors import NoSearchableTerms
from kbsearch.index import build_index
from kbsearch.loader import load_documents
from kbsearch.query import RELATED_TERMS, QueryProcessor, related_phrases


@pytest.fixture
def query_snapshot():
    """Snapshot where 'kubernetes' and 'algorithms' each appear in one of three documents"""
    documents = load_documents([
        ("kubernetes.md", "# Kubernetes Pods\n\nPods run containers. Kubernetes schedules pods."),
        ("docker.md", "# Docker Images\n\nDocker builds images for containers."),
        ("sorting.md", "# Sorting Algorithms\n\nQuicksort and mergesort are classic algorithms."),
    ])
    return build_index(documents, built_at=0.0)


@pytest.fixture
def processor():
    """Query processor with default weights"""
    return QueryProcessor()


class TestQueryProcessor:
    """Test tokenization, expansion and weighting"""

    def test_original_terms(self, processor, query_snapshot):
        """Test query tokenization and normalization"""
        query = processor.process("  Kubernetes PODS ", query_snapshot)

        assert query.text == "kubernetes pods"
        assert query.original_terms == ("kubernetes", "pods")

    def test_original_weight(self, processor, query_snapshot):
        """Test original term weight = idf * 1.5"""
        query = processor.process("kubernetes", query_snapshot)

        assert query.term_weights["kubernetes"] == pytest.approx(math.log(3 / 2) * 1.5)

    def test_non_positive_idf_weighs_zero(self, processor, query_snapshot):
        """Test that terms in most documents carry no weight"""
        query = processor.process("containers", query_snapshot)

        assert query.term_weights["containers"] == 0.0

    def test_unknown_term_kept_with_zero_weight(self, processor, query_snapshot):
        """Test that out-of-vocabulary terms stay in the vector"""
        query = processor.process("kubernetes helm", query_snapshot)

        assert query.term_weights["helm"] == 0.0
        assert query.terms == ("kubernetes", "helm")

    def test_expansion_weight(self, processor, query_snapshot):
        """Test expansion-only term weight = idf * 0.7"""
        query = processor.process("ml basics", query_snapshot)

        assert query.original_terms == ("basics",)
        assert "algorithms" in query.expanded_terms
        assert query.term_weights["algorithms"] == pytest.approx(math.log(3 / 2) * 0.7)

    def test_expansion_excludes_original_terms(self, processor, query_snapshot):
        """Test that expansion never duplicates an original term"""
        query = processor.process("cloud security", query_snapshot)

        assert query.original_terms == ("cloud", "security")
        assert "cloud" not in query.expanded_terms
        assert query.expanded_terms[:5] == ("computing", "aws", "azure", "scalability", "distributed")
        assert "cybersecurity" in query.expanded_terms

    def test_short_key_expansion(self, processor, query_snapshot):
        """Test that two-letter keys expand even though they are not tokens"""
        query = processor.process("ai trends", query_snapshot)

        assert query.original_terms == ("trends",)
        assert "machine" in query.expanded_terms
        assert "artificial intelligence" in query.related_phrases

    def test_stopwords_only_raises(self, processor, query_snapshot):
        """Test that a query with no searchable terms raises"""
        with pytest.raises(NoSearchableTerms):
            processor.process("the is a", query_snapshot)

    @pytest.mark.parametrize("query", ["ai", "ML", "the ai", "is ml ok"])
    def test_short_keys_alone_raise(self, processor, query_snapshot, query):
        """Test that expansion does not rescue a query with no terms of its own"""
        with pytest.raises(NoSearchableTerms):
            processor.process(query, query_snapshot)

    def test_cue_words(self, processor, query_snapshot):
        """Test raw query words kept for intent detection"""
        query = processor.process("How to deploy vs. scale?", query_snapshot)

        assert query.cue_words == frozenset({"how", "to", "deploy", "vs", "scale"})

    def test_repeated_terms(self, processor, query_snapshot):
        """Test term order and uniqueness helpers"""
        query = processor.process("pods pods docker", query_snapshot)

        assert query.original_terms == ("pods", "pods", "docker")
        assert query.unique_original_terms == ("pods", "docker")
        assert query.terms == ("pods", "docker")

    def test_weights_are_read_only(self, processor, query_snapshot):
        """Test that the query vector cannot be mutated"""
        query = processor.process("kubernetes", query_snapshot)

        with pytest.raises(TypeError):
            query.term_weights["kubernetes"] = 100.0

    def test_custom_multipliers(self, query_snapshot):
        """Test configurable original and expansion multipliers"""
        query = QueryProcessor(original_weight=2.0, expansion_weight=0.5).process(
            "kubernetes", query_snapshot
        )

        assert query.term_weights["kubernetes"] == pytest.approx(math.log(3 / 2) * 2.0)


class TestRelatedPhrases:
    """Test the related terms table"""

    def test_lookup(self):
        """Test phrases for known keys"""
        assert related_phrases(["secure", "api"]) == RELATED_TERMS["api"]

    def test_deduplicated(self):
        """Test that shared phrases appear once"""
        phrases = related_phrases(["ai", "ml"])

        assert phrases.count("machine learning") == 1

    def test_unknown(self):
        """Test that unknown words expand to nothing"""
        assert related_phrases(["kubernetes"]) == ()

"""
Unit tests for BM25Scorer.
"""

import pytest

from kbsearch.index import BM25Scorer


class TestBM25Scorer:
    """Test BM25 scoring logic"""

    def test_basic_scoring(self):
        """Test basic BM25 scoring"""
        scorer = BM25Scorer()

        score = scorer.score(
            term_weights={"kubernetes": 1.0, "deployment": 1.0},
            doc_term_frequencies={"kubernetes": 10, "deployment": 5, "pod": 3},
            doc_length=100,
            avgdl=100.0,
        )

        assert score > 0
        assert isinstance(score, float)

    def test_exact_value_average_length(self):
        """Test the formula on a document of average length"""
        scorer = BM25Scorer(k1=1.5, b=0.75)

        # tf=1, dl=avgdl: 1 * 2.5 / (1 + 1.5) = 1.0
        score = scorer.score(
            term_weights={"kubernetes": 1.0},
            doc_term_frequencies={"kubernetes": 1},
            doc_length=100,
            avgdl=100.0,
        )

        assert score == pytest.approx(1.0)

    def test_weighted_terms(self):
        """Test that each term contributes in proportion to its weight"""
        scorer = BM25Scorer()

        score = scorer.score(
            term_weights={"kubernetes": 1.2, "deployment": 0.6},
            doc_term_frequencies={"kubernetes": 3, "deployment": 1, "pod": 8},
            doc_length=120,
            avgdl=100.0,
        )

        assert score == pytest.approx(2.4552, rel=1e-3)

    def test_zero_score_no_matches(self):
        """Test that score is zero when no query terms match"""
        scorer = BM25Scorer()

        score = scorer.score(
            term_weights={"nonexistent": 1.0, "terms": 1.0},
            doc_term_frequencies={"kubernetes": 10, "deployment": 5},
            doc_length=15,
            avgdl=20.0,
        )

        assert score == 0.0

    def test_zero_average_length(self):
        """Test that a degenerate snapshot scores zero instead of dividing by zero"""
        scorer = BM25Scorer()

        score = scorer.score(
            term_weights={"kubernetes": 1.0},
            doc_term_frequencies={"kubernetes": 3},
            doc_length=0,
            avgdl=0.0,
        )

        assert score == 0.0

    def test_empty_inputs(self):
        """Test empty query weights and empty documents"""
        scorer = BM25Scorer()

        assert scorer.score({}, {"kubernetes": 1}, 10, 10.0) == 0.0
        assert scorer.score({"kubernetes": 1.0}, {}, 0, 10.0) == 0.0

    def test_non_positive_weights_skipped(self):
        """Test that zero and negative weights contribute nothing"""
        scorer = BM25Scorer()

        score = scorer.score(
            term_weights={"kubernetes": 0.0, "deployment": -1.0},
            doc_term_frequencies={"kubernetes": 5, "deployment": 5},
            doc_length=10,
            avgdl=10.0,
        )

        assert score == 0.0

    def test_length_normalization(self):
        """Test that longer documents score lower for the same term frequency"""
        scorer = BM25Scorer()
        weights = {"kubernetes": 1.0}
        tf = {"kubernetes": 5}

        short_score = scorer.score(weights, tf, doc_length=50, avgdl=100.0)
        long_score = scorer.score(weights, tf, doc_length=400, avgdl=100.0)

        assert short_score > long_score

    def test_no_length_normalization(self):
        """Test that b=0 ignores document length"""
        scorer = BM25Scorer(b=0.0)
        weights = {"kubernetes": 1.0}
        tf = {"kubernetes": 5}

        assert scorer.score(weights, tf, 50, 100.0) == pytest.approx(
            scorer.score(weights, tf, 400, 100.0)
        )

    def test_term_frequency_saturation(self):
        """Test that term frequency saturates below weight * (k1 + 1)"""
        scorer = BM25Scorer(k1=1.5)

        score = scorer.score(
            term_weights={"kubernetes": 1.0},
            doc_term_frequencies={"kubernetes": 1000},
            doc_length=100,
            avgdl=100.0,
        )

        assert score < 2.5
        assert score > 2.4

"""
Integration tests: search over the markdown fixture knowledge base on disk.

Exercises the whole pipeline (DirectorySource -> loader -> index -> query ->
scoring) with realistic documents.
"""

from pathlib import Path

import pytest

from kbsearch import KnowledgeSearchService, load_settings

KNOWLEDGE_BASE = Path(__file__).parent.parent / "fixtures" / "knowledge_base"

pytestmark = pytest.mark.integration


@pytest.fixture(scope="module")
def kb_service():
    """Service over the fixture knowledge base"""
    return KnowledgeSearchService.from_directory(KNOWLEDGE_BASE)


class TestKnowledgeBaseSearch:
    """Test ranking quality on realistic documents"""

    @pytest.mark.parametrize("query,expected", [
        ("docker containers", "docker_containers_guide"),
        ("what is machine learning", "machine_learning_fundamentals"),
        ("latest web development trends", "web_development_trends_2024"),
        ("cloud scalability", "cloud_computing_overview"),
        ("encryption", "cybersecurity_best_practices"),
        ("relational database design", "database_design"),
    ])
    def test_top_result(self, kb_service, query, expected):
        """Test that the obviously relevant document ranks first"""
        response = kb_service.search(query, max_results=3)

        assert response.status == "ok"
        assert response.results[0].document_id == expected

    def test_related_term_expansion(self, kb_service):
        """Test that a two-letter key finds documents through related terms"""
        response = kb_service.search("ai trends")

        assert "machine_learning_fundamentals" in [r.document_id for r in response.results]

    def test_ranking_invariants(self, kb_service):
        """Test score bounds, ordering and result limit"""
        results = kb_service.search("kubernetes containers cloud security", max_results=4).results
        scores = [r.normalized_score for r in results]

        assert 0 < len(results) <= 4
        assert all(0 <= s <= 100 for s in scores)
        assert scores == sorted(scores, reverse=True)
        assert len({r.document_id for r in results}) == len(results)

    def test_markdown_preserved_in_results(self, kb_service):
        """Test that result bodies keep their markdown"""
        top = kb_service.search("docker containers").results[0]

        assert "## Building an Image" in top.body
        assert "```dockerfile" in top.body

    def test_describe(self, kb_service):
        """Test index statistics after searching"""
        kb_service.search("docker")
        description = kb_service.describe()

        assert description.is_indexed is True
        assert description.total_documents == 6
        assert description.vocabulary_size > 100
        assert description.average_document_length > 0


class TestSettingsFromEnvironment:
    """Test a service configured through KBSEARCH_* variables"""

    def test_result_cap(self, monkeypatch, tmp_path):
        """Test that the environment cap bounds results"""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("KBSEARCH_MAX_RESULTS_CAP", "2")
        monkeypatch.setenv("KBSEARCH_DEFAULT_MAX_RESULTS", "2")

        service = KnowledgeSearchService.from_directory(KNOWLEDGE_BASE, load_settings())

        assert len(service.search("data cloud security web", max_results=10).results) <= 2

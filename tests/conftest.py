"""Shared fixtures for kbsearch tests"""

from pathlib import Path

import pytest

from kbsearch import (
    IndexCache,
    KnowledgeSearchService,
    SearchSettings,
    StaticSource,
    build_index,
    load_documents,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"
KNOWLEDGE_BASE_DIR = FIXTURES_DIR / "knowledge_base"

ML_ALGORITHMS = """# Machine Learning Algorithms

Machine learning algorithms learn patterns from labelled data. Popular machine
learning algorithms include decision trees, support vector machines and neural
networks.

## Choosing Algorithms

- Decision trees are easy to interpret
- Neural networks need more data
"""

CLOUD_COMPUTING = """# Cloud Computing Guide

Cloud platforms such as AWS and Azure provide elastic capacity. Teams face a
learning curve when adopting managed services.

## Cost

Autoscaling keeps bills predictable.
"""

PYTHON_BASICS = """# Python Basics

Python is a readable programming language. A virtual machine executes its
bytecode.

## Syntax

Indentation defines blocks.
"""


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def sample_sources():
    """Three-document corpus: one on-topic ML document, two near misses"""
    return [
        ("machine-learning-algorithms.md", ML_ALGORITHMS),
        ("cloud-computing.md", CLOUD_COMPUTING),
        ("python-basics.md", PYTHON_BASICS),
    ]


@pytest.fixture
def documents(sample_sources):
    """Parsed sample documents"""
    return load_documents(sample_sources)


@pytest.fixture
def snapshot(documents):
    """Index snapshot over the sample documents"""
    return build_index(documents, built_at=0.0)


@pytest.fixture
def clock():
    """Fake clock for TTL tests"""
    return FakeClock()


@pytest.fixture
def make_service(clock):
    """
    Factory for services over an in-memory corpus.

    Usage:
        service = make_service([("a.md", "# A ...")], max_results_cap=3)
    """

    def _make(pairs, **settings_overrides):
        settings = SearchSettings(**settings_overrides)
        cache = IndexCache(
            StaticSource(pairs),
            ttl_seconds=settings.index_ttl_seconds,
            clock=clock,
        )
        return KnowledgeSearchService(cache, settings)

    return _make


@pytest.fixture
def service(make_service, sample_sources):
    """Service over the three-document sample corpus"""
    return make_service(sample_sources)

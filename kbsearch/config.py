"""
Search engine configuration.

All numeric tuning lives here instead of being scattered through the scoring
code, so the normalization math stays auditable and tests can override any
weight without touching the rules themselves.

The core never reads environment variables. Embedding applications (and the
bundled CLI) may call load_settings() to apply KBSEARCH_* overrides loaded
from .env.local / .env.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "KBSEARCH_"


class ScoringWeights(BaseModel):
    """Per-rule weights for the relevance scorer (defaults tuned for 8-20 docs)"""

    model_config = ConfigDict(frozen=True)

    # Statistical similarity
    bm25: float = Field(default=20.0, ge=0, description="Multiplier for the BM25 score")
    tfidf_cosine: float = Field(default=100.0, ge=0, description="Multiplier for query/TF-IDF cosine")
    embedding: float = Field(default=35.0, ge=0, description="Multiplier for embedding cosine")
    embedding_min_similarity: float = Field(
        default=0.1,
        ge=0,
        le=1,
        description="Embedding similarity at or below this is ignored",
    )

    # Structural matches
    topic: float = Field(default=50.0, ge=0, description="Per query term matching a filename topic")
    exact_title: float = Field(default=120.0, ge=0, description="Full query found in title")
    exact_body: float = Field(default=80.0, ge=0, description="Full query found in body")
    phrase_title: float = Field(default=40.0, ge=0, description="Per two-word phrase found in title")
    phrase_body: float = Field(default=25.0, ge=0, description="Per two-word phrase found in body")
    tag: float = Field(default=15.0, ge=0, description="Per (query term, tag) match")
    header: float = Field(default=12.0, ge=0, description="Per query term found in a header line")
    code: float = Field(default=10.0, ge=0, description="Per query term found in a code span")
    list_item: float = Field(default=6.0, ge=0, description="Per query term found in a list item")
    filename: float = Field(default=8.0, ge=0, description="Per query term found in the filename")

    # Coverage and proximity
    coverage: float = Field(default=30.0, ge=0, description="Multiplier for query coverage ratio")
    proximity: float = Field(default=8.0, ge=0, description="Per nearby query-term pair")
    proximity_window: int = Field(default=50, ge=0, description="Max characters between paired terms")

    # Content quality priors
    density: float = Field(default=15.0, ge=0, description="Multiplier for unique-word density")
    density_min_ratio: float = Field(default=0.3, ge=0, le=1, description="Density at or below this is ignored")
    length_tiers: Dict[int, float] = Field(
        default_factory=lambda: {500: 10.0, 1000: 15.0, 2000: 20.0},
        description="Body word count threshold -> bonus (cumulative)",
    )
    quality: float = Field(default=8.0, ge=0, description="Multiplier for the document relevance prior")

    # Intent and temporal adjustments
    intent_how_to: float = Field(default=15.0, ge=0)
    intent_definition: float = Field(default=12.0, ge=0)
    intent_comparison: float = Field(default=18.0, ge=0)
    intent_technical: float = Field(default=20.0, ge=0)
    temporal_body: float = Field(default=20.0, ge=0, description="Per recency keyword in body")
    temporal_title: float = Field(default=30.0, ge=0, description="Per recency keyword in title")
    temporal_future: float = Field(default=12.0, ge=0, description="Per forward-looking term in body")

    # Cross-reference
    cross_reference: float = Field(default=5.0, ge=0, description="Per related-term phrase in body")


class SearchSettings(BaseModel):
    """Top-level settings for indexing, querying and scoring"""

    model_config = ConfigDict(frozen=True)

    # Query validation
    min_query_length: int = Field(default=2, ge=1, description="Minimum query length after trimming")
    max_query_length: int = Field(default=500, ge=1, description="Maximum query length after trimming")

    # Result shaping
    default_max_results: int = Field(default=5, ge=1, description="Results returned when caller passes none")
    max_results_cap: int = Field(default=10, ge=1, description="Hard cap on results per query")
    max_content_length: int = Field(
        default=4000,
        ge=1,
        description="Result bodies longer than this are truncated (keeps LLM prompts lean)",
    )

    # Index lifecycle
    index_ttl_seconds: Optional[float] = Field(
        default=300.0,
        gt=0,
        description="Snapshot age before rebuild. None = never expire",
    )
    max_tokens_per_document: int = Field(default=1000, ge=1, description="Token cap per document")
    embedding_dimensions: int = Field(default=50, ge=1, description="Width of frequency embeddings")

    # Scoring
    bm25_k1: float = Field(default=1.5, ge=0, description="BM25 term frequency saturation")
    bm25_b: float = Field(default=0.75, ge=0, le=1, description="BM25 length normalization")
    original_term_weight: float = Field(default=1.5, ge=0, description="IDF multiplier for query terms")
    expansion_term_weight: float = Field(default=0.7, ge=0, description="IDF multiplier for expansion terms")
    min_raw_score: float = Field(default=8.0, ge=0, description="Raw scores at or below this are noise")
    score_scale: float = Field(default=2000.0, gt=0, description="Raw score that maps to 100")

    weights: ScoringWeights = Field(default_factory=ScoringWeights)

    @model_validator(mode="after")
    def _check_bounds(self) -> "SearchSettings":
        if self.min_query_length > self.max_query_length:
            raise ValueError("min_query_length must not exceed max_query_length")
        if self.default_max_results > self.max_results_cap:
            raise ValueError("default_max_results must not exceed max_results_cap")
        return self


# Environment variable -> settings field
_ENV_FIELDS = {
    "INDEX_TTL_SECONDS": "index_ttl_seconds",
    "DEFAULT_MAX_RESULTS": "default_max_results",
    "MAX_RESULTS_CAP": "max_results_cap",
    "MAX_CONTENT_LENGTH": "max_content_length",
    "MIN_RAW_SCORE": "min_raw_score",
    "SCORE_SCALE": "score_scale",
}


def load_settings(env_file: Optional[Path] = None, **overrides: Any) -> SearchSettings:
    """
    Build settings from KBSEARCH_* environment variables.

    Loads env_file if given, otherwise .env.local (highest priority) or .env
    from the current directory. Keyword overrides win over the environment.

    Args:
        env_file: Explicit dotenv file to load
        **overrides: Field values applied last

    Returns:
        Validated SearchSettings

    Raises:
        pydantic.ValidationError: If a value is out of range
    """
    if env_file is not None:
        load_dotenv(env_file, override=True)
    else:
        env_local = Path.cwd() / ".env.local"
        env_default = Path.cwd() / ".env"
        if env_local.exists():
            load_dotenv(env_local, override=True)
        elif env_default.exists():
            load_dotenv(env_default, override=True)

    values: Dict[str, Any] = {}
    for env_name, field_name in _ENV_FIELDS.items():
        raw = os.getenv(f"{ENV_PREFIX}{env_name}")
        if raw is None or raw == "":
            continue
        if field_name == "index_ttl_seconds" and raw.lower() in ("none", "never"):
            values[field_name] = None
        else:
            values[field_name] = raw

    values.update(overrides)
    settings = SearchSettings(**values)
    logger.debug(f"Loaded settings: {settings.model_dump(exclude={'weights'})}")
    return settings

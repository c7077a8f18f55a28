"""
Unit tests for settings and environment loading.
"""

import pytest
from pydantic import ValidationError

from kbsearch.config import ScoringWeights, SearchSettings, load_settings

ENV_NAMES = [
    "KBSEARCH_INDEX_TTL_SECONDS",
    "KBSEARCH_DEFAULT_MAX_RESULTS",
    "KBSEARCH_MAX_RESULTS_CAP",
    "KBSEARCH_MAX_CONTENT_LENGTH",
    "KBSEARCH_MIN_RAW_SCORE",
    "KBSEARCH_SCORE_SCALE",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """
    Isolated environment for load_settings().

    Every KBSEARCH_* variable is registered with monkeypatch (as empty, which
    load_settings ignores) so values set by load_dotenv are undone afterwards.
    """
    for name in ENV_NAMES:
        monkeypatch.setenv(name, "")
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestSearchSettings:
    """Test settings defaults and validation"""

    def test_defaults(self):
        """Test documented defaults"""
        settings = SearchSettings()

        assert settings.min_query_length == 2
        assert settings.max_query_length == 500
        assert settings.default_max_results == 5
        assert settings.max_results_cap == 10
        assert settings.index_ttl_seconds == 300.0
        assert settings.min_raw_score == 8.0
        assert settings.score_scale == 2000.0
        assert settings.weights.exact_title == 120.0
        assert settings.weights.length_tiers == {500: 10.0, 1000: 15.0, 2000: 20.0}

    def test_query_bounds_validated(self):
        """Test min/max query length consistency"""
        with pytest.raises(ValidationError):
            SearchSettings(min_query_length=10, max_query_length=5)

    def test_result_bounds_validated(self):
        """Test default bound not above the cap"""
        with pytest.raises(ValidationError):
            SearchSettings(default_max_results=20)

    def test_positive_scale(self):
        """Test that the normalization scale must be positive"""
        with pytest.raises(ValidationError):
            SearchSettings(score_scale=0)

    def test_frozen(self):
        """Test that settings are immutable"""
        settings = SearchSettings()

        with pytest.raises(ValidationError):
            settings.max_results_cap = 3

    def test_custom_weights(self):
        """Test overriding a rule weight"""
        settings = SearchSettings(weights=ScoringWeights(exact_title=200.0))

        assert settings.weights.exact_title == 200.0
        assert settings.weights.exact_body == 80.0


class TestLoadSettings:
    """Test KBSEARCH_* environment overrides"""

    def test_no_environment(self, clean_env):
        """Test defaults when nothing is set"""
        assert load_settings() == SearchSettings()

    def test_environment_variables(self, clean_env, monkeypatch):
        """Test values read from the environment"""
        monkeypatch.setenv("KBSEARCH_MAX_RESULTS_CAP", "7")
        monkeypatch.setenv("KBSEARCH_MIN_RAW_SCORE", "12.5")

        settings = load_settings()

        assert settings.max_results_cap == 7
        assert settings.min_raw_score == 12.5

    def test_env_file(self, clean_env):
        """Test an explicit dotenv file"""
        env_file = clean_env / "search.env"
        env_file.write_text(
            "KBSEARCH_DEFAULT_MAX_RESULTS=3\nKBSEARCH_INDEX_TTL_SECONDS=never\n",
            encoding="utf-8",
        )

        settings = load_settings(env_file=env_file)

        assert settings.default_max_results == 3
        assert settings.index_ttl_seconds is None

    def test_env_local_wins(self, clean_env):
        """Test that .env.local is preferred over .env"""
        (clean_env / ".env").write_text("KBSEARCH_MAX_CONTENT_LENGTH=100\n", encoding="utf-8")
        (clean_env / ".env.local").write_text("KBSEARCH_MAX_CONTENT_LENGTH=200\n", encoding="utf-8")

        assert load_settings().max_content_length == 200

    def test_overrides_win(self, clean_env, monkeypatch):
        """Test keyword overrides over environment values"""
        monkeypatch.setenv("KBSEARCH_DEFAULT_MAX_RESULTS", "3")

        assert load_settings(default_max_results=2).default_max_results == 2

    def test_invalid_value(self, clean_env, monkeypatch):
        """Test that malformed values fail validation"""
        monkeypatch.setenv("KBSEARCH_SCORE_SCALE", "not-a-number")

        with pytest.raises(ValidationError):
            load_settings()

"""
Tests for skin_insights/config.py.

What we test
------------
- The committed config/default.toml loads and validates.
- Explicit missing path -> FileNotFoundError.
- local.toml next to the config file is deep-merged over it.
- SKIN_INSIGHTS_* environment overrides.
- Validators: top_per_category >= 0, ttl_days >= 1, min scans >= 3,
  default_range must be a known window, log level normalized.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from skin_insights.config import (
    AppConfig,
    ExplanationConfig,
    LoggingConfig,
    ProgressConfig,
    RecommendationConfig,
    load_config,
)

_ENV_VARS = (
    "SKIN_INSIGHTS_LOG_LEVEL",
    "SKIN_INSIGHTS_GENERATOR_URL",
    "SKIN_INSIGHTS_GENERATOR_ENABLED",
    "SKIN_INSIGHTS_DEBUG",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


def _toml(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "default.toml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_committed_defaults_load(self):
        config = load_config()
        assert isinstance(config, AppConfig)
        assert config.recommendations.top_per_category == 4
        assert config.explanations.ttl_days == 7
        assert config.progress.min_scans_for_timeline == 3

    def test_missing_explicit_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.toml")

    def test_empty_file_uses_model_defaults(self, tmp_path):
        config = load_config(_toml(tmp_path, ""))
        assert config == AppConfig()

    def test_values_from_file(self, tmp_path):
        path = _toml(tmp_path, "[recommendations]\ntop_per_category = 2\n[project]\ndebug = true\n")
        config = load_config(path)
        assert config.recommendations.top_per_category == 2
        assert config.debug is True

    def test_local_toml_merged(self, tmp_path):
        path = _toml(tmp_path, "[explanations]\nttl_days = 3\nmax_tokens = 100\n")
        (tmp_path / "local.toml").write_text("[explanations]\nttl_days = 5\n", encoding="utf-8")
        config = load_config(path)
        assert config.explanations.ttl_days == 5
        assert config.explanations.max_tokens == 100

    def test_invalid_value_raises(self, tmp_path):
        with pytest.raises(ValidationError):
            load_config(_toml(tmp_path, "[progress]\nmin_scans_for_timeline = 2\n"))


class TestEnvOverrides:
    def test_log_level(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SKIN_INSIGHTS_LOG_LEVEL", "debug")
        assert load_config(_toml(tmp_path, "")).logging.level == "DEBUG"

    def test_generator(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SKIN_INSIGHTS_GENERATOR_URL", "http://gen.local/v1")
        monkeypatch.setenv("SKIN_INSIGHTS_GENERATOR_ENABLED", "yes")
        config = load_config(_toml(tmp_path, ""))
        assert config.explanations.generator_url == "http://gen.local/v1"
        assert config.explanations.generator_enabled is True

    def test_debug_false(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SKIN_INSIGHTS_DEBUG", "0")
        assert load_config(_toml(tmp_path, "debug = true\n")).debug is False


class TestValidators:
    def test_top_per_category_non_negative(self):
        assert RecommendationConfig(top_per_category=0).top_per_category == 0
        with pytest.raises(ValidationError):
            RecommendationConfig(top_per_category=-1)

    def test_categories_upper_cased(self):
        assert RecommendationConfig(categories=[" serum", "", "mask"]).categories == ["SERUM", "MASK"]

    def test_ttl_days(self):
        with pytest.raises(ValidationError):
            ExplanationConfig(ttl_days=0)

    def test_timeouts_positive(self):
        with pytest.raises(ValidationError):
            ExplanationConfig(wait_timeout_seconds=0)

    def test_min_scans(self):
        with pytest.raises(ValidationError):
            ProgressConfig(min_scans_for_timeline=1)

    def test_default_range(self):
        assert ProgressConfig(default_range="90d").default_range == "90d"
        with pytest.raises(ValidationError):
            ProgressConfig(default_range="2w")

    def test_log_level(self):
        assert LoggingConfig(level="warning").level == "WARNING"
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")

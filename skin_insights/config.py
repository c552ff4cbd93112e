"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``SKIN_INSIGHTS_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

Scoring weights, the primary-concern threshold and the trend bands are fixed
constants in their modules, not configuration: changing them would change
what a score or a trend means.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

from skin_insights.taxonomy.skin_taxonomy import ProductCategory
from skin_insights.utils.time_utils import DateRange

# ── Sub-config models ─────────────────────────────────────────────────────────


class DataConfig(BaseModel):
    """Default locations of the JSON-file stores."""

    model_config = ConfigDict(frozen=True)

    catalog_file: str = "data/catalog.json"
    history_file: str = "data/history.json"


class RecommendationConfig(BaseModel):
    """Ranking output settings."""

    model_config = ConfigDict(frozen=True)

    top_per_category: int = 4
    categories: list[str] = [c.value for c in ProductCategory]

    @field_validator("top_per_category")
    @classmethod
    def validate_top_n(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"top_per_category must be >= 0, got {v}.")
        return v

    @field_validator("categories")
    @classmethod
    def upper_case_categories(cls, v: list[str]) -> list[str]:
        return [c.strip().upper() for c in v if c.strip()]


class ExplanationConfig(BaseModel):
    """Explanation cache and optional text generator settings."""

    model_config = ConfigDict(frozen=True)

    ttl_days: int = 7
    generator_enabled: bool = False
    generator_url: str = ""
    generator_model: str = "skin-insights-explainer"
    request_timeout_seconds: float = 20.0
    max_tokens: int = 256
    wait_timeout_seconds: float = 5.0

    @field_validator("ttl_days")
    @classmethod
    def validate_ttl(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"ttl_days must be >= 1, got {v}.")
        return v

    @field_validator("request_timeout_seconds", "wait_timeout_seconds")
    @classmethod
    def validate_positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"timeouts must be positive, got {v}.")
        return v

    @field_validator("max_tokens")
    @classmethod
    def validate_max_tokens(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_tokens must be >= 1, got {v}.")
        return v


class ProgressConfig(BaseModel):
    """Progress analysis settings."""

    model_config = ConfigDict(frozen=True)

    min_scans_for_timeline: int = 3
    default_range: str = "30d"

    @field_validator("min_scans_for_timeline")
    @classmethod
    def validate_min_scans(cls, v: int) -> int:
        if v < 3:
            raise ValueError(f"min_scans_for_timeline must be >= 3, got {v}.")
        return v

    @field_validator("default_range")
    @classmethod
    def validate_range(cls, v: str) -> str:
        valid = {r.value for r in DateRange}
        if v not in valid:
            raise ValueError(f"default_range must be one of {sorted(valid)}, got '{v}'.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env.
    """

    model_config = ConfigDict(frozen=True)

    data: DataConfig = DataConfig()
    recommendations: RecommendationConfig = RecommendationConfig()
    explanations: ExplanationConfig = ExplanationConfig()
    progress: ProgressConfig = ProgressConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent

_TRUTHY = ("1", "true", "yes", "on")


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply SKIN_INSIGHTS_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply SKIN_INSIGHTS_* env vars to the raw config dict.

    Supported overrides:
      SKIN_INSIGHTS_LOG_LEVEL          → raw["logging"]["level"]
      SKIN_INSIGHTS_GENERATOR_URL      → raw["explanations"]["generator_url"]
      SKIN_INSIGHTS_GENERATOR_ENABLED  → raw["explanations"]["generator_enabled"]
      SKIN_INSIGHTS_DEBUG              → raw["debug"]
    """
    if log_level := os.environ.get("SKIN_INSIGHTS_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if url := os.environ.get("SKIN_INSIGHTS_GENERATOR_URL"):
        raw.setdefault("explanations", {})["generator_url"] = url

    if enabled := os.environ.get("SKIN_INSIGHTS_GENERATOR_ENABLED"):
        raw.setdefault("explanations", {})["generator_enabled"] = enabled.lower() in _TRUTHY

    if debug := os.environ.get("SKIN_INSIGHTS_DEBUG"):
        raw["debug"] = debug.lower() in _TRUTHY

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        data=DataConfig(**raw.get("data", {})),
        recommendations=RecommendationConfig(**raw.get("recommendations", {})),
        explanations=ExplanationConfig(**raw.get("explanations", {})),
        progress=ProgressConfig(**raw.get("progress", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )

"""
Skin assessment model — the canonical result of one scan session.

An ``Assessment`` is produced once per scan by the normalizer
(``skin_insights.analysis.normalizer``) and is immutable thereafter.  It is
the input to both the recommendation scorer (current session) and the
progress analyzer (historical series).

Severities are floats in [0, 1] where **lower is better**.  The normalizer
always emits an entry for every ``ConcernKind``; records loaded from the
historical store may carry fewer (older model versions), which the progress
analyzer handles explicitly.  Concern and zone labels outside the closed sets
(newer model versions) are dropped on load rather than rejected.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from skin_insights.taxonomy.skin_taxonomy import (
    SKIN_TYPES,
    ConcernKind,
    ZoneKind,
    parse_concern,
    parse_zone,
)


def _as_mapping(raw: Any) -> Mapping:
    """A mapping, a JSON object string, or anything else as ``{}``."""
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return {}
    return raw if isinstance(raw, Mapping) else {}


def _concern_map(raw: Any) -> dict[ConcernKind, Any]:
    """Concern-keyed map with unknown concern labels dropped."""
    result: dict[ConcernKind, Any] = {}
    for key, value in _as_mapping(raw).items():
        concern = parse_concern(key)
        if concern is not None:
            result[concern] = value
    return result


def _check_unit_interval(name: str, value: float) -> float:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be in [0.0, 1.0], got {value}.")
    return value


class Assessment(BaseModel):
    """Structured skin assessment for a single scan session.

    Attributes:
        assessment_id: Stable identifier of the scan session.
        captured_at: UTC timestamp of the capture.
        concern_severity: Overall severity per concern, 0–1.
        zone_severity: Per-zone severity per concern, 0–1.
        skin_type: Ordinal 1–6 skin-type classification.
        skin_type_confidence: Classifier confidence for ``skin_type``, 0–1.
        primary_concerns: Concerns above the primary threshold, most severe first.
        is_fallback: ``True`` when produced without model output.
        model_version: Provenance string of the producing model.
        health_score: Precomputed 0–100 health score, or ``None`` to derive it.
        user_id: Owner of the record, when known.
    """

    model_config = ConfigDict(frozen=True)

    assessment_id: str
    captured_at: datetime
    concern_severity: dict[ConcernKind, float]
    zone_severity: dict[ZoneKind, dict[ConcernKind, float]] = {}
    skin_type: int
    skin_type_confidence: float
    primary_concerns: list[ConcernKind] = []
    is_fallback: bool = False
    model_version: str = "unknown"
    health_score: Optional[int] = None
    user_id: Optional[str] = None

    @field_validator("assessment_id")
    @classmethod
    def validate_id_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("assessment_id must not be empty.")
        return v.strip()

    @field_validator("concern_severity", mode="before")
    @classmethod
    def parse_concern_severity(cls, v: Any) -> dict:
        return _concern_map(v)

    @field_validator("zone_severity", mode="before")
    @classmethod
    def parse_zone_severity(cls, v: Any) -> dict:
        result: dict = {}
        for key, cells in _as_mapping(v).items():
            zone = parse_zone(key)
            if zone is not None:
                result[zone] = _concern_map(cells)
        return result

    @field_validator("primary_concerns", mode="before")
    @classmethod
    def parse_primary_concerns(cls, v: Any) -> list:
        parsed = (parse_concern(c) for c in (v if isinstance(v, (list, tuple)) else []))
        return [c for c in parsed if c is not None]

    @field_validator("concern_severity")
    @classmethod
    def validate_concern_severity(
        cls, v: dict[ConcernKind, float]
    ) -> dict[ConcernKind, float]:
        for concern, severity in v.items():
            _check_unit_interval(f"severity for {concern}", severity)
        return v

    @field_validator("zone_severity")
    @classmethod
    def validate_zone_severity(
        cls, v: dict[ZoneKind, dict[ConcernKind, float]]
    ) -> dict[ZoneKind, dict[ConcernKind, float]]:
        for zone, cells in v.items():
            for concern, severity in cells.items():
                _check_unit_interval(f"severity for {zone}/{concern}", severity)
        return v

    @field_validator("skin_type")
    @classmethod
    def validate_skin_type(cls, v: int) -> int:
        if v not in SKIN_TYPES:
            raise ValueError(f"skin_type must be in 1–6, got {v}.")
        return v

    @field_validator("skin_type_confidence")
    @classmethod
    def validate_confidence(cls, v: float) -> float:
        return _check_unit_interval("skin_type_confidence", v)

    @field_validator("health_score")
    @classmethod
    def validate_health_score(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and not 0 <= v <= 100:
            raise ValueError(f"health_score must be in [0, 100], got {v}.")
        return v

    def severity(self, concern: ConcernKind) -> float:
        """Severity for ``concern``; a missing entry reads as 0.0."""
        return self.concern_severity.get(concern, 0.0)

    @property
    def active_concerns(self) -> list[ConcernKind]:
        """Concerns with non-zero severity, in ``ConcernKind`` order."""
        return [c for c in ConcernKind if self.severity(c) > 0.0]

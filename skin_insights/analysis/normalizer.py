"""
Assessment normalizer: raw model output → ``Assessment``.

Raw output contract (from the model runner)
-------------------------------------------
concern_scores   : 5 floats in ``ConcernKind`` order, or a label → float map.
skin_type_probs  : 6 floats, index 0 = skin type 1 … index 5 = skin type 6.
zone_scores      : 5 × 5 matrix, rows in ``ZoneKind`` order and columns in
                   ``ConcernKind`` order, or a nested label map.

Normalization rules
-------------------
- Every cell is coerced to a float in [0, 1]; missing, NaN or non-numeric
  cells become 0.0.  The result always has all 5 concerns and all 5 × 5 zone
  cells.
- If the concern vector is absent but zone scores are present, the overall
  severity of a concern is its mean across the five zones.
- Skin type = argmax of the probability vector; ties go to the lowest index
  (the lightest type).  Confidence = the winning probability.
- Primary concerns = severity > ``PRIMARY_CONCERN_THRESHOLD`` (0.4), most
  severe first.

Unavailable model
-----------------
``normalize(None)`` returns ``fallback_assessment()``: all severities 0.0,
skin type ``FALLBACK_SKIN_TYPE`` (4) with confidence 0.0, ``is_fallback=True``
and ``model_version="fallback-v1"``.  The user flow is never blocked on the
model; callers that care check ``is_fallback``.

Time
----
The only time input is ``captured_at`` (argument, then the runner's own
timestamp, then the injected ``clock``).  With the same inputs and clock
reading, ``normalize`` returns an equal ``Assessment`` with the same id.
"""

from __future__ import annotations

import hashlib
import json
import logging
import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from skin_insights.models.assessment import Assessment
from skin_insights.taxonomy.skin_taxonomy import (
    SKIN_TYPES,
    ConcernKind,
    ZoneKind,
    parse_concern,
    parse_zone,
)
from skin_insights.utils.time_utils import parse_timestamp, utcnow

logger = logging.getLogger(__name__)

PRIMARY_CONCERN_THRESHOLD = 0.4

FALLBACK_SKIN_TYPE = 4
FALLBACK_CONFIDENCE = 0.0
FALLBACK_MODEL_VERSION = "fallback-v1"


@dataclass(frozen=True)
class RawModelOutput:
    """Raw buffers handed over by the model runner.

    Attributes:
        concern_scores:  Concern vector or label map; ``None`` if not produced.
        skin_type_probs: 6-way skin-type probability vector.
        zone_scores:     Zone × concern matrix or nested label map; ``None`` if
                         not produced.
        model_version:   Provenance string of the producing model.
        captured_at:     Capture time reported by the runner, if any.
    """

    concern_scores:  Optional[Sequence[Any] | Mapping[str, Any]] = None
    skin_type_probs: Sequence[Any] = ()
    zone_scores:     Optional[Sequence[Any] | Mapping[str, Any]] = None
    model_version:   str = "unknown"
    captured_at:     Optional[datetime] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RawModelOutput":
        """Build from a decoded JSON object.

        Accepts ``skin_type_probs`` or ``skin_type_probabilities`` for the
        probability vector.  Unknown keys are ignored.
        """
        probs = data.get("skin_type_probs", data.get("skin_type_probabilities")) or ()
        return cls(
            concern_scores=data.get("concern_scores"),
            skin_type_probs=probs if isinstance(probs, Sequence) and not isinstance(probs, str) else (),
            zone_scores=data.get("zone_scores"),
            model_version=str(data.get("model_version") or "unknown"),
            captured_at=parse_timestamp(data.get("captured_at")),
        )


# ── Public API ────────────────────────────────────────────────────────────────

def normalize(
    raw: RawModelOutput | Mapping[str, Any] | None,
    *,
    captured_at: Optional[datetime] = None,
    assessment_id: Optional[str] = None,
    user_id: Optional[str] = None,
    clock: Callable[[], datetime] = utcnow,
) -> Assessment:
    """Convert raw model output (or its absence) into an ``Assessment``.

    Args:
        raw:           Model output, a decoded JSON mapping of it, or ``None``
                       when the model path is not ready.
        captured_at:   Capture time; defaults to the runner's time, then ``clock()``.
        assessment_id: Explicit id; defaults to a content hash so identical
                       inputs yield identical assessments.
        user_id:       Owner of the assessment, if known.
        clock:         Zero-argument callable returning an aware UTC datetime.

    Returns:
        A fully populated ``Assessment``.  Never raises for bad raw data.
    """
    if raw is None:
        return fallback_assessment(
            captured_at=captured_at,
            assessment_id=assessment_id,
            user_id=user_id,
            clock=clock,
        )
    if isinstance(raw, Mapping):
        raw = RawModelOutput.from_mapping(raw)

    when = captured_at or raw.captured_at or clock()

    zones = _parse_zone_matrix(raw.zone_scores)
    if raw.concern_scores is not None:
        overall = _parse_concern_vector(raw.concern_scores)
    elif raw.zone_scores is not None:
        overall = {
            c: round(sum(zones[z][c] for z in ZoneKind) / len(ZoneKind), 6)
            for c in ConcernKind
        }
    else:
        overall = {c: 0.0 for c in ConcernKind}

    skin_type, confidence = select_skin_type(raw.skin_type_probs)

    return Assessment(
        assessment_id=assessment_id or _content_id(when, overall, zones, skin_type, confidence),
        captured_at=when,
        concern_severity=overall,
        zone_severity=zones,
        skin_type=skin_type,
        skin_type_confidence=confidence,
        primary_concerns=primary_concerns(overall),
        is_fallback=False,
        model_version=raw.model_version,
        user_id=user_id,
    )


def fallback_assessment(
    *,
    captured_at: Optional[datetime] = None,
    assessment_id: Optional[str] = None,
    user_id: Optional[str] = None,
    clock: Callable[[], datetime] = utcnow,
) -> Assessment:
    """Deterministic stand-in used when the model is unavailable.

    Identical arguments and clock reading give an identical assessment.
    """
    when = captured_at or clock()
    overall = {c: 0.0 for c in ConcernKind}
    zones = {z: {c: 0.0 for c in ConcernKind} for z in ZoneKind}
    logger.warning("Model output unavailable; using fallback assessment.")
    return Assessment(
        assessment_id=assessment_id
        or _content_id(when, overall, zones, FALLBACK_SKIN_TYPE, FALLBACK_CONFIDENCE, fallback=True),
        captured_at=when,
        concern_severity=overall,
        zone_severity=zones,
        skin_type=FALLBACK_SKIN_TYPE,
        skin_type_confidence=FALLBACK_CONFIDENCE,
        primary_concerns=[],
        is_fallback=True,
        model_version=FALLBACK_MODEL_VERSION,
        user_id=user_id,
    )


def select_skin_type(probs: Sequence[Any]) -> tuple[int, float]:
    """Argmax over the 6-way probability vector, lowest index on ties.

    Short vectors are zero-padded, extra entries ignored.

    Returns:
        ``(skin_type, confidence)`` with skin_type in 1–6.
    """
    values = [_unit(v) for v in list(probs)[: len(SKIN_TYPES)]]
    values += [0.0] * (len(SKIN_TYPES) - len(values))

    best = 0
    for i in range(1, len(values)):
        if values[i] > values[best]:
            best = i
    return SKIN_TYPES[best], values[best]


def primary_concerns(severities: Mapping[ConcernKind, float]) -> list[ConcernKind]:
    """Concerns above the primary threshold, most severe first.

    Equal severities keep ``ConcernKind`` order.
    """
    above = [c for c in ConcernKind if severities.get(c, 0.0) > PRIMARY_CONCERN_THRESHOLD]
    return sorted(above, key=lambda c: -severities[c])


# ── Parsing helpers ───────────────────────────────────────────────────────────

def _unit(value: Any) -> float:
    """Coerce to a float in [0, 1]; NaN and non-numeric → 0.0."""
    if isinstance(value, bool):
        return 0.0
    try:
        f = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(f):
        return 0.0
    return max(0.0, min(1.0, f))


def _parse_concern_vector(raw: Any) -> dict[ConcernKind, float]:
    result = {c: 0.0 for c in ConcernKind}
    if isinstance(raw, Mapping):
        for key, val in raw.items():
            concern = parse_concern(key)
            if concern is not None:
                result[concern] = _unit(val)
    elif isinstance(raw, Sequence) and not isinstance(raw, str):
        for concern, val in zip(ConcernKind, raw):
            result[concern] = _unit(val)
    return result


def _parse_zone_matrix(raw: Any) -> dict[ZoneKind, dict[ConcernKind, float]]:
    result = {z: {c: 0.0 for c in ConcernKind} for z in ZoneKind}
    if isinstance(raw, Mapping):
        for key, row in raw.items():
            zone = parse_zone(key)
            if zone is not None:
                result[zone] = _parse_concern_vector(row)
    elif isinstance(raw, Sequence) and not isinstance(raw, str):
        for zone, row in zip(ZoneKind, raw):
            result[zone] = _parse_concern_vector(row)
    return result


def _content_id(
    captured_at: datetime,
    overall: Mapping[ConcernKind, float],
    zones: Mapping[ZoneKind, Mapping[ConcernKind, float]],
    skin_type: int,
    confidence: float,
    fallback: bool = False,
) -> str:
    """SHA-256 prefix over the normalized content, for stable default ids."""
    payload = json.dumps(
        {
            "captured_at": captured_at.isoformat(),
            "overall": {c.value: overall[c] for c in ConcernKind},
            "zones": {z.value: {c.value: zones[z][c] for c in ConcernKind} for z in ZoneKind},
            "skin_type": skin_type,
            "confidence": confidence,
            "fallback": fallback,
        },
        sort_keys=True,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]

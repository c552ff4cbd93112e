"""
Pairwise progress comparison between two assessments.

Health score
------------
    health = round((1 - mean(concern severities)) * 100), clamped to [0, 100]

A precomputed ``Assessment.health_score`` wins when present.  An assessment
with no stored severities scores ``DEFAULT_HEALTH_SCORE`` (70).

Per-concern classification
--------------------------
    delta = current severity - baseline severity     (negative = better)

    delta < -0.05  -> IMPROVING
    delta > +0.05  -> WORSENING
    otherwise      -> STABLE

The ±0.05 band is an absolute noise-rejection threshold.  Note the sign
flip against ``overall_delta`` (``current_health - baseline_health``, where
positive = better).

Concerns missing from the baseline's severity map are skipped, not treated
as 0: both scans must have measured a concern for the comparison to mean
anything.  A concern present in the baseline but missing from the current
scan is carried at its baseline value (delta 0).
"""

from __future__ import annotations

from skin_insights.models.assessment import Assessment
from skin_insights.models.progress import ComparisonResult, ConcernComparison, ConcernTrend
from skin_insights.taxonomy.skin_taxonomy import ConcernKind
from skin_insights.utils.time_utils import days_between

CONCERN_STABILITY_BAND = 0.05
DEFAULT_HEALTH_SCORE = 70

# Baselines at or below this are too small for a meaningful percent change.
_MIN_BASELINE_FOR_PERCENT = 0.01

# Deltas are rounded before classification so float noise such as
# 0.05000000000000004 does not cross the band edge.
_DELTA_PRECISION = 6


def health_score(assessment: Assessment) -> int:
    """0–100 summary score, higher is better."""
    if assessment.health_score is not None:
        return assessment.health_score
    severities = list(assessment.concern_severity.values())
    if not severities:
        return DEFAULT_HEALTH_SCORE
    mean = sum(severities) / len(severities)
    return max(0, min(100, int(round((1.0 - mean) * 100))))


def classify_concern_delta(delta: float) -> ConcernTrend:
    """Classify a severity delta against the stability band."""
    if delta < -CONCERN_STABILITY_BAND:
        return ConcernTrend.IMPROVING
    if delta > CONCERN_STABILITY_BAND:
        return ConcernTrend.WORSENING
    return ConcernTrend.STABLE


def severity_delta(baseline: float, current: float) -> float:
    return round(current - baseline, _DELTA_PRECISION)


def compare(baseline: Assessment, current: Assessment) -> ComparisonResult:
    """Compare a baseline (earlier) assessment with a current (later) one.

    Args:
        baseline: Reference assessment.
        current:  Assessment to measure against the baseline.

    Returns:
        ``ComparisonResult`` with overall and per-concern changes.
    """
    baseline_health = health_score(baseline)
    current_health = health_score(current)

    per_concern: list[ConcernComparison] = []
    for concern in ConcernKind:
        if concern not in baseline.concern_severity:
            continue
        base_sev = baseline.concern_severity[concern]
        curr_sev = current.concern_severity.get(concern, base_sev)
        delta = severity_delta(base_sev, curr_sev)
        change_pct = delta / base_sev * 100.0 if base_sev > _MIN_BASELINE_FOR_PERCENT else 0.0
        per_concern.append(
            ConcernComparison(
                concern=concern,
                baseline_severity=base_sev,
                current_severity=curr_sev,
                delta=delta,
                change_percent=round(change_pct, 2),
                trend=classify_concern_delta(delta),
            )
        )

    return ComparisonResult(
        baseline_id=baseline.assessment_id,
        current_id=current.assessment_id,
        baseline_captured_at=baseline.captured_at,
        current_captured_at=current.captured_at,
        days_between=days_between(baseline.captured_at, current.captured_at),
        baseline_health_score=baseline_health,
        current_health_score=current_health,
        overall_delta=current_health - baseline_health,
        per_concern=per_concern,
        improving=[c.concern for c in per_concern if c.trend == ConcernTrend.IMPROVING],
        worsening=[c.concern for c in per_concern if c.trend == ConcernTrend.WORSENING],
        stable=[c.concern for c in per_concern if c.trend == ConcernTrend.STABLE],
    )

"""
Progress models — pairwise comparison and timeline results.

Sign conventions (keep them straight, they are easy to mix up):
  - Health scores are 0–100, **higher is better**; ``overall_delta > 0`` means
    the skin improved.
  - Concern severities are 0–1, **lower is better**; a per-concern
    ``delta < 0`` means that concern improved.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from skin_insights.taxonomy.skin_taxonomy import ConcernKind


class ConcernTrend(StrEnum):
    """Direction of a single concern's severity."""

    IMPROVING = "improving"
    WORSENING = "worsening"
    STABLE    = "stable"


class HealthTrend(StrEnum):
    """Direction of the overall health score across a timeline."""

    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE    = "stable"


class TimelineStatus(StrEnum):
    """Whether a timeline had enough assessments to be analysed."""

    OK                = "ok"
    INSUFFICIENT_DATA = "insufficient_data"


class ConcernComparison(BaseModel):
    """Change in one concern between two assessments.

    Attributes:
        concern: The concern compared.
        baseline_severity: Severity in the earlier assessment.
        current_severity: Severity in the later assessment.
        delta: ``current - baseline``; negative is an improvement.
        change_percent: ``delta / baseline * 100``, 0 when baseline <= 0.01.
        trend: Classification of ``delta`` against the stability band.
    """

    model_config = ConfigDict(frozen=True)

    concern: ConcernKind
    baseline_severity: float
    current_severity: float
    delta: float
    change_percent: float
    trend: ConcernTrend


class ComparisonResult(BaseModel):
    """Result of comparing a baseline assessment with a current one."""

    model_config = ConfigDict(frozen=True)

    baseline_id: str
    current_id: str
    baseline_captured_at: datetime
    current_captured_at: datetime
    days_between: int
    baseline_health_score: int
    current_health_score: int
    overall_delta: int
    per_concern: list[ConcernComparison]
    improving: list[ConcernKind]
    worsening: list[ConcernKind]
    stable: list[ConcernKind]


class TimelinePoint(BaseModel):
    """One ``(timestamp, value)`` sample of a timeline sub-series."""

    model_config = ConfigDict(frozen=True)

    captured_at: datetime
    value: float
    assessment_id: str


class ConcernTrendSeries(BaseModel):
    """Per-concern sub-series with its endpoint trend."""

    model_config = ConfigDict(frozen=True)

    concern: ConcernKind
    start_severity: float
    end_severity: float
    delta: float
    trend: ConcernTrend
    points: list[TimelinePoint]


class TimelineSeries(BaseModel):
    """Aggregated view over an ordered series of assessments.

    When ``status`` is ``INSUFFICIENT_DATA`` only ``n_assessments`` and
    ``window_start`` are meaningful; callers should show a "needs more scans"
    message rather than a trend.
    """

    model_config = ConfigDict(frozen=True)

    status: TimelineStatus
    n_assessments: int
    window_start: Optional[datetime] = None
    points: list[TimelinePoint] = []
    current_health_score: Optional[int] = None
    overall_trend: Optional[HealthTrend] = None
    concern_trends: list[ConcernTrendSeries] = []

    @property
    def has_enough_data(self) -> bool:
        return self.status == TimelineStatus.OK

"""
Timeline summary over a series of assessments.

Steps
-----
1. Filter the series to the requested window (``since`` or a ``DateRange``)
   and sort by capture time.
2. Fewer than ``MIN_ASSESSMENTS`` (3) left -> ``INSUFFICIENT_DATA``.  Two
   points would only produce a false trend line.
3. Overall trend: split the health-score series by count into first third
   and last third, average each, and compare:
       later - earlier >  5  -> IMPROVING
       later - earlier < -5  -> DECLINING
       otherwise             -> STABLE
   Averaging thirds smooths single-session noise better than comparing the
   two endpoints.
4. Per-concern trend: endpoint delta (last - first) of the concern's own
   sub-series, classified with the same ±0.05 band as pairwise comparison.
   A concern observed in fewer than 2 assessments is omitted.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Optional

from skin_insights.models.assessment import Assessment
from skin_insights.models.progress import (
    ConcernTrendSeries,
    HealthTrend,
    TimelinePoint,
    TimelineSeries,
    TimelineStatus,
)
from skin_insights.progress.comparison import (
    classify_concern_delta,
    health_score,
    severity_delta,
)
from skin_insights.taxonomy.skin_taxonomy import ConcernKind
from skin_insights.utils.time_utils import DateRange, as_utc, window_start

logger = logging.getLogger(__name__)

MIN_ASSESSMENTS = 3
HEALTH_TREND_BAND = 5.0


def classify_health_trend(values: list[float]) -> HealthTrend:
    """Compare the mean of the last third against the mean of the first third."""
    third = len(values) // 3
    if third == 0:
        return HealthTrend.STABLE
    earlier = sum(values[:third]) / third
    later = sum(values[-third:]) / third
    delta = later - earlier
    if delta > HEALTH_TREND_BAND:
        return HealthTrend.IMPROVING
    if delta < -HEALTH_TREND_BAND:
        return HealthTrend.DECLINING
    return HealthTrend.STABLE


def concern_trend(
    assessments: list[Assessment],
    concern: ConcernKind,
) -> Optional[ConcernTrendSeries]:
    """Endpoint trend for one concern; ``None`` with fewer than 2 observations."""
    points = [
        TimelinePoint(
            captured_at=a.captured_at,
            value=a.concern_severity[concern],
            assessment_id=a.assessment_id,
        )
        for a in assessments
        if concern in a.concern_severity
    ]
    if len(points) < 2:
        return None

    start, end = points[0].value, points[-1].value
    delta = severity_delta(start, end)
    return ConcernTrendSeries(
        concern=concern,
        start_severity=start,
        end_severity=end,
        delta=delta,
        trend=classify_concern_delta(delta),
        points=points,
    )


def summarize(
    series: Iterable[Assessment],
    *,
    date_range: Optional[DateRange] = None,
    since: Optional[datetime] = None,
    now: Optional[datetime] = None,
    min_assessments: int = MIN_ASSESSMENTS,
) -> TimelineSeries:
    """Summarize an assessment history into a timeline.

    Args:
        series:          Assessments, normally oldest first.
        date_range:      Look-back window ending at ``now``; ignored if
                         ``since`` is given.  ``None`` means all history.
        since:           Explicit window start (inclusive).
        now:             Reference time for ``date_range``; defaults to now.
        min_assessments: Minimum points for a trend; may be raised, never
                         lowered below 3.

    Returns:
        ``TimelineSeries``; ``status`` is ``INSUFFICIENT_DATA`` when the
        window holds too few assessments.
    """
    if min_assessments < MIN_ASSESSMENTS:
        raise ValueError(
            f"min_assessments must be >= {MIN_ASSESSMENTS}, got {min_assessments}."
        )

    start = as_utc(since) if since is not None else (
        window_start(date_range, now) if date_range is not None else None
    )
    in_window = [a for a in series if start is None or as_utc(a.captured_at) >= start]
    ordered = sorted(in_window, key=lambda a: as_utc(a.captured_at))

    if len(ordered) < min_assessments:
        logger.info(
            "Timeline has %d assessments in window (need %d); insufficient data.",
            len(ordered), min_assessments,
        )
        return TimelineSeries(
            status=TimelineStatus.INSUFFICIENT_DATA,
            n_assessments=len(ordered),
            window_start=start,
        )

    points = [
        TimelinePoint(
            captured_at=a.captured_at,
            value=float(health_score(a)),
            assessment_id=a.assessment_id,
        )
        for a in ordered
    ]
    concern_trends = [
        t for t in (concern_trend(ordered, c) for c in ConcernKind) if t is not None
    ]

    return TimelineSeries(
        status=TimelineStatus.OK,
        n_assessments=len(ordered),
        window_start=start,
        points=points,
        current_health_score=int(points[-1].value),
        overall_trend=classify_health_trend([p.value for p in points]),
        concern_trends=concern_trends,
    )

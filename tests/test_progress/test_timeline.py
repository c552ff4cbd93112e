"""
Tests for skin_insights/progress/timeline.py.

What we test
------------
summarize():
  - Fewer than 3 assessments in the window -> INSUFFICIENT_DATA.
  - Rising health over 3 scans -> IMPROVING; falling -> DECLINING; small
    changes within ±5 -> STABLE.
  - Thirds are by count: the middle of the series does not move the trend.
  - Date-range and explicit ``since`` filters; input order does not matter.
  - Per-concern endpoint trends; concerns seen fewer than twice are omitted.
  - min_assessments below 3 is rejected.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from skin_insights.models.progress import ConcernTrend, HealthTrend, TimelineStatus
from skin_insights.progress.timeline import classify_health_trend, summarize
from skin_insights.taxonomy.skin_taxonomy import ConcernKind
from skin_insights.utils.time_utils import DateRange

_AC = ConcernKind.ACNE
_DR = ConcernKind.DRYNESS


@pytest.fixture
def series(make_assessment, fixed_now):
    """Build assessments one day apart ending at ``fixed_now``."""

    def _build(severities: list[dict], start_days_ago: int | None = None):
        n = len(severities)
        first = start_days_ago if start_days_ago is not None else n - 1
        return [
            make_assessment(
                sev,
                assessment_id=f"s{i}",
                captured_at=fixed_now - timedelta(days=first - i),
            )
            for i, sev in enumerate(severities)
        ]

    return _build


class TestMinimum:
    def test_two_assessments_insufficient(self, series):
        result = summarize(series([{_AC: 0.6}, {_AC: 0.3}]))
        assert result.status == TimelineStatus.INSUFFICIENT_DATA
        assert result.n_assessments == 2
        assert result.overall_trend is None
        assert not result.has_enough_data

    def test_empty_insufficient(self):
        assert summarize([]).status == TimelineStatus.INSUFFICIENT_DATA

    def test_min_below_three_rejected(self, series):
        with pytest.raises(ValueError):
            summarize(series([{}, {}]), min_assessments=2)

    def test_raised_minimum(self, series):
        data = series([{_AC: 0.5}] * 4)
        assert summarize(data, min_assessments=5).status == TimelineStatus.INSUFFICIENT_DATA


class TestOverallTrend:
    def test_rising_health_is_improving(self, series):
        result = summarize(series([{_AC: 0.6}, {_AC: 0.45}, {_AC: 0.3}]))
        assert result.status == TimelineStatus.OK
        assert result.overall_trend == HealthTrend.IMPROVING
        assert [p.value for p in result.points] == [40.0, 55.0, 70.0]
        assert result.current_health_score == 70

    def test_falling_health_is_declining(self, series):
        result = summarize(series([{_AC: 0.2}, {_AC: 0.3}, {_AC: 0.5}]))
        assert result.overall_trend == HealthTrend.DECLINING

    def test_small_change_is_stable(self, series):
        result = summarize(series([{_AC: 0.50}, {_AC: 0.48}, {_AC: 0.46}]))
        assert result.overall_trend == HealthTrend.STABLE

    def test_thirds_by_count(self):
        # first third [50, 50], last third [54, 54]; middle spike ignored
        assert classify_health_trend([50, 50, 90, 10, 54, 54]) == HealthTrend.STABLE
        assert classify_health_trend([50, 50, 0, 0, 60, 60]) == HealthTrend.IMPROVING

    def test_unsorted_input_is_sorted_by_time(self, series):
        data = series([{_AC: 0.6}, {_AC: 0.45}, {_AC: 0.3}])
        result = summarize(list(reversed(data)))
        assert result.overall_trend == HealthTrend.IMPROVING
        assert [p.assessment_id for p in result.points] == ["s0", "s1", "s2"]


class TestWindow:
    def test_date_range_filters_old_scans(self, series, fixed_now):
        data = series([{_AC: 0.6}, {_AC: 0.5}, {_AC: 0.4}, {_AC: 0.3}], start_days_ago=20)
        # scans at 20, 19, 18, 17 days ago; a 7-day window holds none of them
        result = summarize(data, date_range=DateRange.SEVEN_DAYS, now=fixed_now)
        assert result.status == TimelineStatus.INSUFFICIENT_DATA
        assert result.window_start == fixed_now - timedelta(days=7)

        result = summarize(data, date_range=DateRange.THIRTY_DAYS, now=fixed_now)
        assert result.n_assessments == 4

    def test_all_time_keeps_everything(self, series, fixed_now):
        data = series([{}, {}, {}], start_days_ago=400)
        result = summarize(data, date_range=DateRange.ALL_TIME, now=fixed_now)
        assert result.n_assessments == 3
        assert result.window_start is None

    def test_since_overrides_range(self, series, fixed_now):
        data = series([{}, {}, {}, {}])
        result = summarize(
            data,
            since=fixed_now - timedelta(days=1),
            date_range=DateRange.NINETY_DAYS,
        )
        assert result.n_assessments == 2


class TestConcernTrends:
    def test_endpoint_delta(self, series):
        result = summarize(series([{_AC: 0.6}, {_AC: 0.9}, {_AC: 0.3}]))
        (acne,) = result.concern_trends
        assert acne.start_severity == pytest.approx(0.6)
        assert acne.end_severity == pytest.approx(0.3)
        assert acne.delta == pytest.approx(-0.3)
        assert acne.trend == ConcernTrend.IMPROVING

    def test_concern_seen_once_omitted(self, series):
        result = summarize(series([{_AC: 0.5}, {_AC: 0.5, _DR: 0.4}, {_AC: 0.5}]))
        assert [t.concern for t in result.concern_trends] == [_AC]
        assert result.concern_trends[0].trend == ConcernTrend.STABLE

    def test_sparse_concern_uses_own_points(self, series):
        result = summarize(
            series([{_AC: 0.5, _DR: 0.2}, {_AC: 0.5}, {_AC: 0.5, _DR: 0.6}])
        )
        dryness = next(t for t in result.concern_trends if t.concern == _DR)
        assert len(dryness.points) == 2
        assert dryness.trend == ConcernTrend.WORSENING

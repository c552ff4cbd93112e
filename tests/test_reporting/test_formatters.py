"""Tests for skin_insights.reporting.formatters."""

from __future__ import annotations

from datetime import timedelta

from skin_insights.analysis.normalizer import fallback_assessment
from skin_insights.progress.comparison import compare
from skin_insights.progress.timeline import summarize
from skin_insights.recommendations.ranker import rank
from skin_insights.reporting.formatters import (
    format_assessment,
    format_comparison,
    format_recommendations,
    format_timeline,
)
from skin_insights.taxonomy.skin_taxonomy import ConcernKind


def test_format_assessment_shows_concerns(make_assessment) -> None:
    a = make_assessment({ConcernKind.ACNE: 0.6}, primary_concerns=[ConcernKind.ACNE])
    text = format_assessment(a)
    assert "Skin Assessment" in text
    assert "Acne" in text
    assert "Health score: 40" in text
    assert "[FALLBACK]" not in text


def test_format_assessment_fallback_banner(fixed_now) -> None:
    assert "[FALLBACK]" in format_assessment(fallback_assessment(captured_at=fixed_now))


def test_format_recommendations_blocks(make_assessment, make_item) -> None:
    a = make_assessment({ConcernKind.ACNE: 0.6})
    ranked = rank(a, [make_item("g", "TREATMENT", name="Gel", brand="Acme")])
    text = format_recommendations(ranked, ["TREATMENT"], {"g": "Nice for acne."})
    assert "[TREATMENT]" in text
    assert "Acme Gel" in text
    assert "Nice for acne." in text


def test_format_recommendations_empty(make_assessment) -> None:
    ranked = rank(make_assessment({}), [])
    assert "no in-stock items" in format_recommendations(ranked, [])


def test_format_comparison(make_assessment, fixed_now) -> None:
    base = make_assessment({ConcernKind.ACNE: 0.6}, assessment_id="b")
    curr = make_assessment({ConcernKind.ACNE: 0.3}, assessment_id="c", captured_at=fixed_now + timedelta(days=3))
    text = format_comparison(compare(base, curr))
    assert "40 -> 70 (+30)" in text
    assert "improving" in text


def test_format_timeline_insufficient(make_assessment) -> None:
    text = format_timeline(summarize([make_assessment({})]))
    assert "not enough scans" in text


def test_format_timeline_ok(make_assessment, fixed_now) -> None:
    series = [
        make_assessment({ConcernKind.ACNE: s}, assessment_id=f"s{i}", captured_at=fixed_now + timedelta(days=i))
        for i, s in enumerate([0.6, 0.45, 0.3])
    ]
    text = format_timeline(summarize(series))
    assert "Overall trend:        improving" in text
    assert "Current health score: 70" in text

"""
ASCII terminal formatters for CLI commands.

All formatters accept engine results and return plain multi-line strings
suitable for ``typer.echo()``.

No third-party dependencies (no ``rich``, no ``colorama``).
"""

from __future__ import annotations

from typing import Optional

from skin_insights.models.assessment import Assessment
from skin_insights.models.progress import ComparisonResult, TimelineSeries
from skin_insights.models.recommendation import RankedRecommendations
from skin_insights.progress.comparison import health_score
from skin_insights.taxonomy.skin_taxonomy import SKIN_TYPE_DESCRIPTIONS, ConcernKind


def format_assessment(assessment: Assessment) -> str:
    """Severity bars for one assessment."""
    lines: list[str] = []
    lines.append("")
    lines.append("=== Skin Assessment ===")
    lines.append(f"  Assessment:   {assessment.assessment_id}")
    lines.append(f"  Captured at:  {assessment.captured_at.isoformat()}")
    lines.append(
        f"  Skin type:    {assessment.skin_type} "
        f"({SKIN_TYPE_DESCRIPTIONS[assessment.skin_type]}, "
        f"confidence {assessment.skin_type_confidence:.0%})"
    )
    lines.append(f"  Health score: {health_score(assessment)}")
    if assessment.is_fallback:
        lines.append("  [FALLBACK] Model output unavailable; values are placeholders.")
    lines.append("")
    for concern in ConcernKind:
        sev = assessment.severity(concern)
        bar = "#" * int(round(sev * 20))
        marker = " *" if concern in assessment.primary_concerns else ""
        lines.append(f"    {concern.display_name:<12}  {sev:>5.2f}  {bar:<20}{marker}")
    return "\n".join(lines)


def format_recommendations(
    ranked: RankedRecommendations,
    category_order: list[str],
    explanations: Optional[dict[str, str]] = None,
) -> str:
    """One block per category, items in rank order."""
    lines: list[str] = []
    lines.append("")
    lines.append("=== Recommendations by Category ===")
    lines.append(f"  Assessment: {ranked.assessment_id}")

    if not category_order:
        lines.append("")
        lines.append("  (no in-stock items matched)")
        return "\n".join(lines)

    for cat in category_order:
        lines.append("")
        lines.append(f"  [{cat}]")
        header = (
            f"    {'Rank':>4}  {'Product':<36}  {'Score':>5}  "
            f"{'Ingr':>5}  {'Type':>5}  {'Conc':>5}  {'Bonus':>5}"
        )
        lines.append(header)
        lines.append("    " + "-" * (len(header) - 4))
        for rank, rec in enumerate(ranked.category(cat), start=1):
            f = rec.factors
            lines.append(
                f"    {rank:>4}  {rec.item.display_label[:36]:<36}  {rec.score:>5}  "
                f"{f.ingredient:>5.1f}  {f.skin_type:>5.1f}  {f.concern:>5.1f}  {f.bonus:>5.1f}"
            )
            text = (explanations or {}).get(rec.item.item_id)
            if text:
                lines.append(f"          {text}")
    return "\n".join(lines)


def format_comparison(result: ComparisonResult) -> str:
    lines: list[str] = []
    lines.append("")
    lines.append("=== Progress Comparison ===")
    lines.append(f"  Baseline: {result.baseline_id}  ({result.baseline_captured_at.date()})")
    lines.append(f"  Current:  {result.current_id}  ({result.current_captured_at.date()})")
    lines.append(f"  Days between: {result.days_between}")
    lines.append(
        f"  Health score: {result.baseline_health_score} -> "
        f"{result.current_health_score} ({result.overall_delta:+d})"
    )
    lines.append("")
    header = f"    {'Concern':<12}  {'Before':>6}  {'After':>6}  {'Delta':>7}  {'Change':>8}  Trend"
    lines.append(header)
    lines.append("    " + "-" * (len(header) - 4))
    for c in result.per_concern:
        lines.append(
            f"    {c.concern.display_name:<12}  {c.baseline_severity:>6.2f}  "
            f"{c.current_severity:>6.2f}  {c.delta:>+7.2f}  "
            f"{c.change_percent:>+7.1f}%  {c.trend.value}"
        )
    return "\n".join(lines)


def format_timeline(series: TimelineSeries) -> str:
    lines: list[str] = []
    lines.append("")
    lines.append("=== Progress Timeline ===")
    if series.window_start is not None:
        lines.append(f"  Since: {series.window_start.date()}")
    lines.append(f"  Scans: {series.n_assessments}")

    if not series.has_enough_data:
        lines.append("")
        lines.append("  (not enough scans yet; take at least 3 to see a trend)")
        return "\n".join(lines)

    lines.append(f"  Current health score: {series.current_health_score}")
    lines.append(f"  Overall trend:        {series.overall_trend.value}")
    lines.append("")
    for p in series.points:
        lines.append(f"    {p.captured_at.date()}  {p.value:>5.0f}  {'#' * int(p.value // 5)}")
    if series.concern_trends:
        lines.append("")
        for t in series.concern_trends:
            lines.append(
                f"    {t.concern.display_name:<12}  {t.start_severity:.2f} -> "
                f"{t.end_severity:.2f}  ({t.delta:+.2f})  {t.trend.value}"
            )
    return "\n".join(lines)

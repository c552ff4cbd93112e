"""
Export helpers for result files and manual analysis.

All ``export_*`` functions write to disk and return the written ``Path``.
They accept generic ``list[dict]`` / ``dict`` data to stay decoupled from
specific report shapes; the ``*_to_dict`` adapters produce those shapes from
engine results.

CSV exports are flat (no nested dicts) so they load directly in a
spreadsheet without any pre-processing step.

``flatten_recommendations_for_export()`` is the main adapter function:
it converts the nested ``categories`` structure of the recommendations
JSON into one row per item with all factor scores as separate columns.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Optional

from skin_insights.models.progress import ComparisonResult, TimelineSeries
from skin_insights.models.recommendation import RankedRecommendations, Recommendation
from skin_insights.utils.time_utils import utcnow

RECOMMENDATION_CSV_COLUMNS = [
    "assessment_id", "generated_at", "category", "rank", "item_id", "name",
    "brand", "price", "score", "f_ingredient", "f_skin_type", "f_concern",
    "f_bonus", "matching_ingredients", "matching_concerns", "explanation",
]


# ── Result adapters ───────────────────────────────────────────────────────────


def recommendation_to_dict(
    rec: Recommendation,
    rank: int,
    explanation: Optional[str] = None,
) -> dict:
    item = rec.item
    row = {
        "rank":                 rank,
        "item_id":              item.item_id,
        "name":                 item.name,
        "brand":                item.brand,
        "price":                item.price,
        "score":                rec.score,
        "score_components": {
            "ingredient": round(rec.factors.ingredient, 4),
            "skin_type":  round(rec.factors.skin_type, 4),
            "concern":    round(rec.factors.concern, 4),
            "bonus":      round(rec.factors.bonus, 4),
        },
        "matching_ingredients": sorted(i.value for i in rec.matching_ingredients),
        "matching_concerns":    sorted(c.value for c in rec.matching_concerns),
        "is_specialized_for_deep_tones": item.is_specialized_for_deep_tones,
    }
    if explanation is not None:
        row["explanation"] = explanation
    return row


def ranked_to_dict(
    ranked: RankedRecommendations,
    category_order: Optional[list[str]] = None,
    explanations: Optional[dict[str, str]] = None,
) -> dict:
    """Recommendations JSON: ``{"assessment_id", "generated_at", "categories"}``.

    Args:
        ranked:         Ranker output.
        category_order: Display order of category keys; defaults to the
                        ranker's order.
        explanations:   Optional item id -> explanation text.
    """
    explanations = explanations or {}
    order = category_order if category_order is not None else list(ranked.by_category)
    return {
        "assessment_id": ranked.assessment_id,
        "generated_at":  utcnow().isoformat(),
        "categories": {
            cat: [
                recommendation_to_dict(rec, i, explanations.get(rec.item.item_id))
                for i, rec in enumerate(ranked.category(cat), start=1)
            ]
            for cat in order
        },
    }


def comparison_to_dict(result: ComparisonResult) -> dict:
    return result.model_dump(mode="json")


def timeline_to_dict(series: TimelineSeries) -> dict:
    return series.model_dump(mode="json")


# ── File writers ──────────────────────────────────────────────────────────────


def export_to_csv(
    records: list[dict],
    path: Path,
    fieldnames: list[str] | None = None,
) -> Path:
    """Write ``records`` to a UTF-8 CSV file.

    Args:
        records:    List of row dicts.
        path:       Destination file path (parent dirs created if missing).
        fieldnames: Column order.  If None, uses the keys of the first record.

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    if not records:
        path.write_text("", encoding="utf-8")
        return path
    cols = fieldnames or list(records[0].keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=cols, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(records)
    return path


def export_to_json(data: dict | list, path: Path) -> Path:
    """Write ``data`` to a pretty-printed JSON file (parents created)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
    return path


def flatten_recommendations_for_export(recs_json: dict) -> list[dict]:
    """Flatten a recommendations JSON dict (``ranked_to_dict``) into flat rows.

    Each row carries the report metadata, the item's category and rank, its
    descriptive fields, the total score and each factor as an ``f_*`` column.
    List-valued fields are joined with ``;``.

    Returns:
        List of flat row dicts with keys ``RECOMMENDATION_CSV_COLUMNS``.
    """
    rows: list[dict] = []
    assessment_id = recs_json.get("assessment_id", "")
    generated_at  = recs_json.get("generated_at", "")

    for cat, items in recs_json.get("categories", {}).items():
        for item in items:
            comps = item.get("score_components", {})
            rows.append(
                {
                    "assessment_id":        assessment_id,
                    "generated_at":         generated_at,
                    "category":             cat,
                    "rank":                 item.get("rank", ""),
                    "item_id":              item.get("item_id", ""),
                    "name":                 item.get("name", ""),
                    "brand":                item.get("brand", ""),
                    "price":                item.get("price", ""),
                    "score":                item.get("score", ""),
                    "f_ingredient":         comps.get("ingredient", ""),
                    "f_skin_type":          comps.get("skin_type", ""),
                    "f_concern":            comps.get("concern", ""),
                    "f_bonus":              comps.get("bonus", ""),
                    "matching_ingredients": ";".join(item.get("matching_ingredients", [])),
                    "matching_concerns":    ";".join(item.get("matching_concerns", [])),
                    "explanation":          item.get("explanation", ""),
                }
            )

    return rows

"""
Recommendation ranker: scores a catalog against one assessment and groups
the results per category.

Usage flow
----------
1. rank(assessment, catalog, top_per_category=4)
   -> RankedRecommendations
      .by_category : category -> top-N, best first
      .all_items   : every in-stock item, best first

Ordering rules
--------------
- Only ``in_stock`` items participate; out-of-stock items never appear, even
  when they would score highest.
- Sort is by score descending.  Python's sort is stable, so equal scores keep
  catalog input order.
- Category groups appear in first-seen order of the sorted list.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable

from skin_insights.models.assessment import Assessment
from skin_insights.models.catalog import CatalogItem
from skin_insights.models.recommendation import Recommendation, RankedRecommendations
from skin_insights.recommendations.scorer import score_item

logger = logging.getLogger(__name__)

DEFAULT_TOP_PER_CATEGORY = 4


def score_catalog(
    assessment: Assessment,
    catalog: Iterable[CatalogItem],
) -> list[Recommendation]:
    """Score every in-stock item and sort by score descending (stable)."""
    scored = [score_item(assessment, item) for item in catalog if item.in_stock]
    return sorted(scored, key=lambda r: -r.score)


def top_n_per_category(
    scored: list[Recommendation],
    n: int = DEFAULT_TOP_PER_CATEGORY,
) -> dict[str, list[Recommendation]]:
    """Group already-sorted recommendations by category and keep the top ``n``.

    Args:
        scored: Recommendations sorted best first.
        n:      Max results per category; ``0`` yields empty lists.

    Returns:
        Dict mapping category slug -> list of at most ``n`` recommendations.
    """
    if n < 0:
        raise ValueError(f"n must be >= 0, got {n}.")

    by_cat: dict[str, list[Recommendation]] = defaultdict(list)
    for rec in scored:
        by_cat[rec.item.category].append(rec)

    return {cat: items[:n] for cat, items in by_cat.items()}


def rank(
    assessment: Assessment,
    catalog: Iterable[CatalogItem],
    top_per_category: int = DEFAULT_TOP_PER_CATEGORY,
) -> RankedRecommendations:
    """Rank a catalog for an assessment.

    Args:
        assessment:       The current assessment.
        catalog:          Catalog items in the store's order.
        top_per_category: Max items kept per category group.

    Returns:
        ``RankedRecommendations`` with per-category groups and the flat list.
    """
    catalog = list(catalog)
    scored = score_catalog(assessment, catalog)
    grouped = top_n_per_category(scored, top_per_category)

    logger.info(
        "Ranked %d in-stock of %d catalog items for assessment %s into %d categories.",
        len(scored), len(catalog), assessment.assessment_id, len(grouped),
    )

    return RankedRecommendations(
        assessment_id=assessment.assessment_id,
        by_category=grouped,
        all_items=scored,
    )


def order_categories(
    by_category: dict[str, list[Recommendation]],
    preferred: list[str],
) -> list[str]:
    """Category slugs in display order.

    Slugs listed in ``preferred`` come first in that order; any others follow
    in their existing order.  Empty groups are dropped.
    """
    present = [cat for cat, recs in by_category.items() if recs]
    ordered = [cat for cat in preferred if cat in present]
    return ordered + [cat for cat in present if cat not in ordered]

"""
Recommendation output models.

``Recommendation`` is derived on every scoring call and never persisted by
the engine itself.  ``RankedRecommendations`` groups them per category and
keeps the fully sorted flat list alongside.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

from skin_insights.models.catalog import CatalogItem
from skin_insights.taxonomy.ingredient_taxonomy import Ingredient
from skin_insights.taxonomy.skin_taxonomy import ConcernKind


class FactorBreakdown(BaseModel):
    """Per-factor partial scores (floats, before flooring).

    Attributes:
        ingredient: 0–50, benefit-set coverage.
        skin_type:  0–20, skin-type compatibility.
        concern:    0–20, concern targeting.
        bonus:      0–10, deep-tone specialization bonus.
    """

    model_config = ConfigDict(frozen=True)

    ingredient: float
    skin_type:  float
    concern:    float
    bonus:      float

    @property
    def total(self) -> float:
        return self.ingredient + self.skin_type + self.concern + self.bonus


class Recommendation(BaseModel):
    """A catalog item scored against one assessment.

    Attributes:
        item: The scored catalog item.
        score: Integer total in [0, 100].
        factors: Per-factor breakdown.
        matching_ingredients: Item ingredients in the assessment's benefit set.
        matching_concerns: Active concerns the item explicitly targets.
    """

    model_config = ConfigDict(frozen=True)

    item: CatalogItem
    score: int
    factors: FactorBreakdown
    matching_ingredients: frozenset[Ingredient] = frozenset()
    matching_concerns: frozenset[ConcernKind] = frozenset()

    @field_validator("score")
    @classmethod
    def validate_score_range(cls, v: int) -> int:
        if not 0 <= v <= 100:
            raise ValueError(f"score must be in [0, 100], got {v}.")
        return v


class RankedRecommendations(BaseModel):
    """Ranked output for one assessment.

    Attributes:
        assessment_id: Assessment the catalog was scored against.
        by_category: Category slug -> top-N recommendations, best first.
        all_items: Every in-stock item, best first, untruncated.
    """

    model_config = ConfigDict(frozen=True)

    assessment_id: str
    by_category: dict[str, list[Recommendation]]
    all_items: list[Recommendation]

    def category(self, slug: str) -> list[Recommendation]:
        """Top-N list for ``slug`` (case-insensitive); empty if absent."""
        return self.by_category.get(slug.strip().upper(), [])

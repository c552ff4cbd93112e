"""
Recommendation scoring: one catalog item against one assessment.

Score formula (sum of four factors, exactly 0–100)
--------------------------------------------------
    total = ingredient (max 50) + skin_type (max 20)
          + concern (max 20)    + bonus (max 10)

    The float total is floored to an int and clamped to [0, 100].

Factor definitions
------------------
ingredient (0–50):
    Benefit set = union of ingredients that help any of the assessment's
    active (non-zero) concerns.  Score = matched / min(|benefit set|, 5) × 50,
    capped at 50.  The denominator cap of 5 keeps one strong match from being
    diluted when many concerns are active.

skin_type (0–20):
    20 if the item declares no restriction or includes the assessment's skin
    type; 10 if the closest declared type is exactly one step away; else 0.

concern (0–20):
    Fraction of active concerns that the item explicitly targets, × 20.

bonus (0–10):
    Items specialized for deep tones get 10 when skin type >= 4, 5 otherwise;
    non-specialized items get 0.

Malformed catalog fields were already parsed to empty sets by
``CatalogItem``.  Empty ``key_ingredients`` or ``target_concerns`` score 0 on
their factor, but empty ``suitable_skin_types`` means unrestricted and earns
the full 20 on the skin-type factor.
"""

from __future__ import annotations

import math

from skin_insights.models.assessment import Assessment
from skin_insights.models.catalog import CatalogItem
from skin_insights.models.recommendation import FactorBreakdown, Recommendation
from skin_insights.taxonomy.ingredient_taxonomy import (
    Ingredient,
    find_ingredient,
    ingredients_for_concern,
)
from skin_insights.taxonomy.skin_taxonomy import ConcernKind

MAX_INGREDIENT_SCORE = 50.0
MAX_SKIN_TYPE_SCORE  = 20.0
MAX_CONCERN_SCORE    = 20.0
MAX_DEEP_TONE_BONUS  = 10.0

# Benefit-set denominator cap for the ingredient factor.
BENEFIT_SET_CAP = 5

# Skin types from here up count as the deeper half of the scale.
DEEP_TONE_MIN_SKIN_TYPE = 4


def benefit_set(concerns: list[ConcernKind]) -> frozenset[Ingredient]:
    """Union of ingredients that help any of ``concerns``."""
    result: set[Ingredient] = set()
    for concern in concerns:
        result.update(ingredients_for_concern(concern))
    return frozenset(result)


def resolve_ingredients(names: frozenset[str]) -> frozenset[Ingredient]:
    """Resolve an item's ingredient names; unknown names are dropped."""
    resolved = (find_ingredient(n) for n in names)
    return frozenset(i for i in resolved if i is not None)


def ingredient_factor(
    item_ingredients: frozenset[Ingredient],
    benefits: frozenset[Ingredient],
) -> tuple[float, frozenset[Ingredient]]:
    """Ingredient factor and the matching ingredients."""
    if not benefits:
        return 0.0, frozenset()
    matching = item_ingredients & benefits
    denominator = min(len(benefits), BENEFIT_SET_CAP)
    score = len(matching) / denominator * MAX_INGREDIENT_SCORE
    return min(score, MAX_INGREDIENT_SCORE), matching


def skin_type_factor(suitable: frozenset[int], skin_type: int) -> float:
    """Skin-type compatibility factor."""
    if not suitable or skin_type in suitable:
        return MAX_SKIN_TYPE_SCORE
    nearest = min(abs(t - skin_type) for t in suitable)
    if nearest == 1:
        return MAX_SKIN_TYPE_SCORE * 0.5
    return 0.0


def concern_factor(
    targets: frozenset[ConcernKind],
    active: list[ConcernKind],
) -> tuple[float, frozenset[ConcernKind]]:
    """Concern-targeting factor and the matching concerns."""
    if not active:
        return 0.0, frozenset()
    matching = frozenset(c for c in active if c in targets)
    return len(matching) / len(active) * MAX_CONCERN_SCORE, matching


def deep_tone_bonus(is_specialized: bool, skin_type: int) -> float:
    """Specialization bonus for deep-tone formulations."""
    if not is_specialized:
        return 0.0
    if skin_type >= DEEP_TONE_MIN_SKIN_TYPE:
        return MAX_DEEP_TONE_BONUS
    return MAX_DEEP_TONE_BONUS * 0.5


def score_item(assessment: Assessment, item: CatalogItem) -> Recommendation:
    """Score a single catalog item against an assessment.

    Pure and deterministic; never raises for catalog content.  An item with
    no matching ingredients or concerns simply scores low.
    """
    active = assessment.active_concerns

    ingredient, matching_ingredients = ingredient_factor(
        resolve_ingredients(item.key_ingredients), benefit_set(active)
    )
    skin_type = skin_type_factor(item.suitable_skin_types, assessment.skin_type)
    concern, matching_concerns = concern_factor(item.target_concerns, active)
    bonus = deep_tone_bonus(item.is_specialized_for_deep_tones, assessment.skin_type)

    factors = FactorBreakdown(
        ingredient=round(ingredient, 4),
        skin_type=skin_type,
        concern=round(concern, 4),
        bonus=bonus,
    )
    # Epsilon absorbs float error such as 29.999999999999996 before flooring.
    total = _clamp(math.floor(ingredient + skin_type + concern + bonus + 1e-9), 0, 100)

    return Recommendation(
        item=item,
        score=total,
        factors=factors,
        matching_ingredients=matching_ingredients,
        matching_concerns=matching_concerns,
    )


# ── Helper ────────────────────────────────────────────────────────────────────

def _clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))

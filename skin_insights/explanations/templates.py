"""
Deterministic explanation templates and generator prompts.

``template_explanation`` is the fallback that must always succeed: it uses
only the recommendation's own matching ingredients and concerns (no model,
no network) and always returns a non-empty string.

Wording rules for both templates and prompts: cosmetic / wellness language
only, never medical claims ("treats", "cures", "heals").
"""

from __future__ import annotations

from typing import Optional

from skin_insights.models.assessment import Assessment
from skin_insights.models.progress import ComparisonResult
from skin_insights.models.recommendation import Recommendation
from skin_insights.taxonomy.ingredient_taxonomy import INGREDIENT_PROFILES, display_name
from skin_insights.taxonomy.skin_taxonomy import (
    CATEGORY_ROUTINE_STEP,
    SKIN_TYPE_DESCRIPTIONS,
    ConcernKind,
)

RECOMMENDATION_PROMPT_TEMPLATE = """\
You are a skincare expert assistant. Explain why this product is recommended for this user in 2-3 sentences.

User's Detected Concerns: {concerns}
User's Skin Type: Type {skin_type} ({skin_type_description})

Product: {product}
Category: {category}
Key Ingredients: {ingredients}
Ingredients matching the user's concerns: {matching_ingredients}

Guidelines:
1. Focus on how the KEY INGREDIENTS address the DETECTED CONCERNS
2. Mention how it fits into their skincare routine ({routine_step} step)
3. Use cosmetic/wellness language ONLY - never medical claims (avoid "treats", "cures", "heals")
4. Keep it conversational and empowering
5. Maximum 3 sentences

Generate the explanation:"""

PROGRESS_PROMPT_TEMPLATE = """\
Generate a brief, encouraging insight about this user's skin progress.

Time period: {days} days
Health score change: {overall_delta:+d} points
Improving concerns: {improving}
Areas needing attention: {worsening}

Guidelines:
1. Be encouraging and supportive
2. Acknowledge improvements specifically
3. Give gentle suggestions for areas needing attention
4. Keep it to 2 sentences maximum
5. Use wellness language, not medical

Generate the insight:"""


def routine_step(category: str) -> str:
    return CATEGORY_ROUTINE_STEP.get(category.upper(), "skincare")


def _join_words(words: list[str]) -> str:
    """``a``, ``a and b``, ``a, b and c``."""
    if len(words) <= 1:
        return "".join(words)
    return ", ".join(words[:-1]) + " and " + words[-1]


def _ordered_concerns(
    concerns: frozenset[ConcernKind],
    assessment: Optional[Assessment],
) -> list[ConcernKind]:
    ordered = [c for c in ConcernKind if c in concerns]
    if assessment is not None:
        ordered.sort(key=lambda c: -assessment.severity(c))
    return ordered


def template_explanation(
    recommendation: Recommendation,
    assessment: Optional[Assessment] = None,
) -> str:
    """Rule-based explanation for a recommendation.

    Names up to three ingredients (matched ones first, most effective first)
    and up to two matched concerns (most severe first when ``assessment`` is
    given).

    Returns:
        Non-empty explanation text.
    """
    item = recommendation.item

    matched = sorted(
        recommendation.matching_ingredients,
        key=lambda i: (-INGREDIENT_PROFILES[i].effectiveness, i.value),
    )
    ingredient_names = [display_name(i) for i in matched]
    if not ingredient_names:
        ingredient_names = sorted(display_name(n) for n in item.key_ingredients)
    ingredient_text = _join_words(ingredient_names[:3]) or "active ingredients"

    concerns = _ordered_concerns(recommendation.matching_concerns, assessment)
    concern_text = (
        _join_words([c.display_name.lower() for c in concerns[:2]]) or "your skin concerns"
    )

    category_word = item.category.replace("_", " ").lower()
    first = f"This {category_word} contains {ingredient_text} which can help with {concern_text}."
    if item.is_specialized_for_deep_tones:
        second = (
            "It's formulated with deeper skin tones in mind and fits into your "
            f"{routine_step(item.category)} routine step."
        )
    else:
        second = f"It fits into your {routine_step(item.category)} routine step."
    return f"{first} {second}"


def build_recommendation_prompt(
    assessment: Assessment,
    recommendation: Recommendation,
) -> str:
    """Prompt for the text generator explaining one recommendation."""
    item = recommendation.item
    concerns = assessment.primary_concerns or assessment.active_concerns
    return RECOMMENDATION_PROMPT_TEMPLATE.format(
        concerns=", ".join(c.display_name for c in concerns) or "None detected",
        skin_type=assessment.skin_type,
        skin_type_description=SKIN_TYPE_DESCRIPTIONS[assessment.skin_type],
        product=item.display_label,
        category=item.category,
        ingredients=", ".join(sorted(display_name(n) for n in item.key_ingredients)) or "Not listed",
        matching_ingredients=", ".join(
            sorted(display_name(i) for i in recommendation.matching_ingredients)
        ) or "None",
        routine_step=routine_step(item.category),
    )


def build_progress_prompt(comparison: ComparisonResult) -> str:
    """Prompt for the text generator summarizing a two-scan comparison."""
    return PROGRESS_PROMPT_TEMPLATE.format(
        days=comparison.days_between,
        overall_delta=comparison.overall_delta,
        improving=", ".join(c.display_name for c in comparison.improving) or "None",
        worsening=", ".join(c.display_name for c in comparison.worsening) or "None",
    )


def validate_prompt_length(prompt: str, max_tokens: int = 512) -> bool:
    """Rough token budget check (about 4 characters per token)."""
    return len(prompt) // 4 <= max_tokens

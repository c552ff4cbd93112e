"""
Ingredient → concern benefit table.

Each ``Ingredient`` records which concerns it is known to help and an
effectiveness weight in [0, 1].  The recommendation scorer builds the
"benefit set" for an assessment from this table; explanation templates use
the display names.

The ``INGREDIENT_PROFILES`` dict is the integrity contract:
  - Every ``Ingredient`` must have exactly one profile.
  - Every ``ConcernKind`` must be helped by at least one ingredient.

Run ``tests/test_taxonomy/test_ingredient_taxonomy.py`` to verify it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from skin_insights.taxonomy.skin_taxonomy import ConcernKind

_HP  = ConcernKind.HYPERPIGMENTATION
_AC  = ConcernKind.ACNE
_DR  = ConcernKind.DRYNESS
_OI  = ConcernKind.OILINESS
_WR  = ConcernKind.WRINKLES


class Ingredient(StrEnum):
    """Canonical key-ingredient identifier."""

    NIACINAMIDE      = "NIACINAMIDE"
    VITAMIN_C        = "VITAMIN_C"
    ALPHA_ARBUTIN    = "ALPHA_ARBUTIN"
    KOJIC_ACID       = "KOJIC_ACID"
    TRANEXAMIC_ACID  = "TRANEXAMIC_ACID"
    AZELAIC_ACID     = "AZELAIC_ACID"
    HYALURONIC_ACID  = "HYALURONIC_ACID"
    GLYCERIN         = "GLYCERIN"
    CERAMIDES        = "CERAMIDES"
    SQUALANE         = "SQUALANE"
    SHEA_BUTTER      = "SHEA_BUTTER"
    SALICYLIC_ACID   = "SALICYLIC_ACID"
    BENZOYL_PEROXIDE = "BENZOYL_PEROXIDE"
    TEA_TREE_OIL     = "TEA_TREE_OIL"
    ZINC             = "ZINC"
    KAOLIN           = "KAOLIN"
    RETINOL          = "RETINOL"
    PEPTIDES         = "PEPTIDES"
    BAKUCHIOL        = "BAKUCHIOL"


@dataclass(frozen=True)
class IngredientProfile:
    """Reference data for one ingredient.

    Attributes:
        display_name:  Human-readable name used in explanations.
        aliases:       Alternative INCI / marketing names that resolve here.
        description:   One-line summary of what it does.
        concerns:      Concerns this ingredient helps.
        effectiveness: Relative effectiveness weight, 0–1.
    """

    display_name:  str
    aliases:       tuple[str, ...]
    description:   str
    concerns:      frozenset[ConcernKind]
    effectiveness: float = 0.8


INGREDIENT_PROFILES: dict[Ingredient, IngredientProfile] = {
    # ── Hyperpigmentation ────────────────────────────────────────────────────
    Ingredient.NIACINAMIDE: IngredientProfile(
        "Niacinamide (Vitamin B3)", ("Nicotinamide", "Vitamin B3"),
        "Reduces melanin transfer, brightens skin, strengthens barrier",
        frozenset({_HP, _OI, _AC}), 0.95,
    ),
    Ingredient.VITAMIN_C: IngredientProfile(
        "Vitamin C",
        ("Ascorbic Acid", "L-Ascorbic Acid", "Sodium Ascorbyl Phosphate", "Ascorbyl Glucoside"),
        "Antioxidant, brightens, protects against sun damage",
        frozenset({_HP, _WR}), 0.90,
    ),
    Ingredient.ALPHA_ARBUTIN: IngredientProfile(
        "Alpha Arbutin", ("Arbutin",),
        "Inhibits tyrosinase to reduce dark spots",
        frozenset({_HP}), 0.88,
    ),
    Ingredient.KOJIC_ACID: IngredientProfile(
        "Kojic Acid", (),
        "Natural brightener derived from fungi",
        frozenset({_HP}), 0.82,
    ),
    Ingredient.TRANEXAMIC_ACID: IngredientProfile(
        "Tranexamic Acid", (),
        "Reduces melanin production, effective for melasma",
        frozenset({_HP}), 0.85,
    ),
    Ingredient.AZELAIC_ACID: IngredientProfile(
        "Azelaic Acid", (),
        "Evens tone, calms redness and congestion",
        frozenset({_HP, _AC}), 0.87,
    ),
    # ── Hydration ────────────────────────────────────────────────────────────
    Ingredient.HYALURONIC_ACID: IngredientProfile(
        "Hyaluronic Acid", ("Sodium Hyaluronate", "HA"),
        "Binds water for deep hydration",
        frozenset({_DR, _WR}), 0.95,
    ),
    Ingredient.GLYCERIN: IngredientProfile(
        "Glycerin", ("Glycerol",),
        "Humectant that draws moisture to skin",
        frozenset({_DR}), 0.90,
    ),
    Ingredient.CERAMIDES: IngredientProfile(
        "Ceramides", (),
        "Restores skin barrier, locks in moisture",
        frozenset({_DR}), 0.92,
    ),
    Ingredient.SQUALANE: IngredientProfile(
        "Squalane", (),
        "Lightweight oil that mimics natural sebum",
        frozenset({_DR}), 0.85,
    ),
    Ingredient.SHEA_BUTTER: IngredientProfile(
        "Shea Butter", ("Butyrospermum Parkii",),
        "Rich emollient moisturizer",
        frozenset({_DR}), 0.88,
    ),
    # ── Acne ─────────────────────────────────────────────────────────────────
    Ingredient.SALICYLIC_ACID: IngredientProfile(
        "Salicylic Acid", ("BHA", "Beta Hydroxy Acid"),
        "Penetrates pores, clears congestion",
        frozenset({_AC, _OI}), 0.90,
    ),
    Ingredient.BENZOYL_PEROXIDE: IngredientProfile(
        "Benzoyl Peroxide", (),
        "Targets acne bacteria, reduces inflammation",
        frozenset({_AC}), 0.88,
    ),
    Ingredient.TEA_TREE_OIL: IngredientProfile(
        "Tea Tree Oil", ("Melaleuca Alternifolia",),
        "Natural antibacterial and soothing oil",
        frozenset({_AC}), 0.75,
    ),
    Ingredient.ZINC: IngredientProfile(
        "Zinc", ("Zinc Oxide", "Zinc PCA"),
        "Reduces sebum, soothes skin",
        frozenset({_AC, _OI}), 0.80,
    ),
    # ── Oil control ──────────────────────────────────────────────────────────
    Ingredient.KAOLIN: IngredientProfile(
        "Kaolin Clay", ("Kaolin",),
        "Absorbs excess oil without over-drying",
        frozenset({_OI}), 0.82,
    ),
    # ── Anti-aging ───────────────────────────────────────────────────────────
    Ingredient.RETINOL: IngredientProfile(
        "Retinol", ("Vitamin A", "Retinyl Palmitate", "Retinal"),
        "Increases cell turnover",
        frozenset({_WR, _HP}), 0.95,
    ),
    Ingredient.PEPTIDES: IngredientProfile(
        "Peptides", ("Palmitoyl Tripeptide", "Matrixyl", "Copper Peptides"),
        "Signal skin to produce collagen",
        frozenset({_WR}), 0.85,
    ),
    Ingredient.BAKUCHIOL: IngredientProfile(
        "Bakuchiol", (),
        "Plant-based, gentler retinol alternative",
        frozenset({_WR}), 0.80,
    ),
}


# Lookup index: upper-cased id / display name / alias -> Ingredient
_NAME_INDEX: dict[str, Ingredient] = {}
for _ing, _profile in INGREDIENT_PROFILES.items():
    for _name in (_ing.value, _ing.value.replace("_", " "), _profile.display_name, *_profile.aliases):
        _NAME_INDEX.setdefault(_name.strip().upper(), _ing)


def find_ingredient(name: str) -> Ingredient | None:
    """Resolve a name, display name or alias (case-insensitive) to an ``Ingredient``."""
    if not isinstance(name, str):
        return None
    return _NAME_INDEX.get(name.strip().upper())


def ingredients_for_concern(concern: ConcernKind) -> list[Ingredient]:
    """Ingredients that help ``concern``, most effective first.

    Ties keep declaration order.
    """
    helpful = [i for i, p in INGREDIENT_PROFILES.items() if concern in p.concerns]
    return sorted(helpful, key=lambda i: -INGREDIENT_PROFILES[i].effectiveness)


def display_name(ingredient: Ingredient | str) -> str:
    """Display name for an ingredient id, or the input unchanged if unknown."""
    resolved = ingredient if isinstance(ingredient, Ingredient) else find_ingredient(ingredient)
    if resolved is None:
        return str(ingredient)
    return INGREDIENT_PROFILES[resolved].display_name

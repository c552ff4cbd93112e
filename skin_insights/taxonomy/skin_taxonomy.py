"""
Skin taxonomy: the closed sets of concerns, facial zones and product
categories the engine understands.

Raw data arrives as loosely-typed strings (model labels, serialized catalog
columns, persisted JSON).  The ``parse_*`` helpers in this module are total:
they never raise, and anything they cannot recognise is dropped rather than
guessed.

This module has NO imports from any other ``skin_insights`` package.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from enum import StrEnum
from typing import Any


class ConcernKind(StrEnum):
    """Skin condition scored by severity in [0, 1].

    Member order is the column order of the model's concern vector and of each
    row of the zone × concern matrix.
    """

    HYPERPIGMENTATION = "HYPERPIGMENTATION"
    """Uneven skin tone or dark patches."""

    ACNE = "ACNE"
    """Pimples, blackheads or breakouts."""

    DRYNESS = "DRYNESS"
    """Flaky, rough or tight skin."""

    OILINESS = "OILINESS"
    """Excess sebum or shiny appearance."""

    WRINKLES = "WRINKLES"
    """Fine lines or signs of aging."""

    @property
    def display_name(self) -> str:
        return CONCERN_DISPLAY_NAMES[self]


class ZoneKind(StrEnum):
    """Facial region used for spatially-resolved concern scoring.

    Member order is the row order of the model's zone × concern matrix.
    """

    FOREHEAD = "FOREHEAD"
    LEFT_CHEEK = "LEFT_CHEEK"
    RIGHT_CHEEK = "RIGHT_CHEEK"
    NOSE = "NOSE"
    CHIN = "CHIN"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


class ProductCategory(StrEnum):
    """Routine step a catalog item belongs to."""

    CLEANSER = "CLEANSER"
    SERUM = "SERUM"
    MOISTURIZER = "MOISTURIZER"
    SUNSCREEN = "SUNSCREEN"
    TREATMENT = "TREATMENT"
    TONER = "TONER"
    MASK = "MASK"
    EXFOLIATOR = "EXFOLIATOR"
    EYE_CREAM = "EYE_CREAM"
    OIL = "OIL"


CONCERN_DISPLAY_NAMES: dict[ConcernKind, str] = {
    ConcernKind.HYPERPIGMENTATION: "Dark Spots",
    ConcernKind.ACNE:              "Acne",
    ConcernKind.DRYNESS:           "Dryness",
    ConcernKind.OILINESS:          "Oiliness",
    ConcernKind.WRINKLES:          "Fine Lines",
}

# Routine-step wording used by explanation templates.
CATEGORY_ROUTINE_STEP: dict[str, str] = {
    ProductCategory.CLEANSER:    "cleansing",
    ProductCategory.SERUM:       "treatment",
    ProductCategory.MOISTURIZER: "moisturizing",
    ProductCategory.SUNSCREEN:   "sun protection",
    ProductCategory.TREATMENT:   "targeted treatment",
}

SKIN_TYPES: tuple[int, ...] = (1, 2, 3, 4, 5, 6)

SKIN_TYPE_DESCRIPTIONS: dict[int, str] = {
    1: "Very fair, always burns",
    2: "Fair, usually burns",
    3: "Medium, sometimes burns",
    4: "Olive, rarely burns",
    5: "Brown, very rarely burns",
    6: "Dark brown/black, never burns",
}


# ── Total parsers ─────────────────────────────────────────────────────────────

def _as_items(raw: Any) -> list[Any]:
    """Turn a JSON array string or an iterable into a plain list.

    Unparseable strings and scalars produce ``[]``.
    """
    if raw is None:
        return []
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return []
        try:
            decoded = json.loads(text)
        except ValueError:
            return []
        return decoded if isinstance(decoded, list) else []
    if isinstance(raw, dict):
        return []
    if isinstance(raw, Iterable):
        return list(raw)
    return []


def parse_concern(value: Any) -> ConcernKind | None:
    """Map one label to a ``ConcernKind`` (case-insensitive), or ``None``."""
    if isinstance(value, ConcernKind):
        return value
    if not isinstance(value, str):
        return None
    try:
        return ConcernKind(value.strip().upper())
    except ValueError:
        return None


def parse_zone(value: Any) -> ZoneKind | None:
    """Map one label to a ``ZoneKind`` (case/space-insensitive), or ``None``."""
    if isinstance(value, ZoneKind):
        return value
    if not isinstance(value, str):
        return None
    try:
        return ZoneKind(value.strip().upper().replace(" ", "_"))
    except ValueError:
        return None


def parse_concerns(raw: Any) -> frozenset[ConcernKind]:
    """Parse a concern list (JSON string or iterable) into a set.

    Unknown labels are dropped; unparseable input yields an empty set.
    """
    parsed = (parse_concern(v) for v in _as_items(raw))
    return frozenset(c for c in parsed if c is not None)


def parse_strings(raw: Any) -> frozenset[str]:
    """Parse a string list (JSON string or iterable) into a set of stripped,
    non-empty strings.  Non-string elements are dropped."""
    return frozenset(
        v.strip() for v in _as_items(raw) if isinstance(v, str) and v.strip()
    )


def parse_skin_types(raw: Any) -> frozenset[int]:
    """Parse a skin-type list into a set of ints within 1–6.

    Out-of-range values, booleans and non-numeric elements are dropped.
    """
    result: set[int] = set()
    for v in _as_items(raw):
        if isinstance(v, bool):
            continue
        try:
            st = int(v)
        except (TypeError, ValueError):
            continue
        if st in SKIN_TYPES:
            result.add(st)
    return frozenset(result)

"""
Catalog item model — immutable product reference data.

Catalog rows often come from storage where list-valued columns are
serialized JSON strings (``'["NIACINAMIDE", "ZINC"]'``).  The ``mode="before"``
validators below accept either real collections or such strings and are
total: anything unparseable becomes an empty set, so one malformed row only
contributes zero to the affected scoring factor instead of failing the whole
catalog.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from skin_insights.taxonomy.skin_taxonomy import (
    ConcernKind,
    parse_concerns,
    parse_skin_types,
    parse_strings,
)

logger = logging.getLogger(__name__)


class CatalogItem(BaseModel):
    """A product that can be recommended.

    Attributes:
        item_id: Stable product identifier.
        category: Routine-step category slug, upper-cased (e.g. ``"SERUM"``).
        key_ingredients: Ingredient ids or names; resolved by the scorer.
        target_concerns: Concerns the product explicitly targets.
        suitable_skin_types: Declared skin types 1–6; empty means unrestricted.
        is_specialized_for_deep_tones: Formulated for skin types 4–6.
        in_stock: Only in-stock items participate in ranking.
        name: Display name.
        brand: Brand name.
        price: Retail price in the catalog currency, or ``None``.
        retailers: Retailer slugs stocking the item.
        is_local_brand: Locally produced brand flag.
    """

    model_config = ConfigDict(frozen=True)

    item_id: str
    category: str
    key_ingredients: frozenset[str] = frozenset()
    target_concerns: frozenset[ConcernKind] = frozenset()
    suitable_skin_types: frozenset[int] = frozenset()
    is_specialized_for_deep_tones: bool = False
    in_stock: bool = True
    name: str = ""
    brand: str = ""
    price: Optional[float] = None
    retailers: frozenset[str] = frozenset()
    is_local_brand: bool = False

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v: Any) -> str:
        text = str(v or "").strip().upper()
        return text or "OTHER"

    @field_validator("key_ingredients", "retailers", mode="before")
    @classmethod
    def parse_string_set(cls, v: Any) -> frozenset[str]:
        parsed = parse_strings(v)
        if v and not parsed:
            logger.debug("Unparseable string list %r treated as empty.", v)
        return parsed

    @field_validator("target_concerns", mode="before")
    @classmethod
    def parse_concern_set(cls, v: Any) -> frozenset[ConcernKind]:
        parsed = parse_concerns(v)
        if v and not parsed:
            logger.debug("Unparseable concern list %r treated as empty.", v)
        return parsed

    @field_validator("suitable_skin_types", mode="before")
    @classmethod
    def parse_skin_type_set(cls, v: Any) -> frozenset[int]:
        return parse_skin_types(v)

    @field_validator("price")
    @classmethod
    def validate_price_non_negative(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v < 0:
            raise ValueError("price must be non-negative.")
        return v

    @property
    def display_label(self) -> str:
        """``"Brand Name"`` when both are known, else whichever is set, else the id."""
        label = " ".join(p for p in (self.brand, self.name) if p)
        return label or self.item_id

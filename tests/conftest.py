"""
Shared pytest fixtures for the Skin Insights test suite.

Provides:
  - ``make_assessment``: factory for ``Assessment`` objects with sensible
    defaults; pass only the fields a test cares about.
  - ``make_item``: factory for ``CatalogItem`` objects.
  - ``fixed_now``: a fixed aware UTC datetime used as "now" across tests.
  - ``FakeClock``: manually advanced clock for TTL tests.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from skin_insights.models.assessment import Assessment
from skin_insights.models.catalog import CatalogItem
from skin_insights.taxonomy.skin_taxonomy import ConcernKind

FIXED_NOW = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = FIXED_NOW) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


def build_assessment(
    severities: dict[ConcernKind, float] | None = None,
    *,
    assessment_id: str = "a-1",
    captured_at: datetime = FIXED_NOW,
    skin_type: int = 3,
    skin_type_confidence: float = 0.9,
    **kwargs,
) -> Assessment:
    return Assessment(
        assessment_id=assessment_id,
        captured_at=captured_at,
        concern_severity=severities if severities is not None else {},
        skin_type=skin_type,
        skin_type_confidence=skin_type_confidence,
        **kwargs,
    )


def build_item(item_id: str = "item-1", category: str = "SERUM", **kwargs) -> CatalogItem:
    return CatalogItem(item_id=item_id, category=category, **kwargs)


@pytest.fixture
def make_assessment():
    """Factory fixture: ``make_assessment({ConcernKind.ACNE: 0.6}, skin_type=5)``."""
    return build_assessment


@pytest.fixture
def make_item():
    """Factory fixture: ``make_item("x", "SERUM", key_ingredients=["ZINC"])``."""
    return build_item

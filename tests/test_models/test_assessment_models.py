"""
Tests for skin_insights/models (assessment, catalog, recommendation, explanation).

What we test
------------
Assessment:
  - Severities and confidence must lie in [0, 1]; skin type in 1–6.
  - severity() reads a missing concern as 0.0; active_concerns keeps order.
  - Frozen: attribute assignment raises.
  - Unknown concern and zone labels are dropped on load, not rejected.
CatalogItem:
  - Category is upper-cased; empty category becomes OTHER.
  - JSON-string list fields are parsed; garbage becomes an empty set.
Recommendation:
  - score outside [0, 100] is rejected.
CachedExplanation:
  - Blank text is rejected.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from skin_insights.models.catalog import CatalogItem
from skin_insights.models.explanation import CachedExplanation
from skin_insights.models.recommendation import FactorBreakdown, Recommendation
from skin_insights.taxonomy.skin_taxonomy import ConcernKind, ZoneKind

_NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)


class TestAssessment:
    def test_valid(self, make_assessment):
        a = make_assessment({ConcernKind.ACNE: 0.5})
        assert a.severity(ConcernKind.ACNE) == pytest.approx(0.5)

    def test_missing_concern_reads_zero(self, make_assessment):
        a = make_assessment({ConcernKind.ACNE: 0.5})
        assert a.severity(ConcernKind.DRYNESS) == 0.0

    def test_active_concerns_in_enum_order(self, make_assessment):
        a = make_assessment(
            {ConcernKind.WRINKLES: 0.2, ConcernKind.ACNE: 0.4, ConcernKind.DRYNESS: 0.0}
        )
        assert a.active_concerns == [ConcernKind.ACNE, ConcernKind.WRINKLES]

    @pytest.mark.parametrize("bad", [-0.1, 1.1])
    def test_severity_out_of_range_rejected(self, make_assessment, bad):
        with pytest.raises(ValidationError):
            make_assessment({ConcernKind.ACNE: bad})

    @pytest.mark.parametrize("bad", [0, 7])
    def test_skin_type_out_of_range_rejected(self, make_assessment, bad):
        with pytest.raises(ValidationError):
            make_assessment({}, skin_type=bad)

    def test_confidence_out_of_range_rejected(self, make_assessment):
        with pytest.raises(ValidationError):
            make_assessment({}, skin_type_confidence=1.5)

    def test_health_score_range(self, make_assessment):
        with pytest.raises(ValidationError):
            make_assessment({}, health_score=101)

    def test_blank_id_rejected(self, make_assessment):
        with pytest.raises(ValidationError):
            make_assessment({}, assessment_id="  ")

    def test_frozen(self, make_assessment):
        a = make_assessment({})
        with pytest.raises(ValidationError):
            a.skin_type = 5

    def test_json_round_trip_keeps_enum_keys(self, make_assessment):
        a = make_assessment({ConcernKind.ACNE: 0.3})
        restored = type(a).model_validate(a.model_dump(mode="json"))
        assert restored == a

    def test_unknown_concern_keys_dropped(self, make_assessment):
        a = make_assessment({"ACNE": 0.3, "REDNESS": 0.2})
        assert a.concern_severity == {ConcernKind.ACNE: 0.3}

    def test_unknown_zone_and_concern_keys_dropped(self, make_assessment):
        a = make_assessment(
            {},
            zone_severity={
                "forehead": {"ACNE": 0.4, "REDNESS": 0.9},
                "SCALP": {"ACNE": 0.1},
            },
        )
        assert a.zone_severity == {ZoneKind.FOREHEAD: {ConcernKind.ACNE: 0.4}}

    def test_unknown_primary_concerns_dropped(self, make_assessment):
        a = make_assessment({}, primary_concerns=["ACNE", "REDNESS"])
        assert a.primary_concerns == [ConcernKind.ACNE]

    def test_json_string_severity_map_parsed(self, make_assessment):
        a = make_assessment('{"DRYNESS": 0.5, "GLOW": 1}')
        assert a.concern_severity == {ConcernKind.DRYNESS: 0.5}

    def test_non_mapping_severity_becomes_empty(self, make_assessment):
        assert make_assessment("not json").concern_severity == {}


class TestCatalogItem:
    def test_category_upper_cased(self):
        assert CatalogItem(item_id="x", category=" serum ").category == "SERUM"

    def test_empty_category_becomes_other(self):
        assert CatalogItem(item_id="x", category="").category == "OTHER"

    def test_json_string_fields_parsed(self):
        item = CatalogItem(
            item_id="x",
            category="SERUM",
            key_ingredients='["NIACINAMIDE", "ZINC"]',
            target_concerns='["ACNE"]',
            suitable_skin_types="[4, 5]",
        )
        assert item.key_ingredients == {"NIACINAMIDE", "ZINC"}
        assert item.target_concerns == {ConcernKind.ACNE}
        assert item.suitable_skin_types == {4, 5}

    def test_malformed_fields_become_empty(self):
        item = CatalogItem(
            item_id="x",
            category="SERUM",
            key_ingredients="[broken",
            target_concerns="{oops}",
            suitable_skin_types="nope",
        )
        assert item.key_ingredients == frozenset()
        assert item.target_concerns == frozenset()
        assert item.suitable_skin_types == frozenset()

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            CatalogItem(item_id="x", category="SERUM", price=-1.0)

    def test_display_label(self):
        assert CatalogItem(item_id="x", category="S", brand="Acme", name="Glow").display_label == "Acme Glow"
        assert CatalogItem(item_id="x", category="S").display_label == "x"


class TestRecommendation:
    def _factors(self) -> FactorBreakdown:
        return FactorBreakdown(ingredient=10.0, skin_type=20.0, concern=0.0, bonus=0.0)

    def test_factor_total(self):
        assert self._factors().total == pytest.approx(30.0)

    @pytest.mark.parametrize("bad", [-1, 101])
    def test_score_range(self, bad):
        with pytest.raises(ValidationError):
            Recommendation(
                item=CatalogItem(item_id="x", category="SERUM"),
                score=bad,
                factors=self._factors(),
            )


class TestCachedExplanation:
    def test_blank_text_rejected(self):
        with pytest.raises(ValidationError):
            CachedExplanation(key="k", text="   ", generated_at=_NOW, is_generator_backed=True)

    def test_text_stripped(self):
        e = CachedExplanation(key="k", text=" hi ", generated_at=_NOW, is_generator_backed=False)
        assert e.text == "hi"

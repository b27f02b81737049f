"""Tests for wire-record adaptation and attribute normalization."""

from __future__ import annotations

import logging

import pytest

from padel_client.adapter import (
    adapt_many,
    adapt_racket,
    decode_similar_items,
    normalize_category,
    rackets_from_envelope,
)
from padel_client.models import Attribute, RacketMetrics, RacketRecord


def _raw(racket_id: int = 1, **overrides) -> dict:
    raw = {
        "id": racket_id,
        "name": f"Racket {racket_id}",
        "brand": "Nox",
        "url_image": f"https://img.example/{racket_id}.png",
        "url_shop": f"https://shop.example/{racket_id}",
        "balance": "medium",
        "weight": 365,
        "shape": "teardrop",
        "metrics": {
            "Maniability": 7.5,
            "Weight": 6,
            "Effect": 8,
            "Tolerance": 7,
            "Power": 9.2,
            "Control": 6.5,
        },
    }
    raw.update(overrides)
    return raw


# ---------------------------------------------------------------------------
# normalize_category
# ---------------------------------------------------------------------------


class TestNormalizeCategory:
    @pytest.mark.parametrize("attribute", list(Attribute))
    @pytest.mark.parametrize("transform", [str, str.lower, str.upper, str.swapcase])
    def test_any_casing_resolves_to_canonical(self, attribute, transform) -> None:
        assert normalize_category(transform(attribute.value)) is attribute

    def test_exact_match_returns_same_value(self) -> None:
        assert normalize_category("Control") == "Control"

    def test_attribute_instance_passes_through(self) -> None:
        assert normalize_category(Attribute.EFFECT) is Attribute.EFFECT

    @pytest.mark.parametrize("value", ["speed", "", "  power  ", "Powerful", None, 42])
    def test_unrecognized_defaults_to_power(self, value, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            assert normalize_category(value) is Attribute.POWER
        assert "defaulting to Power" in caplog.text

    def test_recognized_input_does_not_warn(self, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            normalize_category("tolerance")
        assert caplog.text == ""


# ---------------------------------------------------------------------------
# adapt_racket
# ---------------------------------------------------------------------------


class TestAdaptRacket:
    def test_renames_wire_fields(self) -> None:
        racket = adapt_racket(_raw(7))
        assert racket == RacketRecord(
            id=7,
            name="Racket 7",
            brand="Nox",
            image_url="https://img.example/7.png",
            store_url="https://shop.example/7",
            balance="medium",
            weight=365,
            shape="teardrop",
            metrics=RacketMetrics(
                Maniability=7.5, Weight=6, Effect=8, Tolerance=7, Power=9.2, Control=6.5,
            ),
            similarity_score=None,
        )

    def test_missing_metrics_default_to_zero(self) -> None:
        racket = adapt_racket(_raw(metrics={"Power": 8}))
        assert racket.metrics.Power == 8
        assert racket.metrics.Control == 0
        assert racket.metrics.Maniability == 0

    def test_no_metrics_object(self) -> None:
        raw = _raw()
        del raw["metrics"]
        assert adapt_racket(raw).metrics == RacketMetrics()

    def test_null_and_non_numeric_metrics_become_zero(self) -> None:
        racket = adapt_racket(_raw(metrics={"Power": None, "Control": "n/a", "Effect": "7.5"}))
        assert racket.metrics.Power == 0
        assert racket.metrics.Control == 0
        assert racket.metrics.Effect == 7.5

    def test_flattened_record_metrics(self) -> None:
        racket = adapt_racket({"id": 3, "imageUrl": "i", "storeUrl": "s", "Power": 9, "Weight": 5, "weight": 360})
        assert racket.image_url == "i"
        assert racket.store_url == "s"
        assert racket.metrics.Power == 9
        assert racket.metrics.Weight == 5
        assert racket.weight == 360

    def test_similarity_score_passes_through(self) -> None:
        racket = adapt_racket(_raw(similarityScore=0.87))
        assert racket.similarity_score == 0.87
        assert racket.similarity_percent == 87.0

    def test_to_dict_uses_canonical_names_only(self) -> None:
        data = adapt_racket(_raw()).to_dict()
        assert "url_image" not in data
        assert "url_shop" not in data
        assert data["imageUrl"] == "https://img.example/1.png"
        assert data["metrics"]["Power"] == 9.2


# ---------------------------------------------------------------------------
# adapt_many / envelopes
# ---------------------------------------------------------------------------


class TestAdaptMany:
    def test_maps_each_record(self) -> None:
        rackets = adapt_many([_raw(1), _raw(2)])
        assert [r.id for r in rackets] == [1, 2]

    @pytest.mark.parametrize("value", [None, {"id": 1}, "rackets", 3])
    def test_non_list_returns_empty(self, value, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            assert adapt_many(value) == []
        assert "expected a list" in caplog.text

    def test_skips_non_mapping_entries(self) -> None:
        assert [r.id for r in adapt_many([_raw(1), None, "x", _raw(2)])] == [1, 2]

    def test_envelope(self) -> None:
        assert [r.id for r in rackets_from_envelope({"rackets": [_raw(4)]})] == [4]

    def test_envelope_missing_key(self) -> None:
        assert rackets_from_envelope({"message": "ok"}) == []

    def test_envelope_bare_list(self) -> None:
        assert [r.id for r in rackets_from_envelope([_raw(5)])] == [5]


# ---------------------------------------------------------------------------
# Similar items
# ---------------------------------------------------------------------------


class TestDecodeSimilarItems:
    def test_mapping_matches_list(self) -> None:
        first = _raw(1, similarityScore=0.9)
        second = _raw(2, similarityScore=0.8)
        from_mapping = decode_similar_items({"a": first, "b": second})
        from_list = decode_similar_items([first, second])
        assert len(from_mapping) == 2
        assert from_mapping == from_list

    def test_mapping_keeps_document_order(self) -> None:
        decoded = decode_similar_items({"z": _raw(9), "a": _raw(3)})
        assert [r.id for r in decoded] == [9, 3]

    @pytest.mark.parametrize("value", [None, "oops", 12, True])
    def test_unrecognized_shape_is_empty(self, value, caplog) -> None:
        with caplog.at_level(logging.ERROR):
            assert decode_similar_items(value) == []
        assert "unexpected similar rackets format" in caplog.text

"""
Spot Schema Tests
=================
Tests for lenient parsing of model-generated spots and request bodies.
"""

import pytest
from pydantic import ValidationError

from backend.schemas.spots import GenerateSpotsRequest, TouristSpot, coerce_rating


class TestTouristSpot:
    """Tests for spot validation."""

    def test_minimal_spot(self):
        spot = TouristSpot.model_validate({"id": "a", "name": "Fort San Pedro"})

        assert spot.rating == 0
        assert spot.review_count == 0
        assert spot.coordinates is None

    @pytest.mark.parametrize(
        "coordinates",
        [{"lat": 10.3, "lng": None}, {"lat": 10.3}, {"lat": 123, "lng": 10}, "10.3, 123.9", []],
    )
    def test_invalid_coordinates_dropped(self, coordinates):
        spot = TouristSpot.model_validate({"id": "a", "name": "Fort", "coordinates": coordinates})

        assert spot.coordinates is None

    def test_valid_coordinates_kept(self):
        spot = TouristSpot.model_validate(
            {"id": "a", "name": "Fort", "coordinates": {"lat": 10.29, "lng": 123.9}}
        )

        assert (spot.coordinates.lat, spot.coordinates.lng) == (10.29, 123.9)

    @pytest.mark.parametrize(
        "raw, expected",
        [("2,847", 2847), ("about 120 reviews", 120), (-4, 0), (12.7, 12), ("none", 0)],
    )
    def test_review_count_parsed(self, raw, expected: int):
        spot = TouristSpot.model_validate({"id": "a", "name": "Fort", "reviewCount": raw})

        assert spot.review_count == expected

    def test_null_fields_use_defaults(self):
        spot = TouristSpot.model_validate(
            {"id": "a", "name": "Fort", "description": None, "tags": None, "reviews": None}
        )

        assert spot.description == ""
        assert spot.tags == []
        assert spot.reviews == []

    def test_malformed_list_items_skipped(self):
        spot = TouristSpot.model_validate(
            {
                "id": "a",
                "name": "Fort",
                "reviews": ["great", {"author": "Ana", "rating": 9}],
                "highlights": ["Walls", {"x": 1}, 1565],
            }
        )

        assert [review.author for review in spot.reviews] == ["Ana"]
        assert spot.reviews[0].rating == 5
        assert spot.highlights == ["Walls", "1565"]

    @pytest.mark.parametrize("data", [{"name": "Fort"}, {"id": "a"}, {"id": "", "name": "Fort"}, "spot"])
    def test_identity_required(self, data):
        with pytest.raises(ValidationError):
            TouristSpot.model_validate(data)


class TestCoerceRating:
    """Tests for rating coercion."""

    @pytest.mark.parametrize(
        "raw, expected",
        [(4.5, 4.5), ("4.2", 4.2), (7, 5.0), (-1, 0.0), ("n/a", 0.0), (None, 0.0), (float("nan"), 0.0)],
    )
    def test_coerced_into_range(self, raw, expected: float):
        assert coerce_rating(raw) == expected


class TestGenerateSpotsRequest:
    """Tests for the generation request body."""

    @pytest.mark.parametrize("data", [{}, {"address": None}, {"address": 42}, {"address": ["Cebu"]}])
    def test_unusable_address_reads_as_missing(self, data: dict):
        assert GenerateSpotsRequest.model_validate(data).address is None

    def test_address_kept(self):
        assert GenerateSpotsRequest.model_validate({"address": "Cebu City"}).address == "Cebu City"

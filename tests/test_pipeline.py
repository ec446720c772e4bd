"""Tests for the filter, sort and group pipeline."""

from pathlib import Path

import pytest

from parkfinder.catalog import Catalog, load_catalog
from parkfinder.models import Coordinate, Park
from parkfinder.pipeline import (
    DISTANCE_BUCKET,
    RatingGroup,
    SortKey,
    collation_key,
    filter_by_rating,
    group_by_rating,
    process,
    rating_bucket,
    sort_parks,
)

TRAFALGAR = Coordinate(latitude=51.5074, longitude=-0.1278)


def make_park(name: str, rating: float, coordinates: Coordinate | None = None) -> Park:
    return Park(key=name.lower().replace(" ", "-"), name=name, rating=rating, coordinates=coordinates)


@pytest.fixture
def scenario_catalog():
    """Three central parks (4.0, 4.0, 2.0) and one north park (3.0)."""
    return Catalog.from_dict(
        {
            "areas": [
                {"id": "central", "name": "CENTRAL LONDON"},
                {"id": "north", "name": "NORTH LONDON"},
            ],
            "parks": {
                "central": [
                    {"name": "Alpha Bars", "rating": 4.0},
                    {"name": "Beta Rings", "rating": 4.0},
                    {"name": "Gamma Trail", "rating": 2.0},
                ],
                "north": [
                    {"name": "Delta Green", "rating": 3.0},
                ],
            },
        }
    )


class TestRatingBucket:
    """Tests for rating_bucket."""

    @pytest.mark.parametrize(
        "rating,bucket",
        [(0.0, 0), (2.0, 2), (3.9, 3), (4.0, 4), (4.5, 4), (5.0, 5)],
    )
    def test_floors_rating(self, rating, bucket):
        assert rating_bucket(rating) == bucket


class TestFilterByRating:
    """Tests for filter_by_rating."""

    def test_empty_selection_keeps_everything(self):
        parks = [make_park("A", 1.0), make_park("B", 4.5)]
        assert filter_by_rating(parks, set()) == parks

    def test_uses_floor_not_round(self):
        parks = [make_park("Almost Four", 3.9), make_park("Four", 4.0)]
        assert [p.name for p in filter_by_rating(parks, {3})] == ["Almost Four"]
        assert [p.name for p in filter_by_rating(parks, {4})] == ["Four"]

    def test_multiple_buckets(self):
        parks = [make_park("A", 1.5), make_park("B", 2.5), make_park("C", 3.5)]
        assert [p.name for p in filter_by_rating(parks, {1, 3})] == ["A", "C"]

    def test_idempotent(self):
        parks = [make_park(f"P{i}", r) for i, r in enumerate([1.0, 2.2, 3.9, 4.0, 4.8])]
        once = filter_by_rating(parks, {3, 4})
        assert filter_by_rating(once, {3, 4}) == once


class TestSortParks:
    """Tests for sort_parks."""

    def test_rating_descending_and_stable(self):
        parks = [
            make_park("First Four", 4.0),
            make_park("Two", 2.0),
            make_park("Second Four", 4.0),
            make_park("Top", 4.8),
        ]
        result = sort_parks(parks, SortKey.RATING)
        assert [p.name for p in result] == ["Top", "First Four", "Second Four", "Two"]

    def test_name_case_insensitive(self):
        parks = [make_park("banana", 1.0), make_park("Apple", 1.0), make_park("cherry", 1.0)]
        result = sort_parks(parks, SortKey.NAME)
        assert [p.name for p in result] == ["Apple", "banana", "cherry"]

    def test_name_ignores_accents(self):
        parks = [make_park("Zebra", 1.0), make_park("Élan Park", 1.0), make_park("Eagle", 1.0)]
        result = sort_parks(parks, SortKey.NAME)
        assert [p.name for p in result] == ["Eagle", "Élan Park", "Zebra"]

    def test_name_sort_twice_is_stable(self):
        parks = [make_park("b", 1.0), make_park("B", 2.0), make_park("a", 3.0)]
        once = sort_parks(parks, SortKey.NAME)
        assert sort_parks(once, SortKey.NAME) == once
        assert [p.rating for p in once] == [3.0, 1.0, 2.0]

    def test_distance_puts_identical_coordinate_first(self):
        parks = [
            make_park("Far", 3.0, Coordinate(51.60, -0.20)),
            make_park("Near", 3.0, Coordinate(51.51, -0.13)),
            make_park("Here", 1.0, Coordinate(51.5074, -0.1278)),
        ]
        result = sort_parks(parks, SortKey.DISTANCE, TRAFALGAR)
        assert [p.name for p in result] == ["Here", "Near", "Far"]

    def test_distance_unranked_last(self):
        parks = [
            make_park("Unknown", 5.0),
            make_park("Known", 1.0, Coordinate(51.52, -0.12)),
        ]
        result = sort_parks(parks, SortKey.DISTANCE, TRAFALGAR)
        assert [p.name for p in result] == ["Known", "Unknown"]

    def test_distance_ties_keep_catalog_order(self):
        spot = Coordinate(51.52, -0.12)
        parks = [make_park("One", 1.0, spot), make_park("Two", 5.0, spot)]
        result = sort_parks(parks, SortKey.DISTANCE, TRAFALGAR)
        assert [p.name for p in result] == ["One", "Two"]

    def test_distance_without_origin_sorts_by_rating(self):
        parks = [make_park("Low", 1.0), make_park("High", 4.0)]
        result = sort_parks(parks, SortKey.DISTANCE, None)
        assert [p.name for p in result] == ["High", "Low"]

    def test_does_not_mutate_input(self):
        parks = [make_park("B", 1.0), make_park("A", 2.0)]
        sort_parks(parks, SortKey.NAME)
        assert [p.name for p in parks] == ["B", "A"]


class TestGroupByRating:
    """Tests for group_by_rating."""

    def test_empty(self):
        assert group_by_rating([], SortKey.RATING) == []

    def test_buckets_descending(self):
        parks = [make_park("A", 2.5), make_park("B", 4.1), make_park("C", 3.0), make_park("D", 4.9)]
        groups = group_by_rating(parks, SortKey.RATING)
        assert [g.bucket for g in groups] == [4, 3, 2]

    def test_bucket_resorted_by_rating_in_name_mode(self):
        parks = sort_parks(
            [make_park("Zeta", 4.9), make_park("Alpha", 4.1), make_park("Mid", 4.5)],
            SortKey.NAME,
        )
        groups = group_by_rating(parks, SortKey.NAME)
        assert len(groups) == 1
        assert [p.name for p in groups[0].parks] == ["Zeta", "Mid", "Alpha"]

    def test_bucket_ties_keep_incoming_order(self):
        parks = [make_park("Beta", 4.0), make_park("Alpha", 4.0)]
        groups = group_by_rating(parks, SortKey.NAME)
        assert [p.name for p in groups[0].parks] == ["Beta", "Alpha"]

    def test_distance_mode_single_group(self):
        parks = [
            make_park("Near", 1.0, Coordinate(51.508, -0.128)),
            make_park("Far", 4.0, Coordinate(51.6, -0.1)),
        ]
        groups = group_by_rating(parks, SortKey.DISTANCE, TRAFALGAR)
        assert groups == [RatingGroup(bucket=DISTANCE_BUCKET, parks=tuple(parks))]

    def test_distance_mode_without_origin_groups_by_rating(self):
        parks = [make_park("A", 1.0), make_park("B", 4.0)]
        groups = group_by_rating(parks, SortKey.DISTANCE, None)
        assert [g.bucket for g in groups] == [4, 1]

    def test_deterministic(self):
        parks = [make_park(f"P{i}", r) for i, r in enumerate([3.5, 2.0, 3.1, 4.0, 2.9])]
        assert group_by_rating(parks, SortKey.RATING) == group_by_rating(parks, SortKey.RATING)


class TestProcess:
    """Tests for the full pipeline."""

    def test_empty_input(self):
        assert process([], set(), SortKey.RATING) == []
        assert process([], {4}, SortKey.DISTANCE, TRAFALGAR) == []

    def test_rating_filter_scenario(self, scenario_catalog):
        groups = process(scenario_catalog.all_parks(), {4}, SortKey.RATING)
        assert len(groups) == 1
        assert groups[0].bucket == 4
        assert [p.name for p in groups[0].parks] == ["Alpha Bars", "Beta Rings"]

    def test_no_filters_groups_all(self, scenario_catalog):
        groups = process(scenario_catalog.all_parks(), set(), SortKey.RATING)
        assert [(g.bucket, len(g)) for g in groups] == [(4, 2), (3, 1), (2, 1)]

    def test_filter_matching_nothing(self, scenario_catalog):
        assert process(scenario_catalog.all_parks(), {1}, SortKey.NAME) == []

    def test_distance_scenario_orders_by_distance(self):
        parks = [
            make_park("C", 4.0, Coordinate(51.55, -0.10)),
            make_park("A", 2.0, Coordinate(51.5075, -0.1279)),
            make_park("B", 3.0, Coordinate(51.52, -0.12)),
            make_park("B2", 1.0, Coordinate(51.52, -0.12)),
        ]
        groups = process(parks, set(), SortKey.DISTANCE, TRAFALGAR)
        assert len(groups) == 1
        assert [p.name for p in groups[0].parks] == ["A", "B", "B2", "C"]


class TestCollationKey:
    """Tests for collation_key."""

    def test_folds_case_accents_and_spaces(self):
        assert collation_key("  Élan   PARK ") == collation_key("elan park")

    def test_case_insensitive(self):
        assert collation_key("TGO OUTDOOR GYM") == collation_key("tgo outdoor gym")

    def test_dash_sorts_before_letters(self):
        dashed = "OUTDOOR GYM – CLAPHAM COMMON"
        plain = "OUTDOOR GYM ANERLEY BETTS PARK"
        assert collation_key(dashed) < collation_key(plain)
        assert collation_key(dashed) < collation_key("OUTDOOR GYM WEST HACKNEY")

    def test_space_punctuation_digits_letters(self):
        names = ["Park B", "Park 2", "Park-A", "Park A", "ParkA"]
        assert sorted(names, key=collation_key) == ["Park 2", "Park A", "Park B", "Park-A", "ParkA"]

    def test_name_sort_on_bundled_catalog(self):
        catalog = load_catalog(Path(__file__).parent.parent / "data" / "parks.yaml")
        names = [p.name for p in sort_parks(catalog.all_parks(), SortKey.NAME)]
        assert names.index("OUTDOOR GYM – CLAPHAM COMMON") < names.index(
            "OUTDOOR GYM ANERLEY BETTS PARK"
        )


def test_rating_group_len():
    group = RatingGroup(bucket=3, parks=(make_park("A", 3.0), make_park("B", 3.5)))
    assert len(group) == 2

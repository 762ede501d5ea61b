"""Tests for criteria and viewport filtering."""

import pytest

from api.services.property_filtering import (
    bounds_for_properties,
    filter_properties,
    matches_criteria,
    zoom_for_extent,
)
from conftest import make_geocoded, make_property
from models import (
    BoundingBox,
    FilterCriteria,
    GeocodedProperty,
    ListingType,
    PropertyType,
)

LAGOS_BOX = BoundingBox(north=6.60, south=6.40, east=3.50, west=3.30)


@pytest.fixture
def listings():
    return [
        make_geocoded("flat", 3.40, 6.45, price=1_500_000, property_type=PropertyType.APARTMENT,
                      listing_type=ListingType.RENT, bedrooms=2),
        make_geocoded("duplex", 3.47, 6.44, price=85_000_000, property_type=PropertyType.HOUSE,
                      listing_type=ListingType.SALE, bedrooms=4),
        make_geocoded("plot", 7.47, 9.08, price=20_000_000, property_type=PropertyType.LAND,
                      listing_type=ListingType.SALE, bedrooms=0),
        GeocodedProperty(
            listing=make_property("unmapped", price=900_000, property_type=PropertyType.APARTMENT,
                                  address="Unknown Street", bedrooms=2),
            resolved=False,
        ),
    ]


def _ids(items):
    return [p.id for p in items]


def test_no_criteria_and_no_bounds_keeps_everything(listings):
    assert _ids(filter_properties(listings)) == ["flat", "duplex", "plot", "unmapped"]


def test_property_type_filter(listings):
    criteria = FilterCriteria(property_types=[PropertyType.APARTMENT])
    assert _ids(filter_properties(listings, criteria)) == ["flat", "unmapped"]


def test_listing_type_filter(listings):
    criteria = FilterCriteria(listing_types=[ListingType.SALE])
    assert _ids(filter_properties(listings, criteria)) == ["duplex", "plot"]


def test_zero_price_bounds_are_unbounded(listings):
    only_min = FilterCriteria(min_price=10_000_000)
    only_max = FilterCriteria(max_price=1_500_000)

    assert _ids(filter_properties(listings, only_min)) == ["duplex", "plot"]
    assert _ids(filter_properties(listings, only_max)) == ["flat", "unmapped"]


def test_price_range_is_inclusive(listings):
    criteria = FilterCriteria(min_price=1_500_000, max_price=20_000_000)
    assert _ids(filter_properties(listings, criteria)) == ["flat", "plot"]


def test_bedroom_filter(listings):
    criteria = FilterCriteria(bedrooms=[2, 4])
    assert _ids(filter_properties(listings, criteria)) == ["flat", "duplex", "unmapped"]


def test_predicates_are_combined(listings):
    criteria = FilterCriteria(listing_types=[ListingType.SALE], max_price=50_000_000)
    assert _ids(filter_properties(listings, criteria)) == ["plot"]


def test_bounds_exclude_outside_and_unresolved(listings):
    assert _ids(filter_properties(listings, bounds=LAGOS_BOX)) == ["flat", "duplex"]


def test_empty_bounds_mean_no_spatial_restriction(listings):
    assert len(filter_properties(listings, bounds=BoundingBox.empty())) == len(listings)


def test_bounds_are_inclusive_on_edges():
    on_edge = make_geocoded("edge", 3.50, 6.60)
    assert _ids(filter_properties([on_edge], bounds=LAGOS_BOX)) == ["edge"]


def test_filtering_is_idempotent(listings):
    criteria = FilterCriteria(property_types=[PropertyType.APARTMENT, PropertyType.HOUSE])
    first = filter_properties(listings, criteria, LAGOS_BOX)
    second = filter_properties(listings, criteria, LAGOS_BOX)

    assert first
    assert second == first


def test_plain_properties_are_accepted():
    props = [make_property("a", 3.4, 6.45, price=10), make_property("b", price=10)]
    assert _ids(filter_properties(props, bounds=LAGOS_BOX)) == ["a"]
    assert matches_criteria(props[1], FilterCriteria(max_price=10))


def test_bounds_for_properties_ignores_unresolved(listings):
    bounds = bounds_for_properties(listings)
    assert (bounds.west, bounds.east, bounds.south, bounds.north) == (3.40, 7.47, 6.44, 9.08)
    assert bounds_for_properties(listings[3:]).is_empty


@pytest.mark.parametrize(
    "extent,zoom",
    [(0.005, 15), (0.03, 13), (0.07, 12), (0.3, 10), (2.0, 8)],
)
def test_zoom_for_extent(extent, zoom):
    bounds = BoundingBox(north=6.4 + extent, south=6.4, east=3.4 + extent / 2, west=3.4)
    assert zoom_for_extent(bounds) == zoom

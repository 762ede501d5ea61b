"""Tests for drawn polygon geometry."""

import math

import pytest

from api.services.draw_search import (
    KM_PER_DEGREE,
    DrawnPolygon,
    compute_area_km2,
    compute_geometry,
    compute_perimeter_km,
    polygon_bounds,
)

EQUATOR_SQUARE = [(0.0, 0.0), (0.01, 0.0), (0.01, 0.01), (0.0, 0.01)]


@pytest.mark.parametrize("vertices", [[], [(3.4, 6.45)], [(3.4, 6.45), (3.5, 6.55)]])
def test_fewer_than_three_vertices_have_no_area_or_perimeter(vertices):
    geometry = compute_geometry(vertices)
    assert geometry.area_km2 == 0
    assert geometry.perimeter_km == 0


def test_equator_square_perimeter_is_four_sides_of_one_hundredth_degree():
    assert compute_perimeter_km(EQUATOR_SQUARE) == pytest.approx(4 * 1.1132, rel=1e-4)


def test_equator_square_area():
    assert compute_area_km2(EQUATOR_SQUARE) == pytest.approx(1.1132 ** 2, rel=1e-4)


def test_vertex_winding_does_not_change_area():
    assert compute_area_km2(list(reversed(EQUATOR_SQUARE))) == pytest.approx(
        compute_area_km2(EQUATOR_SQUARE)
    )


@pytest.mark.parametrize("latitude", [6.45, 9.08])
def test_two_km_square_area_is_within_five_percent(latitude):
    side_km = 2.0
    delta_lat = side_km / KM_PER_DEGREE
    delta_lng = side_km / (KM_PER_DEGREE * math.cos(math.radians(latitude)))
    vertices = [
        (3.4, latitude),
        (3.4 + delta_lng, latitude),
        (3.4 + delta_lng, latitude + delta_lat),
        (3.4, latitude + delta_lat),
    ]
    assert compute_area_km2(vertices) == pytest.approx(side_km ** 2, rel=0.05)


def test_triangle_is_half_the_square():
    triangle = [(0.0, 0.0), (0.01, 0.0), (0.0, 0.01)]
    assert compute_area_km2(triangle) == pytest.approx(compute_area_km2(EQUATOR_SQUARE) / 2, rel=1e-4)


def test_bounds_of_no_vertices_are_explicitly_empty():
    bounds = polygon_bounds([])
    assert bounds.is_empty
    assert bounds.north is None and bounds.west is None


def test_bounds_contain_every_vertex():
    vertices = [(3.35, 6.50), (3.45, 6.42), (3.40, 6.60)]
    bounds = polygon_bounds(vertices)

    assert (bounds.west, bounds.east, bounds.south, bounds.north) == (3.35, 3.45, 6.42, 6.60)
    assert all(bounds.contains(lng, lat) for lng, lat in vertices)


def test_drawn_polygon_recomputes_on_change_and_skips_identical_vertices():
    polygon = DrawnPolygon()
    assert polygon.is_empty

    bounds = polygon.set_vertices(EQUATOR_SQUARE)
    assert bounds is not None
    assert polygon.area_km2 == pytest.approx(compute_area_km2(EQUATOR_SQUARE))
    assert polygon.perimeter_km > 0

    assert polygon.set_vertices(list(EQUATOR_SQUARE)) is None


def test_clearing_a_drawn_polygon_resets_geometry():
    polygon = DrawnPolygon(EQUATOR_SQUARE)

    bounds = polygon.clear()

    assert bounds.is_empty
    assert polygon.is_empty
    assert polygon.area_km2 == 0
    assert polygon.perimeter_km == 0


@pytest.mark.parametrize("partial", [[(3.4, 6.45)], [(3.4, 6.45), (3.5, 6.55)]])
def test_partial_drawing_leaves_polygon_untouched(partial):
    polygon = DrawnPolygon(EQUATOR_SQUARE)

    assert polygon.set_vertices(partial) is None
    assert polygon.vertices == EQUATOR_SQUARE
    assert polygon.bounds == polygon_bounds(EQUATOR_SQUARE)


def test_partial_drawing_on_empty_polygon_publishes_nothing():
    polygon = DrawnPolygon()

    assert polygon.set_vertices([(3.4, 6.45), (3.5, 6.55)]) is None
    assert polygon.is_empty
    assert polygon.bounds.is_empty


def test_setting_no_vertices_clears_the_polygon():
    polygon = DrawnPolygon(EQUATOR_SQUARE)

    bounds = polygon.set_vertices([])

    assert bounds.is_empty
    assert polygon.is_empty

"""
Draw-search geometry: area, perimeter and bounding box of a user-drawn polygon.

Uses a first-order flat-earth approximation suitable for city-scale polygons:
degree lengths are scaled by 111.32 km * cos(latitude). Self-intersecting
polygons are not detected; their area is whatever the shoelace sum yields.

The area applies the cos(mean latitude) factor to both axes, so a polygon that
is truly square on the ground comes out roughly cos(latitude) times too small.
That is under 3% across Nigeria (about 4 to 14 degrees north) but about 30%
at 45 degrees.
"""

import logging
from typing import List, NamedTuple, Optional, Sequence

import numpy as np

from models import BoundingBox, Coordinate

logger = logging.getLogger(__name__)

KM_PER_DEGREE = 111.32


class PolygonGeometry(NamedTuple):
    area_km2: float
    perimeter_km: float


def compute_area_km2(vertices: Sequence[Coordinate]) -> float:
    """Shoelace area in square degrees, scaled by (111.32 * cos(mean latitude))^2."""
    if len(vertices) < 3:
        return 0.0
    points = np.asarray(vertices, dtype=float)
    x, y = points[:, 0], points[:, 1]
    x_next, y_next = np.roll(x, -1), np.roll(y, -1)
    area_deg2 = abs(float(np.sum(x * y_next - x_next * y))) / 2.0

    mean_lat = float(np.mean(y))
    km_per_degree = KM_PER_DEGREE * np.cos(np.radians(mean_lat))
    return float(area_deg2 * km_per_degree * km_per_degree)


def compute_perimeter_km(vertices: Sequence[Coordinate]) -> float:
    """Sum of edge lengths, each scaled by the cosine of its mid latitude."""
    if len(vertices) < 3:
        return 0.0
    points = np.asarray(vertices, dtype=float)
    x, y = points[:, 0], points[:, 1]
    x_next, y_next = np.roll(x, -1), np.roll(y, -1)

    edge_deg = np.sqrt((x - x_next) ** 2 + (y - y_next) ** 2)
    mid_lat = (y + y_next) / 2.0
    km_per_degree = KM_PER_DEGREE * np.cos(np.radians(mid_lat))
    return float(np.sum(edge_deg * km_per_degree))


def compute_geometry(vertices: Sequence[Coordinate]) -> PolygonGeometry:
    """Area (km^2) and perimeter (km); both 0 for fewer than 3 vertices."""
    return PolygonGeometry(
        area_km2=compute_area_km2(vertices),
        perimeter_km=compute_perimeter_km(vertices),
    )


def polygon_bounds(vertices: Sequence[Coordinate]) -> BoundingBox:
    """Smallest rectangle containing every vertex; explicitly empty for no vertices."""
    if not vertices:
        return BoundingBox.empty()
    lngs = [v[0] for v in vertices]
    lats = [v[1] for v in vertices]
    return BoundingBox(north=max(lats), south=min(lats), east=max(lngs), west=min(lngs))


class DrawnPolygon:
    """User-drawn search polygon with derived area, perimeter and bounds."""

    def __init__(self, vertices: Optional[Sequence[Coordinate]] = None):
        self.vertices: List[Coordinate] = []
        self.area_km2 = 0.0
        self.perimeter_km = 0.0
        self.bounds = BoundingBox.empty()
        if vertices:
            self.set_vertices(vertices)

    def set_vertices(self, vertices: Sequence[Coordinate]) -> Optional[BoundingBox]:
        """Replace the vertices and recompute.

        Returns the new bounding box, or None when nothing changed: the vertex
        list is identical, or it holds one or two points of a drawing still in
        progress. An empty list clears the polygon.
        """
        new_vertices = [(float(lng), float(lat)) for lng, lat in vertices]
        if 0 < len(new_vertices) < 3:
            return None
        if new_vertices == self.vertices and self.vertices:
            return None

        self.vertices = new_vertices
        geometry = compute_geometry(new_vertices)
        self.area_km2 = geometry.area_km2
        self.perimeter_km = geometry.perimeter_km
        self.bounds = polygon_bounds(new_vertices)
        logger.debug(
            "Drawn polygon updated: %s vertices, %.2f km2, %.2f km",
            len(new_vertices),
            self.area_km2,
            self.perimeter_km,
        )
        return self.bounds

    def clear(self) -> BoundingBox:
        """Remove all vertices; always returns the explicitly empty box."""
        self.vertices = []
        self.area_km2 = 0.0
        self.perimeter_km = 0.0
        self.bounds = BoundingBox.empty()
        return self.bounds

    @property
    def is_empty(self) -> bool:
        return not self.vertices

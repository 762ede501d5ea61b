"""
Map clustering service for marker grouping at low zoom.

Greedy single pass: each unprocessed property (in input order) seeds a cluster
with every other unprocessed property within the zoom-dependent distance. The
result depends on seed order and is not a globally optimal clustering; members
are only guaranteed to be within the threshold of their seed, not of each
other.
"""

import logging
from typing import List, Sequence, Union

import numpy as np

from models import BoundingBox, Cluster, GeocodedProperty, SingleMarker

logger = logging.getLogger(__name__)

# Above this zoom every property is shown as its own marker
CLUSTER_MAX_ZOOM = 14
# Planar degree -> meter conversion (city-scale approximation)
METERS_PER_DEGREE = 111000.0
MIN_CLUSTER_DISTANCE_M = 50.0
BASE_CLUSTER_DISTANCE_M = 200.0
DISTANCE_STEP_PER_ZOOM_M = 10.0

MarkerItem = Union[Cluster, SingleMarker]


def get_cluster_distance_for_zoom(zoom: float) -> float:
    """Clustering distance threshold in meters; shrinks as zoom increases."""
    return max(MIN_CLUSTER_DISTANCE_M, BASE_CLUSTER_DISTANCE_M - zoom * DISTANCE_STEP_PER_ZOOM_M)


def planar_distance_m(a, b) -> float:
    """Approximate distance in meters between two (lng, lat) pairs."""
    return float(np.sqrt((a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2) * METERS_PER_DEGREE)


def _single(prop: GeocodedProperty) -> SingleMarker:
    return SingleMarker(item=prop, latitude=prop.latitude, longitude=prop.longitude)


def cluster_properties(
    properties: Sequence[GeocodedProperty],
    zoom: float,
    enabled: bool = True,
) -> List[MarkerItem]:
    """
    Group nearby properties into clusters based on zoom level.

    Args:
        properties: Geocoded properties; unresolved ones are skipped
        zoom: Map zoom level
        enabled: When False every property is returned as a single marker

    Returns:
        Clusters and single markers, in seed order
    """
    valid = [p for p in properties if p.coordinates is not None]
    if not valid:
        return []

    if not enabled or zoom > CLUSTER_MAX_ZOOM:
        return [_single(p) for p in valid]

    threshold = get_cluster_distance_for_zoom(zoom)
    lngs = np.array([p.longitude for p in valid], dtype=float)
    lats = np.array([p.latitude for p in valid], dtype=float)
    processed = np.zeros(len(valid), dtype=bool)

    items: List[MarkerItem] = []
    for i, seed in enumerate(valid):
        if processed[i]:
            continue

        distances = np.sqrt((lngs - lngs[i]) ** 2 + (lats - lats[i]) ** 2) * METERS_PER_DEGREE
        nearby = (~processed) & (distances < threshold)
        nearby[i] = False
        neighbor_idx = np.flatnonzero(nearby)

        if neighbor_idx.size == 0:
            processed[i] = True
            items.append(_single(seed))
            continue

        member_idx = np.concatenate(([i], neighbor_idx))
        processed[member_idx] = True
        member_lngs = lngs[member_idx]
        member_lats = lats[member_idx]

        items.append(
            Cluster(
                id=f"cluster-{len(items)}",
                longitude=float(sum(member_lngs.tolist()) / member_idx.size),
                latitude=float(sum(member_lats.tolist()) / member_idx.size),
                property_ids=[valid[j].id for j in member_idx.tolist()],
                count=int(member_idx.size),
                bounds=BoundingBox(
                    north=float(member_lats.max()),
                    south=float(member_lats.min()),
                    east=float(member_lngs.max()),
                    west=float(member_lngs.min()),
                ),
            )
        )

    logger.debug(
        "Clustered %s properties into %s markers at zoom %s (threshold %.0f m)",
        len(valid),
        len(items),
        zoom,
        threshold,
    )
    return items


def get_marker_hints_for_zoom(zoom: float) -> dict:
    """Rendering hints for the map adapter based on zoom level."""
    return {
        "show_labels": zoom > 12,
        "marker_size": max(20, min(40, int(zoom * 2))),
        "simplify_icons": zoom < 10,
    }

"""
Utility functions for filtering properties by criteria and viewport bounds.
"""

from typing import List, Optional, Sequence, TypeVar, Union

from models import BoundingBox, FilterCriteria, GeocodedProperty, Property

T = TypeVar("T", Property, GeocodedProperty)


def _listing(item: Union[Property, GeocodedProperty]) -> Property:
    return item.listing if isinstance(item, GeocodedProperty) else item


def matches_criteria(item: Union[Property, GeocodedProperty], criteria: FilterCriteria) -> bool:
    """Check property type, listing type, price range and bedroom predicates."""
    listing = _listing(item)

    if criteria.property_types and listing.property_type not in criteria.property_types:
        return False

    if criteria.listing_types and listing.listing_type not in criteria.listing_types:
        return False

    # 0 means unbounded on that side
    if criteria.min_price > 0 and listing.price < criteria.min_price:
        return False
    if criteria.max_price > 0 and listing.price > criteria.max_price:
        return False

    if criteria.bedrooms and listing.bedrooms not in criteria.bedrooms:
        return False

    return True


def within_bounds(item: Union[Property, GeocodedProperty], bounds: BoundingBox) -> bool:
    """Inclusive containment; items without coordinates are never inside."""
    coordinates = item.coordinates
    if coordinates is None:
        return False
    lng, lat = coordinates
    return bounds.contains(lng, lat)


def filter_properties(
    properties: Sequence[T],
    criteria: Optional[FilterCriteria] = None,
    bounds: Optional[BoundingBox] = None,
) -> List[T]:
    """
    Filter properties by criteria and, if given, a bounding box.

    Args:
        properties: Properties or geocoded properties
        criteria: Active filters (None = no criteria)
        bounds: Viewport or drawn-area bounds; None or an empty box means unrestricted

    Returns:
        Matching items in their original order
    """
    criteria = criteria or FilterCriteria()
    use_bounds = bounds is not None and not bounds.is_empty

    return [
        item
        for item in properties
        if matches_criteria(item, criteria)
        and (not use_bounds or within_bounds(item, bounds))
    ]


def bounds_for_properties(properties: Sequence[Union[Property, GeocodedProperty]]) -> BoundingBox:
    """Smallest box containing every item with coordinates; empty if none have any."""
    coordinates = [p.coordinates for p in properties if p.coordinates is not None]
    if not coordinates:
        return BoundingBox.empty()
    lngs = [c[0] for c in coordinates]
    lats = [c[1] for c in coordinates]
    return BoundingBox(north=max(lats), south=min(lats), east=max(lngs), west=min(lngs))


def zoom_for_extent(bounds: BoundingBox) -> int:
    """Pick a zoom level that fits the box's larger side."""
    if bounds.is_empty:
        return 10
    max_diff = max(bounds.east - bounds.west, bounds.north - bounds.south)
    if max_diff < 0.01:
        return 15
    elif max_diff < 0.05:
        return 13
    elif max_diff < 0.1:
        return 12
    elif max_diff < 0.5:
        return 10
    else:
        return 8

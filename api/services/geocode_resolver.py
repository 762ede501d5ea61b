"""
Geocode Resolver: attach coordinates to properties, with caching and failure tagging.
Also answers reverse lookups and location suggestions for the search box.
"""

import logging
from typing import Callable, List, NamedTuple, Optional, Sequence

from starlette.concurrency import run_in_threadpool

from api.cache import cache_coordinates, get_cached_coordinates
from api.services.geocoding import GeocodeError, known_location_suggestions
from models import Coordinate, GeocodedProperty, LocationSuggestion, Property

logger = logging.getLogger(__name__)


class GeocodeProgress(NamedTuple):
    """Determinate progress of a sequential resolution pass."""

    current: int
    total: int


ProgressCallback = Callable[[GeocodeProgress], None]


class GeocodeResolver:
    """Resolve property addresses through a provider, one at a time.

    Provider failures never propagate: the property comes back with
    ``resolved=False`` and no coordinates, so spatial components skip it while
    list views keep it.
    """

    def __init__(self, geocoder):
        self.geocoder = geocoder

    async def geocode_query(self, query: str) -> Coordinate:
        """Geocode free text through the cache. Raises GeocodeError on failure."""
        coordinates = get_cached_coordinates(query)
        if coordinates is not None:
            return coordinates
        coordinates = await run_in_threadpool(self.geocoder.geocode_address, query)
        return cache_coordinates(query, coordinates)

    async def reverse_geocode(self, longitude: float, latitude: float) -> str:
        """Place name at a coordinate, or the formatted coordinate when none is known."""
        try:
            return await run_in_threadpool(self.geocoder.reverse_geocode, longitude, latitude)
        except GeocodeError as e:
            logger.info(f"Reverse geocoding failed: {e}")
            return f"{latitude:.6f}, {longitude:.6f}"

    async def suggest(self, query: str, limit: int = 5) -> List[LocationSuggestion]:
        """Autocomplete suggestions; known Lagos locations stand in when the provider fails."""
        query = (query or "").strip()
        if not query:
            return []
        try:
            suggestions = await run_in_threadpool(self.geocoder.search_locations, query, limit)
        except GeocodeError as e:
            logger.info(f"Location suggestions failed, using known locations: {e}")
            suggestions = known_location_suggestions(query, limit)
        return suggestions[:limit]

    async def resolve(self, prop: Property) -> GeocodedProperty:
        if prop.coordinates is not None:
            return GeocodedProperty.from_property(prop)

        query = prop.address_query()
        if not query:
            logger.warning("Property %s has no address to geocode", prop.id)
            return GeocodedProperty(listing=prop, resolved=False)

        try:
            coordinates = await self.geocode_query(query)
        except GeocodeError as e:
            logger.warning(f"Failed to geocode property {prop.id}: {e}")
            return GeocodedProperty(listing=prop, resolved=False)

        lng, lat = coordinates
        return GeocodedProperty(listing=prop, longitude=lng, latitude=lat, resolved=True)

    async def resolve_all(
        self,
        properties: Sequence[Property],
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[GeocodedProperty]:
        """Resolve sequentially in input order, reporting progress after each property."""
        total = len(properties)
        if on_progress:
            on_progress(GeocodeProgress(0, total))

        results: List[GeocodedProperty] = []
        for i, prop in enumerate(properties):
            results.append(await self.resolve(prop))
            if on_progress:
                on_progress(GeocodeProgress(i + 1, total))

        unresolved = sum(1 for r in results if not r.resolved)
        logger.info(f"Resolved {total - unresolved}/{total} properties ({unresolved} unresolved)")
        return results

"""
Geocoding provider contract, city-level fallback and provider factory.

A provider exposes ``geocode_address(text) -> (longitude, latitude)``,
``reverse_geocode(longitude, latitude) -> place name`` and
``search_locations(text, limit) -> [LocationSuggestion]``, and raises
``GeocodeError`` when it has no answer.
"""

import logging
from typing import Dict, List, Optional, Tuple

import config
from models import LocationSuggestion

logger = logging.getLogger(__name__)


class GeocodeError(Exception):
    """Raised by a geocoding provider when an address cannot be resolved."""

    def __init__(self, query: str, reason: str = "No results found"):
        super().__init__(f"Unable to geocode address {query!r}: {reason}")
        self.query = query
        self.reason = reason


# Approximate centers of major Nigerian cities, (lng, lat)
CITY_COORDINATES: Dict[str, Tuple[float, float]] = {
    "lagos": (3.3792, 6.5244),
    "abuja": (7.3986, 9.0765),
    "kano": (8.5264, 12.0022),
    "ibadan": (3.9470, 7.3775),
    "port harcourt": (7.0134, 4.8156),
    "benin": (5.6037, 6.3350),
    "maiduguri": (13.0827, 11.8311),
    "zaria": (7.7104, 11.0449),
    "aba": (7.3667, 5.1167),
    "jos": (8.8965, 9.9285),
    "ilorin": (4.5421, 8.4966),
    "oyo": (3.9313, 7.8526),
    "enugu": (7.5109, 6.2649),
    "abeokuta": (3.3515, 7.1475),
    "kaduna": (7.4951, 10.5264),
    "akure": (5.1931, 7.2526),
    "bauchi": (9.8442, 10.3158),
    "sokoto": (5.2339, 13.0059),
    "onitsha": (6.7833, 6.1667),
    "warri": (5.7500, 5.5167),
}


# Well-known Lagos neighbourhoods offered when no provider can suggest locations:
# name -> ((lng, lat), context)
KNOWN_LOCATIONS: Dict[str, Tuple[Tuple[float, float], List[str]]] = {
    "Victoria Island": ((3.4219, 6.4281), ["Lagos Island", "Lagos State"]),
    "Lekki Phase 1": ((3.4700, 6.4474), ["Lekki", "Lagos State"]),
    "Ikeja GRA": ((3.3515, 6.5966), ["Ikeja", "Lagos State"]),
    "Ikoyi": ((3.4441, 6.4474), ["Lagos Island", "Lagos State"]),
    "Surulere": ((3.3792, 6.5244), ["Lagos Mainland", "Lagos State"]),
    "Yaba": ((3.3792, 6.5158), ["Lagos Mainland", "Lagos State"]),
    "Ajah": ((3.5670, 6.4698), ["Eti-Osa", "Lagos State"]),
    "Magodo": ((3.3792, 6.5792), ["Kosofe", "Lagos State"]),
}


def rank_relevance(index: int) -> float:
    """Relevance of the index-th suggestion: 1.0 for the first, 0.1 less for each after."""
    return max(0.0, round(1.0 - index * 0.1, 2))


def known_location_suggestions(query: str, limit: int = 5) -> List[LocationSuggestion]:
    """Case-insensitive substring match against ``KNOWN_LOCATIONS``."""
    needle = query.strip().lower()
    if not needle:
        return []
    names = [name for name in KNOWN_LOCATIONS if needle in name.lower()][:limit]
    suggestions = []
    for i, name in enumerate(names):
        (lng, lat), context = KNOWN_LOCATIONS[name]
        suggestions.append(
            LocationSuggestion(
                place_name=f"{name}, Lagos, Nigeria",
                longitude=lng,
                latitude=lat,
                context=context,
                relevance=rank_relevance(i),
            )
        )
    return suggestions


class CityFallbackGeocoder:
    """Wrap a primary provider and fall back to approximate city coordinates."""

    def __init__(self, primary=None, city_coordinates: Optional[Dict[str, Tuple[float, float]]] = None):
        self.primary = primary
        self.city_coordinates = city_coordinates or CITY_COORDINATES

    def geocode_address(self, query: str) -> Tuple[float, float]:
        if self.primary is not None:
            try:
                return self.primary.geocode_address(query)
            except GeocodeError as e:
                logger.info("Primary geocoder failed for %s (%s), trying city fallback", query, e.reason)

        normalized = query.lower()
        for city, coordinates in self.city_coordinates.items():
            if city in normalized:
                logger.debug("City fallback matched %r for %s", city, query)
                return coordinates

        raise GeocodeError(query, "No known city in address")

    def reverse_geocode(self, longitude: float, latitude: float) -> str:
        if self.primary is None:
            raise GeocodeError(f"{latitude}, {longitude}", "No reverse geocoding provider")
        return self.primary.reverse_geocode(longitude, latitude)

    def search_locations(self, query: str, limit: int = 5) -> List[LocationSuggestion]:
        if self.primary is not None:
            try:
                return self.primary.search_locations(query, limit)
            except GeocodeError as e:
                logger.info("Primary geocoder has no suggestions for %s (%s), using known locations", query, e.reason)
        return known_location_suggestions(query, limit)


def create_geocoder():
    """Build the configured provider chain."""
    from api.services.bing_geocoder import BingGeocoder

    bing = BingGeocoder(
        rate_limit_delay=config.GEOCODER_RATE_LIMIT_DELAY,
        timeout=config.GEOCODER_TIMEOUT,
        region=config.get_region_bounds(),
        country=config.GEOCODER_COUNTRY,
    )
    if config.GEOCODER_PROVIDER == "bing":
        return bing
    if config.GEOCODER_PROVIDER != "fallback":
        logger.warning(
            "Unknown GEOCODER_PROVIDER %r, using 'fallback'", config.GEOCODER_PROVIDER
        )
    return CityFallbackGeocoder(primary=bing)

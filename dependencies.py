"""
Shared dependencies for FastAPI routes.
"""

from api.services.geocode_resolver import GeocodeResolver
from config import get_geocoder_instance


def get_geocoder():
    """Get the configured geocoding provider."""
    return get_geocoder_instance()


def get_resolver() -> GeocodeResolver:
    """Get a geocode resolver bound to the configured provider."""
    return GeocodeResolver(get_geocoder())

"""
Centralized configuration for the backend application.
"""

import os
from typing import Optional

# Environment configuration
ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Geocoding provider configuration
# "bing" queries Bing Maps only; "fallback" also falls back to known city coordinates
GEOCODER_PROVIDER = os.getenv("GEOCODER_PROVIDER", "fallback").lower()
GEOCODER_RATE_LIMIT_DELAY = float(os.getenv("GEOCODER_RATE_LIMIT_DELAY", "0.2"))
GEOCODER_TIMEOUT = int(os.getenv("GEOCODER_TIMEOUT", "10"))

# Service region: results outside it are retried with the country name appended
GEOCODER_COUNTRY = os.getenv("GEOCODER_COUNTRY", "Nigeria")
GEOCODER_REGION = {
    "south": float(os.getenv("GEOCODER_REGION_SOUTH", "4.2406")),
    "west": float(os.getenv("GEOCODER_REGION_WEST", "2.6917")),
    "north": float(os.getenv("GEOCODER_REGION_NORTH", "13.8659")),
    "east": float(os.getenv("GEOCODER_REGION_EAST", "14.6775")),
}

# Map defaults (Lagos)
DEFAULT_CENTER_LNG = float(os.getenv("DEFAULT_CENTER_LNG", "3.3792"))
DEFAULT_CENTER_LAT = float(os.getenv("DEFAULT_CENTER_LAT", "6.5244"))
DEFAULT_ZOOM = float(os.getenv("DEFAULT_ZOOM", "10"))

# Quiet period before a pan/zoom burst triggers a recompute
VIEWPORT_DEBOUNCE_SECONDS = float(os.getenv("VIEWPORT_DEBOUNCE_SECONDS", "0.3"))

# Geocoder instance - will be initialized in main.py
_geocoder_instance = None


def is_production() -> bool:
    """Check if running in production mode."""
    return ENVIRONMENT == "production"


def get_region_bounds() -> Optional[dict]:
    """Service region as {north, south, east, west}, or None if disabled."""
    if os.getenv("GEOCODER_REGION_DISABLED", "").lower() in ("1", "true", "yes"):
        return None
    return dict(GEOCODER_REGION)


def set_geocoder_instance(geocoder_instance):
    """Set the geocoding provider (called from main.py)."""
    global _geocoder_instance
    _geocoder_instance = geocoder_instance


def get_geocoder_instance():
    """Get the geocoding provider."""
    if _geocoder_instance is None:
        raise RuntimeError(
            "Geocoder instance not initialized. Call set_geocoder_instance() first."
        )
    return _geocoder_instance

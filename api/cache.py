"""
Process-wide geocode cache.

Entries map a normalized address to its (longitude, latitude) pair. The cache
is append-only: once an address is stored it is never overwritten, so reads of
an existing entry are safe without locking. Failed lookups are not cached.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from models import normalize_address

logger = logging.getLogger(__name__)

_cache: Optional[Dict[str, Tuple[float, float]]] = None
_stats: Dict[str, int] = {"hits": 0, "misses": 0}


def init_cache() -> None:
    """Create an empty cache, discarding any previous one."""
    global _cache
    _cache = {}
    _stats["hits"] = 0
    _stats["misses"] = 0
    logger.info("Geocode cache initialized")


def _store() -> Dict[str, Tuple[float, float]]:
    if _cache is None:
        init_cache()
    return _cache


def get_cached_coordinates(address: str) -> Optional[Tuple[float, float]]:
    """Return cached (lng, lat) for an address, or None on a miss."""
    key = normalize_address(address)
    coords = _store().get(key)
    if coords is None:
        _stats["misses"] += 1
        logger.debug(f"Geocode cache MISS for {key!r}")
        return None
    _stats["hits"] += 1
    logger.debug(f"Geocode cache HIT for {key!r}")
    return coords


def cache_coordinates(address: str, coordinates: Tuple[float, float]) -> Tuple[float, float]:
    """Store coordinates unless the address is already cached; return the stored value."""
    key = normalize_address(address)
    return _store().setdefault(key, (float(coordinates[0]), float(coordinates[1])))


def get_cache_stats() -> Dict[str, Any]:
    """Get cache statistics."""
    lookups = _stats["hits"] + _stats["misses"]
    return {
        "total_entries": len(_store()),
        "hits": _stats["hits"],
        "misses": _stats["misses"],
        "hit_rate": (_stats["hits"] / lookups) if lookups else 0.0,
    }

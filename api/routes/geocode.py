"""
Geocoding routes: resolve property lists, free-text search, suggestions,
reverse lookup and cache stats.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
import logging
from typing import List

from api.cache import get_cache_stats
from api.schemas import (
    GeocodeProgressPoint,
    GeocodeResolveRequest,
    GeocodeResolveResponse,
    LocationSearchResponse,
    LocationSuggestResponse,
    ReverseGeocodeResponse,
)
from api.services.geocode_resolver import GeocodeProgress, GeocodeResolver
from api.services.geocoding import GeocodeError
from dependencies import get_resolver

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/resolve", response_model=GeocodeResolveResponse)
async def resolve_properties(
    request: GeocodeResolveRequest,
    resolver: GeocodeResolver = Depends(get_resolver),
):
    """Attach coordinates to each property in order. Failures come back unresolved."""
    progress: List[GeocodeProgress] = []
    results = await resolver.resolve_all(request.properties, progress.append)
    resolved = sum(1 for r in results if r.resolved)

    return GeocodeResolveResponse(
        properties=results,
        total=len(results),
        resolved=resolved,
        unresolved=len(results) - resolved,
        progress=[GeocodeProgressPoint(current=p.current, total=p.total) for p in progress],
    )


@router.get("/search", response_model=LocationSearchResponse)
async def search_location(
    q: str = Query(..., min_length=1, description="Free-text location"),
    resolver: GeocodeResolver = Depends(get_resolver),
):
    """Geocode a free-text query to a (longitude, latitude) pair."""
    try:
        coordinates = await resolver.geocode_query(q.strip())
    except GeocodeError as e:
        logger.info(f"Location search failed: {e}")
        raise HTTPException(status_code=404, detail=f"Location not found: {q}")
    return LocationSearchResponse(query=q, coordinates=coordinates)


@router.get("/suggest", response_model=LocationSuggestResponse)
async def suggest_locations(
    q: str = Query("", description="Partial location text"),
    limit: int = Query(5, ge=1, le=10),
    resolver: GeocodeResolver = Depends(get_resolver),
):
    """Autocomplete suggestions for a location search box. Blank text gives none."""
    suggestions = await resolver.suggest(q, limit)
    return LocationSuggestResponse(query=q, suggestions=suggestions)


@router.get("/reverse", response_model=ReverseGeocodeResponse)
async def reverse_geocode(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    resolver: GeocodeResolver = Depends(get_resolver),
):
    """Place name at a coordinate; falls back to the formatted coordinate."""
    place_name = await resolver.reverse_geocode(lng, lat)
    return ReverseGeocodeResponse(latitude=lat, longitude=lng, place_name=place_name)


@router.get("/cache", response_model=dict)
async def cache_stats():
    """Geocode cache statistics."""
    return get_cache_stats()

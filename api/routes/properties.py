"""
Property filtering routes.
"""

from fastapi import APIRouter

from api.schemas import PropertyFilterRequest, PropertyFilterResponse
from api.services.property_filtering import filter_properties

router = APIRouter()


@router.post("/filter", response_model=PropertyFilterResponse)
async def filter_listings(request: PropertyFilterRequest):
    """Filter properties by criteria and an optional bounding box, keeping input order."""
    matched = filter_properties(request.properties, request.criteria, request.bounds)
    return PropertyFilterResponse(
        properties=matched,
        total=len(request.properties),
        matched=len(matched),
    )

"""
Pydantic schemas for API requests, responses and render descriptors.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from models import (
    BoundingBox,
    Cluster,
    Coordinate,
    FilterCriteria,
    GeocodedProperty,
    HeatCell,
    LocationSuggestion,
    Property,
    Viewport,
)


# ============================================================================
# Render Descriptors
# ============================================================================


class MarkerDescriptor(BaseModel):
    """Marker handed to the map render adapter."""

    coordinates: Coordinate
    kind: Literal["single", "cluster"]
    payload: Dict[str, Any] = {}


class HeatCellDescriptor(BaseModel):
    """Heat cell handed to the map render adapter."""

    coordinates: Coordinate
    intensity: float
    metadata: Dict[str, Any] = {}


class MarkerHints(BaseModel):
    """Zoom-dependent marker rendering hints."""

    show_labels: bool
    marker_size: int
    simplify_icons: bool


# ============================================================================
# Engine Input / Output
# ============================================================================


class MapInput(BaseModel):
    """Everything one render pass depends on."""

    properties: List[GeocodedProperty] = []
    viewport: Viewport = Viewport()
    criteria: FilterCriteria = FilterCriteria()
    search_bounds: Optional[BoundingBox] = None
    selected_property_id: Optional[str] = None
    show_heatmap: bool = True
    show_markers: bool = True
    clustering_enabled: bool = True


class MapOutput(BaseModel):
    """Result of one render pass."""

    markers: List[MarkerDescriptor] = []
    heat_cells: List[HeatCellDescriptor] = []
    listed_properties: List[GeocodedProperty] = []
    total_properties: int = 0
    visible_properties: int = 0
    unresolved_properties: int = 0
    viewport: Viewport = Viewport()
    hints: Optional[MarkerHints] = None


# ============================================================================
# Map Schemas
# ============================================================================


class MapRenderRequest(BaseModel):
    """Full render pass over a property set."""

    properties: List[Property]
    viewport: Viewport = Viewport()
    criteria: FilterCriteria = FilterCriteria()
    drawn_vertices: List[Coordinate] = []
    selected_property_id: Optional[str] = None
    show_heatmap: bool = True
    show_markers: bool = True
    clustering_enabled: bool = True
    geocode: bool = Field(
        default=False, description="Resolve missing coordinates before rendering"
    )


class ClustersRequest(BaseModel):
    properties: List[Property]
    zoom: float = Field(..., ge=0, le=24)
    enabled: bool = True


class ClustersResponse(BaseModel):
    """Clusters and single markers for one zoom level."""

    clusters: List[Cluster]
    singles: List[GeocodedProperty]
    markers: List[MarkerDescriptor]
    zoom: float
    threshold_m: Optional[float] = None
    total_properties: int


class HeatmapRequest(BaseModel):
    properties: List[Property]


class HeatmapResponse(BaseModel):
    cells: List[HeatCell]
    descriptors: List[HeatCellDescriptor]
    total_properties: int


class DrawSearchRequest(BaseModel):
    vertices: List[Coordinate] = []


class DrawSearchResponse(BaseModel):
    """Area, perimeter and bounds of a drawn polygon."""

    area_km2: float
    perimeter_km: float
    bounds: BoundingBox
    vertex_count: int


# ============================================================================
# Property Schemas
# ============================================================================


class PropertyFilterRequest(BaseModel):
    properties: List[Property]
    criteria: FilterCriteria = FilterCriteria()
    bounds: Optional[BoundingBox] = None


class PropertyFilterResponse(BaseModel):
    properties: List[Property]
    total: int
    matched: int


# ============================================================================
# Geocoding Schemas
# ============================================================================


class GeocodeResolveRequest(BaseModel):
    properties: List[Property]


class GeocodeProgressPoint(BaseModel):
    current: int
    total: int


class GeocodeResolveResponse(BaseModel):
    """Resolution results in input order."""

    properties: List[GeocodedProperty]
    total: int
    resolved: int
    unresolved: int
    progress: List[GeocodeProgressPoint] = []


class LocationSearchResponse(BaseModel):
    query: str
    coordinates: Coordinate


class LocationSuggestResponse(BaseModel):
    query: str
    suggestions: List[LocationSuggestion] = []


class ReverseGeocodeResponse(BaseModel):
    latitude: float
    longitude: float
    place_name: str

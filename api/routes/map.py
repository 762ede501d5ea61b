"""
Map routes for clustering, heatmaps and draw-search.
"""

from fastapi import APIRouter, Depends
import logging

from api.schemas import (
    ClustersRequest,
    ClustersResponse,
    DrawSearchRequest,
    DrawSearchResponse,
    HeatCellDescriptor,
    HeatmapRequest,
    HeatmapResponse,
    MapInput,
    MapOutput,
    MapRenderRequest,
)
from api.services.draw_search import DrawnPolygon, compute_geometry, polygon_bounds
from api.services.geocode_resolver import GeocodeResolver
from api.services.heatmap import aggregate_heat_cells, to_heat_cell_descriptors
from api.services.map_clustering import (
    CLUSTER_MAX_ZOOM,
    cluster_properties,
    get_cluster_distance_for_zoom,
)
from api.services.map_engine import build_map_output, marker_descriptor
from dependencies import get_resolver
from models import Cluster, GeocodedProperty

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/render", response_model=MapOutput)
async def render_map(
    request: MapRenderRequest,
    resolver: GeocodeResolver = Depends(get_resolver),
):
    """Run one full render pass: markers, heat cells and the filtered list view."""
    if request.geocode:
        properties = await resolver.resolve_all(request.properties)
    else:
        properties = [GeocodedProperty.from_property(p) for p in request.properties]

    drawn = DrawnPolygon(request.drawn_vertices)
    search_bounds = None if drawn.is_empty else drawn.bounds
    map_input = MapInput(
        properties=properties,
        viewport=request.viewport,
        criteria=request.criteria,
        search_bounds=search_bounds,
        selected_property_id=request.selected_property_id,
        show_heatmap=request.show_heatmap,
        show_markers=request.show_markers,
        clustering_enabled=request.clustering_enabled,
    )
    output = build_map_output(map_input)
    logger.info(
        f"Rendered {len(output.markers)} markers and {len(output.heat_cells)} heat cells "
        f"for {output.visible_properties}/{output.total_properties} properties"
    )
    return output


@router.post("/clusters", response_model=ClustersResponse)
async def get_clusters(request: ClustersRequest):
    """Cluster properties for a zoom level. Properties without coordinates are skipped."""
    geocoded = [GeocodedProperty.from_property(p) for p in request.properties]
    items = cluster_properties(geocoded, request.zoom, request.enabled)

    clusters = [item for item in items if isinstance(item, Cluster)]
    singles = [item.item for item in items if not isinstance(item, Cluster)]
    clustering_active = request.enabled and request.zoom <= CLUSTER_MAX_ZOOM

    return ClustersResponse(
        clusters=clusters,
        singles=singles,
        markers=[marker_descriptor(item, request.zoom) for item in items],
        zoom=request.zoom,
        threshold_m=get_cluster_distance_for_zoom(request.zoom) if clustering_active else None,
        total_properties=len(request.properties),
    )


@router.post("/heatmap", response_model=HeatmapResponse)
async def get_heatmap(request: HeatmapRequest):
    """Aggregate priced properties into grid cells with normalized intensity."""
    geocoded = [GeocodedProperty.from_property(p) for p in request.properties]
    cells = aggregate_heat_cells(geocoded)
    return HeatmapResponse(
        cells=cells,
        descriptors=[HeatCellDescriptor(**d) for d in to_heat_cell_descriptors(cells)],
        total_properties=len(request.properties),
    )


@router.post("/draw-search", response_model=DrawSearchResponse)
async def draw_search(request: DrawSearchRequest):
    """Area, perimeter and bounding box of a drawn polygon."""
    geometry = compute_geometry(request.vertices)
    return DrawSearchResponse(
        area_km2=geometry.area_km2,
        perimeter_km=geometry.perimeter_km,
        bounds=polygon_bounds(request.vertices),
        vertex_count=len(request.vertices),
    )

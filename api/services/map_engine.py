"""
Map visualization engine.

Owns the view state (properties, viewport, filters, drawn area, selection,
layer toggles) and turns it into marker and heat-cell descriptors for a
render adapter. ``build_map_output`` is the pure part; ``MapVisualizationEngine``
wraps it with debounced viewport handling, selection and adapter lifecycle.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import config
from api.schemas import (
    HeatCellDescriptor,
    MapInput,
    MapOutput,
    MarkerDescriptor,
    MarkerHints,
)
from api.services.draw_search import DrawnPolygon
from api.services.geocode_resolver import GeocodeResolver, ProgressCallback
from api.services.geocoding import GeocodeError
from api.services.heatmap import aggregate_heat_cells, to_heat_cell_descriptors
from api.services.map_clustering import (
    cluster_properties,
    get_marker_hints_for_zoom,
)
from api.services.property_filtering import (
    bounds_for_properties,
    filter_properties,
    zoom_for_extent,
)
from api.services.render_adapter import MapRenderAdapter, RenderAdapterError
from models import (
    BoundingBox,
    Cluster,
    Coordinate,
    FilterCriteria,
    GeocodedProperty,
    Property,
    SingleMarker,
    Viewport,
    format_price_label,
)

logger = logging.getLogger(__name__)

MAX_ZOOM = 18
CLUSTER_EXPANSION_STEP = 2
FOCUS_ZOOM = 16
SEARCH_ZOOM = 14

SelectionCallback = Callable[[GeocodedProperty], None]


def cluster_expansion_zoom(zoom: float) -> float:
    """Zoom to fly to when a cluster marker is clicked."""
    return min(zoom + CLUSTER_EXPANSION_STEP, MAX_ZOOM)


def marker_descriptor(
    item: Union[Cluster, SingleMarker],
    zoom: float,
    selected_property_id: Optional[str] = None,
) -> MarkerDescriptor:
    """Build the render descriptor for a cluster or single marker."""
    if isinstance(item, Cluster):
        return MarkerDescriptor(
            coordinates=item.coordinates,
            kind="cluster",
            payload={
                "cluster_id": item.id,
                "count": item.count,
                "property_ids": list(item.property_ids),
                "bounds": item.bounds.model_dump(),
                "expansion_zoom": cluster_expansion_zoom(zoom),
            },
        )

    listing = item.item.listing
    return MarkerDescriptor(
        coordinates=item.coordinates,
        kind="single",
        payload={
            "property_id": listing.id,
            "title": listing.title,
            "price": listing.price,
            "currency": listing.currency,
            "price_label": format_price_label(listing.price, listing.currency),
            "property_type": listing.property_type.value,
            "listing_type": listing.listing_type.value,
            "bedrooms": listing.bedrooms,
            "bathrooms": listing.bathrooms,
            "selected": listing.id == selected_property_id,
        },
    )


def build_map_output(map_input: MapInput) -> MapOutput:
    """
    Compute one render pass from a complete map input.

    Criteria apply to every property, so the list view keeps unresolved
    listings. Markers and heat cells only see resolved properties inside the
    search bounds (drawn area) or, failing that, the viewport bounds.
    """
    viewport = map_input.viewport
    listed = filter_properties(map_input.properties, map_input.criteria)

    search_bounds = map_input.search_bounds
    if search_bounds is None or search_bounds.is_empty:
        search_bounds = viewport.bounds
    spatial = filter_properties(
        [p for p in listed if p.coordinates is not None], bounds=search_bounds
    )

    markers: List[MarkerDescriptor] = []
    if map_input.show_markers:
        items = cluster_properties(spatial, viewport.zoom, map_input.clustering_enabled)
        markers = [
            marker_descriptor(item, viewport.zoom, map_input.selected_property_id)
            for item in items
        ]

    heat_cells: List[HeatCellDescriptor] = []
    if map_input.show_heatmap:
        heat_cells = [
            HeatCellDescriptor(**d)
            for d in to_heat_cell_descriptors(aggregate_heat_cells(spatial))
        ]

    return MapOutput(
        markers=markers,
        heat_cells=heat_cells,
        listed_properties=listed,
        total_properties=len(map_input.properties),
        visible_properties=len(spatial),
        unresolved_properties=sum(1 for p in map_input.properties if not p.resolved),
        viewport=viewport,
        hints=MarkerHints(**get_marker_hints_for_zoom(viewport.zoom)),
    )


class MapVisualizationEngine:
    """Stateful map view driving a render adapter."""

    def __init__(
        self,
        adapter: Optional[MapRenderAdapter] = None,
        resolver: Optional[GeocodeResolver] = None,
        on_property_selected: Optional[SelectionCallback] = None,
        debounce_seconds: float = config.VIEWPORT_DEBOUNCE_SECONDS,
    ):
        self.adapter = adapter
        self.resolver = resolver
        self.on_property_selected = on_property_selected
        self.debounce_seconds = debounce_seconds

        self.properties: List[GeocodedProperty] = []
        self.viewport = Viewport(
            center=(config.DEFAULT_CENTER_LNG, config.DEFAULT_CENTER_LAT),
            zoom=config.DEFAULT_ZOOM,
        )
        self.criteria = FilterCriteria()
        self.drawn_polygon = DrawnPolygon()
        self.selected_property_id: Optional[str] = None
        self.show_heatmap = True
        self.show_markers = True
        self.clustering_enabled = True

        self.last_output: Optional[MapOutput] = None
        self.render_passes = 0
        self.error: Optional[str] = None
        self.adapter_error: Optional[str] = None

        self._adapter_ready = False
        self._camera_target: Optional[Tuple[Coordinate, float]] = None
        self._pending: Optional[asyncio.Task] = None
        self._disposed = False

    # ------------------------------------------------------------------
    # Render passes
    # ------------------------------------------------------------------

    def current_input(self) -> MapInput:
        search_bounds = None if self.drawn_polygon.is_empty else self.drawn_polygon.bounds
        return MapInput(
            properties=self.properties,
            viewport=self.viewport,
            criteria=self.criteria,
            search_bounds=search_bounds,
            selected_property_id=self.selected_property_id,
            show_heatmap=self.show_heatmap,
            show_markers=self.show_markers,
            clustering_enabled=self.clustering_enabled,
        )

    def update(self, map_input: MapInput) -> MapOutput:
        """Compute a render pass and hand it to the adapter."""
        if self._disposed:
            raise RuntimeError("Map engine has been disposed")
        output = build_map_output(map_input)
        self.last_output = output
        self.render_passes += 1
        self._push(output)
        return output

    def refresh(self) -> MapOutput:
        return self.update(self.current_input())

    def _adapter_failed(self, action: str, error: RenderAdapterError) -> None:
        self._adapter_ready = False
        self.adapter_error = str(error)
        logger.warning(f"Map {action} failed: {error}")

    def _push(self, output: MapOutput) -> None:
        """Draw a pass, then apply any pending camera move.

        Adapter errors never propagate: they leave ``adapter_error`` set and
        the adapter is re-initialized on the next pass.
        """
        if self.adapter is None:
            return
        try:
            if not self._adapter_ready:
                self.adapter.initialize()
                self._adapter_ready = True
            self.adapter.render(output.markers, output.heat_cells)
            self.adapter_error = None
        except RenderAdapterError as e:
            self._adapter_failed("render", e)
            return

        if self._camera_target is not None:
            try:
                self.adapter.fly_to(*self._camera_target)
                self._camera_target = None
            except RenderAdapterError as e:
                self._adapter_failed("camera move", e)

    def retry_adapter(self) -> bool:
        """Re-initialize the adapter, redraw the last pass and replay a failed camera move.

        Returns True on success.
        """
        self._adapter_ready = False
        if self.last_output is None:
            self.refresh()
        else:
            self._push(self.last_output)
        return self.adapter_error is None

    # ------------------------------------------------------------------
    # Data loading
    # ------------------------------------------------------------------

    def set_properties(self, properties: Sequence[GeocodedProperty]) -> MapOutput:
        self.properties = list(properties)
        if self._find(self.selected_property_id) is None:
            self.selected_property_id = None
        return self.refresh()

    async def load_properties(
        self,
        properties: Sequence[Property],
        on_progress: Optional[ProgressCallback] = None,
    ) -> MapOutput:
        """Resolve coordinates (when a resolver is configured) and render."""
        if self.resolver is None:
            geocoded = [GeocodedProperty.from_property(p) for p in properties]
        else:
            geocoded = await self.resolver.resolve_all(properties, on_progress)
        return self.set_properties(geocoded)

    # ------------------------------------------------------------------
    # Viewport
    # ------------------------------------------------------------------

    def on_bounds_changed(self, viewport: Viewport) -> asyncio.Task:
        """Record the new viewport and schedule a recompute after a quiet period.

        Each call cancels the previously scheduled recompute, so a burst of
        pan/zoom events yields one render pass. Must be called from a running
        event loop.
        """
        self.viewport = viewport
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = asyncio.get_running_loop().create_task(self._debounced_refresh())
        return self._pending

    async def _debounced_refresh(self) -> Optional[MapOutput]:
        await asyncio.sleep(self.debounce_seconds)
        if self._disposed:
            return None
        return self.refresh()

    def _fly_to(self, center: Coordinate, zoom: float, bounds: Optional[BoundingBox] = None) -> None:
        """Move the view; the adapter camera follows on the next render pass."""
        self.viewport = Viewport(center=center, zoom=zoom, bounds=bounds)
        if self.adapter is not None:
            self._camera_target = (center, zoom)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def _find(self, property_id: Optional[str]) -> Optional[GeocodedProperty]:
        if property_id is None:
            return None
        return next((p for p in self.properties if p.id == property_id), None)

    def select_property(self, property_id: str) -> Optional[GeocodedProperty]:
        prop = self._find(property_id)
        if prop is None:
            logger.warning(f"Cannot select unknown property {property_id}")
            return None
        self.selected_property_id = prop.id
        if self.on_property_selected:
            self.on_property_selected(prop)
        self.refresh()
        return prop

    def on_marker_clicked(self, marker: MarkerDescriptor) -> Optional[GeocodedProperty]:
        """Clusters zoom in on their center; single markers select their property."""
        if marker.kind == "cluster":
            self._fly_to(marker.coordinates, cluster_expansion_zoom(self.viewport.zoom))
            self.refresh()
            return None
        return self.select_property(marker.payload["property_id"])

    def focus_on_property(self, property_id: str) -> Optional[GeocodedProperty]:
        prop = self._find(property_id)
        if prop is None or prop.coordinates is None:
            return None
        self._fly_to(prop.coordinates, FOCUS_ZOOM)
        return self.select_property(property_id)

    async def search_location(self, query: str) -> Optional[Coordinate]:
        """Geocode free text and fly there; failures are recorded in ``error``."""
        self.error = None
        query = (query or "").strip()
        if not query:
            return None
        if self.resolver is None:
            self.error = "No geocoder configured"
            return None
        try:
            coordinates = await self.resolver.geocode_query(query)
        except GeocodeError as e:
            self.error = f"Location not found: {query}"
            logger.info(f"Location search failed: {e}")
            return None
        self._fly_to(coordinates, SEARCH_ZOOM)
        self.refresh()
        return coordinates

    # ------------------------------------------------------------------
    # Filters and drawn area
    # ------------------------------------------------------------------

    def set_criteria(self, criteria: FilterCriteria) -> MapOutput:
        """Apply filters, drop a selection they exclude and fit the view to matches."""
        self.criteria = criteria
        matched = filter_properties(self.properties, criteria)

        if self.selected_property_id and all(p.id != self.selected_property_id for p in matched):
            self.selected_property_id = None

        if matched and len(matched) != len(self.properties):
            bounds = bounds_for_properties(matched)
            if not bounds.is_empty:
                center = ((bounds.east + bounds.west) / 2, (bounds.north + bounds.south) / 2)
                self._fly_to(center, zoom_for_extent(bounds), bounds)

        return self.refresh()

    def clear_criteria(self) -> MapOutput:
        return self.set_criteria(FilterCriteria())

    def set_drawn_polygon(self, vertices: Sequence[Coordinate]) -> Optional[MapOutput]:
        if self.drawn_polygon.set_vertices(vertices) is None:
            return self.last_output
        return self.refresh()

    def clear_drawn_polygon(self) -> MapOutput:
        self.drawn_polygon.clear()
        return self.refresh()

    def set_layers(
        self,
        show_heatmap: Optional[bool] = None,
        show_markers: Optional[bool] = None,
        clustering_enabled: Optional[bool] = None,
    ) -> MapOutput:
        if show_heatmap is not None:
            self.show_heatmap = show_heatmap
        if show_markers is not None:
            self.show_markers = show_markers
        if clustering_enabled is not None:
            self.clustering_enabled = clustering_enabled
        return self.refresh()

    def drawn_area_summary(self) -> Dict[str, Any]:
        return {
            "vertex_count": len(self.drawn_polygon.vertices),
            "area_km2": self.drawn_polygon.area_km2,
            "perimeter_km": self.drawn_polygon.perimeter_km,
            "bounds": self.drawn_polygon.bounds.model_dump(),
        }

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def dispose(self) -> None:
        """Cancel pending work and clear the adapter. The engine cannot be reused."""
        if self._disposed:
            return
        self._disposed = True
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
        self._camera_target = None
        if self.adapter is not None and self._adapter_ready:
            try:
                self.adapter.clear()
            except RenderAdapterError as e:
                self._adapter_failed("clear", e)
        self._adapter_ready = False
        self.properties = []
        self.selected_property_id = None
        logger.debug("Map engine disposed after %s render passes", self.render_passes)

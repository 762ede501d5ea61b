"""
Map render adapter contract.

The core never draws anything itself: each pass hands marker and heat-cell
descriptors to an adapter, which owns drawing, hit-testing and viewport
callbacks.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from api.schemas import HeatCellDescriptor, MarkerDescriptor
from models import Coordinate

logger = logging.getLogger(__name__)


class RenderAdapterError(Exception):
    """Adapter failed to initialize or draw; the caller may retry later."""


class MapRenderAdapter(ABC):
    """Abstract map canvas."""

    @abstractmethod
    def initialize(self) -> None:
        """Prepare the canvas. Raises RenderAdapterError on failure."""

    @abstractmethod
    def render(self, markers: List[MarkerDescriptor], heat_cells: List[HeatCellDescriptor]) -> None:
        """Replace everything currently drawn with this pass."""

    @abstractmethod
    def fly_to(self, center: Coordinate, zoom: float) -> None:
        """Move the camera."""

    @abstractmethod
    def clear(self) -> None:
        """Remove all markers and layers."""


class InMemoryRenderAdapter(MapRenderAdapter):
    """Adapter that keeps the last pass in memory instead of drawing it."""

    def __init__(self):
        self.initialized = False
        self.markers: List[MarkerDescriptor] = []
        self.heat_cells: List[HeatCellDescriptor] = []
        self.camera: Optional[tuple] = None
        self.render_count = 0

    def initialize(self) -> None:
        self.initialized = True

    def render(self, markers: List[MarkerDescriptor], heat_cells: List[HeatCellDescriptor]) -> None:
        if not self.initialized:
            raise RenderAdapterError("Adapter not initialized")
        self.markers = list(markers)
        self.heat_cells = list(heat_cells)
        self.render_count += 1

    def fly_to(self, center: Coordinate, zoom: float) -> None:
        self.camera = (center, zoom)

    def clear(self) -> None:
        self.markers = []
        self.heat_cells = []

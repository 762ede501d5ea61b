"""
Heatmap computation: grid aggregation with NumPy, normalized price intensity per cell.
"""

import logging
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np

from models import GeocodedProperty, HeatCell

logger = logging.getLogger(__name__)

# ~1km at the equator
HEAT_CELL_SIZE = 0.01
DEGENERATE_INTENSITY = 0.5


def _grid_cell_polygon(lat_lo: float, lat_hi: float, lng_lo: float, lng_hi: float) -> List[List[float]]:
    """Return GeoJSON-style ring [lng, lat] closed (5 points)."""
    return [
        [lng_lo, lat_lo],
        [lng_hi, lat_lo],
        [lng_hi, lat_hi],
        [lng_lo, lat_hi],
        [lng_lo, lat_lo],
    ]


def aggregate_heat_cells(
    properties: Sequence[GeocodedProperty],
    cell_size: float = HEAT_CELL_SIZE,
) -> List[HeatCell]:
    """
    Bin properties into a fixed grid and compute average price and intensity per cell.

    Only properties with coordinates and a positive price take part. Intensity
    is the cell's average price scaled between the global min and max cell
    averages, so it can only be assigned once every cell is known. When all
    cells share one average, every cell gets 0.5.
    """
    valid = [
        p for p in properties if p.coordinates is not None and p.listing.price > 0
    ]
    if not valid:
        return []

    lngs = np.array([p.longitude for p in valid], dtype=float)
    lats = np.array([p.latitude for p in valid], dtype=float)
    prices = np.array([p.listing.price for p in valid], dtype=float)

    grid_x = np.floor(lngs / cell_size).astype(np.int64)
    grid_y = np.floor(lats / cell_size).astype(np.int64)

    # First-occurrence order of cell keys
    cells: Dict[Tuple[int, int], List[int]] = {}
    for i, key in enumerate(zip(grid_x.tolist(), grid_y.tolist())):
        cells.setdefault(key, []).append(i)

    average_prices = np.array([prices[idx].sum() / len(idx) for idx in cells.values()])
    min_price = float(average_prices.min())
    max_price = float(average_prices.max())

    if max_price > min_price:
        intensities = (average_prices - min_price) / (max_price - min_price)
        intensities = np.clip(intensities, 0.0, 1.0)
    else:
        intensities = np.full(average_prices.shape, DEGENERATE_INTENSITY)

    heat_cells = [
        HeatCell(
            cell_key=(gx, gy),
            longitude=(gx + 0.5) * cell_size,
            latitude=(gy + 0.5) * cell_size,
            count=len(idx),
            average_price=float(avg),
            intensity=float(intensity),
        )
        for ((gx, gy), idx), avg, intensity in zip(cells.items(), average_prices, intensities)
    ]
    logger.debug("Aggregated %s properties into %s heat cells", len(valid), len(heat_cells))
    return heat_cells


def to_heat_cell_descriptors(
    heat_cells: Sequence[HeatCell],
    cell_size: float = HEAT_CELL_SIZE,
) -> List[Dict[str, Any]]:
    """Convert heat cells into render descriptors {coordinates, intensity, metadata}."""
    descriptors: List[Dict[str, Any]] = []
    for cell in heat_cells:
        gx, gy = cell.cell_key
        lng_lo = gx * cell_size
        lat_lo = gy * cell_size
        metadata: Dict[str, Any] = {
            "count": cell.count,
            "average_price": cell.average_price,
            "cell_key": [gx, gy],
            "polygon": _grid_cell_polygon(lat_lo, lat_lo + cell_size, lng_lo, lng_lo + cell_size),
        }
        descriptors.append(
            {
                "coordinates": [cell.longitude, cell.latitude],
                "intensity": cell.intensity,
                "metadata": metadata,
            }
        )
    return descriptors

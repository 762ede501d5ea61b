"""
Pydantic domain models for properties, clusters, heat cells and map geometry.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

# (longitude, latitude)
Coordinate = Tuple[float, float]


# ============================================================================
# Enums
# ============================================================================


class PropertyType(str, Enum):
    """Kind of building or land being listed."""

    HOUSE = "house"
    CONDO = "condo"
    TOWNHOUSE = "townhouse"
    APARTMENT = "apartment"
    LAND = "land"
    COMMERCIAL = "commercial"
    OTHER = "other"


class ListingType(str, Enum):
    """Whether a listing is offered for rent or for sale."""

    RENT = "rent"
    SALE = "sale"


# ============================================================================
# Property Models
# ============================================================================


class Property(BaseModel):
    """A listed property as supplied by the property service.

    Treated as immutable input; coordinates may be missing until geocoded.
    """

    id: str
    title: Optional[str] = None
    address: str = ""
    city: str = ""
    state: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    price: float = 0.0
    currency: str = "NGN"
    property_type: PropertyType = PropertyType.OTHER
    listing_type: ListingType = ListingType.RENT
    bedrooms: int = 0
    bathrooms: int = 0
    created_at: Optional[datetime] = None

    class Config:
        frozen = True

    @property
    def coordinates(self) -> Optional[Coordinate]:
        """Return (longitude, latitude) or None if either part is missing."""
        if self.latitude is None or self.longitude is None:
            return None
        return (self.longitude, self.latitude)

    def address_query(self) -> str:
        """Build the free-text geocoding query "address, city, state"."""
        return ", ".join(filter(None, [self.address, self.city, self.state]))


class GeocodedProperty(BaseModel):
    """A property plus the outcome of geocoding its address."""

    listing: Property
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    resolved: bool = False

    class Config:
        frozen = True

    @property
    def id(self) -> str:
        return self.listing.id

    @property
    def coordinates(self) -> Optional[Coordinate]:
        if not self.resolved or self.latitude is None or self.longitude is None:
            return None
        return (self.longitude, self.latitude)

    @classmethod
    def from_property(cls, prop: Property) -> "GeocodedProperty":
        """Wrap a property that already carries coordinates (resolved) or not (unresolved)."""
        coords = prop.coordinates
        if coords is None:
            return cls(listing=prop, resolved=False)
        return cls(listing=prop, longitude=coords[0], latitude=coords[1], resolved=True)


# ============================================================================
# Map Models
# ============================================================================


class BoundingBox(BaseModel):
    """Rectangular geographic region.

    A box with every side unset is the explicit "empty" box, which downstream
    filters treat as "no spatial restriction".
    """

    north: Optional[float] = None
    south: Optional[float] = None
    east: Optional[float] = None
    west: Optional[float] = None

    class Config:
        frozen = True

    @classmethod
    def empty(cls) -> "BoundingBox":
        return cls()

    @property
    def is_empty(self) -> bool:
        return (
            self.north is None
            or self.south is None
            or self.east is None
            or self.west is None
        )

    def contains(self, longitude: float, latitude: float) -> bool:
        """Inclusive containment test; an empty box contains nothing."""
        if self.is_empty:
            return False
        return (
            self.south <= latitude <= self.north
            and self.west <= longitude <= self.east
        )


class Viewport(BaseModel):
    """Visible map region: center, zoom and optional bounds."""

    center: Coordinate = (3.3792, 6.5244)
    zoom: float = 10
    bounds: Optional[BoundingBox] = None

    class Config:
        frozen = True


class Cluster(BaseModel):
    """Group of nearby properties collapsed into one marker."""

    id: str
    latitude: float
    longitude: float
    property_ids: List[str]
    count: int
    bounds: BoundingBox

    class Config:
        frozen = True

    @property
    def coordinates(self) -> Coordinate:
        return (self.longitude, self.latitude)


class SingleMarker(BaseModel):
    """An unclustered property shown at its own coordinate."""

    item: GeocodedProperty
    latitude: float
    longitude: float

    class Config:
        frozen = True

    @property
    def property_id(self) -> str:
        return self.item.id

    @property
    def coordinates(self) -> Coordinate:
        return (self.longitude, self.latitude)


class HeatCell(BaseModel):
    """Aggregated price statistics for one grid cell."""

    cell_key: Tuple[int, int]
    latitude: float
    longitude: float
    count: int
    average_price: float
    intensity: float = Field(ge=0.0, le=1.0)

    class Config:
        frozen = True

    @property
    def coordinates(self) -> Coordinate:
        return (self.longitude, self.latitude)


class LocationSuggestion(BaseModel):
    """One autocomplete result for a location search box."""

    place_name: str
    longitude: float
    latitude: float
    context: List[str] = []
    relevance: float = Field(default=1.0, ge=0.0, le=1.0)

    class Config:
        frozen = True

    @property
    def coordinates(self) -> Coordinate:
        return (self.longitude, self.latitude)


class FilterCriteria(BaseModel):
    """User-selected filters. Empty lists and 0 prices mean "unrestricted"."""

    property_types: List[PropertyType] = []
    listing_types: List[ListingType] = []
    min_price: float = 0
    max_price: float = 0
    bedrooms: List[int] = []


# ============================================================================
# Utility Functions
# ============================================================================


CURRENCY_SYMBOLS = {
    "NGN": "₦",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}


def normalize_address(address: str) -> str:
    """Normalize address string for comparison."""
    if not address:
        return ""
    # Lowercase, strip, and remove extra spaces
    normalized = " ".join(address.lower().strip().split())
    return normalized


def format_price_label(price: float, currency: str = "NGN") -> str:
    """Short marker label, e.g. 1250000 NGN -> "₦1.2M", 350000 -> "₦350K"."""
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), f"{currency.upper()} ")
    if price >= 1_000_000:
        return f"{symbol}{price / 1_000_000:.1f}M"
    if price >= 1000:
        return f"{symbol}{price / 1000:.0f}K"
    return f"{symbol}{price:g}"


def parse_price(price_str: str) -> float:
    """Parse price string to float."""
    if not price_str:
        return 0.0

    # Remove currency symbols, commas, and whitespace
    cleaned = str(price_str)
    for symbol in CURRENCY_SYMBOLS.values():
        cleaned = cleaned.replace(symbol, "")
    cleaned = cleaned.replace(",", "").strip()
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def parse_datetime(date_str: str) -> Optional[datetime]:
    """Parse a listing timestamp; returns None if no known format matches."""
    if not date_str:
        return None

    date_str = str(date_str).strip()

    formats = [
        "%Y-%m-%dT%H:%M:%S",
        "%Y-%m-%d %H:%M:%S",
        "%Y-%m-%d",
        "%d/%m/%Y",
    ]

    for fmt in formats:
        try:
            return datetime.strptime(date_str, fmt)
        except ValueError:
            continue

    return None

"""
Listings CSV parser.
Parses a property listings export into Property models, one per row, keeping file order.
"""

import io
import logging
from typing import Any, List, Optional

import pandas as pd

from models import (
    ListingType,
    Property,
    PropertyType,
    parse_datetime,
    parse_price,
)

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["id", "address", "city", "state", "price"]


def _normalize_column_names(df: pd.DataFrame) -> pd.DataFrame:
    """Lowercase column names and turn spaces into underscores ("Property Type" -> "property_type")."""
    df.columns = [str(c).strip().lower().replace(" ", "_") for c in df.columns]
    return df


def load_csv_from_bytes(content: bytes, encoding: Optional[str] = None) -> pd.DataFrame:
    """Load CSV from bytes into a DataFrame.

    Args:
        content: Raw CSV bytes
        encoding: Optional encoding (default tries utf-8, then latin-1)

    Returns:
        DataFrame with normalized column names, every cell as a string
    """
    encodings = [encoding] if encoding else ["utf-8", "latin-1", "cp1252"]
    last_error = None
    for enc in encodings:
        try:
            text = content.decode(enc)
        except UnicodeDecodeError as e:
            last_error = e
            continue
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
            on_bad_lines="skip",
        )
        return _normalize_column_names(df)
    raise ValueError(f"Failed to decode CSV with any encoding. Last error: {last_error}")


def _parse_float(value: Any) -> Optional[float]:
    text = str(value).strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _parse_int(value: Any) -> int:
    number = _parse_float(value)
    return int(number) if number is not None else 0


def _parse_enum(enum_cls, value: Any, default):
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        return default


def parse_listing_row(row: pd.Series) -> Optional[Property]:
    """Parse a single CSV row into a Property. Returns None if the row has no id."""
    property_id = str(row.get("id", "")).strip()
    if not property_id:
        return None

    return Property(
        id=property_id,
        title=str(row.get("title", "")).strip() or None,
        address=str(row.get("address", "")).strip(),
        city=str(row.get("city", "")).strip(),
        state=str(row.get("state", "")).strip(),
        latitude=_parse_float(row.get("latitude", "")),
        longitude=_parse_float(row.get("longitude", "")),
        price=parse_price(str(row.get("price", ""))),
        currency=str(row.get("currency", "")).strip().upper() or "NGN",
        property_type=_parse_enum(PropertyType, row.get("property_type", ""), PropertyType.OTHER),
        listing_type=_parse_enum(ListingType, row.get("listing_type", ""), ListingType.RENT),
        bedrooms=_parse_int(row.get("bedrooms", "")),
        bathrooms=_parse_int(row.get("bathrooms", "")),
        created_at=parse_datetime(str(row.get("created_at", ""))),
    )


def parse_listings_csv(content: bytes, encoding: Optional[str] = None) -> List[Property]:
    """Parse a listings CSV.

    Args:
        content: Raw CSV file bytes
        encoding: Optional encoding

    Returns:
        Properties in file order; rows without an id are skipped

    Raises:
        ValueError: If the file cannot be decoded or required columns are missing
    """
    df = load_csv_from_bytes(content, encoding=encoding)

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")

    properties: List[Property] = []
    skipped = 0
    for _, row in df.iterrows():
        prop = parse_listing_row(row)
        if prop is None:
            skipped += 1
            continue
        properties.append(prop)

    logger.info(f"Parsed {len(properties)} listings from {len(df)} rows ({skipped} skipped)")
    return properties

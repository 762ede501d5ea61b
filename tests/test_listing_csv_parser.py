"""Tests for the listings CSV parser (used by the geocode CLI)."""

from datetime import datetime

import pytest

from api.services.listing_csv_parser import parse_listings_csv
from models import ListingType, PropertyType

_LISTINGS_CSV = (
    "ID,Title,Address,City,State,Price,Currency,Property Type,Listing Type,Bedrooms,Bathrooms,Latitude,Longitude,Created At\n"
    "p1,Lekki flat,12 Admiralty Way,Lekki,Lagos,\"2,500,000\",NGN,apartment,rent,2,2,6.44,3.47,2024-05-01\n"
    "p2,Ikeja duplex,3 Allen Avenue,Ikeja,Lagos,85000000,,House,SALE,4,3,,,\n"
    ",Orphan row,1 Nowhere Close,Atlantis,,100,,,,,,,,\n"
    "p3,Mystery plot,Plot 9,Abuja,FCT,abc,NGN,castle,lease,,,,,\n"
)
LISTINGS_CSV = _LISTINGS_CSV.encode("utf-8")


def test_parse_listings_csv_keeps_file_order_and_skips_rows_without_id():
    properties = parse_listings_csv(LISTINGS_CSV)
    assert [p.id for p in properties] == ["p1", "p2", "p3"]


def test_parse_listings_csv_reads_all_fields():
    p1 = parse_listings_csv(LISTINGS_CSV)[0]

    assert p1.title == "Lekki flat"
    assert p1.address_query() == "12 Admiralty Way, Lekki, Lagos"
    assert p1.price == 2_500_000
    assert p1.currency == "NGN"
    assert p1.property_type == PropertyType.APARTMENT
    assert p1.listing_type == ListingType.RENT
    assert (p1.bedrooms, p1.bathrooms) == (2, 2)
    assert p1.coordinates == (3.47, 6.44)
    assert p1.created_at == datetime(2024, 5, 1)


def test_parse_listings_csv_missing_coordinates_and_case_insensitive_enums():
    p2 = parse_listings_csv(LISTINGS_CSV)[1]

    assert p2.coordinates is None
    assert p2.property_type == PropertyType.HOUSE
    assert p2.listing_type == ListingType.SALE
    assert p2.currency == "NGN"


def test_parse_listings_csv_unknown_values_fall_back_to_defaults():
    p3 = parse_listings_csv(LISTINGS_CSV)[2]

    assert p3.price == 0
    assert p3.property_type == PropertyType.OTHER
    assert p3.listing_type == ListingType.RENT
    assert p3.bedrooms == 0
    assert p3.created_at is None


def test_parse_listings_csv_missing_required_columns():
    content = b"id,address,price\np1,12 Admiralty Way,100\n"
    with pytest.raises(ValueError, match="Missing required columns"):
        parse_listings_csv(content)


def test_parse_listings_csv_latin1_fallback():
    content = "id,address,city,state,price\np1,Rue de l'Église,Cotonou,Littoral,100\n".encode("latin-1")
    (prop,) = parse_listings_csv(content)
    assert prop.address == "Rue de l'Église"

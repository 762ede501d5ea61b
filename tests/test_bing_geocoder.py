"""Tests for the Bing Maps geocoding provider (HTTP mocked)."""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from api.services.bing_geocoder import BingGeocoder
from api.services.geocoding import GeocodeError

NIGERIA = {"south": 4.2406, "west": 2.6917, "north": 13.8659, "east": 14.6775}


def _entity_html(lng, lat):
    entity = json.dumps({"geometry": {"x": lng, "y": lat}})
    return f"<html><div class='overlay-container' data-entity='{entity}'></div></html>"


def _latlong_html(lat, lng):
    return f"<html><div class='geochainModuleLatLong'>{lat}, {lng}</div></html>"


def _response(html):
    response = MagicMock()
    response.text = html
    response.raise_for_status.return_value = None
    return response


@pytest.fixture
def geocoder():
    return BingGeocoder(rate_limit_delay=0, region=NIGERIA, country="Nigeria")


def test_parses_data_entity_geometry(geocoder):
    with patch("api.services.bing_geocoder.requests.get", return_value=_response(_entity_html(3.42, 6.43))):
        assert geocoder.geocode_address("Victoria Island, Lagos") == (3.42, 6.43)


def test_falls_back_to_lat_long_text(geocoder):
    with patch("api.services.bing_geocoder.requests.get", return_value=_response(_latlong_html(9.0765, 7.3986))):
        assert geocoder.geocode_address("Garki, Abuja") == (7.3986, 9.0765)


def test_result_outside_region_is_retried_with_country(geocoder):
    responses = [_response(_entity_html(-0.12, 51.5)), _response(_entity_html(3.35, 6.60))]
    with patch("api.services.bing_geocoder.requests.get", side_effect=responses) as mock_get:
        assert geocoder.geocode_address("Ikeja") == (3.35, 6.60)

    assert mock_get.call_count == 2
    assert mock_get.call_args.kwargs["params"]["q"] == "Ikeja, Nigeria"


def test_result_outside_region_twice_raises(geocoder):
    outside = _response(_entity_html(-0.12, 51.5))
    with patch("api.services.bing_geocoder.requests.get", return_value=outside):
        with pytest.raises(GeocodeError) as exc_info:
            geocoder.geocode_address("Camden")
    assert "service region" in exc_info.value.reason


def test_no_coordinates_in_response_raises(geocoder):
    with patch("api.services.bing_geocoder.requests.get", return_value=_response("<html></html>")):
        with pytest.raises(GeocodeError):
            geocoder.geocode_address("Somewhere")


def test_empty_query_raises_without_request(geocoder):
    with patch("api.services.bing_geocoder.requests.get") as mock_get:
        with pytest.raises(GeocodeError):
            geocoder.geocode_address("   ")
    mock_get.assert_not_called()


def test_timeouts_are_retried_then_raise(geocoder):
    with patch("api.services.bing_geocoder.requests.get", side_effect=requests.exceptions.Timeout), \
            patch("api.services.bing_geocoder.time.sleep") as mock_sleep:
        with pytest.raises(GeocodeError) as exc_info:
            geocoder.geocode_address("Yaba, Lagos")

    assert exc_info.value.reason == "Timeout"
    assert mock_sleep.call_count == geocoder.max_retries - 1


def test_http_error_reports_status_code(geocoder):
    failing = MagicMock()
    failing.raise_for_status.side_effect = requests.exceptions.HTTPError(response=MagicMock(status_code=404))
    with patch("api.services.bing_geocoder.requests.get", return_value=failing), \
            patch("api.services.bing_geocoder.time.sleep"):
        with pytest.raises(GeocodeError) as exc_info:
            geocoder.geocode_address("Surulere, Lagos")
    assert exc_info.value.reason == "HTTP error 404"


def test_no_region_accepts_any_result():
    geocoder = BingGeocoder(rate_limit_delay=0)
    with patch("api.services.bing_geocoder.requests.get", return_value=_response(_entity_html(-0.12, 51.5))):
        assert geocoder.geocode_address("London") == (-0.12, 51.5)


def _places_html(*places):
    divs = "".join(
        f"<div class='listing' data-entity='{json.dumps({'title': name, 'address': address, 'geometry': {'x': lng, 'y': lat}})}'></div>"
        for name, address, lng, lat in places
    )
    return f"<html>{divs}</html>"


LAGOS_PLACES = [
    ("Lekki Phase 1", "Lekki, Lagos State, Nigeria", 3.47, 6.447),
    ("Lekki, Camden", "London, United Kingdom", -0.12, 51.5),
    ("Lekki Conservation Centre", "Lekki, Lagos State, Nigeria", 3.536, 6.441),
    ("Lekki Toll Gate", "Lekki, Lagos State, Nigeria", 3.466, 6.434),
]


def test_search_locations_lists_places_inside_region(geocoder):
    with patch("api.services.bing_geocoder.requests.get", return_value=_response(_places_html(*LAGOS_PLACES))):
        suggestions = geocoder.search_locations("Lekki", limit=2)

    assert [s.place_name for s in suggestions] == ["Lekki Phase 1", "Lekki Conservation Centre"]
    assert suggestions[0].coordinates == (3.47, 6.447)
    assert suggestions[0].context == ["Lekki", "Lagos State", "Nigeria"]
    assert [s.relevance for s in suggestions] == [1.0, 0.9]


def test_search_locations_without_places_raises(geocoder):
    with patch("api.services.bing_geocoder.requests.get", return_value=_response(_entity_html(3.42, 6.43))):
        with pytest.raises(GeocodeError):
            geocoder.search_locations("Lekki")


def test_search_locations_blank_query_makes_no_request(geocoder):
    with patch("api.services.bing_geocoder.requests.get") as mock_get:
        assert geocoder.search_locations("  ") == []
    mock_get.assert_not_called()


def test_reverse_geocode_names_first_place(geocoder):
    html = _places_html(("Admiralty Way", "Lekki, Lagos State, Nigeria", 3.47, 6.44))
    with patch("api.services.bing_geocoder.requests.get", return_value=_response(html)) as mock_get:
        assert geocoder.reverse_geocode(3.47, 6.44) == "Admiralty Way"

    assert mock_get.call_args.kwargs["params"]["q"] == "6.44, 3.47"


def test_reverse_geocode_without_places_raises(geocoder):
    with patch("api.services.bing_geocoder.requests.get", return_value=_response("<html></html>")):
        with pytest.raises(GeocodeError):
            geocoder.reverse_geocode(3.47, 6.44)

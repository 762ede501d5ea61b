"""
Bing Maps geocoding provider: address -> (longitude, latitude), reverse lookup
and location suggestions.
Uses the Bing Maps overlay HTML endpoint; rate limiting and retries.
"""

import json
import logging
import re
import time
from typing import Any, Dict, List, Optional, Tuple

import requests
from bs4 import BeautifulSoup
from requests.exceptions import RequestException, Timeout

from api.services.geocoding import GeocodeError, rank_relevance
from models import LocationSuggestion

logger = logging.getLogger(__name__)


class BingGeocoder:
    """Bing Maps geocoding (lng/lat) via overlay endpoint."""

    def __init__(
        self,
        rate_limit_delay: float = 0.2,
        timeout: int = 10,
        region: Optional[Dict[str, float]] = None,
        country: Optional[str] = None,
        max_retries: int = 3,
    ):
        self.rate_limit_delay = rate_limit_delay
        self.timeout = timeout
        self.region = region
        self.country = country
        self.max_retries = max_retries
        self.last_request_time = 0.0
        self.base_url = "https://www.bing.com/maps/overlaybfpr"

    def _rate_limit(self) -> None:
        elapsed = time.time() - self.last_request_time
        if elapsed < self.rate_limit_delay:
            time.sleep(self.rate_limit_delay - elapsed)
        self.last_request_time = time.time()

    def _within_region(self, coordinates: Tuple[float, float]) -> bool:
        if not self.region:
            return True
        lng, lat = coordinates
        return (
            self.region["west"] <= lng <= self.region["east"]
            and self.region["south"] <= lat <= self.region["north"]
        )

    def geocode_address(self, query: str) -> Tuple[float, float]:
        """Geocode a free-text address. Returns (longitude, latitude) or raises GeocodeError."""
        if not query or not query.strip():
            raise GeocodeError(query, "Empty address")

        coordinates = self._lookup(query)
        if self._within_region(coordinates):
            return coordinates

        if self.country and self.country.lower() not in query.lower():
            logger.info("Result for %s outside service region, retrying with country", query)
            coordinates = self._lookup(f"{query}, {self.country}")
            if self._within_region(coordinates):
                return coordinates

        raise GeocodeError(query, "Address not found within service region")

    def _lookup(self, query: str) -> Tuple[float, float]:
        coordinates = self._parse_coordinates(self._request(query))
        if coordinates is None:
            logger.warning("No coordinates in response for: %s", query)
            raise GeocodeError(query)
        logger.debug("Geocoded %s -> %s", query, coordinates)
        return coordinates

    def reverse_geocode(self, longitude: float, latitude: float) -> str:
        """Name of the place at a coordinate. Raises GeocodeError when Bing has none."""
        query = f"{latitude}, {longitude}"
        entities = self._parse_entities(self._request(query))
        if not entities:
            raise GeocodeError(query, "No place at coordinates")
        return entities[0]["name"]

    def search_locations(self, query: str, limit: int = 5) -> List[LocationSuggestion]:
        """Autocomplete suggestions for partial text, best match first."""
        if not query or not query.strip():
            return []

        entities = [e for e in self._parse_entities(self._request(query)) if self._within_region(e["coordinates"])]
        if not entities:
            raise GeocodeError(query, "No suggestions")

        return [
            LocationSuggestion(
                place_name=entity["name"],
                longitude=entity["coordinates"][0],
                latitude=entity["coordinates"][1],
                context=entity["context"],
                relevance=rank_relevance(i),
            )
            for i, entity in enumerate(entities[:limit])
        ]

    def _request(self, query: str) -> str:
        """Fetch the overlay HTML for a query, retrying timeouts and HTTP errors."""
        self._rate_limit()

        max_retries = self.max_retries
        for attempt in range(max_retries):
            try:
                params = {
                    "q": query,
                    "localMapView": "",
                    "filters": 'MapCardType:"unknown" direction_partner:"maps"',
                    "ads": "1",
                    "count": "20",
                    "ecount": "20",
                    "first": "0",
                    "efirst": "1",
                    "form": "MPSRBX",
                    "cardType": "unknown",
                    "cardWidth": "424",
                    "srs": "sb",
                    "mapsV10": "1",
                }
                headers = {
                    "accept": "*/*",
                    "accept-language": "en-US,en;q=0.9",
                    "user-agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/143.0.0.0 Safari/537.36",
                    "referer": f"https://www.bing.com/maps/search?style=r&q={requests.utils.quote(query)}",
                }
                response = requests.get(
                    self.base_url,
                    params=params,
                    headers=headers,
                    timeout=self.timeout,
                )
                response.raise_for_status()
                return response.text

            except Timeout:
                if attempt < max_retries - 1:
                    time.sleep((attempt + 1) * 2)
                    continue
                logger.error("Geocoding timeout after %s attempts: %s", max_retries, query)
                raise GeocodeError(query, "Timeout")
            except requests.exceptions.HTTPError as e:
                code = e.response.status_code if e.response is not None else None
                if code == 429 and attempt < max_retries - 1:
                    time.sleep((attempt + 1) * 5)
                    continue
                logger.error("HTTP error geocoding %s: %s", query, e)
                if attempt < max_retries - 1:
                    time.sleep((attempt + 1) * 2)
                    continue
                raise GeocodeError(query, f"HTTP error {code}")
            except RequestException as e:
                logger.error("Request error geocoding %s: %s", query, e)
                if attempt < max_retries - 1:
                    time.sleep((attempt + 1) * 2)
                    continue
                raise GeocodeError(query, "Request failed")

        raise GeocodeError(query)

    @staticmethod
    def _parse_entities(html: str) -> List[Dict[str, Any]]:
        """Every named place in the overlay HTML, in page order."""
        soup = BeautifulSoup(html, "html.parser")
        entities = []
        for element in soup.find_all(attrs={"data-entity": True}):
            try:
                entity_data: Dict[str, Any] = json.loads(element["data-entity"])
            except json.JSONDecodeError as e:
                logger.debug("Parse data-entity: %s", e)
                continue

            geometry = entity_data.get("geometry") or {}
            address = entity_data.get("address") or ""
            name = entity_data.get("title") or entity_data.get("name") or address
            if not name or geometry.get("x") is None or geometry.get("y") is None:
                continue

            context = [part.strip() for part in address.split(",") if part.strip()] if address != name else []
            entities.append(
                {
                    "name": name,
                    "coordinates": (float(geometry["x"]), float(geometry["y"])),
                    "context": context,
                }
            )
        return entities

    @staticmethod
    def _parse_coordinates(html: str) -> Optional[Tuple[float, float]]:
        """Extract (lng, lat) from the overlay HTML, trying data-entity JSON then the lat/long text."""
        soup = BeautifulSoup(html, "html.parser")
        latitude = None
        longitude = None

        overlay_container = soup.find("div", class_="overlay-container")
        if overlay_container and overlay_container.get("data-entity"):
            try:
                entity_data: Dict[str, Any] = json.loads(overlay_container["data-entity"])
                geometry = entity_data.get("geometry", {})
                if geometry:
                    longitude = geometry.get("x")
                    latitude = geometry.get("y")
            except (json.JSONDecodeError, KeyError, AttributeError) as e:
                logger.debug("Parse data-entity: %s", e)

        if latitude is None or longitude is None:
            lat_long_div = soup.find("div", class_="geochainModuleLatLong")
            if lat_long_div:
                lat_long_text = lat_long_div.get_text(strip=True)
                match = re.search(r"(-?\d+\.?\d*),\s*(-?\d+\.?\d*)", lat_long_text)
                if match:
                    latitude = float(match.group(1))
                    longitude = float(match.group(2))

        if latitude is None or longitude is None:
            return None
        return (float(longitude), float(latitude))

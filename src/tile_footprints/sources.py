"""Authoritative building footprints from OpenStreetMap, with detector fallback.

OpenStreetMap building outlines are preferred when the Overpass API has
any around the query point. When it has none, or cannot be reached, the
color-based BuildingDetector is run as the secondary source.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from tile_footprints._typing import GeoPoint
from tile_footprints.core import BuildingDetector, DetectionResult
from tile_footprints.exceptions import ConfigError, SourceError
from tile_footprints.regions import BuildingPolygon

logger = logging.getLogger(__name__)

OVERPASS_URL = "https://overpass-api.de/api/interpreter"

_QUERY_TEMPLATE = """
[out:json][timeout:{timeout}];
(
  way["building"](around:{radius},{lat},{lon});
  relation["building"](around:{radius},{lat},{lon});
);
out geom;
"""


class OverpassSource:
    """Query OpenStreetMap building ways around a point via the Overpass API.

    Args:
        url: Overpass interpreter endpoint.
        radius: Search radius around the point in meters.
        timeout: Request timeout in seconds, also passed to the server.
        session: Optional requests.Session to reuse connections.
    """

    def __init__(
        self,
        url: str = OVERPASS_URL,
        radius: float = 50.0,
        timeout: int = 30,
        session: requests.Session | None = None,
    ) -> None:
        if radius <= 0:
            raise ConfigError(f"radius must be positive, got {radius}")
        if timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {timeout}")
        self.url = url
        self.radius = radius
        self.timeout = timeout
        self._session = session if session is not None else requests.Session()

    def build_query(self, lat: float, lon: float) -> str:
        return _QUERY_TEMPLATE.format(timeout=self.timeout, radius=self.radius, lat=lat, lon=lon)

    def fetch(self, lat: float, lon: float) -> list[BuildingPolygon]:
        """Return building polygons around (lat, lon).

        Raises:
            SourceError: On network errors, non-2xx responses, or a
                response that is not Overpass JSON.
        """
        try:
            response = self._session.get(
                self.url,
                params={"data": self.build_query(lat, lon)},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise SourceError(f"Overpass request failed: {exc}", url=self.url) from exc
        except ValueError as exc:
            raise SourceError(f"Overpass returned invalid JSON: {exc}", url=self.url) from exc

        if not isinstance(payload, dict):
            raise SourceError("Overpass response is not a JSON object", url=self.url)

        return elements_to_polygons(payload.get("elements", []))


def elements_to_polygons(elements: list[dict[str, Any]]) -> list[BuildingPolygon]:
    """Convert Overpass ``way`` elements with geometry into polygons.

    Elements without geometry, or with fewer than three distinct
    vertices, are skipped. Open rings are closed.
    """
    polygons = []
    for element in elements:
        if element.get("type") != "way" or not element.get("geometry"):
            continue

        ring = [GeoPoint(float(node["lat"]), float(node["lon"])) for node in element["geometry"]]
        if ring[0] != ring[-1]:
            ring.append(ring[0])
        if len(ring) < 4:
            continue

        tags = element.get("tags") or {}
        polygons.append(
            BuildingPolygon(
                ring=tuple(ring),
                source_pixel_count=0,
                source="OpenStreetMap",
                building=tags.get("building", "unknown"),
                feature_id=element.get("id"),
            )
        )
    return polygons


def find_buildings(
    lat: float,
    lon: float,
    source: OverpassSource | None = None,
    detector: BuildingDetector | None = None,
) -> DetectionResult:
    """Look up buildings at a point, falling back to tile color detection.

    The authoritative source is tried first. If it returns no buildings
    or fails, the detector runs on the map tile instead. The two steps
    run one after the other.

    Returns:
        DetectionResult. Results from the authoritative source carry no
        diagnostics.
    """
    source = source if source is not None else OverpassSource()
    detector = detector if detector is not None else BuildingDetector()

    try:
        polygons = source.fetch(lat, lon)
    except SourceError as exc:
        logger.warning("Authoritative building source unavailable, falling back to color detection: %s", exc)
    else:
        if polygons:
            return DetectionResult(polygons=polygons)
        logger.info("No OSM buildings at (%.6f, %.6f), trying color-based detection", lat, lon)

    return detector.detect(lat, lon)

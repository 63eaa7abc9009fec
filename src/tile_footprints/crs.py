"""Web Mercator tile math and pixel-to-geographic coordinate transforms.

This module converts between WGS84 latitude/longitude and slippy-map tile
addresses with an in-tile pixel offset, and projects pixel-space boxes
inside a tile back to geographic polygons. The pixel quantization is
lossy by construction: a round trip recovers the input to within one
pixel's angular size.
"""

from __future__ import annotations

import math
import warnings

from pyproj import CRS
from shapely.geometry import Polygon

from tile_footprints._typing import TILE_SIZE, GeoPoint, PixelBounds, PixelCoord, TileIndex
from tile_footprints.exceptions import MercatorRangeWarning

# Latitude at which the square Web Mercator world ends: atan(sinh(pi))
MAX_LATITUDE = 85.0511287798066


def _check_zoom(zoom: int) -> int:
    if not isinstance(zoom, int) or isinstance(zoom, bool) or zoom < 0:
        raise ValueError(f"zoom must be a non-negative integer, got {zoom!r}")
    return zoom


def clamp_latitude(lat: float) -> float:
    """Clamp a latitude into the Web Mercator range.

    Emits a MercatorRangeWarning when the value had to be changed.

    Raises:
        ValueError: If the latitude is outside [-90, 90].
    """
    if not -90.0 <= lat <= 90.0:
        raise ValueError(f"Latitude must be within [-90, 90], got {lat}")

    if abs(lat) > MAX_LATITUDE:
        clamped = math.copysign(MAX_LATITUDE, lat)
        warnings.warn(
            f"Latitude {lat} is outside the Web Mercator range; clamped to {clamped}.",
            MercatorRangeWarning,
            stacklevel=3,
        )
        return clamped
    return lat


def geo_to_tile(lat: float, lon: float, zoom: int) -> tuple[TileIndex, PixelCoord]:
    """Locate the tile and in-tile pixel containing a geographic point.

    Args:
        lat: Latitude in degrees. Values beyond +/-85.0511 are clamped
            with a MercatorRangeWarning.
        lon: Longitude in degrees, within [-180, 180].
        zoom: Zoom level. The tile grid is 2**zoom tiles per axis.

    Returns:
        Tuple of (TileIndex, PixelCoord). The pixel offset is in [0, 256).

    Raises:
        ValueError: If lon or lat is outside its domain, or zoom is invalid.
    """
    _check_zoom(zoom)
    if not -180.0 <= lon <= 180.0:
        raise ValueError(f"Longitude must be within [-180, 180], got {lon}")
    lat = clamp_latitude(lat)

    n = 2**zoom
    fx = (lon + 180.0) / 360.0 * n
    lat_rad = math.radians(lat)
    fy = (1.0 - math.asinh(math.tan(lat_rad)) / math.pi) / 2.0 * n

    tile_x = math.floor(fx)
    tile_y = math.floor(fy)
    pixel_x = math.floor((fx - tile_x) * TILE_SIZE)
    pixel_y = math.floor((fy - tile_y) * TILE_SIZE)

    # lon=180 and the clamped poles land exactly on the far grid edge
    if tile_x >= n:
        tile_x, pixel_x = n - 1, TILE_SIZE - 1
    if tile_y >= n:
        tile_y, pixel_y = n - 1, TILE_SIZE - 1
    if tile_y < 0:
        tile_y, pixel_y = 0, 0

    return TileIndex(zoom, tile_x, tile_y), PixelCoord(pixel_x, pixel_y)


def tile_to_geo(
    tile_x: int,
    tile_y: int,
    pixel_x: float,
    pixel_y: float,
    zoom: int,
) -> GeoPoint:
    """Convert a tile address plus in-tile pixel offset to latitude/longitude.

    This is the inverse of geo_to_tile(). Pixel offsets may be fractional
    and may fall outside [0, 256); they are combined with the tile index
    into a global pixel position first.

    Returns:
        GeoPoint of the pixel's top-left corner.
    """
    _check_zoom(zoom)
    n = 2**zoom
    gx = tile_x + pixel_x / TILE_SIZE
    gy = tile_y + pixel_y / TILE_SIZE

    lon = gx / n * 360.0 - 180.0
    lat = math.degrees(math.atan(math.sinh(math.pi * (1.0 - 2.0 * gy / n))))
    return GeoPoint(lat, lon)


def pixel_size_degrees(zoom: int) -> float:
    """Return the longitudinal width of one tile pixel in degrees.

    The latitudinal height of a pixel is never larger than this value,
    so it bounds the round-trip error of geo_to_tile/tile_to_geo.
    """
    _check_zoom(zoom)
    return 360.0 / (2**zoom * TILE_SIZE)


def pixel_ring(bounds: PixelBounds) -> list[PixelCoord]:
    """Return the closed corner ring of a pixel bounding box.

    The order is top-left, top-right, bottom-right, bottom-left, top-left.
    """
    min_x, min_y, max_x, max_y = bounds
    return [
        PixelCoord(min_x, min_y),
        PixelCoord(max_x, min_y),
        PixelCoord(max_x, max_y),
        PixelCoord(min_x, max_y),
        PixelCoord(min_x, min_y),
    ]


def pixel_to_geo(bounds: PixelBounds, tile: TileIndex) -> list[GeoPoint]:
    """Project the corners of an in-tile pixel box to geographic coordinates.

    Args:
        bounds: (min_x, min_y, max_x, max_y) in tile pixel coordinates.
        tile: Tile the pixel box belongs to.

    Returns:
        Closed ring of five GeoPoints (first == last).
    """
    return [tile_to_geo(tile.x, tile.y, corner.x, corner.y, tile.zoom) for corner in pixel_ring(bounds)]


def ring_to_polygon(ring: list[GeoPoint] | tuple[GeoPoint, ...]) -> Polygon:
    """Build a shapely Polygon in (lon, lat) axis order from a GeoPoint ring."""
    return Polygon([(point.lon, point.lat) for point in ring])


def tile_bounds(tile: TileIndex) -> tuple[float, float, float, float]:
    """Return the WGS84 bounding box (west, south, east, north) of a tile."""
    north_west = tile_to_geo(tile.x, tile.y, 0, 0, tile.zoom)
    south_east = tile_to_geo(tile.x, tile.y, TILE_SIZE, TILE_SIZE, tile.zoom)
    return (north_west.lon, south_east.lat, south_east.lon, north_west.lat)


def auto_utm_crs(longitude: float, latitude: float) -> CRS:
    """Auto-detect the UTM zone CRS for a given lon/lat point.

    Used for area calculations on geographic polygons.

    Args:
        longitude: Longitude in degrees.
        latitude: Latitude in degrees.

    Returns:
        pyproj.CRS for the appropriate UTM zone.
    """
    zone_number = int(math.floor((longitude + 180) / 6)) + 1
    # lon=180 would otherwise select the nonexistent zone 61
    zone_number = min(zone_number, 60)

    # EPSG code: 326xx for north, 327xx for south
    if latitude >= 0:
        epsg_code = 32600 + zone_number
    else:
        epsg_code = 32700 + zone_number

    return CRS.from_epsg(epsg_code)

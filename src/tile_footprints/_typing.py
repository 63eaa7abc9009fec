"""Value types shared across the tile_footprints library.

This module defines the small immutable records that flow between the
coordinate transform, the classifier, the clustering engine and the
detector. NamedTuples keep them cheap to create per pixel while still
unpacking like plain tuples.
"""

from __future__ import annotations

from typing import NamedTuple

import numpy as np
from numpy.typing import NDArray

# Pixel bounding box inside one tile: (min_x, min_y, max_x, max_y)
PixelBounds = tuple[int, int, int, int]

# Tile raster: (height, width, 4) uint8 RGBA
RGBAImage = NDArray[np.uint8]

TILE_SIZE = 256


class GeoPoint(NamedTuple):
    """Geographic coordinate in degrees (WGS84)."""

    lat: float
    lon: float


class TileIndex(NamedTuple):
    """Slippy-map tile address at a zoom level."""

    zoom: int
    x: int
    y: int


class PixelCoord(NamedTuple):
    """Pixel offset inside a single tile image."""

    x: int
    y: int


class RGBColor(NamedTuple):
    """8-bit RGBA color. Alpha defaults to fully opaque."""

    r: int
    g: int
    b: int
    a: int = 255

    def to_hex(self) -> str:
        """Return the color as a ``#rrggbb`` string (alpha dropped)."""
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

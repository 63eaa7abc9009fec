"""Shared test fixtures for tile_footprints test suite."""

from __future__ import annotations

from io import BytesIO
from unittest.mock import MagicMock

import numpy as np
import pytest
from PIL import Image

from tile_footprints._typing import TILE_SIZE, TileIndex
from tile_footprints.crs import geo_to_tile, tile_to_geo

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TOKYO_STATION = (35.681236, 139.767125)
ZOOM = 18

BUILDING_RGB = (255, 230, 190)  # #FFE6BE
BOUNDARY_RGB = (255, 178, 128)  # #FFB280
WHITE = (255, 255, 255)

# ---------------------------------------------------------------------------
# Test Helper Functions
# ---------------------------------------------------------------------------


def make_tile(
    blocks: list[tuple[int, int, int, int, tuple[int, int, int]]] | None = None,
    size: int = TILE_SIZE,
    background: tuple[int, int, int] = WHITE,
) -> np.ndarray:
    """Create an opaque RGBA tile with rectangular color blocks.

    Each block is (x, y, width, height, rgb) in pixel coordinates.
    """
    tile = np.zeros((size, size, 4), dtype=np.uint8)
    tile[..., :3] = background
    tile[..., 3] = 255
    for x, y, w, h, rgb in blocks or []:
        tile[y : y + h, x : x + w, :3] = rgb
    return tile


def encode_png(image: np.ndarray) -> bytes:
    """Encode an (H, W, 3|4) uint8 array as PNG bytes."""
    buf = BytesIO()
    Image.fromarray(image).save(buf, format="PNG")
    return buf.getvalue()


def point_in_tile(tile: TileIndex, pixel_x: float, pixel_y: float) -> tuple[float, float]:
    """Return (lat, lon) of a pixel position inside a tile."""
    point = tile_to_geo(tile.x, tile.y, pixel_x, pixel_y, tile.zoom)
    return point.lat, point.lon


def fake_response(status_code: int = 200, content: bytes = b"", json_data: object = None) -> MagicMock:
    """Build a stand-in for requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    response.json.return_value = json_data
    return response


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def tokyo_tile() -> TileIndex:
    """The zoom-18 tile containing Tokyo Station."""
    tile, _ = geo_to_tile(*TOKYO_STATION, ZOOM)
    return tile


@pytest.fixture
def building_tile() -> np.ndarray:
    """256x256 tile with a 10x10 building block at pixel (100, 100)."""
    return make_tile([(100, 100, 10, 10, BUILDING_RGB)])


@pytest.fixture
def fake_session() -> MagicMock:
    """A requests.Session stand-in whose get() is configured per test."""
    session = MagicMock()
    session.headers = {}
    return session

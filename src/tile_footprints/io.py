"""Map tile retrieval and decoding.

This module fetches raster map tiles over HTTP with requests and decodes
them into RGBA numpy arrays with Pillow. Everything downstream of this
module works on already-decoded arrays and performs no I/O.
"""

from __future__ import annotations

import logging
from io import BytesIO

import numpy as np
import requests
from PIL import Image, UnidentifiedImageError

from tile_footprints._typing import TILE_SIZE, RGBAImage, TileIndex
from tile_footprints.exceptions import ConfigError, DecodeError, FetchError

logger = logging.getLogger(__name__)

# GSI (Geospatial Information Authority of Japan) standard map
GSI_STD_URL = "https://cyberjapandata.gsi.go.jp/xyz/std/{z}/{x}/{y}.png"

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "image/png,image/*,*/*;q=0.8",
    "Accept-Language": "ja,en-US;q=0.7,en;q=0.3",
}


def tile_url(tile: TileIndex, template: str = GSI_STD_URL) -> str:
    """Fill a ``{z}/{x}/{y}`` URL template with a tile address."""
    return template.format(z=tile.zoom, x=tile.x, y=tile.y)


def decode_tile(data: bytes) -> RGBAImage:
    """Decode raster image bytes into an RGBA uint8 array.

    Args:
        data: Encoded image bytes (PNG, JPEG, ...).

    Returns:
        Writable array of shape (H, W, 4), dtype uint8.

    Raises:
        DecodeError: If the bytes are empty or not a readable image.
    """
    if not data:
        raise DecodeError("Tile response was empty; nothing to decode.")

    try:
        with Image.open(BytesIO(data)) as img:
            rgba = img.convert("RGBA")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise DecodeError(f"Could not decode tile image ({len(data)} bytes): {exc}", size=len(data)) from exc

    return np.array(rgba, dtype=np.uint8)


class TileFetcher:
    """Fetch and decode map tiles from a ``{z}/{x}/{y}`` tile server.

    Example::

        fetcher = TileFetcher()
        image = fetcher.fetch(TileIndex(18, 232847, 103226))

    Args:
        url_template: Tile URL template with ``{z}``, ``{x}`` and ``{y}`` fields.
        timeout: Request timeout in seconds.
        session: Optional requests.Session to reuse connections. A new
            session is created if None.
        headers: Extra request headers merged over the defaults.
    """

    def __init__(
        self,
        url_template: str = GSI_STD_URL,
        timeout: float = 10.0,
        session: requests.Session | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        for field in ("{z}", "{x}", "{y}"):
            if field not in url_template:
                raise ConfigError(f"url_template is missing the {field} field: '{url_template}'")
        if timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {timeout}")

        self.url_template = url_template
        self.timeout = timeout
        self._session = session if session is not None else requests.Session()
        self._session.headers.update(DEFAULT_HEADERS)
        if headers:
            self._session.headers.update(headers)

    def url_for(self, tile: TileIndex) -> str:
        return tile_url(tile, self.url_template)

    def fetch_bytes(self, tile: TileIndex) -> bytes:
        """Download the encoded tile image.

        Raises:
            FetchError: On network errors, timeouts, or non-2xx responses.
        """
        url = self.url_for(tile)
        logger.debug("Fetching tile %s", url)

        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise FetchError(f"Failed to fetch tile {url}: {exc}", url=url) from exc

        if not 200 <= response.status_code < 300:
            raise FetchError(
                f"Failed to fetch tile {url}: HTTP {response.status_code}",
                url=url,
                status=response.status_code,
            )

        return response.content

    def fetch(self, tile: TileIndex) -> RGBAImage:
        """Download and decode a tile into an (H, W, 4) uint8 array.

        Raises:
            FetchError: If the download fails.
            DecodeError: If the response is not a readable image, or not
                a TILE_SIZE x TILE_SIZE one.
        """
        image = decode_tile(self.fetch_bytes(tile))
        height, width = image.shape[:2]
        if (height, width) != (TILE_SIZE, TILE_SIZE):
            raise DecodeError(
                f"Tile {self.url_for(tile)} is {width}x{height}, expected {TILE_SIZE}x{TILE_SIZE}.",
                url=self.url_for(tile),
                width=width,
                height=height,
            )
        return image

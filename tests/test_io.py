"""Tests for tile fetching and decoding.

All HTTP traffic is mocked -- no network calls are made.
"""

from __future__ import annotations

from io import BytesIO

import numpy as np
import pytest
import requests
from PIL import Image

from tile_footprints._typing import TileIndex
from tile_footprints.exceptions import ConfigError, DecodeError, FetchError, TileError
from tile_footprints.io import DEFAULT_HEADERS, GSI_STD_URL, TileFetcher, decode_tile, tile_url

from conftest import BUILDING_RGB, encode_png, fake_response, make_tile

TILE = TileIndex(18, 232847, 103226)


class TestTileUrl:
    def test_default_template(self):
        assert tile_url(TILE) == "https://cyberjapandata.gsi.go.jp/xyz/std/18/232847/103226.png"

    def test_custom_template(self):
        assert tile_url(TILE, "https://tiles.example/{z}/{y}/{x}") == "https://tiles.example/18/103226/232847"


class TestDecodeTile:
    def test_rgba_png(self):
        image = make_tile([(10, 10, 5, 5, BUILDING_RGB)])
        decoded = decode_tile(encode_png(image))
        assert decoded.shape == (256, 256, 4)
        assert decoded.dtype == np.uint8
        np.testing.assert_array_equal(decoded, image)

    def test_rgb_png_gets_opaque_alpha(self):
        image = make_tile()[..., :3]
        decoded = decode_tile(encode_png(image))
        assert decoded.shape == (256, 256, 4)
        assert (decoded[..., 3] == 255).all()

    def test_palette_png(self):
        buf = BytesIO()
        Image.new("P", (8, 8), color=3).save(buf, format="PNG")
        assert decode_tile(buf.getvalue()).shape == (8, 8, 4)

    def test_result_is_writable(self):
        decoded = decode_tile(encode_png(make_tile(size=4)))
        decoded[0, 0] = (1, 2, 3, 4)
        assert tuple(decoded[0, 0]) == (1, 2, 3, 4)

    def test_garbage_bytes(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_tile(b"<html>not found</html>")
        assert exc_info.value.context["size"] == 22

    def test_empty_bytes(self):
        with pytest.raises(DecodeError):
            decode_tile(b"")

    def test_decode_error_is_tile_error(self):
        with pytest.raises(TileError):
            decode_tile(b"\x89PNG truncated")

    def test_decompression_bomb(self, monkeypatch):
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        with pytest.raises(DecodeError, match="decode"):
            decode_tile(encode_png(make_tile()))


class TestTileFetcher:
    def test_fetch_decodes_image(self, fake_session):
        image = make_tile([(0, 0, 3, 3, BUILDING_RGB)])
        fake_session.get.return_value = fake_response(200, encode_png(image))

        fetcher = TileFetcher(session=fake_session, timeout=5)
        result = fetcher.fetch(TILE)

        np.testing.assert_array_equal(result, image)
        fake_session.get.assert_called_once_with(tile_url(TILE), timeout=5)

    def test_default_headers_applied(self, fake_session):
        TileFetcher(session=fake_session, headers={"Referer": "https://example.org"})
        assert fake_session.headers["Accept"] == DEFAULT_HEADERS["Accept"]
        assert fake_session.headers["Referer"] == "https://example.org"

    def test_http_error_status(self, fake_session):
        fake_session.get.return_value = fake_response(404)
        fetcher = TileFetcher(session=fake_session)
        with pytest.raises(FetchError, match="HTTP 404") as exc_info:
            fetcher.fetch_bytes(TILE)
        assert exc_info.value.context["status"] == 404
        assert exc_info.value.context["url"] == tile_url(TILE)

    def test_network_error(self, fake_session):
        fake_session.get.side_effect = requests.ConnectionError("connection refused")
        fetcher = TileFetcher(session=fake_session)
        with pytest.raises(FetchError, match="connection refused"):
            fetcher.fetch(TILE)

    def test_timeout(self, fake_session):
        fake_session.get.side_effect = requests.Timeout("read timed out")
        with pytest.raises(FetchError):
            TileFetcher(session=fake_session).fetch(TILE)

    def test_undecodable_body(self, fake_session):
        fake_session.get.return_value = fake_response(200, b"oops")
        with pytest.raises(DecodeError):
            TileFetcher(session=fake_session).fetch(TILE)

    def test_oversized_image_rejected(self, fake_session, monkeypatch):
        # Pillow refuses images above twice MAX_IMAGE_PIXELS
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 16 * 16)
        fake_session.get.return_value = fake_response(200, encode_png(make_tile()))
        with pytest.raises(DecodeError):
            TileFetcher(session=fake_session).fetch(TILE)

    @pytest.mark.parametrize("size", [64, 512])
    def test_wrong_tile_size(self, fake_session, size):
        fake_session.get.return_value = fake_response(200, encode_png(make_tile(size=size)))
        with pytest.raises(DecodeError, match="expected 256x256") as exc_info:
            TileFetcher(session=fake_session).fetch(TILE)
        assert exc_info.value.context["width"] == size
        assert exc_info.value.context["height"] == size
        assert exc_info.value.context["url"] == tile_url(TILE)

    def test_url_for_uses_template(self, fake_session):
        fetcher = TileFetcher(url_template="https://t.example/{z}/{x}/{y}.png", session=fake_session)
        assert fetcher.url_for(TILE) == "https://t.example/18/232847/103226.png"

    def test_template_missing_field(self):
        with pytest.raises(ConfigError, match=r"\{y\}"):
            TileFetcher(url_template="https://t.example/{z}/{x}.png")

    def test_non_positive_timeout(self):
        with pytest.raises(ConfigError):
            TileFetcher(timeout=0)

    def test_default_template_is_gsi(self):
        assert TileFetcher().url_template == GSI_STD_URL

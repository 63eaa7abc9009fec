"""Tests for cluster-to-polygon conversion."""

from __future__ import annotations

import pytest
from shapely.geometry import Polygon

from tile_footprints._typing import GeoPoint, PixelCoord, TileIndex
from tile_footprints.crs import tile_to_geo
from tile_footprints.regions import (
    MIN_CLUSTER_SIZE,
    BuildingPolygon,
    cluster_to_polygon,
    clusters_to_polygons,
)

TILE = TileIndex(18, 232847, 103226)


def block(x0: int, y0: int, w: int, h: int) -> list[PixelCoord]:
    return [PixelCoord(x, y) for y in range(y0, y0 + h) for x in range(x0, x0 + w)]


class TestClusterToPolygon:
    def test_minimum_size_is_five(self):
        assert MIN_CLUSTER_SIZE == 5

    def test_small_cluster_discarded(self):
        assert cluster_to_polygon(block(0, 0, 2, 2), TILE) is None

    def test_five_pixels_survive(self):
        cluster = block(0, 0, 5, 1)
        polygon = cluster_to_polygon(cluster, TILE)
        assert polygon is not None
        assert polygon.source_pixel_count == 5

    def test_custom_min_size(self):
        assert cluster_to_polygon(block(0, 0, 3, 3), TILE, min_size=10) is None
        assert cluster_to_polygon(block(0, 0, 3, 3), TILE, min_size=1) is not None

    def test_bounding_box_ring(self):
        polygon = cluster_to_polygon(block(100, 100, 10, 10), TILE)
        assert polygon.pixel_bounds == (100, 100, 109, 109)
        assert polygon.tile == TILE
        assert polygon.source_pixel_count == 100

        expected = [
            tile_to_geo(TILE.x, TILE.y, 100, 100, 18),
            tile_to_geo(TILE.x, TILE.y, 109, 100, 18),
            tile_to_geo(TILE.x, TILE.y, 109, 109, 18),
            tile_to_geo(TILE.x, TILE.y, 100, 109, 18),
            tile_to_geo(TILE.x, TILE.y, 100, 100, 18),
        ]
        assert len(polygon.ring) == 5
        for actual, want in zip(polygon.ring, expected):
            assert actual == pytest.approx(want)

    def test_sparse_cluster_uses_extremes(self):
        cluster = [PixelCoord(10, 40), PixelCoord(12, 41), PixelCoord(15, 38), PixelCoord(11, 44), PixelCoord(13, 42)]
        polygon = cluster_to_polygon(cluster, TILE)
        assert polygon.pixel_bounds == (10, 38, 15, 44)

    def test_defaults_tag_color_analysis(self):
        polygon = cluster_to_polygon(block(0, 0, 3, 3), TILE)
        assert polygon.source == "color_analysis"
        assert polygon.building == "color_detected"


class TestClustersToPolygons:
    def test_filters_noise_and_keeps_order(self):
        clusters = [block(0, 0, 1, 1), block(10, 10, 3, 3), block(50, 50, 2, 2), block(80, 80, 4, 4)]
        polygons = clusters_to_polygons(clusters, TILE)
        assert [p.source_pixel_count for p in polygons] == [9, 16]

    def test_all_noise_gives_empty_list(self):
        assert clusters_to_polygons([block(0, 0, 2, 2)], TILE) == []


class TestBuildingPolygon:
    def test_geometry(self):
        polygon = cluster_to_polygon(block(100, 100, 10, 10), TILE)
        geom = polygon.geometry
        assert isinstance(geom, Polygon)
        assert geom.is_valid
        assert geom.area > 0
        # (lon, lat) axis order
        min_lon, min_lat, max_lon, max_lat = geom.bounds
        assert 139 < min_lon < max_lon < 140
        assert 35 < min_lat < max_lat < 36

    def test_coordinates_are_lon_lat(self):
        ring = (GeoPoint(1.0, 2.0), GeoPoint(1.0, 3.0), GeoPoint(0.0, 3.0), GeoPoint(1.0, 2.0))
        polygon = BuildingPolygon(ring=ring, source_pixel_count=0)
        assert polygon.coordinates[0] == [2.0, 1.0]

    def test_open_ring_rejected(self):
        ring = (GeoPoint(0, 0), GeoPoint(0, 1), GeoPoint(1, 1), GeoPoint(1, 0))
        with pytest.raises(ValueError, match="closed"):
            BuildingPolygon(ring=ring, source_pixel_count=4)

    def test_short_ring_rejected(self):
        with pytest.raises(ValueError):
            BuildingPolygon(ring=(GeoPoint(0, 0), GeoPoint(0, 0)), source_pixel_count=1)

    def test_frozen(self):
        polygon = cluster_to_polygon(block(0, 0, 3, 3), TILE)
        with pytest.raises(AttributeError):
            polygon.source_pixel_count = 3

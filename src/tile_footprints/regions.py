"""Reduction of pixel clusters to geographic building polygons.

Each surviving cluster becomes the axis-aligned rectangle around its
pixels, projected to latitude/longitude through the tile transform. The
rectangle is an approximation of the footprint, not a traced outline.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from shapely.geometry import Polygon

from tile_footprints._typing import GeoPoint, PixelBounds, PixelCoord, TileIndex
from tile_footprints.clustering import cluster_bounds
from tile_footprints.crs import pixel_to_geo, ring_to_polygon

# Smaller clusters are treated as classification noise
MIN_CLUSTER_SIZE = 5


@dataclass(frozen=True)
class BuildingPolygon:
    """A building footprint as a closed ring of geographic points.

    Attributes:
        ring: Closed ring of GeoPoints (first == last).
        source_pixel_count: Number of pixels in the originating cluster,
            0 for polygons from a vector source.
        source: Where the polygon came from ("color_analysis", "OpenStreetMap").
        building: Building type tag.
        pixel_bounds: In-tile pixel box the ring was projected from.
        tile: Tile the pixel box belongs to.
        feature_id: Identifier from the originating source, if any.
    """

    ring: tuple[GeoPoint, ...]
    source_pixel_count: int
    source: str = "color_analysis"
    building: str = "color_detected"
    pixel_bounds: PixelBounds | None = None
    tile: TileIndex | None = None
    feature_id: int | None = None

    def __post_init__(self) -> None:
        if len(self.ring) < 4:
            raise ValueError(f"A polygon ring needs at least 4 points, got {len(self.ring)}")
        if self.ring[0] != self.ring[-1]:
            raise ValueError("Polygon ring must be closed (first point == last point)")

    @property
    def geometry(self) -> Polygon:
        """Shapely polygon in (lon, lat) axis order."""
        return ring_to_polygon(self.ring)

    @property
    def coordinates(self) -> list[list[float]]:
        """GeoJSON-style [lon, lat] coordinate list of the ring."""
        return [[point.lon, point.lat] for point in self.ring]


def cluster_to_polygon(
    cluster: Sequence[PixelCoord],
    tile: TileIndex,
    min_size: int = MIN_CLUSTER_SIZE,
) -> BuildingPolygon | None:
    """Convert one pixel cluster to a building polygon.

    Args:
        cluster: Member pixels of one cluster.
        tile: Tile the pixels were read from.
        min_size: Clusters with fewer members are discarded.

    Returns:
        BuildingPolygon, or None when the cluster is below min_size.
    """
    if len(cluster) < min_size:
        return None

    bounds = cluster_bounds(cluster)
    ring = tuple(pixel_to_geo(bounds, tile))
    return BuildingPolygon(
        ring=ring,
        source_pixel_count=len(cluster),
        pixel_bounds=bounds,
        tile=tile,
    )


def clusters_to_polygons(
    clusters: Sequence[Sequence[PixelCoord]],
    tile: TileIndex,
    min_size: int = MIN_CLUSTER_SIZE,
) -> list[BuildingPolygon]:
    """Convert clusters to polygons, dropping those below min_size.

    Each polygon is tagged with the size of the cluster it came from.
    """
    polygons = []
    for cluster in clusters:
        polygon = cluster_to_polygon(cluster, tile, min_size=min_size)
        if polygon is not None:
            polygons.append(polygon)
    return polygons

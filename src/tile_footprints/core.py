"""BuildingDetector - public API for color-based building footprint detection.

This module provides the primary user-facing interface. The detector
fetches the map tile under a query point, classifies tile pixels by
color, keeps building pixels near the query pixel, clusters them and
turns each cluster into a geographic polygon. It delegates to the
specialized modules for tile math, color classification, clustering,
polygon conversion and tile I/O.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from tile_footprints._typing import TILE_SIZE, GeoPoint, PixelCoord, RGBAImage, TileIndex
from tile_footprints.clustering import cluster_pixels
from tile_footprints.color import TOLERANCE_RANGE, PixelClass, ReferencePalette, classify_image, resolve_palette
from tile_footprints.crs import geo_to_tile
from tile_footprints.exceptions import (
    ConfigError,
    DetectionError,
    NoCandidatesError,
    NoClusterError,
    OutOfBoundsError,
    TileError,
    TileFootprintsError,
)
from tile_footprints.io import TileFetcher
from tile_footprints.regions import BuildingPolygon, clusters_to_polygons

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DetectorConfig:
    """Tunable parameters of the detection pipeline.

    Attributes:
        zoom: Tile zoom level to analyze.
        tolerance: Manhattan color tolerance for classification, in [0, 100].
        search_radius: Pixel radius around the query pixel that candidates
            must fall within.
        cluster_distance: Maximum pixel distance linking two candidates.
        min_cluster_size: Clusters with fewer pixels are discarded.
        palette: Palette preset name or ReferencePalette.
    """

    zoom: int = 18
    tolerance: float = 50
    search_radius: float = 30.0
    cluster_distance: float = 3.0
    min_cluster_size: int = 5
    palette: str | ReferencePalette = "standard"

    def __post_init__(self) -> None:
        if not isinstance(self.zoom, int) or isinstance(self.zoom, bool) or not 0 <= self.zoom <= 30:
            raise ConfigError(f"zoom must be an integer in [0, 30], got {self.zoom!r}", zoom=self.zoom)
        low, high = TOLERANCE_RANGE
        if not low <= self.tolerance <= high:
            raise ConfigError(f"tolerance must be within [{low}, {high}], got {self.tolerance}")
        if self.search_radius <= 0:
            raise ConfigError(f"search_radius must be positive, got {self.search_radius}")
        if self.cluster_distance <= 0:
            raise ConfigError(f"cluster_distance must be positive, got {self.cluster_distance}")
        if self.min_cluster_size < 1:
            raise ConfigError(f"min_cluster_size must be at least 1, got {self.min_cluster_size}")
        # Fail on unknown preset names at construction time
        resolve_palette(self.palette)


@dataclass(frozen=True)
class DetectionDiagnostics:
    """Counters and coordinates describing one detection call.

    Built once when the call finishes. Fields that were never reached
    (e.g. cluster_count after an early abort) keep their zero default.
    """

    original_coordinates: GeoPoint
    tile: TileIndex
    query_pixel: PixelCoord
    search_radius: float = 0.0
    tile_url: str | None = None
    query_color: str | None = None
    building_pixels: int = 0
    boundary_pixels: int = 0
    nearby_building_pixels: int = 0
    clusters_generated: int = 0
    polygons_generated: int = 0


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of a detection call.

    Attributes:
        polygons: Detected building polygons, possibly empty.
        diagnostics: Counters for observability. None only when the
            query point could not be mapped to a tile.
        error: The terminal failure of the call, or None on success.
    """

    polygons: list[BuildingPolygon] = field(default_factory=list)
    diagnostics: DetectionDiagnostics | None = None
    error: TileFootprintsError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        """Re-raise the stored error, if any."""
        if self.error is not None:
            raise self.error

    def __len__(self) -> int:
        return len(self.polygons)


class BuildingDetector:
    """Locate building footprints at a coordinate from raster map tiles.

    Example::

        detector = BuildingDetector()
        result = detector.detect(35.681236, 139.767125)
        if result.ok:
            for polygon in result.polygons:
                print(polygon.source_pixel_count, polygon.coordinates)

    Args:
        config: Detection parameters. Defaults to DetectorConfig().
        fetcher: Tile fetcher used by detect(). A default GSI fetcher is
            created if None.
    """

    def __init__(
        self,
        config: DetectorConfig | None = None,
        fetcher: TileFetcher | None = None,
    ) -> None:
        self.config = config if config is not None else DetectorConfig()
        self._palette = resolve_palette(self.config.palette)
        self._fetcher = fetcher

    @property
    def fetcher(self) -> TileFetcher:
        if self._fetcher is None:
            self._fetcher = TileFetcher()
        return self._fetcher

    @property
    def palette(self) -> ReferencePalette:
        return self._palette

    def detect(self, lat: float, lon: float, strict: bool = False) -> DetectionResult:
        """Fetch the tile under (lat, lon) and detect buildings near the point.

        Args:
            lat: Query latitude in degrees.
            lon: Query longitude in degrees.
            strict: If True, raise terminal errors instead of returning them
                on the result.

        Returns:
            DetectionResult. On failure ``polygons`` is empty and ``error``
            holds a FetchError, DecodeError, OutOfBoundsError,
            NoCandidatesError or NoClusterError.
        """
        tile, pixel = geo_to_tile(lat, lon, self.config.zoom)
        url = self.fetcher.url_for(tile)
        logger.debug("Query (%.6f, %.6f) -> tile %s pixel %s", lat, lon, tile, pixel)

        try:
            image = self.fetcher.fetch(tile)
        except TileError as exc:
            logger.warning("Tile acquisition failed for %s: %s", url, exc)
            result = DetectionResult(
                diagnostics=DetectionDiagnostics(
                    GeoPoint(lat, lon), tile, pixel, search_radius=self.config.search_radius, tile_url=url
                ),
                error=exc,
            )
        else:
            result = self._run(image, GeoPoint(lat, lon), tile, pixel, url)

        if strict:
            result.raise_for_error()
        return result

    def detect_in_image(
        self,
        image: NDArray,
        lat: float,
        lon: float,
        strict: bool = False,
    ) -> DetectionResult:
        """Detect buildings in an already-fetched tile image.

        The image must be the TILE_SIZE x TILE_SIZE tile containing
        (lat, lon) at the configured zoom level. Any other size yields an
        OutOfBoundsError, since query pixels are tile pixel offsets.

        Args:
            image: Array of shape (H, W, 3) or (H, W, 4), uint8.
            lat: Query latitude in degrees.
            lon: Query longitude in degrees.
            strict: If True, raise terminal errors instead of returning them.
        """
        tile, pixel = geo_to_tile(lat, lon, self.config.zoom)
        result = self._run(image, GeoPoint(lat, lon), tile, pixel, None)
        if strict:
            result.raise_for_error()
        return result

    def _run(
        self,
        image: RGBAImage,
        origin: GeoPoint,
        tile: TileIndex,
        pixel: PixelCoord,
        url: str | None,
    ) -> DetectionResult:
        cfg = self.config
        counts: dict[str, int] = {}

        def finish(polygons: list[BuildingPolygon], error: DetectionError | None, color: str | None) -> DetectionResult:
            diagnostics = DetectionDiagnostics(
                original_coordinates=origin,
                tile=tile,
                query_pixel=pixel,
                search_radius=cfg.search_radius,
                tile_url=url,
                query_color=color,
                polygons_generated=len(polygons),
                **counts,
            )
            if error is not None:
                logger.info("No buildings detected at (%.6f, %.6f): %s", origin.lat, origin.lon, error)
            return DetectionResult(polygons=polygons, diagnostics=diagnostics, error=error)

        height, width = image.shape[:2]
        if (height, width) != (TILE_SIZE, TILE_SIZE):
            error = OutOfBoundsError(
                f"Tile image is {width}x{height}, expected {TILE_SIZE}x{TILE_SIZE}; "
                f"query pixel ({pixel.x}, {pixel.y}) cannot be located in it.",
                pixel=pixel,
                width=width,
                height=height,
            )
            return finish([], error, None)

        r, g, b = (int(v) for v in image[pixel.y, pixel.x, :3])
        query_color = f"#{r:02x}{g:02x}{b:02x}"

        mask = classify_image(image, cfg.tolerance, self._palette)
        building_pixels = _mask_pixels(mask, PixelClass.BUILDING)
        counts["building_pixels"] = len(building_pixels)
        counts["boundary_pixels"] = int(np.count_nonzero(mask == PixelClass.BOUNDARY))
        logger.debug(
            "Found %d building pixels, %d boundary pixels", counts["building_pixels"], counts["boundary_pixels"]
        )

        nearby = [
            (x, y)
            for x, y in building_pixels
            if math.sqrt((x - pixel.x) ** 2 + (y - pixel.y) ** 2) <= cfg.search_radius
        ]
        counts["nearby_building_pixels"] = len(nearby)
        if not nearby:
            error = NoCandidatesError(
                f"No building pixels within {cfg.search_radius}px of query pixel ({pixel.x}, {pixel.y}).",
                pixel=pixel,
            )
            return finish([], error, query_color)

        clusters = cluster_pixels(nearby, cfg.cluster_distance)
        counts["clusters_generated"] = len(clusters)
        logger.debug("Generated %d clusters from %d nearby building pixels", len(clusters), len(nearby))

        polygons = clusters_to_polygons(clusters, tile, min_size=cfg.min_cluster_size)
        if not polygons:
            error = NoClusterError(
                f"{len(clusters)} cluster(s) found but none reached {cfg.min_cluster_size} pixels.",
                clusters=len(clusters),
            )
            return finish([], error, query_color)

        logger.debug("Generated %d building polygons", len(polygons))
        return finish(polygons, None, query_color)


def _mask_pixels(mask: NDArray[np.uint8], cls: PixelClass) -> list[tuple[int, int]]:
    """(x, y) coordinates of pixels of one class, in row-major scan order."""
    rows, cols = np.nonzero(mask == cls)
    return list(zip(cols.tolist(), rows.tolist()))

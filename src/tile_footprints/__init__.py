"""tile_footprints - Building footprints from raster map tile colors."""

from __future__ import annotations

__version__ = "0.1.0"

from tile_footprints._typing import GeoPoint, PixelCoord, RGBColor, TileIndex
from tile_footprints.clustering import cluster_pixels
from tile_footprints.color import PixelClass, ReferencePalette, classify, classify_image
from tile_footprints.core import BuildingDetector, DetectionDiagnostics, DetectionResult, DetectorConfig
from tile_footprints.crs import geo_to_tile, tile_to_geo
from tile_footprints.exceptions import (
    ConfigError,
    DecodeError,
    DetectionError,
    ExportError,
    FetchError,
    InvalidSeedError,
    MercatorRangeWarning,
    NoCandidatesError,
    NoClusterError,
    OutOfBoundsError,
    SourceError,
    TileError,
    TileFootprintsError,
)
from tile_footprints.fill import fill_building, flood_fill
from tile_footprints.io import TileFetcher
from tile_footprints.regions import BuildingPolygon, cluster_to_polygon
from tile_footprints.sources import OverpassSource, find_buildings

__all__ = [
    "__version__",
    "GeoPoint",
    "TileIndex",
    "PixelCoord",
    "RGBColor",
    "geo_to_tile",
    "tile_to_geo",
    "PixelClass",
    "ReferencePalette",
    "classify",
    "classify_image",
    "cluster_pixels",
    "BuildingPolygon",
    "cluster_to_polygon",
    "BuildingDetector",
    "DetectorConfig",
    "DetectionResult",
    "DetectionDiagnostics",
    "TileFetcher",
    "flood_fill",
    "fill_building",
    "OverpassSource",
    "find_buildings",
    "TileFootprintsError",
    "ConfigError",
    "TileError",
    "FetchError",
    "DecodeError",
    "DetectionError",
    "OutOfBoundsError",
    "NoCandidatesError",
    "NoClusterError",
    "InvalidSeedError",
    "SourceError",
    "ExportError",
    "MercatorRangeWarning",
]

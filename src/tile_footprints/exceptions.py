"""Exception hierarchy for tile_footprints.

All custom exceptions inherit from TileFootprintsError to enable catch-all
error handling. Each exception type maps to a specific failure domain
and carries actionable error messages.
"""

from __future__ import annotations


class TileFootprintsError(Exception):
    """Base exception for all tile_footprints errors.

    Catching this exception will catch any error raised by the
    tile_footprints library, providing a convenient catch-all for
    library consumers.
    """

    def __init__(self, message: str = "", **kwargs: object) -> None:
        self.context = kwargs
        super().__init__(message)


class ConfigError(TileFootprintsError):
    """Raised for invalid detector, palette, or fetcher configuration."""

    pass


class TileError(TileFootprintsError):
    """Raised when a map tile cannot be acquired.

    Base class for fetch and decode failures.
    """

    pass


class FetchError(TileError):
    """Raised for network errors, timeouts, and non-2xx tile responses."""

    pass


class DecodeError(TileError):
    """Raised when tile bytes cannot be decoded into a raster image."""

    pass


class DetectionError(TileFootprintsError):
    """Raised for terminal outcomes of a single detection call.

    These are not retried inside the detector. The caller decides
    whether to fall back to another building source.
    """

    pass


class OutOfBoundsError(DetectionError):
    """Raised when the query pixel lies outside the tile image."""

    pass


class NoCandidatesError(DetectionError):
    """Raised when no building-colored pixels lie near the query point."""

    pass


class NoClusterError(DetectionError):
    """Raised when candidate pixels exist but no cluster is large enough."""

    pass


class InvalidSeedError(TileFootprintsError):
    """Raised when a flood fill seed lies outside the raster buffer."""

    pass


class SourceError(TileFootprintsError):
    """Raised when an authoritative building source is unavailable.

    This covers network failures and malformed responses from the
    Overpass API.
    """

    pass


class ExportError(TileFootprintsError):
    """Raised for output format or file writing issues."""

    pass


class MercatorRangeWarning(UserWarning):
    """Warning issued when a latitude is clamped into the Web Mercator range.

    Web Mercator tiles only cover latitudes up to about +/-85.0511 degrees.
    Points beyond the limit are projected onto the edge of the tile grid.
    """

    pass

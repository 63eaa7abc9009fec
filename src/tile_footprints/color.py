"""Color classification of map-tile pixels against reference palettes.

Building detection compares pixels to the palette with the Manhattan
distance (sum of absolute channel differences). Flood fill compares
pixels to its seed color with the Euclidean distance instead. The two
metrics give different results for the same tolerance and are kept as
separate functions.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Sequence
from enum import IntEnum

import numpy as np
from numpy.typing import NDArray

from tile_footprints._typing import RGBColor
from tile_footprints.exceptions import ConfigError

DEFAULT_TOLERANCE = 50
TOLERANCE_RANGE = (0, 100)

_HEX_PATTERN = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)


class PixelClass(IntEnum):
    """Classification result for one pixel. Values are used in label masks."""

    NONE = 0
    BUILDING = 1
    BOUNDARY = 2


# ---------------------------------------------------------------------------
# Reference palettes
# ---------------------------------------------------------------------------


class ReferencePalette:
    """Reference color samples for building bodies and building outlines.

    Samples are only used for membership tests, so their order carries
    no meaning.
    """

    PRESETS: dict[str, tuple[tuple[RGBColor, ...], tuple[RGBColor, ...]]] = {
        # GSI standard map building fill and outline colors
        "standard": (
            (
                RGBColor(255, 230, 190),  # #FFE6BE
                RGBColor(254, 229, 189),
                RGBColor(255, 231, 191),
            ),
            (
                RGBColor(255, 178, 128),  # #FFB280
                RGBColor(255, 212, 169),  # #FFD4A9
                RGBColor(255, 135, 75),  # #FF874B
            ),
        ),
        # Wider sampling of lighter and darker renderings
        "extended": (
            (
                RGBColor(255, 230, 190),
                RGBColor(254, 229, 189),
                RGBColor(255, 231, 191),
                RGBColor(255, 235, 205),
                RGBColor(255, 225, 185),
                RGBColor(255, 240, 210),
                RGBColor(255, 220, 180),
            ),
            (
                RGBColor(255, 178, 128),
                RGBColor(255, 212, 169),
                RGBColor(255, 135, 75),
                RGBColor(255, 165, 115),
                RGBColor(255, 190, 140),
                RGBColor(255, 150, 100),
            ),
        ),
    }

    def __init__(
        self,
        building: Iterable[Sequence[int]],
        boundary: Iterable[Sequence[int]],
    ) -> None:
        """Initialize from explicit color samples.

        Args:
            building: RGB(A) samples for building bodies.
            boundary: RGB(A) samples for building outlines.

        Raises:
            ConfigError: If a sample is malformed or the building set is empty.
        """
        self._building = tuple(_to_color(c) for c in building)
        self._boundary = tuple(_to_color(c) for c in boundary)
        if not self._building:
            raise ConfigError("A palette needs at least one building color sample.")

    @classmethod
    def from_preset(cls, name: str) -> ReferencePalette:
        """Build a palette from a named preset ("standard" or "extended").

        Raises:
            ConfigError: If the preset name is unknown.
        """
        if name not in cls.PRESETS:
            valid = ", ".join(sorted(cls.PRESETS))
            raise ConfigError(f"Unknown palette preset '{name}'. Valid presets: {valid}.", preset=name)
        building, boundary = cls.PRESETS[name]
        return cls(building, boundary)

    @property
    def building(self) -> tuple[RGBColor, ...]:
        return self._building

    @property
    def boundary(self) -> tuple[RGBColor, ...]:
        return self._boundary

    def as_arrays(self) -> tuple[NDArray[np.int32], NDArray[np.int32]]:
        """Return (building, boundary) samples as (k, 3) int32 arrays."""
        building = np.array([c[:3] for c in self._building], dtype=np.int32).reshape(-1, 3)
        boundary = np.array([c[:3] for c in self._boundary], dtype=np.int32).reshape(-1, 3)
        return building, boundary

    def __repr__(self) -> str:
        return f"ReferencePalette(building={len(self._building)}, boundary={len(self._boundary)})"


def _to_color(sample: Sequence[int]) -> RGBColor:
    if isinstance(sample, RGBColor):
        return sample
    values = [int(v) for v in sample]
    if len(values) not in (3, 4) or any(v < 0 or v > 255 for v in values):
        raise ConfigError(f"Color samples must be 3 or 4 channels in [0, 255], got {tuple(sample)}")
    return RGBColor(*values)


def resolve_palette(palette: ReferencePalette | str | None) -> ReferencePalette:
    """Accept a palette instance, a preset name, or None for "standard"."""
    if palette is None:
        return ReferencePalette.from_preset("standard")
    if isinstance(palette, ReferencePalette):
        return palette
    if isinstance(palette, str):
        return ReferencePalette.from_preset(palette)
    raise ConfigError(f"palette must be a ReferencePalette or preset name, got {type(palette).__name__}")


# ---------------------------------------------------------------------------
# Distance metrics
# ---------------------------------------------------------------------------


def manhattan_distance(c1: Sequence[int], c2: Sequence[int]) -> int:
    """Sum of absolute R, G, B differences. Alpha is ignored."""
    return abs(int(c1[0]) - int(c2[0])) + abs(int(c1[1]) - int(c2[1])) + abs(int(c1[2]) - int(c2[2]))


def euclidean_distance(c1: Sequence[int], c2: Sequence[int]) -> float:
    """Straight-line distance between two colors in RGB space. Alpha is ignored."""
    return math.sqrt(
        (int(c1[0]) - int(c2[0])) ** 2 + (int(c1[1]) - int(c2[1])) ** 2 + (int(c1[2]) - int(c2[2])) ** 2
    )


def is_similar_color(c1: Sequence[int], c2: Sequence[int], tolerance: float) -> bool:
    """Euclidean similarity test used by flood fill."""
    return euclidean_distance(c1, c2) <= tolerance


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def classify(
    r: int,
    g: int,
    b: int,
    tolerance: float = DEFAULT_TOLERANCE,
    palette: ReferencePalette | str | None = None,
) -> PixelClass:
    """Classify one color as building body, building boundary, or neither.

    A color matches a class when any of its samples lies within
    ``tolerance`` Manhattan distance. Building samples are checked
    before boundary samples.
    """
    palette = resolve_palette(palette)
    color = (r, g, b)

    for sample in palette.building:
        if manhattan_distance(color, sample) <= tolerance:
            return PixelClass.BUILDING

    for sample in palette.boundary:
        if manhattan_distance(color, sample) <= tolerance:
            return PixelClass.BOUNDARY

    return PixelClass.NONE


def _within(pixels: NDArray[np.int32], samples: NDArray[np.int32], tolerance: float) -> NDArray[np.bool_]:
    if len(samples) == 0:
        return np.zeros(pixels.shape[:-1], dtype=bool)
    # (..., 1, 3) - (k, 3) -> (..., k)
    dist = np.abs(pixels[..., np.newaxis, :] - samples).sum(axis=-1)
    return (dist <= tolerance).any(axis=-1)


def classify_image(
    image: NDArray,
    tolerance: float = DEFAULT_TOLERANCE,
    palette: ReferencePalette | str | None = None,
) -> NDArray[np.uint8]:
    """Classify every pixel of an image at once.

    Gives the same answer as calling classify() on each pixel.

    Args:
        image: Array of shape (H, W, 3) or (H, W, 4). Channels beyond RGB
            are ignored.
        tolerance: Manhattan distance tolerance.
        palette: Palette instance or preset name.

    Returns:
        uint8 mask of shape (H, W) holding PixelClass values.
    """
    if image.ndim != 3 or image.shape[2] < 3:
        raise ValueError(f"Expected an (H, W, 3|4) image, got shape {image.shape}")

    building, boundary = resolve_palette(palette).as_arrays()
    rgb = image[..., :3].astype(np.int32)

    is_building = _within(rgb, building, tolerance)
    is_boundary = _within(rgb, boundary, tolerance) & ~is_building

    mask = np.zeros(rgb.shape[:2], dtype=np.uint8)
    mask[is_building] = PixelClass.BUILDING
    mask[is_boundary] = PixelClass.BOUNDARY
    return mask


def hex_to_rgb(value: str) -> RGBColor:
    """Parse ``#rrggbb`` (``#`` optional) into an opaque RGBColor.

    Unparseable input yields opaque red, the default fill color.
    """
    match = _HEX_PATTERN.match(value.strip())
    if match is None:
        return RGBColor(255, 0, 0, 255)
    r, g, b = (int(group, 16) for group in match.groups())
    return RGBColor(r, g, b, 255)

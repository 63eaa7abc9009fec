"""In-place flood fill over RGBA raster buffers.

The fill grows a 4-connected region from a seed pixel. Every pixel is
compared to the seed's original color with the Euclidean RGB distance,
so the tolerance applies to the whole region rather than pixel to pixel.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from numpy.typing import NDArray

from tile_footprints._typing import RGBColor
from tile_footprints.color import PixelClass, ReferencePalette, classify, is_similar_color
from tile_footprints.exceptions import InvalidSeedError, NoCandidatesError

logger = logging.getLogger(__name__)


def _check_buffer(buffer: NDArray) -> None:
    if buffer.ndim != 3 or buffer.shape[2] != 4:
        raise ValueError(f"Expected an (H, W, 4) RGBA buffer, got shape {buffer.shape}")
    if not buffer.flags.writeable:
        raise ValueError("Flood fill needs a writable buffer")


def _check_seed(buffer: NDArray, seed_x: int, seed_y: int) -> None:
    height, width = buffer.shape[:2]
    if not (0 <= seed_x < width and 0 <= seed_y < height):
        raise InvalidSeedError(
            f"Seed ({seed_x}, {seed_y}) is outside the {width}x{height} buffer.",
            seed=(seed_x, seed_y),
        )


def flood_fill(
    buffer: NDArray,
    seed_x: int,
    seed_y: int,
    fill_color: Sequence[int],
    tolerance: float,
) -> int:
    """Fill the region around a seed pixel in place.

    Args:
        buffer: Writable (H, W, 4) uint8 RGBA array. Modified in place.
        seed_x: Seed column.
        seed_y: Seed row.
        fill_color: RGBA color written to filled pixels. A 3-channel
            color is treated as opaque.
        tolerance: Maximum Euclidean RGB distance from the seed's
            original color.

    Returns:
        Number of pixels changed. 0 when the seed already has the fill color.

    Raises:
        InvalidSeedError: If the seed is outside the buffer.
    """
    _check_buffer(buffer)
    _check_seed(buffer, seed_x, seed_y)

    fill = RGBColor(*(int(v) for v in fill_color))
    fill_rgb = (fill.r, fill.g, fill.b)
    height, width = buffer.shape[:2]

    start_color = tuple(int(v) for v in buffer[seed_y, seed_x, :3])
    if start_color == fill_rgb:
        return 0

    changed = 0
    stack = [(seed_x, seed_y)]

    while stack:
        x, y = stack.pop()

        if x < 0 or x >= width or y < 0 or y >= height:
            continue

        current = tuple(int(v) for v in buffer[y, x, :3])

        if not is_similar_color(current, start_color, tolerance):
            continue

        # Already-filled pixels stop the walk, no separate visited set needed
        if current == fill_rgb:
            continue

        buffer[y, x] = fill
        changed += 1

        stack.append((x + 1, y))
        stack.append((x - 1, y))
        stack.append((x, y + 1))
        stack.append((x, y - 1))

    return changed


def fill_building(
    buffer: NDArray,
    seed_x: int,
    seed_y: int,
    fill_color: Sequence[int],
    tolerance: float = 30,
    palette: ReferencePalette | str | None = "extended",
) -> int:
    """Flood fill a building starting from a seed pixel.

    The seed is first checked against the building palette with the
    Manhattan classifier. Only building or boundary colored seeds are
    filled, using the same tolerance for the Euclidean fill.

    Returns:
        Number of pixels changed.

    Raises:
        InvalidSeedError: If the seed is outside the buffer.
        NoCandidatesError: If the seed pixel is not building colored.
    """
    _check_buffer(buffer)
    _check_seed(buffer, seed_x, seed_y)

    r, g, b = (int(v) for v in buffer[seed_y, seed_x, :3])
    kind = classify(r, g, b, tolerance, palette)
    if kind is PixelClass.NONE:
        raise NoCandidatesError(
            f"Seed ({seed_x}, {seed_y}) color #{r:02x}{g:02x}{b:02x} is not a building color.",
            seed=(seed_x, seed_y),
        )

    changed = flood_fill(buffer, seed_x, seed_y, fill_color, tolerance)
    logger.debug("Filled %d pixels from %s seed (%d, %d)", changed, kind.name.lower(), seed_x, seed_y)
    return changed

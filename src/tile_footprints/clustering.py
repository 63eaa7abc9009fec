"""Distance-threshold connectivity clustering of candidate pixels.

Pixels are grouped into connected components where two pixels are
linked when their Euclidean distance is at most ``max_distance``. The
traversal is breadth-first and follows input order, so the output is
reproducible for a given input sequence.
"""

from __future__ import annotations

import math
from collections import deque
from collections.abc import Iterable

from tile_footprints._typing import PixelBounds, PixelCoord


class _GridIndex:
    """Bucket pixels into square cells so neighbor lookups stay local."""

    def __init__(self, pixels: list[PixelCoord], cell_size: float) -> None:
        self._pixels = pixels
        self._cell_size = cell_size
        self._cells: dict[tuple[int, int], list[int]] = {}
        for i, pixel in enumerate(pixels):
            self._cells.setdefault(self._cell_of(pixel), []).append(i)

    def _cell_of(self, pixel: PixelCoord) -> tuple[int, int]:
        return (math.floor(pixel.x / self._cell_size), math.floor(pixel.y / self._cell_size))

    def neighbors(self, i: int, max_distance: float) -> list[int]:
        """Indices of pixels within max_distance of pixel i, in input order."""
        px, py = self._pixels[i]
        cx, cy = self._cell_of(self._pixels[i])
        reach = math.ceil(max_distance / self._cell_size)

        found = []
        for gx in range(cx - reach, cx + reach + 1):
            for gy in range(cy - reach, cy + reach + 1):
                for j in self._cells.get((gx, gy), ()):
                    qx, qy = self._pixels[j]
                    if j != i and math.sqrt((px - qx) ** 2 + (py - qy) ** 2) <= max_distance:
                        found.append(j)
        found.sort()
        return found


def cluster_pixels(
    pixels: Iterable[tuple[int, int]],
    max_distance: float,
) -> list[list[PixelCoord]]:
    """Partition pixels into distance-connected clusters.

    Every input pixel ends up in exactly one cluster. Duplicate input
    pixels are collapsed onto their first occurrence. Clusters are
    emitted in the order of their first pixel in the input, and members
    in breadth-first visiting order.

    Args:
        pixels: (x, y) pixel coordinates, typically in row-major scan order.
        max_distance: Maximum Euclidean distance linking two pixels.

    Returns:
        List of clusters, each a non-empty list of PixelCoord.

    Raises:
        ValueError: If max_distance is negative.
    """
    if max_distance < 0:
        raise ValueError(f"max_distance must be non-negative, got {max_distance}")

    ordered = list(dict.fromkeys(PixelCoord(int(x), int(y)) for x, y in pixels))
    if not ordered:
        return []

    index = _GridIndex(ordered, cell_size=max(max_distance, 1.0))
    queued = [False] * len(ordered)
    clusters: list[list[PixelCoord]] = []

    for start in range(len(ordered)):
        if queued[start]:
            continue

        queued[start] = True
        queue = deque([start])
        members: list[PixelCoord] = []

        while queue:
            current = queue.popleft()
            members.append(ordered[current])
            for neighbor in index.neighbors(current, max_distance):
                if not queued[neighbor]:
                    queued[neighbor] = True
                    queue.append(neighbor)

        clusters.append(members)

    return clusters


def cluster_bounds(cluster: Iterable[tuple[int, int]]) -> PixelBounds:
    """Axis-aligned bounding box (min_x, min_y, max_x, max_y) of a cluster.

    Raises:
        ValueError: If the cluster is empty.
    """
    xs = []
    ys = []
    for x, y in cluster:
        xs.append(x)
        ys.append(y)
    if not xs:
        raise ValueError("Cannot compute bounds of an empty cluster")
    return (min(xs), min(ys), max(xs), max(ys))

"""Visualize results: render a detection and a building fill side by side.

Fetches the tile under the point once, runs detection on it, then flood
fills the building under the query pixel in a copy of the tile. Both
renderings are saved as PNG files.

Prerequisites:
    pip install tile-footprints[viz]

Usage:
    python examples/visualize_results.py 35.681236 139.767125
"""

from __future__ import annotations

import sys

from tile_footprints import BuildingDetector, NoCandidatesError, fill_building, geo_to_tile
from tile_footprints.color import hex_to_rgb
from tile_footprints.viz import show_detection, show_fill


def main(lat: float, lon: float) -> None:
    detector = BuildingDetector()
    tile, pixel = geo_to_tile(lat, lon, detector.config.zoom)
    image = detector.fetcher.fetch(tile)

    result = detector.detect_in_image(image, lat, lon)
    show_detection(image, result, save_path="detection.png")
    print(f"Detection: {len(result)} building(s), saved detection.png")

    filled = image.copy()
    try:
        changed = fill_building(filled, pixel.x, pixel.y, hex_to_rgb("#2563eb"))
    except NoCandidatesError as exc:
        print(f"Fill skipped: {exc}")
        return

    show_fill(filled, seed=(pixel.x, pixel.y), changed=changed, save_path="fill.png")
    print(f"Fill: {changed} pixel(s) recolored, saved fill.png")


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: python visualize_results.py <lat> <lon>")
        sys.exit(1)
    main(float(sys.argv[1]), float(sys.argv[2]))

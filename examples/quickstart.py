"""Quickstart: detect the building under a coordinate and export it.

Fetches the GSI standard map tile under the point, finds building
colored pixels near it and writes the footprints as GeoJSON.

Prerequisites:
    pip install tile-footprints

Usage:
    python examples/quickstart.py 35.681236 139.767125
"""

from __future__ import annotations

import logging
import sys

from tile_footprints import BuildingDetector
from tile_footprints.export import export_feature_collection


def main(lat: float, lon: float) -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    detector = BuildingDetector()
    result = detector.detect(lat, lon)

    diag = result.diagnostics
    print(f"Tile: {diag.tile_url}")
    print(f"Query pixel: ({diag.query_pixel.x}, {diag.query_pixel.y}) color {diag.query_color}")
    print(f"Building pixels: {diag.building_pixels}, nearby: {diag.nearby_building_pixels}")

    if not result.ok:
        print(f"\nNo building found: {result.error}")
        sys.exit(2)

    print(f"\nDetected {len(result)} building(s)")
    for polygon in result.polygons:
        print(f"  {polygon.source_pixel_count:>5d} px  bounds={polygon.pixel_bounds}")

    export_feature_collection(result.polygons, "buildings.geojson")
    print("\nExported to buildings.geojson")


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: python quickstart.py <lat> <lon>")
        sys.exit(1)
    main(float(sys.argv[1]), float(sys.argv[2]))

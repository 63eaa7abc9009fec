"""Export for GIS: look up buildings at many points and write a GeoPackage.

Each point is looked up in OpenStreetMap first. Points with no OSM
building fall back to color detection on the GSI map tile. All
footprints are collected into one layer with:
  - building tag and source (OpenStreetMap or color_analysis)
  - pixel_count of the detected cluster (0 for OSM outlines)
  - area in square meters (computed via UTM projection)

A GeoJSON copy is written next to the GeoPackage for web maps.

Prerequisites:
    pip install tile-footprints

Usage:
    python examples/export_for_gis.py points.csv
    python examples/export_for_gis.py points.csv --output results/buildings.gpkg --tolerance 40
"""

from __future__ import annotations

import argparse
import csv
import logging
from pathlib import Path

from tile_footprints import BuildingDetector, DetectorConfig, OverpassSource, find_buildings
from tile_footprints.export import build_geodataframe, export_geojson, export_gpkg


def read_points(path: str) -> list[tuple[float, float]]:
    """Read (lat, lon) rows from a CSV with ``lat`` and ``lon`` columns."""
    with open(path, newline="", encoding="utf-8") as f:
        return [(float(row["lat"]), float(row["lon"])) for row in csv.DictReader(f)]


def main() -> None:
    parser = argparse.ArgumentParser(description="Collect building footprints at points into a GeoPackage.")
    parser.add_argument("points", help="CSV file with lat and lon columns")
    parser.add_argument(
        "--output",
        default="buildings.gpkg",
        help="Output GeoPackage path (default: buildings.gpkg)",
    )
    parser.add_argument(
        "--tolerance",
        type=float,
        default=50,
        help="Color tolerance for tile detection (default: 50)",
    )
    parser.add_argument(
        "--radius",
        type=float,
        default=50.0,
        help="OSM search radius in meters (default: 50)",
    )
    parser.add_argument(
        "--no-osm",
        action="store_true",
        help="Skip OpenStreetMap and only use color detection",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    detector = BuildingDetector(DetectorConfig(tolerance=args.tolerance))
    source = OverpassSource(radius=args.radius)

    polygons = []
    for lat, lon in read_points(args.points):
        if args.no_osm:
            result = detector.detect(lat, lon)
        else:
            result = find_buildings(lat, lon, source=source, detector=detector)

        status = f"{len(result)} building(s)" if result.ok else type(result.error).__name__
        print(f"  ({lat:.6f}, {lon:.6f}): {status}")
        polygons.extend(result.polygons)

    print(f"\n  Collected {len(polygons)} footprints")
    if not polygons:
        print("  Nothing to export.")
        return

    gdf = build_geodataframe(polygons)
    gdf["area_m2"] = gdf["area_m2"].round(2)

    export_gpkg(gdf, args.output)
    geojson_path = str(Path(args.output).with_suffix(".geojson"))
    export_geojson(gdf, geojson_path)
    print(f"\n  GeoPackage: {args.output}")
    print(f"  GeoJSON (WGS84): {geojson_path}")

    print("\n  Per-source summary:")
    for src in sorted(gdf["source"].unique()):
        rows = gdf[gdf["source"] == src]
        print(f"    {src:<15s}  n={len(rows):>5d}  mean_area={rows['area_m2'].mean():>8.1f} m2")


if __name__ == "__main__":
    main()

"""Building polygon export to GeoJSON, GeoDataFrame, and GeoPackage.

This module handles constructing GeoJSON feature collections and
GeoDataFrames from building polygons and serializing them to standard
geospatial vector formats.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import geopandas as gpd
import pandas as pd
from pyproj import CRS

from tile_footprints.crs import auto_utm_crs
from tile_footprints.exceptions import ExportError
from tile_footprints.regions import BuildingPolygon

WGS84 = CRS.from_epsg(4326)

# ---------------------------------------------------------------------------
# GeoJSON and GeoDataFrame Construction
# ---------------------------------------------------------------------------


def to_feature_collection(polygons: Sequence[BuildingPolygon]) -> dict[str, Any]:
    """Convert building polygons into a GeoJSON FeatureCollection dict.

    Feature ids are 1-based positions unless the polygon carries an id
    from its source.
    """
    features = []
    for i, polygon in enumerate(polygons, start=1):
        features.append(
            {
                "type": "Feature",
                "geometry": {"type": "Polygon", "coordinates": [polygon.coordinates]},
                "properties": {
                    "id": polygon.feature_id if polygon.feature_id is not None else i,
                    "building": polygon.building,
                    "source": polygon.source,
                    "pixelCount": polygon.source_pixel_count,
                },
            }
        )
    return {"type": "FeatureCollection", "features": features}


def build_geodataframe(polygons: Sequence[BuildingPolygon]) -> gpd.GeoDataFrame:
    """Convert building polygons into a WGS84 GeoDataFrame.

    Returns:
        GeoDataFrame with geometry, building, source, pixel_count and
        area_m2 columns in EPSG:4326.
    """
    if len(polygons) == 0:
        return gpd.GeoDataFrame(
            {
                "geometry": [],
                "building": pd.Series([], dtype="str"),
                "source": pd.Series([], dtype="str"),
                "pixel_count": pd.Series([], dtype="int64"),
                "area_m2": pd.Series([], dtype="float64"),
            },
            crs=WGS84,
        )

    gdf = gpd.GeoDataFrame(
        {
            "geometry": [p.geometry for p in polygons],
            "building": [p.building for p in polygons],
            "source": [p.source for p in polygons],
            "pixel_count": pd.Series([p.source_pixel_count for p in polygons], dtype="int64"),
        },
        crs=WGS84,
    )
    gdf["area_m2"] = compute_areas(gdf).to_numpy()
    return gdf


def compute_areas(gdf: gpd.GeoDataFrame) -> pd.Series:
    """Footprint areas in square meters.

    A geographic frame is measured in the UTM zone of the centre of its
    total bounds. Footprints from one query point never span more than a
    few hundred meters, so a single zone serves every row. A projected
    frame is measured as it is.
    """
    if len(gdf) == 0:
        return pd.Series([], dtype=float)

    if gdf.crs is not None and gdf.crs.is_geographic:
        west, south, east, north = gdf.total_bounds
        gdf = gdf.to_crs(auto_utm_crs((west + east) / 2, (south + north) / 2))
    return gdf.geometry.area


# ---------------------------------------------------------------------------
# Export Formats
# ---------------------------------------------------------------------------


def export_feature_collection(polygons: Sequence[BuildingPolygon], path: str | Path) -> None:
    """Write polygons as a plain GeoJSON FeatureCollection.

    Raises:
        ExportError: If the file cannot be written.
    """
    try:
        Path(path).write_text(json.dumps(to_feature_collection(polygons)), encoding="utf-8")
    except OSError as exc:
        raise ExportError(f"Failed to write GeoJSON: {exc}", path=str(path)) from exc


def _write(gdf: gpd.GeoDataFrame, path: str | Path, driver: str, **options: Any) -> None:
    try:
        gdf.to_file(str(path), driver=driver, **options)
    except Exception as exc:
        raise ExportError(f"Failed to write {driver} file: {exc}", path=str(path), driver=driver) from exc


def export_geojson(gdf: gpd.GeoDataFrame, path: str | Path, coordinate_precision: int = 7) -> None:
    """Write a building GeoDataFrame as GeoJSON in EPSG:4326.

    Raises:
        ExportError: If the file cannot be written.
    """
    if gdf.crs is not None:
        gdf = gdf.to_crs(WGS84)
    _write(gdf, path, "GeoJSON", coordinate_precision=coordinate_precision)


def export_gpkg(gdf: gpd.GeoDataFrame, path: str | Path, layer: str = "buildings") -> None:
    """Write a building GeoDataFrame as one GeoPackage layer.

    Raises:
        ExportError: If the file cannot be written.
    """
    _write(gdf, path, "GPKG", layer=layer)

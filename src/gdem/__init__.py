"""
gdem: Raster DEM Access, Interpolation, Merge, Clip & Resample

Point altitude queries (nearest and bilinear) against georeferenced rasters,
median compositing of overlapping tiles, clipping, resampling, reprojection,
catalog coverage and path densification. The same operations are exposed
as MCP tools through gdem.server.
"""

from .core import (
    DEM,
    Bounds,
    Coordinate,
    GeoTransform,
    RasterRef,
    clip,
    coordinates_along_polygon,
    coverage,
    merge,
    reproject,
    resample,
)

__all__ = [
    "DEM",
    "Bounds",
    "Coordinate",
    "GeoTransform",
    "RasterRef",
    "clip",
    "coordinates_along_polygon",
    "coverage",
    "merge",
    "reproject",
    "resample",
]

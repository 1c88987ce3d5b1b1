"""Core raster DEM operations (synchronous)."""

from .coverage import coverage
from .dem import DEM
from .geometry import OUT_OF_BOUNDS, Bounds, Coordinate, GeoTransform, PixelIndex, RasterGrid
from .merge import merge
from .polyline import coordinates_along_polygon
from .raster_io import RasterRef
from .transforms import clip, reproject, resample

__all__ = [
    "DEM",
    "OUT_OF_BOUNDS",
    "Bounds",
    "Coordinate",
    "GeoTransform",
    "PixelIndex",
    "RasterGrid",
    "RasterRef",
    "clip",
    "coordinates_along_polygon",
    "coverage",
    "merge",
    "reproject",
    "resample",
]

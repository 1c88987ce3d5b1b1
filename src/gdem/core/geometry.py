"""
Raster geometry: geotransforms, grid extents, bounds, and pixel lookup.

Pure functions and value objects with no raster I/O. Grids are assumed
north-up and axis-aligned: rotation terms are carried through and contribute
to the extrapolated extents, but pixel lookup does not invert them, so a
rotated raster yields incorrect indices.
"""

import dataclasses
import math
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np
from numpy.typing import NDArray

from ..constants import (
    MAX_LATITUDE,
    MAX_LONGITUDE,
    MIN_LATITUDE,
    MIN_LONGITUDE,
    ErrorMessages,
)
from ..errors import InvalidCoordinateError, TransformUnavailableError

FloatArray = NDArray[np.floating[Any]]
BoolArray = NDArray[np.bool_]


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def round_half_away_array(values: FloatArray) -> FloatArray:
    """Vectorised round_half_away; returns floats."""
    return np.copysign(np.floor(np.abs(values) + 0.5), values)


# ---------------------------------------------------------------------------
# Coordinates & bounds
# ---------------------------------------------------------------------------


@dataclass(frozen=True, order=True)
class Coordinate:
    """Geographic (latitude, longitude) pair in degrees."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not (
            MIN_LATITUDE <= self.latitude <= MAX_LATITUDE
            and MIN_LONGITUDE <= self.longitude <= MAX_LONGITUDE
        ):
            raise InvalidCoordinateError(self.latitude, self.longitude)


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned corner coordinates of a geographic raster."""

    nw: Coordinate
    ne: Coordinate
    sw: Coordinate
    se: Coordinate

    @classmethod
    def from_extent(cls, x_min: float, y_min: float, x_max: float, y_max: float) -> "Bounds":
        return cls(
            nw=Coordinate(y_max, x_min),
            ne=Coordinate(y_max, x_max),
            sw=Coordinate(y_min, x_min),
            se=Coordinate(y_min, x_max),
        )

    def within(self, latitude: float, longitude: float) -> bool:
        """Half-open containment: south/west edges included, north/east excluded."""
        return (
            self.sw.latitude <= latitude < self.ne.latitude
            and self.sw.longitude <= longitude < self.ne.longitude
        )


# ---------------------------------------------------------------------------
# Pixel lookup result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PixelIndex:
    """Fractional (row, column) address of a point inside a grid."""

    row: float
    column: float


class OutOfBounds:
    """Lookup result for points outside a grid. Use the OUT_OF_BOUNDS singleton."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "OUT_OF_BOUNDS"


OUT_OF_BOUNDS = OutOfBounds()

PixelLookup = PixelIndex | OutOfBounds


# ---------------------------------------------------------------------------
# GeoTransform
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GeoTransform:
    """Six-coefficient affine geotransform in GDAL order."""

    x_origin: float
    pixel_width: float
    row_rotation: float
    y_origin: float
    column_rotation: float
    pixel_height: float

    def __post_init__(self) -> None:
        if self.pixel_width == 0 or self.pixel_height == 0:
            raise TransformUnavailableError(
                ErrorMessages.ZERO_PIXEL_SIZE.format(self.pixel_width, self.pixel_height)
            )

    @classmethod
    def from_gdal(cls, coefficients: Sequence[float]) -> "GeoTransform":
        if len(coefficients) != 6:
            raise TransformUnavailableError(
                f"geotransform needs 6 coefficients, got {len(coefficients)}"
            )
        return cls(*(float(c) for c in coefficients))

    @classmethod
    def from_affine(cls, affine: Any) -> "GeoTransform":
        """Build from an affine.Affine (as exposed by rasterio)."""
        return cls.from_gdal(affine.to_gdal())

    def to_gdal(self) -> tuple[float, float, float, float, float, float]:
        return (
            self.x_origin,
            self.pixel_width,
            self.row_rotation,
            self.y_origin,
            self.column_rotation,
            self.pixel_height,
        )

    def to_affine(self) -> Any:
        from rasterio.transform import Affine

        return Affine.from_gdal(*self.to_gdal())

    def pixel_to_world(self, row: float, column: float) -> tuple[float, float]:
        """Forward mapping; returns (x, y)."""
        x = self.x_origin + column * self.pixel_width + row * self.row_rotation
        y = self.y_origin + column * self.column_rotation + row * self.pixel_height
        return x, y

    def with_origin(self, x_origin: float, y_origin: float) -> "GeoTransform":
        return dataclasses.replace(self, x_origin=x_origin, y_origin=y_origin)


# ---------------------------------------------------------------------------
# RasterGrid
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RasterGrid:
    """Dimensions, geotransform, and nodata of one raster band."""

    rows: int
    columns: int
    transform: GeoTransform
    nodata: int | float
    sample_type: str
    projection: str = ""

    @property
    def x_min(self) -> float:
        return self.transform.x_origin

    @property
    def y_max(self) -> float:
        return self.transform.y_origin

    @property
    def x_max(self) -> float:
        t = self.transform
        return t.x_origin + self.columns * t.pixel_width + self.rows * t.row_rotation

    @property
    def y_min(self) -> float:
        t = self.transform
        return t.y_origin + self.columns * t.column_rotation + self.rows * t.pixel_height

    @property
    def resolution(self) -> tuple[float, float]:
        """Signed (x, y) pixel size."""
        return self.transform.pixel_width, self.transform.pixel_height

    @property
    def extent(self) -> tuple[float, float, float, float]:
        """(x_min, y_min, x_max, y_max)."""
        return self.x_min, self.y_min, self.x_max, self.y_max

    @property
    def bounds(self) -> Bounds:
        """Geographic corner bounds; raises InvalidCoordinateError for projected grids."""
        return Bounds.from_extent(self.x_min, self.y_min, self.x_max, self.y_max)

    def within(self, y: float, x: float) -> bool:
        return self.y_min <= y < self.y_max and self.x_min <= x < self.x_max

    def to_pixel(self, latitude: float, longitude: float) -> PixelLookup:
        """Fractional (row, column) of a point, or OUT_OF_BOUNDS."""
        if not self.within(latitude, longitude):
            return OUT_OF_BOUNDS
        return PixelIndex(
            row=(latitude - self.y_max) / self.transform.pixel_height,
            column=(longitude - self.x_min) / self.transform.pixel_width,
        )

    def to_coordinate(self, row: float, column: float) -> tuple[float, float]:
        """Inverse of to_pixel; returns (latitude, longitude)."""
        return (
            self.y_max + row * self.transform.pixel_height,
            self.x_min + column * self.transform.pixel_width,
        )

    def pixel_arrays(
        self, ys: FloatArray, xs: FloatArray
    ) -> tuple[FloatArray, FloatArray, BoolArray]:
        """Vectorised to_pixel: fractional rows, columns, and an inside mask."""
        rows = (ys - self.y_max) / self.transform.pixel_height
        cols = (xs - self.x_min) / self.transform.pixel_width
        inside = (ys >= self.y_min) & (ys < self.y_max) & (xs >= self.x_min) & (xs < self.x_max)
        return rows, cols, inside

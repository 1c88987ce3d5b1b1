"""
DEM accessor - nodata-aware altitude queries over one raster band.

A DEM opened from a path owns its dataset and closes it on close() or context
exit. A DEM built around an already-open rasterio dataset borrows it and never
closes it. copy.copy()/copy.deepcopy() of an owning DEM reopens the file; a
borrowing copy shares the caller's dataset.

A dataset handle is not safe for concurrent reads: use one DEM per thread.
"""

import logging
import math
from typing import Any, Iterable

from ..constants import DEFAULT_BAND
from ..errors import GDEMError, RasterReadError
from .geometry import Bounds, Coordinate, OutOfBounds, RasterGrid, round_half_away
from .raster_io import (
    RasterSource,
    as_raster_ref,
    open_dataset,
    read_grid,
    read_pixel,
    release,
)

logger = logging.getLogger(__name__)


class DEM:
    """Elevation lookups against a single raster band.

    Args:
        source: Path, open rasterio dataset, or RasterRef
        band: 1-based band index
        sample_type: Sample type name (int16, float32, ...); defaults to the band's dtype
        nodata_fallback: Nodata to use when the band declares 0 or nothing

    Raises:
        RasterFileNotFoundError: path does not exist
        RasterOpenError: raster could not be opened
        InvalidBandError: band exceeds the band count
        TransformUnavailableError: no usable geotransform
        InvalidCoordinateError: grid extents are not geographic
    """

    def __init__(
        self,
        source: RasterSource,
        band: int = DEFAULT_BAND,
        sample_type: str | None = None,
        nodata_fallback: float | None = None,
    ) -> None:
        self.ref = as_raster_ref(source)
        self.band = band
        self.nodata_fallback = nodata_fallback
        self._dataset = None

        self._dataset = open_dataset(self.ref)
        try:
            self.grid: RasterGrid = read_grid(self._dataset, band, sample_type, nodata_fallback)
            self.bounds: Bounds = self.grid.bounds
        except GDEMError:
            self.close()
            raise

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def owned(self) -> bool:
        return self.ref.owned

    @property
    def closed(self) -> bool:
        return self._dataset is None or self._dataset.closed

    @property
    def nodata(self) -> int | float:
        return self.grid.nodata

    def close(self) -> None:
        """Release the dataset if owned. Safe to call more than once."""
        release(self.ref, self._dataset)
        self._dataset = None

    def __enter__(self) -> "DEM":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __del__(self) -> None:
        if getattr(self, "_dataset", None) is not None:
            self.close()

    def __copy__(self) -> "DEM":
        return DEM(self.ref, self.band, self.grid.sample_type, self.nodata_fallback)

    def __deepcopy__(self, memo: dict) -> "DEM":
        return self.__copy__()

    def __repr__(self) -> str:
        mode = "owned" if self.owned else "borrowed"
        return (
            f"DEM({self.ref.name!r}, band={self.band}, {self.grid.rows}x{self.grid.columns}, "
            f"{self.grid.sample_type}, nodata={self.grid.nodata}, {mode})"
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _sample(self, row: int, column: int) -> Any:
        value = read_pixel(self._dataset, self.band, row, column)
        return value.item() if hasattr(value, "item") else value

    def altitude(self, latitude: float, longitude: float) -> int | float:
        """Nearest-sample altitude, or nodata outside the grid or on read failure."""
        lookup = self.grid.to_pixel(latitude, longitude)
        if isinstance(lookup, OutOfBounds):
            return self.grid.nodata

        r = round_half_away(lookup.row)
        c = round_half_away(lookup.column)

        r = r - 1 if r == self.grid.rows else r
        c = c - 1 if c == self.grid.columns else c

        try:
            return self._sample(r, c)
        except RasterReadError as e:
            logger.debug(f"altitude read failed at ({latitude}, {longitude}): {e}")
            return self.grid.nodata

    def interpolated_altitude(self, latitude: float, longitude: float) -> float:
        """Bilinear altitude from the four surrounding samples.

        On the last row/column the neighbour collapses onto the cell itself,
        so edge cells replicate instead of reading past the grid.
        """
        lookup = self.grid.to_pixel(latitude, longitude)
        if isinstance(lookup, OutOfBounds):
            return float(self.grid.nodata)

        r = int(math.floor(lookup.row))
        c = int(math.floor(lookup.column))

        del_latitude = min(lookup.row, float(self.grid.rows - 1)) - r
        del_longitude = min(lookup.column, float(self.grid.columns - 1)) - c

        next_r = r if r == self.grid.rows - 1 else r + 1
        next_c = c if c == self.grid.columns - 1 else c + 1

        try:
            m = self._sample(r, c)
            n = self._sample(r, next_c)
            o = self._sample(next_r, c)
            p = self._sample(next_r, next_c)
        except RasterReadError as e:
            logger.debug(f"interpolated read failed at ({latitude}, {longitude}): {e}")
            return float(self.grid.nodata)

        altitude = (
            (1 - del_latitude) * (1 - del_longitude) * m
            + del_longitude * (1 - del_latitude) * n
            + (1 - del_longitude) * del_latitude * o
            + del_latitude * del_longitude * p
        )
        return float(altitude)

    def altitudes(
        self,
        points: Iterable[Coordinate | tuple[float, float]],
        interpolated: bool = False,
    ) -> list[int | float]:
        """Altitude at each (latitude, longitude) point."""
        query = self.interpolated_altitude if interpolated else self.altitude
        results: list[int | float] = []
        for point in points:
            if isinstance(point, Coordinate):
                results.append(query(point.latitude, point.longitude))
            else:
                results.append(query(point[0], point[1]))
        return results

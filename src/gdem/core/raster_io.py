"""
Raster I/O operations for gdem.

The only module that talks to rasterio. All functions are synchronous —
callers wrap them in asyncio.to_thread(). rasterio exceptions are mapped onto
the gdem error taxonomy here and chained to the original cause.
"""

import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator

import numpy as np
import rasterio
from numpy.typing import NDArray
from rasterio.errors import RasterioError
from rasterio.windows import Window

from ..constants import (
    DEFAULT_BAND,
    DEFAULT_DRIVER,
    SAMPLE_TYPES,
    ErrorMessages,
    coerce_sample,
    default_nodata_fallback,
)
from ..errors import (
    InvalidBandError,
    RasterCreateError,
    RasterFileNotFoundError,
    RasterOpenError,
    RasterReadError,
    RasterWriteError,
    TransformUnavailableError,
)
from .geometry import GeoTransform, RasterGrid

logger = logging.getLogger(__name__)

# Type aliases
Dataset = Any  # rasterio DatasetReader / DatasetWriter
RasterSource = Any  # str | os.PathLike | Dataset | RasterRef


# ---------------------------------------------------------------------------
# Raster references
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RasterRef:
    """
    A raster reachable either by path (owned) or as an open dataset (borrowed).

    Owned references are opened and closed by gdem. Borrowed datasets belong to
    the caller and are never closed here.
    """

    path: Path | None = None
    dataset: Dataset | None = None
    owned: bool = True

    @classmethod
    def from_path(cls, path: str | os.PathLike) -> "RasterRef":
        return cls(path=Path(path), dataset=None, owned=True)

    @classmethod
    def borrow(cls, dataset: Dataset) -> "RasterRef":
        return cls(path=None, dataset=dataset, owned=False)

    @property
    def name(self) -> str:
        if self.path is not None:
            return str(self.path)
        return str(getattr(self.dataset, "name", self.dataset))


def as_raster_ref(source: RasterSource) -> RasterRef:
    """Resolve a path, open dataset, or RasterRef into a RasterRef."""
    if isinstance(source, RasterRef):
        return source
    if hasattr(source, "read") and hasattr(source, "transform"):
        return RasterRef.borrow(source)
    if isinstance(source, (str, os.PathLike)):
        return RasterRef.from_path(source)
    raise TypeError(f"Unsupported raster source: {type(source).__name__}")


def open_dataset(ref: RasterRef) -> Dataset:
    """Open an owned reference, or hand back a borrowed dataset as-is."""
    if not ref.owned:
        return ref.dataset

    if ref.path is None or not ref.path.exists():
        raise RasterFileNotFoundError(ErrorMessages.FILE_NOT_FOUND.format(ref.path))

    try:
        return rasterio.open(ref.path)
    except RasterioError as e:
        raise RasterOpenError(ErrorMessages.OPEN_FAILED.format(ref.path, e)) from e


def release(ref: RasterRef, dataset: Dataset | None) -> None:
    """Close a dataset only if the reference owns it."""
    if ref.owned and dataset is not None and not dataset.closed:
        dataset.close()


@contextmanager
def opened(source: RasterSource) -> Iterator[Dataset]:
    """Context manager yielding an open dataset, honouring ownership."""
    ref = as_raster_ref(source)
    dataset = open_dataset(ref)
    try:
        yield dataset
    finally:
        release(ref, dataset)


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


def read_grid(
    dataset: Dataset,
    band: int = DEFAULT_BAND,
    sample_type: str | None = None,
    nodata_fallback: float | None = None,
) -> RasterGrid:
    """
    Extract grid metadata for one band.

    A declared nodata of exactly 0, or no declared nodata, counts as unset and
    is replaced by nodata_fallback (or the sample type's most negative value).

    Args:
        dataset: Open rasterio dataset
        band: 1-based band index
        sample_type: Sample type name; defaults to the band's dtype
        nodata_fallback: Replacement for an unset nodata

    Returns:
        RasterGrid describing the band
    """
    if band < 1 or band > dataset.count:
        raise InvalidBandError(band, dataset.count)

    affine = dataset.transform
    if affine is None or affine.is_identity:
        raise TransformUnavailableError(ErrorMessages.TRANSFORM_UNAVAILABLE.format(dataset.name))
    transform = GeoTransform.from_affine(affine)

    sample_type = sample_type or dataset.dtypes[band - 1]
    if sample_type not in SAMPLE_TYPES:
        raise ValueError(
            ErrorMessages.UNKNOWN_SAMPLE_TYPE.format(sample_type, ", ".join(SAMPLE_TYPES))
        )

    declared = dataset.nodatavals[band - 1]
    if declared is None or declared == 0:
        fallback = (
            nodata_fallback if nodata_fallback is not None else default_nodata_fallback(sample_type)
        )
        nodata = coerce_sample(fallback, sample_type)
    else:
        nodata = coerce_sample(declared, sample_type)

    projection = dataset.crs.to_wkt() if dataset.crs else ""

    return RasterGrid(
        rows=int(dataset.height),
        columns=int(dataset.width),
        transform=transform,
        nodata=nodata,
        sample_type=sample_type,
        projection=projection,
    )


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------


def read_pixel(dataset: Dataset, band: int, row: int, column: int) -> Any:
    """Read exactly one sample; raises RasterReadError on failure."""
    try:
        data = dataset.read(band, window=Window(column, row, 1, 1))
    except (RasterioError, ValueError, IndexError) as e:
        raise RasterReadError(ErrorMessages.READ_FAILED.format(row, column, e)) from e

    if data.shape != (1, 1):
        raise RasterReadError(
            ErrorMessages.READ_FAILED.format(row, column, f"window returned shape {data.shape}")
        )
    return data[0, 0]


def read_window(
    dataset: Dataset,
    band: int,
    row_off: int,
    col_off: int,
    height: int,
    width: int,
) -> NDArray[Any]:
    """Read a rectangular pixel window of one band."""
    try:
        data = dataset.read(band, window=Window(col_off, row_off, width, height))
    except (RasterioError, ValueError, IndexError) as e:
        raise RasterReadError(ErrorMessages.BAND_READ_FAILED.format(band, dataset.name, e)) from e

    if data.shape != (height, width):
        raise RasterReadError(
            ErrorMessages.BAND_READ_FAILED.format(
                band, dataset.name, f"expected {(height, width)}, got {data.shape}"
            )
        )
    return data


def read_band(dataset: Dataset, band: int = DEFAULT_BAND) -> NDArray[Any]:
    """Read a full band into memory."""
    try:
        return dataset.read(band)
    except (RasterioError, ValueError, IndexError) as e:
        raise RasterReadError(ErrorMessages.BAND_READ_FAILED.format(band, dataset.name, e)) from e


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


@contextmanager
def create_raster(
    path: str | os.PathLike,
    width: int,
    height: int,
    count: int,
    dtype: str,
    transform: GeoTransform,
    projection: str = "",
    nodata: float | None = None,
    driver: str = DEFAULT_DRIVER,
) -> Iterator[Dataset]:
    """
    Create a writable raster and close it on exit.

    Args:
        path: Destination path
        width: Column count
        height: Row count
        count: Band count
        dtype: Sample type name
        transform: Output geotransform
        projection: WKT or any rasterio-accepted CRS string ("" for none)
        nodata: Declared nodata for every band
        driver: rasterio/GDAL driver name

    Yields:
        Open rasterio dataset in write mode
    """
    try:
        dst = rasterio.open(
            path,
            "w",
            driver=driver,
            width=width,
            height=height,
            count=count,
            dtype=dtype,
            crs=projection or None,
            transform=transform.to_affine(),
            nodata=nodata,
        )
    except (RasterioError, OSError, ValueError) as e:
        raise RasterCreateError(ErrorMessages.CREATE_FAILED.format(path, e)) from e

    try:
        yield dst
    finally:
        dst.close()


def write_band(dataset: Dataset, array: NDArray[Any], band: int = DEFAULT_BAND) -> None:
    """Write a full 2D array into one band."""
    try:
        dataset.write(np.asarray(array), band)
    except (RasterioError, ValueError) as e:
        raise RasterWriteError(ErrorMessages.WRITE_FAILED.format(dataset.name, e)) from e

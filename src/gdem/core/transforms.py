"""
Geometric raster transforms: clip, resample, reproject.

Each operation reads a source raster and writes a new raster at the caller's
destination. The geotransform arithmetic lives here; resampling and
reprojection kernels are delegated to rasterio.warp.
"""

import logging
import os
from dataclasses import dataclass

import numpy as np
from rasterio.crs import CRS
from rasterio.enums import Resampling
from rasterio.errors import RasterioError
from rasterio.warp import calculate_default_transform
from rasterio.warp import reproject as warp_reproject

from ..constants import (
    DEFAULT_BAND,
    DEFAULT_DRIVER,
    DEFAULT_NODATA,
    WGS84,
    ErrorMessages,
    fits_sample_type,
)
from ..errors import (
    InvalidClipRegionError,
    RasterWriteError,
    TransformUnavailableError,
)
from .geometry import GeoTransform
from .raster_io import (
    RasterSource,
    as_raster_ref,
    create_raster,
    opened,
    read_band,
    read_grid,
    read_window,
    write_band,
)

logger = logging.getLogger(__name__)


@dataclass
class ClipResult:
    """Outcome of a clip operation."""

    destination: str
    row_offset: int
    col_offset: int
    rows: int
    columns: int
    transform: GeoTransform


@dataclass
class ResampleResult:
    """Outcome of a resample operation."""

    destination: str
    source_shape: list[int]
    rows: int
    columns: int
    transform: GeoTransform


@dataclass
class ReprojectResult:
    """Outcome of a reprojection."""

    destination: str
    crs: str
    rows: int
    columns: int
    transform: GeoTransform
    nodata: float


# ---------------------------------------------------------------------------
# Clip
# ---------------------------------------------------------------------------


def clip_window(
    transform: GeoTransform,
    width: int,
    height: int,
    top_left_x: float,
    top_left_y: float,
    bottom_right_x: float,
    bottom_right_y: float,
) -> tuple[int, int, int, int]:
    """
    Integer pixel window (col_off, row_off, width, height) covering a box.

    Corner offsets are truncated toward zero, then each edge is clamped into
    the raster independently. Raises InvalidClipRegionError for an empty window.
    """
    start_x = int((top_left_x - transform.x_origin) / transform.pixel_width)
    start_y = int((top_left_y - transform.y_origin) / transform.pixel_height)
    end_x = int((bottom_right_x - transform.x_origin) / transform.pixel_width)
    end_y = int((bottom_right_y - transform.y_origin) / transform.pixel_height)

    start_x = min(max(start_x, 0), width)
    start_y = min(max(start_y, 0), height)
    end_x = min(max(end_x, 0), width)
    end_y = min(max(end_y, 0), height)

    out_width = end_x - start_x
    out_height = end_y - start_y
    if out_width <= 0 or out_height <= 0:
        raise InvalidClipRegionError(out_width, out_height)

    return start_x, start_y, out_width, out_height


def clip(
    source: RasterSource,
    destination: str | os.PathLike,
    top_left_x: float,
    top_left_y: float,
    bottom_right_x: float,
    bottom_right_y: float,
    driver: str = DEFAULT_DRIVER,
) -> ClipResult:
    """
    Copy the pixel window covering a box into a new raster.

    Coordinates are in the source's own CRS units. Only band 1 is copied.
    """
    with opened(as_raster_ref(source)) as src:
        grid = read_grid(src, DEFAULT_BAND)
        col_off, row_off, width, height = clip_window(
            grid.transform,
            grid.columns,
            grid.rows,
            top_left_x,
            top_left_y,
            bottom_right_x,
            bottom_right_y,
        )

        data = read_window(src, DEFAULT_BAND, row_off, col_off, height, width)
        origin_x, origin_y = grid.transform.pixel_to_world(row_off, col_off)
        transform = grid.transform.with_origin(origin_x, origin_y)

        with create_raster(
            destination,
            width=width,
            height=height,
            count=1,
            dtype=src.dtypes[0],
            transform=transform,
            projection=grid.projection,
            nodata=src.nodatavals[0],
            driver=driver,
        ) as dst:
            write_band(dst, data, 1)

    logger.info(f"Clipped {width}x{height} window at ({col_off}, {row_off}) -> {destination}")

    return ClipResult(
        destination=str(destination),
        row_offset=row_off,
        col_offset=col_off,
        rows=height,
        columns=width,
        transform=transform,
    )


# ---------------------------------------------------------------------------
# Resample
# ---------------------------------------------------------------------------


def resampled_transform(
    transform: GeoTransform,
    source_width: int,
    source_height: int,
    width: int,
    height: int,
) -> GeoTransform:
    """Geotransform covering the same ground extent at a new pixel count."""
    return GeoTransform(
        transform.x_origin,
        transform.pixel_width * source_width / width,
        transform.row_rotation,
        transform.y_origin,
        transform.column_rotation,
        transform.pixel_height * source_height / height,
    )


def resample(
    source: RasterSource,
    destination: str | os.PathLike,
    width: int,
    height: int,
    driver: str = DEFAULT_DRIVER,
) -> ResampleResult:
    """
    Resize every band to width x height with a median kernel.

    The ground extent is preserved; only the pixel size changes.
    """
    if width <= 0 or height <= 0:
        raise ValueError(ErrorMessages.INVALID_SIZE.format(width, height))

    with opened(as_raster_ref(source)) as src:
        grid = read_grid(src, DEFAULT_BAND)
        if src.crs is None:
            raise TransformUnavailableError(ErrorMessages.MISSING_CRS.format(src.name))

        transform = resampled_transform(grid.transform, grid.columns, grid.rows, width, height)
        nodata = src.nodatavals[0]

        with create_raster(
            destination,
            width=width,
            height=height,
            count=src.count,
            dtype=src.dtypes[0],
            transform=transform,
            projection=grid.projection,
            nodata=nodata,
            driver=driver,
        ) as dst:
            for band in range(1, src.count + 1):
                source_data = read_band(src, band)
                target = np.zeros((height, width), dtype=src.dtypes[0])
                _warp(
                    source_data,
                    target,
                    src_transform=grid.transform,
                    src_crs=src.crs,
                    dst_transform=transform,
                    dst_crs=src.crs,
                    src_nodata=nodata,
                    dst_nodata=nodata,
                    resampling=Resampling.med,
                )
                write_band(dst, target, band)

    logger.info(f"Resampled {grid.columns}x{grid.rows} to {width}x{height} -> {destination}")

    return ResampleResult(
        destination=str(destination),
        source_shape=[grid.rows, grid.columns],
        rows=height,
        columns=width,
        transform=transform,
    )


# ---------------------------------------------------------------------------
# Reproject
# ---------------------------------------------------------------------------


def reproject(
    source: RasterSource,
    destination: str | os.PathLike,
    nodata: float = DEFAULT_NODATA,
    dst_crs: str = WGS84,
    driver: str = DEFAULT_DRIVER,
) -> ReprojectResult:
    """
    Warp every band into another CRS (WGS84 by default).

    Source nodata samples become the caller's nodata, which is also declared
    on the output. The source sample type is kept, so the caller's nodata must
    be storable in it (ValueError otherwise).
    """
    with opened(as_raster_ref(source)) as src:
        grid = read_grid(src, DEFAULT_BAND)
        if src.crs is None:
            raise TransformUnavailableError(ErrorMessages.MISSING_CRS.format(src.name))

        target_crs = CRS.from_user_input(dst_crs)
        affine, width, height = calculate_default_transform(
            src.crs, target_crs, src.width, src.height, *src.bounds
        )
        transform = GeoTransform.from_affine(affine)
        dtype = src.dtypes[0]
        if not fits_sample_type(nodata, dtype):
            raise ValueError(ErrorMessages.NODATA_OUT_OF_RANGE.format(nodata, dtype))

        with create_raster(
            destination,
            width=width,
            height=height,
            count=src.count,
            dtype=dtype,
            transform=transform,
            projection=target_crs.to_wkt(),
            nodata=nodata,
            driver=driver,
        ) as dst:
            for band in range(1, src.count + 1):
                source_data = read_band(src, band)
                target = np.full((height, width), nodata, dtype=dtype)
                _warp(
                    source_data,
                    target,
                    src_transform=grid.transform,
                    src_crs=src.crs,
                    dst_transform=transform,
                    dst_crs=target_crs,
                    src_nodata=src.nodatavals[band - 1],
                    dst_nodata=nodata,
                    resampling=Resampling.nearest,
                )
                write_band(dst, target, band)

    logger.info(f"Reprojected to {dst_crs} ({width}x{height}) -> {destination}")

    return ReprojectResult(
        destination=str(destination),
        crs=str(dst_crs),
        rows=height,
        columns=width,
        transform=transform,
        nodata=float(nodata),
    )


def _warp(
    source_data: np.ndarray,
    target: np.ndarray,
    src_transform: GeoTransform,
    src_crs: CRS,
    dst_transform: GeoTransform,
    dst_crs: CRS,
    src_nodata: float | None,
    dst_nodata: float | None,
    resampling: Resampling,
) -> None:
    try:
        warp_reproject(
            source=source_data,
            destination=target,
            src_transform=src_transform.to_affine(),
            src_crs=src_crs,
            dst_transform=dst_transform.to_affine(),
            dst_crs=dst_crs,
            src_nodata=src_nodata,
            dst_nodata=dst_nodata,
            resampling=resampling,
        )
    except RasterioError as e:
        raise RasterWriteError(ErrorMessages.WRITE_FAILED.format("warp buffer", e)) from e

"""
Raster compositing - merge N rasters into one grid by per-cell median.

The output grid spans the union of the input extents at the coarsest input
resolution. Each output cell centre is located in every input; the samples of
the inputs that contain it are reduced to their median. Cells covered by no
input take the first input's nodata, or the caller's nodata when that value is
NaN or outside the int16 range. The output is always a single int16 band.

Cells are independent, so rows are processed in blocks on a thread pool. Input
bands are read once up front; workers only touch numpy arrays and each block
writes its own slice of the output.
"""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import ExitStack
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np
from numpy.typing import NDArray

from ..constants import (
    DEFAULT_BLOCK_ROWS,
    DEFAULT_DRIVER,
    DEFAULT_MEDIAN_POLICY,
    DEFAULT_MERGE_WORKERS,
    DEFAULT_NODATA,
    MEDIAN_POLICIES,
    MERGE_SAMPLE_TYPE,
    ErrorMessages,
    MedianPolicy,
    fits_sample_type,
)
from ..errors import EmptyInputError, OperationCancelledError
from .geometry import FloatArray, GeoTransform, RasterGrid, round_half_away, round_half_away_array
from .raster_io import (
    RasterSource,
    as_raster_ref,
    create_raster,
    open_dataset,
    read_band,
    read_grid,
    release,
    write_band,
)

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """Outcome of a merge operation."""

    destination: str
    rows: int
    columns: int
    transform: GeoTransform
    input_count: int
    covered_cells: int
    fill_value: int | float
    median_policy: str


# ---------------------------------------------------------------------------
# Median selection
# ---------------------------------------------------------------------------


def median(values: Sequence[float], policy: str = DEFAULT_MEDIAN_POLICY) -> float:
    """
    Median of a non-empty sequence under an even-count tie-break policy.

    median-average averages the two middle elements; median-floor takes the
    lower-middle element.
    """
    _validate_policy(policy)
    if not values:
        raise ValueError("median of an empty sequence")

    ordered = sorted(values)
    n = len(ordered)
    lower = ordered[(n - 1) // 2]
    if n % 2 == 1 or policy == MedianPolicy.FLOOR:
        return lower
    return (lower + ordered[n // 2]) / 2


def median_stack(
    stack: FloatArray, policy: str = DEFAULT_MEDIAN_POLICY
) -> tuple[FloatArray, NDArray[np.bool_]]:
    """
    Column-wise median over axis 0 ignoring NaN gaps.

    Args:
        stack: Array of shape (inputs, ...) with NaN where an input has no sample
        policy: median-average or median-floor

    Returns:
        Tuple of (medians, covered_mask); medians are NaN where nothing was collected
    """
    _validate_policy(policy)

    ordered = np.sort(stack, axis=0)  # NaN sorts last
    counts = np.sum(~np.isnan(stack), axis=0)
    covered = counts > 0

    lower_idx = np.where(covered, (counts - 1) // 2, 0)
    lower = np.take_along_axis(ordered, lower_idx[np.newaxis, ...], axis=0)[0]

    if policy == MedianPolicy.FLOOR:
        result = lower
    else:
        upper_idx = np.where(covered, counts // 2, 0)
        upper = np.take_along_axis(ordered, upper_idx[np.newaxis, ...], axis=0)[0]
        result = (lower + upper) / 2.0

    result = np.where(covered, result, np.nan)
    return result, covered


def _validate_policy(policy: str) -> None:
    if policy not in MEDIAN_POLICIES:
        raise ValueError(
            ErrorMessages.INVALID_MEDIAN_POLICY.format(policy, ", ".join(MEDIAN_POLICIES))
        )


# ---------------------------------------------------------------------------
# Output grid
# ---------------------------------------------------------------------------


def merged_transform(grids: Sequence[RasterGrid]) -> tuple[GeoTransform, int, int]:
    """
    Output geotransform and (rows, columns) covering every input grid.

    Cell size is the largest absolute pixel size per axis across inputs.
    """
    if not grids:
        raise EmptyInputError(ErrorMessages.EMPTY_INPUT)

    min_x = min(g.x_min for g in grids)
    max_y = max(g.y_max for g in grids)
    max_x = max(g.x_max for g in grids)
    min_y = min(g.y_min for g in grids)

    cellsize_x = max(abs(g.transform.pixel_width) for g in grids)
    cellsize_y = max(abs(g.transform.pixel_height) for g in grids)

    columns = max(1, round_half_away((max_x - min_x) / cellsize_x))
    rows = max(1, round_half_away((max_y - min_y) / cellsize_y))

    transform = GeoTransform(min_x, cellsize_x, 0.0, max_y, 0.0, -cellsize_y)
    return transform, rows, columns


def _composite_rows(
    row_start: int,
    row_stop: int,
    transform: GeoTransform,
    columns: int,
    grids: Sequence[RasterGrid],
    bands: Sequence[NDArray[Any]],
    policy: str,
) -> tuple[FloatArray, NDArray[np.bool_]]:
    """Median composite of output rows [row_start, row_stop)."""
    row_centres = np.arange(row_start, row_stop, dtype=np.float64) + 0.5
    col_centres = np.arange(columns, dtype=np.float64) + 0.5
    ys = transform.y_origin + row_centres * transform.pixel_height
    xs = transform.x_origin + col_centres * transform.pixel_width
    yy, xx = np.meshgrid(ys, xs, indexing="ij")

    stack = np.full((len(grids),) + yy.shape, np.nan, dtype=np.float64)

    for k, (grid, band) in enumerate(zip(grids, bands)):
        rows_f, cols_f, inside = grid.pixel_arrays(yy, xx)
        if not np.any(inside):
            continue
        r = np.clip(np.floor(rows_f[inside]).astype(np.intp), 0, grid.rows - 1)
        c = np.clip(np.floor(cols_f[inside]).astype(np.intp), 0, grid.columns - 1)
        stack[k][inside] = band[r, c]

    return median_stack(stack, policy)


def _to_int16(values: FloatArray) -> NDArray[np.int16]:
    info = np.iinfo(np.int16)
    return np.clip(round_half_away_array(values), info.min, info.max).astype(np.int16)


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


def merge(
    sources: Sequence[RasterSource],
    destination: str | os.PathLike,
    nodata: int = DEFAULT_NODATA,
    median_policy: str = DEFAULT_MEDIAN_POLICY,
    workers: int = DEFAULT_MERGE_WORKERS,
    block_rows: int = DEFAULT_BLOCK_ROWS,
    cancel_event: threading.Event | None = None,
    driver: str = DEFAULT_DRIVER,
) -> MergeResult:
    """
    Median-composite rasters into a new single-band int16 raster.

    Args:
        sources: Paths, open datasets, or RasterRefs (band 1 of each is used)
        destination: Output path
        nodata: Nodata declared on the output band; also the fallback for a
            first input whose own nodata is 0 or undeclared
        median_policy: median-average or median-floor
        workers: Thread pool size for row blocks
        block_rows: Output rows per work item
        cancel_event: Set to abort between row blocks
        driver: Output raster driver

    Returns:
        MergeResult describing the written raster
    """
    refs = [as_raster_ref(s) for s in sources]
    if not refs:
        raise EmptyInputError(ErrorMessages.EMPTY_INPUT)
    _validate_policy(median_policy)
    if workers < 1:
        raise ValueError(ErrorMessages.INVALID_WORKERS.format(workers))

    grids: list[RasterGrid] = []
    bands: list[NDArray[Any]] = []
    with ExitStack() as stack:
        for ref in refs:
            dataset = open_dataset(ref)
            stack.callback(release, ref, dataset)
            grids.append(read_grid(dataset, nodata_fallback=nodata))
            bands.append(read_band(dataset))

    transform, rows, columns = merged_transform(grids)
    fill_value = grids[0].nodata
    if not fits_sample_type(fill_value, MERGE_SAMPLE_TYPE):
        logger.debug(f"merge: fill {fill_value} does not fit int16, using {nodata}")
        fill_value = nodata
    output = np.empty((rows, columns), dtype=np.int16)
    covered_cells = 0

    blocks = [(start, min(start + block_rows, rows)) for start in range(0, rows, block_rows)]

    def run_block(block: tuple[int, int]) -> tuple[int, int, int]:
        if cancel_event is not None and cancel_event.is_set():
            raise OperationCancelledError(
                ErrorMessages.CANCELLED.format("merge", block[0] // block_rows, len(blocks))
            )
        start, stop = block
        values, covered = _composite_rows(
            start, stop, transform, columns, grids, bands, median_policy
        )
        filled = np.where(covered, values, float(fill_value))
        output[start:stop] = _to_int16(filled)
        return start, stop, int(np.count_nonzero(covered))

    with ThreadPoolExecutor(max_workers=workers) as pool:
        for _, _, count in pool.map(run_block, blocks):
            covered_cells += count

    with create_raster(
        destination,
        width=columns,
        height=rows,
        count=1,
        dtype=MERGE_SAMPLE_TYPE,
        transform=transform,
        projection=grids[0].projection,
        nodata=nodata,
        driver=driver,
    ) as dst:
        write_band(dst, output, 1)

    logger.info(
        f"Merged {len(grids)} rasters into {rows}x{columns} grid "
        f"({covered_cells} cells covered) -> {destination}"
    )

    return MergeResult(
        destination=str(destination),
        rows=rows,
        columns=columns,
        transform=transform,
        input_count=len(grids),
        covered_cells=covered_cells,
        fill_value=fill_value,
        median_policy=median_policy,
    )

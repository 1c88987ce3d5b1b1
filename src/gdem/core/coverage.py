"""
Coverage - which rasters of a catalog intersect a bounding box.

The scan is best-effort: entries that cannot be opened or carry no usable
geotransform are skipped and logged at debug level.
"""

import logging
from typing import Sequence

from rasterio.errors import RasterioError

from ..errors import GDEMError
from .raster_io import RasterSource, as_raster_ref, opened, read_grid

logger = logging.getLogger(__name__)


def boxes_intersect(
    a: tuple[float, float, float, float],
    b: tuple[float, float, float, float],
) -> bool:
    """Inclusive overlap of two (min_x, min_y, max_x, max_y) boxes."""
    return a[0] <= b[2] and a[2] >= b[0] and a[1] <= b[3] and a[3] >= b[1]


def coverage(
    sources: Sequence[RasterSource],
    top_left_x: float,
    top_left_y: float,
    bottom_right_x: float,
    bottom_right_y: float,
) -> list[RasterSource]:
    """
    Return the sources whose extent intersects the query box.

    Args:
        sources: Paths, open datasets, or RasterRefs
        top_left_x, top_left_y: Query box corner (same units as the rasters)
        bottom_right_x, bottom_right_y: Opposite query box corner

    Returns:
        Matching entries of sources, in their original order and form
    """
    query = (
        min(top_left_x, bottom_right_x),
        min(top_left_y, bottom_right_y),
        max(top_left_x, bottom_right_x),
        max(top_left_y, bottom_right_y),
    )

    matches: list[RasterSource] = []
    for source in sources:
        try:
            with opened(as_raster_ref(source)) as dataset:
                grid = read_grid(dataset)
        except (GDEMError, RasterioError, TypeError, ValueError) as e:
            logger.debug(f"coverage: skipping {source!r}: {e}")
            continue

        extent = (
            min(grid.x_min, grid.x_max),
            min(grid.y_min, grid.y_max),
            max(grid.x_min, grid.x_max),
            max(grid.y_min, grid.y_max),
        )
        if boxes_intersect(extent, query):
            matches.append(source)

    logger.info(f"coverage: {len(matches)} of {len(sources)} rasters intersect {query}")
    return matches

"""
Processing tools — merge, clip, resample, reproject.

Each tool reads one or more rasters and writes a new raster at the
caller's destination path.
"""

import logging

from ...constants import DEFAULT_NODATA, WGS84, SuccessMessages
from ...models.responses import (
    ClipResponse,
    ErrorResponse,
    MergeResponse,
    ReprojectResponse,
    ResampleResponse,
    format_response,
)

logger = logging.getLogger(__name__)


def register_processing_tools(mcp, manager):
    """Register processing tools with the MCP server."""

    @mcp.tool()
    async def dem_merge(
        paths: list[str],
        destination: str,
        nodata: int = DEFAULT_NODATA,
        median_policy: str | None = None,
        output_mode: str = "json",
    ) -> str:
        """Merge rasters into one int16 raster by per-cell median.

        The output spans the union of the inputs at the coarsest input resolution.
        Cells covered by no input take the first input's nodata value.

        Args:
            paths: Input raster paths (band 1 of each is used)
            destination: Output raster path
            nodata: Nodata declared on the output
            median_policy: "median-average" or "median-floor" (None = server default)
            output_mode: "json" or "text"

        Returns:
            Output shape, geotransform, and coverage statistics
        """
        try:
            result = await manager.merge_rasters(
                sources=paths,
                destination=destination,
                nodata=nodata,
                median_policy=median_policy,
            )

            response = MergeResponse(
                destination=result.destination,
                input_count=result.input_count,
                shape=[result.rows, result.columns],
                geotransform=list(result.transform.to_gdal()),
                covered_cells=result.covered_cells,
                fill_value=float(result.fill_value),
                median_policy=result.median_policy,
                message=SuccessMessages.MERGE_COMPLETE.format(
                    result.input_count, result.rows, result.columns, result.covered_cells
                ),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dem_merge failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def dem_clip(
        path: str,
        destination: str,
        bbox: list[float],
        output_mode: str = "json",
    ) -> str:
        """Clip a raster to a box given in the raster's own coordinate units.

        The box is clamped to the raster; a box entirely outside it is an error.

        Args:
            path: Input raster path
            destination: Output raster path
            bbox: [top_left_x, top_left_y, bottom_right_x, bottom_right_y]
            output_mode: "json" or "text"

        Returns:
            Pixel window offset and output shape
        """
        try:
            if len(bbox) != 4:
                raise ValueError(f"bbox must have 4 values, got {len(bbox)}")

            result = await manager.clip_raster(path, destination, *bbox)

            response = ClipResponse(
                destination=result.destination,
                offset=[result.row_offset, result.col_offset],
                shape=[result.rows, result.columns],
                geotransform=list(result.transform.to_gdal()),
                message=SuccessMessages.CLIP_COMPLETE.format(
                    result.columns, result.rows, result.row_offset, result.col_offset
                ),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dem_clip failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def dem_resample(
        path: str,
        destination: str,
        width: int,
        height: int,
        output_mode: str = "json",
    ) -> str:
        """Resample a raster to width x height pixels with a median kernel.

        The ground extent is preserved; only the pixel size changes.

        Args:
            path: Input raster path
            destination: Output raster path
            width: Output width in pixels
            height: Output height in pixels
            output_mode: "json" or "text"

        Returns:
            Source and output shapes with the new geotransform
        """
        try:
            result = await manager.resample_raster(path, destination, width, height)

            response = ResampleResponse(
                destination=result.destination,
                source_shape=result.source_shape,
                shape=[result.rows, result.columns],
                geotransform=list(result.transform.to_gdal()),
                message=SuccessMessages.RESAMPLE_COMPLETE.format(
                    result.source_shape[1], result.source_shape[0], width, height
                ),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dem_resample failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def dem_reproject(
        path: str,
        destination: str,
        nodata: float = DEFAULT_NODATA,
        crs: str = WGS84,
        output_mode: str = "json",
    ) -> str:
        """Reproject a raster into another CRS (EPSG:4326 by default).

        Args:
            path: Input raster path
            destination: Output raster path
            nodata: Nodata declared on the output
            crs: Target CRS (EPSG code or WKT)
            output_mode: "json" or "text"

        Returns:
            Output CRS, shape and geotransform
        """
        try:
            result = await manager.reproject_raster(path, destination, nodata, crs)

            response = ReprojectResponse(
                destination=result.destination,
                crs=result.crs,
                shape=[result.rows, result.columns],
                geotransform=list(result.transform.to_gdal()),
                nodata=result.nodata,
                message=SuccessMessages.REPROJECT_COMPLETE.format(
                    result.crs, result.columns, result.rows
                ),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dem_reproject failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

"""
Query tools — altitude sampling, catalog coverage, path densification.

These tools read rasters but never write them.
"""

import logging

from ...constants import DEFAULT_BAND, DEFAULT_INTERVAL_ARCSEC, SuccessMessages
from ...models.responses import (
    AltitudeResponse,
    CoverageResponse,
    ErrorResponse,
    MultiAltitudeResponse,
    PathResponse,
    PointAltitudeInfo,
    format_response,
)

logger = logging.getLogger(__name__)


def register_query_tools(mcp, manager):
    """Register query tools with the MCP server."""

    @mcp.tool()
    async def dem_altitude(
        path: str,
        latitude: float,
        longitude: float,
        interpolated: bool = False,
        band: int = DEFAULT_BAND,
        output_mode: str = "json",
    ) -> str:
        """Get the altitude of a raster DEM at a single geographic point.

        Returns the raster nodata value when the point lies outside the raster.

        Args:
            path: Path to the raster file
            latitude: Latitude (-90 to 90)
            longitude: Longitude (-180 to 180)
            interpolated: Bilinear interpolation between the four neighbouring samples
            band: Raster band (1-based)
            output_mode: "json" or "text"

        Returns:
            Altitude with nodata flag
        """
        try:
            result = await manager.get_altitude(
                path=path,
                latitude=latitude,
                longitude=longitude,
                interpolated=interpolated,
                band=band,
            )

            response = AltitudeResponse(
                path=path,
                latitude=latitude,
                longitude=longitude,
                altitude=result.altitude,
                nodata=result.nodata,
                is_nodata=result.is_nodata,
                interpolated=interpolated,
                message=SuccessMessages.ALTITUDE.format(latitude, longitude, result.altitude),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dem_altitude failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def dem_altitudes(
        path: str,
        points: list[list[float]],
        interpolated: bool = False,
        band: int = DEFAULT_BAND,
        output_mode: str = "json",
    ) -> str:
        """Get altitudes at multiple geographic points in a single request.

        Args:
            path: Path to the raster file
            points: List of [latitude, longitude] pairs
            interpolated: Bilinear interpolation between the four neighbouring samples
            band: Raster band (1-based)
            output_mode: "json" or "text"

        Returns:
            Altitude for each point with range statistics
        """
        try:
            result = await manager.get_altitudes(
                path=path,
                points=points,
                interpolated=interpolated,
                band=band,
            )

            point_infos = [
                PointAltitudeInfo(latitude=p[0], longitude=p[1], altitude=a)
                for p, a in zip(points, result.altitudes)
            ]

            response = MultiAltitudeResponse(
                path=path,
                point_count=len(points),
                points=point_infos,
                altitude_range=result.altitude_range,
                nodata=result.nodata,
                nodata_count=result.nodata_count,
                interpolated=interpolated,
                message=SuccessMessages.ALTITUDES.format(len(points)),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dem_altitudes failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def dem_coverage(
        paths: list[str],
        bbox: list[float],
        output_mode: str = "json",
    ) -> str:
        """Find which rasters of a catalog intersect a bounding box.

        Entries that cannot be opened or have no geotransform are skipped.

        Args:
            paths: Raster file paths to scan
            bbox: [top_left_x, top_left_y, bottom_right_x, bottom_right_y] in raster units
            output_mode: "json" or "text"

        Returns:
            Matching paths in catalog order
        """
        try:
            if len(bbox) != 4:
                raise ValueError(f"bbox must have 4 values, got {len(bbox)}")

            result = await manager.find_coverage(paths, *bbox)

            response = CoverageResponse(
                bbox=bbox,
                scanned=result.scanned,
                matches=result.matches,
                message=SuccessMessages.COVERAGE.format(len(result.matches), result.scanned),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dem_coverage failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def dem_densify_path(
        points: list[list[float]],
        interval_arcsec: float = DEFAULT_INTERVAL_ARCSEC,
        output_mode: str = "json",
    ) -> str:
        """Generate evenly spaced points along a path of [latitude, longitude] vertices.

        Shared vertices between segments appear twice; a segment shorter than
        one interval contributes only its start point.

        Args:
            points: Path vertices as [latitude, longitude] pairs (at least 2)
            interval_arcsec: Spacing between points in arcseconds
            output_mode: "json" or "text"

        Returns:
            Generated points in path order
        """
        try:
            result = manager.densify_path(points, interval_arcsec)

            response = PathResponse(
                interval_arcsec=interval_arcsec,
                segments=result.segments,
                point_count=len(result.points),
                points=result.points,
                message=SuccessMessages.DENSIFY_COMPLETE.format(
                    len(result.points), result.segments
                ),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dem_densify_path failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

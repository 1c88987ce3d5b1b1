"""
Discovery tools — server status and capabilities.

These tools perform no raster I/O and report the server configuration.
"""

import logging

from ...constants import (
    MEDIAN_POLICIES,
    OPERATIONS,
    OUTPUT_MODES,
    SAMPLE_TYPES,
    ServerConfig,
)
from ...models.responses import (
    CapabilitiesResponse,
    ErrorResponse,
    StatusResponse,
    format_response,
)

logger = logging.getLogger(__name__)

TOOL_COUNT = 10


def register_discovery_tools(mcp, manager):
    """Register discovery tools with the MCP server."""

    @mcp.tool()
    async def dem_status(output_mode: str = "json") -> str:
        """Get server status including version, median policy, merge workers and output driver.

        Args:
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Server status information
        """
        try:
            response = StatusResponse(
                server=ServerConfig.NAME,
                version=ServerConfig.VERSION,
                **manager.describe(),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dem_status failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def dem_capabilities(output_mode: str = "json") -> str:
        """Get full server capabilities including operations, sample types,
        median policies, and output modes.

        Args:
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Complete server capabilities
        """
        try:
            response = CapabilitiesResponse(
                server=ServerConfig.NAME,
                version=ServerConfig.VERSION,
                operations=OPERATIONS,
                sample_types=SAMPLE_TYPES,
                median_policies=MEDIAN_POLICIES,
                output_modes=OUTPUT_MODES,
                tool_count=TOOL_COUNT,
                llm_guidance=(
                    "All paths refer to raster files readable by the server. "
                    "Use dem_altitude or dem_altitudes to sample elevations at latitude/longitude. "
                    "Use dem_coverage to find which rasters of a catalog overlap a box. "
                    "Use dem_densify_path to generate evenly spaced points along a path, "
                    "then dem_altitudes to build a profile. "
                    "Use dem_merge to median-composite tiles into one int16 raster, "
                    "dem_clip to cut a box, dem_resample to change pixel count, "
                    "and dem_reproject to warp into EPSG:4326."
                ),
                message=f"{ServerConfig.NAME} v{ServerConfig.VERSION} capabilities",
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dem_capabilities failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

#!/usr/bin/env python3
"""
Async GDEM MCP Server using chuk-mcp-server

Raster DEM access, interpolation, merge, clip, resample and reprojection.
Reads raster files from local paths and writes results to caller-supplied
destination paths.
"""

import logging

from chuk_mcp_server import ChukMCPServer

from .constants import ServerConfig
from .core.dem_manager import GDEMManager
from .tools.discovery import register_discovery_tools
from .tools.processing import register_processing_tools
from .tools.query import register_query_tools

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create the MCP server instance
mcp = ChukMCPServer(ServerConfig.NAME)

# Create GDEM manager instance from GDEM_* environment variables
manager = GDEMManager.from_env()

# Register all tool modules
register_discovery_tools(mcp, manager)
register_query_tools(mcp, manager)
register_processing_tools(mcp, manager)

# Run the server
if __name__ == "__main__":
    logger.info("Starting GDEM MCP Server...")
    logger.info(f"Configuration: {manager.describe()}")
    mcp.run(stdio=True)

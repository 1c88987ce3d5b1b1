"""MCP tool modules for gdem."""

from .discovery import register_discovery_tools
from .processing import register_processing_tools
from .query import register_query_tools

__all__ = [
    "register_discovery_tools",
    "register_processing_tools",
    "register_query_tools",
]

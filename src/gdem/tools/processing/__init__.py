"""Processing tools: merge, clip, resample, reproject."""

from .api import register_processing_tools

__all__ = ["register_processing_tools"]

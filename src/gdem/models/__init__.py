"""Response models for gdem."""

from .responses import (
    AltitudeResponse,
    CapabilitiesResponse,
    ClipResponse,
    CoverageResponse,
    ErrorResponse,
    MergeResponse,
    MultiAltitudeResponse,
    PathResponse,
    PointAltitudeInfo,
    ReprojectResponse,
    ResampleResponse,
    StatusResponse,
    format_response,
)

__all__ = [
    "ErrorResponse",
    "StatusResponse",
    "CapabilitiesResponse",
    "AltitudeResponse",
    "PointAltitudeInfo",
    "MultiAltitudeResponse",
    "MergeResponse",
    "ClipResponse",
    "ResampleResponse",
    "ReprojectResponse",
    "CoverageResponse",
    "PathResponse",
    "format_response",
]

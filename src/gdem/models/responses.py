"""
Response models for gdem tools.

All tool responses are Pydantic models for type safety and consistent API.
"""

from pydantic import BaseModel, ConfigDict, Field


def format_response(model: BaseModel, output_mode: str = "json") -> str:
    """Format a response model as JSON or human-readable text.

    Args:
        model: Pydantic response model instance
        output_mode: "json" (default) or "text"

    Returns:
        Formatted string
    """
    if output_mode == "text" and hasattr(model, "to_text"):
        return str(model.to_text())
    return str(model.model_dump_json())


class ErrorResponse(BaseModel):
    """Error response model for tool failures."""

    model_config = ConfigDict(extra="forbid")

    error: str = Field(..., description="Error message describing what went wrong")

    def to_text(self) -> str:
        return f"Error: {self.error}"


class StatusResponse(BaseModel):
    """Response model for server status queries."""

    model_config = ConfigDict(extra="forbid")

    server: str = Field(default="gdem", description="Server name")
    version: str = Field(default="0.1.0", description="Server version")
    median_policy: str = Field(..., description="Even-count median tie-break used by merge")
    merge_workers: int = Field(..., description="Thread pool size for merge", ge=1)
    driver: str = Field(..., description="Raster driver used for outputs")
    nodata_fallback: float | None = Field(
        None, description="Nodata substituted for 0/undeclared nodata (None = type minimum)"
    )

    def to_text(self) -> str:
        fallback = "type minimum" if self.nodata_fallback is None else f"{self.nodata_fallback}"
        lines = [
            f"{self.server} v{self.version}",
            f"Median policy: {self.median_policy}",
            f"Merge workers: {self.merge_workers}",
            f"Driver: {self.driver}",
            f"Nodata fallback: {fallback}",
        ]
        return "\n".join(lines)


class CapabilitiesResponse(BaseModel):
    """Response model for server capabilities listing."""

    model_config = ConfigDict(extra="forbid")

    server: str = Field(..., description="Server name")
    version: str = Field(..., description="Server version")
    operations: list[str] = Field(..., description="Available raster operations")
    sample_types: list[str] = Field(..., description="Supported sample types")
    median_policies: list[str] = Field(..., description="Available median tie-break policies")
    output_modes: list[str] = Field(..., description="Supported tool output modes")
    tool_count: int = Field(..., description="Number of available tools", ge=0)
    llm_guidance: str = Field(..., description="LLM-friendly usage guidance for the server")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            f"{self.server} v{self.version}",
            f"Tools: {self.tool_count}",
            f"Operations: {', '.join(self.operations)}",
            f"Sample types: {', '.join(self.sample_types)}",
            f"Median policies: {', '.join(self.median_policies)}",
            f"Output modes: {', '.join(self.output_modes)}",
            f"Guidance: {self.llm_guidance}",
        ]
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Altitude responses
# ---------------------------------------------------------------------------


class AltitudeResponse(BaseModel):
    """Response model for a single-point altitude query."""

    model_config = ConfigDict(extra="forbid")

    path: str = Field(..., description="Raster queried")
    latitude: float = Field(..., description="Latitude of the query point")
    longitude: float = Field(..., description="Longitude of the query point")
    altitude: float = Field(..., description="Sampled altitude (nodata when unavailable)")
    nodata: float = Field(..., description="Nodata value of the raster")
    is_nodata: bool = Field(..., description="Whether the altitude is the nodata value")
    interpolated: bool = Field(..., description="Whether bilinear interpolation was used")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        method = "bilinear" if self.interpolated else "nearest"
        value = "nodata" if self.is_nodata else f"{self.altitude:g}"
        lines = [
            f"Altitude at ({self.latitude:.6f}, {self.longitude:.6f}): {value}",
            f"Raster: {self.path}",
            f"Method: {method}",
        ]
        return "\n".join(lines)


class PointAltitudeInfo(BaseModel):
    """Altitude for a single point in a multi-point query."""

    model_config = ConfigDict(extra="forbid")

    latitude: float = Field(..., description="Latitude")
    longitude: float = Field(..., description="Longitude")
    altitude: float = Field(..., description="Sampled altitude")


class MultiAltitudeResponse(BaseModel):
    """Response model for a multi-point altitude query."""

    model_config = ConfigDict(extra="forbid")

    path: str = Field(..., description="Raster queried")
    point_count: int = Field(..., description="Number of points queried", ge=1)
    points: list[PointAltitudeInfo] = Field(..., description="Altitude per point")
    altitude_range: list[float] = Field(..., description="[min, max] of non-nodata altitudes")
    nodata: float = Field(..., description="Nodata value of the raster")
    nodata_count: int = Field(..., description="Points that returned nodata", ge=0)
    interpolated: bool = Field(..., description="Whether bilinear interpolation was used")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        alt_min, alt_max = self.altitude_range
        lines = [
            f"Altitude for {self.point_count} point(s) from {self.path}",
            f"Range: {alt_min:g} to {alt_max:g}",
            f"Nodata points: {self.nodata_count}",
            "",
        ]
        for p in self.points:
            lines.append(f"  ({p.latitude:.6f}, {p.longitude:.6f}): {p.altitude:g}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Processing responses
# ---------------------------------------------------------------------------


class MergeResponse(BaseModel):
    """Response model for raster merging."""

    model_config = ConfigDict(extra="forbid")

    destination: str = Field(..., description="Path of the merged raster")
    input_count: int = Field(..., description="Number of input rasters", ge=1)
    shape: list[int] = Field(..., description="Output shape [rows, columns]")
    geotransform: list[float] = Field(..., description="Output geotransform (GDAL order)")
    covered_cells: int = Field(..., description="Cells covered by at least one input", ge=0)
    fill_value: float = Field(..., description="Value written to uncovered cells")
    median_policy: str = Field(..., description="Even-count median tie-break used")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        total = self.shape[0] * self.shape[1]
        lines = [
            f"Merged {self.input_count} raster(s) -> {self.destination}",
            f"Shape: {self.shape[0]}x{self.shape[1]}",
            f"Covered: {self.covered_cells} of {total} cells (fill {self.fill_value:g})",
            f"Median policy: {self.median_policy}",
        ]
        return "\n".join(lines)


class ClipResponse(BaseModel):
    """Response model for raster clipping."""

    model_config = ConfigDict(extra="forbid")

    destination: str = Field(..., description="Path of the clipped raster")
    offset: list[int] = Field(..., description="Window offset in the source [row, column]")
    shape: list[int] = Field(..., description="Output shape [rows, columns]")
    geotransform: list[float] = Field(..., description="Output geotransform (GDAL order)")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            f"Clipped -> {self.destination}",
            f"Offset: row {self.offset[0]}, column {self.offset[1]}",
            f"Shape: {self.shape[0]}x{self.shape[1]}",
        ]
        return "\n".join(lines)


class ResampleResponse(BaseModel):
    """Response model for raster resampling."""

    model_config = ConfigDict(extra="forbid")

    destination: str = Field(..., description="Path of the resampled raster")
    source_shape: list[int] = Field(..., description="Source shape [rows, columns]")
    shape: list[int] = Field(..., description="Output shape [rows, columns]")
    geotransform: list[float] = Field(..., description="Output geotransform (GDAL order)")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            f"Resampled -> {self.destination}",
            f"Shape: {self.source_shape[0]}x{self.source_shape[1]}"
            f" -> {self.shape[0]}x{self.shape[1]}",
            f"Pixel size: {self.geotransform[1]:g} x {self.geotransform[5]:g}",
        ]
        return "\n".join(lines)


class ReprojectResponse(BaseModel):
    """Response model for raster reprojection."""

    model_config = ConfigDict(extra="forbid")

    destination: str = Field(..., description="Path of the reprojected raster")
    crs: str = Field(..., description="Target coordinate reference system")
    shape: list[int] = Field(..., description="Output shape [rows, columns]")
    geotransform: list[float] = Field(..., description="Output geotransform (GDAL order)")
    nodata: float = Field(..., description="Nodata declared on the output")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            f"Reprojected -> {self.destination}",
            f"CRS: {self.crs}",
            f"Shape: {self.shape[0]}x{self.shape[1]}",
            f"Nodata: {self.nodata:g}",
        ]
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Catalog & geometry responses
# ---------------------------------------------------------------------------


class CoverageResponse(BaseModel):
    """Response model for catalog coverage queries."""

    model_config = ConfigDict(extra="forbid")

    bbox: list[float] = Field(
        ..., description="Query box [top_left_x, top_left_y, bottom_right_x, bottom_right_y]"
    )
    scanned: int = Field(..., description="Number of catalog entries scanned", ge=0)
    matches: list[str] = Field(..., description="Entries intersecting the box")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        bbox_str = ", ".join(f"{b:.4f}" for b in self.bbox)
        lines = [
            f"Coverage: [{bbox_str}]",
            f"{len(self.matches)} of {self.scanned} rasters intersect",
        ]
        for m in self.matches[:10]:
            lines.append(f"  {m}")
        if len(self.matches) > 10:
            lines.append(f"  ... and {len(self.matches) - 10} more")
        return "\n".join(lines)


class PathResponse(BaseModel):
    """Response model for polyline densification."""

    model_config = ConfigDict(extra="forbid")

    interval_arcsec: float = Field(..., description="Spacing between points in arcseconds")
    segments: int = Field(..., description="Number of path segments", ge=1)
    point_count: int = Field(..., description="Number of generated points", ge=1)
    points: list[list[float]] = Field(..., description="Generated points [[lat, lon], ...]")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            f"{self.point_count} point(s) along {self.segments} segment(s)"
            f" every {self.interval_arcsec:g} arcsec",
        ]
        for lat, lon in self.points[:5]:
            lines.append(f"  ({lat:.6f}, {lon:.6f})")
        if len(self.points) > 5:
            lines.append(f"  ... and {len(self.points) - 5} more")
        return "\n".join(lines)

"""
Constants for gdem.

All magic strings, defaults, sample type metadata, and messages live here.
"""

import math

import numpy as np


class ServerConfig:
    NAME = "gdem"
    VERSION = "0.1.0"
    DESCRIPTION = "Raster DEM Access, Interpolation, Merge, Clip & Resample MCP Server"


class EnvVar:
    NODATA_FALLBACK = "GDEM_NODATA_FALLBACK"
    MEDIAN_POLICY = "GDEM_MEDIAN_POLICY"
    MERGE_WORKERS = "GDEM_MERGE_WORKERS"
    RASTER_DRIVER = "GDEM_RASTER_DRIVER"
    MCP_STDIO = "MCP_STDIO"


class SampleType:
    INT8 = "int8"
    UINT8 = "uint8"
    INT16 = "int16"
    UINT16 = "uint16"
    INT32 = "int32"
    UINT32 = "uint32"
    FLOAT32 = "float32"
    FLOAT64 = "float64"


SAMPLE_TYPES = [
    SampleType.INT8,
    SampleType.UINT8,
    SampleType.INT16,
    SampleType.UINT16,
    SampleType.INT32,
    SampleType.UINT32,
    SampleType.FLOAT32,
    SampleType.FLOAT64,
]
INTEGER_SAMPLE_TYPES = [
    SampleType.INT8,
    SampleType.UINT8,
    SampleType.INT16,
    SampleType.UINT16,
    SampleType.INT32,
    SampleType.UINT32,
]


def sample_dtype(sample_type: str) -> np.dtype:
    """Return the numpy dtype for a sample type name."""
    if sample_type not in SAMPLE_TYPES:
        raise ValueError(
            ErrorMessages.UNKNOWN_SAMPLE_TYPE.format(sample_type, ", ".join(SAMPLE_TYPES))
        )
    return np.dtype(sample_type)


def default_nodata_fallback(sample_type: str) -> int | float:
    """Most negative value representable by the sample type."""
    dtype = sample_dtype(sample_type)
    if sample_type in INTEGER_SAMPLE_TYPES:
        return int(np.iinfo(dtype).min)
    return float(np.finfo(dtype).min)


def coerce_sample(value: float, sample_type: str) -> int | float:
    """Cast a value to the Python scalar matching the sample type."""
    if sample_type in INTEGER_SAMPLE_TYPES:
        info = np.iinfo(sample_dtype(sample_type))
        return int(min(max(int(value), info.min), info.max))
    return float(sample_dtype(sample_type).type(value))


def fits_sample_type(value: float, dtype: str) -> bool:
    """Whether value can be stored as-is in dtype. NaN fits float types only."""
    numpy_dtype = np.dtype(dtype)
    if np.issubdtype(numpy_dtype, np.integer):
        info = np.iinfo(numpy_dtype)
        return math.isfinite(value) and info.min <= value <= info.max
    return True


class MedianPolicy:
    AVERAGE = "median-average"
    FLOOR = "median-floor"


MEDIAN_POLICIES = [MedianPolicy.AVERAGE, MedianPolicy.FLOOR]
DEFAULT_MEDIAN_POLICY = MedianPolicy.AVERAGE

# Raster defaults
DEFAULT_BAND = 1
DEFAULT_NODATA = -32768
DEFAULT_DRIVER = "GTiff"
MERGE_SAMPLE_TYPE = SampleType.INT16
WGS84 = "EPSG:4326"

# Merge execution
DEFAULT_MERGE_WORKERS = 4
DEFAULT_BLOCK_ROWS = 256

# Polyline densification
ARCSECONDS_PER_DEGREE = 3600.0
DEFAULT_INTERVAL_ARCSEC = 1.0
STEP_TOLERANCE = 1e-9

# Coordinate limits
MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0

OPERATIONS = ["altitude", "merge", "clip", "resample", "reproject", "coverage", "densify"]
OUTPUT_MODES = ["json", "text"]


class ErrorMessages:
    FILE_NOT_FOUND = "file '{}' not found"
    OPEN_FAILED = "failed to open raster '{}': {}"
    INVALID_BAND = "invalid raster band {} (raster has {} band(s))"
    TRANSFORM_UNAVAILABLE = "failed to read geotransform of '{}'"
    ZERO_PIXEL_SIZE = "geotransform pixel size must be non-zero, got ({}, {})"
    MISSING_CRS = "raster '{}' has no coordinate reference system"
    EMPTY_INPUT = "at least one input raster is required"
    INVALID_CLIP_REGION = "clip region yields an empty window ({} x {} pixels)"
    INSUFFICIENT_POINTS = "at least 2 points are required, got {}"
    INVALID_COORDINATE = "invalid coordinates ({}:{})"
    READ_FAILED = "unable to read raster data at row {}, column {}: {}"
    BAND_READ_FAILED = "unable to read band {} of '{}': {}"
    WRITE_FAILED = "unable to write raster data to '{}': {}"
    CREATE_FAILED = "failed to create target dataset '{}': {}"
    CANCELLED = "{} cancelled after {} of {} row blocks"
    UNKNOWN_SAMPLE_TYPE = "Unknown sample type '{}'. Available: {}"
    INVALID_MEDIAN_POLICY = "Invalid median policy '{}'. Available: {}"
    NODATA_OUT_OF_RANGE = "nodata {} cannot be stored in {} samples"
    INVALID_SIZE = "output size must be positive, got {} x {}"
    INVALID_INTERVAL = "interval must be > 0 arcseconds, got {}"
    INVALID_WORKERS = "workers must be >= 1, got {}"


class SuccessMessages:
    ALTITUDE = "Altitude at ({:.6f}, {:.6f}): {}"
    ALTITUDES = "Retrieved altitude for {} points"
    MERGE_COMPLETE = "Merged {} rasters into {}x{} grid ({} cells covered)"
    CLIP_COMPLETE = "Clipped {}x{} window at offset ({}, {})"
    RESAMPLE_COMPLETE = "Resampled {}x{} to {}x{}"
    REPROJECT_COMPLETE = "Reprojected to {} ({}x{})"
    COVERAGE = "{} of {} rasters intersect the region"
    DENSIFY_COMPLETE = "Generated {} points along {} segments"
    STATUS = "gdem v{} (median policy: {}, workers: {})"

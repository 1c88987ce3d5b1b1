"""Error hierarchy for gdem.

Setup failures (bad path, bad band, missing geotransform, empty input,
insufficient points, out-of-range coordinate) raise immediately. Pixel read
failures during altitude queries are absorbed into nodata by the DEM accessor;
read/write failures during bulk operations raise.
"""

from .constants import ErrorMessages


class GDEMError(Exception):
    """Base error for gdem operations."""


class RasterFileNotFoundError(GDEMError, FileNotFoundError):
    """Raster path does not exist."""


class RasterOpenError(GDEMError):
    """Raster exists but could not be opened by the raster driver."""


class InvalidBandError(GDEMError):
    """Requested band index exceeds the raster's band count."""

    def __init__(self, band: int, count: int) -> None:
        self.band = band
        self.count = count
        super().__init__(ErrorMessages.INVALID_BAND.format(band, count))


class TransformUnavailableError(GDEMError):
    """No usable affine geotransform (or CRS) could be read."""


class EmptyInputError(GDEMError, ValueError):
    """Operation needs at least one input raster."""


class InvalidClipRegionError(GDEMError, ValueError):
    """Clip window is empty after clamping to the source raster."""

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        super().__init__(ErrorMessages.INVALID_CLIP_REGION.format(width, height))


class InsufficientPointsError(GDEMError, ValueError):
    """Polyline needs at least two points."""


class InvalidCoordinateError(GDEMError, ValueError):
    """Latitude/longitude outside [-90, 90] x [-180, 180]."""

    def __init__(self, latitude: float, longitude: float) -> None:
        self.latitude = latitude
        self.longitude = longitude
        super().__init__(ErrorMessages.INVALID_COORDINATE.format(latitude, longitude))


class RasterReadError(GDEMError):
    """Reading pixel data failed."""


class RasterWriteError(GDEMError):
    """Writing pixel data failed."""


class RasterCreateError(GDEMError):
    """Output raster could not be created."""


class OperationCancelledError(GDEMError):
    """A long-running operation was cancelled by its caller."""

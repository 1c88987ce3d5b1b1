"""
GDEM Manager — central orchestrator for raster DEM operations.

Holds runtime configuration (nodata fallback, median policy, merge workers,
output driver) and exposes every core operation as an async method.
All public async methods wrap synchronous rasterio I/O via asyncio.to_thread(),
and each call opens its own dataset handles.
"""

import asyncio
import logging
import os
import threading
from dataclasses import dataclass
from typing import Sequence

from ..constants import (
    DEFAULT_BAND,
    DEFAULT_DRIVER,
    DEFAULT_MEDIAN_POLICY,
    DEFAULT_MERGE_WORKERS,
    DEFAULT_NODATA,
    MEDIAN_POLICIES,
    WGS84,
    EnvVar,
    ErrorMessages,
)
from .coverage import coverage
from .dem import DEM
from .merge import MergeResult, merge
from .polyline import coordinates_along_polygon
from .transforms import ClipResult, ReprojectResult, ResampleResult, clip, reproject, resample

logger = logging.getLogger(__name__)


@dataclass
class AltitudeResult:
    """Result of a single-point altitude query."""

    latitude: float
    longitude: float
    altitude: float
    nodata: float
    is_nodata: bool


@dataclass
class MultiAltitudeResult:
    """Result of a multi-point altitude query."""

    altitudes: list[float]
    nodata: float
    nodata_count: int
    altitude_range: list[float]


@dataclass
class CoverageResult:
    """Result of a catalog coverage scan."""

    matches: list[str]
    scanned: int


@dataclass
class PathResult:
    """Result of a polyline densification."""

    points: list[list[float]]
    segments: int


class GDEMManager:
    """Central manager for DEM access and raster processing."""

    def __init__(
        self,
        nodata_fallback: float | None = None,
        median_policy: str = DEFAULT_MEDIAN_POLICY,
        merge_workers: int = DEFAULT_MERGE_WORKERS,
        driver: str = DEFAULT_DRIVER,
    ) -> None:
        if median_policy not in MEDIAN_POLICIES:
            available = ", ".join(MEDIAN_POLICIES)
            raise ValueError(ErrorMessages.INVALID_MEDIAN_POLICY.format(median_policy, available))
        if merge_workers < 1:
            raise ValueError(ErrorMessages.INVALID_WORKERS.format(merge_workers))

        self.nodata_fallback = nodata_fallback
        self.median_policy = median_policy
        self.merge_workers = merge_workers
        self.driver = driver

        # One event per in-flight merge, set by cancel()
        self._merge_events: set[threading.Event] = set()
        self._merge_lock = threading.Lock()

    @classmethod
    def from_env(cls) -> "GDEMManager":
        """Build a manager from GDEM_* environment variables."""
        fallback = os.environ.get(EnvVar.NODATA_FALLBACK)
        workers = os.environ.get(EnvVar.MERGE_WORKERS)
        return cls(
            nodata_fallback=float(fallback) if fallback else None,
            median_policy=os.environ.get(EnvVar.MEDIAN_POLICY, DEFAULT_MEDIAN_POLICY),
            merge_workers=int(workers) if workers else DEFAULT_MERGE_WORKERS,
            driver=os.environ.get(EnvVar.RASTER_DRIVER, DEFAULT_DRIVER),
        )

    def describe(self) -> dict:
        """Current configuration."""
        return {
            "nodata_fallback": self.nodata_fallback,
            "median_policy": self.median_policy,
            "merge_workers": self.merge_workers,
            "driver": self.driver,
        }

    def cancel(self) -> int:
        """Cancel every merge in flight. Returns how many were signalled.

        Merges started afterwards are unaffected.
        """
        with self._merge_lock:
            events = list(self._merge_events)
        for event in events:
            event.set()
        if events:
            logger.info(f"Cancelling {len(events)} in-flight merge(s)")
        return len(events)

    # ------------------------------------------------------------------
    # Altitude queries (async)
    # ------------------------------------------------------------------

    async def get_altitude(
        self,
        path: str,
        latitude: float,
        longitude: float,
        interpolated: bool = False,
        band: int = DEFAULT_BAND,
    ) -> AltitudeResult:
        """Altitude at one point."""

        def _query() -> tuple[float, float]:
            with DEM(path, band=band, nodata_fallback=self.nodata_fallback) as dem:
                if interpolated:
                    value = dem.interpolated_altitude(latitude, longitude)
                else:
                    value = dem.altitude(latitude, longitude)
                return value, dem.nodata

        value, nodata = await asyncio.to_thread(_query)

        return AltitudeResult(
            latitude=latitude,
            longitude=longitude,
            altitude=float(value),
            nodata=float(nodata),
            is_nodata=value == nodata,
        )

    async def get_altitudes(
        self,
        path: str,
        points: list[list[float]],
        interpolated: bool = False,
        band: int = DEFAULT_BAND,
    ) -> MultiAltitudeResult:
        """Altitude at each [latitude, longitude] point."""

        def _query() -> tuple[list, float]:
            with DEM(path, band=band, nodata_fallback=self.nodata_fallback) as dem:
                pairs = [(p[0], p[1]) for p in points]
                return dem.altitudes(pairs, interpolated=interpolated), dem.nodata

        values, nodata = await asyncio.to_thread(_query)

        valid = [float(v) for v in values if v != nodata]
        altitude_range = [min(valid), max(valid)] if valid else [0.0, 0.0]

        return MultiAltitudeResult(
            altitudes=[float(v) for v in values],
            nodata=float(nodata),
            nodata_count=len(values) - len(valid),
            altitude_range=altitude_range,
        )

    # ------------------------------------------------------------------
    # Raster processing (async)
    # ------------------------------------------------------------------

    async def merge_rasters(
        self,
        sources: Sequence[str],
        destination: str,
        nodata: int = DEFAULT_NODATA,
        median_policy: str | None = None,
    ) -> MergeResult:
        """Median-composite rasters into destination."""
        event = threading.Event()
        with self._merge_lock:
            self._merge_events.add(event)
        try:
            return await asyncio.to_thread(
                merge,
                list(sources),
                destination,
                nodata,
                median_policy or self.median_policy,
                self.merge_workers,
                cancel_event=event,
                driver=self.driver,
            )
        finally:
            with self._merge_lock:
                self._merge_events.discard(event)

    async def clip_raster(
        self,
        source: str,
        destination: str,
        top_left_x: float,
        top_left_y: float,
        bottom_right_x: float,
        bottom_right_y: float,
    ) -> ClipResult:
        """Clip source to a box."""
        return await asyncio.to_thread(
            clip,
            source,
            destination,
            top_left_x,
            top_left_y,
            bottom_right_x,
            bottom_right_y,
            self.driver,
        )

    async def resample_raster(
        self,
        source: str,
        destination: str,
        width: int,
        height: int,
    ) -> ResampleResult:
        """Resample source to width x height."""
        return await asyncio.to_thread(resample, source, destination, width, height, self.driver)

    async def reproject_raster(
        self,
        source: str,
        destination: str,
        nodata: float = DEFAULT_NODATA,
        dst_crs: str = WGS84,
    ) -> ReprojectResult:
        """Reproject source into dst_crs."""
        return await asyncio.to_thread(
            reproject, source, destination, nodata, dst_crs, self.driver
        )

    # ------------------------------------------------------------------
    # Catalog & geometry
    # ------------------------------------------------------------------

    async def find_coverage(
        self,
        sources: Sequence[str],
        top_left_x: float,
        top_left_y: float,
        bottom_right_x: float,
        bottom_right_y: float,
    ) -> CoverageResult:
        """Rasters of a catalog intersecting a box."""
        matches = await asyncio.to_thread(
            coverage, list(sources), top_left_x, top_left_y, bottom_right_x, bottom_right_y
        )
        return CoverageResult(matches=[str(m) for m in matches], scanned=len(sources))

    def densify_path(self, points: list[list[float]], interval_arcsec: float) -> PathResult:
        """Evenly spaced points along a path (no I/O)."""
        coords = coordinates_along_polygon(points, interval_arcsec)
        return PathResult(
            points=[[c.latitude, c.longitude] for c in coords],
            segments=len(points) - 1,
        )

"""
Tests for GDEMManager.

Covers configuration (constructor and environment), async altitude queries,
async raster processing against synthetic GeoTIFFs, coverage, and path
densification.
"""

import os
from unittest.mock import patch

import numpy as np
import pytest

from gdem.constants import (
    DEFAULT_DRIVER,
    DEFAULT_MEDIAN_POLICY,
    DEFAULT_MERGE_WORKERS,
    MedianPolicy,
)
from gdem.core.dem_manager import (
    AltitudeResult,
    CoverageResult,
    GDEMManager,
    MultiAltitudeResult,
    PathResult,
)


# ===================================================================
# Configuration
# ===================================================================


class TestInit:
    def test_defaults(self):
        manager = GDEMManager()
        assert manager.nodata_fallback is None
        assert manager.median_policy == DEFAULT_MEDIAN_POLICY
        assert manager.merge_workers == DEFAULT_MERGE_WORKERS
        assert manager.driver == DEFAULT_DRIVER
        assert manager.cancel() == 0

    def test_invalid_policy(self):
        with pytest.raises(ValueError, match="Invalid median policy"):
            GDEMManager(median_policy="mode")

    def test_invalid_workers(self):
        with pytest.raises(ValueError):
            GDEMManager(merge_workers=0)

    def test_describe(self):
        manager = GDEMManager(nodata_fallback=-1.0, median_policy=MedianPolicy.FLOOR)
        assert manager.describe() == {
            "nodata_fallback": -1.0,
            "median_policy": MedianPolicy.FLOOR,
            "merge_workers": DEFAULT_MERGE_WORKERS,
            "driver": DEFAULT_DRIVER,
        }


class TestFromEnv:
    def test_empty_environment(self):
        with patch.dict(os.environ, {}, clear=True):
            manager = GDEMManager.from_env()
        assert manager.nodata_fallback is None
        assert manager.median_policy == DEFAULT_MEDIAN_POLICY

    def test_all_variables(self):
        env = {
            "GDEM_NODATA_FALLBACK": "-500",
            "GDEM_MEDIAN_POLICY": "median-floor",
            "GDEM_MERGE_WORKERS": "2",
            "GDEM_RASTER_DRIVER": "HFA",
        }
        with patch.dict(os.environ, env, clear=True):
            manager = GDEMManager.from_env()
        assert manager.nodata_fallback == -500.0
        assert manager.median_policy == MedianPolicy.FLOOR
        assert manager.merge_workers == 2
        assert manager.driver == "HFA"

    def test_bad_policy_rejected(self):
        with patch.dict(os.environ, {"GDEM_MEDIAN_POLICY": "bogus"}, clear=True):
            with pytest.raises(ValueError):
                GDEMManager.from_env()


# ===================================================================
# Altitude queries (async)
# ===================================================================


class TestGetAltitude:
    @pytest.mark.asyncio
    async def test_nearest(self, mock_manager, grid_3x3):
        result = await mock_manager.get_altitude(str(grid_3x3), 49.0, 11.0)
        assert isinstance(result, AltitudeResult)
        assert result.altitude == 4.0
        assert result.nodata == -9999.0
        assert result.is_nodata is False

    @pytest.mark.asyncio
    async def test_interpolated(self, mock_manager, corner_grid):
        result = await mock_manager.get_altitude(str(corner_grid), 49.5, 10.5, interpolated=True)
        assert result.altitude == pytest.approx(25.0)

    @pytest.mark.asyncio
    async def test_outside_is_nodata(self, mock_manager, grid_3x3):
        result = await mock_manager.get_altitude(str(grid_3x3), 0.0, 0.0)
        assert result.is_nodata is True
        assert result.altitude == -9999.0

    @pytest.mark.asyncio
    async def test_fallback_applied(self, make_geotiff):
        path = make_geotiff("z.tif", np.ones((2, 2), dtype=np.int16), nodata=0)
        manager = GDEMManager(nodata_fallback=-77)
        result = await manager.get_altitude(str(path), 0.0, 0.0)
        assert result.nodata == -77.0
        assert result.is_nodata is True

    @pytest.mark.asyncio
    async def test_missing_file(self, mock_manager, tmp_path):
        from gdem.errors import RasterFileNotFoundError

        with pytest.raises(RasterFileNotFoundError):
            await mock_manager.get_altitude(str(tmp_path / "x.tif"), 0.0, 0.0)


class TestGetAltitudes:
    @pytest.mark.asyncio
    async def test_multiple_points(self, mock_manager, grid_3x3):
        result = await mock_manager.get_altitudes(
            str(grid_3x3), [[49.0, 11.0], [48.0, 12.0], [0.0, 0.0]]
        )
        assert isinstance(result, MultiAltitudeResult)
        assert result.altitudes == [4.0, 8.0, -9999.0]
        assert result.nodata_count == 1
        assert result.altitude_range == [4.0, 8.0]

    @pytest.mark.asyncio
    async def test_all_nodata_range(self, mock_manager, grid_3x3):
        result = await mock_manager.get_altitudes(str(grid_3x3), [[0.0, 0.0]])
        assert result.altitude_range == [0.0, 0.0]
        assert result.nodata_count == 1


# ===================================================================
# Raster processing (async)
# ===================================================================


class TestMergeRasters:
    @pytest.mark.asyncio
    async def test_uses_manager_policy(self, make_geotiff, tmp_path):
        a = make_geotiff("a.tif", np.full((2, 2), 10, dtype=np.int16), nodata=-9999)
        b = make_geotiff("b.tif", np.full((2, 2), 20, dtype=np.int16), nodata=-9999)
        manager = GDEMManager(median_policy=MedianPolicy.FLOOR)

        result = await manager.merge_rasters([str(a), str(b)], str(tmp_path / "m.tif"))

        assert result.median_policy == MedianPolicy.FLOOR
        assert result.input_count == 2
        assert (tmp_path / "m.tif").exists()

    @pytest.mark.asyncio
    async def test_policy_override(self, mock_manager, make_geotiff, tmp_path):
        import rasterio

        a = make_geotiff("a.tif", np.full((2, 2), 10, dtype=np.int16), nodata=-9999)
        b = make_geotiff("b.tif", np.full((2, 2), 20, dtype=np.int16), nodata=-9999)
        out = tmp_path / "m.tif"

        await mock_manager.merge_rasters([a, b], out, median_policy=MedianPolicy.AVERAGE)

        with rasterio.open(out) as src:
            assert src.read(1)[0, 0] == 15

    @pytest.mark.asyncio
    async def test_cancel_signals_running_merge(self, mock_manager, grid_3x3, tmp_path):
        from gdem.errors import OperationCancelledError

        seen = {}

        def cancelled_merge(*args, cancel_event, driver):
            seen["signalled"] = mock_manager.cancel()
            seen["is_set"] = cancel_event.is_set()
            raise OperationCancelledError("merge cancelled")

        with patch("gdem.core.dem_manager.merge", side_effect=cancelled_merge):
            with pytest.raises(OperationCancelledError):
                await mock_manager.merge_rasters([grid_3x3], tmp_path / "m.tif")

        assert seen == {"signalled": 1, "is_set": True}
        assert mock_manager.cancel() == 0

    @pytest.mark.asyncio
    async def test_merge_after_cancel_succeeds(self, mock_manager, grid_3x3, tmp_path):
        from gdem.errors import OperationCancelledError

        def cancelled_merge(*args, **kwargs):
            mock_manager.cancel()
            raise OperationCancelledError("merge cancelled")

        with patch("gdem.core.dem_manager.merge", side_effect=cancelled_merge):
            with pytest.raises(OperationCancelledError):
                await mock_manager.merge_rasters([grid_3x3], tmp_path / "first.tif")

        out = tmp_path / "second.tif"
        result = await mock_manager.merge_rasters([grid_3x3], out)
        assert out.exists()
        assert result.input_count == 1

    def test_cancel_without_merges(self, mock_manager):
        assert mock_manager.cancel() == 0


class TestClipRaster:
    @pytest.mark.asyncio
    async def test_clip(self, mock_manager, grid_3x3, tmp_path):
        result = await mock_manager.clip_raster(
            str(grid_3x3), str(tmp_path / "c.tif"), 11.0, 49.0, 13.0, 47.0
        )
        assert (result.rows, result.columns) == (2, 2)
        assert (result.row_offset, result.col_offset) == (1, 1)


class TestResampleRaster:
    @pytest.mark.asyncio
    async def test_resample(self, mock_manager, grid_3x3, tmp_path):
        result = await mock_manager.resample_raster(str(grid_3x3), str(tmp_path / "r.tif"), 6, 6)
        assert (result.rows, result.columns) == (6, 6)
        assert result.transform.pixel_width == 0.5


class TestReprojectRaster:
    @pytest.mark.asyncio
    async def test_reproject(self, mock_manager, grid_3x3, tmp_path):
        result = await mock_manager.reproject_raster(
            str(grid_3x3), str(tmp_path / "p.tif"), nodata=-1
        )
        assert result.crs == "EPSG:4326"
        assert result.nodata == -1.0


# ===================================================================
# Catalog & geometry
# ===================================================================


class TestFindCoverage:
    @pytest.mark.asyncio
    async def test_coverage(self, mock_manager, grid_3x3, tmp_path):
        missing = str(tmp_path / "missing.tif")
        result = await mock_manager.find_coverage(
            [str(grid_3x3), missing], 9.0, 51.0, 11.0, 49.0
        )
        assert isinstance(result, CoverageResult)
        assert result.matches == [str(grid_3x3)]
        assert result.scanned == 2


class TestDensifyPath:
    def test_two_points(self, mock_manager):
        result = mock_manager.densify_path([[0.0, 0.0], [0.0, 1.0 / 3600.0]], 1.0)
        assert isinstance(result, PathResult)
        assert result.segments == 1
        assert len(result.points) == 2
        assert result.points[0] == [0.0, 0.0]

    def test_invalid(self, mock_manager):
        with pytest.raises(ValueError):
            mock_manager.densify_path([[0.0, 0.0]], 1.0)

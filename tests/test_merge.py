"""Tests for gdem.core.merge: median selection, output grid, compositing."""

import threading

import numpy as np
import pytest

from gdem.constants import MedianPolicy
from gdem.core.merge import median, median_stack, merge, merged_transform


def _read(path):
    import rasterio

    with rasterio.open(path) as src:
        return src.read(1), src.transform, src.nodata, src.dtypes[0]


# ---------------------------------------------------------------------------
# median
# ---------------------------------------------------------------------------


class TestMedian:
    def test_odd_count(self):
        assert median([3, 1, 2]) == 2

    def test_even_count_average(self):
        assert median([4, 1, 3, 2], MedianPolicy.AVERAGE) == 2.5

    def test_even_count_floor(self):
        assert median([4, 1, 3, 2], MedianPolicy.FLOOR) == 2

    def test_single_value(self):
        assert median([7.0]) == 7.0

    def test_empty(self):
        with pytest.raises(ValueError):
            median([])

    def test_unknown_policy(self):
        with pytest.raises(ValueError, match="Invalid median policy"):
            median([1, 2], "median-upper")


class TestMedianStack:
    def test_ignores_nan_gaps(self):
        stack = np.array([[10.0, np.nan, 5.0], [20.0, np.nan, np.nan]])
        result, covered = median_stack(stack)
        np.testing.assert_array_equal(covered, [True, False, True])
        assert result[0] == 15.0
        assert np.isnan(result[1])
        assert result[2] == 5.0

    def test_floor_policy(self):
        stack = np.array([[10.0], [20.0]])
        result, _ = median_stack(stack, MedianPolicy.FLOOR)
        assert result[0] == 10.0

    def test_three_inputs(self):
        stack = np.array([[30.0], [10.0], [20.0]])
        result, _ = median_stack(stack, MedianPolicy.AVERAGE)
        assert result[0] == 20.0

    def test_agrees_with_scalar_median(self):
        rng = np.random.default_rng(0)
        stack = rng.integers(0, 100, size=(4, 10)).astype(np.float64)
        stack[rng.random((4, 10)) < 0.3] = np.nan
        for policy in (MedianPolicy.AVERAGE, MedianPolicy.FLOOR):
            result, covered = median_stack(stack, policy)
            for j in range(10):
                values = [v for v in stack[:, j] if not np.isnan(v)]
                if values:
                    assert result[j] == median(values, policy)
                else:
                    assert not covered[j]


# ---------------------------------------------------------------------------
# merged_transform
# ---------------------------------------------------------------------------


class TestMergedTransform:
    def _grid(self, x0, y0, rows, columns, rx=1.0, ry=1.0):
        from gdem.core.geometry import GeoTransform, RasterGrid

        return RasterGrid(
            rows=rows,
            columns=columns,
            transform=GeoTransform(x0, rx, 0.0, y0, 0.0, -ry),
            nodata=-9999,
            sample_type="int16",
        )

    def test_union_extent(self):
        transform, rows, columns = merged_transform(
            [self._grid(10.0, 50.0, 2, 2), self._grid(13.0, 49.0, 2, 2)]
        )
        assert transform.to_gdal() == (10.0, 1.0, 0.0, 50.0, 0.0, -1.0)
        assert (rows, columns) == (3, 5)

    def test_coarsest_resolution(self):
        transform, rows, columns = merged_transform(
            [self._grid(0.0, 4.0, 8, 8, 0.5, 0.5), self._grid(0.0, 4.0, 4, 4, 1.0, 1.0)]
        )
        assert transform.pixel_width == 1.0
        assert transform.pixel_height == -1.0
        assert (rows, columns) == (4, 4)

    def test_at_least_one_cell(self):
        _, rows, columns = merged_transform([self._grid(0.0, 1.0, 1, 1, 4.0, 4.0)])
        assert rows >= 1 and columns >= 1

    def test_empty(self):
        from gdem.errors import EmptyInputError

        with pytest.raises(EmptyInputError):
            merged_transform([])


# ---------------------------------------------------------------------------
# merge
# ---------------------------------------------------------------------------


class TestMergeOverlapping:
    @pytest.fixture
    def pair(self, make_geotiff):
        a = make_geotiff("a.tif", np.full((2, 2), 10, dtype=np.int16), nodata=-9999)
        b = make_geotiff("b.tif", np.full((2, 2), 20, dtype=np.int16), nodata=-9999)
        return a, b

    def test_median_average(self, pair, tmp_path):
        out = tmp_path / "avg.tif"
        result = merge(pair, out, median_policy=MedianPolicy.AVERAGE)
        data, _, _, _ = _read(out)
        np.testing.assert_array_equal(data, np.full((2, 2), 15))
        assert result.median_policy == MedianPolicy.AVERAGE

    def test_median_floor(self, pair, tmp_path):
        out = tmp_path / "floor.tif"
        merge(pair, out, median_policy=MedianPolicy.FLOOR)
        data, _, _, _ = _read(out)
        np.testing.assert_array_equal(data, np.full((2, 2), 10))

    def test_average_rounds_half_away(self, make_geotiff, tmp_path):
        a = make_geotiff("a.tif", np.full((1, 1), 10, dtype=np.int16), nodata=-9999)
        b = make_geotiff("b.tif", np.full((1, 1), 11, dtype=np.int16), nodata=-9999)
        out = tmp_path / "half.tif"
        merge([a, b], out)
        data, _, _, _ = _read(out)
        assert data[0, 0] == 11


class TestMergeDisjoint:
    def test_union_footprint_and_values(self, make_geotiff, tmp_path):
        a_data = np.array([[1, 2], [3, 4]], dtype=np.int16)
        b_data = np.array([[5, 6], [7, 8]], dtype=np.int16)
        a = make_geotiff("a.tif", a_data, origin=(10.0, 50.0), nodata=-9999)
        b = make_geotiff("b.tif", b_data, origin=(12.0, 50.0), nodata=-9999)
        out = tmp_path / "union.tif"

        result = merge([a, b], out)
        data, transform, _, _ = _read(out)

        assert (result.rows, result.columns) == (2, 4)
        assert transform.to_gdal() == (10.0, 1.0, 0.0, 50.0, 0.0, -1.0)
        np.testing.assert_array_equal(data, [[1, 2, 5, 6], [3, 4, 7, 8]])
        assert result.covered_cells == 8

    def test_gap_filled_with_first_input_nodata(self, make_geotiff, tmp_path):
        one = np.full((1, 1), 1, dtype=np.int16)
        two = np.full((1, 1), 2, dtype=np.int16)
        a = make_geotiff("a.tif", one, origin=(10.0, 50.0), nodata=-500)
        b = make_geotiff("b.tif", two, origin=(12.0, 50.0), nodata=-9999)
        out = tmp_path / "gap.tif"

        result = merge([a, b], out, nodata=-32768)
        data, _, nodata, _ = _read(out)

        np.testing.assert_array_equal(data, [[1, -500, 2]])
        assert result.fill_value == -500
        assert result.covered_cells == 2
        assert nodata == -32768

    def test_nan_nodata_gap_uses_caller_nodata(self, make_geotiff, tmp_path):
        one = np.full((1, 1), 1.0, dtype=np.float32)
        two = np.full((1, 1), 2.0, dtype=np.float32)
        a = make_geotiff("a.tif", one, origin=(10.0, 50.0), nodata=np.nan)
        b = make_geotiff("b.tif", two, origin=(12.0, 50.0), nodata=np.nan)
        out = tmp_path / "gap.tif"

        result = merge([a, b], out, nodata=-32768)
        data, _, nodata, _ = _read(out)

        np.testing.assert_array_equal(data, [[1, -32768, 2]])
        assert result.fill_value == -32768
        assert nodata == -32768

    def test_out_of_range_nodata_gap_uses_caller_nodata(self, make_geotiff, tmp_path):
        one = np.full((1, 1), 1, dtype=np.int32)
        two = np.full((1, 1), 2, dtype=np.int32)
        a = make_geotiff("a.tif", one, origin=(10.0, 50.0), nodata=100000)
        b = make_geotiff("b.tif", two, origin=(12.0, 50.0), nodata=100000)
        out = tmp_path / "gap.tif"

        result = merge([a, b], out, nodata=-1)
        data, _, _, _ = _read(out)

        np.testing.assert_array_equal(data, [[1, -1, 2]])
        assert result.fill_value == -1

    def test_first_input_without_nodata_uses_caller_nodata(self, make_geotiff, tmp_path):
        a = make_geotiff("a.tif", np.full((1, 1), 1, dtype=np.int16), origin=(10.0, 50.0))
        b = make_geotiff("b.tif", np.full((1, 1), 2, dtype=np.int16), origin=(12.0, 50.0))
        out = tmp_path / "gap.tif"

        merge([a, b], out, nodata=-1000)
        data, _, _, _ = _read(out)
        assert data[0, 1] == -1000


class TestMergeOutput:
    def test_output_is_int16(self, make_geotiff, tmp_path):
        a = make_geotiff("a.tif", np.full((2, 2), 123.6, dtype=np.float32), nodata=-9999.0)
        out = tmp_path / "out.tif"
        merge([a], out)
        data, _, _, dtype = _read(out)
        assert dtype == "int16"
        assert data[0, 0] == 124

    def test_values_clipped_to_int16(self, make_geotiff, tmp_path):
        a = make_geotiff("a.tif", np.full((1, 1), 70000, dtype=np.int32), nodata=-9999)
        out = tmp_path / "out.tif"
        merge([a], out)
        data, _, _, _ = _read(out)
        assert data[0, 0] == 32767

    def test_single_input_passthrough(self, grid_3x3, tmp_path):
        out = tmp_path / "out.tif"
        merge([grid_3x3], out)
        data, _, _, _ = _read(out)
        np.testing.assert_array_equal(data, np.arange(9).reshape(3, 3))

    def test_small_blocks_many_workers(self, make_geotiff, tmp_path):
        data = np.arange(100, dtype=np.int16).reshape(10, 10)
        a = make_geotiff("a.tif", data, nodata=-9999)
        out = tmp_path / "out.tif"
        merge([a], out, workers=3, block_rows=3)
        merged, _, _, _ = _read(out)
        np.testing.assert_array_equal(merged, data)

    def test_borrowed_dataset_left_open(self, grid_3x3, tmp_path):
        import rasterio

        with rasterio.open(grid_3x3) as src:
            merge([src], tmp_path / "out.tif")
            assert not src.closed


class TestMergeErrors:
    def test_empty_input(self, tmp_path):
        from gdem.errors import EmptyInputError

        with pytest.raises(EmptyInputError):
            merge([], tmp_path / "out.tif")

    def test_invalid_policy(self, grid_3x3, tmp_path):
        with pytest.raises(ValueError):
            merge([grid_3x3], tmp_path / "out.tif", median_policy="mean")

    def test_invalid_workers(self, grid_3x3, tmp_path):
        with pytest.raises(ValueError):
            merge([grid_3x3], tmp_path / "out.tif", workers=0)

    def test_missing_input(self, grid_3x3, tmp_path):
        from gdem.errors import RasterFileNotFoundError

        with pytest.raises(RasterFileNotFoundError):
            merge([grid_3x3, tmp_path / "missing.tif"], tmp_path / "out.tif")

    def test_cancelled(self, grid_3x3, tmp_path):
        from gdem.errors import OperationCancelledError

        event = threading.Event()
        event.set()
        out = tmp_path / "out.tif"

        with pytest.raises(OperationCancelledError):
            merge([grid_3x3], out, cancel_event=event)
        assert not out.exists()

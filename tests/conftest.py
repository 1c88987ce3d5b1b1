"""Shared test fixtures for gdem."""

import numpy as np
import pytest
from unittest.mock import MagicMock


@pytest.fixture
def make_geotiff(tmp_path):
    """Factory writing small single-band GeoTIFFs into tmp_path.

    Pixel sizes default to 1 degree so that coordinates map onto exact
    fractional indices.
    """
    import rasterio
    from rasterio.transform import Affine

    def _make(
        name,
        data,
        origin=(10.0, 50.0),
        pixel_size=(1.0, 1.0),
        nodata=None,
        crs="EPSG:4326",
        georeferenced=True,
    ):
        data = np.asarray(data)
        if data.ndim == 2:
            data = data[np.newaxis, ...]
        path = tmp_path / name
        profile = {
            "driver": "GTiff",
            "width": data.shape[2],
            "height": data.shape[1],
            "count": data.shape[0],
            "dtype": str(data.dtype),
        }
        if georeferenced:
            profile["transform"] = Affine(
                pixel_size[0], 0.0, origin[0], 0.0, -pixel_size[1], origin[1]
            )
            profile["crs"] = crs
        if nodata is not None:
            profile["nodata"] = nodata
        with rasterio.open(path, "w", **profile) as dst:
            dst.write(data)
        return path

    return _make


@pytest.fixture
def grid_3x3(make_geotiff):
    """3x3 int16 grid with values 0..8, north-west corner at (lat 50, lon 10)."""
    data = np.arange(9, dtype=np.int16).reshape(3, 3)
    return make_geotiff("grid_3x3.tif", data, nodata=-9999)


@pytest.fixture
def corner_grid(make_geotiff):
    """2x2 float32 grid with a single non-zero sample at (1, 1)."""
    data = np.array([[0.0, 0.0], [0.0, 100.0]], dtype=np.float32)
    return make_geotiff("corner.tif", data, nodata=-9999.0)


@pytest.fixture
def mock_manager():
    """GDEMManager with default configuration."""
    from gdem.core.dem_manager import GDEMManager

    return GDEMManager()


@pytest.fixture
def mock_mcp():
    """Mock ChukMCPServer."""
    mcp = MagicMock()
    mcp.tool = MagicMock(return_value=lambda fn: fn)
    return mcp

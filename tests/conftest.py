"""Shared test fixtures for chuk-mcp-dtm."""

import numpy as np
import pytest
from unittest.mock import MagicMock

# Tile 32_500_5760: 1 km square at 10 m resolution, north-up
TILE_ZONE = 32
TILE_KEY = "32_500_5760"
TILE_LEFT = 500000.0
TILE_TOP = 5761000.0
TILE_PIXELS = 100
TILE_RES = 10.0


def write_tile(
    path,
    data,
    dtype="float32",
    nodata=None,
    epsg=25832,
    left=TILE_LEFT,
    top=TILE_TOP,
    res=TILE_RES,
):
    """Write a single-band GeoTIFF and return its path as a string."""
    import rasterio
    from rasterio.crs import CRS
    from rasterio.transform import from_origin

    arr = np.asarray(data).astype(dtype)
    profile = {
        "driver": "GTiff",
        "height": arr.shape[0],
        "width": arr.shape[1],
        "count": 1,
        "dtype": dtype,
        "crs": CRS.from_epsg(epsg),
        "transform": from_origin(left, top, res, res),
    }
    if nodata is not None:
        profile["nodata"] = nodata
    with rasterio.open(path, "w", **profile) as dst:
        dst.write(arr, 1)
    return str(path)


@pytest.fixture
def make_tile(tmp_path):
    """Factory writing a 100x100 tile filled with a constant (or a given array)."""
    counter = {"n": 0}

    def _make(value=100.0, data=None, dtype="float32", nodata=None, **kwargs):
        counter["n"] += 1
        if data is None:
            data = np.full((TILE_PIXELS, TILE_PIXELS), value)
        return write_tile(
            tmp_path / f"tile_{counter['n']}.tif", data, dtype=dtype, nodata=nodata, **kwargs
        )

    return _make


@pytest.fixture
def ramp_tile(make_tile):
    """Tile whose elevation rises 1 m per column eastwards (100.0 .. 199.0)."""
    row = np.arange(TILE_PIXELS, dtype=np.float32) + 100.0
    return make_tile(data=np.tile(row, (TILE_PIXELS, 1)))


@pytest.fixture
def record_factory():
    """Factory for TileRecord instances keyed on the test tile."""
    from chuk_mcp_dtm.core.tile_index import TileRecord

    def _record(path, source="DE-NW", actuality="2023-05-01", index=TILE_KEY):
        return TileRecord(index=index, path=path, source=source, actuality=actuality)

    return _record


@pytest.fixture
def tile_index(ramp_tile, record_factory):
    """Index with the ramp tile as sole primary entry."""
    from chuk_mcp_dtm.core.tile_index import build_tile_index

    return build_tile_index([[record_factory(ramp_tile)]])


@pytest.fixture
def manager(tile_index):
    """DTMManager over the single-tile index."""
    from chuk_mcp_dtm.core.dtm_manager import DTMManager

    return DTMManager(tile_index)


@pytest.fixture
def mock_manager():
    """DTMManager with an empty index."""
    from chuk_mcp_dtm.core.dtm_manager import DTMManager

    return DTMManager()


@pytest.fixture
def mock_mcp():
    """Mock ChukMCPServer."""
    mcp = MagicMock()
    mcp.tool = MagicMock(return_value=lambda fn: fn)
    return mcp


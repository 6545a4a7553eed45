"""
Raster I/O operations for DTM tiles.

All functions are synchronous — callers wrap them in asyncio.to_thread().
Rasters are opened and closed per call; no handle is kept between requests.
Both the raster's declared nodata value and the domain sentinel are turned
into NoDataError (or a missing count) right here, so nothing downstream ever
sees a raw sentinel value.
"""

import logging
import math
from pathlib import Path
from typing import Any

import numpy as np
from numpy.typing import NDArray

from ..constants import NO_DATA_THRESHOLD, SUPPORTED_DTYPES, WGS84_CRS, ErrorMessages
from .errors import (
    NoDataError,
    PixelRangeError,
    RasterGeometryError,
    RasterReadError,
)

logger = logging.getLogger(__name__)

# Type aliases
FloatArray = NDArray[np.float64]


# ---------------------------------------------------------------------------
# Opening
# ---------------------------------------------------------------------------


def _open(path: str | Path) -> Any:
    import rasterio
    from rasterio.errors import RasterioIOError

    if not Path(path).exists():
        raise RasterReadError(ErrorMessages.RASTER_MISSING.format(path))
    try:
        return rasterio.open(path)
    except RasterioIOError as e:
        raise RasterReadError(ErrorMessages.RASTER_OPEN_FAILED.format(path, e)) from e


def is_missing(value: float, nodata: float | None) -> bool:
    """True if a pixel value is the sentinel, the raster nodata, or NaN."""
    if math.isnan(value) or value < NO_DATA_THRESHOLD:
        return True
    if nodata is None:
        return False
    if math.isnan(nodata):
        return False
    return value == nodata


def _check_geometry(transform: Any, path: str | Path) -> None:
    # GDAL order: (c, a, b, f, d, e); b and d are the rotation terms
    if transform.b != 0 or transform.d != 0:
        raise RasterGeometryError(
            ErrorMessages.RASTER_ROTATED.format(path, tuple(transform.to_gdal()))
        )
    if transform.a == 0 or transform.e == 0:
        raise RasterGeometryError(ErrorMessages.RASTER_INVALID_TRANSFORM.format(path))


# ---------------------------------------------------------------------------
# Point sampling
# ---------------------------------------------------------------------------


def pixel_position(x: float, y: float, transform: Any) -> tuple[int, int]:
    """Invert an axis-aligned geotransform, flooring to (col, row)."""
    col = math.floor((x - transform.c) / transform.a)
    row = math.floor((y - transform.f) / transform.e)
    return col, row


def sample_at(x: float, y: float, path: str | Path) -> float:
    """
    Read the band 1 pixel containing a projected coordinate.

    Args:
        x: Easting in the raster's CRS
        y: Northing in the raster's CRS
        path: Raster file path

    Returns:
        Elevation widened to float

    Raises:
        RasterReadError: file missing or unreadable, or unsupported data type
        RasterGeometryError: rotated, skewed, or zero-size pixels
        PixelRangeError: coordinate outside the raster
        NoDataError: pixel holds the nodata value or the sentinel
    """
    from rasterio.windows import Window

    with _open(path) as src:
        transform = src.transform
        _check_geometry(transform, path)

        col, row = pixel_position(x, y, transform)
        if not (0 <= col < src.width and 0 <= row < src.height):
            raise PixelRangeError(
                ErrorMessages.PIXEL_OUT_OF_RANGE.format(
                    col, row, x, y, path, src.width, src.height
                )
            )

        dtype = src.dtypes[0]
        if dtype not in SUPPORTED_DTYPES:
            raise RasterReadError(ErrorMessages.UNSUPPORTED_DTYPE.format(dtype, path))

        data = src.read(1, window=Window(col, row, 1, 1))
        nodata = src.nodata

    value = float(data[0, 0])
    if is_missing(value, nodata):
        raise NoDataError(ErrorMessages.NO_DATA.format(x, y, path))
    return value


# ---------------------------------------------------------------------------
# Whole-tile reads
# ---------------------------------------------------------------------------


def read_tile_values(path: str | Path) -> tuple[FloatArray, int, int]:
    """
    Read every band 1 pixel of a tile for histogramming.

    Returns:
        Tuple of (valid values, missing count, total pixel count)
    """
    with _open(path) as src:
        dtype = src.dtypes[0]
        if dtype not in SUPPORTED_DTYPES:
            raise RasterReadError(ErrorMessages.UNSUPPORTED_DTYPE.format(dtype, path))
        data = src.read(1).astype(np.float64).ravel()
        nodata = src.nodata

    missing = np.isnan(data) | (data < NO_DATA_THRESHOLD)
    if nodata is not None and not math.isnan(nodata):
        missing |= data == nodata

    values = data[~missing]
    missing_count = int(np.count_nonzero(missing))
    logger.debug(f"Read {data.size} pixels from {path} ({missing_count} missing)")
    return values, missing_count, int(data.size)


def read_tile_metadata(path: str | Path) -> dict:
    """Describe a tile: size, resolution, dtype, nodata, CRS and WGS84 bounds."""
    from .coordinates import transform_points

    with _open(path) as src:
        transform = src.transform
        bounds = src.bounds
        crs = src.crs
        meta = {
            "width": int(src.width),
            "height": int(src.height),
            "resolution_m": [abs(float(transform.a)), abs(float(transform.e))],
            "dtype": src.dtypes[0],
            "nodata": None if src.nodata is None else float(src.nodata),
        }

    if crs is None:
        raise RasterReadError(ErrorMessages.RASTER_OPEN_FAILED.format(path, "no CRS"))

    xs = [bounds.left, bounds.right, bounds.right, bounds.left]
    ys = [bounds.top, bounds.top, bounds.bottom, bounds.bottom]
    lons, lats = transform_points(xs, ys, crs, WGS84_CRS)

    meta["crs"] = crs.to_string()
    meta["bounds"] = [float(bounds.left), float(bounds.bottom), float(bounds.right), float(bounds.top)]
    meta["bbox_wgs84"] = [min(lons), min(lats), max(lons), max(lats)]
    return meta


def read_tile_bytes(path: str | Path) -> bytes:
    """Read a tile file unchanged, as stored in the repository."""
    path = Path(path)
    if not path.exists():
        raise RasterReadError(ErrorMessages.RASTER_MISSING.format(path))
    try:
        data = path.read_bytes()
    except OSError as e:
        raise RasterReadError(ErrorMessages.RASTER_READ_FAILED.format(path, e)) from e
    logger.debug(f"Read {len(data)} bytes from {path}")
    return data

"""
Geographic to ETRS89 / UTM conversion and zone selection.

The covered territory straddles UTM zone boundaries, so every geographic
lookup carries a neighbour zone as fallback candidate.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any

from ..constants import WGS84_CRS, ZONE_BANDS, ErrorMessages, epsg_for_zone
from .errors import CoordinateError, TileNotFoundError
from .tile_index import TileIndex, TileRecord, spatial_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ZoneCandidates:
    """Primary and neighbour UTM zone for a longitude."""

    zone: int
    epsg: int
    neighbor_zone: int
    neighbor_epsg: int


@dataclass(frozen=True)
class ResolvedTile:
    """A tile together with the projected coordinate that selected it."""

    tile: TileRecord
    zone: int
    easting: float
    northing: float


def resolve_zone(lon: float) -> ZoneCandidates:
    """Select the primary and neighbour UTM zone for a longitude.

    Within each 6 degree band the eastern neighbour is preferred from the
    band's midpoint on, the western one below it.
    """
    for lon_min, lon_max, zone, threshold, east, west in ZONE_BANDS:
        if lon_min <= lon < lon_max:
            neighbor = east if lon >= threshold else west
            return ZoneCandidates(
                zone=zone,
                epsg=epsg_for_zone(zone),
                neighbor_zone=neighbor,
                neighbor_epsg=epsg_for_zone(neighbor),
            )
    raise CoordinateError(ErrorMessages.INVALID_LONGITUDE.format(lon))


def _transformer(src_crs: Any, dst_crs: Any) -> Any:
    from pyproj import Transformer

    return Transformer.from_crs(src_crs, dst_crs, always_xy=True)


def transform_lonlat_to_utm(lon: float, lat: float, epsg: int) -> tuple[float, float]:
    """Project a WGS84 coordinate into an ETRS89 / UTM zone."""
    x, y = _transformer(WGS84_CRS, f"EPSG:{epsg}").transform(lon, lat)
    if not (math.isfinite(x) and math.isfinite(y)):
        raise CoordinateError(ErrorMessages.TRANSFORM_FAILED.format(f"EPSG:{epsg}", lon, lat))
    return float(x), float(y)


def transform_utm_to_lonlat(easting: float, northing: float, zone: int) -> tuple[float, float]:
    """Convert an ETRS89 / UTM coordinate back to WGS84 lon/lat."""
    lon, lat = _transformer(f"EPSG:{epsg_for_zone(zone)}", WGS84_CRS).transform(
        easting, northing
    )
    if not (math.isfinite(lon) and math.isfinite(lat)):
        raise CoordinateError(
            ErrorMessages.TRANSFORM_FAILED.format(WGS84_CRS, easting, northing)
        )
    return float(lon), float(lat)


def transform_points(
    xs: list[float], ys: list[float], src_crs: Any, dst_crs: Any
) -> tuple[list[float], list[float]]:
    """Transform coordinate arrays between two CRS (raster corners, profile points)."""
    out_x, out_y = _transformer(src_crs, dst_crs).transform(xs, ys)
    out_x, out_y = list(out_x), list(out_y)
    if not all(math.isfinite(v) for v in out_x + out_y):
        raise CoordinateError(ErrorMessages.TRANSFORM_FAILED.format(dst_crs, xs, ys))
    return [float(v) for v in out_x], [float(v) for v in out_y]


def resolve_tile(index: TileIndex, lon: float, lat: float) -> ResolvedTile:
    """Find the primary tile for a geographic coordinate.

    The primary zone is tried first, then the neighbour zone.
    """
    candidates = resolve_zone(lon)

    x, y = transform_lonlat_to_utm(lon, lat, candidates.epsg)
    key = spatial_key(candidates.zone, x, y)
    if key in index:
        return ResolvedTile(index[key], candidates.zone, x, y)

    logger.debug(
        f"Tile {key} not found, trying neighbour zone {candidates.neighbor_zone} "
        f"for ({lon}, {lat})"
    )
    nx, ny = transform_lonlat_to_utm(lon, lat, candidates.neighbor_epsg)
    neighbor_key = spatial_key(candidates.neighbor_zone, nx, ny)
    if neighbor_key in index:
        return ResolvedTile(index[neighbor_key], candidates.neighbor_zone, nx, ny)

    raise TileNotFoundError(
        ErrorMessages.TILE_NOT_FOUND_BOTH_ZONES.format(
            lon, lat, candidates.zone, x, y, candidates.neighbor_zone, nx, ny
        )
    )


def resolve_tile_utm(
    index: TileIndex, zone: int, easting: float, northing: float, variant: int = 1
) -> TileRecord:
    """Direct lookup for already-projected input."""
    return index.tile_for(zone, easting, northing, variant)

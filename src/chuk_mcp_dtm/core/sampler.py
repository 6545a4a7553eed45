"""
Single-point elevation reads cascading across overlap variants.

At administrative borders the same grid cell may be covered by up to three
tiles. When the primary tile has no data at a coordinate, the secondary
and then the tertiary tile are read at the same projected position.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from ..constants import TILE_VARIANTS
from . import raster_io
from .coordinates import resolve_tile
from .errors import DTMError, NoDataError
from .tile_index import TileIndex, TileRecord, spatial_key, variant_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ElevationSample:
    """A sampled elevation and the tile it came from."""

    elevation: float
    tile: TileRecord
    zone: int
    easting: float
    northing: float


@dataclass
class BulkSampleResult:
    """Outcome of a bulk lookup; failed points are skipped."""

    samples: list[tuple[int, ElevationSample]]
    requested: int

    @property
    def returned(self) -> int:
        return len(self.samples)


class ElevationSampler:
    """Samples elevations through an injected TileIndex."""

    def __init__(self, index: TileIndex) -> None:
        self.index = index

    def sample_utm(self, zone: int, easting: float, northing: float) -> ElevationSample:
        """Sample at a projected coordinate, falling back through variants 2 and 3."""
        primary = spatial_key(zone, easting, northing)
        tile = self.index.lookup(primary)

        for variant in TILE_VARIANTS:
            try:
                value = raster_io.sample_at(easting, northing, tile.path)
            except NoDataError:
                logger.debug(f"No data in {tile.path} at ({easting}, {northing}), variant {variant}")
                if variant == TILE_VARIANTS[-1]:
                    raise
                next_tile = self.index.get(variant_key(primary, variant + 1))
                if next_tile is None:
                    raise
                tile = next_tile
                continue
            return ElevationSample(
                elevation=value,
                tile=tile,
                zone=zone,
                easting=easting,
                northing=northing,
            )

    def sample_point(self, lon: float, lat: float) -> ElevationSample:
        """Sample at a geographic coordinate."""
        resolved = resolve_tile(self.index, lon, lat)
        return self.sample_utm(resolved.zone, resolved.easting, resolved.northing)

    def sample_points(self, points: Iterable[tuple[float, float]]) -> BulkSampleResult:
        """Sample many lon/lat points, logging and skipping the ones that fail.

        Callers compare ``requested`` against ``returned`` to detect gaps.
        """
        samples: list[tuple[int, ElevationSample]] = []
        requested = 0
        for i, (lon, lat) in enumerate(points):
            requested += 1
            try:
                samples.append((i, self.sample_point(lon, lat)))
            except DTMError as e:
                logger.warning(f"Point {i} ({lon}, {lat}) skipped: {e}")

        if len(samples) < requested:
            logger.info(f"Bulk lookup: {len(samples)} of {requested} points sampled")
        return BulkSampleResult(samples=samples, requested=requested)

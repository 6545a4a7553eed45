"""
DTM Manager — central orchestrator for tile-based elevation operations.

Owns the injected TileIndex and the samplers built on it, validates request
coverage, and keeps per-operation request counters.
All public async methods wrap synchronous rasterio I/O via asyncio.to_thread().
"""

import asyncio
import logging
import math
import uuid
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from ..constants import (
    ALL_SOURCE_CODES,
    DEFAULT_BINS,
    DEFAULT_HISTOGRAM_TYPE,
    ELEVATION_SOURCES,
    LAT_MAX,
    LAT_MIN,
    LON_MAX,
    LON_MIN,
    RAW_TILE_FORMAT,
    RAW_TILE_MIME_TYPE,
    RAW_TILE_REF_PREFIX,
    SUPPORTED_REQUEST_ZONES,
    ErrorMessages,
    get_attribution,
)
from .errors import CoordinateError, ValidationError
from .histogram import (
    HistogramEntry,
    HistogramStatistic,
    compute_histogram,
    normalize_histogram_type,
    parse_bound,
    validate_bin_count,
)
from .profile import ProfileEndpoint, ProfilePoint, ProfileSampler
from .sampler import ElevationSample, ElevationSampler
from .tile_index import TileIndex, TileRecord

logger = logging.getLogger(__name__)


@dataclass
class PointResult:
    """Result of a single-point elevation query."""

    elevation_m: float
    tile_index: str
    zone: int
    easting: float
    northing: float
    origin: str
    actuality: str
    attribution: str


@dataclass
class MultiPointResult:
    """Result of a bulk elevation query. Failed points are absent."""

    points: list[tuple[int, float, float, PointResult]]
    requested: int
    elevation_range: list[float]

    @property
    def returned(self) -> int:
        return len(self.points)


@dataclass
class TileHistogram:
    """Histogram of one tile variant."""

    tile_index: str
    path: str
    origin: str
    actuality: str
    attribution: str
    statistic: HistogramStatistic
    entries: list[HistogramEntry]


@dataclass
class HistogramRunResult:
    """Histograms for every tile variant covering a location."""

    zone: int
    easting: float
    northing: float
    histogram_type: str
    bins: int
    histograms: list[TileHistogram]


@dataclass
class ProfileResult:
    """Result of an elevation profile."""

    points: list[ProfilePoint]
    sources: list[dict]
    zone: int
    total_distance_m: float
    planned_points: int
    elevation_range: list[float]
    elevation_gain_m: float
    elevation_loss_m: float


@dataclass
class TileInfo:
    """One tile variant with raster metadata."""

    variant: int
    tile_index: str
    path: str
    origin: str
    actuality: str
    attribution: str
    metadata: dict


@dataclass
class TileInfoResult:
    """Tile variants covering a location."""

    zone: int
    easting: float
    northing: float
    tiles: list[TileInfo]


@dataclass
class RawTile:
    """One tile variant delivered unchanged through the artifact store."""

    variant: int
    tile_index: str
    origin: str
    actuality: str
    attribution: str
    data_format: str
    size_bytes: int
    artifact_ref: str


@dataclass
class RawTileResult:
    """Raw tiles covering a location."""

    zone: int
    easting: float
    northing: float
    tiles: list[RawTile]

    @property
    def total_bytes(self) -> int:
        return sum(t.size_bytes for t in self.tiles)


@dataclass
class RequestStatistics:
    """Per-operation request counters.

    Only incremented from the event loop thread, so plain ints suffice.
    """

    counts: Counter = field(default_factory=Counter)

    def increment(self, operation: str) -> None:
        self.counts[operation] += 1

    def snapshot(self) -> dict[str, int]:
        return dict(self.counts)

    @property
    def total(self) -> int:
        return sum(self.counts.values())


class DTMManager:
    """Central manager for DTM tile operations."""

    def __init__(self, index: TileIndex | None = None) -> None:
        self.stats = RequestStatistics()
        self.attach_index(index if index is not None else TileIndex({}))

    def attach_index(self, index: TileIndex) -> None:
        """Install the tile index. Called once at startup, before serving."""
        self.index = index
        self.sampler = ElevationSampler(index)
        self.profiler = ProfileSampler(self.sampler)

    # ------------------------------------------------------------------
    # Discovery (sync, no I/O)
    # ------------------------------------------------------------------

    def list_sources(self) -> list[dict]:
        """List all elevation sources with their attribution."""
        return [dict(src) for src in ELEVATION_SOURCES.values()]

    def describe_source(self, code: str) -> dict:
        """Get the attribution record of one source, plus indexed tile count."""
        if code not in ELEVATION_SOURCES:
            raise ValueError(ErrorMessages.UNKNOWN_SOURCE.format(code, ", ".join(ALL_SOURCE_CODES)))
        data = dict(ELEVATION_SOURCES[code])
        data["tile_count"] = sum(1 for record in self.index.values() if record.source == code)
        return data

    # ------------------------------------------------------------------
    # Point queries (async)
    # ------------------------------------------------------------------

    async def fetch_point(self, lon: float, lat: float) -> PointResult:
        """Get the elevation at a geographic point."""
        self.stats.increment("point")
        self._validate_lonlat(lon, lat)
        sample = await asyncio.to_thread(self.sampler.sample_point, lon, lat)
        return self._point_result(sample)

    async def fetch_utm_point(self, zone: int, easting: float, northing: float) -> PointResult:
        """Get the elevation at a UTM coordinate."""
        self.stats.increment("utm_point")
        self._validate_zone(zone)
        sample = await asyncio.to_thread(self.sampler.sample_utm, zone, easting, northing)
        return self._point_result(sample)

    async def fetch_points(self, points: list[list[float]]) -> MultiPointResult:
        """Get elevations for many lon/lat points; failures are skipped."""
        self.stats.increment("points")
        if not points:
            raise ValueError(ErrorMessages.NO_POINTS)

        valid: list[tuple[int, float, float]] = []
        for i, point in enumerate(points):
            try:
                if len(point) != 2:
                    raise ValueError(ErrorMessages.INVALID_POINT_PAIR.format(point))
                lon, lat = float(point[0]), float(point[1])
            except (TypeError, ValueError) as e:
                logger.warning(f"Point {i} skipped: {e}")
                continue
            try:
                self._validate_lonlat(lon, lat)
            except CoordinateError as e:
                logger.warning(f"Point {i} skipped: {e}")
                continue
            valid.append((i, lon, lat))

        bulk = await asyncio.to_thread(
            self.sampler.sample_points, [(lon, lat) for _, lon, lat in valid]
        )

        results = []
        for j, sample in bulk.samples:
            i, lon, lat = valid[j]
            results.append((i, lon, lat, self._point_result(sample)))

        elevations = [r.elevation_m for *_, r in results]
        elev_range = [min(elevations), max(elevations)] if elevations else [0.0, 0.0]
        return MultiPointResult(points=results, requested=len(points), elevation_range=elev_range)

    # ------------------------------------------------------------------
    # Analysis (async)
    # ------------------------------------------------------------------

    async def fetch_histogram(
        self,
        zone: int | None = None,
        easting: float | None = None,
        northing: float | None = None,
        lon: float | None = None,
        lat: float | None = None,
        histogram_type: str = DEFAULT_HISTOGRAM_TYPE,
        bins: int = DEFAULT_BINS,
        min_value: str | None = None,
        max_value: str | None = None,
    ) -> HistogramRunResult:
        """Compute a histogram for every tile variant covering a location."""
        from . import raster_io

        self.stats.increment("histogram")
        normalize_histogram_type(histogram_type)
        validate_bin_count(bins)
        user_min = parse_bound(min_value)
        user_max = parse_bound(max_value)

        zone, easting, northing, tiles = await asyncio.to_thread(
            self._locate, zone, easting, northing, lon, lat
        )

        histograms = []
        for tile in tiles:
            values, missing, total = await asyncio.to_thread(raster_io.read_tile_values, tile.path)
            statistic, entries = compute_histogram(
                values, missing, total, histogram_type, bins, user_min, user_max
            )
            histograms.append(
                TileHistogram(
                    tile_index=tile.index,
                    path=tile.path,
                    origin=tile.source,
                    actuality=tile.actuality,
                    attribution=self._attribution(tile.source),
                    statistic=statistic,
                    entries=entries,
                )
            )

        return HistogramRunResult(
            zone=zone,
            easting=easting,
            northing=northing,
            histogram_type=histogram_type,
            bins=bins,
            histograms=histograms,
        )

    async def fetch_profile(
        self,
        point_a: ProfileEndpoint,
        point_b: ProfileEndpoint,
        max_total_points: int,
        min_step_size: float,
    ) -> ProfileResult:
        """Sample an elevation profile between two points."""
        self.stats.increment("profile")
        if point_a.has_utm and point_a.zone is not None:
            self._validate_zone(point_a.zone)
        elif point_a.lon is not None and point_a.lat is not None:
            self._validate_lonlat(point_a.lon, point_a.lat)

        trace = await asyncio.to_thread(
            self.profiler.sample, point_a, point_b, max_total_points, min_step_size
        )

        elevations = [p.elevation_m for p in trace.points]
        if elevations:
            elev_range = [min(elevations), max(elevations)]
            diffs = [b - a for a, b in zip(elevations, elevations[1:])]
            gain = sum(d for d in diffs if d > 0)
            loss = -sum(d for d in diffs if d < 0)
        else:
            elev_range = [0.0, 0.0]
            gain = loss = 0.0

        return ProfileResult(
            points=trace.points,
            sources=trace.sources,
            zone=trace.zone,
            total_distance_m=trace.distance_m,
            planned_points=trace.planned_points,
            elevation_range=elev_range,
            elevation_gain_m=round(gain, 2),
            elevation_loss_m=round(loss, 2),
        )

    async def describe_tiles(
        self,
        zone: int | None = None,
        easting: float | None = None,
        northing: float | None = None,
        lon: float | None = None,
        lat: float | None = None,
    ) -> TileInfoResult:
        """List the tile variants covering a location with raster metadata."""
        from . import raster_io

        self.stats.increment("tile_info")
        zone, easting, northing, tiles = await asyncio.to_thread(
            self._locate, zone, easting, northing, lon, lat
        )

        infos = []
        for variant, tile in enumerate(tiles, start=1):
            metadata = await asyncio.to_thread(raster_io.read_tile_metadata, tile.path)
            infos.append(
                TileInfo(
                    variant=variant,
                    tile_index=tile.index,
                    path=tile.path,
                    origin=tile.source,
                    actuality=tile.actuality,
                    attribution=self._attribution(tile.source),
                    metadata=metadata,
                )
            )
        return TileInfoResult(zone=zone, easting=easting, northing=northing, tiles=infos)

    async def fetch_raw_tiles(
        self,
        zone: int | None = None,
        easting: float | None = None,
        northing: float | None = None,
        lon: float | None = None,
        lat: float | None = None,
    ) -> RawTileResult:
        """Store the unmodified GeoTIFF of every tile variant covering a location.

        Each variant becomes one artifact; the result carries the artifact
        references together with origin, actuality, and attribution.
        """
        from . import raster_io

        self.stats.increment("raw_tile")
        zone, easting, northing, tiles = await asyncio.to_thread(
            self._locate, zone, easting, northing, lon, lat
        )

        raw_tiles = []
        for variant, tile in enumerate(tiles, start=1):
            data = await asyncio.to_thread(raster_io.read_tile_bytes, tile.path)
            attribution = self._attribution(tile.source)
            artifact_ref = await self._store_tile(
                data,
                {
                    "schema_version": "1.0",
                    "type": "dtm_raw_tile",
                    "data_format": RAW_TILE_FORMAT,
                    "tile_index": tile.index,
                    "variant": variant,
                    "origin": tile.source,
                    "actuality": tile.actuality,
                    "attribution": attribution,
                    "zone": zone,
                },
                tile.index,
            )
            raw_tiles.append(
                RawTile(
                    variant=variant,
                    tile_index=tile.index,
                    origin=tile.source,
                    actuality=tile.actuality,
                    attribution=attribution,
                    data_format=RAW_TILE_FORMAT,
                    size_bytes=len(data),
                    artifact_ref=artifact_ref,
                )
            )

        return RawTileResult(zone=zone, easting=easting, northing=northing, tiles=raw_tiles)

    def log_statistics(self) -> None:
        """Log the request counters."""
        counts = ", ".join(f"{k}={v}" for k, v in sorted(self.stats.snapshot().items()))
        logger.info(f"Request statistics: {self.stats.total} total ({counts or 'none'})")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _locate(
        self,
        zone: int | None,
        easting: float | None,
        northing: float | None,
        lon: float | None,
        lat: float | None,
    ) -> tuple[int, float, float, list[TileRecord]]:
        from .coordinates import resolve_tile

        if zone is not None:
            if easting is None or northing is None:
                raise ValidationError(ErrorMessages.UTM_INCOMPLETE)
            self._validate_zone(zone)
            self.index.tile_for(zone, easting, northing)
        elif lon is not None and lat is not None:
            self._validate_lonlat(lon, lat)
            resolved = resolve_tile(self.index, lon, lat)
            zone, easting, northing = resolved.zone, resolved.easting, resolved.northing
        else:
            raise ValidationError(ErrorMessages.LOCATION_REQUIRED)

        return zone, easting, northing, self.index.variants_for(zone, easting, northing)

    def _get_store(self) -> Any:
        """Get the artifact store instance."""
        from chuk_mcp_server import get_artifact_store

        store = get_artifact_store()
        if store is None:
            raise RuntimeError(ErrorMessages.NO_ARTIFACT_STORE)
        return store

    async def _store_tile(self, data: bytes, metadata: dict, tile_index: str) -> str:
        """Store raw tile bytes in the artifact store and return the reference."""
        try:
            store = self._get_store()
            ref = f"{RAW_TILE_REF_PREFIX}{tile_index}_{uuid.uuid4().hex[:12]}.tif"

            await store.store(
                ref,
                data,
                mime_type=RAW_TILE_MIME_TYPE,
                metadata=metadata,
                summary=f"DTM raw tile {tile_index} ({metadata.get('origin', 'unknown')})",
            )
            return ref
        except Exception as e:
            logger.error(f"Failed to store tile {tile_index}: {e}")
            raise

    def _point_result(self, sample: ElevationSample) -> PointResult:
        tile = sample.tile
        return PointResult(
            elevation_m=sample.elevation,
            tile_index=tile.index,
            zone=sample.zone,
            easting=sample.easting,
            northing=sample.northing,
            origin=tile.source,
            actuality=tile.actuality,
            attribution=self._attribution(tile.source),
        )

    @staticmethod
    def _attribution(code: str) -> str:
        attribution = get_attribution(code)
        if code not in ELEVATION_SOURCES:
            logger.error(f"No attribution known for source {code}")
        return attribution

    @staticmethod
    def _validate_lonlat(lon: float, lat: float) -> None:
        if not (math.isfinite(lon) and LON_MIN <= lon <= LON_MAX):
            raise CoordinateError(ErrorMessages.INVALID_REQUEST_LON.format(lon, LON_MIN, LON_MAX))
        if not (math.isfinite(lat) and LAT_MIN <= lat <= LAT_MAX):
            raise CoordinateError(ErrorMessages.INVALID_REQUEST_LAT.format(lat, LAT_MIN, LAT_MAX))

    @staticmethod
    def _validate_zone(zone: int) -> None:
        if zone not in SUPPORTED_REQUEST_ZONES:
            raise CoordinateError(
                ErrorMessages.INVALID_REQUEST_ZONE.format(
                    zone, ", ".join(str(z) for z in SUPPORTED_REQUEST_ZONES)
                )
            )

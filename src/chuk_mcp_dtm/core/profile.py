"""
Elevation profiles along a straight line between two points.

Both endpoints are brought into one UTM zone; the line is then walked in
planar coordinates and each step is sampled through the ElevationSampler.
Points that cannot be sampled are logged and left out of the result.
"""

import logging
import math
from dataclasses import dataclass

from ..constants import (
    ELEVATION_SOURCES,
    MAX_PROFILE_POINTS,
    MAX_STEP_SIZE_M,
    MIN_PROFILE_POINTS,
    MIN_STEP_SIZE_M,
    WGS84_CRS,
    ErrorMessages,
    epsg_for_zone,
)
from .coordinates import resolve_tile, transform_lonlat_to_utm, transform_points
from .errors import DTMError, ProfileValidationError
from .sampler import ElevationSampler
from .tile_index import TileRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProfileEndpoint:
    """A profile endpoint given either in UTM or in lon/lat."""

    zone: int | None = None
    easting: float | None = None
    northing: float | None = None
    lon: float | None = None
    lat: float | None = None

    @property
    def has_utm(self) -> bool:
        return any(v is not None for v in (self.zone, self.easting, self.northing))

    @property
    def has_lonlat(self) -> bool:
        return self.lon is not None or self.lat is not None

    def validate(self, label: str) -> None:
        if self.has_utm and self.has_lonlat:
            raise ProfileValidationError(ErrorMessages.PROFILE_MIXED_POINT.format(label))
        if self.has_utm:
            if self.zone is None or self.easting is None or self.northing is None:
                raise ProfileValidationError(ErrorMessages.PROFILE_MISSING_POINT.format(label))
        elif self.lon is None or self.lat is None:
            raise ProfileValidationError(ErrorMessages.PROFILE_MISSING_POINT.format(label))


@dataclass
class ProfilePoint:
    """One sampled point along the profile."""

    distance_m: float
    elevation_m: float
    easting: float
    northing: float
    attribution: str
    tile: TileRecord
    lon: float | None = None
    lat: float | None = None


@dataclass
class ProfileTrace:
    """Sampled points of one profile plus the geometry they were planned on."""

    points: list[ProfilePoint]
    sources: list[dict]
    zone: int
    distance_m: float
    planned_points: int


def validate_profile_request(
    point_a: ProfileEndpoint,
    point_b: ProfileEndpoint,
    max_total_points: int,
    min_step_size: float,
) -> None:
    point_a.validate("A")
    point_b.validate("B")
    if point_a.has_utm != point_b.has_utm:
        raise ProfileValidationError(ErrorMessages.PROFILE_MIXED_SYSTEMS)
    if point_a.has_utm and point_a.zone != point_b.zone:
        raise ProfileValidationError(
            ErrorMessages.PROFILE_ZONE_MISMATCH.format(point_a.zone, point_b.zone)
        )
    if not MIN_PROFILE_POINTS <= max_total_points <= MAX_PROFILE_POINTS:
        raise ProfileValidationError(
            ErrorMessages.PROFILE_INVALID_POINTS.format(
                MIN_PROFILE_POINTS, MAX_PROFILE_POINTS, max_total_points
            )
        )
    if not MIN_STEP_SIZE_M <= min_step_size <= MAX_STEP_SIZE_M:
        raise ProfileValidationError(
            ErrorMessages.PROFILE_INVALID_STEP.format(MIN_STEP_SIZE_M, MAX_STEP_SIZE_M, min_step_size)
        )


def plan_steps(distance: float, max_total_points: int, min_step_size: float) -> tuple[float, int]:
    """Return (step size, segment count) for a line of the given length."""
    ideal_step = distance / (max_total_points - 1)
    if ideal_step < min_step_size:
        return min_step_size, math.ceil(distance / min_step_size)
    return ideal_step, max_total_points - 1


class ProfileSampler:
    """Samples elevation profiles through an ElevationSampler."""

    def __init__(self, sampler: ElevationSampler) -> None:
        self.sampler = sampler

    def _project(
        self, point_a: ProfileEndpoint, point_b: ProfileEndpoint
    ) -> tuple[int, float, float, float, float]:
        if point_a.has_utm:
            return (
                point_a.zone,
                point_a.easting,
                point_a.northing,
                point_b.easting,
                point_b.northing,
            )
        resolved = resolve_tile(self.sampler.index, point_a.lon, point_a.lat)
        eb, nb = transform_lonlat_to_utm(point_b.lon, point_b.lat, epsg_for_zone(resolved.zone))
        return resolved.zone, resolved.easting, resolved.northing, eb, nb

    def sample(
        self,
        point_a: ProfileEndpoint,
        point_b: ProfileEndpoint,
        max_total_points: int,
        min_step_size: float,
    ) -> ProfileTrace:
        """
        Sample elevations from point A to point B.

        Args:
            point_a: Start point (UTM or lon/lat)
            point_b: End point, same coordinate system as point_a
            max_total_points: Upper bound on samples (2..2000)
            min_step_size: Smallest step between samples in metres (1..1000)

        Returns:
            ProfileTrace with the sampled points, the unique elevation sources
            used, the working zone, and the full line length. Skipped points
            do not shorten distance_m.
        """
        validate_profile_request(point_a, point_b, max_total_points, min_step_size)

        zone, ea, na, eb, nb = self._project(point_a, point_b)
        de, dn = eb - ea, nb - na
        distance = math.hypot(de, dn)
        if distance == 0:
            raise ProfileValidationError(ErrorMessages.PROFILE_IDENTICAL_POINTS)

        step, segments = plan_steps(distance, max_total_points, min_step_size)
        ue, un = de / distance, dn / distance
        logger.debug(
            f"Profile in zone {zone}: {distance:.1f}m, {segments} segments of {step:.2f}m"
        )

        points: list[ProfilePoint] = []
        sources: dict[str, dict] = {}
        for i in range(segments + 1):
            along = distance if i == segments else i * step
            easting = ea + ue * along
            northing = na + un * along
            try:
                sample = self.sampler.sample_utm(zone, easting, northing)
            except DTMError as e:
                logger.warning(f"Profile point at {along:.1f}m ({easting}, {northing}) skipped: {e}")
                continue

            tile = sample.tile
            if tile.source not in sources:
                if tile.source in ELEVATION_SOURCES:
                    sources[tile.source] = dict(ELEVATION_SOURCES[tile.source])
                else:
                    logger.warning(f"No attribution known for source {tile.source}")

            points.append(
                ProfilePoint(
                    distance_m=along,
                    elevation_m=sample.elevation,
                    easting=easting,
                    northing=northing,
                    attribution=f"{tile.source}, {tile.actuality}",
                    tile=tile,
                )
            )

        if points and not point_a.has_utm:
            lons, lats = transform_points(
                [p.easting for p in points],
                [p.northing for p in points],
                f"EPSG:{epsg_for_zone(zone)}",
                WGS84_CRS,
            )
            for p, lon, lat in zip(points, lons, lats):
                p.lon, p.lat = lon, lat

        if len(points) < segments + 1:
            logger.info(f"Profile: {len(points)} of {segments + 1} points sampled")
        return ProfileTrace(
            points=points,
            sources=list(sources.values()),
            zone=zone,
            distance_m=distance,
            planned_points=segments + 1,
        )

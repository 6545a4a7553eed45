"""
Analysis tools: tile histograms and straight-line elevation profiles.
"""

import logging
from dataclasses import asdict

from ...constants import (
    DEFAULT_BINS,
    DEFAULT_HISTOGRAM_TYPE,
    DEFAULT_PROFILE_POINTS,
    DEFAULT_STEP_SIZE_M,
    SuccessMessages,
)
from ...core.profile import ProfileEndpoint
from ...models.responses import (
    ErrorResponse,
    HistogramEntryInfo,
    HistogramResponse,
    HistogramStatisticInfo,
    ProfilePointInfo,
    ProfileResponse,
    TileHistogramInfo,
    format_response,
)

logger = logging.getLogger(__name__)


def _endpoint(coords: list[float], zone: int | None) -> ProfileEndpoint:
    if len(coords) != 2:
        raise ValueError(f"Profile points must have two coordinates, got {coords}")
    if zone is not None:
        return ProfileEndpoint(zone=zone, easting=coords[0], northing=coords[1])
    return ProfileEndpoint(lon=coords[0], lat=coords[1])


def register_analysis_tools(mcp, manager):
    """Register analysis tools with the MCP server."""

    @mcp.tool()
    async def dtm_histogram(
        lon: float | None = None,
        lat: float | None = None,
        zone: int | None = None,
        easting: float | None = None,
        northing: float | None = None,
        histogram_type: str = DEFAULT_HISTOGRAM_TYPE,
        bins: int = DEFAULT_BINS,
        min_value: str | None = None,
        max_value: str | None = None,
        output_mode: str = "json",
    ) -> str:
        """Compute the elevation histogram of the 1 km tile(s) covering a location.

        One histogram is returned per overlapping tile variant. Give either lon/lat
        or zone/easting/northing.

        Args:
            lon: Longitude (5.5 to 15.3)
            lat: Latitude (47.0 to 55.3)
            zone: UTM zone (32 or 33)
            easting: Easting in metres
            northing: Northing in metres
            histogram_type: "standard" (equal-width) or "quantile" (equal-count)
            bins: Number of bins (1 to 999)
            min_value: Optional lower range override, e.g. "100"
            max_value: Optional upper range override, e.g. "250.5"
            output_mode: "json" or "text"

        Returns:
            Statistics and bins per tile with source attribution
        """
        try:
            result = await manager.fetch_histogram(
                zone=zone,
                easting=easting,
                northing=northing,
                lon=lon,
                lat=lat,
                histogram_type=histogram_type,
                bins=bins,
                min_value=min_value,
                max_value=max_value,
            )

            histograms = [
                TileHistogramInfo(
                    tile_index=h.tile_index,
                    origin=h.origin,
                    actuality=h.actuality,
                    attribution=h.attribution,
                    statistic=HistogramStatisticInfo(**asdict(h.statistic)),
                    entries=[HistogramEntryInfo(**asdict(e)) for e in h.entries],
                )
                for h in result.histograms
            ]

            response = HistogramResponse(
                zone=result.zone,
                easting=result.easting,
                northing=result.northing,
                histogram_type=result.histogram_type,
                bins=result.bins,
                min_value=min_value,
                max_value=max_value,
                histograms=histograms,
                message=SuccessMessages.HISTOGRAM_COMPLETE.format(len(histograms)),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dtm_histogram failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def dtm_profile(
        start: list[float],
        end: list[float],
        start_zone: int | None = None,
        end_zone: int | None = None,
        max_total_points: int = DEFAULT_PROFILE_POINTS,
        min_step_size: float = DEFAULT_STEP_SIZE_M,
        output_mode: str = "json",
    ) -> str:
        """Sample an elevation profile along a straight line between two points.

        Points are [lon, lat] unless a zone is given, in which case they are
        [easting, northing] in that UTM zone. Both points must use the same system.

        Args:
            start: Start point [lon, lat] or [easting, northing]
            end: End point [lon, lat] or [easting, northing]
            start_zone: UTM zone of the start point (32 or 33)
            end_zone: UTM zone of the end point (must equal start_zone)
            max_total_points: Maximum number of samples (2 to 2000, default 100)
            min_step_size: Minimum distance between samples in metres (1 to 1000)
            output_mode: "json" or "text"

        Returns:
            Profile points with distance, elevation, gain, loss, and attributions
        """
        try:
            point_a = _endpoint(start, start_zone)
            point_b = _endpoint(end, end_zone)

            result = await manager.fetch_profile(
                point_a=point_a,
                point_b=point_b,
                max_total_points=max_total_points,
                min_step_size=min_step_size,
            )

            utm = point_a.has_utm
            point_infos = [
                ProfilePointInfo(
                    distance_m=p.distance_m,
                    elevation_m=p.elevation_m,
                    easting=p.easting if utm else None,
                    northing=p.northing if utm else None,
                    lon=None if utm else p.lon,
                    lat=None if utm else p.lat,
                    attribution=p.attribution,
                )
                for p in result.points
            ]
            attributions = sorted(f"{s['code']}: {s['attribution']}" for s in result.sources)

            response = ProfileResponse(
                zone=result.zone,
                max_total_points=max_total_points,
                min_step_size=min_step_size,
                num_points=len(point_infos),
                planned_points=result.planned_points,
                points=point_infos,
                total_distance_m=result.total_distance_m,
                elevation_range=result.elevation_range,
                elevation_gain_m=result.elevation_gain_m,
                elevation_loss_m=result.elevation_loss_m,
                attributions=attributions,
                message=SuccessMessages.PROFILE_COMPLETE.format(
                    len(point_infos), result.planned_points, result.total_distance_m
                ),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dtm_profile failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

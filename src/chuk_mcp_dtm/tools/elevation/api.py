"""
Elevation lookup tools: single point, UTM point, and bulk points.

Every lookup resolves the owning tile through the index and reads one pixel,
falling back to overlapping tiles where the primary tile has no data.
"""

import logging

from ...constants import ErrorMessages, SuccessMessages, get_attribution
from ...models.responses import (
    ErrorResponse,
    MultiPointResponse,
    PointElevationResponse,
    PointInfo,
    format_response,
)

logger = logging.getLogger(__name__)


def register_elevation_tools(mcp, manager):
    """Register elevation lookup tools with the MCP server."""

    @mcp.tool()
    async def dtm_point(lon: float, lat: float, output_mode: str = "json") -> str:
        """Get the ground elevation at a geographic point.

        Args:
            lon: Longitude (5.5 to 15.3)
            lat: Latitude (47.0 to 55.3)
            output_mode: "json" or "text"

        Returns:
            Elevation in metres with tile, source, and attribution
        """
        try:
            result = await manager.fetch_point(lon=lon, lat=lat)
            response = PointElevationResponse(
                lon=lon,
                lat=lat,
                zone=result.zone,
                easting=result.easting,
                northing=result.northing,
                elevation_m=result.elevation_m,
                tile_index=result.tile_index,
                origin=result.origin,
                actuality=result.actuality,
                attribution=result.attribution,
                message=SuccessMessages.POINT_ELEVATION.format(
                    result.elevation_m, result.tile_index
                ),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dtm_point failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def dtm_utm_point(
        zone: int, easting: float, northing: float, output_mode: str = "json"
    ) -> str:
        """Get the ground elevation at an ETRS89 / UTM coordinate.

        Args:
            zone: UTM zone (32 or 33)
            easting: Easting in metres
            northing: Northing in metres
            output_mode: "json" or "text"

        Returns:
            Elevation in metres with tile, source, and attribution
        """
        try:
            result = await manager.fetch_utm_point(zone=zone, easting=easting, northing=northing)
            response = PointElevationResponse(
                zone=result.zone,
                easting=result.easting,
                northing=result.northing,
                elevation_m=result.elevation_m,
                tile_index=result.tile_index,
                origin=result.origin,
                actuality=result.actuality,
                attribution=result.attribution,
                message=SuccessMessages.POINT_ELEVATION.format(
                    result.elevation_m, result.tile_index
                ),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dtm_utm_point failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def dtm_points(points: list[list[float]], output_mode: str = "json") -> str:
        """Get ground elevations for many geographic points in one call.

        Points that cannot be sampled are skipped; compare requested_count with
        returned_count to detect gaps.

        Args:
            points: List of [lon, lat] pairs
            output_mode: "json" or "text"

        Returns:
            Sampled points with elevation range and source attributions
        """
        try:
            if not points:
                raise ValueError(ErrorMessages.NO_POINTS)

            result = await manager.fetch_points(points=points)

            infos = [
                PointInfo(
                    index=i,
                    lon=lon,
                    lat=lat,
                    elevation_m=r.elevation_m,
                    tile_index=r.tile_index,
                    origin=r.origin,
                )
                for i, lon, lat, r in result.points
            ]
            origins = sorted({r.origin for *_, r in result.points})

            response = MultiPointResponse(
                points=infos,
                requested_count=result.requested,
                returned_count=result.returned,
                elevation_range=result.elevation_range,
                attributions=[f"{code}: {get_attribution(code)}" for code in origins],
                message=SuccessMessages.POINTS_ELEVATION.format(
                    result.returned, result.requested
                ),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dtm_points failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

"""
Discovery tools — source attributions, status, capabilities, tile lookup.

Apart from dtm_tile_info these tools read only in-memory state.
"""

import logging

from ...constants import (
    ANALYSIS_TOOLS,
    DOWNLOAD_TOOLS,
    HISTOGRAM_TYPES,
    POINT_TOOLS,
    SUPPORTED_REQUEST_ZONES,
    ServerConfig,
    SuccessMessages,
)
from ...models.responses import (
    CapabilitiesResponse,
    ErrorResponse,
    SourceDetailResponse,
    SourceInfo,
    SourcesResponse,
    StatusResponse,
    TileInfoResponse,
    TileVariantInfo,
    format_response,
)

logger = logging.getLogger(__name__)


def register_discovery_tools(mcp, manager):
    """Register discovery tools with the MCP server."""

    @mcp.tool()
    async def dtm_list_sources(output_mode: str = "json") -> str:
        """List the regional elevation sources with their required attribution text.

        Every tile in the index belongs to one of these sources; responses name the
        source via its region code (e.g., DE-NW).

        Args:
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            List of sources with code, name, and attribution
        """
        try:
            sources = [SourceInfo(**s) for s in manager.list_sources()]
            response = SourcesResponse(
                sources=sources,
                message=SuccessMessages.SOURCES_LIST.format(len(sources)),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dtm_list_sources failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def dtm_describe_source(source: str, output_mode: str = "json") -> str:
        """Get the attribution of one elevation source and how many tiles it contributes.

        Args:
            source: Region code (e.g., DE-NW, DE-BY)
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Source name, attribution, and indexed tile count
        """
        try:
            data = manager.describe_source(source)
            response = SourceDetailResponse(
                **data,
                message=SuccessMessages.SOURCE_DESCRIBE.format(data["name"], data["code"]),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dtm_describe_source failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def dtm_status(output_mode: str = "json") -> str:
        """Get server status: version, tile index size, and request counters.

        Args:
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Server status information
        """
        try:
            stats = manager.index.statistics
            response = StatusResponse(
                server=ServerConfig.NAME,
                version=ServerConfig.VERSION,
                tile_count=len(manager.index),
                primary_tiles=stats.primary,
                secondary_tiles=stats.secondary,
                tertiary_tiles=stats.tertiary,
                request_counts=manager.stats.snapshot(),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dtm_status failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def dtm_capabilities(output_mode: str = "json") -> str:
        """Get full server capabilities: sources, tools, histogram types, and zones.

        Args:
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Complete server capabilities
        """
        try:
            sources = [SourceInfo(**s) for s in manager.list_sources()]
            response = CapabilitiesResponse(
                server=ServerConfig.NAME,
                version=ServerConfig.VERSION,
                sources=sources,
                point_tools=POINT_TOOLS,
                analysis_tools=ANALYSIS_TOOLS,
                download_tools=DOWNLOAD_TOOLS,
                histogram_types=HISTOGRAM_TYPES,
                supported_zones=list(SUPPORTED_REQUEST_ZONES),
                tool_count=11,
                llm_guidance=(
                    "Use dtm_point for the ground elevation at a lon/lat, dtm_utm_point "
                    "for ETRS89 / UTM input (zones 32 and 33). "
                    "Use dtm_points for many locations at once and compare "
                    "requested_count with returned_count. "
                    "Use dtm_profile for a straight-line cross-section and dtm_histogram "
                    "for the value distribution of the 1 km tile at a location. "
                    "Use dtm_raw_tile to store the unmodified GeoTIFF tiles as artifacts. "
                    "Always show the attribution text of the sources used."
                ),
                message=f"{ServerConfig.NAME} v{ServerConfig.VERSION} capabilities",
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dtm_capabilities failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def dtm_tile_info(
        lon: float | None = None,
        lat: float | None = None,
        zone: int | None = None,
        easting: float | None = None,
        northing: float | None = None,
        output_mode: str = "json",
    ) -> str:
        """List the tile variants covering a location with raster metadata and WGS84 bounds.

        Give either lon/lat or zone/easting/northing.

        Args:
            lon: Longitude (5.5 to 15.3)
            lat: Latitude (47.0 to 55.3)
            zone: UTM zone (32 or 33)
            easting: Easting in metres
            northing: Northing in metres
            output_mode: "json" or "text"

        Returns:
            Primary, secondary, and tertiary tiles with size, CRS, and bounding boxes
        """
        try:
            result = await manager.describe_tiles(
                zone=zone, easting=easting, northing=northing, lon=lon, lat=lat
            )
            tiles = [
                TileVariantInfo(
                    variant=t.variant,
                    tile_index=t.tile_index,
                    path=t.path,
                    origin=t.origin,
                    actuality=t.actuality,
                    attribution=t.attribution,
                    **t.metadata,
                )
                for t in result.tiles
            ]
            response = TileInfoResponse(
                zone=result.zone,
                easting=result.easting,
                northing=result.northing,
                tiles=tiles,
                message=SuccessMessages.TILE_INFO.format(len(tiles)),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dtm_tile_info failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

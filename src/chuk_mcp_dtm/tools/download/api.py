"""
Download tools: raw tile delivery.

Tiles are stored unmodified in the artifact store; responses carry the
artifact references and the attribution required for redistribution.
"""

import logging

from ...constants import SuccessMessages
from ...models.responses import (
    ErrorResponse,
    RawTileInfo,
    RawTileResponse,
    format_response,
)

logger = logging.getLogger(__name__)


def register_download_tools(mcp, manager):
    """Register download tools with the MCP server."""

    @mcp.tool()
    async def dtm_raw_tile(
        lon: float | None = None,
        lat: float | None = None,
        zone: int | None = None,
        easting: float | None = None,
        northing: float | None = None,
        output_mode: str = "json",
    ) -> str:
        """Store the unmodified GeoTIFF of every tile variant covering a location.

        The files are the 1 km tiles exactly as supplied by the regional survey
        offices, without resampling. Where regions overlap, the secondary and
        tertiary tiles are returned too. Give either lon/lat or
        zone/easting/northing. The attribution text must accompany any
        redistribution of the files.

        Args:
            lon: Longitude (5.5 to 15.3)
            lat: Latitude (47.0 to 55.3)
            zone: UTM zone (32 or 33)
            easting: Easting in metres
            northing: Northing in metres
            output_mode: "json" or "text"

        Returns:
            Artifact references with tile index, origin, actuality, and attribution
        """
        try:
            result = await manager.fetch_raw_tiles(
                zone=zone, easting=easting, northing=northing, lon=lon, lat=lat
            )
            tiles = [
                RawTileInfo(
                    variant=t.variant,
                    tile_index=t.tile_index,
                    origin=t.origin,
                    actuality=t.actuality,
                    attribution=t.attribution,
                    data_format=t.data_format,
                    size_bytes=t.size_bytes,
                    artifact_ref=t.artifact_ref,
                )
                for t in result.tiles
            ]
            response = RawTileResponse(
                zone=result.zone,
                easting=result.easting,
                northing=result.northing,
                tiles=tiles,
                message=SuccessMessages.RAW_TILE.format(len(tiles), result.total_bytes),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"dtm_raw_tile failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

"""Response models for chuk-mcp-dtm."""

from .responses import (
    CapabilitiesResponse,
    ErrorResponse,
    HistogramEntryInfo,
    HistogramResponse,
    HistogramStatisticInfo,
    MultiPointResponse,
    PointElevationResponse,
    PointInfo,
    ProfilePointInfo,
    ProfileResponse,
    RawTileInfo,
    RawTileResponse,
    SourceDetailResponse,
    SourceInfo,
    SourcesResponse,
    StatusResponse,
    TileHistogramInfo,
    TileInfoResponse,
    TileVariantInfo,
    format_response,
)

__all__ = [
    "ErrorResponse",
    "SourceInfo",
    "SourcesResponse",
    "SourceDetailResponse",
    "StatusResponse",
    "CapabilitiesResponse",
    "TileVariantInfo",
    "TileInfoResponse",
    "PointElevationResponse",
    "PointInfo",
    "MultiPointResponse",
    "HistogramStatisticInfo",
    "HistogramEntryInfo",
    "TileHistogramInfo",
    "HistogramResponse",
    "ProfilePointInfo",
    "ProfileResponse",
    "RawTileInfo",
    "RawTileResponse",
    "format_response",
]

"""
Response models for chuk-mcp-dtm tools.

All tool responses are Pydantic models for type safety and consistent API.
"""

import math

from pydantic import BaseModel, ConfigDict, Field


def format_response(model: BaseModel, output_mode: str = "json") -> str:
    """Format a response model as JSON or human-readable text.

    Args:
        model: Pydantic response model instance
        output_mode: "json" (default) or "text"

    Returns:
        Formatted string
    """
    if output_mode == "text" and hasattr(model, "to_text"):
        return str(model.to_text())
    return str(model.model_dump_json())


def _fmt(value: float, spec: str = ".2f") -> str:
    if value is None or math.isnan(value):
        return "n/a"
    return format(value, spec)


class ErrorResponse(BaseModel):
    """Error response model for tool failures."""

    model_config = ConfigDict(extra="forbid")

    error: str = Field(..., description="Error message describing what went wrong")

    def to_text(self) -> str:
        return f"Error: {self.error}"


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


class SourceInfo(BaseModel):
    """Attribution record of one regional elevation source."""

    model_config = ConfigDict(extra="forbid")

    code: str = Field(..., description="Region code (e.g., DE-NW)")
    name: str = Field(..., description="Region name")
    attribution: str = Field(..., description="Required attribution text")

    def to_text(self) -> str:
        return f"{self.code}: {self.name} ({self.attribution})"


class SourcesResponse(BaseModel):
    """Response model for listing elevation sources."""

    model_config = ConfigDict(extra="forbid")

    sources: list[SourceInfo] = Field(..., description="Known elevation sources")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [self.message, ""]
        for s in self.sources:
            lines.append(f"  {s.to_text()}")
        return "\n".join(lines)


class SourceDetailResponse(BaseModel):
    """Response model for a single elevation source."""

    model_config = ConfigDict(extra="forbid")

    code: str = Field(..., description="Region code")
    name: str = Field(..., description="Region name")
    attribution: str = Field(..., description="Required attribution text")
    tile_count: int = Field(..., description="Number of indexed tiles from this source", ge=0)
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            f"{self.name} ({self.code})",
            f"Attribution: {self.attribution}",
            f"Indexed tiles: {self.tile_count}",
        ]
        return "\n".join(lines)


class StatusResponse(BaseModel):
    """Response model for server status queries."""

    model_config = ConfigDict(extra="forbid")

    server: str = Field(default="chuk-mcp-dtm", description="Server name")
    version: str = Field(default="0.1.0", description="Server version")
    tile_count: int = Field(..., description="Entries in the tile index", ge=0)
    primary_tiles: int = Field(..., description="Primary tile entries", ge=0)
    secondary_tiles: int = Field(..., description="Secondary overlap entries", ge=0)
    tertiary_tiles: int = Field(..., description="Tertiary overlap entries", ge=0)
    request_counts: dict[str, int] = Field(
        default_factory=dict, description="Requests served per operation"
    )

    def to_text(self) -> str:
        lines = [
            f"{self.server} v{self.version}",
            f"Tiles: {self.tile_count} ({self.primary_tiles} primary, "
            f"{self.secondary_tiles} secondary, {self.tertiary_tiles} tertiary)",
        ]
        if self.request_counts:
            counts = ", ".join(f"{k}={v}" for k, v in sorted(self.request_counts.items()))
            lines.append(f"Requests: {counts}")
        return "\n".join(lines)


class CapabilitiesResponse(BaseModel):
    """Response model for server capabilities listing."""

    model_config = ConfigDict(extra="forbid")

    server: str = Field(..., description="Server name")
    version: str = Field(..., description="Server version")
    sources: list[SourceInfo] = Field(..., description="Known elevation sources")
    point_tools: list[str] = Field(..., description="Elevation lookup tools")
    analysis_tools: list[str] = Field(..., description="Histogram and profile tools")
    download_tools: list[str] = Field(..., description="Raw tile delivery tools")
    histogram_types: list[str] = Field(..., description="Supported histogram types")
    supported_zones: list[int] = Field(..., description="UTM zones accepted in requests")
    tool_count: int = Field(..., description="Number of available tools", ge=0)
    llm_guidance: str = Field(..., description="LLM-friendly usage guidance for the server")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            f"{self.server} v{self.version}",
            f"Tools: {self.tool_count}",
            f"Sources: {', '.join(s.code for s in self.sources)}",
            f"Point tools: {', '.join(self.point_tools)}",
            f"Analysis tools: {', '.join(self.analysis_tools)}",
            f"Download tools: {', '.join(self.download_tools)}",
            f"Histogram types: {', '.join(self.histogram_types)}",
            f"UTM zones: {', '.join(str(z) for z in self.supported_zones)}",
            f"Guidance: {self.llm_guidance}",
        ]
        return "\n".join(lines)


class TileVariantInfo(BaseModel):
    """One tile variant covering a location."""

    model_config = ConfigDict(extra="forbid")

    variant: int = Field(..., description="1 primary, 2 secondary, 3 tertiary", ge=1, le=3)
    tile_index: str = Field(..., description="Tile index key")
    path: str = Field(..., description="Raster file path")
    origin: str = Field(..., description="Source region code")
    actuality: str = Field(..., description="Survey date of the tile data")
    attribution: str = Field(..., description="Required attribution text")
    crs: str = Field(..., description="Raster coordinate reference system")
    width: int = Field(..., description="Raster width in pixels", ge=0)
    height: int = Field(..., description="Raster height in pixels", ge=0)
    resolution_m: list[float] = Field(..., description="Pixel size [x, y] in metres")
    dtype: str = Field(..., description="Band 1 data type")
    nodata: float | None = Field(None, description="Declared nodata value")
    bounds: list[float] = Field(..., description="Native bounds [left, bottom, right, top]")
    bbox_wgs84: list[float] = Field(..., description="WGS84 bbox [west, south, east, north]")

    def to_text(self) -> str:
        bbox = ", ".join(f"{b:.6f}" for b in self.bbox_wgs84)
        return (
            f"[{self.variant}] {self.tile_index} {self.origin} ({self.actuality}) "
            f"{self.width}x{self.height} {self.dtype}, WGS84 [{bbox}]"
        )


class TileInfoResponse(BaseModel):
    """Response model for tile lookup at a location."""

    model_config = ConfigDict(extra="forbid")

    zone: int = Field(..., description="UTM zone")
    easting: float = Field(..., description="Easting in metres")
    northing: float = Field(..., description="Northing in metres")
    tiles: list[TileVariantInfo] = Field(..., description="Covering tile variants")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            f"Location: zone {self.zone}, {self.easting:.2f}E {self.northing:.2f}N",
            self.message,
        ]
        for t in self.tiles:
            lines.append(f"  {t.to_text()}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Elevation
# ---------------------------------------------------------------------------


class PointElevationResponse(BaseModel):
    """Response model for a single-point elevation query."""

    model_config = ConfigDict(extra="forbid")

    lon: float | None = Field(None, description="Longitude, for geographic requests")
    lat: float | None = Field(None, description="Latitude, for geographic requests")
    zone: int = Field(..., description="UTM zone sampled")
    easting: float = Field(..., description="Easting in metres")
    northing: float = Field(..., description="Northing in metres")
    elevation_m: float = Field(..., description="Elevation in metres")
    tile_index: str = Field(..., description="Index key of the tile that supplied the value")
    origin: str = Field(..., description="Source region code")
    actuality: str = Field(..., description="Survey date of the tile data")
    attribution: str = Field(..., description="Required attribution text")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        if self.lon is not None and self.lat is not None:
            where = f"({self.lon:.6f}, {self.lat:.6f})"
        else:
            where = f"zone {self.zone} ({self.easting:.2f}, {self.northing:.2f})"
        lines = [
            f"Elevation at {where}: {self.elevation_m:.2f}m",
            f"Tile: {self.tile_index} ({self.origin}, {self.actuality})",
            f"Attribution: {self.attribution}",
        ]
        return "\n".join(lines)


class PointInfo(BaseModel):
    """Single point in a bulk elevation response."""

    model_config = ConfigDict(extra="forbid")

    index: int = Field(..., description="Position of the point in the request", ge=0)
    lon: float = Field(..., description="Longitude")
    lat: float = Field(..., description="Latitude")
    elevation_m: float = Field(..., description="Elevation in metres")
    tile_index: str = Field(..., description="Tile index key")
    origin: str = Field(..., description="Source region code")


class MultiPointResponse(BaseModel):
    """Response model for bulk elevation queries."""

    model_config = ConfigDict(extra="forbid")

    points: list[PointInfo] = Field(..., description="Points that were sampled")
    requested_count: int = Field(..., description="Number of points requested", ge=0)
    returned_count: int = Field(..., description="Number of points sampled", ge=0)
    elevation_range: list[float] = Field(..., description="[min, max] elevation in metres")
    attributions: list[str] = Field(..., description="Attributions of the sources used")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        elev_min, elev_max = self.elevation_range
        lines = [
            f"Points: {self.returned_count} of {self.requested_count} sampled",
            f"Elevation range: {elev_min:.2f}m to {elev_max:.2f}m",
        ]
        for p in self.points:
            lines.append(f"  [{p.index}] ({p.lon:.6f}, {p.lat:.6f}): {p.elevation_m:.2f}m")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Histogram
# ---------------------------------------------------------------------------


class HistogramStatisticInfo(BaseModel):
    """Summary statistics of one tile histogram. NaN serializes as null."""

    model_config = ConfigDict(extra="forbid")

    no_value_count: int = Field(..., description="Missing pixels", ge=0)
    values_total: int = Field(..., description="Total pixels read", ge=0)
    no_value_percent: float = Field(..., description="Missing pixels in percent of total")
    min_value_absolute: float = Field(..., description="Smallest valid value")
    max_value_absolute: float = Field(..., description="Largest valid value")
    min_value_histogram: float = Field(..., description="Effective histogram minimum")
    max_value_histogram: float = Field(..., description="Effective histogram maximum")
    below_min_count: int = Field(..., description="Values below the histogram range", ge=0)
    below_min_percent: float = Field(..., description="Below-range values in percent of total")
    above_max_count: int = Field(..., description="Values above the histogram range", ge=0)
    above_max_percent: float = Field(..., description="Above-range values in percent of total")


class HistogramEntryInfo(BaseModel):
    """One histogram bin."""

    model_config = ConfigDict(extra="forbid")

    lower_bound: float = Field(..., description="Bin lower bound")
    upper_bound: float = Field(..., description="Bin upper bound")
    count: int = Field(..., description="Values in the bin", ge=0)
    percent: float = Field(..., description="Bin share of all binned values in percent")


class TileHistogramInfo(BaseModel):
    """Histogram of one tile variant."""

    model_config = ConfigDict(extra="forbid")

    tile_index: str = Field(..., description="Tile index key")
    origin: str = Field(..., description="Source region code")
    actuality: str = Field(..., description="Survey date of the tile data")
    attribution: str = Field(..., description="Required attribution text")
    statistic: HistogramStatisticInfo = Field(..., description="Summary statistics")
    entries: list[HistogramEntryInfo] = Field(..., description="Bins in ascending order")

    def to_text(self) -> str:
        s = self.statistic
        lines = [
            f"Tile {self.tile_index} ({self.origin}, {self.actuality})",
            f"  Values: {s.values_total} ({s.no_value_count} missing, "
            f"{_fmt(s.no_value_percent, '.1f')}%)",
            f"  Range: {_fmt(s.min_value_absolute)} to {_fmt(s.max_value_absolute)} "
            f"(histogram {_fmt(s.min_value_histogram)} to {_fmt(s.max_value_histogram)})",
            f"  Below: {s.below_min_count}, Above: {s.above_max_count}",
        ]
        for e in self.entries:
            lines.append(
                f"    {e.lower_bound:.2f} - {e.upper_bound:.2f}: {e.count} ({e.percent:.1f}%)"
            )
        return "\n".join(lines)


class HistogramResponse(BaseModel):
    """Response model for tile histograms at a location."""

    model_config = ConfigDict(extra="forbid")

    zone: int = Field(..., description="UTM zone")
    easting: float = Field(..., description="Easting in metres")
    northing: float = Field(..., description="Northing in metres")
    histogram_type: str = Field(..., description="standard, equal_width or quantile")
    bins: int = Field(..., description="Number of bins", ge=1)
    min_value: str | None = Field(None, description="Requested lower range override")
    max_value: str | None = Field(None, description="Requested upper range override")
    histograms: list[TileHistogramInfo] = Field(..., description="One histogram per tile variant")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            f"Histogram ({self.histogram_type}, {self.bins} bins) at zone {self.zone}, "
            f"{self.easting:.2f}E {self.northing:.2f}N",
        ]
        for h in self.histograms:
            lines.append(h.to_text())
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


class ProfilePointInfo(BaseModel):
    """Single point along an elevation profile."""

    model_config = ConfigDict(extra="forbid")

    distance_m: float = Field(..., description="Distance from start in metres", ge=0)
    elevation_m: float = Field(..., description="Elevation in metres")
    easting: float | None = Field(None, description="Easting, for UTM requests")
    northing: float | None = Field(None, description="Northing, for UTM requests")
    lon: float | None = Field(None, description="Longitude, for geographic requests")
    lat: float | None = Field(None, description="Latitude, for geographic requests")
    attribution: str = Field(..., description="Source region and actuality of the tile")


class ProfileResponse(BaseModel):
    """Response model for elevation profile sampling."""

    model_config = ConfigDict(extra="forbid")

    zone: int = Field(..., description="UTM zone the profile was sampled in")
    max_total_points: int = Field(..., description="Requested maximum number of points")
    min_step_size: float = Field(..., description="Requested minimum step in metres")
    num_points: int = Field(..., description="Number of points sampled", ge=0)
    planned_points: int = Field(..., description="Number of points planned along the line", ge=0)
    points: list[ProfilePointInfo] = Field(..., description="Profile points with elevation")
    total_distance_m: float = Field(..., description="Length of the line from start to end in metres")
    elevation_range: list[float] = Field(..., description="[min, max] elevation in metres")
    elevation_gain_m: float = Field(..., description="Total elevation gain in metres")
    elevation_loss_m: float = Field(..., description="Total elevation loss in metres")
    attributions: list[str] = Field(..., description="'CODE: attribution' per source used")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        elev_min, elev_max = self.elevation_range
        lines = [
            f"Profile: {self.num_points} of {self.planned_points} points over "
            f"{self.total_distance_m:.1f}m (zone {self.zone})",
            f"Elevation range: {elev_min:.1f}m to {elev_max:.1f}m",
            f"Gain: {self.elevation_gain_m:.1f}m, Loss: {self.elevation_loss_m:.1f}m",
        ]
        for a in self.attributions:
            lines.append(f"Source: {a}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Raw tiles
# ---------------------------------------------------------------------------


class RawTileInfo(BaseModel):
    """One raw tile variant stored as an artifact."""

    model_config = ConfigDict(extra="forbid")

    variant: int = Field(..., description="1 primary, 2 secondary, 3 tertiary", ge=1, le=3)
    tile_index: str = Field(..., description="Tile index key")
    origin: str = Field(..., description="Source region code")
    actuality: str = Field(..., description="Survey date of the tile data")
    attribution: str = Field(..., description="Required attribution text")
    data_format: str = Field(..., description="File format of the stored tile")
    size_bytes: int = Field(..., description="Size of the stored file in bytes", ge=0)
    artifact_ref: str = Field(..., description="Artifact store reference for the tile file")


class RawTileResponse(BaseModel):
    """Response model for raw tile delivery."""

    model_config = ConfigDict(extra="forbid")

    zone: int = Field(..., description="UTM zone")
    easting: float = Field(..., description="Easting in metres")
    northing: float = Field(..., description="Northing in metres")
    tiles: list[RawTileInfo] = Field(..., description="Stored tile variants")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            f"Location: zone {self.zone}, {self.easting:.2f}E {self.northing:.2f}N",
            self.message,
        ]
        for t in self.tiles:
            lines.append(
                f"  [{t.variant}] {t.tile_index} {t.origin} ({t.actuality}) "
                f"{t.data_format}, {t.size_bytes} bytes -> {t.artifact_ref}"
            )
            lines.append(f"      {t.attribution}")
        return "\n".join(lines)

"""
Tests for DTMManager.

Covers discovery (sync), point, bulk, histogram, profile and tile-info
operations against real GeoTIFF tiles, request validation, and request
statistics.
"""

import logging
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from chuk_mcp_dtm.constants import ELEVATION_SOURCES
from chuk_mcp_dtm.core.coordinates import transform_lonlat_to_utm, transform_utm_to_lonlat
from chuk_mcp_dtm.core.dtm_manager import DTMManager, RequestStatistics
from chuk_mcp_dtm.core.errors import (
    CoordinateError,
    HistogramValidationError,
    NoDataError,
    RasterReadError,
    TileNotFoundError,
    ValidationError,
)
from chuk_mcp_dtm.core.profile import ProfileEndpoint
from chuk_mcp_dtm.core.tile_index import TileIndex, TileRecord, build_tile_index, spatial_key


@pytest.fixture
def lonlat_manager(make_tile):
    """Manager with one tile around lon 9.2, lat 52.0 in zone 32."""
    x, y = transform_lonlat_to_utm(9.2, 52.0, 25832)
    left, top = (x // 1000) * 1000, (y // 1000) * 1000 + 1000
    path = make_tile(value=61.25, left=left, top=top)
    record = TileRecord(index=spatial_key(32, x, y), path=path, source="DE-NI", actuality="2021")
    return DTMManager(build_tile_index([[record]]))


# ===================================================================
# Construction
# ===================================================================


class TestConstruction:
    def test_empty_by_default(self):
        manager = DTMManager()
        assert isinstance(manager.index, TileIndex)
        assert len(manager.index) == 0

    def test_attach_index_rebuilds_samplers(self, tile_index):
        manager = DTMManager()
        manager.attach_index(tile_index)
        assert manager.index is tile_index
        assert manager.sampler.index is tile_index
        assert manager.profiler.sampler is manager.sampler


# ===================================================================
# Discovery methods (sync)
# ===================================================================


class TestSources:
    def test_list_sources(self, mock_manager):
        sources = mock_manager.list_sources()
        assert len(sources) == 16
        assert {s["code"] for s in sources} == set(ELEVATION_SOURCES)
        assert all(set(s) == {"code", "name", "attribution"} for s in sources)

    def test_list_sources_returns_copies(self, mock_manager):
        mock_manager.list_sources()[0]["name"] = "changed"
        assert mock_manager.list_sources()[0]["name"] != "changed"

    def test_describe_source_counts_tiles(self, manager):
        assert manager.describe_source("DE-NW")["tile_count"] == 1
        assert manager.describe_source("DE-BY")["tile_count"] == 0

    def test_describe_unknown_source(self, mock_manager):
        with pytest.raises(ValueError, match="Unknown elevation source"):
            mock_manager.describe_source("FR-XX")


# ===================================================================
# Point queries
# ===================================================================


class TestFetchUtmPoint:
    @pytest.mark.asyncio
    async def test_elevation_and_attribution(self, manager):
        result = await manager.fetch_utm_point(32, 500255.0, 5760500.0)
        assert result.elevation_m == 125.0
        assert result.tile_index == "32_500_5760"
        assert result.origin == "DE-NW"
        assert result.actuality == "2023-05-01"
        assert result.attribution == ELEVATION_SOURCES["DE-NW"]["attribution"]

    @pytest.mark.asyncio
    async def test_unsupported_zone(self, manager):
        with pytest.raises(CoordinateError, match="invalid zone 31"):
            await manager.fetch_utm_point(31, 500255.0, 5760500.0)

    @pytest.mark.asyncio
    async def test_tile_missing(self, manager):
        with pytest.raises(TileNotFoundError):
            await manager.fetch_utm_point(33, 500255.0, 5760500.0)

    @pytest.mark.asyncio
    async def test_no_data(self, make_tile, record_factory):
        manager = DTMManager(build_tile_index([[record_factory(make_tile(value=-9999.0))]]))
        with pytest.raises(NoDataError):
            await manager.fetch_utm_point(32, 500255.0, 5760500.0)

    @pytest.mark.asyncio
    async def test_unknown_source_logs_error(self, ramp_tile, record_factory, caplog):
        manager = DTMManager(build_tile_index([[record_factory(ramp_tile, source="XX")]]))
        with caplog.at_level(logging.ERROR):
            result = await manager.fetch_utm_point(32, 500255.0, 5760500.0)
        assert result.attribution == "unknown"
        assert "No attribution known for source XX" in caplog.text


class TestFetchPoint:
    @pytest.mark.asyncio
    async def test_lonlat(self, lonlat_manager):
        result = await lonlat_manager.fetch_point(9.2, 52.0)
        assert result.elevation_m == 61.25
        assert result.zone == 32
        assert result.origin == "DE-NI"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("lon, lat", [(4.0, 52.0), (16.0, 52.0), (9.0, 46.0), (9.0, 56.0)])
    async def test_outside_coverage(self, mock_manager, lon, lat):
        with pytest.raises(CoordinateError):
            await mock_manager.fetch_point(lon, lat)

    @pytest.mark.asyncio
    async def test_nan_rejected(self, mock_manager):
        with pytest.raises(CoordinateError):
            await mock_manager.fetch_point(float("nan"), 52.0)


class TestFetchPoints:
    @pytest.mark.asyncio
    async def test_partial_success_keeps_indices(self, lonlat_manager):
        result = await lonlat_manager.fetch_points([[9.2, 52.0], [20.0, 52.0], [10.5, 50.0], [9.2, 52.0]])
        assert result.requested == 4
        assert result.returned == 2
        assert [i for i, *_ in result.points] == [0, 3]
        assert result.elevation_range == [61.25, 61.25]

    @pytest.mark.asyncio
    async def test_malformed_pairs_are_skipped(self, lonlat_manager, caplog):
        with caplog.at_level("WARNING"):
            result = await lonlat_manager.fetch_points(
                [[9.2], [9.2, 52.0], ["east", 52.0], None, [9.2, 52.0, 1.0], [9.2, 52.0]]
            )
        assert result.requested == 6
        assert [i for i, *_ in result.points] == [1, 5]
        assert "Point 0 skipped" in caplog.text
        assert "Point 2 skipped" in caplog.text
        assert "Point 3 skipped" in caplog.text
        assert "Point 4 skipped" in caplog.text

    @pytest.mark.asyncio
    async def test_nothing_sampled(self, mock_manager):
        result = await mock_manager.fetch_points([[9.2, 52.0]])
        assert result.returned == 0
        assert result.elevation_range == [0.0, 0.0]

    @pytest.mark.asyncio
    async def test_empty_rejected(self, mock_manager):
        with pytest.raises(ValueError, match="At least one point"):
            await mock_manager.fetch_points([])


# ===================================================================
# Histogram
# ===================================================================


class TestFetchHistogram:
    @pytest.mark.asyncio
    async def test_utm_histogram(self, manager):
        result = await manager.fetch_histogram(
            zone=32, easting=500500.0, northing=5760500.0, bins=10
        )
        assert result.zone == 32
        assert len(result.histograms) == 1

        hist = result.histograms[0]
        assert hist.tile_index == "32_500_5760"
        assert hist.origin == "DE-NW"
        assert hist.statistic.values_total == 10000
        assert hist.statistic.min_value_absolute == 100.0
        assert hist.statistic.max_value_absolute == 199.0
        assert [e.count for e in hist.entries] == [1000] * 10

    @pytest.mark.asyncio
    async def test_one_histogram_per_variant(self, ramp_tile, make_tile, record_factory):
        index = build_tile_index(
            [
                [record_factory(ramp_tile, source="DE-NW")],
                [record_factory(make_tile(value=42.0), source="DE-NI")],
            ]
        )
        result = await DTMManager(index).fetch_histogram(
            zone=32, easting=500500.0, northing=5760500.0, bins=3
        )
        assert [h.origin for h in result.histograms] == ["DE-NW", "DE-NI"]

    @pytest.mark.asyncio
    async def test_quantile_with_string_bounds(self, manager):
        result = await manager.fetch_histogram(
            zone=32,
            easting=500500.0,
            northing=5760500.0,
            histogram_type="quantile",
            bins=4,
            min_value="120",
            max_value="  ",
        )
        stat = result.histograms[0].statistic
        assert stat.below_min_count == 2000
        assert stat.min_value_histogram == 120.0

    @pytest.mark.asyncio
    async def test_lonlat_location(self, lonlat_manager):
        result = await lonlat_manager.fetch_histogram(lon=9.2, lat=52.0, bins=2)
        assert result.histograms[0].statistic.min_value_absolute == 61.25

    @pytest.mark.asyncio
    async def test_invalid_type(self, manager):
        with pytest.raises(HistogramValidationError):
            await manager.fetch_histogram(zone=32, easting=500500.0, northing=5760500.0, histogram_type="log")

    @pytest.mark.asyncio
    async def test_invalid_bound(self, manager):
        with pytest.raises(HistogramValidationError):
            await manager.fetch_histogram(zone=32, easting=500500.0, northing=5760500.0, min_value="low")

    @pytest.mark.asyncio
    async def test_incomplete_utm(self, manager):
        with pytest.raises(ValidationError, match="easting and northing"):
            await manager.fetch_histogram(zone=32, easting=500500.0)

    @pytest.mark.asyncio
    async def test_no_location(self, manager):
        with pytest.raises(ValidationError, match="must be set"):
            await manager.fetch_histogram()

    @pytest.mark.asyncio
    async def test_tile_missing(self, manager):
        with pytest.raises(TileNotFoundError):
            await manager.fetch_histogram(zone=32, easting=700000.0, northing=5760500.0)


# ===================================================================
# Profile
# ===================================================================


class TestFetchProfile:
    @pytest.mark.asyncio
    async def test_gain_and_loss(self, manager):
        result = await manager.fetch_profile(
            ProfileEndpoint(zone=32, easting=500005.0, northing=5760500.0),
            ProfileEndpoint(zone=32, easting=500505.0, northing=5760500.0),
            max_total_points=11,
            min_step_size=1.0,
        )
        assert len(result.points) == 11
        assert result.total_distance_m == 500.0
        assert result.elevation_range == [100.0, 150.0]
        assert result.elevation_gain_m == 50.0
        assert result.elevation_loss_m == 0.0
        assert [s["code"] for s in result.sources] == ["DE-NW"]

    @pytest.mark.asyncio
    async def test_descending_profile(self, manager):
        result = await manager.fetch_profile(
            ProfileEndpoint(zone=32, easting=500505.0, northing=5760500.0),
            ProfileEndpoint(zone=32, easting=500005.0, northing=5760500.0),
            max_total_points=11,
            min_step_size=1.0,
        )
        assert result.elevation_gain_m == 0.0
        assert result.elevation_loss_m == 50.0

    @pytest.mark.asyncio
    async def test_lonlat_profile(self, manager):
        lon_a, lat_a = transform_utm_to_lonlat(500105.0, 5760500.0, 32)
        lon_b, lat_b = transform_utm_to_lonlat(500205.0, 5760500.0, 32)
        result = await manager.fetch_profile(
            ProfileEndpoint(lon=lon_a, lat=lat_a),
            ProfileEndpoint(lon=lon_b, lat=lat_b),
            max_total_points=2,
            min_step_size=1.0,
        )
        assert [p.elevation_m for p in result.points] == [110.0, 120.0]
        assert result.points[0].lon == pytest.approx(lon_a, abs=1e-7)
        assert result.zone == 32

    @pytest.mark.asyncio
    async def test_partial_profile_keeps_line_length(self, manager):
        # the last 100 m run off the only tile
        result = await manager.fetch_profile(
            ProfileEndpoint(zone=32, easting=500850.0, northing=5760500.0),
            ProfileEndpoint(zone=32, easting=501050.0, northing=5760500.0),
            max_total_points=5,
            min_step_size=1.0,
        )
        assert [p.distance_m for p in result.points] == [0.0, 50.0, 100.0]
        assert result.total_distance_m == 200.0
        assert result.planned_points == 5
        assert result.zone == 32

    @pytest.mark.asyncio
    async def test_invalid_zone(self, manager):
        with pytest.raises(CoordinateError):
            await manager.fetch_profile(
                ProfileEndpoint(zone=34, easting=0.0, northing=0.0),
                ProfileEndpoint(zone=34, easting=10.0, northing=0.0),
                max_total_points=10,
                min_step_size=1.0,
            )

    @pytest.mark.asyncio
    async def test_nothing_sampled(self, mock_manager):
        result = await mock_manager.fetch_profile(
            ProfileEndpoint(zone=32, easting=500005.0, northing=5760500.0),
            ProfileEndpoint(zone=32, easting=500505.0, northing=5760500.0),
            max_total_points=5,
            min_step_size=1.0,
        )
        assert result.points == []
        assert result.total_distance_m == 500.0
        assert result.planned_points == 5
        assert result.elevation_range == [0.0, 0.0]


# ===================================================================
# Tile info
# ===================================================================


class TestDescribeTiles:
    @pytest.mark.asyncio
    async def test_variants_with_metadata(self, ramp_tile, make_tile, record_factory):
        index = build_tile_index(
            [
                [record_factory(ramp_tile, source="DE-NW")],
                [record_factory(make_tile(value=1, dtype="int16", nodata=-32768), source="DE-NI")],
            ]
        )
        result = await DTMManager(index).describe_tiles(
            zone=32, easting=500500.0, northing=5760500.0
        )
        assert [t.variant for t in result.tiles] == [1, 2]
        assert result.tiles[1].metadata["dtype"] == "int16"
        assert result.tiles[1].metadata["nodata"] == -32768.0
        assert result.tiles[0].attribution == ELEVATION_SOURCES["DE-NW"]["attribution"]


# ===================================================================
# Raw tiles
# ===================================================================


@pytest.fixture
def mock_artifact_store():
    store = AsyncMock()
    store.store = AsyncMock(return_value=None)
    return store


class TestFetchRawTiles:
    @pytest.mark.asyncio
    async def test_stores_every_variant(self, ramp_tile, make_tile, record_factory, mock_artifact_store):
        secondary = make_tile(value=1, dtype="int16", nodata=-32768)
        index = build_tile_index(
            [
                [record_factory(ramp_tile, source="DE-NW", actuality="2023-05-01")],
                [record_factory(secondary, source="DE-NI", actuality="2021-04-01")],
            ]
        )
        manager = DTMManager(index)
        manager._get_store = MagicMock(return_value=mock_artifact_store)

        result = await manager.fetch_raw_tiles(zone=32, easting=500500.0, northing=5760500.0)

        assert (result.zone, result.easting, result.northing) == (32, 500500.0, 5760500.0)
        assert [t.variant for t in result.tiles] == [1, 2]
        assert [t.tile_index for t in result.tiles] == ["32_500_5760", "32_500_5760"]
        assert [t.origin for t in result.tiles] == ["DE-NW", "DE-NI"]
        assert result.tiles[1].actuality == "2021-04-01"
        assert result.tiles[1].attribution == ELEVATION_SOURCES["DE-NI"]["attribution"]
        assert all(t.data_format == "GeoTIFF" for t in result.tiles)
        assert result.tiles[0].artifact_ref.startswith("dtm/32_500_5760_")
        assert result.tiles[0].artifact_ref.endswith(".tif")

        assert mock_artifact_store.store.await_count == 2
        ref, data = mock_artifact_store.store.await_args_list[1].args
        assert ref == result.tiles[1].artifact_ref
        assert data == Path(secondary).read_bytes()
        kwargs = mock_artifact_store.store.await_args_list[1].kwargs
        assert kwargs["mime_type"] == "image/tiff"
        assert kwargs["metadata"]["origin"] == "DE-NI"
        assert kwargs["metadata"]["variant"] == 2
        assert result.tiles[1].size_bytes == len(data)
        assert result.total_bytes == sum(t.size_bytes for t in result.tiles)

    @pytest.mark.asyncio
    async def test_lonlat_location(self, lonlat_manager, mock_artifact_store):
        lonlat_manager._get_store = MagicMock(return_value=mock_artifact_store)

        result = await lonlat_manager.fetch_raw_tiles(lon=9.2, lat=52.0)
        assert result.zone == 32
        assert len(result.tiles) == 1
        assert result.tiles[0].origin == "DE-NI"

    @pytest.mark.asyncio
    async def test_missing_tile(self, manager, mock_artifact_store):
        manager._get_store = MagicMock(return_value=mock_artifact_store)
        with pytest.raises(TileNotFoundError):
            await manager.fetch_raw_tiles(zone=32, easting=700000.0, northing=5760500.0)
        mock_artifact_store.store.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_file(self, record_factory, tmp_path, mock_artifact_store):
        index = build_tile_index([[record_factory(str(tmp_path / "gone.tif"))]])
        manager = DTMManager(index)
        manager._get_store = MagicMock(return_value=mock_artifact_store)
        with pytest.raises(RasterReadError, match="does not exist"):
            await manager.fetch_raw_tiles(zone=32, easting=500500.0, northing=5760500.0)

    @pytest.mark.asyncio
    async def test_no_artifact_store(self, manager):
        with patch("chuk_mcp_server.get_artifact_store", return_value=None):
            with pytest.raises(RuntimeError, match="No artifact store"):
                await manager.fetch_raw_tiles(zone=32, easting=500500.0, northing=5760500.0)

    @pytest.mark.asyncio
    async def test_counts_request(self, manager, mock_artifact_store):
        manager._get_store = MagicMock(return_value=mock_artifact_store)
        await manager.fetch_raw_tiles(zone=32, easting=500500.0, northing=5760500.0)
        assert manager.stats.snapshot() == {"raw_tile": 1}


# ===================================================================
# Statistics
# ===================================================================


class TestRequestStatistics:
    def test_counter(self):
        stats = RequestStatistics()
        stats.increment("point")
        stats.increment("point")
        stats.increment("profile")
        assert stats.snapshot() == {"point": 2, "profile": 1}
        assert stats.total == 3

    @pytest.mark.asyncio
    async def test_failed_requests_are_counted(self, mock_manager):
        with pytest.raises(CoordinateError):
            await mock_manager.fetch_utm_point(31, 0.0, 0.0)
        assert mock_manager.stats.snapshot() == {"utm_point": 1}

    def test_log_statistics(self, mock_manager, caplog):
        mock_manager.stats.increment("histogram")
        with caplog.at_level(logging.INFO):
            mock_manager.log_statistics()
        assert "1 total (histogram=1)" in caplog.text

    def test_log_statistics_empty(self, mock_manager, caplog):
        with caplog.at_level(logging.INFO):
            mock_manager.log_statistics()
        assert "0 total (none)" in caplog.text

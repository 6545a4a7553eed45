"""Tests for chuk_mcp_dtm.core.sampler module."""

import pytest

from chuk_mcp_dtm.core.coordinates import transform_lonlat_to_utm
from chuk_mcp_dtm.core.errors import NoDataError, TileNotFoundError
from chuk_mcp_dtm.core.sampler import ElevationSampler
from chuk_mcp_dtm.core.tile_index import TileRecord, build_tile_index, spatial_key

E, N = 500500.0, 5760500.0


class TestSampleUtm:
    def test_primary_value(self, tile_index):
        sample = ElevationSampler(tile_index).sample_utm(32, E, N)
        assert sample.elevation == 150.0
        assert sample.tile.index == "32_500_5760"
        assert (sample.zone, sample.easting, sample.northing) == (32, E, N)

    def test_falls_back_to_secondary(self, make_tile, record_factory):
        primary = record_factory(make_tile(value=-9999.0), source="DE-NW")
        secondary = record_factory(make_tile(value=120.5), source="DE-NI")
        index = build_tile_index([[primary], [secondary]])

        sample = ElevationSampler(index).sample_utm(32, E, N)
        assert sample.elevation == 120.5
        assert sample.tile is secondary

    def test_falls_back_to_tertiary(self, make_tile, record_factory):
        records = [
            record_factory(make_tile(value=-9999.0), source="DE-NW"),
            record_factory(make_tile(value=0, dtype="int16", nodata=0), source="DE-NI"),
            record_factory(make_tile(value=77.0), source="DE-HE"),
        ]
        index = build_tile_index([[r] for r in records])

        sample = ElevationSampler(index).sample_utm(32, E, N)
        assert sample.elevation == 77.0
        assert sample.tile.source == "DE-HE"

    def test_primary_wins_when_valid(self, make_tile, record_factory):
        primary = record_factory(make_tile(value=10.0), source="DE-NW")
        secondary = record_factory(make_tile(value=20.0), source="DE-NI")
        index = build_tile_index([[primary], [secondary]])
        assert ElevationSampler(index).sample_utm(32, E, N).tile is primary

    def test_all_variants_no_data(self, make_tile, record_factory):
        index = build_tile_index(
            [
                [record_factory(make_tile(value=-9999.0))],
                [record_factory(make_tile(value=-9999.0))],
            ]
        )
        with pytest.raises(NoDataError):
            ElevationSampler(index).sample_utm(32, E, N)

    def test_three_variants_no_data_reraises_last(self, make_tile, record_factory):
        paths = [make_tile(value=-9999.0) for _ in range(3)]
        index = build_tile_index([[record_factory(p)] for p in paths])
        assert len(index) == 3

        with pytest.raises(NoDataError) as exc_info:
            ElevationSampler(index).sample_utm(32, E, N)
        assert paths[2] in str(exc_info.value)

    def test_no_data_without_overlap(self, make_tile, record_factory):
        index = build_tile_index([[record_factory(make_tile(value=-9999.0))]])
        with pytest.raises(NoDataError):
            ElevationSampler(index).sample_utm(32, E, N)

    def test_missing_primary(self, tile_index):
        with pytest.raises(TileNotFoundError):
            ElevationSampler(tile_index).sample_utm(32, 600000.0, N)


class TestSamplePoint:
    @pytest.fixture
    def geo_index(self, make_tile):
        x, y = transform_lonlat_to_utm(9.0, 52.0, 25832)
        left, top = (x // 1000) * 1000, (y // 1000) * 1000 + 1000
        path = make_tile(value=55.5, left=left, top=top)
        key = spatial_key(32, x, y)
        return build_tile_index(
            [[TileRecord(index=key, path=path, source="DE-NI", actuality="2021-04-01")]]
        )

    def test_sample_point(self, geo_index):
        sample = ElevationSampler(geo_index).sample_point(9.0, 52.0)
        assert sample.elevation == 55.5
        assert sample.zone == 32
        assert sample.easting == pytest.approx(500000.0, abs=0.01)

    def test_sample_points_skips_failures(self, geo_index, caplog):
        sampler = ElevationSampler(geo_index)
        with caplog.at_level("WARNING"):
            result = sampler.sample_points([(9.0, 52.0), (10.5, 50.0), (9.0, 52.0)])

        assert result.requested == 3
        assert result.returned == 2
        assert [i for i, _ in result.samples] == [0, 2]
        assert "Point 1" in caplog.text

    def test_sample_points_empty(self, geo_index):
        result = ElevationSampler(geo_index).sample_points([])
        assert result.requested == 0
        assert result.returned == 0

"""Tests for chuk_mcp_dtm.core.tile_index module."""

import csv
import json

import pytest

from chuk_mcp_dtm.core.errors import TileIndexError, TileNotFoundError
from chuk_mcp_dtm.core.tile_index import (
    IndexStatistics,
    TileIndex,
    TileRecord,
    build_tile_index,
    build_tile_index_from_files,
    load_descriptor_file,
    spatial_key,
    variant_key,
)


def _rec(index="32_500_5760", path="/tiles/a.tif", source="DE-NW", actuality="2023-05-01"):
    return TileRecord(index=index, path=path, source=source, actuality=actuality)


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


class TestSpatialKey:
    def test_primary_key(self):
        assert spatial_key(32, 500123.4, 5760999.9) == "32_500_5760"

    def test_key_on_tile_edge_belongs_to_next_tile(self):
        assert spatial_key(32, 501000.0, 5761000.0) == "32_501_5761"

    def test_floor_for_negative_coordinates(self):
        assert spatial_key(32, -0.5, 10.0) == "32_-1_0"

    def test_variant_suffix(self):
        assert spatial_key(33, 400000, 5800000, variant=2) == "33_400_5800_2"
        assert spatial_key(33, 400000, 5800000, variant=3) == "33_400_5800_3"

    def test_deterministic(self):
        assert spatial_key(32, 500500, 5760500) == spatial_key(32, 500500, 5760500)

    def test_variant_key_primary_unchanged(self):
        assert variant_key("32_1_2", 1) == "32_1_2"

    def test_invalid_variant(self):
        with pytest.raises(ValueError):
            variant_key("32_1_2", 4)


# ---------------------------------------------------------------------------
# Build
# ---------------------------------------------------------------------------


class TestBuildTileIndex:
    def test_single_source(self):
        index = build_tile_index([[_rec(), _rec(index="32_501_5760", path="/tiles/b.tif")]])
        assert len(index) == 2
        assert index.statistics == IndexStatistics(primary=2)

    def test_overlap_goes_to_secondary_then_tertiary(self):
        a = _rec(path="/a.tif", source="DE-NW")
        b = _rec(path="/b.tif", source="DE-NI")
        c = _rec(path="/c.tif", source="DE-HE")
        index = build_tile_index([[a], [b], [c]])

        assert index["32_500_5760"] is a
        assert index["32_500_5760_2"] is b
        assert index["32_500_5760_3"] is c
        assert index.statistics.primary == 1
        assert index.statistics.secondary == 1
        assert index.statistics.tertiary == 1
        assert index.statistics.total == 3

    def test_caller_order_decides_primary(self):
        a = _rec(path="/a.tif", source="DE-NW")
        b = _rec(path="/b.tif", source="DE-NI")
        index = build_tile_index([[b], [a]])
        assert index["32_500_5760"] is b

    def test_fourth_overlap_replaces_tertiary(self, caplog):
        records = [_rec(path=f"/{n}.tif") for n in "abcd"]
        with caplog.at_level("WARNING"):
            index = build_tile_index([[r] for r in records])

        assert index["32_500_5760_3"].path == "/d.tif"
        assert len(index) == 3
        assert index.statistics.overwritten == 1
        assert "more than 3 overlapping sources" in caplog.text

    def test_accepts_descriptor_dicts(self):
        index = build_tile_index(
            [[{"Index": "32_500_5760", "Path": "/a.tif", "Source": "DE-NW", "Actuality": "2020"}]]
        )
        assert index["32_500_5760"].actuality == "2020"

    def test_empty(self):
        index = build_tile_index([])
        assert len(index) == 0
        assert index.statistics.total == 0


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


class TestLookup:
    def test_lookup_hit(self):
        index = build_tile_index([[_rec()]])
        assert index.lookup("32_500_5760").path == "/tiles/a.tif"

    def test_lookup_miss(self):
        index = build_tile_index([[_rec()]])
        with pytest.raises(TileNotFoundError, match=r"tile \[32_999_5760\] not found"):
            index.lookup("32_999_5760")

    def test_tile_not_found_is_lookup_error(self):
        with pytest.raises(LookupError):
            TileIndex({}).lookup("x")

    def test_tile_for(self):
        index = build_tile_index([[_rec()]])
        assert index.tile_for(32, 500999.9, 5760000.0).index == "32_500_5760"

    def test_variants_for_order(self):
        a, b = _rec(path="/a.tif"), _rec(path="/b.tif")
        index = build_tile_index([[a], [b]])
        assert index.variants_for(32, 500500, 5760500) == [a, b]

    def test_variants_for_missing(self):
        assert TileIndex({}).variants_for(32, 0, 0) == []

    def test_read_only(self):
        index = build_tile_index([[_rec()]])
        with pytest.raises(TypeError):
            index._records["x"] = _rec()

    def test_repr(self):
        assert repr(build_tile_index([[_rec()]])) == "TileIndex(1 tiles)"


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


class TestDescriptorFiles:
    def _write(self, path, payload):
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    def test_load_descriptor_file(self, tmp_path):
        path = self._write(
            tmp_path / "nw.json",
            [{"Index": "32_500_5760", "Path": "/a.tif", "Source": "DE-NW", "Actuality": "2021"}],
        )
        records = load_descriptor_file(path)
        assert records == [_rec(path="/a.tif", actuality="2021")]

    def test_missing_file(self, tmp_path):
        with pytest.raises(TileIndexError, match="error reading"):
            load_descriptor_file(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(TileIndexError, match="error parsing"):
            load_descriptor_file(path)

    def test_not_a_list(self, tmp_path):
        path = self._write(tmp_path / "obj.json", {"Index": "x"})
        with pytest.raises(TileIndexError, match="expected a list"):
            load_descriptor_file(path)

    def test_missing_field(self, tmp_path):
        path = self._write(tmp_path / "partial.json", [{"Index": "x", "Path": "/a.tif"}])
        with pytest.raises(TileIndexError, match="missing field"):
            load_descriptor_file(path)

    def test_build_from_files_keeps_order(self, tmp_path):
        first = self._write(
            tmp_path / "ni.json",
            [{"Index": "32_500_5760", "Path": "/ni.tif", "Source": "DE-NI", "Actuality": "2022"}],
        )
        second = self._write(
            tmp_path / "nw.json",
            [{"Index": "32_500_5760", "Path": "/nw.tif", "Source": "DE-NW", "Actuality": "2023"}],
        )
        index = build_tile_index_from_files([first, second])
        assert index["32_500_5760"].source == "DE-NI"
        assert index["32_500_5760_2"].source == "DE-NW"


class TestSaveCsv:
    def test_sorted_rows_with_header(self, tmp_path):
        index = build_tile_index(
            [[_rec(index="32_501_5760", path="/b.tif"), _rec(path="/a.tif")], [_rec(path="/c.tif")]]
        )
        out = tmp_path / "sub" / "repo.csv"
        assert index.save_csv(out) == 3

        with out.open(newline="", encoding="utf-8") as fh:
            rows = list(csv.reader(fh))
        assert rows[0] == ["Index", "Path", "Source", "Actuality"]
        assert [r[0] for r in rows[1:]] == ["32_500_5760", "32_500_5760_2", "32_501_5760"]
        assert rows[2][1] == "/c.tif"

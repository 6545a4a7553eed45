"""
Immutable spatial lookup from grid-cell key to raster tile.

Built once at startup from per-region descriptor lists and handed to every
component that needs it. Nothing writes to the index after build, so
concurrent readers need no locking.
"""

import csv
import json
import logging
import math
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

from ..constants import (
    MAX_TILE_VARIANTS,
    REPOSITORY_CSV_HEADER,
    TILE_SIZE_M,
    TILE_VARIANTS,
    ErrorMessages,
)
from .errors import TileIndexError, TileNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TileRecord:
    """One 1 km x 1 km raster tile within a UTM zone."""

    index: str
    path: str
    source: str
    actuality: str

    @classmethod
    def from_descriptor(cls, entry: Mapping[str, Any]) -> "TileRecord":
        """Build a record from a descriptor object ({Index, Path, Source, Actuality})."""
        return cls(
            index=str(entry["Index"]),
            path=str(entry["Path"]),
            source=str(entry["Source"]),
            actuality=str(entry["Actuality"]),
        )


@dataclass(frozen=True)
class IndexStatistics:
    """Entry counts per overlap slot, collected during build."""

    primary: int = 0
    secondary: int = 0
    tertiary: int = 0
    overwritten: int = 0

    @property
    def total(self) -> int:
        return self.primary + self.secondary + self.tertiary


def spatial_key(zone: int, easting: float, northing: float, variant: int = 1) -> str:
    """Derive the index key of the tile containing a projected coordinate.

    Args:
        zone: UTM zone number
        easting: Easting in metres
        northing: Northing in metres
        variant: 1 (primary), 2 (secondary) or 3 (tertiary)

    Returns:
        Key such as ``32_500_5760`` or ``32_500_5760_2``
    """
    key = (
        f"{zone}_{math.floor(easting / TILE_SIZE_M)}_{math.floor(northing / TILE_SIZE_M)}"
    )
    return variant_key(key, variant)


def variant_key(primary_key: str, variant: int) -> str:
    """Append the overlap suffix for variants 2 and 3."""
    if variant not in TILE_VARIANTS:
        raise ValueError(f"variant must be one of {TILE_VARIANTS}, got {variant}")
    if variant == 1:
        return primary_key
    return f"{primary_key}_{variant}"


class TileIndex(Mapping[str, TileRecord]):
    """Read-only mapping from spatial key to tile record."""

    def __init__(
        self,
        records: Mapping[str, TileRecord],
        statistics: IndexStatistics | None = None,
    ) -> None:
        self._records = MappingProxyType(dict(records))
        self.statistics = statistics or IndexStatistics(primary=len(self._records))

    def __getitem__(self, key: str) -> TileRecord:
        return self._records[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"TileIndex({len(self)} tiles)"

    def lookup(self, key: str) -> TileRecord:
        """Exact-match lookup; raises TileNotFoundError if the key is absent."""
        record = self._records.get(key)
        if record is None:
            raise TileNotFoundError(ErrorMessages.TILE_NOT_FOUND.format(key))
        return record

    def tile_for(
        self, zone: int, easting: float, northing: float, variant: int = 1
    ) -> TileRecord:
        """Look up the tile covering a projected coordinate."""
        return self.lookup(spatial_key(zone, easting, northing, variant))

    def variants_for(self, zone: int, easting: float, northing: float) -> list[TileRecord]:
        """Return every overlap variant present for a coordinate, primary first."""
        primary = spatial_key(zone, easting, northing)
        return [
            self._records[key]
            for key in (variant_key(primary, v) for v in TILE_VARIANTS)
            if key in self._records
        ]

    def save_csv(self, path: str | Path) -> int:
        """Write the index as CSV sorted by key. Returns the number of rows."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        keys = sorted(self._records)
        with path.open("w", newline="", encoding="utf-8") as fh:
            writer = csv.writer(fh)
            writer.writerow(REPOSITORY_CSV_HEADER)
            for key in keys:
                record = self._records[key]
                writer.writerow([key, record.path, record.source, record.actuality])
        logger.info(f"Tile index written to {path} ({len(keys)} entries)")
        return len(keys)


# ---------------------------------------------------------------------------
# Build
# ---------------------------------------------------------------------------


def build_tile_index(
    sources: Iterable[Iterable[TileRecord | Mapping[str, Any]]],
) -> TileIndex:
    """Build the index from descriptor lists, processed in caller order.

    A record whose primary key is taken goes to ``K_2``; if that is taken
    too it goes to ``K_3``, replacing any earlier tertiary record.
    """
    records: dict[str, TileRecord] = {}
    primary = secondary = tertiary = overwritten = 0

    for source in sources:
        for entry in source:
            record = entry if isinstance(entry, TileRecord) else TileRecord.from_descriptor(entry)
            key = record.index
            secondary_key = variant_key(key, 2)
            tertiary_key = variant_key(key, MAX_TILE_VARIANTS)

            if key not in records:
                records[key] = record
                primary += 1
            elif secondary_key not in records:
                records[secondary_key] = record
                secondary += 1
            else:
                if tertiary_key in records:
                    overwritten += 1
                    logger.warning(
                        f"Tile {key}: more than {MAX_TILE_VARIANTS} overlapping sources, "
                        f"{records[tertiary_key].path} replaced by {record.path}"
                    )
                else:
                    tertiary += 1
                records[tertiary_key] = record

    stats = IndexStatistics(
        primary=primary, secondary=secondary, tertiary=tertiary, overwritten=overwritten
    )
    logger.info(
        f"Tile index built: {stats.total} entries "
        f"({primary} primary, {secondary} secondary, {tertiary} tertiary)"
    )
    return TileIndex(records, stats)


def load_descriptor_file(path: str | Path) -> list[TileRecord]:
    """Read one region's JSON descriptor list."""
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as fh:
            data = json.load(fh)
    except OSError as e:
        raise TileIndexError(ErrorMessages.DESCRIPTOR_READ_FAILED.format(path, e)) from e
    except json.JSONDecodeError as e:
        raise TileIndexError(ErrorMessages.DESCRIPTOR_PARSE_FAILED.format(path, e)) from e

    if not isinstance(data, list):
        raise TileIndexError(
            ErrorMessages.DESCRIPTOR_PARSE_FAILED.format(path, "expected a list of tiles")
        )

    try:
        return [TileRecord.from_descriptor(entry) for entry in data]
    except (KeyError, TypeError) as e:
        raise TileIndexError(
            ErrorMessages.DESCRIPTOR_PARSE_FAILED.format(path, f"missing field {e}")
        ) from e


def build_tile_index_from_files(paths: Iterable[str | Path]) -> TileIndex:
    """Load descriptor files in order and build the index from them."""
    sources = []
    for path in paths:
        records = load_descriptor_file(path)
        logger.info(f"Loaded {len(records)} tile descriptors from {path}")
        sources.append(records)
    return build_tile_index(sources)

"""
Shared helper for running chuk-mcp-dtm MCP tools directly from Python.

Provides a ToolRunner class that registers all MCP tools over a tile index,
without requiring a full MCP transport layer. Demo scripts use this to call
tools as plain async functions. build_demo_repository() writes a small
synthetic tile set so the demos run without real DTM data.

Usage:
    from tool_runner import ToolRunner, build_demo_repository

    async def main():
        runner = ToolRunner(build_demo_repository("/tmp/dtm-demo"))
        result = await runner.run("dtm_utm_point", zone=32, easting=500500, northing=5760500)
        print(result)
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import numpy as np

from chuk_mcp_dtm.core.dtm_manager import DTMManager
from chuk_mcp_dtm.core.tile_index import TileIndex, build_tile_index_from_files
from chuk_mcp_dtm.tools.analysis import register_analysis_tools
from chuk_mcp_dtm.tools.discovery import register_discovery_tools
from chuk_mcp_dtm.tools.download import register_download_tools
from chuk_mcp_dtm.tools.elevation import register_elevation_tools


class _MiniMCP:
    """Minimal MCP server that captures tools registered via @mcp.tool."""

    def __init__(self) -> None:
        self._tools: dict[str, Any] = {}

    def tool(self) -> Any:
        """Decorator factory matching @mcp.tool() usage."""

        def decorator(fn: Any) -> Any:
            self._tools[fn.__name__] = fn
            return fn

        return decorator

    def get_tool(self, name: str) -> Any:
        return self._tools[name]


def _write_tile(path: Path, data: np.ndarray, left: float, top: float) -> None:
    import rasterio
    from rasterio.crs import CRS
    from rasterio.transform import from_origin

    with rasterio.open(
        path,
        "w",
        driver="GTiff",
        height=data.shape[0],
        width=data.shape[1],
        count=1,
        dtype="float32",
        nodata=-9999.0,
        crs=CRS.from_epsg(25832),
        transform=from_origin(left, top, 10.0, 10.0),
    ) as dst:
        dst.write(data.astype("float32"), 1)


def build_demo_repository(directory: str | Path) -> list[str]:
    """
    Write a 2x2 km synthetic hill in zone 32 plus one overlapping border tile.

    Returns:
        Descriptor file paths, in index build order
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    yy, xx = np.mgrid[0:200, 0:200]
    hill = 80.0 + 120.0 * np.exp(-((xx - 100) ** 2 + (yy - 100) ** 2) / 2500.0)

    primary = []
    for row in range(2):
        for col in range(2):
            east_km, north_km = 500 + col, 5761 - row
            block = hill[row * 100 : (row + 1) * 100, col * 100 : (col + 1) * 100].copy()
            if (row, col) == (0, 1):
                # a gap only the neighbouring region's tile covers
                block[40:60, 40:60] = -9999.0
            path = directory / f"dgm1_32_{east_km}_{north_km - 1}.tif"
            _write_tile(path, block, east_km * 1000.0, north_km * 1000.0)
            primary.append(
                {
                    "Index": f"32_{east_km}_{north_km - 1}",
                    "Path": str(path),
                    "Source": "DE-NW",
                    "Actuality": "2023-05-01",
                }
            )

    border_path = directory / "dgm1_32_501_5760_ni.tif"
    _write_tile(border_path, hill[0:100, 100:200] + 0.5, 501000.0, 5761000.0)
    border = [
        {
            "Index": "32_501_5760",
            "Path": str(border_path),
            "Source": "DE-NI",
            "Actuality": "2021-04-01",
        }
    ]

    files = []
    for name, entries in (("nw.json", primary), ("ni.json", border)):
        descriptor = directory / name
        descriptor.write_text(json.dumps(entries, indent=2), encoding="utf-8")
        files.append(str(descriptor))
    return files


def _init_artifact_store() -> None:
    """Initialize an in-memory artifact store for the raw tile demo."""
    from chuk_artifacts import ArtifactStore
    from chuk_mcp_server import set_global_artifact_store

    set_global_artifact_store(ArtifactStore(storage_provider="memory", session_provider="memory"))


class ToolRunner:
    """
    Run chuk-mcp-dtm MCP tools directly from Python.

    All 11 tools are registered and callable via run(tool_name, **kwargs).
    Returns parsed JSON (dict/list) by default. Use run_text() for
    human-readable output.
    """

    def __init__(self, descriptor_files: list[str] | None = None) -> None:
        _init_artifact_store()
        self._mcp = _MiniMCP()
        index = build_tile_index_from_files(descriptor_files) if descriptor_files else TileIndex({})
        self.manager = DTMManager(index)
        register_discovery_tools(self._mcp, self.manager)
        register_elevation_tools(self._mcp, self.manager)
        register_analysis_tools(self._mcp, self.manager)
        register_download_tools(self._mcp, self.manager)

    @property
    def tool_names(self) -> list[str]:
        return list(self._mcp._tools.keys())

    async def run(self, tool_name: str, **kwargs: Any) -> dict[str, Any]:
        """Call a tool by name and return parsed JSON."""
        fn = self._mcp.get_tool(tool_name)
        raw = await fn(**kwargs)
        return json.loads(raw)

    async def run_text(self, tool_name: str, **kwargs: Any) -> str:
        """Call a tool by name with output_mode='text' and return plaintext."""
        fn = self._mcp.get_tool(tool_name)
        return await fn(output_mode="text", **kwargs)

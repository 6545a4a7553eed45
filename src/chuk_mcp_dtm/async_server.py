#!/usr/bin/env python3
"""
Async DTM MCP Server using chuk-mcp-server

Ground elevation, tile histograms, and elevation profiles over a tiled
nationwide DTM in ETRS89 / UTM zones.

The tile index is attached to the manager at startup, before serving.
"""

import logging

from chuk_mcp_server import ChukMCPServer

from .core.dtm_manager import DTMManager
from .tools.analysis import register_analysis_tools
from .tools.discovery import register_discovery_tools
from .tools.download import register_download_tools
from .tools.elevation import register_elevation_tools

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create the MCP server instance
mcp = ChukMCPServer("chuk-mcp-dtm")

# Create DTM manager instance
manager = DTMManager()

# Register all tool modules
register_discovery_tools(mcp, manager)
register_elevation_tools(mcp, manager)
register_analysis_tools(mcp, manager)
register_download_tools(mcp, manager)

# Run the server
if __name__ == "__main__":
    from .config import Settings, configure_logging, load_tile_index

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    index = load_tile_index(settings)
    if index is not None:
        manager.attach_index(index)

    logger.info("Starting DTM MCP Server...")
    logger.info(f"Tile index: {len(manager.index)} entries")
    mcp.run(stdio=True)

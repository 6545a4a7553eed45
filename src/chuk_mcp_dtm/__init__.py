"""
chuk-mcp-dtm: Tiled DTM Elevation, Histogram & Profile MCP Server

Resolves coordinates to 1 km DTM GeoTIFF tiles in ETRS89 / UTM zones,
samples elevations across overlapping border tiles, and derives
histograms and straight-line elevation profiles.
"""

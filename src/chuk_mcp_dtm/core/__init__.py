"""Tile resolution, elevation sampling, histogram and profile engine."""

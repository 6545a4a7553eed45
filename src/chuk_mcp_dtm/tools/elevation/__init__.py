"""Elevation lookup tools."""

from .api import register_elevation_tools

__all__ = ["register_elevation_tools"]

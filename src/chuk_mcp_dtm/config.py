"""
Startup configuration read from environment variables.

server.py loads a .env file first, so values may come from either place.
"""

import logging
import os
import re
from dataclasses import dataclass, field

from .constants import DEFAULT_LOG_LEVEL, LOG_LEVELS, EnvVar
from .core.errors import TileIndexError
from .core.tile_index import TileIndex, build_tile_index_from_files

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Tile repositories, CSV dump target, and log level."""

    tile_repositories: list[str] = field(default_factory=list)
    repository_csv: str | None = None
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls) -> "Settings":
        raw = os.environ.get(EnvVar.TILE_REPOSITORIES, "")
        # os.pathsep or comma; order is significant for overlap resolution
        paths = [p.strip() for p in re.split(rf"[,{re.escape(os.pathsep)}]", raw) if p.strip()]
        return cls(
            tile_repositories=paths,
            repository_csv=os.environ.get(EnvVar.REPOSITORY_CSV) or None,
            log_level=os.environ.get(EnvVar.LOG_LEVEL, DEFAULT_LOG_LEVEL).strip().lower(),
        )


def configure_logging(level: str) -> int:
    """Apply a debug/info/warn/error level to the root logger."""
    name = LOG_LEVELS.get(level.lower())
    if name is None:
        logger.warning(f"Unknown log level '{level}', using {DEFAULT_LOG_LEVEL}")
        name = LOG_LEVELS[DEFAULT_LOG_LEVEL]
    numeric = logging.getLevelName(name)
    logging.getLogger().setLevel(numeric)
    return numeric


def load_tile_index(settings: Settings) -> TileIndex | None:
    """
    Build the tile index from the configured descriptor files.

    Returns:
        The index, or None if nothing is configured or a file failed to load
    """
    if not settings.tile_repositories:
        logger.warning(
            f"{EnvVar.TILE_REPOSITORIES} not set. Serving with an empty tile index."
        )
        return None

    try:
        index = build_tile_index_from_files(settings.tile_repositories)
    except TileIndexError as e:
        logger.error(f"Failed to build tile index: {e}")
        return None

    if settings.repository_csv:
        try:
            index.save_csv(settings.repository_csv)
        except OSError as e:
            logger.error(f"Failed to write tile index CSV {settings.repository_csv}: {e}")

    return index

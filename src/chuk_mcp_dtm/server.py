#!/usr/bin/env python3
"""
DTM MCP Server - Entry Point

This module provides the async MCP server for ground elevation lookups,
tile histograms, and elevation profiles over a tiled nationwide DTM.
Supports both stdio (for Claude Desktop) and HTTP (for API access) transports.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .config import Settings, configure_logging, load_tile_index
from .constants import EnvVar, SessionProvider, StorageProvider

# Load environment variables from .env file
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

logger = logging.getLogger(__name__)


def _init_artifact_store() -> bool:
    """
    Initialize the artifact store used for raw tile delivery.

    Returns:
        True if artifact store was initialized, False otherwise
    """
    provider = os.environ.get(EnvVar.ARTIFACTS_PROVIDER, StorageProvider.MEMORY)
    bucket = os.environ.get(EnvVar.BUCKET_NAME)
    redis_url = os.environ.get(EnvVar.REDIS_URL)
    artifacts_path = os.environ.get(EnvVar.ARTIFACTS_PATH)

    if provider == StorageProvider.S3:
        aws_key = os.environ.get(EnvVar.AWS_ACCESS_KEY_ID)
        aws_secret = os.environ.get(EnvVar.AWS_SECRET_ACCESS_KEY)

        if not all([bucket, aws_key, aws_secret]):
            logger.warning(
                "S3 provider configured but missing credentials. "
                f"Set {EnvVar.AWS_ACCESS_KEY_ID}, {EnvVar.AWS_SECRET_ACCESS_KEY}, "
                f"and {EnvVar.BUCKET_NAME}."
            )
            return False

        logger.info(f"Initializing artifact store with S3 provider (bucket: {bucket})")
        logger.info(f"  Endpoint: {os.environ.get(EnvVar.AWS_ENDPOINT_URL_S3)}")

    elif provider == StorageProvider.FILESYSTEM:
        if artifacts_path:
            Path(artifacts_path).mkdir(parents=True, exist_ok=True)
            logger.info(
                f"Initializing artifact store with filesystem provider (path: {artifacts_path})"
            )
        else:
            logger.warning(
                f"Filesystem provider configured but {EnvVar.ARTIFACTS_PATH} not set. "
                "Defaulting to memory provider."
            )
            provider = StorageProvider.MEMORY

    try:
        from chuk_artifacts import ArtifactStore
        from chuk_mcp_server import set_global_artifact_store

        store_kwargs: dict[str, Any] = {
            "storage_provider": provider,
            "session_provider": SessionProvider.REDIS if redis_url else SessionProvider.MEMORY,
        }

        if provider == StorageProvider.S3 and bucket:
            store_kwargs["bucket"] = bucket
        elif provider == StorageProvider.FILESYSTEM and artifacts_path:
            store_kwargs["bucket"] = artifacts_path

        store = ArtifactStore(**store_kwargs)
        set_global_artifact_store(store)

        logger.info(f"Artifact store initialized (provider: {provider})")
        return True

    except Exception as e:
        logger.error(f"Failed to initialize artifact store: {e}")
        return False


def _init_tile_index() -> bool:
    """
    Build the tile index from environment variables and attach it to the manager.

    Returns:
        True if a tile index was attached, False otherwise
    """
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    index = load_tile_index(settings)
    if index is None:
        logger.warning("No tile index attached. Elevation queries will report missing tiles.")
        return False

    manager.attach_index(index)
    logger.info(f"Tile index attached: {len(index)} entries")
    return True


# Import mcp instance and all registered tools from async server
from .async_server import manager, mcp  # noqa: F401, E402


def main() -> None:
    """Main entry point for the MCP server."""
    import argparse

    # Build tile index and artifact store at startup, not at import time
    _init_tile_index()
    _init_artifact_store()

    parser = argparse.ArgumentParser(description="DTM MCP Server")
    parser.add_argument(
        "mode",
        nargs="?",
        choices=["stdio", "http"],
        default=None,
        help="Transport mode (stdio for Claude Desktop, http for API)",
    )
    parser.add_argument(
        "--host", default="localhost", help="Host for HTTP mode (default: localhost)"
    )
    parser.add_argument("--port", type=int, default=8004, help="Port for HTTP mode (default: 8004)")

    args = parser.parse_args()

    if args.mode is None:
        stdio = bool(os.environ.get(EnvVar.MCP_STDIO)) or not sys.stdin.isatty()
        suffix = " (auto-detected)"
    else:
        stdio = args.mode == "stdio"
        suffix = ""

    try:
        if stdio:
            print(f"DTM MCP Server starting in STDIO mode{suffix}", file=sys.stderr)
            mcp.run(stdio=True)
        else:
            print(
                f"DTM MCP Server starting in HTTP mode on {args.host}:{args.port}",
                file=sys.stderr,
            )
            mcp.run(host=args.host, port=args.port, stdio=False)
    finally:
        manager.log_statistics()


if __name__ == "__main__":
    main()

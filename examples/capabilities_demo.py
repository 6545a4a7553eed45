#!/usr/bin/env python3
"""
Capabilities Demo -- chuk-mcp-dtm

Quick-start script showing what the server can do, without any tile data.
Lists elevation sources with their attribution, server status, full
capabilities, and demonstrates the dual output mode (JSON vs text).

Usage:
    python examples/capabilities_demo.py
"""

import asyncio

from tool_runner import ToolRunner


async def main() -> None:
    runner = ToolRunner()

    print("=" * 60)
    print("chuk-mcp-dtm -- Server Capabilities")
    print("=" * 60)

    # List all registered tools
    print(f"\nRegistered tools ({len(runner.tool_names)}):")
    for name in sorted(runner.tool_names):
        print(f"  - {name}")

    # List elevation sources
    sources = await runner.run("dtm_list_sources")
    print(f"\nElevation Sources ({len(sources['sources'])}):")
    for s in sources["sources"]:
        print(f"  {s['code']:6s}  {s['name']}")

    # Describe one source in detail
    detail = await runner.run("dtm_describe_source", source="DE-BY")
    print(f"\nSource Detail: {detail['name']} ({detail['code']})")
    print(f"  Attribution: {detail['attribution']}")
    print(f"  Indexed tiles: {detail['tile_count']}")

    # Server status
    status = await runner.run("dtm_status")
    print("\nServer Status:")
    print(f"  {status['server']} v{status['version']}")
    print(f"  Tiles indexed: {status['tile_count']}")

    # Full capabilities
    caps = await runner.run("dtm_capabilities")
    print("\nCapabilities:")
    print(f"  Tools: {caps['tool_count']}")
    print(f"  Point tools: {', '.join(caps['point_tools'])}")
    print(f"  Analysis tools: {', '.join(caps['analysis_tools'])}")
    print(f"  Histogram types: {', '.join(caps['histogram_types'])}")
    print(f"  UTM zones: {caps['supported_zones']}")
    print(f"  Guidance: {caps['llm_guidance']}")

    # ---------------------------------------------------------------
    # Dual output mode: text vs JSON
    # ---------------------------------------------------------------
    print("\n" + "-" * 60)
    print("Dual Output Mode Demo")
    print("-" * 60)

    print("\ndtm_status (output_mode='text'):")
    print(await runner.run_text("dtm_status"))

    # Errors come back as a response, not an exception
    print("\ndtm_point outside coverage (output_mode='text'):")
    print(await runner.run_text("dtm_point", lon=2.35, lat=48.86))

    print("\n" + "=" * 60)
    print("Done.")


if __name__ == "__main__":
    asyncio.run(main())

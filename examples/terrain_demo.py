#!/usr/bin/env python3
"""
Terrain Demo -- chuk-mcp-dtm

Builds a small synthetic tile repository (a 2x2 km hill in UTM zone 32 plus
one overlapping tile from a neighbouring region) and walks through the
elevation, analysis and download tools:

1. Single point lookups in UTM and lon/lat
2. Fallback to the overlapping tile where the primary tile has a gap
3. Bulk lookup with a point outside coverage
4. Equal-width and quantile histograms of one tile
5. A straight-line profile across the hill summit
6. Raw tile delivery for both variants on the border tile

Usage:
    python examples/terrain_demo.py
"""

import asyncio
import tempfile

from tool_runner import ToolRunner, build_demo_repository


async def main() -> None:
    with tempfile.TemporaryDirectory(prefix="dtm-demo-") as workdir:
        runner = ToolRunner(build_demo_repository(workdir))

        print("=" * 60)
        print("chuk-mcp-dtm -- Terrain Demo")
        print("=" * 60)

        status = await runner.run("dtm_status")
        print(
            f"\nTile index: {status['tile_count']} entries "
            f"({status['primary_tiles']} primary, {status['secondary_tiles']} secondary)"
        )

        # 1. Point lookups
        print("\n1. Summit elevation (UTM):")
        print(await runner.run_text("dtm_utm_point", zone=32, easting=501005.0, northing=5760005.0))

        tile = await runner.run("dtm_tile_info", zone=32, easting=500500.0, northing=5760500.0)
        west, south, east, north = tile["tiles"][0]["bbox_wgs84"]
        lon, lat = (west + east) / 2, (south + north) / 2
        print(f"\n   Same area by lon/lat ({lon:.5f}, {lat:.5f}):")
        print(await runner.run_text("dtm_point", lon=lon, lat=lat))

        # 2. Overlap fallback
        print("\n2. Gap in the DE-NW tile, filled from DE-NI:")
        gap = await runner.run("dtm_utm_point", zone=32, easting=501500.0, northing=5760500.0)
        print(f"   {gap['elevation_m']:.2f}m from {gap['origin']} ({gap['actuality']})")
        print(f"   Attribution: {gap['attribution']}")

        # 3. Bulk lookup
        print("\n3. Bulk lookup (second point is outside coverage):")
        bulk = await runner.run("dtm_points", points=[[lon, lat], [2.35, 48.86], [lon, lat + 0.001]])
        print(f"   {bulk['returned_count']} of {bulk['requested_count']} points sampled")
        for p in bulk["points"]:
            print(f"   [{p['index']}] {p['elevation_m']:.2f}m ({p['origin']})")

        # 4. Histograms
        print("\n4. Histograms of tile 32_500_5760:")
        for histogram_type in ("standard", "quantile"):
            result = await runner.run(
                "dtm_histogram",
                zone=32,
                easting=500500.0,
                northing=5760500.0,
                histogram_type=histogram_type,
                bins=5,
            )
            print(f"\n   {histogram_type}:")
            for entry in result["histograms"][0]["entries"]:
                print(
                    f"   {entry['lower_bound']:8.2f} - {entry['upper_bound']:8.2f}  "
                    f"{entry['count']:5d}  {entry['percent']:5.1f}%"
                )

        # 5. Profile
        print("\n5. West-east profile across the summit:")
        profile = await runner.run(
            "dtm_profile",
            start=[500100.0, 5760005.0],
            end=[501900.0, 5760005.0],
            start_zone=32,
            end_zone=32,
            max_total_points=10,
            min_step_size=5.0,
        )
        for p in profile["points"]:
            print(f"   {p['distance_m']:7.1f}m  {p['elevation_m']:7.2f}m  {p['attribution']}")
        print(
            f"   Gain {profile['elevation_gain_m']:.1f}m, loss {profile['elevation_loss_m']:.1f}m"
        )
        for attribution in profile["attributions"]:
            print(f"   Source: {attribution}")

        # 6. Raw tiles
        print("\n6. Raw tiles on the NW/NI border:")
        raw = await runner.run("dtm_raw_tile", zone=32, easting=501500.0, northing=5760500.0)
        for t in raw["tiles"]:
            print(f"   [{t['variant']}] {t['origin']:6s} {t['size_bytes']:8d} bytes  {t['artifact_ref']}")

        print("\n" + "=" * 60)
        print("Done.")


if __name__ == "__main__":
    asyncio.run(main())

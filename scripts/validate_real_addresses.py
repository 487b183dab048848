#!/usr/bin/env python3
"""
Validate the rooftop engine against real Dutch addresses.

Resolves each address against the live PDOK / 3D BAG / CBS services and
prints the building record, neighbourhood context and the rooftop
estimate for manual review.

Usage:
    # Against a running API:
    python3 scripts/validate_real_addresses.py --api http://localhost:8000

    # Direct import (no server needed):
    python3 scripts/validate_real_addresses.py
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from datetime import datetime

# Add backend to path for direct import mode
SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
BACKEND_DIR = os.path.join(os.path.dirname(SCRIPT_DIR), "backend")
sys.path.insert(0, BACKEND_DIR)

# ──────────────────────────────────────────────────────────────────
# TEST ADDRESSES
# ──────────────────────────────────────────────────────────────────

TEST_ADDRESSES = [
    {
        "name": "Canal house (Amsterdam centrum)",
        "address": "Herengracht 182, Amsterdam",
        "verify": [
            "Footprint found, narrow deep outline",
            "Height roughly 15-20 m",
            "High neighbourhood density",
        ],
    },
    {
        "name": "Post-war gallery flat (Rotterdam)",
        "address": "Schiedamseweg 100, Rotterdam",
        "verify": [
            "Large footprint, flat roof",
            "Mixed or residential use",
        ],
    },
    {
        "name": "Row house (Utrecht)",
        "address": "Biltstraat 50, Utrecht",
        "verify": [
            "Small footprint, 1 unit minimum",
            "Neighbourhood name resolves",
        ],
    },
    {
        "name": "Office block (Den Haag)",
        "address": "Prins Clauslaan 8, Den Haag",
        "verify": [
            "Commercial building type",
            "Low dwelling density",
        ],
    },
]

PAYLOAD_CONFIG = {
    "typology": "setback",
    "floors": 2,
    "features": {"solar_panels": True, "green_roof": True, "water_storage": False},
}


# ──────────────────────────────────────────────────────────────────
# DIRECT ENGINE MODE (no server needed)
# ──────────────────────────────────────────────────────────────────

async def run_direct_analysis(address: str) -> dict:
    """Run the pipeline by importing the engine directly."""
    from app.models.schemas import RooftopConfig
    from app.rooftop_engine.benefits import calculate_benefits
    from app.services.building import lookup

    result = await lookup(address)
    if result is None:
        return {"error": f"Address not found: {address}"}

    estimate = calculate_benefits(result.building, RooftopConfig(**PAYLOAD_CONFIG))
    return {
        "building": result.building.model_dump(mode="json"),
        "neighbourhood": result.neighbourhood.model_dump(mode="json"),
        "benefits": estimate.model_dump(mode="json"),
    }


# ──────────────────────────────────────────────────────────────────
# API MODE
# ──────────────────────────────────────────────────────────────────

async def run_api_analysis(address: str, api_base: str) -> dict:
    """Run the pipeline via the HTTP API."""
    import httpx
    async with httpx.AsyncClient(timeout=60) as client:
        resp = await client.get(f"{api_base}/api/lookup", params={"address": address})
        if resp.status_code != 200:
            return {"error": f"API returned {resp.status_code}: {resp.text[:500]}"}
        found = resp.json()

        building = found["building"]
        resp = await client.post(
            f"{api_base}/api/benefits",
            json={
                "footprint_area_m2": building["footprint_area_m2"],
                "height_m": building["height_m"],
                "config": PAYLOAD_CONFIG,
            },
        )
        if resp.status_code != 200:
            return {"error": f"API returned {resp.status_code}: {resp.text[:500]}"}
        found["benefits"] = resp.json()
        return found


# ──────────────────────────────────────────────────────────────────
# OUTPUT FORMATTING
# ──────────────────────────────────────────────────────────────────

def format_result(test: dict, result: dict) -> str:
    """Format a single result for console output."""
    from app.models.schemas import InvestmentRange
    from app.rooftop_engine.benefits import format_investment_range

    lines = []
    lines.append(f"\n{'='*70}")
    lines.append(f"TEST: {test['name']}")
    lines.append(f"{'='*70}")

    if "error" in result:
        lines.append(f"  ERROR: {result['error']}")
        return "\n".join(lines)

    b = result["building"]
    coord = b["coordinate"]
    lines.append(f"  Address:   {b['address']}")
    lines.append(f"  Location:  {coord['latitude']:.6f}, {coord['longitude']:.6f}")
    lines.append(
        f"  Footprint: {b['footprint_area_m2']:,.0f} m² "
        f"({'BAG' if b['footprint_found'] else 'default'}, {len(b['footprint'])} vertices)"
    )
    lines.append(f"  Height:    {b['height_m']:.1f} m ({'3D BAG' if b['height_found'] else 'default'})")
    lines.append(f"  Type:      {b['building_type']}, built {b.get('construction_year') or 'unknown'}")

    nb = result.get("neighbourhood") or {}
    lines.append(f"\n  NEIGHBOURHOOD ({nb.get('source', 'none')}):")
    if nb.get("neighbourhood_name"):
        lines.append(f"    {nb['neighbourhood_name']}, {nb.get('municipality_name') or '?'}")
        lines.append(f"    Density: {nb.get('dwelling_density_per_km2')} dwellings/km²")
    else:
        lines.append(f"    {nb.get('note') or 'not found'}")
    for attempt in nb.get("attempts", []):
        lines.append(f"      - {attempt}")

    est = result["benefits"]
    housing = est["housing"]
    inv = est["investment_range"]
    lines.append(f"\n  ROOFTOP ({PAYLOAD_CONFIG['typology']}, {PAYLOAD_CONFIG['floors']} floors):")
    lines.append(f"    Units:      {housing['units']} × {housing['average_unit_size_m2']} m² ({housing['total_area_m2']} m² BGO)")
    lines.append(f"    Investment: {format_investment_range(InvestmentRange(**inv))}")
    if est.get("solar"):
        s = est["solar"]
        lines.append(f"    Solar:      {s['panel_count']} panels, {s['capacity_kwp']} kWp, {s['yearly_production_kwh']:,} kWh/yr")
    if est.get("green"):
        lines.append(f"    Green roof: {est['green']['area_m2']} m², {est['green']['co2_reduction_kg']} kg CO₂/yr")

    lines.append(f"\n  VERIFY:")
    for v in test.get("verify", []):
        lines.append(f"    [ ] {v}")

    return "\n".join(lines)


# ──────────────────────────────────────────────────────────────────
# MAIN
# ──────────────────────────────────────────────────────────────────

async def main():
    parser = argparse.ArgumentParser(description="Validate the rooftop engine against real addresses")
    parser.add_argument("--api", default=None, help="API base URL (e.g., http://localhost:8000)")
    parser.add_argument("--tests", nargs="*", type=int, help="Run specific test numbers (1-indexed)")
    args = parser.parse_args()

    print(f"\nRooftop Engine Validation")
    print(f"Date: {datetime.now().strftime('%Y-%m-%d %H:%M')}")
    print(f"Mode: {'API' if args.api else 'Direct Import'}")
    if args.api:
        print(f"API:  {args.api}")
    print(f"Tests: {len(TEST_ADDRESSES)} configured")

    tests_to_run = TEST_ADDRESSES
    if args.tests:
        tests_to_run = [TEST_ADDRESSES[i-1] for i in args.tests if 1 <= i <= len(TEST_ADDRESSES)]

    results = []
    for i, test in enumerate(tests_to_run, 1):
        print(f"\n>>> Running test {i}/{len(tests_to_run)}: {test['name']}...")
        try:
            if args.api:
                result = await run_api_analysis(test["address"], args.api)
            else:
                result = await run_direct_analysis(test["address"])
            print(format_result(test, result))
            results.append({"test": test["name"], "status": "error" if "error" in result else "ok",
                            "error": result.get("error")})
        except Exception as e:
            print(f"\n  FAILED: {e}")
            import traceback
            traceback.print_exc()
            results.append({"test": test["name"], "status": "error", "error": str(e)})

    print(f"\n{'='*70}")
    print("SUMMARY")
    print(f"{'='*70}")
    ok = sum(1 for r in results if r["status"] == "ok")
    err = sum(1 for r in results if r["status"] == "error")
    print(f"  Passed: {ok}/{len(results)}")
    if err:
        print(f"  Failed: {err}/{len(results)}")
        for r in results:
            if r["status"] == "error":
                print(f"    - {r['test']}: {r.get('error') or 'unknown'}")
    print()


if __name__ == "__main__":
    asyncio.run(main())

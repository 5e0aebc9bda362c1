#!/usr/bin/env python3
"""Rank nearby gas bottle sellers and optionally route to one.

Usage
-----
Set environment variables and run::

    export ALLOGAS_ROUTING_API_KEY="your-openrouteservice-key"
    python scripts/nearby.py --catalog scripts/sellers.example.json --lat 3.85 --lon 11.5

Options::

    --catalog FILE       Seller catalog JSON (list of seller records)
    --lat / --lon        User position; omit both to use ALLOGAS_GEOIP_URL or the fallback city
    --brand TEXT         Case-insensitive brand substring filter
    --size small|large   Size class filter
    --route ID           Resolve a driving route to this seller id
    --json               Output machine-readable JSON
    --verbose            Enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyallogas import (  # noqa: E402
    AllogasConfig,
    Coordinate,
    FilterCriteria,
    GasFinder,
    Route,
    RouteFailure,
    SellerCatalog,
    SizeClass,
    StaticPositionSource,
)


def _section(title: str) -> str:
    return f"\n{'═' * 60}\n  {title}\n{'═' * 60}"


def _route_dict(result: Route | RouteFailure | None) -> dict[str, Any]:
    if result is None:
        return {"status": "cancelled"}
    if isinstance(result, RouteFailure):
        return {"status": "failed", "cause": result.cause.value, "message": result.message}
    return {
        "status": "ok",
        "distance_km": round(result.distance_km, 3),
        "duration_min": round(result.duration_minutes, 1),
        "points": len(result.geometry),
    }


async def main() -> None:
    parser = argparse.ArgumentParser(description="Rank nearby gas bottle sellers and route to one.")
    parser.add_argument("--catalog", required=True, help="Seller catalog JSON file")
    parser.add_argument("--lat", type=float, help="User latitude")
    parser.add_argument("--lon", type=float, help="User longitude")
    parser.add_argument("--brand", default="", help="Brand substring filter")
    parser.add_argument("--size", choices=[s.value for s in SizeClass], help="Size class filter")
    parser.add_argument("--route", metavar="ID", help="Resolve a route to this seller id")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    if (args.lat is None) != (args.lon is None):
        parser.error("--lat and --lon must be given together")

    config = AllogasConfig.from_env()
    catalog = SellerCatalog.from_json(args.catalog)
    source = None
    if args.lat is not None:
        source = StaticPositionSource(Coordinate(latitude=args.lat, longitude=args.lon))

    criteria = FilterCriteria(brand_substring=args.brand, size_class=args.size)
    result: dict[str, Any] = {}

    async with GasFinder(config, catalog, position_source=source) as finder:
        state = await finder.locate()
        ranked = finder.nearby(criteria)
        result["location"] = state.model_dump(mode="json")
        result["sellers"] = [
            {"id": r.id, "name": r.seller.display_name, "brand": r.seller.brand, "distance_km": round(r.distance_km, 3)}
            for r in ranked
        ]

        if args.route:
            seller = catalog.get(args.route)
            if seller is None:
                parser.error(f"unknown seller id {args.route!r}")
            result["route"] = _route_dict(await finder.route_to(seller))

    if args.json_mode:
        print(json.dumps(result, indent=2, ensure_ascii=False))
        return

    out: list[str] = [_section("LOCATION")]
    for key, value in result["location"].items():
        out.append(f"  {key:<16}: {value}")
    out.append(_section(f"SELLERS ({len(result['sellers'])})"))
    if not result["sellers"]:
        out.append("  no seller matches the filter")
    for entry in result["sellers"]:
        out.append(f"  {entry['id']:>4}  {entry['distance_km']:>9.3f} km  {entry['brand']:<8} {entry['name']}")
    if "route" in result:
        out.append(_section(f"ROUTE to {args.route}"))
        for key, value in result["route"].items():
            out.append(f"  {key:<13}: {value}")
    print("\n".join(out))


if __name__ == "__main__":
    asyncio.run(main())

"""
Address → BuildingRecord pipeline.

Steps run strictly in sequence (each needs the previous result):
geocode → footprint → area → height → BAG attributes.  The resolvers
return None for "not found"; the defaults for a missing outline or
height are applied here, not inside the resolvers.

``lookup`` additionally resolves the CBS neighbourhood for the same
coordinate, concurrently with the building chain; it is cancelled if the
building chain fails.
"""

from __future__ import annotations

import asyncio
import logging

from app.config import settings
from app.models.schemas import BuildingLookup, BuildingRecord, Coordinate
from app.rooftop_engine.rounding import round_int
from app.services.bag import classify_building_type, fetch_building_attributes
from app.services.fetch import RetryableFetcher, default_fetcher
from app.services.footprint import fetch_footprint
from app.services.geocoding import geocode_address, require_address
from app.services.geometry import polygon_area_sqm
from app.services.height import fetch_building_height
from app.services.neighbourhood import fetch_neighbourhood_stats

logger = logging.getLogger(__name__)


def building_id(coord: Coordinate) -> str:
    return f"bag:{coord.latitude:.6f},{coord.longitude:.6f}"


async def resolve_building_at(
    address: str,
    coord: Coordinate,
    fetcher: RetryableFetcher | None = None,
) -> BuildingRecord:
    """Build the record for an already geocoded address."""
    fetcher = fetcher or default_fetcher()

    outline = await fetch_footprint(coord, fetcher)
    if outline:
        area = float(round_int(polygon_area_sqm(outline)))
    else:
        area = settings.default_footprint_area_m2

    height = await fetch_building_height(coord, fetcher)
    attributes = await fetch_building_attributes(coord, fetcher)

    logger.info(
        "Resolved %r: footprint %s (%.0f m²), height %s",
        address,
        "found" if outline else "default",
        area,
        f"{height:.1f} m" if height is not None else "default",
    )

    return BuildingRecord(
        id=building_id(coord),
        address=address,
        coordinate=coord,
        footprint=outline or [coord],
        footprint_area_m2=area,
        height_m=height if height is not None else settings.default_height_m,
        building_type=classify_building_type(attributes.intended_use),
        roof_type="flat",
        construction_year=attributes.construction_year,
        footprint_found=bool(outline),
        height_found=height is not None,
    )


async def resolve_building(
    address: str,
    fetcher: RetryableFetcher | None = None,
) -> BuildingRecord | None:
    """Resolve ``address`` to a BuildingRecord; None when the address is not found."""
    address = require_address(address)
    fetcher = fetcher or default_fetcher()

    coord = await geocode_address(address, fetcher)
    if coord is None:
        return None
    return await resolve_building_at(address, coord, fetcher)


async def lookup(
    address: str,
    fetcher: RetryableFetcher | None = None,
    neighbourhood_fetcher: RetryableFetcher | None = None,
) -> BuildingLookup | None:
    """Building record plus neighbourhood context for ``address``."""
    address = require_address(address)
    fetcher = fetcher or default_fetcher()

    coord = await geocode_address(address, fetcher)
    if coord is None:
        return None

    neighbourhood_task = asyncio.ensure_future(fetch_neighbourhood_stats(coord, neighbourhood_fetcher))
    try:
        building = await resolve_building_at(address, coord, fetcher)
    except BaseException:
        neighbourhood_task.cancel()
        raise
    neighbourhood = await neighbourhood_task
    return BuildingLookup(building=building, neighbourhood=neighbourhood)

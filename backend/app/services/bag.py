"""
BAG building attributes (construction year, intended use) for a point.

Queries ``bag:pand`` with a 5 m DWITHIN filter.  The registry's property
naming has drifted over time, so each field has a list of aliases.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.config import settings
from app.models.schemas import BuildingAttributes, Coordinate
from app.services.errors import FetchError
from app.services.fetch import RetryableFetcher, default_fetcher, dict_field, first_item

logger = logging.getLogger(__name__)

CONSTRUCTION_YEAR_PROPERTIES = ("bouwjaar", "BOUWJAAR", "bouwjaarPand")
INTENDED_USE_PROPERTIES = ("gebruiksdoel", "GEBRUIKSDOEL", "gebruiksdoelPand")

DWELLING_USE = "woon"


def _first(props: dict, keys: tuple[str, ...]) -> Any:
    for key in keys:
        if props.get(key) is not None:
            return props[key]
    return None


def _as_year(value: Any) -> int | None:
    try:
        year = int(float(value))
    except (TypeError, ValueError):
        return None
    return year if year > 0 else None


def as_use_list(value: Any) -> list[str]:
    """BAG ``gebruiksdoel`` arrives as a list, a comma-separated string, or nothing."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    return [part.strip() for part in str(value).split(",") if part.strip()]


def is_dwelling_use(use: str) -> bool:
    return DWELLING_USE in use.lower()


def attributes_from_properties(props: dict) -> BuildingAttributes:
    return BuildingAttributes(
        construction_year=_as_year(_first(props, CONSTRUCTION_YEAR_PROPERTIES)),
        intended_use=as_use_list(_first(props, INTENDED_USE_PROPERTIES)),
    )


def classify_building_type(intended_use: list[str]) -> str:
    """residential / mixed / commercial from BAG uses; residential when unknown."""
    if not intended_use:
        return "residential"
    dwelling = [u for u in intended_use if is_dwelling_use(u)]
    if not dwelling:
        return "commercial"
    if len(dwelling) < len(intended_use):
        return "mixed"
    return "residential"


async def fetch_building_attributes(
    coord: Coordinate,
    fetcher: RetryableFetcher | None = None,
) -> BuildingAttributes:
    fetcher = fetcher or default_fetcher()
    params = {
        "service": "WFS",
        "request": "GetFeature",
        "typeName": "bag:pand",
        "srsName": "EPSG:4326",
        "outputFormat": "application/json",
        "cql_filter": f"DWITHIN(geom,POINT({coord.longitude} {coord.latitude}),5,meters)",
    }

    try:
        data = await fetcher.fetch_json(settings.bag_wfs_url, params=params)
    except (httpx.HTTPError, FetchError, ValueError) as e:
        logger.warning("BAG attribute query failed at %s,%s: %s", coord.latitude, coord.longitude, e)
        return BuildingAttributes()

    feature = first_item(data)
    if feature is None:
        return BuildingAttributes()
    return attributes_from_properties(dict_field(feature, "properties"))

from __future__ import annotations

import logging
import math

import httpx

from app.config import settings
from app.models.schemas import Coordinate
from app.services.errors import FetchError
from app.services.fetch import RetryableFetcher, default_fetcher, dict_field, first_item

logger = logging.getLogger(__name__)

# 3D BAG property names for the building height, first present wins
HEIGHT_PROPERTIES = ("maxBuildingHeight", "height")


def _parse_height(value) -> float | None:
    try:
        h = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(h) or h <= 0:
        return None
    return h


def height_from_properties(props: dict) -> float | None:
    for key in HEIGHT_PROPERTIES:
        if props.get(key) is not None:
            return _parse_height(props[key])
    return None


async def fetch_building_height(
    coord: Coordinate,
    fetcher: RetryableFetcher | None = None,
) -> float | None:
    """Building height in metres from the 3D BAG. Never raises; None means unknown."""
    fetcher = fetcher or default_fetcher()
    params = {"lat": coord.latitude, "lon": coord.longitude}

    try:
        data = await fetcher.fetch_json(settings.bag3d_url, params=params)
        feature = first_item(data)
        if feature is None:
            return None
        return height_from_properties(dict_field(feature, "properties"))
    except (httpx.HTTPError, FetchError, ValueError, AttributeError, TypeError) as e:
        logger.warning("3D BAG height lookup failed at %s,%s: %s", coord.latitude, coord.longitude, e)
        return None

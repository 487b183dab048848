"""
Building outline lookup from the BAG WFS (``bag:pand``, PDOK, free, no auth).

A ~55 m envelope around the point is queried and the first returned
``pand`` is taken.  WFS GeoJSON is (lon, lat); the outline handed to the
rest of the app is (lat, lon).
"""

from __future__ import annotations

import logging

import httpx
from shapely.errors import ShapelyError

from app.config import settings
from app.models.schemas import Coordinate
from app.services.errors import FetchError
from app.services.fetch import RetryableFetcher, default_fetcher, first_item
from app.services.geometry import bbox_around, format_bbox, outline_from_geojson

logger = logging.getLogger(__name__)


def _footprint_params(coord: Coordinate, pad: float) -> dict:
    return {
        "service": "WFS",
        "request": "GetFeature",
        "version": "2.0.0",
        "typeName": "bag:pand",
        "outputFormat": "application/json",
        "srsName": "EPSG:4326",
        "bbox": format_bbox(bbox_around(coord, pad)),
    }


async def fetch_footprint(
    coord: Coordinate,
    fetcher: RetryableFetcher | None = None,
) -> list[Coordinate] | None:
    """Return the outline of the building at ``coord``, or None.

    None covers: no feature in the envelope, an unusable geometry, or an
    unreachable service.  Callers fall back to a default footprint area.
    """
    fetcher = fetcher or default_fetcher()
    params = _footprint_params(coord, settings.footprint_bbox_pad)

    try:
        data = await fetcher.fetch_json(settings.bag_wfs_url, params=params)
    except (httpx.HTTPError, FetchError, ValueError) as e:
        logger.warning("BAG pand query failed at %s,%s: %s", coord.latitude, coord.longitude, e)
        return None

    feature = first_item(data)
    if feature is None:
        logger.info("No BAG pand near %s,%s", coord.latitude, coord.longitude)
        return None

    geometry = feature.get("geometry")
    if not isinstance(geometry, dict):
        return None
    try:
        return outline_from_geojson(geometry)
    except (ValueError, KeyError, TypeError, AttributeError, IndexError, ShapelyError) as e:
        logger.warning("Unusable BAG pand geometry: %s", e)
        return None

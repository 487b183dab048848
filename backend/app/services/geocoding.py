"""
Dutch address geocoding via the PDOK Locatieserver (free, no auth).

Only the single best match is requested; ranking is left to the
Locatieserver.  The result's ``centroide_ll`` is WKT ``POINT(<lon> <lat>)``.
"""

from __future__ import annotations

import logging
import math
import re

import httpx

from app.config import settings
from app.models.schemas import Coordinate
from app.services.errors import FetchError, InputError
from app.services.fetch import RetryableFetcher, default_fetcher, dict_field, first_item

logger = logging.getLogger(__name__)

_POINT_RE = re.compile(r"POINT\(([-0-9.]+) ([-0-9.]+)\)")


def require_address(address: str | None) -> str:
    """Strip an address string; raise InputError when nothing is left."""
    cleaned = (address or "").strip()
    if not cleaned:
        raise InputError("address is required")
    return cleaned


def parse_lat_lng(lat, lng) -> Coordinate:
    """Parse raw lat/lng values (e.g. query strings) into a Coordinate.

    Raises InputError when either is missing, not a number, not finite
    or out of range.
    """
    if lat is None or lng is None or str(lat).strip() == "" or str(lng).strip() == "":
        raise InputError("lat/lng required")
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError):
        raise InputError("lat/lng must be numbers")
    if not (math.isfinite(lat_f) and math.isfinite(lng_f)):
        raise InputError("lat/lng must be finite numbers")
    try:
        return Coordinate(latitude=lat_f, longitude=lng_f)
    except ValueError as e:
        raise InputError(str(e))


def parse_wkt_point(wkt: str | None) -> Coordinate | None:
    """Parse ``POINT(<lon> <lat>)`` into a Coordinate, or None if it doesn't match."""
    if not wkt or not isinstance(wkt, str):
        return None
    m = _POINT_RE.search(wkt)
    if not m:
        return None
    try:
        return Coordinate(latitude=float(m.group(2)), longitude=float(m.group(1)))
    except ValueError:
        return None


async def geocode_address(
    address: str,
    fetcher: RetryableFetcher | None = None,
) -> Coordinate | None:
    """Resolve free-text ``address`` to a coordinate.

    Returns None when the Locatieserver has no match, the top match has no
    usable point, or the service cannot be reached.  Raises InputError for
    an empty address.
    """
    query = require_address(address)
    fetcher = fetcher or default_fetcher()

    try:
        data = await fetcher.fetch_json(settings.locatieserver_url, params={"q": query, "rows": 1})
    except (httpx.HTTPError, FetchError, ValueError) as e:
        logger.warning("Locatieserver lookup failed for %r: %s", query, e)
        return None

    doc = first_item(dict_field(data, "response"), "docs")
    if doc is None:
        logger.info("No Locatieserver match for %r", query)
        return None

    coord = parse_wkt_point(doc.get("centroide_ll"))
    if coord is None:
        logger.info("Locatieserver match for %r has no usable centroide_ll", query)
    return coord

"""
Local dwelling density from BAG verblijfsobjecten (fully open data).

Counts residential units (``gebruiksdoel`` containing "woon") inside a
~1 km envelope around the point.  A rough, registry-independent
counterpart to the CBS neighbourhood figure.
"""

from __future__ import annotations

import logging
import math

import httpx

from app.config import settings
from app.models.schemas import Coordinate, LocalDensity
from app.rooftop_engine.rounding import round_half_up, round_int
from app.services.bag import as_use_list, is_dwelling_use
from app.services.errors import FetchError
from app.services.fetch import RetryableFetcher, default_fetcher, dict_field, item_list
from app.services.geometry import format_bbox

logger = logging.getLogger(__name__)

LAYER_NAMES = ("bag:verblijfsobject", "bag:verblijfsobjecten")
USE_PROPERTIES = ("gebruiksdoel", "gebruiksdoelen")

LAT_PAD_DEG = 0.005  # ~555 m
LNG_PAD_DEG = 0.008
M_PER_DEG_LAT = 111_320
MAX_FEATURES = 5000

NOTE = "BAG approximation (residential verblijfsobjecten within a local envelope)."


def density_envelope(coord: Coordinate) -> dict[str, float]:
    cos_lat = math.cos(math.radians(coord.latitude))
    d_lng = LNG_PAD_DEG * cos_lat
    return {
        "minx": coord.longitude - d_lng,
        "miny": coord.latitude - LAT_PAD_DEG,
        "maxx": coord.longitude + d_lng,
        "maxy": coord.latitude + LAT_PAD_DEG,
    }


def envelope_area_km2(envelope: dict[str, float], latitude: float) -> float:
    m_per_deg_lng = M_PER_DEG_LAT * math.cos(math.radians(latitude))
    width_m = (envelope["maxx"] - envelope["minx"]) * m_per_deg_lng
    height_m = (envelope["maxy"] - envelope["miny"]) * M_PER_DEG_LAT
    return width_m * height_m / 1_000_000


def count_dwellings(features: list[dict]) -> int:
    count = 0
    for feature in features:
        props = dict_field(feature, "properties")
        use = next((props[k] for k in USE_PROPERTIES if props.get(k)), None)
        if any(is_dwelling_use(u) for u in as_use_list(use)):
            count += 1
    return count


async def _fetch_units(
    envelope: dict[str, float],
    fetcher: RetryableFetcher,
) -> list[dict]:
    bbox = (envelope["minx"], envelope["miny"], envelope["maxx"], envelope["maxy"])
    for layer in LAYER_NAMES:
        params = {
            "service": "WFS",
            "request": "GetFeature",
            "typename": layer,
            "srsName": "EPSG:4326",
            "bbox": format_bbox(bbox),
            "count": MAX_FEATURES,
            "outputFormat": "application/json",
        }
        try:
            data = await fetcher.fetch_json(settings.bag_legacy_wfs_url, params=params)
        except (httpx.HTTPError, FetchError, ValueError) as e:
            logger.warning("BAG %s query failed: %s", layer, e)
            continue
        features = item_list(data)
        if features:
            return features
    return []


async def estimate_local_density(
    coord: Coordinate,
    fetcher: RetryableFetcher | None = None,
) -> LocalDensity:
    fetcher = fetcher or default_fetcher()
    envelope = density_envelope(coord)

    features = await _fetch_units(envelope, fetcher)
    dwellings = count_dwellings(features)
    area_km2 = envelope_area_km2(envelope, coord.latitude)
    density = round_int(dwellings / area_km2) if area_km2 > 0 else 0

    return LocalDensity(
        dwellings=dwellings,
        area_km2=round_half_up(area_km2, 4),
        density_per_km2=density,
        envelope=envelope,
        note=NOTE,
    )

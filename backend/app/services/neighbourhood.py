"""
CBS neighbourhood (buurt) statistics for a point.

The upstream registries are unversioned and inconsistent: the wijken-en-
buurten layer is published under many year/prefix variants, and the CBS
ArcGIS services use yet another attribute naming.  Resolution is therefore
an ordered list of strategies, evaluated lazily until one returns a
feature with properties:

  1. PDOK/NGR WFS: every known layer name, bbox first, then
     INTERSECTS(point).
  2. CBS ArcGIS FeatureServices (2023, 2022): point intersect first,
     then envelope.

Whatever source answers, the properties go through one alias table
(``FIELD_ALIASES`` / ``AREA_ALIASES``).  Nothing found is a valid outcome:
a NeighbourhoodStats with only ``note`` set and ``source == NONE``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence

import httpx

from app.config import settings
from app.models.schemas import Coordinate, NeighbourhoodStats, RegistrySource
from app.rooftop_engine.rounding import round_int
from app.services.errors import FetchError
from app.services.fetch import RetryableFetcher, first_item
from app.services.geometry import bbox_around, format_bbox

logger = logging.getLogger(__name__)

NOT_FOUND_NOTE = "No CBS neighbourhood found (tried PDOK WFS layers and CBS ArcGIS services)"


# ──────────────────────────────────────────────────────────────────
# STRATEGY TABLE
# ──────────────────────────────────────────────────────────────────

class QueryShape(str, Enum):
    BBOX = "bbox"
    POINT = "point"


@dataclass(frozen=True)
class NeighbourhoodStrategy:
    source: RegistrySource
    endpoint: str
    shape: QueryShape
    layer: Optional[str] = None  # WFS typeName; ArcGIS services have none

    def describe(self) -> str:
        target = self.layer or self.endpoint.rsplit("/rest/services/", 1)[-1]
        return f"{self.source.value} {target} {self.shape.value}"


# Layer names seen for the same logical "buurten" layer, newest first
PDOK_LAYERS = (
    "cbs:buurten2023", "cbs:buurt_2023", "cbs:buurten_2023",
    "cbs:buurten2022", "cbs:buurt_2022", "cbs:buurten_2022",
    "cbs:buurten",
    "buurten2023", "buurt_2023", "buurten_2023",
    "buurten2022", "buurt_2022", "buurten_2022",
    "buurten",
)

_PDOK_SHAPES = (QueryShape.BBOX, QueryShape.POINT)
_ARCGIS_SHAPES = (QueryShape.POINT, QueryShape.BBOX)


def build_strategies(
    wfs_url: Optional[str] = None,
    arcgis_services: Optional[Sequence[str]] = None,
    layers: Sequence[str] = PDOK_LAYERS,
) -> list[NeighbourhoodStrategy]:
    """The full ordered fallback chain."""
    wfs_url = wfs_url or settings.wijkenbuurten_wfs_url
    if arcgis_services is None:
        arcgis_services = settings.cbs_arcgis_services

    strategies = [
        NeighbourhoodStrategy(RegistrySource.PRIMARY, wfs_url, shape, layer)
        for layer in layers
        for shape in _PDOK_SHAPES
    ]
    strategies += [
        NeighbourhoodStrategy(RegistrySource.SECONDARY, service.rstrip("/") + "/query", shape)
        for service in arcgis_services
        for shape in _ARCGIS_SHAPES
    ]
    return strategies


def strategy_params(strategy: NeighbourhoodStrategy, coord: Coordinate, pad: float) -> dict:
    """Query parameters for one strategy at ``coord``."""
    lat, lng = coord.latitude, coord.longitude
    bbox = bbox_around(coord, pad)

    if strategy.source is RegistrySource.PRIMARY:
        params = {
            "service": "WFS",
            "request": "GetFeature",
            "typeName": strategy.layer,
            "srsName": "EPSG:4326",
            "count": 5,
            "outputFormat": "application/json",
        }
        if strategy.shape is QueryShape.BBOX:
            params["bbox"] = format_bbox(bbox)
        else:
            params["cql_filter"] = f"INTERSECTS(geom,POINT({lng} {lat}))"
        return params

    if strategy.shape is QueryShape.POINT:
        geometry = {"x": lng, "y": lat, "spatialReference": {"wkid": 4326}}
        geometry_type = "esriGeometryPoint"
    else:
        minx, miny, maxx, maxy = bbox
        geometry = {
            "xmin": minx, "ymin": miny, "xmax": maxx, "ymax": maxy,
            "spatialReference": {"wkid": 4326},
        }
        geometry_type = "esriGeometryEnvelope"
    return {
        "f": "json",
        "where": "1=1",
        "returnGeometry": "false",
        "outFields": "*",
        "geometry": json.dumps(geometry, separators=(",", ":")),
        "geometryType": geometry_type,
        "inSR": 4326,
        "spatialRel": "esriSpatialRelIntersects",
    }


def first_feature_properties(source: RegistrySource, data: Any) -> Optional[dict]:
    """Properties of the first feature: GeoJSON ``properties`` or Esri ``attributes``."""
    feature = first_item(data)
    if feature is None:
        return None
    key = "properties" if source is RegistrySource.PRIMARY else "attributes"
    props = feature.get(key)
    if isinstance(props, dict) and props:
        return props
    return None


# ──────────────────────────────────────────────────────────────────
# NORMALISATION
# ──────────────────────────────────────────────────────────────────

# Logical field -> property names used by the various registries, first present wins
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "neighbourhood_name": ("WK_NAAM", "wk_naam", "BU_NAAM", "Buurtnaam", "BUURTNAAM", "BUURT_NAAM"),
    "municipality_name": ("GM_NAAM", "gm_naam", "Gemeentenaam", "GM_NAAM2023"),
    "neighbourhood_code": ("BU_CODE", "BUURTCODE", "BU_CODE_2023", "bu_code"),
    "dwellings": ("AANTAL_WONINGEN", "WONINGEN", "aantal_woningen"),
}

# Total-area property names with the factor that converts them to km²
AREA_ALIASES: tuple[tuple[str, float], ...] = (
    ("OPP_TOT", 1e-6),
    ("OPP_TOTAAL", 1e-6),
    ("OPP_TOT_M2", 1e-6),
    ("OPP_TOT_KM2", 1.0),
)


def _present(value: Any) -> bool:
    return value is not None and value != ""


def first_present(props: dict, aliases: Sequence[str]) -> Any:
    for key in aliases:
        if _present(props.get(key)):
            return props[key]
    return None


def _positive_number(value: Any) -> Optional[float]:
    # CBS marks suppressed figures with large negative sentinels
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if number >= 0 else None


def total_area_km2(props: dict) -> Optional[float]:
    for key, to_km2 in AREA_ALIASES:
        if _present(props.get(key)):
            area = _positive_number(props[key])
            return area * to_km2 if area else None
    return None


def normalize_properties(props: dict) -> dict:
    """Map raw registry properties onto NeighbourhoodStats fields."""
    name = first_present(props, FIELD_ALIASES["neighbourhood_name"])
    municipality = first_present(props, FIELD_ALIASES["municipality_name"])
    code = first_present(props, FIELD_ALIASES["neighbourhood_code"])
    dwellings = _positive_number(first_present(props, FIELD_ALIASES["dwellings"]))
    area_km2 = total_area_km2(props)

    density = None
    if dwellings is not None and area_km2:
        density = round_int(dwellings / area_km2)

    return {
        "neighbourhood_name": str(name) if name is not None else None,
        "municipality_name": str(municipality) if municipality is not None else None,
        "neighbourhood_code": str(code) if code is not None else None,
        "dwelling_density_per_km2": density,
    }


# ──────────────────────────────────────────────────────────────────
# RESOLUTION
# ──────────────────────────────────────────────────────────────────

async def _run_strategy(
    strategy: NeighbourhoodStrategy,
    coord: Coordinate,
    fetcher: RetryableFetcher,
) -> tuple[Optional[dict], str]:
    params = strategy_params(strategy, coord, settings.neighbourhood_bbox_pad)
    try:
        data = await fetcher.fetch_json(strategy.endpoint, params=params)
    except (httpx.HTTPError, FetchError, ValueError) as e:
        return None, f"error ({type(e).__name__}: {e})"

    props = first_feature_properties(strategy.source, data)
    return props, "ok" if props else "empty"


async def fetch_neighbourhood_stats(
    coord: Coordinate,
    fetcher: Optional[RetryableFetcher] = None,
    strategies: Optional[Sequence[NeighbourhoodStrategy]] = None,
) -> NeighbourhoodStats:
    """Walk the fallback chain for ``coord``; never raises for upstream failures."""
    fetcher = fetcher or RetryableFetcher(attempts=settings.neighbourhood_fetch_attempts)
    if strategies is None:
        strategies = build_strategies()

    attempts: list[str] = []
    for strategy in strategies:
        props, outcome = await _run_strategy(strategy, coord, fetcher)
        attempts.append(f"{strategy.describe()}: {outcome}")
        logger.debug("Neighbourhood strategy %s -> %s", strategy.describe(), outcome)
        if props:
            logger.info(
                "Neighbourhood for %s,%s resolved via %s",
                coord.latitude, coord.longitude, strategy.describe(),
            )
            return NeighbourhoodStats(
                **normalize_properties(props),
                source=strategy.source,
                attempts=attempts,
            )

    logger.info(
        "No neighbourhood for %s,%s after %d strategies",
        coord.latitude, coord.longitude, len(attempts),
    )
    return NeighbourhoodStats(note=NOT_FOUND_NOTE, attempts=attempts)

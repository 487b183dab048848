"""
Footprint geometry: planar area of a lat/lon outline and query envelopes.

Area uses the spherical Web-Mercator projection (x = R·λ, y = R·ln tan(π/4 + φ/2))
followed by the shoelace formula.  Good enough for outlines a few hundred
metres across.  No distortion correction and no self-intersection check:
a bow-tie ring gives a deterministic but meaningless number.
"""

from __future__ import annotations

import math
from typing import Sequence

from shapely.geometry import MultiPolygon, Polygon as ShapelyPolygon, shape as shapely_shape

from app.models.schemas import Coordinate

EARTH_RADIUS_M = 6378137.0


def project_web_mercator(coord: Coordinate) -> tuple[float, float]:
    """Project a coordinate to spherical Web-Mercator metres (x, y)."""
    x = math.radians(coord.longitude) * EARTH_RADIUS_M
    y = math.log(math.tan(math.pi / 4 + math.radians(coord.latitude) / 2)) * EARTH_RADIUS_M
    return x, y


def signed_ring_area(points: Sequence[tuple[float, float]]) -> float:
    """Shoelace sum / 2 over an implicitly closed ring. Positive = counter-clockwise."""
    total = 0.0
    n = len(points)
    for i in range(n):
        x1, y1 = points[i]
        x2, y2 = points[(i + 1) % n]
        total += x1 * y2 - x2 * y1
    return total / 2


def polygon_area_sqm(polygon: Sequence[Coordinate]) -> float:
    """Area in m² of a (lat, lon) ring. Fewer than 3 points yields 0."""
    if len(polygon) < 3:
        return 0.0
    projected = [project_web_mercator(c) for c in polygon]
    return abs(signed_ring_area(projected))


# ──────────────────────────────────────────────────────────────────
# GEOJSON → POLYGON
# ──────────────────────────────────────────────────────────────────

def outline_from_geojson(geometry: dict) -> list[Coordinate] | None:
    """Outer ring of a GeoJSON Polygon / first part of a MultiPolygon.

    GeoJSON is (lon, lat); the result is swapped to (lat, lon) and the
    repeated closing point is dropped.  Returns None for anything else.
    """
    geom = shapely_shape(geometry)
    if isinstance(geom, MultiPolygon):
        if geom.is_empty:
            return None
        geom = geom.geoms[0]
    if not isinstance(geom, ShapelyPolygon) or geom.is_empty:
        return None

    ring = [Coordinate(latitude=c[1], longitude=c[0]) for c in geom.exterior.coords]
    if len(ring) > 1 and ring[0] == ring[-1]:
        ring = ring[:-1]
    return ring or None


# ──────────────────────────────────────────────────────────────────
# ENVELOPES
# ──────────────────────────────────────────────────────────────────

def bbox_around(coord: Coordinate, pad_deg: float) -> tuple[float, float, float, float]:
    """Square envelope (minx, miny, maxx, maxy) in lon/lat order."""
    return (
        coord.longitude - pad_deg,
        coord.latitude - pad_deg,
        coord.longitude + pad_deg,
        coord.latitude + pad_deg,
    )


def format_bbox(bbox: tuple[float, float, float, float], crs: str | None = "EPSG:4326") -> str:
    """WFS ``bbox`` parameter value, optionally suffixed with its CRS."""
    text = ",".join(str(v) for v in bbox)
    return f"{text},{crs}" if crs else text

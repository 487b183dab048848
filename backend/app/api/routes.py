from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from app.models.schemas import (
    BenefitEstimate,
    BenefitsRequest,
    BuildingAttributes,
    BuildingLookup,
    LocalDensity,
    NeighbourhoodStats,
)
from app.rooftop_engine.benefits import compute_benefits
from app.services.bag import fetch_building_attributes
from app.services.building import lookup
from app.services.density import estimate_local_density
from app.services.geocoding import parse_lat_lng
from app.services.neighbourhood import fetch_neighbourhood_stats

router = APIRouter(prefix="/api")


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get("/geo/cbs", response_model=NeighbourhoodStats)
async def get_neighbourhood(lat: Optional[str] = Query(None), lng: Optional[str] = Query(None)):
    """CBS neighbourhood name, municipality and dwelling density for a point."""
    coord = parse_lat_lng(lat, lng)
    return await fetch_neighbourhood_stats(coord)


@router.get("/geo/bag", response_model=BuildingAttributes)
async def get_building_attributes(lat: Optional[str] = Query(None), lng: Optional[str] = Query(None)):
    """BAG construction year and intended use of the building at a point."""
    coord = parse_lat_lng(lat, lng)
    return await fetch_building_attributes(coord)


@router.get("/geo/bag/density", response_model=LocalDensity)
async def get_local_density(lat: Optional[str] = Query(None), lng: Optional[str] = Query(None)):
    """Dwellings per km² from BAG verblijfsobjecten around a point."""
    coord = parse_lat_lng(lat, lng)
    return await estimate_local_density(coord)


@router.get("/lookup", response_model=BuildingLookup)
async def lookup_address(address: str = Query("", description="Dutch street address")):
    """Resolve an address to its building record and neighbourhood context."""
    result = await lookup(address)
    if result is None:
        return error_response(f"Address not found: {address.strip()}", 404)
    return result


@router.post("/benefits", response_model=BenefitEstimate)
async def benefits(request: BenefitsRequest):
    """Rooftop potential for a footprint area and configuration."""
    cfg = request.config
    return compute_benefits(
        request.footprint_area_m2,
        cfg.floors,
        cfg.typology,
        cfg.features,
        height_m=request.height_m,
    )

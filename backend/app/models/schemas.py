from __future__ import annotations

import math
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Coordinate(BaseModel):
    """WGS84 point in degrees. Always (latitude, longitude) inside the app."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float

    @field_validator("latitude")
    @classmethod
    def _check_latitude(cls, v: float) -> float:
        if not math.isfinite(v) or not -90 <= v <= 90:
            raise ValueError(f"latitude must be a finite number in [-90, 90], got {v}")
        return v

    @field_validator("longitude")
    @classmethod
    def _check_longitude(cls, v: float) -> float:
        if not math.isfinite(v) or not -180 <= v <= 180:
            raise ValueError(f"longitude must be a finite number in [-180, 180], got {v}")
        return v


# Ordered ring, closing point not repeated. A single point means "no outline".
Polygon = list[Coordinate]


class BuildingAttributes(BaseModel):
    construction_year: Optional[int] = None
    intended_use: list[str] = []


class BuildingRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    address: str
    coordinate: Coordinate
    footprint: Polygon
    footprint_area_m2: float
    height_m: float
    building_type: Literal["residential", "mixed", "commercial"] = "residential"
    roof_type: Literal["flat", "pitched", "complex"] = "flat"
    construction_year: Optional[int] = None
    footprint_found: bool = False
    height_found: bool = False


class RegistrySource(str, Enum):
    PRIMARY = "pdok"
    SECONDARY = "arcgis"
    NONE = "none"


class NeighbourhoodStats(BaseModel):
    neighbourhood_name: Optional[str] = None
    municipality_name: Optional[str] = None
    dwelling_density_per_km2: Optional[int] = None
    neighbourhood_code: Optional[str] = None
    source: RegistrySource = RegistrySource.NONE
    note: Optional[str] = None
    attempts: list[str] = []  # "<source> <target> <shape>: <outcome>", in evaluation order


class LocalDensity(BaseModel):
    dwellings: int
    area_km2: float
    density_per_km2: int
    envelope: dict[str, float]
    note: str


class BuildingLookup(BaseModel):
    building: BuildingRecord
    neighbourhood: NeighbourhoodStats


# ──────────────────────────────────────────────────────────────────
# ROOFTOP CONFIGURATION & BENEFITS
# ──────────────────────────────────────────────────────────────────

Typology = Literal["setback", "aligned", "penthouse"]


class RooftopFeatures(BaseModel):
    solar_panels: bool = False
    green_roof: bool = False
    water_storage: bool = False


class RooftopConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    typology: Typology = "setback"
    floors: int = Field(default=2, ge=1, le=3)
    features: RooftopFeatures = RooftopFeatures(solar_panels=True)
    style: Literal["modern", "classic", "industrial"] = "modern"


class HousingPotential(BaseModel):
    units: int
    total_area_m2: int
    average_unit_size_m2: int


class SolarPotential(BaseModel):
    panel_count: int
    capacity_kwp: float
    yearly_production_kwh: int


class GreenRoofPotential(BaseModel):
    area_m2: int
    co2_reduction_kg: int


class WaterStoragePotential(BaseModel):
    capacity_m3: float
    retention_area_m2: int


class InvestmentRange(BaseModel):
    low_k: int
    high_k: int


class BenefitEstimate(BaseModel):
    housing: HousingPotential
    solar: Optional[SolarPotential] = None
    green: Optional[GreenRoofPotential] = None
    water: Optional[WaterStoragePotential] = None
    investment_range: InvestmentRange


class BenefitsRequest(BaseModel):
    footprint_area_m2: Optional[float] = Field(default=None, gt=0)
    height_m: Optional[float] = None
    config: RooftopConfig = RooftopConfig()

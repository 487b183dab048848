"""
Rooftop-addition potential for a building.

Deterministic, no I/O.  Given the footprint area and a rooftop
configuration, derives added dwellings, an investment range and the
optional solar / green-roof / water-storage yields.

All coefficients are fixed rule-of-thumb figures for Dutch rooftop
additions.  They are indicative estimates, not a design calculation.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Optional

from app.models.schemas import (
    BenefitEstimate,
    GreenRoofPotential,
    HousingPotential,
    InvestmentRange,
    RooftopConfig,
    RooftopFeatures,
    SolarPotential,
    Typology,
    WaterStoragePotential,
)
from app.rooftop_engine.rounding import round_half_up, round_int

if TYPE_CHECKING:
    from app.models.schemas import BuildingRecord


DEFAULT_FOOTPRINT_AREA_M2 = 400.0

# ──────────────────────────────────────────────────────────────────
# COEFFICIENTS
# ──────────────────────────────────────────────────────────────────

BGO_EFFICIENCY = 0.8  # usable (BGO) / gross (BVO) floor area

AVERAGE_UNIT_SIZE_M2: dict[str, float] = {
    "penthouse": 120,
    "aligned": 65,
    "setback": 75,
}
_DEFAULT_TYPOLOGY = "setback"

# Construction cost per m² BVO, in thousands of euros
INVESTMENT_LOW_K_PER_M2 = 1.8
INVESTMENT_HIGH_K_PER_M2 = 2.2

SOLAR_ROOF_COVERAGE = 0.7
SOLAR_PANEL_AREA_M2 = 1.7
SOLAR_PANEL_KWP = 0.4
SOLAR_YIELD_KWH_PER_KWP = 950

GREEN_ROOF_SHARE = 0.4
GREEN_ROOF_SHARE_WITH_SOLAR = 0.3
GREEN_ROOF_CO2_KG_PER_M2 = 2

WATER_M3_PER_M2 = 0.08
WATER_M3_PER_M2_WITH_GREEN = 0.03


def average_unit_size(typology: str) -> float:
    return AVERAGE_UNIT_SIZE_M2.get(typology, AVERAGE_UNIT_SIZE_M2[_DEFAULT_TYPOLOGY])


def estimate_solar(footprint_area: float) -> SolarPotential:
    panels = math.floor(footprint_area * SOLAR_ROOF_COVERAGE / SOLAR_PANEL_AREA_M2)
    return SolarPotential(
        panel_count=panels,
        capacity_kwp=round_half_up(panels * SOLAR_PANEL_KWP, 1),
        yearly_production_kwh=round_int(panels * SOLAR_PANEL_KWP * SOLAR_YIELD_KWH_PER_KWP),
    )


def estimate_green_roof(footprint_area: float, with_solar: bool) -> GreenRoofPotential:
    share = GREEN_ROOF_SHARE_WITH_SOLAR if with_solar else GREEN_ROOF_SHARE
    area = footprint_area * share
    return GreenRoofPotential(
        area_m2=round_int(area),
        co2_reduction_kg=round_int(area * GREEN_ROOF_CO2_KG_PER_M2),
    )


def estimate_water_storage(footprint_area: float, with_green_roof: bool) -> WaterStoragePotential:
    per_m2 = WATER_M3_PER_M2_WITH_GREEN if with_green_roof else WATER_M3_PER_M2
    return WaterStoragePotential(
        capacity_m3=round_half_up(footprint_area * per_m2, 1),
        retention_area_m2=round_int(footprint_area),
    )


def compute_benefits(
    footprint_area_m2: Optional[float],
    floors: int,
    typology: Typology,
    features: RooftopFeatures,
    height_m: Optional[float] = None,
) -> BenefitEstimate:
    """Derive the rooftop potential.

    ``floors`` must already be validated (1..3).  ``height_m`` is accepted
    for context only; it does not enter the calculation.
    """
    footprint = footprint_area_m2 if footprint_area_m2 is not None else DEFAULT_FOOTPRINT_AREA_M2

    bvo = footprint * floors
    bgo = bvo * BGO_EFFICIENCY
    unit_size = average_unit_size(typology)
    units = max(1, math.floor(bgo / unit_size))

    return BenefitEstimate(
        housing=HousingPotential(
            units=units,
            total_area_m2=round_int(bgo),
            average_unit_size_m2=round_int(unit_size),
        ),
        solar=estimate_solar(footprint) if features.solar_panels else None,
        green=estimate_green_roof(footprint, features.solar_panels) if features.green_roof else None,
        water=estimate_water_storage(footprint, features.green_roof) if features.water_storage else None,
        investment_range=InvestmentRange(
            low_k=round_int(bvo * INVESTMENT_LOW_K_PER_M2),
            high_k=round_int(bvo * INVESTMENT_HIGH_K_PER_M2),
        ),
    )


def calculate_benefits(building: "BuildingRecord", config: RooftopConfig) -> BenefitEstimate:
    return compute_benefits(
        building.footprint_area_m2,
        config.floors,
        config.typology,
        config.features,
        height_m=building.height_m,
    )


def format_investment_range(investment: InvestmentRange) -> str:
    return f"€{investment.low_k}k - €{investment.high_k}k"

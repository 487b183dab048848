from __future__ import annotations

from app.models.schemas import (
    BenefitEstimate,
    BuildingRecord,
    Coordinate,
    NeighbourhoodStats,
    RooftopConfig,
)

__all__ = ["BenefitEstimate", "BuildingRecord", "Coordinate", "NeighbourhoodStats", "RooftopConfig"]

"""Live checks against PDOK / 3D BAG / CBS. Run with ``pytest -m integration``."""

from __future__ import annotations

import pytest

from app.models.schemas import RegistrySource
from app.services.building import lookup
from app.services.geocoding import geocode_address

pytestmark = pytest.mark.integration


@pytest.mark.asyncio
async def test_geocode_dam_square():
    coord = await geocode_address("Dam 1, Amsterdam")
    assert coord is not None
    assert coord.latitude == pytest.approx(52.373, abs=0.01)
    assert coord.longitude == pytest.approx(4.893, abs=0.01)


@pytest.mark.asyncio
async def test_lookup_canal_house():
    result = await lookup("Herengracht 182, Amsterdam")
    assert result is not None

    building = result.building
    assert building.footprint_area_m2 > 0
    assert building.height_m > 0
    if building.footprint_found:
        assert len(building.footprint) >= 3

    stats = result.neighbourhood
    assert len(stats.attempts) >= 1
    if stats.source is not RegistrySource.NONE:
        assert stats.neighbourhood_name

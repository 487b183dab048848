"""Tests for the address → building record pipeline."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from app.models.schemas import (
    BuildingAttributes,
    Coordinate,
    NeighbourhoodStats,
    RegistrySource,
)
from app.rooftop_engine.rounding import round_int
from app.services.building import building_id, lookup, resolve_building
from app.services.errors import InputError
from app.services.geometry import polygon_area_sqm

DAM = Coordinate(latitude=52.373, longitude=4.8924)

# Small block near the Dam
OUTLINE = [
    Coordinate(latitude=52.3729, longitude=4.8922),
    Coordinate(latitude=52.3729, longitude=4.89249),
    Coordinate(latitude=52.37308, longitude=4.89249),
    Coordinate(latitude=52.37308, longitude=4.8922),
]

MODULE = "app.services.building"


def _patch_chain(coord=DAM, outline=OUTLINE, height=17.5, attributes=None):
    return (
        patch(f"{MODULE}.geocode_address", new_callable=AsyncMock, return_value=coord),
        patch(f"{MODULE}.fetch_footprint", new_callable=AsyncMock, return_value=outline),
        patch(f"{MODULE}.fetch_building_height", new_callable=AsyncMock, return_value=height),
        patch(
            f"{MODULE}.fetch_building_attributes",
            new_callable=AsyncMock,
            return_value=attributes or BuildingAttributes(),
        ),
    )


class TestBuildingId:
    def test_six_decimals(self):
        assert building_id(DAM) == "bag:52.373000,4.892400"


class TestResolveBuilding:
    @pytest.mark.asyncio
    async def test_found_building(self):
        geo, fp, ht, attrs = _patch_chain(
            attributes=BuildingAttributes(construction_year=1905, intended_use=["winkelfunctie", "woonfunctie"]),
        )
        with geo, fp, ht, attrs:
            record = await resolve_building("Dam 1, Amsterdam", fetcher=object())

        assert record.address == "Dam 1, Amsterdam"
        assert record.coordinate == DAM
        assert record.footprint == OUTLINE
        assert record.footprint_found is True
        assert record.footprint_area_m2 == round_int(polygon_area_sqm(OUTLINE))
        assert record.height_m == 17.5
        assert record.height_found is True
        assert record.building_type == "mixed"
        assert record.roof_type == "flat"
        assert record.construction_year == 1905

    @pytest.mark.asyncio
    async def test_defaults_when_nothing_found(self):
        geo, fp, ht, attrs = _patch_chain(outline=None, height=None)
        with geo, fp, ht, attrs:
            record = await resolve_building("Dam 1, Amsterdam", fetcher=object())

        assert record.footprint_area_m2 == 400
        assert record.height_m == 12
        assert record.footprint == [DAM]
        assert record.footprint_found is False
        assert record.height_found is False
        assert record.building_type == "residential"

    @pytest.mark.asyncio
    async def test_address_not_found(self):
        geo, fp, ht, attrs = _patch_chain(coord=None)
        with geo, fp as mock_fp, ht, attrs:
            assert await resolve_building("Nowhere 999", fetcher=object()) is None
            mock_fp.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_address(self):
        with pytest.raises(InputError):
            await resolve_building("   ", fetcher=object())

    @pytest.mark.asyncio
    async def test_address_is_trimmed(self):
        geo, fp, ht, attrs = _patch_chain()
        with geo as mock_geo, fp, ht, attrs:
            record = await resolve_building("  Dam 1 ", fetcher=object())

        assert record.address == "Dam 1"
        assert mock_geo.await_args.args[0] == "Dam 1"


class TestLookup:
    @pytest.mark.asyncio
    async def test_building_with_neighbourhood(self):
        stats = NeighbourhoodStats(
            neighbourhood_name="Burgwallen-Oude Zijde",
            municipality_name="Amsterdam",
            dwelling_density_per_km2=9200,
            source=RegistrySource.PRIMARY,
        )
        geo, fp, ht, attrs = _patch_chain()
        nb = patch(f"{MODULE}.fetch_neighbourhood_stats", new_callable=AsyncMock, return_value=stats)
        with geo, fp, ht, attrs, nb as mock_nb:
            result = await lookup("Dam 1, Amsterdam", fetcher=object())

        assert result.building.coordinate == DAM
        assert result.neighbourhood == stats
        assert mock_nb.await_args.args[0] == DAM

    @pytest.mark.asyncio
    async def test_not_found_skips_neighbourhood(self):
        geo, fp, ht, attrs = _patch_chain(coord=None)
        nb = patch(f"{MODULE}.fetch_neighbourhood_stats", new_callable=AsyncMock)
        with geo, fp, ht, attrs, nb as mock_nb:
            assert await lookup("Nowhere 999", fetcher=object()) is None
            mock_nb.assert_not_called()

    @pytest.mark.asyncio
    async def test_building_failure_cancels_neighbourhood(self):
        started = []

        async def slow_neighbourhood(coord, fetcher=None):
            started.append(asyncio.current_task())
            await asyncio.sleep(10)

        async def broken_footprint(coord, fetcher=None):
            await asyncio.sleep(0)
            raise RuntimeError("footprint exploded")

        geo, _, ht, attrs = _patch_chain()
        fp = patch(f"{MODULE}.fetch_footprint", side_effect=broken_footprint)
        nb = patch(f"{MODULE}.fetch_neighbourhood_stats", side_effect=slow_neighbourhood)
        with geo, fp, ht, attrs, nb:
            with pytest.raises(RuntimeError, match="footprint exploded"):
                await lookup("Dam 1, Amsterdam", fetcher=object())

        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert len(started) == 1
        assert started[0].cancelled()

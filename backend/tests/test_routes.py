"""Tests for the HTTP surface."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models.schemas import (
    BuildingAttributes,
    BuildingLookup,
    BuildingRecord,
    Coordinate,
    LocalDensity,
    NeighbourhoodStats,
    RegistrySource,
)

ROUTES = "app.api.routes"
DAM = Coordinate(latitude=52.373, longitude=4.8924)


@pytest.fixture
def client():
    return TestClient(app, raise_server_exceptions=False)


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"


class TestNeighbourhoodRoute:
    def test_returns_stats(self, client):
        stats = NeighbourhoodStats(
            neighbourhood_name="Burgwallen-Oude Zijde",
            municipality_name="Amsterdam",
            dwelling_density_per_km2=9200,
            neighbourhood_code="BU03630000",
            source=RegistrySource.PRIMARY,
        )
        with patch(f"{ROUTES}.fetch_neighbourhood_stats", new_callable=AsyncMock, return_value=stats) as mock:
            resp = client.get("/api/geo/cbs", params={"lat": "52.373", "lng": "4.8924"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["neighbourhood_name"] == "Burgwallen-Oude Zijde"
        assert body["source"] == "pdok"
        assert mock.await_args.args[0] == DAM

    @pytest.mark.parametrize("params", [
        {},
        {"lat": "52.373"},
        {"lat": "abc", "lng": "4.89"},
        {"lat": "52.373", "lng": "nan"},
        {"lat": "91", "lng": "4.89"},
    ])
    def test_bad_coordinates(self, client, params):
        with patch(f"{ROUTES}.fetch_neighbourhood_stats", new_callable=AsyncMock) as mock:
            resp = client.get("/api/geo/cbs", params=params)

        assert resp.status_code == 400
        assert "error" in resp.json()
        mock.assert_not_called()

    def test_unexpected_failure_is_500(self, client):
        with patch(f"{ROUTES}.fetch_neighbourhood_stats", new_callable=AsyncMock, side_effect=RuntimeError("boom")):
            resp = client.get("/api/geo/cbs", params={"lat": "52.373", "lng": "4.8924"})

        assert resp.status_code == 500
        assert resp.json() == {"error": "boom"}


class TestBagRoutes:
    def test_attributes(self, client):
        attrs = BuildingAttributes(construction_year=1913, intended_use=["woonfunctie"])
        with patch(f"{ROUTES}.fetch_building_attributes", new_callable=AsyncMock, return_value=attrs):
            resp = client.get("/api/geo/bag", params={"lat": "52.373", "lng": "4.8924"})

        assert resp.status_code == 200
        assert resp.json() == {"construction_year": 1913, "intended_use": ["woonfunctie"]}

    def test_density(self, client):
        density = LocalDensity(
            dwellings=120,
            area_km2=0.7391,
            density_per_km2=162,
            envelope={"minx": 4.8875, "miny": 52.368, "maxx": 4.8973, "maxy": 52.378},
            note="BAG approximation",
        )
        with patch(f"{ROUTES}.estimate_local_density", new_callable=AsyncMock, return_value=density):
            resp = client.get("/api/geo/bag/density", params={"lat": "52.373", "lng": "4.8924"})

        assert resp.status_code == 200
        assert resp.json()["density_per_km2"] == 162

    def test_density_missing_lng(self, client):
        resp = client.get("/api/geo/bag/density", params={"lat": "52.373"})
        assert resp.status_code == 400


class TestLookupRoute:
    def test_found(self, client):
        building = BuildingRecord(
            id="bag:52.373000,4.892400",
            address="Dam 1, Amsterdam",
            coordinate=DAM,
            footprint=[DAM],
            footprint_area_m2=400,
            height_m=12,
        )
        result = BuildingLookup(building=building, neighbourhood=NeighbourhoodStats())
        with patch(f"{ROUTES}.lookup", new_callable=AsyncMock, return_value=result):
            resp = client.get("/api/lookup", params={"address": "Dam 1, Amsterdam"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["building"]["footprint_area_m2"] == 400
        assert body["neighbourhood"]["source"] == "none"

    def test_not_found(self, client):
        with patch(f"{ROUTES}.lookup", new_callable=AsyncMock, return_value=None):
            resp = client.get("/api/lookup", params={"address": " Nowhere 999 "})

        assert resp.status_code == 404
        assert resp.json() == {"error": "Address not found: Nowhere 999"}

    def test_missing_address(self, client):
        resp = client.get("/api/lookup")
        assert resp.status_code == 400
        assert "error" in resp.json()


class TestBenefitsRoute:
    def test_reference_building(self, client):
        resp = client.post("/api/benefits", json={
            "footprint_area_m2": 400,
            "height_m": 12,
            "config": {"typology": "setback", "floors": 2, "features": {"solar_panels": True}},
        })

        assert resp.status_code == 200
        body = resp.json()
        assert body["housing"]["units"] == 8
        assert body["investment_range"] == {"low_k": 1440, "high_k": 1760}
        assert body["solar"]["panel_count"] == 164
        assert body["green"] is None

    def test_defaults(self, client):
        resp = client.post("/api/benefits", json={})
        assert resp.status_code == 200
        assert resp.json()["housing"]["total_area_m2"] == 640

    @pytest.mark.parametrize("floors", [0, 4])
    def test_floors_out_of_range(self, client, floors):
        resp = client.post("/api/benefits", json={"config": {"floors": floors}})
        assert resp.status_code == 400
        assert "floors" in resp.json()["error"]

    def test_non_positive_area(self, client):
        resp = client.post("/api/benefits", json={"footprint_area_m2": 0})
        assert resp.status_code == 400

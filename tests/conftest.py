# tests/conftest.py
from datetime import datetime
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from models import Coordinates, Vehicle, Zone
from services.evacuation_service import EvacuationService


def _make_zone(
    zone_id: str,
    lat: Optional[float],
    lon: Optional[float],
    population: int,
    urgency_level: int,
    evacuated: int = 0,
) -> Zone:
    coords = Coordinates(latitude=lat, longitude=lon) if lat is not None else None
    return Zone(
        id=zone_id,
        external_id=zone_id,
        coordinates=coords,
        population=population,
        urgency_level=urgency_level,
        evacuated=evacuated,
    )


def _make_vehicle(
    vehicle_id: str,
    lat: Optional[float],
    lon: Optional[float],
    capacity: int,
    speed: Optional[float] = 60.0,
    vtype: str = "bus",
) -> Vehicle:
    coords = Coordinates(latitude=lat, longitude=lon) if lat is not None else None
    return Vehicle(
        id=vehicle_id,
        external_id=vehicle_id,
        coordinates=coords,
        capacity=capacity,
        type=vtype,
        speed=speed,
    )


@pytest.fixture
def make_zone():
    return _make_zone


@pytest.fixture
def make_vehicle():
    return _make_vehicle


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 1, 15, 10, 0, 0)


@pytest.fixture
def service() -> EvacuationService:
    return EvacuationService()


@pytest.fixture
def client(monkeypatch, service):
    """
    TestClient bound to a fresh service so tests never share registry state.
    """
    import main

    monkeypatch.setattr(main, "service", service)
    return TestClient(main.app)

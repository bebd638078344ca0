import json

import pytest

from services.errors import ValidationError
from services.registry import EvacuationRegistry
from utils.data_loader import load_vehicles, load_zones, seed_registry

ZONE = {
    "zoneId": "Z1",
    "locationCoordinates": {"latitude": 13.75, "longitude": 100.5},
    "numberOfPeople": 25,
    "urgencyLevel": 3,
}
VEHICLE = {
    "vehicleId": "V1",
    "capacity": 10,
    "type": "boat",
    "locationCoordinates": {"latitude": 13.76, "longitude": 100.5},
    "speed": 20,
}


def test_load_wrapped_and_bare_lists(tmp_path):
    wrapped = tmp_path / "zones.json"
    wrapped.write_text(json.dumps({"zones": [ZONE]}))
    bare = tmp_path / "vehicles.json"
    bare.write_text(json.dumps([VEHICLE]))

    assert load_zones(wrapped) == [ZONE]
    assert load_vehicles(bare) == [VEHICLE]


def test_seed_registry(tmp_path):
    (tmp_path / "zones.json").write_text(json.dumps({"zones": [ZONE]}))
    (tmp_path / "vehicles.json").write_text(json.dumps({"vehicles": [VEHICLE]}))
    registry = EvacuationRegistry()

    seed_registry(registry, tmp_path)

    assert [z.id for z in registry.list_zones()] == ["Z1"]
    assert [v.id for v in registry.list_vehicles()] == ["V1"]


def test_seed_registry_skips_missing_files(tmp_path):
    (tmp_path / "vehicles.json").write_text(json.dumps([VEHICLE]))
    registry = EvacuationRegistry()

    seed_registry(registry, tmp_path)

    assert registry.list_zones() == []
    assert len(registry.list_vehicles()) == 1


def test_seed_registry_propagates_invalid_data(tmp_path):
    (tmp_path / "zones.json").write_text(json.dumps([{**ZONE, "numberOfPeople": 0}]))

    with pytest.raises(ValidationError):
        seed_registry(EvacuationRegistry(), tmp_path)

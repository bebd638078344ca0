import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from services.registry import EvacuationRegistry

logger = logging.getLogger(__name__)


def _load_items(path: Union[str, Path], key: str) -> List[Dict[str, Any]]:
    with open(path) as f:
        data = json.load(f)
    # Either {"zones": [...]} or a bare list
    return data[key] if isinstance(data, dict) else data


def load_zones(path: Union[str, Path]) -> List[Dict[str, Any]]:
    return _load_items(path, "zones")


def load_vehicles(path: Union[str, Path]) -> List[Dict[str, Any]]:
    return _load_items(path, "vehicles")


def seed_registry(registry: EvacuationRegistry, data_dir: Union[str, Path]) -> None:
    """Register `vehicles.json` and `zones.json` from `data_dir`, whichever exist."""
    base = Path(data_dir)
    vehicles_path = base / "vehicles.json"
    zones_path = base / "zones.json"

    if vehicles_path.exists():
        registry.register_vehicles(load_vehicles(vehicles_path))
    if zones_path.exists():
        registry.register_zones(load_zones(zones_path))
    logger.info("SEED data_dir=%s vehicles=%s zones=%s", base, vehicles_path.exists(), zones_path.exists())

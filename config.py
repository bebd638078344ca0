import os
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name, str(default)).strip().lower()
    return v in ("1", "true", "yes", "y", "on")


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return float(default)


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return int(default)


DEFAULT_SPEED_KMH = _env_float("EVAC_DEFAULT_SPEED_KMH", 40.0)
DEFAULT_MAX_DISTANCE_KM = _env_float("EVAC_MAX_DISTANCE_KM", 100.0)

PLAN_CACHE_ENABLED = _env_bool("EVAC_PLAN_CACHE_ENABLED", True)
PLAN_CACHE_TTL_S = _env_int("EVAC_PLAN_CACHE_TTL_S", 300)

LOG_LEVEL = os.getenv("EVAC_LOG_LEVEL", "INFO")
SEED_DATA_DIR: Optional[str] = os.getenv("EVAC_SEED_DATA_DIR") or None

VEHICLE_TYPES = ("bus", "van", "boat", "truck", "car", "ambulance")
STRATEGIES = ("greedy", "weighted")

import math
from typing import Optional, Sequence

import numpy as np

from models import Coordinates, Vehicle, Zone

EARTH_RADIUS_KM = 6371.0


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    R = EARTH_RADIUS_KM
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return R * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_km(a: Coordinates, b: Coordinates) -> float:
    return haversine(a.latitude, a.longitude, b.latitude, b.longitude)


def travel_time_minutes(distance_km: float, speed_kmh: float) -> float:
    """Minutes needed to cover `distance_km` at `speed_kmh`; infinite if the speed is not positive."""
    if speed_kmh <= 0:
        return math.inf
    return (distance_km / speed_kmh) * 60


def _coords_array(points: Sequence[Optional[Coordinates]]) -> np.ndarray:
    out = np.full((len(points), 2), np.nan, dtype=float)
    for i, p in enumerate(points):
        if p is not None:
            out[i, 0] = p.latitude
            out[i, 1] = p.longitude
    return out


def compute_distance_matrix(zones: Sequence[Zone], vehicles: Sequence[Vehicle]) -> np.ndarray:
    """
    Returns matrix[i, j] = distance_km between zones[i] and vehicles[j].
    Pairs where either side lacks coordinates are NaN.
    """
    if not zones or not vehicles:
        return np.full((len(zones), len(vehicles)), np.nan, dtype=float)

    z = np.radians(_coords_array([zone.coordinates for zone in zones]))
    v = np.radians(_coords_array([vehicle.coordinates for vehicle in vehicles]))

    lat1 = z[:, 0][:, None]
    lon1 = z[:, 1][:, None]
    lat2 = v[:, 0][None, :]
    lon2 = v[:, 1][None, :]

    a = np.sin((lat2 - lat1) / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin((lon2 - lon1) / 2) ** 2
    # Rounding can push `a` a hair outside [0, 1]
    a = np.clip(a, 0.0, 1.0)
    return EARTH_RADIUS_KM * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def pair_distance(matrix: np.ndarray, zone_idx: int, vehicle_idx: int) -> Optional[float]:
    d = matrix[zone_idx, vehicle_idx]
    if np.isnan(d):
        return None
    return float(d)

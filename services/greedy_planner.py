import logging
import math
from typing import List, Optional, Sequence

from config import DEFAULT_SPEED_KMH
from models import Assignment, Vehicle, Zone
from utils.distance_matrix import compute_distance_matrix, distance_km, pair_distance, travel_time_minutes

logger = logging.getLogger(__name__)


def sort_zones_by_urgency(zones: Sequence[Zone]) -> List[int]:
    """Zone indices, most urgent first; equal urgency keeps input order."""
    return sorted(range(len(zones)), key=lambda i: (-zones[i].urgency_level, i))


def _pair_distance(zone: Zone, vehicle: Vehicle, distances: Optional[Sequence[Optional[float]]], idx: int) -> Optional[float]:
    if zone.coordinates is None or vehicle.coordinates is None:
        return None
    if distances is not None:
        return distances[idx]
    return distance_km(zone.coordinates, vehicle.coordinates)


def choose_best_vehicle_greedy(
    zone: Zone,
    vehicles: Sequence[Vehicle],
    distances: Optional[Sequence[Optional[float]]] = None,
    speed_fallback_kmh: float = DEFAULT_SPEED_KMH,
    max_distance_km: Optional[float] = None,
    prefer_fewer_trips: bool = False,
) -> Optional[int]:
    """
    Index of the vehicle with the lowest `eta + wasted seats` score, or None.

    `distances[j]` may carry a precomputed zone-to-vehicle distance for
    `vehicles[j]`. Ties keep the first vehicle encountered, or the larger one
    when `prefer_fewer_trips` is set.
    """
    remaining = zone.remaining
    if remaining <= 0:
        return None

    best_idx: Optional[int] = None
    best_score = math.inf
    for j, v in enumerate(vehicles):
        if v.capacity <= 0:
            continue
        dist = _pair_distance(zone, v, distances, j)
        if dist is None:
            continue
        if max_distance_km is not None and dist > max_distance_km:
            continue

        eta = travel_time_minutes(dist, v.effective_speed(speed_fallback_kmh))
        wasted_capacity = max(0, v.capacity - remaining)
        score = eta + wasted_capacity
        tie_break = (
            prefer_fewer_trips
            and best_idx is not None
            and score == best_score
            and v.capacity > vehicles[best_idx].capacity
        )
        if score < best_score or tie_break:
            best_score = score
            best_idx = j

    return best_idx


def generate_greedy_plan(
    zones: Sequence[Zone],
    vehicles: Sequence[Vehicle],
    speed_fallback_kmh: float = DEFAULT_SPEED_KMH,
    max_distance_km: Optional[float] = None,
    allow_multi_vehicle: bool = True,
    prefer_fewer_trips: bool = False,
) -> List[Assignment]:
    """
    Drain each zone, most urgent first, with the best-scoring vehicle that still
    has seats, one vehicle at a time and without lookahead.

    Works on deep copies; the caller's zones and vehicles are left untouched.
    With `allow_multi_vehicle=False` a zone gets at most one vehicle.
    `prefer_fewer_trips` breaks score ties toward the larger vehicle.
    """
    zones_wc = [z.model_copy(deep=True) for z in zones]
    vehicles_wc = [v.model_copy(deep=True) for v in vehicles]
    matrix = compute_distance_matrix(zones_wc, vehicles_wc)

    plan: List[Assignment] = []
    for zi in sort_zones_by_urgency(zones_wc):
        zone = zones_wc[zi]
        if zone.coordinates is None:
            continue
        row = [pair_distance(matrix, zi, j) for j in range(len(vehicles_wc))]

        while zone.remaining > 0:
            j = choose_best_vehicle_greedy(
                zone, vehicles_wc, row, speed_fallback_kmh, max_distance_km, prefer_fewer_trips
            )
            if j is None:
                logger.debug("GREEDY zone=%s left with %d unserved", zone.display_id, zone.remaining)
                break

            vehicle = vehicles_wc[j]
            assigned = min(vehicle.capacity, zone.remaining)
            eta = travel_time_minutes(row[j], vehicle.effective_speed(speed_fallback_kmh))
            plan.append(
                Assignment(
                    zone_id=zone.display_id,
                    vehicle_id=vehicle.display_id,
                    eta_minutes=eta,
                    evacuated=assigned,
                )
            )
            zone.evacuated += assigned
            vehicle.capacity -= assigned

            if not allow_multi_vehicle:
                break

    logger.info("GREEDY zones=%d vehicles=%d assignments=%d", len(zones_wc), len(vehicles_wc), len(plan))
    return plan

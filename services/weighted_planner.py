import logging
import math
from typing import List, Optional, Sequence

from config import DEFAULT_SPEED_KMH
from models import Assignment, Vehicle, Zone
from services.greedy_planner import sort_zones_by_urgency
from utils.distance_matrix import compute_distance_matrix, distance_km, pair_distance, travel_time_minutes

logger = logging.getLogger(__name__)

# Priority: urgency > capacity fit > distance > ETA.
# Each weight exceeds the largest possible sum of the ones below it.
URGENCY_WEIGHT = 10000
CAPACITY_WEIGHT = 1000
DISTANCE_WEIGHT = 100
ETA_WEIGHT = 10

DISTANCE_CLAMP_KM = 100.0
ETA_CLAMP_MINUTES = 300.0


def calculate_weighted_score(
    zone: Zone,
    vehicle: Vehicle,
    distance: Optional[float] = None,
    speed_fallback_kmh: float = DEFAULT_SPEED_KMH,
) -> float:
    """
    Weighted cost of sending `vehicle` to `zone`; lower is better.

    Pairs missing coordinates, vehicles without seats and vehicles whose
    travel time is infinite score `inf`.
    """
    if zone.coordinates is None or vehicle.coordinates is None:
        return math.inf
    if vehicle.capacity <= 0:
        return math.inf

    if distance is None:
        distance = distance_km(zone.coordinates, vehicle.coordinates)
    eta = travel_time_minutes(distance, vehicle.effective_speed(speed_fallback_kmh))
    if math.isinf(eta):
        return math.inf

    remaining = zone.remaining
    urgency = min(max(zone.urgency_level, 1), 5)

    urgency_score = URGENCY_WEIGHT * (6 - urgency)
    utilization = min(remaining, vehicle.capacity) / vehicle.capacity
    capacity_score = CAPACITY_WEIGHT * (1 - utilization)
    distance_score = DISTANCE_WEIGHT * (min(distance, DISTANCE_CLAMP_KM) / DISTANCE_CLAMP_KM)
    eta_score = ETA_WEIGHT * (min(eta, ETA_CLAMP_MINUTES) / ETA_CLAMP_MINUTES)

    return urgency_score + capacity_score + distance_score + eta_score


def choose_best_vehicle_weighted(
    zone: Zone,
    vehicles: Sequence[Vehicle],
    distances: Optional[Sequence[Optional[float]]] = None,
    speed_fallback_kmh: float = DEFAULT_SPEED_KMH,
    max_distance_km: Optional[float] = None,
) -> Optional[int]:
    """Index of the lowest-scoring vehicle; equal scores prefer the one carrying more people."""
    remaining = zone.remaining
    if remaining <= 0 or zone.coordinates is None:
        return None

    best_idx: Optional[int] = None
    best_score = math.inf
    best_evacuated = -1
    for j, v in enumerate(vehicles):
        if v.capacity <= 0 or v.coordinates is None:
            continue
        dist = distances[j] if distances is not None else distance_km(zone.coordinates, v.coordinates)
        if dist is None:
            continue
        if max_distance_km is not None and dist > max_distance_km:
            continue

        score = calculate_weighted_score(zone, v, dist, speed_fallback_kmh)
        if math.isinf(score):
            continue
        can_evacuate = min(v.capacity, remaining)
        if score < best_score or (score == best_score and can_evacuate > best_evacuated):
            best_idx = j
            best_score = score
            best_evacuated = can_evacuate

    return best_idx


def generate_weighted_plan(
    zones: Sequence[Zone],
    vehicles: Sequence[Vehicle],
    speed_fallback_kmh: float = DEFAULT_SPEED_KMH,
    max_distance_km: Optional[float] = None,
) -> List[Assignment]:
    """
    Give each zone, most urgent first, the single best vehicle by weighted score.

    A zone whose need exceeds that vehicle's seats stays partially served in
    this pass. Vehicles keep any leftover seats for later zones.
    """
    zones_wc = [z.model_copy(deep=True) for z in zones]
    vehicles_wc = [v.model_copy(deep=True) for v in vehicles]
    matrix = compute_distance_matrix(zones_wc, vehicles_wc)

    plan: List[Assignment] = []
    for zi in sort_zones_by_urgency(zones_wc):
        zone = zones_wc[zi]
        if zone.remaining <= 0:
            continue

        row = [pair_distance(matrix, zi, j) for j in range(len(vehicles_wc))]
        j = choose_best_vehicle_weighted(zone, vehicles_wc, row, speed_fallback_kmh, max_distance_km)
        if j is None:
            continue

        vehicle = vehicles_wc[j]
        evacuated = min(vehicle.capacity, zone.remaining)
        eta = travel_time_minutes(row[j], vehicle.effective_speed(speed_fallback_kmh))
        plan.append(
            Assignment(
                zone_id=zone.display_id,
                vehicle_id=vehicle.display_id,
                eta_minutes=eta,
                evacuated=evacuated,
            )
        )
        zone.evacuated += evacuated
        vehicle.capacity -= evacuated

    logger.info("WEIGHTED zones=%d vehicles=%d assignments=%d", len(zones_wc), len(vehicles_wc), len(plan))
    return plan

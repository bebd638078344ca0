import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from config import STRATEGIES
from models import Assignment, EnrichedAssignment, Plan, PlanOptions, PlanSummary, Vehicle, Zone
from services.errors import ValidationError
from services.greedy_planner import generate_greedy_plan
from services.weighted_planner import generate_weighted_plan
from utils.distance_matrix import distance_km, travel_time_minutes
from utils.time_format import eta_clock, format_travel_time
from utils.zone_labels import urgency_category, zone_location

logger = logging.getLogger(__name__)


def _run_greedy(zones: Sequence[Zone], vehicles: Sequence[Vehicle], options: PlanOptions) -> List[Assignment]:
    return generate_greedy_plan(
        zones,
        vehicles,
        speed_fallback_kmh=options.speed_fallback_kmh,
        max_distance_km=options.max_distance_km,
        allow_multi_vehicle=options.allow_multi_vehicle,
        prefer_fewer_trips=options.prefer_fewer_trips,
    )


def _run_weighted(zones: Sequence[Zone], vehicles: Sequence[Vehicle], options: PlanOptions) -> List[Assignment]:
    return generate_weighted_plan(
        zones,
        vehicles,
        speed_fallback_kmh=options.speed_fallback_kmh,
        max_distance_km=options.max_distance_km,
    )


PLANNERS: Dict[str, Callable[[Sequence[Zone], Sequence[Vehicle], PlanOptions], List[Assignment]]] = {
    "greedy": _run_greedy,
    "weighted": _run_weighted,
}


def _median(values: List[float]) -> float:
    if not values:
        return 0.0
    sorted_vals = sorted(values)
    n = len(sorted_vals)
    mid = n // 2
    if n % 2 == 1:
        return float(sorted_vals[mid])
    return float((sorted_vals[mid - 1] + sorted_vals[mid]) / 2.0)


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def enrich_assignment(
    assignment: Assignment,
    zone: Zone,
    vehicle: Vehicle,
    options: PlanOptions,
    now: Optional[datetime] = None,
) -> EnrichedAssignment:
    speed = vehicle.effective_speed(options.speed_fallback_kmh)
    dist_km = distance_km(zone.coordinates, vehicle.coordinates)
    minutes = travel_time_minutes(dist_km, speed)

    return EnrichedAssignment(
        zone_id=assignment.zone_id,
        vehicle_id=assignment.vehicle_id,
        vehicle_type=vehicle.type,
        vehicle_capacity=vehicle.capacity,
        assigned_zone=zone_location(zone),
        zone_coordinates=zone.coordinates,
        urgency_level=zone.urgency_level,
        urgency_category=urgency_category(zone.urgency_level, zone.urgency),
        priority=6 - zone.urgency_level,
        people_to_evacuate=assignment.evacuated,
        eta_minutes=assignment.eta_minutes,
        distance_km=round(dist_km, 2),
        travel_time_hours=round(minutes / 60.0, 2),
        travel_time_minutes=int(round(minutes)),
        travel_time_formatted=format_travel_time(minutes),
        eta=eta_clock(minutes, now),
        speed_kmh=speed,
    )


def summarize_plan(assignments: Sequence[EnrichedAssignment], zones: Sequence[Zone]) -> PlanSummary:
    """
    Aggregate KPIs for a plan.

    `zones` is the whole registry as it stood before planning: the high-priority
    count and the backlog cover every zone, coverage tallies only zones that
    received at least one assignment.
    """
    total_people = sum(a.people_to_evacuate for a in assignments)
    total_remaining = sum(z.remaining for z in zones)
    coverage = 0.0 if total_remaining <= 0 else (total_people / total_remaining) * 100.0

    distances = [a.distance_km for a in assignments]
    hours = [a.travel_time_hours for a in assignments]
    etas = [a.eta_minutes for a in assignments]

    assigned_per_zone: Dict[str, int] = {}
    for a in assignments:
        assigned_per_zone[a.zone_id] = assigned_per_zone.get(a.zone_id, 0) + a.people_to_evacuate

    fully = 0
    partially = 0
    for z in zones:
        assigned = assigned_per_zone.get(z.display_id)
        if assigned is None:
            continue
        if assigned >= z.remaining:
            fully += 1
        else:
            partially += 1

    return PlanSummary(
        total_vehicles_used=len({a.vehicle_id for a in assignments}),
        total_people_to_evacuate=total_people,
        total_people_remaining=total_remaining,
        coverage_percent=round(coverage, 2),
        high_priority_zones=sum(1 for z in zones if urgency_category(z.urgency_level, z.urgency) == "high"),
        average_distance_km=round(_mean(distances), 2),
        average_travel_time_hours=round(_mean(hours), 2),
        average_travel_time_minutes=round(_mean(etas), 2),
        median_eta_minutes=round(_median(etas), 2),
        zones_fully_covered=fully,
        zones_partially_covered=partially,
        total_distance_km=round(sum(distances), 2),
    )


def generate_plan(
    zones: Sequence[Zone],
    vehicles: Sequence[Vehicle],
    strategy: str = "greedy",
    options: Optional[PlanOptions] = None,
    now: Optional[datetime] = None,
) -> Plan:
    """
    Run the chosen planner and turn its assignments into an enriched plan.

    `max_distance_km` is applied before scoring: a vehicle farther than the
    cutoff is not a candidate for that zone. Planning never fails for lack of
    vehicles or capacity; it just yields fewer assignments.
    """
    options = options or PlanOptions()
    key = (strategy or "greedy").lower()
    planner = PLANNERS.get(key)
    if planner is None:
        raise ValidationError(
            f"Unknown strategy '{strategy}'",
            errors=[{"field": "strategy", "message": f"must be one of {', '.join(STRATEGIES)}"}],
        )

    raw: List[Assignment] = planner(zones, vehicles, options) if vehicles else []

    zone_by_id = {z.display_id: z for z in zones}
    vehicle_by_id = {v.display_id: v for v in vehicles}
    now = now or datetime.now()

    enriched: List[EnrichedAssignment] = []
    for a in raw:
        zone = zone_by_id[a.zone_id]
        vehicle = vehicle_by_id[a.vehicle_id]
        item = enrich_assignment(a, zone, vehicle, options, now)
        enriched.append(item)
        logger.debug(
            "ETA_DEBUG vehicle=%s zone=%s dist_km=%.3f speed_kmph=%.1f eta_min=%.1f people=%d",
            item.vehicle_id,
            item.zone_id,
            item.distance_km,
            item.speed_kmh,
            item.eta_minutes,
            item.people_to_evacuate,
        )

    summary = summarize_plan(enriched, zones)
    logger.info(
        "PLAN strategy=%s zones=%d vehicles=%d assignments=%d people=%d coverage=%.2f%%",
        key,
        len(zones),
        len(vehicles),
        len(enriched),
        summary.total_people_to_evacuate,
        summary.coverage_percent,
    )
    return Plan(strategy=key, assignments=enriched, summary=summary, options=options)


def simplify_plan(plan: Plan) -> List[Dict[str, Any]]:
    return [
        {
            "ZoneID": a.zone_id,
            "VehicleID": a.vehicle_id,
            "ETA": a.travel_time_formatted,
            "NumberOfPeople": a.people_to_evacuate,
        }
        for a in plan.assignments
    ]

from typing import List

from models import Plan


def generate_rationales(plan: Plan) -> List[str]:
    """
    One human-readable line per assignment, in plan order.
    """
    lines = []
    for a in plan.assignments:
        lines.append(
            f"Vehicle {a.vehicle_id} ({a.vehicle_type}, {a.vehicle_capacity} seats) assigned to zone "
            f"{a.zone_id}: {a.urgency_category} urgency (level {a.urgency_level}), "
            f"{a.distance_km} km away, ETA {a.travel_time_formatted}, "
            f"evacuating {a.people_to_evacuate} people"
        )
    return lines

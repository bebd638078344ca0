from typing import Optional

from models import Zone

# Legacy categorical urgency -> numeric level
LEGACY_URGENCY_LEVELS = {"low": 1, "medium": 3, "high": 5}


def urgency_category(urgency_level: Optional[int], urgency: Optional[str] = None) -> str:
    if urgency_level is not None:
        if urgency_level >= 4:
            return "high"
        if urgency_level == 3:
            return "medium"
        return "low"
    return urgency.lower() if urgency else "medium"


def zone_location(zone: Zone) -> str:
    if zone.location:
        return zone.location
    if zone.coordinates is not None:
        return f"{zone.coordinates.latitude},{zone.coordinates.longitude}"
    return "Unknown location"

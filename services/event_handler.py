import logging

from models import EvacuationUpdate, UpdatedZoneView
from services.plan_cache import PlanCache
from services.registry import EvacuationRegistry

logger = logging.getLogger(__name__)


def apply_event(registry: EvacuationRegistry, cache: PlanCache, event: EvacuationUpdate) -> UpdatedZoneView:
    """
    - Apply a field report (vehicle X evacuated people from zone Y) to the registry
    - Drop cached plans, since every zone fingerprint that included Y is now stale
    - Return the updated zone view
    """
    view = registry.apply_evacuation_update(event.zone_location, event.vehicle_id, event.evacuated_count)
    cache.clear()
    logger.info("EVENT evacuation_update zone=%s vehicle=%s", event.zone_location, event.vehicle_id)
    return view

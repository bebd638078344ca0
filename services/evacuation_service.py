import logging
from datetime import datetime
from typing import Iterable, List, Optional

from config import PLAN_CACHE_ENABLED, PLAN_CACHE_TTL_S
from models import EvacuationUpdate, Plan, PlanOptions, UpdatedZoneView, Vehicle, Zone, ZoneStatus
from services.event_handler import apply_event
from services.plan_cache import PlanCache, plan_fingerprint
from services.plan_orchestrator import generate_plan
from services.rationales import generate_rationales
from services.registry import EvacuationRegistry, VehiclePayload, ZonePayload

logger = logging.getLogger(__name__)


class EvacuationService:
    """Owns the process-wide registry and plan cache behind the HTTP layer."""

    def __init__(
        self,
        registry: Optional[EvacuationRegistry] = None,
        cache: Optional[PlanCache] = None,
        cache_enabled: bool = PLAN_CACHE_ENABLED,
    ) -> None:
        self.registry = registry if registry is not None else EvacuationRegistry()
        self.cache = cache if cache is not None else PlanCache(PLAN_CACHE_TTL_S)
        self.cache_enabled = cache_enabled

    def register_zones(self, items: Iterable[ZonePayload]) -> List[Zone]:
        zones = self.registry.register_zones(items)
        self.cache.clear()
        return zones

    def register_vehicles(self, items: Iterable[VehiclePayload]) -> List[Vehicle]:
        vehicles = self.registry.register_vehicles(items)
        self.cache.clear()
        return vehicles

    def list_zones(self) -> List[Zone]:
        return self.registry.list_zones()

    def list_vehicles(self) -> List[Vehicle]:
        return self.registry.list_vehicles()

    def get_vehicle(self, identifier: str) -> Vehicle:
        return self.registry.get_vehicle(identifier)

    def generate_plan(
        self,
        strategy: str = "greedy",
        options: Optional[PlanOptions] = None,
        now: Optional[datetime] = None,
    ) -> Plan:
        """
        Plan over a snapshot of the registry.

        Passing `now` pins the clock ETAs, so such calls bypass the cache in
        both directions: no lookup and no store.
        """
        options = options or PlanOptions()
        zones, vehicles = self.registry.snapshot()

        key = None
        if self.cache_enabled and now is None:
            key = plan_fingerprint(zones, vehicles, strategy, options)
            cached = self.cache.get(key)
            if cached is not None:
                logger.info("PLAN cache hit strategy=%s", strategy)
                return cached

        plan = generate_plan(zones, vehicles, strategy, options, now)
        plan.rationales = generate_rationales(plan)

        if key is not None:
            self.cache.set(key, plan)
        return plan

    def status(self) -> List[ZoneStatus]:
        return self.registry.status()

    def apply_evacuation_update(self, update: EvacuationUpdate) -> UpdatedZoneView:
        return apply_event(self.registry, self.cache, update)

    def clear_all(self) -> None:
        self.registry.clear_all()
        self.cache.clear()

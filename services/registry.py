import logging
import threading
import uuid
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from config import VEHICLE_TYPES
from models import Coordinates, UpdatedZoneView, Vehicle, VehicleIn, Zone, ZoneIn, ZoneStatus
from services.errors import NotFoundError, ValidationError
from utils.zone_labels import LEGACY_URGENCY_LEVELS, urgency_category, zone_location

logger = logging.getLogger(__name__)

ZonePayload = Union[ZoneIn, Dict[str, Any]]
VehiclePayload = Union[VehicleIn, Dict[str, Any]]


def _new_id() -> str:
    return uuid.uuid4().hex[:9]


def _pydantic_errors(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    return [
        {"field": ".".join(str(p) for p in err["loc"]) or "body", "message": err["msg"]}
        for err in exc.errors()
    ]


def parse_location(location: Optional[str]) -> Optional[Coordinates]:
    """Coordinates from a 'lat,lon' location string, None for anything else."""
    if not location:
        return None
    parts = location.split(",")
    if len(parts) != 2:
        return None
    try:
        return Coordinates(latitude=float(parts[0]), longitude=float(parts[1]))
    except (ValueError, PydanticValidationError):
        return None


def normalize_zone(payload: ZonePayload) -> Zone:
    """
    Turn a registration payload into the canonical Zone.

    Accepts the coordinate form (locationCoordinates, numberOfPeople,
    urgencyLevel) and the legacy form (location, people, urgency). A numeric
    urgency level wins over a legacy label when both are given.
    """
    try:
        zin = payload if isinstance(payload, ZoneIn) else ZoneIn.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError("Invalid zone payload", _pydantic_errors(exc))

    errors: List[Dict[str, Any]] = []

    population = zin.number_of_people if zin.number_of_people is not None else zin.people
    if population is None:
        errors.append({"field": "numberOfPeople", "message": "Number of people is required"})
    elif population <= 0:
        errors.append({"field": "numberOfPeople", "message": "Number of people must be greater than 0"})

    label = zin.urgency.strip().lower() if zin.urgency else None
    level: Optional[int] = None
    if zin.urgency_level is not None:
        level = zin.urgency_level
        if not 1 <= level <= 5:
            errors.append({"field": "urgencyLevel", "message": "Urgency level must be between 1 and 5"})
    elif label is not None:
        level = LEGACY_URGENCY_LEVELS.get(label)
        if level is None:
            errors.append({"field": "urgency", "message": "Urgency must be low, medium, or high"})
    else:
        errors.append({"field": "urgencyLevel", "message": "Urgency level is required"})

    if zin.location_coordinates is None and not zin.location:
        errors.append({"field": "locationCoordinates", "message": "Valid latitude and longitude coordinates are required"})

    if errors:
        raise ValidationError("Invalid zone", errors)

    coordinates = zin.location_coordinates or parse_location(zin.location)
    zone_id = zin.zone_id or _new_id()
    if label not in LEGACY_URGENCY_LEVELS:
        label = urgency_category(level)

    return Zone(
        id=zone_id,
        external_id=zin.zone_id,
        location=zin.location or f"{coordinates.latitude},{coordinates.longitude}",
        coordinates=coordinates,
        population=population,
        urgency_level=level,
        urgency=label,
        evacuated=0,
    )


def normalize_vehicle(payload: VehiclePayload) -> Vehicle:
    try:
        vin = payload if isinstance(payload, VehicleIn) else VehicleIn.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError("Invalid vehicle payload", _pydantic_errors(exc))

    errors: List[Dict[str, Any]] = []

    if vin.capacity is None:
        errors.append({"field": "capacity", "message": "Vehicle capacity is required"})
    elif vin.capacity < 1:
        errors.append({"field": "capacity", "message": "Vehicle capacity must be greater than 0"})

    vtype = vin.type.strip().lower() if vin.type else None
    if vtype not in VEHICLE_TYPES:
        errors.append({"field": "type", "message": f"Vehicle type must be one of {', '.join(VEHICLE_TYPES)}"})

    if vin.location_coordinates is not None:
        if vin.speed is None:
            errors.append({"field": "speed", "message": "Vehicle speed is required"})
    elif not vin.location:
        errors.append({"field": "locationCoordinates", "message": "Valid latitude and longitude coordinates are required"})
    if vin.speed is not None and vin.speed <= 0:
        errors.append({"field": "speed", "message": "Vehicle speed must be greater than 0"})

    if errors:
        raise ValidationError("Invalid vehicle", errors)

    return Vehicle(
        id=vin.vehicle_id or _new_id(),
        external_id=vin.vehicle_id,
        location=vin.location,
        coordinates=vin.location_coordinates or parse_location(vin.location),
        capacity=vin.capacity,
        type=vtype,
        speed=vin.speed,
    )


class EvacuationRegistry:
    """
    In-memory store of zones and vehicles.

    Readers get deep copies. The only in-place mutation of a stored zone is
    `apply_evacuation_update`, serialised per zone.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._zones: List[Zone] = []
        self._vehicles: List[Vehicle] = []
        self._zone_locks: Dict[str, threading.Lock] = {}

    # -- registration -------------------------------------------------

    def register_zones(self, items: Iterable[ZonePayload]) -> List[Zone]:
        """Validate and add a batch of zones; any invalid item rejects the whole batch."""
        items = list(items)
        with self._lock:
            taken = {z.id for z in self._zones}
            new_zones: List[Zone] = []
            errors: List[Dict[str, Any]] = []
            failed = 0
            for i, item in enumerate(items):
                try:
                    zone = normalize_zone(item)
                except ValidationError as exc:
                    errors.extend({"index": i, **err} for err in exc.errors)
                    failed += 1
                    continue
                if zone.id in taken:
                    errors.append({"index": i, "field": "zoneId", "message": f"Zone '{zone.id}' already exists"})
                    failed += 1
                    continue
                taken.add(zone.id)
                new_zones.append(zone)

            if errors:
                raise ValidationError(f"Failed to add zones: {failed} of {len(items)} invalid", errors)

            self._zones.extend(new_zones)
            for z in new_zones:
                self._zone_locks[z.id] = threading.Lock()

        logger.info("REGISTRY added zones=%d total=%d", len(new_zones), len(self._zones))
        return [z.model_copy(deep=True) for z in new_zones]

    def register_zone(self, item: ZonePayload) -> Zone:
        return self.register_zones([item])[0]

    def register_vehicles(self, items: Iterable[VehiclePayload]) -> List[Vehicle]:
        """Validate and add a batch of vehicles; any invalid item rejects the whole batch."""
        items = list(items)
        with self._lock:
            taken = {v.id for v in self._vehicles}
            new_vehicles: List[Vehicle] = []
            errors: List[Dict[str, Any]] = []
            failed = 0
            for i, item in enumerate(items):
                try:
                    vehicle = normalize_vehicle(item)
                except ValidationError as exc:
                    errors.extend({"index": i, **err} for err in exc.errors)
                    failed += 1
                    continue
                if vehicle.id in taken:
                    errors.append({"index": i, "field": "vehicleId", "message": f"Vehicle '{vehicle.id}' already exists"})
                    failed += 1
                    continue
                taken.add(vehicle.id)
                new_vehicles.append(vehicle)

            if errors:
                raise ValidationError(f"Failed to add vehicles: {failed} of {len(items)} invalid", errors)

            self._vehicles.extend(new_vehicles)

        logger.info("REGISTRY added vehicles=%d total=%d", len(new_vehicles), len(self._vehicles))
        return [v.model_copy(deep=True) for v in new_vehicles]

    def register_vehicle(self, item: VehiclePayload) -> Vehicle:
        return self.register_vehicles([item])[0]

    # -- lookups ------------------------------------------------------

    def _find_zone(self, identifier: str) -> Optional[Zone]:
        for z in self._zones:
            if identifier in (z.id, z.external_id) or zone_location(z) == identifier:
                return z
        return None

    def _find_vehicle(self, identifier: str) -> Optional[Vehicle]:
        for v in self._vehicles:
            if identifier in (v.id, v.external_id):
                return v
        return None

    def find_zone(self, identifier: str) -> Zone:
        with self._lock:
            zone = self._find_zone(identifier)
            if zone is None:
                raise NotFoundError(f"Zone {identifier} not found")
            return zone.model_copy(deep=True)

    def get_vehicle(self, identifier: str) -> Vehicle:
        with self._lock:
            vehicle = self._find_vehicle(identifier)
            if vehicle is None:
                raise NotFoundError(f"Vehicle {identifier} not found")
            return vehicle.model_copy(deep=True)

    def list_zones(self) -> List[Zone]:
        return self.snapshot()[0]

    def list_vehicles(self) -> List[Vehicle]:
        with self._lock:
            return [v.model_copy(deep=True) for v in self._vehicles]

    def snapshot(self) -> Tuple[List[Zone], List[Vehicle]]:
        """Private deep copies of every zone and vehicle, for one planning pass."""
        with self._lock:
            zones: List[Zone] = []
            for z in self._zones:
                with self._zone_locks[z.id]:
                    zones.append(z.model_copy(deep=True))
            vehicles = [v.model_copy(deep=True) for v in self._vehicles]
        return zones, vehicles

    # -- mutation -----------------------------------------------------

    def apply_evacuation_update(
        self,
        zone_identifier: str,
        vehicle_identifier: str,
        evacuated_count: Optional[int] = None,
    ) -> UpdatedZoneView:
        """
        Record that `vehicle_identifier` evacuated people from a zone.

        Adds `evacuated_count` (the vehicle's capacity when omitted) to the
        zone's evacuated count, never beyond its population.
        """
        if evacuated_count is not None and evacuated_count < 0:
            raise ValidationError(
                "Invalid evacuation update",
                [{"field": "evacuatedCount", "message": "Evacuated count must not be negative"}],
            )

        with self._lock:
            zone = self._find_zone(zone_identifier)
            if zone is None:
                raise NotFoundError(f"Zone {zone_identifier} not found")
            vehicle = self._find_vehicle(vehicle_identifier)
            if vehicle is None:
                raise NotFoundError(f"Vehicle {vehicle_identifier} not found")
            zone_lock = self._zone_locks[zone.id]

        count = vehicle.capacity if evacuated_count is None else evacuated_count
        with zone_lock:
            zone.evacuated = min(zone.evacuated + count, zone.population)
            zone.last_vehicle_used = vehicle.display_id
            view = UpdatedZoneView(
                message=f"Updated evacuation status for {zone_location(zone)}",
                zone={
                    "location": zone_location(zone),
                    "zone_id": zone.display_id,
                    "coordinates": zone.coordinates.model_dump() if zone.coordinates else None,
                    "total_people": zone.population,
                    "evacuated": zone.evacuated,
                    "remaining": zone.remaining,
                    "vehicle_used": vehicle.display_id,
                    "status": "completed" if zone.remaining == 0 else "in-progress",
                },
            )

        logger.info(
            "UPDATE zone=%s vehicle=%s added=%d evacuated=%d/%d",
            zone.display_id,
            vehicle.display_id,
            count,
            view.zone["evacuated"],
            zone.population,
        )
        return view

    def status(self) -> List[ZoneStatus]:
        return [
            ZoneStatus(
                location=zone_location(z),
                zone_id=z.display_id,
                coordinates=z.coordinates,
                total_people=z.population,
                evacuated=z.evacuated,
                remaining=z.remaining,
                urgency=z.urgency,
                urgency_level=z.urgency_level,
                status="completed" if z.remaining == 0 else "in-progress",
                last_vehicle_used=z.last_vehicle_used,
            )
            for z in self.list_zones()
        ]

    def clear_all(self) -> None:
        """Drop every zone; vehicles stay registered."""
        with self._lock:
            dropped = len(self._zones)
            self._zones = []
            self._zone_locks = {}
        logger.info("REGISTRY cleared zones=%d", dropped)

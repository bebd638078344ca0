from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional

from config import DEFAULT_MAX_DISTANCE_KM, DEFAULT_SPEED_KMH


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class Zone(BaseModel):
    id: str
    external_id: Optional[str] = None
    location: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    population: int = Field(..., ge=1)
    urgency_level: int = Field(..., ge=1, le=5)  # 5 = most urgent
    urgency: Optional[str] = None  # legacy label as submitted
    evacuated: int = Field(0, ge=0)
    last_vehicle_used: Optional[str] = None

    @property
    def remaining(self) -> int:
        return max(0, self.population - self.evacuated)

    @property
    def display_id(self) -> str:
        return self.external_id or self.id


class Vehicle(BaseModel):
    id: str
    external_id: Optional[str] = None
    location: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    capacity: int
    type: str  # bus, van, boat, truck, car, ambulance
    speed: Optional[float] = None  # km/h

    @property
    def display_id(self) -> str:
        return self.external_id or self.id

    def effective_speed(self, fallback_kmh: float) -> float:
        # Only a missing speed falls back; an explicit non-positive speed stays
        # so that the travel time comes out infinite.
        return fallback_kmh if self.speed is None else self.speed


class ZoneIn(BaseModel):
    """Zone registration payload, coordinate form or legacy form."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    zone_id: Optional[str] = None
    location_coordinates: Optional[Coordinates] = None
    number_of_people: Optional[int] = None
    urgency_level: Optional[int] = None
    # Legacy fields
    location: Optional[str] = None
    people: Optional[int] = None
    urgency: Optional[str] = None


class VehicleIn(BaseModel):
    """Vehicle registration payload, coordinate form or legacy form."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    vehicle_id: Optional[str] = None
    capacity: Optional[int] = None
    type: Optional[str] = None
    location_coordinates: Optional[Coordinates] = None
    speed: Optional[float] = None
    # Legacy field
    location: Optional[str] = None


class Assignment(BaseModel):
    zone_id: str
    vehicle_id: str
    eta_minutes: float
    evacuated: int


class EnrichedAssignment(BaseModel):
    zone_id: str
    vehicle_id: str
    vehicle_type: str
    vehicle_capacity: int
    assigned_zone: str
    zone_coordinates: Optional[Coordinates] = None
    urgency_level: int
    urgency_category: str
    priority: int
    people_to_evacuate: int
    eta_minutes: float
    distance_km: float
    travel_time_hours: float
    travel_time_minutes: int
    travel_time_formatted: str
    eta: str
    speed_kmh: float


class PlanOptions(BaseModel):
    max_distance_km: Optional[float] = Field(DEFAULT_MAX_DISTANCE_KM, gt=0)
    allow_multi_vehicle: bool = True
    prefer_fewer_trips: bool = True
    speed_fallback_kmh: float = Field(DEFAULT_SPEED_KMH, gt=0)


class PlanRequest(PlanOptions):
    strategy: str = "greedy"


class PlanSummary(BaseModel):
    total_vehicles_used: int
    total_people_to_evacuate: int
    total_people_remaining: int
    coverage_percent: float
    high_priority_zones: int
    average_distance_km: float
    average_travel_time_hours: float
    average_travel_time_minutes: float
    median_eta_minutes: float
    zones_fully_covered: int
    zones_partially_covered: int
    total_distance_km: float


class Plan(BaseModel):
    strategy: str
    assignments: List[EnrichedAssignment]
    summary: PlanSummary
    options: PlanOptions
    rationales: List[str] = []


class EvacuationUpdate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    zone_location: str  # zone id, external id or location string
    vehicle_id: str
    evacuated_count: Optional[int] = None


class ZoneStatus(BaseModel):
    location: str
    zone_id: str
    coordinates: Optional[Coordinates] = None
    total_people: int
    evacuated: int
    remaining: int
    urgency: Optional[str] = None
    urgency_level: int
    status: str  # "completed" or "in-progress"
    last_vehicle_used: Optional[str] = None


class UpdatedZoneView(BaseModel):
    message: str
    zone: Dict[str, Any]

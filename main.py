from typing import Any, Dict, List, Optional, Union

from fastapi import Body, FastAPI, Request
from fastapi.responses import JSONResponse

from config import LOG_LEVEL, SEED_DATA_DIR
from models import EvacuationUpdate, Plan, PlanOptions, PlanRequest, UpdatedZoneView, Vehicle
from services.errors import NotFoundError, ValidationError
from services.evacuation_service import EvacuationService
from services.plan_orchestrator import simplify_plan
from utils.data_loader import seed_registry
from utils.logging_config import init_logging


init_logging(LOG_LEVEL)

app = FastAPI(title="Evacuation Planning API")

# One registry + plan cache for the whole process
service = EvacuationService()

if SEED_DATA_DIR:
    seed_registry(service.registry, SEED_DATA_DIR)


@app.exception_handler(ValidationError)
async def _validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": exc.message, "errors": exc.errors})


@app.exception_handler(NotFoundError)
async def _not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": exc.message})


def _as_list(payload: Union[List[Dict[str, Any]], Dict[str, Any]]) -> List[Dict[str, Any]]:
    return payload if isinstance(payload, list) else [payload]


def _plan_options(request: Optional[PlanRequest]) -> PlanOptions:
    if request is None:
        return PlanOptions()
    return PlanOptions(**request.model_dump(exclude={"strategy"}))


@app.get("/health")
def health() -> Dict[str, Any]:
    return {
        "status": "ok",
        "zones": len(service.list_zones()),
        "vehicles": len(service.list_vehicles()),
    }


@app.post("/evacuation-zones", status_code=201)
def add_evacuation_zones(payload: Union[List[Dict[str, Any]], Dict[str, Any]] = Body(...)) -> Dict[str, Any]:
    zones = service.register_zones(_as_list(payload))
    return {
        "message": f"{len(zones)} evacuation zone(s) added successfully",
        "data": {"zones": [z.model_dump(mode="json") for z in zones], "count": len(zones)},
    }


@app.get("/evacuation-zones")
def get_evacuation_zones() -> Dict[str, Any]:
    zones = service.list_zones()
    return {
        "message": "Retrieved all evacuation zones successfully",
        "data": {"zones": [z.model_dump(mode="json") for z in zones], "count": len(zones)},
    }


@app.post("/vehicles", status_code=201)
def add_vehicles(payload: Union[List[Dict[str, Any]], Dict[str, Any]] = Body(...)) -> Dict[str, Any]:
    vehicles = service.register_vehicles(_as_list(payload))
    return {
        "message": f"{len(vehicles)} vehicle(s) added successfully",
        "data": {"vehicles": [v.model_dump(mode="json") for v in vehicles], "count": len(vehicles)},
    }


@app.get("/vehicles")
def get_vehicles() -> Dict[str, Any]:
    vehicles = service.list_vehicles()
    return {
        "message": "Retrieved all vehicles successfully",
        "data": {"vehicles": [v.model_dump(mode="json") for v in vehicles], "count": len(vehicles)},
    }


@app.get("/vehicles/{vehicle_id}")
def get_vehicle(vehicle_id: str) -> Vehicle:
    return service.get_vehicle(vehicle_id)


@app.post("/evacuations/plan")
def generate_evacuation_plan(request: Optional[PlanRequest] = None) -> Plan:
    strategy = request.strategy if request is not None else "greedy"
    return service.generate_plan(strategy, _plan_options(request))


@app.post("/evacuations/plan/simple")
def generate_simple_evacuation_plan(request: Optional[PlanRequest] = None) -> List[Dict[str, Any]]:
    strategy = request.strategy if request is not None else "greedy"
    return simplify_plan(service.generate_plan(strategy, _plan_options(request)))


@app.get("/evacuations/status")
def get_evacuation_status() -> Dict[str, Any]:
    return {"zones": [s.model_dump(mode="json") for s in service.status()]}


@app.put("/evacuations/update")
def update_evacuation_status(update: EvacuationUpdate) -> UpdatedZoneView:
    return service.apply_evacuation_update(update)


@app.delete("/evacuations/clear")
def clear_evacuation_plans() -> Dict[str, Any]:
    service.clear_all()
    return {"message": "All evacuation plans have been cleared and data has been reset", "success": True}

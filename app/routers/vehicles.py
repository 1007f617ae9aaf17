# app/routers/vehicles.py
"""Fleet vehicles: list, register, set status, delete, MOT dashboard."""

from functools import lru_cache

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session
from app.config import settings
from app.database import get_db
from app.schemas.vehicle import (
    ClassifiedVehicleOut, DashboardOut, DeleteResult,
    VehicleCreate, VehicleOut, VehicleStatusUpdate,
)
from app.services.classification import ClassifiedVehicle
from app.services.fleet_service import FleetService, VehicleNotFoundError
from app.services.notifier import EmailNotifier

router = APIRouter()


@lru_cache
def get_notifier() -> EmailNotifier:
    return EmailNotifier(settings)


def get_fleet_service(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: EmailNotifier = Depends(get_notifier),
) -> FleetService:
    """FastAPI dependency — one FleetService per request."""
    return FleetService(db, settings, notifier, defer=background_tasks.add_task)


def _classified_out(item: ClassifiedVehicle) -> ClassifiedVehicleOut:
    base = VehicleOut.model_validate(item.vehicle)
    return ClassifiedVehicleOut(**base.model_dump(), bucket=item.bucket, days_remaining=item.days_remaining)


@router.get("/vehicles", response_model=list[VehicleOut], summary="List all vehicles (ordered by id)")
def list_vehicles(service: FleetService = Depends(get_fleet_service)):
    return service.list_vehicles()


@router.post("/vehicles", response_model=VehicleOut, summary="Register a new vehicle")
def create_vehicle(body: VehicleCreate, service: FleetService = Depends(get_fleet_service)):
    """
    Adds a vehicle with status "On Road" and emails the fleet manager.
    The email is sent after the response; a failed email does not fail the request.
    """
    return service.create_vehicle(body)


@router.get("/vehicles/dashboard", response_model=DashboardOut, summary="Vehicles grouped by MOT status")
def vehicle_dashboard(service: FleetService = Depends(get_fleet_service)):
    """
    Buckets, recomputed on every call:
    - critical: vehicle is VOR
    - warning:  MOT expires within WARNING_WINDOW_DAYS (or has expired)
    - safe:     everything else
    """
    board = service.dashboard()
    return DashboardOut(
        as_of=board["as_of"],
        critical=[_classified_out(i) for i in board["critical"]],
        warning=[_classified_out(i) for i in board["warning"]],
        safe=[_classified_out(i) for i in board["safe"]],
    )


@router.put("/vehicles/{vehicle_id}", response_model=VehicleOut, summary="Set vehicle status (On Road / VOR)")
def update_vehicle_status(vehicle_id: int, body: VehicleStatusUpdate,
                          service: FleetService = Depends(get_fleet_service)):
    try:
        return service.update_status(vehicle_id, body.status)
    except VehicleNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/vehicles/{vehicle_id}", response_model=DeleteResult, summary="Remove a vehicle")
def delete_vehicle(vehicle_id: int, service: FleetService = Depends(get_fleet_service)):
    """Idempotent: deleting an id that does not exist returns deleted=false."""
    return service.delete_vehicle(vehicle_id)

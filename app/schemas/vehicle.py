# app/schemas/vehicle.py
from pydantic import BaseModel, StringConstraints
from datetime import date
from typing import Annotated, Any, Optional

from app.models.vehicle import VehicleStatus, VehicleType
from app.services.classification import Bucket


# Lengths match the vehicles table columns
RegNumber = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=20)]
MakeText = Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)]


class VehicleCreate(BaseModel):
    reg_number: RegNumber
    make: Optional[MakeText] = ""
    type: VehicleType = VehicleType.HGV
    mot_expiry: date
    # Accepted for client compatibility, never persisted. New vehicles are always On Road
    status: Any = None


class VehicleStatusUpdate(BaseModel):
    status: VehicleStatus


class VehicleOut(BaseModel):
    id: int
    reg_number: str
    make: str
    type: str
    mot_expiry: Optional[date]
    status: VehicleStatus

    class Config:
        from_attributes = True


class ClassifiedVehicleOut(VehicleOut):
    bucket: Bucket
    days_remaining: Optional[int] = None


class DashboardOut(BaseModel):
    as_of: date
    critical: list[ClassifiedVehicleOut]
    warning: list[ClassifiedVehicleOut]
    safe: list[ClassifiedVehicleOut]


class DeleteResult(BaseModel):
    message: str
    id: int
    deleted: bool

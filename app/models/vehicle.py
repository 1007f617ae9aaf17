# app/models/vehicle.py
"""
Fleet vehicles table.
One row per vehicle; status is the only column changed after creation.
"""

from enum import Enum

from sqlalchemy import Column, Integer, String, Date
from app.database import Base


class VehicleType(str, Enum):
    HGV = "HGV"
    VAN = "Van"
    TRAILER = "Trailer"


class VehicleStatus(str, Enum):
    ON_ROAD = "On Road"
    VOR = "VOR"         # Vehicle off road, mechanically grounded

    def toggled(self) -> "VehicleStatus":
        """Next status for an operator toggle."""
        return STATUS_TRANSITIONS[self]


STATUS_TRANSITIONS = {
    VehicleStatus.ON_ROAD: VehicleStatus.VOR,
    VehicleStatus.VOR: VehicleStatus.ON_ROAD,
}


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    reg_number = Column(String(20), nullable=False, index=True)
    make = Column(String(100), nullable=False, default="")
    type = Column(String(20), nullable=False, default=VehicleType.HGV.value)
    mot_expiry = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=VehicleStatus.ON_ROAD.value)

    def __repr__(self):
        return f"<Vehicle {self.id} {self.reg_number} status={self.status}>"

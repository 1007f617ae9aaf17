# app/services/fleet_service.py
"""
Fleet service: vehicle CRUD against the database plus the side effects
that go with it (creation email, dashboard classification).

Every call reads or writes the database directly; nothing is cached.
The creation email is handed to `defer` (FastAPI BackgroundTasks in the API)
so it runs after the response and its outcome never changes the result.
"""

from datetime import date
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import Settings
from app.models.vehicle import Vehicle, VehicleStatus, VehicleType
from app.schemas.vehicle import VehicleCreate
from app.services.classification import Bucket, group_by_bucket
from app.services.notifier import EmailNotifier
from app.utils.logger import get_logger

logger = get_logger(__name__)


class StoreError(Exception):
    """Database call failed. Carries the driver's message."""


class VehicleNotFoundError(Exception):
    def __init__(self, vehicle_id: int):
        super().__init__(f"Vehicle {vehicle_id} not found")
        self.vehicle_id = vehicle_id


def normalize_text(value: Optional[str]) -> str:
    return (value or "").strip().upper()


class FleetService:
    def __init__(self, db: Session, config: Settings, notifier: EmailNotifier,
                 defer: Optional[Callable] = None):
        self.db = db
        self.config = config
        self.notifier = notifier
        self.defer = defer

    # ── Queries ──────────────────────────────────────────────────────────
    def list_vehicles(self) -> list[Vehicle]:
        try:
            return self.db.query(Vehicle).order_by(Vehicle.id.asc()).all()
        except SQLAlchemyError as e:
            raise self._store_error("list vehicles", e) from e

    def dashboard(self, today: Optional[date] = None) -> dict:
        """Vehicles split into critical / warning / safe buckets for `today`."""
        today = today or date.today()
        groups = group_by_bucket(self.list_vehicles(), today, self.config.WARNING_WINDOW_DAYS)
        logger.debug(
            f"Dashboard {today}: {len(groups[Bucket.CRITICAL])} critical, "
            f"{len(groups[Bucket.WARNING])} warning, {len(groups[Bucket.SAFE])} safe"
        )
        return {"as_of": today, **{bucket.value: items for bucket, items in groups.items()}}

    # ── Commands ─────────────────────────────────────────────────────────
    def create_vehicle(self, body: VehicleCreate) -> Vehicle:
        """Insert a new vehicle. Status always starts as On Road."""
        if body.status is not None and body.status != VehicleStatus.ON_ROAD.value:
            logger.debug(f"Ignoring client status {body.status!r} on create")

        vehicle = Vehicle(
            reg_number=normalize_text(body.reg_number),
            make=normalize_text(body.make),
            type=(body.type or VehicleType.HGV).value,
            mot_expiry=body.mot_expiry,
            status=VehicleStatus.ON_ROAD.value,
        )
        try:
            self.db.add(vehicle)
            self.db.commit()   # sessions keep attributes loaded after commit, id included
        except SQLAlchemyError as e:
            raise self._store_error("create vehicle", e) from e

        logger.info(f"Vehicle {vehicle.id} created: {vehicle.reg_number} ({vehicle.make}, {vehicle.type})")
        self._schedule_created_email(vehicle)
        return vehicle

    def update_status(self, vehicle_id: int, status: VehicleStatus) -> Vehicle:
        """Set the vehicle's status to the given value. Nothing else changes."""
        try:
            vehicle = self.db.get(Vehicle, vehicle_id)
            if vehicle is None:
                raise VehicleNotFoundError(vehicle_id)
            previous = vehicle.status
            vehicle.status = VehicleStatus(status).value
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._store_error("update vehicle status", e) from e

        logger.info(f"Vehicle {vehicle_id} status: {previous} → {vehicle.status}")
        return vehicle

    def delete_vehicle(self, vehicle_id: int) -> dict:
        """Hard delete. Deleting an unknown id succeeds with deleted=False."""
        try:
            deleted = self.db.query(Vehicle).filter(Vehicle.id == vehicle_id).delete()
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._store_error("delete vehicle", e) from e

        if deleted:
            logger.info(f"Vehicle {vehicle_id} deleted")
        else:
            logger.info(f"Delete of unknown vehicle {vehicle_id}, nothing to do")
        return {"message": "Deleted successfully", "id": vehicle_id, "deleted": bool(deleted)}

    # ── Internals ────────────────────────────────────────────────────────
    def _schedule_created_email(self, vehicle: Vehicle):
        if self.defer is None:
            return
        payload = {
            "reg_number": vehicle.reg_number,
            "make": vehicle.make,
            "mot_expiry": vehicle.mot_expiry.isoformat() if vehicle.mot_expiry else None,
        }
        try:
            self.defer(self.notifier.notify_vehicle_created, payload)
        except Exception as e:
            logger.error(f"[NOTIFY] Could not schedule email for {vehicle.reg_number}: {e}")

    def _store_error(self, action: str, exc: SQLAlchemyError) -> StoreError:
        self.db.rollback()
        message = str(getattr(exc, "orig", None) or exc)
        logger.error(f"Database error during {action}: {message}")
        return StoreError(message)

"""Unit tests for the fleet service (CRUD + creation email scheduling)."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import MagicMock
from datetime import date
from sqlalchemy.exc import OperationalError
from app.models.vehicle import Vehicle, VehicleStatus
from app.schemas.vehicle import VehicleCreate
from app.services.classification import Bucket
from app.services.fleet_service import FleetService, StoreError, VehicleNotFoundError


def make_body(**overrides):
    data = {"reg_number": "AB12CDE", "make": "DAF", "type": "HGV", "mot_expiry": "2025-01-01"}
    data.update(overrides)
    return VehicleCreate(**data)


@pytest.fixture
def defer():
    return MagicMock()


@pytest.fixture
def service(db, config, notifier, defer):
    return FleetService(db, config, notifier, defer=defer)


def failing_db(message="connection refused"):
    db = MagicMock()
    error = OperationalError("SELECT", {}, Exception(message))
    db.query.side_effect = error
    db.commit.side_effect = error
    db.get.side_effect = error
    return db


class TestCreateVehicle:
    def test_assigns_id_and_on_road(self, service):
        vehicle = service.create_vehicle(make_body())
        assert vehicle.id is not None
        assert vehicle.status == "On Road"
        assert vehicle.mot_expiry == date(2025, 1, 1)

    def test_client_status_is_ignored(self, service):
        vehicle = service.create_vehicle(make_body(status="VOR"))
        assert vehicle.status == VehicleStatus.ON_ROAD.value

    def test_non_string_client_status_is_ignored(self, service):
        for status in (1, None, {"value": "VOR"}):
            assert service.create_vehicle(make_body(status=status)).status == "On Road"

    def test_missing_make_stored_blank(self, service):
        assert service.create_vehicle(make_body(make=None)).make == ""

    def test_type_defaults_to_hgv(self, service):
        body = VehicleCreate(reg_number="AB12CDE", make="DAF", mot_expiry="2025-01-01")
        assert service.create_vehicle(body).type == "HGV"

    def test_reg_and_make_normalized(self, service):
        vehicle = service.create_vehicle(make_body(reg_number="  ab12cde ", make="Scania r450"))
        assert vehicle.reg_number == "AB12CDE"
        assert vehicle.make == "SCANIA R450"

    def test_duplicate_registrations_coexist(self, service):
        first = service.create_vehicle(make_body())
        second = service.create_vehicle(make_body(reg_number="ab12cde"))
        assert first.id != second.id
        assert [v.reg_number for v in service.list_vehicles()] == ["AB12CDE", "AB12CDE"]

    def test_schedules_creation_email(self, service, notifier, defer):
        service.create_vehicle(make_body())
        defer.assert_called_once_with(
            notifier.notify_vehicle_created,
            {"reg_number": "AB12CDE", "make": "DAF", "mot_expiry": "2025-01-01"},
        )

    def test_scheduling_failure_does_not_fail_create(self, db, config, notifier):
        defer = MagicMock(side_effect=RuntimeError("queue closed"))
        service = FleetService(db, config, notifier, defer=defer)
        vehicle = service.create_vehicle(make_body())
        assert db.get(Vehicle, vehicle.id) is not None

    def test_committed_row_is_not_reported_as_failure(self, config, notifier, defer):
        db = MagicMock()
        db.refresh.side_effect = OperationalError("SELECT", {}, Exception("connection lost"))
        service = FleetService(db, config, notifier, defer=defer)

        vehicle = service.create_vehicle(make_body())

        assert vehicle.reg_number == "AB12CDE"
        db.commit.assert_called_once()
        db.rollback.assert_not_called()
        defer.assert_called_once()

    def test_store_failure_raises_and_skips_email(self, config, notifier, defer):
        db = failing_db("insert failed")
        service = FleetService(db, config, notifier, defer=defer)

        with pytest.raises(StoreError, match="insert failed"):
            service.create_vehicle(make_body())

        db.rollback.assert_called_once()
        defer.assert_not_called()


class TestListVehicles:
    def test_ordered_by_id(self, service):
        ids = [service.create_vehicle(make_body(reg_number=f"REG{i}")).id for i in range(3)]
        assert [v.id for v in service.list_vehicles()] == sorted(ids)

    def test_store_failure(self, config, notifier):
        service = FleetService(failing_db(), config, notifier)
        with pytest.raises(StoreError, match="connection refused"):
            service.list_vehicles()


class TestUpdateStatus:
    def test_sets_vor(self, service):
        vehicle = service.create_vehicle(make_body())
        updated = service.update_status(vehicle.id, VehicleStatus.VOR)
        assert updated.status == "VOR"
        assert updated.reg_number == "AB12CDE"

    def test_back_to_on_road(self, service):
        vehicle = service.create_vehicle(make_body())
        service.update_status(vehicle.id, VehicleStatus.VOR)
        assert service.update_status(vehicle.id, VehicleStatus.ON_ROAD).status == "On Road"

    def test_missing_id_raises_not_found(self, service):
        with pytest.raises(VehicleNotFoundError) as exc:
            service.update_status(999, VehicleStatus.VOR)
        assert exc.value.vehicle_id == 999

    def test_store_failure_rolls_back(self, config, notifier):
        db = failing_db("server closed the connection")
        service = FleetService(db, config, notifier)

        with pytest.raises(StoreError, match="server closed the connection"):
            service.update_status(1, VehicleStatus.VOR)

        db.rollback.assert_called_once()

    def test_invalid_status_rejected(self, service):
        vehicle = service.create_vehicle(make_body())
        with pytest.raises(ValueError):
            service.update_status(vehicle.id, "Maintenance")


class TestDeleteVehicle:
    def test_removes_row(self, service):
        vehicle = service.create_vehicle(make_body())
        result = service.delete_vehicle(vehicle.id)
        assert result["deleted"] is True
        assert service.list_vehicles() == []

    def test_second_delete_is_noop(self, service):
        vehicle = service.create_vehicle(make_body())
        service.delete_vehicle(vehicle.id)
        result = service.delete_vehicle(vehicle.id)
        assert result == {"message": "Deleted successfully", "id": vehicle.id, "deleted": False}

    def test_store_failure(self, config, notifier):
        service = FleetService(failing_db(), config, notifier)
        with pytest.raises(StoreError):
            service.delete_vehicle(1)


class TestDashboard:
    def test_buckets(self, service):
        safe = service.create_vehicle(make_body(reg_number="SAFE1", mot_expiry="2024-12-01"))
        warn = service.create_vehicle(make_body(reg_number="WARN1", mot_expiry="2024-06-15"))
        vor = service.create_vehicle(make_body(reg_number="VOR1", mot_expiry="2024-12-01"))
        service.update_status(vor.id, VehicleStatus.VOR)

        board = service.dashboard(today=date(2024, 6, 1))

        assert board["as_of"] == date(2024, 6, 1)
        assert [c.vehicle.id for c in board[Bucket.SAFE.value]] == [safe.id]
        assert [c.vehicle.id for c in board[Bucket.WARNING.value]] == [warn.id]
        assert [c.vehicle.id for c in board[Bucket.CRITICAL.value]] == [vor.id]

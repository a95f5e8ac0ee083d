from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from fleet.models.driver_assignment import DriverAssignment, AssignmentStatus
from fleet.models.vehicle import VehicleStatus
from fleet.schemas.driver_assignment import AssignmentCreateRequest, AssignmentUpdateRequest
from fleet.services.assignment_service import AssignmentService
from fleet.utils.clock import utc_now
from fleet.utils.exceptions import (
    ConflictException, ForbiddenException, InvalidStateException, NotFoundException, ValidationException,
)

from conftest import FIXED_NOW, caller_for, naive_utc


@pytest.fixture
def service(clock):
    return AssignmentService(clock=clock)


@pytest.fixture
def staff(manager):
    return caller_for(manager)


def _create(service, db, caller, vehicle_id, user_id, start="2024-01-01", end=None):
    body = {"vehicleId": vehicle_id, "userId": user_id, "startDate": start}
    if end is not None:
        body["endDate"] = end
    return service.create_assignment(db, AssignmentCreateRequest(**body), caller)


def _active_count(db, vehicle_id):
    return db.query(DriverAssignment).filter(
        DriverAssignment.vehicleId == vehicle_id,
        DriverAssignment.status == AssignmentStatus.ACTIVE,
    ).count()


def test_create_returns_active_assignment_with_projections(service, db, staff, make_vehicle, driver):
    vehicle = make_vehicle()

    result = _create(service, db, staff, vehicle.id, driver.id)

    assert result["status"] == "active"
    assert result["endDate"] is None
    assert result["startDate"] == "2024-01-01T00:00:00+00:00"
    assert result["vehicle"] == {
        "id": vehicle.id, "make": "Ford", "model": "Transit", "year": 2022,
        "licensePlate": vehicle.licensePlate, "status": "active",
    }
    assert result["user"] == {"id": driver.id, "name": driver.name, "email": driver.email, "role": "user"}
    assert "password" not in result["user"]


@pytest.mark.parametrize("status", [VehicleStatus.MAINTENANCE, VehicleStatus.RETIRED])
def test_create_rejects_vehicle_that_is_not_active(service, db, staff, make_vehicle, driver, status):
    vehicle = make_vehicle(status=status)

    with pytest.raises(InvalidStateException) as exc:
        _create(service, db, staff, vehicle.id, driver.id)

    assert exc.value.status_code == 400
    assert exc.value.details[0]["message"] == f"Current status: {status.value}"
    assert db.query(DriverAssignment).count() == 0


def test_create_rejects_second_active_assignment(service, db, staff, make_vehicle, make_user):
    vehicle = make_vehicle()
    first, second = make_user(), make_user()
    _create(service, db, staff, vehicle.id, first.id)

    with pytest.raises(ConflictException) as exc:
        _create(service, db, staff, vehicle.id, second.id, start="2024-02-01")

    assert exc.value.status_code == 409
    assert exc.value.message == "Vehicle is already assigned"
    assert db.query(DriverAssignment).count() == 1


def test_create_unknown_vehicle_is_not_found(service, db, staff, driver):
    with pytest.raises(NotFoundException) as exc:
        _create(service, db, staff, 999, driver.id)
    assert exc.value.message == "Vehicle not found"
    assert db.query(DriverAssignment).count() == 0


def test_create_unknown_user_is_not_found(service, db, staff, make_vehicle):
    vehicle = make_vehicle()
    with pytest.raises(NotFoundException) as exc:
        _create(service, db, staff, vehicle.id, 999)
    assert exc.value.message == "User not found"
    assert db.query(DriverAssignment).count() == 0


def test_vehicle_state_is_checked_before_user_existence(service, db, staff, make_vehicle):
    vehicle = make_vehicle(status=VehicleStatus.RETIRED)
    with pytest.raises(InvalidStateException):
        _create(service, db, staff, vehicle.id, 999)


def test_role_guard_runs_before_any_lookup(service, db, driver):
    # Unknown vehicle would be a 404; a plain user must get 403 first
    with pytest.raises(ForbiddenException):
        _create(service, db, caller_for(driver), 999, driver.id)


def test_partial_unique_index_backs_up_the_check(service, db, staff, make_vehicle, make_user):
    vehicle = make_vehicle()
    _create(service, db, staff, vehicle.id, make_user().id)

    # Simulate a request that raced past the existence check
    service._has_active_assignment = lambda session, vehicle_id: False
    with pytest.raises(ConflictException):
        _create(service, db, staff, vehicle.id, make_user().id)

    assert _active_count(db, vehicle.id) == 1


def test_completing_stamps_end_date_from_clock(service, db, staff, make_vehicle, driver):
    created = _create(service, db, staff, make_vehicle().id, driver.id)

    result = service.update_assignment(
        db, created["id"], AssignmentUpdateRequest(status="completed"), staff)

    assert result["status"] == "completed"
    assert naive_utc(result["endDate"]) == naive_utc(FIXED_NOW)
    assert "status" not in result["vehicle"]
    assert "role" not in result["user"]


def test_completion_timestamp_falls_inside_the_request(db, staff, make_vehicle, driver):
    service = AssignmentService()
    created = _create(service, db, staff, make_vehicle().id, driver.id)

    before = utc_now()
    result = service.update_assignment(
        db, created["id"], AssignmentUpdateRequest(status="completed"), staff)
    after = utc_now()

    assert naive_utc(before) <= naive_utc(result["endDate"]) <= naive_utc(after)


def test_completing_keeps_existing_end_date(service, db, staff, make_vehicle, driver):
    created = _create(service, db, staff, make_vehicle().id, driver.id, end="2024-06-30T00:00:00")

    result = service.update_assignment(
        db, created["id"], AssignmentUpdateRequest(status="completed"), staff)

    assert result["status"] == "completed"
    assert naive_utc(result["endDate"]) == datetime(2024, 6, 30)


def test_explicit_end_date_overrides_stamping(service, db, staff, make_vehicle, driver):
    created = _create(service, db, staff, make_vehicle().id, driver.id)

    result = service.update_assignment(
        db, created["id"],
        AssignmentUpdateRequest(status="completed", endDate="2024-02-10T08:30:00Z"), staff)

    assert naive_utc(result["endDate"]) == datetime(2024, 2, 10, 8, 30)


def test_explicit_null_end_date_suppresses_stamping(service, db, staff, make_vehicle, driver):
    created = _create(service, db, staff, make_vehicle().id, driver.id)

    result = service.update_assignment(
        db, created["id"], AssignmentUpdateRequest(status="completed", endDate=None), staff)

    assert result["status"] == "completed"
    assert result["endDate"] is None


def test_supplying_end_date_alone_completes_active_assignment(service, db, staff, make_vehicle, driver):
    created = _create(service, db, staff, make_vehicle().id, driver.id)

    result = service.update_assignment(
        db, created["id"], AssignmentUpdateRequest(endDate="2024-02-01T00:00:00"), staff)

    assert result["status"] == "completed"
    assert naive_utc(result["endDate"]) == datetime(2024, 2, 1)


def test_completed_assignment_end_date_can_still_change(service, db, staff, make_vehicle, driver):
    created = _create(service, db, staff, make_vehicle().id, driver.id)
    service.update_assignment(db, created["id"], AssignmentUpdateRequest(status="completed"), staff)

    result = service.update_assignment(
        db, created["id"], AssignmentUpdateRequest(endDate="2024-04-01T00:00:00"), staff)

    assert result["status"] == "completed"
    assert naive_utc(result["endDate"]) == datetime(2024, 4, 1)


def test_completed_assignment_cannot_be_reactivated(service, db, staff, make_vehicle, driver):
    created = _create(service, db, staff, make_vehicle().id, driver.id)
    service.update_assignment(db, created["id"], AssignmentUpdateRequest(status="completed"), staff)

    with pytest.raises(InvalidStateException):
        service.update_assignment(db, created["id"], AssignmentUpdateRequest(status="active"), staff)


def test_empty_patch_leaves_assignment_unchanged(service, db, staff, make_vehicle, driver):
    created = _create(service, db, staff, make_vehicle().id, driver.id)

    result = service.update_assignment(db, created["id"], AssignmentUpdateRequest(), staff)

    assert result["status"] == "active"
    assert result["endDate"] is None


def test_update_unknown_assignment_is_not_found(service, db, staff):
    with pytest.raises(NotFoundException) as exc:
        service.update_assignment(db, 42, AssignmentUpdateRequest(status="completed"), staff)
    assert exc.value.message == "Assignment not found"


def test_delete_removes_assignment_regardless_of_status(service, db, staff, make_vehicle, driver):
    created = _create(service, db, staff, make_vehicle().id, driver.id)

    assert service.delete_assignment(db, created["id"], staff) == {"id": created["id"]}
    assert db.query(DriverAssignment).count() == 0

    with pytest.raises(NotFoundException):
        service.delete_assignment(db, created["id"], staff)


def test_vehicle_lifecycle_scenario(service, db, staff, make_vehicle, make_user):
    v1 = make_vehicle()
    u1, u2 = make_user(), make_user()

    a1 = _create(service, db, staff, v1.id, u1.id, start="2024-01-01")
    assert a1["status"] == "active" and a1["endDate"] is None

    with pytest.raises(ConflictException):
        _create(service, db, staff, v1.id, u2.id, start="2024-02-01")

    ended = service.update_assignment(db, a1["id"], AssignmentUpdateRequest(status="completed"), staff)
    assert ended["status"] == "completed"
    assert naive_utc(ended["endDate"]) == naive_utc(FIXED_NOW)

    a2 = _create(service, db, staff, v1.id, u2.id, start="2024-02-01")
    assert a2["status"] == "active"
    assert _active_count(db, v1.id) == 1


def test_list_filters_by_status_newest_first(service, db, staff, make_vehicle, make_user):
    vehicles = [make_vehicle() for _ in range(3)]
    ids = [_create(service, db, staff, v.id, make_user().id)["id"] for v in vehicles]
    service.update_assignment(db, ids[1], AssignmentUpdateRequest(status="completed"), staff)

    active, total = service.list_assignments(db, 1, 20, None, None, AssignmentStatus.ACTIVE)
    assert total == 2
    assert [a["id"] for a in active] == [ids[2], ids[0]]
    assert all(a["status"] == "active" for a in active)

    completed, _ = service.list_assignments(db, 1, 20, None, None, AssignmentStatus.COMPLETED)
    assert [a["id"] for a in completed] == [ids[1]]

    by_vehicle, _ = service.list_assignments(db, 1, 20, None, vehicles[0].id, None)
    assert [a["id"] for a in by_vehicle] == [ids[0]]


def test_create_request_rejects_bad_dates():
    with pytest.raises(ValidationError):
        AssignmentCreateRequest(vehicleId=1, userId=1, startDate="not-a-date")
    with pytest.raises(ValidationError):
        AssignmentCreateRequest(vehicleId=1, userId=1, startDate="2024-03-01", endDate="2024-02-01")
    ok = AssignmentCreateRequest(vehicleId=1, userId=1, startDate="2024-03-01", endDate=None)
    assert ok.startDate.tzinfo == timezone.utc


def test_update_request_tracks_end_date_presence():
    assert not AssignmentUpdateRequest(status="completed").end_date_supplied
    assert AssignmentUpdateRequest(endDate=None).end_date_supplied


def test_end_date_before_start_is_rejected_on_update(service, db, staff, make_vehicle, driver):
    created = _create(service, db, staff, make_vehicle().id, driver.id, start="2024-03-01")

    with pytest.raises(ValidationException) as exc:
        service.update_assignment(
            db, created["id"], AssignmentUpdateRequest(endDate="2020-01-01T00:00:00"), staff)

    assert exc.value.details == [{"field": "endDate", "message": "End date must not be before start date"}]
    stored = db.get(DriverAssignment, created["id"])
    db.refresh(stored)
    assert stored.status == AssignmentStatus.ACTIVE
    assert stored.endDate is None


def test_future_assignment_cannot_be_completed_by_clock(service, db, staff, make_vehicle, driver):
    created = _create(service, db, staff, make_vehicle().id, driver.id, start="2024-06-01")

    with pytest.raises(InvalidStateException) as exc:
        service.update_assignment(
            db, created["id"], AssignmentUpdateRequest(status="completed"), staff)

    assert exc.value.message == "Assignment has not started yet"
    stored = db.get(DriverAssignment, created["id"])
    db.refresh(stored)
    assert stored.status == AssignmentStatus.ACTIVE
    assert stored.endDate is None


def test_future_assignment_completes_with_explicit_end_date(service, db, staff, make_vehicle, driver):
    created = _create(service, db, staff, make_vehicle().id, driver.id, start="2024-06-01")

    result = service.update_assignment(
        db, created["id"],
        AssignmentUpdateRequest(status="completed", endDate="2024-06-30T00:00:00Z"), staff)

    assert result["status"] == "completed"
    assert naive_utc(result["endDate"]) == datetime(2024, 6, 30)

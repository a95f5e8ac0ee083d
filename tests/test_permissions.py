import pytest

from fleet.models.user import UserRole
from fleet.utils.exceptions import ForbiddenException
from fleet.utils.permissions import Caller, Operation, PERMISSIONS, authorize, ensure_authorized
from fleet.utils.security import create_access_token

from conftest import auth_headers

STAFF_ONLY = [
    Operation.VEHICLE_CREATE, Operation.VEHICLE_UPDATE,
    Operation.MAINTENANCE_CREATE, Operation.MAINTENANCE_UPDATE, Operation.MAINTENANCE_DELETE,
    Operation.ASSIGNMENT_CREATE, Operation.ASSIGNMENT_UPDATE, Operation.ASSIGNMENT_DELETE,
]
ADMIN_ONLY = [Operation.VEHICLE_DELETE, Operation.USER_CREATE, Operation.USER_UPDATE, Operation.USER_DELETE]


def test_every_operation_has_a_rule():
    assert set(PERMISSIONS) == set(Operation)


@pytest.mark.parametrize("operation", STAFF_ONLY)
def test_staff_operations(operation):
    assert authorize(UserRole.ADMIN, operation)
    assert authorize(UserRole.MANAGER, operation)
    assert not authorize(UserRole.USER, operation)


@pytest.mark.parametrize("operation", ADMIN_ONLY)
def test_admin_operations(operation):
    assert authorize(UserRole.ADMIN, operation)
    assert not authorize(UserRole.MANAGER, operation)
    assert not authorize(UserRole.USER, operation)


@pytest.mark.parametrize("role", list(UserRole))
def test_everyone_may_log_trips(role):
    assert authorize(role, Operation.TRIP_CREATE)
    assert authorize(role, Operation.TRIP_UPDATE)


def test_ensure_authorized_names_allowed_roles():
    with pytest.raises(ForbiddenException) as exc:
        ensure_authorized(Caller(id=1, role=UserRole.USER), Operation.ASSIGNMENT_CREATE)
    assert exc.value.status_code == 403
    assert exc.value.message == "This action requires one of these roles: ['admin', 'manager']"


class TestAuditLogReport:

    def test_admin_sees_recorded_actions(self, client, admin, manager, driver, make_vehicle):
        client.post("/api/v1/driver-assignments", json={
            "vehicleId": make_vehicle().id, "userId": driver.id, "startDate": "2024-01-01",
        }, headers=auth_headers(manager))

        res = client.get("/api/v1/reports/audit-logs", params={"entityType": "DriverAssignment"},
                         headers=auth_headers(admin))

        assert res.status_code == 200
        entries = res.json()["data"]
        assert len(entries) == 1
        assert entries[0]["action"] == "CREATE"
        assert entries[0]["user"] == {"id": manager.id, "email": manager.email}

    def test_managers_are_refused(self, client, manager):
        res = client.get("/api/v1/reports/audit-logs", headers=auth_headers(manager))
        assert res.status_code == 403

    def test_expired_token(self, client, admin):
        token = create_access_token(admin.id, admin.role.value, expires_minutes=-1)
        res = client.get("/api/v1/reports/audit-logs", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 401
        assert res.json()["error"]["code"] == "TOKEN_EXPIRED"

    def test_filter_by_action_and_entity(self, client, admin, manager, driver, make_vehicle):
        headers = auth_headers(manager)
        created = client.post("/api/v1/driver-assignments", json={
            "vehicleId": make_vehicle().id, "userId": driver.id, "startDate": "2024-01-01",
        }, headers=headers).json()["data"]
        client.put(f"/api/v1/driver-assignments/{created['id']}", json={"status": "completed"}, headers=headers)

        res = client.get("/api/v1/reports/audit-logs", params={
            "action": "COMPLETE", "entityType": "DriverAssignment", "entityId": created["id"],
        }, headers=auth_headers(admin))

        entries = res.json()["data"]
        assert [e["action"] for e in entries] == ["COMPLETE"]
        assert entries[0]["entityId"] == created["id"]
        assert client.get("/api/v1/reports/audit-logs", params={"action": "APPROVE"},
                          headers=auth_headers(admin)).status_code == 422

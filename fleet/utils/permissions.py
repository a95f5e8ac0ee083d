"""
Role guard for mutating operations.

Services receive an explicit ``Caller`` and call ``ensure_authorized`` before
touching the database, so a denied request never reaches persistence.
"""
import enum
import logging
from dataclasses import dataclass

from fleet.models.user import UserRole
from fleet.utils.exceptions import ForbiddenException

logger = logging.getLogger(__name__)


class Operation(str, enum.Enum):
    VEHICLE_CREATE     = "vehicle:create"
    VEHICLE_UPDATE     = "vehicle:update"
    VEHICLE_DELETE     = "vehicle:delete"
    MAINTENANCE_CREATE = "maintenance:create"
    MAINTENANCE_UPDATE = "maintenance:update"
    MAINTENANCE_DELETE = "maintenance:delete"
    TRIP_CREATE        = "trip:create"
    TRIP_UPDATE        = "trip:update"
    USER_CREATE        = "user:create"
    USER_UPDATE        = "user:update"
    USER_DELETE        = "user:delete"
    ASSIGNMENT_CREATE  = "assignment:create"
    ASSIGNMENT_UPDATE  = "assignment:update"
    ASSIGNMENT_DELETE  = "assignment:delete"


_STAFF = frozenset({UserRole.ADMIN, UserRole.MANAGER})
_EVERYONE = frozenset(UserRole)
_ADMIN = frozenset({UserRole.ADMIN})

PERMISSIONS: dict[Operation, frozenset[UserRole]] = {
    Operation.VEHICLE_CREATE:     _STAFF,
    Operation.VEHICLE_UPDATE:     _STAFF,
    Operation.VEHICLE_DELETE:     _ADMIN,
    Operation.MAINTENANCE_CREATE: _STAFF,
    Operation.MAINTENANCE_UPDATE: _STAFF,
    Operation.MAINTENANCE_DELETE: _STAFF,
    Operation.TRIP_CREATE:        _EVERYONE,
    Operation.TRIP_UPDATE:        _EVERYONE,
    Operation.USER_CREATE:        _ADMIN,
    Operation.USER_UPDATE:        _ADMIN,
    Operation.USER_DELETE:        _ADMIN,
    Operation.ASSIGNMENT_CREATE:  _STAFF,
    Operation.ASSIGNMENT_UPDATE:  _STAFF,
    Operation.ASSIGNMENT_DELETE:  _STAFF,
}


@dataclass(frozen=True)
class Caller:
    """The authenticated user on whose behalf a service operation runs."""
    id:   int
    role: UserRole


def authorize(role: UserRole, operation: Operation) -> bool:
    return role in PERMISSIONS.get(operation, frozenset())


def ensure_authorized(caller: Caller, operation: Operation) -> None:
    if not authorize(caller.role, operation):
        logger.warning("Denied %s for user %s (role=%s)", operation.value, caller.id, caller.role.value)
        allowed = sorted(r.value for r in PERMISSIONS.get(operation, frozenset()))
        raise ForbiddenException(f"This action requires one of these roles: {allowed}")

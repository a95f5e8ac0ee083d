"""
Shared pytest configuration.
Each test gets a fresh in-memory SQLite database wired into the app.
"""
import itertools
import os
from datetime import datetime, timezone
from decimal import Decimal

# Settings are read at import time, so the environment goes first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["APP_ENV"] = "testing"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import fleet.models  # noqa: F401
from fleet.database import Base, get_db
from fleet.main import app
from fleet.models.user import User, UserRole
from fleet.models.vehicle import Vehicle, VehicleStatus
from fleet.services.assignment_service import AssignmentService, get_assignment_service
from fleet.services.dashboard_service import DashboardService, get_dashboard_service
from fleet.services.trip_service import TripService, get_trip_service
from fleet.utils.permissions import Caller
from fleet.utils.security import create_access_token

FIXED_NOW = datetime(2024, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


def naive_utc(value) -> datetime:
    """SQLite hands back naive datetimes; compare everything as naive UTC."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def caller_for(user: User) -> Caller:
    return Caller(id=user.id, role=user.role)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role.value)}"}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def client(session_factory, clock):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_assignment_service] = lambda: AssignmentService(clock=clock)
    app.dependency_overrides[get_trip_service] = lambda: TripService(clock=clock)
    app.dependency_overrides[get_dashboard_service] = lambda: DashboardService(clock=clock)
    yield TestClient(app)
    app.dependency_overrides.clear()


# ─── Data builders ────────────────────────────────────────────────────────────
@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make(role: UserRole = UserRole.USER, email: str | None = None, name: str | None = None) -> User:
        n = next(counter)
        user = User(
            name=name or f"Driver {n}",
            email=email or f"user{n}@fleet.example.com",
            password="not-a-real-hash",
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_vehicle(db):
    counter = itertools.count(1)

    def _make(status: VehicleStatus = VehicleStatus.ACTIVE, **overrides) -> Vehicle:
        n = next(counter)
        fields = dict(
            name=f"Van {n}",
            make="Ford",
            model="Transit",
            year=2022,
            licensePlate=f"FLT-{n:03d}",
            vin=f"VIN{n:014d}",
            status=status,
            fuelType="diesel",
            mileage=10_000 * n,
            purchaseDate=datetime(2022, 1, 10, tzinfo=timezone.utc),
            purchasePrice=Decimal("35000.00"),
        )
        fields.update(overrides)
        vehicle = Vehicle(**fields)
        db.add(vehicle)
        db.commit()
        db.refresh(vehicle)
        return vehicle
    return _make


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN, email="admin@fleet.example.com", name="Admin")


@pytest.fixture
def manager(make_user):
    return make_user(UserRole.MANAGER, email="manager@fleet.example.com", name="Manager")


@pytest.fixture
def driver(make_user):
    return make_user(UserRole.USER)

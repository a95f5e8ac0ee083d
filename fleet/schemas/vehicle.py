from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal

from fleet.models.vehicle import VehicleStatus
from fleet.schemas.dates import as_utc


def _check_year(v):
    if v is not None and not (1900 <= v <= datetime.now().year + 1):
        raise ValueError(f"Year must be between 1900 and {datetime.now().year + 1}")
    return v


def _check_vin(v):
    if v is None:
        return v
    v = v.strip().upper()
    if len(v) != 17:
        raise ValueError("VIN must be exactly 17 characters")
    return v


# ─── Requests ─────────────────────────────────────────────────────────────────
class VehicleCreateRequest(BaseModel):
    name:            str
    make:            str
    model:           str
    year:            int
    licensePlate:    str
    vin:             str
    status:          VehicleStatus = VehicleStatus.ACTIVE
    fuelType:        str
    mileage:         int = 0
    lastServiceDate: Optional[datetime] = None
    nextServiceDate: Optional[datetime] = None
    purchaseDate:    datetime
    purchasePrice:   Decimal
    imageUrl:        Optional[str] = None

    @field_validator("name", "make", "model", "fuelType")
    @classmethod
    def not_empty(cls, v):
        if not v.strip(): raise ValueError("Field cannot be empty")
        return v.strip()

    @field_validator("year")
    @classmethod
    def check_year(cls, v): return _check_year(v)

    @field_validator("vin")
    @classmethod
    def check_vin(cls, v): return _check_vin(v)

    @field_validator("licensePlate")
    @classmethod
    def check_plate(cls, v):
        if not v.strip(): raise ValueError("License plate cannot be empty")
        return v.strip().upper()

    @field_validator("mileage", "purchasePrice")
    @classmethod
    def non_negative(cls, v):
        if v < 0: raise ValueError("Value cannot be negative")
        return v

    @field_validator("lastServiceDate", "nextServiceDate", "purchaseDate")
    @classmethod
    def normalize_tz(cls, v): return as_utc(v)


class VehicleUpdateRequest(BaseModel):
    name:            Optional[str]           = None
    make:            Optional[str]           = None
    model:           Optional[str]           = None
    year:            Optional[int]           = None
    licensePlate:    Optional[str]           = None
    vin:             Optional[str]           = None
    status:          Optional[VehicleStatus] = None
    fuelType:        Optional[str]           = None
    mileage:         Optional[int]           = None
    lastServiceDate: Optional[datetime]      = None
    nextServiceDate: Optional[datetime]      = None
    purchaseDate:    Optional[datetime]      = None
    purchasePrice:   Optional[Decimal]       = None
    imageUrl:        Optional[str]           = None

    @field_validator("year")
    @classmethod
    def check_year(cls, v): return _check_year(v)

    @field_validator("vin")
    @classmethod
    def check_vin(cls, v): return _check_vin(v)

    @field_validator("licensePlate")
    @classmethod
    def check_plate(cls, v):
        if v is not None and not v.strip(): raise ValueError("License plate cannot be empty")
        return v.strip().upper() if v else v

    @field_validator("mileage", "purchasePrice")
    @classmethod
    def non_negative(cls, v):
        if v is not None and v < 0: raise ValueError("Value cannot be negative")
        return v

    @field_validator("lastServiceDate", "nextServiceDate", "purchaseDate")
    @classmethod
    def normalize_tz(cls, v): return as_utc(v)

from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal

from fleet.models.maintenance_record import MaintenanceType
from fleet.schemas.dates import as_utc


class MaintenanceCreateRequest(BaseModel):
    vehicleId:   int
    type:        MaintenanceType
    description: str
    cost:        Decimal
    mileage:     int
    serviceDate: datetime
    servicedBy:  str
    notes:       Optional[str] = None

    @field_validator("description", "servicedBy")
    @classmethod
    def not_empty(cls, v):
        if not v.strip(): raise ValueError("Field cannot be empty")
        return v.strip()

    @field_validator("cost", "mileage")
    @classmethod
    def non_negative(cls, v):
        if v < 0: raise ValueError("Value cannot be negative")
        return v

    @field_validator("serviceDate")
    @classmethod
    def normalize_tz(cls, v): return as_utc(v)


class MaintenanceUpdateRequest(BaseModel):
    type:        Optional[MaintenanceType] = None
    description: Optional[str]             = None
    cost:        Optional[Decimal]         = None
    mileage:     Optional[int]             = None
    serviceDate: Optional[datetime]        = None
    servicedBy:  Optional[str]             = None
    notes:       Optional[str]             = None

    @field_validator("description", "servicedBy")
    @classmethod
    def not_empty(cls, v):
        if v is not None and not v.strip(): raise ValueError("Field cannot be empty")
        return v.strip() if v else v

    @field_validator("cost", "mileage")
    @classmethod
    def non_negative(cls, v):
        if v is not None and v < 0: raise ValueError("Value cannot be negative")
        return v

    @field_validator("serviceDate")
    @classmethod
    def normalize_tz(cls, v): return as_utc(v)

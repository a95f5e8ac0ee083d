from pydantic import BaseModel, field_validator, model_validator
from typing import Optional
from datetime import datetime

from fleet.models.trip import TripStatus
from fleet.schemas.dates import as_utc


class TripCreateRequest(BaseModel):
    vehicleId:     int
    driverId:      int
    startDate:     datetime
    endDate:       Optional[datetime] = None
    startMileage:  int
    endMileage:    Optional[int] = None
    startLocation: str
    endLocation:   Optional[str] = None
    purpose:       str
    status:        TripStatus = TripStatus.IN_PROGRESS

    @field_validator("startLocation", "purpose")
    @classmethod
    def not_empty(cls, v):
        if not v.strip(): raise ValueError("Field cannot be empty")
        return v.strip()

    @field_validator("startMileage", "endMileage")
    @classmethod
    def non_negative(cls, v):
        if v is not None and v < 0: raise ValueError("Mileage cannot be negative")
        return v

    @field_validator("startDate", "endDate")
    @classmethod
    def normalize_tz(cls, v): return as_utc(v)

    @model_validator(mode="after")
    def check_mileage(self):
        if self.endMileage is not None and self.endMileage < self.startMileage:
            raise ValueError("End mileage cannot be lower than start mileage")
        return self


class TripUpdateRequest(BaseModel):
    endDate:     Optional[datetime]   = None
    endMileage:  Optional[int]        = None
    endLocation: Optional[str]        = None
    purpose:     Optional[str]        = None
    status:      Optional[TripStatus] = None

    @field_validator("endMileage")
    @classmethod
    def non_negative(cls, v):
        if v is not None and v < 0: raise ValueError("Mileage cannot be negative")
        return v

    @field_validator("endDate")
    @classmethod
    def normalize_tz(cls, v): return as_utc(v)

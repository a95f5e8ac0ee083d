from pydantic import BaseModel, field_validator, model_validator
from typing import Optional
from datetime import datetime

from fleet.models.driver_assignment import AssignmentStatus
from fleet.schemas.dates import as_utc


class AssignmentCreateRequest(BaseModel):
    vehicleId: int
    userId:    int
    startDate: datetime
    endDate:   Optional[datetime] = None

    @field_validator("startDate", "endDate")
    @classmethod
    def normalize_tz(cls, v):
        return as_utc(v)

    @model_validator(mode="after")
    def check_range(self):
        if self.endDate is not None and self.endDate < self.startDate:
            raise ValueError("End date must not be before start date")
        return self


class AssignmentUpdateRequest(BaseModel):
    """
    Partial update. Presence matters for endDate: omitted leaves the
    server free to stamp it on completion, an explicit null clears it.
    Use ``model_fields_set`` to tell the two apart.
    """
    status:  Optional[AssignmentStatus] = None
    endDate: Optional[datetime]         = None

    @field_validator("endDate")
    @classmethod
    def normalize_tz(cls, v):
        return as_utc(v)

    @property
    def end_date_supplied(self) -> bool:
        return "endDate" in self.model_fields_set

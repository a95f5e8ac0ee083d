from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional

from fleet.models.user import UserRole


def validate_password(v: str) -> str:
    if len(v) < 6:
        raise ValueError("Password must be at least 6 characters")
    return v


# ─── Request ──────────────────────────────────────────────────────────────────
class UserCreateRequest(BaseModel):
    name:     Optional[str] = None
    email:    EmailStr
    password: str
    role:     UserRole = UserRole.USER

    @field_validator("password")
    @classmethod
    def check_password(cls, v): return validate_password(v)

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        if v is None: return v
        return v.strip() or None


class UserUpdateRequest(BaseModel):
    name:     Optional[str]      = None
    email:    Optional[EmailStr] = None
    password: Optional[str]      = None
    role:     Optional[UserRole] = None

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        return validate_password(v) if v is not None else v

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        if v is not None and not v.strip(): raise ValueError("Name cannot be empty")
        return v.strip() if v else v

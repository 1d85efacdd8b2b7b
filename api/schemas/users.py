"""User and authentication schemas."""

from typing import Optional

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    department_id: int
    role_id: int
    job_position_id: int


class UserUpdate(BaseModel):
    """Fields to change; omitted fields are left as they are."""

    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, min_length=3, max_length=255)
    department_id: Optional[int] = None
    role_id: Optional[int] = None
    job_position_id: Optional[int] = None


class LoginRequest(BaseModel):
    email: str
    password: str

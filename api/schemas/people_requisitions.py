"""People requisition request and response schemas."""

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from api.schemas.common import PaginatedResponse


class RequisitionCreate(BaseModel):
    """Payload for raising a new requisition."""

    job_position_id: int
    department_id: int
    recruiter_id: int
    nature_of_employment_id: int
    job_description: Optional[str] = None
    prf_number: Optional[str] = Field(None, max_length=100)
    prf_link: Optional[str] = Field(None, max_length=500)
    closing_date: Optional[date] = None


class RequisitionUpdate(BaseModel):
    """
    Field edits. Unknown keys are kept so the service can reject fields the
    caller's role may not edit.
    """

    model_config = ConfigDict(extra="allow")

    prf_number: Optional[str] = Field(None, max_length=100)
    prf_link: Optional[str] = Field(None, max_length=500)
    recruiter_id: Optional[int] = None
    department_id: Optional[int] = None
    nature_of_employment_id: Optional[int] = None
    job_description: Optional[str] = None


class StatusUpdate(BaseModel):
    status: str = Field(description="Target status (open, inprogress, onhold, completed, closed)")


class NamedRef(BaseModel):
    id: int
    name: str


class PersonRef(BaseModel):
    id: int
    user_code: str
    name: str
    email: str


class RequisitionResponse(BaseModel):
    id: int
    job_code: str
    job_position: Optional[NamedRef] = None
    department: Optional[NamedRef] = None
    nature_of_employment: Optional[NamedRef] = None
    recruiter: Optional[PersonRef] = None
    hrbp: Optional[PersonRef] = None
    job_description: Optional[str] = None
    prf_number: Optional[str] = None
    prf_link: Optional[str] = None
    status: str
    is_approved_by_hrbp: bool
    closing_date: Optional[str] = None
    jd_file_name: Optional[str] = None
    jd_uploaded_at: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    modified_by: Optional[str] = None
    modified_at: Optional[str] = None


RequisitionList = PaginatedResponse[RequisitionResponse]

SortField = Literal["created_at", "modified_at", "job_code", "status", "closing_date"]
SortOrder = Literal["asc", "desc"]

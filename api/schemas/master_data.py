"""Master data schemas."""

from typing import Optional

from pydantic import BaseModel, Field


class MasterDataWrite(BaseModel):
    """Name for a new or renamed master data row."""

    name: str = Field(min_length=1, max_length=150)


class MasterDataResponse(BaseModel):
    id: int
    name: str
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    modified_by: Optional[str] = None
    modified_at: Optional[str] = None

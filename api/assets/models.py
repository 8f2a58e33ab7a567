# api/assets/models.py
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from db_models.asset import AssetCategory, CustodyStatus


class AssetRegister(BaseModel):
    serial: str = Field(..., min_length=1, max_length=100)
    category: AssetCategory
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    color: str = Field("", max_length=50)

    # Mandatory for PERSONALLY_OWNED assets
    holder_code: Optional[str] = Field(None, max_length=50)


class AssetUpdate(BaseModel):
    """Update path. A missing holder_code keeps the current holder."""
    holder_code: Optional[str] = Field(None, max_length=50)
    make: Optional[str] = Field(None, min_length=1, max_length=100)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, max_length=50)
    credential_ref: Optional[str] = Field(None, max_length=1024)


class AssignRequest(BaseModel):
    holder_code: Optional[str] = Field(None, max_length=50)


class AssetRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    serial: str
    category: AssetCategory
    make: str
    model: str
    color: str
    holder_code: Optional[str] = None
    credential_ref: Optional[str] = None
    custody_status: CustodyStatus
    created_at: datetime
    updated_at: Optional[datetime] = None


class AssetListResponse(BaseModel):
    results: List[AssetRead]


class CredentialPayload(BaseModel):
    """
    Flat structure encoded into the scannable credential.

    Every field except `serial` is a snapshot from when the credential was
    produced and is never trusted for custody decisions.
    """
    serial: str = Field(..., min_length=1, max_length=100)
    holder_code: Optional[str] = None
    holder_name: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None
    category: Optional[AssetCategory] = None

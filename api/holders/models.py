# api/holders/models.py
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from api.assets.models import AssetRead


class HolderCreate(BaseModel):
    holder_code: str = Field(..., min_length=1, max_length=50, description="e.g. EMP1001")
    name: str = Field(..., min_length=1, max_length=255)
    unit: str = Field("", max_length=255, description="Department or floor")
    portrait_ref: Optional[str] = Field(None, max_length=1024)


class HolderUpdate(BaseModel):
    # holder_code is immutable
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    unit: Optional[str] = Field(None, max_length=255)
    portrait_ref: Optional[str] = Field(None, max_length=1024)


class HolderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    holder_code: str
    name: str
    unit: str
    portrait_ref: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class HolderDetail(HolderRead):
    assets: List[AssetRead]


class HolderSearchResponse(BaseModel):
    results: List[HolderRead]

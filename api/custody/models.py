# api/custody/models.py
from datetime import datetime
from pydantic import BaseModel, ConfigDict, field_validator
from typing import List, Optional

from core.clock import as_utc
from db_models.asset import AssetCategory, CustodyStatus
from db_models.custody_event import CustodyAction


class LiveHolder(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    holder_code: str
    name: str
    unit: str
    portrait_ref: Optional[str] = None


class ScanReview(BaseModel):
    """What the checkpoint sees after a credential has been reconciled."""

    serial: str
    category: AssetCategory

    # Descriptive fields as printed on the credential
    make: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None

    # Live state
    holder: Optional[LiveHolder] = None
    current_status: CustodyStatus
    last_event_at: Optional[datetime] = None
    next_action: CustodyAction

    # The credential names a different holder than the live record
    stale_credential: bool = False


class ApplyRequest(BaseModel):
    action: CustodyAction


class CustodyEventRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    serial: str
    holder_code: Optional[str] = None
    holder_name: Optional[str] = None
    action: CustodyAction
    occurred_at: datetime

    @field_validator("occurred_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class CustodyHistoryResponse(BaseModel):
    serial: str
    current_status: CustodyStatus
    alternating: bool
    events: List[CustodyEventRead]


class CustodyFeedResponse(BaseModel):
    since: datetime
    events: List[CustodyEventRead]

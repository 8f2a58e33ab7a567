# api/alerts/models.py
from datetime import datetime
from enum import Enum
from pydantic import BaseModel
from typing import List, Optional


class AlertReason(str, Enum):
    OVERTIME_WEEKDAY = "OVERTIME_WEEKDAY"
    WEEKEND_STAY = "WEEKEND_STAY"


class Alert(BaseModel):
    """Derived on every evaluation, never stored."""

    serial: str
    holder_code: Optional[str] = None
    holder_name: Optional[str] = None
    checked_out_at: datetime
    elapsed_hours: int
    reason: AlertReason


class AlertListResponse(BaseModel):
    evaluated_at: datetime
    count: int
    alerts: List[Alert]

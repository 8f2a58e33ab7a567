# api/dashboard/models.py
"""
Pydantic models for dashboard responses.
"""
from datetime import datetime
from pydantic import BaseModel


class CategoryBreakdown(BaseModel):
    """Registered assets per category."""
    organization_owned: int = 0
    personally_owned: int = 0


class CustodyBreakdown(BaseModel):
    """Assets currently on-site versus checked out."""
    inside: int = 0
    checked_out: int = 0


class DashboardOverview(BaseModel):
    """High-level custody statistics."""
    generated_at: datetime
    total_holders: int
    total_assets: int
    categories: CategoryBreakdown
    custody: CustodyBreakdown
    events_today: int
    active_alerts: int

# api/dashboard/views.py
"""
Dashboard and aggregate statistics endpoints.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_session
from .models import DashboardOverview
from . import db_manager

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "/overview",
    response_model=DashboardOverview,
    summary="Get high-level overview statistics",
)
async def get_overview_endpoint(
    db: AsyncSession = Depends(get_session),
) -> DashboardOverview:
    """
    Holder and asset totals, how many assets are out right now, today's
    checkpoint activity and the current alert count.
    """
    stats = await db_manager.get_overview_stats(db)
    return DashboardOverview(**stats)

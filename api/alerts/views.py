# api/alerts/views.py
"""
Compliance alert endpoint.
"""
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_session
from .models import AlertListResponse
from . import db_manager

router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.get(
    "",
    response_model=AlertListResponse,
    summary="Organization-owned assets out beyond permitted durations",
)
async def list_alerts_endpoint(
    at: datetime | None = Query(None, description="Evaluation instant, defaults to now"),
    db: AsyncSession = Depends(get_session),
) -> AlertListResponse:
    """
    Re-evaluated on every call; safe to poll. Naive `at` values are read as UTC.
    """
    evaluated_at, alerts = await db_manager.detect_alerts(db, now=at)
    return AlertListResponse(evaluated_at=evaluated_at, count=len(alerts), alerts=alerts)

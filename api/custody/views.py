# api/custody/views.py
"""
Checkpoint endpoints: scan review, check-in/check-out, ledger history, the
daily activity feed and CSV export.
"""
from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_session
from core.errors import NotFound, PolicyViolation, RedundantAction
from api.assets.models import CredentialPayload
from .models import (
    ApplyRequest,
    CustodyEventRead,
    CustodyFeedResponse,
    CustodyHistoryResponse,
    ScanReview,
)
from . import db_manager, ledger

router = APIRouter(prefix="/custody", tags=["custody"])


@router.post(
    "/scan",
    response_model=ScanReview,
    summary="Reconcile a scanned credential against live state",
)
async def scan_endpoint(
    payload: CredentialPayload,
    db: AsyncSession = Depends(get_session),
) -> ScanReview:
    """
    The credential is only trusted for its serial. Holder, portrait and
    custody status in the response come from the store.
    """
    try:
        return await db_manager.reconcile_scan(db, payload)
    except NotFound as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=exc.to_detail(),
        ) from exc


@router.post(
    "/{serial}/apply",
    responses={
        201: {"model": CustodyEventRead, "description": "Event recorded"},
        409: {"description": "Asset already in the requested state"},
        422: {"description": "Checkout of an asset without a holder"},
    },
    summary="Check an asset in or out",
)
async def apply_endpoint(
    serial: str,
    payload: ApplyRequest,
    db: AsyncSession = Depends(get_session),
):
    """
    - 409 with current_status when the request would repeat the current state.
      The state has already converged; do not retry.
    - 201 with the recorded event otherwise.
    """
    try:
        event = await db_manager.apply_action(db, serial, payload.action)
    except NotFound as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=exc.to_detail(),
        ) from exc
    except RedundantAction as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=exc.to_detail(),
        ) from exc
    except PolicyViolation as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.to_detail(),
        ) from exc

    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=CustodyEventRead.model_validate(event).model_dump(mode="json"),
    )


@router.get(
    "/events",
    response_model=CustodyFeedResponse,
    summary="Recent custody activity (today by default)",
)
async def feed_endpoint(
    since: datetime | None = Query(None, description="Defaults to the start of today"),
    q: str | None = Query(None, description="Holder name or code"),
    limit: int | None = Query(None, ge=1, le=500),
    db: AsyncSession = Depends(get_session),
) -> CustodyFeedResponse:
    since, events = await db_manager.list_events_since(db, since=since, text=q, limit=limit)
    return CustodyFeedResponse(
        since=since,
        events=[CustodyEventRead.model_validate(e) for e in events],
    )


@router.get(
    "/export",
    summary="Export custody events for a date range as CSV",
    response_class=Response,
)
async def export_endpoint(
    start: date = Query(..., description="First day (inclusive)"),
    end: date = Query(..., description="Last day (inclusive)"),
    filename: str | None = Query(
        None,
        max_length=100,
        pattern=r"^[A-Za-z0-9_-]+$",
        description="File name prefix; letters, digits, '_' and '-' only",
    ),
    db: AsyncSession = Depends(get_session),
) -> Response:
    """For a single day, set start and end to that day."""
    try:
        events = await db_manager.export_events(db, start, end)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    if not events:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No custody events found for the selected range",
        )

    name = f"{filename or 'custody_events'}_{start.isoformat()}_to_{end.isoformat()}.csv"
    return Response(
        content=db_manager.render_csv(events),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{name}"'},
    )


@router.get(
    "/{serial}/history",
    response_model=CustodyHistoryResponse,
    summary="Custody ledger of one asset, newest first",
)
async def history_endpoint(
    serial: str,
    limit: int | None = Query(None, ge=1, le=1000),
    db: AsyncSession = Depends(get_session),
) -> CustodyHistoryResponse:
    events = await db_manager.get_history(db, serial, limit=limit)
    return CustodyHistoryResponse(
        serial=serial,
        current_status=ledger.derive_status(events[0] if events else None),
        alternating=ledger.is_alternating(events),
        events=[CustodyEventRead.model_validate(e) for e in events],
    )

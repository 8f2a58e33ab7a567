# api/holders/views.py
"""
Holder registry endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_session
from core.errors import AlreadyExists, NotFound, PolicyViolation
from api.assets.models import AssetRead
from .models import (
    HolderCreate,
    HolderUpdate,
    HolderRead,
    HolderDetail,
    HolderSearchResponse,
)
from . import db_manager

router = APIRouter(prefix="/holders", tags=["holders"])


@router.post(
    "",
    response_model=HolderRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register a holder",
)
async def create_holder_endpoint(
    payload: HolderCreate,
    db: AsyncSession = Depends(get_session),
) -> HolderRead:
    try:
        holder = await db_manager.create_holder(
            db,
            holder_code=payload.holder_code,
            name=payload.name,
            unit=payload.unit,
            portrait_ref=payload.portrait_ref,
        )
    except AlreadyExists as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=exc.to_detail(),
        ) from exc

    return HolderRead.model_validate(holder)


@router.get(
    "",
    response_model=HolderSearchResponse,
    summary="List or search holders by name or holder code",
)
async def search_holders_endpoint(
    q: str | None = Query(None, description="Search text"),
    db: AsyncSession = Depends(get_session),
) -> HolderSearchResponse:
    holders = await db_manager.search_holders(db, q)
    return HolderSearchResponse(results=[HolderRead.model_validate(h) for h in holders])


@router.get(
    "/{holder_code}",
    response_model=HolderDetail,
    summary="Get a holder with the assets bound to them",
)
async def get_holder_endpoint(
    holder_code: str,
    db: AsyncSession = Depends(get_session),
) -> HolderDetail:
    try:
        holder, assets = await db_manager.get_holder_detail(db, holder_code)
    except NotFound as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=exc.to_detail(),
        ) from exc

    return HolderDetail(
        **HolderRead.model_validate(holder).model_dump(),
        assets=[AssetRead.model_validate(a) for a in assets],
    )


@router.patch(
    "/{holder_code}",
    response_model=HolderRead,
    summary="Update a holder's name, unit or portrait",
)
async def update_holder_endpoint(
    holder_code: str,
    payload: HolderUpdate,
    db: AsyncSession = Depends(get_session),
) -> HolderRead:
    try:
        holder = await db_manager.update_holder(
            db,
            holder_code,
            name=payload.name,
            unit=payload.unit,
            portrait_ref=payload.portrait_ref,
        )
    except NotFound as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=exc.to_detail(),
        ) from exc

    return HolderRead.model_validate(holder)


@router.delete(
    "/{holder_code}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a holder that no longer holds any asset",
)
async def delete_holder_endpoint(
    holder_code: str,
    db: AsyncSession = Depends(get_session),
) -> Response:
    try:
        await db_manager.delete_holder(db, holder_code)
    except NotFound as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=exc.to_detail(),
        ) from exc
    except PolicyViolation as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.to_detail(),
        ) from exc

    return Response(status_code=status.HTTP_204_NO_CONTENT)

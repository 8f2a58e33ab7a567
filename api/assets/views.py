# api/assets/views.py
"""
Asset registration and assignment endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_session
from core.errors import (
    AlreadyExists,
    ConflictingAssignment,
    NotFound,
    PolicyViolation,
)
from db_models.asset import AssetCategory
from .models import (
    AssetRegister,
    AssetUpdate,
    AssignRequest,
    AssetRead,
    AssetListResponse,
    CredentialPayload,
)
from . import db_manager

router = APIRouter(prefix="/assets", tags=["assets"])


def _binding_http_error(exc: Exception) -> HTTPException:
    """Map assignment rule failures onto HTTP errors."""
    if isinstance(exc, NotFound):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, (ConflictingAssignment, AlreadyExists)):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    return HTTPException(status_code=code, detail=exc.to_detail())


@router.post(
    "",
    response_model=AssetRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register an asset",
)
async def register_asset_endpoint(
    payload: AssetRegister,
    db: AsyncSession = Depends(get_session),
) -> AssetRead:
    """
    Register an asset and bind it to a holder.

    - PERSONALLY_OWNED assets require holder_code and are checked in on registration.
    - A holder may hold one asset per category (409 names the conflicting serial).
    """
    try:
        asset = await db_manager.register_asset(
            db,
            serial=payload.serial,
            category=payload.category,
            make=payload.make,
            model=payload.model,
            color=payload.color,
            holder_code=payload.holder_code,
        )
    except (AlreadyExists, ConflictingAssignment, NotFound, PolicyViolation) as exc:
        raise _binding_http_error(exc) from exc

    return AssetRead.model_validate(asset)


@router.get(
    "",
    response_model=AssetListResponse,
    summary="List assets by category, serial text or assignment state",
)
async def list_assets_endpoint(
    category: AssetCategory | None = Query(None),
    q: str | None = Query(None, description="Partial serial"),
    unassigned: bool = Query(False, description="Only assets without a holder"),
    db: AsyncSession = Depends(get_session),
) -> AssetListResponse:
    assets = await db_manager.list_assets(
        db,
        category=category,
        text=q,
        unassigned_only=unassigned,
    )
    return AssetListResponse(results=[AssetRead.model_validate(a) for a in assets])


@router.get(
    "/{serial}",
    response_model=AssetRead,
    summary="Get an asset",
)
async def get_asset_endpoint(
    serial: str,
    db: AsyncSession = Depends(get_session),
) -> AssetRead:
    try:
        asset = await db_manager.get_asset_or_raise(db, serial)
    except NotFound as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=exc.to_detail(),
        ) from exc

    return AssetRead.model_validate(asset)


@router.put(
    "/{serial}",
    response_model=AssetRead,
    summary="Update an asset and re-bind its holder",
)
async def update_asset_endpoint(
    serial: str,
    payload: AssetUpdate,
    db: AsyncSession = Depends(get_session),
) -> AssetRead:
    try:
        asset = await db_manager.rebind(
            db,
            serial,
            payload.holder_code,
            make=payload.make,
            model=payload.model,
            color=payload.color,
            credential_ref=payload.credential_ref,
        )
    except (ConflictingAssignment, NotFound, PolicyViolation) as exc:
        raise _binding_http_error(exc) from exc

    return AssetRead.model_validate(asset)


@router.post(
    "/{serial}/assign",
    response_model=AssetRead,
    summary="Assign an asset to a holder",
)
async def assign_asset_endpoint(
    serial: str,
    payload: AssignRequest,
    db: AsyncSession = Depends(get_session),
) -> AssetRead:
    try:
        asset = await db_manager.assign(db, serial, payload.holder_code)
    except (ConflictingAssignment, NotFound, PolicyViolation) as exc:
        raise _binding_http_error(exc) from exc

    return AssetRead.model_validate(asset)


@router.post(
    "/{serial}/unassign",
    response_model=AssetRead,
    summary="Clear an asset's holder",
)
async def unassign_asset_endpoint(
    serial: str,
    db: AsyncSession = Depends(get_session),
) -> AssetRead:
    """Refused with 422 while the asset is checked out."""
    try:
        asset = await db_manager.unassign(db, serial)
    except (NotFound, PolicyViolation) as exc:
        raise _binding_http_error(exc) from exc

    return AssetRead.model_validate(asset)


@router.delete(
    "/{serial}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Retire an asset",
)
async def retire_asset_endpoint(
    serial: str,
    db: AsyncSession = Depends(get_session),
) -> Response:
    """Deletes the asset record; its custody history is kept."""
    try:
        await db_manager.retire_asset(db, serial)
    except (NotFound, PolicyViolation) as exc:
        raise _binding_http_error(exc) from exc

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{serial}/credential",
    response_model=CredentialPayload,
    summary="Credential payload to encode on the asset label",
)
async def get_credential_endpoint(
    serial: str,
    db: AsyncSession = Depends(get_session),
) -> CredentialPayload:
    try:
        return await db_manager.build_credential(db, serial)
    except NotFound as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=exc.to_detail(),
        ) from exc

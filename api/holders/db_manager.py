# api/holders/db_manager.py
"""
Holder registry: create, look up, update and delete the people assets are
bound to.
"""
from urllib.parse import quote

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from core.errors import AlreadyExists, NotFound, PolicyViolation
from db_models.asset import Asset
from db_models.holder import Holder
from . import queries

logger = structlog.get_logger(__name__)

AVATAR_URL = "https://ui-avatars.com/api/?name={name}"


def default_portrait(name: str) -> str:
    return AVATAR_URL.format(name=quote(name or "User"))


async def find_holder(db: AsyncSession, holder_code: str) -> Holder | None:
    result = await db.execute(queries.select_holder_by_code(holder_code))
    return result.scalar_one_or_none()


async def get_holder_or_raise(db: AsyncSession, holder_code: str) -> Holder:
    """Get holder by code or raise NotFound"""
    holder = await find_holder(db, holder_code)
    if holder is None:
        raise NotFound(f"Holder {holder_code} not found")
    return holder


async def create_holder(
    db: AsyncSession,
    holder_code: str,
    name: str,
    *,
    unit: str = "",
    portrait_ref: str | None = None,
) -> Holder:
    """
    Register a holder.

    Raises:
        AlreadyExists: If the holder code is taken
    """
    holder_code = holder_code.strip()
    name = name.strip()

    if await find_holder(db, holder_code) is not None:
        raise AlreadyExists(f"Holder {holder_code} already exists")

    holder = Holder(
        holder_code=holder_code,
        name=name,
        unit=unit.strip(),
        portrait_ref=portrait_ref or default_portrait(name),
    )
    db.add(holder)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise AlreadyExists(f"Holder {holder_code} already exists") from exc

    await db.refresh(holder)
    logger.info("holder_created", holder_code=holder_code)
    return holder


async def search_holders(db: AsyncSession, text: str | None = None) -> list[Holder]:
    result = await db.execute(queries.search_holders_query(text))
    return list(result.scalars().all())


async def get_holder_detail(db: AsyncSession, holder_code: str) -> tuple[Holder, list[Asset]]:
    """Holder plus the assets currently bound to it."""
    holder = await get_holder_or_raise(db, holder_code)
    result = await db.execute(queries.select_assets_for_holder(holder_code))
    return holder, list(result.scalars().all())


async def update_holder(
    db: AsyncSession,
    holder_code: str,
    *,
    name: str | None = None,
    unit: str | None = None,
    portrait_ref: str | None = None,
) -> Holder:
    """Update name, unit or portrait. The holder code never changes."""
    holder = await get_holder_or_raise(db, holder_code)

    if name:
        holder.name = name.strip()
    if unit is not None:
        holder.unit = unit.strip()
    if portrait_ref:
        holder.portrait_ref = portrait_ref

    await db.commit()
    await db.refresh(holder)
    return holder


async def delete_holder(db: AsyncSession, holder_code: str) -> None:
    """
    Hard-delete a holder.

    Raises:
        NotFound: If the holder doesn't exist
        PolicyViolation: While any asset is still bound to the holder
    """
    holder = await get_holder_or_raise(db, holder_code)

    result = await db.execute(queries.select_assets_for_holder(holder_code))
    bound = [a.serial for a in result.scalars().all()]
    if bound:
        raise PolicyViolation(
            f"Holder {holder_code} still holds {', '.join(bound)}; unassign them first"
        )

    await db.delete(holder)
    await db.commit()
    logger.info("holder_deleted", holder_code=holder_code)

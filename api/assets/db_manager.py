# api/assets/db_manager.py
"""
Assignment rules for binding assets to holders.

- A holder holds at most one asset per category.
- A personally-owned asset must name its holder at registration.
- An asset that is checked out keeps its holder until it comes back.

Per-serial writes lock the asset row. Two concurrent bindings of different
assets to the same holder race on the (holder_code, category) unique
constraint, and the loser gets ConflictingAssignment.
"""
import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from core.clock import as_utc, utcnow
from core.errors import AlreadyExists, ConflictingAssignment, NotFound, PolicyViolation
from db_models.asset import Asset, AssetCategory, CustodyStatus
from db_models.custody_event import CustodyAction
from db_models.holder import Holder
from api.custody import ledger
from api.holders import db_manager as holders_db
from .models import CredentialPayload
from . import queries

logger = structlog.get_logger(__name__)

MANDATORY_ASSIGNMENT = "personally-owned assets must be assigned at registration"


async def find_asset(db: AsyncSession, serial: str, *, for_update: bool = False) -> Asset | None:
    result = await db.execute(queries.select_asset_by_serial(serial, for_update=for_update))
    return result.scalar_one_or_none()


async def get_asset_or_raise(db: AsyncSession, serial: str, *, for_update: bool = False) -> Asset:
    """Get asset by serial or raise NotFound"""
    asset = await find_asset(db, serial, for_update=for_update)
    if asset is None:
        raise NotFound(f"Asset {serial} not found")
    return asset


async def find_conflict(
    db: AsyncSession,
    holder_code: str,
    category: AssetCategory,
    exclude_serial: str | None = None,
) -> Asset | None:
    """Another asset of the same category already bound to the holder, if any."""
    stmt = queries.select_holder_asset_of_category(holder_code, category.value, exclude_serial)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


def _conflict_error(holder_code: str, category: AssetCategory, conflicting_serial: str) -> ConflictingAssignment:
    return ConflictingAssignment(
        f"Holder {holder_code} already holds {category.value} asset {conflicting_serial}",
        conflicting_serial,
    )


async def resolve_holder(
    db: AsyncSession,
    *,
    serial: str,
    category: AssetCategory,
    current_holder: str | None,
    holder_code: str | None,
) -> Holder | None:
    """
    Check the binding preconditions and return the live target holder.

    Returns None when no holder code was given and none is required.

    Raises:
        PolicyViolation: Personally-owned asset without any holder
        NotFound: Unknown holder code
        ConflictingAssignment: Holder already holds another asset of the category
    """
    if not holder_code:
        if category is AssetCategory.PERSONALLY_OWNED and current_holder is None:
            raise PolicyViolation(MANDATORY_ASSIGNMENT)
        return None

    holder = await holders_db.get_holder_or_raise(db, holder_code)

    conflict = await find_conflict(db, holder_code, category, exclude_serial=serial)
    if conflict is not None:
        raise _conflict_error(holder_code, category, conflict.serial)

    return holder


async def _commit_binding(
    db: AsyncSession,
    serial: str,
    holder_code: str | None,
    category: AssetCategory,
) -> None:
    """Commit, turning a lost unique-constraint race into a domain error."""
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if holder_code:
            conflict = await find_conflict(db, holder_code, category, exclude_serial=serial)
            if conflict is not None:
                raise _conflict_error(holder_code, category, conflict.serial) from exc
        if await find_asset(db, serial) is not None:
            raise AlreadyExists(f"Asset {serial} already exists") from exc
        raise


async def register_asset(
    db: AsyncSession,
    serial: str,
    category: AssetCategory,
    make: str,
    model: str,
    color: str = "",
    *,
    holder_code: str | None = None,
) -> Asset:
    """
    Register a new asset, binding it to a holder when one is given.

    A personally-owned asset is brought in by its holder, so it starts with a
    CHECK_IN event recorded in the same transaction, unless the serial's
    existing ledger already ends in a check-in.

    Raises:
        AlreadyExists: If the serial is already registered
        PolicyViolation: Personally-owned asset without holder
        NotFound: Unknown holder code
        ConflictingAssignment: Holder already holds an asset of this category
    """
    serial = serial.strip()
    holder_code = holder_code.strip() if holder_code else None

    existing = await find_asset(db, serial)
    if existing is not None:
        raise AlreadyExists(f"Asset {serial} already exists")

    holder = await resolve_holder(
        db,
        serial=serial,
        category=category,
        current_holder=None,
        holder_code=holder_code,
    )

    # A retired serial keeps its ledger; a re-registered asset continues it
    latest = await ledger.latest_event(db, serial)
    status = ledger.derive_status(latest)

    asset = Asset(
        serial=serial,
        category=category.value,
        make=make.strip(),
        model=model.strip(),
        color=(color or "").strip(),
        holder_code=holder.holder_code if holder else None,
        custody_status=status.value,
        custody_version=0,
    )
    db.add(asset)

    if category is AssetCategory.PERSONALLY_OWNED and (latest is None or status is CustodyStatus.OUT):
        occurred_at = utcnow()
        if latest is not None and as_utc(latest.occurred_at) > occurred_at:
            occurred_at = as_utc(latest.occurred_at)
        db.add(ledger.new_event(serial, CustodyAction.CHECK_IN, holder, occurred_at))
        asset.custody_status = CustodyStatus.IN.value
        asset.custody_version = 1

    await _commit_binding(db, serial, asset.holder_code, category)
    await db.refresh(asset)

    logger.info(
        "asset_registered",
        serial=serial,
        category=category.value,
        holder_code=asset.holder_code,
    )
    return asset


async def assign(db: AsyncSession, serial: str, holder_code: str | None) -> Asset:
    """
    Bind an asset to a holder. Does not touch the custody ledger.

    Raises:
        NotFound: Unknown asset or holder
        PolicyViolation: No holder code given
        ConflictingAssignment: Holder already holds another asset of the category
    """
    asset = await get_asset_or_raise(db, serial, for_update=True)
    category = AssetCategory(asset.category)

    holder = await resolve_holder(
        db,
        serial=serial,
        category=category,
        current_holder=asset.holder_code,
        holder_code=holder_code.strip() if holder_code else None,
    )
    if holder is None:
        raise PolicyViolation("A holder code is required to assign an asset; use unassign to clear it")

    previous = asset.holder_code
    asset.holder_code = holder.holder_code
    await _commit_binding(db, serial, holder.holder_code, category)
    await db.refresh(asset)

    logger.info("asset_assigned", serial=serial, holder_code=holder.holder_code, previous=previous)
    return asset


async def rebind(
    db: AsyncSession,
    serial: str,
    holder_code: str | None = None,
    *,
    make: str | None = None,
    model: str | None = None,
    color: str | None = None,
    credential_ref: str | None = None,
) -> Asset:
    """
    Update path for an existing asset. Same preconditions as assign, but the
    asset never conflicts with itself and a missing holder code keeps the
    current holder.
    """
    asset = await get_asset_or_raise(db, serial, for_update=True)
    category = AssetCategory(asset.category)

    holder = await resolve_holder(
        db,
        serial=serial,
        category=category,
        current_holder=asset.holder_code,
        holder_code=holder_code.strip() if holder_code else None,
    )
    if holder is not None:
        asset.holder_code = holder.holder_code

    if make:
        asset.make = make.strip()
    if model:
        asset.model = model.strip()
    if color is not None:
        asset.color = color.strip()
    if credential_ref is not None:
        asset.credential_ref = credential_ref or None

    await _commit_binding(db, serial, asset.holder_code, category)
    await db.refresh(asset)
    return asset


async def unassign(db: AsyncSession, serial: str) -> Asset:
    """
    Clear an asset's holder.

    Raises:
        NotFound: Unknown asset
        PolicyViolation: The asset is checked out; it would become unattributable
    """
    asset = await get_asset_or_raise(db, serial, for_update=True)

    if await ledger.current_status(db, serial) is CustodyStatus.OUT:
        raise PolicyViolation(f"Asset {serial} is checked out; check it in before unassigning")

    previous = asset.holder_code
    asset.holder_code = None
    await db.commit()
    await db.refresh(asset)

    logger.info("asset_unassigned", serial=serial, previous=previous)
    return asset


async def retire_asset(db: AsyncSession, serial: str) -> None:
    """
    Hard-delete an asset record. Its custody ledger is kept.

    Raises:
        NotFound: Unknown asset
        PolicyViolation: The asset is checked out
    """
    asset = await get_asset_or_raise(db, serial, for_update=True)

    if await ledger.current_status(db, serial) is CustodyStatus.OUT:
        raise PolicyViolation(f"Asset {serial} is checked out and cannot be retired")

    await db.delete(asset)
    await db.commit()
    logger.info("asset_retired", serial=serial)


async def list_assets(
    db: AsyncSession,
    *,
    category: AssetCategory | None = None,
    text: str | None = None,
    unassigned_only: bool = False,
) -> list[Asset]:
    stmt = queries.search_assets_query(
        category=category.value if category else None,
        text=text,
        unassigned_only=unassigned_only,
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def build_credential(db: AsyncSession, serial: str) -> CredentialPayload:
    """Credential payload for an asset, taken from live state."""
    asset = await get_asset_or_raise(db, serial)

    holder = None
    if asset.holder_code:
        holder = await holders_db.find_holder(db, asset.holder_code)

    return CredentialPayload(
        serial=asset.serial,
        holder_code=holder.holder_code if holder else None,
        holder_name=holder.name if holder else None,
        make=asset.make,
        model=asset.model,
        color=asset.color,
        category=AssetCategory(asset.category),
    )

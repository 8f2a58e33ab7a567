# api/assets/queries.py
"""
SQLAlchemy query builders for asset records.
"""
from sqlalchemy import select, func

from db_models.asset import Asset


def select_asset_by_serial(serial: str, *, for_update: bool = False):
    """
    Select an asset by serial. Always refreshes the identity map copy, since
    custody columns are written with bulk UPDATEs.

    With for_update the row is locked until the transaction ends (ignored by
    SQLite, which serializes writers anyway).
    """
    stmt = (
        select(Asset)
        .where(Asset.serial == serial)
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update()
    return stmt


def select_holder_asset_of_category(holder_code: str, category: str, exclude_serial: str | None = None):
    """The asset of `category` bound to a holder, other than `exclude_serial`."""
    stmt = select(Asset).where(
        Asset.holder_code == holder_code,
        Asset.category == category,
    )
    if exclude_serial is not None:
        stmt = stmt.where(Asset.serial != exclude_serial)
    return stmt.order_by(Asset.serial.asc()).limit(1)


def select_assets_by_category(category: str):
    """All assets of a category ordered by serial."""
    return select(Asset).where(Asset.category == category).order_by(Asset.serial.asc())


def search_assets_query(
    category: str | None = None,
    text: str | None = None,
    unassigned_only: bool = False,
    limit: int = 200,
):
    """
    Filter assets by category, partial serial match (case-insensitive) and
    assignment state. Ordered by serial.
    """
    stmt = select(Asset)
    if category:
        stmt = stmt.where(Asset.category == category)
    if text:
        stmt = stmt.where(func.lower(Asset.serial).like(f"%{text.lower()}%"))
    if unassigned_only:
        stmt = stmt.where(Asset.holder_code.is_(None))
    return stmt.order_by(Asset.serial.asc()).limit(limit)


def count_assets_by_category(category: str):
    return select(func.count(Asset.serial)).where(Asset.category == category)


def count_assets_by_status(status: str):
    return select(func.count(Asset.serial)).where(Asset.custody_status == status)

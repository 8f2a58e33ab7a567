# api/holders/queries.py
"""
SQLAlchemy query builders for holder records.
"""
from sqlalchemy import select, or_, func

from db_models.holder import Holder
from db_models.asset import Asset


def select_holder_by_code(holder_code: str):
    """Select a holder by its unique holder code."""
    return select(Holder).where(Holder.holder_code == holder_code)


def search_holders_query(text: str | None = None, limit: int = 200):
    """
    Holders whose name or code contains `text` (case-insensitive), ordered by
    name. Without text, all holders up to `limit`.
    """
    stmt = select(Holder)
    if text:
        pattern = f"%{text.lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(Holder.name).like(pattern),
                func.lower(Holder.holder_code).like(pattern),
            )
        )
    return stmt.order_by(Holder.name.asc(), Holder.holder_code.asc()).limit(limit)


def select_assets_for_holder(holder_code: str):
    """Assets currently bound to a holder."""
    return (
        select(Asset)
        .where(Asset.holder_code == holder_code)
        .order_by(Asset.category.asc(), Asset.serial.asc())
    )


def count_holders():
    return select(func.count(Holder.holder_code))

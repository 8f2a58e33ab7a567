# db_models/asset.py
from datetime import datetime
from enum import Enum

from sqlalchemy import String, Integer, DateTime, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from db_base import Base


class AssetCategory(str, Enum):
    ORGANIZATION_OWNED = "ORGANIZATION_OWNED"
    PERSONALLY_OWNED = "PERSONALLY_OWNED"


class CustodyStatus(str, Enum):
    IN = "IN"
    OUT = "OUT"


class Asset(Base):
    __tablename__ = "assets"
    # One asset per category per holder. NULL holder codes never collide.
    __table_args__ = (
        UniqueConstraint("holder_code", "category", name="uq_asset_holder_category"),
    )

    serial: Mapped[str] = mapped_column(
        String(100),
        primary_key=True,
    )

    category: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        index=True,
    )

    make: Mapped[str] = mapped_column(String(100), nullable=False)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="",
        server_default="",
    )

    # Weak reference to holders.holder_code; integrity is checked by the
    # assignment rules, not by a foreign key.
    holder_code: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        index=True,
    )

    credential_ref: Mapped[str | None] = mapped_column(
        String(1024),
        nullable=True,
    )

    # Mirrors the action of the latest custody event. Only written together
    # with an event append, guarded by custody_version.
    custody_status: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default=CustodyStatus.IN.value,
        server_default=CustodyStatus.IN.value,
    )
    custody_version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        onupdate=func.now(),
    )

    def is_out(self) -> bool:
        return self.custody_status == CustodyStatus.OUT.value

# db_models/custody_event.py
from datetime import datetime
from enum import Enum

from sqlalchemy import String, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column

from db_base import Base
from db_models.asset import CustodyStatus


class CustodyAction(str, Enum):
    CHECK_IN = "CHECK_IN"
    CHECK_OUT = "CHECK_OUT"

    @property
    def resulting_status(self) -> CustodyStatus:
        return CustodyStatus.IN if self is CustodyAction.CHECK_IN else CustodyStatus.OUT


class CustodyEvent(Base):
    """
    Append-only custody ledger.

    Rows are never updated or deleted. No foreign key to assets: the history
    of a retired asset stays available for audit.
    """

    __tablename__ = "custody_events"
    # "latest N events for a serial" is the hot query
    __table_args__ = (
        Index("ix_custody_serial_occurred", "serial", "occurred_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    serial: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )

    # Snapshot of the holder at the time of the event, not a live join
    holder_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    holder_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    action: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

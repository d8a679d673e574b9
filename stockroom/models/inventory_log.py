import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum

from sqlalchemy import DateTime, Enum, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from stockroom.database import Base


class InventoryLogType(str, PyEnum):
    PURCHASE = "purchase"
    CONSUMPTION = "consumption"
    ADJUSTMENT = "adjustment"
    STOCKTAKE = "stocktake"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class InventoryLog(Base):
    """Append-only record of a single stock change on a product."""

    __tablename__ = "inventory_logs"
    __table_args__ = (Index("ix_inventory_logs_product_created", "product_id", "created_at"),)

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    org_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    # Not a foreign key: the ledger outlives a deleted product
    product_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    type: Mapped[InventoryLogType] = mapped_column(
        Enum(InventoryLogType, values_callable=lambda x: [e.value for e in x]), nullable=False, index=True
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)  # signed delta
    previous_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    new_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Naive UTC, set by the application so ordering has sub-second resolution
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)

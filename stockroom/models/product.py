import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, String, Table, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockroom.database import Base

# Upper bound of the 32-bit INTEGER quantity columns
MAX_QUANTITY = 2**31 - 1

product_categories = Table(
    "product_categories",
    Base.metadata,
    Column("product_id", String, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", String, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True, index=True),
)


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        UniqueConstraint("org_id", "name", name="uq_products_org_name"),
        Index("ix_products_org_quantity", "org_id", "current_quantity"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    org_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    brand: Mapped[str | None] = mapped_column(String, nullable=True)
    default_unit: Mapped[str] = mapped_column(String, nullable=False)
    default_purchase_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    # Only written on creation and by the inventory ledger
    current_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    image_url: Mapped[str | None] = mapped_column(String, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    categories: Mapped[list["Category"]] = relationship(  # noqa: F821
        "Category", secondary=product_categories, back_populates="products"
    )

    @property
    def category_ids(self) -> list[str]:
        return [c.id for c in self.categories]

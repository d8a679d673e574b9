from datetime import datetime

from pydantic import BaseModel, Field, HttpUrl

from stockroom.models.inventory_log import InventoryLogType
from stockroom.models.product import MAX_QUANTITY


# --- Product schemas ---

class ProductCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = Field(default=None, min_length=1)
    brand: str | None = Field(default=None, min_length=1)
    default_unit: str = Field(min_length=1)
    default_purchase_price: float | None = Field(default=None, ge=0)
    current_quantity: int = Field(default=0, ge=0, le=MAX_QUANTITY)
    category_ids: list[str] = []
    image_url: HttpUrl | None = None


class ProductUpdate(BaseModel):
    # No current_quantity: stock only moves through stock adjustments
    name: str | None = Field(default=None, min_length=1)
    description: str | None = Field(default=None, min_length=1)
    brand: str | None = Field(default=None, min_length=1)
    default_unit: str | None = Field(default=None, min_length=1)
    default_purchase_price: float | None = Field(default=None, ge=0)
    category_ids: list[str] | None = None
    image_url: HttpUrl | None = None


class ProductOut(BaseModel):
    id: str
    org_id: str
    name: str
    description: str | None = None
    brand: str | None = None
    default_unit: str
    default_purchase_price: float | None = None
    current_quantity: int
    category_ids: list[str] = []
    image_url: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# --- Inventory schemas ---

class StockAdjust(BaseModel):
    type: InventoryLogType
    quantity: int = Field(ge=-MAX_QUANTITY, le=MAX_QUANTITY)  # positive to add, negative to remove
    note: str | None = Field(default=None, min_length=1)


class InventoryLogOut(BaseModel):
    id: str
    org_id: str
    product_id: str
    user_id: str
    type: InventoryLogType
    quantity: int
    previous_quantity: int
    new_quantity: int
    note: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}

from datetime import datetime

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = Field(default=None, min_length=1)
    parent_id: str | None = None


class CategoryUpdate(BaseModel):
    # Omitted fields are left untouched; "parent_id": null detaches the category
    name: str | None = Field(default=None, min_length=1)
    description: str | None = Field(default=None, min_length=1)
    parent_id: str | None = None


class CategoryOut(BaseModel):
    id: str
    org_id: str
    name: str
    description: str | None = None
    parent_id: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CategoryNode(BaseModel):
    id: str
    name: str
    description: str | None = None
    parent_id: str | None = None
    children: list["CategoryNode"] = []

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from stockroom.api.deps import get_current_user_id
from stockroom.database import get_db
from stockroom.schemas.product import InventoryLogOut, ProductCreate, ProductOut, ProductUpdate, StockAdjust
from stockroom.services import inventory_service, product_service

router = APIRouter(prefix="/orgs/{org_id}/products", tags=["Products"])


@router.post("", response_model=ProductOut, status_code=201)
def create_product(org_id: str, data: ProductCreate, db: Session = Depends(get_db)):
    return product_service.create_product(db, org_id, data)


@router.get("", response_model=list[ProductOut])
def list_products(org_id: str, category_id: str | None = None, db: Session = Depends(get_db)):
    return product_service.list_products(db, org_id, category_id=category_id)


@router.get("/low-stock", response_model=list[ProductOut])
def low_stock(org_id: str, threshold: int | None = Query(None, ge=0), db: Session = Depends(get_db)):
    return product_service.get_low_stock(db, org_id, threshold)


@router.get("/{product_id}", response_model=ProductOut)
def get_product(org_id: str, product_id: str, db: Session = Depends(get_db)):
    return product_service.get_product(db, org_id, product_id)


@router.put("/{product_id}", response_model=ProductOut)
def update_product(org_id: str, product_id: str, data: ProductUpdate, db: Session = Depends(get_db)):
    return product_service.update_product(db, org_id, product_id, data)


@router.delete("/{product_id}", status_code=204)
def delete_product(org_id: str, product_id: str, db: Session = Depends(get_db)):
    product_service.delete_product(db, org_id, product_id)


# --- Inventory endpoints ---

@router.post("/{product_id}/stock-adjustments", response_model=InventoryLogOut, status_code=201)
def adjust_stock(
    org_id: str,
    product_id: str,
    data: StockAdjust,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    return inventory_service.adjust_stock(db, org_id, product_id, user_id, data)


@router.get("/{product_id}/inventory-logs", response_model=list[InventoryLogOut])
def inventory_logs(
    org_id: str,
    product_id: str,
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    db: Session = Depends(get_db),
):
    return inventory_service.get_product_inventory_logs(db, org_id, product_id, start_date, end_date)

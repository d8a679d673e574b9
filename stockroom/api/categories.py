from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockroom.database import get_db
from stockroom.schemas.category import CategoryCreate, CategoryNode, CategoryOut, CategoryUpdate
from stockroom.services import category_service

router = APIRouter(prefix="/orgs/{org_id}/categories", tags=["Categories"])


@router.get("", response_model=list[CategoryOut])
def list_categories(org_id: str, db: Session = Depends(get_db)):
    return category_service.list_categories(db, org_id)


@router.get("/tree", response_model=list[CategoryNode])
def category_tree(org_id: str, db: Session = Depends(get_db)):
    return category_service.get_category_tree(db, org_id)


@router.get("/{category_id}", response_model=CategoryOut)
def get_category(org_id: str, category_id: str, db: Session = Depends(get_db)):
    return category_service.get_category(db, org_id, category_id)


@router.post("", response_model=CategoryOut, status_code=201)
def create_category(org_id: str, data: CategoryCreate, db: Session = Depends(get_db)):
    return category_service.create_category(db, org_id, data)


@router.put("/{category_id}", response_model=CategoryOut)
def update_category(org_id: str, category_id: str, data: CategoryUpdate, db: Session = Depends(get_db)):
    return category_service.update_category(db, org_id, category_id, data)


@router.delete("/{category_id}", status_code=204)
def delete_category(org_id: str, category_id: str, db: Session = Depends(get_db)):
    category_service.delete_category(db, org_id, category_id)

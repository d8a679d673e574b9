import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from stockroom.config import settings
from stockroom.database import is_foreign_key_violation
from stockroom.exceptions import (
    CategoryNotFoundError,
    DatabaseOperationError,
    InvalidProductCategoryError,
    ProductNameConflictError,
    ProductNotFoundError,
)
from stockroom.models.category import Category
from stockroom.models.inventory_log import InventoryLog, InventoryLogType
from stockroom.models.product import Product
from stockroom.schemas.product import ProductCreate, ProductUpdate
from stockroom.services import category_service

logger = logging.getLogger(__name__)

# Ledger actor for the opening entry written on product creation
SYSTEM_USER_ID = "system"


def _resolve_categories(db: Session, org_id: str, category_ids: list[str]) -> list[Category]:
    """Load the categories, rejecting any that are missing or belong to another org."""
    categories = []
    for category_id in dict.fromkeys(category_ids):
        try:
            categories.append(category_service.get_category(db, org_id, category_id))
        except CategoryNotFoundError as e:
            raise InvalidProductCategoryError(category_id) from e
    return categories


def _name_taken(db: Session, org_id: str, name: str, exclude_id: str | None = None) -> bool:
    q = db.query(Product.id).filter(Product.org_id == org_id, Product.name == name)
    if exclude_id:
        q = q.filter(Product.id != exclude_id)
    return q.first() is not None


def _commit(db: Session, org_id: str, operation: str, name: str, category_ids: list[str]) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if is_foreign_key_violation(e):
            # A linked category was deleted concurrently; name it if it is gone
            _resolve_categories(db, org_id, category_ids)
            raise DatabaseOperationError(operation, str(e)) from e
        raise ProductNameConflictError(name) from e
    except SQLAlchemyError as e:
        db.rollback()
        raise DatabaseOperationError(operation, str(e)) from e


def create_product(db: Session, org_id: str, data: ProductCreate) -> Product:
    logger.debug("Creating product %r for org %s", data.name, org_id)
    categories = _resolve_categories(db, org_id, data.category_ids)
    if _name_taken(db, org_id, data.name):
        raise ProductNameConflictError(data.name)

    product = Product(
        org_id=org_id,
        name=data.name,
        description=data.description,
        brand=data.brand,
        default_unit=data.default_unit,
        default_purchase_price=data.default_purchase_price,
        current_quantity=data.current_quantity,
        image_url=str(data.image_url) if data.image_url else None,
        categories=categories,
    )
    db.add(product)
    db.flush()

    if data.current_quantity > 0:
        log = InventoryLog(
            org_id=org_id,
            product_id=product.id,
            user_id=SYSTEM_USER_ID,
            type=InventoryLogType.ADJUSTMENT,
            quantity=data.current_quantity,
            previous_quantity=0,
            new_quantity=data.current_quantity,
            note="Initial stock on product creation",
        )
        db.add(log)

    _commit(db, org_id, "product creation", data.name, data.category_ids)
    db.refresh(product)
    logger.debug("Product created with id %s", product.id)
    return product


def get_product(db: Session, org_id: str, product_id: str) -> Product:
    product = db.query(Product).filter(Product.id == product_id, Product.org_id == org_id).first()
    if not product:
        logger.warning("Product %s not found for org %s", product_id, org_id)
        raise ProductNotFoundError(product_id)
    return product


def list_products(db: Session, org_id: str, category_id: str | None = None) -> list[Product]:
    q = db.query(Product).filter(Product.org_id == org_id)
    if category_id:
        q = q.filter(Product.categories.any(Category.id == category_id))
    return q.order_by(Product.name.asc()).all()


def get_low_stock(db: Session, org_id: str, threshold: int | None = None) -> list[Product]:
    if threshold is None:
        threshold = settings.LOW_STOCK_THRESHOLD
    return (
        db.query(Product)
        .filter(Product.org_id == org_id, Product.current_quantity <= threshold)
        .order_by(Product.current_quantity.asc(), Product.name.asc())
        .all()
    )


def update_product(db: Session, org_id: str, product_id: str, data: ProductUpdate) -> Product:
    logger.debug("Updating product %s for org %s", product_id, org_id)
    product = get_product(db, org_id, product_id)
    update_data = data.model_dump(exclude_unset=True)

    if update_data.get("category_ids") is not None:
        product.categories = _resolve_categories(db, org_id, update_data.pop("category_ids"))
    else:
        update_data.pop("category_ids", None)

    name = update_data.get("name")
    if name and name != product.name and _name_taken(db, org_id, name, exclude_id=product_id):
        db.rollback()
        raise ProductNameConflictError(name)

    if "image_url" in update_data:
        update_data["image_url"] = str(data.image_url) if data.image_url else None
    for field, value in update_data.items():
        # name and default_unit are required columns; a null means "leave as is"
        if value is None and field in ("name", "default_unit"):
            continue
        setattr(product, field, value)

    _commit(db, org_id, "product update", name or product.name, product.category_ids)
    db.refresh(product)
    logger.debug("Product %s updated", product_id)
    return product


def delete_product(db: Session, org_id: str, product_id: str) -> None:
    logger.debug("Deleting product %s for org %s", product_id, org_id)
    product = get_product(db, org_id, product_id)
    db.delete(product)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise DatabaseOperationError("product deletion", str(e)) from e
    logger.debug("Product %s deleted, inventory logs kept", product_id)

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import ORG_ID, OTHER_ORG_ID, USER_ID
from stockroom.config import settings
from stockroom.exceptions import (
    DatabaseOperationError,
    InvalidProductCategoryError,
    ProductNameConflictError,
    ProductNotFoundError,
)
from stockroom.models.category import Category
from stockroom.models.inventory_log import InventoryLog, InventoryLogType
from stockroom.schemas.category import CategoryCreate
from stockroom.schemas.product import ProductCreate, ProductUpdate, StockAdjust
from stockroom.services import category_service, inventory_service, product_service


def make_category(db, name, org_id=ORG_ID):
    return category_service.create_category(db, org_id, CategoryCreate(name=name))


def make_product(db, name, org_id=ORG_ID, **kwargs):
    kwargs.setdefault("default_unit", "piece")
    return product_service.create_product(db, org_id, ProductCreate(name=name, **kwargs))


def test_create_product_with_categories(db):
    beverages = make_category(db, "Beverages")
    soda = make_category(db, "Soda")

    product = make_product(
        db,
        "Cola 0.5l",
        description="Classic",
        brand="Fizz",
        default_unit="bottle",
        default_purchase_price=0.45,
        category_ids=[beverages.id, soda.id, beverages.id],
        image_url="https://cdn.example.com/cola.png",
    )

    assert product.org_id == ORG_ID
    assert product.current_quantity == 0
    assert sorted(product.category_ids) == sorted([beverages.id, soda.id])
    assert product.image_url == "https://cdn.example.com/cola.png"
    assert product.default_purchase_price == 0.45


def test_create_rejects_category_of_other_org(db):
    foreign = make_category(db, "Beverages", org_id=OTHER_ORG_ID)
    with pytest.raises(InvalidProductCategoryError) as exc_info:
        make_product(db, "Cola", category_ids=[foreign.id])
    assert exc_info.value.category_id == foreign.id


def test_category_deleted_before_commit(db, monkeypatch):
    category_id = make_category(db, "Beverages").id
    real_commit = db.commit

    def commit():
        # A concurrent request removes the category first
        db.rollback()
        db.query(Category).filter(Category.id == category_id).delete()
        real_commit()
        raise IntegrityError("INSERT INTO product_categories", {}, Exception("FOREIGN KEY constraint failed"))

    monkeypatch.setattr(db, "commit", commit)

    with pytest.raises(InvalidProductCategoryError) as exc_info:
        make_product(db, "Cola", category_ids=[category_id])

    assert exc_info.value.category_id == category_id
    assert product_service.list_products(db, ORG_ID) == []


def test_unexplained_foreign_key_failure_is_a_database_error(db, monkeypatch):
    category = make_category(db, "Beverages")

    def commit():
        raise IntegrityError("INSERT INTO product_categories", {}, Exception("FOREIGN KEY constraint failed"))

    monkeypatch.setattr(db, "commit", commit)

    with pytest.raises(DatabaseOperationError):
        make_product(db, "Cola", category_ids=[category.id])


def test_unique_violation_at_commit_is_a_name_conflict(db, monkeypatch):
    def commit():
        orig = Exception("UNIQUE constraint failed: products.org_id, products.name")
        raise IntegrityError("INSERT INTO products", {}, orig)

    monkeypatch.setattr(db, "commit", commit)

    with pytest.raises(ProductNameConflictError):
        make_product(db, "Cola")


def test_create_rejects_duplicate_name(db):
    make_product(db, "Cola")
    with pytest.raises(ProductNameConflictError):
        make_product(db, "Cola")


def test_same_product_name_in_other_org(db):
    make_product(db, "Cola")
    assert make_product(db, "Cola", org_id=OTHER_ORG_ID).org_id == OTHER_ORG_ID


def test_list_products_sorted_and_filtered_by_category(db):
    beverages = make_category(db, "Beverages")
    make_product(db, "Water", category_ids=[beverages.id])
    make_product(db, "Bread")
    make_product(db, "Cola", category_ids=[beverages.id])
    make_product(db, "Tea", org_id=OTHER_ORG_ID)

    assert [p.name for p in product_service.list_products(db, ORG_ID)] == ["Bread", "Cola", "Water"]
    assert [p.name for p in product_service.list_products(db, ORG_ID, category_id=beverages.id)] == ["Cola", "Water"]


def test_get_product_of_other_org_is_not_found(db):
    product = make_product(db, "Cola", org_id=OTHER_ORG_ID)
    with pytest.raises(ProductNotFoundError):
        product_service.get_product(db, ORG_ID, product.id)


def test_update_product_fields_and_categories(db):
    beverages = make_category(db, "Beverages")
    soda = make_category(db, "Soda")
    product = make_product(db, "Cola", category_ids=[beverages.id])

    updated = product_service.update_product(
        db, ORG_ID, product.id, ProductUpdate(name="Cola Zero", brand="Fizz", category_ids=[soda.id])
    )

    assert updated.name == "Cola Zero"
    assert updated.brand == "Fizz"
    assert updated.default_unit == "piece"
    assert updated.category_ids == [soda.id]


def test_update_ignores_current_quantity(db):
    product = make_product(db, "Cola", current_quantity=4)
    data = ProductUpdate.model_validate({"name": "Cola 1l", "current_quantity": 999})

    updated = product_service.update_product(db, ORG_ID, product.id, data)

    assert updated.current_quantity == 4


def test_update_name_conflict(db):
    make_product(db, "Cola")
    water = make_product(db, "Water")
    with pytest.raises(ProductNameConflictError):
        product_service.update_product(db, ORG_ID, water.id, ProductUpdate(name="Cola"))
    assert product_service.get_product(db, ORG_ID, water.id).name == "Water"


def test_update_rejects_foreign_category(db):
    product = make_product(db, "Cola")
    foreign = make_category(db, "Beverages", org_id=OTHER_ORG_ID)
    with pytest.raises(InvalidProductCategoryError):
        product_service.update_product(db, ORG_ID, product.id, ProductUpdate(category_ids=[foreign.id]))


def test_update_unknown_product(db):
    with pytest.raises(ProductNotFoundError):
        product_service.update_product(db, ORG_ID, "missing", ProductUpdate(name="X"))


def test_delete_product_keeps_ledger(db):
    product = make_product(db, "Cola", current_quantity=3)
    inventory_service.adjust_stock(
        db, ORG_ID, product.id, USER_ID, StockAdjust(type=InventoryLogType.CONSUMPTION, quantity=-1)
    )

    product_service.delete_product(db, ORG_ID, product.id)

    with pytest.raises(ProductNotFoundError):
        product_service.get_product(db, ORG_ID, product.id)
    assert db.query(InventoryLog).filter(InventoryLog.product_id == product.id).count() == 2


def test_delete_unknown_product(db):
    with pytest.raises(ProductNotFoundError):
        product_service.delete_product(db, ORG_ID, "missing")


def test_deleting_category_unlinks_products(db):
    beverages = make_category(db, "Beverages")
    product = make_product(db, "Cola", category_ids=[beverages.id])

    category_service.delete_category(db, ORG_ID, beverages.id)

    assert product_service.get_product(db, ORG_ID, product.id).category_ids == []


def test_low_stock(db):
    make_product(db, "Cola", current_quantity=2)
    make_product(db, "Water", current_quantity=50)
    make_product(db, "Tea", current_quantity=0)
    make_product(db, "Juice", org_id=OTHER_ORG_ID)

    assert [p.name for p in product_service.get_low_stock(db, ORG_ID, threshold=5)] == ["Tea", "Cola"]


def test_low_stock_defaults_to_configured_threshold(db, monkeypatch):
    make_product(db, "Cola", current_quantity=2)
    make_product(db, "Tea", current_quantity=8)

    monkeypatch.setattr(settings, "LOW_STOCK_THRESHOLD", 10)
    assert [p.name for p in product_service.get_low_stock(db, ORG_ID)] == ["Cola", "Tea"]

    monkeypatch.setattr(settings, "LOW_STOCK_THRESHOLD", 2)
    assert [p.name for p in product_service.get_low_stock(db, ORG_ID)] == ["Cola"]

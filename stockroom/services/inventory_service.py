import logging
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stockroom.exceptions import (
    DatabaseOperationError,
    InvalidDateRangeError,
    NegativeStockError,
    StockConflictError,
    StockLimitExceededError,
    ZeroStockAdjustmentError,
)
from stockroom.models.inventory_log import InventoryLog
from stockroom.models.product import MAX_QUANTITY, Product
from stockroom.schemas.product import StockAdjust
from stockroom.services import product_service

logger = logging.getLogger(__name__)


def _as_utc(value: datetime | None) -> datetime | None:
    # created_at is stored as naive UTC
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _swap_quantity(db: Session, org_id: str, product_id: str, expected: int, new_quantity: int) -> int:
    """Set the quantity only if it still equals ``expected``. Returns the affected row count."""
    result = db.execute(
        update(Product)
        .where(
            Product.id == product_id,
            Product.org_id == org_id,
            Product.current_quantity == expected,
        )
        .values(current_quantity=new_quantity)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def adjust_stock(db: Session, org_id: str, product_id: str, user_id: str, data: StockAdjust) -> InventoryLog:
    """Apply a signed stock change and record it in the product's ledger.

    The log insert and the quantity update commit together or not at all.
    The update is conditional on the quantity read here, so an adjustment
    racing with another one fails with StockConflictError instead of
    overwriting it.
    """
    logger.debug("Adjusting stock for product %s in org %s", product_id, org_id)
    if data.quantity == 0:
        raise ZeroStockAdjustmentError()

    product = product_service.get_product(db, org_id, product_id)
    previous_quantity = product.current_quantity
    new_quantity = previous_quantity + data.quantity
    if new_quantity < 0:
        logger.warning(
            "Rejected stock adjustment on product %s: current=%d change=%d",
            product_id, previous_quantity, data.quantity,
        )
        raise NegativeStockError(previous_quantity, data.quantity)
    if new_quantity > MAX_QUANTITY:
        logger.warning(
            "Rejected stock adjustment on product %s: current=%d change=%d exceeds %d",
            product_id, previous_quantity, data.quantity, MAX_QUANTITY,
        )
        raise StockLimitExceededError(previous_quantity, data.quantity, MAX_QUANTITY)

    log = InventoryLog(
        org_id=org_id,
        product_id=product_id,
        user_id=user_id,
        type=data.type,
        quantity=data.quantity,
        previous_quantity=previous_quantity,
        new_quantity=new_quantity,
        note=data.note,
    )

    try:
        db.add(log)
        db.flush()
        if _swap_quantity(db, org_id, product_id, previous_quantity, new_quantity) == 0:
            raise StockConflictError(product_id)
        db.commit()
    except StockConflictError:
        db.rollback()
        logger.warning("Stock of product %s changed concurrently, adjustment aborted", product_id)
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Stock adjustment on product %s failed: %s", product_id, e)
        raise DatabaseOperationError("stock adjustment", str(e)) from e

    db.refresh(log)
    logger.info(
        "Stock adjusted for product %s (%s): %d -> %d",
        product_id, data.type.value, previous_quantity, new_quantity,
    )
    return log


def get_product_inventory_logs(
    db: Session,
    org_id: str,
    product_id: str,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> list[InventoryLog]:
    start_date = _as_utc(start_date)
    end_date = _as_utc(end_date)
    if start_date and end_date and start_date > end_date:
        raise InvalidDateRangeError()

    product_service.get_product(db, org_id, product_id)

    q = db.query(InventoryLog).filter(InventoryLog.org_id == org_id, InventoryLog.product_id == product_id)
    if start_date:
        q = q.filter(InventoryLog.created_at >= start_date)
    if end_date:
        q = q.filter(InventoryLog.created_at <= end_date)
    logs = q.order_by(InventoryLog.created_at.desc()).all()
    logger.debug("Found %d inventory logs for product %s", len(logs), product_id)
    return logs

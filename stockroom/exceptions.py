"""Typed domain errors.

Services raise these; ``stockroom.main`` maps them to JSON responses using
``status_code`` and ``code``, so callers never need to parse messages.
"""


class StockroomError(Exception):
    status_code = 400
    code = "STOCKROOM_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# --- Category ---

class CategoryNotFoundError(StockroomError):
    status_code = 404
    code = "CATEGORY_NOT_FOUND"

    def __init__(self, category_id: str | None = None):
        if category_id:
            message = f'Category with ID "{category_id}" not found or does not belong to the organization'
        else:
            message = "Category not found or does not belong to the organization"
        super().__init__(message)
        self.category_id = category_id


class CategoryNameConflictError(StockroomError):
    status_code = 409
    code = "CATEGORY_NAME_CONFLICT"

    def __init__(self, name: str):
        super().__init__(f'Category with name "{name}" already exists in this organization')
        self.name = name


class InvalidParentCategoryError(StockroomError):
    code = "INVALID_PARENT_CATEGORY"

    def __init__(self, parent_id: str):
        super().__init__(
            f'Parent category with ID "{parent_id}" not found or does not belong to the organization'
        )
        self.parent_id = parent_id


class CategorySelfParentError(StockroomError):
    code = "CATEGORY_SELF_PARENT"

    def __init__(self):
        super().__init__("Category cannot be its own parent")


class CategoryCircularReferenceError(StockroomError):
    code = "CATEGORY_CIRCULAR_REFERENCE"

    def __init__(self, message: str = "Circular reference detected in category hierarchy"):
        super().__init__(message)


class CategoryHasChildrenError(StockroomError):
    code = "CATEGORY_HAS_CHILDREN"

    def __init__(self):
        super().__init__(
            "Cannot delete category with child categories. Please delete or reassign child categories first."
        )


# --- Product ---

class ProductNotFoundError(StockroomError):
    status_code = 404
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str | None = None):
        if product_id:
            message = f'Product with ID "{product_id}" not found or does not belong to the organization'
        else:
            message = "Product not found or does not belong to the organization"
        super().__init__(message)
        self.product_id = product_id


class ProductNameConflictError(StockroomError):
    status_code = 409
    code = "PRODUCT_NAME_CONFLICT"

    def __init__(self, name: str):
        super().__init__(f'Product with name "{name}" already exists in this organization')
        self.name = name


class InvalidProductCategoryError(StockroomError):
    code = "INVALID_PRODUCT_CATEGORY"

    def __init__(self, category_id: str):
        super().__init__(
            f'Category with ID "{category_id}" not found or does not belong to the organization'
        )
        self.category_id = category_id


# --- Inventory ---

class ZeroStockAdjustmentError(StockroomError):
    code = "ZERO_STOCK_ADJUSTMENT"

    def __init__(self):
        super().__init__("Stock adjustment quantity cannot be zero")


class NegativeStockError(StockroomError):
    code = "NEGATIVE_STOCK_NOT_ALLOWED"

    def __init__(self, current_quantity: int, adjustment_quantity: int):
        super().__init__(
            "Stock adjustment would result in negative quantity. "
            f"Current: {current_quantity}, Adjustment: {adjustment_quantity}"
        )
        self.current_quantity = current_quantity
        self.adjustment_quantity = adjustment_quantity


class StockLimitExceededError(StockroomError):
    code = "STOCK_LIMIT_EXCEEDED"

    def __init__(self, current_quantity: int, adjustment_quantity: int, limit: int):
        super().__init__(
            f"Stock adjustment would exceed the maximum quantity of {limit}. "
            f"Current: {current_quantity}, Adjustment: {adjustment_quantity}"
        )
        self.current_quantity = current_quantity
        self.adjustment_quantity = adjustment_quantity


class InvalidDateRangeError(StockroomError):
    code = "INVALID_DATE_RANGE"

    def __init__(self, message: str = "Invalid date range provided. Start date must be before end date."):
        super().__init__(message)


class StockConflictError(StockroomError):
    """The product quantity changed between read and write. Safe to retry."""

    status_code = 409
    code = "STOCK_CONFLICT"

    def __init__(self, product_id: str):
        super().__init__(f'Stock of product "{product_id}" was modified concurrently, please retry')
        self.product_id = product_id


# --- Storage ---

class DatabaseOperationError(StockroomError):
    """Storage failure. Nothing was persisted, so the call can be retried."""

    status_code = 500
    code = "DATABASE_OPERATION_FAILED"

    def __init__(self, operation: str, details: str = ""):
        message = f"Database operation failed: {operation}"
        if details:
            message += f" - {details}"
        super().__init__(message)
        self.operation = operation

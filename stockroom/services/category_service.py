import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from stockroom.database import is_foreign_key_violation
from stockroom.exceptions import (
    CategoryCircularReferenceError,
    CategoryHasChildrenError,
    CategoryNameConflictError,
    CategoryNotFoundError,
    CategorySelfParentError,
    DatabaseOperationError,
    InvalidParentCategoryError,
    StockroomError,
)
from stockroom.models.category import Category
from stockroom.schemas.category import CategoryCreate, CategoryNode, CategoryUpdate

logger = logging.getLogger(__name__)


def _find_category(db: Session, org_id: str, category_id: str, lock: bool = False) -> Category | None:
    q = db.query(Category).filter(Category.id == category_id, Category.org_id == org_id)
    if lock:
        q = q.with_for_update()
    return q.first()


def _name_taken(db: Session, org_id: str, name: str, exclude_id: str | None = None) -> bool:
    q = db.query(Category.id).filter(Category.org_id == org_id, Category.name == name)
    if exclude_id:
        q = q.filter(Category.id != exclude_id)
    return q.first() is not None


def _commit(db: Session, operation: str, name: str, parent_id: str | None = None) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if is_foreign_key_violation(e):
            # parent_id is the only foreign key, so the parent was deleted concurrently
            if parent_id is not None:
                raise InvalidParentCategoryError(parent_id) from e
            raise DatabaseOperationError(operation, str(e)) from e
        # Lost a race against a concurrent insert of the same name
        raise CategoryNameConflictError(name) from e
    except SQLAlchemyError as e:
        db.rollback()
        raise DatabaseOperationError(operation, str(e)) from e


def _check_circular_reference(db: Session, org_id: str, category_id: str, parent_id: str) -> None:
    """Walk up from the proposed parent; reaching ``category_id`` means a cycle.

    Ancestors are read with row locks so a concurrent reparent cannot slip a
    cycle in between this walk and the commit.
    """
    visited: set[str] = set()
    cursor: str | None = parent_id

    while cursor is not None:
        if cursor in visited:
            raise CategoryCircularReferenceError()
        if cursor == category_id:
            raise CategoryCircularReferenceError(
                "Circular reference detected: category cannot be a descendant of itself"
            )
        visited.add(cursor)
        ancestor = _find_category(db, org_id, cursor, lock=True)
        cursor = ancestor.parent_id if ancestor is not None else None


def _validate_new_parent(db: Session, org_id: str, category_id: str, parent_id: str) -> None:
    if parent_id == category_id:
        raise CategorySelfParentError()
    if _find_category(db, org_id, parent_id, lock=True) is None:
        raise InvalidParentCategoryError(parent_id)
    _check_circular_reference(db, org_id, category_id, parent_id)


def create_category(db: Session, org_id: str, data: CategoryCreate) -> Category:
    logger.debug("Creating category %r for org %s", data.name, org_id)
    if _name_taken(db, org_id, data.name):
        raise CategoryNameConflictError(data.name)
    if data.parent_id is not None and _find_category(db, org_id, data.parent_id) is None:
        raise InvalidParentCategoryError(data.parent_id)

    category = Category(
        org_id=org_id,
        name=data.name,
        description=data.description,
        parent_id=data.parent_id,
    )
    db.add(category)
    _commit(db, "category creation", data.name, parent_id=data.parent_id)
    db.refresh(category)
    logger.debug("Category created with id %s", category.id)
    return category


def list_categories(db: Session, org_id: str) -> list[Category]:
    return db.query(Category).filter(Category.org_id == org_id).order_by(Category.name.asc()).all()


def get_category(db: Session, org_id: str, category_id: str) -> Category:
    category = _find_category(db, org_id, category_id)
    if not category:
        logger.warning("Category %s not found for org %s", category_id, org_id)
        raise CategoryNotFoundError(category_id)
    return category


def get_category_tree(db: Session, org_id: str) -> list[CategoryNode]:
    """Return the org's categories as a forest, siblings sorted by name."""
    categories = list_categories(db, org_id)
    nodes = {
        c.id: CategoryNode(id=c.id, name=c.name, description=c.description, parent_id=c.parent_id)
        for c in categories
    }
    roots = []
    for c in categories:
        parent = nodes.get(c.parent_id) if c.parent_id else None
        if parent is None:
            roots.append(nodes[c.id])
        else:
            parent.children.append(nodes[c.id])
    return roots


def update_category(db: Session, org_id: str, category_id: str, data: CategoryUpdate) -> Category:
    logger.debug("Updating category %s for org %s", category_id, org_id)
    changes = data.model_dump(exclude_unset=True)
    name = changes.get("name")

    # Validation and write share one transaction; locks are released on rollback
    try:
        category = _find_category(db, org_id, category_id, lock=True)
        if not category:
            raise CategoryNotFoundError(category_id)
        if name is not None and name != category.name and _name_taken(db, org_id, name, exclude_id=category_id):
            raise CategoryNameConflictError(name)
        if changes.get("parent_id") is not None:
            _validate_new_parent(db, org_id, category_id, changes["parent_id"])
    except StockroomError as e:
        db.rollback()
        logger.warning("Rejected update of category %s: %s", category_id, e.message)
        raise

    if name is not None:
        category.name = name
    if "description" in changes:
        category.description = changes["description"]
    if "parent_id" in changes:
        category.parent_id = changes["parent_id"]

    _commit(db, "category update", name or category.name, parent_id=category.parent_id)
    db.refresh(category)
    logger.debug("Category %s updated", category_id)
    return category


def delete_category(db: Session, org_id: str, category_id: str) -> None:
    logger.debug("Deleting category %s for org %s", category_id, org_id)
    category = _find_category(db, org_id, category_id, lock=True)
    if not category:
        db.rollback()
        raise CategoryNotFoundError(category_id)

    has_children = (
        db.query(Category.id)
        .filter(Category.org_id == org_id, Category.parent_id == category_id)
        .first()
    ) is not None
    if has_children:
        db.rollback()
        raise CategoryHasChildrenError()

    db.delete(category)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise DatabaseOperationError("category deletion", str(e)) from e
    logger.debug("Category %s deleted", category_id)

"""Catalog service: cost categories and cost items (the shared price list)."""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from kalkyle.models import Category, CostItem, CATEGORY_LABELS
from kalkyle.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Seeded by `flask seed-catalog`, in display order
DEFAULT_CATEGORIES = [
    ('Arbeid', 'labor', 1),
    ('Materialer', 'material', 2),
    ('Forbruksmateriell', 'consumable', 3),
    ('Transport/Rigg', 'transport', 4),
    ('NDT-tjenester', 'ndt', 5),
]

COST_ITEM_FIELDS = (
    'category_id', 'name', 'description', 'unit', 'unit_price',
    'ndt_method', 'ndt_level', 'sort_order',
)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

def list_categories(session: Session) -> List[Category]:
    return session.query(Category).order_by(Category.sort_order, Category.name).all()


def get_category(session: Session, category_id: int) -> Category:
    category = session.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise NotFoundError('Kategori ikke funnet')
    return category


def list_categories_grouped(session: Session) -> List[Dict[str, Any]]:
    """Categories with their cost items nested, for the price list view."""
    items = session.query(CostItem).order_by(CostItem.sort_order, CostItem.name).all()
    by_category: Dict[int, list] = {}
    for item in items:
        by_category.setdefault(item.category_id, []).append(item.to_dict())

    grouped = []
    for category in list_categories(session):
        data = category.to_dict()
        data['label'] = CATEGORY_LABELS.get(category.type, category.type)
        data['items'] = by_category.get(category.id, [])
        grouped.append(data)
    return grouped


def create_category(session: Session, name: str, category_type: str, sort_order: int = 0) -> Category:
    try:
        category = Category(name=name, type=category_type, sort_order=sort_order or 0)
        session.add(category)
        session.commit()
        logger.info(f"Category '{name}' ({category_type}) created")
        return category
    except Exception:
        session.rollback()
        raise


def update_category(session: Session, category_id: int, fields: Dict[str, Any]) -> Category:
    """Rename or reorder a category. Its type is fixed at creation."""
    category = get_category(session, category_id)
    new_type = fields.get('type')
    if new_type is not None and new_type != category.type:
        raise ValidationError('Kategoritype kan ikke endres', field='type')

    try:
        if fields.get('name'):
            category.name = fields['name']
        if fields.get('sort_order') is not None:
            category.sort_order = fields['sort_order']
        session.commit()
        return category
    except Exception:
        session.rollback()
        raise


def delete_category(session: Session, category_id: int) -> None:
    """Delete a category and all of its cost items."""
    category = get_category(session, category_id)
    try:
        session.delete(category)
        session.commit()
        logger.info(f"Category {category_id} deleted")
    except Exception:
        session.rollback()
        raise


def seed_default_categories(session: Session) -> int:
    """Create the default categories that are missing. Returns how many were created."""
    existing = {c.type for c in session.query(Category).all()}
    created = 0
    try:
        for name, category_type, sort_order in DEFAULT_CATEGORIES:
            if category_type in existing:
                continue
            session.add(Category(name=name, type=category_type, sort_order=sort_order))
            created += 1
        session.commit()
        return created
    except Exception:
        session.rollback()
        raise


# ---------------------------------------------------------------------------
# Cost items
# ---------------------------------------------------------------------------

def list_cost_items(session: Session, category_id: Optional[int] = None,
                    category_type: Optional[str] = None) -> List[CostItem]:
    query = session.query(CostItem).join(Category, CostItem.category_id == Category.id)
    if category_id is not None:
        query = query.filter(CostItem.category_id == category_id)
    if category_type:
        query = query.filter(Category.type == category_type)
    return query.order_by(Category.sort_order, CostItem.sort_order, CostItem.name).all()


def list_cost_items_grouped(session: Session) -> Dict[str, List[Dict[str, Any]]]:
    """Cost items keyed by category type; types without items are absent."""
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for item in list_cost_items(session):
        grouped.setdefault(item.category.type, []).append(item.to_dict())
    return grouped


def get_cost_item(session: Session, item_id: int) -> CostItem:
    item = session.query(CostItem).filter(CostItem.id == item_id).first()
    if not item:
        raise NotFoundError('Kostnadspost ikke funnet')
    return item


def create_cost_item(session: Session, fields: Dict[str, Any]) -> CostItem:
    get_category(session, fields['category_id'])
    try:
        item = CostItem(
            category_id=fields['category_id'],
            name=fields['name'],
            description=fields.get('description'),
            unit=fields['unit'],
            unit_price=fields['unit_price'],
            ndt_method=fields.get('ndt_method'),
            ndt_level=fields.get('ndt_level'),
            sort_order=fields.get('sort_order') or 0
        )
        session.add(item)
        session.commit()
        logger.info(f"Cost item '{item.name}' created in category {item.category_id}")
        return item
    except Exception:
        session.rollback()
        raise


def update_cost_item(session: Session, item_id: int, fields: Dict[str, Any]) -> CostItem:
    """
    Partial update. A new unit_price only affects lines added afterwards;
    existing quote lines keep their copied price.
    """
    item = get_cost_item(session, item_id)
    if fields.get('category_id') is not None:
        get_category(session, fields['category_id'])

    try:
        for key in COST_ITEM_FIELDS:
            if key in fields:
                setattr(item, key, fields[key])
        item.updated_at = datetime.now(timezone.utc)
        session.commit()
        return item
    except Exception:
        session.rollback()
        raise


def delete_cost_item(session: Session, item_id: int) -> None:
    """Delete a cost item; lines that referenced it keep their copied values."""
    item = get_cost_item(session, item_id)
    try:
        session.delete(item)
        session.commit()
        logger.info(f"Cost item {item_id} deleted")
    except Exception:
        session.rollback()
        raise

"""Query helpers for catalog entities.

`list_products` turns the flat filter set of the product listing into a
SQLAlchemy query; `paginate` applies sorting and paging for every list
endpoint.
"""
import math
from typing import Dict, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from . import errors
from .models import Product, Category, Brand, Faq, HeroSlide
from .schemas import ListParams, ProductFilters

PRODUCT_SORTS = {
    "createdAt": Product.created_at,
    "updatedAt": Product.updated_at,
    "title": Product.title,
    "year": Product.year,
    "unitPrice": Product.unit_price,
    "discountPercentage": Product.discount_percentage,
    "quantity": Product.quantity,
    "weight": Product.weight,
    "mileage": Product.mileage,
}

SEARCH_COLUMNS = (
    Product.title, Product.model, Product.chassis, Product.color,
    Product.axle_configuration, Product.vehicle_grade, Product.description,
)


def split_ids(value: str):
    return [v.strip() for v in value.split(",") if v.strip()]


def _one_or_many(column, value):
    ids = split_ids(value)
    if len(ids) > 1:
        return column.in_(ids)
    return column == (ids[0] if ids else value)


def _between(conds, column, low, high):
    if low is not None:
        conds.append(column >= low)
    if high is not None:
        conds.append(column <= high)


def product_conditions(f: ProductFilters):
    conds = []
    if f.category:
        conds.append(_one_or_many(Product.category_id, f.category))
    if f.brand:
        conds.append(_one_or_many(Product.make_id, f.brand))
    if f.category_type:
        conds.append(Product.category.has(Category.type == f.category_type))
    _between(conds, Product.unit_price, f.min_price, f.max_price)
    _between(conds, Product.year, f.year_from, f.year_to)
    _between(conds, Product.weight, f.min_weight, f.max_weight)
    _between(conds, Product.mileage, f.min_mileage, f.max_mileage)
    if f.year is not None:
        conds.append(Product.year == f.year)
    for column, value in (
        (Product.fuel_type, f.fuel_type),
        (Product.axle_configuration, f.axle_configuration),
        (Product.vehicle_grade, f.vehicle_grade),
        (Product.tag, f.tag),
    ):
        if value:
            conds.append(column == value)
    for column, value in (
        (Product.chassis, f.chassis),
        (Product.color, f.color),
        (Product.model, f.model),
    ):
        if value:
            conds.append(column.icontains(value, autoescape=True))
    if f.search:
        conds.append(or_(*[c.icontains(f.search, autoescape=True) for c in SEARCH_COLUMNS]))
    return conds


def paginate(q, params: ListParams, sortable: Dict, default_sort: str, default_limit: Optional[int],
             tie_break=(), default_order: Optional[str] = None):
    """Sort and page `q`. With no `limit` and no `default_limit`, every row is returned."""
    sort_by = params.sort_by or default_sort
    if sort_by not in sortable:
        raise errors.ValidationError(f"Cannot sort by '{sort_by}'")
    if params.sort_by is None and default_order is not None:
        order = default_order
    else:
        order = params.sort_order
    column = sortable[sort_by]
    q = q.order_by(column.asc() if order == "asc" else column.desc(), *tie_break)

    limit = params.limit or default_limit
    total = q.order_by(None).count()
    if limit is None:
        items = q.all() if params.page == 1 else []
        return {
            "items": items,
            "pagination": {"page": params.page, "limit": total, "total": total, "total_pages": 1 if total else 0},
        }
    items = q.offset((params.page - 1) * limit).limit(limit).all()
    return {
        "items": items,
        "pagination": {
            "page": params.page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit),
        },
    }


def list_products(db: Session, filters: ProductFilters):
    q = db.query(Product)
    conds = product_conditions(filters)
    if conds:
        q = q.filter(*conds)
    return paginate(q, filters, PRODUCT_SORTS, "createdAt", 10, tie_break=(Product.id.asc(),))


def get_or_404(db: Session, model, obj_id: str, label: str):
    obj = db.get(model, obj_id)
    if obj is None:
        raise errors.NotFoundError(f"{label} not found")
    return obj


def count_products_using(db: Session, column, ref_id: str):
    return db.query(Product).filter(column == ref_id).count()


def references_exist(db: Session, category_id=None, make_id=None):
    """Raise a validation error when a referenced category or brand is unknown."""
    if category_id is not None and db.get(Category, category_id) is None:
        raise errors.ValidationError("Selected category does not exist")
    if make_id is not None and db.get(Brand, make_id) is None:
        raise errors.ValidationError("Selected brand does not exist")


# ---------------
# Display ordering
# ---------------

def faq_display_query(db: Session):
    return db.query(Faq).order_by(Faq.order.asc(), Faq.created_at.desc(), Faq.id.asc())


def hero_display_query(db: Session):
    return db.query(HeroSlide).order_by(HeroSlide.position.asc(), HeroSlide.created_at.asc(), HeroSlide.id.asc())


def swap(db: Session, first, second, attr: str):
    """Exchange `attr` between two rows in a single transaction."""
    a, b = getattr(first, attr), getattr(second, attr)
    setattr(first, attr, b)
    setattr(second, attr, a)
    db.commit()
    db.refresh(first)
    db.refresh(second)


def neighbour(rows, obj_id: str, direction: str):
    """Row adjacent to `obj_id` in display order, or None at either end."""
    ids = [r.id for r in rows]
    if obj_id not in ids:
        return None
    idx = ids.index(obj_id) + (-1 if direction == "up" else 1)
    if idx < 0 or idx >= len(rows):
        return None
    return rows[idx]


def move(db: Session, rows, obj_id: str, direction: str, attr: str):
    """Swap a row with its display neighbour. Returns False at either end of the list."""
    other = neighbour(rows, obj_id, direction)
    if other is None:
        return False
    target = next(r for r in rows if r.id == obj_id)
    value = getattr(other, attr)
    if getattr(target, attr) != value:
        swap(db, target, other, attr)
        return True
    # tied values: step the moving row past its neighbour, leave every other row alone
    setattr(target, attr, value + (1 if direction == "down" else -1))
    db.commit()
    db.refresh(target)
    return True

# camrent/storefront/utils.py
"""Catalog queries shared by the storefront and admin blueprints."""

from camrent.models import (
    ACCESSORY_CATEGORIES,
    CAMERA_CATEGORIES,
    Equipment,
    Order,
)

TRUTHY = ('1', 'true', 'yes', 'on')


def parse_bool(value):
    """'true'/'false' query strings to bool; None stays None."""
    if value is None or value == '':
        return None
    return str(value).strip().lower() in TRUTHY


def equipment_query(category=None, available=None, kind=None):
    """
    Equipment newest first, optionally narrowed by exact ``category``,
    ``available`` flag, or ``kind`` ('camera' / 'accessory').
    """
    q = Equipment.query
    if category:
        q = q.filter(Equipment.category == category)
    if available is not None:
        q = q.filter(Equipment.available.is_(available))
    if kind == 'camera':
        q = q.filter(Equipment.category.in_(CAMERA_CATEGORIES))
    elif kind == 'accessory':
        q = q.filter(Equipment.category.in_(ACCESSORY_CATEGORIES))
    return q.order_by(Equipment.created_at.desc())


def catalog() -> dict:
    """Storefront listing split into cameras and accessories."""
    cameras, accessories = [], []
    for eq in equipment_query():
        (cameras if eq.kind == 'camera' else accessories).append(eq.to_dict())
    return {'cameras': cameras, 'accessories': accessories}


def orders_query(status=None, customer_email=None, checkout_ref=None):
    q = Order.query
    if status:
        q = q.filter(Order.status == status)
    if customer_email:
        q = q.filter(Order.customer_email == customer_email)
    if checkout_ref:
        q = q.filter(Order.checkout_ref == checkout_ref)
    return q.order_by(Order.created_at.desc())

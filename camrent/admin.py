# camrent/admin.py
"""Admin blueprint: inventory, orders and the notification inbox."""

import csv
import io
import logging

from flask import Blueprint, jsonify, make_response, request
from flask_login import current_user
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from camrent import db
from camrent.access import admin_denied, request_data
from camrent.models import CATEGORIES, ORDER_STATUSES, Equipment, Notification, Order
from camrent.orders import InvalidTransition, allowed_next, transition
from camrent.storefront.utils import equipment_query, orders_query, parse_bool

bp = Blueprint('admin', __name__)

EDITABLE = ('name', 'category', 'image_url', 'description', 'rate_12hr', 'rate_24hr', 'available')


@bp.before_request
def before():
    return admin_denied()


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logging.exception("admin commit failed")
        return jsonify(error='Could not save changes. Please try again.'), 500
    return None


@bp.route('/')
def dashboard():
    counts = dict(
        db.session.query(Order.status, func.count(Order.id)).group_by(Order.status).all()
    )
    recent = orders_query().limit(5).all()
    return jsonify(
        equipment_total=Equipment.query.count(),
        equipment_available=Equipment.query.filter(Equipment.available.is_(True)).count(),
        orders={s: counts.get(s, 0) for s in ORDER_STATUSES},
        notifications=Notification.query.count(),
        recent_orders=[o.to_dict() for o in recent],
    )


# --- Inventory ----------------------------------------------------------------

def _apply_equipment_fields(eq, data, partial):
    """Copy validated fields from ``data`` onto ``eq``; returns an error or None."""
    for key in EDITABLE:
        if key not in data:
            if not partial and key in ('name', 'category'):
                return f'{key} is required'
            continue
        value = data[key]
        if key in ('name', 'category'):
            value = (value or '').strip()
            if not value:
                return f'{key} cannot be empty'
            if key == 'category' and value not in CATEGORIES:
                return f'Unknown category {value!r}'
        elif key in ('rate_12hr', 'rate_24hr'):
            try:
                value = float(value)
            except (TypeError, ValueError):
                return f'{key} must be a number'
            if value < 0:
                return f'{key} cannot be negative'
        elif key == 'available':
            value = value if isinstance(value, bool) else bool(parse_bool(value))
        else:
            value = value or ''
        setattr(eq, key, value)
    return None


@bp.route('/equipment', methods=['GET', 'POST'])
def equipment():
    if request.method == 'POST':
        data = request_data()
        eq = Equipment()
        error = _apply_equipment_fields(eq, data, partial=False)
        if error:
            return jsonify(error=error), 400
        db.session.add(eq)
        failed = _commit()
        if failed:
            return failed
        logging.info("equipment %s created: %s", eq.id, eq.name)
        return jsonify(equipment=eq.to_dict()), 201

    items = equipment_query(
        category=request.args.get('category'),
        available=parse_bool(request.args.get('available')),
        kind=request.args.get('kind'),
    ).all()
    return jsonify(equipment=[e.to_dict() for e in items])


@bp.route('/equipment/<equipment_id>/edit', methods=['POST'])
def edit_equipment(equipment_id):
    eq = db.get_or_404(Equipment, equipment_id)
    data = request_data()
    error = _apply_equipment_fields(eq, data, partial=True)
    if error:
        db.session.rollback()
        return jsonify(error=error), 400
    failed = _commit()
    if failed:
        return failed
    return jsonify(equipment=eq.to_dict())


@bp.route('/equipment/<equipment_id>/toggle', methods=['POST'])
def toggle_equipment(equipment_id):
    eq = db.get_or_404(Equipment, equipment_id)
    eq.available = not eq.available
    failed = _commit()
    if failed:
        return failed
    return jsonify(equipment=eq.to_dict())


@bp.route('/equipment/<equipment_id>/delete', methods=['POST'])
def delete_equipment(equipment_id):
    eq = db.get_or_404(Equipment, equipment_id)

    # 1) Orders are kept; detach them from the equipment first
    Order.query.filter_by(equipment_id=eq.id).update({'equipment_id': None})

    # 2) Now delete the equipment itself
    db.session.delete(eq)
    failed = _commit()
    if failed:
        return failed
    logging.info("equipment %s deleted", equipment_id)
    return jsonify(success=True)


# --- Orders -------------------------------------------------------------------

@bp.route('/orders')
def orders():
    rows = orders_query(
        status=request.args.get('status'),
        customer_email=request.args.get('email'),
        checkout_ref=request.args.get('checkout_ref'),
    ).all()
    return jsonify(orders=[
        dict(o.to_dict(), next_statuses=list(allowed_next(o.status))) for o in rows
    ])


@bp.route('/orders/<order_id>/status', methods=['POST'])
def update_order_status(order_id):
    order = db.get_or_404(Order, order_id)
    data = request_data()
    try:
        transition(order, data.get('status'), handled_by=current_user.id)
    except InvalidTransition as e:
        return jsonify(error=str(e), status=order.status), 409
    failed = _commit()
    if failed:
        return failed
    return jsonify(order=order.to_dict())


@bp.route('/orders.csv')
def orders_csv():
    """Download orders as a CSV file."""
    rows = orders_query(status=request.args.get('status')).all()
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([
        "id", "created_at", "customer_name", "customer_email", "customer_phone",
        "equipment", "duration", "rent_date", "return_date",
        "total_cost", "payment_type", "payment_mode", "status", "checkout_ref",
    ])
    for o in rows:
        writer.writerow([
            o.id, o.created_at, o.customer_name, o.customer_email, o.customer_phone,
            o.equipment.name if o.equipment else '', o.duration,
            o.rent_date.isoformat(), o.return_date.isoformat(),
            f"{o.total_cost:.2f}", o.payment_type, o.payment_mode, o.status, o.checkout_ref,
        ])
    resp = make_response(output.getvalue())
    resp.headers["Content-Disposition"] = "attachment; filename=orders.csv"
    resp.mimetype = "text/csv"
    return resp


# --- Notifications ------------------------------------------------------------

@bp.route('/notifications')
def notifications():
    rows = Notification.query.order_by(Notification.created_at.desc()).all()
    return jsonify(notifications=[n.to_dict() for n in rows])


@bp.route('/notifications/<notification_id>/delete', methods=['POST'])
def delete_notification(notification_id):
    note = db.get_or_404(Notification, notification_id)
    db.session.delete(note)
    failed = _commit()
    if failed:
        return failed
    return jsonify(success=True)
